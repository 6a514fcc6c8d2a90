"""Patent vals and wart notation.

A patent val maps every basis factor to the nearest number of steps of an
equal division of the equave. Warts are letters appended to the number of
divisions ('17c', '12bb') that move individual entries away from the patent
val: the first occurrence of a letter picks the second best approximation,
the second occurrence the third best and so on, alternating sides.

Functions here work on a raw JIP (any logarithmic unit) with letters 'a', 'b',
'c'... referring to positions in the JIP. Subgroup objects translate their own
prime-based letters into positions before calling in.
"""

import itertools
import math
from typing import Dict, Iterator, List, Sequence, Tuple, Union

from utils import SearchExhaustedError

WartToken = Union[int, str]


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def patent_val(divisions: int, jip: Sequence[float]) -> List[int]:
    """Nearest integer approximation of the JIP scaled to the given divisions of the equave."""
    divisions_per_log_equave = divisions / jip[0]
    return [_round_half_up(log_basis * divisions_per_log_equave) for log_basis in jip]


def to_divisions_modifications(token: WartToken) -> Tuple[int, List[Tuple[int, int]]]:
    """Split a wart token into the number of divisions and (index, modification) pairs.

    Modifications alternate in sign: one letter gives +1, two give -1, three +2 and so on.
    Positive means away from the patent val on the side of the just value.
    """
    if isinstance(token, int):
        return token, []
    s = str(token).strip()
    digits = ""
    while s and (s[0].isdigit() or s[0] == '-'):
        digits += s[0]
        s = s[1:]
    if not digits:
        raise ValueError(f"Wart token '{token}' does not start with a number of divisions")
    divisions = int(digits)

    counts: Dict[int, int] = {}
    for letter in s.lower():
        if not 'a' <= letter <= 'z':
            raise ValueError(f"Invalid wart letter '{letter}' in '{token}'")
        index = ord(letter) - ord('a')
        counts[index] = counts.get(index, 0) + 1

    modifications = []
    for index, count in counts.items():
        modification = ((count + 1) // 2) * (2 * (count % 2) - 1)
        modifications.append((index, modification))
    return divisions, modifications


def from_warts(token: WartToken, jip: Sequence[float]) -> List[int]:
    """Val corresponding to a wart token such as '17c' relative to the given JIP."""
    divisions, modifications = to_divisions_modifications(token)
    divisions_per_log_equave = divisions / jip[0]
    result = patent_val(divisions, jip)
    for index, modification in modifications:
        if index >= len(jip):
            raise ValueError(f"Wart '{chr(ord('a') + index)}' exceeds the {len(jip)} basis factors")
        if jip[index] * divisions_per_log_equave > result[index]:
            result[index] += modification
        else:
            result[index] -= modification
    return result


def to_warts(val: Sequence[int], jip: Sequence[float]) -> str:
    """Wart token of a val relative to the given JIP."""
    divisions = int(val[0])
    divisions_per_log_equave = divisions / jip[0]
    patent = patent_val(divisions, jip)
    result = str(divisions)
    for index in range(len(val)):
        modification = int(val[index]) - patent[index]
        count = 2 * abs(modification)
        if jip[index] * divisions_per_log_equave > patent[index]:
            if modification > 0:
                count -= 1
        elif modification < 0:
            count -= 1
        result += chr(ord('a') + index) * count
    return result


def wart_variants(val: Sequence[int], radius: int = 1) -> Iterator[List[int]]:
    """Every val within radius steps of val, equave kept fixed, in lexicographic order."""
    offsets = range(-radius, radius + 1)
    equave = int(val[0])
    for deltas in itertools.product(offsets, repeat=len(val) - 1):
        yield [equave] + [int(v) + d for v, d in zip(val[1:], deltas)]


def generalized_vals(ray: Sequence[float], start: float, end: float) -> Iterator[List[int]]:
    """Walk along a ray yielding every generalized patent val with start <= equave steps <= end.

    The val is the rounded point t * ray / ray[0]. Going up in t exactly one coordinate
    crosses a half-integer at a time, so consecutive vals differ by one step in one entry.
    """
    if not ray or not ray[0]:
        raise ValueError("The ray needs a nonzero first component")
    ratios = [r / ray[0] for r in ray]
    t = float(start)
    val = [_round_half_up(t * r) for r in ratios]
    while val[0] <= end:
        if val[0] >= start:
            yield list(val)
        best_t = math.inf
        best_index = -1
        for i, r in enumerate(ratios):
            if r > 0:
                crossing = (val[i] + 0.5) / r
            elif r < 0:
                crossing = (val[i] - 0.5) / r
            else:
                continue
            if crossing < best_t:
                best_t = crossing
                best_index = i
        if best_index < 0:
            raise SearchExhaustedError("Ray does not move any val component")
        t = best_t
        val[best_index] += 1 if ratios[best_index] > 0 else -1
