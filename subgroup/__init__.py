"""Fractional just intonation subgroups.

A subgroup is an ordered basis of positive rational "formal primes" such as
2.3.5, 2.9.7/5 or 2.3.13/5. It defines the dimensionality of every
temperament built on it and translates between the outside world (fractions,
prime monzos, prime mappings, wart tokens) and vectors over its own basis.

Features:
- Construction from a prime limit, a period-separated string, a list of fraction values
- Just intonation point (JIP) in any pitch unit
- Monzo resolution with residuals, closed form for prime-power bases
- Patent vals, wart tokens and generalized patent val walks
- Expansion of subgroup mappings into full prime mappings
"""

import logging
import math
from fractions import Fraction
from functools import lru_cache
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np

import consts
import monzo as monzo_layer
import warts
from utils import SubgroupError, from_nats, to_nats

logger = logging.getLogger(__name__)


def _is_prime_factor(factor: Fraction) -> bool:
    return factor.denominator == 1 and factor.numerator in consts.PRIMES


def _expand_basis(basis_monzos: List[List[int]], limit: int) -> List[List[int]]:
    """Complete the basis monzos into a square basis of the first limit primes.

    Unit vectors of primes that no factor touches come first, the rest are picked
    in order as long as they increase the rank.
    """
    expanded = [list(m) + [0] * (limit - len(m)) for m in basis_monzos]
    touched = set()
    for m in expanded:
        touched.update(j for j, component in enumerate(m) if component)

    def unit(index):
        vector = [0] * limit
        vector[index] = 1
        return vector

    for index in range(limit):
        if index not in touched:
            expanded.append(unit(index))
    start = len(expanded)
    candidates = list(range(start, limit)) + list(range(min(start, limit)))
    for index in candidates:
        if len(expanded) >= limit:
            break
        trial = expanded + [unit(index)]
        if np.linalg.matrix_rank(np.array(trial, dtype=float)) == len(trial):
            expanded = trial
    return expanded


class Subgroup:
    """Ordered basis of distinct positive rationals other than 1. Immutable."""

    __slots__ = ('_basis',)

    def __init__(self, basis=None):
        if basis is None:
            factors: List[Fraction] = []
        elif isinstance(basis, Subgroup):
            factors = list(basis.basis)
        elif isinstance(basis, (int, np.integer)) and not isinstance(basis, bool):
            limit = int(basis)
            if limit == 1:
                factors = []
            elif limit not in consts.PRIMES:
                raise SubgroupError(f"Limit must be a prime: {limit}")
            else:
                factors = [Fraction(p) for p in consts.PRIMES[:consts.PRIMES.index(limit) + 1]]
        elif isinstance(basis, str):
            s = basis.strip()
            try:
                factors = [Fraction(token) for token in s.split('.')] if s else []
            except (ValueError, ZeroDivisionError) as e:
                raise SubgroupError(f"Invalid subgroup '{basis}': {e}")
        else:
            try:
                factors = [monzo_layer.resolve_fraction(b) for b in basis]
            except (ValueError, TypeError, ZeroDivisionError) as e:
                raise SubgroupError(f"Invalid subgroup basis {basis!r}: {e}")

        for factor in factors:
            if factor == 1:
                raise SubgroupError("The number 1 is not a valid basis factor")
            if factor <= 0:
                raise SubgroupError(f"Basis factors must be positive: {factor}")
        if len(set(factors)) != len(factors):
            raise SubgroupError(f"Duplicate basis factors in {'.'.join(str(f) for f in factors)}")
        object.__setattr__(self, '_basis', tuple(factors))

    def __setattr__(self, name, value):
        raise AttributeError("Subgroup is immutable")

    @property
    def basis(self) -> Tuple[Fraction, ...]:
        return self._basis

    def __len__(self):
        return len(self._basis)

    def __iter__(self):
        return iter(self._basis)

    def __str__(self):
        return '.'.join(str(factor) for factor in self._basis)

    def __repr__(self):
        return f"Subgroup('{self}')"

    def __eq__(self, other):
        if not isinstance(other, Subgroup):
            return NotImplemented
        return self._basis == other._basis

    def __hash__(self):
        return hash(self._basis)

    def equals(self, other) -> bool:
        return self == Subgroup(other)

    def jip(self, units: str = consts.DEFAULT_UNITS) -> List[float]:
        """Just intonation point: sizes of the basis factors in the given units."""
        if units == 'ratio':
            return [float(b) for b in self._basis]
        return from_nats(_log_basis(self._basis), units)

    def basis_monzos(self) -> List[List[int]]:
        """Basis factors as prime monzos padded to a common length."""
        return [list(m) for m in _basis_monzos(self._basis)]

    def _simple_indices(self, basis_monzos: List[List[int]]) -> List[int]:
        """Prime index of every factor if each factor is a power of a single prime, else []."""
        indices = []
        for m in basis_monzos:
            nonzero = [j for j, component in enumerate(m) if component]
            if len(nonzero) != 1:
                return []
            indices.append(nonzero[0])
        return indices

    def prime_monzo_to_subgroup_monzo(self, prime_monzo: Sequence[int]) -> List[int]:
        """Express a prime monzo in this basis. Components outside the span are stripped."""
        basis_monzos = self.basis_monzos()
        if not basis_monzos:
            return []
        simple_indices = self._simple_indices(basis_monzos)
        if simple_indices:
            result = []
            for i, index in enumerate(simple_indices):
                if index >= len(prime_monzo):
                    result.append(0)
                else:
                    result.append(int(prime_monzo[index]) // basis_monzos[i][index])
            return result

        limit = len(basis_monzos[0])
        expanded = _expand_basis(basis_monzos, limit)
        target = [int(c) for c in prime_monzo[:limit]]
        target += [0] * (limit - len(target))
        matrix = np.array(expanded, dtype=float).T
        solution, *_ = np.linalg.lstsq(matrix, np.array(target, dtype=float), rcond=None)
        return [int(round(c)) for c in solution[:len(self._basis)]]

    def to_monzo_and_residual(self, value) -> Tuple[List[int], Fraction]:
        """Exponents over this basis and the leftover factor outside of the subgroup."""
        fraction = monzo_layer.resolve_fraction(value)
        basis_monzos = self.basis_monzos()
        dimensions = len(basis_monzos[0]) if basis_monzos else 0
        prime_monzo, _ = monzo_layer.to_monzo_and_residual(fraction, dimensions)
        result = self.prime_monzo_to_subgroup_monzo(prime_monzo)
        residual = fraction
        for component, factor in zip(result, self._basis):
            residual /= factor ** component
        return result, residual

    def to_fraction(self, monzo: Sequence[int]) -> Fraction:
        """Multiply out a monzo over this basis."""
        return monzo_layer.monzo_to_fraction(monzo, self._basis)

    def resolve_monzo(self, interval, prime_mapping: bool = False) -> List[int]:
        """Normalize a fraction or monzo into a monzo over this basis.

        Monzos are taken as basis exponents and zero padded, or as prime exponents
        when prime_mapping is set (in which case anything outside the subgroup is
        dropped). Fractions must lie inside the subgroup.
        """
        if monzo_layer.is_monzo(interval):
            if prime_mapping:
                return self.prime_monzo_to_subgroup_monzo([int(c) for c in interval])
            result = [int(c) for c in interval]
            return result + [0] * (len(self._basis) - len(result))
        result, residual = self.to_monzo_and_residual(interval)
        if residual != 1:
            raise SubgroupError(f"Interval {monzo_layer.resolve_fraction(interval)} outside subgroup {self}")
        return result

    def is_prime_subgroup(self) -> bool:
        return all(_is_prime_factor(factor) for factor in self._basis)

    def _formal_indices(self) -> List[int]:
        return [j for j, factor in enumerate(self._basis) if not _is_prime_factor(factor)]

    def patent_val(self, divisions: int) -> List[int]:
        return warts.patent_val(divisions, self.jip('nats'))

    def from_warts(self, token) -> List[int]:
        """Val of a wart token. Letters a-p name primes, q onward the formal primes in order."""
        if isinstance(token, (int, np.integer)):
            return warts.from_warts(int(token), self.jip('nats'))
        s = str(token).strip()
        digits = ""
        while s and s[0].isdigit():
            digits += s[0]
            s = s[1:]
        formal_indices = self._formal_indices()
        positional = ""
        for letter in s.lower():
            if letter < 'q':
                prime = consts.PRIMES[ord(letter) - ord('a')]
                if Fraction(prime) not in self._basis:
                    raise SubgroupError(f"Prime {prime} not in subgroup {self}")
                index = self._basis.index(Fraction(prime))
            else:
                formal = ord(letter) - consts.FORMAL_WART_OFFSET
                if formal >= len(formal_indices):
                    raise SubgroupError(f"Subgroup {self} has no formal prime '{letter}'")
                index = formal_indices[formal]
            positional += chr(ord('a') + index)
        return warts.from_warts(digits + positional, self.jip('nats'))

    def to_warts(self, val: Sequence[int]) -> str:
        """Wart token of a val using this subgroup's letters."""
        positional = warts.to_warts(val, self.jip('nats'))
        digits = ""
        while positional and (positional[0].isdigit() or positional[0] == '-'):
            digits += positional[0]
            positional = positional[1:]
        formal_indices = self._formal_indices()
        letters = ""
        for letter in positional:
            index = ord(letter) - ord('a')
            if index in formal_indices:
                letters += chr(consts.FORMAL_WART_OFFSET + formal_indices.index(index))
            else:
                letters += consts.PRIME_WART_LETTERS[consts.PRIMES.index(self._basis[index].numerator)]
        return digits + letters

    def wart_letters(self) -> str:
        """The wart letter of every basis factor."""
        formal_indices = self._formal_indices()
        letters = ""
        for j, factor in enumerate(self._basis):
            if j in formal_indices:
                letters += chr(consts.FORMAL_WART_OFFSET + formal_indices.index(j))
            else:
                letters += consts.PRIME_WART_LETTERS[consts.PRIMES.index(factor.numerator)]
        return letters

    def generalized_patent_vals(self, start: float = 1, end: float = consts.DEFAULT_MAX_DIVISIONS) -> Iterator[List[int]]:
        """Generalized patent vals of this subgroup from start to end divisions of the equave."""
        return warts.generalized_vals(self.jip('nats'), start, end)

    def to_prime_mapping(self, mapping: Sequence[float], units: str = consts.DEFAULT_UNITS) -> List[float]:
        """Convert a mapping of the basis factors into a mapping of consecutive primes.

        Primes the subgroup does not touch keep their just sizes.
        """
        nats = to_nats(mapping, units)
        basis_monzos = [monzo_layer.to_monzo(b) for b in self._basis]
        limit = max((len(m) for m in basis_monzos), default=0)

        simple_indices = self._simple_indices(basis_monzos)
        if simple_indices:
            result = list(consts.LOG_PRIMES[:limit])
            for i, index in enumerate(simple_indices):
                result[index] = nats[i] / basis_monzos[i][index]
        else:
            expanded = _expand_basis(basis_monzos, limit)
            extended = list(nats)
            while len(extended) < limit:
                extended.append(monzo_layer.monzo_to_nats(expanded[len(extended)]))
            solution = np.linalg.solve(np.array(expanded, dtype=float), np.array(extended, dtype=float))
            result = [float(x) for x in solution]
        return from_nats(result, units)

    @staticmethod
    def infer_prime_subgroup(commas) -> 'Subgroup':
        """Smallest prime subgroup containing every comma (fractions or prime monzos)."""
        indices = set()
        for comma in commas:
            for i, component in enumerate(monzo_layer.resolve_monzo(comma)):
                if component:
                    indices.add(i)
        logger.debug(f"Inferred prime indices {sorted(indices)}")
        return Subgroup([consts.PRIMES[i] for i in sorted(indices)])


@lru_cache(maxsize=consts.ALGEBRA_CACHE_SIZE)
def _log_basis(basis: Tuple[Fraction, ...]) -> List[float]:
    return [math.log(b.numerator) - math.log(b.denominator) for b in basis]


@lru_cache(maxsize=consts.ALGEBRA_CACHE_SIZE)
def _basis_monzos(basis: Tuple[Fraction, ...]) -> Tuple[Tuple[int, ...], ...]:
    monzos = [monzo_layer.to_monzo(b) for b in basis]
    dimensions = max((len(m) for m in monzos), default=0)
    return tuple(tuple(m + [0] * (dimensions - len(m))) for m in monzos)


def resolve_subgroup(value) -> Optional[Subgroup]:
    """Subgroup of a subgroup value, None passes through."""
    if value is None:
        return None
    return Subgroup(value)
