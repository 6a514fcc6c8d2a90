"""Algebra-free tuning optimization.

The exterior algebra grows as 2**n with the number of basis factors, which makes
it impractical for large subgroups. The functions here reach (approximately)
the same Tenney-Euclidean tunings with plain vector arithmetic:

- vanish_commas: iterated weighted projections that drive every comma to zero
  starting from the just intonation point
- tenney_vals: weighted least squares fit of the JIP inside the span of a few vals

Both work in logarithmic space and accept mappings in any pitch unit.
"""

import logging
from typing import List, Optional, Sequence

import numpy as np

import consts
import monzo as monzo_layer
import warts
from subgroup import Subgroup
from utils import from_nats, to_nats

logger = logging.getLogger(__name__)


def vanish_commas(commas, jip: Optional[Sequence[float]] = None, weights: Optional[Sequence[float]] = None,
                  temper_equaves: bool = True, units: str = consts.DEFAULT_UNITS,
                  num_iterations: int = consts.DEFAULT_ITERATIONS) -> List[float]:
    """Temper out commas by cyclic weighted projections of the JIP.

    Args:
        commas: Prime monzos or fraction values
        jip: Starting mapping in the given units, prime sizes by default
        weights: Weight of each basis factor, Tenney weights 1/jip by default
        temper_equaves: Allow the first factor to move
        units: Pitch units of jip and of the result
        num_iterations: Number of sweeps over the commas
    """
    monzos = [monzo_layer.resolve_monzo(c) for c in commas]
    if jip is None:
        dimensions = max((len(m) for m in monzos), default=0)
        mapping = np.array(consts.LOG_PRIMES[:dimensions], dtype=float)
    else:
        mapping = np.array(to_nats(jip, units), dtype=float)
    dimensions = len(mapping)

    if weights is None:
        weights = 1 / mapping
    weights = np.array(weights, dtype=float)
    inverse_square = 1 / weights[:dimensions] ** 2

    directions = []
    for m in monzos:
        comma = np.zeros(dimensions)
        comma[:min(len(m), dimensions)] = m[:dimensions]
        scaled = comma * inverse_square
        norm = float(np.dot(comma, scaled))
        if norm:
            directions.append((comma, scaled / norm))

    for _ in range(num_iterations):
        for comma, direction in directions:
            delta = np.dot(mapping, comma) * direction
            if not temper_equaves:
                delta[0] = 0
            mapping -= delta

    if directions:
        logger.debug(f"Largest residual {max(abs(np.dot(mapping, c)) for c, _ in directions)}")
    return from_nats([float(m) for m in mapping], units)


def tenney_vals(vals, jip_or_subgroup, weights: Optional[Sequence[float]] = None,
                temper_equaves: bool = True, units: str = consts.DEFAULT_UNITS) -> List[float]:
    """Tenney-Euclidean optimal mapping supported by the given vals.

    jip_or_subgroup is either a mapping in the given units or a subgroup value,
    in which case wart tokens like '17c' are accepted as vals.
    """
    if isinstance(jip_or_subgroup, (Subgroup, str, int)):
        subgroup = Subgroup(jip_or_subgroup)
        jip = np.array(subgroup.jip('nats'))
        resolve = subgroup.from_warts
    else:
        jip = np.array(to_nats(jip_or_subgroup, units), dtype=float)

        def resolve(token):
            return warts.from_warts(token, list(jip))

    if weights is None:
        weights = 1 / jip
    weights = np.array(weights, dtype=float)

    basis: List[np.ndarray] = []
    for val in vals:
        if not monzo_layer.is_monzo(val):
            val = resolve(val)
        vector = np.zeros(len(jip))
        vector[:min(len(val), len(jip))] = val[:len(jip)]
        vector *= weights
        # Modified Gram-Schmidt
        for q in basis:
            vector -= np.dot(vector, q) * q
        norm = np.linalg.norm(vector)
        if norm > consts.RATIO_EPS:
            basis.append(vector / norm)

    weighted_jip = jip * weights
    projected = np.zeros(len(jip))
    for q in basis:
        projected += np.dot(weighted_jip, q) * q
    mapping = projected / weights

    if not temper_equaves and mapping[0]:
        mapping *= jip[0] / mapping[0]
    return from_nats([float(m) for m in mapping], units)
