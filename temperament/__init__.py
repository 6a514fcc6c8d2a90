"""Regular temperaments as multivectors of an exterior algebra.

A temperament of rank r over an n-dimensional subgroup is stored as the wedge
product of r vals: an integer multivector of grade r. Tempering out a comma is
the same as veeing in its dual, so temperaments built from vals and from
commas land in the same representation and can be compared after canonization.

Construction:
- from_vals wedges vals (integer vectors or wart tokens) onto the scalar 1
- from_commas vees comma duals onto the pseudoscalar
- from_prefix rebuilds a wedgie from its first C(n-1, r-1) components and the JIP
Vals or commas that would collapse the running value to zero are skipped.

Queries:
- canonize, equals, rank, tempers_out, steps
- rank_prefix and is_recoverable for the compressed wedgie form
- divisions_generator and period_generator for the period/generator structure
- get_mapping and tune for TE/CTE optimal tunings in any pitch unit
- ji_mapping for the integer mapping matrix of chosen generators

Combination:
- val_join/kernel_meet and val_meet/kernel_join through a real-valued meet/join
  followed by a search for the smallest integral multiple

Factorization:
- val_factorize and comma_factorize recover vals/commas from a wedgie by bounded
  greedy searches that raise SearchExhaustedError when the bounds run out

Two flavours share the machinery: Temperament is bound to a Subgroup and
FreeTemperament to a raw just intonation point in nats.

Caveat: the rank 0 temperament of from_vals([]) maps everything to zero while
from_commas([]) is plain just intonation. The two are different on purpose.
"""

import itertools
import logging
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np

import consts
import monzo as monzo_layer
import warts
from algebra import AlgebraProvider, Multivector, clear_cache as clear_algebra_cache, default_provider
from subgroup import Subgroup
from utils import (
    RescaleError,
    SearchExhaustedError,
    binomial,
    cached_lin_solve,
    dot,
    from_nats,
    gcd_all,
    iterated_euclid,
    mmod,
)

logger = logging.getLogger(__name__)


def clear_cache() -> None:
    """Drop cached algebras and linear solves."""
    clear_algebra_cache()


def canonize_multivector(value: Multivector) -> None:
    """Divide out the common factor and make the first lexicographic component positive. In place."""
    lexicographic = value.lexicographic()
    common_factor = gcd_all(np.abs(lexicographic))
    if not common_factor:
        return
    sign = 1
    for component in lexicographic:
        if component:
            sign = 1 if component > 0 else -1
            break
    if np.issubdtype(value.values.dtype, np.integer):
        value.values *= sign
        value.values //= common_factor
    else:
        value.values *= sign / common_factor
        value.values += 0.0


def _fold_vals(algebra, vals: Sequence[Sequence[int]]) -> Multivector:
    result = algebra.scalar()
    for val in vals:
        candidate = result.wedge(algebra.from_vector(val))
        if candidate.is_nil():
            logger.debug(f"Skipping redundant val {list(val)}")
            continue
        result = candidate
    return result


def _fold_commas(algebra, commas: Sequence[Sequence[int]]) -> Multivector:
    result = algebra.pseudoscalar()
    for comma in commas:
        candidate = result.vee(algebra.from_vector(comma).dual())
        if candidate.is_nil():
            logger.debug(f"Skipping redundant comma {list(comma)}")
            continue
        result = candidate
    return result


def _pad(vector: Sequence[int], length: int) -> List[int]:
    result = [int(c) for c in vector[:length]]
    return result + [0] * (length - len(result))


def _resolve_vals(vals, length: int, from_warts) -> List[List[int]]:
    """Integer vectors pass through zero padded, wart tokens go through from_warts."""
    return [_pad(v, length) if monzo_layer.is_monzo(v) else from_warts(v) for v in vals]


class BaseTemperament:
    """Machinery shared by subgroup bound and free temperaments."""

    def __init__(self, algebra, value: Multivector, provider: Optional[AlgebraProvider] = None):
        self.algebra = algebra
        self.value = value
        self.provider = provider or default_provider()

    # --- Flavour specific hooks ---

    def _jip_nats(self) -> np.ndarray:
        raise NotImplementedError

    def _new(self, value: Multivector) -> 'BaseTemperament':
        raise NotImplementedError

    def _resolve_interval(self, interval, prime_mapping: bool = False) -> List[int]:
        raise NotImplementedError

    def _to_prime_mapping(self, mapping: List[float]) -> List[float]:
        raise NotImplementedError

    def _check_compatible(self, other: 'BaseTemperament') -> None:
        if type(other) is not type(self) or other.dimensions != self.dimensions:
            raise ValueError("Temperaments live in different spaces")

    @classmethod
    def _from_prefix_value(cls, rank: int, prefix: Sequence[int], jip: Sequence[float], provider: AlgebraProvider) -> Multivector:
        dimensions = len(jip)
        if rank < 1 or rank > dimensions:
            raise ValueError(f"Rank must be between 1 and {dimensions}, got {rank}")
        length = binomial(dimensions, rank - 1)
        if len(prefix) > length:
            raise ValueError(f"Prefix too long for rank {rank}: {len(prefix)} > {length}")
        real = provider.get(dimensions, 'float')
        padded = np.zeros(length)
        padded[length - len(prefix):] = prefix
        jip1 = real.from_vector([j / jip[0] for j in jip])
        value = real.from_vector(padded, rank - 1).wedge(jip1)
        return value.to(provider.get(dimensions, 'int'))

    # --- Basic properties ---

    @property
    def dimensions(self) -> int:
        return self.algebra.dimensions

    @property
    def rank(self) -> int:
        grades = self.value.grades()
        if not grades:
            raise ValueError("The zero multivector has no rank")
        return grades[0]

    def get_rank(self) -> int:
        return self.rank

    @property
    def corank(self) -> int:
        return self.dimensions - self.rank

    def is_nil(self) -> bool:
        return self.value.is_nil()

    def copy(self) -> 'BaseTemperament':
        return self._new(self.value.copy())

    def canonize(self) -> None:
        """Reduce the wedgie to its canonical form in place."""
        canonize_multivector(self.value)

    def canonized(self) -> 'BaseTemperament':
        result = self.copy()
        result.canonize()
        return result

    def equals(self, other: 'BaseTemperament') -> bool:
        """Component equality. Canonize both sides first."""
        return self.value.equals(other.value)

    def wedgie(self) -> List[int]:
        """Components of the rank grade in lexicographic order."""
        return [int(c) for c in self.value.vector(self.rank)]

    def __str__(self):
        rank = self.rank
        return '<' * rank + ' '.join(str(c) for c in self.wedgie()) + ']' * rank

    def __repr__(self):
        return f"{type(self).__name__}({self})"

    def tempers_out(self, interval) -> bool:
        monzo = self.algebra.from_vector(self._resolve_interval(interval))
        return monzo.dot_l(self.value).is_nil()

    def steps(self, interval, prime_mapping: bool = False) -> int:
        """Number of steps of an interval in a rank 1 temperament."""
        monzo = self._resolve_interval(interval, prime_mapping)
        return int(self.value.star(self.algebra.from_vector(monzo)))

    # --- Prefix compression ---

    def rank_prefix(self, rank: Optional[int] = None) -> List[int]:
        """First C(n-1, rank-1) components of the given grade."""
        if rank is None:
            rank = self.rank
        return [int(c) for c in self.value.vector(rank)[:binomial(self.dimensions - 1, rank - 1)]]

    def _from_own_prefix(self, rank: int, prefix: Sequence[int]) -> 'BaseTemperament':
        value = self._from_prefix_value(rank, prefix, list(self._jip_nats()), self.provider)
        return self._new(value)

    def is_recoverable(self) -> bool:
        """True if from_prefix rebuilds this temperament from its rank prefix."""
        if self.is_nil() or self.rank < 1:
            return False
        target = self.canonized()
        rank = target.rank
        recovered = target._from_own_prefix(rank, target.rank_prefix(rank))
        recovered.canonize()
        return recovered.equals(target)

    # --- Join and meet ---

    def rescale_value(self, value: Multivector, persistence: int = consts.DEFAULT_PERSISTENCE,
                      threshold: float = consts.DEFAULT_THRESHOLD) -> Multivector:
        """Smallest integral multiple of a real homogeneous multivector."""
        grades = value.grades(threshold)
        if not grades:
            raise RescaleError("Cannot rescale the zero multivector")
        grade = grades[0]
        blade = value.vector(grade)

        min_value = None
        for component in blade:
            if abs(component) > threshold and (min_value is None or abs(component) < abs(min_value)):
                min_value = component
        normalizer = 1 / min_value

        for k in range(1, persistence + 1):
            scaled = blade * (normalizer * k)
            if np.all(np.abs(scaled - np.round(scaled)) <= threshold):
                logger.debug(f"Rescaled grade {grade} multivector with multiplier {k}")
                return self.algebra.from_vector([int(round(c)) for c in scaled], grade)
        raise RescaleError(f"Failed to rescale within {persistence} multiples. Try increasing persistence.")

    def _meet_join(self, other: 'BaseTemperament', threshold: float) -> Tuple[Multivector, Multivector]:
        self._check_compatible(other)
        real = self.provider.get(self.dimensions, 'float')
        return self.value.to(real).meet_join(other.value.to(real), threshold)

    def val_join(self, other, persistence: int = consts.DEFAULT_PERSISTENCE,
                 threshold: float = consts.DEFAULT_THRESHOLD) -> 'BaseTemperament':
        """Temperament supported by every val supporting either operand."""
        join = self._meet_join(other, threshold)[1]
        return self._new(self.rescale_value(join, persistence, threshold))

    def val_meet(self, other, persistence: int = consts.DEFAULT_PERSISTENCE,
                 threshold: float = consts.DEFAULT_THRESHOLD) -> 'BaseTemperament':
        """Temperament supported only by the vals common to both operands."""
        meet = self._meet_join(other, threshold)[0]
        return self._new(self.rescale_value(meet, persistence, threshold))

    def kernel_meet(self, other, persistence: int = consts.DEFAULT_PERSISTENCE,
                    threshold: float = consts.DEFAULT_THRESHOLD) -> 'BaseTemperament':
        """Temperament tempering out the commas common to both operands."""
        return self.val_join(other, persistence, threshold)

    def kernel_join(self, other, persistence: int = consts.DEFAULT_PERSISTENCE,
                    threshold: float = consts.DEFAULT_THRESHOLD) -> 'BaseTemperament':
        """Temperament tempering out the commas of either operand."""
        return self.val_meet(other, persistence, threshold)

    # --- Tuning ---

    def _te_mapping(self, jip: np.ndarray, weights: np.ndarray) -> np.ndarray:
        real = self.provider.get(self.dimensions, 'float')
        weighted_jip = real.from_vector(jip * weights)
        weighted_value = self.value.to(real).apply_weights(weights)
        projected = weighted_jip.dot_l(weighted_value.inverse()).dot_l(weighted_value)
        return projected.vector() / weights

    def _cte_mapping(self, jip: np.ndarray, weights: np.ndarray, constraints) -> np.ndarray:
        n = self.dimensions
        real = self.provider.get(n, 'float')
        pga = self.provider.get(n, 'pga')

        flat = self.value.to(real).dual().apply_weights(1 / weights).to(pga)
        for constraint in constraints:
            monzo = np.array(_pad(self._resolve_interval(constraint), n), dtype=float)
            plane = pga.zero()
            plane[1] = -float(np.dot(jip, monzo))
            for i in range(n):
                plane[1 << (i + 1)] = monzo[i] / weights[i]
            flat = flat.wedge(plane)
            if flat.is_nil(consts.RATIO_EPS):
                raise ValueError(f"Inconsistent constraint {constraint}")

        point = pga.from_vector([1.0] + list(jip * weights)).dual()
        projected = flat.inverse().mul(flat.dot_l(point)).grade(n)
        coordinates = projected.undual().vector()
        if abs(coordinates[0]) < consts.RATIO_EPS:
            raise ValueError("Constrained projection escaped to infinity")
        return coordinates[1:] / coordinates[0] / weights

    def get_mapping(self, units: str = consts.DEFAULT_UNITS, temper_equaves: bool = False,
                    prime_mapping: bool = False, weights: Optional[Sequence[float]] = None,
                    constraints: Optional[Sequence] = None) -> List[float]:
        """Tenney-Euclidean optimal mapping of the basis factors.

        Args:
            units: Pitch units of the result
            temper_equaves: Allow the first basis factor to be tempered
            prime_mapping: Expand the mapping into consecutive primes
            weights: Weight of each basis factor, Tenney weights 1/jip by default
            constraints: Intervals kept pure (CTE tuning)
        """
        jip = np.array(self._jip_nats(), dtype=float)
        weights = 1 / jip if weights is None else np.array(weights, dtype=float)

        if constraints:
            mapping = self._cte_mapping(jip, weights, constraints)
        else:
            mapping = self._te_mapping(jip, weights)

        if not temper_equaves and mapping[0]:
            mapping = mapping * (jip[0] / mapping[0])

        mapping = [float(m) for m in mapping]
        if prime_mapping:
            mapping = self._to_prime_mapping(mapping)
        return from_nats(mapping, units)

    def tune(self, interval, units: str = consts.DEFAULT_UNITS, temper_equaves: bool = False,
             prime_mapping: bool = False, weights: Optional[Sequence[float]] = None,
             constraints: Optional[Sequence] = None) -> float:
        """Size of an interval under the optimal mapping."""
        monzo = self._resolve_interval(interval, prime_mapping)
        mapping = self.get_mapping('nats', temper_equaves, False, weights, constraints)
        return from_nats([dot(mapping, monzo)], units)[0]

    # --- Periods and generators ---

    def divisions_generator(self) -> Tuple[int, List[List[int]]]:
        """Number of periods per equave and the generator monzos.

        Assumes a canonized temperament.
        """
        rank = self.rank
        if rank == 0:
            raise ValueError("Rank 0 temperaments have no periods")
        projection = self.algebra.basis_blade(0).dot_l(self.value)
        num_periods = gcd_all(projection.vector(rank - 1))
        if not num_periods:
            raise ValueError("The equave is tempered out")
        if rank == 1:
            return num_periods, []

        generators = []
        accumulated = self.algebra.scalar()
        for index in range(1, self.dimensions):
            if len(generators) == rank - 2:
                break
            candidate = accumulated.wedge(self.algebra.basis_blade(index))
            reduced = candidate.dot_l(projection)
            if reduced.is_nil() or gcd_all(reduced.values) != num_periods:
                continue
            accumulated = candidate
            generators.append([int(i == index) for i in range(self.dimensions)])
        if len(generators) < rank - 2:
            raise SearchExhaustedError("Generator search stuck. Try another basis order.", self.dimensions)

        leftover = accumulated.dot_l(projection).vector(1)
        generators.append(iterated_euclid([int(c) for c in leftover]))
        logger.debug(f"{num_periods} periods, generators {generators}")
        return num_periods, generators

    def period_generator(self, units: str = consts.DEFAULT_UNITS, temper_equaves: bool = False,
                         weights: Optional[Sequence[float]] = None,
                         constraints: Optional[Sequence] = None) -> List[float]:
        """Period followed by the generators, each reduced to the smaller side of the period."""
        mapping = self.get_mapping('nats', temper_equaves, False, weights, constraints)
        num_periods, generators = self.divisions_generator()
        period = mapping[0] / num_periods
        result = [period]
        for generator_monzo in generators:
            generator = dot(mapping, generator_monzo)
            result.append(min(mmod(generator, period), mmod(-generator, period)))
        return from_nats(result, units)

    def ji_mapping(self, generators: Sequence[Sequence[int]],
                   threshold: float = consts.DEFAULT_THRESHOLD) -> List[List[int]]:
        """Integer mapping matrix expressing every basis factor in the given generator monzos."""
        if len(generators) != self.rank:
            raise ValueError("Number of basis generators must match rank")
        real = self.provider.get(self.dimensions, 'float')
        comma_basis = self.value.to(real).dual().span(threshold)
        basis = [[float(c) for c in g] for g in generators] + [list(row) for row in comma_basis]

        solutions = []
        for i in range(self.dimensions):
            unit = [float(i == j) for j in range(self.dimensions)]
            solutions.append(cached_lin_solve(unit, basis)[:len(generators)])
        return [[int(round(solutions[j][i])) for j in range(self.dimensions)] for i in range(len(generators))]

    # --- Factorization ---

    def _candidate_vals(self, strategy: str, max_divisions: int, radius: int) -> Iterator[List[int]]:
        jip = list(self._jip_nats())
        if strategy == 'patent':
            return (warts.patent_val(d, jip) for d in range(1, max_divisions + 1))
        if strategy == 'GPV':
            return warts.generalized_vals(jip, 1, max_divisions)
        if strategy in ('mapping', 'GM'):
            return warts.generalized_vals(self.get_mapping('nats'), 1, max_divisions)
        if strategy == 'warts':
            return itertools.chain.from_iterable(
                warts.wart_variants(warts.patent_val(d, jip), radius) for d in range(1, max_divisions + 1)
            )
        raise ValueError(f"Unknown strategy '{strategy}'. Use one of {', '.join(consts.FACTORIZATION_STRATEGIES)}")

    def val_factorize(self, strategy: str = consts.DEFAULT_STRATEGY,
                      max_divisions: int = consts.DEFAULT_MAX_DIVISIONS,
                      radius: int = consts.DEFAULT_WART_RADIUS) -> List[List[int]]:
        """Vals whose wedge product is this temperament up to sign."""
        rank = self.rank
        if rank == 0:
            return []
        accepted = []
        accumulated = self.algebra.scalar()
        for val in self._candidate_vals(strategy, max_divisions, radius):
            promoted = self.algebra.from_vector(val)
            if not promoted.wedge(self.value).is_nil():
                continue
            candidate = accumulated.wedge(promoted)
            if candidate.is_nil() or gcd_all(candidate.values) != 1:
                continue
            accumulated = candidate
            accepted.append(list(val))
            logger.debug(f"Accepted val {val}")
            if len(accepted) == rank:
                return accepted
        raise SearchExhaustedError(f"Val search exhausted with strategy '{strategy}'", max_divisions)

    def _normalized_comma(self, hyperwedge: Multivector) -> List[int]:
        comma = [int(c) for c in hyperwedge.dual().vector(1)]
        if dot(comma, self._jip_nats()) < 0:
            comma = [-c for c in comma]
        return comma

    def comma_factorize(self, strategy: str = consts.DEFAULT_STRATEGY,
                        max_divisions: int = consts.DEFAULT_MAX_DIVISIONS,
                        radius: int = consts.DEFAULT_WART_RADIUS) -> List[List[int]]:
        """Commas whose vee product is this temperament up to sign."""
        target = self.canonized().value
        corank = self.corank
        if corank == 0:
            return []
        if corank == 1:
            return [self._normalized_comma(target)]

        levels = {corank: [target]}
        commas: List[List[int]] = []
        for val in self._candidate_vals(strategy, max_divisions, radius):
            promoted = self.algebra.from_vector(val)
            if promoted.wedge(target).is_nil():
                continue
            snapshot = {level: list(hyperwedges) for level, hyperwedges in levels.items()}
            for level in range(corank, 1, -1):
                for hyperwedge in snapshot.get(level, []):
                    reduced = hyperwedge.wedge(promoted)
                    if reduced.is_nil():
                        continue
                    canonize_multivector(reduced)
                    existing = levels.setdefault(level - 1, [])
                    if any(reduced.equals(h) for h in existing):
                        continue
                    existing.append(reduced)
                    if level - 1 > 1:
                        continue
                    comma = self._normalized_comma(reduced)
                    logger.debug(f"Trial comma {comma}")
                    for combination in itertools.combinations(commas, corank - 1):
                        trial = _fold_commas(self.algebra, list(combination) + [comma])
                        canonize_multivector(trial)
                        if trial.equals(target):
                            return list(combination) + [comma]
                    commas.append(comma)
        raise SearchExhaustedError(f"Comma search exhausted with strategy '{strategy}'", max_divisions)


class FreeTemperament(BaseTemperament):
    """Temperament over an arbitrary basis given by its just intonation point in nats."""

    def __init__(self, algebra, value: Multivector, jip: Sequence[float],
                 provider: Optional[AlgebraProvider] = None):
        super().__init__(algebra, value, provider)
        self.jip = [float(j) for j in jip]

    def _jip_nats(self):
        return np.array(self.jip)

    def _new(self, value):
        return FreeTemperament(self.algebra, value, self.jip, self.provider)

    def _resolve_interval(self, interval, prime_mapping=False):
        if prime_mapping:
            raise ValueError("Free temperaments cannot be interpreted as primes")
        if not monzo_layer.is_monzo(interval):
            raise ValueError("Free temperaments only accept monzos")
        return _pad(interval, len(self.jip))

    def _to_prime_mapping(self, mapping):
        raise ValueError("Free temperaments cannot be interpreted as primes")

    def equals(self, other):
        if type(other) is not type(self) or list(self.jip) != list(other.jip):
            return False
        return super().equals(other)

    @classmethod
    def from_vals(cls, vals, jip: Sequence[float], provider: Optional[AlgebraProvider] = None) -> 'FreeTemperament':
        provider = provider or default_provider()
        algebra = provider.get(len(jip), 'int')
        value = _fold_vals(algebra, _resolve_vals(vals, len(jip), lambda token: warts.from_warts(token, jip)))
        return cls(algebra, value, jip, provider)

    @classmethod
    def from_commas(cls, commas, jip: Sequence[float], provider: Optional[AlgebraProvider] = None) -> 'FreeTemperament':
        provider = provider or default_provider()
        algebra = provider.get(len(jip), 'int')
        value = _fold_commas(algebra, [_pad(c, len(jip)) for c in commas])
        return cls(algebra, value, jip, provider)

    @classmethod
    def from_prefix(cls, rank: int, prefix: Sequence[int], jip: Sequence[float],
                    provider: Optional[AlgebraProvider] = None) -> 'FreeTemperament':
        provider = provider or default_provider()
        value = cls._from_prefix_value(rank, prefix, jip, provider)
        return cls(provider.get(len(jip), 'int'), value, jip, provider)


class Temperament(BaseTemperament):
    """Temperament of a fractional just intonation subgroup."""

    def __init__(self, algebra, value: Multivector, subgroup, provider: Optional[AlgebraProvider] = None):
        super().__init__(algebra, value, provider)
        self.subgroup = Subgroup(subgroup)

    def _jip_nats(self):
        return np.array(self.subgroup.jip('nats'))

    def _new(self, value):
        return Temperament(self.algebra, value, self.subgroup, self.provider)

    def _resolve_interval(self, interval, prime_mapping=False):
        return self.subgroup.resolve_monzo(interval, prime_mapping)

    def _to_prime_mapping(self, mapping):
        return self.subgroup.to_prime_mapping(mapping, 'nats')

    def _check_compatible(self, other):
        super()._check_compatible(other)
        if self.subgroup != other.subgroup:
            raise ValueError(f"Subgroups {self.subgroup} and {other.subgroup} differ")

    def equals(self, other):
        if type(other) is not type(self) or self.subgroup != other.subgroup:
            return False
        return super().equals(other)

    def _from_own_prefix(self, rank, prefix):
        return Temperament.from_prefix(rank, prefix, self.subgroup, self.provider)

    @classmethod
    def from_vals(cls, vals, subgroup, provider: Optional[AlgebraProvider] = None) -> 'Temperament':
        """Wedge product of vals given as integer vectors or wart tokens like 12 or '17c'."""
        provider = provider or default_provider()
        subgroup = Subgroup(subgroup)
        algebra = provider.get(len(subgroup), 'int')
        value = _fold_vals(algebra, _resolve_vals(vals, len(subgroup), subgroup.from_warts))
        return cls(algebra, value, subgroup, provider)

    @classmethod
    def from_commas(cls, commas, subgroup=None, strip_commas: Optional[bool] = None,
                    provider: Optional[AlgebraProvider] = None) -> 'Temperament':
        """Temperament tempering out the commas.

        Without a subgroup the smallest prime subgroup containing the commas is used
        and monzos are read as prime exponents.
        """
        provider = provider or default_provider()
        commas = list(commas)
        if strip_commas is None:
            strip_commas = subgroup is None
        if subgroup is None:
            subgroup = Subgroup.infer_prime_subgroup(commas)
        else:
            subgroup = Subgroup(subgroup)
        algebra = provider.get(len(subgroup), 'int')
        monzos = [subgroup.resolve_monzo(c, strip_commas) for c in commas]
        value = _fold_commas(algebra, monzos)
        return cls(algebra, value, subgroup, provider)

    @classmethod
    def from_prefix(cls, rank: int, prefix: Sequence[int], subgroup,
                    provider: Optional[AlgebraProvider] = None) -> 'Temperament':
        """Rebuild a wedgie from its rank prefix. Check the result with is_recoverable."""
        provider = provider or default_provider()
        subgroup = Subgroup(subgroup)
        value = cls._from_prefix_value(rank, prefix, subgroup.jip('nats'), provider)
        return cls(provider.get(len(subgroup), 'int'), value, subgroup, provider)
