"""Exterior (Grassmann/Clifford) algebra over a diagonal metric.

Multivectors of an n-dimensional algebra carry 2**n components stored in a
numpy array indexed by bitmask: bit i set means basis vector i takes part in
the blade. Null basis vectors (metric 0) come first, so a projective algebra
with one null dimension has e0 at bit 0 and the Euclidean directions after it.

Besides the bitmask layout every multivector has a lexicographic view that
orders blades by grade and then by their sorted indices:

    1, e0, e1, e2, e01, e02, e12, e012

which is the order used for canonical forms and for grade vectors.

Operations:
- Geometric product, wedge, left contraction, symmetric inner and scalar products
- Right/left complements as dual/undual, and the vee (regressive) product
- Reverse, blade inverse, grade selection, weights
- SVD based blade spans and a combined meet/join with a zero threshold

Algebras are cached by an AlgebraProvider keyed by dimensionality and flavour:
'int' (integer components), 'float' (real components) and 'pga' (real
components with one extra null dimension).
"""

import functools
import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np

import consts
from utils import clear_lin_solve_cache

logger = logging.getLogger(__name__)


@functools.lru_cache(maxsize=None)
def _reorder_sign(a: int, b: int) -> int:
    """Sign of sorting the concatenated basis vectors of blades a and b."""
    a >>= 1
    swaps = 0
    while a:
        swaps += bin(a & b).count('1')
        a >>= 1
    return -1 if swaps & 1 else 1


def _popcount(mask: int) -> int:
    return bin(mask).count('1')


class Algebra:
    """Clifford algebra with null_dimensions null vectors followed by dimensions positive ones."""

    def __init__(self, dimensions: int, null_dimensions: int = 0, dtype=float):
        self.dimensions = dimensions
        self.null_dimensions = null_dimensions
        self.total_dimensions = dimensions + null_dimensions
        self.size = 1 << self.total_dimensions
        self.dtype = np.dtype(dtype)
        self.null_mask = (1 << null_dimensions) - 1
        self.full_mask = self.size - 1

        def lex_key(mask):
            indices = tuple(i for i in range(self.total_dimensions) if mask >> i & 1)
            return len(indices), indices

        self.lex_order = sorted(range(self.size), key=lex_key)
        self.grade_masks: List[List[int]] = [[] for _ in range(self.total_dimensions + 1)]
        for mask in self.lex_order:
            self.grade_masks[_popcount(mask)].append(mask)

    def __repr__(self):
        return f"Algebra({self.dimensions}, {self.null_dimensions}, {self.dtype.name})"

    def blade_count(self, grade: int) -> int:
        if grade < 0 or grade > self.total_dimensions:
            return 0
        return len(self.grade_masks[grade])

    def product_factor(self, a: int, b: int) -> int:
        """Geometric product of basis blades a and b equals this factor times blade a ^ b."""
        if a & b & self.null_mask:
            return 0
        return _reorder_sign(a, b)

    # --- Constructors ---

    def zero(self) -> 'Multivector':
        return Multivector(self, np.zeros(self.size, dtype=self.dtype))

    def scalar(self, value=1) -> 'Multivector':
        result = self.zero()
        result.values[0] = value
        return result

    def pseudoscalar(self) -> 'Multivector':
        result = self.zero()
        result.values[self.full_mask] = 1
        return result

    def basis_blade(self, *indices: int) -> 'Multivector':
        """Unit blade e_i e_j ... in the given order."""
        result = self.scalar()
        for index in indices:
            vector = self.zero()
            vector.values[1 << index] = 1
            result = result.wedge(vector)
        return result

    def from_vector(self, components: Sequence, grade: int = 1) -> 'Multivector':
        """Multivector of a single grade from components in lexicographic order.

        Missing trailing components are zero.
        """
        masks = self.grade_masks[grade]
        if len(components) > len(masks):
            raise ValueError(f"Grade {grade} of {self!r} has {len(masks)} components, got {len(components)}")
        result = self.zero()
        for mask, component in zip(masks, components):
            result.values[mask] = component
        return result

    def from_lexicographic(self, components: Sequence) -> 'Multivector':
        result = self.zero()
        result.values[self.lex_order] = np.asarray(components, dtype=self.dtype)
        return result


class Multivector:
    """Element of an Algebra. Arithmetic returns new instances."""

    __slots__ = ('algebra', 'values')

    def __init__(self, algebra: Algebra, values):
        self.algebra = algebra
        self.values = np.asarray(values)
        if self.values.shape != (algebra.size,):
            raise ValueError(f"{algebra!r} multivectors have {algebra.size} components")

    def __repr__(self):
        terms = []
        for mask in self.algebra.lex_order:
            if self.values[mask]:
                name = ''.join(str(i) for i in range(self.algebra.total_dimensions) if mask >> i & 1)
                terms.append(f"{self.values[mask]}" + (f"e{name}" if name else ""))
        return ' + '.join(terms) if terms else '0'

    def __len__(self):
        return len(self.values)

    def __getitem__(self, mask):
        return self.values[mask]

    def __setitem__(self, mask, value):
        self.values[mask] = value

    def copy(self) -> 'Multivector':
        return Multivector(self.algebra, self.values.copy())

    def _same(self, other: 'Multivector'):
        if other.algebra.size != self.algebra.size:
            raise ValueError(f"Cannot combine {self.algebra!r} with {other.algebra!r}")

    # --- Linear structure ---

    def __add__(self, other):
        self._same(other)
        return Multivector(self.algebra, self.values + other.values)

    def __sub__(self, other):
        self._same(other)
        return Multivector(self.algebra, self.values - other.values)

    def __neg__(self):
        return Multivector(self.algebra, -self.values)

    def __mul__(self, factor):
        if isinstance(factor, Multivector):
            return self.mul(factor)
        return Multivector(self.algebra, self.values * factor)

    __rmul__ = __mul__

    def __truediv__(self, factor):
        return Multivector(self.algebra, self.values / factor)

    # --- Products ---

    def _product(self, other: 'Multivector', accept) -> 'Multivector':
        self._same(other)
        algebra = self.algebra
        dtype = np.result_type(self.values, other.values)
        result = np.zeros(algebra.size, dtype=dtype)
        left = np.flatnonzero(self.values)
        right = np.flatnonzero(other.values)
        for i in left:
            i = int(i)
            a = self.values[i]
            for j in right:
                j = int(j)
                if not accept(i, j):
                    continue
                factor = algebra.product_factor(i, j)
                if factor:
                    result[i ^ j] += factor * a * other.values[j]
        return Multivector(algebra, result)

    def mul(self, other: 'Multivector') -> 'Multivector':
        """Geometric product."""
        return self._product(other, lambda i, j: True)

    def wedge(self, other: 'Multivector') -> 'Multivector':
        """Exterior product."""
        return self._product(other, lambda i, j: not i & j)

    def dot_l(self, other: 'Multivector') -> 'Multivector':
        """Left contraction: grade(other) - grade(self) parts only."""
        return self._product(other, lambda i, j: i & j == i)

    def dot(self, other: 'Multivector') -> 'Multivector':
        """Symmetric inner product: grade |grade(self) - grade(other)| parts only."""
        return self._product(other, lambda i, j: i & j == i or i & j == j)

    def star(self, other: 'Multivector'):
        """Scalar product."""
        return self._product(other, lambda i, j: i == j).values[0]

    def vee(self, other: 'Multivector') -> 'Multivector':
        """Regressive product."""
        return self.dual().wedge(other.dual()).undual()

    # --- Involutions and duality ---

    def reverse(self) -> 'Multivector':
        result = self.values.copy()
        for mask in range(self.algebra.size):
            grade = _popcount(mask)
            if (grade * (grade - 1) // 2) & 1:
                result[mask] = -result[mask]
        return Multivector(self.algebra, result)

    def dual(self) -> 'Multivector':
        """Right complement: blade ∧ dual(blade) is the pseudoscalar."""
        full = self.algebra.full_mask
        result = np.zeros_like(self.values)
        for mask in np.flatnonzero(self.values):
            mask = int(mask)
            result[full ^ mask] = _reorder_sign(mask, full ^ mask) * self.values[mask]
        return Multivector(self.algebra, result)

    def undual(self) -> 'Multivector':
        """Left complement, the inverse of dual."""
        full = self.algebra.full_mask
        result = np.zeros_like(self.values)
        for mask in np.flatnonzero(self.values):
            mask = int(mask)
            result[full ^ mask] = _reorder_sign(full ^ mask, mask) * self.values[mask]
        return Multivector(self.algebra, result)

    def inverse(self) -> 'Multivector':
        """Inverse of a blade (or any versor)."""
        reverse = self.reverse()
        norm = self.star(reverse)
        if not norm:
            raise ValueError("Multivector is not invertible")
        return Multivector(self.algebra, reverse.values / norm)

    # --- Grades and views ---

    def grades(self, threshold: float = 0) -> List[int]:
        """Grades with a component above threshold in magnitude, ascending."""
        present = set()
        for mask in np.flatnonzero(np.abs(self.values) > threshold):
            present.add(_popcount(int(mask)))
        return sorted(present)

    def grade(self, grade: int) -> 'Multivector':
        result = np.zeros_like(self.values)
        masks = self.algebra.grade_masks[grade]
        result[masks] = self.values[masks]
        return Multivector(self.algebra, result)

    def vector(self, grade: int = 1) -> np.ndarray:
        """Components of one grade in lexicographic order."""
        return self.values[self.algebra.grade_masks[grade]].copy()

    def lexicographic(self) -> np.ndarray:
        return self.values[self.algebra.lex_order].copy()

    def apply_weights(self, weights: Sequence[float]) -> 'Multivector':
        """Scale every blade by the product of the weights of its basis vectors."""
        result = self.values.astype(float)
        for mask in range(self.algebra.size):
            factor = 1.0
            for i in range(self.algebra.total_dimensions):
                if mask >> i & 1:
                    factor *= weights[i]
            result[mask] *= factor
        return Multivector(self.algebra, result)

    def is_nil(self, threshold: float = 0) -> bool:
        return not np.any(np.abs(self.values) > threshold)

    def equals(self, other: 'Multivector') -> bool:
        return self.algebra.size == other.algebra.size and bool(np.array_equal(self.values, other.values))

    def norm(self) -> float:
        return float(np.sqrt(np.sum(np.abs(self.values.astype(float)) ** 2)))

    def to(self, algebra: Algebra) -> 'Multivector':
        """Copy into another algebra with the same positive dimensions.

        Extra null dimensions of the target shift the blades up so that the copy
        lives in the Euclidean part. Integer targets round.
        """
        if algebra.dimensions != self.algebra.dimensions:
            raise ValueError(f"Cannot convert {self.algebra!r} to {algebra!r}")
        shift = algebra.null_dimensions - self.algebra.null_dimensions
        if shift < 0:
            raise ValueError(f"Cannot drop null dimensions converting to {algebra!r}")
        values = self.values
        if np.issubdtype(algebra.dtype, np.integer) and not np.issubdtype(values.dtype, np.integer):
            values = np.rint(values)
        result = algebra.zero()
        result.values[np.arange(self.algebra.size) << shift] = values.astype(algebra.dtype)
        return result

    # --- Subspaces ---

    def span(self, threshold: float = consts.DEFAULT_THRESHOLD) -> np.ndarray:
        """Orthonormal basis (rows) of the vectors v with v ∧ self == 0."""
        n = self.algebra.total_dimensions
        norm = self.norm()
        if not norm:
            return np.eye(n)
        normalized = Multivector(self.algebra, self.values.astype(float) / norm)
        columns = []
        for i in range(n):
            vector = self.algebra.zero()
            vector.values = vector.values.astype(float)
            vector.values[1 << i] = 1.0
            columns.append(vector.wedge(normalized).values)
        matrix = np.array(columns, dtype=float).T
        _, singular_values, vh = np.linalg.svd(matrix)
        padded = np.zeros(n)
        padded[:len(singular_values)] = singular_values
        return vh[padded <= threshold]

    def meet_join(self, other: 'Multivector', threshold: float = consts.DEFAULT_THRESHOLD) -> Tuple['Multivector', 'Multivector']:
        """Intersection and union of the subspaces spanned by two blades."""
        span_a = self.span(threshold)
        span_b = other.span(threshold)
        n = self.algebra.total_dimensions

        if len(span_a) and len(span_b):
            stacked = np.vstack([span_a, span_b])
        else:
            stacked = span_a if len(span_a) else span_b
        join_vectors = _row_basis(stacked, threshold) if len(stacked) else np.zeros((0, n))

        meet_vectors = np.zeros((0, n))
        if len(span_a) and len(span_b):
            system = np.vstack([span_a, -span_b]).T
            _, singular_values, vh = np.linalg.svd(system)
            padded = np.zeros(vh.shape[0])
            padded[:len(singular_values)] = singular_values
            null_space = vh[padded <= threshold]
            if len(null_space):
                meet_vectors = _row_basis(null_space[:, :len(span_a)] @ span_a, threshold)

        logger.debug(f"meet dimension {len(meet_vectors)}, join dimension {len(join_vectors)}")
        return self._wedge_rows(meet_vectors), self._wedge_rows(join_vectors)

    def _wedge_rows(self, rows: np.ndarray) -> 'Multivector':
        algebra = self.algebra
        result = Multivector(algebra, np.zeros(algebra.size))
        result.values[0] = 1.0
        for row in rows:
            vector = Multivector(algebra, np.zeros(algebra.size))
            for i, component in enumerate(row):
                vector.values[1 << i] = component
            result = result.wedge(vector)
        return result


def _row_basis(rows: np.ndarray, threshold: float) -> np.ndarray:
    """Orthonormal basis of the row space."""
    _, singular_values, vh = np.linalg.svd(rows)
    rank = int(np.sum(singular_values > threshold))
    return vh[:rank]


class AlgebraProvider:
    """Bounded cache of algebras keyed by (dimensions, kind)."""

    DTYPES = {'int': np.int64, 'float': np.float64, 'pga': np.float64}

    def __init__(self, maxsize: Optional[int] = consts.ALGEBRA_CACHE_SIZE):
        self.maxsize = maxsize
        self.get = functools.lru_cache(maxsize=maxsize)(self._build)

    def _build(self, dimensions: int, kind: str = 'int') -> Algebra:
        if kind not in self.DTYPES:
            raise ValueError(f"Unknown algebra kind '{kind}'. Use one of {', '.join(consts.ALGEBRA_KINDS)}")
        logger.debug(f"Building {kind} algebra of {dimensions} dimensions")
        null_dimensions = 1 if kind == 'pga' else 0
        return Algebra(dimensions, null_dimensions, self.DTYPES[kind])

    def clear(self) -> None:
        self.get.cache_clear()


_default_provider = AlgebraProvider()


def default_provider() -> AlgebraProvider:
    return _default_provider


def get_algebra(dimensions: int, kind: str = 'int') -> Algebra:
    """Algebra from the module level provider."""
    return _default_provider.get(dimensions, kind)


def clear_cache() -> None:
    """Empty the module level provider and the linear solve cache."""
    _default_provider.clear()
    clear_lin_solve_cache()
