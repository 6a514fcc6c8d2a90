"""Core utilities and mathematical functions for regular temperaments.

This module provides the foundation layer that every other TEMPER module
depends on, from integer number theory to pitch-unit conversion and export
helpers.

Number Theory:
- Greatest common divisor and least common multiple over integer sequences
- Extended and iterated Euclidean algorithms (Bezout coefficients)
- Mathematical modulo with non-negative results
- Binomial coefficients for blade counting

Vector Arithmetic:
- Dot products and sums over the shared prefix of mismatched-length vectors
  (higher- and lower-rank vectors are mixed on purpose throughout the engine)

Pitch Units:
- Conversions between nats, cents, semitones and frequency ratios
- Batch conversion of whole mappings from and to natural logarithms

Linear Algebra:
- Cached linear solves for repeated change-of-basis computations

Error Handling:
- Exception hierarchy rooted at ValueError for subgroup, rescale and search failures

Logging:
- Log file setup and warnings capture for the command line tool

File Export:
- Lazy openpyxl import, color fills and worksheet formatting
- Export success/error reporting and safe text file writing
"""

import argparse
import functools
import logging
import math
import warnings
from typing import List, Tuple, Optional, Iterable, Sequence, Union

import numpy as np

import consts


# --- Exceptions ---

class SubgroupError(ValueError):
    """Invalid subgroup basis or an interval that falls outside of it."""


class RescaleError(ValueError):
    """No integral multiple of a real multivector was found within the persistence bound."""


class SearchExhaustedError(ValueError):
    """A bounded greedy search ran out of candidates."""

    def __init__(self, reason: str, bound: Optional[int] = None):
        message = reason if bound is None else f"{reason} (bound: {bound})"
        super().__init__(message)
        self.reason = reason
        self.bound = bound


# --- Logging ---

def setup_logging(log_file: Optional[str] = "temper.log", level: int = logging.WARNING) -> None:
    """Setup the logging system and route Python warnings to it."""
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers = [logging.FileHandler(log_file, encoding='utf-8')]
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
    )

    # Capture warnings and redirect to logger
    def warning_handler(message, category, filename, lineno, file=None, line=None):
        logger = logging.getLogger('warnings')
        logger.warning(f"{category.__name__}: {message} ({filename}:{lineno})")

    warnings.showwarning = warning_handler


# --- Number theory ---

def gcd(a: int, b: int) -> int:
    """Greatest common divisor of two integers (always non-negative)."""
    return math.gcd(int(a), int(b))


def gcd_all(values: Iterable) -> int:
    """Greatest common divisor of all the values. Zero for an empty or all-zero input."""
    result = 0
    for value in values:
        result = math.gcd(result, int(value))
    return result


def lcm(a: int, b: int) -> int:
    """Least common multiple of two integers."""
    if not a or not b:
        return 0
    return abs(int(a) * int(b)) // gcd(a, b)


def mmod(a: float, b: float) -> float:
    """Mathematical modulo: the result has the sign of b."""
    return ((a % b) + b) % b


def binomial(n: int, k: int) -> int:
    """Number of k-element subsets of an n-element set."""
    if k < 0 or k > n:
        return 0
    return math.comb(n, k)


def extended_euclid(a: int, b: int) -> Tuple[int, int, int, int, int]:
    """Extended Euclidean algorithm.

    Returns (gcd, coef_a, coef_b, quotient_a, quotient_b) such that
    a * coef_a + b * coef_b == gcd, gcd >= 0 and quotient_x == x / gcd.
    """
    a = int(a)
    b = int(b)
    old_r, r = a, b
    old_s, s = 1, 0
    old_t, t = 0, 1
    while r:
        quotient = old_r // r
        old_r, r = r, old_r - quotient * r
        old_s, s = s, old_s - quotient * s
        old_t, t = t, old_t - quotient * t
    if old_r < 0:
        old_r, old_s, old_t = -old_r, -old_s, -old_t
    # s and t hold the quotients by the gcd up to sign
    if old_r:
        quotient_a, quotient_b = a // old_r, b // old_r
    else:
        quotient_a, quotient_b = 0, 0
    return old_r, old_s, old_t, quotient_a, quotient_b


def iterated_euclid(params: Sequence[int]) -> List[int]:
    """Bezout coefficients of a whole sequence.

    The result coefs satisfies sum(p * c for p, c in zip(params, coefs)) == gcd_all(params).
    """
    if not len(params):
        return []
    coefs = [1]
    current = int(params[0])
    if current < 0:
        coefs = [-1]
        current = -current
    for param in params[1:]:
        current, coef_a, coef_b, _, _ = extended_euclid(current, param)
        coefs = [c * coef_a for c in coefs]
        coefs.append(coef_b)
    return coefs


# --- Tolerant vector arithmetic ---

def dot(a: Sequence, b: Sequence) -> float:
    """Dot product over the shared prefix of two vectors."""
    total = 0
    for i in range(min(len(a), len(b))):
        total += a[i] * b[i]
    return total


def add(a: Sequence, b: Sequence) -> list:
    """Component-wise sum over the shared prefix."""
    return [a[i] + b[i] for i in range(min(len(a), len(b)))]


def sub(a: Sequence, b: Sequence) -> list:
    """Component-wise difference over the shared prefix."""
    return [a[i] - b[i] for i in range(min(len(a), len(b)))]


def scale(factor: float, vector: Sequence) -> list:
    """Multiply every component by a scalar."""
    return [factor * component for component in vector]


# --- Pitch units ---

def nats_to_cents(nats: float) -> float:
    """Convert natural logarithm units to cents."""
    return nats * consts.ELLIS_CONVERSION_FACTOR


def cents_to_nats(cents: float) -> float:
    """Convert cents to natural logarithm units."""
    return cents / consts.ELLIS_CONVERSION_FACTOR


def nats_to_semitones(nats: float) -> float:
    return nats * consts.SEMITONE_CONVERSION_FACTOR


def semitones_to_nats(semitones: float) -> float:
    return semitones / consts.SEMITONE_CONVERSION_FACTOR


def validate_units(units: str) -> str:
    """Return units unchanged or raise for an unknown pitch unit."""
    if units not in consts.PITCH_UNITS:
        raise ValueError(f"Unknown pitch units '{units}'. Use one of {', '.join(consts.PITCH_UNITS)}")
    return units


def to_nats(values: Iterable[float], units: str = consts.DEFAULT_UNITS) -> List[float]:
    """Convert a sequence of pitches in the given units to nats."""
    validate_units(units)
    if units == "ratio":
        return [math.log(v) for v in values]
    if units == "cents":
        return [cents_to_nats(v) for v in values]
    if units == "semitones":
        return [semitones_to_nats(v) for v in values]
    return [float(v) for v in values]


def from_nats(values: Iterable[float], units: str = consts.DEFAULT_UNITS) -> List[float]:
    """Convert a sequence of pitches in nats to the given units."""
    validate_units(units)
    if units == "ratio":
        return [math.exp(v) for v in values]
    if units == "cents":
        return [nats_to_cents(v) for v in values]
    if units == "semitones":
        return [nats_to_semitones(v) for v in values]
    return [float(v) for v in values]


# --- Linear algebra ---

@functools.lru_cache(maxsize=256)
def _inverse_basis(basis: Tuple[Tuple[float, ...], ...]) -> np.ndarray:
    """Inverse of the matrix whose columns are the basis vectors. Cached."""
    matrix = np.array(basis, dtype=float).T
    return np.linalg.inv(matrix)


def cached_lin_solve(target: Sequence[float], basis: Sequence[Sequence[float]]) -> List[float]:
    """Solve sum(x[i] * basis[i]) == target for x.

    Only the prefix of target matching the basis dimension is used.
    """
    key = tuple(tuple(float(c) for c in vector) for vector in basis)
    inverse = _inverse_basis(key)
    padded = np.zeros(inverse.shape[0])
    limit = min(len(target), inverse.shape[0])
    padded[:limit] = [float(t) for t in target[:limit]]
    return [float(x) for x in inverse @ padded]


def clear_lin_solve_cache() -> None:
    """Drop every cached basis inverse."""
    _inverse_basis.cache_clear()


# --- CLI parsers ---

def int_list(value: str) -> List[int]:
    """Parser for comma separated integer vectors such as '12,19,28' or '[-4,4,-1]'."""
    s = str(value).strip()
    if s and s[0] in '[(<' and s[-1] in '])>':
        s = s[1:-1]
    parts = [p.strip() for p in s.split(',') if p.strip()]
    try:
        return [int(p) for p in parts]
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"'{value}' non è un vettore di interi. / '{value}' is not an integer vector."
        )


def val_token(value: str) -> Union[int, str, List[int]]:
    """Parser for vals: an integer vector, a number of divisions or a wart token like '17c'."""
    s = str(value).strip()
    if ',' in s:
        return int_list(s)
    try:
        return int(s)
    except ValueError:
        return s


# --- File export utilities ---

def log_export_success(file_path: str) -> None:
    """Log successful file export."""
    print(f"Exported: {file_path}")


def log_export_error(file_path: str, error: Exception) -> None:
    """Log file export error."""
    print(f"Write error {file_path}: {error}")


def safe_file_write(file_path: str, content: str, encoding: str = "utf-8") -> bool:
    """Safely write content to file with error handling."""
    try:
        with open(file_path, "w", encoding=encoding) as f:
            f.write(content)
        log_export_success(file_path)
        return True
    except IOError as e:
        log_export_error(file_path, e)
        return False


def lazy_import_openpyxl():
    """Lazy import openpyxl with error handling."""
    try:
        import importlib
        openpyxl = importlib.import_module('openpyxl')
        styles = importlib.import_module('openpyxl.styles')
        return openpyxl, styles
    except (ImportError, AttributeError):
        return None, None


def get_excel_color_fills():
    """Get standard Excel color fills for the temperament tables."""
    try:
        from openpyxl.styles import PatternFill
        return {
            'wedgie': PatternFill(start_color="FFFFCCCC", end_color="FFFFCCCC", fill_type="solid"),
            'mapping': PatternFill(start_color="FFCCFFCC", end_color="FFCCFFCC", fill_type="solid"),
            'generator': PatternFill(start_color="FFFFFFCC", end_color="FFFFFFCC", fill_type="solid"),
            'vals': PatternFill(start_color="FFCCE5FF", end_color="FFCCE5FF", fill_type="solid"),
            'header': PatternFill(start_color="DDDDDD", end_color="DDDDDD", fill_type="solid"),
        }
    except ImportError:
        return {}


def setup_excel_worksheet_formatting(ws, headers: List[str]) -> None:
    """Setup Excel worksheet with standard formatting."""
    try:
        from openpyxl.styles import Font

        # Add headers
        ws.append(headers)

        # Header formatting
        fills = get_excel_color_fills()
        header_font = Font(bold=True)
        header_fill = fills.get('header')

        for cell in ws[1]:
            cell.font = header_font
            if header_fill:
                cell.fill = header_fill

    except (ImportError, AttributeError):
        # Fallback: just add headers without formatting
        ws.append(headers)
