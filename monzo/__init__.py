"""Rational numbers and prime exponent vectors (monzos).

Conversions between exact fractions and monzos over the prime table of consts.

Accepted rational inputs:
- int or Fraction
- strings such as "81/80", "3" or "1.25"
- (numerator, denominator) tuples

Lists and numpy arrays are always monzos; tuples are always fraction pairs.
"""

from fractions import Fraction
from typing import List, Tuple

import numpy as np

import consts


def resolve_fraction(value) -> Fraction:
    """Normalize a rational value into a Fraction."""
    if isinstance(value, Fraction):
        return value
    if isinstance(value, bool):
        raise TypeError(f"Not a rational value: {value!r}")
    if isinstance(value, (int, np.integer)):
        return Fraction(int(value))
    if isinstance(value, tuple):
        if len(value) != 2:
            raise ValueError(f"Fraction pairs need exactly two entries: {value!r}")
        numerator, denominator = value
        return Fraction(int(numerator), int(denominator))
    if isinstance(value, str):
        s = value.strip()
        if not s:
            raise ValueError("Empty fraction string")
        return Fraction(s)
    if isinstance(value, float):
        # Floats go through their shortest repr so "1.25" and 1.25 agree
        return Fraction(repr(value))
    raise TypeError(f"Not a rational value: {value!r}")


def is_monzo(value) -> bool:
    """True for lists and numpy arrays, the only containers read as monzos."""
    return isinstance(value, (list, np.ndarray))


def _factor_integer(n: int, num_components: int) -> Tuple[List[int], int]:
    exponents = [0] * num_components
    for i, prime in enumerate(consts.PRIMES[:num_components]):
        if n == 1:
            break
        while n % prime == 0:
            n //= prime
            exponents[i] += 1
    return exponents, n


def to_monzo_and_residual(value, num_components: int) -> Tuple[List[int], Fraction]:
    """Factor a positive rational over the first num_components primes.

    Returns the exponents and the part of the value that the primes could not absorb.
    """
    fraction = resolve_fraction(value)
    if fraction <= 0:
        raise ValueError(f"Only positive rationals have monzos: {fraction}")
    if num_components > len(consts.PRIMES):
        raise ValueError(f"At most {len(consts.PRIMES)} prime components are supported")
    numerator, num_residual = _factor_integer(fraction.numerator, num_components)
    denominator, den_residual = _factor_integer(fraction.denominator, num_components)
    monzo = [n - d for n, d in zip(numerator, denominator)]
    return monzo, Fraction(num_residual, den_residual)


def to_monzo(value) -> List[int]:
    """Factor a positive rational completely, trimming trailing zero exponents."""
    monzo, residual = to_monzo_and_residual(value, len(consts.PRIMES))
    if residual != 1:
        raise ValueError(f"{resolve_fraction(value)} has prime factors beyond {consts.PRIMES[-1]}")
    while monzo and monzo[-1] == 0:
        monzo.pop()
    return monzo


def resolve_monzo(value) -> List[int]:
    """Normalize a monzo or a rational value into a list of prime exponents."""
    if is_monzo(value):
        return [int(component) for component in value]
    return to_monzo(value)


def monzo_to_fraction(monzo, basis=None) -> Fraction:
    """Multiply out a monzo over the primes or over an explicit basis of fractions."""
    if basis is None:
        basis = consts.PRIMES
    result = Fraction(1)
    for exponent, factor in zip(monzo, basis):
        result *= Fraction(factor) ** int(exponent)
    return result


def monzo_to_nats(monzo) -> float:
    """Natural logarithm of the rational a prime monzo represents."""
    return sum(int(e) * lp for e, lp in zip(monzo, consts.LOG_PRIMES))
