"""Constants and metadata for TEMPER regular temperament algebra.

This module centralizes the constants, defaults and metadata shared by the
temperament engine, its supporting collaborators and the command line tool.

Program Metadata:
- Version information and authorship details
- Release dates and licensing information

Mathematical Constants:
- Ellis conversion factor for nats-to-cents calculations
- Prime tables (and their natural logarithms) for monzo factorization
- Numeric thresholds used by the real-valued algebra

Search Defaults:
- Persistence and zero-threshold of the join/meet integer rescaling
- Division and radius bounds of the val/comma factorization searches

Caching:
- Size of the algebra provider cache

Keeping these values in one place lets the CLI override them consistently.
"""

import math
from fractions import Fraction
from typing import List, Sequence, Union

# Metadata
__program_name__ = "TEMPER"
__version__ = "0.5.3"
__author__ = "LUCA BIMBI"
__date__ = "2025-10-17"  # The date distinguishes releases
__license__ = "MIT"  # See LICENSE file

# Constants
ELLIS_CONVERSION_FACTOR = 1200 / math.log(2)
SEMITONE_CONVERSION_FACTOR = 12 / math.log(2)
RATIO_EPS = 1e-9

# Pitch units accepted by every mapping/tuning function
PITCH_UNITS = ("ratio", "cents", "nats", "semitones")
DEFAULT_UNITS = "cents"

# Join/meet rescaling
DEFAULT_PERSISTENCE = 100
DEFAULT_THRESHOLD = 1e-4

# Factorization search bounds
DEFAULT_MAX_DIVISIONS = 200
DEFAULT_WART_RADIUS = 1
FACTORIZATION_STRATEGIES = ("patent", "GPV", "mapping", "GM", "warts")
DEFAULT_STRATEGY = "GPV"

# Iterative optimization
DEFAULT_ITERATIONS = 1000

# Algebra provider
ALGEBRA_CACHE_SIZE = 32
ALGEBRA_KINDS = ("int", "float", "pga")

# Wart letters: a-p are the first sixteen primes, q onward the formal primes
PRIME_WART_LETTERS = "abcdefghijklmnop"
FORMAL_WART_OFFSET = ord("q")

# Localization
DEFAULT_LANG = "it"

# First 64 primes
PRIMES: List[int] = [
    2, 3, 5, 7, 11, 13, 17, 19, 23, 29, 31, 37, 41, 43, 47, 53,
    59, 61, 67, 71, 73, 79, 83, 89, 97, 101, 103, 107, 109, 113, 127, 131,
    137, 139, 149, 151, 157, 163, 167, 173, 179, 181, 191, 193, 197, 199, 211, 223,
    227, 229, 233, 239, 241, 251, 257, 263, 269, 271, 277, 281, 283, 293, 307, 311,
]
LOG_PRIMES: List[float] = [math.log(p) for p in PRIMES]
PRIME_CENTS: List[float] = [ELLIS_CONVERSION_FACTOR * lp for lp in LOG_PRIMES]

# Type definitions
Numeric = Union[int, float, Fraction]
Monzo = List[int]
Val = List[int]
Mapping = List[float]
FractionValue = Union[int, str, Fraction, tuple]
MonzoValue = Union[Sequence[int], FractionValue]
