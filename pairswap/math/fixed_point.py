"""UQ112x112 fixed-point math and wrapping integer helpers.

Prices are stored as unsigned 224-bit integers with 112 fractional bits,
so that a ratio of two 112-bit reserves is representable without loss of
range. Price accumulators add these values every second and are allowed
to wrap modulo 2^256; timestamps wrap modulo 2^32. Consumers rely on the
wraparound being exact, so every helper here masks explicitly instead of
saturating or raising on overflow.
"""

from __future__ import annotations

from math import isqrt as _isqrt

from pairswap.constants import UINT112_MAX, UINT224_MAX
from pairswap.safe_int import DivisionByZero, Uint112Overflow

__all__ = [
    # Constants
    "RESOLUTION",
    "Q112",
    # Encoding
    "encode",
    "uqdiv",
    "mul",
    "decode144",
    "price_ratio",
    # Wrapping arithmetic
    "wrapping_add",
    "wrapping_sub",
    "truncate",
    # Roots
    "isqrt",
]

# =============================================================================
# Constants
# =============================================================================

RESOLUTION = 112
Q112 = 1 << RESOLUTION


# =============================================================================
# Encoding
# =============================================================================


def encode(y: int) -> int:
    """Encode a uint112 as a UQ112x112.

    Raises:
        Uint112Overflow: If y does not fit in 112 bits
    """
    if not 0 <= y <= UINT112_MAX:
        raise Uint112Overflow(f"Cannot encode {y} as UQ112x112")
    return y * Q112


def uqdiv(x: int, y: int) -> int:
    """Divide a UQ112x112 by a uint112, returning a UQ112x112.

    Raises:
        DivisionByZero: If y is zero
    """
    if y == 0:
        raise DivisionByZero(f"UQ112x112 division by zero: {x} / 0")
    return x // y


def mul(x: int, y: int) -> int:
    """Multiply a UQ112x112 by an integer, returning a UQ144x112."""
    return x * y


def decode144(x: int) -> int:
    """Decode a UQ144x112 to an integer, truncating the fraction."""
    return x >> RESOLUTION


def price_ratio(reserve_num: int, reserve_den: int) -> int:
    """Instantaneous price reserve_num / reserve_den as a UQ112x112."""
    return uqdiv(encode(reserve_num), reserve_den)


# =============================================================================
# Wrapping arithmetic
# =============================================================================


def wrapping_add(a: int, b: int, bits: int = 256) -> int:
    """Add modulo 2^bits."""
    return (a + b) & ((1 << bits) - 1)


def wrapping_sub(a: int, b: int, bits: int = 256) -> int:
    """Subtract modulo 2^bits.

    A counter that wrapped between two observations still yields the true
    delta, as long as the delta itself fits in the width.
    """
    return (a - b) & ((1 << bits) - 1)


def truncate(x: int, bits: int = 224) -> int:
    """Keep the low `bits` bits of x (uint224 cast by default)."""
    if bits == 224:
        return x & UINT224_MAX
    return x & ((1 << bits) - 1)


# =============================================================================
# Roots
# =============================================================================


def isqrt(n: int) -> int:
    """Floor of the square root of a non-negative integer.

    Raises:
        ValueError: If n is negative
    """
    if n < 0:
        raise ValueError(f"isqrt of negative value: {n}")
    return _isqrt(n)
