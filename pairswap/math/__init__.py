"""Fixed-point and wrapping arithmetic."""

from pairswap.math.fixed_point import (
    Q112,
    RESOLUTION,
    decode144,
    encode,
    isqrt,
    mul,
    price_ratio,
    truncate,
    uqdiv,
    wrapping_add,
    wrapping_sub,
)

__all__ = [
    "Q112",
    "RESOLUTION",
    "decode144",
    "encode",
    "isqrt",
    "mul",
    "price_ratio",
    "truncate",
    "uqdiv",
    "wrapping_add",
    "wrapping_sub",
]
