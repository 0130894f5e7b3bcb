"""Liquidity and swap routing over registered pairs.

Module structure:
- library.py: pair lookup and multi-hop quoting
- router.py: Router facade for deposits, withdrawals and swaps
"""

from pairswap.routing.library import (
    Path,
    get_amounts_in,
    get_amounts_out,
    get_reserves,
    pair_for,
)
from pairswap.routing.router import Router

__all__ = [
    "Path",
    "Router",
    "get_amounts_in",
    "get_amounts_out",
    "get_reserves",
    "pair_for",
]
