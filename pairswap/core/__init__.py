"""Reserve pairs and the registry that deploys them."""

from pairswap.core.pair import FlashSwapCallee, ReservePair
from pairswap.core.registry import PairRegistry, compute_pair_address, sort_assets

__all__ = [
    "ReservePair",
    "FlashSwapCallee",
    "PairRegistry",
    "sort_assets",
    "compute_pair_address",
]
