"""Pairswap - constant-product pair exchange engine."""

from pairswap.config import DEFAULT_ENGINE_CONFIG, EngineConfig
from pairswap.core import PairRegistry, ReservePair
from pairswap.flash import FlashBorrower
from pairswap.ledger import Chain, FeeOnTransferToken, NativeCurrency, Token, WrappedNative
from pairswap.oracle import TwapOracle
from pairswap.routing import Router

__version__ = "0.1.0"
__all__ = [
    "Chain",
    "EngineConfig",
    "DEFAULT_ENGINE_CONFIG",
    "FeeOnTransferToken",
    "FlashBorrower",
    "NativeCurrency",
    "PairRegistry",
    "ReservePair",
    "Router",
    "Token",
    "TwapOracle",
    "WrappedNative",
    "__version__",
]
