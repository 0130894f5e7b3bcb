"""Execution environment and fungible asset collaborators."""

from pairswap.ledger.assets import (
    FeeOnTransferToken,
    FungibleAsset,
    asset_address,
    NativeCurrency,
    Token,
    WrappedNative,
)
from pairswap.ledger.chain import GENESIS_TIMESTAMP, Chain, Stateful

__all__ = [
    "Chain",
    "Stateful",
    "GENESIS_TIMESTAMP",
    "FungibleAsset",
    "asset_address",
    "Token",
    "FeeOnTransferToken",
    "NativeCurrency",
    "WrappedNative",
]
