"""Event records and shared types."""

from pairswap.models.events import (
    ApprovalEvent,
    BurnEvent,
    Event,
    MintEvent,
    PairCreatedEvent,
    SwapEvent,
    SyncEvent,
    TransferEvent,
)
from pairswap.models.types import (
    Address,
    Amount,
    address_bytes,
    is_zero_address,
    normalize_address,
)

__all__ = [
    # Types
    "Address",
    "Amount",
    "address_bytes",
    "is_zero_address",
    "normalize_address",
    # Events
    "Event",
    "TransferEvent",
    "ApprovalEvent",
    "PairCreatedEvent",
    "MintEvent",
    "BurnEvent",
    "SwapEvent",
    "SyncEvent",
]
