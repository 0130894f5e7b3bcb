"""Pydantic records for events emitted by pairs, assets and the registry.

Events are appended to the chain's event log and rolled back together
with the state changes of a failed transaction.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict

from pairswap.models.types import Address, Amount


class Event(BaseModel):
    """Base class for all events."""

    model_config = ConfigDict(frozen=True)

    # Contract that emitted the event
    emitter: Address


class TransferEvent(Event):
    """Fungible asset moved between holders (mint: from zero, burn: to zero)."""

    kind: Literal["Transfer"] = "Transfer"
    sender: Address
    recipient: Address
    amount: Amount


class ApprovalEvent(Event):
    """Allowance set by an owner for a spender."""

    kind: Literal["Approval"] = "Approval"
    owner: Address
    spender: Address
    amount: Amount


class PairCreatedEvent(Event):
    """New pair deployed by the registry."""

    kind: Literal["PairCreated"] = "PairCreated"
    asset_a: Address
    asset_b: Address
    pair: Address
    index: int


class MintEvent(Event):
    """Liquidity added to a pair."""

    kind: Literal["Mint"] = "Mint"
    sender: Address
    amount_a: Amount
    amount_b: Amount


class BurnEvent(Event):
    """Liquidity removed from a pair."""

    kind: Literal["Burn"] = "Burn"
    sender: Address
    amount_a: Amount
    amount_b: Amount
    recipient: Address


class SwapEvent(Event):
    """Swap settled by a pair."""

    kind: Literal["Swap"] = "Swap"
    sender: Address
    amount_a_in: Amount
    amount_b_in: Amount
    amount_a_out: Amount
    amount_b_out: Amount
    recipient: Address


class SyncEvent(Event):
    """Reserves updated to the pair's held balances."""

    kind: Literal["Sync"] = "Sync"
    reserve_a: Amount
    reserve_b: Amount


__all__ = [
    "Event",
    "TransferEvent",
    "ApprovalEvent",
    "PairCreatedEvent",
    "MintEvent",
    "BurnEvent",
    "SwapEvent",
    "SyncEvent",
]
