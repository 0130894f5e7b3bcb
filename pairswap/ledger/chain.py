"""In-process execution environment: clock, address book, event log.

A Chain serializes every mutation of pairs and assets. Stateful contracts
register on deployment; `transaction()` snapshots all of them and restores
the snapshots if the body raises, so a failed multi-step operation leaves
no partial state change behind.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Protocol, runtime_checkable

import structlog

from pairswap.constants import UINT32_MOD
from pairswap.models.events import Event
from pairswap.models.types import normalize_address

logger = structlog.get_logger()

# Arbitrary but stable genesis time (2023-11-14T22:13:20Z)
GENESIS_TIMESTAMP = 1_700_000_000


@runtime_checkable
class Stateful(Protocol):
    """Contract whose state can be snapshotted and restored."""

    address: str

    def snapshot(self) -> Any:
        """Return an independent copy of the mutable state."""
        ...

    def restore(self, state: Any) -> None:
        """Replace the mutable state with a previous snapshot."""
        ...


class Chain:
    """Single serialized execution environment.

    Every `transaction()` level copies the full state of every registered
    contract on entry, whether or not the block touches it. A router call
    nests one level per pair operation, so its cost grows with the number
    of deployed contracts and holders, not with the size of the path.

    Attributes:
        timestamp: Current logical time in seconds
        events: Events emitted by committed (or in-flight) operations
    """

    def __init__(self, timestamp: int = GENESIS_TIMESTAMP) -> None:
        self.timestamp = timestamp
        self.events: list[Event] = []
        self._contracts: dict[str, Any] = {}
        self._participants: list[Stateful] = []
        self._nonce = 0
        self._depth = 0

    @property
    def block_timestamp(self) -> int:
        """Current time truncated to 32 bits, as stored by pairs."""
        return self.timestamp % UINT32_MOD

    def advance(self, seconds: int) -> int:
        """Move the clock forward and return the new timestamp."""
        if seconds < 0:
            raise ValueError(f"Cannot move the clock backwards: {seconds}")
        self.timestamp += seconds
        return self.timestamp

    def new_address(self, label: str = "account") -> str:
        """Derive a fresh, deterministic address."""
        self._nonce += 1
        digest = hashlib.sha256(f"{label}:{self._nonce}".encode()).digest()
        return "0x" + digest[-20:].hex()

    def deploy(self, contract: Any) -> Any:
        """Register a contract under its address.

        Contracts implementing `Stateful` take part in transaction rollback.

        Raises:
            ValueError: If the address is already taken
        """
        address = normalize_address(contract.address)
        if address in self._contracts:
            raise ValueError(f"Address already in use: {address}")
        self._contracts[address] = contract
        if isinstance(contract, Stateful):
            self._participants.append(contract)
        return contract

    def contract_at(self, address: str) -> Any | None:
        """Contract deployed at an address, or None for plain accounts."""
        return self._contracts.get(normalize_address(address))

    def emit(self, event: Event) -> None:
        self.events.append(event)

    def events_of(self, kind: str, emitter: str | None = None) -> list[Event]:
        """Events of one kind, optionally filtered by emitting contract."""
        emitter_norm = normalize_address(emitter) if emitter is not None else None
        return [
            e
            for e in self.events
            if getattr(e, "kind", None) == kind
            and (emitter_norm is None or e.emitter == emitter_norm)
        ]

    @contextmanager
    def transaction(self) -> Iterator[Chain]:
        """Run a block atomically.

        Nested transactions are allowed; each level restores only what
        changed inside it. The exception that caused the rollback is
        re-raised unchanged.
        """
        saved = [(p, p.snapshot()) for p in self._participants]
        participant_count = len(self._participants)
        event_count = len(self.events)
        contracts = dict(self._contracts)
        self._depth += 1
        try:
            yield self
        except Exception as exc:
            for participant, state in saved:
                participant.restore(state)
            del self._participants[participant_count:]
            del self.events[event_count:]
            self._contracts = contracts
            logger.warning(
                "transaction_reverted",
                error=type(exc).__name__,
                reason=str(exc),
                depth=self._depth,
            )
            raise
        finally:
            self._depth -= 1


__all__ = ["Chain", "Stateful", "GENESIS_TIMESTAMP"]
