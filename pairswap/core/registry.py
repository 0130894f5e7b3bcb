"""Pair registry: deploys one pair per unordered asset pair.

Also holds the protocol fee settings: `fee_to` receives protocol fee
shares when set, and only `fee_to_setter` may change either value.
"""

from __future__ import annotations

import hashlib

import structlog
from eth_abi import encode  # type: ignore[attr-defined]

from pairswap.config import DEFAULT_ENGINE_CONFIG, EngineConfig
from pairswap.core.pair import ReservePair
from pairswap.errors import Forbidden, IdenticalAssets, InvalidAsset, PairExists
from pairswap.ledger.assets import FungibleAsset, asset_address
from pairswap.ledger.chain import Chain
from pairswap.models.events import PairCreatedEvent
from pairswap.models.types import address_bytes, is_zero_address, normalize_address

logger = structlog.get_logger()


def sort_assets(
    asset_x: FungibleAsset, asset_y: FungibleAsset
) -> tuple[FungibleAsset, FungibleAsset]:
    """Order two assets canonically (lower address first).

    Raises:
        IdenticalAssets: If both are the same asset
        InvalidAsset: If either is the zero address
    """
    x_norm = normalize_address(asset_x.address)
    y_norm = normalize_address(asset_y.address)
    if x_norm == y_norm:
        raise IdenticalAssets(f"Identical assets: {x_norm}")
    if address_bytes(x_norm) < address_bytes(y_norm):
        first, second = asset_x, asset_y
    else:
        first, second = asset_y, asset_x
    if is_zero_address(first.address):
        raise InvalidAsset("Zero address is not an asset")
    return first, second


def compute_pair_address(registry: str, asset_a: str, asset_b: str) -> str:
    """Deterministic pair address for an already sorted asset pair."""
    salt = encode(
        ["address", "address", "address"],
        [address_bytes(registry), address_bytes(asset_a), address_bytes(asset_b)],
    )
    return "0x" + hashlib.sha256(salt).digest()[-20:].hex()


class PairRegistry:
    """Registry of reserve pairs keyed by asset pair (order independent)."""

    def __init__(
        self,
        chain: Chain,
        fee_to_setter: str,
        config: EngineConfig = DEFAULT_ENGINE_CONFIG,
    ) -> None:
        self.chain = chain
        self.config = config
        self.address = chain.new_address("registry")
        self.fee_to: str | None = None
        self.fee_to_setter = normalize_address(fee_to_setter)
        self._pairs: dict[frozenset[str], ReservePair] = {}
        self._all_pairs: list[ReservePair] = []
        chain.deploy(self)

    # --- Stateful ---

    def snapshot(self) -> tuple:
        return dict(self._pairs), list(self._all_pairs), self.fee_to, self.fee_to_setter

    def restore(self, state: tuple) -> None:
        pairs, all_pairs, self.fee_to, self.fee_to_setter = state
        self._pairs = dict(pairs)
        self._all_pairs = list(all_pairs)

    # --- Pairs ---

    @property
    def all_pairs(self) -> list[ReservePair]:
        return list(self._all_pairs)

    def all_pairs_length(self) -> int:
        return len(self._all_pairs)

    def get_pair(
        self, asset_x: FungibleAsset | str, asset_y: FungibleAsset | str
    ) -> ReservePair | None:
        """Get the pair for two assets (order independent), or None."""
        pair_key = frozenset([asset_address(asset_x), asset_address(asset_y)])
        return self._pairs.get(pair_key)

    def create_pair(self, asset_x: FungibleAsset, asset_y: FungibleAsset) -> ReservePair:
        """Deploy the pair for two assets.

        Raises:
            IdenticalAssets: If both are the same asset
            InvalidAsset: If either is the zero address
            PairExists: If the pair was already created
        """
        asset_a, asset_b = sort_assets(asset_x, asset_y)
        if self.get_pair(asset_a, asset_b) is not None:
            raise PairExists(f"Pair exists for {asset_a.address} / {asset_b.address}")

        with self.chain.transaction():
            pair = ReservePair(
                self.chain,
                self,
                asset_a,
                asset_b,
                address=compute_pair_address(self.address, asset_a.address, asset_b.address),
                config=self.config,
            )
            self._pairs[frozenset([asset_a.address, asset_b.address])] = pair
            self._all_pairs.append(pair)
            self.chain.emit(
                PairCreatedEvent(
                    emitter=self.address,
                    asset_a=asset_a.address,
                    asset_b=asset_b.address,
                    pair=pair.address,
                    index=len(self._all_pairs),
                )
            )
        logger.info(
            "pair_created",
            pair=pair.address[-8:],
            asset_a=asset_a.address[-8:],
            asset_b=asset_b.address[-8:],
            total_pairs=len(self._all_pairs),
        )
        return pair

    # --- Protocol fee ---

    def fee_recipient(self) -> str | None:
        """Account receiving protocol fee shares, or None when the fee is off."""
        return self.fee_to

    def set_fee_to(self, caller: str, fee_to: str | None) -> None:
        """Turn the protocol fee on (recipient) or off (None).

        Raises:
            Forbidden: If caller is not the fee setter
        """
        self._check_setter(caller)
        self.fee_to = normalize_address(fee_to) if fee_to is not None else None
        logger.info("fee_to_changed", fee_to=self.fee_to)

    def set_fee_to_setter(self, caller: str, fee_to_setter: str) -> None:
        """Hand over the right to change fee settings.

        Raises:
            Forbidden: If caller is not the fee setter
        """
        self._check_setter(caller)
        self.fee_to_setter = normalize_address(fee_to_setter)
        logger.info("fee_to_setter_changed", fee_to_setter=self.fee_to_setter)

    def _check_setter(self, caller: str) -> None:
        if normalize_address(caller) != self.fee_to_setter:
            raise Forbidden(f"{caller} is not the fee setter")


__all__ = ["PairRegistry", "sort_assets", "compute_pair_address"]
