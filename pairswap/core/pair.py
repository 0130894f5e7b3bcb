"""Reserve pair: the constant-product state machine.

A pair pools two assets, tracks their last synchronized reserves and
integrates the spot price over time. It is its own share ledger: shares
are minted on deposit and burned on withdrawal, and the outstanding
supply is `total_supply`.

Every mutating operation reads the pair's held balances after the caller
has already moved assets in (optimistic settlement) and derives its
effect from the delta against the reserves, never from amounts declared
by the caller.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import structlog

from pairswap.config import DEFAULT_ENGINE_CONFIG, EngineConfig
from pairswap.constants import UINT112_MAX, ZERO_ADDRESS
from pairswap.errors import (
    InsufficientInputAmount,
    InsufficientLiquidity,
    InsufficientLiquidityBurned,
    InsufficientLiquidityMinted,
    InsufficientOutputAmount,
    InvalidAsset,
    InvalidRecipient,
    InvariantViolation,
    ReentrancyDetected,
    ReserveOverflow,
)
from pairswap.ledger.assets import FungibleAsset, Token
from pairswap.ledger.chain import Chain
from pairswap.math.fixed_point import isqrt, price_ratio, wrapping_add, wrapping_sub
from pairswap.models.events import BurnEvent, MintEvent, SwapEvent, SyncEvent
from pairswap.models.types import normalize_address
from pairswap.safe_int import S

if TYPE_CHECKING:
    from pairswap.core.registry import PairRegistry

logger = structlog.get_logger()


@runtime_checkable
class FlashSwapCallee(Protocol):
    """Contract that can receive a swap's output before paying for it."""

    address: str

    def on_flash_swap(
        self,
        pair: ReservePair,
        caller: str,
        amount_a_out: int,
        amount_b_out: int,
        data: bytes,
    ) -> None:
        """Use the borrowed output, then pay the pair back before returning."""
        ...


class ReservePair(Token):
    """Pooled pair of two assets with constant-product pricing.

    Attributes:
        asset_a: Asset with the lower address
        asset_b: Asset with the higher address
        reserve_a: Last synchronized balance of asset_a (uint112)
        reserve_b: Last synchronized balance of asset_b (uint112)
        price_a_cumulative_last: Time integral of reserve_b/reserve_a (UQ112x112, mod 2^256)
        price_b_cumulative_last: Time integral of reserve_a/reserve_b (UQ112x112, mod 2^256)
        last_update_time: Block timestamp of the last reserve update (mod 2^32)
        last_invariant_root: isqrt(reserve_a * reserve_b) after the last
            liquidity event while the protocol fee is on, else 0
    """

    def __init__(
        self,
        chain: Chain,
        registry: PairRegistry,
        asset_a: FungibleAsset,
        asset_b: FungibleAsset,
        address: str,
        config: EngineConfig = DEFAULT_ENGINE_CONFIG,
    ) -> None:
        self.registry = registry
        self.asset_a = asset_a
        self.asset_b = asset_b
        self.config = config
        self.reserve_a = 0
        self.reserve_b = 0
        self.last_update_time = 0
        self.price_a_cumulative_last = 0
        self.price_b_cumulative_last = 0
        self.last_invariant_root = 0
        self._unlocked = True
        super().__init__(chain, "Pairswap Shares", "PSS", decimals=18, address=address)

    def __repr__(self) -> str:
        return (
            f"ReservePair({self.asset_a.address[-8:]}/{self.asset_b.address[-8:]}"
            f"@{self.address[-8:]})"
        )

    # --- Stateful ---

    def snapshot(self) -> tuple:
        return (
            super().snapshot(),
            self.reserve_a,
            self.reserve_b,
            self.last_update_time,
            self.price_a_cumulative_last,
            self.price_b_cumulative_last,
            self.last_invariant_root,
            self._unlocked,
        )

    def restore(self, state: tuple) -> None:
        (
            ledger,
            self.reserve_a,
            self.reserve_b,
            self.last_update_time,
            self.price_a_cumulative_last,
            self.price_b_cumulative_last,
            self.last_invariant_root,
            self._unlocked,
        ) = state
        super().restore(ledger)

    # --- Reads ---

    def get_reserves(self) -> tuple[int, int, int]:
        """Return (reserve_a, reserve_b, last_update_time)."""
        return self.reserve_a, self.reserve_b, self.last_update_time

    def get_reserves_for(self, asset_in: str) -> tuple[int, int]:
        """Get reserves ordered as (reserve_in, reserve_out)."""
        asset_in_norm = normalize_address(asset_in)
        if asset_in_norm == self.asset_a.address:
            return self.reserve_a, self.reserve_b
        elif asset_in_norm == self.asset_b.address:
            return self.reserve_b, self.reserve_a
        else:
            raise InvalidAsset(f"Asset {asset_in} not in pair")

    def other_asset(self, asset: str) -> FungibleAsset:
        """The pair's asset on the other side of `asset`."""
        asset_norm = normalize_address(asset)
        if asset_norm == self.asset_a.address:
            return self.asset_b
        elif asset_norm == self.asset_b.address:
            return self.asset_a
        else:
            raise InvalidAsset(f"Asset {asset} not in pair")

    def price_a(self) -> int:
        """Spot price of asset_a in units of asset_b (UQ112x112)."""
        if self.reserve_a == 0 or self.reserve_b == 0:
            raise InsufficientLiquidity("Pair has no reserves")
        return price_ratio(self.reserve_b, self.reserve_a)

    def price_b(self) -> int:
        """Spot price of asset_b in units of asset_a (UQ112x112)."""
        if self.reserve_a == 0 or self.reserve_b == 0:
            raise InsufficientLiquidity("Pair has no reserves")
        return price_ratio(self.reserve_a, self.reserve_b)

    # --- Mutations ---

    def mint(self, to: str, *, caller: str = ZERO_ADDRESS) -> int:  # type: ignore[override]
        """Mint shares for the assets transferred in since the last sync.

        The first deposit mints isqrt(amount_a * amount_b) shares, of which
        `minimum_shares` are locked in the zero address forever. Later
        deposits mint the smaller of the two pro-rata ratios; any excess of
        the other asset stays in the pair.

        Returns:
            Shares minted to `to`

        Raises:
            InsufficientLiquidityMinted: If the deposit is worth no shares
        """
        with self.chain.transaction(), self._lock():
            reserve_a, reserve_b = self.reserve_a, self.reserve_b
            balance_a = self.asset_a.balance_of(self.address)
            balance_b = self.asset_b.balance_of(self.address)
            amount_a = (S(balance_a) - reserve_a).value
            amount_b = (S(balance_b) - reserve_b).value

            fee_on = self._mint_fee(reserve_a, reserve_b)
            total_supply = self.total_supply
            minimum = self.config.minimum_shares
            if total_supply == 0:
                root = isqrt(amount_a * amount_b)
                if root <= minimum:
                    raise InsufficientLiquidityMinted(
                        f"Initial deposit worth {root} shares, needs more than {minimum}"
                    )
                shares = root - minimum
                self._mint(ZERO_ADDRESS, minimum)
            else:
                shares = min(
                    (S(amount_a) * total_supply // S(reserve_a)).value,
                    (S(amount_b) * total_supply // S(reserve_b)).value,
                )
            if shares <= 0:
                raise InsufficientLiquidityMinted("Deposit is worth zero shares")
            self._mint(to, shares)

            self._update(balance_a, balance_b, reserve_a, reserve_b)
            if fee_on:
                self.last_invariant_root = isqrt(self.reserve_a * self.reserve_b)
            self.chain.emit(
                MintEvent(
                    emitter=self.address,
                    sender=normalize_address(caller),
                    amount_a=amount_a,
                    amount_b=amount_b,
                )
            )
            logger.debug(
                "liquidity_minted",
                pair=self.address[-8:],
                to=normalize_address(to)[-8:],
                shares=shares,
                amount_a=amount_a,
                amount_b=amount_b,
            )
            return shares

    def burn(  # type: ignore[override]
        self, to: str, *, caller: str = ZERO_ADDRESS
    ) -> tuple[int, int]:
        """Burn the shares held by the pair and pay out both assets pro rata.

        Payouts are computed from the held balances, so assets donated to
        the pair since the last sync are distributed too.

        Returns:
            (amount_a, amount_b) transferred to `to`

        Raises:
            InsufficientLiquidityBurned: If either payout would be zero
        """
        with self.chain.transaction(), self._lock():
            reserve_a, reserve_b = self.reserve_a, self.reserve_b
            balance_a = self.asset_a.balance_of(self.address)
            balance_b = self.asset_b.balance_of(self.address)
            shares = self.balance_of(self.address)

            fee_on = self._mint_fee(reserve_a, reserve_b)
            total_supply = self.total_supply
            if total_supply == 0:
                raise InsufficientLiquidityBurned("Pair has no outstanding shares")
            amount_a = (S(shares) * balance_a // S(total_supply)).value
            amount_b = (S(shares) * balance_b // S(total_supply)).value
            if amount_a == 0 or amount_b == 0:
                raise InsufficientLiquidityBurned(
                    f"Burning {shares} shares returns ({amount_a}, {amount_b})"
                )
            self._burn(self.address, shares)
            self.asset_a.transfer(self.address, to, amount_a)
            self.asset_b.transfer(self.address, to, amount_b)

            balance_a = self.asset_a.balance_of(self.address)
            balance_b = self.asset_b.balance_of(self.address)
            self._update(balance_a, balance_b, reserve_a, reserve_b)
            if fee_on:
                self.last_invariant_root = isqrt(self.reserve_a * self.reserve_b)
            self.chain.emit(
                BurnEvent(
                    emitter=self.address,
                    sender=normalize_address(caller),
                    amount_a=amount_a,
                    amount_b=amount_b,
                    recipient=normalize_address(to),
                )
            )
            logger.debug(
                "liquidity_burned",
                pair=self.address[-8:],
                to=normalize_address(to)[-8:],
                shares=shares,
                amount_a=amount_a,
                amount_b=amount_b,
            )
            return amount_a, amount_b

    def swap(
        self,
        amount_a_out: int,
        amount_b_out: int,
        to: str,
        data: bytes = b"",
        *,
        caller: str = ZERO_ADDRESS,
    ) -> None:
        """Send the requested outputs, then verify they were paid for.

        Outputs are transferred before any input is checked. With non-empty
        `data`, the contract deployed at `to` is called back through
        `on_flash_swap` and may use the outputs before repaying. Payment is
        whatever the balances exceed the reserves by afterwards; the fee is
        charged on that input only.

        Raises:
            InsufficientOutputAmount: If both outputs are zero
            InsufficientLiquidity: If an output is not below its reserve
            InvalidRecipient: If `to` is one of the pair's assets, or has
                no flash swap callback while `data` is given
            InsufficientInputAmount: If nothing was paid in
            InvariantViolation: If the fee-adjusted product decreased
            ReentrancyDetected: If called while the pair is locked
        """
        if amount_a_out < 0 or amount_b_out < 0 or (amount_a_out == 0 and amount_b_out == 0):
            raise InsufficientOutputAmount(
                f"Invalid swap outputs ({amount_a_out}, {amount_b_out})"
            )
        with self.chain.transaction(), self._lock():
            reserve_a, reserve_b = self.reserve_a, self.reserve_b
            if amount_a_out >= reserve_a or amount_b_out >= reserve_b:
                raise InsufficientLiquidity(
                    f"Outputs ({amount_a_out}, {amount_b_out}) exceed reserves "
                    f"({reserve_a}, {reserve_b})"
                )

            to_norm = normalize_address(to)
            if to_norm in (self.asset_a.address, self.asset_b.address):
                raise InvalidRecipient(f"Cannot send swap output to asset {to_norm}")
            if amount_a_out > 0:
                self.asset_a.transfer(self.address, to_norm, amount_a_out)
            if amount_b_out > 0:
                self.asset_b.transfer(self.address, to_norm, amount_b_out)
            if data:
                callee = self.chain.contract_at(to_norm)
                if not isinstance(callee, FlashSwapCallee):
                    raise InvalidRecipient(f"No flash swap callback at {to_norm}")
                callee.on_flash_swap(
                    self, normalize_address(caller), amount_a_out, amount_b_out, data
                )

            balance_a = self.asset_a.balance_of(self.address)
            balance_b = self.asset_b.balance_of(self.address)
            amount_a_in = max(0, balance_a - (reserve_a - amount_a_out))
            amount_b_in = max(0, balance_b - (reserve_b - amount_b_out))
            if amount_a_in == 0 and amount_b_in == 0:
                raise InsufficientInputAmount("Swap received no input")

            fee_den = self.config.fee_denominator
            fee_cut = self.config.fee_complement
            adjusted_a = S(balance_a) * fee_den - S(amount_a_in) * fee_cut
            adjusted_b = S(balance_b) * fee_den - S(amount_b_in) * fee_cut
            if adjusted_a * adjusted_b < S(reserve_a) * reserve_b * (fee_den * fee_den):
                raise InvariantViolation(
                    f"Fee-adjusted product decreased: in ({amount_a_in}, {amount_b_in}), "
                    f"out ({amount_a_out}, {amount_b_out})"
                )

            self._update(balance_a, balance_b, reserve_a, reserve_b)
            self.chain.emit(
                SwapEvent(
                    emitter=self.address,
                    sender=normalize_address(caller),
                    amount_a_in=amount_a_in,
                    amount_b_in=amount_b_in,
                    amount_a_out=amount_a_out,
                    amount_b_out=amount_b_out,
                    recipient=to_norm,
                )
            )
            logger.debug(
                "swap_executed",
                pair=self.address[-8:],
                amount_a_in=amount_a_in,
                amount_b_in=amount_b_in,
                amount_a_out=amount_a_out,
                amount_b_out=amount_b_out,
                flash=bool(data),
            )

    def skim(self, to: str) -> tuple[int, int]:
        """Send any balance above the reserves to `to`, leaving reserves as is."""
        with self.chain.transaction(), self._lock():
            excess_a = (S(self.asset_a.balance_of(self.address)) - self.reserve_a).value
            excess_b = (S(self.asset_b.balance_of(self.address)) - self.reserve_b).value
            if excess_a:
                self.asset_a.transfer(self.address, to, excess_a)
            if excess_b:
                self.asset_b.transfer(self.address, to, excess_b)
            return excess_a, excess_b

    def sync(self) -> None:
        """Set the reserves to the held balances, accumulating prices first."""
        with self.chain.transaction(), self._lock():
            self._update(
                self.asset_a.balance_of(self.address),
                self.asset_b.balance_of(self.address),
                self.reserve_a,
                self.reserve_b,
            )
        logger.debug(
            "reserves_synced",
            pair=self.address[-8:],
            reserve_a=self.reserve_a,
            reserve_b=self.reserve_b,
        )

    # --- Internals ---

    @contextmanager
    def _lock(self) -> Iterator[None]:
        if not self._unlocked:
            raise ReentrancyDetected(f"Pair {self.address} is locked")
        self._unlocked = False
        try:
            yield
        finally:
            self._unlocked = True

    def _update(self, balance_a: int, balance_b: int, reserve_a: int, reserve_b: int) -> None:
        """Accumulate prices over the elapsed interval, then store new reserves.

        The accumulators integrate the price that held since the last update,
        so they use the previous reserves.
        """
        if balance_a > UINT112_MAX or balance_b > UINT112_MAX:
            raise ReserveOverflow(f"Balances ({balance_a}, {balance_b}) exceed uint112")
        now = self.chain.block_timestamp
        elapsed = wrapping_sub(now, self.last_update_time, bits=32)
        if elapsed > 0 and reserve_a != 0 and reserve_b != 0:
            self.price_a_cumulative_last = wrapping_add(
                self.price_a_cumulative_last, price_ratio(reserve_b, reserve_a) * elapsed
            )
            self.price_b_cumulative_last = wrapping_add(
                self.price_b_cumulative_last, price_ratio(reserve_a, reserve_b) * elapsed
            )
        self.reserve_a = balance_a
        self.reserve_b = balance_b
        self.last_update_time = now
        self.chain.emit(SyncEvent(emitter=self.address, reserve_a=balance_a, reserve_b=balance_b))

    def _mint_fee(self, reserve_a: int, reserve_b: int) -> bool:
        """Mint the protocol's share of invariant growth since the last liquidity event.

        Active only while the registry has a fee recipient. Returns whether
        the fee is on.
        """
        fee_to = self.registry.fee_recipient()
        fee_on = fee_to is not None
        root_k_last = self.last_invariant_root
        if fee_on:
            if root_k_last != 0:
                root_k = isqrt(reserve_a * reserve_b)
                if root_k > root_k_last:
                    numerator = S(self.total_supply) * (S(root_k) - root_k_last)
                    denominator = S(root_k) * self.config.protocol_fee_divisor + root_k_last
                    shares = (numerator // denominator).value
                    if shares > 0:
                        self._mint(fee_to, shares)
                        logger.debug(
                            "protocol_fee_minted",
                            pair=self.address[-8:],
                            fee_to=fee_to[-8:],
                            shares=shares,
                        )
        elif root_k_last != 0:
            self.last_invariant_root = 0
        return fee_on


__all__ = ["ReservePair", "FlashSwapCallee"]
