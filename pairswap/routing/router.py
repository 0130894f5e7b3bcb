"""Router: liquidity and swap orchestration over registered pairs.

The router holds no balances between calls. Each public operation checks
the caller's deadline, then runs inside one chain transaction: amounts are
quoted, assets move straight from the caller into the first pair, every
intermediate hop pays the next pair directly, and only the last hop pays
the recipient. Any failure, on any hop, rolls the whole call back.

Native currency enters and leaves through the wrapper; the `value` argument
plays the role of the native amount attached to the call, and any part of
it not used is refunded to the sender.
"""

from __future__ import annotations

import structlog

from pairswap.amm.base import AMM
from pairswap.amm.constant_product import ConstantProduct
from pairswap.core.pair import ReservePair
from pairswap.core.registry import PairRegistry
from pairswap.errors import (
    ExcessiveInputAmount,
    Expired,
    InsufficientAAmount,
    InsufficientBAmount,
    InsufficientOutput,
    InvalidPath,
)
from pairswap.ledger.assets import FungibleAsset, WrappedNative, asset_address
from pairswap.ledger.chain import Chain
from pairswap.routing.library import Path, get_amounts_in, get_amounts_out, pair_for

logger = structlog.get_logger()


class Router:
    """Stateless entry point for liquidity providers and traders.

    Args:
        chain: Execution environment
        registry: Registry used to resolve and create pairs
        wrapped_native: Wrapper used for native-currency operations
        amm: Pricing math (defaults to the registry's fee configuration)
    """

    def __init__(
        self,
        chain: Chain,
        registry: PairRegistry,
        wrapped_native: WrappedNative,
        amm: AMM | None = None,
    ) -> None:
        self.chain = chain
        self.registry = registry
        self.wrapped_native = wrapped_native
        self.native = wrapped_native.native
        self.amm = amm or ConstantProduct(registry.config)
        self.address = chain.new_address("router")
        chain.deploy(self)

    # =========================================================================
    # Quoting
    # =========================================================================

    def quote(self, amount_a: int, reserve_a: int, reserve_b: int) -> int:
        return self.amm.quote(amount_a, reserve_a, reserve_b)

    def get_amount_out(self, amount_in: int, reserve_in: int, reserve_out: int) -> int:
        return self.amm.get_amount_out(amount_in, reserve_in, reserve_out)

    def get_amount_in(self, amount_out: int, reserve_in: int, reserve_out: int) -> int:
        return self.amm.get_amount_in(amount_out, reserve_in, reserve_out)

    def get_amounts_out(self, amount_in: int, path: Path) -> list[int]:
        return get_amounts_out(self.registry, amount_in, path, self.amm)

    def get_amounts_in(self, amount_out: int, path: Path) -> list[int]:
        return get_amounts_in(self.registry, amount_out, path, self.amm)

    # =========================================================================
    # Liquidity
    # =========================================================================

    def add_liquidity(
        self,
        sender: str,
        asset_a: FungibleAsset,
        asset_b: FungibleAsset,
        desired_a: int,
        desired_b: int,
        min_a: int,
        min_b: int,
        to: str,
        deadline: int,
    ) -> tuple[int, int, int]:
        """Deposit both assets at the current price and mint shares to `to`.

        Creates the pair on first use; the first deposit sets the price.

        Returns:
            (used_a, used_b, shares_minted)
        """
        self._ensure(deadline)
        with self.chain.transaction():
            amount_a, amount_b = self._add_liquidity(
                asset_a, asset_b, desired_a, desired_b, min_a, min_b
            )
            pair = pair_for(self.registry, asset_a, asset_b)
            asset_a.transfer_from(self.address, sender, pair.address, amount_a)
            asset_b.transfer_from(self.address, sender, pair.address, amount_b)
            shares = pair.mint(to, caller=self.address)
        logger.debug(
            "liquidity_added",
            pair=pair.address[-8:],
            amount_a=amount_a,
            amount_b=amount_b,
            shares=shares,
        )
        return amount_a, amount_b, shares

    def add_liquidity_native(
        self,
        sender: str,
        asset: FungibleAsset,
        desired_amount: int,
        min_amount: int,
        min_native: int,
        to: str,
        deadline: int,
        value: int,
    ) -> tuple[int, int, int]:
        """Deposit an asset against native currency; `value` caps the native side.

        Returns:
            (used_amount, used_native, shares_minted)
        """
        self._ensure(deadline)
        with self.chain.transaction():
            self._receive_native(sender, value)
            amount, amount_native = self._add_liquidity(
                asset, self.wrapped_native, desired_amount, value, min_amount, min_native
            )
            pair = pair_for(self.registry, asset, self.wrapped_native)
            asset.transfer_from(self.address, sender, pair.address, amount)
            self.wrapped_native.deposit(self.address, amount_native)
            self.wrapped_native.transfer(self.address, pair.address, amount_native)
            shares = pair.mint(to, caller=self.address)
            self._refund_native(sender, value - amount_native)
        return amount, amount_native, shares

    def remove_liquidity(
        self,
        sender: str,
        asset_a: FungibleAsset,
        asset_b: FungibleAsset,
        shares: int,
        min_a: int,
        min_b: int,
        to: str,
        deadline: int,
    ) -> tuple[int, int]:
        """Burn the sender's shares and pay both assets to `to`.

        Returns:
            (amount_a, amount_b) in the caller's asset order
        """
        self._ensure(deadline)
        with self.chain.transaction():
            return self._remove_liquidity(sender, asset_a, asset_b, shares, min_a, min_b, to)

    def remove_liquidity_native(
        self,
        sender: str,
        asset: FungibleAsset,
        shares: int,
        min_amount: int,
        min_native: int,
        to: str,
        deadline: int,
    ) -> tuple[int, int]:
        """Remove liquidity from an asset/native pair, unwrapping the native side.

        Returns:
            (amount, amount_native)
        """
        self._ensure(deadline)
        with self.chain.transaction():
            amount, amount_native = self._remove_liquidity(
                sender, asset, self.wrapped_native, shares, min_amount, min_native, self.address
            )
            asset.transfer(self.address, to, amount)
            self._pay_native(to, amount_native)
        return amount, amount_native

    def remove_liquidity_native_supporting_fee(
        self,
        sender: str,
        asset: FungibleAsset,
        shares: int,
        min_amount: int,
        min_native: int,
        to: str,
        deadline: int,
    ) -> int:
        """Like remove_liquidity_native, for assets that charge a transfer fee.

        The asset side forwarded to `to` is whatever the router actually
        received, not the amount the pair reported.

        Returns:
            Native amount paid to `to`
        """
        self._ensure(deadline)
        with self.chain.transaction():
            _, amount_native = self._remove_liquidity(
                sender, asset, self.wrapped_native, shares, min_amount, min_native, self.address
            )
            asset.transfer(self.address, to, asset.balance_of(self.address))
            self._pay_native(to, amount_native)
        return amount_native

    # =========================================================================
    # Swaps
    # =========================================================================

    def swap_exact_input(
        self,
        sender: str,
        amount_in: int,
        min_amount_out: int,
        path: Path,
        to: str,
        deadline: int,
    ) -> list[int]:
        """Sell exactly amount_in of path[0] for at least min_amount_out of path[-1].

        Returns:
            Amounts along the path
        """
        self._ensure(deadline)
        with self.chain.transaction():
            amounts = self.get_amounts_out(amount_in, path)
            self._check_min_output(amounts[-1], min_amount_out)
            self._pay_first_pair(sender, path, amounts[0])
            self._swap(amounts, path, to)
        return amounts

    def swap_exact_output(
        self,
        sender: str,
        amount_out: int,
        max_amount_in: int,
        path: Path,
        to: str,
        deadline: int,
    ) -> list[int]:
        """Buy exactly amount_out of path[-1] for at most max_amount_in of path[0].

        Returns:
            Amounts along the path
        """
        self._ensure(deadline)
        with self.chain.transaction():
            amounts = self.get_amounts_in(amount_out, path)
            self._check_max_input(amounts[0], max_amount_in)
            self._pay_first_pair(sender, path, amounts[0])
            self._swap(amounts, path, to)
        return amounts

    def swap_exact_native_for_tokens(
        self,
        sender: str,
        min_amount_out: int,
        path: Path,
        to: str,
        deadline: int,
        value: int,
    ) -> list[int]:
        """Sell exactly `value` native currency along a path starting at the wrapper."""
        self._ensure(deadline)
        self._check_starts_native(path)
        with self.chain.transaction():
            self._receive_native(sender, value)
            amounts = self.get_amounts_out(value, path)
            self._check_min_output(amounts[-1], min_amount_out)
            self._wrap_into(self._first_pair(path), amounts[0])
            self._swap(amounts, path, to)
        return amounts

    def swap_tokens_for_exact_native(
        self,
        sender: str,
        amount_out: int,
        max_amount_in: int,
        path: Path,
        to: str,
        deadline: int,
    ) -> list[int]:
        """Buy exactly amount_out native currency along a path ending at the wrapper."""
        self._ensure(deadline)
        self._check_ends_native(path)
        with self.chain.transaction():
            amounts = self.get_amounts_in(amount_out, path)
            self._check_max_input(amounts[0], max_amount_in)
            self._pay_first_pair(sender, path, amounts[0])
            self._swap(amounts, path, self.address)
            self._pay_native(to, amounts[-1])
        return amounts

    def swap_exact_tokens_for_native(
        self,
        sender: str,
        amount_in: int,
        min_amount_out: int,
        path: Path,
        to: str,
        deadline: int,
    ) -> list[int]:
        """Sell exactly amount_in of path[0] for native currency."""
        self._ensure(deadline)
        self._check_ends_native(path)
        with self.chain.transaction():
            amounts = self.get_amounts_out(amount_in, path)
            self._check_min_output(amounts[-1], min_amount_out)
            self._pay_first_pair(sender, path, amounts[0])
            self._swap(amounts, path, self.address)
            self._pay_native(to, amounts[-1])
        return amounts

    def swap_native_for_exact_tokens(
        self,
        sender: str,
        amount_out: int,
        path: Path,
        to: str,
        deadline: int,
        value: int,
    ) -> list[int]:
        """Buy exactly amount_out of path[-1] paying at most `value` native currency."""
        self._ensure(deadline)
        self._check_starts_native(path)
        with self.chain.transaction():
            self._receive_native(sender, value)
            amounts = self.get_amounts_in(amount_out, path)
            self._check_max_input(amounts[0], value)
            self._wrap_into(self._first_pair(path), amounts[0])
            self._swap(amounts, path, to)
            self._refund_native(sender, value - amounts[0])
        return amounts

    # --- Fee-on-transfer variants ---

    def swap_exact_input_supporting_fee(
        self,
        sender: str,
        amount_in: int,
        min_amount_out: int,
        path: Path,
        to: str,
        deadline: int,
    ) -> int:
        """Sell exactly amount_in of path[0], measuring what each pair actually receives.

        Returns:
            Amount of path[-1] actually received by `to`
        """
        self._ensure(deadline)
        with self.chain.transaction():
            self._pay_first_pair(sender, path, amount_in)
            balance_before = path[-1].balance_of(to)
            self._swap_supporting_fee(path, to)
            received = path[-1].balance_of(to) - balance_before
            self._check_min_output(received, min_amount_out)
        return received

    def swap_exact_native_for_tokens_supporting_fee(
        self,
        sender: str,
        min_amount_out: int,
        path: Path,
        to: str,
        deadline: int,
        value: int,
    ) -> int:
        """Sell exactly `value` native currency into a path with fee-charging assets.

        Returns:
            Amount of path[-1] actually received by `to`
        """
        self._ensure(deadline)
        self._check_starts_native(path)
        with self.chain.transaction():
            self._receive_native(sender, value)
            self._wrap_into(self._first_pair(path), value)
            balance_before = path[-1].balance_of(to)
            self._swap_supporting_fee(path, to)
            received = path[-1].balance_of(to) - balance_before
            self._check_min_output(received, min_amount_out)
        return received

    def swap_exact_tokens_for_native_supporting_fee(
        self,
        sender: str,
        amount_in: int,
        min_amount_out: int,
        path: Path,
        to: str,
        deadline: int,
    ) -> int:
        """Sell exactly amount_in of a fee-charging asset for native currency.

        Returns:
            Native amount paid to `to`
        """
        self._ensure(deadline)
        self._check_ends_native(path)
        with self.chain.transaction():
            self._pay_first_pair(sender, path, amount_in)
            self._swap_supporting_fee(path, self.address)
            amount_out = self.wrapped_native.balance_of(self.address)
            self._check_min_output(amount_out, min_amount_out)
            self._pay_native(to, amount_out)
        return amount_out

    # =========================================================================
    # Internals
    # =========================================================================

    def _ensure(self, deadline: int) -> None:
        if self.chain.timestamp > deadline:
            raise Expired(f"Deadline {deadline} passed at {self.chain.timestamp}")

    def _add_liquidity(
        self,
        asset_a: FungibleAsset,
        asset_b: FungibleAsset,
        desired_a: int,
        desired_b: int,
        min_a: int,
        min_b: int,
    ) -> tuple[int, int]:
        """Pick deposit amounts that match the pair's current price.

        Tries to use all of desired_a; if that needs more B than desired_b,
        uses all of desired_b instead. The counter amount must respect the
        caller's minimum.
        """
        pair = self.registry.get_pair(asset_a, asset_b)
        if pair is None:
            pair = self.registry.create_pair(asset_a, asset_b)
        reserve_a, reserve_b = pair.get_reserves_for(asset_address(asset_a))
        if reserve_a == 0 and reserve_b == 0:
            return desired_a, desired_b

        optimal_b = self.amm.quote(desired_a, reserve_a, reserve_b)
        if optimal_b <= desired_b:
            if optimal_b < min_b:
                raise InsufficientBAmount(f"Optimal B amount {optimal_b} below minimum {min_b}")
            return desired_a, optimal_b

        optimal_a = self.amm.quote(desired_b, reserve_b, reserve_a)
        if optimal_a > desired_a or optimal_a < min_a:
            raise InsufficientAAmount(
                f"Optimal A amount {optimal_a} outside [{min_a}, {desired_a}]"
            )
        return optimal_a, desired_b

    def _remove_liquidity(
        self,
        sender: str,
        asset_a: FungibleAsset,
        asset_b: FungibleAsset,
        shares: int,
        min_a: int,
        min_b: int,
        to: str,
    ) -> tuple[int, int]:
        pair = pair_for(self.registry, asset_a, asset_b)
        pair.transfer_from(self.address, sender, pair.address, shares)
        amount_first, amount_second = pair.burn(to, caller=self.address)
        if asset_address(asset_a) == pair.asset_a.address:
            amount_a, amount_b = amount_first, amount_second
        else:
            amount_a, amount_b = amount_second, amount_first
        if amount_a < min_a:
            raise InsufficientAAmount(f"Received {amount_a} of A, minimum {min_a}")
        if amount_b < min_b:
            raise InsufficientBAmount(f"Received {amount_b} of B, minimum {min_b}")
        logger.debug(
            "liquidity_removed",
            pair=pair.address[-8:],
            shares=shares,
            amount_a=amount_a,
            amount_b=amount_b,
        )
        return amount_a, amount_b

    def _swap(self, amounts: list[int], path: Path, to: str) -> None:
        """Execute precomputed hops; each pair pays the next one directly."""
        for i, (asset_in, asset_out) in enumerate(zip(path, path[1:])):
            pair = pair_for(self.registry, asset_in, asset_out)
            amount_out = amounts[i + 1]
            if asset_address(asset_in) == pair.asset_a.address:
                amount_a_out, amount_b_out = 0, amount_out
            else:
                amount_a_out, amount_b_out = amount_out, 0
            recipient = self._hop_recipient(path, i, to)
            pair.swap(amount_a_out, amount_b_out, recipient, caller=self.address)
        logger.debug(
            "route_executed",
            hops=len(path) - 1,
            amount_in=amounts[0],
            amount_out=amounts[-1],
        )

    def _swap_supporting_fee(self, path: Path, to: str) -> None:
        """Execute hops sized by the input each pair actually received."""
        for i, (asset_in, asset_out) in enumerate(zip(path, path[1:])):
            pair = pair_for(self.registry, asset_in, asset_out)
            reserve_in, reserve_out = pair.get_reserves_for(asset_address(asset_in))
            amount_in = asset_in.balance_of(pair.address) - reserve_in
            amount_out = self.amm.get_amount_out(amount_in, reserve_in, reserve_out)
            if asset_address(asset_in) == pair.asset_a.address:
                amount_a_out, amount_b_out = 0, amount_out
            else:
                amount_a_out, amount_b_out = amount_out, 0
            recipient = self._hop_recipient(path, i, to)
            pair.swap(amount_a_out, amount_b_out, recipient, caller=self.address)

    def _pay_first_pair(self, sender: str, path: Path, amount: int) -> None:
        path[0].transfer_from(self.address, sender, self._first_pair(path).address, amount)

    def _hop_recipient(self, path: Path, hop: int, to: str) -> str:
        """Next pair on the path, or the final recipient after the last hop."""
        if hop < len(path) - 2:
            return pair_for(self.registry, path[hop + 1], path[hop + 2]).address
        return to

    def _first_pair(self, path: Path) -> ReservePair:
        if len(path) < 2:
            raise InvalidPath(f"Path needs at least two assets, got {len(path)}")
        return pair_for(self.registry, path[0], path[1])

    def _check_starts_native(self, path: Path) -> None:
        if not path or asset_address(path[0]) != self.wrapped_native.address:
            raise InvalidPath("Path must start with the wrapped native asset")

    def _check_ends_native(self, path: Path) -> None:
        if not path or asset_address(path[-1]) != self.wrapped_native.address:
            raise InvalidPath("Path must end with the wrapped native asset")

    @staticmethod
    def _check_min_output(amount_out: int, min_amount_out: int) -> None:
        if amount_out < min_amount_out:
            raise InsufficientOutput(f"Output {amount_out} below minimum {min_amount_out}")

    @staticmethod
    def _check_max_input(amount_in: int, max_amount_in: int) -> None:
        if amount_in > max_amount_in:
            raise ExcessiveInputAmount(f"Input {amount_in} above maximum {max_amount_in}")

    def _receive_native(self, sender: str, value: int) -> None:
        if value:
            self.native.transfer(sender, self.address, value)

    def _refund_native(self, recipient: str, amount: int) -> None:
        if amount > 0:
            self.native.transfer(self.address, recipient, amount)

    def _wrap_into(self, pair: ReservePair, amount: int) -> None:
        self.wrapped_native.deposit(self.address, amount)
        self.wrapped_native.transfer(self.address, pair.address, amount)

    def _pay_native(self, to: str, amount: int) -> None:
        self.wrapped_native.withdraw(self.address, amount)
        self.native.transfer(self.address, to, amount)


__all__ = ["Router"]
