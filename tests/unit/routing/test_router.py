"""Tests for the router's liquidity and swap operations."""

import pytest

from pairswap.errors import (
    ExcessiveInputAmount,
    Expired,
    InsufficientAAmount,
    InsufficientBAmount,
    InsufficientLiquidityMinted,
    InsufficientOutput,
    InvalidPath,
    InvariantViolation,
)
from pairswap.routing.library import get_amounts_in, get_amounts_out
from tests.helpers import DEADLINE, E18, UNLIMITED


def add(router, sender, asset_x, asset_y, amount_x, amount_y):
    return router.add_liquidity(
        sender, asset_x, asset_y, amount_x, amount_y, 0, 0, sender, DEADLINE
    )


class TestAddLiquidity:
    """Tests for deposits through the router."""

    def test_creates_pair_on_first_deposit(self, router, registry, funded_alice, token_a, token_b):
        used_a, used_b, shares = add(router, funded_alice, token_a, token_b, 5 * E18, 20 * E18)

        pair = registry.get_pair(token_a, token_b)
        assert (used_a, used_b) == (5 * E18, 20 * E18)
        assert shares == 9999999999999999000
        assert pair.balance_of(funded_alice) == shares
        assert pair.get_reserves_for(token_a.address) == (5 * E18, 20 * E18)

    def test_uses_all_of_a_when_b_suffices(self, router, funded_alice, token_a, token_b):
        add(router, funded_alice, token_a, token_b, 5 * E18, 20 * E18)
        used_a, used_b, _ = add(router, funded_alice, token_a, token_b, 1 * E18, 10 * E18)
        assert (used_a, used_b) == (1 * E18, 4 * E18)

    def test_uses_all_of_b_otherwise(self, router, funded_alice, token_a, token_b):
        add(router, funded_alice, token_a, token_b, 5 * E18, 20 * E18)
        used_a, used_b, _ = add(router, funded_alice, token_a, token_b, 2 * E18, 4 * E18)
        assert (used_a, used_b) == (1 * E18, 4 * E18)

    def test_min_b_not_met(self, router, funded_alice, token_a, token_b):
        add(router, funded_alice, token_a, token_b, 5 * E18, 20 * E18)
        with pytest.raises(InsufficientBAmount):
            router.add_liquidity(
                funded_alice, token_a, token_b, 1 * E18, 10 * E18, 0, 5 * E18,
                funded_alice, DEADLINE,
            )

    def test_min_a_not_met(self, router, funded_alice, token_a, token_b):
        add(router, funded_alice, token_a, token_b, 5 * E18, 20 * E18)
        balance_before = token_a.balance_of(funded_alice)
        with pytest.raises(InsufficientAAmount):
            router.add_liquidity(
                funded_alice, token_a, token_b, 2 * E18, 4 * E18, 2 * E18, 0,
                funded_alice, DEADLINE,
            )
        assert token_a.balance_of(funded_alice) == balance_before

    def test_expired(self, chain, router, funded_alice, token_a, token_b):
        with pytest.raises(Expired):
            router.add_liquidity(
                funded_alice, token_a, token_b, 1 * E18, 1 * E18, 0, 0,
                funded_alice, chain.timestamp - 1,
            )

    def test_failed_first_deposit_does_not_leave_pair(
        self, router, registry, funded_alice, token_a, token_b
    ):
        """Pair creation is rolled back with the rest of the call."""
        with pytest.raises(InsufficientLiquidityMinted):
            add(router, funded_alice, token_a, token_b, 1000, 1000)
        assert registry.get_pair(token_a, token_b) is None


class TestRemoveLiquidity:
    """Tests for withdrawals through the router."""

    @pytest.fixture
    def position(self, router, registry, funded_alice, token_a, token_b):
        _, _, shares = add(router, funded_alice, token_a, token_b, 5 * E18, 20 * E18)
        pair = registry.get_pair(token_a, token_b)
        pair.approve(funded_alice, router.address, UNLIMITED)
        return pair, shares

    def test_remove_all(self, router, funded_alice, bob, token_a, token_b, position):
        pair, shares = position
        amounts = router.remove_liquidity(
            funded_alice, token_a, token_b, shares, 0, 0, bob, DEADLINE
        )

        assert amounts == (5 * E18 - 500, 20 * E18 - 2000)
        assert token_a.balance_of(bob) == 5 * E18 - 500
        assert pair.balance_of(funded_alice) == 0

    def test_amounts_in_caller_order(self, router, funded_alice, bob, token_a, token_b, position):
        _, shares = position
        amounts = router.remove_liquidity(
            funded_alice, token_b, token_a, shares, 0, 0, bob, DEADLINE
        )
        assert amounts == (20 * E18 - 2000, 5 * E18 - 500)

    def test_min_not_met_rolls_back(self, router, funded_alice, bob, token_a, token_b, position):
        pair, shares = position
        with pytest.raises(InsufficientAAmount):
            router.remove_liquidity(
                funded_alice, token_a, token_b, shares, 5 * E18, 0, bob, DEADLINE
            )
        assert pair.balance_of(funded_alice) == shares
        assert token_a.balance_of(bob) == 0


class TestSwaps:
    """Tests for exact-input and exact-output swaps."""

    @pytest.fixture
    def pool(self, router, funded_alice, token_a, token_b):
        add(router, funded_alice, token_a, token_b, 55 * E18, 220 * E18)

    def test_exact_input(self, router, funded_alice, bob, token_a, token_b, pool):
        amounts = router.swap_exact_input(
            funded_alice, 40 * E18, 0, [token_a, token_b], bob, DEADLINE
        )
        assert amounts == [40 * E18, 92470489038785834738]
        assert token_b.balance_of(bob) == 92470489038785834738

    def test_exact_input_slippage(self, router, funded_alice, bob, token_a, token_b, pool):
        balance_before = token_a.balance_of(funded_alice)
        with pytest.raises(InsufficientOutput):
            router.swap_exact_input(
                funded_alice, 40 * E18, 92470489038785834739, [token_a, token_b], bob, DEADLINE
            )
        assert token_a.balance_of(funded_alice) == balance_before

    def test_exact_output(self, router, funded_alice, bob, token_a, token_b, pool):
        balance_before = token_b.balance_of(funded_alice)
        amounts = router.swap_exact_output(
            funded_alice, 21 * E18, 200 * E18, [token_b, token_a], bob, DEADLINE
        )
        assert amounts == [136291226621039589357, 21 * E18]
        assert token_a.balance_of(bob) == 21 * E18
        assert balance_before - token_b.balance_of(funded_alice) == 136291226621039589357

    def test_exact_output_max_input(self, router, funded_alice, bob, token_a, token_b, pool):
        with pytest.raises(ExcessiveInputAmount):
            router.swap_exact_output(
                funded_alice, 21 * E18, 136291226621039589356, [token_b, token_a], bob, DEADLINE
            )

    def test_expired(self, chain, router, funded_alice, bob, token_a, token_b, pool):
        with pytest.raises(Expired):
            router.swap_exact_input(
                funded_alice, 1 * E18, 0, [token_a, token_b], bob, chain.timestamp - 1
            )

    def test_deadline_is_inclusive(self, chain, router, funded_alice, bob, token_a, token_b, pool):
        router.swap_exact_input(funded_alice, 1 * E18, 0, [token_a, token_b], bob, chain.timestamp)

    def test_shared_deadline_survives_32_bit_clock(
        self, chain, router, funded_alice, bob, token_a, token_b, pool
    ):
        """Deadlines are full-width; only pair timestamps wrap at 2**32."""
        chain.advance(2**32)
        router.swap_exact_input(funded_alice, 1 * E18, 0, [token_a, token_b], bob, DEADLINE)
        assert token_b.balance_of(bob) > 0


class TestMultiHop:
    """Tests for routes through more than one pair."""

    @pytest.fixture
    def route(self, router, funded_alice, token_a, token_b, token_c):
        add(router, funded_alice, token_a, token_b, 100 * E18, 200 * E18)
        add(router, funded_alice, token_b, token_c, 300 * E18, 300 * E18)
        return [token_a, token_b, token_c]

    def test_exact_input_two_hops(self, router, registry, funded_alice, bob, token_c, route):
        expected = get_amounts_out(registry, 1 * E18, route)
        amounts = router.swap_exact_input(funded_alice, 1 * E18, 0, route, bob, DEADLINE)

        assert amounts == expected
        assert token_c.balance_of(bob) == expected[-1]

    def test_intermediate_asset_never_touches_router(
        self, router, registry, funded_alice, bob, token_b, route
    ):
        router.swap_exact_input(funded_alice, 1 * E18, 0, route, bob, DEADLINE)

        assert token_b.balance_of(router.address) == 0
        assert token_b.balance_of(bob) == 0
        for pair in registry.all_pairs:
            reserve_a, reserve_b, _ = pair.get_reserves()
            assert reserve_a == pair.asset_a.balance_of(pair.address)
            assert reserve_b == pair.asset_b.balance_of(pair.address)

    def test_exact_output_two_hops(self, router, registry, funded_alice, bob, token_c, route):
        expected = get_amounts_in(registry, 2 * E18, route)
        amounts = router.swap_exact_output(
            funded_alice, 2 * E18, expected[0], route, bob, DEADLINE
        )
        assert amounts == expected
        assert token_c.balance_of(bob) == 2 * E18

    def test_missing_hop(self, router, funded_alice, bob, token_a, token_c, route):
        with pytest.raises(InvalidPath):
            router.swap_exact_input(funded_alice, 1 * E18, 0, [token_a, token_c], bob, DEADLINE)


class TestNative:
    """Tests for operations that wrap and unwrap the native currency."""

    @pytest.fixture
    def native_pool(self, router, funded_alice, token_a):
        router.add_liquidity_native(
            funded_alice, token_a, 10 * E18, 0, 0, funded_alice, DEADLINE, value=20 * E18
        )

    def test_add_liquidity_native_refunds_unused(
        self, router, registry, native, weth, funded_alice, token_a, native_pool
    ):
        native_before = native.balance_of(funded_alice)
        used, used_native, shares = router.add_liquidity_native(
            funded_alice, token_a, 1 * E18, 0, 0, funded_alice, DEADLINE, value=5 * E18
        )

        assert (used, used_native) == (1 * E18, 2 * E18)
        assert shares > 0
        assert native_before - native.balance_of(funded_alice) == 2 * E18
        assert native.balance_of(router.address) == 0
        assert registry.get_pair(token_a, weth).get_reserves_for(weth.address)[0] == 22 * E18

    def test_remove_liquidity_native(
        self, router, registry, native, weth, funded_alice, bob, token_a, native_pool
    ):
        pair = registry.get_pair(token_a, weth)
        shares = pair.balance_of(funded_alice)
        pair.approve(funded_alice, router.address, shares)

        amount, amount_native = router.remove_liquidity_native(
            funded_alice, token_a, shares, 0, 0, bob, DEADLINE
        )

        assert token_a.balance_of(bob) == amount
        assert native.balance_of(bob) == amount_native
        assert weth.balance_of(bob) == 0

    def test_exact_native_for_tokens(
        self, router, native, weth, funded_alice, bob, token_a, native_pool
    ):
        amounts = router.swap_exact_native_for_tokens(
            funded_alice, 0, [weth, token_a], bob, DEADLINE, value=1 * E18
        )
        assert token_a.balance_of(bob) == amounts[-1]
        assert amounts[-1] == router.get_amount_out(1 * E18, 20 * E18, 10 * E18)

    def test_native_for_exact_tokens_refunds(
        self, router, native, weth, funded_alice, bob, token_a, native_pool
    ):
        native_before = native.balance_of(funded_alice)
        amounts = router.swap_native_for_exact_tokens(
            funded_alice, 1 * E18, [weth, token_a], bob, DEADLINE, value=5 * E18
        )

        assert token_a.balance_of(bob) == 1 * E18
        assert native_before - native.balance_of(funded_alice) == amounts[0]

    def test_exact_tokens_for_native(
        self, router, native, weth, funded_alice, bob, token_a, native_pool
    ):
        amounts = router.swap_exact_tokens_for_native(
            funded_alice, 1 * E18, 0, [token_a, weth], bob, DEADLINE
        )
        assert native.balance_of(bob) == amounts[-1]
        assert weth.balance_of(router.address) == 0

    def test_tokens_for_exact_native(
        self, router, native, weth, funded_alice, bob, token_a, native_pool
    ):
        amounts = router.swap_tokens_for_exact_native(
            funded_alice, 1 * E18, 10 * E18, [token_a, weth], bob, DEADLINE
        )
        assert native.balance_of(bob) == 1 * E18
        assert amounts[-1] == 1 * E18

    def test_path_must_start_with_wrapper(self, router, funded_alice, bob, token_a, token_b):
        with pytest.raises(InvalidPath):
            router.swap_exact_native_for_tokens(
                funded_alice, 0, [token_a, token_b], bob, DEADLINE, value=1 * E18
            )

    def test_path_must_end_with_wrapper(self, router, funded_alice, bob, token_a, token_b):
        with pytest.raises(InvalidPath):
            router.swap_exact_tokens_for_native(
                funded_alice, 1 * E18, 0, [token_a, token_b], bob, DEADLINE
            )


class TestFeeOnTransfer:
    """Tests for assets that deduct a fee on every transfer."""

    @pytest.fixture
    def fee_pools(self, router, funded_alice, fee_token, token_a):
        add(router, funded_alice, fee_token, token_a, 1000 * E18, 1000 * E18)
        router.add_liquidity_native(
            funded_alice, fee_token, 1000 * E18, 0, 0, funded_alice, DEADLINE, value=100 * E18
        )

    def test_plain_swap_fails_and_rolls_back(
        self, router, funded_alice, bob, fee_token, token_a, fee_pools
    ):
        """Quoted for the full input, the pair sees 1% less."""
        balance_before = fee_token.balance_of(funded_alice)
        with pytest.raises(InvariantViolation):
            router.swap_exact_input(funded_alice, 1 * E18, 0, [fee_token, token_a], bob, DEADLINE)
        assert fee_token.balance_of(funded_alice) == balance_before

    def test_supporting_swap_measures_input(
        self, router, registry, funded_alice, bob, fee_token, token_a, fee_pools
    ):
        pair = registry.get_pair(fee_token, token_a)
        reserve_in, reserve_out = pair.get_reserves_for(fee_token.address)

        received = router.swap_exact_input_supporting_fee(
            funded_alice, 1 * E18, 0, [fee_token, token_a], bob, DEADLINE
        )

        arrived = 1 * E18 - fee_token.transfer_fee(1 * E18)
        assert received == router.get_amount_out(arrived, reserve_in, reserve_out)
        assert token_a.balance_of(bob) == received

    def test_supporting_swap_min_output(
        self, router, funded_alice, bob, fee_token, token_a, fee_pools
    ):
        with pytest.raises(InsufficientOutput):
            router.swap_exact_input_supporting_fee(
                funded_alice, 1 * E18, 1 * E18, [fee_token, token_a], bob, DEADLINE
            )

    def test_output_in_fee_token(self, router, funded_alice, bob, fee_token, token_a, fee_pools):
        """Received amount is net of the fee charged on the final transfer."""
        received = router.swap_exact_input_supporting_fee(
            funded_alice, 1 * E18, 0, [token_a, fee_token], bob, DEADLINE
        )
        assert fee_token.balance_of(bob) == received

    def test_native_for_fee_token(self, router, weth, funded_alice, bob, fee_token, fee_pools):
        received = router.swap_exact_native_for_tokens_supporting_fee(
            funded_alice, 0, [weth, fee_token], bob, DEADLINE, value=1 * E18
        )
        assert received > 0
        assert fee_token.balance_of(bob) == received

    def test_fee_token_for_native(
        self, router, native, weth, funded_alice, bob, fee_token, fee_pools
    ):
        amount_out = router.swap_exact_tokens_for_native_supporting_fee(
            funded_alice, 10 * E18, 0, [fee_token, weth], bob, DEADLINE
        )
        assert native.balance_of(bob) == amount_out
        assert weth.balance_of(router.address) == 0

    def test_remove_liquidity_native_supporting_fee(
        self, router, registry, native, weth, funded_alice, bob, fee_token, fee_pools
    ):
        pair = registry.get_pair(fee_token, weth)
        shares = pair.balance_of(funded_alice)
        pair.approve(funded_alice, router.address, shares)

        amount_native = router.remove_liquidity_native_supporting_fee(
            funded_alice, fee_token, shares, 0, 0, bob, DEADLINE
        )

        assert native.balance_of(bob) == amount_native
        assert fee_token.balance_of(bob) > 0
        assert fee_token.balance_of(router.address) == 0
