"""Tests for reserve lookup and path quoting."""

import pytest

from pairswap.amm.constant_product import constant_product
from pairswap.errors import InvalidPath
from pairswap.routing.library import get_amounts_in, get_amounts_out, get_reserves, pair_for
from tests.helpers import E18, seed_pair


@pytest.fixture
def two_hops(registry, token_a, token_b, token_c, alice):
    """A/B at 1:2 and B/C at 1:1."""
    seed_pair(registry, token_a, token_b, 100 * E18, 200 * E18, alice)
    seed_pair(registry, token_b, token_c, 300 * E18, 300 * E18, alice)


class TestLookup:
    """Tests for pair and reserve resolution."""

    def test_pair_for_missing(self, registry, token_a, token_b):
        with pytest.raises(InvalidPath):
            pair_for(registry, token_a, token_b)

    def test_reserves_follow_argument_order(self, registry, token_a, token_b, two_hops):
        assert get_reserves(registry, token_a, token_b) == (100 * E18, 200 * E18)
        assert get_reserves(registry, token_b, token_a) == (200 * E18, 100 * E18)


class TestAmounts:
    """Tests for multi-hop amount chaining."""

    def test_amounts_out_chain_hops(self, registry, token_a, token_b, token_c, two_hops):
        amounts = get_amounts_out(registry, 1 * E18, [token_a, token_b, token_c])

        first = constant_product.get_amount_out(1 * E18, 100 * E18, 200 * E18)
        second = constant_product.get_amount_out(first, 300 * E18, 300 * E18)
        assert amounts == [1 * E18, first, second]

    def test_amounts_in_chain_hops(self, registry, token_a, token_b, token_c, two_hops):
        amounts = get_amounts_in(registry, 1 * E18, [token_a, token_b, token_c])

        middle = constant_product.get_amount_in(1 * E18, 300 * E18, 300 * E18)
        first = constant_product.get_amount_in(middle, 100 * E18, 200 * E18)
        assert amounts == [first, middle, 1 * E18]

    def test_quoted_input_covers_output(self, registry, token_a, token_b, token_c, two_hops):
        path = [token_a, token_b, token_c]
        amount_in = get_amounts_in(registry, 5 * E18, path)[0]
        assert get_amounts_out(registry, amount_in, path)[-1] >= 5 * E18

    @pytest.mark.parametrize("length", [0, 1])
    def test_short_path(self, registry, token_a, length):
        path = [token_a] * length
        with pytest.raises(InvalidPath):
            get_amounts_out(registry, 1, path)
        with pytest.raises(InvalidPath):
            get_amounts_in(registry, 1, path)

    def test_missing_hop(self, registry, token_a, token_c, two_hops):
        with pytest.raises(InvalidPath):
            get_amounts_out(registry, 1 * E18, [token_a, token_c])
