"""Pytest configuration and fixtures."""

import pytest

from pairswap.core.registry import PairRegistry
from pairswap.ledger.assets import FeeOnTransferToken, NativeCurrency, Token, WrappedNative
from pairswap.ledger.chain import Chain
from pairswap.routing.router import Router
from tests.helpers import fund


@pytest.fixture
def chain() -> Chain:
    """Fresh execution environment at the genesis timestamp."""
    return Chain()


@pytest.fixture
def owner(chain: Chain) -> str:
    """Account allowed to change the protocol fee settings."""
    return chain.new_address("owner")


@pytest.fixture
def alice(chain: Chain) -> str:
    return chain.new_address("alice")


@pytest.fixture
def bob(chain: Chain) -> str:
    return chain.new_address("bob")


@pytest.fixture
def token_a(chain: Chain) -> Token:
    return Token(chain, "Token A", "TKA")


@pytest.fixture
def token_b(chain: Chain) -> Token:
    return Token(chain, "Token B", "TKB")


@pytest.fixture
def token_c(chain: Chain) -> Token:
    return Token(chain, "Token C", "TKC")


@pytest.fixture
def fee_token(chain: Chain) -> FeeOnTransferToken:
    """Asset burning 1% of every transfer."""
    return FeeOnTransferToken(chain, "Fee Token", "FEE", fee_bps=100)


@pytest.fixture
def native(chain: Chain) -> NativeCurrency:
    return NativeCurrency(chain)


@pytest.fixture
def weth(chain: Chain, native: NativeCurrency) -> WrappedNative:
    return WrappedNative(chain, native)


@pytest.fixture
def registry(chain: Chain, owner: str) -> PairRegistry:
    return PairRegistry(chain, fee_to_setter=owner)


@pytest.fixture
def router(chain: Chain, registry: PairRegistry, weth: WrappedNative) -> Router:
    return Router(chain, registry, weth)


@pytest.fixture
def funded_alice(
    alice: str,
    router: Router,
    token_a: Token,
    token_b: Token,
    token_c: Token,
    fee_token: FeeOnTransferToken,
    native: NativeCurrency,
) -> str:
    """Alice holding every test asset, with the router approved for all of them."""
    fund(alice, token_a, token_b, token_c, fee_token, spender=router.address)
    native.mint(alice, 10_000 * 10**18)
    return alice
