"""Reserve lookup and multi-hop quoting over registered pairs."""

from __future__ import annotations

from collections.abc import Sequence

from pairswap.amm.base import AMM
from pairswap.amm.constant_product import constant_product
from pairswap.core.pair import ReservePair
from pairswap.core.registry import PairRegistry
from pairswap.errors import InvalidPath
from pairswap.ledger.assets import FungibleAsset, asset_address

Path = Sequence[FungibleAsset]


def pair_for(
    registry: PairRegistry, asset_x: FungibleAsset | str, asset_y: FungibleAsset | str
) -> ReservePair:
    """Resolve the pair for two assets.

    Raises:
        InvalidPath: If no pair exists for them
    """
    pair = registry.get_pair(asset_x, asset_y)
    if pair is None:
        raise InvalidPath(f"No pair for {asset_address(asset_x)} / {asset_address(asset_y)}")
    return pair


def get_reserves(
    registry: PairRegistry, asset_in: FungibleAsset | str, asset_out: FungibleAsset | str
) -> tuple[int, int]:
    """Reserves of the pair for two assets, ordered as (reserve_in, reserve_out)."""
    return pair_for(registry, asset_in, asset_out).get_reserves_for(asset_address(asset_in))


def _check_path(path: Path) -> None:
    if len(path) < 2:
        raise InvalidPath(f"Path needs at least two assets, got {len(path)}")


def get_amounts_out(
    registry: PairRegistry,
    amount_in: int,
    path: Path,
    amm: AMM = constant_product,
) -> list[int]:
    """Amounts along `path` when selling exactly amount_in of path[0].

    Each hop's output is the next hop's input.

    Returns:
        List of len(path) amounts; amounts[0] == amount_in
    """
    _check_path(path)
    amounts = [amount_in]
    for asset_in, asset_out in zip(path, path[1:]):
        reserve_in, reserve_out = get_reserves(registry, asset_in, asset_out)
        amounts.append(amm.get_amount_out(amounts[-1], reserve_in, reserve_out))
    return amounts


def get_amounts_in(
    registry: PairRegistry,
    amount_out: int,
    path: Path,
    amm: AMM = constant_product,
) -> list[int]:
    """Amounts along `path` when buying exactly amount_out of path[-1].

    Sweeps backwards from the last hop, so every required input is rounded
    up before it becomes the previous hop's output.

    Returns:
        List of len(path) amounts; amounts[-1] == amount_out
    """
    _check_path(path)
    amounts = [0] * len(path)
    amounts[-1] = amount_out
    for i in range(len(path) - 1, 0, -1):
        reserve_in, reserve_out = get_reserves(registry, path[i - 1], path[i])
        amounts[i - 1] = amm.get_amount_in(amounts[i], reserve_in, reserve_out)
    return amounts


__all__ = ["Path", "pair_for", "get_reserves", "get_amounts_out", "get_amounts_in"]
