"""Flash swap borrower.

Borrows one asset from a pair and pays it back, plus the swap fee, inside
the pair's callback. The fee has to be funded up front: the borrower
transfers it out of its own balance.
"""

from __future__ import annotations

import structlog
from eth_abi import decode, encode  # type: ignore[attr-defined]

from pairswap.core.pair import ReservePair
from pairswap.core.registry import PairRegistry
from pairswap.errors import Forbidden
from pairswap.ledger.assets import FungibleAsset
from pairswap.ledger.chain import Chain
from pairswap.models.types import address_bytes, normalize_address
from pairswap.routing.library import pair_for
from pairswap.safe_int import S

logger = structlog.get_logger()

# Callback payload: (borrowed asset, borrowed amount, repayment)
CALLBACK_TYPES = ["address", "uint256", "uint256"]


class FlashBorrower:
    """Contract that borrows through `swap` callbacks and repays with the fee."""

    def __init__(self, chain: Chain, registry: PairRegistry) -> None:
        self.chain = chain
        self.registry = registry
        self.address = chain.new_address("flash-borrower")
        chain.deploy(self)

    def repayment_for(self, amount: int) -> int:
        """Amount to pay back for a loan of `amount`: amount + amount * 3 / 997 + 1."""
        config = self.registry.config
        fee = S(amount) * config.fee_complement // S(config.fee_numerator) + 1
        return amount + fee.value

    def flash_swap(
        self,
        asset_borrow: FungibleAsset,
        asset_other: FungibleAsset,
        amount: int,
        repay: int | None = None,
    ) -> None:
        """Borrow `amount` of asset_borrow from its pair with asset_other.

        Args:
            asset_borrow: Asset to borrow
            asset_other: Other asset of the pair
            amount: Amount to borrow
            repay: Amount to pay back; defaults to repayment_for(amount)
        """
        pair = pair_for(self.registry, asset_borrow, asset_other)
        if normalize_address(asset_borrow.address) == pair.asset_a.address:
            amount_a_out, amount_b_out = amount, 0
        else:
            amount_a_out, amount_b_out = 0, amount
        repay_amount = self.repayment_for(amount) if repay is None else repay
        data = encode(
            CALLBACK_TYPES, [address_bytes(asset_borrow.address), amount, repay_amount]
        )
        pair.swap(amount_a_out, amount_b_out, self.address, data, caller=self.address)

    def on_flash_swap(
        self,
        pair: ReservePair,
        caller: str,
        amount_a_out: int,
        amount_b_out: int,
        data: bytes,
    ) -> None:
        if normalize_address(caller) != self.address:
            raise Forbidden(f"Flash swap not initiated by this borrower: {caller}")
        if self.registry.get_pair(pair.asset_a, pair.asset_b) is not pair:
            raise Forbidden(f"Callback from unknown pair {pair.address}")

        asset_address, amount, repay = decode(CALLBACK_TYPES, data)
        if normalize_address(asset_address) == pair.asset_a.address:
            asset, borrowed = pair.asset_a, amount_a_out
        else:
            asset, borrowed = pair.asset_b, amount_b_out
        logger.debug(
            "flash_loan_received",
            pair=pair.address[-8:],
            asset=normalize_address(asset_address)[-8:],
            borrowed=borrowed,
            requested=amount,
            repay=repay,
        )
        asset.transfer(self.address, pair.address, repay)


__all__ = ["FlashBorrower", "CALLBACK_TYPES"]
