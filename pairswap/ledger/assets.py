"""Fungible asset bookkeeping.

The pair and router only talk to assets through the `FungibleAsset`
protocol. `Token` is the plain balance/allowance ledger; the other classes
are the variants the router has to cope with: an asset that deducts a fee
on every transfer, the native currency, and its wrapped form.

The acting account is always passed explicitly (`sender`, `spender`).
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import structlog

from pairswap.constants import UINT256_MAX, ZERO_ADDRESS
from pairswap.errors import AssetError, InsufficientAllowance, InsufficientBalance
from pairswap.ledger.chain import Chain
from pairswap.models.events import ApprovalEvent, TransferEvent
from pairswap.models.types import normalize_address

logger = structlog.get_logger()


@runtime_checkable
class FungibleAsset(Protocol):
    """Narrow asset interface consumed by pairs and the router."""

    address: str

    @property
    def total_supply(self) -> int: ...

    def balance_of(self, holder: str) -> int: ...

    def transfer(self, sender: str, recipient: str, amount: int) -> bool: ...

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> bool: ...


def asset_address(asset: FungibleAsset | str) -> str:
    """Normalized address of an asset given as object or address."""
    if isinstance(asset, str):
        return normalize_address(asset)
    return normalize_address(asset.address)


class Token:
    """Balance and allowance ledger for one fungible asset."""

    def __init__(
        self,
        chain: Chain,
        name: str,
        symbol: str,
        decimals: int = 18,
        address: str | None = None,
    ) -> None:
        self.chain = chain
        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        self.address = normalize_address(address or chain.new_address(symbol))
        self._balances: dict[str, int] = {}
        self._allowances: dict[tuple[str, str], int] = {}
        self._total_supply = 0
        chain.deploy(self)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.symbol}@{self.address[-8:]})"

    # --- Stateful ---

    def snapshot(self) -> tuple[dict[str, int], dict[tuple[str, str], int], int]:
        return dict(self._balances), dict(self._allowances), self._total_supply

    def restore(self, state: tuple[dict[str, int], dict[tuple[str, str], int], int]) -> None:
        balances, allowances, total_supply = state
        self._balances = dict(balances)
        self._allowances = dict(allowances)
        self._total_supply = total_supply

    # --- Reads ---

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, holder: str) -> int:
        return self._balances.get(normalize_address(holder), 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((normalize_address(owner), normalize_address(spender)), 0)

    # --- Writes ---

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        owner, spender = normalize_address(owner), normalize_address(spender)
        self._allowances[(owner, spender)] = amount
        self.chain.emit(
            ApprovalEvent(emitter=self.address, owner=owner, spender=spender, amount=amount)
        )
        return True

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        self._move(normalize_address(sender), normalize_address(recipient), amount)
        return True

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> bool:
        """Move `amount` from owner to recipient using spender's allowance.

        An allowance of 2^256-1 is treated as infinite and never decremented.

        Raises:
            InsufficientAllowance: If the allowance is below amount
            InsufficientBalance: If owner's balance is below amount
        """
        owner_norm, spender_norm = normalize_address(owner), normalize_address(spender)
        allowed = self._allowances.get((owner_norm, spender_norm), 0)
        if allowed < amount:
            raise InsufficientAllowance(
                f"{self.symbol}: allowance {allowed} of {spender_norm} is below {amount}"
            )
        self._move(owner_norm, normalize_address(recipient), amount)
        if allowed != UINT256_MAX:
            self._allowances[(owner_norm, spender_norm)] = allowed - amount
        return True

    def mint(self, recipient: str, amount: int) -> None:
        """Create new units for recipient."""
        self._mint(recipient, amount)

    def burn(self, holder: str, amount: int) -> None:
        """Destroy units held by holder.

        Raises:
            InsufficientBalance: If holder's balance is below amount
        """
        self._burn(holder, amount)

    def _mint(self, recipient: str, amount: int) -> None:
        if amount < 0:
            raise AssetError(f"{self.symbol}: cannot mint negative amount {amount}")
        recipient = normalize_address(recipient)
        self._balances[recipient] = self._balances.get(recipient, 0) + amount
        self._total_supply += amount
        self.chain.emit(
            TransferEvent(
                emitter=self.address, sender=ZERO_ADDRESS, recipient=recipient, amount=amount
            )
        )

    def _burn(self, holder: str, amount: int) -> None:
        holder = normalize_address(holder)
        balance = self._balances.get(holder, 0)
        if balance < amount:
            raise InsufficientBalance(
                f"{self.symbol}: balance {balance} of {holder} below {amount}"
            )
        self._balances[holder] = balance - amount
        self._total_supply -= amount
        self.chain.emit(
            TransferEvent(
                emitter=self.address, sender=holder, recipient=ZERO_ADDRESS, amount=amount
            )
        )

    def _move(self, sender: str, recipient: str, amount: int) -> int:
        """Debit sender and credit recipient, returning the amount credited."""
        if amount < 0:
            raise AssetError(f"{self.symbol}: cannot transfer negative amount {amount}")
        balance = self._balances.get(sender, 0)
        if balance < amount:
            raise InsufficientBalance(
                f"{self.symbol}: balance {balance} of {sender} below {amount}"
            )
        self._balances[sender] = balance - amount
        self._balances[recipient] = self._balances.get(recipient, 0) + amount
        self.chain.emit(
            TransferEvent(emitter=self.address, sender=sender, recipient=recipient, amount=amount)
        )
        return amount


class FeeOnTransferToken(Token):
    """Token that burns a fixed share of every transfer.

    Recipients receive `amount - amount * fee_bps // 10000`; mint and burn
    are not charged.
    """

    def __init__(
        self,
        chain: Chain,
        name: str,
        symbol: str,
        fee_bps: int = 100,
        decimals: int = 18,
        address: str | None = None,
    ) -> None:
        if not 0 <= fee_bps < 10_000:
            raise ValueError(f"fee_bps must be in [0, 10000): {fee_bps}")
        self.fee_bps = fee_bps
        super().__init__(chain, name, symbol, decimals=decimals, address=address)

    def transfer_fee(self, amount: int) -> int:
        return amount * self.fee_bps // 10_000

    def _move(self, sender: str, recipient: str, amount: int) -> int:
        fee = self.transfer_fee(amount)
        received = super()._move(sender, recipient, amount)
        if fee:
            self._burn(recipient, fee)
        return received - fee


class NativeCurrency(Token):
    """Native balances of accounts; moved only by their holder."""

    def __init__(self, chain: Chain, symbol: str = "ETH") -> None:
        super().__init__(chain, "Native currency", symbol)

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> bool:
        raise AssetError("Native currency cannot be moved on behalf of another account")


class WrappedNative(Token):
    """Fungible wrapper over the native currency (1:1, fully backed)."""

    def __init__(
        self,
        chain: Chain,
        native: NativeCurrency,
        name: str = "Wrapped Ether",
        symbol: str = "WETH",
    ) -> None:
        self.native = native
        super().__init__(chain, name, symbol)

    def deposit(self, sender: str, amount: int) -> None:
        """Lock `amount` of native currency and mint the same wrapped amount."""
        self.native.transfer(sender, self.address, amount)
        self.mint(sender, amount)
        logger.debug("native_wrapped", holder=sender[-8:], amount=amount)

    def withdraw(self, sender: str, amount: int) -> None:
        """Burn `amount` wrapped units and release the native currency."""
        self.burn(sender, amount)
        self.native.transfer(self.address, sender, amount)
        logger.debug("native_unwrapped", holder=sender[-8:], amount=amount)


__all__ = [
    "FungibleAsset",
    "asset_address",
    "Token",
    "FeeOnTransferToken",
    "NativeCurrency",
    "WrappedNative",
]
