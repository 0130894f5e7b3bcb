"""Constant-product pricing.

Formula: x * y = k, with the fee charged on the input amount only.
All divisions truncate; get_amount_in adds one so a quoted input always
satisfies the pair's invariant check.
"""

from __future__ import annotations

from pairswap.amm.base import AMM
from pairswap.config import DEFAULT_ENGINE_CONFIG, EngineConfig
from pairswap.errors import (
    InsufficientAmount,
    InsufficientInputAmount,
    InsufficientLiquidity,
    InsufficientOutputAmount,
)
from pairswap.safe_int import S


class ConstantProduct(AMM):
    """Constant-product AMM math.

    Formula: amount_out = (amount_in * 997 * reserve_out) / (reserve_in * 1000 + amount_in * 997)

    The 997/1000 factor accounts for the 0.3% fee.
    """

    def __init__(self, config: EngineConfig = DEFAULT_ENGINE_CONFIG) -> None:
        self.config = config

    def quote(self, amount_a: int, reserve_a: int, reserve_b: int) -> int:
        """Equivalent amount of B at the current reserve ratio, without fee.

        Used to size the counter-asset of a liquidity deposit, never to
        price a trade.

        Raises:
            InsufficientAmount: If amount_a is zero
            InsufficientLiquidity: If either reserve is zero
        """
        if amount_a <= 0:
            raise InsufficientAmount("Quote amount must be positive")
        if reserve_a <= 0 or reserve_b <= 0:
            raise InsufficientLiquidity("Cannot quote against empty reserves")
        return (S(amount_a) * S(reserve_b) // S(reserve_a)).value

    def get_amount_out(self, amount_in: int, reserve_in: int, reserve_out: int) -> int:
        """Calculate output amount using constant product formula.

        Formula: amount_out = (in * fee_num * res_out) / (res_in * fee_den + in * fee_num)

        Raises:
            InsufficientInputAmount: If amount_in is zero
            InsufficientLiquidity: If either reserve is zero
        """
        if amount_in <= 0:
            raise InsufficientInputAmount("Swap input must be positive")
        if reserve_in <= 0 or reserve_out <= 0:
            raise InsufficientLiquidity("Cannot swap against empty reserves")

        amount_in_with_fee = S(amount_in) * S(self.config.fee_numerator)
        numerator = amount_in_with_fee * S(reserve_out)
        denominator = S(reserve_in) * S(self.config.fee_denominator) + amount_in_with_fee

        return (numerator // denominator).value

    def get_amount_in(self, amount_out: int, reserve_in: int, reserve_out: int) -> int:
        """Calculate required input for desired output.

        Formula: amount_in = (res_in * out * fee_den) / ((res_out - out) * fee_num) + 1

        Raises:
            InsufficientOutputAmount: If amount_out is zero
            InsufficientLiquidity: If either reserve is zero or amount_out
                would drain the output reserve
        """
        if amount_out <= 0:
            raise InsufficientOutputAmount("Swap output must be positive")
        if reserve_in <= 0 or reserve_out <= 0:
            raise InsufficientLiquidity("Cannot swap against empty reserves")
        if amount_out >= reserve_out:
            raise InsufficientLiquidity(
                f"Requested output {amount_out} not below reserve {reserve_out}"
            )

        numerator = S(reserve_in) * S(amount_out) * S(self.config.fee_denominator)
        denominator = (S(reserve_out) - S(amount_out)) * S(self.config.fee_numerator)

        return (numerator // denominator + 1).value


# Singleton instance
constant_product = ConstantProduct()


__all__ = ["ConstantProduct", "constant_product"]
