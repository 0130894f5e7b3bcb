"""Fixed-window time-weighted average price oracle over one pair.

The oracle keeps the pair's cumulative prices from its previous update.
On each update it refreshes the pair, and the difference between the two
cumulative readings divided by the elapsed time is the average price over
the window. Cumulative counters may have wrapped in between; modular
subtraction still yields the exact delta.

A manipulated price only moves the average in proportion to how long it
was held, and every window spans at least `period` seconds.
"""

from __future__ import annotations

import structlog

from pairswap.core.pair import ReservePair
from pairswap.errors import InsufficientLiquidity, InvalidAsset, PeriodNotElapsed
from pairswap.ledger.assets import FungibleAsset, asset_address
from pairswap.math.fixed_point import decode144, mul, truncate, wrapping_sub

logger = structlog.get_logger()


class TwapOracle:
    """Average price of a pair's assets over the last completed window.

    Attributes:
        price_a_cumulative_last: Pair's price_a cumulative at the last update
        price_b_cumulative_last: Pair's price_b cumulative at the last update
        timestamp_last: Pair timestamp (mod 2^32) at the last update
        price_a_average: Average price of asset_a in asset_b (UQ112x112)
        price_b_average: Average price of asset_b in asset_a (UQ112x112)
    """

    def __init__(self, pair: ReservePair, period: int = 1) -> None:
        """Start observing a pair.

        Args:
            pair: Pair to observe
            period: Minimum seconds between updates (at least 1)

        Raises:
            InsufficientLiquidity: If the pair has no reserves yet
        """
        if period < 1:
            raise ValueError(f"period must be at least 1 second: {period}")
        reserve_a, reserve_b, timestamp = pair.get_reserves()
        if reserve_a == 0 or reserve_b == 0:
            raise InsufficientLiquidity(f"Pair {pair.address} has no reserves")
        self.pair = pair
        self.period = period
        self.address = pair.chain.new_address("twap")
        self.price_a_cumulative_last = pair.price_a_cumulative_last
        self.price_b_cumulative_last = pair.price_b_cumulative_last
        self.timestamp_last = timestamp
        self.price_a_average = 0
        self.price_b_average = 0
        pair.chain.deploy(self)

    # --- Stateful ---

    def snapshot(self) -> tuple[int, int, int, int, int]:
        return (
            self.price_a_cumulative_last,
            self.price_b_cumulative_last,
            self.timestamp_last,
            self.price_a_average,
            self.price_b_average,
        )

    def restore(self, state: tuple[int, int, int, int, int]) -> None:
        (
            self.price_a_cumulative_last,
            self.price_b_cumulative_last,
            self.timestamp_last,
            self.price_a_average,
            self.price_b_average,
        ) = state

    # --- Operations ---

    def update(self) -> None:
        """Close the current window and compute its average prices.

        Raises:
            PeriodNotElapsed: If no time (or less than `period`) passed
                since the last update
        """
        chain = self.pair.chain
        with chain.transaction():
            self.pair.sync()
            price_a_cumulative = self.pair.price_a_cumulative_last
            price_b_cumulative = self.pair.price_b_cumulative_last
            _, _, timestamp = self.pair.get_reserves()

            elapsed = wrapping_sub(timestamp, self.timestamp_last, bits=32)
            if elapsed == 0 or elapsed < self.period:
                raise PeriodNotElapsed(
                    f"Only {elapsed}s elapsed since last update, period is {self.period}s"
                )

            self.price_a_average = truncate(
                wrapping_sub(price_a_cumulative, self.price_a_cumulative_last) // elapsed
            )
            self.price_b_average = truncate(
                wrapping_sub(price_b_cumulative, self.price_b_cumulative_last) // elapsed
            )
            self.price_a_cumulative_last = price_a_cumulative
            self.price_b_cumulative_last = price_b_cumulative
            self.timestamp_last = timestamp
        logger.info(
            "twap_updated",
            pair=self.pair.address[-8:],
            elapsed=elapsed,
            price_a_average=self.price_a_average,
            price_b_average=self.price_b_average,
        )

    def consult(self, asset: FungibleAsset | str, amount_in: int) -> int:
        """Convert amount_in of `asset` to the other asset at the average price.

        Raises:
            InvalidAsset: If asset is not part of the pair
        """
        address = asset_address(asset)
        if address == self.pair.asset_a.address:
            return decode144(mul(self.price_a_average, amount_in))
        if address == self.pair.asset_b.address:
            return decode144(mul(self.price_b_average, amount_in))
        raise InvalidAsset(f"Asset {address} not in observed pair")


__all__ = ["TwapOracle"]
