"""Price oracles built on pair accumulators."""

from pairswap.oracle.twap import TwapOracle

__all__ = ["TwapOracle"]
