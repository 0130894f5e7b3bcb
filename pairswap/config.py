"""Engine configuration."""

import os
from dataclasses import dataclass

from pairswap.constants import (
    FEE_DENOMINATOR,
    FEE_NUMERATOR,
    MINIMUM_SHARES,
    PROTOCOL_FEE_DIVISOR,
)


@dataclass(frozen=True)
class EngineConfig:
    """Centralized configuration for pair and router arithmetic.

    The defaults reproduce the canonical 0.3% constant-product pool and
    must not be changed for deployments that need bit-exact quotes.

    Attributes:
        fee_numerator: Share of the input kept after the swap fee (997)
        fee_denominator: Fee base (1000)
        minimum_shares: Shares locked on the first deposit (1000)
        protocol_fee_divisor: Protocol fee takes 1/(divisor + 1) of the
            invariant growth between liquidity events (5 -> 1/6)
    """

    fee_numerator: int = FEE_NUMERATOR
    fee_denominator: int = FEE_DENOMINATOR
    minimum_shares: int = MINIMUM_SHARES
    protocol_fee_divisor: int = PROTOCOL_FEE_DIVISOR

    def __post_init__(self) -> None:
        if not 0 < self.fee_numerator <= self.fee_denominator:
            raise ValueError(
                f"fee_numerator must be in (0, {self.fee_denominator}]: {self.fee_numerator}"
            )
        if self.minimum_shares < 0:
            raise ValueError(f"minimum_shares cannot be negative: {self.minimum_shares}")
        if self.protocol_fee_divisor <= 0:
            raise ValueError(
                f"protocol_fee_divisor must be positive: {self.protocol_fee_divisor}"
            )

    @property
    def fee_complement(self) -> int:
        """Portion of the input charged as fee (3 for the default config)."""
        return self.fee_denominator - self.fee_numerator

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Build a config from environment variables.

        Configuration via environment variables:
        - PAIRSWAP_FEE_NUMERATOR (default: 997)
        - PAIRSWAP_FEE_DENOMINATOR (default: 1000)
        - PAIRSWAP_MINIMUM_SHARES (default: 1000)
        - PAIRSWAP_PROTOCOL_FEE_DIVISOR (default: 5)
        """
        return cls(
            fee_numerator=int(os.environ.get("PAIRSWAP_FEE_NUMERATOR", FEE_NUMERATOR)),
            fee_denominator=int(os.environ.get("PAIRSWAP_FEE_DENOMINATOR", FEE_DENOMINATOR)),
            minimum_shares=int(os.environ.get("PAIRSWAP_MINIMUM_SHARES", MINIMUM_SHARES)),
            protocol_fee_divisor=int(
                os.environ.get("PAIRSWAP_PROTOCOL_FEE_DIVISOR", PROTOCOL_FEE_DIVISOR)
            ),
        )


# Default configuration instance
DEFAULT_ENGINE_CONFIG = EngineConfig()
