"""Error classes for pair, router and oracle operations.

Every error is a hard failure: the surrounding transaction is rolled back
and the exception reaches the caller unchanged.
"""


class AMMError(Exception):
    """Base error for pairswap operations."""

    pass


# --- Liquidity ---


class InsufficientLiquidity(AMMError):
    """A reserve is zero or a requested amount exceeds what the pair holds."""

    pass


class InsufficientLiquidityMinted(InsufficientLiquidity):
    """A deposit would mint zero shares."""

    pass


class InsufficientLiquidityBurned(InsufficientLiquidity):
    """A withdrawal would return zero of one of the assets."""

    pass


class InsufficientAmount(AMMError):
    """Quote requested for a zero amount."""

    pass


# --- Swap ---


class InvariantViolation(AMMError):
    """Fee-adjusted reserve product decreased across a swap."""

    pass


class InsufficientInputAmount(AMMError):
    """Net amount transferred into the pair is zero."""

    pass


class InsufficientOutputAmount(AMMError):
    """Requested output amount is zero."""

    pass


class InvalidRecipient(AMMError):
    """Swap output cannot be sent to one of the pair's own assets."""

    pass


class ReserveOverflow(AMMError):
    """A held balance does not fit in 112 bits."""

    pass


class ReentrancyDetected(AMMError):
    """A pair operation was re-entered while the pair lock was held."""

    pass


# --- Caller bounds ---


class SlippageExceeded(AMMError):
    """An amount falls outside the caller's min/max bound."""

    pass


class InsufficientAAmount(SlippageExceeded):
    """Amount of the first asset is below the caller's minimum."""

    pass


class InsufficientBAmount(SlippageExceeded):
    """Amount of the second asset is below the caller's minimum."""

    pass


class InsufficientOutput(SlippageExceeded):
    """Final output of a swap is below the caller's minimum."""

    pass


class ExcessiveInputAmount(SlippageExceeded):
    """Required input of a swap is above the caller's maximum."""

    pass


class Expired(AMMError):
    """Current time is past the caller's deadline."""

    pass


# --- Assets and pairs ---


class InvalidAsset(AMMError):
    """Asset is the zero address or not part of the pair."""

    pass


class IdenticalAssets(InvalidAsset):
    """Both sides of a pair request are the same asset."""

    pass


class InvalidPath(InvalidAsset):
    """Swap path is too short or does not start/end with the wrapper."""

    pass


class PairExists(AMMError):
    """A pair for these assets has already been created."""

    pass


class Forbidden(AMMError):
    """Caller is not allowed to change registry settings."""

    pass


class PeriodNotElapsed(AMMError):
    """Oracle update requested before the sampling period elapsed."""

    pass


# --- Ledger ---


class AssetError(AMMError):
    """Base error for fungible asset bookkeeping."""

    pass


class InsufficientBalance(AssetError):
    """Holder balance is lower than the amount moved."""

    pass


class InsufficientAllowance(AssetError):
    """Spender allowance is lower than the amount moved."""

    pass


__all__ = [
    "AMMError",
    "InsufficientLiquidity",
    "InsufficientLiquidityMinted",
    "InsufficientLiquidityBurned",
    "InsufficientAmount",
    "InvariantViolation",
    "InsufficientInputAmount",
    "InsufficientOutputAmount",
    "InvalidRecipient",
    "ReserveOverflow",
    "ReentrancyDetected",
    "SlippageExceeded",
    "InsufficientAAmount",
    "InsufficientBAmount",
    "InsufficientOutput",
    "ExcessiveInputAmount",
    "Expired",
    "InvalidAsset",
    "IdenticalAssets",
    "InvalidPath",
    "PairExists",
    "Forbidden",
    "PeriodNotElapsed",
    "AssetError",
    "InsufficientBalance",
    "InsufficientAllowance",
]
