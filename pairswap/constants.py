"""Protocol constants for the pairswap engine.

Centralizes fee parameters, integer widths and well-known addresses.
"""

# Swap fee: 0.3% charged on the input side (997 / 1000 retained)
FEE_NUMERATOR = 997
FEE_DENOMINATOR = 1000

# Shares locked forever on the first deposit
MINIMUM_SHARES = 1000

# Protocol fee takes 1 / (divisor + 1) of the invariant growth
PROTOCOL_FEE_DIVISOR = 5

# Integer widths used by reserves, accumulators and timestamps
UINT32_MOD = 2**32
UINT112_MAX = 2**112 - 1
UINT224_MAX = 2**224 - 1
UINT256_MAX = 2**256 - 1

# Burn sink for the locked minimum shares (lowercase for consistency)
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
