"""Test helpers module for shared test utilities.

- constants: common amounts and deadlines
- factories: funded accounts and seeded pairs
"""

from tests.helpers.constants import DEADLINE, E18, INITIAL_BALANCE, UNLIMITED
from tests.helpers.factories import fund, seed_pair

__all__ = [
    # Constants
    "E18",
    "DEADLINE",
    "INITIAL_BALANCE",
    "UNLIMITED",
    # Factories
    "fund",
    "seed_pair",
]
