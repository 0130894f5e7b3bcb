"""Base class for AMM pricing implementations."""

from abc import ABC, abstractmethod


class AMM(ABC):
    """Abstract pricing interface shared by the router and its callers.

    Implementations are pure: they read no pair state and hold only
    configuration.
    """

    @abstractmethod
    def quote(self, amount_a: int, reserve_a: int, reserve_b: int) -> int:
        """Fee-less equivalent amount of B for amount_a of A at the reserve ratio."""
        ...

    @abstractmethod
    def get_amount_out(self, amount_in: int, reserve_in: int, reserve_out: int) -> int:
        """Calculate output amount for a given input.

        Args:
            amount_in: Input asset amount
            reserve_in: Reserve of input asset in pair
            reserve_out: Reserve of output asset in pair

        Returns:
            Output asset amount
        """
        ...

    @abstractmethod
    def get_amount_in(self, amount_out: int, reserve_in: int, reserve_out: int) -> int:
        """Calculate required input for a desired output.

        Args:
            amount_out: Desired output asset amount
            reserve_in: Reserve of input asset in pair
            reserve_out: Reserve of output asset in pair

        Returns:
            Required input asset amount
        """
        ...
