"""Pricing implementations."""

from pairswap.amm.base import AMM
from pairswap.amm.constant_product import ConstantProduct, constant_product

__all__ = ["AMM", "ConstantProduct", "constant_product"]
