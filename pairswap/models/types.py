"""Shared type definitions for pairswap models."""

from typing import Annotated

from pydantic import Field

from pairswap.constants import ZERO_ADDRESS

# Account or contract address (40 hex chars after 0x prefix)
Address = Annotated[str, Field(pattern=r"^0x[a-fA-F0-9]{40}$")]

# Unsigned integer amount
Amount = Annotated[int, Field(ge=0)]


def normalize_address(address: str) -> str:
    """Normalize an address to lowercase with 0x prefix."""
    addr = address.lower()
    if not addr.startswith("0x"):
        addr = "0x" + addr
    return addr


def is_zero_address(address: str) -> bool:
    """Check if an address is the zero address (burn sink)."""
    return normalize_address(address) == ZERO_ADDRESS


def address_bytes(address: str) -> bytes:
    """Raw 20 bytes of an address, used for ordering and ABI encoding."""
    return bytes.fromhex(normalize_address(address)[2:])
