"""
Name validation and tier pricing.

Prices are in wei and depend only on the label length:

    3 characters   -> 0.11   ETH
    4 characters   -> 0.011  ETH
    5+ characters  -> 0.0011 ETH

Any overpayment is refunded by the refund processor.
"""

import re
from decimal import Decimal

NAME_PATTERN = re.compile(r"[a-z0-9]{3,}", re.IGNORECASE | re.ASCII)

PRICE_THREE_CHARS = 110_000_000_000_000_000
PRICE_FOUR_CHARS = 11_000_000_000_000_000
PRICE_FIVE_PLUS_CHARS = 1_100_000_000_000_000

WEI_PER_ETH = 10**18


def validate_name(name: str) -> bool:
    """
    Syntactic check: 3 or more alphanumeric characters.

    On-chain availability is a separate collaborator lookup.
    """
    return NAME_PATTERN.fullmatch(name) is not None


def price_for(name: str) -> int:
    """
    Registration price in wei for a valid name.

    Raises:
        ValueError: If the name fails validate_name()
    """
    if not validate_name(name):
        raise ValueError(f"Cannot price invalid name: {name!r}")
    if len(name) == 3:
        return PRICE_THREE_CHARS
    if len(name) == 4:
        return PRICE_FOUR_CHARS
    return PRICE_FIVE_PLUS_CHARS


def format_price(wei: int, max_length: int = 7) -> str:
    """Render wei as an ETH amount truncated to `max_length` characters."""
    eth = (Decimal(wei) / Decimal(WEI_PER_ETH)).normalize()
    return f"{eth:f}"[:max_length]


def derivation_path(requester_id: str, name: str) -> str:
    """Deterministic derivation path for a (requester, name) pair."""
    return f"{requester_id}-{name}"
