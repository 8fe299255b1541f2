"""
Display utilities for amounts and wallet addresses
"""
from decimal import Decimal

from layersplit.domain.money import MIST_PER_SUI, Money


def format_sui(amount: Money, places: int = 4) -> str:
    """
    Format MIST as SUI for messages. Display only, never fed back into
    financial paths.
    Example: Money(1_500_000_000) -> "1.5000"
    """
    sui = Decimal(amount.units) / Decimal(MIST_PER_SUI)
    return f"{sui:.{places}f}"


def short_address(address: str | None) -> str:
    """0x12345678...abcdef style abbreviation"""
    if not address:
        return "not linked"
    if len(address) <= 16:
        return address
    return f"{address[:8]}...{address[-6:]}"
