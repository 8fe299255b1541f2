"""Exact integer money in the ledger's smallest unit (MIST)"""

from dataclasses import dataclass
from typing import Iterable

from layersplit.domain.exceptions import InvalidAmountError

# Largest amount a signed 64-bit column can hold
MAX_UNITS = 2**63 - 1

MIST_PER_SUI = 1_000_000_000


@dataclass(frozen=True, order=True)
class Money:
    """Non-negative, overflow-checked amount. Floats are rejected outright."""

    units: int

    def __post_init__(self) -> None:
        if isinstance(self.units, bool) or not isinstance(self.units, int):
            raise InvalidAmountError(f"amount must be an integer, got {type(self.units).__name__}")
        if self.units < 0:
            raise InvalidAmountError(f"amount must not be negative, got {self.units}")
        if self.units > MAX_UNITS:
            raise InvalidAmountError(f"amount {self.units} exceeds {MAX_UNITS}")

    @classmethod
    def zero(cls) -> "Money":
        return cls(0)

    @classmethod
    def total(cls, amounts: Iterable["Money"]) -> "Money":
        """Checked sum of amounts"""
        result = cls.zero()
        for amount in amounts:
            result = result + amount
        return result

    def __add__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self.units + other.units)

    def __sub__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self.units - other.units)

    def saturating_sub(self, other: "Money") -> "Money":
        """Subtract, clamping at zero instead of raising"""
        return Money(max(self.units - other.units, 0))

    def __int__(self) -> int:
        return self.units

    def __bool__(self) -> bool:
        return self.units != 0

    def __str__(self) -> str:
        return str(self.units)
