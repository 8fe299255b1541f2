"""Unit tests for integer money"""

import pytest
from layersplit.domain.exceptions import InvalidAmountError
from layersplit.domain.money import MAX_UNITS, Money
from layersplit.utils.display import format_sui, short_address


def test_money_rejects_negative():
    with pytest.raises(InvalidAmountError):
        Money(-1)


def test_money_rejects_floats_and_bools():
    """Amounts are integers in MIST; anything else is refused"""
    with pytest.raises(InvalidAmountError):
        Money(1.5)
    with pytest.raises(InvalidAmountError):
        Money(True)


def test_money_range_is_signed_64_bit():
    assert Money(MAX_UNITS).units == MAX_UNITS
    with pytest.raises(InvalidAmountError):
        Money(MAX_UNITS + 1)


def test_money_addition_is_checked():
    """Overflow raises instead of wrapping"""
    assert Money(2) + Money(3) == Money(5)
    with pytest.raises(InvalidAmountError):
        Money(MAX_UNITS) + Money(1)


def test_money_subtraction_never_goes_negative():
    with pytest.raises(InvalidAmountError):
        Money(1) - Money(2)
    assert Money(1).saturating_sub(Money(2)) == Money.zero()
    assert Money(5).saturating_sub(Money(2)) == Money(3)


def test_money_total_and_ordering():
    assert Money.total([Money(1), Money(2), Money(3)]) == Money(6)
    assert Money.total([]) == Money.zero()
    assert Money(1) < Money(2)
    assert not Money.zero()


def test_format_sui():
    assert format_sui(Money(1_500_000_000)) == "1.5000"
    assert format_sui(Money(1), places=9) == "0.000000001"
    assert format_sui(Money(250_000_000), places=2) == "0.25"


def test_short_address():
    address = "0x" + "ab" * 32
    assert short_address(address) == "0xababab...ababab"
    assert short_address(None) == "not linked"
