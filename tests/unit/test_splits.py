"""Unit tests for split calculation"""

import pytest
from layersplit.domain.exceptions import InvalidAmountError, InvalidSplit
from layersplit.domain.models import SplitKind
from layersplit.domain.money import Money
from layersplit.domain.splits import compute_shares, unassigned_remainder


def test_equal_split_even():
    shares = compute_shares(Money(90), ["a", "b", "c"], SplitKind.EQUAL)
    assert shares == [Money(30)] * 3


def test_equal_split_remainder_is_unassigned():
    """100 / 3 → 33 each; the leftover unit stays with the creator"""
    shares = compute_shares(Money(100), ["a", "b", "c"], SplitKind.EQUAL)

    assert shares == [Money(33), Money(33), Money(33)]
    assert unassigned_remainder(Money(100), shares) == Money(1)


def test_equal_split_ignores_custom_amounts():
    shares = compute_shares(Money(10), ["a", "b"], SplitKind.EQUAL, [None, None])
    assert shares == [Money(5), Money(5)]


def test_equal_split_total_smaller_than_participants():
    """A zero share could never be settled, so it is refused"""
    with pytest.raises(InvalidSplit, match="too small"):
        compute_shares(Money(2), ["a", "b", "c"], SplitKind.EQUAL)

    assert compute_shares(Money(3), ["a", "b", "c"], SplitKind.EQUAL) == [Money(1)] * 3


def test_custom_split_rejects_zero_amount():
    with pytest.raises(InvalidSplit, match="greater than zero"):
        compute_shares(Money(100), ["a", "b"], SplitKind.CUSTOM, [100, 0])
    with pytest.raises(InvalidSplit, match="greater than zero"):
        compute_shares(Money(100), ["a", "b"], SplitKind.CUSTOM, [Money(0), Money(100)])


def test_custom_split_exact_sum():
    shares = compute_shares(Money(100), ["a", "b"], SplitKind.CUSTOM, [Money(70), 30])
    assert shares == [Money(70), Money(30)]
    assert unassigned_remainder(Money(100), shares) == Money.zero()


def test_custom_split_must_sum_to_total():
    with pytest.raises(InvalidSplit, match="sum to 99"):
        compute_shares(Money(100), ["a", "b"], SplitKind.CUSTOM, [Money(70), Money(29)])

    with pytest.raises(InvalidSplit):
        compute_shares(Money(100), ["a", "b"], SplitKind.CUSTOM, [Money(70), Money(31)])


def test_custom_split_requires_one_amount_each():
    with pytest.raises(InvalidSplit):
        compute_shares(Money(100), ["a", "b"], SplitKind.CUSTOM, [Money(100)])
    with pytest.raises(InvalidSplit):
        compute_shares(Money(100), ["a", "b"], SplitKind.CUSTOM)
    with pytest.raises(InvalidSplit, match="missing"):
        compute_shares(Money(100), ["a", "b"], SplitKind.CUSTOM, [100, None])


def test_custom_split_rejects_negative_and_float_amounts():
    with pytest.raises(InvalidSplit, match="negative"):
        compute_shares(Money(100), ["a", "b"], SplitKind.CUSTOM, [110, -10])
    with pytest.raises(InvalidAmountError):
        compute_shares(Money(100), ["a", "b"], SplitKind.CUSTOM, [50.5, 49.5])


def test_participant_bounds():
    with pytest.raises(InvalidSplit):
        compute_shares(Money(100), [], SplitKind.EQUAL)

    twenty = [str(i) for i in range(20)]
    assert len(compute_shares(Money(100), twenty, SplitKind.EQUAL)) == 20

    with pytest.raises(InvalidSplit, match="at most 20"):
        compute_shares(Money(100), twenty + ["extra"], SplitKind.EQUAL)


def test_zero_total_rejected():
    with pytest.raises(InvalidSplit):
        compute_shares(Money(0), ["a"], SplitKind.EQUAL)


def test_dutch_split_not_supported():
    with pytest.raises(InvalidSplit, match="DUTCH"):
        compute_shares(Money(100), ["a", "b"], SplitKind.DUTCH)
