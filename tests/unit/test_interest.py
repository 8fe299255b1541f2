"""Unit tests for interest accrual"""

from datetime import datetime, timedelta, timezone
from layersplit.domain.interest import calculate_due, days_overdue, is_covered
from layersplit.domain.money import Money

CREATED = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def test_no_interest_within_grace_period():
    quote = calculate_due(Money(1000), Money(0), CREATED, CREATED + timedelta(days=3))

    assert quote.days_overdue == 0
    assert quote.interest == Money(0)
    assert quote.total == Money(1000)


def test_interest_after_grace_period():
    """5 days after creation with a 3-day grace period → 2 days at 1%"""
    quote = calculate_due(Money(1000), Money(0), CREATED, CREATED + timedelta(days=5))

    assert quote.days_overdue == 2
    assert quote.interest == Money(20)
    assert quote.total == Money(1020)
    assert quote.principal == Money(1000)


def test_partial_day_does_not_count():
    now = CREATED + timedelta(days=4, hours=23, minutes=59)
    assert days_overdue(CREATED, now) == 1


def test_interest_on_remaining_principal_only():
    quote = calculate_due(Money(1000), Money(400), CREATED, CREATED + timedelta(days=13))

    assert quote.principal == Money(600)
    assert quote.days_overdue == 10
    assert quote.interest == Money(60)
    assert quote.total == Money(660)


def test_interest_is_simple_not_compounded():
    quote = calculate_due(Money(10_000), Money(0), CREATED, CREATED + timedelta(days=103))
    assert quote.interest == Money(10_000)  # 100 days * 1%


def test_interest_floors_fractional_units():
    quote = calculate_due(Money(99), Money(0), CREATED, CREATED + timedelta(days=4))
    assert quote.interest == Money(0)  # 99 * 1 * 100 // 10000


def test_clock_skew_means_no_interest():
    """now before created_at never produces negative days"""
    quote = calculate_due(Money(1000), Money(0), CREATED, CREATED - timedelta(days=10))

    assert quote.days_overdue == 0
    assert quote.total == Money(1000)


def test_naive_datetimes_are_treated_as_utc():
    naive_created = CREATED.replace(tzinfo=None)
    assert days_overdue(naive_created, CREATED + timedelta(days=5)) == 2


def test_custom_grace_and_rate():
    quote = calculate_due(
        Money(1000),
        Money(0),
        CREATED,
        CREATED + timedelta(days=5),
        grace_period=timedelta(days=0),
        daily_rate_bps=50,
    )
    assert quote.days_overdue == 5
    assert quote.interest == Money(25)


def test_fully_paid_debt_costs_nothing():
    quote = calculate_due(Money(1000), Money(1000), CREATED, CREATED + timedelta(days=30))

    assert quote.total == Money(0)
    assert quote.interest == Money(0)
    assert quote.inconsistent is False


def test_overpaid_debt_is_flagged():
    quote = calculate_due(Money(1000), Money(1200), CREATED, CREATED + timedelta(days=30))

    assert quote.total == Money(0)
    assert quote.inconsistent is True


def test_settlement_threshold_is_principal():
    assert is_covered(Money(1000), Money(1000))
    assert is_covered(Money(1000), Money(1001))
    assert not is_covered(Money(1000), Money(999))
