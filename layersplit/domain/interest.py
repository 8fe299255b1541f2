"""Interest accrual on unpaid debts"""

import logging
from datetime import datetime, timedelta

from layersplit.domain.models import InterestQuote
from layersplit.domain.money import Money
from layersplit.utils.date_utils import ensure_utc

DEFAULT_GRACE_PERIOD = timedelta(days=3)
DEFAULT_DAILY_RATE_BPS = 100  # 1% per day
BPS_DENOMINATOR = 10_000

logger = logging.getLogger(__name__)


def days_overdue(created_at: datetime, now: datetime, grace_period: timedelta = DEFAULT_GRACE_PERIOD) -> int:
    """Whole days elapsed after the grace period; zero under clock skew"""
    elapsed = ensure_utc(now) - ensure_utc(created_at) - grace_period
    if elapsed <= timedelta(0):
        return 0
    return elapsed // timedelta(days=1)


def calculate_due(
    principal: Money,
    amount_paid: Money,
    created_at: datetime,
    now: datetime,
    grace_period: timedelta = DEFAULT_GRACE_PERIOD,
    daily_rate_bps: int = DEFAULT_DAILY_RATE_BPS,
) -> InterestQuote:
    """
    Quote what a debt currently costs to pay off.

    Simple interest on the remaining principal, recomputed from scratch on
    every call (no day-over-day compounding):

        interest = remaining * days_overdue * daily_rate_bps // 10000

    This is the only interest computation in the service: the read path
    and the payment path both call it with the same configured rates.

    Example:
        principal=1000, created 5 days ago, 3-day grace, 100 bps
        → days_overdue=2, interest=20, total=1020
    """
    if amount_paid >= principal:
        inconsistent = amount_paid > principal
        if inconsistent:
            logger.warning(
                "Amount paid exceeds principal",
                extra={"principal": principal.units, "amount_paid": amount_paid.units},
            )
        zero = Money.zero()
        return InterestQuote(principal=zero, interest=zero, total=zero, days_overdue=0, inconsistent=inconsistent)

    remaining = principal - amount_paid
    days = days_overdue(created_at, now, grace_period)
    interest = Money(remaining.units * days * daily_rate_bps // BPS_DENOMINATOR)

    return InterestQuote(
        principal=remaining,
        interest=interest,
        total=remaining + interest,
        days_overdue=days,
    )


def is_covered(principal: Money, amount_paid: Money) -> bool:
    """Settlement threshold: principal only, interest is not required"""
    return amount_paid >= principal
