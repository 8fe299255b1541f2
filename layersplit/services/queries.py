"""Read path: bill/debt views with live interest quotes"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, List

from sqlalchemy.orm import Session

from layersplit.config import Settings
from layersplit.domain.exceptions import NotFound
from layersplit.domain.interest import calculate_due
from layersplit.domain.models import InterestQuote
from layersplit.domain.money import Money
from layersplit.infrastructure.database.models import Bill, Debt, Payment
from layersplit.infrastructure.database.repositories import (
    BillRepository,
    DebtRepository,
    PaymentRepository,
)
from layersplit.services.directory import Directory
from layersplit.utils.date_utils import utc_now


def quote_debt(debt: Debt, now: datetime, settings: Settings) -> InterestQuote:
    """The one place debts are priced, for status reads and payments alike"""
    return calculate_due(
        debt.principal,
        debt.paid,
        debt.created_at,
        now,
        grace_period=timedelta(days=settings.grace_period_days),
        daily_rate_bps=settings.daily_rate_bps,
    )


@dataclass
class DebtView:
    debt: Debt
    quote: InterestQuote


@dataclass
class BillView:
    bill: Bill
    debts: List[DebtView]


@dataclass
class StatusSummary:
    """What a user owes and is owed right now, interest included"""

    owed: List[DebtView]
    receivable: List[DebtView]

    @property
    def total_owed(self) -> Money:
        return Money.total(view.quote.total for view in self.owed)

    @property
    def total_receivable(self) -> Money:
        return Money.total(view.quote.total for view in self.receivable)


@dataclass
class PaymentHistory:
    paid: List[Payment]
    received: List[Payment]


class LedgerQueries:
    """Read-only views over the ledger mirror"""

    def __init__(self, db: Session, settings: Settings, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.settings = settings
        self.clock = clock
        self.bills = BillRepository(db)
        self.debts = DebtRepository(db)
        self.payments = PaymentRepository(db)
        self.directory = Directory(db)

    def _view(self, debt: Debt, now: datetime) -> DebtView:
        return DebtView(debt=debt, quote=quote_debt(debt, now, self.settings))

    def get_bill(self, bill_id: uuid.UUID) -> BillView:
        bill = self.bills.get_bill(bill_id)
        if bill is None:
            raise NotFound("Bill", bill_id)
        now = self.clock()
        return BillView(bill=bill, debts=[self._view(debt, now) for debt in bill.debts])

    def list_group_bills(self, telegram_group_id: int) -> List[Bill]:
        group = self.directory.get_group(telegram_group_id)
        return self.bills.get_bills_by_group(group.id)

    def get_interest(self, debt_id: uuid.UUID) -> DebtView:
        debt = self.debts.get_debt(debt_id)
        if debt is None:
            raise NotFound("Debt", debt_id)
        return self._view(debt, self.clock())

    def debts_owed(self, handle: int | str) -> List[DebtView]:
        user = self.directory.resolve_user(handle)
        now = self.clock()
        return [self._view(debt, now) for debt in self.debts.get_open_debts_of(user.id)]

    def receivables(self, handle: int | str) -> List[DebtView]:
        user = self.directory.resolve_user(handle)
        now = self.clock()
        return [self._view(debt, now) for debt in self.debts.get_open_receivables_of(user.id)]

    def status(self, handle: int | str) -> StatusSummary:
        return StatusSummary(owed=self.debts_owed(handle), receivable=self.receivables(handle))

    def payment_history(self, handle: int | str) -> PaymentHistory:
        user = self.directory.resolve_user(handle)
        return PaymentHistory(
            paid=self.payments.get_paid_by(user.id),
            received=self.payments.get_received_by(user.id),
        )
