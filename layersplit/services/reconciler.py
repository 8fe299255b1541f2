"""
Settlement reconciler: keeps the local bill/debt mirror in step with the
external ledger.

Every public method is one unit of work over its own session. State is
committed before any notice is sent, and a failed notice never undoes a
committed change. Mutations of a bill's debt set happen under a row lock
on the bill, so concurrent payment confirmations for sibling debts see a
consistent snapshot when deciding whether the bill is settled.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Protocol, Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from layersplit.config import Settings
from layersplit.domain.events import BillConfirmed, BillObjectsResolved, LedgerEvent, PaymentConfirmed
from layersplit.domain.exceptions import (
    AdapterFailure,
    AlreadyConfirmed,
    AlreadySettled,
    BillHasPayments,
    InvalidAmountError,
    InvalidSplit,
    MissingWalletLink,
    NotConfirmed,
    NotFound,
    ReconciliationMismatch,
    StateConflict,
)
from layersplit.domain.interest import is_covered
from layersplit.domain.lifecycle import ensure_transition
from layersplit.domain.models import BillIntent, InterestQuote, LedgerStatus, Notice, PaymentIntent, SplitKind
from layersplit.domain.money import Money
from layersplit.domain.splits import compute_shares
from layersplit.infrastructure.clients.ledger import LedgerClient
from layersplit.infrastructure.database.models import Bill, Debt, Payment
from layersplit.infrastructure.database.repositories import BillRepository, DebtRepository, PaymentRepository
from layersplit.infrastructure.observability.logging import log_ledger_event, log_mismatch
from layersplit.infrastructure.observability.metrics import (
    bill_confirmation_counter,
    bill_created_counter,
    blocked_bill_counter,
    notification_failure_counter,
    payment_confirmed_counter,
    record_mismatch,
    record_settlement,
)
from layersplit.infrastructure.sui.builder import SuiTransactionBuilder, TransactionDescription
from layersplit.services.directory import Directory
from layersplit.services.queries import quote_debt
from layersplit.utils.date_utils import utc_now
from layersplit.utils.display import format_sui

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    async def send(self, notice: Notice) -> None: ...


@dataclass
class CreateBillRequest:
    """Split intent collected by a front end"""

    creator: int | str
    title: str
    total: Money
    kind: SplitKind
    debtors: Sequence[int | str]
    custom_amounts: Optional[Sequence[Money | int | None]] = None
    description: str = ""
    group_telegram_id: Optional[int] = None
    chat_id: Optional[int] = None


@dataclass
class BillTransaction:
    bill: Bill
    transaction: TransactionDescription


@dataclass
class PaymentQuote:
    debt: Debt
    quote: InterestQuote
    amount: Money
    transaction: TransactionDescription
    source: str  # "ledger" or "local"


@dataclass
class PaymentOutcome:
    debt: Debt
    payment: Payment
    debt_settled: bool
    bill_settled: bool


class SettlementReconciler:
    """Creation, confirmation and payment protocol for bills and debts"""

    def __init__(
        self,
        db: Session,
        builder: SuiTransactionBuilder,
        settings: Settings,
        notifier: Optional[Notifier] = None,
        ledger: Optional[LedgerClient] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.builder = builder
        self.settings = settings
        self.notifier = notifier
        self.ledger = ledger
        self.clock = clock
        self.bills = BillRepository(db)
        self.debts = DebtRepository(db)
        self.payments = PaymentRepository(db)
        self.directory = Directory(db)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_bill(self, request: CreateBillRequest) -> BillTransaction:
        """
        Persist a PENDING bill with its debts and build the creation transaction.

        Flow:
        1. Compute shares and resolve every participant (nothing persisted on failure)
        2. Persist bill + debts in PENDING and commit, so the intent survives
        3. Refuse to build the transaction while anyone lacks a wallet link

        Raises:
            InvalidSplit, NotFound: before anything is persisted
            MissingWalletLink: after the bill is persisted; carries its id
        """
        shares = compute_shares(
            request.total,
            request.debtors,
            request.kind,
            request.custom_amounts,
            max_participants=self.settings.max_participants,
        )
        creator = self.directory.resolve_user(request.creator)
        debtors = [self.directory.resolve_user(handle) for handle in request.debtors]
        if len({debtor.id for debtor in debtors}) != len(debtors):
            raise InvalidSplit("a debtor is listed more than once")

        group = None
        chat_id = request.chat_id
        if request.group_telegram_id is not None:
            group = self.directory.get_group(request.group_telegram_id)
            if chat_id is None:
                chat_id = group.telegram_group_id

        bill = self.bills.create_bill(
            creator=creator,
            title=request.title,
            description=request.description,
            total=request.total,
            kind=request.kind,
            debtors=debtors,
            shares=shares,
            group=group,
            chat_id=chat_id,
        )
        self.db.commit()

        bill_created_counter.labels(split_kind=request.kind.value).inc()
        log_ledger_event(
            "bill_created",
            bill_id=bill.id,
            split_kind=request.kind.value,
            total_amount=request.total.units,
            debtor_count=len(debtors),
        )
        return self._creation_transaction(bill)

    def prepare_bill_transaction(self, bill_id: uuid.UUID) -> BillTransaction:
        """Rebuild the creation transaction of a bill still waiting to be signed"""
        bill = self.bills.get_bill(bill_id)
        if bill is None:
            raise NotFound("Bill", bill_id)
        if bill.external_object_id:
            raise AlreadyConfirmed("already confirmed on the ledger", entity="Bill", entity_id=bill.id)
        return self._creation_transaction(bill)

    def _creation_transaction(self, bill: Bill) -> BillTransaction:
        participants = [bill.creator] + [debt.debtor for debt in bill.debts]
        missing: List[str] = []
        for user in participants:
            if not user.wallet_address and user.handle not in missing:
                missing.append(user.handle)

        if missing:
            blocked_bill_counter.inc()
            logger.warning(
                "Bill blocked on wallet links",
                extra={"bill_id": str(bill.id), "missing": missing},
            )
            raise MissingWalletLink(bill.id, missing)

        intent = BillIntent(
            title=bill.title,
            description=bill.description or "",
            total=bill.total,
            kind=bill.kind,
            debtor_addresses=[debt.debtor.wallet_address for debt in bill.debts],
            amounts=[debt.principal for debt in bill.debts] if bill.kind == SplitKind.CUSTOM else None,
        )
        transaction = self.builder.build_create_bill(intent, sender=bill.creator.wallet_address)
        return BillTransaction(bill=bill, transaction=transaction)

    def update_title(self, bill_id: uuid.UUID, title: str) -> Bill:
        """Only bills that have not reached the ledger can be edited"""
        bill = self.bills.lock_bill(bill_id)
        if bill is None:
            self.db.rollback()
            raise NotFound("Bill", bill_id)
        if bill.status != LedgerStatus.PENDING:
            self.db.rollback()
            raise AlreadyConfirmed("confirmed bills cannot be edited", entity="Bill", entity_id=bill.id)
        bill.title = title
        self.db.commit()
        return bill

    def delete_bill(self, bill_id: uuid.UUID) -> None:
        """Manual correction for a bill that never reached the ledger"""
        bill = self.bills.lock_bill(bill_id)
        if bill is None:
            self.db.rollback()
            raise NotFound("Bill", bill_id)
        if any(debt.amount_paid > 0 for debt in bill.debts):
            self.db.rollback()
            raise BillHasPayments("bill has recorded payments", entity="Bill", entity_id=bill.id)
        if bill.external_object_id:
            self.db.rollback()
            raise AlreadyConfirmed("confirmed bills cannot be deleted", entity="Bill", entity_id=bill.id)
        self.bills.delete_bill(bill)
        self.db.commit()
        log_ledger_event("bill_deleted", bill_id=bill_id)

    # ------------------------------------------------------------------
    # Confirmation callbacks
    # ------------------------------------------------------------------

    async def reconcile(self, event: LedgerEvent) -> Bill | PaymentOutcome:
        """Apply one ledger event to the local mirror"""
        if isinstance(event, BillConfirmed):
            return await self.confirm_bill(event)
        if isinstance(event, BillObjectsResolved):
            return await self.attach_objects(event)
        if isinstance(event, PaymentConfirmed):
            return await self.confirm_payment(event)
        raise TypeError(f"Unsupported ledger event: {type(event).__name__}")

    async def confirm_bill(self, event: BillConfirmed) -> Bill:
        """
        Attach external references and move the bill to CONFIRMED.

        A second confirmation of the same bill raises AlreadyConfirmed and
        leaves the stored references untouched.
        """
        bill = self.bills.lock_bill(event.bill_id)
        if bill is None:
            self.db.rollback()
            raise NotFound("Bill", event.bill_id)

        if bill.external_object_id:
            self.db.rollback()
            bill_confirmation_counter.labels(outcome="duplicate").inc()
            logger.warning(
                "Duplicate bill confirmation",
                extra={
                    "bill_id": str(bill.id),
                    "transaction_id": event.transaction_id,
                    "existing_transaction_id": bill.transaction_id,
                },
            )
            raise AlreadyConfirmed("already confirmed on the ledger", entity="Bill", entity_id=bill.id)

        self._transition(bill.status, LedgerStatus.CONFIRMED, "Bill", bill.id)

        debts = list(bill.debts)
        if event.debt_object_ids and len(event.debt_object_ids) != len(debts):
            raise await self._mismatch(
                "debt_count",
                "Bill",
                bill.id,
                event.transaction_id,
                f"ledger reported {len(event.debt_object_ids)} debt objects for {len(debts)} debts",
            )

        now = self.clock()
        bill.external_object_id = event.bill_object_id or event.transaction_id
        bill.transaction_id = event.transaction_id
        bill.confirmed_at = now
        for debt, object_id in zip(debts, event.debt_object_ids):
            debt.external_object_id = object_id

        try:
            self.db.commit()
        except IntegrityError:
            raise await self._mismatch(
                "object_reused",
                "Bill",
                event.bill_id,
                event.transaction_id,
                "ledger object id is already attached to another record",
            )

        bill_confirmation_counter.labels(outcome="confirmed").inc()
        log_ledger_event(
            "bill_confirmed",
            bill_id=bill.id,
            transaction_id=event.transaction_id,
            external_object_id=bill.external_object_id,
        )

        await self._notify(self._bill_confirmed_notices(bill))
        return bill

    async def attach_objects(self, event: BillObjectsResolved) -> Bill:
        """
        Fill in ledger object ids a confirmation did not carry.

        Idempotent: ids already stored with the same value are left alone.
        A different id for a reference that is already set is a mismatch,
        as is a transaction id other than the one the bill was confirmed by.

        Raises:
            NotFound, NotConfirmed (bill still PENDING), ReconciliationMismatch
        """
        tx = event.transaction_id
        bill = self.bills.lock_bill(event.bill_id)
        if bill is None:
            self.db.rollback()
            raise NotFound("Bill", event.bill_id)
        if not bill.external_object_id:
            self.db.rollback()
            raise NotConfirmed("bill is not confirmed on the ledger yet", entity="Bill", entity_id=bill.id)
        if tx != bill.transaction_id:
            raise await self._mismatch(
                "transaction_mismatch",
                "Bill",
                bill.id,
                tx,
                f"bill was confirmed by {bill.transaction_id}",
            )

        debts = list(bill.debts)
        if event.debt_object_ids and len(event.debt_object_ids) != len(debts):
            raise await self._mismatch(
                "debt_count",
                "Bill",
                bill.id,
                tx,
                f"ledger reported {len(event.debt_object_ids)} debt objects for {len(debts)} debts",
            )

        if event.bill_object_id and event.bill_object_id != bill.external_object_id:
            if bill.external_object_id != bill.transaction_id:
                raise await self._mismatch(
                    "object_conflict",
                    "Bill",
                    bill.id,
                    tx,
                    f"bill already references {bill.external_object_id}, ledger reported {event.bill_object_id}",
                )
            bill.external_object_id = event.bill_object_id

        for debt, object_id in zip(debts, event.debt_object_ids):
            if debt.external_object_id and debt.external_object_id != object_id:
                raise await self._mismatch(
                    "object_conflict",
                    "Debt",
                    debt.id,
                    tx,
                    f"debt already references {debt.external_object_id}, ledger reported {object_id}",
                )
            debt.external_object_id = object_id

        try:
            self.db.commit()
        except IntegrityError:
            raise await self._mismatch(
                "object_reused",
                "Bill",
                event.bill_id,
                tx,
                "ledger object id is already attached to another record",
            )

        log_ledger_event(
            "bill_objects_attached",
            bill_id=bill.id,
            transaction_id=tx,
            external_object_id=bill.external_object_id,
        )
        return bill

    async def confirm_payment(self, event: PaymentConfirmed) -> PaymentOutcome:
        """
        Add a ledger-attested payment to its debt and settle what is covered.

        The debt settles once amount_paid reaches its principal; the bill
        settles in the same commit when its last open debt does.

        Raises:
            ReconciliationMismatch: unknown debt, unconfirmed bill, settled
                debt, replayed transaction, or an amount outside (0, total due]
        """
        tx = event.transaction_id
        debt = self.debts.get_debt(event.debt_id)
        if debt is None:
            raise await self._mismatch("unknown_debt", "Debt", event.debt_id, tx, "payment confirmed for unknown debt")

        bill = self.bills.lock_bill(debt.bill_id)
        if bill is None:
            raise await self._mismatch("unknown_bill", "Debt", debt.id, tx, "debt has no parent bill")

        if self.payments.get_by_transaction_id(tx) is not None:
            raise await self._mismatch("duplicate_transaction", "Debt", debt.id, tx, "payment transaction already recorded")
        if not bill.external_object_id:
            raise await self._mismatch("unconfirmed_bill", "Debt", debt.id, tx, "payment for a debt whose bill is not confirmed")
        if debt.is_settled:
            raise await self._mismatch("already_settled", "Debt", debt.id, tx, "payment for a debt that is already settled")
        if event.amount.units <= 0:
            raise await self._mismatch("non_positive_amount", "Debt", debt.id, tx, "payment amount is not positive")

        now = self.clock()
        due = quote_debt(debt, now, self.settings)
        if event.amount > due.total:
            # Quotes may have been priced by the ledger; hold payments to the same bound
            remote = await self._ledger_quote(debt, due)
            if remote is None or event.amount > remote.total:
                raise await self._mismatch(
                    "overpayment",
                    "Debt",
                    debt.id,
                    tx,
                    f"payment of {event.amount} exceeds total due {(remote or due).total}",
                )

        debt.amount_paid = (debt.paid + event.amount).units
        try:
            payment = self.payments.record(debt, tx, event.amount)
        except IntegrityError:
            raise await self._mismatch("duplicate_transaction", "Debt", debt.id, tx, "payment transaction already recorded")

        debt_settled = is_covered(debt.principal, debt.paid)
        if debt_settled:
            self._transition(debt.status, LedgerStatus.SETTLED, "Debt", debt.id)
            debt.is_settled = True
            debt.settled_at = now

        bill_settled = False
        if not bill.is_settled and all(sibling.is_settled for sibling in bill.debts):
            self._transition(bill.status, LedgerStatus.SETTLED, "Bill", bill.id)
            bill.is_settled = True
            bill.settled_at = now
            bill_settled = True

        try:
            self.db.commit()
        except IntegrityError:
            raise await self._mismatch("duplicate_transaction", "Debt", debt.id, tx, "payment transaction already recorded")

        payment_confirmed_counter.inc()
        record_settlement(debt_settled, bill_settled)
        log_ledger_event(
            "payment_confirmed",
            debt_id=debt.id,
            bill_id=bill.id,
            transaction_id=tx,
            amount=event.amount.units,
            amount_paid=debt.amount_paid,
            debt_settled=debt_settled,
            bill_settled=bill_settled,
        )

        outcome = PaymentOutcome(debt=debt, payment=payment, debt_settled=debt_settled, bill_settled=bill_settled)
        await self._notify(self._payment_notices(outcome))
        return outcome

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    async def quote_payment(self, debt_id: uuid.UUID, amount: Optional[Money] = None) -> PaymentQuote:
        """
        Price a debt now and build the payment transaction.

        Pays the full total due unless a smaller amount is given.

        Raises:
            NotFound, AlreadySettled, NotConfirmed, MissingWalletLink,
            InvalidAmountError (amount above the total due)
        """
        debt = self.debts.get_debt(debt_id)
        if debt is None:
            raise NotFound("Debt", debt_id)
        bill = debt.bill
        if debt.is_settled:
            raise AlreadySettled("already settled", entity="Debt", entity_id=debt.id)
        if not bill.external_object_id:
            raise NotConfirmed("bill is not confirmed on the ledger yet", entity="Bill", entity_id=bill.id)
        if bill.external_object_id == bill.transaction_id:
            raise NotConfirmed("bill object id not reported yet", entity="Bill", entity_id=bill.id)
        if not debt.external_object_id:
            raise NotConfirmed("debt has no ledger object yet", entity="Debt", entity_id=debt.id)

        missing = [user.handle for user in (debt.debtor, debt.creditor) if not user.wallet_address]
        if missing:
            raise MissingWalletLink(bill.id, missing)

        quote, source = await self._current_quote(debt)
        pay_amount = quote.total if amount is None else amount
        if pay_amount > quote.total:
            raise InvalidAmountError(f"payment of {pay_amount} exceeds total due {quote.total}")

        transaction = self.builder.build_payment(
            PaymentIntent(
                debt_object_id=debt.external_object_id,
                bill_object_id=bill.external_object_id,
                amount=pay_amount,
                total_due=quote.total,
                payer_address=debt.debtor.wallet_address,
                creditor_address=debt.creditor.wallet_address,
            )
        )
        return PaymentQuote(debt=debt, quote=quote, amount=pay_amount, transaction=transaction, source=source)

    async def _current_quote(self, debt: Debt) -> tuple[InterestQuote, str]:
        local = quote_debt(debt, self.clock(), self.settings)
        remote = await self._ledger_quote(debt, local)
        if remote is None:
            return local, "local"
        return remote, "ledger"

    async def _ledger_quote(self, debt: Debt, local: InterestQuote) -> Optional[InterestQuote]:
        """Amount due as computed by the ledger, or None when disabled or unavailable"""
        if not (self.settings.use_ledger_interest_query and self.ledger):
            return None

        query = self.builder.build_interest_query(debt.external_object_id, debt.bill.external_object_id)
        try:
            remote = await self.ledger.fetch_amount_due(query)
        except AdapterFailure as e:
            logger.warning(
                "Ledger amount-due query failed, using local quote",
                extra={"debt_id": str(debt.id), "error": str(e)},
            )
            return None

        return InterestQuote(
            principal=local.principal,
            interest=remote.interest,
            total=remote.total_due,
            days_overdue=local.days_overdue,
        )

    def _transition(self, current: LedgerStatus, target: LedgerStatus, entity: str, entity_id: object) -> None:
        """ensure_transition that releases the bill lock before raising"""
        try:
            ensure_transition(current, target, entity, entity_id)
        except StateConflict:
            self.db.rollback()
            raise

    # ------------------------------------------------------------------
    # Failure handling and notices
    # ------------------------------------------------------------------

    async def _mismatch(
        self,
        reason: str,
        entity: str,
        entity_id: object,
        transaction_id: Optional[str],
        detail: str,
    ) -> ReconciliationMismatch:
        """Roll back, record, and alert; the caller raises the returned error"""
        self.db.rollback()
        record_mismatch(reason)
        log_mismatch(reason, entity, entity_id, transaction_id, detail)
        if self.settings.operator_chat_id is not None:
            await self._notify(
                [
                    Notice(
                        chat_id=self.settings.operator_chat_id,
                        text=(
                            f"Reconciliation mismatch ({reason})\n"
                            f"{entity} {entity_id}\n"
                            f"Transaction: {transaction_id or 'n/a'}\n"
                            f"{detail}"
                        ),
                    )
                ]
            )
        return ReconciliationMismatch(detail, entity, entity_id, transaction_id)

    async def _notify(self, notices: Iterable[Notice]) -> None:
        """Best effort: delivery failures are logged and counted, never raised"""
        if self.notifier is None:
            return
        for notice in notices:
            try:
                await self.notifier.send(notice)
            except Exception as e:
                notification_failure_counter.inc()
                logger.warning(
                    "Notification failed",
                    extra={"chat_id": notice.chat_id, "error": str(e)},
                )

    def _bill_confirmed_notices(self, bill: Bill) -> List[Notice]:
        text = (
            f"Bill signed on-chain: {bill.title}\n"
            f"Amount: {format_sui(bill.total, 2)} SUI\n"
            f"Debtors: {len(bill.debts)}\n"
            f"{self.settings.explorer_tx_url}{bill.transaction_id}"
        )
        notices = [Notice(chat_id=bill.creator.telegram_id, text=text)]
        if bill.chat_id and bill.chat_id != bill.creator.telegram_id:
            notices.append(Notice(chat_id=bill.chat_id, text=text))
        return notices

    def _payment_notices(self, outcome: PaymentOutcome) -> List[Notice]:
        debt = outcome.debt
        amount = format_sui(Money(outcome.payment.amount))
        if outcome.debt_settled:
            debtor_text = f"Debt for '{debt.bill.title}' fully settled. Paid {amount} SUI."
        else:
            remaining = debt.principal.saturating_sub(debt.paid)
            debtor_text = (
                f"Payment of {amount} SUI recorded for '{debt.bill.title}'. "
                f"Remaining principal: {format_sui(remaining)} SUI."
            )
        creditor_text = f"Received {amount} SUI from {debt.debtor.handle} for '{debt.bill.title}'."
        if outcome.bill_settled:
            creditor_text += " All debts on this bill are settled."
        return [
            Notice(chat_id=debt.debtor.telegram_id, text=debtor_text),
            Notice(chat_id=debt.creditor.telegram_id, text=creditor_text),
        ]
