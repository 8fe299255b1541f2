"""/v1/payments - quotes, payment transactions, confirmations and history"""

import uuid
from fastapi import APIRouter, Depends

from layersplit.api.dependencies import get_queries, get_reconciler
from layersplit.api.v1.schemas import (
    ConfirmPaymentRequest,
    InterestResponse,
    PaymentHistoryResponse,
    PaymentItem,
    PaymentOutcomeResponse,
    PaymentQuoteResponse,
    PayRequest,
    UserSummary,
)
from layersplit.domain.events import PaymentConfirmed
from layersplit.domain.money import Money
from layersplit.infrastructure.database.models import Payment, User
from layersplit.services.queries import LedgerQueries
from layersplit.services.reconciler import SettlementReconciler
from layersplit.utils.display import format_sui

router = APIRouter()


def _payment_item(payment: Payment, counterparty: User) -> PaymentItem:
    return PaymentItem(
        id=str(payment.id),
        debt_id=str(payment.debt_id),
        bill_title=payment.debt.bill.title,
        amount=payment.amount,
        counterparty=UserSummary.of(counterparty),
        transaction_id=payment.transaction_id,
        confirmed_at=payment.confirmed_at,
    )


@router.get("/payments/interest/{debt_id}", response_model=InterestResponse)
def get_interest(debt_id: uuid.UUID, queries: LedgerQueries = Depends(get_queries)):
    """Current principal, interest and total due for a debt"""
    return InterestResponse.of(queries.get_interest(debt_id).quote)


@router.post("/payments/pay", response_model=PaymentQuoteResponse)
async def pay_debt(body: PayRequest, reconciler: SettlementReconciler = Depends(get_reconciler)):
    """Price the debt now and return the unsigned payment transaction"""
    amount = Money(body.amount) if body.amount is not None else None
    result = await reconciler.quote_payment(body.debt_id, amount)
    quote = result.quote
    return PaymentQuoteResponse(
        debt_id=str(result.debt.id),
        amount=result.amount.units,
        due=InterestResponse.of(quote),
        source=result.source,
        transaction_bytes=result.transaction.serialize(),
        summary=result.transaction.summary,
        message=(
            f"Pay {format_sui(result.amount)} SUI "
            f"({format_sui(quote.principal)} principal + {format_sui(quote.interest)} interest due)"
        ),
    )


@router.post("/payments/confirm", response_model=PaymentOutcomeResponse)
async def confirm_payment(
    body: ConfirmPaymentRequest,
    reconciler: SettlementReconciler = Depends(get_reconciler),
):
    """Ledger callback: a payment transaction landed on-chain"""
    outcome = await reconciler.reconcile(
        PaymentConfirmed(
            debt_id=body.debt_id,
            transaction_id=body.transaction_id,
            amount=Money(body.amount_paid),
        )
    )
    return PaymentOutcomeResponse(
        debt_id=str(outcome.debt.id),
        amount_paid=outcome.debt.amount_paid,
        is_settled=outcome.debt.is_settled,
        bill_settled=outcome.bill_settled,
        message="Debt fully settled!" if outcome.debt_settled else "Payment recorded",
    )


@router.get("/payments/history/{handle}", response_model=PaymentHistoryResponse)
def get_history(handle: str, queries: LedgerQueries = Depends(get_queries)):
    history = queries.payment_history(handle)
    return PaymentHistoryResponse(
        paid=[_payment_item(payment, payment.debt.creditor) for payment in history.paid],
        received=[_payment_item(payment, payment.debt.debtor) for payment in history.received],
    )
