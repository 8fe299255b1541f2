"""/v1/bills - bill creation, signing, confirmation and corrections"""

import uuid
from fastapi import APIRouter, Depends

from layersplit.api.dependencies import get_queries, get_reconciler
from layersplit.api.v1.schemas import (
    AttachObjectsRequest,
    BillResponse,
    ConfirmBillRequest,
    CreateBillRequest,
    DebtResponse,
    TransactionResponse,
    UpdateBillRequest,
    UserSummary,
)
from layersplit.domain.events import BillConfirmed, BillObjectsResolved
from layersplit.domain.money import Money
from layersplit.services.queries import LedgerQueries
from layersplit.services.reconciler import BillTransaction, CreateBillRequest as CreateBillIntent, SettlementReconciler

router = APIRouter()


def _transaction_response(result: BillTransaction, message: str) -> TransactionResponse:
    return TransactionResponse(
        bill_id=str(result.bill.id),
        transaction_bytes=result.transaction.serialize(),
        summary=result.transaction.summary,
        message=message,
    )


def _bill_response(queries: LedgerQueries, bill_id: uuid.UUID) -> BillResponse:
    view = queries.get_bill(bill_id)
    bill = view.bill
    return BillResponse(
        id=str(bill.id),
        title=bill.title,
        description=bill.description or "",
        total_amount=bill.total_amount,
        split_kind=bill.kind,
        status=bill.status,
        is_settled=bill.is_settled,
        unassigned_remainder=bill.unassigned_remainder.units,
        external_object_id=bill.external_object_id,
        transaction_id=bill.transaction_id,
        creator=UserSummary.of(bill.creator),
        created_at=bill.created_at,
        debts=[DebtResponse.of(debt_view.debt, debt_view.quote) for debt_view in view.debts],
    )


@router.post("/bills", response_model=TransactionResponse)
def create_bill(body: CreateBillRequest, reconciler: SettlementReconciler = Depends(get_reconciler)):
    """
    Create a PENDING bill and return the unsigned creation transaction.

    When a participant has no linked wallet the bill is still stored and
    the response is 409 MissingWalletLink with the bill id and the
    participants to chase.
    """
    result = reconciler.create_bill(
        CreateBillIntent(
            creator=body.creator,
            title=body.title,
            description=body.description,
            total=Money(body.total_amount),
            kind=body.split_kind,
            debtors=[debtor.handle for debtor in body.debtors],
            custom_amounts=[debtor.amount for debtor in body.debtors],
            group_telegram_id=body.group_telegram_id,
            chat_id=body.chat_id,
        )
    )
    return _transaction_response(
        result,
        f"Bill created. Sign the transaction to confirm on-chain. Bill ID: {result.bill.id}",
    )


@router.get("/bills/{bill_id}", response_model=BillResponse)
def get_bill(bill_id: uuid.UUID, queries: LedgerQueries = Depends(get_queries)):
    return _bill_response(queries, bill_id)


@router.put("/bills/{bill_id}", response_model=BillResponse)
def update_bill(
    bill_id: uuid.UUID,
    body: UpdateBillRequest,
    reconciler: SettlementReconciler = Depends(get_reconciler),
    queries: LedgerQueries = Depends(get_queries),
):
    """Rename a bill that is not on-chain yet"""
    reconciler.update_title(bill_id, body.title)
    return _bill_response(queries, bill_id)


@router.delete("/bills/{bill_id}")
def delete_bill(bill_id: uuid.UUID, reconciler: SettlementReconciler = Depends(get_reconciler)):
    reconciler.delete_bill(bill_id)
    return {"message": "Bill deleted"}


@router.get("/bills/{bill_id}/sign", response_model=TransactionResponse)
def sign_bill(bill_id: uuid.UUID, reconciler: SettlementReconciler = Depends(get_reconciler)):
    """Rebuild the creation transaction for a bill awaiting signature"""
    result = reconciler.prepare_bill_transaction(bill_id)
    return _transaction_response(result, "Sign the transaction to confirm on-chain")


@router.post("/bills/{bill_id}/confirm", response_model=BillResponse)
async def confirm_bill(
    bill_id: uuid.UUID,
    body: ConfirmBillRequest,
    reconciler: SettlementReconciler = Depends(get_reconciler),
    queries: LedgerQueries = Depends(get_queries),
):
    """Ledger callback: the creation transaction landed on-chain"""
    await reconciler.reconcile(
        BillConfirmed(
            bill_id=bill_id,
            transaction_id=body.transaction_id,
            bill_object_id=body.bill_object_id,
            debt_object_ids=tuple(body.debt_object_ids),
        )
    )
    return _bill_response(queries, bill_id)


@router.post("/bills/{bill_id}/objects", response_model=BillResponse)
async def attach_bill_objects(
    bill_id: uuid.UUID,
    body: AttachObjectsRequest,
    reconciler: SettlementReconciler = Depends(get_reconciler),
    queries: LedgerQueries = Depends(get_queries),
):
    """Ledger callback: object ids for a bill confirmed without them"""
    await reconciler.reconcile(
        BillObjectsResolved(
            bill_id=bill_id,
            transaction_id=body.transaction_id,
            bill_object_id=body.bill_object_id,
            debt_object_ids=tuple(body.debt_object_ids),
        )
    )
    return _bill_response(queries, bill_id)
