"""Pydantic schemas for API request/response validation"""

import uuid
from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional

from layersplit.domain.models import InterestQuote, LedgerStatus, SplitKind
from layersplit.infrastructure.database.models import Debt, User

SUI_ADDRESS_REGEX = r"^0x[a-fA-F0-9]{64}$"


class ErrorResponse(BaseModel):
    """Body of every domain error response"""

    error: str
    message: str
    entity: Optional[str] = None
    entity_id: Optional[str] = None
    detail: Optional[dict] = None


# Users


class LinkWalletRequest(BaseModel):
    """Request body for POST /v1/users/link"""

    telegram_id: int
    wallet_address: str = Field(..., pattern=SUI_ADDRESS_REGEX, description="Sui address")
    username: Optional[str] = Field(None, max_length=64)


class UserSummary(BaseModel):
    id: str
    telegram_id: int
    username: Optional[str] = None
    wallet_linked: bool

    @classmethod
    def of(cls, user: User) -> "UserSummary":
        return cls(
            id=str(user.id),
            telegram_id=user.telegram_id,
            username=user.username,
            wallet_linked=bool(user.wallet_address),
        )


class UserResponse(BaseModel):
    """Response for user profile endpoints"""

    id: str
    telegram_id: int
    wallet_address: Optional[str] = None
    wallet_display: str
    username: Optional[str] = None
    created_at: datetime


# Groups


class GroupUpsertRequest(BaseModel):
    """Request body for POST /v1/groups"""

    telegram_group_id: int
    name: str = Field(..., min_length=1, max_length=100)
    creator: str = Field(..., min_length=1, description="Chat id or @username of the creator")


class GroupResponse(BaseModel):
    id: str
    telegram_group_id: int
    name: str
    created_at: datetime
    member_count: int


class AddMemberRequest(BaseModel):
    """Request body for POST /v1/groups/{telegram_group_id}/members"""

    telegram_id: int
    is_admin: bool = False
    username: Optional[str] = Field(None, max_length=64)


class MemberResponse(BaseModel):
    user: UserSummary
    is_admin: bool


# Bills and debts


class DebtorInput(BaseModel):
    handle: str = Field(..., min_length=1, description="Chat id or @username of the debtor")
    amount: Optional[int] = Field(None, description="Share in MIST, CUSTOM splits only")


class CreateBillRequest(BaseModel):
    """Request body for POST /v1/bills"""

    creator: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field("", max_length=500)
    total_amount: int = Field(..., gt=0, description="Bill total in MIST")
    split_kind: SplitKind
    debtors: List[DebtorInput] = Field(..., min_length=1)
    group_telegram_id: Optional[int] = None
    chat_id: Optional[int] = None


class UpdateBillRequest(BaseModel):
    """Request body for PUT /v1/bills/{bill_id}"""

    title: str = Field(..., min_length=1, max_length=100)


class ConfirmBillRequest(BaseModel):
    """Request body for POST /v1/bills/{bill_id}/confirm"""

    transaction_id: str = Field(..., min_length=1)
    bill_object_id: Optional[str] = None
    debt_object_ids: List[str] = Field(default_factory=list)


class AttachObjectsRequest(BaseModel):
    """Request body for POST /v1/bills/{bill_id}/objects"""

    transaction_id: str = Field(..., min_length=1, description="Transaction the bill was confirmed by")
    bill_object_id: Optional[str] = None
    debt_object_ids: List[str] = Field(default_factory=list)


class TransactionResponse(BaseModel):
    """Unsigned transaction for the signing surface"""

    bill_id: str
    transaction_bytes: str
    summary: str
    message: str


class InterestResponse(BaseModel):
    principal: int
    interest: int
    total: int
    days_overdue: int

    @classmethod
    def of(cls, quote: InterestQuote) -> "InterestResponse":
        return cls(
            principal=quote.principal.units,
            interest=quote.interest.units,
            total=quote.total.units,
            days_overdue=quote.days_overdue,
        )


class DebtResponse(BaseModel):
    id: str
    bill_id: str
    bill_title: str
    position: int
    debtor: UserSummary
    creditor: UserSummary
    principal_amount: int
    amount_paid: int
    is_settled: bool
    status: LedgerStatus
    external_object_id: Optional[str] = None
    due: InterestResponse

    @classmethod
    def of(cls, debt: Debt, quote: InterestQuote) -> "DebtResponse":
        return cls(
            id=str(debt.id),
            bill_id=str(debt.bill_id),
            bill_title=debt.bill.title,
            position=debt.position,
            debtor=UserSummary.of(debt.debtor),
            creditor=UserSummary.of(debt.creditor),
            principal_amount=debt.principal_amount,
            amount_paid=debt.amount_paid,
            is_settled=debt.is_settled,
            status=debt.status,
            external_object_id=debt.external_object_id,
            due=InterestResponse.of(quote),
        )


class BillResponse(BaseModel):
    id: str
    title: str
    description: str
    total_amount: int
    split_kind: SplitKind
    status: LedgerStatus
    is_settled: bool
    unassigned_remainder: int
    external_object_id: Optional[str] = None
    transaction_id: Optional[str] = None
    creator: UserSummary
    created_at: datetime
    debts: List[DebtResponse] = Field(default_factory=list)


class BillListItem(BaseModel):
    id: str
    title: str
    total_amount: int
    split_kind: SplitKind
    status: LedgerStatus
    is_settled: bool
    creator: UserSummary
    created_at: datetime
    debt_count: int


# Payments


class PayRequest(BaseModel):
    """Request body for POST /v1/payments/pay"""

    debt_id: uuid.UUID
    amount: Optional[int] = Field(None, gt=0, description="Partial amount in MIST; defaults to total due")


class PaymentQuoteResponse(BaseModel):
    debt_id: str
    amount: int
    due: InterestResponse
    source: str
    transaction_bytes: str
    summary: str
    message: str


class ConfirmPaymentRequest(BaseModel):
    """Request body for POST /v1/payments/confirm"""

    debt_id: uuid.UUID
    transaction_id: str = Field(..., min_length=1)
    amount_paid: int = Field(..., ge=0, description="Amount attested by the ledger, in MIST")


class PaymentOutcomeResponse(BaseModel):
    debt_id: str
    amount_paid: int
    is_settled: bool
    bill_settled: bool
    message: str


class PaymentItem(BaseModel):
    id: str
    debt_id: str
    bill_title: str
    amount: int
    counterparty: UserSummary
    transaction_id: str
    confirmed_at: datetime


class PaymentHistoryResponse(BaseModel):
    paid: List[PaymentItem]
    received: List[PaymentItem]


class StatusResponse(BaseModel):
    """Everything a user owes and is owed, interest included"""

    total_owed: int
    total_receivable: int
    owed: List[DebtResponse]
    receivable: List[DebtResponse]
