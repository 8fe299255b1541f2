"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from layersplit.domain.money import Money


class SplitKind(str, Enum):
    """How a bill's total is partitioned among debtors"""

    EQUAL = "EQUAL"
    CUSTOM = "CUSTOM"
    DUTCH = "DUTCH"  # reserved, not computable yet


class LedgerStatus(str, Enum):
    """Lifecycle state shared by bills and debts"""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    SETTLED = "SETTLED"


@dataclass(frozen=True)
class InterestQuote:
    """Amount currently owed on a debt"""

    principal: Money  # remaining principal, not the original share
    interest: Money
    total: Money
    days_overdue: int
    inconsistent: bool = False  # amount_paid exceeded principal


@dataclass(frozen=True)
class BillIntent:
    """Fully-resolved input for the bill creation transaction"""

    title: str
    description: str
    total: Money
    kind: SplitKind
    debtor_addresses: List[str]
    amounts: Optional[List[Money]] = None  # CUSTOM only


@dataclass(frozen=True)
class PaymentIntent:
    """Fully-resolved input for a debt payment transaction"""

    debt_object_id: str
    bill_object_id: str
    amount: Money
    total_due: Money
    payer_address: str
    creditor_address: str


@dataclass
class Notice:
    """Plain-text message for one chat"""

    chat_id: int
    text: str
