"""Confirmation events reported back by the external ledger"""

import uuid
from dataclasses import dataclass
from typing import Sequence, Union

from layersplit.domain.money import Money


@dataclass(frozen=True)
class BillConfirmed:
    """
    Bill creation transaction landed on-chain.

    When bill_object_id is not reported, the transaction id stands in as the
    bill's external reference so the bill still counts as CONFIRMED. Such a
    bill cannot be paid until BillObjectsResolved supplies the real object
    ids; the transaction digest is never used as an object argument.
    """

    bill_id: uuid.UUID
    transaction_id: str
    bill_object_id: str | None = None
    debt_object_ids: Sequence[str] = ()  # in debtor order


@dataclass(frozen=True)
class BillObjectsResolved:
    """Object ids of an already confirmed bill, looked up after the fact"""

    bill_id: uuid.UUID
    transaction_id: str
    bill_object_id: str | None = None
    debt_object_ids: Sequence[str] = ()  # in debtor order


@dataclass(frozen=True)
class PaymentConfirmed:
    """Debt payment transaction landed on-chain; amount as attested by the ledger"""

    debt_id: uuid.UUID
    transaction_id: str
    amount: Money


LedgerEvent = Union[BillConfirmed, BillObjectsResolved, PaymentConfirmed]
