"""Domain-specific exceptions"""

from typing import Any, List, Optional


class DomainException(Exception):
    """Base exception for domain layer"""

    def __init__(
        self,
        precondition: str,
        entity: Optional[str] = None,
        entity_id: Any = None,
    ):
        self.precondition = precondition
        self.entity = entity
        self.entity_id = str(entity_id) if entity_id is not None else None
        super().__init__(self._format())

    def _format(self) -> str:
        if self.entity and self.entity_id:
            return f"{self.entity} {self.entity_id}: {self.precondition}"
        if self.entity:
            return f"{self.entity}: {self.precondition}"
        return self.precondition

    def detail(self) -> Any:
        """Extra structured context for callers that display the error"""
        return None


class InvalidAmountError(DomainException):
    """Amount is negative or does not fit the ledger's integer range"""

    def __init__(self, precondition: str):
        super().__init__(precondition, entity="Money")


class InvalidSplit(DomainException):
    """Split request cannot be partitioned into debts"""

    def __init__(self, precondition: str):
        super().__init__(precondition, entity="Split")


class InvalidAddressError(DomainException):
    """Wallet address is not a well-formed Sui address"""

    def __init__(self, address: str):
        super().__init__("wallet address must be 0x followed by 64 hex characters", entity="Address", entity_id=address)


class NotFound(DomainException):
    """Bill, Debt, User or Group does not exist"""

    def __init__(self, entity: str, entity_id: Any):
        super().__init__("not found", entity=entity, entity_id=entity_id)


class MissingWalletLink(DomainException):
    """Participants without a linked wallet block transaction building"""

    def __init__(self, bill_id: Any, missing: List[str]):
        self.missing = list(missing)
        super().__init__(
            f"participants without a linked wallet: {', '.join(self.missing)}",
            entity="Bill",
            entity_id=bill_id,
        )

    def detail(self) -> Any:
        return {"missing": self.missing}


class StateConflict(DomainException):
    """Requested operation conflicts with the entity's lifecycle state"""


class AlreadyConfirmed(StateConflict):
    """Bill already carries an external ledger reference"""


class AlreadySettled(StateConflict):
    """Debt or bill is already settled"""


class NotConfirmed(StateConflict):
    """Operation needs an on-chain target that does not exist yet"""


class BillHasPayments(StateConflict):
    """Bill with recorded payments cannot be deleted"""


class AdapterFailure(DomainException):
    """External transaction building, query or delivery failed"""


class LedgerAPIError(AdapterFailure):
    """Ledger gateway returned an error or is unavailable"""

    def __init__(self, precondition: str):
        super().__init__(precondition, entity="Ledger")


class NotificationError(AdapterFailure):
    """Notification could not be delivered"""

    def __init__(self, precondition: str):
        super().__init__(precondition, entity="Notifier")


class ReconciliationMismatch(DomainException):
    """Confirmed external event does not match local ledger state"""

    def __init__(self, precondition: str, entity: str, entity_id: Any, transaction_id: Optional[str] = None):
        self.transaction_id = transaction_id
        super().__init__(precondition, entity=entity, entity_id=entity_id)

    def detail(self) -> Any:
        return {"transaction_id": self.transaction_id}
