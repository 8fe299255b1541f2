"""Bill/Debt state machine: PENDING → CONFIRMED → SETTLED, never backwards"""

from typing import Any, Optional

from layersplit.domain.exceptions import AlreadyConfirmed, AlreadySettled, NotConfirmed
from layersplit.domain.models import LedgerStatus

_ORDER = {
    LedgerStatus.PENDING: 0,
    LedgerStatus.CONFIRMED: 1,
    LedgerStatus.SETTLED: 2,
}


def derive_status(external_object_id: Optional[str], is_settled: bool) -> LedgerStatus:
    """Status from the stored facts: external reference and settlement flag"""
    if is_settled:
        return LedgerStatus.SETTLED
    if external_object_id:
        return LedgerStatus.CONFIRMED
    return LedgerStatus.PENDING


def ensure_transition(
    current: LedgerStatus,
    target: LedgerStatus,
    entity: str,
    entity_id: Any,
) -> None:
    """
    Allow only the single forward step from `current` to `target`.

    Raises:
        AlreadySettled: current is SETTLED
        AlreadyConfirmed: current is already at or past target
        NotConfirmed: skipping CONFIRMED (PENDING → SETTLED)
    """
    if current == LedgerStatus.SETTLED:
        raise AlreadySettled("already settled", entity=entity, entity_id=entity_id)
    if _ORDER[target] <= _ORDER[current]:
        raise AlreadyConfirmed("already confirmed on the ledger", entity=entity, entity_id=entity_id)
    if _ORDER[target] - _ORDER[current] > 1:
        raise NotConfirmed("not confirmed on the ledger yet", entity=entity, entity_id=entity_id)
