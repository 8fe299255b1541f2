"""Unit tests for the bill/debt state machine"""

import pytest
from layersplit.domain.exceptions import AlreadyConfirmed, AlreadySettled, NotConfirmed
from layersplit.domain.lifecycle import derive_status, ensure_transition
from layersplit.domain.models import LedgerStatus


def test_derive_status():
    assert derive_status(None, False) == LedgerStatus.PENDING
    assert derive_status("", False) == LedgerStatus.PENDING
    assert derive_status("0xobj", False) == LedgerStatus.CONFIRMED
    assert derive_status("0xobj", True) == LedgerStatus.SETTLED


def test_forward_transitions_allowed():
    ensure_transition(LedgerStatus.PENDING, LedgerStatus.CONFIRMED, "Bill", "b1")
    ensure_transition(LedgerStatus.CONFIRMED, LedgerStatus.SETTLED, "Bill", "b1")


def test_confirming_twice_is_rejected():
    with pytest.raises(AlreadyConfirmed) as exc_info:
        ensure_transition(LedgerStatus.CONFIRMED, LedgerStatus.CONFIRMED, "Bill", "b1")
    assert exc_info.value.entity == "Bill"
    assert exc_info.value.entity_id == "b1"


def test_settled_is_terminal():
    for target in LedgerStatus:
        with pytest.raises(AlreadySettled):
            ensure_transition(LedgerStatus.SETTLED, target, "Debt", "d1")


def test_settling_requires_confirmation():
    with pytest.raises(NotConfirmed):
        ensure_transition(LedgerStatus.PENDING, LedgerStatus.SETTLED, "Debt", "d1")


def test_no_backwards_transition():
    with pytest.raises(AlreadyConfirmed):
        ensure_transition(LedgerStatus.CONFIRMED, LedgerStatus.PENDING, "Bill", "b1")
