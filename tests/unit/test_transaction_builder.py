"""Unit tests for Sui transaction descriptions"""

import base64
import json
import pytest
from layersplit.domain.exceptions import InvalidAddressError, InvalidSplit
from layersplit.domain.models import BillIntent, PaymentIntent, SplitKind
from layersplit.domain.money import Money
from layersplit.infrastructure.sui.builder import SuiTransactionBuilder, validate_address

PACKAGE = "0x" + "a" * 64
REGISTRY = "0x" + "b" * 64
DEBTOR_1 = "0x" + "1" * 64
DEBTOR_2 = "0x" + "2" * 64


@pytest.fixture
def builder() -> SuiTransactionBuilder:
    return SuiTransactionBuilder(package_id=PACKAGE, registry_id=REGISTRY)


def _decode(serialized: str) -> dict:
    return json.loads(base64.b64decode(serialized))


def test_validate_address():
    assert validate_address(DEBTOR_1) == DEBTOR_1
    for bad in ["", None, "0x123", "1" * 66, "0x" + "g" * 64, DEBTOR_1 + "0"]:
        with pytest.raises(InvalidAddressError):
            validate_address(bad)


def test_equal_split_move_call(builder: SuiTransactionBuilder):
    intent = BillIntent(
        title="Dinner",
        description="",
        total=Money(3_000_000_000),
        kind=SplitKind.EQUAL,
        debtor_addresses=[DEBTOR_1, DEBTOR_2],
    )
    tx = builder.build_create_bill(intent)

    call = tx.commands[0]["MoveCall"]
    assert call["target"] == f"{PACKAGE}::layersplit::create_bill_equal_split"
    assert call["arguments"][0] == {"kind": "object", "id": REGISTRY}
    assert call["arguments"][1] == {"kind": "object", "id": "0x6"}
    assert call["arguments"][4] == {"kind": "pure", "type": "u64", "value": "3000000000"}
    assert call["arguments"][5]["value"] == [DEBTOR_1, DEBTOR_2]
    assert call["arguments"][-1] == {"kind": "pure", "type": "option<vector<u8>>", "value": None}
    assert "3.0000 SUI" in tx.summary


def test_custom_split_carries_amounts(builder: SuiTransactionBuilder):
    intent = BillIntent(
        title="Rent",
        description="March",
        total=Money(100),
        kind=SplitKind.CUSTOM,
        debtor_addresses=[DEBTOR_1, DEBTOR_2],
        amounts=[Money(70), Money(30)],
    )
    tx = builder.build_create_bill(intent)

    call = tx.commands[0]["MoveCall"]
    assert call["target"].endswith("::create_bill_custom_split")
    assert {"kind": "pure", "type": "vector<u64>", "value": ["70", "30"]} in call["arguments"]
    assert tx.metadata["function"] == "create_bill_custom_split"


def test_custom_split_without_amounts_rejected(builder: SuiTransactionBuilder):
    intent = BillIntent(
        title="Rent",
        description="",
        total=Money(100),
        kind=SplitKind.CUSTOM,
        debtor_addresses=[DEBTOR_1, DEBTOR_2],
        amounts=[Money(100)],
    )
    with pytest.raises(InvalidSplit):
        builder.build_create_bill(intent)


def test_malformed_debtor_address_rejected(builder: SuiTransactionBuilder):
    intent = BillIntent(
        title="Dinner",
        description="",
        total=Money(100),
        kind=SplitKind.EQUAL,
        debtor_addresses=[DEBTOR_1, "0xnope"],
    )
    with pytest.raises(InvalidAddressError):
        builder.build_create_bill(intent)


def test_serialization_is_stable(builder: SuiTransactionBuilder):
    intent = BillIntent(
        title="Dinner",
        description="",
        total=Money(100),
        kind=SplitKind.EQUAL,
        debtor_addresses=[DEBTOR_1],
    )
    first = builder.build_create_bill(intent, sender=DEBTOR_2).serialize()
    second = builder.build_create_bill(intent, sender=DEBTOR_2).serialize()

    assert first == second
    decoded = _decode(first)
    assert decoded["sender"] == DEBTOR_2
    assert decoded["version"] == 1


def _payment(amount: int, total_due: int) -> PaymentIntent:
    return PaymentIntent(
        debt_object_id="0xdebt",
        bill_object_id="0xbill",
        amount=Money(amount),
        total_due=Money(total_due),
        payer_address=DEBTOR_1,
        creditor_address=DEBTOR_2,
    )


def test_full_payment(builder: SuiTransactionBuilder):
    tx = builder.build_payment(_payment(1020, 1020))

    split = tx.commands[0]["SplitCoins"]
    assert split["amounts"] == [{"kind": "pure", "type": "u64", "value": "1020"}]
    call = tx.commands[1]["MoveCall"]
    assert call["target"].endswith("::pay_debt_full")
    assert call["arguments"][0] == {"kind": "object", "id": "0xdebt"}
    assert call["arguments"][-1] == {"kind": "result", "index": 0}
    assert tx.sender == DEBTOR_1


def test_partial_payment(builder: SuiTransactionBuilder):
    tx = builder.build_payment(_payment(500, 1020))
    assert tx.metadata["function"] == "pay_debt_partial"


def test_zero_payment_rejected(builder: SuiTransactionBuilder):
    with pytest.raises(InvalidSplit):
        builder.build_payment(_payment(0, 1020))


def test_interest_query(builder: SuiTransactionBuilder):
    tx = builder.build_interest_query("0xdebt", "0xbill")
    call = tx.commands[0]["MoveCall"]

    assert call["target"] == f"{PACKAGE}::layersplit::calculate_interest"
    assert [arg["id"] for arg in call["arguments"]] == ["0xdebt", "0xbill", "0x6"]
