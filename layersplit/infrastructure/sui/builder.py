"""Transaction Builder Adapter: bill/payment intents → unsigned Sui transaction descriptions"""

import base64
import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List

from layersplit.domain.exceptions import InvalidAddressError, InvalidSplit
from layersplit.domain.models import BillIntent, PaymentIntent, SplitKind
from layersplit.utils.display import format_sui

SUI_ADDRESS_PATTERN = re.compile(r"^0x[a-fA-F0-9]{64}$")

MODULE = "layersplit"


def validate_address(address: str | None) -> str:
    """Reject anything that is not a full-length Sui address"""
    if not address or not SUI_ADDRESS_PATTERN.match(address):
        raise InvalidAddressError(address or "")
    return address


@dataclass(frozen=True)
class TransactionDescription:
    """Opaque, serializable unsigned transaction plus a summary for humans"""

    commands: List[Dict[str, Any]]
    summary: str
    sender: str | None = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"version": 1, "sender": self.sender, "commands": self.commands}

    def serialize(self) -> str:
        """Base64 of canonical JSON; stable for identical inputs"""
        payload = json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"))
        return base64.b64encode(payload.encode("utf-8")).decode("ascii")


def _object(object_id: str) -> Dict[str, Any]:
    return {"kind": "object", "id": object_id}


def _pure(type_tag: str, value: Any) -> Dict[str, Any]:
    return {"kind": "pure", "type": type_tag, "value": value}


def _bytes(text: str) -> Dict[str, Any]:
    return _pure("vector<u8>", list(text.encode("utf-8")))


class SuiTransactionBuilder:
    """
    Builds move-call descriptions against the LayerSplit package.

    Pure: no network access and no ledger state is touched, so every
    build can be repeated safely. u64 values are emitted as decimal
    strings to survive JSON round trips without precision loss.
    """

    def __init__(self, package_id: str, registry_id: str, clock_id: str = "0x6"):
        self.package_id = package_id
        self.registry_id = registry_id
        self.clock_id = clock_id

    def _target(self, function: str) -> str:
        return f"{self.package_id}::{MODULE}::{function}"

    def build_create_bill(self, intent: BillIntent, sender: str | None = None) -> TransactionDescription:
        """
        Describe create_bill_equal_split / create_bill_custom_split.

        Raises:
            InvalidAddressError: any debtor address is malformed
            InvalidSplit: CUSTOM amounts missing or misaligned, or DUTCH
        """
        debtors = [validate_address(address) for address in intent.debtor_addresses]
        if not debtors:
            raise InvalidSplit("transaction needs at least one debtor address")

        arguments = [
            _object(self.registry_id),
            _object(self.clock_id),
            _bytes(intent.title),
            _bytes(intent.description),
            _pure("u64", str(intent.total.units)),
            _pure("vector<address>", debtors),
        ]

        if intent.kind == SplitKind.EQUAL:
            function = "create_bill_equal_split"
        elif intent.kind == SplitKind.CUSTOM:
            if intent.amounts is None or len(intent.amounts) != len(debtors):
                raise InvalidSplit("custom split requires one amount per debtor address")
            function = "create_bill_custom_split"
            arguments.append(_pure("vector<u64>", [str(amount.units) for amount in intent.amounts]))
        else:
            raise InvalidSplit(f"split kind {intent.kind.value} is not supported")

        arguments.append(_pure("option<vector<u8>>", None))  # receipt hash

        summary = (
            f"Create bill '{intent.title}' for {format_sui(intent.total)} SUI "
            f"split {intent.kind.value.lower()} among {len(debtors)} debtor(s)"
        )
        return TransactionDescription(
            commands=[{"MoveCall": {"target": self._target(function), "arguments": arguments}}],
            summary=summary,
            sender=validate_address(sender) if sender else None,
            metadata={"function": function},
        )

    def build_payment(self, intent: PaymentIntent) -> TransactionDescription:
        """
        Describe a payment: split the amount off the gas coin, then call
        pay_debt_full when it covers the whole total due, else
        pay_debt_partial.
        """
        payer = validate_address(intent.payer_address)
        validate_address(intent.creditor_address)
        if intent.amount.units <= 0:
            raise InvalidSplit("payment amount must be greater than zero")

        function = "pay_debt_full" if intent.amount >= intent.total_due else "pay_debt_partial"
        commands = [
            {"SplitCoins": {"coin": {"kind": "gas"}, "amounts": [_pure("u64", str(intent.amount.units))]}},
            {
                "MoveCall": {
                    "target": self._target(function),
                    "arguments": [
                        _object(intent.debt_object_id),
                        _object(intent.bill_object_id),
                        _object(self.clock_id),
                        {"kind": "result", "index": 0},
                    ],
                }
            },
        ]
        summary = f"Pay {format_sui(intent.amount)} SUI towards debt {intent.debt_object_id[:10]}..."
        return TransactionDescription(
            commands=commands,
            summary=summary,
            sender=payer,
            metadata={"function": function},
        )

    def build_interest_query(self, debt_object_id: str, bill_object_id: str) -> TransactionDescription:
        """Describe the read-only calculate_interest view call"""
        return TransactionDescription(
            commands=[
                {
                    "MoveCall": {
                        "target": self._target("calculate_interest"),
                        "arguments": [_object(debt_object_id), _object(bill_object_id), _object(self.clock_id)],
                    }
                }
            ],
            summary=f"Query interest for debt {debt_object_id[:10]}...",
            metadata={"function": "calculate_interest"},
        )
