"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def __init__(self, *args: Any, service_name: str = "layersplit", **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.service_name = service_name

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = self.service_name


def setup_logging(level: str = "INFO", service_name: str = "layersplit") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s",
        service_name=service_name,
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_ledger_event(step: str, **fields: Any) -> None:
    """Log a ledger state change with its identifiers for later reconciliation"""
    logging.getLogger("layersplit.ledger").info(
        step.replace("_", " ").capitalize(),
        extra={"step": step, **{key: str(value) for key, value in fields.items()}},
    )


def log_mismatch(reason: str, entity: str, entity_id: Any, transaction_id: str | None, detail: str) -> None:
    """Critical: local mirror and external ledger disagree; an operator must look"""
    logging.getLogger("layersplit.ledger").critical(
        f"Reconciliation mismatch: {detail}",
        extra={
            "step": "reconciliation_mismatch",
            "reason": reason,
            "entity": entity,
            "entity_id": str(entity_id),
            "transaction_id": transaction_id,
        },
    )
