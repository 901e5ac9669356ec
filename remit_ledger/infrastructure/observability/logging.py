"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger

from remit_ledger.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_transaction(
    request_id: str,
    transaction_id: str,
    receipt_number: str,
    type: str,
    amount_cents: int,
    tax_amount_cents: int,
    tax_log_recorded: bool,
    duration_ms: float,
) -> None:
    """Log structured transaction outcome for reconciliation"""
    logging.info(
        "Transaction created",
        extra={
            "request_id": request_id,
            "transaction_id": transaction_id,
            "receipt_number": receipt_number,
            "step": "transaction_complete",
            "transaction_type": type,
            "amount_cents": amount_cents,
            "tax_amount_cents": tax_amount_cents,
            "tax_log_recorded": tax_log_recorded,
            "duration_ms": duration_ms,
        },
    )


def log_withdraw(
    request_id: str,
    withdraw_id: str,
    client_id: str,
    amount_cents: int,
    tax_amount_cents: int,
    balance_after_cents: Optional[int],
    duration_ms: float,
) -> None:
    logging.info(
        "Withdraw completed",
        extra={
            "request_id": request_id,
            "withdraw_id": withdraw_id,
            "client_id": client_id,
            "step": "withdraw_complete",
            "amount_cents": amount_cents,
            "tax_amount_cents": tax_amount_cents,
            "balance_after_cents": balance_after_cents,
            "duration_ms": duration_ms,
        },
    )
