"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from debit_gateway.domain.models import WithdrawalResult


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter adding timestamp, level and service name to every record"""

    def __init__(self, *args: Any, service_name: str = "debit-gateway", **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.service_name = service_name

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = self.service_name


def setup_logging(level: str = "INFO", service_name: str = "debit-gateway") -> None:
    """Configure structured JSON logging on the root logger"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s", service_name=service_name)
    )
    logger.addHandler(handler)


def log_withdrawal(request_id: str, result: WithdrawalResult, duration_ms: float) -> None:
    """Log a completed withdrawal and which account covered it"""
    logging.getLogger("debit_gateway.withdrawals").info(
        "Withdrawal completed",
        extra={
            "request_id": request_id,
            "debit_card_id": result.debit_card_id,
            "account_id": result.account_id,
            "transaction_id": result.outcome.transaction_id,
            "status": result.outcome.status.value,
            "accounts_attempted": result.accounts_attempted,
            "duration_ms": duration_ms,
        },
    )
