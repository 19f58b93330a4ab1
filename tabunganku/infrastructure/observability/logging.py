"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger.json import JsonFormatter


class CustomJsonFormatter(JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def __init__(self, *args: Any, service_name: str = "tabunganku", **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.service_name = service_name

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = self.service_name


def setup_logging(level: str = "INFO", service_name: str = "tabunganku") -> None:
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


def log_transaction(
    request_id: str,
    student_id: str,
    transaction_type: str,
    amount: int,
    saldo_before: int,
    saldo_after: int,
    duration_ms: float,
) -> None:
    """Log structured transaction outcome for reconciliation"""
    logging.info(
        "Transaction completed",
        extra={
            "request_id": request_id,
            "student_id": student_id,
            "step": "transaction_complete",
            "transaction_type": transaction_type,
            "amount": amount,
            "saldo_before": saldo_before,
            "saldo_after": saldo_after,
            "duration_ms": duration_ms,
        },
    )


def log_student_created(request_id: str, student_id: str, kelas: str, initial_saldo: int) -> None:
    logging.info(
        "Student created",
        extra={
            "request_id": request_id,
            "student_id": student_id,
            "step": "student_created",
            "kelas": kelas,
            "initial_saldo": initial_saldo,
        },
    )
