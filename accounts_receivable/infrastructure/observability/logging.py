"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from accounts_receivable.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging on the root logger"""
    logger = logging.getLogger()
    logger.setLevel(level)

    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_receivable_event(
    request_id: str,
    action: str,
    receivable_id: Optional[str] = None,
    username: Optional[str] = None,
    **fields: Any,
) -> None:
    """Log a completed receivable operation for audit and analysis"""
    logging.getLogger("accounts_receivable.audit").info(
        "Receivable %s completed",
        action,
        extra={
            "request_id": request_id,
            "step": action,
            "receivable_id": receivable_id,
            "username": username,
            **fields,
        },
    )


def log_auth_failure(request_id: str, reason: str, method: str, path: str, username: Optional[str] = None) -> None:
    """Log a rejected request; upstream details are logged by the client, never returned"""
    logging.getLogger("accounts_receivable.auth").warning(
        "Request rejected",
        extra={
            "request_id": request_id,
            "reason": reason,
            "http_method": method,
            "path": path,
            "username": username,
        },
    )
