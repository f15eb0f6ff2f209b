"""Structured JSON logging."""

import logging
import sys
from datetime import datetime, UTC
from typing import Any

from pythonjsonlogger import jsonlogger

SERVICE_NAME = "agencyledger"
AUDIT_LOGGER = "agencyledger.audit"


class LedgerJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter adding timestamp, level and service fields."""

    def add_fields(
        self, log_record: dict[str, Any], record: logging.LogRecord, message_dict: dict[str, Any]
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(UTC).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = SERVICE_NAME


def setup_logging(level: str = "WARNING", stream=None) -> None:
    """Route agencyledger loggers to a JSON handler on stderr."""
    logger = logging.getLogger(SERVICE_NAME)
    logger.setLevel(level.upper())
    logger.handlers.clear()
    logger.propagate = False

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(LedgerJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s"))
    logger.addHandler(handler)


def log_audit(action: str, entity: str, entity_id: int, **changes: Any) -> None:
    """Log one committed mutation as an audit record."""
    logging.getLogger(AUDIT_LOGGER).info(
        f"{action} {entity} {entity_id}",
        extra={
            "action": action,
            "entity": entity,
            "entity_id": entity_id,
            "changes": {key: str(value) for key, value in changes.items()},
        },
    )
