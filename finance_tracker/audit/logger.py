"""
Activity Logger

Every significant action in the tracker is logged locally as structured JSON.
This provides:
1. Traceability of state changes
2. Debugging capability around the model service calls

The activity logger:
- Only writes to the local log (no durable store)
- Gracefully handles failures (never crashes the app if logging fails)
- Supports correlation IDs to trace related events
"""

import logging
import sys
from typing import Optional
from uuid import UUID, uuid4

import structlog

from finance_tracker.models.audit import ActivityEvent, ActivityEventBuilder


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route the stdlib root logger (and so structlog) to stderr at `level`."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
    )


class ActivityLogger:
    """
    Central activity logging service.

    Thin wrapper that turns ActivityEvents into structlog calls at the
    matching level.
    """

    def __init__(self, logger_name: str = "finance_tracker"):
        self._logger = structlog.get_logger(logger_name)

    def log(self, event: ActivityEvent) -> bool:
        """
        Log an activity event.

        Returns False if the log call itself failed.
        """
        try:
            log_dict = event.to_log_dict()
            severity = event.severity.value
            if severity == "error":
                self._logger.error("activity_event", **log_dict)
            elif severity == "warning":
                self._logger.warning("activity_event", **log_dict)
            elif severity == "debug":
                self._logger.debug("activity_event", **log_dict)
            else:
                self._logger.info("activity_event", **log_dict)
        except Exception:
            return False
        return True

    def log_transaction_added(self, transaction_id: str, kind: str, amount: str) -> None:
        self.log(ActivityEventBuilder.transaction_added(transaction_id, kind, amount))

    def log_document_prepared(
        self,
        mime_type: str,
        original_size: int,
        prepared_size: int,
        correlation_id: UUID,
    ) -> None:
        """Log a successful preprocessing step."""
        self.log(ActivityEventBuilder.document_prepared(
            mime_type=mime_type,
            original_size=original_size,
            prepared_size=prepared_size,
            correlation_id=correlation_id,
        ))

    def log_document_rejected(
        self,
        mime_type: str,
        reason: str,
        correlation_id: UUID,
    ) -> None:
        """Log a document refused before any network call."""
        self.log(ActivityEventBuilder.document_rejected(
            mime_type=mime_type,
            reason=reason,
            correlation_id=correlation_id,
        ))

    def log_extraction_completed(
        self,
        kind: str,
        category_name: str,
        item_count: int,
        correlation_id: UUID,
        offered_category: bool = True,
    ) -> None:
        self.log(ActivityEventBuilder.extraction_completed(
            kind=kind,
            category_name=category_name,
            item_count=item_count,
            offered_category=offered_category,
            correlation_id=correlation_id,
        ))

    def log_extraction_failed(
        self,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        self.log(ActivityEventBuilder.extraction_failed(
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    def log_category_unmatched(
        self,
        category_name: str,
        correlation_id: UUID,
    ) -> None:
        self.log(ActivityEventBuilder.category_unmatched(
            category_name=category_name,
            correlation_id=correlation_id,
        ))

    def log_chat_replied(self, history_length: int, reply_length: int) -> None:
        self.log(ActivityEventBuilder.chat_replied(history_length, reply_length))

    def log_chat_failed(self, error_message: str) -> None:
        self.log(ActivityEventBuilder.chat_failed(error_message))

    def log_snapshot_corrupt(self, key: str, error_message: str) -> None:
        self.log(ActivityEventBuilder.snapshot_corrupt(key, error_message))


def create_correlation_id(existing: Optional[UUID] = None) -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a user action (e.g., a document scan) and
    pass it through all subsequent operations.
    """
    return existing or uuid4()
