"""
Activity Event Models for Finance Tracker

Every state change and every call to the model service produces an event.
Events go to the local structured log only: there is no durable audit
store, and losing an event never affects the operation that produced it.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class ActivityEventType(str, Enum):
    """Types of events we log."""
    # State changes
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_DELETED = "transaction_deleted"
    GOAL_SAVED = "goal_saved"
    GOAL_DELETED = "goal_deleted"
    INVESTMENT_SAVED = "investment_saved"
    INVESTMENT_DELETED = "investment_deleted"
    CURRENCY_CHANGED = "currency_changed"

    # Storage
    STATE_LOADED = "state_loaded"
    SNAPSHOT_CORRUPT = "snapshot_corrupt"

    # Document scanning
    DOCUMENT_PREPARED = "document_prepared"
    DOCUMENT_REJECTED = "document_rejected"
    EXTRACTION_COMPLETED = "extraction_completed"
    EXTRACTION_FAILED = "extraction_failed"
    CATEGORY_UNMATCHED = "category_unmatched"

    # Assistant
    CHAT_REPLIED = "chat_replied"
    CHAT_FAILED = "chat_failed"


class ActivitySeverity(str, Enum):
    """Severity level for activity events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class ActivityEvent(BaseModel):
    """A single activity event."""

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.now,
        description="When the event occurred"
    )
    event_type: ActivityEventType
    severity: ActivitySeverity = ActivitySeverity.INFO

    # What entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'goal', 'document')"
    )
    entity_id: Optional[str] = None

    # Ties together the events of one user action (e.g. one scan)
    correlation_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class ActivityEventBuilder:
    """
    Helper class to build activity events with common patterns.

    Usage:
        event = ActivityEventBuilder.transaction_added(transaction_id, "expense", "45.50")
        event = ActivityEventBuilder.extraction_failed(error, correlation_id)
    """

    @staticmethod
    def transaction_added(
        transaction_id: str,
        kind: str,
        amount: str,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Transaction added: {kind} {amount}",
            details={"kind": kind, "amount": amount},
        )

    @staticmethod
    def entity_deleted(
        event_type: ActivityEventType,
        entity_type: str,
        entity_id: str,
        existed: bool,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            description=(
                f"{entity_type.capitalize()} deleted"
                if existed
                else f"{entity_type.capitalize()} not found, nothing deleted"
            ),
            details={"existed": existed},
        )

    @staticmethod
    def entity_saved(
        event_type: ActivityEventType,
        entity_type: str,
        entity_id: str,
        created: bool,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type.capitalize()} {'created' if created else 'updated'}",
            details={"created": created},
        )

    @staticmethod
    def currency_changed(old: str, new: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.CURRENCY_CHANGED,
            description=f"Currency changed from {old} to {new}",
            details={"old": old, "new": new},
        )

    @staticmethod
    def state_loaded(counts: dict[str, int], seeded: list[str]) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.STATE_LOADED,
            description="State loaded from storage",
            details={"counts": counts, "seeded": seeded},
        )

    @staticmethod
    def snapshot_corrupt(key: str, error_message: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.SNAPSHOT_CORRUPT,
            severity=ActivitySeverity.WARNING,
            entity_type="snapshot",
            entity_id=key,
            description=f"Snapshot '{key}' could not be read, using defaults",
            error_message=error_message,
        )

    @staticmethod
    def document_prepared(
        mime_type: str,
        original_size: int,
        prepared_size: int,
        correlation_id: UUID,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.DOCUMENT_PREPARED,
            entity_type="document",
            correlation_id=correlation_id,
            description=f"Document prepared as {mime_type}",
            details={
                "mime_type": mime_type,
                "original_size_bytes": original_size,
                "prepared_size_bytes": prepared_size,
            },
        )

    @staticmethod
    def document_rejected(
        mime_type: str,
        reason: str,
        correlation_id: UUID,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.DOCUMENT_REJECTED,
            severity=ActivitySeverity.WARNING,
            entity_type="document",
            correlation_id=correlation_id,
            description=f"Document rejected ({mime_type})",
            error_message=reason,
            details={"mime_type": mime_type},
        )

    @staticmethod
    def extraction_completed(
        kind: str,
        category_name: str,
        item_count: int,
        correlation_id: UUID,
        offered_category: bool = True,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.EXTRACTION_COMPLETED,
            entity_type="document",
            correlation_id=correlation_id,
            description=f"Extraction completed: {kind} in '{category_name}'",
            details={
                "kind": kind,
                "category_name": category_name,
                "item_count": item_count,
                "offered_category": offered_category,
            },
        )

    @staticmethod
    def extraction_failed(
        error_message: str,
        correlation_id: UUID,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.EXTRACTION_FAILED,
            severity=ActivitySeverity.ERROR,
            entity_type="document",
            correlation_id=correlation_id,
            description="Document extraction failed",
            error_message=error_message,
            details={"service": "gemini"},
        )

    @staticmethod
    def category_unmatched(
        category_name: str,
        correlation_id: UUID,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.CATEGORY_UNMATCHED,
            severity=ActivitySeverity.WARNING,
            correlation_id=correlation_id,
            description=f"Suggested category '{category_name}' matches no known category",
            details={"category_name": category_name},
        )

    @staticmethod
    def chat_replied(history_length: int, reply_length: int) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.CHAT_REPLIED,
            entity_type="chat",
            description="Assistant replied",
            details={"history_length": history_length, "reply_length": reply_length},
        )

    @staticmethod
    def chat_failed(error_message: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.CHAT_FAILED,
            severity=ActivitySeverity.ERROR,
            entity_type="chat",
            description="Assistant call failed, fallback reply used",
            error_message=error_message,
            details={"service": "gemini"},
        )
