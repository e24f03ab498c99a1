"""
Data Models Package

This package contains all Pydantic models used in the Finance Tracker.
All data flowing through the system must conform to these schemas.
"""

from finance_tracker.models.finance import (
    CURRENCY_SYMBOLS,
    Category,
    CategoryKind,
    ChatMessage,
    ChatRole,
    CurrencyCode,
    Goal,
    GoalDraft,
    Investment,
    InvestmentDraft,
    InvestmentType,
    PaymentMethod,
    PreparedDocument,
    ReceiptExtraction,
    Transaction,
    TransactionDraft,
    TransactionItem,
    TransactionKind,
    ValidationIssue,
    ValidationResult,
)
from finance_tracker.models.audit import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
)

__all__ = [
    # Finance models
    "CURRENCY_SYMBOLS",
    "Category",
    "CategoryKind",
    "ChatMessage",
    "ChatRole",
    "CurrencyCode",
    "Goal",
    "GoalDraft",
    "Investment",
    "InvestmentDraft",
    "InvestmentType",
    "PaymentMethod",
    "PreparedDocument",
    "ReceiptExtraction",
    "Transaction",
    "TransactionDraft",
    "TransactionItem",
    "TransactionKind",
    "ValidationIssue",
    "ValidationResult",
    # Activity models
    "ActivityEvent",
    "ActivityEventBuilder",
    "ActivityEventType",
    "ActivitySeverity",
]
