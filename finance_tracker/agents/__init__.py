"""AI Agents package."""

from finance_tracker.agents.ai_agents import (
    CHAT_EMPTY_REPLY_MESSAGE,
    CHAT_FALLBACK_MESSAGE,
    AIConfigurationError,
    AIGatewayError,
    ExtractionFailedError,
    FinancialAssistantAgent,
    FinancialContext,
    ReceiptExtractionAgent,
    match_category,
)

__all__ = [
    "CHAT_EMPTY_REPLY_MESSAGE",
    "CHAT_FALLBACK_MESSAGE",
    "AIConfigurationError",
    "AIGatewayError",
    "ExtractionFailedError",
    "FinancialAssistantAgent",
    "FinancialContext",
    "ReceiptExtractionAgent",
    "match_category",
]
