"""
Main Orchestrator for Finance Tracker

This module ties together all the components and defines the
end-to-end flows for:
1. Receipt scan (file → preprocess → extract → pre-fill the entry form)
2. Assistant chat (message → snapshot of the data → reply)

DESIGN DECISION: The orchestrator enforces the boundaries:
- A scan only fills a draft; nothing persists until the user submits it
- Errors from the model service never reach the view: a scan failure
  becomes a message, a chat failure becomes a fallback reply
- Every step is logged
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union
from uuid import UUID

from finance_tracker.agents import (
    AIConfigurationError,
    ExtractionFailedError,
    FinancialAssistantAgent,
    FinancialContext,
    ReceiptExtractionAgent,
    match_category,
)
from finance_tracker.audit import ActivityLogger, configure_logging, create_correlation_id
from finance_tracker.config import get_settings
from finance_tracker.models.finance import (
    Category,
    ChatMessage,
    ChatRole,
    CurrencyCode,
    TransactionDraft,
)
from finance_tracker.services.image import (
    DocumentDecodeError,
    DocumentPreprocessor,
    UnsupportedFormatError,
    UploadTooLargeError,
)
from finance_tracker.services.storage import LocalStorage
from finance_tracker.state import FinanceStore, generate_id


UNSUPPORTED_FORMAT_MESSAGE = "Unsupported file type. Please upload an image or a PDF."
DOCUMENT_UNREADABLE_MESSAGE = (
    "Could not read the document. Try a clearer image or fill in the form manually."
)
SCAN_SUCCESS_MESSAGE = "Form pre-filled from the document. Review it before saving."

CHAT_GREETING = (
    "Hi! I'm FinanzaBot. Ask me about your spending, your savings, "
    "or whether you can afford that next purchase."
)


@dataclass
class ScanOutcome:
    """Result of a receipt scan: the draft to show and what to tell the user."""
    draft: TransactionDraft
    success: bool
    message: str


class ReceiptScanFlow:
    """
    Orchestrates the receipt scan flow.

    Flow:
    1. Preprocess → refuse unsupported files, downscale images
    2. Extract → one request to the model service
    3. Apply → copy the proposal onto the form draft

    On any failure the draft comes back unchanged so the user can
    continue with manual entry.
    """

    def __init__(
        self,
        extraction_agent: ReceiptExtractionAgent,
        preprocessor: Optional[DocumentPreprocessor] = None,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        self._agent = extraction_agent
        self._preprocessor = preprocessor or DocumentPreprocessor()
        self._logger = activity_logger or ActivityLogger()

    async def scan(
        self,
        raw: bytes,
        mime_type: str,
        draft: TransactionDraft,
        categories: list[Category],
        correlation_id: Optional[UUID] = None,
    ) -> ScanOutcome:
        """
        Scan a document and pre-fill `draft` with what was found.

        Returns:
            ScanOutcome with the updated draft on success, or the
            untouched draft and a user-facing message on failure
        """
        correlation_id = create_correlation_id(correlation_id)

        # Step 1: Preprocess (no network call yet)
        try:
            document = self._preprocessor.prepare(raw, mime_type)
        except UnsupportedFormatError as e:
            self._logger.log_document_rejected(mime_type, str(e), correlation_id)
            return ScanOutcome(draft=draft, success=False, message=UNSUPPORTED_FORMAT_MESSAGE)
        except UploadTooLargeError as e:
            self._logger.log_document_rejected(mime_type, str(e), correlation_id)
            return ScanOutcome(draft=draft, success=False, message=str(e))
        except DocumentDecodeError as e:
            self._logger.log_document_rejected(mime_type, str(e), correlation_id)
            return ScanOutcome(draft=draft, success=False, message=DOCUMENT_UNREADABLE_MESSAGE)

        self._logger.log_document_prepared(
            mime_type=document.mime_type,
            original_size=document.original_size_bytes,
            prepared_size=len(document.data),
            correlation_id=correlation_id,
        )

        # Step 2: Extract
        category_names = [c.name for c in categories]
        try:
            extraction = await self._agent.extract(document, category_names)
        except ExtractionFailedError as e:
            self._logger.log_extraction_failed(str(e), correlation_id)
            return ScanOutcome(draft=draft, success=False, message=DOCUMENT_UNREADABLE_MESSAGE)

        self._logger.log_extraction_completed(
            kind=extraction.kind.value,
            category_name=extraction.category_name,
            item_count=len(extraction.items),
            correlation_id=correlation_id,
            offered_category=extraction.category_in_set(category_names),
        )

        # Step 3: Apply to the draft, keeping the category if the name is unknown
        category = match_category(extraction.category_name, categories)
        if category is None:
            self._logger.log_category_unmatched(extraction.category_name, correlation_id)

        updates = {
            "amount": extraction.amount,
            "merchant": extraction.merchant,
            "items": extraction.items,
            "kind": extraction.kind,
            "category_id": category.id if category else draft.category_id,
            "auto_filled": True,
        }
        if extraction.document_date is not None:
            updates["date"] = extraction.document_date

        return ScanOutcome(
            draft=draft.model_copy(update=updates),
            success=True,
            message=SCAN_SUCCESS_MESSAGE,
        )


class ChatSession:
    """
    The assistant conversation.

    Messages are only ever appended. The whole list, greeting included,
    is sent as history with every new message.
    """

    def __init__(
        self,
        assistant: FinancialAssistantAgent,
        greeting: Optional[str] = CHAT_GREETING,
    ):
        self._assistant = assistant
        self._messages: list[ChatMessage] = []
        if greeting:
            self._append(ChatRole.MODEL, greeting)

    @property
    def messages(self) -> list[ChatMessage]:
        return list(self._messages)

    def _append(self, role: ChatRole, text: str) -> ChatMessage:
        message = ChatMessage(
            id=generate_id({m.id for m in self._messages}),
            role=role,
            text=text,
        )
        self._messages.append(message)
        return message

    async def send(self, text: str, context: FinancialContext) -> Optional[ChatMessage]:
        """
        Send a user message and append the assistant's reply.

        Blank input is ignored and returns None.
        """
        text = (text or "").strip()
        if not text:
            return None

        history = self.messages
        self._append(ChatRole.USER, text)
        reply = await self._assistant.reply(history, text, context)
        return self._append(ChatRole.MODEL, reply)


@dataclass
class AppComponents:
    """Everything the views need, built once per process."""
    store: FinanceStore
    activity_logger: ActivityLogger
    scan_flow: Optional[ReceiptScanFlow]
    assistant: Optional[FinancialAssistantAgent]
    ai_error: Optional[str] = None

    @property
    def ai_enabled(self) -> bool:
        return self.scan_flow is not None and self.assistant is not None


def create_app_components(
    data_dir: Optional[Union[str, Path]] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        data_dir: Where snapshots are kept. Defaults to the configured
                  storage directory.

    Missing AI credentials disable the scan and chat features only;
    the rest of the app keeps working.
    """
    settings = get_settings()
    configure_logging(settings.app.log_level)
    activity_logger = ActivityLogger()

    storage = LocalStorage.in_directory(data_dir or settings.storage.data_dir)
    store = FinanceStore.load(
        storage,
        activity_logger=activity_logger,
        default_currency=CurrencyCode(settings.app.default_currency),
    )

    scan_flow = None
    assistant = None
    ai_error = None
    try:
        scan_flow = ReceiptScanFlow(
            extraction_agent=ReceiptExtractionAgent(),
            activity_logger=activity_logger,
        )
        assistant = FinancialAssistantAgent(activity_logger=activity_logger)
    except AIConfigurationError as e:
        # AI not configured - continue without it
        scan_flow = None
        ai_error = str(e)

    return AppComponents(
        store=store,
        activity_logger=activity_logger,
        scan_flow=scan_flow,
        assistant=assistant,
        ai_error=ai_error,
    )
