"""
AI Agents for Finance Tracker

Two thin request/response wrappers around Gemini:

1. RECEIPT EXTRACTION AGENT:
   - CAN: Read a receipt image or PDF and propose merchant, amount, date,
     kind (income/expense), line items and one category
   - CANNOT: Save anything. The proposal only pre-fills the entry form
   - MUST: Pick the category from the closed list it was given. We do not
     trust that it did: `match_category` checks the answer

2. FINANCIAL ASSISTANT AGENT:
   - CAN: Answer questions about the user's own data, compute sums,
     suggest savings with reference to the goals
   - CANNOT: Use data other than the snapshot it is handed
   - NEVER raises to the caller: failures become a fixed fallback reply

No call is retried automatically, and no timeout is imposed.
"""

import json
from typing import Any, Callable, Optional

import google.generativeai as genai
from pydantic import BaseModel, Field, ValidationError

from finance_tracker.audit import ActivityLogger
from finance_tracker.config import get_settings
from finance_tracker.models.defaults import DEFAULT_CATEGORY_NAMES
from finance_tracker.models.finance import (
    Category,
    ChatMessage,
    Goal,
    Investment,
    PreparedDocument,
    ReceiptExtraction,
    Transaction,
    TransactionItem,
)


CHAT_FALLBACK_MESSAGE = (
    "I had a problem connecting to the AI service. Please try again."
)
CHAT_EMPTY_REPLY_MESSAGE = "Sorry, I couldn't process that request."


class AIGatewayError(Exception):
    """Base exception for model service errors."""
    pass


class AIConfigurationError(AIGatewayError):
    """The Gemini credential is missing or invalid."""
    pass


class ExtractionFailedError(AIGatewayError):
    """Network failure, empty answer or unparseable answer from extraction."""
    pass


# Schema the extraction answer must follow (Gemini OpenAPI subset)
RECEIPT_RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "merchant": {"type": "STRING", "description": "Store, company or payer name"},
        "amount": {"type": "NUMBER", "description": "Final total of the document"},
        "date": {"type": "STRING", "description": "ISO date YYYY-MM-DD"},
        "categoryName": {"type": "STRING", "description": "Category chosen from the list"},
        "type": {
            "type": "STRING",
            "enum": ["income", "expense"],
            "description": "Whether the document records income or an expense",
        },
        "items": {
            "type": "ARRAY",
            "description": "Line items with their prices",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "description": {"type": "STRING"},
                    "amount": {"type": "NUMBER"},
                },
                "required": ["description", "amount"],
            },
        },
    },
    "required": ["amount", "merchant", "type", "categoryName", "items"],
}


def _configure_genai() -> Any:
    """Configure the SDK from settings and return the Gemini settings."""
    try:
        settings = get_settings().gemini
    except ValidationError as e:
        raise AIConfigurationError(
            "GEMINI_API_KEY is not set; AI features are unavailable"
        ) from e
    genai.configure(api_key=settings.api_key)
    return settings


def match_category(name: str, categories: list[Category]) -> Optional[Category]:
    """
    Resolve a category name proposed by the model against known categories.

    1. Case-insensitive exact match
    2. Case-insensitive containment, either way round
       ("Comida y Alimentación" finds "Alimentación" and vice versa)

    Returns None when nothing matches; callers then keep whatever category
    was selected before.
    """
    wanted = (name or "").strip().casefold()
    if not wanted:
        return None

    for category in categories:
        if category.name.casefold() == wanted:
            return category

    for category in categories:
        if wanted in category.name.casefold():
            return category

    for category in categories:
        if category.name.casefold() in wanted:
            return category

    return None


def build_extraction_prompt(category_names: list[str]) -> str:
    """Instruction text sent alongside the document."""
    names = ", ".join(category_names or DEFAULT_CATEGORY_NAMES)
    return f"""You are an expert bookkeeping assistant. Analyse this financial document (image or PDF).

TASK 1: CLASSIFY THE TRANSACTION (CRITICAL)
- Decide whether it is an EXPENSE or an INCOME.
- Income hints: "Liquidación de Sueldo", "Nómina", payslip, salary, "Honorarios", fees,
  "Abono", "Transferencia Recibida", transfer received, refund, "Devolución",
  an invoice issued by the user.
- Expense hints: "Ticket", "Boleta Fiscal", "Factura de Compra", "Total a Pagar",
  "Consumo", purchase receipts, supermarket, restaurant and shop tickets.

TASK 2: EXTRACT THE DATA
- merchant: name of the store, company or person paying.
- amount: the final total of the document.
- date: format YYYY-MM-DD. If the year is missing, assume the current year.
- items: the individual products or services with their prices when legible.
  If there are no clear individual items, return one item with a general description.

TASK 3: CATEGORISE
- Put the transaction in EXACTLY ONE of these categories: [{names}].
- Copy the category name exactly as written in the list.
- For income, prefer an income-related category ("Salario", "Ventas", "Ingresos ...")
  if one exists; otherwise use the closest generic one.
- For an expense, pick the most logical category.

Return ONLY valid JSON."""


def _extract_line_items(raw_items: Any) -> list[TransactionItem]:
    """Build line items from the raw answer, skipping malformed entries."""
    items = []

    if not isinstance(raw_items, list):
        return items

    for raw in raw_items:
        if not isinstance(raw, dict):
            continue
        try:
            description = str(raw.get("description") or "").strip() or "Item"
            items.append(TransactionItem(
                description=description[:200],
                amount=raw.get("amount"),
            ))
        except ValidationError:
            continue

    return items


def parse_extraction_response(text: Optional[str]) -> ReceiptExtraction:
    """
    Turn the model's JSON answer into a ReceiptExtraction.

    Raises:
        ExtractionFailedError: Empty answer, invalid JSON or missing fields
    """
    if not text or not text.strip():
        raise ExtractionFailedError("The AI service returned an empty answer")

    text = text.strip()
    start = text.find("{")
    end = text.rfind("}") + 1
    if start < 0 or end <= start:
        raise ExtractionFailedError("The AI service answer contains no JSON object")

    try:
        data = json.loads(text[start:end])
    except json.JSONDecodeError as e:
        raise ExtractionFailedError(f"The AI service answer is not valid JSON: {e}")

    if not isinstance(data, dict):
        raise ExtractionFailedError("The AI service answer is not a JSON object")

    data = dict(data)
    data["items"] = _extract_line_items(data.get("items"))

    try:
        return ReceiptExtraction.model_validate(data)
    except ValidationError as e:
        raise ExtractionFailedError(f"The AI service answer is incomplete: {e}")


class ReceiptExtractionAgent:
    """
    AI agent reading receipts and other financial documents.

    BOUNDARIES:
    - NEVER persists data
    - Output is a proposal for the entry form, reviewed by the user
    """

    def __init__(self, model: Optional[Any] = None):
        """
        Args:
            model: Object with an async `generate_content_async`. Built from
                   settings when omitted.

        Raises:
            AIConfigurationError: No model given and no credential configured
        """
        self._model = model or self._build_model()

    @staticmethod
    def _build_model() -> Any:
        settings = _configure_genai()
        return genai.GenerativeModel(
            model_name=settings.model_name,
            generation_config={
                "temperature": settings.temperature,
                "max_output_tokens": settings.max_tokens,
                "response_mime_type": "application/json",
                "response_schema": RECEIPT_RESPONSE_SCHEMA,
            },
        )

    async def extract(
        self,
        document: PreparedDocument,
        category_names: Optional[list[str]] = None,
    ) -> ReceiptExtraction:
        """
        Extract transaction data from a prepared document.

        Args:
            document: Output of the DocumentPreprocessor
            category_names: Closed set of category names to choose from;
                            the default list is used when empty

        Raises:
            ExtractionFailedError: On any network or parse failure
        """
        contents = [
            {"mime_type": document.mime_type, "data": document.data},
            build_extraction_prompt(category_names or DEFAULT_CATEGORY_NAMES),
        ]

        try:
            response = await self._model.generate_content_async(contents)
            text = response.text
        except Exception as e:
            raise ExtractionFailedError(f"AI service request failed: {e}") from e

        return parse_extraction_response(text)


class FinancialContext(BaseModel):
    """
    Snapshot of the user's data handed to the assistant.

    Bounded to the most recent transactions; everything else is complete.
    """

    transaction_count: int = Field(ge=0, description="Size of the full collection")
    transactions: list[Transaction] = Field(default_factory=list)
    categories: list[Category] = Field(default_factory=list)
    goals: list[Goal] = Field(default_factory=list)
    investments: list[Investment] = Field(default_factory=list)

    @classmethod
    def from_collections(
        cls,
        transactions: list[Transaction],
        categories: list[Category],
        goals: list[Goal],
        investments: list[Investment],
        limit: int = 50,
    ) -> "FinancialContext":
        """`transactions` must be newest first; the first `limit` are kept."""
        return cls(
            transaction_count=len(transactions),
            transactions=transactions[:limit],
            categories=categories,
            goals=goals,
            investments=investments,
        )

    @classmethod
    def from_store(cls, store: Any, limit: int = 50) -> "FinancialContext":
        return cls.from_collections(
            transactions=store.transactions,
            categories=store.categories,
            goals=store.goals,
            investments=store.investments,
            limit=limit,
        )

    def serialize(self) -> str:
        """Deterministic JSON: same data, same string."""
        return self.model_dump_json()


def build_system_instruction(context: FinancialContext) -> str:
    """System prompt embedding the serialized data snapshot."""
    return f"""CURRENT FINANCIAL CONTEXT OF THE USER (JSON):
{context.serialize()}

The snapshot lists the {len(context.transactions)} most recent of {context.transaction_count} transactions,
all budget categories, savings goals and investments. Amounts are decimal strings.

INSTRUCTIONS:
You are "FinanzaBot", an expert, friendly and motivating financial assistant.
- Answer STRICTLY from the data above. If the data does not contain the answer, say so.
- When asked about spending, compute the sums from the JSON.
- When suggesting savings, look at the user's goals.
- Be concise and direct. Use Markdown for lists and bold text.
- Reply in the language the user writes in."""


class FinancialAssistantAgent:
    """
    Conversational assistant over the user's financial snapshot.

    A fresh chat is opened for every message: the system instruction
    carries the latest snapshot, and the prior turns are passed as history.
    """

    def __init__(
        self,
        model_factory: Optional[Callable[[str], Any]] = None,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        """
        Args:
            model_factory: Called with the system instruction, returns an
                           object with `start_chat(history=...)`. Built from
                           settings when omitted.
            activity_logger: Where failures are reported

        Raises:
            AIConfigurationError: No factory given and no credential configured
        """
        self._model_factory = model_factory or self._build_factory()
        self._logger = activity_logger or ActivityLogger()

    @staticmethod
    def _build_factory() -> Callable[[str], Any]:
        settings = _configure_genai()

        def factory(system_instruction: str) -> Any:
            return genai.GenerativeModel(
                model_name=settings.model_name,
                system_instruction=system_instruction,
                generation_config={
                    "temperature": settings.temperature,
                    "max_output_tokens": settings.max_tokens,
                },
            )

        return factory

    @staticmethod
    def history_to_contents(history: list[ChatMessage]) -> list[dict]:
        return [
            {"role": message.role.value, "parts": [message.text]}
            for message in history
        ]

    async def reply(
        self,
        history: list[ChatMessage],
        message: str,
        context: FinancialContext,
    ) -> str:
        """
        Answer `message` given the prior conversation and the data snapshot.

        Never raises: any failure returns CHAT_FALLBACK_MESSAGE.
        """
        try:
            model = self._model_factory(build_system_instruction(context))
            chat = model.start_chat(history=self.history_to_contents(history))
            response = await chat.send_message_async(message)
            text = response.text
        except Exception as e:
            self._logger.log_chat_failed(str(e))
            return CHAT_FALLBACK_MESSAGE

        if not text or not text.strip():
            return CHAT_EMPTY_REPLY_MESSAGE

        self._logger.log_chat_replied(len(history), len(text))
        return text.strip()
