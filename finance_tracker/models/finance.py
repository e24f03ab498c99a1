"""
Core Data Models for Finance Tracker

These models define the schemas for everything the tracker keeps in memory
and mirrors to local storage. They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for storage, logging and the assistant context

Money is always a Decimal rounded to cents. Floats coming from forms or from
the model service are converted on the way in, so sums never drift.
"""

import base64
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
)


CENTS = Decimal("0.01")


def to_money(value: Any) -> Any:
    """Round numeric input to cents; leave anything else for pydantic to reject."""
    if value is None or isinstance(value, bool):
        return value
    try:
        return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)
    except (InvalidOperation, TypeError, ValueError):
        return value


Money = Annotated[Decimal, BeforeValidator(to_money), Field(ge=0)]


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionKind(str, Enum):
    """Whether money came in or went out."""
    INCOME = "income"
    EXPENSE = "expense"


class CategoryKind(str, Enum):
    """Budget classification of a category."""
    FIXED = "fixed"
    VARIABLE = "variable"


class PaymentMethod(str, Enum):
    """How a transaction was paid."""
    CASH = "cash"
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    TRANSFER_PESOS = "transfer_pesos"
    TRANSFER_USD = "transfer_usd"
    TRANSFER_USDT = "transfer_usdt"
    CRYPTO_WALLET = "crypto_wallet"


class InvestmentType(str, Enum):
    """Asset classes an investment can belong to."""
    STOCK = "Stock"
    CRYPTO = "Crypto"
    CASH = "Cash"
    REAL_ESTATE = "RealEstate"


class CurrencyCode(str, Enum):
    """
    Display currency.

    Presentation only: changing it never converts stored amounts.
    """
    ARS = "ARS"
    USD = "USD"
    EUR = "EUR"
    USDT = "USDT"

    @property
    def symbol(self) -> str:
        return CURRENCY_SYMBOLS[self]


CURRENCY_SYMBOLS: dict[CurrencyCode, str] = {
    CurrencyCode.ARS: "$",
    CurrencyCode.USD: "US$",
    CurrencyCode.EUR: "€",
    CurrencyCode.USDT: "₮",
}


class ChatRole(str, Enum):
    """Author of a chat message."""
    USER = "user"
    MODEL = "model"


# =============================================================================
# CORE ENTITIES
# =============================================================================

class Category(BaseModel):
    """A named budget bucket."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    kind: CategoryKind
    budget: Money = Decimal("0")
    color: str = Field(
        default="#64748b",
        pattern="^#[0-9a-fA-F]{6}$",
        description="Hex colour used in charts"
    )


class TransactionItem(BaseModel):
    """
    Individual line item on a receipt.

    The sum of items is advisory: it is never reconciled with the
    parent transaction amount.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    description: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Description of the line item"
    )
    amount: Money


class Transaction(BaseModel):
    """
    A single recorded income or expense.

    Transactions are created and deleted, never updated in place.
    `category_id` should point at a known category, but orphans are
    tolerated and reported under "Other".
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    kind: TransactionKind
    amount: Money
    category_id: str = Field(..., min_length=1)
    date: date
    note: str = Field(default="", max_length=500)
    merchant: str = Field(default="", max_length=200)
    payment_method: PaymentMethod = PaymentMethod.DEBIT_CARD
    receipt_url: Optional[str] = None
    is_recurring: bool = False
    items: list[TransactionItem] = Field(default_factory=list)

    @property
    def items_total(self) -> Decimal:
        return sum((item.amount for item in self.items), Decimal("0"))


class TransactionDraft(BaseModel):
    """
    Form state for a transaction that has not been submitted yet.

    Amount and category may still be missing; `FinanceStore.add_transaction`
    refuses incomplete drafts.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    kind: TransactionKind = TransactionKind.EXPENSE
    amount: Optional[Money] = None
    category_id: Optional[str] = None
    date: date
    note: str = ""
    merchant: str = ""
    payment_method: PaymentMethod = PaymentMethod.DEBIT_CARD
    items: list[TransactionItem] = Field(default_factory=list)

    # Set when the fields were filled from a scanned document
    auto_filled: bool = False

    @classmethod
    def blank(cls, categories: list[Category]) -> "TransactionDraft":
        """An empty form preselecting the first category, dated today."""
        return cls(
            category_id=categories[0].id if categories else None,
            date=date.today(),
        )

    def transaction_fields(self) -> dict[str, Any]:
        return self.model_dump(exclude={"auto_filled"})


class GoalDraft(BaseModel):
    """Goal fields as submitted by the goal form."""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=200)
    target_amount: Money
    current_amount: Money = Decimal("0")
    deadline: Optional[date] = None
    monthly_contribution: Money = Decimal("0")


class Goal(GoalDraft):
    """
    A savings target.

    Nothing stops `current_amount` from exceeding `target_amount`;
    progress is clamped only when displayed.
    """
    id: str = Field(..., min_length=1)

    @computed_field
    @property
    def progress_percent(self) -> int:
        if self.target_amount <= 0:
            return 0
        ratio = self.current_amount / self.target_amount * 100
        return max(0, min(100, int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))))


class InvestmentDraft(BaseModel):
    """Investment fields as submitted by the investment form."""
    model_config = ConfigDict(str_strip_whitespace=True)

    asset_name: str = Field(..., min_length=1, max_length=200)
    amount: Money
    type: InvestmentType = InvestmentType.STOCK
    date: date
    expected_return_rate: float = Field(
        default=0.0,
        description="Expected yearly return, in percent"
    )


class Investment(InvestmentDraft):
    """A recorded holding. Not a live market position."""
    id: str = Field(..., min_length=1)


class ChatMessage(BaseModel):
    """One message of the assistant conversation. Append-only."""

    id: str
    role: ChatRole
    text: str
    timestamp: datetime = Field(default_factory=datetime.now)


# =============================================================================
# DOCUMENT PROCESSING MODELS
# =============================================================================

class PreparedDocument(BaseModel):
    """
    A document ready to be sent to the extraction service.

    Images have already been resized and re-encoded as JPEG;
    PDFs carry their original bytes.
    """

    mime_type: str
    data: bytes
    width: Optional[int] = None
    height: Optional[int] = None
    original_size_bytes: int = Field(ge=0)

    @property
    def base64_payload(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    @property
    def data_url(self) -> str:
        """Self-describing `data:<type>;base64,<payload>` string."""
        return f"data:{self.mime_type};base64,{self.base64_payload}"


class ReceiptExtraction(BaseModel):
    """
    Structured result returned by the extraction service.

    CRITICAL: this is PROPOSED data. It only pre-fills the form; the user
    reviews it before anything is saved. The category name is not trusted:
    callers resolve it against the known categories with `match_category`.
    """
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    merchant: str = ""
    amount: Money
    document_date: Optional[date] = Field(
        default=None,
        validation_alias=AliasChoices("date", "document_date"),
    )
    category_name: str = Field(
        default="",
        validation_alias=AliasChoices("categoryName", "category_name"),
    )
    kind: TransactionKind = Field(
        default=TransactionKind.EXPENSE,
        validation_alias=AliasChoices("type", "kind"),
    )
    items: list[TransactionItem] = Field(default_factory=list)

    @field_validator("document_date", mode="before")
    @classmethod
    def parse_loose_date(cls, v: Any) -> Any:
        """Unreadable dates become None so the form keeps its own date."""
        if v is None or isinstance(v, date):
            return v
        if isinstance(v, str):
            text = v.strip()[:10]
            for fmt in ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y", "%Y/%m/%d"):
                try:
                    return datetime.strptime(text, fmt).date()
                except ValueError:
                    continue
        return None

    @field_validator("kind", mode="before")
    @classmethod
    def normalize_kind(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    def category_in_set(self, names: list[str]) -> bool:
        """Did the service pick one of the names it was offered (ignoring case)?"""
        wanted = self.category_name.casefold()
        return any(name.casefold() == wanted for name in names)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'orphan')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """Result of validating a form submission."""

    subject: str = Field(
        ...,
        description="What was validated: transaction, goal or investment"
    )
    validated_at: datetime = Field(
        default_factory=datetime.now
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    @property
    def is_valid(self) -> bool:
        """Only errors block a submission; warnings are shown alongside."""
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]
