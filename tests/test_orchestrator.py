"""Integration tests for the scan flow, chat session and component factory."""

import asyncio
import json
from datetime import date
from decimal import Decimal

import pytest
from PIL import Image

from conftest import FakeChatModelFactory, FakeExtractionModel, make_image
from finance_tracker.agents import (
    CHAT_FALLBACK_MESSAGE,
    FinancialAssistantAgent,
    FinancialContext,
    ReceiptExtractionAgent,
)
from finance_tracker.models import ChatRole, TransactionDraft, TransactionKind
from finance_tracker.models.defaults import default_categories
from finance_tracker.orchestrator import (
    CHAT_GREETING,
    DOCUMENT_UNREADABLE_MESSAGE,
    UNSUPPORTED_FORMAT_MESSAGE,
    ChatSession,
    ReceiptScanFlow,
    create_app_components,
)
from finance_tracker.services.image import DocumentPreprocessor


def receipt_json(**overrides) -> str:
    data = {
        "merchant": "Empresa Tech",
        "amount": 4500,
        "date": "2024-04-30",
        "categoryName": "Ingresos Laborales",
        "type": "income",
        "items": [{"description": "Sueldo abril", "amount": 4500}],
    }
    data.update(overrides)
    return json.dumps(data)


@pytest.fixture
def draft():
    return TransactionDraft(
        kind=TransactionKind.EXPENSE,
        category_id="c3",
        date=date(2024, 5, 1),
        note="typed by hand",
    )


def make_flow(model):
    return ReceiptScanFlow(
        extraction_agent=ReceiptExtractionAgent(model=model),
        preprocessor=DocumentPreprocessor(max_dimension=1024),
    )


class TestReceiptScanFlow:
    """Tests for ReceiptScanFlow.scan."""

    def test_successful_scan_prefills_draft(self, draft):
        model = FakeExtractionModel(text=receipt_json())
        outcome = asyncio.run(
            make_flow(model).scan(make_image(2048, 1024), "image/png", draft, default_categories())
        )

        assert outcome.success
        new = outcome.draft
        assert new.amount == Decimal("4500.00")
        assert new.merchant == "Empresa Tech"
        assert new.date == date(2024, 4, 30)
        assert new.kind == TransactionKind.INCOME
        assert new.category_id == "c6"
        assert [i.description for i in new.items] == ["Sueldo abril"]
        assert new.auto_filled is True
        assert new.note == "typed by hand"

    def test_image_is_downscaled_before_sending(self, draft):
        model = FakeExtractionModel(text=receipt_json())
        asyncio.run(
            make_flow(model).scan(make_image(3000, 2000), "image/png", draft, default_categories())
        )
        sent = model.calls[0][0]
        assert sent["mime_type"] == "image/jpeg"

    def test_unknown_category_keeps_previous_selection(self, draft):
        model = FakeExtractionModel(text=receipt_json(categoryName="Mascotas"))
        outcome = asyncio.run(
            make_flow(model).scan(b"%PDF-1.4", "application/pdf", draft, default_categories())
        )
        assert outcome.success
        assert outcome.draft.category_id == "c3"

    def test_missing_date_keeps_form_date(self, draft):
        model = FakeExtractionModel(text=receipt_json(date=None))
        outcome = asyncio.run(
            make_flow(model).scan(b"%PDF-1.4", "application/pdf", draft, default_categories())
        )
        assert outcome.draft.date == date(2024, 5, 1)

    def test_unsupported_file_never_reaches_the_service(self, draft):
        model = FakeExtractionModel(text=receipt_json())
        outcome = asyncio.run(
            make_flow(model).scan(b"a,b,c", "text/csv", draft, default_categories())
        )
        assert not outcome.success
        assert outcome.message == UNSUPPORTED_FORMAT_MESSAGE
        assert outcome.draft == draft
        assert model.calls == []

    def test_corrupt_image_is_unreadable(self, draft):
        model = FakeExtractionModel(text=receipt_json())
        outcome = asyncio.run(
            make_flow(model).scan(b"garbage", "image/jpeg", draft, default_categories())
        )
        assert outcome.message == DOCUMENT_UNREADABLE_MESSAGE
        assert model.calls == []

    def test_oversized_image_is_unreadable(self, draft, monkeypatch):
        """Images beyond Pillow's pixel limit are refused before any call."""
        raw = make_image(100, 100)
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
        model = FakeExtractionModel(text=receipt_json())

        outcome = asyncio.run(
            make_flow(model).scan(raw, "image/png", draft, default_categories())
        )

        assert not outcome.success
        assert outcome.message == DOCUMENT_UNREADABLE_MESSAGE
        assert outcome.draft == draft
        assert model.calls == []

    def test_service_failure_leaves_draft_unchanged(self, draft):
        model = FakeExtractionModel(error=ConnectionError("offline"))
        outcome = asyncio.run(
            make_flow(model).scan(b"%PDF-1.4", "application/pdf", draft, default_categories())
        )
        assert not outcome.success
        assert outcome.message == DOCUMENT_UNREADABLE_MESSAGE
        assert outcome.draft == draft

    def test_garbled_answer_is_unreadable(self, draft):
        model = FakeExtractionModel(text="I cannot read this receipt, sorry")
        outcome = asyncio.run(
            make_flow(model).scan(b"%PDF-1.4", "application/pdf", draft, default_categories())
        )
        assert outcome.message == DOCUMENT_UNREADABLE_MESSAGE


class TestChatSession:
    """Tests for the append-only conversation."""

    @pytest.fixture
    def context(self, store):
        return FinancialContext.from_store(store)

    def test_starts_with_greeting(self):
        session = ChatSession(FinancialAssistantAgent(model_factory=FakeChatModelFactory()))
        assert [m.text for m in session.messages] == [CHAT_GREETING]
        assert session.messages[0].role == ChatRole.MODEL

    def test_send_appends_question_and_reply(self, context):
        factory = FakeChatModelFactory(reply="Gastaste 1260.50")
        session = ChatSession(FinancialAssistantAgent(model_factory=factory))

        reply = asyncio.run(session.send("¿Cuánto gasté?", context))

        assert reply.text == "Gastaste 1260.50"
        assert [(m.role, m.text) for m in session.messages] == [
            (ChatRole.MODEL, CHAT_GREETING),
            (ChatRole.USER, "¿Cuánto gasté?"),
            (ChatRole.MODEL, "Gastaste 1260.50"),
        ]
        # History holds what came before the new message
        assert factory.histories[0] == [{"role": "model", "parts": [CHAT_GREETING]}]
        assert len({m.id for m in session.messages}) == 3

    def test_blank_input_is_ignored(self, context):
        factory = FakeChatModelFactory(reply="?")
        session = ChatSession(FinancialAssistantAgent(model_factory=factory), greeting=None)

        assert asyncio.run(session.send("   ", context)) is None
        assert session.messages == []
        assert factory.sent == []

    def test_failure_becomes_fallback_message(self, context):
        factory = FakeChatModelFactory(error=RuntimeError("boom"))
        session = ChatSession(FinancialAssistantAgent(model_factory=factory))

        reply = asyncio.run(session.send("hola", context))

        assert reply.text == CHAT_FALLBACK_MESSAGE
        assert len(session.messages) == 3

    def test_messages_cannot_be_mutated_from_outside(self, context):
        session = ChatSession(FinancialAssistantAgent(model_factory=FakeChatModelFactory()))
        session.messages.clear()
        assert len(session.messages) == 1


class TestCreateAppComponents:
    """Tests for the component factory."""

    def test_without_gemini_key_ai_is_disabled(self, tmp_path):
        components = create_app_components(data_dir=tmp_path / "data")

        assert components.ai_enabled is False
        assert components.scan_flow is None
        assert components.assistant is None
        assert "GEMINI_API_KEY" in components.ai_error
        assert len(components.store.transactions) == 4
        assert (tmp_path / "data" / "transactions").exists()

    def test_with_gemini_key_ai_is_enabled(self, tmp_path, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "test-key")
        components = create_app_components(data_dir=tmp_path)

        assert components.ai_enabled is True
        assert components.ai_error is None

    def test_default_currency_comes_from_settings(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DEFAULT_CURRENCY", "EUR")
        components = create_app_components(data_dir=tmp_path)
        assert components.store.currency.value == "EUR"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
