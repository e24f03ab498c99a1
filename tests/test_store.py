"""Tests for the finance state store."""

import json
from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from finance_tracker.models import (
    CurrencyCode,
    GoalDraft,
    InvestmentDraft,
    InvestmentType,
    TransactionDraft,
    TransactionKind,
)
from finance_tracker.services.storage import (
    CURRENCY_KEY,
    GOALS_KEY,
    TRANSACTIONS_KEY,
    InMemoryBackend,
    LocalStorage,
)
from finance_tracker.state import FinanceStore, generate_id


def expense_draft(amount="45.50", category_id="c1") -> TransactionDraft:
    return TransactionDraft(
        kind=TransactionKind.EXPENSE,
        amount=Decimal(amount),
        category_id=category_id,
        date=date(2024, 3, 1),
        merchant="Supermercado X",
    )


class TestLoading:
    """Tests for FinanceStore.load."""

    def test_first_run_seeds_and_persists_defaults(self):
        backend = InMemoryBackend()
        store = FinanceStore.load(LocalStorage(backend))

        assert [t.id for t in store.transactions] == ["t1", "t2", "t3", "t4"]
        assert [g.id for g in store.goals] == ["g1", "g2"]
        assert [i.id for i in store.investments] == ["i1", "i2"]
        assert store.currency == CurrencyCode.ARS
        assert backend.read(TRANSACTIONS_KEY) is not None
        assert backend.read(CURRENCY_KEY) == "ARS"

    def test_persisted_collections_are_not_reseeded(self):
        backend = InMemoryBackend({GOALS_KEY: "[]", CURRENCY_KEY: "USD"})
        store = FinanceStore.load(LocalStorage(backend))

        assert store.goals == []
        assert store.currency == CurrencyCode.USD
        assert store.currency_symbol == "US$"

    def test_corrupt_snapshot_falls_back_to_defaults_without_overwriting(self):
        backend = InMemoryBackend({TRANSACTIONS_KEY: "garbage"})
        store = FinanceStore.load(LocalStorage(backend))

        assert len(store.transactions) == 4
        assert backend.read(TRANSACTIONS_KEY) == "garbage"

    def test_undecodable_snapshot_file_falls_back_to_defaults(self, tmp_path):
        """A snapshot file that is not UTF-8 is treated like any other corrupt one."""
        raw = b"\xff\xfe\x00garbage"
        (tmp_path / TRANSACTIONS_KEY).write_bytes(raw)

        store = FinanceStore.load(LocalStorage.in_directory(tmp_path))

        assert [t.id for t in store.transactions] == ["t1", "t2", "t3", "t4"]
        assert len(store.goals) == 2
        assert (tmp_path / TRANSACTIONS_KEY).read_bytes() == raw

    def test_categories_are_static(self, store):
        assert len(store.categories) == 8
        assert store.get_category("c6").name == "Ingresos Laborales"
        assert store.get_category("missing") is None

    def test_state_survives_reload(self, tmp_path):
        store = FinanceStore.load(LocalStorage.in_directory(tmp_path))
        added = store.add_transaction(expense_draft())
        store.set_currency("EUR")

        reloaded = FinanceStore.load(LocalStorage.in_directory(tmp_path))
        assert reloaded.transactions[0] == added
        assert reloaded.currency == CurrencyCode.EUR


class TestTransactions:
    """Tests for adding and deleting transactions."""

    def test_add_prepends_with_fresh_id(self, store):
        added = store.add_transaction(expense_draft())

        assert store.transactions[0] == added
        assert len(store.transactions) == 5
        assert added.id not in {"t1", "t2", "t3", "t4"}
        assert added.amount == Decimal("45.50")

    def test_incomplete_draft_is_refused(self, store):
        draft = TransactionDraft(date=date(2024, 1, 1), category_id="c1")
        with pytest.raises(ValidationError):
            store.add_transaction(draft)
        assert len(store.transactions) == 4

    def test_delete_is_idempotent(self, store):
        assert store.delete_transaction("t1") is True
        assert store.delete_transaction("t1") is False
        assert [t.id for t in store.transactions] == ["t2", "t3", "t4"]

    def test_delete_unknown_id_leaves_collection_unchanged(self, store):
        before = store.transactions
        assert store.delete_transaction("nope") is False
        assert store.transactions == before

    def test_recent_transactions(self, store):
        store.add_transaction(expense_draft())
        assert len(store.recent_transactions(2)) == 2
        assert store.recent_transactions(2)[1].id == "t1"

    def test_orphan_category_is_accepted(self, store):
        added = store.add_transaction(expense_draft(category_id="gone"))
        assert store.transactions[0].id == added.id


class TestGoalsAndInvestments:
    """Tests for the edit-or-create operations."""

    def test_save_goal_with_existing_id_edits_in_place(self, store):
        draft = GoalDraft(title="Europa 2025", target_amount=4000, current_amount=1500)
        saved = store.save_goal(draft, "g1")

        assert saved.id == "g1"
        assert [g.id for g in store.goals] == ["g1", "g2"]
        assert store.goals[0].title == "Europa 2025"
        assert store.goals[0].target_amount == Decimal("4000.00")

    def test_save_goal_without_id_appends(self, store):
        saved = store.save_goal(GoalDraft(title="Laptop", target_amount=1500))
        assert store.goals[-1] == saved
        assert len(store.goals) == 3

    def test_save_goal_with_unknown_id_creates_new(self, store):
        saved = store.save_goal(GoalDraft(title="Car", target_amount=10), "nope")
        assert saved.id not in {"g1", "g2", "nope"}
        assert len(store.goals) == 3

    def test_delete_goal(self, store):
        assert store.delete_goal("g2") is True
        assert store.delete_goal("g2") is False
        assert [g.id for g in store.goals] == ["g1"]

    def test_save_and_delete_investment(self, store):
        draft = InvestmentDraft(
            asset_name="Ethereum",
            amount=800,
            type=InvestmentType.CRYPTO,
            date=date(2024, 2, 2),
            expected_return_rate=12,
        )
        created = store.save_investment(draft)
        assert store.investments[-1] == created

        edited = store.save_investment(draft.model_copy(update={"amount": Decimal("900")}), created.id)
        assert edited.id == created.id
        assert len(store.investments) == 3
        assert store.investments[-1].amount == Decimal("900")

        assert store.delete_investment(created.id) is True
        assert len(store.investments) == 2


class TestCurrency:
    """Tests for the currency preference."""

    def test_set_currency_persists_code(self):
        backend = InMemoryBackend()
        store = FinanceStore.load(LocalStorage(backend))
        store.set_currency(CurrencyCode.USDT)

        assert store.currency == CurrencyCode.USDT
        assert store.currency_symbol == "₮"
        assert backend.read(CURRENCY_KEY) == "USDT"

    def test_currency_change_does_not_convert_amounts(self, store):
        before = [t.amount for t in store.transactions]
        store.set_currency("USD")
        assert [t.amount for t in store.transactions] == before

    def test_unknown_currency_is_rejected(self, store):
        with pytest.raises(ValueError):
            store.set_currency("GBP")
        assert store.currency == CurrencyCode.ARS


class TestGenerateId:
    """Tests for id generation."""

    def test_ids_avoid_existing(self):
        existing = set()
        for _ in range(100):
            existing.add(generate_id(existing))
        assert len(existing) == 100

    def test_snapshot_json_is_parseable(self):
        backend = InMemoryBackend()
        FinanceStore.load(LocalStorage(backend))
        assert json.loads(backend.read(TRANSACTIONS_KEY))[0]["id"] == "t1"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
