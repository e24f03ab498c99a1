"""
Finance State Store

Owns every collection the tracker works with: categories, transactions,
goals, investments and the currency preference. Views and flows receive the
store explicitly; there is no module-level instance.

Every mutation goes through the repository of its collection, which
rewrites that collection's snapshot. Collections are independent: a failed
write to one never touches the others.
"""

from typing import Optional, Union
from uuid import uuid4

from finance_tracker.audit import ActivityLogger
from finance_tracker.models.audit import ActivityEventBuilder, ActivityEventType
from finance_tracker.models.defaults import (
    DEFAULT_CURRENCY,
    default_categories,
    default_goals,
    default_investments,
    default_transactions,
)
from finance_tracker.models.finance import (
    Category,
    CurrencyCode,
    Goal,
    GoalDraft,
    Investment,
    InvestmentDraft,
    Transaction,
    TransactionDraft,
)
from finance_tracker.services.storage import CorruptSnapshotError, LocalStorage


def generate_id(existing: set[str]) -> str:
    """Short random id that is not in `existing`."""
    while True:
        candidate = uuid4().hex[:9]
        if candidate not in existing:
            return candidate


class FinanceStore:
    """
    In-memory state mirrored to local storage.

    Use `FinanceStore.load(storage)` to build one: it reads every snapshot
    once and seeds the collections that were never persisted.
    """

    def __init__(
        self,
        storage: LocalStorage,
        activity_logger: Optional[ActivityLogger] = None,
        categories: Optional[list[Category]] = None,
        default_currency: CurrencyCode = DEFAULT_CURRENCY,
    ):
        self._storage = storage
        self._logger = activity_logger or ActivityLogger()
        self._categories = list(categories) if categories is not None else default_categories()
        self._default_currency = default_currency
        self._currency = default_currency

    @classmethod
    def load(
        cls,
        storage: LocalStorage,
        activity_logger: Optional[ActivityLogger] = None,
        default_currency: CurrencyCode = DEFAULT_CURRENCY,
    ) -> "FinanceStore":
        store = cls(storage, activity_logger, default_currency=default_currency)
        store._initialize()
        return store

    def _initialize(self) -> None:
        """Read the persisted snapshots, seeding the ones that are missing."""
        seeded = []
        collections = [
            (self._storage.transactions, default_transactions),
            (self._storage.goals, default_goals),
            (self._storage.investments, default_investments),
        ]
        for repository, defaults in collections:
            try:
                if repository.exists():
                    repository.list_all()
                else:
                    repository.replace_all(defaults())
                    seeded.append(repository.key)
            except CorruptSnapshotError as e:
                self._logger.log_snapshot_corrupt(repository.key, str(e))
                repository.use_in_memory(defaults())
                seeded.append(repository.key)

        saved_currency = self._storage.preferences.get_currency()
        if saved_currency is None:
            self._storage.preferences.set_currency(self._default_currency)
            seeded.append("currency")
        self._currency = saved_currency or self._default_currency

        self._logger.log(ActivityEventBuilder.state_loaded(
            counts={
                "transactions": len(self.transactions),
                "goals": len(self.goals),
                "investments": len(self.investments),
            },
            seeded=seeded,
        ))

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    @property
    def categories(self) -> list[Category]:
        return list(self._categories)

    @property
    def transactions(self) -> list[Transaction]:
        """Newest first."""
        return self._storage.transactions.list_all()

    @property
    def goals(self) -> list[Goal]:
        return self._storage.goals.list_all()

    @property
    def investments(self) -> list[Investment]:
        return self._storage.investments.list_all()

    @property
    def currency(self) -> CurrencyCode:
        return self._currency

    @property
    def currency_symbol(self) -> str:
        return self._currency.symbol

    def get_category(self, category_id: str) -> Optional[Category]:
        for category in self._categories:
            if category.id == category_id:
                return category
        return None

    def recent_transactions(self, limit: int) -> list[Transaction]:
        return self.transactions[:limit]

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def add_transaction(self, draft: TransactionDraft) -> Transaction:
        """
        Record a submitted transaction as the newest entry.

        Raises:
            pydantic.ValidationError: If the draft lacks amount or category
        """
        existing = {t.id for t in self.transactions}
        transaction = Transaction(id=generate_id(existing), **draft.transaction_fields())
        self._storage.transactions.put(transaction, prepend=True)
        self._logger.log_transaction_added(
            transaction.id, transaction.kind.value, str(transaction.amount)
        )
        return transaction

    def delete_transaction(self, transaction_id: str) -> bool:
        """Remove a transaction. Unknown ids leave the collection unchanged."""
        existed = self._storage.transactions.delete(transaction_id)
        self._logger.log(ActivityEventBuilder.entity_deleted(
            ActivityEventType.TRANSACTION_DELETED, "transaction", transaction_id, existed
        ))
        return existed

    # -------------------------------------------------------------------------
    # Goals
    # -------------------------------------------------------------------------

    def save_goal(self, draft: GoalDraft, goal_id: Optional[str] = None) -> Goal:
        """
        Edit-or-create a goal.

        With the id of an existing goal, that goal's fields are replaced and
        it keeps its id and position. Otherwise a new goal is appended under
        a fresh id.
        """
        repository = self._storage.goals
        if goal_id is None or repository.get(goal_id) is None:
            goal_id = generate_id({g.id for g in repository.list_all()})

        goal = Goal(id=goal_id, **draft.model_dump())
        created = repository.put(goal)
        self._logger.log(ActivityEventBuilder.entity_saved(
            ActivityEventType.GOAL_SAVED, "goal", goal.id, created
        ))
        return goal

    def delete_goal(self, goal_id: str) -> bool:
        existed = self._storage.goals.delete(goal_id)
        self._logger.log(ActivityEventBuilder.entity_deleted(
            ActivityEventType.GOAL_DELETED, "goal", goal_id, existed
        ))
        return existed

    # -------------------------------------------------------------------------
    # Investments
    # -------------------------------------------------------------------------

    def save_investment(
        self,
        draft: InvestmentDraft,
        investment_id: Optional[str] = None,
    ) -> Investment:
        """Edit-or-create an investment; same rules as `save_goal`."""
        repository = self._storage.investments
        if investment_id is None or repository.get(investment_id) is None:
            investment_id = generate_id({i.id for i in repository.list_all()})

        investment = Investment(id=investment_id, **draft.model_dump())
        created = repository.put(investment)
        self._logger.log(ActivityEventBuilder.entity_saved(
            ActivityEventType.INVESTMENT_SAVED, "investment", investment.id, created
        ))
        return investment

    def delete_investment(self, investment_id: str) -> bool:
        existed = self._storage.investments.delete(investment_id)
        self._logger.log(ActivityEventBuilder.entity_deleted(
            ActivityEventType.INVESTMENT_DELETED, "investment", investment_id, existed
        ))
        return existed

    # -------------------------------------------------------------------------
    # Preferences
    # -------------------------------------------------------------------------

    def set_currency(self, code: Union[CurrencyCode, str]) -> CurrencyCode:
        """
        Change the display currency. Amounts are not converted.

        Raises:
            ValueError: If the code is not one of the supported currencies
        """
        new = CurrencyCode(code)
        old = self._currency
        self._storage.preferences.set_currency(new)
        self._currency = new
        self._logger.log(ActivityEventBuilder.currency_changed(old.value, new.value))
        return new
