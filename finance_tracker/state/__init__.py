"""State store package."""

from finance_tracker.state.store import FinanceStore, generate_id

__all__ = ["FinanceStore", "generate_id"]
