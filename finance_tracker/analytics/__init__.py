"""Dashboard aggregation package."""

from finance_tracker.analytics.aggregator import (
    CHART_COLORS,
    CashFlowPoint,
    CategorySlice,
    FinancialTotals,
    category_breakdown,
    compute_totals,
    expenses_by_category,
    goal_progress,
    illustrative_cash_flow,
    total_invested,
)

__all__ = [
    "CHART_COLORS",
    "CashFlowPoint",
    "CategorySlice",
    "FinancialTotals",
    "category_breakdown",
    "compute_totals",
    "expenses_by_category",
    "goal_progress",
    "illustrative_cash_flow",
    "total_invested",
]
