"""
Dashboard Aggregation

Pure functions deriving the dashboard figures from the collections. They
keep no state: everything is recomputed from scratch on every call.

All transactions are included regardless of their date. The dashboard
labels some figures "this month", but no date window is applied.
"""

from decimal import Decimal
from typing import Iterable, NamedTuple

from finance_tracker.models.defaults import OTHER_CATEGORY_LABEL
from finance_tracker.models.finance import (
    Category,
    Goal,
    Investment,
    Transaction,
    TransactionKind,
)


# Chart palette, cycled when there are more slices than colours
CHART_COLORS = ["#3b82f6", "#10b981", "#f59e0b", "#ef4444", "#8b5cf6", "#ec4899", "#6366f1"]

ZERO = Decimal("0")


class FinancialTotals(NamedTuple):
    total_income: Decimal
    total_expense: Decimal
    balance: Decimal


class CategorySlice(NamedTuple):
    name: str
    value: Decimal
    color: str


class CashFlowPoint(NamedTuple):
    month: str
    income: Decimal
    expense: Decimal


def compute_totals(transactions: Iterable[Transaction]) -> FinancialTotals:
    """
    Total income, total expense and signed balance in a single pass.

    An empty collection yields all zeros.
    """
    income = ZERO
    expense = ZERO
    for transaction in transactions:
        if transaction.kind == TransactionKind.INCOME:
            income += transaction.amount
        else:
            expense += transaction.amount
    return FinancialTotals(
        total_income=income,
        total_expense=expense,
        balance=income - expense,
    )


def expenses_by_category(
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
) -> dict[str, Decimal]:
    """
    Sum expense amounts per category display name.

    Income is ignored. Category ids that match no known category are
    grouped under "Other". Keys appear in order of first occurrence.
    """
    names = {category.id: category.name for category in categories}
    totals: dict[str, Decimal] = {}
    for transaction in transactions:
        if transaction.kind != TransactionKind.EXPENSE:
            continue
        name = names.get(transaction.category_id, OTHER_CATEGORY_LABEL)
        totals[name] = totals.get(name, ZERO) + transaction.amount
    return totals


def category_breakdown(
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
) -> list[CategorySlice]:
    """Expense breakdown as chart slices, coloured from the chart palette."""
    grouped = expenses_by_category(transactions, categories)
    return [
        CategorySlice(name=name, value=value, color=CHART_COLORS[index % len(CHART_COLORS)])
        for index, (name, value) in enumerate(grouped.items())
    ]


def goal_progress(goal: Goal) -> int:
    """Progress towards a goal in percent, clamped to 0-100 for display."""
    return goal.progress_percent


def total_invested(investments: Iterable[Investment]) -> Decimal:
    return sum((investment.amount for investment in investments), ZERO)


def illustrative_cash_flow() -> list[CashFlowPoint]:
    """
    Six months of fixed sample figures for the cash-flow chart.

    These numbers are not derived from the transactions. Real per-month
    bucketing is pending a decision on what "month" should mean here.
    """
    figures = [
        ("Jan", 4000, 2400),
        ("Feb", 3000, 1398),
        ("Mar", 2000, 9800),
        ("Apr", 2780, 3908),
        ("May", 1890, 4800),
        ("Jun", 2390, 3800),
    ]
    return [
        CashFlowPoint(month=month, income=Decimal(income), expense=Decimal(expense))
        for month, income, expense in figures
    ]
