"""
Seed data used when nothing has been persisted yet.

Categories are static: they always come from here, even when the other
collections are loaded from storage.
"""

from datetime import date
from decimal import Decimal

from finance_tracker.models.finance import (
    Category,
    CategoryKind,
    CurrencyCode,
    Goal,
    Investment,
    InvestmentType,
    PaymentMethod,
    Transaction,
    TransactionKind,
)


DEFAULT_CURRENCY = CurrencyCode.ARS

# Offered to the extraction service when the caller has no categories
DEFAULT_CATEGORY_NAMES = [
    "Alimentación",
    "Transporte",
    "Vivienda",
    "Entretenimiento",
    "Salud",
    "Servicios",
    "Otros",
]

# Label for expenses whose category id matches no known category
OTHER_CATEGORY_LABEL = "Other"


def default_categories() -> list[Category]:
    return [
        Category(id="c1", name="Alimentación", kind=CategoryKind.VARIABLE, budget=Decimal("500"), color="#ef4444"),
        Category(id="c2", name="Vivienda", kind=CategoryKind.FIXED, budget=Decimal("1200"), color="#3b82f6"),
        Category(id="c3", name="Transporte", kind=CategoryKind.VARIABLE, budget=Decimal("200"), color="#f59e0b"),
        Category(id="c4", name="Entretenimiento", kind=CategoryKind.VARIABLE, budget=Decimal("150"), color="#8b5cf6"),
        Category(id="c5", name="Salud", kind=CategoryKind.VARIABLE, budget=Decimal("100"), color="#10b981"),
        Category(id="c_trading", name="Ingresos Trading", kind=CategoryKind.VARIABLE, budget=Decimal("0"), color="#14b8a6"),
        Category(id="c_business", name="Gastos de Empresa", kind=CategoryKind.VARIABLE, budget=Decimal("2000"), color="#6366f1"),
        Category(id="c6", name="Ingresos Laborales", kind=CategoryKind.FIXED, budget=Decimal("0"), color="#10b981"),
    ]


def default_transactions() -> list[Transaction]:
    return [
        Transaction(
            id="t1", kind=TransactionKind.EXPENSE, amount=Decimal("45.50"), category_id="c1",
            date=date(2023, 10, 25), note="Compra semanal", merchant="Supermercado X",
            payment_method=PaymentMethod.DEBIT_CARD,
        ),
        Transaction(
            id="t2", kind=TransactionKind.EXPENSE, amount=Decimal("1200"), category_id="c2",
            date=date(2023, 10, 1), note="Alquiler Octubre", merchant="Landlord",
            payment_method=PaymentMethod.TRANSFER_PESOS,
        ),
        Transaction(
            id="t3", kind=TransactionKind.INCOME, amount=Decimal("4500"), category_id="c6",
            date=date(2023, 10, 1), note="Salario", merchant="Empresa Tech",
            payment_method=PaymentMethod.TRANSFER_PESOS,
        ),
        Transaction(
            id="t4", kind=TransactionKind.EXPENSE, amount=Decimal("15.00"), category_id="c4",
            date=date(2023, 10, 20), note="Cine", merchant="Cinemas",
            payment_method=PaymentMethod.CREDIT_CARD,
        ),
    ]


def default_goals() -> list[Goal]:
    return [
        Goal(
            id="g1", title="Vacaciones Europa", target_amount=Decimal("3000"),
            current_amount=Decimal("1200"), deadline=date(2024, 6, 1),
            monthly_contribution=Decimal("200"),
        ),
        Goal(
            id="g2", title="Fondo Emergencia", target_amount=Decimal("10000"),
            current_amount=Decimal("4500"), deadline=date(2024, 12, 1),
            monthly_contribution=Decimal("500"),
        ),
    ]


def default_investments() -> list[Investment]:
    return [
        Investment(
            id="i1", asset_name="S&P 500 ETF", amount=Decimal("5000"),
            type=InvestmentType.STOCK, date=date(2023, 1, 15), expected_return_rate=8,
        ),
        Investment(
            id="i2", asset_name="Bitcoin", amount=Decimal("1200"),
            type=InvestmentType.CRYPTO, date=date(2023, 5, 10), expected_return_rate=15,
        ),
    ]
