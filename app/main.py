"""
Streamlit Frontend for Finance Tracker

This is the interface the user works with daily: a dashboard, the entry
forms, the investment and goal lists, and the assistant chat.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Scanned receipts only pre-fill the form
3. Clear error messages in simple language
4. Visual feedback for all operations

The UI enforces the human-in-the-loop principle:
- User sees what was extracted
- User confirms or edits
- Nothing is saved without an explicit "Save" action
"""

import asyncio
from datetime import date
from decimal import Decimal
from typing import Optional

import streamlit as st

from finance_tracker.agents import FinancialContext
from finance_tracker.analytics import (
    category_breakdown,
    compute_totals,
    goal_progress,
    illustrative_cash_flow,
    total_invested,
)
from finance_tracker.config import get_settings, validate_all_settings
from finance_tracker.models import (
    ChatRole,
    CurrencyCode,
    GoalDraft,
    InvestmentDraft,
    InvestmentType,
    PaymentMethod,
    TransactionDraft,
    TransactionKind,
)
from finance_tracker.models.finance import to_money
from finance_tracker.orchestrator import (
    AppComponents,
    ChatSession,
    create_app_components,
)
from finance_tracker.state import FinanceStore
from finance_tracker.validation import EntryValidator


# Page configuration
st.set_page_config(
    page_title="Finance Tracker",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .big-number {
        font-size: 2.2em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)


PAYMENT_METHOD_LABELS = {
    PaymentMethod.CASH: "Cash",
    PaymentMethod.CREDIT_CARD: "Credit card",
    PaymentMethod.DEBIT_CARD: "Debit card",
    PaymentMethod.TRANSFER_PESOS: "Transfer (pesos)",
    PaymentMethod.TRANSFER_USD: "Transfer (USD)",
    PaymentMethod.TRANSFER_USDT: "Transfer (USDT)",
    PaymentMethod.CRYPTO_WALLET: "Crypto wallet",
}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components() -> AppComponents:
    """Get or create application components (cached)."""
    return create_app_components()


def format_money(amount: Decimal, store: FinanceStore) -> str:
    return f"{store.currency_symbol}{amount:,.2f}"


def main():
    """Main application entry point."""
    components = get_components()
    store = components.store

    # Sidebar navigation
    st.sidebar.title("💰 Finance Tracker")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        [
            "📊 Dashboard",
            "➕ New Transaction",
            "📋 Transactions",
            "📈 Investments",
            "🎯 Goals",
            "🤖 Assistant",
            "⚙️ Settings",
        ],
        index=0,
    )

    st.sidebar.markdown("---")
    st.sidebar.markdown(
        """
        **How to use:**
        1. Add income and expenses, or scan a receipt
        2. Review the pre-filled details
        3. Save

        **Ask the assistant things like:**
        - "How much did I spend on food?"
        - "Can I afford a new laptop this month?"
        """
    )

    # Route to appropriate page
    if page == "📊 Dashboard":
        render_dashboard_page(store)
    elif page == "➕ New Transaction":
        render_transaction_form_page(components)
    elif page == "📋 Transactions":
        render_transactions_page(store)
    elif page == "📈 Investments":
        render_investments_page(store)
    elif page == "🎯 Goals":
        render_goals_page(store)
    elif page == "🤖 Assistant":
        render_assistant_page(components)
    elif page == "⚙️ Settings":
        render_settings_page(components)


def render_dashboard_page(store: FinanceStore):
    """Render the dashboard: totals, cash flow and spending by category."""
    st.title("📊 Dashboard")

    totals = compute_totals(store.transactions)

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Balance", format_money(totals.balance, store))
    with col2:
        st.metric("Income", format_money(totals.total_income, store))
    with col3:
        st.metric("Expenses", format_money(totals.total_expense, store))

    st.markdown("---")
    col_left, col_right = st.columns(2)

    with col_left:
        st.subheader("Cash flow")
        st.caption("Sample figures")
        st.area_chart(
            [
                {"month": p.month, "Income": float(p.income), "Expenses": float(p.expense)}
                for p in illustrative_cash_flow()
            ],
            x="month",
            y=["Income", "Expenses"],
        )

    with col_right:
        st.subheader("Spending by category")
        slices = category_breakdown(store.transactions, store.categories)
        if slices:
            st.bar_chart(
                [{"category": s.name, "amount": float(s.value)} for s in slices],
                x="category",
                y="amount",
            )
        else:
            st.info("No expenses recorded yet.")

    st.markdown("---")
    st.subheader("Recent transactions")
    render_transaction_rows(store, store.recent_transactions(5), allow_delete=False)


def _reset_draft(store: FinanceStore) -> None:
    st.session_state.draft = TransactionDraft.blank(store.categories)
    st.session_state.form_version = st.session_state.get("form_version", 0) + 1


def render_transaction_form_page(components: AppComponents):
    """Render the new transaction page (manual entry and receipt scan)."""
    store = components.store
    st.title("➕ New Transaction")

    # Initialize session state
    if "draft" not in st.session_state:
        _reset_draft(store)

    draft: TransactionDraft = st.session_state.draft
    categories = store.categories

    # Step 1 (optional): Scan a receipt
    with st.expander("📷 Scan a receipt", expanded=not draft.auto_filled):
        if components.scan_flow is None:
            st.warning("AI features are not configured. Set GEMINI_API_KEY to scan receipts.")
        else:
            uploaded_file = st.file_uploader(
                "Choose a receipt photo or PDF",
                type=["jpg", "jpeg", "png", "webp", "heic", "pdf"],
                help="A clear, well-lit photo works best",
            )
            if uploaded_file and st.button("🔍 Scan Receipt", type="primary"):
                with st.spinner("Reading your receipt... Please wait."):
                    outcome = run_async(
                        components.scan_flow.scan(
                            raw=uploaded_file.getvalue(),
                            mime_type=uploaded_file.type or "",
                            draft=draft,
                            categories=categories,
                        )
                    )
                if outcome.success:
                    st.session_state.draft = outcome.draft
                    st.session_state.form_version += 1
                    st.session_state.scan_message = outcome.message
                    st.rerun()
                else:
                    st.error(outcome.message)

    if draft.auto_filled:
        st.success(st.session_state.get("scan_message", "Form pre-filled from the document."))

    # Step 2: Review and Confirm
    version = st.session_state.form_version
    category_ids = [c.id for c in categories]

    with st.form(f"transaction_form_{version}"):
        kind = st.radio(
            "Type",
            options=list(TransactionKind),
            index=list(TransactionKind).index(draft.kind),
            format_func=lambda k: "Expense" if k == TransactionKind.EXPENSE else "Income",
            horizontal=True,
        )

        col1, col2 = st.columns(2)
        with col1:
            amount = st.number_input(
                f"Amount ({store.currency_symbol})",
                min_value=0.0,
                value=float(draft.amount) if draft.amount is not None else 0.0,
                step=0.01,
                format="%.2f",
            )
            category_id = st.selectbox(
                "Category",
                options=category_ids,
                index=category_ids.index(draft.category_id) if draft.category_id in category_ids else 0,
                format_func=lambda cid: store.get_category(cid).name,
            )
            payment_method = st.selectbox(
                "Payment method",
                options=list(PaymentMethod),
                index=list(PaymentMethod).index(draft.payment_method),
                format_func=lambda m: PAYMENT_METHOD_LABELS[m],
            )
        with col2:
            tx_date = st.date_input("Date", value=draft.date)
            merchant = st.text_input("Merchant", value=draft.merchant)
            note = st.text_input("Note", value=draft.note)

        if draft.items:
            st.markdown("**Line items**")
            st.dataframe(
                [{"Description": i.description, "Amount": float(i.amount)} for i in draft.items],
                use_container_width=True,
                hide_index=True,
            )

        submitted = st.form_submit_button("✅ Save Transaction", type="primary")

    if submitted:
        submission = draft.model_copy(update={
            "kind": kind,
            "amount": to_money(amount) if amount else None,
            "category_id": category_id,
            "payment_method": payment_method,
            "date": tx_date,
            "merchant": merchant.strip(),
            "note": note.strip(),
        })
        validator = EntryValidator()
        result = validator.validate_transaction(submission, categories)
        if not result.is_valid:
            st.error(validator.get_user_friendly_summary(result))
            return

        for warning in result.warnings:
            st.warning(warning)

        transaction = store.add_transaction(submission)
        st.success(f"Saved {format_money(transaction.amount, store)} to {store.get_category(category_id).name}.")
        _reset_draft(store)

    if st.button("🔄 Clear form"):
        _reset_draft(store)
        st.rerun()


def render_transaction_rows(store: FinanceStore, transactions, allow_delete: bool = True):
    """One row per transaction, with an optional delete button."""
    if not transactions:
        st.info("No transactions yet. Use 'New Transaction' to add your first one.")
        return

    for transaction in transactions:
        category = store.get_category(transaction.category_id)
        sign = "+" if transaction.kind == TransactionKind.INCOME else "-"
        cols = st.columns([2, 3, 3, 2, 1] if allow_delete else [2, 3, 3, 2])
        cols[0].write(transaction.date.isoformat())
        cols[1].write(transaction.merchant or transaction.note or "-")
        cols[2].write(category.name if category else "Other")
        cols[3].write(f"{sign}{format_money(transaction.amount, store)}")
        if allow_delete and cols[4].button("🗑️", key=f"delete_tx_{transaction.id}"):
            store.delete_transaction(transaction.id)
            st.rerun()


def render_transactions_page(store: FinanceStore):
    """Render the transaction list."""
    st.title("📋 Transactions")
    st.markdown("Newest first. Transactions cannot be edited; delete and re-enter instead.")
    render_transaction_rows(store, store.transactions)


def render_investments_page(store: FinanceStore):
    """Render the investments list with create, edit and delete."""
    st.title("📈 Investments")

    investments = store.investments
    st.markdown(
        f'<div class="big-number">{format_money(total_invested(investments), store)}</div>',
        unsafe_allow_html=True,
    )
    st.caption("Total invested")

    for investment in investments:
        with st.expander(f"{investment.asset_name} · {format_money(investment.amount, store)}"):
            submitted, draft = investment_form(f"edit_inv_{investment.id}", investment)
            if submitted and draft:
                store.save_investment(draft, investment.id)
                st.rerun()
            if st.button("🗑️ Delete", key=f"delete_inv_{investment.id}"):
                store.delete_investment(investment.id)
                st.rerun()

    st.markdown("---")
    st.subheader("Add investment")
    submitted, draft = investment_form("new_investment")
    if submitted and draft:
        store.save_investment(draft)
        st.rerun()


def investment_form(key: str, current=None) -> tuple[bool, Optional[InvestmentDraft]]:
    with st.form(key):
        asset_name = st.text_input("Asset", value=current.asset_name if current else "")
        amount = st.number_input(
            "Amount", min_value=0.0, step=0.01, format="%.2f",
            value=float(current.amount) if current else 0.0,
        )
        inv_type = st.selectbox(
            "Type", options=list(InvestmentType),
            index=list(InvestmentType).index(current.type) if current else 0,
            format_func=lambda t: t.value,
        )
        inv_date = st.date_input("Date", value=current.date if current else date.today())
        rate = st.number_input(
            "Expected yearly return (%)", step=0.1,
            value=float(current.expected_return_rate) if current else 0.0,
        )
        submitted = st.form_submit_button("💾 Save")

    if not submitted:
        return False, None

    validator = EntryValidator()
    result = validator.validate_investment(asset_name, to_money(amount))
    if not result.is_valid:
        st.error(validator.get_user_friendly_summary(result))
        return True, None

    return True, InvestmentDraft(
        asset_name=asset_name,
        amount=amount,
        type=inv_type,
        date=inv_date,
        expected_return_rate=rate,
    )


def render_goals_page(store: FinanceStore):
    """Render the savings goals with progress bars."""
    st.title("🎯 Goals")

    for goal in store.goals:
        st.markdown(
            f"**{goal.title}** · {format_money(goal.current_amount, store)} "
            f"of {format_money(goal.target_amount, store)}"
        )
        percent = goal_progress(goal)
        st.progress(percent / 100, text=f"{percent}%")
        with st.expander("Edit"):
            submitted, draft = goal_form(f"edit_goal_{goal.id}", goal)
            if submitted and draft:
                store.save_goal(draft, goal.id)
                st.rerun()
            if st.button("🗑️ Delete", key=f"delete_goal_{goal.id}"):
                store.delete_goal(goal.id)
                st.rerun()

    st.markdown("---")
    st.subheader("Add goal")
    submitted, draft = goal_form("new_goal")
    if submitted and draft:
        store.save_goal(draft)
        st.rerun()


def goal_form(key: str, current=None) -> tuple[bool, Optional[GoalDraft]]:
    with st.form(key):
        title = st.text_input("Goal", value=current.title if current else "")
        target = st.number_input(
            "Target amount", min_value=0.0, step=0.01, format="%.2f",
            value=float(current.target_amount) if current else 0.0,
        )
        saved = st.number_input(
            "Saved so far", min_value=0.0, step=0.01, format="%.2f",
            value=float(current.current_amount) if current else 0.0,
        )
        monthly = st.number_input(
            "Monthly contribution", min_value=0.0, step=0.01, format="%.2f",
            value=float(current.monthly_contribution) if current else 0.0,
        )
        deadline = st.date_input("Deadline", value=current.deadline if current else None)
        submitted = st.form_submit_button("💾 Save")

    if not submitted:
        return False, None

    validator = EntryValidator()
    result = validator.validate_goal(title, to_money(target), to_money(saved))
    if not result.is_valid:
        st.error(validator.get_user_friendly_summary(result))
        return True, None

    return True, GoalDraft(
        title=title,
        target_amount=target,
        current_amount=saved,
        monthly_contribution=monthly,
        deadline=deadline,
    )


def render_assistant_page(components: AppComponents):
    """Render the assistant chat."""
    st.title("🤖 Assistant")

    if components.assistant is None:
        st.warning("AI features are not configured. Set GEMINI_API_KEY to use the assistant.")
        return

    if "chat" not in st.session_state:
        st.session_state.chat = ChatSession(components.assistant)
    chat: ChatSession = st.session_state.chat

    for message in chat.messages:
        with st.chat_message("user" if message.role == ChatRole.USER else "assistant"):
            st.markdown(message.text)

    question = st.chat_input("Ask about your finances...")
    if question:
        context = FinancialContext.from_store(
            components.store, limit=get_settings().app.chat_context_limit
        )
        with st.spinner("Thinking..."):
            run_async(chat.send(question, context))
        st.rerun()


def render_settings_page(components: AppComponents):
    """Render the settings page."""
    st.title("⚙️ Settings")
    store = components.store

    st.markdown("### Currency")
    codes = list(CurrencyCode)
    currency = st.selectbox(
        "Display currency",
        options=codes,
        index=codes.index(store.currency),
        format_func=lambda c: f"{c.value} ({c.symbol})",
        help="Only changes how amounts are shown; nothing is converted.",
    )
    if currency != store.currency:
        store.set_currency(currency)
        st.rerun()

    st.markdown("### Connection Status")

    status = validate_all_settings()

    services = [
        ("Gemini (AI)", "gemini"),
        ("Local storage", "storage"),
        ("Application", "app"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file with your API keys. "
        "See `.env.example` for the required variables."
    )


if __name__ == "__main__":
    main()
