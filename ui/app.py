"""
Streamlit Dashboard for Net Worth.

Pages:
- Overview: net worth, category breakdown, history chart, price refresh
- Positions: holdings per category, add / edit / delete
- Transactions: record deposits, withdrawals, buys, sells, dividends
- Search: symbol lookup and live quotes
"""

import time
from datetime import datetime

import pandas as pd
import plotly.express as px
import streamlit as st

from config import config
from data.quotes import PriceOracle, quotes_frame
from db import AssetCategory, TransactionType, init_db
from analytics.portfolio import allocation_frame, holdings_frame
from services.asset_service import (
    create_account,
    create_cash,
    create_crypto,
    create_investment,
    delete_position,
    list_positions,
    update_position,
)
from services.history_service import history_frame
from services.portfolio_service import get_portfolio, update_all_prices
from services.position_service import LEGAL_TYPES
from services.transaction_service import list_transactions, record_transaction
from ui.preferences import (
    DisplayPreferences,
    format_currency,
    load_preferences,
    save_preferences,
)


# Initialize database on app start
init_db()

CATEGORY_LABELS = {
    AssetCategory.ACCOUNT: "🏦 Accounts",
    AssetCategory.INVESTMENT: "📈 Investments",
    AssetCategory.CRYPTO: "₿ Crypto",
    AssetCategory.CASH: "💵 Cash",
}


def configure_page():
    """Configure Streamlit page settings."""
    st.set_page_config(
        page_title=config.ui.page_title,
        page_icon="💶",
        layout=config.ui.layout,
        initial_sidebar_state="expanded",
    )


def get_preferences() -> DisplayPreferences:
    """Preferences for this session, loaded from disk on first access."""
    if "prefs" not in st.session_state:
        st.session_state.prefs = load_preferences()
    return st.session_state.prefs


def set_preferences(prefs: DisplayPreferences) -> None:
    st.session_state.prefs = prefs
    save_preferences(prefs)


def apply_theme(prefs: DisplayPreferences) -> None:
    """Dark mode via CSS overrides on the main containers."""
    if prefs.theme == "dark":
        st.markdown(
            """
            <style>
            .stApp, [data-testid="stSidebar"] { background-color: #0e1117; color: #fafafa; }
            </style>
            """,
            unsafe_allow_html=True,
        )


def plotly_template(prefs: DisplayPreferences) -> str:
    return "plotly_dark" if prefs.theme == "dark" else "plotly_white"


def render_sidebar(prefs: DisplayPreferences) -> str:
    """Render sidebar navigation and display toggles, return selected page."""
    st.sidebar.title("💶 Net Worth")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigation",
        ["Overview", "Positions", "Transactions", "Search"],
        label_visibility="collapsed",
    )

    st.sidebar.markdown("---")
    visible = st.sidebar.toggle("Show balances", value=prefs.balances_visible)
    if visible != prefs.balances_visible:
        set_preferences(prefs.toggle_balances())
        st.rerun()

    dark = st.sidebar.toggle("Dark mode", value=prefs.theme == "dark")
    if dark != (prefs.theme == "dark"):
        set_preferences(prefs.toggle_theme())
        st.rerun()

    st.sidebar.caption("📅 Prices: last refresh")
    return page


def celebrate_and_rerun(msg: str = "Updating dashboard…", delay: float = 1.5):
    """Display a short status and rerun."""
    with st.status(msg, expanded=False):
        time.sleep(delay)
    st.rerun()


def render_history_chart(prefs: DisplayPreferences):
    """Line chart of recent snapshots (total plus categories)."""
    df = history_frame()
    if df.empty:
        st.info("No history yet. Refresh prices to record the first snapshot.")
        return

    chart_df = df.rename(columns={
        "total_value": "Total",
        "accounts_value": "Accounts",
        "investments_value": "Investments",
        "crypto_value": "Crypto",
        "cash_value": "Cash",
    }).melt(id_vars="recorded_at", var_name="Series", value_name="Value")

    fig = px.line(
        chart_df,
        x="recorded_at",
        y="Value",
        color="Series",
        markers=True,
        template=plotly_template(prefs),
        color_discrete_sequence=px.colors.qualitative.Set2,
    )
    for trace in fig.data:
        trace.line.width = 3 if trace.name == "Total" else 1

    fig.update_layout(
        hovermode="x unified",
        xaxis=dict(showgrid=True, gridcolor="rgba(128, 128, 128, 0.2)", title=""),
        yaxis=dict(
            showgrid=True,
            gridcolor="rgba(128, 128, 128, 0.2)",
            title="",
            showticklabels=prefs.balances_visible,
        ),
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="left", x=0),
        margin=dict(t=40, b=40, l=60, r=20),
        height=350,
    )
    if not prefs.balances_visible:
        fig.update_traces(hovertemplate="%{x}<extra>%{fullData.name}</extra>")
    st.plotly_chart(fig)


def render_overview_page(prefs: DisplayPreferences):
    """
    Render Net Worth Overview page.

    Shows:
    - Total and per-category metrics
    - Allocation pie
    - History chart
    """
    st.header("📌 Net Worth Overview")

    if st.button("🔄 Refresh prices", type="primary"):
        with st.spinner("Fetching quotes..."):
            result = update_all_prices()
        st.success(result.message)
        celebrate_and_rerun()

    view = get_portfolio()
    visible = prefs.balances_visible

    st.metric("Total Net Worth", format_currency(view.total, visible=visible))

    cols = st.columns(4)
    for col, category, value in zip(cols, CATEGORY_LABELS, view.breakdown.values()):
        col.metric(CATEGORY_LABELS[category], format_currency(value, visible=visible))

    st.markdown("---")
    chart_col, alloc_col = st.columns([2, 1])

    with chart_col:
        st.subheader("📈 History")
        render_history_chart(prefs)

    with alloc_col:
        st.subheader("🥧 Allocation")
        alloc = allocation_frame(view.totals)
        alloc = alloc[alloc["value"] > 0]
        if alloc.empty:
            st.info("Add positions to see the allocation.")
        else:
            fig = px.pie(
                alloc,
                values="value",
                names="category",
                hole=0.4,
                template=plotly_template(prefs),
                color_discrete_sequence=px.colors.qualitative.Pastel,
            )
            fig.update_traces(
                textposition="inside",
                textinfo="percent+label",
                hovertemplate=(
                    "<b>%{label}</b><br>Value: %{value:,.0f}<br>Weight: %{percent}<extra></extra>"
                    if visible else "<b>%{label}</b><br>Weight: %{percent}<extra></extra>"
                ),
            )
            fig.update_layout(showlegend=False, margin=dict(t=30, b=20, l=20, r=20), height=300)
            st.plotly_chart(fig)


def _display_holdings(df: pd.DataFrame, visible: bool) -> pd.DataFrame:
    money_cols = ["avg_price", "current_price", "value", "cost", "unrealized_pnl"]
    out = df.copy()
    for col in money_cols:
        out[col] = out[col].map(lambda v: format_currency(v, visible=visible) if pd.notna(v) else "-")
    out["weight"] = out["weight"].map(lambda w: f"{w:.1%}")
    if not visible:
        out["quantity"] = "••••••"
    return out


def _render_add_form(category: AssetCategory):
    """Creation form for one category."""
    with st.form(f"add_{category.value.lower()}_form", clear_on_submit=True):
        if category == AssetCategory.ACCOUNT:
            name = st.text_input("Name *")
            bank = st.text_input("Bank *")
            balance = st.number_input("Balance", value=0.0, step=100.0, format="%.2f")
            currency = st.text_input("Currency", value=config.ui.default_currency)
        elif category == AssetCategory.CASH:
            name = st.text_input("Name *")
            amount = st.number_input("Amount", value=0.0, step=10.0, format="%.2f")
            currency = st.text_input("Currency", value=config.ui.default_currency)
            location = st.text_input("Location")
        else:
            symbol_help = "Ticker (e.g. AAPL)" if category == AssetCategory.INVESTMENT else "CoinGecko id (e.g. bitcoin)"
            symbol = st.text_input("Symbol *", help=symbol_help)
            name = st.text_input("Name")
            by_amount = st.checkbox("Invest an amount at the current price")
            quantity = st.number_input("Quantity", min_value=0.0, value=0.0, format="%.6f")
            price = st.number_input("Average purchase price", min_value=0.0, value=0.0, format="%.4f")
            total_amount = st.number_input("Amount to invest", min_value=0.0, value=0.0, format="%.2f")
            fetch_price = st.checkbox("Fetch current price", value=True)

        submitted = st.form_submit_button("Add", type="primary")

    if not submitted:
        return

    if category == AssetCategory.ACCOUNT:
        result = create_account(name.strip(), bank.strip(), balance, currency)
    elif category == AssetCategory.CASH:
        result = create_cash(name.strip(), amount, currency, location.strip() or None)
    else:
        create = create_investment if category == AssetCategory.INVESTMENT else create_crypto
        kwargs = dict(symbol=symbol, name=name.strip() or None, fetch_price=fetch_price)
        if by_amount:
            kwargs["total_amount"] = total_amount
        else:
            qty_field = "shares" if category == AssetCategory.INVESTMENT else "amount"
            kwargs[qty_field] = quantity
            kwargs["purchase_price"] = price
        with st.spinner("Saving..."):
            result = create(**kwargs)

    if result.success:
        st.success(result.status_message)
        celebrate_and_rerun()
    else:
        st.error(result.status_message)


def _render_edit_controls(category: AssetCategory, positions: list):
    """Edit or delete one position of a category."""
    if not positions:
        return

    options = {f"#{p.id} {getattr(p, 'symbol', None) or p.name}": p for p in positions}
    label = st.selectbox("Position", list(options), key=f"edit_select_{category.value}")
    position = options[label]

    with st.form(f"edit_{category.value.lower()}_form"):
        fields = {"name": st.text_input("Name", value=position.name)}
        if category == AssetCategory.ACCOUNT:
            fields["bank"] = st.text_input("Bank", value=position.bank)
            fields["balance"] = st.number_input("Balance", value=float(position.balance), format="%.2f")
        elif category == AssetCategory.CASH:
            fields["amount"] = st.number_input("Amount", value=float(position.amount), format="%.2f")
            fields["location"] = st.text_input("Location", value=position.location or "")
        else:
            qty_field = "shares" if category == AssetCategory.INVESTMENT else "amount"
            fields[qty_field] = st.number_input("Quantity", min_value=0.0, value=float(position.quantity), format="%.6f")
            fields["purchase_price"] = st.number_input(
                "Average purchase price", min_value=0.0, value=float(position.purchase_price), format="%.4f"
            )
            if category == AssetCategory.INVESTMENT:
                fields["dividends"] = st.number_input(
                    "Dividends", min_value=0.0, value=float(position.dividends), format="%.2f"
                )

        save_col, delete_col = st.columns(2)
        saved = save_col.form_submit_button("💾 Save", type="primary")
        deleted = delete_col.form_submit_button("🗑️ Delete")

    if saved:
        result = update_position(category, position.id, **fields)
    elif deleted:
        result = delete_position(category, position.id)
    else:
        return

    if result.success:
        st.success(result.status_message)
        celebrate_and_rerun()
    else:
        st.error(result.status_message)


def render_positions_page(prefs: DisplayPreferences):
    """Render holdings per category with management forms."""
    st.header("📋 Positions")

    tabs = st.tabs([CATEGORY_LABELS[c] for c in AssetCategory])
    for tab, category in zip(tabs, AssetCategory):
        with tab:
            positions = list_positions(category)
            df = holdings_frame({category: positions})
            if df.empty:
                st.info("No positions yet.")
            else:
                st.dataframe(_display_holdings(df, prefs.balances_visible), hide_index=True)

            add_col, edit_col = st.columns(2)
            with add_col:
                st.subheader("➕ Add")
                _render_add_form(category)
            with edit_col:
                st.subheader("✏️ Edit")
                _render_edit_controls(category, positions)


def render_transactions_page(prefs: DisplayPreferences):
    """Record transactions and browse the ledger."""
    st.header("💼 Transactions")

    form_col, ledger_col = st.columns([1, 2])

    with form_col:
        st.subheader("📝 New Transaction")
        category = st.selectbox(
            "Category", list(AssetCategory), format_func=lambda c: CATEGORY_LABELS[c]
        )
        positions = list_positions(category)
        if not positions:
            st.info("Add a position in this category first.")
        else:
            options = {f"#{p.id} {getattr(p, 'symbol', None) or p.name}": p.id for p in positions}
            legal = sorted(LEGAL_TYPES[category], key=lambda t: list(TransactionType).index(t))

            with st.form("transaction_form", clear_on_submit=True):
                asset_label = st.selectbox("Position *", list(options))
                txn_type = st.radio("Type *", legal, format_func=lambda t: t.value, horizontal=True)
                amount = st.number_input("Amount *", min_value=0.0, value=0.0, step=10.0, format="%.2f")
                quantity = price = None
                if category in (AssetCategory.INVESTMENT, AssetCategory.CRYPTO):
                    quantity = st.number_input("Quantity", min_value=0.0, value=0.0, format="%.6f")
                    price = st.number_input("Unit price", min_value=0.0, value=0.0, format="%.4f")
                description = st.text_input("Description")
                occurred_at = st.datetime_input("Date & Time", value=datetime.now())

                submitted = st.form_submit_button("Record", type="primary")

            if submitted:
                if txn_type in (TransactionType.BUY, TransactionType.SELL) and not amount and quantity and price:
                    amount = quantity * price
                result = record_transaction(
                    txn_type, category, options[asset_label], amount,
                    price=price or None,
                    quantity=quantity or None,
                    description=description.strip() or None,
                    transaction_at=occurred_at,
                )
                if result.success:
                    st.success(result.status_message)
                    celebrate_and_rerun()
                else:
                    st.error(result.status_message)

    with ledger_col:
        st.subheader("📒 Ledger")
        records = list_transactions(limit=100)
        if not records:
            st.info("No transactions yet.")
            return

        df = pd.DataFrame(records)[["date", "type", "category", "asset_label", "quantity", "price", "amount", "description"]]
        for col in ("price", "amount"):
            df[col] = df[col].map(lambda v: format_currency(v, visible=prefs.balances_visible) if pd.notna(v) else "-")
        st.dataframe(df, hide_index=True)


def render_search_page(prefs: DisplayPreferences):
    """Symbol search with live quotes."""
    st.header("🔎 Search")

    category = st.radio(
        "Market",
        [AssetCategory.INVESTMENT, AssetCategory.CRYPTO],
        format_func=lambda c: CATEGORY_LABELS[c],
        horizontal=True,
    )
    query = st.text_input("Name or symbol", placeholder="e.g. Apple, VWCE, bitcoin")
    if not query:
        return

    oracle = PriceOracle()
    with st.spinner("Searching..."):
        results = oracle.search_assets(query, category)

    if not results:
        st.info("No matches.")
        return

    st.dataframe(quotes_frame(results), hide_index=True)

    symbol = st.selectbox("Quote", [r.symbol for r in results])
    if st.button("💹 Get price"):
        price = oracle.get_quote(symbol, category)
        if price is None:
            st.warning(f"⚠️ No price available for {symbol}")
        else:
            st.metric(symbol, format_currency(price, decimals=4))


def main():
    """Main application entry point."""
    configure_page()

    prefs = get_preferences()
    apply_theme(prefs)

    # Render navigation
    page = render_sidebar(prefs)

    # Render selected page
    if page == "Overview":
        render_overview_page(prefs)
    elif page == "Positions":
        render_positions_page(prefs)
    elif page == "Transactions":
        render_transactions_page(prefs)
    elif page == "Search":
        render_search_page(prefs)


if __name__ == "__main__":
    main()
