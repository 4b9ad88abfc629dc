import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import calendar
import random
from datetime import date

import numpy as np
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import streamlit as st

from ledger import config
from ledger.advisories import generate_advisories, money, prompt_context
from ledger.budgets import GOOD, OVER, PROGRESS, WARNING, get_preset, rank_budgets
from ledger.categories import DEFAULT_CATEGORIES
from ledger.domain import EXPENSE, INCOME, MONTHLY, PERIODS, transaction_to_row
from ledger.errors import LedgerError
from ledger.events import BUDGET_ALERT
from ledger.storage import JsonFileStorage
from ledger.state import Store
from ledger.totals import (
    DAY,
    MONTH,
    daily_spending,
    group_by_category,
    group_by_time_bucket,
    month_window,
    recent_transactions,
    spending_level,
    summarize,
)

st.set_page_config(page_title="Budget Buddy", layout="wide")

STATUS_ICONS = {OVER: "🔴", WARNING: "🟡", PROGRESS: "🔵", GOOD: "🟢"}
LEVEL_VALUES = {"none": 0, "low": 1, "medium": 2, "high": 3}


def _queue_alert(event):
    p = event.payload
    st.session_state.alerts.append(
        f"{STATUS_ICONS.get(p['status'], '')} {p['category']}: {p['percentage']:.0f}% of budget used"
    )


if "store" not in st.session_state:
    config.ensure_data_dir()
    st.session_state.alerts = []
    store = Store(
        JsonFileStorage(config.STATE_PATH, seed_path=config.SEED_PATH),
        thresholds=get_preset(config.BUDGET_PRESET),
    )
    store.bus.subscribe(BUDGET_ALERT, _queue_alert)
    st.session_state.store = store

store: Store = st.session_state.store


def tx_to_df(tx_list):
    df = pd.DataFrame([transaction_to_row(t) for t in tx_list])
    if df.empty:
        return pd.DataFrame(columns=["id", "title", "amount", "category", "type", "date", "notes"])
    df["date"] = pd.to_datetime(df["date"])
    return df


def tx_label(t):
    return f"{t.date} · {t.title or t.category} · {money(t.amount)}"


def run(action, *args):
    """Run a store action and report ledger errors in the page."""
    try:
        action(*args)
    except LedgerError as e:
        st.error(f"❌ {e}")
        return False
    return True


preset_name = st.sidebar.selectbox(
    "Budget thresholds",
    ["default", "budgets", "alerts"],
    index=["default", "budgets", "alerts"].index(config.BUDGET_PRESET)
    if config.BUDGET_PRESET in ("default", "budgets", "alerts") else 0,
    help="default: 50/80/100%, budgets: 80/100%, alerts: 50/75/100%",
)
store.thresholds = get_preset(preset_name)

menu = st.sidebar.radio(
    "Menu",
    ["🏠 Dashboard", "🧾 Transactions", "🎯 Budgets", "📊 Analytics", "📅 Calendar", "💡 Insights"]
)

if st.session_state.alerts:
    for alert in st.session_state.alerts[-5:]:
        st.sidebar.warning(alert)
    if st.sidebar.button("Clear alerts"):
        st.session_state.alerts = []
        st.rerun()

transactions = store.transactions
budgets = store.budgets

if menu == "🏠 Dashboard":
    st.title("🏠 Dashboard")
    totals = summarize(transactions)
    over_budget = [b for b, s in rank_budgets(budgets, store.thresholds) if s.status == OVER]

    k1, k2, k3, k4 = st.columns(4)
    with k1:
        st.metric("Total Income", money(totals.income))
    with k2:
        st.metric("Total Expenses", money(totals.expense))
    with k3:
        st.metric("Net Savings", money(totals.net_savings))
    with k4:
        st.metric("Over Budget", len(over_budget))

    left, right = st.columns([3, 2])
    with left:
        st.subheader("Recent Transactions")
        recent = recent_transactions(transactions, 5)
        if recent:
            disp = tx_to_df(recent)[["date", "title", "category", "type", "amount"]]
            disp["date"] = disp["date"].dt.strftime("%Y-%m-%d")
            disp["amount"] = disp["amount"].map(lambda x: f"{config.CURRENCY}{x:,.2f}")
            st.table(disp.reset_index(drop=True))
        else:
            st.info("No transactions yet.")
    with right:
        st.subheader("Budget Overview")
        for b, s in rank_budgets(budgets, store.thresholds)[:4]:
            st.write(f"{STATUS_ICONS[s.status]} **{b.category}** · {money(b.spent)} / {money(b.amount)}")
            st.progress(min(float(s.percentage), 100.0) / 100)
        if not budgets:
            st.info("No budgets defined")

elif menu == "🧾 Transactions":
    st.title("🧾 Transactions")

    st.subheader("➕ Add Transaction")
    kind = st.radio("Type", [EXPENSE, INCOME], horizontal=True, key="new_tx_kind")
    with st.form("add_transaction", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            title = st.text_input("Title")
            amount = st.number_input("Amount", min_value=0.0, step=1.0, format="%.2f")
        with col2:
            category = st.selectbox("Category", DEFAULT_CATEGORIES.names(kind))
            tx_date = st.date_input("Date", value=date.today())
        notes = st.text_input("Notes (optional)")
        if st.form_submit_button("Add Transaction"):
            ok = run(store.add_transaction, {
                "title": title,
                "amount": str(amount),
                "category": category,
                "type": kind,
                "date": tx_date,
                "notes": notes,
            })
            if ok:
                st.success("✅ Transaction added!")
                st.rerun()

    st.divider()

    df = tx_to_df(transactions)
    if df.empty:
        st.info("No transactions to display.")
    else:
        col1, col2, col3 = st.columns(3)
        with col1:
            type_filter = st.multiselect("Type", [INCOME, EXPENSE], default=[])
        with col2:
            cat_filter = st.multiselect("Category", sorted(df["category"].unique()), default=[])
        with col3:
            search = st.text_input("Search title")

        filtered = df.copy()
        if type_filter:
            filtered = filtered[filtered["type"].isin(type_filter)]
        if cat_filter:
            filtered = filtered[filtered["category"].isin(cat_filter)]
        if search:
            filtered = filtered[filtered["title"].str.contains(search, case=False, na=False)]

        filtered = filtered.sort_values("date", ascending=False)
        disp = filtered.assign(date=filtered["date"].dt.strftime("%Y-%m-%d"))
        st.dataframe(disp.drop(columns=["id"]), use_container_width=True)
        st.download_button("⬇ Download CSV", disp.to_csv(index=False), file_name="transactions.csv")

        st.subheader("✏️ Edit or Delete")
        by_id = {t.id: t for t in transactions}
        choice = st.selectbox(
            "Transaction", list(by_id),
            format_func=lambda tid: tx_label(by_id[tid]),
        )
        selected = by_id[choice]
        with st.form("edit_transaction"):
            col1, col2 = st.columns(2)
            with col1:
                new_title = st.text_input("Title", value=selected.title)
                new_amount = st.number_input("Amount", min_value=0.0, value=float(selected.amount), format="%.2f")
            with col2:
                names = DEFAULT_CATEGORIES.names(selected.kind)
                new_category = st.selectbox(
                    "Category", names,
                    index=names.index(selected.category) if selected.category in names else 0,
                )
                new_date = st.date_input("Date", value=selected.date)
            new_notes = st.text_input("Notes", value=selected.notes)
            save_col, delete_col = st.columns(2)
            save = save_col.form_submit_button("💾 Save")
            delete = delete_col.form_submit_button("🗑 Delete")
        if save and run(store.update_transaction, {
            "id": selected.id,
            "title": new_title,
            "amount": str(new_amount),
            "category": new_category,
            "type": selected.kind,
            "date": new_date,
            "notes": new_notes,
        }):
            st.rerun()
        if delete and run(store.delete_transaction, selected.id):
            st.rerun()

elif menu == "🎯 Budgets":
    st.title("🎯 Budgets")

    with st.form("add_budget", clear_on_submit=True):
        col1, col2, col3 = st.columns(3)
        with col1:
            b_category = st.selectbox("Category", DEFAULT_CATEGORIES.names(EXPENSE))
        with col2:
            b_amount = st.number_input("Limit", min_value=0.0, step=10.0, format="%.2f")
        with col3:
            b_period = st.selectbox("Period", PERIODS, index=PERIODS.index(MONTHLY))
        anchor = st.checkbox("Only count the current period", value=False)
        if st.form_submit_button("Add Budget"):
            today = date.today()
            row = {"category": b_category, "amount": str(b_amount), "period": b_period}
            if anchor:
                row["year"] = today.year
                if b_period == MONTHLY:
                    row["month"] = today.month
            if run(store.add_budget, row):
                st.success("✅ Budget added!")
                st.rerun()

    st.divider()

    if not budgets:
        st.info("No budgets defined")
    for b, s in rank_budgets(budgets, store.thresholds):
        col1, col2 = st.columns([4, 1])
        with col1:
            st.write(f"{STATUS_ICONS[s.status]} **{b.category}** ({b.period}) · {s.percentage:.1f}% used")
            st.progress(min(float(s.percentage), 100.0) / 100)
            if s.remaining >= 0:
                st.caption(f"{money(s.remaining)} left of {money(b.amount)}")
            else:
                st.caption(f"{money(-s.remaining)} over {money(b.amount)}")
        with col2:
            if st.button("🗑 Delete", key=f"del_budget_{b.id}") and run(store.delete_budget, b.id):
                st.rerun()

elif menu == "📊 Analytics":
    st.title("📊 Analytics")

    by_cat = group_by_category(transactions, EXPENSE)
    col1, col2 = st.columns(2)
    with col1:
        if by_cat:
            df_cat = pd.DataFrame([
                {"Category": c.category, "Total": float(c.total), "Color": c.color} for c in by_cat
            ])
            fig_cat = px.pie(
                df_cat, values="Total", names="Category", title="Spending by Category",
                color="Category", color_discrete_map=dict(zip(df_cat["Category"], df_cat["Color"])),
            )
            st.plotly_chart(fig_cat, use_container_width=True)
        else:
            st.info("No expense data")
    with col2:
        monthly = group_by_time_bucket(transactions, bucket=MONTH)
        if monthly:
            keys = [m.key for m in monthly]
            fig_m = go.Figure()
            fig_m.add_trace(go.Bar(x=keys, y=[float(m.income) for m in monthly], name="Income", marker_color="#10B981"))
            fig_m.add_trace(go.Bar(x=keys, y=[float(m.expense) for m in monthly], name="Expenses", marker_color="#EF4444"))
            fig_m.update_layout(title="Income vs Expenses", template="plotly_dark", barmode="group")
            st.plotly_chart(fig_m, use_container_width=True)

    trend = group_by_time_bucket(transactions, EXPENSE, DAY)
    if trend:
        fig_t = px.line(
            x=[b.key for b in trend], y=[float(b.expense) for b in trend],
            labels={"x": "Date", "y": "Spending"}, title="Spending Trend (last 30 days with activity)",
            template="plotly_dark", markers=True,
        )
        st.plotly_chart(fig_t, use_container_width=True)

elif menu == "📅 Calendar":
    st.title("📅 Calendar View")
    today = date.today()
    col1, col2 = st.columns(2)
    with col1:
        year = st.number_input("Year", min_value=1970, max_value=2100, value=today.year, step=1)
    with col2:
        month = st.selectbox("Month", list(range(1, 13)), index=today.month - 1,
                             format_func=lambda m: calendar.month_name[m])

    start, end = month_window(int(year), int(month))
    spending = daily_spending(transactions)
    in_month = {d: v for d, v in spending.items() if start <= d <= end}
    peak = max(in_month.values(), default=0)

    weeks = calendar.monthcalendar(int(year), int(month))
    levels = np.zeros((len(weeks), 7))
    labels = np.full((len(weeks), 7), "", dtype=object)
    for w, week in enumerate(weeks):
        for d, day in enumerate(week):
            if day == 0:
                continue
            amount = in_month.get(date(int(year), int(month), day), 0)
            levels[w, d] = LEVEL_VALUES[spending_level(amount, peak)]
            labels[w, d] = f"{day}<br>{money(amount)}" if amount else str(day)

    fig_cal = go.Figure(go.Heatmap(
        z=levels, text=labels, texttemplate="%{text}", showscale=False,
        x=list(calendar.day_abbr), y=[f"W{i + 1}" for i in range(len(weeks))],
        colorscale=[[0, "#1F2937"], [0.33, "#065F46"], [0.66, "#D97706"], [1, "#DC2626"]], zmin=0, zmax=3,
    ))
    fig_cal.update_yaxes(autorange="reversed")
    fig_cal.update_layout(template="plotly_dark", height=420, margin=dict(t=10, b=10, l=10, r=10))
    st.plotly_chart(fig_cal, use_container_width=True)
    st.metric("Spent this month", money(sum(in_month.values(), 0)))

elif menu == "💡 Insights":
    st.title("💡 Insights")
    today = date.today()
    current = [t for t in transactions if (t.date.year, t.date.month) == (today.year, today.month)]
    scope = st.radio("Period", ["This month", "All time"], horizontal=True)
    rows = current if scope == "This month" else list(transactions)

    summary = summarize(rows)
    category_totals = group_by_category(rows, EXPENSE)
    statuses = rank_budgets(budgets, store.thresholds)

    if st.button("🔄 Refresh tip"):
        st.session_state.tip_index = random.randrange(1000)
    advisories = generate_advisories(summary, category_totals, statuses, st.session_state.get("tip_index", 0))

    render = {"success": st.success, "warning": st.warning, "info": st.info, "tip": st.info}
    for a in advisories:
        render[a.kind](f"**{a.title}**\n\n{a.message}")

    with st.expander("Summary sent to the suggestion service"):
        st.code(prompt_context(summary, category_totals, statuses))
