import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from datetime import date

import streamlit as st
import pandas as pd
import plotly.graph_objects as go
import plotly.express as px

from fintrack.auth import AuthService
from fintrack.config import (
    CHART_COLORS,
    EXPENSE_CATEGORIES,
    INCOME_CATEGORIES,
    LABELED_CATEGORY,
)
from fintrack.currency import format_amount, format_net
from fintrack.dashboard import aggregate, month_bounds, net_of, transaction_breakdown
from fintrack.database import init_db
from fintrack.domain import DateRange
from fintrack.errors import AuthError, PersistenceError
from fintrack.inputs import add_row, initial_state, remove_row, set_field
from fintrack.logger import get_logger
from fintrack.processor import build_transaction
from fintrack.reconstruct import reconstruct
from fintrack.store import TransactionStore

st.set_page_config(page_title="FinTrack", layout="wide", page_icon="💰")

logger = get_logger("fintrack.app")


@st.cache_resource
def get_services():
    session_factory = init_db()
    return AuthService(session_factory), TransactionStore(session_factory)


auth, store = get_services()

SIDES = {
    "income": ("income_inputs", INCOME_CATEGORIES),
    "expense": ("expense_inputs", EXPENSE_CATEGORIES),
}


# --- Session state ---

def reset_entry_form():
    st.session_state.editing_id = None
    st.session_state.entry_date = date.today()
    st.session_state.income_inputs = initial_state(INCOME_CATEGORIES)
    st.session_state.expense_inputs = initial_state(EXPENSE_CATEGORIES)


if "view" not in st.session_state:
    bounds = month_bounds(date.today())
    st.session_state.view = "dashboard"
    st.session_state.user = None
    st.session_state.auth_mode = "login"
    st.session_state.saving = False
    st.session_state.pending_delete = None
    st.session_state.flash = None
    # widgets are cleared when their view is hidden, so values live under separate keys
    st.session_state.period_from = date.fromisoformat(bounds.start)
    st.session_state.period_to = date.fromisoformat(bounds.end)
    reset_entry_form()


def on_signed_in(session):
    st.session_state.user = session
    st.query_params["token"] = session.token
    # shared per user across browser sessions; reloads reuse the same subscription
    store.live_query(session.user_id)


def sign_out():
    session = st.session_state.user
    st.session_state.user = None
    st.session_state.view = "dashboard"
    st.query_params.clear()
    reset_entry_form()
    if session is not None:
        store.release(session.user_id)
        try:
            auth.sign_out(session.token)
        except PersistenceError:
            logger.error("Could not revoke session token on sign-out")


def flash(kind: str, message: str):
    st.session_state.flash = (kind, message)


def show_flash():
    if st.session_state.flash:
        kind, message = st.session_state.flash
        getattr(st, kind)(message)
        st.session_state.flash = None


# --- Auth ---

def try_restore_session():
    token = st.query_params.get("token")
    if not token:
        return
    try:
        on_signed_in(auth.restore_session(token))
    except (AuthError, PersistenceError) as e:
        logger.info("Session restore failed: %s", e)
        st.query_params.clear()


def render_auth():
    is_login = st.session_state.auth_mode == "login"
    _, center, _ = st.columns([1, 1, 1])
    with center:
        st.title("💰 FinTrack")
        st.caption("Sign in to manage your finances")
        with st.form("auth_form"):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            submitted = st.form_submit_button(
                "Sign In" if is_login else "Create Account",
                type="primary",
                use_container_width=True,
            )
        if submitted:
            try:
                session = auth.sign_in(email, password) if is_login else auth.sign_up(email, password)
            except (AuthError, PersistenceError) as e:
                st.error(str(e))
            else:
                on_signed_in(session)
                st.rerun()

        st.divider()
        toggle = "Need an account? Sign up" if is_login else "Already have an account? Sign in"
        if st.button(toggle, key="auth_toggle"):
            st.session_state.auth_mode = "signup" if is_login else "login"
            st.rerun()


# --- Entry form callbacks ---

def _model_key(side: str) -> str:
    return SIDES[side][0]


def on_add_row(side: str, category: str):
    key = _model_key(side)
    st.session_state[key] = add_row(st.session_state[key], category)


def on_remove_row(side: str, category: str, row_id: str):
    key = _model_key(side)
    st.session_state[key] = remove_row(st.session_state[key], category, row_id)


def on_field_change(side: str, category: str, row_id: str, field: str, widget_key: str):
    key = _model_key(side)
    st.session_state[key] = set_field(
        st.session_state[key], category, row_id, field, st.session_state[widget_key]
    )


def start_new_entry():
    reset_entry_form()
    st.session_state.view = "add"


def start_edit(t):
    st.session_state.editing_id = t.id
    st.session_state.entry_date = date.fromisoformat(t.date)
    st.session_state.income_inputs = reconstruct(INCOME_CATEGORIES, t.incomes)
    st.session_state.expense_inputs = reconstruct(EXPENSE_CATEGORIES, t.expenses)
    st.session_state.view = "add"


def save_entry():
    user = st.session_state.user
    if user is None or st.session_state.saving:
        return
    st.session_state.saving = True
    try:
        editing_id = st.session_state.editing_id
        result = build_transaction(
            st.session_state.entry_date.isoformat(),
            st.session_state.income_inputs,
            st.session_state.expense_inputs,
            is_edit=editing_id is not None,
        )
        if result.is_left():
            flash("warning", str(result.get_error()))
            return
        try:
            if editing_id:
                store.update(user.user_id, editing_id, result.unwrap())
            else:
                store.create(user.user_id, result.unwrap())
        except PersistenceError:
            logger.error("Save failed for user %s", user.user_id)
            flash("error", "Failed to save.")
            return
        reset_entry_form()
        st.session_state.view = "dashboard"
    finally:
        st.session_state.saving = False


def confirm_delete():
    user = st.session_state.user
    tx_id = st.session_state.pending_delete
    st.session_state.pending_delete = None
    try:
        store.delete(user.user_id, tx_id)
    except PersistenceError:
        logger.error("Delete failed for transaction %s", tx_id)
        flash("error", "Failed to delete.")


# --- Views ---

def render_nav():
    user = st.session_state.user
    left, right = st.columns([3, 2])
    with left:
        st.markdown("### 💰 FinTrack")
    with right:
        c1, c2, c3 = st.columns([2, 2, 1])
        c1.caption(user.email)
        if st.session_state.view == "dashboard":
            c2.button("➕ Add Transaction", on_click=start_new_entry, key="nav_add")
        else:
            c2.button("← Dashboard", key="nav_back", on_click=lambda: st.session_state.update(view="dashboard"))
        c3.button("Sign out", key="nav_signout", on_click=sign_out)
    st.divider()


def trend_figure(trend) -> go.Figure:
    labels = [str(p.label) for p in trend]
    fig = go.Figure()
    fig.add_trace(go.Bar(x=labels, y=[p.income for p in trend], name="Income", marker_color="#2563eb"))
    fig.add_trace(go.Bar(x=labels, y=[p.expense for p in trend], name="Expense", marker_color="#dc2626"))
    fig.update_layout(barmode="group", height=280, margin=dict(t=10, b=10, l=10, r=10))
    return fig


def breakdown_figure(breakdown) -> go.Figure:
    df = pd.DataFrame([{"Category": s.category, "Total": s.value} for s in breakdown])
    fig = px.pie(df, values="Total", names="Category", hole=0.6, color_discrete_sequence=list(CHART_COLORS))
    fig.update_layout(height=280, margin=dict(t=10, b=10, l=10, r=10), legend=dict(orientation="h"))
    return fig


def details_frame(side) -> pd.DataFrame:
    lines = transaction_breakdown(side)
    return pd.DataFrame(
        [{"Item": line.label, "Amount": format_amount(line.amount)} for line in lines]
    )


def render_transaction(t):
    cols = st.columns([2, 2, 2, 2, 1, 1])
    cols[0].write(date.fromisoformat(t.date).strftime("%d %b %Y"))
    cols[1].write(format_amount(t.total_income) if t.total_income > 0 else "-")
    cols[2].write(format_amount(t.total_expense) if t.total_expense > 0 else "-")
    cols[3].write(format_net(net_of(t)))
    cols[4].button("✏️", key=f"edit-{t.id}", on_click=start_edit, args=(t,), help="Edit")
    cols[5].button(
        "🗑️", key=f"delete-{t.id}", help="Delete",
        on_click=lambda: st.session_state.update(pending_delete=t.id),
    )

    if st.session_state.pending_delete == t.id:
        st.warning("Delete this transaction?")
        yes, no = st.columns([1, 8])
        yes.button("Delete", key=f"confirm-{t.id}", type="primary", on_click=confirm_delete)
        no.button("Cancel", key=f"cancel-{t.id}", on_click=lambda: st.session_state.update(pending_delete=None))

    with st.expander("Details"):
        inc_col, exp_col = st.columns(2)
        if t.total_income > 0:
            inc_col.markdown("**Income Details**")
            inc_col.table(details_frame(t.incomes))
        if t.total_expense > 0:
            exp_col.markdown("**Expense Details**")
            exp_col.table(details_frame(t.expenses))


def render_dashboard():
    title_col, start_col, end_col = st.columns([4, 1, 1])
    title_col.subheader("Dashboard")
    st.session_state.period_from = start_col.date_input("From", value=st.session_state.period_from)
    st.session_state.period_to = end_col.date_input("To", value=st.session_state.period_to)

    period = DateRange(
        start=st.session_state.period_from.isoformat(),
        end=st.session_state.period_to.isoformat(),
    )
    live = store.live_query(st.session_state.user.user_id)
    view = aggregate(live.transactions, period)

    k1, k2, k3 = st.columns(3)
    k1.metric("Total Income", format_amount(view.total_income))
    k2.metric("Total Expenses", format_amount(view.total_expense))
    k3.metric("Net Balance", format_amount(view.balance))

    trend_col, pie_col = st.columns([2, 1])
    with trend_col:
        st.markdown("**Income vs Expense Trend**")
        st.plotly_chart(trend_figure(view.trend), use_container_width=True)
    with pie_col:
        st.markdown("**Expense Breakdown**")
        if view.breakdown:
            st.plotly_chart(breakdown_figure(view.breakdown), use_container_width=True)
        else:
            st.info("No Data")

    st.markdown("**Recent Transactions**")
    st.caption(f"{len(view.transactions)} records found")
    header = st.columns([2, 2, 2, 2, 1, 1])
    for col, name in zip(header, ["Date", "Income", "Expense", "Balance", "", ""]):
        col.caption(name.upper())
    if not view.transactions:
        st.info("No transactions found for the selected period.")
    for t in view.transactions:
        render_transaction(t)


def render_section(title: str, side: str):
    key, categories = SIDES[side]
    model = st.session_state[key]
    st.subheader(title)
    for cat in categories:
        rows = model[cat]
        label_col, rows_col = st.columns([1, 3])
        label_col.write(cat)
        with rows_col:
            for idx, row in enumerate(rows):
                if cat == LABELED_CATEGORY:
                    desc_col, value_col, add_col, del_col = st.columns([3, 3, 1, 1])
                    label_key = f"{side}-{cat}-{row.id}-label"
                    desc_col.text_input(
                        "Description", value=row.label, key=label_key, placeholder="Description",
                        label_visibility="collapsed",
                        on_change=on_field_change, args=(side, cat, row.id, "label", label_key),
                    )
                else:
                    value_col, add_col, del_col = st.columns([6, 1, 1])
                value_key = f"{side}-{cat}-{row.id}-value"
                value_col.text_input(
                    "Amount", value=row.value, key=value_key, placeholder="0.00",
                    label_visibility="collapsed",
                    on_change=on_field_change, args=(side, cat, row.id, "value", value_key),
                )
                if idx == len(rows) - 1:
                    add_col.button("➕", key=f"add-{side}-{cat}-{row.id}", help="Add another row",
                                   on_click=on_add_row, args=(side, cat))
                if len(rows) > 1:
                    del_col.button("🗑️", key=f"remove-{side}-{cat}-{row.id}", help="Remove row",
                                   on_click=on_remove_row, args=(side, cat, row.id))
    st.divider()


def render_entry():
    crumb = "Edit Transaction" if st.session_state.editing_id else "New Entry"
    st.caption(f"Dashboard / **{crumb}**")
    st.session_state.entry_date = st.date_input("Transaction Date", value=st.session_state.entry_date)

    render_section("Income Sources", "income")
    render_section("Expenses", "expense")

    _, cancel_col, save_col = st.columns([6, 1, 1])
    cancel_col.button("Cancel", key="entry_cancel", on_click=lambda: st.session_state.update(view="dashboard"))
    save_col.button(
        "Saving..." if st.session_state.saving else "💾 Save Record",
        key="entry_save", type="primary",
        disabled=st.session_state.saving,
        on_click=save_entry,
    )


if st.session_state.user is None:
    try_restore_session()

if st.session_state.user is None:
    render_auth()
else:
    render_nav()
    show_flash()
    if st.session_state.view == "dashboard":
        render_dashboard()
    else:
        render_entry()
