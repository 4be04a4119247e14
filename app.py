"""Streamlit entry point for the metrics dashboard."""

from __future__ import annotations

import logging

import streamlit as st
from metrics_dashboard import viz
from metrics_dashboard.config import Settings, init_firebase_app, load_settings
from metrics_dashboard.controller import DashboardController
from metrics_dashboard.errors import AuthError, ConfigError
from metrics_dashboard.identity import FirebaseIdentityProvider
from metrics_dashboard.session import SessionState, SyncSession, firebase_connector

logger = logging.getLogger("metrics_dashboard.app")
if not logging.getLogger().handlers:
    logging.basicConfig(level=logging.INFO)

CONTROLLER_KEY = "dashboard_controller"


def _controller(settings: Settings) -> DashboardController:
    if CONTROLLER_KEY not in st.session_state:
        session = SyncSession(firebase_connector(lambda: settings))
        st.session_state[CONTROLLER_KEY] = DashboardController(session)
    return st.session_state[CONTROLLER_KEY]


def _sign_out() -> None:
    controller: DashboardController | None = st.session_state.pop(CONTROLLER_KEY, None)
    if controller is not None:
        controller.session.release()


def _submit(controller: DashboardController) -> None:
    controller.submit(st.session_state)


def _render_styles() -> None:
    st.markdown(
        """
        <style>
        [data-testid="stAppViewContainer"] {
            background: #f5f7fb;
            color: #0f172a;
        }

        [data-testid="stHeader"] {
            background: transparent;
        }

        .metric-card {
            background: #ffffff;
            border: 1px solid rgba(226, 232, 240, 0.9);
            border-radius: 14px;
            padding: 0.9rem 1.1rem;
        }
        </style>
        """,
        unsafe_allow_html=True,
    )


def _auth_screen(settings: Settings, controller: DashboardController) -> None:
    """Register, log in, or continue anonymously."""

    st.title("Daily metrics dashboard")
    st.caption("Sign in to track DMs, ad spend, sales and revenue.")

    try:
        provider = FirebaseIdentityProvider(init_firebase_app(settings), settings.web_api_key)
    except ConfigError as exc:
        st.error(f"Configuration error: {exc}")
        st.stop()

    tab_login, tab_register = st.tabs(["Login", "Register"])
    with tab_login:
        email = st.text_input("Email", key="login_email")
        password = st.text_input("Password", type="password", key="login_password")
        if st.button("Login", type="primary"):
            try:
                token = provider.sign_in_with_password(email, password)
            except AuthError as exc:
                st.error(str(exc))
            else:
                controller.start(token)
                st.rerun()

    with tab_register:
        email_new = st.text_input("Email", key="register_email")
        password_new = st.text_input("Password", type="password", key="register_password")
        if st.button("Create account"):
            try:
                token = provider.register_with_password(email_new, password_new)
            except AuthError as exc:
                st.error(str(exc))
            else:
                controller.start(token)
                st.rerun()

    st.divider()
    if st.button("Continue without an account"):
        controller.start()
        st.rerun()


def _entry_form(controller: DashboardController) -> None:
    with st.form("entry_form", clear_on_submit=False, border=True):
        st.markdown("#### Add today's numbers")
        col_dm, col_spend, col_sales, col_revenue = st.columns(4)
        with col_dm:
            st.text_input("DMs", key="dm_count", placeholder="0")
        with col_spend:
            st.text_input("Ad spend ($)", key="ad_spend", placeholder="0.00")
        with col_sales:
            st.text_input("Sales", key="sales_count", placeholder="0")
        with col_revenue:
            st.text_input("Revenue ($)", key="revenue", placeholder="0.00", help="Use a negative amount for a loss.")
        st.form_submit_button("Add entry", type="primary", on_click=_submit, args=(controller,))


def _live_panel(controller: DashboardController) -> None:
    controller.refresh()
    view = controller.view

    if controller.error:
        error_col, dismiss_col = st.columns([0.85, 0.15])
        with error_col:
            st.error(controller.error)
        with dismiss_col:
            st.button("Dismiss", key="dismiss_error", on_click=controller.acknowledge_error)

    chart_col, summary_col = st.columns([1.35, 1], gap="large")
    with chart_col:
        st.plotly_chart(
            viz.plot_summary_bar(view.presentation),
            use_container_width=True,
            config={"displayModeBar": False},
        )
    with summary_col:
        st.markdown("#### Totals")
        table = view.presentation.formatted_table
        if table.empty:
            st.caption("Totals appear once you add a non-zero entry.")
        else:
            st.dataframe(
                table[["metric", "display"]],
                hide_index=True,
                use_container_width=True,
                column_config={
                    "metric": st.column_config.TextColumn("Metric"),
                    "display": st.column_config.TextColumn("Total"),
                },
            )

    st.markdown("#### History")
    history = view.history
    if history.empty:
        st.caption("No entries yet.")
        return

    header = st.columns([1.6, 1, 1.2, 1, 1.2, 1.2, 0.8])
    for col, label in zip(header, ["Created", "DMs", "Ad spend", "Sales", "Revenue", "Net", ""]):
        col.markdown(f"**{label}**")
    for row in history.itertuples(index=False):
        cols = st.columns([1.6, 1, 1.2, 1, 1.2, 1.2, 0.8])
        cols[0].write(row.created)
        cols[1].write(row.dms)
        cols[2].write(row.spend)
        cols[3].write(row.sales)
        cols[4].write(row.revenue_display)
        cols[5].write(row.net_display)
        cols[6].button("Delete", key=f"delete-{row.id}", on_click=controller.remove, args=(row.id,))


def main() -> None:
    """Render the metrics dashboard Streamlit application."""

    st.set_page_config(
        page_title="Metrics Dashboard",
        page_icon="📈",
        layout="wide",
    )
    _render_styles()

    try:
        settings = load_settings()
    except ConfigError as exc:
        st.error(f"Configuration error: {exc}")
        st.stop()

    controller = _controller(settings)
    session = controller.session

    if session.state is SessionState.UNINITIALIZED and settings.initial_auth_token:
        controller.start(settings.initial_auth_token)

    if session.state is SessionState.ERROR:
        st.error(controller.error or "The dashboard could not connect.")
        if st.button("Reload"):
            _sign_out()
            st.rerun()
        st.stop()

    if session.state is SessionState.UNINITIALIZED:
        _auth_screen(settings, controller)
        st.stop()

    with st.sidebar:
        st.markdown("### Account")
        st.caption(f"Signed in as {session.identity}")
        st.button("Sign out", on_click=_sign_out)

    st.title("Daily metrics dashboard")
    _entry_form(controller)
    st.fragment(run_every=settings.poll_seconds)(_live_panel)(controller)


if __name__ == "__main__":
    main()
