"""Streamlit dashboard for mortgage rates.

Multi-tab dashboard for home buyers:
- Today's Rates: headline rates and the daily product table
- Calculator: monthly payment and amortization
- Lender Quotes: ranked quotes for a state and borrower profile
- History: rate trend charts
"""

import streamlit as st
import pandas as pd
import plotly.graph_objects as go

from ratecroft.errors import InvalidLoanError, UnknownSeriesError
from ratecroft.pricing.history import HISTORY_SERIES, PERIODS
from ratecroft.pricing.mortgage import LoanRequest
from ratecroft.pricing.quotes import LOAN_TYPES, PURPOSE_ADJ
from ratecroft.service import RateService


BADGE_COLORS = {
    "Lowest Rate": "#10b981",
    "Best Value": "#3b82f6",
    "Lowest Fees": "#f59e0b",
}


@st.cache_resource
def get_service() -> RateService:
    """One service, and so one cache, per Streamlit process."""
    return RateService()


def format_change(change: float | None) -> tuple[str, str]:
    """Format a rate change with color. Falling rates are good news."""
    if change is None or abs(change) < 0.005:
        return "0.00", "#6b7280"
    elif change > 0:
        return f"+{change:.2f}", "#ef4444"
    else:
        return f"{change:.2f}", "#10b981"


# =============================================================================
# TAB 1: TODAY'S RATES
# =============================================================================

def render_summary_cards(summary: dict) -> None:
    """Render headline rates as cards."""
    cols = st.columns(4)
    for col, item in zip(cols * 2, summary["rates"]):
        delta_str, delta_color = format_change(item["change"])
        with col:
            st.markdown(
                f"""<div style="background: #1e293b; border: 1px solid #334155; border-radius: 8px; padding: 1rem; margin-bottom: 0.75rem;">
                    <div style="color: #94a3b8; font-size: 0.7rem; text-transform: uppercase; letter-spacing: 0.1em;">{item['label']}</div>
                    <div style="display: flex; align-items: baseline; gap: 0.75rem;">
                        <span style="font-size: 1.75rem; font-weight: 700; color: #f1f5f9; font-family: 'SF Mono', monospace;">{item['value']:.2f}%</span>
                        <span style="color: {delta_color}; font-family: 'SF Mono', monospace;">{delta_str}</span>
                    </div>
                </div>""",
                unsafe_allow_html=True,
            )


def render_today_tab(service: RateService) -> None:
    summary = service.get_summary()
    today = service.get_today_rates()

    if not today["live"]:
        st.info("Showing built-in rates. Set FRED_API_KEY for live data.")

    render_summary_cards(summary)

    st.markdown("### Today's Mortgage Rates")
    table = pd.DataFrame(today["rates"])
    st.dataframe(
        table[["type", "rate", "apr", "points", "monthlyPayment", "minCredit", "minDown", "weekChange"]],
        use_container_width=True,
        hide_index=True,
        column_config={
            "type": st.column_config.TextColumn("Product"),
            "rate": st.column_config.NumberColumn("Rate", format="%.2f%%"),
            "apr": st.column_config.NumberColumn("APR", format="%.2f%%"),
            "points": st.column_config.NumberColumn("Points", format="%.1f"),
            "monthlyPayment": st.column_config.NumberColumn("Payment ($320k)", format="$%.2f"),
            "minCredit": st.column_config.NumberColumn("Min Credit"),
            "minDown": st.column_config.TextColumn("Min Down"),
            "weekChange": st.column_config.NumberColumn("1-Wk Change", format="%+.2f"),
        },
    )
    st.caption(f"Source: {today['source']} | As of {today['asOf']}")


# =============================================================================
# TAB 2: CALCULATOR
# =============================================================================

def render_amortization_chart(schedule: list[dict]) -> None:
    """Remaining balance with principal/interest split per payment."""
    df = pd.DataFrame(schedule)
    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=df["month"], y=df["balance"],
        mode="lines", line=dict(color="#3b82f6", width=2),
        fill="tozeroy", fillcolor="rgba(59, 130, 246, 0.1)",
        name="Balance",
        hovertemplate="Month %{x}<br>Balance: $%{y:,.0f}<extra></extra>",
    ))
    fig.update_layout(
        height=300,
        margin=dict(l=0, r=0, t=10, b=0),
        paper_bgcolor="rgba(0,0,0,0)",
        plot_bgcolor="rgba(0,0,0,0)",
        font=dict(color="#94a3b8"),
        xaxis=dict(title="Month", gridcolor="#334155"),
        yaxis=dict(title="Balance ($)", gridcolor="#334155"),
        showlegend=False,
    )
    st.plotly_chart(fig, use_container_width=True, config={"displayModeBar": False})


def render_calculator_tab(service: RateService) -> None:
    col1, col2, col3 = st.columns(3)
    with col1:
        price = st.number_input("Home price", min_value=0.0, value=400_000.0, step=5_000.0)
        down = st.number_input("Down payment", min_value=0.0, value=80_000.0, step=5_000.0)
    with col2:
        rate = st.number_input("Rate (%)", min_value=0.0, value=6.75, step=0.125)
        term = st.selectbox("Term (years)", [30, 20, 15, 10])
    with col3:
        tax = st.number_input("Property tax / yr", min_value=0.0, value=0.0, step=500.0)
        insurance = st.number_input("Insurance / yr", min_value=0.0, value=0.0, step=100.0)
        hoa = st.number_input("HOA / mo", min_value=0.0, value=0.0, step=25.0)

    try:
        result = service.calculate(LoanRequest(price, down, rate, term, tax, insurance, hoa))
    except InvalidLoanError as e:
        st.error(str(e))
        return

    monthly, loan = result["monthly"], result["loan"]
    m1, m2, m3, m4 = st.columns(4)
    m1.metric("Total monthly", f"${monthly['total']:,.2f}")
    m2.metric("Principal & interest", f"${monthly['principal_interest']:,.2f}")
    m3.metric("LTV", f"{loan['ltv']:.1f}%", "PMI required" if loan["pmi_required"] else None)
    m4.metric("Total interest", f"${loan['total_interest']:,.0f}")

    render_amortization_chart(result["amortization"])


# =============================================================================
# TAB 3: LENDER QUOTES
# =============================================================================

def render_quote_card(quote: dict) -> None:
    badge = quote["badge"]
    badge_html = ""
    if badge:
        color = BADGE_COLORS[badge]
        badge_html = (
            f'<span style="background: {color}22; border: 1px solid {color}; color: {color}; '
            f'padding: 0.1rem 0.6rem; border-radius: 4px; font-size: 0.7rem;">{badge}</span>'
        )
    st.markdown(
        f"""<div style="background: #1e293b; border: 1px solid #334155; border-radius: 8px; padding: 0.75rem 1.25rem; margin-bottom: 0.5rem;">
            <div style="display: flex; justify-content: space-between; align-items: center;">
                <span style="color: #e2e8f0; font-weight: 600;">{quote['lender']} {badge_html}</span>
                <span style="color: #f1f5f9; font-family: 'SF Mono', monospace; font-size: 1.1rem;">{quote['rate']:.3f}%</span>
            </div>
            <div style="color: #94a3b8; font-size: 0.8rem; margin-top: 0.25rem;">
                APR {quote['apr']:.3f}% | {quote['points']:.2f} pts | ${quote['fees']:,} fees |
                ${quote['monthlyPayment']:,.2f}/mo | NMLS {quote['nmls']}
            </div>
        </div>""",
        unsafe_allow_html=True,
    )


def render_quotes_tab(service: RateService) -> None:
    col1, col2, col3 = st.columns(3)
    with col1:
        state = st.text_input("State", value="CA", max_chars=2)
        loan_type = st.selectbox("Loan type", list(LOAN_TYPES))
    with col2:
        credit = st.slider("Credit score", 500, 850, 760, step=10)
        purpose = st.selectbox("Purpose", list(PURPOSE_ADJ))
    with col3:
        price = st.number_input("Price", min_value=0.0, value=500_000.0, step=10_000.0)
        down = st.number_input("Down", min_value=0.0, value=100_000.0, step=10_000.0)

    try:
        result = service.lender_quotes(state, loan_type, credit, price, down, purpose)
    except (InvalidLoanError, UnknownSeriesError) as e:
        st.error(str(e))
        return

    adj = result["adjustments"]
    st.caption(
        f"Base {result['baseRate']:.2f}% | state {adj['state']:+.2f} | credit {adj['credit']:+.2f} | "
        f"LTV {adj['ltv']:+.2f} | purpose {adj['purpose']:+.2f}"
    )
    if not result["quotes"]:
        st.warning("No lenders accept this credit score.")
        return
    for quote in result["quotes"]:
        render_quote_card(quote)
    st.caption("Quotes are illustrative, not offers of credit.")


# =============================================================================
# TAB 4: HISTORY
# =============================================================================

def render_history_tab(service: RateService) -> None:
    col1, col2 = st.columns([1, 4])
    with col1:
        period = st.selectbox("Period", list(PERIODS))
        series = st.selectbox("Series", list(HISTORY_SERIES))

    history = service.rate_history(period, series)
    if not history["data"]:
        st.info("No history available")
        return

    df = pd.DataFrame(history["data"])
    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=df["date"], y=df["value"],
        mode="lines", line=dict(color="#3b82f6", width=2),
        name=series,
        hovertemplate="%{x}<br>%{y:.2f}%<extra></extra>",
    ))
    fig.add_trace(go.Scatter(
        x=[df["date"].iloc[-1]], y=[df["value"].iloc[-1]],
        mode="markers", marker=dict(color="#10b981", size=10),
        hoverinfo="skip", showlegend=False,
    ))
    fig.update_layout(
        height=350,
        margin=dict(l=0, r=0, t=10, b=0),
        paper_bgcolor="rgba(0,0,0,0)",
        plot_bgcolor="rgba(0,0,0,0)",
        font=dict(color="#94a3b8"),
        xaxis=dict(gridcolor="#334155"),
        yaxis=dict(title="Rate (%)", gridcolor="#334155"),
        showlegend=False,
    )
    with col2:
        st.plotly_chart(fig, use_container_width=True, config={"displayModeBar": False})
        label = "" if history["live"] else " (illustrative, no live data)"
        st.caption(
            f"Low {history['min']:.2f}% | High {history['max']:.2f}% | "
            f"Change {history['change']:+.2f}{label}"
        )


def main() -> None:
    """Main dashboard entry point."""
    st.set_page_config(
        page_title="RateCroft",
        page_icon="",
        layout="wide",
        initial_sidebar_state="collapsed",
    )

    # Global styles
    st.markdown(
        """
        <style>
            .stApp { background-color: #0f172a; font-family: 'Inter', sans-serif; }
            .stMarkdown, .stText, p, span, label { color: #e2e8f0; }
            h1, h2, h3, h4 { color: #f1f5f9 !important; font-weight: 600 !important; }
            #MainMenu, footer, header { visibility: hidden; }
        </style>
        """,
        unsafe_allow_html=True,
    )

    st.markdown(
        """<div style="padding: 0.5rem 0 1rem 0; border-bottom: 1px solid #334155; margin-bottom: 1rem;">
            <h1 style="margin: 0; font-size: 1.5rem; color: #f1f5f9;">RateCroft</h1>
            <div style="color: #64748b; font-size: 0.75rem; margin-top: 0.25rem;">Mortgage rates from FRED / Freddie Mac, refreshed hourly</div>
        </div>""",
        unsafe_allow_html=True,
    )

    service = get_service()

    tab1, tab2, tab3, tab4 = st.tabs(["Today's Rates", "Calculator", "Lender Quotes", "History"])

    with tab1:
        render_today_tab(service)

    with tab2:
        render_calculator_tab(service)

    with tab3:
        render_quotes_tab(service)

    with tab4:
        render_history_tab(service)


if __name__ == "__main__":
    main()
