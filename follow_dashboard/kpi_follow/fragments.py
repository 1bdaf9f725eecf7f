# follow_dashboard/kpi_follow/fragments.py
"""
Streamlit Fragments for KPI Follow

Uses @st.fragment so the KPI table and chart selectors rerun on their own
widgets without recomputing the whole page.
"""

import streamlit as st
import pandas as pd
from typing import Dict, List

from ..config import FollowSettings
from ..formatters import format_amount, format_number, format_rate
from .aggregation import build_kpi_table
from .charts import FollowCharts
from .composite import ExternalKpiInputs, Insight, LayeredRevenue, TargetGap
from .constants import STATUS_CONFIG, INSIGHT_CRITICAL, INSIGHT_WARNING
from .pipeline import PipelineRollup
from .time_series import TimeSeriesStore


def _status_badge(status: str) -> str:
    cfg = STATUS_CONFIG.get(status, {})
    return f"{cfg.get('icon', '')} {cfg.get('label', status)}"


def _format_kpi_value(value, unit: str, settings: FollowSettings) -> str:
    if unit == 'yen':
        return format_amount(value, display_unit=settings.display_unit,
                             unit_label=settings.display_unit_label)
    if unit == '%':
        return format_rate(value, signed=False)
    return format_number(value, decimals=1 if unit != 'count' else 0)


# =============================================================================
# SUMMARY CARDS
# =============================================================================

def render_summary_cards(summary: Dict, settings: FollowSettings):
    """Headline metrics: revenue month / YTD / forecast and status counts."""
    with st.container(border=True):
        col1, col2, col3, col4 = st.columns(4)

        with col1:
            st.metric(
                label="Revenue (month)",
                value=format_amount(summary['revenue_actual'], display_unit=settings.display_unit,
                                    unit_label=settings.display_unit_label),
                delta=format_rate(summary['revenue_variance_rate'])
                if summary['revenue_variance_rate'] is not None else None,
                help="Selected month actual vs budget"
            )
        with col2:
            st.metric(
                label="Revenue (YTD)",
                value=format_amount(summary['revenue_ytd'], display_unit=settings.display_unit,
                                    unit_label=settings.display_unit_label),
                delta=format_rate(summary['revenue_ytd_variance_rate'])
                if summary['revenue_ytd_variance_rate'] is not None else None,
                help="Closed months only, through the selected month"
            )
        with col3:
            st.metric(
                label="Landing estimate",
                value=format_amount(summary['revenue_forecast'], display_unit=settings.display_unit,
                                    unit_label=settings.display_unit_label),
                delta=format_rate(summary['revenue_forecast_variance_rate'])
                if summary['revenue_forecast_variance_rate'] is not None else None,
                help="Confirmed actuals + budget for the remaining months, vs annual budget"
            )
        with col4:
            st.metric(
                label="Closed months",
                value=f"{summary['closed_months']}/{summary['total_months']}",
                delta=f"🟢 {summary['good_count']}  🔴 {summary['critical_count']}",
                delta_color="off"
            )


# =============================================================================
# FRAGMENT: KPI TABLE
# =============================================================================

@st.fragment
def kpi_table_fragment(store: TimeSeriesStore, month: str, settings: FollowSettings):
    """KPI follow table with category filter and period selector."""
    st.subheader("📋 KPI Follow")

    col_cat, col_view = st.columns([2, 3])
    with col_cat:
        categories = ['all'] + store.categories()
        category = st.selectbox("Category", categories, key="kpi_table_category")
    with col_view:
        view = st.radio(
            "Period", ["Month", "YTD", "Forecast"],
            horizontal=True, key="kpi_table_view"
        )

    table = build_kpi_table(store, month, category, settings.warning_threshold)
    if table.empty:
        st.info("No KPIs in this category")
        return

    columns = {
        "Month": ('actual', 'budget', 'variance_rate', 'status'),
        "YTD": ('ytd_actual', 'ytd_budget', 'ytd_variance_rate', 'ytd_status'),
        "Forecast": ('forecast', 'annual_budget', 'forecast_variance_rate', 'forecast_status'),
    }[view]
    actual_col, budget_col, rate_col, status_col = columns

    display = pd.DataFrame({
        'KPI': table['name'],
        'Actual': [_format_kpi_value(v, u, settings) for v, u in zip(table[actual_col], table['unit'])],
        'Budget': [_format_kpi_value(v, u, settings) for v, u in zip(table[budget_col], table['unit'])],
        'Variance': table[rate_col].apply(format_rate),
        'Status': table[status_col].apply(_status_badge),
    })
    if view == "Month":
        display['MoM'] = table['mom_rate'].apply(format_rate)

    st.dataframe(display, hide_index=True, use_container_width=True)


# =============================================================================
# FRAGMENT: TREND CHARTS
# =============================================================================

@st.fragment
def trend_fragment(store: TimeSeriesStore, forecast: Dict, settings: FollowSettings):
    st.subheader("📊 Monthly Trend")

    kpis = store.kpis()
    options = {k.id: k.name for k in kpis}
    kpi_id = st.selectbox(
        "KPI", list(options.keys()),
        format_func=lambda k: options[k], key="trend_kpi"
    )

    col1, col2 = st.columns(2)
    with col1:
        st.altair_chart(
            FollowCharts.build_monthly_trend_chart(store, kpi_id, settings.display_unit),
            use_container_width=True
        )
    with col2:
        st.altair_chart(
            FollowCharts.build_cumulative_chart(store, kpi_id, forecast, settings.display_unit),
            use_container_width=True
        )


# =============================================================================
# TARGET GAP / LAYERED REVENUE / INSIGHTS
# =============================================================================

def render_target_gap(gap: TargetGap, settings: FollowSettings):
    st.subheader("🏁 Target Gap")

    def amount(v):
        return format_amount(v, display_unit=settings.display_unit, unit_label=settings.display_unit_label)

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Annual target", amount(gap.annual_target))
    col2.metric("Continuing revenue", amount(gap.continuing_revenue),
                help="Confirmed YTD + share of the continuing stage")
    col3.metric("Current stack", amount(gap.current_stack),
                delta=format_rate(gap.achievement_rate, signed=False)
                if gap.achievement_rate is not None else None,
                delta_color="off")
    col4.metric("New business required", amount(gap.new_business_required))

    st.altair_chart(
        FollowCharts.build_target_gap_chart(gap, settings.display_unit),
        use_container_width=True
    )


def render_layered_revenue(layers: LayeredRevenue, external: ExternalKpiInputs,
                           settings: FollowSettings):
    st.subheader("🧭 Revenue by Viewpoint")

    def amount(v):
        return format_amount(v, display_unit=settings.display_unit, unit_label=settings.display_unit_label)

    col1, col2, col3 = st.columns(3)
    col1.metric("Accounting", amount(layers.accounting), help="Confirmed revenue")
    col2.metric("Management", amount(layers.management), help="Confirmed + weighted pipeline")
    col3.metric("Cash", amount(layers.cash), help="Supplied by the treasury feed")

    col4, col5, col6 = st.columns(3)
    col4.metric("New customer ratio", format_rate(external.new_customer_ratio, signed=False))
    col5.metric("Upsell potential", format_amount(external.upsell_potential,
                                                  display_unit=settings.display_unit,
                                                  unit_label=settings.display_unit_label))
    col6.metric("Concentration risk", format_rate(external.concentration_risk, signed=False))


def render_insights(insights: List[Insight]):
    st.subheader("💡 Field → Accounting → Management")
    if not insights:
        st.success("No items need attention this month")
        return

    for insight in insights:
        text = f"**{insight.field}** → {insight.accounting} → _{insight.management}_"
        if insight.severity == INSIGHT_CRITICAL:
            st.error(text, icon="🚨")
        elif insight.severity == INSIGHT_WARNING:
            st.warning(text, icon="⚠️")
        else:
            st.info(text, icon="💡")


# =============================================================================
# FRAGMENT: PIPELINE
# =============================================================================

@st.fragment
def pipeline_fragment(rollup: PipelineRollup, settings: FollowSettings):
    st.subheader("🎯 Pipeline")

    def amount(v):
        return format_amount(v, display_unit=settings.display_unit, unit_label=settings.display_unit_label)

    col1, col2, col3 = st.columns(3)
    col1.metric("Gross", amount(rollup.gross_total))
    col2.metric("Weighted", amount(rollup.weighted_total))
    col3.metric(
        "Pipeline quality",
        format_rate(rollup.quality(settings.high_confidence_stages), signed=False),
        help=f"Share of gross in stages {', '.join(settings.high_confidence_stages)}"
    )

    view = st.radio("View", ["By stage", "By close month"], horizontal=True, key="pipeline_view")
    if view == "By stage":
        chart = FollowCharts.build_pipeline_stage_chart(rollup, settings.display_unit)
    else:
        chart = FollowCharts.build_close_month_chart(rollup, settings.display_unit)
    st.altair_chart(chart, use_container_width=True)

    with st.expander("Stage detail"):
        df = rollup.to_frame()
        df['total_amount'] = df['total_amount'].apply(amount)
        df['weighted_amount'] = df['weighted_amount'].apply(amount)
        df['share'] = df['share'].apply(lambda v: format_rate(v, signed=False))
        st.dataframe(df, hide_index=True, use_container_width=True)
