# follow_dashboard/kpi_follow/charts.py
"""
Altair Chart Builders for KPI Follow

- Monthly actual vs budget trend (closed months solid, open months budget only)
- Cumulative actual vs plan with forecast landing line
- Pipeline by stage (gross vs weighted)
- Pipeline by expected close month (stacked by stage)
- Target gap stack
"""

import logging
from typing import Dict
import pandas as pd
import altair as alt

from .constants import COLORS, STAGE_COLORS, CHART_WIDTH, CHART_HEIGHT, DISPLAY_UNIT, DISPLAY_UNIT_LABEL
from .aggregation import ForecastValue
from .composite import TargetGap
from .pipeline import PipelineRollup
from .time_series import TimeSeriesStore

logger = logging.getLogger(__name__)


class FollowCharts:
    """
    Chart builders for the monthly follow page.

    All methods are static.

    Usage:
        chart = FollowCharts.build_monthly_trend_chart(store, 'revenue')
        st.altair_chart(chart, use_container_width=True)
    """

    @staticmethod
    def _empty_chart(message: str = "No data available") -> alt.Chart:
        """Create an empty chart with a message."""
        return alt.Chart(pd.DataFrame({'note': [message]})).mark_text(
            text=message,
            fontSize=16,
            color='#999999'
        ).properties(
            width=CHART_WIDTH,
            height=200
        )

    @staticmethod
    def _scaled(store: TimeSeriesStore, kpi_id: str, display_unit: float) -> pd.DataFrame:
        df = store.to_frame(kpi_id)
        if df.empty:
            return df
        df['actual'] = df['actual'].astype(float)
        df['budget'] = df['budget'].astype(float)
        if store.definition(kpi_id).unit == 'yen':
            df['actual'] = df['actual'] / display_unit
            df['budget'] = df['budget'] / display_unit
        return df

    # =========================================================================
    # TREND CHARTS
    # =========================================================================

    @staticmethod
    def build_monthly_trend_chart(
        store: TimeSeriesStore,
        kpi_id: str,
        display_unit: float = DISPLAY_UNIT
    ) -> alt.Chart:
        """
        Budget bars with the actual line over the fiscal year.

        Args:
            store: KPI dataset
            kpi_id: KPI to chart
            display_unit: Yen per display unit for monetary KPIs

        Returns:
            Altair chart
        """
        df = FollowCharts._scaled(store, kpi_id, display_unit)
        if df.empty:
            return FollowCharts._empty_chart()

        definition = store.definition(kpi_id)
        unit = DISPLAY_UNIT_LABEL if definition.unit == 'yen' else definition.unit
        month_sort = list(df['label'])

        bars = alt.Chart(df).mark_bar(color=COLORS['budget'], opacity=0.7).encode(
            x=alt.X('label:N', sort=month_sort, title='Month'),
            y=alt.Y('budget:Q', title=f"{definition.name} ({unit})"),
            tooltip=[
                alt.Tooltip('label:N', title='Month'),
                alt.Tooltip('budget:Q', title='Budget', format=',.1f'),
            ]
        )

        line = alt.Chart(df[df['is_closed']]).mark_line(
            point=True,
            color=COLORS['actual'],
            strokeWidth=2
        ).encode(
            x=alt.X('label:N', sort=month_sort),
            y=alt.Y('actual:Q'),
            tooltip=[
                alt.Tooltip('label:N', title='Month'),
                alt.Tooltip('actual:Q', title='Actual', format=',.1f'),
                alt.Tooltip('variance_rate:Q', title='Variance %', format='+.1f'),
            ]
        )

        return alt.layer(bars, line).properties(
            width=CHART_WIDTH,
            height=CHART_HEIGHT,
            title=f"📊 {definition.name}: Actual vs Budget"
        )

    @staticmethod
    def build_cumulative_chart(
        store: TimeSeriesStore,
        kpi_id: str,
        forecast: Dict[str, ForecastValue] = None,
        display_unit: float = DISPLAY_UNIT
    ) -> alt.Chart:
        """Cumulative actual (closed months) against cumulative plan."""
        df = FollowCharts._scaled(store, kpi_id, display_unit)
        if df.empty:
            return FollowCharts._empty_chart()

        df = df.sort_values('month_order').reset_index(drop=True)
        df['cum_budget'] = df['budget'].cumsum()
        closed = df['is_closed'] & df['actual'].notna()
        df['cum_actual'] = df['actual'].where(closed, 0.0).cumsum().where(closed)

        plot_df = pd.concat([
            df[['label', 'month_order']].assign(Series='Plan', Amount=df['cum_budget']),
            df[['label', 'month_order']].assign(Series='Actual', Amount=df['cum_actual']),
        ]).dropna(subset=['Amount'])

        month_sort = list(df['label'])
        color_scale = alt.Scale(
            domain=['Plan', 'Actual'],
            range=[COLORS['budget'], COLORS['actual']]
        )

        lines = alt.Chart(plot_df).mark_line(point=True).encode(
            x=alt.X('label:N', sort=month_sort, title='Month'),
            y=alt.Y('Amount:Q', title='Cumulative'),
            color=alt.Color('Series:N', scale=color_scale, legend=alt.Legend(orient='bottom')),
            tooltip=[
                alt.Tooltip('label:N', title='Month'),
                alt.Tooltip('Series:N'),
                alt.Tooltip('Amount:Q', format=',.1f'),
            ]
        )

        layers = [lines]
        if forecast and kpi_id in forecast:
            value = forecast[kpi_id].forecast
            if store.definition(kpi_id).unit == 'yen':
                value = value / display_unit
            rule = alt.Chart(pd.DataFrame({'forecast': [value]})).mark_rule(
                color=COLORS['forecast'], strokeDash=[6, 4], strokeWidth=2
            ).encode(
                y='forecast:Q',
                tooltip=[alt.Tooltip('forecast:Q', title='Landing estimate', format=',.1f')]
            )
            layers.append(rule)

        return alt.layer(*layers).properties(
            width=CHART_WIDTH,
            height=CHART_HEIGHT,
            title="📈 Cumulative vs Plan"
        )

    # =========================================================================
    # PIPELINE CHARTS
    # =========================================================================

    @staticmethod
    def build_pipeline_stage_chart(
        rollup: PipelineRollup,
        display_unit: float = DISPLAY_UNIT
    ) -> alt.Chart:
        """Gross and weighted amount per stage."""
        df = rollup.to_frame()
        if df.empty:
            return FollowCharts._empty_chart("No pipeline")

        plot_df = df.melt(
            id_vars=['stage'],
            value_vars=['total_amount', 'weighted_amount'],
            var_name='Metric',
            value_name='Amount'
        )
        plot_df['Metric'] = plot_df['Metric'].map({
            'total_amount': 'Gross',
            'weighted_amount': 'Weighted',
        })
        plot_df['Amount'] = plot_df['Amount'] / display_unit

        color_scale = alt.Scale(
            domain=['Gross', 'Weighted'],
            range=[COLORS['budget'], COLORS['weighted']]
        )

        return alt.Chart(plot_df).mark_bar().encode(
            x=alt.X('stage:N', sort=list(df['stage']), title='Stage'),
            y=alt.Y('Amount:Q', title=f"Amount ({DISPLAY_UNIT_LABEL})"),
            color=alt.Color('Metric:N', scale=color_scale, legend=alt.Legend(orient='bottom')),
            xOffset='Metric:N',
            tooltip=[
                alt.Tooltip('stage:N', title='Stage'),
                alt.Tooltip('Metric:N'),
                alt.Tooltip('Amount:Q', format=',.2f'),
            ]
        ).properties(
            width=CHART_WIDTH,
            height=CHART_HEIGHT,
            title="🎯 Pipeline by Stage"
        )

    @staticmethod
    def build_close_month_chart(
        rollup: PipelineRollup,
        display_unit: float = DISPLAY_UNIT
    ) -> alt.Chart:
        """Expected close month, stacked by stage."""
        pivot = rollup.by_close_month()
        if pivot.empty:
            return FollowCharts._empty_chart("No pipeline")

        plot_df = pivot.reset_index().melt(
            id_vars=['close_month'], var_name='stage', value_name='Amount'
        )
        plot_df['Amount'] = plot_df['Amount'] / display_unit
        stage_ids = [s.id for s in rollup.stages]
        color_scale = alt.Scale(
            domain=stage_ids,
            range=[STAGE_COLORS.get(s, '#9e9e9e') for s in stage_ids]
        )

        return alt.Chart(plot_df).mark_bar().encode(
            x=alt.X('close_month:N', title='Expected close'),
            y=alt.Y('Amount:Q', stack='zero', title=f"Amount ({DISPLAY_UNIT_LABEL})"),
            color=alt.Color('stage:N', scale=color_scale, sort=stage_ids),
            tooltip=['close_month:N', 'stage:N', alt.Tooltip('Amount:Q', format=',.2f')]
        ).properties(
            width=CHART_WIDTH,
            height=CHART_HEIGHT,
            title="📅 Pipeline by Expected Close"
        )

    @staticmethod
    def build_target_gap_chart(gap: TargetGap, display_unit: float = DISPLAY_UNIT) -> alt.Chart:
        """Confirmed + weighted pipeline stacked against the annual target."""
        weighted = gap.current_stack - gap.confirmed_ytd
        plot_df = pd.DataFrame([
            {'bar': 'Stack', 'part': 'Confirmed', 'Amount': gap.confirmed_ytd / display_unit, 'order': 0},
            {'bar': 'Stack', 'part': 'Weighted pipeline', 'Amount': weighted / display_unit, 'order': 1},
            {'bar': 'Stack', 'part': 'Gap', 'Amount': max(gap.gap_to_target, 0.0) / display_unit, 'order': 2},
        ])
        color_scale = alt.Scale(
            domain=['Confirmed', 'Weighted pipeline', 'Gap'],
            range=[COLORS['confirmed'], COLORS['weighted'], COLORS['target']]
        )

        bars = alt.Chart(plot_df).mark_bar().encode(
            y=alt.Y('bar:N', title=None),
            x=alt.X('Amount:Q', stack='zero', title=f"Amount ({DISPLAY_UNIT_LABEL})"),
            color=alt.Color('part:N', scale=color_scale, legend=alt.Legend(orient='bottom')),
            order=alt.Order('order:Q'),
            tooltip=['part:N', alt.Tooltip('Amount:Q', format=',.1f')]
        )
        target = alt.Chart(pd.DataFrame({'target': [gap.annual_target / display_unit]})).mark_rule(
            color=COLORS['target'], strokeWidth=2
        ).encode(x='target:Q')

        return alt.layer(bars, target).properties(
            width=CHART_WIDTH,
            height=120,
            title="🏁 Annual Target Stack"
        )
