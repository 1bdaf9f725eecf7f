# follow_dashboard/kpi_follow/__init__.py
"""
KPI Follow Module

Derives forward-looking KPIs from a partially-closed fiscal year:
- TimeSeriesStore: monthly actual/budget snapshots in fiscal order
- Aggregation: YTD, month-over-month, landing estimate
- Status classification against a warning threshold
- Probability-weighted pipeline rollup
- Composite metrics: target gap, layered revenue, insights, issue detection

VERSION: 1.0.0

Streamlit fragments and altair charts are not imported here; pages import
them from .fragments / .charts directly.
"""

from .errors import MissingReferenceError
from .time_series import (
    KpiValue,
    KpiDefinition,
    MonthRecord,
    TimeSeriesStore,
    build_month_record,
    fiscal_month_keys,
    variance_rate,
)
from .status import classify, classify_value, count_statuses
from .aggregation import (
    ForecastValue,
    MomChange,
    compute_ytd,
    compute_forecast,
    compute_month_over_month,
    build_kpi_table,
    build_follow_summary,
)
from .pipeline import (
    StageConfig,
    PipelineItem,
    PipelineSummary,
    PipelineRollup,
    summarize,
    weighted_total,
    gross_total,
    pipeline_quality,
    default_stages,
)
from .composite import (
    TargetGap,
    LayeredRevenue,
    ExternalKpiInputs,
    Insight,
    IssueTarget,
    compute_target_gap,
    compute_layered_revenue,
    build_insights,
    detect_kpi_issues,
)

__all__ = [
    'MissingReferenceError',
    'KpiValue',
    'KpiDefinition',
    'MonthRecord',
    'TimeSeriesStore',
    'build_month_record',
    'fiscal_month_keys',
    'variance_rate',
    'classify',
    'classify_value',
    'count_statuses',
    'ForecastValue',
    'MomChange',
    'compute_ytd',
    'compute_forecast',
    'compute_month_over_month',
    'build_kpi_table',
    'build_follow_summary',
    'StageConfig',
    'PipelineItem',
    'PipelineSummary',
    'PipelineRollup',
    'summarize',
    'weighted_total',
    'gross_total',
    'pipeline_quality',
    'default_stages',
    'TargetGap',
    'LayeredRevenue',
    'ExternalKpiInputs',
    'Insight',
    'IssueTarget',
    'compute_target_gap',
    'compute_layered_revenue',
    'build_insights',
    'detect_kpi_issues',
]

__version__ = '1.0.0'
