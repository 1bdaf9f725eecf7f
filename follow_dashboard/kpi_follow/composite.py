# follow_dashboard/kpi_follow/composite.py
"""
Composite KPIs built from the KPI dataset and the pipeline rollup.

Handles:
- Target gap (annual target vs confirmed + weighted pipeline)
- Layered revenue (accounting / management / cash)
- Insight cards translating field facts into management impact
- Issue detection feeding the action tracker

New-customer ratio, upsell potential and concentration risk have no
derivation here. They enter as ExternalKpiInputs supplied by the caller.

VERSION: 1.0.0
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from .constants import (
    DEFAULT_CONTINUING_STAGE, DEFAULT_CONTINUING_RATIO, DEFAULT_WARNING_THRESHOLD,
    DISPLAY_UNIT, DISPLAY_UNIT_LABEL,
    INSIGHT_INFO, INSIGHT_WARNING, INSIGHT_CRITICAL,
    RED_PROJECTS_KPI, PROJECT_MARGIN_KPI, MARGIN_INSIGHT_THRESHOLD, PIPELINE_RICH_RATIO,
    STATUS_CRITICAL, STATUS_WARNING,
)
from .pipeline import PipelineRollup
from .status import classify
from .time_series import TimeSeriesStore

logger = logging.getLogger(__name__)


# =============================================================================
# DATA MODEL
# =============================================================================

@dataclass(frozen=True)
class TargetGap:
    annual_target: float
    confirmed_ytd: float
    continuing_revenue: float
    new_business_required: float
    current_stack: float
    gap_to_target: float
    achievement_rate: Optional[float]


@dataclass(frozen=True)
class LayeredRevenue:
    """Same revenue seen by three audiences."""
    accounting: float
    management: float
    cash: Optional[float]


@dataclass(frozen=True)
class ExternalKpiInputs:
    """KPIs supplied by an upstream data source; None means not available."""
    new_customer_ratio: Optional[float] = None
    upsell_potential: Optional[float] = None
    concentration_risk: Optional[float] = None


@dataclass(frozen=True)
class Insight:
    """One field -> accounting -> management translation card."""
    field: str
    accounting: str
    management: str
    severity: str


@dataclass(frozen=True)
class IssueTarget:
    """A KPI off plan, ready to become an action item."""
    category: str
    name: str
    issue: str
    current_value: float
    target_value: float
    priority: str
    kpi_id: str = ''


# =============================================================================
# TARGET GAP
# =============================================================================

def compute_target_gap(
    annual_target: float,
    confirmed_ytd: Optional[float],
    rollup: PipelineRollup,
    continuing_stage: str = DEFAULT_CONTINUING_STAGE,
    continuing_ratio: float = DEFAULT_CONTINUING_RATIO
) -> TargetGap:
    """
    Gap between the annual target and what is already stacked up.

    current_stack = confirmed YTD + weighted pipeline
    continuing_revenue = confirmed YTD + continuing_ratio * continuing stage gross
    new_business_required = max(0, target - continuing - weighted pipeline)

    confirmed_ytd of None (no closed month yet) counts as nothing confirmed.
    """
    confirmed = confirmed_ytd if confirmed_ytd is not None else 0.0
    continuing_gross = rollup.stage_total(continuing_stage)

    continuing_revenue = confirmed + continuing_gross * continuing_ratio
    new_business_required = max(0.0, annual_target - continuing_revenue - rollup.weighted_total)
    current_stack = confirmed + rollup.weighted_total
    gap_to_target = annual_target - current_stack
    achievement_rate = current_stack / annual_target * 100 if annual_target else None

    return TargetGap(
        annual_target=annual_target,
        confirmed_ytd=confirmed,
        continuing_revenue=continuing_revenue,
        new_business_required=new_business_required,
        current_stack=current_stack,
        gap_to_target=gap_to_target,
        achievement_rate=achievement_rate,
    )


def compute_layered_revenue(
    confirmed_ytd: Optional[float],
    rollup: PipelineRollup,
    cash_revenue: Optional[float] = None
) -> LayeredRevenue:
    """Accounting = confirmed, management = confirmed + weighted pipeline."""
    confirmed = confirmed_ytd if confirmed_ytd is not None else 0.0
    return LayeredRevenue(
        accounting=confirmed,
        management=confirmed + rollup.weighted_total,
        cash=cash_revenue,
    )


# =============================================================================
# INSIGHTS
# =============================================================================

def build_insights(
    store: TimeSeriesStore,
    month: str,
    rollup: PipelineRollup,
    target_gap: TargetGap,
    gap_critical_threshold: float = 20.0,
    display_unit: float = DISPLAY_UNIT,
    unit_label: str = DISPLAY_UNIT_LABEL,
    margin_threshold: float = MARGIN_INSIGHT_THRESHOLD,
    pipeline_rich_ratio: float = PIPELINE_RICH_RATIO
) -> List[Insight]:
    """
    Translation cards for the selected month.

    gap_critical_threshold is expressed in display units.
    """
    record = store.get(month)
    insights = []

    red = record.value(RED_PROJECTS_KPI) if record else None
    red_count = red.actual if red is not None and red.actual is not None else 0
    if red_count > 0:
        insights.append(Insight(
            field=f"{red_count:.0f} projects over cost",
            accounting="Work-in-progress cost increasing",
            management="Heading for a confirmed loss",
            severity=INSIGHT_CRITICAL,
        ))

    margin = record.value(PROJECT_MARGIN_KPI) if record else None
    if margin is not None and margin.variance_rate is not None and margin.variance_rate < margin_threshold:
        insights.append(Insight(
            field="Average project margin falling",
            accounting="Cost ratio rising",
            management="Profit is being eroded",
            severity=INSIGHT_WARNING,
        ))

    if rollup.gross_total > target_gap.annual_target * pipeline_rich_ratio:
        insights.append(Insight(
            field=f"Pipeline {rollup.gross_total / display_unit:,.0f}{unit_label}",
            accounting="Many prospective deals",
            management="Time to push. Focus sales resources",
            severity=INSIGHT_INFO,
        ))

    if target_gap.gap_to_target > 0:
        gap_display = target_gap.gap_to_target / display_unit
        insights.append(Insight(
            field=f"{gap_display:,.1f}{unit_label} left to target",
            accounting="Revenue shortfall expected",
            management="Pipeline needs to be harvested",
            severity=INSIGHT_CRITICAL if gap_display > gap_critical_threshold else INSIGHT_WARNING,
        ))

    logger.debug(f"Insights for {month}: {len(insights)}")
    return insights


# =============================================================================
# ISSUE DETECTION
# =============================================================================

def detect_kpi_issues(
    store: TimeSeriesStore,
    month: str,
    warning_threshold: float = DEFAULT_WARNING_THRESHOLD
) -> List[IssueTarget]:
    """
    KPIs whose status in month is warning or critical.

    Critical KPIs come first (priority high), then warnings (medium),
    each group in KPI declaration order.
    """
    record = store.get(month)
    if record is None:
        return []

    critical, warning = [], []
    for definition in store.kpis():
        value = record.value(definition.id)
        if value is None or value.actual is None:
            continue
        status = classify(value.variance_rate, definition.is_higher_better, warning_threshold)
        if status not in (STATUS_CRITICAL, STATUS_WARNING):
            continue

        direction = "above" if not definition.is_higher_better else "below"
        issue = IssueTarget(
            category=definition.category,
            name=definition.name,
            issue=f"{definition.name} is {direction} budget by {abs(value.variance_rate):.1f}%",
            current_value=value.actual,
            target_value=value.budget,
            priority='high' if status == STATUS_CRITICAL else 'medium',
            kpi_id=definition.id,
        )
        (critical if status == STATUS_CRITICAL else warning).append(issue)

    issues = critical + warning
    if issues:
        logger.info(f"Detected {len(issues)} KPI issues in {month} ({len(critical)} critical)")
    return issues
