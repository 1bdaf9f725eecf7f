# follow_dashboard/kpi_follow/aggregation.py
"""
KPI derivations over a partially-closed fiscal year.

Handles:
- Year-to-date aggregation (closed months only)
- Full-year forecast (landing estimate)
- Month-over-month change
- KPI follow table and summary for the dashboard

All functions are pure: they take a TimeSeriesStore snapshot and return
new values. Nothing here reads the config singleton.

VERSION: 1.0.0
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional
import pandas as pd

from .constants import DEFAULT_WARNING_THRESHOLD, STATUS_GOOD, STATUS_CRITICAL
from .status import classify, count_statuses
from .time_series import KpiValue, TimeSeriesStore, variance_rate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ForecastValue:
    """Landing estimate for one KPI."""
    actual_to_date: Optional[float]
    remaining_budget: float
    forecast: float
    budget: float
    variance_rate: Optional[float]


@dataclass(frozen=True)
class MomChange:
    change: Optional[float]
    rate: Optional[float]


# =============================================================================
# YTD
# =============================================================================

def compute_ytd(store: TimeSeriesStore, upto_month: str) -> Dict[str, KpiValue]:
    """
    Year-to-date actual vs budget per KPI.

    Only closed months at or before upto_month with a known actual count.
    Passing an open month as upto_month still sums closed months only.
    When nothing qualifies, actual and variance are None and budget is the
    plan-to-date through upto_month.
    """
    window = store.months_through(upto_month)
    result = {}

    for definition in store.kpis():
        kpi_id = definition.id
        actual_sum = 0.0
        budget_sum = 0.0
        plan_to_date = 0.0
        qualifying = 0

        for month in window:
            record = store.get(month)
            if record is None:
                continue
            value = record.value(kpi_id)
            if value is None:
                continue
            plan_to_date += value.budget
            if record.is_closed and value.actual is not None:
                actual_sum += value.actual
                budget_sum += value.budget
                qualifying += 1

        if qualifying == 0:
            result[kpi_id] = KpiValue(actual=None, budget=plan_to_date, variance_rate=None)
        else:
            result[kpi_id] = KpiValue.from_actual(actual_sum, budget_sum)

    logger.debug(f"YTD through {upto_month}: {len(result)} KPIs")
    return result


# =============================================================================
# FORECAST
# =============================================================================

def compute_forecast(store: TimeSeriesStore, as_of_month: str) -> Dict[str, ForecastValue]:
    """
    Full-year landing estimate per KPI.

    forecast = YTD actual through as_of_month + budget of every month still
    without a confirmed actual. That covers months after as_of_month and any
    month at or before it that is open or closed without an actual.
    Variance is measured against the annual budget, not the partial-year plan.
    When every month is confirmed the forecast is the YTD actual itself.
    """
    ytd = compute_ytd(store, as_of_month)
    window = store.months_through(as_of_month)
    later_months = store.months_after(as_of_month)
    result = {}

    for definition in store.kpis():
        kpi_id = definition.id
        annual = store.annual_budget(kpi_id)

        remaining = 0.0
        pending = 0
        for month in window + later_months:
            record = store.get(month)
            value = record.value(kpi_id) if record is not None else None
            if value is None:
                continue
            confirmed_month = (
                month in window and record.is_closed and value.actual is not None
            )
            if not confirmed_month:
                remaining += value.budget
                pending += 1

        actual_to_date = ytd[kpi_id].actual
        confirmed = actual_to_date if actual_to_date is not None else 0.0
        forecast = confirmed + remaining if pending else confirmed

        result[kpi_id] = ForecastValue(
            actual_to_date=actual_to_date,
            remaining_budget=remaining,
            forecast=forecast,
            budget=annual,
            variance_rate=variance_rate(forecast, annual),
        )

    return result


# =============================================================================
# MONTH OVER MONTH
# =============================================================================

def compute_month_over_month(store: TimeSeriesStore, month: str) -> Dict[str, MomChange]:
    """Change of each KPI's actual versus the previous fiscal month."""
    previous = store.previous_month(month)
    current_record = store.get(month)
    previous_record = store.get(previous) if previous else None
    result = {}

    for definition in store.kpis():
        current = current_record.value(definition.id) if current_record else None
        prior = previous_record.value(definition.id) if previous_record else None

        if current is None or prior is None or current.actual is None or prior.actual is None:
            result[definition.id] = MomChange(change=None, rate=None)
            continue

        change = current.actual - prior.actual
        rate = change / abs(prior.actual) * 100 if prior.actual != 0 else None
        result[definition.id] = MomChange(change=change, rate=rate)

    return result


# =============================================================================
# DASHBOARD TABLES
# =============================================================================

def build_kpi_table(
    store: TimeSeriesStore,
    month: str,
    category: str = None,
    warning_threshold: float = DEFAULT_WARNING_THRESHOLD
) -> pd.DataFrame:
    """
    One row per KPI with current month, MoM, YTD and forecast columns.

    Returns:
        DataFrame with columns kpi_id, name, unit, category, actual, budget,
        variance_rate, status, mom_change, mom_rate, ytd_actual, ytd_budget,
        ytd_variance_rate, ytd_status, forecast, annual_budget,
        forecast_variance_rate, forecast_status
    """
    record = store.get(month)
    ytd = compute_ytd(store, month)
    forecast = compute_forecast(store, month)
    mom = compute_month_over_month(store, month)

    rows = []
    for definition in store.kpis(category):
        kpi_id = definition.id
        current = record.value(kpi_id) if record else None
        higher = definition.is_higher_better

        rows.append({
            'kpi_id': kpi_id,
            'name': definition.name,
            'unit': definition.unit,
            'category': definition.category,
            'actual': current.actual if current else None,
            'budget': current.budget if current else None,
            'variance_rate': current.variance_rate if current else None,
            'status': classify(current.variance_rate if current else None, higher, warning_threshold),
            'mom_change': mom[kpi_id].change,
            'mom_rate': mom[kpi_id].rate,
            'ytd_actual': ytd[kpi_id].actual,
            'ytd_budget': ytd[kpi_id].budget,
            'ytd_variance_rate': ytd[kpi_id].variance_rate,
            'ytd_status': classify(ytd[kpi_id].variance_rate, higher, warning_threshold),
            'forecast': forecast[kpi_id].forecast,
            'annual_budget': forecast[kpi_id].budget,
            'forecast_variance_rate': forecast[kpi_id].variance_rate,
            'forecast_status': classify(forecast[kpi_id].variance_rate, higher, warning_threshold),
        })

    return pd.DataFrame(rows)


def build_follow_summary(
    store: TimeSeriesStore,
    month: str,
    revenue_kpi_id: str = 'revenue',
    warning_threshold: float = DEFAULT_WARNING_THRESHOLD
) -> Dict[str, Any]:
    """
    Headline numbers for the summary row of the follow page.

    Revenue values are None when the revenue KPI is not defined.
    """
    record = store.get(month)
    values = dict(record.kpis) if record else {}
    counts = count_statuses(values, store.kpis(), warning_threshold)

    summary = {
        'month': month,
        'closed_months': len(store.closed_months()),
        'total_months': len(store.month_order),
        'is_closed': bool(record and record.is_closed),
        'good_count': counts[STATUS_GOOD],
        'critical_count': counts[STATUS_CRITICAL],
        'status_counts': counts,
        'revenue_actual': None,
        'revenue_variance_rate': None,
        'revenue_ytd': None,
        'revenue_ytd_variance_rate': None,
        'revenue_forecast': None,
        'revenue_forecast_variance_rate': None,
    }

    if revenue_kpi_id in store.definitions:
        current = values.get(revenue_kpi_id)
        ytd = compute_ytd(store, month)[revenue_kpi_id]
        forecast = compute_forecast(store, month)[revenue_kpi_id]
        summary.update({
            'revenue_actual': current.actual if current else None,
            'revenue_variance_rate': current.variance_rate if current else None,
            'revenue_ytd': ytd.actual,
            'revenue_ytd_variance_rate': ytd.variance_rate,
            'revenue_forecast': forecast.forecast,
            'revenue_forecast_variance_rate': forecast.variance_rate,
        })

    logger.info(
        f"Follow summary for {month}: {summary['closed_months']}/{summary['total_months']} closed, "
        f"{summary['good_count']} good, {summary['critical_count']} critical"
    )
    return summary
