# follow_dashboard/kpi_follow/status.py
"""
Status classification for KPI variance rates.

Positive effective variance always means "on track or better"; lower-is-better
KPIs (costs, loss-making project counts) are normalized by flipping the sign.
"""

import logging
from typing import Dict, Iterable, Mapping, Optional

from .constants import (
    STATUS_GOOD, STATUS_WARNING, STATUS_CRITICAL, STATUS_PENDING,
    STATUS_LEVELS, DEFAULT_WARNING_THRESHOLD,
)
from .time_series import KpiDefinition, KpiValue

logger = logging.getLogger(__name__)


def classify(
    variance_rate: Optional[float],
    is_higher_better: bool = True,
    warning_threshold: float = DEFAULT_WARNING_THRESHOLD
) -> str:
    """
    Classify a variance rate (percentage points) into a status.

    Args:
        variance_rate: (actual - budget) / budget * 100, or None
        is_higher_better: False for cost-type KPIs
        warning_threshold: lower bound of the warning band (negative)

    Returns:
        'good' | 'warning' | 'critical' | 'pending'
    """
    if variance_rate is None:
        return STATUS_PENDING

    effective = variance_rate if is_higher_better else -variance_rate

    if effective >= 0:
        return STATUS_GOOD
    if effective >= warning_threshold:
        return STATUS_WARNING
    return STATUS_CRITICAL


def classify_value(
    value: Optional[KpiValue],
    definition: KpiDefinition,
    warning_threshold: float = DEFAULT_WARNING_THRESHOLD
) -> str:
    if value is None:
        return STATUS_PENDING
    return classify(value.variance_rate, definition.is_higher_better, warning_threshold)


def count_statuses(
    values: Mapping[str, Optional[KpiValue]],
    definitions: Iterable[KpiDefinition],
    warning_threshold: float = DEFAULT_WARNING_THRESHOLD
) -> Dict[str, int]:
    """Count good / warning / critical / pending over one period's KPIs."""
    counts = {level: 0 for level in STATUS_LEVELS}
    for definition in definitions:
        status = classify_value(values.get(definition.id), definition, warning_threshold)
        counts[status] += 1
    logger.debug(f"Status counts: {counts}")
    return counts
