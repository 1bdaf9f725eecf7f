# follow_dashboard/kpi_follow/pipeline.py
"""
Probability-weighted sales pipeline rollup.

Weighted and gross totals are always reduced from the same per-stage
summary pass, so gross >= weighted holds for probabilities in 0..100.

VERSION: 1.0.0
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence
import pandas as pd

from .constants import DEFAULT_HIGH_CONFIDENCE_STAGES, DEFAULT_PIPELINE_STAGES
from .errors import MissingReferenceError

logger = logging.getLogger(__name__)


# =============================================================================
# DATA MODEL
# =============================================================================

@dataclass(frozen=True)
class StageConfig:
    """Confidence bucket with its close probability (percent)."""
    id: str
    probability: float
    name: str = ''
    description: str = ''

    def __post_init__(self):
        if not 0 <= self.probability <= 100:
            raise ValueError(
                f"Stage '{self.id}' probability must be within 0..100, got {self.probability}"
            )


@dataclass(frozen=True)
class PipelineItem:
    id: str
    amount: float
    stage: str
    name: str = ''
    expected_close_month: Optional[str] = None
    customer: str = ''
    owner: str = ''


@dataclass(frozen=True)
class PipelineSummary:
    """Per-stage totals (derived)."""
    stage: str
    count: int
    total_amount: float
    weighted_amount: float


def default_stages() -> List[StageConfig]:
    return [StageConfig(**stage) for stage in DEFAULT_PIPELINE_STAGES]


def stages_from_records(records: Iterable[Mapping]) -> List[StageConfig]:
    """Build StageConfig list from plain dicts (provider format)."""
    return [
        StageConfig(
            id=str(r['id']),
            probability=float(r['probability']),
            name=r.get('name', ''),
            description=r.get('description', ''),
        )
        for r in records
    ]


# =============================================================================
# REDUCTIONS
# =============================================================================

def summarize(items: Iterable[PipelineItem], stages: Sequence[StageConfig]) -> List[PipelineSummary]:
    """
    Group items by stage in the stage table's declared order.

    Stages without items are included with zero totals. An item whose stage
    is not in the table is a configuration error.
    """
    probability = {s.id: s.probability for s in stages}
    counts = {s.id: 0 for s in stages}
    totals = {s.id: 0.0 for s in stages}

    items = list(items)
    unknown = [item.stage for item in items if item.stage not in probability]
    if unknown:
        logger.error(f"Pipeline items reference unknown stages: {sorted(set(unknown))}")
        raise MissingReferenceError('pipeline stage', unknown, 'stage table')

    for item in items:
        counts[item.stage] += 1
        totals[item.stage] += item.amount

    return [
        PipelineSummary(
            stage=s.id,
            count=counts[s.id],
            total_amount=totals[s.id],
            weighted_amount=totals[s.id] * probability[s.id] / 100,
        )
        for s in stages
    ]


def weighted_total(summaries: Iterable[PipelineSummary]) -> float:
    return sum(s.weighted_amount for s in summaries)


def gross_total(summaries: Iterable[PipelineSummary]) -> float:
    return sum(s.total_amount for s in summaries)


def pipeline_quality(
    summaries: Sequence[PipelineSummary],
    high_confidence_stages: Sequence[str] = DEFAULT_HIGH_CONFIDENCE_STAGES
) -> float:
    """
    Share (%) of the gross pipeline sitting in high-confidence stages.

    Returns 0.0 for an empty pipeline.
    """
    known = {s.stage for s in summaries}
    unknown = [stage for stage in high_confidence_stages if stage not in known]
    if unknown:
        logger.error(f"High-confidence stages not in stage table: {unknown}")
        raise MissingReferenceError('high-confidence stage', unknown, 'stage table')

    gross = gross_total(summaries)
    if gross == 0:
        return 0.0
    confident = sum(s.total_amount for s in summaries if s.stage in high_confidence_stages)
    return confident / gross * 100


# =============================================================================
# ROLLUP
# =============================================================================

class PipelineRollup:
    """
    Pipeline totals computed from a single summary pass.

    Usage:
        rollup = PipelineRollup(items, stages)
        rollup.weighted_total, rollup.gross_total
        rollup.quality(('A', 'B'))
    """

    def __init__(self, items: Iterable[PipelineItem], stages: Sequence[StageConfig]):
        self.items: List[PipelineItem] = list(items)
        self.stages: List[StageConfig] = list(stages)
        self.summaries: List[PipelineSummary] = summarize(self.items, self.stages)
        self.weighted_total = weighted_total(self.summaries)
        self.gross_total = gross_total(self.summaries)

        logger.info(
            f"PipelineRollup: {len(self.items)} items over {len(self.stages)} stages, "
            f"gross {self.gross_total:,.0f}, weighted {self.weighted_total:,.0f}"
        )

    def quality(self, high_confidence_stages: Sequence[str] = DEFAULT_HIGH_CONFIDENCE_STAGES) -> float:
        return pipeline_quality(self.summaries, high_confidence_stages)

    def summary_for(self, stage_id: str) -> PipelineSummary:
        for summary in self.summaries:
            if summary.stage == stage_id:
                return summary
        raise MissingReferenceError('pipeline stage', [stage_id], 'stage table')

    def stage_total(self, stage_id: str) -> float:
        return self.summary_for(stage_id).total_amount

    def to_frame(self) -> pd.DataFrame:
        """Stage summary table with probability and share of gross."""
        stage_lookup: Dict[str, StageConfig] = {s.id: s for s in self.stages}
        rows = []
        for summary in self.summaries:
            stage = stage_lookup[summary.stage]
            rows.append({
                'stage': summary.stage,
                'name': stage.name or summary.stage,
                'probability': stage.probability,
                'count': summary.count,
                'total_amount': summary.total_amount,
                'weighted_amount': summary.weighted_amount,
                'share': summary.total_amount / self.gross_total * 100 if self.gross_total else 0.0,
            })
        return pd.DataFrame(rows, columns=[
            'stage', 'name', 'probability', 'count', 'total_amount', 'weighted_amount', 'share'
        ])

    def by_close_month(self) -> pd.DataFrame:
        """
        Expected close month x stage pivot of gross amounts.

        Items without an expected close month are grouped under 'unscheduled'.
        """
        stage_order = [s.id for s in self.stages]
        if not self.items:
            return pd.DataFrame(columns=stage_order)

        df = pd.DataFrame([
            {
                'close_month': item.expected_close_month or 'unscheduled',
                'stage': item.stage,
                'amount': item.amount,
            }
            for item in self.items
        ])
        pivot = df.pivot_table(
            index='close_month', columns='stage', values='amount',
            aggfunc='sum', fill_value=0.0
        )
        return pivot.reindex(columns=stage_order, fill_value=0.0).sort_index()
