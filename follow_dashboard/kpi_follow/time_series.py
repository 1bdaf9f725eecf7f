# follow_dashboard/kpi_follow/time_series.py
"""
Monthly KPI dataset for the fiscal year.

VERSION: 1.0.0

This module holds:
- KpiValue / MonthRecord / KpiDefinition snapshots (immutable)
- TimeSeriesStore: ordered months, fiscal order, annual budgets, lookups

Open months carry budget only (actual is None). A closed month may still
lack an actual for a single KPI; that is "not yet known", never zero.

USAGE:
    store = TimeSeriesStore(records, month_order, fy_budget, definitions)
    record = store.get('2025-09')
    store.current_closed_month   # '2025-09'
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional
import pandas as pd

from .constants import FISCAL_MONTH_ORDER, MONTH_LABELS
from .errors import MissingReferenceError

logger = logging.getLogger(__name__)


def variance_rate(actual: Optional[float], budget: Optional[float]) -> Optional[float]:
    """(actual - budget) / budget * 100, None when there is no signal."""
    if actual is None or budget is None or budget == 0:
        return None
    return (actual - budget) / budget * 100


def fiscal_month_keys(fiscal_year: int) -> List[str]:
    """Month keys ('YYYY-MM') for an April-start fiscal year."""
    keys = []
    rolled = False
    for mm in FISCAL_MONTH_ORDER:
        if mm == "01":
            rolled = True
        year = fiscal_year + 1 if rolled else fiscal_year
        keys.append(f"{year:04d}-{mm}")
    return keys


def month_label(month_key: str) -> str:
    """Short label for a 'YYYY-MM' key (falls back to the key itself)."""
    return MONTH_LABELS.get(month_key[-2:], month_key)


# =============================================================================
# DATA MODEL
# =============================================================================

@dataclass(frozen=True)
class KpiValue:
    """Actual vs budget for one KPI in one period."""
    actual: Optional[float]
    budget: float
    variance_rate: Optional[float] = None

    @classmethod
    def from_actual(cls, actual: Optional[float], budget: float) -> 'KpiValue':
        return cls(actual=actual, budget=budget, variance_rate=variance_rate(actual, budget))


@dataclass(frozen=True)
class KpiDefinition:
    """Static interpretation policy for a KPI."""
    id: str
    name: str
    unit: str
    category: str
    is_higher_better: bool = True


@dataclass(frozen=True)
class MonthRecord:
    """One fiscal month snapshot."""
    month: str
    label: str
    is_closed: bool
    kpis: Mapping[str, KpiValue] = field(default_factory=dict)

    def __post_init__(self):
        kpis = dict(self.kpis)
        if not self.is_closed:
            leaked = [k for k, v in kpis.items() if v.actual is not None]
            if leaked:
                logger.warning(
                    f"Open month {self.month} carries actuals for {leaked}; "
                    f"dropping them until the month is closed"
                )
                for kpi_id in leaked:
                    kpis[kpi_id] = KpiValue(actual=None, budget=kpis[kpi_id].budget)
        object.__setattr__(self, 'kpis', MappingProxyType(kpis))

    def value(self, kpi_id: str) -> Optional[KpiValue]:
        return self.kpis.get(kpi_id)


def build_month_record(
    month: str,
    is_closed: bool,
    values: Mapping[str, Mapping[str, Optional[float]]],
    label: str = None
) -> MonthRecord:
    """
    Build a MonthRecord from raw {kpi_id: {'actual': x, 'budget': y}} values.

    Variance rates are computed here so callers never have to.
    """
    kpis = {}
    for kpi_id, raw in values.items():
        actual = raw.get('actual') if is_closed else None
        kpis[kpi_id] = KpiValue.from_actual(actual, raw.get('budget', 0.0))
    return MonthRecord(
        month=month,
        label=label or month_label(month),
        is_closed=is_closed,
        kpis=kpis,
    )


# =============================================================================
# STORE
# =============================================================================

class TimeSeriesStore:
    """
    Ordered monthly dataset with lookup by month.

    Attributes:
        month_order: fixed fiscal month sequence (never creation order)
        fy_budget: full-year budget per KPI
        definitions: KPI definitions by id
    """

    def __init__(
        self,
        records: Iterable[MonthRecord],
        month_order: List[str],
        fy_budget: Mapping[str, float],
        definitions: Iterable[KpiDefinition],
        current_closed_month: str = None
    ):
        self.month_order = list(month_order)
        self._position = {m: i for i, m in enumerate(self.month_order)}
        self.definitions: Dict[str, KpiDefinition] = {d.id: d for d in definitions}
        self.fy_budget: Dict[str, float] = dict(fy_budget)

        records = list(records)
        unknown_months = [r.month for r in records if r.month not in self._position]
        if unknown_months:
            logger.error(f"Records outside the fiscal month order: {unknown_months}")
            raise MissingReferenceError('month', unknown_months, 'month order')

        unknown_kpis = {
            kpi_id for r in records for kpi_id in r.kpis if kpi_id not in self.definitions
        }
        unknown_kpis.update(k for k in self.fy_budget if k not in self.definitions)
        if unknown_kpis:
            logger.error(f"KPI ids without a definition: {sorted(unknown_kpis)}")
            raise MissingReferenceError('KPI id', unknown_kpis, 'KPI definitions')

        self._records: Dict[str, MonthRecord] = {}
        for record in sorted(records, key=lambda r: self._position[r.month]):
            if record.month in self._records:
                logger.warning(f"Duplicate record for {record.month}; keeping the first")
                continue
            self._records[record.month] = record

        if current_closed_month is not None:
            self._require_month(current_closed_month)
        self._current_closed_month = current_closed_month

        logger.info(
            f"TimeSeriesStore initialized: {len(self._records)} months, "
            f"{len(self.definitions)} KPIs, {len(self.closed_months())} closed"
        )

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    def _require_month(self, month: str) -> int:
        if month not in self._position:
            raise MissingReferenceError('month', [month], 'month order')
        return self._position[month]

    def get(self, month: str) -> Optional[MonthRecord]:
        """Record for a month, None when the provider has no row for it."""
        self._require_month(month)
        return self._records.get(month)

    def label(self, month: str) -> str:
        """Display label, derived from the key when the month has no record."""
        record = self.get(month)
        return record.label if record is not None else month_label(month)

    def records(self) -> List[MonthRecord]:
        """All records in fiscal order."""
        return list(self._records.values())

    def position(self, month: str) -> int:
        return self._require_month(month)

    def previous_month(self, month: str) -> Optional[str]:
        idx = self._require_month(month)
        return self.month_order[idx - 1] if idx > 0 else None

    def months_through(self, month: str) -> List[str]:
        """Fiscal months from the first month up to and including month."""
        idx = self._require_month(month)
        return self.month_order[:idx + 1]

    def months_after(self, month: str) -> List[str]:
        idx = self._require_month(month)
        return self.month_order[idx + 1:]

    def closed_months(self) -> List[str]:
        return [m for m, r in self._records.items() if r.is_closed]

    def is_closed(self, month: str) -> bool:
        record = self.get(month)
        return bool(record and record.is_closed)

    @property
    def current_closed_month(self) -> Optional[str]:
        """Provider-supplied pointer, else the latest closed month."""
        if self._current_closed_month is not None:
            return self._current_closed_month
        closed = self.closed_months()
        return closed[-1] if closed else None

    @property
    def last_month(self) -> str:
        return self.month_order[-1]

    # =========================================================================
    # KPI DEFINITIONS & BUDGETS
    # =========================================================================

    def definition(self, kpi_id: str) -> KpiDefinition:
        if kpi_id not in self.definitions:
            raise MissingReferenceError('KPI id', [kpi_id], 'KPI definitions')
        return self.definitions[kpi_id]

    def kpis(self, category: str = None) -> List[KpiDefinition]:
        """KPI definitions in declaration order, optionally for one category."""
        if category in (None, 'all'):
            return list(self.definitions.values())
        return [d for d in self.definitions.values() if d.category == category]

    def categories(self) -> List[str]:
        seen = []
        for d in self.definitions.values():
            if d.category not in seen:
                seen.append(d.category)
        return seen

    def annual_budget(self, kpi_id: str) -> float:
        """Full-year budget target; a KPI without one is a config mismatch."""
        self.definition(kpi_id)
        if kpi_id not in self.fy_budget:
            logger.error(f"No annual budget configured for KPI '{kpi_id}'")
            raise MissingReferenceError('annual budget', [kpi_id], 'fy_budget')
        return self.fy_budget[kpi_id]

    # =========================================================================
    # FRAME
    # =========================================================================

    def to_frame(self, kpi_id: str = None) -> pd.DataFrame:
        """
        Long-format DataFrame of the dataset.

        Columns: month, label, month_order, is_closed, kpi_id,
                 actual, budget, variance_rate
        """
        columns = ['month', 'label', 'month_order', 'is_closed', 'kpi_id',
                   'actual', 'budget', 'variance_rate']
        rows = []
        for record in self._records.values():
            for kid, value in record.kpis.items():
                if kpi_id is not None and kid != kpi_id:
                    continue
                rows.append({
                    'month': record.month,
                    'label': record.label,
                    'month_order': self._position[record.month],
                    'is_closed': record.is_closed,
                    'kpi_id': kid,
                    'actual': value.actual,
                    'budget': value.budget,
                    'variance_rate': value.variance_rate,
                })
        if not rows:
            return pd.DataFrame(columns=columns)
        return pd.DataFrame(rows, columns=columns)
