"""
Tests for the monthly KPI dataset

Run with: pytest tests/test_time_series.py -v
"""

import pytest

from follow_dashboard.kpi_follow.errors import MissingReferenceError
from follow_dashboard.kpi_follow.time_series import (
    KpiDefinition,
    KpiValue,
    MonthRecord,
    TimeSeriesStore,
    build_month_record,
    fiscal_month_keys,
    month_label,
    variance_rate,
)

MONTHS = ["2025-04", "2025-05", "2025-06", "2025-07"]


class TestVarianceRate:
    def test_signed_percentage(self):
        assert variance_rate(110.0, 100.0) == pytest.approx(10.0)
        assert variance_rate(90.0, 100.0) == pytest.approx(-10.0)

    def test_no_signal_is_none(self):
        assert variance_rate(None, 100.0) is None
        assert variance_rate(50.0, 0.0) is None


class TestFiscalMonths:
    def test_april_start_rolls_year_at_january(self):
        keys = fiscal_month_keys(2025)
        assert len(keys) == 12
        assert keys[0] == "2025-04"
        assert keys[8] == "2025-12"
        assert keys[9] == "2026-01"
        assert keys[-1] == "2026-03"


class TestMonthRecord:
    def test_open_month_never_carries_actuals(self):
        record = MonthRecord(
            month="2025-06", label="Jun", is_closed=False,
            kpis={"revenue": KpiValue(actual=120.0, budget=100.0, variance_rate=20.0)},
        )
        assert record.value("revenue").actual is None
        assert record.value("revenue").budget == 100.0

    def test_builder_ignores_actual_for_open_month(self):
        record = build_month_record("2025-06", False, {"revenue": {"actual": 5.0, "budget": 10.0}})
        assert record.value("revenue").actual is None
        assert record.value("revenue").variance_rate is None
        assert record.label == "Jun"

    def test_closed_month_without_actual_stays_unknown(self):
        record = build_month_record("2025-04", True, {"revenue": {"actual": None, "budget": 10.0}})
        assert record.value("revenue").actual is None

    def test_kpis_are_read_only(self):
        record = build_month_record("2025-04", True, {"revenue": {"actual": 1.0, "budget": 1.0}})
        with pytest.raises(TypeError):
            record.kpis["revenue"] = None


class TestTimeSeriesStore:
    def test_records_follow_fiscal_order(self, store, definitions):
        shuffled = TimeSeriesStore(
            records=list(reversed(store.records())),
            month_order=MONTHS,
            fy_budget=store.fy_budget,
            definitions=definitions,
        )
        assert [r.month for r in shuffled.records()] == MONTHS

    def test_closed_months_and_pointer(self, store):
        assert store.closed_months() == ["2025-04", "2025-05"]
        assert store.current_closed_month == "2025-05"
        assert store.is_closed("2025-05")
        assert not store.is_closed("2025-06")

    def test_explicit_closed_pointer_wins(self, store, definitions):
        pinned = TimeSeriesStore(
            store.records(), MONTHS, store.fy_budget, definitions,
            current_closed_month="2025-04",
        )
        assert pinned.current_closed_month == "2025-04"

    def test_navigation(self, store):
        assert store.previous_month("2025-04") is None
        assert store.previous_month("2025-05") == "2025-04"
        assert store.months_through("2025-05") == ["2025-04", "2025-05"]
        assert store.months_after("2025-05") == ["2025-06", "2025-07"]
        assert store.months_after("2025-07") == []
        assert store.last_month == "2025-07"

    def test_unknown_month_raises(self, store):
        with pytest.raises(MissingReferenceError) as exc_info:
            store.get("2025-13")
        assert exc_info.value.kind == "month"
        assert exc_info.value.missing == ["2025-13"]

    def test_record_outside_month_order_raises(self, definitions):
        record = build_month_record("2024-04", True, {"revenue": {"actual": 1.0, "budget": 1.0}})
        with pytest.raises(MissingReferenceError):
            TimeSeriesStore([record], MONTHS, {}, definitions)

    def test_undefined_kpi_raises(self, definitions):
        record = build_month_record("2025-04", True, {"mystery": {"actual": 1.0, "budget": 1.0}})
        with pytest.raises(MissingReferenceError) as exc_info:
            TimeSeriesStore([record], MONTHS, {}, definitions)
        assert exc_info.value.missing == ["mystery"]

    def test_duplicate_month_keeps_first(self, definitions):
        first = build_month_record("2025-04", True, {"revenue": {"actual": 1.0, "budget": 1.0}})
        second = build_month_record("2025-04", True, {"revenue": {"actual": 2.0, "budget": 1.0}})
        store = TimeSeriesStore([first, second], MONTHS, {}, definitions)
        assert store.get("2025-04").value("revenue").actual == 1.0

    def test_missing_row_is_none(self, definitions):
        store = TimeSeriesStore([], MONTHS, {}, definitions)
        assert store.get("2025-04") is None
        assert store.current_closed_month is None

    def test_label_without_row_uses_month_key(self, store, definitions):
        sparse = TimeSeriesStore(store.records()[:1], MONTHS, {}, definitions)
        assert sparse.label("2025-06") == month_label("2025-06") == "Jun"
        assert sparse.label("2025-04") == store.get("2025-04").label

    def test_kpi_categories(self, store):
        assert [d.id for d in store.kpis()] == ["revenue", "cost", "project_margin"]
        assert [d.id for d in store.kpis("all")] == ["revenue", "cost", "project_margin"]
        assert [d.id for d in store.kpis("project")] == ["project_margin"]
        assert store.categories() == ["financial", "project"]

    def test_annual_budget(self, store, definitions):
        assert store.annual_budget("revenue") == 400.0

        no_budget = TimeSeriesStore(store.records(), MONTHS, {}, definitions)
        with pytest.raises(MissingReferenceError):
            no_budget.annual_budget("revenue")

    def test_to_frame(self, store):
        df = store.to_frame("revenue")
        assert list(df.columns) == [
            "month", "label", "month_order", "is_closed", "kpi_id",
            "actual", "budget", "variance_rate",
        ]
        assert len(df) == 4
        assert df["is_closed"].tolist() == [True, True, False, False]

    def test_to_frame_empty(self):
        store = TimeSeriesStore([], MONTHS, {}, [KpiDefinition("x", "X", "yen", "c")])
        assert store.to_frame().empty
