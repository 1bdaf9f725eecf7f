"""
Tests for the probability-weighted pipeline rollup
"""

import pytest

from follow_dashboard.kpi_follow.errors import MissingReferenceError
from follow_dashboard.kpi_follow.pipeline import (
    PipelineItem,
    PipelineRollup,
    StageConfig,
    default_stages,
    pipeline_quality,
    stages_from_records,
    summarize,
)


class TestStageConfig:
    def test_probability_range(self):
        with pytest.raises(ValueError):
            StageConfig("X", 120)
        with pytest.raises(ValueError):
            StageConfig("X", -1)

    def test_default_stage_table(self):
        stages = default_stages()
        assert [(s.id, s.probability) for s in stages] == [
            ("A", 80), ("B", 50), ("C", 20), ("D", 5),
        ]

    def test_from_records(self):
        stages = stages_from_records([{"id": "A", "probability": "80", "name": "Confirmed"}])
        assert stages[0].probability == 80.0
        assert stages[0].name == "Confirmed"


class TestSummarize:
    def test_weighted_and_gross(self, pipeline_items, stages):
        rollup = PipelineRollup(pipeline_items, stages)
        assert rollup.weighted_total == pytest.approx(18.0)
        assert rollup.gross_total == pytest.approx(30.0)

    def test_stage_order_includes_empty_stages(self, pipeline_items, stages):
        summaries = summarize(pipeline_items, stages)
        assert [s.stage for s in summaries] == ["A", "B", "C"]
        assert summaries[2].count == 0
        assert summaries[2].total_amount == 0.0
        assert summaries[2].weighted_amount == 0.0

    def test_unknown_stage_raises(self, stages):
        items = [PipelineItem("p1", 5.0, "Z")]
        with pytest.raises(MissingReferenceError) as exc_info:
            summarize(items, stages)
        assert exc_info.value.missing == ["Z"]

    def test_weighted_never_exceeds_gross(self, stages):
        items = [PipelineItem(f"p{i}", float(i), s.id) for i, s in enumerate(stages * 3, 1)]
        rollup = PipelineRollup(items, stages)
        assert rollup.weighted_total <= rollup.gross_total


class TestQuality:
    def test_share_of_high_confidence(self, pipeline_items, stages):
        rollup = PipelineRollup(pipeline_items, stages)
        assert rollup.quality(("A",)) == pytest.approx(10.0 / 30.0 * 100)
        assert rollup.quality(("A", "B")) == pytest.approx(100.0)

    def test_empty_pipeline_is_zero(self, stages):
        assert PipelineRollup([], stages).quality(("A", "B")) == 0.0

    def test_unknown_high_confidence_stage(self, pipeline_items, stages):
        summaries = summarize(pipeline_items, stages)
        with pytest.raises(MissingReferenceError):
            pipeline_quality(summaries, ("A", "Q"))


class TestRollupViews:
    def test_stage_total(self, pipeline_items, stages):
        rollup = PipelineRollup(pipeline_items, stages)
        assert rollup.stage_total("A") == pytest.approx(10.0)
        with pytest.raises(MissingReferenceError):
            rollup.stage_total("Q")

    def test_to_frame(self, pipeline_items, stages):
        df = PipelineRollup(pipeline_items, stages).to_frame()
        assert df["stage"].tolist() == ["A", "B", "C"]
        assert df["share"].sum() == pytest.approx(100.0)

    def test_by_close_month(self, stages):
        items = [
            PipelineItem("p1", 10.0, "A", expected_close_month="2025-06"),
            PipelineItem("p2", 5.0, "A", expected_close_month="2025-06"),
            PipelineItem("p3", 7.0, "C"),
        ]
        pivot = PipelineRollup(items, stages).by_close_month()
        assert list(pivot.columns) == ["A", "B", "C"]
        assert pivot.loc["2025-06", "A"] == pytest.approx(15.0)
        assert pivot.loc["unscheduled", "C"] == pytest.approx(7.0)

    def test_by_close_month_empty(self, stages):
        assert PipelineRollup([], stages).by_close_month().empty
