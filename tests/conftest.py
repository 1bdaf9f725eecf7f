"""
Pytest configuration for the follow dashboard tests

Provides small hand-built datasets shared across test files
"""

from datetime import date, datetime

import pytest

from follow_dashboard.action_tracker.models import User
from follow_dashboard.action_tracker.users import UserDirectory
from follow_dashboard.kpi_follow.pipeline import PipelineItem, StageConfig
from follow_dashboard.kpi_follow.time_series import (
    KpiDefinition,
    TimeSeriesStore,
    build_month_record,
)

MONTHS = ["2025-04", "2025-05", "2025-06", "2025-07"]


@pytest.fixture
def definitions():
    return [
        KpiDefinition("revenue", "Revenue", "yen", "financial", True),
        KpiDefinition("cost", "Cost", "yen", "financial", False),
        KpiDefinition("project_margin", "Project margin", "%", "project", True),
    ]


@pytest.fixture
def store(definitions):
    """
    Four-month year, April and May closed.

    revenue: budget 100/month, actual 110 then 90
    cost:    budget 50/month, actual 45 then 55 (lower is better)
    margin:  budget 15/month, actual 14.5 then 15
    """
    records = [
        build_month_record("2025-04", True, {
            "revenue": {"actual": 110.0, "budget": 100.0},
            "cost": {"actual": 45.0, "budget": 50.0},
            "project_margin": {"actual": 14.5, "budget": 15.0},
        }),
        build_month_record("2025-05", True, {
            "revenue": {"actual": 90.0, "budget": 100.0},
            "cost": {"actual": 55.0, "budget": 50.0},
            "project_margin": {"actual": 15.0, "budget": 15.0},
        }),
        build_month_record("2025-06", False, {
            "revenue": {"budget": 100.0},
            "cost": {"budget": 50.0},
            "project_margin": {"budget": 15.0},
        }),
        build_month_record("2025-07", False, {
            "revenue": {"budget": 100.0},
            "cost": {"budget": 50.0},
            "project_margin": {"budget": 15.0},
        }),
    ]
    return TimeSeriesStore(
        records=records,
        month_order=MONTHS,
        fy_budget={"revenue": 400.0, "cost": 200.0, "project_margin": 60.0},
        definitions=definitions,
    )


@pytest.fixture
def stages():
    return [
        StageConfig("A", 80, "Confirmed"),
        StageConfig("B", 50, "Likely"),
        StageConfig("C", 20, "Possible"),
    ]


@pytest.fixture
def pipeline_items():
    return [
        PipelineItem("p1", 10.0, "A", expected_close_month="2025-06"),
        PipelineItem("p2", 20.0, "B", expected_close_month="2025-07"),
    ]


@pytest.fixture
def directory():
    return UserDirectory([
        User("u1", "Alice", "executive", "Sales"),
        User("u2", "Bob", "field", "Finance"),
        User("u3", "Carol", "project_manager", "Sales Ops"),
    ])


@pytest.fixture
def now():
    return datetime(2025, 10, 1, 9, 0, 0)


@pytest.fixture
def today():
    return date(2025, 10, 1)
