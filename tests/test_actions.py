"""
Tests for the action item workflow
"""

from dataclasses import replace
from datetime import date, timedelta

import pytest

from follow_dashboard.action_tracker.actions import (
    InvalidStatusError,
    assign,
    change_status,
    create_action,
    create_action_from_issue,
    due_soon,
    effective_status,
    filter_actions,
    replace_action,
    summarize_actions,
    update_metric,
    urgent_actions,
)
from follow_dashboard.action_tracker.models import ActionMetrics
from follow_dashboard.action_tracker.users import UnknownUserError
from follow_dashboard.kpi_follow.composite import IssueTarget


@pytest.fixture
def actions(now, today):
    return [
        create_action("branch", "Sapporo", "Margin low", "Renegotiate", "u1",
                      today + timedelta(days=3), priority="high", action_id="a-1", now=now),
        create_action("segment", "Security", "Margin flat", "Standardize", "u2",
                      today + timedelta(days=20), action_id="a-2", now=now),
        create_action("project", "Chatbot", "Overrun", "Change order", "u1",
                      today - timedelta(days=2), priority="high", status="in_progress",
                      action_id="a-3", now=now),
        create_action("branch", "Osaka", "Mix", "Maintenance", "u3",
                      today - timedelta(days=5), status="completed", action_id="a-4", now=now),
    ]


class TestCreate:
    def test_defaults(self, now, today):
        action = create_action("branch", "Osaka", "Issue", "Do it", "u1", today, now=now)
        assert action.status == "pending"
        assert action.priority == "medium"
        assert action.created_at == action.updated_at == now
        assert action.id.startswith("a-")
        assert action.title == "Osaka: Issue"

    def test_invalid_status(self, today):
        with pytest.raises(InvalidStatusError):
            create_action("branch", "Osaka", "Issue", "", "u1", today, status="blocked")

    def test_from_issue(self, now):
        issue = IssueTarget(
            category="financial", name="Revenue", issue="Revenue is below budget by 10.0%",
            current_value=90.0, target_value=100.0, priority="high", kpi_id="revenue",
        )
        action = create_action_from_issue(issue, now=now, due_days=14, assignee="u2")
        assert action.due_date == date(2025, 10, 15)
        assert action.priority == "high"
        assert action.metrics == ActionMetrics(before=90.0, current=90.0, target=100.0)
        assert action.assignee == "u2"


class TestUpdate:
    def test_change_status_copy_on_write(self, actions, now):
        later = now + timedelta(hours=1)
        updated = change_status(actions[0], "in_progress", now=later)
        assert updated.status == "in_progress"
        assert updated.updated_at == later
        assert actions[0].status == "pending"

    def test_any_transition_allowed(self, actions):
        done = change_status(actions[0], "completed")
        assert change_status(done, "pending").status == "pending"

    def test_invalid_transition_target(self, actions):
        with pytest.raises(InvalidStatusError):
            change_status(actions[0], "archived")

    def test_overdue_cannot_be_stored(self, actions, today):
        with pytest.raises(InvalidStatusError):
            change_status(actions[0], "overdue")
        with pytest.raises(InvalidStatusError):
            create_action("branch", "Osaka", "Issue", "", "u1", today, status="overdue")

    def test_status_change_on_late_action_is_stored_as_picked(self, actions, today):
        # Past due: the stored pick sticks while the read view stays overdue
        updated = change_status(actions[2], "pending")
        assert updated.status == "pending"
        assert effective_status(updated, today) == "overdue"
        assert change_status(updated, "pending").status == updated.status

    def test_assign_and_replace(self, actions):
        updated = assign(actions[1], "u3")
        replaced = replace_action(actions, updated)
        assert replaced[1].assignee == "u3"
        assert actions[1].assignee == "u2"

    def test_update_metric(self, now, today):
        action = create_action("x", "T", "i", "a", "u1", today,
                               metrics=ActionMetrics(10.0, 10.0, 20.0), now=now)
        updated = update_metric(action, 15.0)
        assert updated.metrics.current == 15.0
        assert updated.metrics.progress_rate == pytest.approx(50.0)

    def test_update_metric_without_metrics(self, actions):
        assert update_metric(actions[0], 5.0) is actions[0]

    def test_progress_rate_undefined_for_flat_target(self):
        assert ActionMetrics(5.0, 6.0, 5.0).progress_rate is None


class TestReadViews:
    def test_effective_status(self, actions, today):
        assert effective_status(actions[0], today) == "pending"
        assert effective_status(actions[2], today) == "overdue"
        assert effective_status(actions[3], today) == "completed"
        # Stored status stays as written
        assert actions[2].status == "in_progress"

    def test_overdue_follows_due_date_only(self, actions, today):
        legacy = replace(actions[1], status="overdue")
        assert effective_status(legacy, today) == "pending"
        assert effective_status(replace(legacy, due_date=today - timedelta(days=1)), today) == "overdue"

    def test_filter(self, actions, today):
        assert [a.id for a in filter_actions(actions, status="overdue", today=today)] == ["a-3"]
        assert [a.id for a in filter_actions(actions, status="in_progress")] == ["a-3"]
        assert [a.id for a in filter_actions(actions, category="branch")] == ["a-1", "a-4"]

    def test_due_soon(self, actions, today):
        assert [a.id for a in due_soon(actions, today)] == ["a-1"]

    def test_urgent_overdue_first(self, actions, today):
        assert [a.id for a in urgent_actions(actions, today)] == ["a-3", "a-1", "a-2"]

    def test_summary(self, actions, today):
        summary = summarize_actions(actions, today, current_user="u1")
        assert summary == {
            "total": 4,
            "pending": 2,
            "in_progress": 0,
            "completed": 1,
            "overdue": 1,
            "due_this_week": 1,
            "high_priority": 2,
            "mine": 2,
        }


class TestUserDirectory:
    def test_lookups(self, directory):
        assert len(directory) == 3
        assert "u1" in directory
        assert directory.by_name("Bob").id == "u2"
        assert directory.name_of("nobody") == "Unknown"

    def test_require_unknown(self, directory):
        with pytest.raises(UnknownUserError) as exc_info:
            directory.require("u99")
        assert exc_info.value.user_id == "u99"
        assert isinstance(exc_info.value, LookupError)
