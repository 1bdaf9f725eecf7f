"""
Tests for notification fan-out and read state
"""

import itertools
from datetime import date, timedelta

import pytest

from follow_dashboard.action_tracker.actions import create_action
from follow_dashboard.action_tracker.models import NotificationPreferences
from follow_dashboard.action_tracker.notifications import (
    NotificationDispatcher,
    UnknownEventKindError,
    mark_all_read,
    mark_read,
    notifications_for,
    unread_count,
)


@pytest.fixture
def dispatcher(directory, now):
    counter = itertools.count(1)
    return NotificationDispatcher(
        directory,
        clock=lambda: now,
        id_factory=lambda: f"n-{next(counter)}",
    )


@pytest.fixture
def action(now):
    return create_action(
        "branch", "Osaka", "Margin low", "Review pricing", "u2",
        date(2025, 10, 3), action_id="a-1", now=now,
    )


class TestFanOut:
    def test_mention_recipients(self, dispatcher, action):
        records = dispatcher.notify_mention("u1", ["u2", "u2", "u1", "ghost", None, "u3"], action, "c-1")
        assert [n.user_id for n in records] == ["u2", "u3"]
        assert all(not n.is_read for n in records)
        assert records[0].type == "mention"
        assert records[0].action_id == "a-1"
        assert records[0].action_title == "Osaka: Margin low"
        assert records[0].comment_id == "c-1"
        assert records[0].from_user_name == "Alice"
        assert [n.id for n in records] == ["n-1", "n-2"]

    def test_preferences_switch_type_off(self, directory, now, action):
        dispatcher = NotificationDispatcher(
            directory,
            preferences={"u3": NotificationPreferences("u3", mention=False)},
            clock=lambda: now,
        )
        records = dispatcher.notify_mention("u1", ["u2", "u3"], action)
        assert [n.user_id for n in records] == ["u2"]
        assert dispatcher.notify_reply("u1", "u3", action)[0].user_id == "u3"

    def test_no_self_notification(self, dispatcher, action):
        assert dispatcher.notify_reply("u1", "u1", action) == []
        assert dispatcher.notify_reaction("u2", "u2", "👍", action) == []

    def test_status_change_goes_to_assignee_and_watchers(self, dispatcher, action):
        records = dispatcher.notify_status_change(
            action, "pending", "in_progress", watcher_ids=["u3", "u2"], from_user_id="u1"
        )
        assert [n.user_id for n in records] == ["u2", "u3"]
        assert "Not started" in records[0].message
        assert "In progress" in records[0].message

    def test_assignment(self, dispatcher, action):
        records = dispatcher.notify_assignment(action, "u3", from_user_id="u1")
        assert [n.user_id for n in records] == ["u3"]
        assert records[0].message.startswith("Alice assigned you")

    def test_comment_skips_author(self, dispatcher, action):
        assert dispatcher.notify_comment("u2", action) == []
        assert [n.user_id for n in dispatcher.notify_comment("u1", action)] == ["u2"]

    def test_dispatch_routes_by_kind(self, dispatcher, action):
        records = dispatcher.dispatch("reply", {
            "from_user_id": "u2", "parent_author_id": "u1", "action": action,
        })
        assert [(n.user_id, n.type) for n in records] == [("u1", "reply")]

    def test_dispatch_unknown_kind(self, dispatcher):
        with pytest.raises(UnknownEventKindError) as exc_info:
            dispatcher.dispatch("fax", {})
        assert exc_info.value.kind == "fax"
        assert isinstance(exc_info.value, ValueError)


class TestDueReminders:
    def test_reminder_window(self, dispatcher, now):
        today = now.date()
        actions = [
            create_action("x", "Due soon", "i", "a", "u2", today + timedelta(days=1), action_id="a-1", now=now),
            create_action("x", "Due today", "i", "a", "u3", today, action_id="a-2", now=now),
            create_action("x", "Later", "i", "a", "u2", today + timedelta(days=5), action_id="a-3", now=now),
            create_action("x", "Done", "i", "a", "u2", today, status="completed", action_id="a-4", now=now),
            create_action("x", "Late", "i", "a", "u2", today - timedelta(days=1), action_id="a-5", now=now),
        ]
        records = dispatcher.due_reminders(actions, today, within_days=2)
        assert [n.action_id for n in records] == ["a-1", "a-2"]
        assert "due in 1 day" in records[0].message
        assert "due today" in records[1].message

    def test_overdue_message(self, dispatcher, action):
        record = dispatcher.notify_due_reminder(action, -2)[0]
        assert record.title == "Past due date"
        assert "2 day(s) overdue" in record.message


class TestReadState:
    @pytest.fixture
    def notifications(self, dispatcher, action, now):
        records = dispatcher.notify_mention("u3", ["u1", "u2"], action)
        later = NotificationDispatcher(dispatcher.directory, clock=lambda: now + timedelta(hours=1))
        return records + later.notify_reply("u2", "u1", action)

    def test_unread_count_and_order(self, notifications):
        assert unread_count(notifications, "u1") == 2
        mine = notifications_for(notifications, "u1")
        assert [n.type for n in mine] == ["reply", "mention"]

    def test_mark_read(self, notifications):
        updated = mark_read(notifications, notifications[0].id)
        assert updated[0].is_read
        assert not notifications[0].is_read
        assert unread_count(updated, "u1") == 1
        assert len(notifications_for(updated, "u1", unread_only=True)) == 1

    def test_mark_read_unknown_id_is_noop(self, notifications):
        assert mark_read(notifications, "n-missing") == notifications

    def test_mark_all_read_is_idempotent(self, notifications):
        once = mark_all_read(notifications, "u1")
        twice = mark_all_read(once, "u1")
        assert once == twice
        assert unread_count(once, "u1") == 0
        assert unread_count(once, "u2") == 1

    def test_read_never_reverts(self, notifications):
        read = mark_all_read(notifications, "u1")
        again = mark_read(read, read[0].id)
        assert again[0].is_read
