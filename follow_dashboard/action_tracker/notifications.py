# follow_dashboard/action_tracker/notifications.py
"""
In-process notification records.

NotificationDispatcher turns tracker events into one unread Notification per
recipient. Recipients are de-duplicated in order, the acting user never
notifies themself, and per-user preferences can switch a type off.

Read state is handled by module functions over notification lists. They
return new lists and never flip a read notification back to unread.

VERSION: 1.0.0
"""

import logging
import uuid
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Dict, Iterable, List, Mapping, Optional

from .actions import effective_status
from .constants import (
    ACTION_STATUS_CONFIG, DEFAULT_DUE_REMINDER_DAYS, STATUS_COMPLETED,
    NOTIFY_MENTION, NOTIFY_REPLY, NOTIFY_STATUS_CHANGE, NOTIFY_ASSIGNMENT,
    NOTIFY_DUE_REMINDER, NOTIFY_COMMENT, NOTIFY_REACTION,
)
from .models import ActionItem, ActionTrackerError, Notification, NotificationPreferences
from .users import UserDirectory

logger = logging.getLogger(__name__)


class UnknownEventKindError(ActionTrackerError, ValueError):
    """Raised when dispatch() receives an event kind with no handler"""

    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(f"Unknown notification event kind: {kind}")


def _status_label(status: str) -> str:
    return ACTION_STATUS_CONFIG.get(status, {}).get('label', status)


class NotificationDispatcher:
    """
    Creates notification records for tracker events.

    Usage:
        dispatcher = NotificationDispatcher(directory)
        new = dispatcher.notify_mention('u2', ['u1', 'u3'], action, comment_id='c-1')
        notifications = notifications + new
    """

    def __init__(
        self,
        directory: UserDirectory,
        preferences: Mapping[str, NotificationPreferences] = None,
        clock: Callable[[], datetime] = None,
        id_factory: Callable[[], str] = None
    ):
        self.directory = directory
        self.preferences: Dict[str, NotificationPreferences] = dict(preferences or {})
        self._clock = clock or datetime.now
        self._id_factory = id_factory or (lambda: f"n-{uuid.uuid4().hex[:12]}")

        self._handlers = {
            NOTIFY_MENTION: self.notify_mention,
            NOTIFY_REPLY: self.notify_reply,
            NOTIFY_STATUS_CHANGE: self.notify_status_change,
            NOTIFY_ASSIGNMENT: self.notify_assignment,
            NOTIFY_COMMENT: self.notify_comment,
            NOTIFY_REACTION: self.notify_reaction,
            NOTIFY_DUE_REMINDER: self.notify_due_reminder,
        }

    # =========================================================================
    # CORE FAN-OUT
    # =========================================================================

    def _allows(self, user_id: str, notification_type: str) -> bool:
        prefs = self.preferences.get(user_id)
        return prefs is None or prefs.allows(notification_type)

    def _fan_out(
        self,
        notification_type: str,
        recipients: Iterable[Optional[str]],
        title: str,
        message: str,
        action: ActionItem = None,
        comment_id: str = None,
        from_user_id: str = None
    ) -> List[Notification]:
        created_at = self._clock()
        from_user_name = self.directory.name_of(from_user_id) if from_user_id else None

        records = []
        seen = set()
        for user_id in recipients:
            if user_id is None or user_id in seen:
                continue
            seen.add(user_id)
            if user_id == from_user_id:
                continue
            if user_id not in self.directory:
                logger.warning(f"Skipping {notification_type} notification for unknown user '{user_id}'")
                continue
            if not self._allows(user_id, notification_type):
                logger.debug(f"{user_id} has {notification_type} notifications turned off")
                continue

            records.append(Notification(
                id=self._id_factory(),
                user_id=user_id,
                type=notification_type,
                title=title,
                message=message,
                created_at=created_at,
                is_read=False,
                action_id=action.id if action else None,
                action_title=action.title if action else None,
                comment_id=comment_id,
                from_user_id=from_user_id,
                from_user_name=from_user_name,
            ))

        if records:
            logger.info(f"Dispatched {len(records)} {notification_type} notification(s)")
        return records

    def dispatch(self, kind: str, payload: Mapping) -> List[Notification]:
        """Route an event by kind; payload holds the handler's keyword arguments."""
        handler = self._handlers.get(kind)
        if handler is None:
            logger.error(f"No notification handler for event kind '{kind}'")
            raise UnknownEventKindError(kind)
        return handler(**payload)

    # =========================================================================
    # EVENTS
    # =========================================================================

    def notify_mention(self, from_user_id: str, to_user_ids: Iterable[str],
                       action: ActionItem = None, comment_id: str = None) -> List[Notification]:
        where = f" in \"{action.title}\"" if action else ""
        return self._fan_out(
            NOTIFY_MENTION, to_user_ids,
            title="You were mentioned",
            message=f"{self.directory.name_of(from_user_id)} mentioned you{where}",
            action=action, comment_id=comment_id, from_user_id=from_user_id,
        )

    def notify_reply(self, from_user_id: str, parent_author_id: str,
                     action: ActionItem = None, comment_id: str = None) -> List[Notification]:
        return self._fan_out(
            NOTIFY_REPLY, [parent_author_id],
            title="New reply to your comment",
            message=f"{self.directory.name_of(from_user_id)} replied to your comment",
            action=action, comment_id=comment_id, from_user_id=from_user_id,
        )

    def notify_status_change(self, action: ActionItem, from_status: str, to_status: str,
                             watcher_ids: Iterable[str] = (), from_user_id: str = None) -> List[Notification]:
        recipients = [action.assignee, *watcher_ids]
        return self._fan_out(
            NOTIFY_STATUS_CHANGE, recipients,
            title="Status updated",
            message=f"\"{action.title}\" changed from {_status_label(from_status)} "
                    f"to {_status_label(to_status)}",
            action=action, from_user_id=from_user_id,
        )

    def notify_assignment(self, action: ActionItem, new_assignee_id: str,
                          from_user_id: str = None) -> List[Notification]:
        if from_user_id:
            message = f"{self.directory.name_of(from_user_id)} assigned you to \"{action.title}\""
        else:
            message = f"You were assigned to \"{action.title}\""
        return self._fan_out(
            NOTIFY_ASSIGNMENT, [new_assignee_id],
            title="You were assigned",
            message=message,
            action=action, from_user_id=from_user_id,
        )

    def notify_comment(self, from_user_id: str, action: ActionItem,
                       watcher_ids: Iterable[str] = (), comment_id: str = None) -> List[Notification]:
        recipients = [action.assignee, *watcher_ids]
        return self._fan_out(
            NOTIFY_COMMENT, recipients,
            title="New comment",
            message=f"{self.directory.name_of(from_user_id)} commented on \"{action.title}\"",
            action=action, comment_id=comment_id, from_user_id=from_user_id,
        )

    def notify_reaction(self, from_user_id: str, comment_author_id: str, emoji: str,
                        action: ActionItem = None, comment_id: str = None) -> List[Notification]:
        return self._fan_out(
            NOTIFY_REACTION, [comment_author_id],
            title="New reaction",
            message=f"{self.directory.name_of(from_user_id)} reacted {emoji} to your comment",
            action=action, comment_id=comment_id, from_user_id=from_user_id,
        )

    def notify_due_reminder(self, action: ActionItem, days_left: int,
                            recipient_ids: Iterable[str] = None) -> List[Notification]:
        recipients = list(recipient_ids) if recipient_ids is not None else [action.assignee]
        if days_left > 0:
            message = f"\"{action.title}\" is due in {days_left} day(s)"
        elif days_left == 0:
            message = f"\"{action.title}\" is due today"
        else:
            message = f"\"{action.title}\" is {-days_left} day(s) overdue"
        return self._fan_out(
            NOTIFY_DUE_REMINDER, recipients,
            title="Due date approaching" if days_left >= 0 else "Past due date",
            message=message,
            action=action,
        )

    def due_reminders(self, actions: Iterable[ActionItem], today: date,
                      within_days: int = DEFAULT_DUE_REMINDER_DAYS) -> List[Notification]:
        """Reminders for open actions due within within_days of today."""
        records = []
        for action in actions:
            if effective_status(action, today) == STATUS_COMPLETED:
                continue
            days_left = (action.due_date - today).days
            if 0 <= days_left <= within_days:
                records.extend(self.notify_due_reminder(action, days_left))
        return records


# =============================================================================
# READ STATE
# =============================================================================

def mark_read(notifications: Iterable[Notification], notification_id: str) -> List[Notification]:
    """New list with one notification marked read."""
    result = []
    found = False
    for n in notifications:
        if n.id == notification_id:
            found = True
            if not n.is_read:
                n = replace(n, is_read=True)
        result.append(n)
    if not found:
        logger.warning(f"mark_read: unknown notification id '{notification_id}'")
    return result


def mark_all_read(notifications: Iterable[Notification], user_id: str) -> List[Notification]:
    """New list with every notification of user_id read."""
    return [
        replace(n, is_read=True) if n.user_id == user_id and not n.is_read else n
        for n in notifications
    ]


def unread_count(notifications: Iterable[Notification], user_id: str) -> int:
    return sum(1 for n in notifications if n.user_id == user_id and not n.is_read)


def notifications_for(notifications: Iterable[Notification], user_id: str,
                      unread_only: bool = False) -> List[Notification]:
    """Notifications for one user, newest first."""
    mine = [
        n for n in notifications
        if n.user_id == user_id and not (unread_only and n.is_read)
    ]
    return sorted(mine, key=lambda n: n.created_at, reverse=True)
