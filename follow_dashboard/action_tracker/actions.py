# follow_dashboard/action_tracker/actions.py
"""
Action item workflow.

Status is a flat enumeration with unrestricted transitions; only membership
is checked. 'overdue' cannot be stored: create_action and change_status
reject it and effective_status() derives it from the due date.
"""

import logging
import uuid
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List

from .constants import (
    WRITABLE_ACTION_STATUSES, DEFAULT_DUE_DAYS,
    STATUS_PENDING, STATUS_IN_PROGRESS, STATUS_COMPLETED, STATUS_OVERDUE,
    PRIORITY_HIGH, PRIORITY_MEDIUM,
)
from .models import ActionItem, ActionMetrics, ActionTrackerError

logger = logging.getLogger(__name__)


class InvalidStatusError(ActionTrackerError, ValueError):
    """Raised for a status that cannot be stored on an action"""

    def __init__(self, status: str):
        self.status = status
        super().__init__(f"Invalid action status '{status}'. Expected one of {', '.join(WRITABLE_ACTION_STATUSES)}")


def _check_status(status: str):
    if status not in WRITABLE_ACTION_STATUSES:
        logger.error(f"Rejected action status '{status}'")
        raise InvalidStatusError(status)


# =============================================================================
# CREATE
# =============================================================================

def create_action(
    category: str,
    target_name: str,
    issue: str,
    action: str,
    assignee: str,
    due_date: date,
    priority: str = PRIORITY_MEDIUM,
    status: str = STATUS_PENDING,
    metrics: ActionMetrics = None,
    action_id: str = None,
    now: datetime = None
) -> ActionItem:
    _check_status(status)
    now = now or datetime.now()
    item = ActionItem(
        id=action_id or f"a-{uuid.uuid4().hex[:12]}",
        category=category,
        target_name=target_name,
        issue=issue,
        action=action,
        assignee=assignee,
        due_date=due_date,
        status=status,
        priority=priority,
        created_at=now,
        updated_at=now,
        metrics=metrics,
    )
    logger.info(f"Action {item.id} created for '{target_name}' (assignee {assignee or '-'})")
    return item


def create_action_from_issue(
    issue,
    now: datetime = None,
    due_days: int = DEFAULT_DUE_DAYS,
    assignee: str = '',
    action: str = '',
    action_id: str = None
) -> ActionItem:
    """
    Action pre-filled from a detected KPI issue.

    metrics start at before = current = the issue's current value, with the
    issue's target value as the goal.
    """
    now = now or datetime.now()
    return create_action(
        category=issue.category,
        target_name=issue.name,
        issue=issue.issue,
        action=action,
        assignee=assignee,
        due_date=now.date() + timedelta(days=due_days),
        priority=issue.priority,
        metrics=ActionMetrics(
            before=issue.current_value,
            current=issue.current_value,
            target=issue.target_value,
        ),
        action_id=action_id,
        now=now,
    )


# =============================================================================
# UPDATE (copy-on-write)
# =============================================================================

def change_status(action: ActionItem, new_status: str, now: datetime = None) -> ActionItem:
    _check_status(new_status)
    logger.info(f"Action {action.id}: {action.status} -> {new_status}")
    return replace(action, status=new_status, updated_at=now or datetime.now())


def assign(action: ActionItem, assignee: str, now: datetime = None) -> ActionItem:
    return replace(action, assignee=assignee, updated_at=now or datetime.now())


def update_metric(action: ActionItem, current: float, now: datetime = None) -> ActionItem:
    """Record the latest KPI value; actions without metrics are returned unchanged."""
    if action.metrics is None:
        logger.warning(f"Action {action.id} has no metrics to update")
        return action
    return replace(
        action,
        metrics=replace(action.metrics, current=current),
        updated_at=now or datetime.now(),
    )


def replace_action(actions: Iterable[ActionItem], updated: ActionItem) -> List[ActionItem]:
    return [updated if a.id == updated.id else a for a in actions]


# =============================================================================
# READ-TIME VIEWS
# =============================================================================

def effective_status(action: ActionItem, today: date) -> str:
    """Stored status, shown as overdue when the due date has passed and it is not completed."""
    if action.status == STATUS_COMPLETED:
        return STATUS_COMPLETED
    if action.due_date < today:
        return STATUS_OVERDUE
    # A stored overdue from older data is not sticky
    return STATUS_PENDING if action.status == STATUS_OVERDUE else action.status


def filter_actions(
    actions: Iterable[ActionItem],
    status: str = None,
    category: str = None,
    today: date = None
) -> List[ActionItem]:
    """
    Filter by status and/or category.

    With today given, status is compared against the effective status.
    """
    result = []
    for action in actions:
        if category and action.category != category:
            continue
        if status:
            current = effective_status(action, today) if today else action.status
            if current != status:
                continue
        result.append(action)
    return result


def due_soon(actions: Iterable[ActionItem], today: date, within_days: int = 7) -> List[ActionItem]:
    """Open actions due between today and today + within_days, earliest first."""
    horizon = today + timedelta(days=within_days)
    soon = [
        a for a in actions
        if a.status != STATUS_COMPLETED and today <= a.due_date <= horizon
    ]
    return sorted(soon, key=lambda a: a.due_date)


def urgent_actions(actions: Iterable[ActionItem], today: date, limit: int = 3) -> List[ActionItem]:
    """Open actions, overdue first, then by due date."""
    open_actions = [a for a in actions if effective_status(a, today) != STATUS_COMPLETED]
    open_actions.sort(key=lambda a: (effective_status(a, today) != STATUS_OVERDUE, a.due_date))
    return open_actions[:limit]


def summarize_actions(
    actions: Iterable[ActionItem],
    today: date,
    current_user: str = None
) -> Dict[str, int]:
    """Counts for the tracker header and the summary widget."""
    actions = list(actions)
    statuses = [effective_status(a, today) for a in actions]
    open_actions = [a for a, s in zip(actions, statuses) if s != STATUS_COMPLETED]

    summary = {
        'total': len(actions),
        STATUS_PENDING: statuses.count(STATUS_PENDING),
        STATUS_IN_PROGRESS: statuses.count(STATUS_IN_PROGRESS),
        STATUS_COMPLETED: statuses.count(STATUS_COMPLETED),
        STATUS_OVERDUE: statuses.count(STATUS_OVERDUE),
        'due_this_week': len(due_soon(open_actions, today, 7)),
        'high_priority': sum(1 for a in open_actions if a.priority == PRIORITY_HIGH),
        'mine': sum(1 for a in open_actions if current_user and a.assignee == current_user),
    }
    return summary
