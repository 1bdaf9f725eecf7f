# follow_dashboard/action_tracker/models.py
"""
Data model for the action tracker.

Every record is an immutable snapshot. Changes go through
dataclasses.replace and hand back a new record; nothing is edited in place.
"""

from dataclasses import dataclass, field, fields
from datetime import date, datetime
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple


class ActionTrackerError(Exception):
    """Base error for the action tracker"""
    pass


@dataclass(frozen=True)
class User:
    id: str
    name: str
    role: str = ''
    department: str = ''
    email: str = ''


@dataclass(frozen=True)
class CommentReaction:
    """
    One emoji and the users who reacted with it.

    user_ids keeps reaction order for display, but equality treats it as a
    set, so toggling a user off and on again gives an equal reaction.
    """
    emoji: str
    user_ids: Tuple[str, ...] = ()

    def __eq__(self, other):
        if not isinstance(other, CommentReaction):
            return NotImplemented
        return self.emoji == other.emoji and frozenset(self.user_ids) == frozenset(other.user_ids)

    def __hash__(self):
        return hash((self.emoji, frozenset(self.user_ids)))


def reaction_sets(reactions: Iterable[CommentReaction]) -> Dict[str, FrozenSet[str]]:
    """Emoji -> users, ignoring the order of emojis and of users."""
    return {r.emoji: frozenset(r.user_ids) for r in reactions}


@dataclass(frozen=True)
class ThreadComment:
    id: str
    action_id: str
    author_id: str
    content: str
    created_at: datetime
    parent_id: Optional[str] = None
    mentions: Tuple[str, ...] = ()
    reactions: Tuple[CommentReaction, ...] = field(default=(), compare=False)
    updated_at: Optional[datetime] = None
    is_edited: bool = False

    def __eq__(self, other):
        # Reactions compare as emoji -> user sets
        if not isinstance(other, ThreadComment):
            return NotImplemented
        return (
            all(getattr(self, f.name) == getattr(other, f.name) for f in fields(self) if f.compare)
            and reaction_sets(self.reactions) == reaction_sets(other.reactions)
        )


@dataclass
class CommentNode:
    """Derived tree node; rebuilt on every query, never stored."""
    comment: ThreadComment
    replies: List['CommentNode'] = field(default_factory=list)
    depth: int = 0

    @property
    def id(self) -> str:
        return self.comment.id


@dataclass(frozen=True)
class ActionMetrics:
    """Before / current / target values of the KPI an action addresses."""
    before: float
    current: float
    target: float

    @property
    def progress_rate(self) -> Optional[float]:
        """Share (%) of the before -> target distance covered so far."""
        distance = self.target - self.before
        if distance == 0:
            return None
        return (self.current - self.before) / distance * 100


@dataclass(frozen=True)
class ActionItem:
    id: str
    category: str
    target_name: str
    issue: str
    action: str
    assignee: str
    due_date: date
    status: str
    priority: str
    created_at: datetime
    updated_at: datetime
    metrics: Optional[ActionMetrics] = None

    @property
    def title(self) -> str:
        return f"{self.target_name}: {self.issue}"


@dataclass(frozen=True)
class Notification:
    id: str
    user_id: str
    type: str
    title: str
    message: str
    created_at: datetime
    is_read: bool = False
    action_id: Optional[str] = None
    action_title: Optional[str] = None
    comment_id: Optional[str] = None
    from_user_id: Optional[str] = None
    from_user_name: Optional[str] = None


@dataclass(frozen=True)
class NotificationPreferences:
    """Per-user opt-outs by notification type."""
    user_id: str
    mention: bool = True
    reply: bool = True
    status_change: bool = True
    assignment: bool = True
    due_reminder: bool = True
    comment: bool = True
    reaction: bool = True

    def allows(self, notification_type: str) -> bool:
        return bool(getattr(self, notification_type, True))
