# follow_dashboard/action_tracker/__init__.py
"""
Action Tracker Module

Actions created from detected KPI issues, with threaded discussion:
- Reply trees built from flat parent-referenced comments
- @mention extraction against the user directory
- Emoji reaction toggling
- Notification records and read state

VERSION: 1.0.0
"""

from .models import (
    ActionTrackerError,
    User,
    CommentReaction,
    ThreadComment,
    CommentNode,
    ActionMetrics,
    ActionItem,
    Notification,
    NotificationPreferences,
)
from .users import UserDirectory, UnknownUserError
from .threads import (
    build_tree,
    flatten_tree,
    count_comments,
    can_reply,
    comments_for_action,
    create_comment,
    edit_comment,
    replace_comment,
)
from .mentions import extract_mentions, find_mention_tokens, suggest_users
from .reactions import toggle_reaction, reaction_map, has_reacted, reaction_counts
from .actions import (
    InvalidStatusError,
    create_action,
    create_action_from_issue,
    change_status,
    assign,
    update_metric,
    replace_action,
    effective_status,
    filter_actions,
    summarize_actions,
    urgent_actions,
    due_soon,
)
from .notifications import (
    NotificationDispatcher,
    UnknownEventKindError,
    mark_read,
    mark_all_read,
    unread_count,
    notifications_for,
)

__all__ = [
    'ActionTrackerError',
    'User',
    'CommentReaction',
    'ThreadComment',
    'CommentNode',
    'ActionMetrics',
    'ActionItem',
    'Notification',
    'NotificationPreferences',
    'UserDirectory',
    'UnknownUserError',
    'build_tree',
    'flatten_tree',
    'count_comments',
    'can_reply',
    'comments_for_action',
    'create_comment',
    'edit_comment',
    'replace_comment',
    'extract_mentions',
    'find_mention_tokens',
    'suggest_users',
    'toggle_reaction',
    'reaction_map',
    'has_reacted',
    'reaction_counts',
    'InvalidStatusError',
    'create_action',
    'create_action_from_issue',
    'change_status',
    'assign',
    'update_metric',
    'replace_action',
    'effective_status',
    'filter_actions',
    'summarize_actions',
    'urgent_actions',
    'due_soon',
    'NotificationDispatcher',
    'UnknownEventKindError',
    'mark_read',
    'mark_all_read',
    'unread_count',
    'notifications_for',
]

__version__ = '1.0.0'
