# follow_dashboard/action_tracker/constants.py
"""
Constants for Action Tracker Module

VERSION: 1.0.0
"""

# =====================================================================
# ACTION STATUS / PRIORITY / CATEGORY
# =====================================================================

STATUS_PENDING = 'pending'
STATUS_IN_PROGRESS = 'in_progress'
STATUS_COMPLETED = 'completed'
STATUS_OVERDUE = 'overdue'

ACTION_STATUSES = (STATUS_PENDING, STATUS_IN_PROGRESS, STATUS_COMPLETED, STATUS_OVERDUE)

# Statuses a user can store; overdue only comes from the due date
WRITABLE_ACTION_STATUSES = (STATUS_PENDING, STATUS_IN_PROGRESS, STATUS_COMPLETED)

ACTION_STATUS_CONFIG = {
    STATUS_PENDING: {"label": "Not started", "icon": "⏳"},
    STATUS_IN_PROGRESS: {"label": "In progress", "icon": "🔄"},
    STATUS_COMPLETED: {"label": "Done", "icon": "✅"},
    STATUS_OVERDUE: {"label": "Overdue", "icon": "⚠️"},
}

PRIORITY_HIGH = 'high'
PRIORITY_MEDIUM = 'medium'
PRIORITY_LOW = 'low'

ACTION_PRIORITIES = (PRIORITY_HIGH, PRIORITY_MEDIUM, PRIORITY_LOW)

PRIORITY_CONFIG = {
    PRIORITY_HIGH: {"label": "High", "icon": "🔴"},
    PRIORITY_MEDIUM: {"label": "Medium", "icon": "🟡"},
    PRIORITY_LOW: {"label": "Low", "icon": "⚪"},
}

ACTION_CATEGORIES = ('project', 'branch', 'segment', 'kpi')

DEFAULT_DUE_DAYS = 14

# =====================================================================
# THREADS / MENTIONS / REACTIONS
# =====================================================================

MAX_REPLY_DEPTH = 3

MENTION_PATTERN = r'@(\S+)'

# Stripped from the end of a token only when the raw token matches no user
MENTION_TRAILING_PUNCTUATION = '.,!?;:)]}"\'、。，．！？；：）」』】'

MAX_MENTION_SUGGESTIONS = 5

REACTION_EMOJIS = ['👍', '👏', '🎉', '❤️', '🤔', '👀']

# =====================================================================
# NOTIFICATIONS
# =====================================================================

NOTIFY_MENTION = 'mention'
NOTIFY_REPLY = 'reply'
NOTIFY_STATUS_CHANGE = 'status_change'
NOTIFY_ASSIGNMENT = 'assignment'
NOTIFY_DUE_REMINDER = 'due_reminder'
NOTIFY_COMMENT = 'comment'
NOTIFY_REACTION = 'reaction'

NOTIFICATION_TYPES = (
    NOTIFY_MENTION,
    NOTIFY_REPLY,
    NOTIFY_STATUS_CHANGE,
    NOTIFY_ASSIGNMENT,
    NOTIFY_DUE_REMINDER,
    NOTIFY_COMMENT,
    NOTIFY_REACTION,
)

NOTIFICATION_ICONS = {
    NOTIFY_MENTION: "💬",
    NOTIFY_REPLY: "↩️",
    NOTIFY_STATUS_CHANGE: "🔄",
    NOTIFY_ASSIGNMENT: "👤",
    NOTIFY_DUE_REMINDER: "⏰",
    NOTIFY_COMMENT: "📝",
    NOTIFY_REACTION: "👍",
}

DEFAULT_DUE_REMINDER_DAYS = 2

# =====================================================================
# USERS
# =====================================================================

USER_ROLES = ('executive', 'field', 'back_office', 'project_manager')

ROLE_LABELS = {
    'executive': 'Executive',
    'field': 'Field staff',
    'back_office': 'Back office',
    'project_manager': 'Project manager',
}
