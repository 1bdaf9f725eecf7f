# follow_dashboard/action_tracker/fragments.py
"""
Streamlit Fragments for the Action Tracker

State lives in st.session_state under the keys below. Every change builds a
new list through the core functions and replaces the session value whole.

    actions        List[ActionItem]
    comments       List[ThreadComment]
    notifications  List[Notification]
    current_user   user id of the viewer
"""

import streamlit as st
from datetime import date, datetime
from typing import List

from ..config import NotificationSettings
from ..formatters import format_date, format_relative_time, format_rate
from .actions import (
    change_status, create_action_from_issue, effective_status, filter_actions,
    replace_action, summarize_actions, urgent_actions, update_metric,
)
from .constants import (
    ACTION_STATUSES, ACTION_STATUS_CONFIG, PRIORITY_CONFIG, ROLE_LABELS, WRITABLE_ACTION_STATUSES,
    REACTION_EMOJIS, NOTIFICATION_ICONS, MAX_MENTION_SUGGESTIONS,
    STATUS_PENDING, STATUS_IN_PROGRESS, STATUS_COMPLETED, STATUS_OVERDUE,
)
from .mentions import (
    active_mention_query, find_mention_tokens, insert_mention, resolve_token, suggest_users,
)
from .models import ActionItem, CommentNode, User
from .notifications import (
    NotificationDispatcher, mark_all_read, mark_read, notifications_for, unread_count,
)
from .reactions import has_reacted, toggle_reaction
from .threads import (
    build_tree, can_reply, comments_for_action, count_comments, create_comment,
    flatten_tree, replace_comment,
)
from .users import UserDirectory


def _status_text(status: str) -> str:
    cfg = ACTION_STATUS_CONFIG.get(status, {})
    return f"{cfg.get('icon', '')} {cfg.get('label', status)}"


def _priority_text(priority: str) -> str:
    cfg = PRIORITY_CONFIG.get(priority, {})
    return f"{cfg.get('icon', '')} {cfg.get('label', priority)}"


def _highlight_mentions(content: str, directory: UserDirectory) -> str:
    """Bold resolved @mentions for markdown display."""
    for token in set(find_mention_tokens(content)):
        user = resolve_token(token, directory)
        if user is not None:
            content = content.replace(f"@{user.name}", f"**@{user.name}**")
    return content


# =============================================================================
# SUMMARY WIDGET
# =============================================================================

def render_action_summary(actions: List[ActionItem], today: date, current_user: str,
                          directory: UserDirectory):
    """Compact widget: counts and the most urgent open actions."""
    stats = summarize_actions(actions, today, current_user)

    with st.container(border=True):
        col1, col2, col3, col4, col5 = st.columns(5)
        col1.metric("Total", stats['total'])
        col2.metric(_status_text(STATUS_PENDING), stats[STATUS_PENDING])
        col3.metric(_status_text(STATUS_IN_PROGRESS), stats[STATUS_IN_PROGRESS])
        col4.metric(_status_text(STATUS_COMPLETED), stats[STATUS_COMPLETED])
        col5.metric(_status_text(STATUS_OVERDUE), stats[STATUS_OVERDUE])

        st.caption(
            f"Due this week: {stats['due_this_week']} · High priority: {stats['high_priority']} "
            f"· Assigned to me: {stats['mine']}"
        )

        for action in urgent_actions(actions, today):
            status = effective_status(action, today)
            st.markdown(
                f"{_priority_text(action.priority)} **{action.target_name}**: {action.issue}  \n"
                f"<small>{_status_text(status)} · due {format_date(action.due_date)} · "
                f"{directory.name_of(action.assignee, '-')}</small>",
                unsafe_allow_html=True
            )


# =============================================================================
# ISSUES -> ACTIONS
# =============================================================================

def render_issue_panel(issues, settings: NotificationSettings, directory: UserDirectory):
    st.subheader("🚩 Detected issues")
    if not issues:
        st.success("No KPI is off plan this month")
        return

    current_user = st.session_state['current_user']
    for idx, issue in enumerate(issues):
        with st.container(border=True):
            st.markdown(f"{_priority_text(issue.priority)} **{issue.name}**")
            st.caption(issue.issue)
            if st.button("Create action", key=f"issue_action_{idx}"):
                action = create_action_from_issue(
                    issue, datetime.now(), settings.default_due_days, assignee=current_user
                )
                st.session_state['actions'] = st.session_state['actions'] + [action]
                st.toast(f"Action created for {issue.name}", icon="✅")
                st.rerun()


# =============================================================================
# FRAGMENT: ACTION LIST
# =============================================================================

@st.fragment
def action_list_fragment(today: date, directory: UserDirectory):
    st.subheader("📌 Actions")

    col_status, col_category = st.columns(2)
    with col_status:
        status = st.selectbox(
            "Status", ['all', *ACTION_STATUSES],
            format_func=lambda s: 'All' if s == 'all' else _status_text(s),
            key="action_filter_status"
        )
    with col_category:
        categories = sorted({a.category for a in st.session_state['actions']})
        category = st.selectbox("Category", ['all', *categories], key="action_filter_category")

    actions = filter_actions(
        st.session_state['actions'],
        status=None if status == 'all' else status,
        category=None if category == 'all' else category,
        today=today,
    )
    if not actions:
        st.info("No actions match the filters")
        return

    comments = st.session_state['comments']
    for action in actions:
        thread_size = len(comments_for_action(comments, action.id))
        label = (f"{_priority_text(action.priority)} {action.target_name} · "
                 f"{_status_text(effective_status(action, today))} · 💬 {thread_size}")
        if st.button(label, key=f"select_action_{action.id}", use_container_width=True):
            st.session_state['selected_action'] = action.id
            st.rerun()


# =============================================================================
# ACTION DETAIL + THREAD
# =============================================================================

def render_action_detail(action: ActionItem, today: date, directory: UserDirectory,
                         dispatcher: NotificationDispatcher, settings: NotificationSettings):
    current_user = st.session_state['current_user']

    st.subheader(f"{action.target_name}")
    st.caption(f"{_priority_text(action.priority)} · assignee "
               f"{directory.name_of(action.assignee, '-')} · due {format_date(action.due_date)}")
    st.markdown(f"**Issue:** {action.issue}")
    if action.action:
        st.markdown(f"**Action:** {action.action}")

    if action.metrics is not None:
        m = action.metrics
        col1, col2, col3 = st.columns(3)
        col1.metric("Before", f"{m.before:,.1f}")
        col2.metric("Current", f"{m.current:,.1f}", delta=f"{m.current - m.before:+,.1f}")
        col3.metric("Target", f"{m.target:,.1f}",
                    delta=format_rate(m.progress_rate, signed=False) if m.progress_rate is not None else None,
                    delta_color="off")
        new_value = st.number_input("Latest value", value=float(m.current), key=f"metric_{action.id}")
        if st.button("Update value", key=f"update_metric_{action.id}"):
            st.session_state['actions'] = replace_action(
                st.session_state['actions'], update_metric(action, new_value)
            )
            st.rerun()

    if effective_status(action, today) == STATUS_OVERDUE:
        st.warning(f"{_status_text(STATUS_OVERDUE)} since {format_date(action.due_date)}")

    stored_status = action.status if action.status in WRITABLE_ACTION_STATUSES else STATUS_PENDING
    new_status = st.selectbox(
        "Status", WRITABLE_ACTION_STATUSES, index=WRITABLE_ACTION_STATUSES.index(stored_status),
        format_func=_status_text, key=f"status_{action.id}"
    )
    if new_status != stored_status:
        updated = change_status(action, new_status)
        st.session_state['actions'] = replace_action(st.session_state['actions'], updated)
        st.session_state['notifications'] = st.session_state['notifications'] + \
            dispatcher.notify_status_change(updated, stored_status, new_status, from_user_id=current_user)
        st.rerun()

    st.divider()
    thread_fragment(action, directory, dispatcher, settings)


@st.fragment
def thread_fragment(action: ActionItem, directory: UserDirectory,
                    dispatcher: NotificationDispatcher, settings: NotificationSettings):
    comments = comments_for_action(st.session_state['comments'], action.id)
    tree = build_tree(comments)

    st.markdown(f"##### 💬 Discussion ({count_comments(tree)})")

    for node in flatten_tree(tree):
        _render_comment(node, action, directory, dispatcher, settings)

    text_key = f"comment_text_{action.id}"
    _comment_box(text_key, "Comment", directory, placeholder="Write a comment. Use @name to mention")
    st.button("Post", key=f"post_{action.id}", on_click=_post_comment,
              args=(action, text_key, None, directory, dispatcher))


def _comment_box(text_key: str, label: str, directory: UserDirectory, placeholder: str = None):
    """Text area with @name suggestions for the mention being typed."""
    text = st.text_area(label, key=text_key, placeholder=placeholder)
    query = active_mention_query(text or '')
    if query is None:
        return
    matches = suggest_users(query, directory, exclude_user_id=st.session_state['current_user'])
    for user in matches[:MAX_MENTION_SUGGESTIONS]:
        st.button(f"@{user.name} · {user.department}", key=f"{text_key}_mention_{user.id}",
                  on_click=_pick_mention, args=(text_key, user))


def _pick_mention(text_key: str, user: User):
    st.session_state[text_key] = insert_mention(st.session_state.get(text_key, ''), user)


def _post_comment(action: ActionItem, text_key: str, parent: CommentNode,
                  directory: UserDirectory, dispatcher: NotificationDispatcher):
    # Button callback: runs before the rerun, so it may clear the text area
    content = st.session_state.get(text_key, '')
    if not content.strip():
        return
    current_user = st.session_state['current_user']
    comment = create_comment(
        action.id, current_user, content, directory,
        parent_id=parent.id if parent else None
    )
    new_notifications = dispatcher.notify_mention(current_user, comment.mentions, action, comment.id)
    if parent is not None:
        new_notifications += dispatcher.notify_reply(
            current_user, parent.comment.author_id, action, comment.id
        )
    else:
        new_notifications += dispatcher.notify_comment(current_user, action, comment_id=comment.id)

    st.session_state['comments'] = st.session_state['comments'] + [comment]
    st.session_state['notifications'] = st.session_state['notifications'] + new_notifications
    st.session_state[text_key] = ''


def _render_comment(node: CommentNode, action: ActionItem, directory: UserDirectory,
                    dispatcher: NotificationDispatcher, settings: NotificationSettings):
    comment = node.comment
    current_user = st.session_state['current_user']
    author = directory.get(comment.author_id)
    indent = "　" * (node.depth * 2)

    role = ROLE_LABELS.get(author.role, author.role) if author else ''
    edited = " (edited)" if comment.is_edited else ""
    st.markdown(
        f"{indent}**{author.name if author else comment.author_id}** "
        f"<small>{role} · {format_relative_time(comment.created_at)}{edited}</small>",
        unsafe_allow_html=True
    )
    st.markdown(f"{indent}{_highlight_mentions(comment.content, directory)}")

    cols = st.columns(len(REACTION_EMOJIS) + 1)
    for col, emoji in zip(cols, REACTION_EMOJIS):
        count = next((len(r.user_ids) for r in comment.reactions if r.emoji == emoji), 0)
        label = f"{emoji} {count}" if count else emoji
        button_type = "primary" if has_reacted(comment, emoji, current_user) else "secondary"
        if col.button(label, key=f"react_{comment.id}_{emoji}", type=button_type):
            reacting = not has_reacted(comment, emoji, current_user)
            updated = toggle_reaction(comment, emoji, current_user)
            st.session_state['comments'] = replace_comment(st.session_state['comments'], updated)
            if reacting:
                st.session_state['notifications'] = st.session_state['notifications'] + \
                    dispatcher.notify_reaction(current_user, comment.author_id, emoji, action, comment.id)
            st.rerun()

    if can_reply(node, settings.max_reply_depth):
        with cols[-1].popover("↩️"):
            reply_key = f"reply_text_{comment.id}"
            _comment_box(reply_key, "Reply", directory)
            st.button("Send", key=f"reply_send_{comment.id}", on_click=_post_comment,
                      args=(action, reply_key, node, directory, dispatcher))


# =============================================================================
# NOTIFICATIONS
# =============================================================================

def render_notification_panel(user_id: str):
    notifications = st.session_state['notifications']
    unread = unread_count(notifications, user_id)

    col_title, col_action = st.columns([3, 1])
    col_title.subheader(f"🔔 Notifications ({unread})")
    if unread and col_action.button("Mark all read", key="mark_all_read"):
        st.session_state['notifications'] = mark_all_read(notifications, user_id)
        st.rerun()

    unread_only = st.toggle("Unread only", key="notifications_unread_only")
    items = notifications_for(notifications, user_id, unread_only)
    if not items:
        st.caption("Nothing here")
        return

    for n in items:
        marker = "" if n.is_read else "🔵 "
        with st.container(border=True):
            st.markdown(f"{marker}{NOTIFICATION_ICONS.get(n.type, '')} **{n.title}**")
            st.caption(f"{n.message} · {format_relative_time(n.created_at)}")
            if not n.is_read and st.button("Mark read", key=f"read_{n.id}"):
                st.session_state['notifications'] = mark_read(st.session_state['notifications'], n.id)
                if n.action_id:
                    st.session_state['selected_action'] = n.action_id
                st.rerun()
