# follow_dashboard/action_tracker/mentions.py
"""
@mention extraction and suggestion.

A token is '@' followed by non-whitespace up to the next whitespace.
Resolution is exact equality on User.name:
  1. the raw token is tried first
  2. if it matches no one, trailing characters from
     MENTION_TRAILING_PUNCTUATION are stripped and the result is tried once more
Leading characters are never stripped. Unresolved tokens are plain text.
"""

import logging
import re
from typing import List, Optional

from .constants import MENTION_PATTERN, MENTION_TRAILING_PUNCTUATION
from .models import User
from .users import UserDirectory

logger = logging.getLogger(__name__)

_MENTION_RE = re.compile(MENTION_PATTERN)


def find_mention_tokens(text: str) -> List[str]:
    """Raw token text after each '@', in order of appearance."""
    if not text:
        return []
    return _MENTION_RE.findall(text)


def resolve_token(token: str, directory: UserDirectory) -> Optional[User]:
    user = directory.by_name(token)
    if user is not None:
        return user
    stripped = token.rstrip(MENTION_TRAILING_PUNCTUATION)
    if stripped and stripped != token:
        return directory.by_name(stripped)
    return None


def extract_mentions(text: str, directory: UserDirectory) -> List[str]:
    """
    User ids mentioned in text, first occurrence order, no duplicates.

    Example:
        extract_mentions("hi @Alice and @Bob!", directory)  # -> ['u1', 'u2']
    """
    mentioned = []
    for token in find_mention_tokens(text):
        user = resolve_token(token, directory)
        if user is not None and user.id not in mentioned:
            mentioned.append(user.id)
    if mentioned:
        logger.debug(f"Resolved mentions: {mentioned}")
    return mentioned


def suggest_users(query: str, directory: UserDirectory,
                  exclude_user_id: str = None) -> List[User]:
    """Case-insensitive substring match on name or department."""
    candidates = [u for u in directory if u.id != exclude_user_id]
    if not query:
        return candidates
    lowered = query.lower()
    return [
        u for u in candidates
        if lowered in u.name.lower() or lowered in u.department.lower()
    ]


def active_mention_query(text: str) -> Optional[str]:
    """
    Partial name being typed after the last '@', or None.

    None when there is no '@' or whitespace follows it.
    """
    at = text.rfind('@')
    if at < 0:
        return None
    after = text[at + 1:]
    if any(ch.isspace() for ch in after):
        return None
    return after


def insert_mention(text: str, user: User) -> str:
    """Replace the partial mention at the end of text with '@name '."""
    at = text.rfind('@')
    if at < 0:
        return f"{text}@{user.name} "
    return f"{text[:at]}@{user.name} "
