# follow_dashboard/action_tracker/reactions.py
"""
Emoji reaction toggling on thread comments.

toggle twice with the same (emoji, user) gives a comment equal to the
original: ThreadComment compares reactions as emoji -> user sets.
"""

from dataclasses import replace
from typing import Dict, FrozenSet

from .models import CommentReaction, ThreadComment, reaction_sets


def toggle_reaction(comment: ThreadComment, emoji: str, user_id: str) -> ThreadComment:
    """
    Add or remove user_id's reaction with emoji.

    A new emoji or a new user is appended at the end. An entry left with no
    users is removed. updated_at is not touched.
    """
    reactions = list(comment.reactions)

    for idx, reaction in enumerate(reactions):
        if reaction.emoji != emoji:
            continue
        if user_id in reaction.user_ids:
            remaining = tuple(u for u in reaction.user_ids if u != user_id)
            if remaining:
                reactions[idx] = replace(reaction, user_ids=remaining)
            else:
                del reactions[idx]
        else:
            reactions[idx] = replace(reaction, user_ids=reaction.user_ids + (user_id,))
        break
    else:
        reactions.append(CommentReaction(emoji=emoji, user_ids=(user_id,)))

    return replace(comment, reactions=tuple(reactions))


def reaction_map(comment: ThreadComment) -> Dict[str, FrozenSet[str]]:
    return reaction_sets(comment.reactions)


def has_reacted(comment: ThreadComment, emoji: str, user_id: str) -> bool:
    return any(r.emoji == emoji and user_id in r.user_ids for r in comment.reactions)


def reaction_counts(comment: ThreadComment) -> Dict[str, int]:
    return {r.emoji: len(r.user_ids) for r in comment.reactions}
