"""
Tests for emoji reaction toggling
"""

from datetime import datetime

from follow_dashboard.action_tracker.models import CommentReaction, ThreadComment
from follow_dashboard.action_tracker.reactions import (
    has_reacted,
    reaction_counts,
    reaction_map,
    toggle_reaction,
)

T0 = datetime(2025, 10, 1, 9, 0, 0)


def make_comment(reactions=()):
    return ThreadComment(
        id="c-1", action_id="a-1", author_id="u1", content="hi",
        created_at=T0, updated_at=T0, reactions=tuple(reactions),
    )


def as_pairs(comment):
    return [(r.emoji, r.user_ids) for r in comment.reactions]


class TestToggleReaction:
    def test_sequence(self):
        comment = make_comment()

        comment = toggle_reaction(comment, "👍", "u1")
        assert as_pairs(comment) == [("👍", ("u1",))]

        comment = toggle_reaction(comment, "👍", "u2")
        assert as_pairs(comment) == [("👍", ("u1", "u2"))]

        comment = toggle_reaction(comment, "❤️", "u1")
        assert as_pairs(comment) == [("👍", ("u1", "u2")), ("❤️", ("u1",))]

        comment = toggle_reaction(comment, "👍", "u1")
        assert as_pairs(comment) == [("👍", ("u2",)), ("❤️", ("u1",))]

        comment = toggle_reaction(comment, "👍", "u2")
        assert as_pairs(comment) == [("❤️", ("u1",))]

    def test_double_toggle_restores(self):
        original = make_comment([CommentReaction("👍", ("u1", "u2")), CommentReaction("🎉", ("u3",))])
        for emoji, user in [("👍", "u1"), ("👍", "u2"), ("🎉", "u3"), ("👀", "u2")]:
            twice = toggle_reaction(toggle_reaction(original, emoji, user), emoji, user)
            assert twice == original
            assert reaction_map(twice) == reaction_map(original)

    def test_emptied_emoji_comes_back_equal(self):
        original = make_comment([CommentReaction("👍", ("u1",)), CommentReaction("🎉", ("u3",))])
        twice = toggle_reaction(toggle_reaction(original, "👍", "u1"), "👍", "u1")
        # Re-added at the end, still equal
        assert [r.emoji for r in twice.reactions] == ["🎉", "👍"]
        assert twice == original

    def test_different_reactions_not_equal(self):
        original = make_comment([CommentReaction("👍", ("u1",))])
        assert toggle_reaction(original, "👍", "u2") != original
        assert CommentReaction("👍", ("u1", "u2")) == CommentReaction("👍", ("u2", "u1"))
        assert CommentReaction("👍", ("u1",)) != CommentReaction("❤️", ("u1",))

    def test_original_untouched(self):
        original = make_comment()
        toggle_reaction(original, "👍", "u1")
        assert original.reactions == ()

    def test_updated_at_not_touched(self):
        comment = toggle_reaction(make_comment(), "👍", "u1")
        assert comment.updated_at == T0
        assert not comment.is_edited


class TestReactionViews:
    def test_has_reacted_and_counts(self):
        comment = make_comment([CommentReaction("👍", ("u1", "u2"))])
        assert has_reacted(comment, "👍", "u1")
        assert not has_reacted(comment, "👍", "u3")
        assert not has_reacted(comment, "❤️", "u1")
        assert reaction_counts(comment) == {"👍": 2}

    def test_toggle_back_to_empty(self):
        comment = make_comment()
        comment = toggle_reaction(toggle_reaction(comment, "👍", "u1"), "👍", "u1")
        assert comment.reactions == ()

        comment = toggle_reaction(toggle_reaction(comment, "👍", "u1"), "👍", "u2")
        assert as_pairs(comment) == [("👍", ("u1", "u2"))]
