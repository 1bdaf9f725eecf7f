"""
Tests for comment thread tree building and comment creation
"""

from datetime import datetime, timedelta

import pytest

from follow_dashboard.action_tracker.models import ThreadComment
from follow_dashboard.action_tracker.threads import (
    build_tree,
    can_reply,
    comments_for_action,
    count_comments,
    create_comment,
    edit_comment,
    flatten_tree,
    replace_comment,
)

T0 = datetime(2025, 10, 1, 9, 0, 0)


def make_comment(cid, minute, parent=None, action_id="a-1", author="u1"):
    return ThreadComment(
        id=cid,
        action_id=action_id,
        author_id=author,
        content=f"comment {cid}",
        created_at=T0 + timedelta(minutes=minute),
        parent_id=parent,
    )


class TestBuildTree:
    def test_roots_and_replies_are_chronological(self):
        comments = [
            make_comment("1", 2),
            make_comment("2", 5, parent="1"),
            make_comment("3", 3, parent="1"),
            make_comment("4", 1),
        ]
        tree = build_tree(comments)
        assert [n.id for n in tree] == ["4", "1"]
        assert [n.id for n in tree[1].replies] == ["3", "2"]

    def test_equal_timestamps_keep_input_order(self):
        tree = build_tree([make_comment("b", 0), make_comment("a", 0)])
        assert [n.id for n in tree] == ["b", "a"]

    def test_depths(self):
        comments = [
            make_comment("r", 0),
            make_comment("d1", 1, parent="r"),
            make_comment("d2", 2, parent="d1"),
            make_comment("d3", 3, parent="d2"),
        ]
        nodes = {n.id: n for n in flatten_tree(build_tree(comments))}
        assert [nodes[c].depth for c in ("r", "d1", "d2", "d3")] == [0, 1, 2, 3]
        assert can_reply(nodes["d2"])
        assert not can_reply(nodes["d3"])
        assert can_reply(nodes["d3"], max_depth=4)

    def test_unknown_parent_goes_top_level(self):
        tree = build_tree([make_comment("1", 0), make_comment("2", 1, parent="ghost")])
        assert [n.id for n in tree] == ["1", "2"]

    def test_self_parent_goes_top_level(self):
        tree = build_tree([make_comment("1", 0, parent="1")])
        assert [n.id for n in tree] == ["1"]
        assert tree[0].replies == []

    def test_cycle_promotes_earliest_member(self):
        comments = [
            make_comment("x", 5, parent="y"),
            make_comment("y", 1, parent="x"),
        ]
        tree = build_tree(comments)
        assert [n.id for n in tree] == ["y"]
        assert [n.id for n in tree[0].replies] == ["x"]
        assert count_comments(tree) == 2

    def test_longer_cycle_with_tail(self):
        comments = [
            make_comment("a", 3, parent="c"),
            make_comment("b", 2, parent="a"),
            make_comment("c", 4, parent="b"),
            make_comment("tail", 6, parent="a"),
        ]
        tree = build_tree(comments)
        assert [n.id for n in tree] == ["b"]
        assert [n.id for n in flatten_tree(tree)] == ["b", "c", "a", "tail"]

    def test_duplicate_ids_keep_first(self):
        first = make_comment("1", 0)
        dup = ThreadComment(id="1", action_id="a-1", author_id="u2", content="dup", created_at=T0)
        tree = build_tree([first, dup])
        assert count_comments(tree) == 1
        assert tree[0].comment.content == "comment 1"

    def test_every_comment_appears_once(self):
        comments = [make_comment(str(i), i, parent=str(i - 1) if i else None) for i in range(50)]
        flat = flatten_tree(build_tree(comments))
        assert sorted(n.id for n in flat) == sorted(c.id for c in comments)

    def test_empty(self):
        assert build_tree([]) == []


class TestFlatten:
    def test_depth_first_order(self):
        comments = [
            make_comment("1", 0),
            make_comment("1a", 1, parent="1"),
            make_comment("2", 2),
            make_comment("1b", 3, parent="1"),
        ]
        assert [n.id for n in flatten_tree(build_tree(comments))] == ["1", "1a", "1b", "2"]


class TestCreateAndEdit:
    def test_create_resolves_mentions(self, directory, now):
        comment = create_comment("a-1", "u1", "@Bob please check", directory, now=now)
        assert comment.mentions == ("u2",)
        assert comment.created_at == now
        assert comment.updated_at == now
        assert not comment.is_edited
        assert comment.id.startswith("c-")

    def test_create_reply(self, directory, now):
        comment = create_comment("a-1", "u2", "done", directory, parent_id="c-1", comment_id="c-2", now=now)
        assert comment.parent_id == "c-1"
        assert comment.id == "c-2"

    def test_empty_content_rejected(self, directory):
        with pytest.raises(ValueError):
            create_comment("a-1", "u1", "   ", directory)

    def test_edit_marks_edited_and_updates_mentions(self, directory, now):
        comment = create_comment("a-1", "u1", "@Bob hi", directory, now=now)
        later = now + timedelta(minutes=5)
        edited = edit_comment(comment, "@Carol hi", directory, now=later)
        assert edited.is_edited
        assert edited.mentions == ("u3",)
        assert edited.updated_at == later
        assert edited.created_at == now
        assert comment.content == "@Bob hi"

    def test_replace_and_filter(self, directory, now):
        c1 = make_comment("1", 0)
        c2 = make_comment("2", 1, action_id="a-2")
        updated = edit_comment(c1, "changed", directory, now=now)
        comments = replace_comment([c1, c2], updated)
        assert comments[0].content == "changed"
        assert comments_for_action(comments, "a-2") == [c2]


class TestReferenceOrdering:
    def test_dangling_parent_falls_to_top_level(self):
        comments = [
            make_comment("1", 10),
            make_comment("2", 20, parent="1"),
            make_comment("3", 5, parent="1"),
            make_comment("4", 1, parent="99"),
        ]
        tree = build_tree(comments)
        assert [n.id for n in tree] == ["4", "1"]
        assert [n.id for n in tree[1].replies] == ["3", "2"]
        assert tree[0].replies == []
