"""
Tests for @mention extraction and suggestions
"""

from follow_dashboard.action_tracker.mentions import (
    active_mention_query,
    extract_mentions,
    find_mention_tokens,
    insert_mention,
    resolve_token,
    suggest_users,
)
from follow_dashboard.action_tracker.models import User
from follow_dashboard.action_tracker.users import UserDirectory


class TestExtractMentions:
    def test_trailing_punctuation_is_stripped(self, directory):
        assert extract_mentions("hi @Alice and @Bob!", directory) == ["u1", "u2"]

    def test_no_prefix_match(self, directory):
        assert extract_mentions("ping @Bobby", directory) == []

    def test_first_occurrence_order_without_duplicates(self, directory):
        text = "@Carol @Alice, @Carol again"
        assert extract_mentions(text, directory) == ["u3", "u1"]

    def test_full_width_punctuation(self, directory):
        assert extract_mentions("確認お願いします @Alice、 @Bob。", directory) == ["u1", "u2"]

    def test_raw_token_tried_before_stripping(self):
        directory = UserDirectory([User("u9", "J.R."), User("u8", "J.R")])
        assert extract_mentions("thanks @J.R.", directory) == ["u9"]

    def test_case_sensitive(self, directory):
        assert extract_mentions("@alice", directory) == []

    def test_leading_characters_not_stripped(self, directory):
        assert extract_mentions("@(Alice)", directory) == []

    def test_empty_text(self, directory):
        assert extract_mentions("", directory) == []
        assert find_mention_tokens(None) == []

    def test_resolve_token(self, directory):
        assert resolve_token("Bob?!", directory).id == "u2"
        assert resolve_token("Nobody", directory) is None


class TestSuggestions:
    def test_matches_name_or_department(self, directory):
        assert [u.id for u in suggest_users("sales", directory)] == ["u1", "u3"]
        assert [u.id for u in suggest_users("bo", directory)] == ["u2"]

    def test_excludes_current_user(self, directory):
        assert [u.id for u in suggest_users("sales", directory, exclude_user_id="u1")] == ["u3"]

    def test_empty_query_lists_everyone(self, directory):
        assert len(suggest_users("", directory)) == 3


class TestComposer:
    def test_active_query(self):
        assert active_mention_query("hello @Al") == "Al"
        assert active_mention_query("hello @") == ""
        assert active_mention_query("hello @Al ") is None
        assert active_mention_query("no mention") is None

    def test_insert_mention(self, directory):
        alice = directory.get("u1")
        assert insert_mention("hello @Al", alice) == "hello @Alice "
        assert insert_mention("hello ", alice) == "hello @Alice "
