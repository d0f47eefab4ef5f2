"""Tests for like and match models."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from matchcore.models.match import Like, Match, MatchResult, canonical_pair
from matchcore.models.user import UserProfile


def test_canonical_pair_orders_ids():
    assert canonical_pair("bob", "alice") == ("alice", "bob")
    assert canonical_pair("alice", "bob") == ("alice", "bob")


class TestLike:
    def test_like_is_frozen(self):
        like = Like(from_user_id="alice", to_user_id="bob")
        with pytest.raises(PydanticValidationError):
            like.to_user_id = "casey"

    def test_self_like_rejected(self):
        with pytest.raises(PydanticValidationError):
            Like(from_user_id="alice", to_user_id="alice")

    def test_empty_id_rejected(self):
        with pytest.raises(PydanticValidationError):
            Like(from_user_id="", to_user_id="bob")


class TestMatch:
    def test_for_pair_is_canonical_regardless_of_order(self):
        assert Match.for_pair("bob", "alice").model_dump(include={"user1_id", "user2_id"}) == {
            "user1_id": "alice",
            "user2_id": "bob",
        }
        assert Match.for_pair("alice", "bob").user1_id == "alice"

    def test_non_canonical_row_rejected(self):
        with pytest.raises(PydanticValidationError):
            Match(user1_id="bob", user2_id="alice")

    def test_other_user_id(self):
        match = Match.for_pair("alice", "bob")
        assert match.other_user_id("alice") == "bob"
        assert match.other_user_id("bob") == "alice"

    def test_defaults_to_active(self):
        assert Match.for_pair("alice", "bob").is_active is True


class TestMatchResult:
    def test_plain_like_response(self):
        assert MatchResult(success=True, is_match=False).to_response() == {"success": True, "isMatch": False}

    def test_already_liked_response(self):
        response = MatchResult(success=True, is_match=False, already_liked=True).to_response()
        assert response == {"success": True, "isMatch": False, "alreadyLiked": True}

    def test_match_response_includes_matched_user(self):
        response = MatchResult(success=True, is_match=True, matched_user=UserProfile(id="bob")).to_response()
        assert response["isMatch"] is True
        assert response["matchedUser"]["id"] == "bob"
