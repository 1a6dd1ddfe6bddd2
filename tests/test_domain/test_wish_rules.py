"""Tests for wish validation, milestones, XP levels and capability checks"""
import math
from types import SimpleNamespace

import pytest

from app.domain import permissions
from app.domain.wish import (
    validate_wish_text, validate_category, validate_objective, validate_progress,
    new_milestone, normalize_milestones, apply_milestone_update,
)
from app.domain.xp import compute_level
from app.errors import ValidationError, NotFound, Forbidden


# ======================================================================
# Validation
# ======================================================================

class TestValidation:
    def test_wish_text_is_stripped(self):
        assert validate_wish_text("  a dream  ") == "a dream"

    @pytest.mark.parametrize("text", ["", "   ", None, "x" * 501])
    def test_bad_wish_text(self, text):
        with pytest.raises(ValidationError):
            validate_wish_text(text)

    def test_category(self):
        assert validate_category("travel") == "travel"
        with pytest.raises(ValidationError):
            validate_category("gardening")

    def test_objective(self):
        assert validate_objective("mentorship") == "mentorship"
        with pytest.raises(ValidationError):
            validate_objective("fame")


class TestProgress:
    @pytest.mark.parametrize("raw,expected", [(0, 0), (100, 100), (42.6, 43), ("55", 55)])
    def test_valid(self, raw, expected):
        assert validate_progress(raw) == expected

    @pytest.mark.parametrize("raw", [-1, 100.5, 150, "abc", None, True, math.nan])
    def test_rejected(self, raw):
        with pytest.raises(ValidationError):
            validate_progress(raw)


class TestMilestones:
    def test_new_milestone(self):
        m = new_milestone(" Buy brushes ")
        assert m["title"] == "Buy brushes"
        assert m["completed"] is False
        assert m["id"]

    def test_empty_title(self):
        with pytest.raises(ValidationError):
            new_milestone("  ")

    def test_normalize_keeps_ids(self):
        result = normalize_milestones([{"id": "m1", "title": "One", "completed": True}, {"title": "Two"}])
        assert result[0] == {"id": "m1", "title": "One", "completed": True}
        assert result[1]["id"] and result[1]["id"] != "m1"

    def test_normalize_rejects_non_list(self):
        with pytest.raises(ValidationError, match="Must be an array"):
            normalize_milestones({"title": "x"})

    def test_update_does_not_mutate_input(self):
        original = [{"id": "m1", "title": "One", "completed": False}]
        updated = apply_milestone_update(original, "m1", {"completed": True})
        assert updated[0]["completed"] is True
        assert original[0]["completed"] is False

    def test_update_unknown_milestone(self):
        with pytest.raises(NotFound):
            apply_milestone_update([], "nope", {"completed": True})

    def test_update_unknown_field(self):
        with pytest.raises(ValidationError):
            apply_milestone_update([{"id": "m1", "title": "One", "completed": False}], "m1", {"id": "m2"})


# ======================================================================
# XP levels
# ======================================================================

class TestComputeLevel:
    def test_zero(self):
        assert compute_level(0) == (1, 0, 10)

    def test_just_below_level_two(self):
        assert compute_level(9) == (1, 9, 10)

    def test_level_two(self):
        assert compute_level(10) == (2, 0, 20)

    def test_level_three(self):
        # 10 + 20 = 30 to reach level 3
        assert compute_level(35) == (3, 5, 30)


# ======================================================================
# Capabilities
# ======================================================================

class TestPermissions:
    def test_owner_actions(self):
        wish = SimpleNamespace(user_id="u1")
        assert permissions.can("u1", permissions.AMPLIFY_WISH, wish)
        assert not permissions.can("u2", permissions.DELETE_WISH, wish)

    def test_anonymous_denied(self):
        assert not permissions.can(None, permissions.UPDATE_WISH, SimpleNamespace(user_id="u1"))

    def test_conversation_participants(self):
        conversation = SimpleNamespace(participant1_id="a", participant2_id="b")
        assert permissions.can("b", permissions.READ_CONVERSATION, conversation)
        assert not permissions.can("c", permissions.READ_CONVERSATION, conversation)

    def test_require_raises_forbidden(self):
        with pytest.raises(Forbidden, match="only delete your own"):
            permissions.require("u2", permissions.DELETE_WISH, SimpleNamespace(user_id="u1"))

    def test_unknown_action(self):
        with pytest.raises(ValueError):
            permissions.can("u1", "launch_rocket", SimpleNamespace(user_id="u1"))
