"""Tests for progress updates and premium milestones"""
import pytest

from app.application.progress import (
    UpdateProgressUseCase, AddMilestoneUseCase, UpdateMilestoneUseCase, ReplaceMilestonesUseCase,
    get_milestones,
)
from app.errors import ValidationError, PremiumRequired, Forbidden, NotFound
from app.infrastructure.db.models import Wish


def _reload(db, wish_id):
    db.expire_all()
    return db.query(Wish).filter(Wish.id == wish_id).first()


class TestUpdateProgress:
    def test_update(self, db_session, wish, owner):
        UpdateProgressUseCase(db_session).execute(wish.id, owner.id, 62.4)
        assert _reload(db_session, wish.id).progress == 62

    @pytest.mark.parametrize("value", [-5, 101, "lots"])
    def test_rejects_out_of_range(self, db_session, wish, owner, value):
        with pytest.raises(ValidationError):
            UpdateProgressUseCase(db_session).execute(wish.id, owner.id, value)
        assert _reload(db_session, wish.id).progress == 0

    def test_owner_only(self, db_session, wish, other):
        with pytest.raises(Forbidden):
            UpdateProgressUseCase(db_session).execute(wish.id, other.id, 10)

    def test_missing_wish(self, db_session, owner):
        with pytest.raises(NotFound):
            UpdateProgressUseCase(db_session).execute("missing", owner.id, 10)


class TestMilestones:
    def test_free_tier_rejected(self, db_session, wish, owner, free_sub):
        with pytest.raises(PremiumRequired):
            AddMilestoneUseCase(db_session).execute(wish.id, owner.id, "Buy paints", free_sub)
        assert get_milestones(db_session, wish.id) == []

    def test_premium_adds(self, db_session, wish, owner, premium_sub):
        uc = AddMilestoneUseCase(db_session)
        first = uc.execute(wish.id, owner.id, "Buy paints", premium_sub)
        uc.execute(wish.id, owner.id, "First canvas", premium_sub, {"completed": True})

        _reload(db_session, wish.id)
        milestones = get_milestones(db_session, wish.id)
        assert [m["title"] for m in milestones] == ["Buy paints", "First canvas"]
        assert milestones[0]["id"] == first["id"]
        assert milestones[1]["completed"] is True

    def test_empty_title(self, db_session, wish, owner, premium_sub):
        with pytest.raises(ValidationError):
            AddMilestoneUseCase(db_session).execute(wish.id, owner.id, " ", premium_sub)

    def test_not_owner(self, db_session, wish, other, premium_sub):
        with pytest.raises(Forbidden):
            AddMilestoneUseCase(db_session).execute(wish.id, other.id, "Sneaky", premium_sub)

    def test_update_completed(self, db_session, wish, owner, premium_sub):
        m = AddMilestoneUseCase(db_session).execute(wish.id, owner.id, "Buy paints", premium_sub)
        UpdateMilestoneUseCase(db_session).execute(wish.id, owner.id, m["id"], premium_sub, {"completed": True})

        _reload(db_session, wish.id)
        assert get_milestones(db_session, wish.id)[0]["completed"] is True

    def test_update_free_tier_rejected(self, db_session, wish, owner, premium_sub, free_sub):
        m = AddMilestoneUseCase(db_session).execute(wish.id, owner.id, "Buy paints", premium_sub)
        with pytest.raises(PremiumRequired):
            UpdateMilestoneUseCase(db_session).execute(wish.id, owner.id, m["id"], free_sub, {"completed": True})

    def test_update_unknown(self, db_session, wish, owner, premium_sub):
        with pytest.raises(NotFound):
            UpdateMilestoneUseCase(db_session).execute(wish.id, owner.id, "nope", premium_sub, {"title": "x"})

    @pytest.mark.parametrize("updates", [{"wish_id": "x"}, {"user_id": "x"}, {"subscription": None}, {"milestone_id": "m"}])
    def test_update_rejects_unknown_fields(self, db_session, wish, owner, premium_sub, updates):
        m = AddMilestoneUseCase(db_session).execute(wish.id, owner.id, "Buy paints", premium_sub)
        with pytest.raises(ValidationError, match="Cannot update milestone fields"):
            UpdateMilestoneUseCase(db_session).execute(wish.id, owner.id, m["id"], premium_sub, updates)

    def test_replace_all(self, db_session, wish, owner, premium_sub):
        ReplaceMilestonesUseCase(db_session).execute(
            wish.id, owner.id, [{"title": "A"}, {"id": "keep", "title": "B", "completed": True}], premium_sub,
        )
        _reload(db_session, wish.id)
        milestones = get_milestones(db_session, wish.id)
        assert [m["title"] for m in milestones] == ["A", "B"]
        assert milestones[1]["id"] == "keep"

    def test_replace_rejects_non_list(self, db_session, wish, owner, premium_sub):
        with pytest.raises(ValidationError):
            ReplaceMilestonesUseCase(db_session).execute(wish.id, owner.id, "A, B", premium_sub)
