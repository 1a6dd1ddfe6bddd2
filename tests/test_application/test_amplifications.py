"""Tests for amplification quota, expiry, removal and reports"""
from datetime import datetime, timedelta, timezone

import pytest

from app.application.amplifications import (
    AmplifyWishUseCase, RemoveAmplificationUseCase, SubmitReportUseCase,
    get_amplified_wishes, get_amplified_wish_details,
)
from app.domain.quota import Quota, UserSubscription, TIER_FREE, FREE_PLAN_NAME
from app.errors import QuotaExceeded, Forbidden, NotFound, ValidationError
from app.infrastructure.db.models import Amplification, Wish, WishReport

_NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def _sub(limit):
    quota = Quota.unlimited() if limit is None else Quota.limited(limit)
    return UserSubscription(TIER_FREE, FREE_PLAN_NAME, quota, Quota.limited(20))


class TestAmplifyWish:
    def test_amplify_sets_thirty_day_expiry(self, db_session, wish, free_sub):
        amp = AmplifyWishUseCase(db_session).execute(
            wish.id, wish.user_id, free_sub, "help", context="Need a mentor", now=_NOW,
        )
        assert amp.objective == "help"
        assert amp.context == "Need a mentor"
        assert db_session.query(Amplification).count() == 1
        stored = db_session.query(Amplification).first()
        assert stored.expires_at.replace(tzinfo=None) == (_NOW + timedelta(days=30)).replace(tzinfo=None)

    def test_quota_allows_n_then_refuses(self, db_session, wish):
        sub = _sub(2)
        uc = AmplifyWishUseCase(db_session)
        uc.execute(wish.id, wish.user_id, sub, "support", now=_NOW)
        uc.execute(wish.id, wish.user_id, sub, "support", now=_NOW + timedelta(minutes=1))

        with pytest.raises(QuotaExceeded, match="No amplifications left") as exc:
            uc.execute(wish.id, wish.user_id, sub, "support", now=_NOW + timedelta(minutes=2))
        assert exc.value.to_dict()["upgrade_required"] is True
        assert db_session.query(Amplification).count() == 2

    def test_quota_recovers_after_window(self, db_session, wish, free_sub):
        uc = AmplifyWishUseCase(db_session)
        uc.execute(wish.id, wish.user_id, free_sub, "support", now=_NOW)
        with pytest.raises(QuotaExceeded):
            uc.execute(wish.id, wish.user_id, free_sub, "support", now=_NOW + timedelta(days=29))

        uc.execute(wish.id, wish.user_id, free_sub, "support", now=_NOW + timedelta(days=31))
        assert db_session.query(Amplification).count() == 2

    def test_unlimited_quota(self, db_session, wish):
        uc = AmplifyWishUseCase(db_session)
        for i in range(5):
            uc.execute(wish.id, wish.user_id, _sub(None), "support", now=_NOW + timedelta(minutes=i))
        assert db_session.query(Amplification).count() == 5

    def test_not_owner(self, db_session, wish, other, free_sub):
        with pytest.raises(Forbidden):
            AmplifyWishUseCase(db_session).execute(wish.id, other.id, free_sub, "support", now=_NOW)

    def test_missing_wish(self, db_session, owner, free_sub):
        with pytest.raises(NotFound):
            AmplifyWishUseCase(db_session).execute("missing", owner.id, free_sub, "support", now=_NOW)

    def test_bad_objective(self, db_session, wish, free_sub):
        with pytest.raises(ValidationError):
            AmplifyWishUseCase(db_session).execute(wish.id, wish.user_id, free_sub, "fame", now=_NOW)

    def test_private_wish_becomes_public(self, db_session, wish, free_sub):
        wish.is_private = True
        db_session.commit()
        AmplifyWishUseCase(db_session).execute(wish.id, wish.user_id, free_sub, "support", now=_NOW)
        assert db_session.query(Wish).filter(Wish.id == wish.id).first().is_private is False


class TestAmplifiedFeed:
    def test_only_active_newest_first(self, db_session, wish, owner):
        uc = AmplifyWishUseCase(db_session)
        sub = _sub(None)
        uc.execute(wish.id, owner.id, sub, "support", now=_NOW - timedelta(days=40))
        uc.execute(wish.id, owner.id, sub, "help", now=_NOW - timedelta(days=2))
        uc.execute(wish.id, owner.id, sub, "mentorship", now=_NOW - timedelta(days=1))

        result = get_amplified_wishes(db_session, None, page=1, page_size=10, now=_NOW)
        assert result["total_count"] == 2
        assert result["total_pages"] == 1
        assert [i["objective"] for i in result["items"]] == ["mentorship", "help"]
        assert result["items"][0]["wish"]["user_profile"]["username"] == "alice"

    def test_user_filter_and_paging(self, db_session, wish, owner, other):
        uc = AmplifyWishUseCase(db_session)
        for i in range(3):
            uc.execute(wish.id, owner.id, _sub(None), "support", now=_NOW - timedelta(hours=i))

        page = get_amplified_wishes(db_session, owner.id, page=2, page_size=2, now=_NOW)
        assert page["current_page"] == 2
        assert page["total_pages"] == 2
        assert len(page["items"]) == 1

        assert get_amplified_wishes(db_session, other.id, now=_NOW)["total_count"] == 0

    def test_details(self, db_session, wish, owner):
        AmplifyWishUseCase(db_session).execute(wish.id, owner.id, _sub(None), "help", now=_NOW)
        details = get_amplified_wish_details(db_session, wish.id, now=_NOW + timedelta(days=1))
        assert details["wish_text"] == "Learn to paint"
        assert details["user_profile"]["username"] == "alice"
        assert len(details["amplifications"]) == 1


class TestRemoveAndReport:
    def test_owner_removes(self, db_session, wish, owner):
        amp = AmplifyWishUseCase(db_session).execute(wish.id, owner.id, _sub(None), "help", now=_NOW)
        RemoveAmplificationUseCase(db_session).execute(amp.id, owner.id)
        assert db_session.query(Amplification).count() == 0

    def test_other_cannot_remove(self, db_session, wish, owner, other):
        amp = AmplifyWishUseCase(db_session).execute(wish.id, owner.id, _sub(None), "help", now=_NOW)
        with pytest.raises(Forbidden):
            RemoveAmplificationUseCase(db_session).execute(amp.id, other.id)

    def test_remove_missing(self, db_session, owner):
        with pytest.raises(NotFound):
            RemoveAmplificationUseCase(db_session).execute("nope", owner.id)

    def test_report_is_pending(self, db_session, wish, other):
        report = SubmitReportUseCase(db_session).execute(wish.id, other.id, "spam", "  ads  ")
        stored = db_session.query(WishReport).filter(WishReport.id == report.id).first()
        assert stored.status == "pending"
        assert stored.details == "ads"

    def test_report_needs_reason(self, db_session, wish, other):
        with pytest.raises(ValidationError):
            SubmitReportUseCase(db_session).execute(wish.id, other.id, "")
