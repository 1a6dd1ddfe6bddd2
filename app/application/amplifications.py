"""
Amplification use cases - quota-gated visibility boosts, the amplified feed,
and wish reports.
"""
import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

from app.application.wishes import get_wish, get_profiles, serialize_wish, profile_snippet
from app.config import get_settings
from app.domain import permissions
from app.domain.quota import UserSubscription, allows
from app.domain.wish import validate_objective, REPORT_REASONS, REPORT_STATUS_PENDING
from app.errors import NotFound, QuotaExceeded, ValidationError
from app.infrastructure.db.models import Amplification, Wish, WishReport
from app.utils.pagination import paginate

logger = logging.getLogger(__name__)


def serialize_amplification(amp: Amplification) -> dict:
    return {
        "id": amp.id,
        "wish_id": amp.wish_id,
        "user_id": amp.user_id,
        "objective": amp.objective,
        "context": amp.context,
        "amplified_at": amp.amplified_at.isoformat(),
        "expires_at": amp.expires_at.isoformat(),
    }


def count_recent_amplifications(db: Session, user_id: str, now: datetime, window_days: int) -> int:
    """Amplifications the user made within the trailing window."""
    return (
        db.query(Amplification)
        .filter(
            Amplification.user_id == user_id,
            Amplification.amplified_at >= now - timedelta(days=window_days),
        )
        .count()
    )


class AmplifyWishUseCase:
    """Use case: boost one's own wish for AMPLIFICATION_DAYS days"""

    def __init__(self, db: Session):
        self.db = db
        self.days = get_settings().AMPLIFICATION_DAYS

    def execute(
        self,
        wish_id: str,
        user_id: str,
        subscription: UserSubscription,
        objective: str,
        context: str | None = None,
        now: datetime | None = None,
    ) -> Amplification:
        """
        Amplify a wish.

        Raises:
            ValidationError: unknown objective
            NotFound: wish does not exist
            Forbidden: wish belongs to someone else
            QuotaExceeded: monthly amplification quota used up
        """
        now = now or datetime.now(timezone.utc)
        objective = validate_objective(objective)

        wish = get_wish(self.db, wish_id)
        permissions.require(user_id, permissions.AMPLIFY_WISH, wish)

        used = count_recent_amplifications(self.db, user_id, now, self.days)
        if not allows(used, subscription.amplifications_per_month):
            logger.info("Amplification quota reached for user %s (%d used)", user_id, used)
            raise QuotaExceeded("No amplifications left")

        # Amplified wishes are public by definition
        if wish.is_private:
            wish.is_private = False

        amplification = Amplification(
            wish_id=wish.id,
            user_id=user_id,
            objective=objective,
            context=(context or "").strip() or None,
            amplified_at=now,
            expires_at=now + timedelta(days=self.days),
        )
        self.db.add(amplification)
        self.db.commit()
        return amplification


class RemoveAmplificationUseCase:
    """Use case: withdraw an amplification before it expires"""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, amplification_id: str, user_id: str) -> None:
        amplification = self.db.query(Amplification).filter(
            Amplification.id == amplification_id
        ).first()
        if not amplification:
            raise NotFound("Amplification not found")
        permissions.require(user_id, permissions.REMOVE_AMPLIFICATION, amplification)
        self.db.delete(amplification)
        self.db.commit()


class SubmitReportUseCase:
    """Use case: report a wish for moderation"""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, wish_id: str, reporter_id: str, reason: str, details: str | None = None) -> WishReport:
        if reason not in REPORT_REASONS:
            raise ValidationError(f"Reason must be one of {', '.join(REPORT_REASONS)}")
        get_wish(self.db, wish_id)

        report = WishReport(
            wish_id=wish_id,
            reporter_id=reporter_id,
            reason=reason,
            details=(details or "").strip() or None,
            status=REPORT_STATUS_PENDING,
        )
        self.db.add(report)
        self.db.commit()
        logger.info("Wish %s reported by %s (%s)", wish_id, reporter_id, reason)
        return report


def get_amplified_wishes(
    db: Session,
    user_id: str | None,
    page: int = 1,
    page_size: int = 10,
    now: datetime | None = None,
) -> dict:
    """
    Active amplifications, newest first, each with its wish and owner.

    ``user_id=None`` is the public feed across all users.
    """
    now = now or datetime.now(timezone.utc)
    query = (
        db.query(Amplification)
        .filter(Amplification.expires_at > now)
        .order_by(Amplification.amplified_at.desc())
    )
    if user_id:
        query = query.filter(Amplification.user_id == user_id)

    result = paginate(query, page, page_size)
    amps = result["items"]

    wish_ids = {a.wish_id for a in amps}
    wishes = {w.id: w for w in db.query(Wish).filter(Wish.id.in_(wish_ids)).all()} if wish_ids else {}
    owners = get_profiles(db, [w.user_id for w in wishes.values()])

    items = []
    for amp in amps:
        data = serialize_amplification(amp)
        wish = wishes.get(amp.wish_id)
        data["wish"] = serialize_wish(wish, owners.get(wish.user_id)) if wish else None
        items.append(data)
    result["items"] = items
    return result


def get_amplified_wish_details(db: Session, wish_id: str, now: datetime | None = None) -> dict:
    now = now or datetime.now(timezone.utc)
    wish = get_wish(db, wish_id)
    owner = get_profiles(db, [wish.user_id]).get(wish.user_id)
    amps = (
        db.query(Amplification)
        .filter(Amplification.wish_id == wish_id, Amplification.expires_at > now)
        .order_by(Amplification.amplified_at.desc())
        .all()
    )
    data = serialize_wish(wish)
    data["user_profile"] = profile_snippet(owner)
    data["amplifications"] = [serialize_amplification(a) for a in amps]
    return data
