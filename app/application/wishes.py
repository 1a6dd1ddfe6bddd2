"""
Wish use cases - create, delete, visibility, import of locally drafted wishes
"""
import logging

from sqlalchemy.orm import Session

from app.application.xp import XpService
from app.domain import permissions
from app.domain.wish import validate_wish_text, validate_category
from app.domain.xp import CREATE_WISH_XP
from app.errors import NotFound, ValidationError
from app.infrastructure.db.models import (
    Amplification, Conversation, MessagePause, UserProfile, Wish, WishMessage, WishReport, WishSupport,
)

logger = logging.getLogger(__name__)

ANONYMOUS = "Anonymous"


def profile_snippet(profile: UserProfile | None) -> dict | None:
    """Public view of a profile; non-public profiles are anonymised."""
    if profile is None:
        return None
    if not profile.is_public:
        return {"id": profile.id, "username": ANONYMOUS, "avatar_url": None, "is_public": False}
    return {
        "id": profile.id,
        "username": profile.username,
        "avatar_url": profile.avatar_url,
        "is_public": True,
    }


def serialize_wish(wish: Wish, owner: UserProfile | None = None) -> dict:
    data = {
        "id": wish.id,
        "user_id": wish.user_id,
        "wish_text": wish.wish_text,
        "category": wish.category,
        "progress": wish.progress,
        "is_private": wish.is_private,
        "milestones": list(wish.milestones or []),
        "support_count": wish.support_count,
        "created_at": wish.created_at.isoformat() if wish.created_at else None,
    }
    if owner is not None:
        data["user_profile"] = profile_snippet(owner)
    return data


def get_wish(db: Session, wish_id: str) -> Wish:
    wish = db.query(Wish).filter(Wish.id == wish_id).first()
    if not wish:
        raise NotFound("Wish not found")
    return wish


def get_profiles(db: Session, user_ids) -> dict[str, UserProfile]:
    ids = {uid for uid in user_ids if uid}
    if not ids:
        return {}
    return {p.id: p for p in db.query(UserProfile).filter(UserProfile.id.in_(ids)).all()}


def list_user_wishes(db: Session, user_id: str) -> list[dict]:
    wishes = (
        db.query(Wish)
        .filter(Wish.user_id == user_id)
        .order_by(Wish.created_at.desc())
        .all()
    )
    return [serialize_wish(w) for w in wishes]


class CreateWishUseCase:
    """Use case: post a new wish (author earns XP)"""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: str, wish_text: str, category: str, is_private: bool = False) -> Wish:
        wish = Wish(
            user_id=user_id,
            wish_text=validate_wish_text(wish_text),
            category=validate_category(category),
            is_private=is_private,
            milestones=[],
        )
        self.db.add(wish)
        self.db.flush()
        XpService(self.db).award(user_id, CREATE_WISH_XP)
        self.db.commit()
        return wish


def _drop_garden_cache() -> None:
    # wish_cache imports this module
    from app.application.wish_cache import wish_cache
    wish_cache.invalidate()


class DeleteWishUseCase:
    """Use case: delete one's own wish together with everything hanging off it"""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, wish_id: str, user_id: str) -> None:
        wish = get_wish(self.db, wish_id)
        permissions.require(user_id, permissions.DELETE_WISH, wish)

        for model in (WishMessage, Conversation, MessagePause, Amplification, WishSupport, WishReport):
            self.db.query(model).filter(model.wish_id == wish_id).delete(synchronize_session=False)
        self.db.delete(wish)
        self.db.commit()
        _drop_garden_cache()
        logger.info("Wish %s deleted by owner %s", wish_id, user_id)


class SetWishVisibilityUseCase:
    """Use case: make a wish private or public"""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, wish_id: str, user_id: str, is_private: bool) -> Wish:
        wish = get_wish(self.db, wish_id)
        permissions.require(user_id, permissions.UPDATE_WISH, wish)
        wish.is_private = is_private
        self.db.commit()
        _drop_garden_cache()
        return wish


class ImportLocalWishesUseCase:
    """
    Use case: store wishes drafted before sign-in.

    Texts the user already has are skipped, so replaying the same drafts is
    harmless.
    """

    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: str, wishes: list[dict]) -> int:
        if not isinstance(wishes, list):
            raise ValidationError("wishes must be a list")

        existing = {
            text for (text,) in self.db.query(Wish.wish_text).filter(Wish.user_id == user_id).all()
        }
        inserted = 0
        for draft in wishes:
            text = validate_wish_text(draft.get("text") or draft.get("wish_text"))
            if text in existing:
                continue
            self.db.add(Wish(
                user_id=user_id,
                wish_text=text,
                category=validate_category(draft.get("category")),
                is_private=bool(draft.get("is_private", False)),
                milestones=[],
            ))
            existing.add(text)
            inserted += 1

        self.db.commit()
        logger.info("Imported %d local wishes for user %s", inserted, user_id)
        return inserted
