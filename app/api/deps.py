"""
FastAPI dependencies (DB session, authenticated user, effective plan)
"""
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.application.subscriptions import get_user_subscription
from app.domain.quota import UserSubscription
from app.errors import Unauthorized, Forbidden
from app.infrastructure.db.models import UserProfile
from app.infrastructure.db.session import get_db as _get_db


# Re-export get_db for convenience
get_db = _get_db


def get_current_user_id(request: Request, db: Session = Depends(get_db)) -> str:
    """
    Id of the signed-in user, taken from the session cookie.

    The auth gateway writes ``user_id`` into the session; a profile row must
    exist for it.

    Raises:
        Unauthorized: no session or unknown user
    """
    user_id = request.session.get("user_id")
    if not user_id:
        raise Unauthorized("Not authenticated")

    exists = db.query(UserProfile.id).filter(UserProfile.id == user_id).first()
    if not exists:
        raise Unauthorized("User not found")
    return user_id


def get_optional_user_id(request: Request) -> str | None:
    return request.session.get("user_id") or None


def get_subscription(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> UserSubscription:
    """Plan of the current user, always resolved from the database."""
    return get_user_subscription(db, user_id)


def ensure_same_user(claimed_id: str | None, user_id: str) -> None:
    """Body ids naming the acting user must match the session."""
    if claimed_id and claimed_id != user_id:
        raise Forbidden("Unauthorized")
