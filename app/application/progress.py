"""
Progress and milestone use cases

Milestones are stored as a JSON list on the wish. Every change assigns a new
list to the column so the ORM picks it up.
"""
from sqlalchemy.orm import Session

from app.application.wishes import get_wish
from app.domain import permissions
from app.domain.quota import UserSubscription
from app.domain.wish import (
    validate_progress, new_milestone, normalize_milestones, apply_milestone_update,
)
from app.errors import PremiumRequired
from app.infrastructure.db.models import Wish


def _require_premium(subscription: UserSubscription) -> None:
    if not subscription.is_premium:
        raise PremiumRequired()


class UpdateProgressUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, wish_id: str, user_id: str, progress) -> Wish:
        value = validate_progress(progress)
        wish = get_wish(self.db, wish_id)
        permissions.require(user_id, permissions.UPDATE_WISH, wish)
        wish.progress = value
        self.db.commit()
        return wish


class AddMilestoneUseCase:
    """Use case: append a milestone (premium only)"""

    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        wish_id: str,
        user_id: str,
        title: str,
        subscription: UserSubscription,
        completed: bool = False,
    ) -> dict:
        _require_premium(subscription)
        milestone = new_milestone(title, completed)
        wish = get_wish(self.db, wish_id)
        permissions.require(user_id, permissions.UPDATE_WISH, wish)

        wish.milestones = list(wish.milestones or []) + [milestone]
        self.db.commit()
        return milestone


class UpdateMilestoneUseCase:
    """Use case: rename or (un)complete one milestone (premium only)"""

    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        wish_id: str,
        user_id: str,
        milestone_id: str,
        subscription: UserSubscription,
        updates: dict,
    ) -> list[dict]:
        _require_premium(subscription)
        wish = get_wish(self.db, wish_id)
        permissions.require(user_id, permissions.UPDATE_WISH, wish)

        wish.milestones = apply_milestone_update(wish.milestones, milestone_id, updates)
        self.db.commit()
        return wish.milestones


class ReplaceMilestonesUseCase:
    """Use case: overwrite the whole milestone list (premium only)"""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, wish_id: str, user_id: str, milestones, subscription: UserSubscription) -> list[dict]:
        _require_premium(subscription)
        normalized = normalize_milestones(milestones)
        wish = get_wish(self.db, wish_id)
        permissions.require(user_id, permissions.UPDATE_WISH, wish)

        wish.milestones = normalized
        self.db.commit()
        return wish.milestones


def get_milestones(db: Session, wish_id: str) -> list[dict]:
    return list(get_wish(db, wish_id).milestones or [])
