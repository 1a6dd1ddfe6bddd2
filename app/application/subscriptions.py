"""
Subscription use cases: effective plan resolution and state sync from Stripe.

Works directly on the ORM; Stripe calls live in app.application.billing.
"""
import logging
from datetime import datetime

from sqlalchemy.orm import Session

from app.config import get_settings
from app.domain.quota import (
    Quota, UserSubscription, TIER_FREE, TIER_PREMIUM, FREE_PLAN_NAME,
)
from app.errors import NotFound
from app.infrastructure.db.models import (
    SubscriptionPlan, UserSubscriptionRecord, SubscriptionEvent, UserProfile,
)

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = ("active", "trialing")


def free_tier() -> UserSubscription:
    settings = get_settings()
    return UserSubscription(
        tier=TIER_FREE,
        plan_name=FREE_PLAN_NAME,
        amplifications_per_month=Quota.limited(settings.FREE_AMPLIFICATIONS_PER_MONTH),
        messages_per_wish=Quota.limited(settings.FREE_MESSAGES_PER_WISH),
    )


def get_user_subscription(db: Session, user_id: str) -> UserSubscription:
    """Effective plan of the user: latest active subscription, else the free tier."""
    row = (
        db.query(UserSubscriptionRecord, SubscriptionPlan)
        .join(SubscriptionPlan, SubscriptionPlan.id == UserSubscriptionRecord.plan_id)
        .filter(
            UserSubscriptionRecord.user_id == user_id,
            UserSubscriptionRecord.status.in_(ACTIVE_STATUSES),
        )
        .order_by(UserSubscriptionRecord.created_at.desc())
        .first()
    )
    defaults = free_tier()
    if row is None:
        return defaults
    _, plan = row
    return UserSubscription.from_features(plan.tier, plan.name, plan.features, defaults)


def list_plans(db: Session) -> list[dict]:
    plans = db.query(SubscriptionPlan).order_by(SubscriptionPlan.price_cents).all()
    return [
        {
            "id": p.id,
            "name": p.name,
            "tier": p.tier,
            "features": p.features,
            "price_cents": p.price_cents,
        }
        for p in plans
    ]


def get_plan(db: Session, plan_id: str) -> SubscriptionPlan:
    plan = db.query(SubscriptionPlan).filter(SubscriptionPlan.id == plan_id).first()
    if not plan:
        raise NotFound("Plan not found")
    return plan


def latest_subscription(db: Session, user_id: str) -> UserSubscriptionRecord:
    record = (
        db.query(UserSubscriptionRecord)
        .filter(UserSubscriptionRecord.user_id == user_id)
        .order_by(UserSubscriptionRecord.created_at.desc())
        .first()
    )
    if not record:
        raise NotFound("No active subscription found")
    return record


def _sync_premium_flag(db: Session, user_id: str, plan: SubscriptionPlan | None, status: str) -> None:
    profile = db.query(UserProfile).filter(UserProfile.id == user_id).first()
    if profile is None:
        return
    profile.is_premium = bool(
        plan is not None and plan.tier == TIER_PREMIUM and status in ACTIVE_STATUSES
    )


class ApplySubscriptionStateUseCase:
    """Upsert a user's subscription from provider state (keyed by the Stripe id)."""

    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        user_id: str,
        plan_id: str,
        stripe_subscription_id: str,
        status: str,
        current_period_start: datetime | None,
        current_period_end: datetime | None,
        cancel_at_period_end: bool = False,
    ) -> UserSubscriptionRecord:
        plan = get_plan(self.db, plan_id)

        record = self.db.query(UserSubscriptionRecord).filter(
            UserSubscriptionRecord.stripe_subscription_id == stripe_subscription_id
        ).first()
        if record is None:
            record = UserSubscriptionRecord(
                user_id=user_id,
                stripe_subscription_id=stripe_subscription_id,
            )
            self.db.add(record)

        record.plan_id = plan.id
        record.status = status
        record.current_period_start = current_period_start
        record.current_period_end = current_period_end
        record.cancel_at_period_end = cancel_at_period_end

        _sync_premium_flag(self.db, record.user_id, plan, status)
        self.db.commit()
        logger.info(
            "Subscription %s for user %s set to plan %s (%s)",
            stripe_subscription_id, record.user_id, plan.name, status,
        )
        return record


class UpdateSubscriptionStatusUseCase:
    """Apply a subscription updated/deleted event and keep an audit row."""

    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        stripe_subscription_id: str,
        status: str,
        cancel_at_period_end: bool,
        current_period_end: datetime | None,
        event_type: str,
        event_data: dict | None = None,
    ) -> UserSubscriptionRecord:
        record = self.db.query(UserSubscriptionRecord).filter(
            UserSubscriptionRecord.stripe_subscription_id == stripe_subscription_id
        ).first()
        if not record:
            raise NotFound(f"Subscription {stripe_subscription_id} not found")

        record.status = status
        record.cancel_at_period_end = cancel_at_period_end
        if current_period_end is not None:
            record.current_period_end = current_period_end

        plan = self.db.query(SubscriptionPlan).filter(SubscriptionPlan.id == record.plan_id).first()
        _sync_premium_flag(self.db, record.user_id, plan, status)

        self.db.add(SubscriptionEvent(
            user_subscription_id=record.id,
            event_type=event_type,
            event_data=event_data or {},
        ))
        self.db.commit()
        return record
