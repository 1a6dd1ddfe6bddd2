"""
SQLAlchemy ORM models
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Integer, Text, TIMESTAMP, Boolean, UniqueConstraint, Index, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import JSONB

from app.infrastructure.db.session import Base


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserProfile(Base):
    """
    Public-facing profile of an authenticated user.

    The account itself lives with the external auth provider; this row is
    keyed by the same id.
    """
    __tablename__ = "user_profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    username: Mapped[str] = mapped_column(String(64), nullable=False)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(512), nullable=True)

    is_premium: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    # Non-public profiles are shown as "Anonymous" to other users
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")

    stripe_customer_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=utcnow, nullable=False)


# ============================================================================
# Wishes
# ============================================================================


class Wish(Base):
    """A user-authored wish, the central content entity."""
    __tablename__ = "wishes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)

    wish_text: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    is_private: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false", index=True)
    is_visible: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")

    # [{"id": str, "title": str, "completed": bool}, ...]
    milestones: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    support_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=utcnow, nullable=False, index=True)

    __table_args__ = (
        CheckConstraint("progress >= 0 AND progress <= 100", name="ck_wishes_progress_range"),
    )


class WishSupport(Base):
    """One "water" per user per wish."""
    __tablename__ = "wish_supports"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    wish_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint('user_id', 'wish_id', name='uq_wish_support_user_wish'),
    )


class WishReport(Base):
    """Moderation report filed against a wish."""
    __tablename__ = "wish_reports"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    wish_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    reporter_id: Mapped[str] = mapped_column(String(36), nullable=False)
    reason: Mapped[str] = mapped_column(String(64), nullable=False)
    details: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending", server_default="pending")
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=utcnow, nullable=False)


# ============================================================================
# Amplification & messaging
# ============================================================================


class Amplification(Base):
    """Time-boxed visibility boost. A wish may be amplified many times."""
    __tablename__ = "wish_amplifications"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    wish_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)

    objective: Mapped[str] = mapped_column(String(16), nullable=False)  # support, help, mentorship
    context: Mapped[str | None] = mapped_column(Text, nullable=True)

    amplified_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=utcnow, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False, index=True)

    __table_args__ = (
        Index('ix_amplification_user_time', 'user_id', 'amplified_at'),
    )


class Conversation(Base):
    """Thread on one wish between one unordered pair (participant1 < participant2)."""
    __tablename__ = "conversations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    wish_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    participant1_id: Mapped[str] = mapped_column(String(36), nullable=False)
    participant2_id: Mapped[str] = mapped_column(String(36), nullable=False)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint('wish_id', 'participant1_id', 'participant2_id', name='uq_conversation_wish_pair'),
        CheckConstraint("participant1_id < participant2_id", name="ck_conversation_sorted_pair"),
    )


class WishMessage(Base):
    """Append-only message inside a conversation."""
    __tablename__ = "wish_messages"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    wish_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    conversation_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    sender_id: Mapped[str] = mapped_column(String(36), nullable=False)
    recipient_id: Mapped[str] = mapped_column(String(36), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    # Insertion order breaks ties between equal timestamps
    seq: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        Index('ix_wish_message_sender', 'wish_id', 'sender_id'),
        Index('ix_wish_message_conversation_time', 'conversation_id', 'created_at'),
    )


class MessagePause(Base):
    """Presence disables messaging on the wish."""
    __tablename__ = "message_pauses"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    wish_id: Mapped[str] = mapped_column(String(36), nullable=False, unique=True)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=utcnow, nullable=False)


# ============================================================================
# Subscriptions
# ============================================================================


class SubscriptionPlan(Base):
    """Sellable plan; features drive every quota check."""
    __tablename__ = "subscription_plans"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    tier: Mapped[str] = mapped_column(String(16), nullable=False)  # free, premium
    # {"amplifications_per_month": int | "unlimited", "messages_per_wish": int | "unlimited"}
    features: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    stripe_price_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")


class UserSubscriptionRecord(Base):
    """A user's Stripe-backed subscription to a plan."""
    __tablename__ = "user_subscriptions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    plan_id: Mapped[str] = mapped_column(String(36), nullable=False)
    stripe_subscription_id: Mapped[str | None] = mapped_column(String(64), nullable=True, unique=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False)  # Stripe subscription status
    current_period_start: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    current_period_end: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    cancel_at_period_end: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=utcnow, nullable=False)


class SubscriptionEvent(Base):
    """Audit trail of provider events applied to a subscription."""
    __tablename__ = "subscription_events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_subscription_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    event_type: Mapped[str] = mapped_column(String(64), nullable=False)
    event_data: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=utcnow, nullable=False)


# ============================================================================
# XP / Gamification
# ============================================================================


class UserStats(Base):
    """XP, level and login streak of a user."""
    __tablename__ = "user_stats"

    user_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    xp: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")
    login_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")
    last_login: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
