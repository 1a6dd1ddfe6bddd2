"""
Pytest fixtures for testing
"""
import pytest
from sqlalchemy import create_engine, JSON
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.pool import StaticPool

from app.application.wish_cache import wish_cache
from app.domain.quota import Quota, UserSubscription, TIER_FREE, TIER_PREMIUM, FREE_PLAN_NAME
from app.infrastructure.db.session import Base
from app.infrastructure.db.models import UserProfile, Wish, SubscriptionPlan


OWNER_ID = "00000000-0000-0000-0000-0000000000aa"
OTHER_ID = "00000000-0000-0000-0000-0000000000bb"
THIRD_ID = "00000000-0000-0000-0000-0000000000cc"


@pytest.fixture
def db_engine():
    """In-memory SQLite shared by every connection, with JSONB mapped to JSON."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    # SQLite doesn't support JSONB
    for table in Base.metadata.tables.values():
        for col in table.columns:
            if isinstance(col.type, JSONB):
                col.type = JSON()
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine) -> Session:
    """Create database session for tests"""
    SessionLocal = sessionmaker(bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(autouse=True)
def _clear_wish_cache():
    wish_cache.invalidate()
    yield
    wish_cache.invalidate()


@pytest.fixture
def owner(db_session):
    profile = UserProfile(id=OWNER_ID, username="alice", is_public=True)
    db_session.add(profile)
    db_session.commit()
    return profile


@pytest.fixture
def other(db_session):
    profile = UserProfile(id=OTHER_ID, username="bob", is_public=False)
    db_session.add(profile)
    db_session.commit()
    return profile


@pytest.fixture
def third(db_session):
    profile = UserProfile(id=THIRD_ID, username="carol", is_public=True)
    db_session.add(profile)
    db_session.commit()
    return profile


@pytest.fixture
def wish(db_session, owner):
    w = Wish(user_id=owner.id, wish_text="Learn to paint", category="creativity", milestones=[])
    db_session.add(w)
    db_session.commit()
    return w


@pytest.fixture
def free_sub():
    return UserSubscription(
        tier=TIER_FREE,
        plan_name=FREE_PLAN_NAME,
        amplifications_per_month=Quota.limited(1),
        messages_per_wish=Quota.limited(20),
    )


@pytest.fixture
def premium_sub():
    return UserSubscription(
        tier=TIER_PREMIUM,
        plan_name="Premium",
        amplifications_per_month=Quota.limited(5),
        messages_per_wish=Quota.unlimited(),
    )


@pytest.fixture
def premium_plan(db_session):
    plan = SubscriptionPlan(
        name="Premium",
        tier=TIER_PREMIUM,
        features={"amplifications_per_month": 5, "messages_per_wish": "unlimited"},
        stripe_price_id="price_premium",
        price_cents=499,
    )
    db_session.add(plan)
    db_session.commit()
    return plan
