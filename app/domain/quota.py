"""
Plan quotas.

A quota is either unlimited or a fixed ceiling. Plans store them as
``int | "unlimited"``; ``Quota.parse`` turns that into the variant and
``allows`` is the only place a usage count is compared against it.
"""
from dataclasses import dataclass
from typing import Any

from app.errors import ValidationError


UNLIMITED = "unlimited"

TIER_FREE = "free"
TIER_PREMIUM = "premium"
TIERS = [TIER_FREE, TIER_PREMIUM]

FREE_PLAN_NAME = "Free Tier"


@dataclass(frozen=True)
class Quota:
    limit: int | None = None  # None = unlimited

    @classmethod
    def unlimited(cls) -> "Quota":
        return cls(None)

    @classmethod
    def limited(cls, n: int) -> "Quota":
        if isinstance(n, bool) or not isinstance(n, int) or n < 0:
            raise ValidationError(f"Invalid quota limit: {n!r}")
        return cls(n)

    @classmethod
    def parse(cls, raw: Any, default: "Quota | None" = None) -> "Quota":
        """
        Build a quota from a plan feature value.

        Args:
            raw: "unlimited", a non-negative int (or its string form), or None
            default: returned when raw is None

        Raises:
            ValidationError: for anything else
        """
        if raw is None:
            if default is None:
                raise ValidationError("Quota value is missing")
            return default
        if raw == UNLIMITED:
            return cls.unlimited()
        if isinstance(raw, str) and raw.strip().isdigit():
            return cls.limited(int(raw.strip()))
        return cls.limited(raw)

    @property
    def is_unlimited(self) -> bool:
        return self.limit is None

    def to_raw(self) -> int | str:
        return UNLIMITED if self.limit is None else self.limit


def allows(used: int, quota: Quota) -> bool:
    """True when one more use fits in the quota."""
    if quota.is_unlimited:
        return True
    return used < quota.limit


@dataclass(frozen=True)
class UserSubscription:
    """Effective plan of a user, resolved server-side."""
    tier: str
    plan_name: str
    amplifications_per_month: Quota
    messages_per_wish: Quota

    @property
    def is_premium(self) -> bool:
        return self.tier == TIER_PREMIUM and self.plan_name != FREE_PLAN_NAME

    @classmethod
    def from_features(cls, tier: str, plan_name: str, features: dict, defaults: "UserSubscription") -> "UserSubscription":
        if tier not in TIERS:
            raise ValidationError(f"Unknown tier: {tier}")
        features = features or {}
        return cls(
            tier=tier,
            plan_name=plan_name,
            amplifications_per_month=Quota.parse(
                features.get("amplifications_per_month"), default=defaults.amplifications_per_month
            ),
            messages_per_wish=Quota.parse(
                features.get("messages_per_wish"), default=defaults.messages_per_wish
            ),
        )

    def to_dict(self) -> dict:
        return {
            "tier": self.tier,
            "plan_name": self.plan_name,
            "features": {
                "amplifications_per_month": self.amplifications_per_month.to_raw(),
                "messages_per_wish": self.messages_per_wish.to_raw(),
            },
        }
