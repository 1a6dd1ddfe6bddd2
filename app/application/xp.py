"""
XpService: award XP, read stats, track login streaks.
"""
from datetime import date, datetime, timezone

from sqlalchemy.orm import Session

from app.domain.xp import compute_level
from app.infrastructure.db.models import UserStats


class XpService:
    def __init__(self, db: Session):
        self.db = db

    def award(self, user_id: str, amount: int) -> tuple[int, int]:
        """
        Add XP to a user and recompute the level.

        Creates the stats row when it does not exist yet. Flushes but does not
        commit, so callers can group it with their own writes.

        Returns:
            (new_xp, new_level)
        """
        state = self.db.query(UserStats).filter(UserStats.user_id == user_id).first()
        if state is None:
            level, _, _ = compute_level(amount)
            state = UserStats(
                user_id=user_id,
                xp=amount,
                level=level,
                login_streak=1,
                last_login=datetime.now(timezone.utc),
            )
            self.db.add(state)
        else:
            state.xp += amount
            state.level, _, _ = compute_level(state.xp)
        self.db.flush()
        return state.xp, state.level

    def get_stats(self, user_id: str) -> dict:
        """Return the XP profile of a user (zeros when they have no stats yet)."""
        state = self.db.query(UserStats).filter(UserStats.user_id == user_id).first()
        xp = state.xp if state else 0
        login_streak = state.login_streak if state else 0
        level, current_level_xp, xp_to_next_level = compute_level(xp)
        return {
            "user_id": user_id,
            "xp": xp,
            "level": level,
            "current_level_xp": current_level_xp,
            "xp_to_next_level": xp_to_next_level,
            "percent_progress": round(current_level_xp / xp_to_next_level * 100, 1),
            "login_streak": login_streak,
        }

    def record_login(self, user_id: str, today: date | None = None) -> int:
        """
        Update the daily login streak and return it.

        Same day: unchanged. The day after the last login: +1.
        Any longer gap: back to 1.
        """
        now = datetime.now(timezone.utc)
        today = today or now.date()

        state = self.db.query(UserStats).filter(UserStats.user_id == user_id).first()
        if state is None:
            state = UserStats(
                user_id=user_id,
                xp=0,
                level=1,
                login_streak=1,
                last_login=datetime.combine(today, now.timetz()),
            )
            self.db.add(state)
            self.db.commit()
            return state.login_streak

        last = state.last_login.date() if state.last_login else None
        if last == today:
            return state.login_streak
        if last is not None and (today - last).days == 1:
            state.login_streak += 1
        else:
            state.login_streak = 1
        state.last_login = datetime.combine(today, now.timetz())
        self.db.commit()
        return state.login_streak
