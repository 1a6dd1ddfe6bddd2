"""
XP and login streak endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user_id
from app.application.xp import XpService


router = APIRouter(prefix="/api/v1/me", tags=["stats"])


@router.get("/stats")
def my_stats(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return XpService(db).get_stats(user_id)


@router.post("/login")
def record_login(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    """Called once per app start; updates the daily streak"""
    streak = XpService(db).record_login(user_id)
    return {"login_streak": streak}
