"""
Progress and milestone API endpoints
"""
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user_id, get_subscription
from app.application.progress import (
    UpdateProgressUseCase, AddMilestoneUseCase, UpdateMilestoneUseCase, ReplaceMilestonesUseCase,
    get_milestones,
)
from app.domain.quota import UserSubscription
from app.errors import ValidationError


router = APIRouter(prefix="/api/v1", tags=["milestones"])


class AddMilestoneRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    wish_id: str = Field(alias="wishId")
    # Either a title or {"title": ..., "completed": ...}
    milestone: str | dict
    user_subscription: dict | None = Field(default=None, alias="userSubscription")


class UpdateMilestoneRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    wish_id: str = Field(alias="wishId")
    milestone_id: str = Field(alias="milestoneId")
    updates: dict[str, Any]


class ReplaceMilestonesRequest(BaseModel):
    milestones: Any


class UpdateProgressRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    wish_id: str = Field(alias="wishId")
    # Validated by the use case so out-of-range values come back as 400
    progress: Any


@router.post("/add-wish-milestone")
def add_milestone(
    req: AddMilestoneRequest,
    user_id: str = Depends(get_current_user_id),
    subscription: UserSubscription = Depends(get_subscription),
    db: Session = Depends(get_db),
):
    if isinstance(req.milestone, dict):
        title = req.milestone.get("title")
        completed = bool(req.milestone.get("completed", False))
    else:
        title, completed = req.milestone, False

    milestone = AddMilestoneUseCase(db).execute(
        wish_id=req.wish_id,
        user_id=user_id,
        title=title,
        subscription=subscription,
        completed=completed,
    )
    return {"success": True, "milestone": milestone}


@router.put("/update-wish-milestone")
def update_milestone(
    req: UpdateMilestoneRequest,
    user_id: str = Depends(get_current_user_id),
    subscription: UserSubscription = Depends(get_subscription),
    db: Session = Depends(get_db),
):
    milestones = UpdateMilestoneUseCase(db).execute(
        req.wish_id, user_id, req.milestone_id, subscription, req.updates
    )
    return {"success": True, "milestones": milestones}


@router.get("/wishes/{wish_id}/milestones")
def list_milestones(wish_id: str, db: Session = Depends(get_db), _: str = Depends(get_current_user_id)):
    return {"milestones": get_milestones(db, wish_id)}


@router.put("/wishes/{wish_id}/milestones")
def replace_milestones(
    wish_id: str,
    req: ReplaceMilestonesRequest,
    user_id: str = Depends(get_current_user_id),
    subscription: UserSubscription = Depends(get_subscription),
    db: Session = Depends(get_db),
):
    milestones = ReplaceMilestonesUseCase(db).execute(wish_id, user_id, req.milestones, subscription)
    return {"success": True, "milestones": milestones}


@router.post("/update-wish-progress")
def update_progress(
    req: UpdateProgressRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    if req.progress is None:
        raise ValidationError("Progress is required")
    wish = UpdateProgressUseCase(db).execute(req.wish_id, user_id, req.progress)
    return {"success": True, "progress": wish.progress}
