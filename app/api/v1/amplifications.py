"""
Amplification API endpoints
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user_id, get_subscription, ensure_same_user
from app.application.amplifications import (
    AmplifyWishUseCase, RemoveAmplificationUseCase, SubmitReportUseCase,
    get_amplified_wishes, get_amplified_wish_details, serialize_amplification,
)
from app.domain.quota import UserSubscription
from app.domain.wish import OBJECTIVE_SUPPORT


router = APIRouter(prefix="/api/v1", tags=["amplifications"])


class AmplifyRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    wish_id: str = Field(alias="wishId")
    user_id: str | None = Field(default=None, alias="userId")
    objective: str = OBJECTIVE_SUPPORT
    context: str | None = None
    # Accepted for older clients, never trusted
    user_subscription: dict | None = Field(default=None, alias="userSubscription")


class ReportRequest(BaseModel):
    reason: str
    details: str | None = None


@router.post("/amplify-wish")
def amplify_wish(
    req: AmplifyRequest,
    user_id: str = Depends(get_current_user_id),
    subscription: UserSubscription = Depends(get_subscription),
    db: Session = Depends(get_db),
):
    ensure_same_user(req.user_id, user_id)
    amplification = AmplifyWishUseCase(db).execute(
        wish_id=req.wish_id,
        user_id=user_id,
        subscription=subscription,
        objective=req.objective,
        context=req.context,
    )
    return {"success": True, "data": serialize_amplification(amplification)}


@router.get("/amplified-wishes")
def amplified_wishes(
    userId: str | None = None,
    page: int = 1,
    limit: int = 10,
    db: Session = Depends(get_db),
    _: str = Depends(get_current_user_id),
):
    return get_amplified_wishes(db, userId, page, limit)


@router.get("/amplified-wishes/{wish_id}")
def amplified_wish_details(
    wish_id: str,
    db: Session = Depends(get_db),
    _: str = Depends(get_current_user_id),
):
    return get_amplified_wish_details(db, wish_id)


@router.delete("/amplifications/{amplification_id}")
def remove_amplification(
    amplification_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    RemoveAmplificationUseCase(db).execute(amplification_id, user_id)
    return {"success": True}


@router.post("/wishes/{wish_id}/reports", status_code=201)
def report_wish(
    wish_id: str,
    req: ReportRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    report = SubmitReportUseCase(db).execute(wish_id, user_id, req.reason, req.details)
    return {"id": report.id, "status": report.status}
