"""
Plans and subscription management endpoints
"""
from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user_id, get_subscription
from app.application import billing
from app.application.subscriptions import list_plans
from app.domain.quota import UserSubscription


router = APIRouter(prefix="/api/v1", tags=["subscriptions"])


class CheckoutRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    plan_id: str = Field(alias="planId")


class SessionStatusRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId")


class UpdateSubscriptionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    new_plan_id: str = Field(alias="newPlanId")


@router.get("/plans")
def plans(db: Session = Depends(get_db)):
    return {"plans": list_plans(db)}


@router.get("/me/subscription")
def my_subscription(subscription: UserSubscription = Depends(get_subscription)):
    return subscription.to_dict()


@router.post("/create-checkout-session")
def create_checkout_session(
    request: Request,
    req: CheckoutRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    origin = request.headers.get("origin")
    session_id = billing.create_checkout_session(db, user_id, req.plan_id, origin)
    return {"sessionId": session_id}


@router.post("/check-subscription-status")
def check_subscription_status(req: SessionStatusRequest, _: str = Depends(get_current_user_id)):
    return billing.check_checkout_status(req.session_id)


@router.post("/cancel-subscription")
def cancel_subscription(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return billing.cancel_subscription(db, user_id)


@router.post("/update-subscription")
def update_subscription(
    req: UpdateSubscriptionRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return billing.change_plan(db, user_id, req.new_plan_id)
