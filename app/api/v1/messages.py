"""
Messaging API endpoints
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user_id, get_subscription, ensure_same_user
from app.application.messaging import (
    CreateMessageUseCase, ToggleMessagingPauseUseCase,
    get_conversation, get_conversations, get_messages, get_wish_messages,
    is_messaging_paused, serialize_message,
)
from app.application.wishes import get_wish
from app.domain.quota import UserSubscription


router = APIRouter(prefix="/api/v1", tags=["messages"])


class CreateMessageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    wish_id: str = Field(alias="wishId")
    sender_id: str | None = Field(default=None, alias="senderId")
    recipient_id: str = Field(alias="recipientId")
    message: str
    user_subscription: dict | None = Field(default=None, alias="userSubscription")


class PauseRequest(BaseModel):
    paused: bool


@router.post("/create-wish-message", status_code=201)
def create_message(
    req: CreateMessageRequest,
    user_id: str = Depends(get_current_user_id),
    subscription: UserSubscription = Depends(get_subscription),
    db: Session = Depends(get_db),
):
    ensure_same_user(req.sender_id, user_id)
    message = CreateMessageUseCase(db).execute(
        wish_id=req.wish_id,
        sender_id=user_id,
        recipient_id=req.recipient_id,
        body=req.message,
        subscription=subscription,
    )
    return serialize_message(message)


@router.get("/get-wish-messages")
def wish_messages(
    wishId: str,
    userId: str | None = None,
    page: int = 1,
    limit: int = 20,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    ensure_same_user(userId, user_id)
    return get_wish_messages(db, wishId, user_id, page, limit)


@router.get("/conversations")
def conversations(wishId: str, user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return {"conversations": get_conversations(db, wishId, user_id)}


@router.get("/conversations/{conversation_id}/messages")
def conversation_messages(
    conversation_id: str,
    page: int = 1,
    limit: int = 50,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    get_conversation(db, conversation_id, user_id)
    return get_messages(db, conversation_id, page, limit)


@router.get("/wishes/{wish_id}/messaging-pause")
def messaging_pause_state(wish_id: str, db: Session = Depends(get_db), _: str = Depends(get_current_user_id)):
    get_wish(db, wish_id)
    return {"paused": is_messaging_paused(db, wish_id)}


@router.put("/wishes/{wish_id}/messaging-pause")
def toggle_messaging_pause(
    wish_id: str,
    req: PauseRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    paused = ToggleMessagingPauseUseCase(db).execute(wish_id, user_id, req.paused)
    return {"paused": paused}
