"""Stripe webhook endpoint"""
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.api.deps import get_db
from app.application.billing import verify_webhook, process_webhook_event


router = APIRouter(prefix="/api/v1", tags=["stripe webhooks"])


@router.post("/stripe-webhook")
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias="stripe-signature"),
    db: Session = Depends(get_db),
):
    # Raw body is needed for the signature; the Session and Stripe SDK are blocking
    body = await request.body()
    event = await run_in_threadpool(verify_webhook, body, stripe_signature)
    return await run_in_threadpool(process_webhook_event, db, event)
