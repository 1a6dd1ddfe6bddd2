"""
Stripe billing: checkout, cancel, plan changes and webhook handling.

Stripe failures are logged with their original message and re-raised as
UpstreamError; the client only sees a generic text.
"""
import logging
from datetime import datetime, timezone
from typing import Any

import stripe
from sqlalchemy.orm import Session

from app.application.subscriptions import (
    get_plan, latest_subscription, ApplySubscriptionStateUseCase, UpdateSubscriptionStatusUseCase,
)
from app.config import get_settings
from app.errors import ValidationError, UpstreamError, NotFound, Conflict

logger = logging.getLogger(__name__)


def _configure() -> None:
    stripe.api_key = get_settings().STRIPE_SECRET_KEY


def _field(obj: Any, key: str, default: Any = None) -> Any:
    """Read a key from a Stripe object or plain dict."""
    if obj is None:
        return default
    try:
        value = obj[key]
    except KeyError:
        return default
    return default if value is None else value


def _timestamp(value: int | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def _period(subscription: Any) -> tuple[datetime | None, datetime | None]:
    """Current billing period; newer API versions keep it on the subscription item."""
    start = _field(subscription, "current_period_start")
    end = _field(subscription, "current_period_end")
    if start is None or end is None:
        items = _field(_field(subscription, "items"), "data", [])
        if items:
            start = start or _field(items[0], "current_period_start")
            end = end or _field(items[0], "current_period_end")
    return _timestamp(start), _timestamp(end)


def create_checkout_session(db: Session, user_id: str, plan_id: str, origin: str | None = None) -> str:
    """Create a subscription Checkout session for a plan and return its id."""
    plan = get_plan(db, plan_id)
    if not plan.stripe_price_id:
        raise ValidationError("This plan cannot be purchased")

    base_url = (origin or get_settings().APP_BASE_URL).rstrip("/")
    _configure()
    try:
        session = stripe.checkout.Session.create(
            payment_method_types=["card"],
            line_items=[{"price": plan.stripe_price_id, "quantity": 1}],
            mode="subscription",
            allow_promotion_codes=True,
            success_url=f"{base_url}/subscription-result?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{base_url}/subscription?canceled=true",
            client_reference_id=user_id,
            metadata={"plan_id": plan.id},
        )
    except stripe.StripeError as e:
        logger.error(f"Failed to create checkout session for user {user_id}: {str(e)}")
        raise UpstreamError("Failed to create checkout session")

    logger.info("Checkout session %s created for user %s, plan %s", session.id, user_id, plan.name)
    return session.id


def check_checkout_status(session_id: str) -> dict:
    """Map a Checkout session's payment status to a client-facing result."""
    if not session_id:
        raise ValidationError("Session ID is required")
    _configure()
    try:
        session = stripe.checkout.Session.retrieve(session_id)
    except stripe.StripeError as e:
        logger.error(f"Failed to retrieve checkout session {session_id}: {str(e)}")
        return {"status": "failed", "message": "Failed to verify subscription status."}

    payment_status = _field(session, "payment_status")
    if payment_status == "paid":
        return {"status": "success"}
    if payment_status == "unpaid":
        return {"status": "failed", "message": "Payment was not successful. Please try again."}
    return {"status": "failed", "message": "Unexpected payment status. Please contact support."}


def cancel_subscription(db: Session, user_id: str) -> dict:
    """Cancel the user's latest subscription at the end of the current period."""
    record = latest_subscription(db, user_id)
    if not record.stripe_subscription_id:
        raise NotFound("No active subscription found")

    _configure()
    try:
        subscription = stripe.Subscription.modify(
            record.stripe_subscription_id,
            cancel_at_period_end=True,
        )
    except stripe.StripeError as e:
        logger.error(f"Failed to cancel subscription {record.stripe_subscription_id}: {str(e)}")
        raise UpstreamError("Failed to cancel subscription")

    record.cancel_at_period_end = True
    record.status = _field(subscription, "status", record.status)
    db.commit()
    logger.info("Subscription %s of user %s set to cancel at period end", record.stripe_subscription_id, user_id)
    return {"status": record.status, "cancel_at_period_end": True}


def change_plan(db: Session, user_id: str, new_plan_id: str) -> dict:
    """Move the user's subscription to another plan, invoicing the proration now."""
    record = latest_subscription(db, user_id)
    plan = get_plan(db, new_plan_id)
    if not plan.stripe_price_id:
        raise ValidationError("This plan cannot be purchased")
    if not record.stripe_subscription_id:
        raise NotFound("No active subscription found")
    if record.plan_id == plan.id:
        raise Conflict("Already subscribed to this plan")

    _configure()
    try:
        current = stripe.Subscription.retrieve(record.stripe_subscription_id)
        item_id = _field(_field(current, "items"), "data")[0]["id"]
        updated = stripe.Subscription.modify(
            record.stripe_subscription_id,
            items=[{"id": item_id, "price": plan.stripe_price_id}],
            proration_behavior="always_invoice",
        )
    except stripe.StripeError as e:
        logger.error(f"Failed to change plan of {record.stripe_subscription_id}: {str(e)}")
        raise UpstreamError("Failed to update subscription")

    start, end = _period(updated)
    ApplySubscriptionStateUseCase(db).execute(
        user_id=record.user_id,
        plan_id=plan.id,
        stripe_subscription_id=record.stripe_subscription_id,
        status=_field(updated, "status", record.status),
        current_period_start=start or record.current_period_start,
        current_period_end=end or record.current_period_end,
        cancel_at_period_end=bool(_field(updated, "cancel_at_period_end", False)),
    )
    return {"status": "success", "plan_id": plan.id}


def verify_webhook(payload: bytes, signature: str | None):
    """
    Verify a webhook delivery and return the parsed event.

    Raises:
        ValidationError: missing header, bad payload or bad signature
    """
    if not signature:
        raise ValidationError("Missing Stripe-Signature header")
    secret = get_settings().STRIPE_WEBHOOK_SECRET
    if not secret:
        logger.error("STRIPE_WEBHOOK_SECRET not configured")
        raise ValidationError("Webhook secret not configured")

    try:
        return stripe.Webhook.construct_event(payload, signature, secret)
    except ValueError as e:
        logger.error(f"Invalid webhook payload: {str(e)}")
        raise ValidationError("Invalid webhook payload")
    except stripe.SignatureVerificationError as e:
        logger.error(f"Invalid webhook signature: {str(e)}")
        raise ValidationError("Invalid webhook signature")


def _handle_checkout_completed(db: Session, session: Any) -> None:
    user_id = _field(session, "client_reference_id")
    plan_id = _field(_field(session, "metadata", {}), "plan_id")
    subscription_id = _field(session, "subscription")
    if not user_id or not plan_id or not subscription_id:
        raise ValidationError("Checkout session is missing user, plan or subscription")

    _configure()
    try:
        subscription = stripe.Subscription.retrieve(subscription_id)
    except stripe.StripeError as e:
        logger.error(f"Failed to retrieve subscription {subscription_id}: {str(e)}")
        raise UpstreamError("Failed to retrieve subscription")

    start, end = _period(subscription)
    ApplySubscriptionStateUseCase(db).execute(
        user_id=user_id,
        plan_id=plan_id,
        stripe_subscription_id=subscription_id,
        status=_field(subscription, "status", "active"),
        current_period_start=start,
        current_period_end=end,
        cancel_at_period_end=bool(_field(subscription, "cancel_at_period_end", False)),
    )


def _handle_subscription_changed(db: Session, event_type: str, subscription: Any) -> None:
    _, end = _period(subscription)
    UpdateSubscriptionStatusUseCase(db).execute(
        stripe_subscription_id=_field(subscription, "id"),
        status=_field(subscription, "status", "canceled"),
        cancel_at_period_end=bool(_field(subscription, "cancel_at_period_end", False)),
        current_period_end=end,
        event_type=event_type,
        event_data={
            "status": _field(subscription, "status"),
            "cancel_at_period_end": bool(_field(subscription, "cancel_at_period_end", False)),
        },
    )


def process_webhook_event(db: Session, event: Any) -> dict:
    """Apply a verified webhook event to local subscription state."""
    event_type = _field(event, "type")
    obj = _field(_field(event, "data"), "object")

    if event_type == "checkout.session.completed":
        _handle_checkout_completed(db, obj)
    elif event_type in ("customer.subscription.updated", "customer.subscription.deleted"):
        _handle_subscription_changed(db, event_type, obj)
    else:
        logger.info("Unhandled event type %s", event_type)

    return {"received": True}
