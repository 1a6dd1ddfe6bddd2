"""
Messaging use cases

Conversations are identified by (wish, unordered pair of users). The pair is
stored sorted, and the unique constraint on (wish_id, participant1_id,
participant2_id) decides which of two concurrent first messages creates the
row; the loser re-reads it.
"""
import logging

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.application.wishes import get_wish, get_profiles, profile_snippet
from app.domain import permissions
from app.domain.quota import UserSubscription, allows
from app.errors import MessagingPaused, NotFound, QuotaExceeded, ValidationError, Forbidden
from app.infrastructure.db.models import Conversation, WishMessage, MessagePause
from app.utils.pagination import paginate
from app.utils.validation import normalize_text

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 2000


def canonical_pair(user_a: str, user_b: str) -> tuple[str, str]:
    if not user_a or not user_b:
        raise ValidationError("Both participants are required")
    if user_a == user_b:
        raise ValidationError("Cannot start a conversation with yourself")
    return (user_a, user_b) if user_a < user_b else (user_b, user_a)


def _find_conversation(db: Session, wish_id: str, p1: str, p2: str) -> Conversation | None:
    return db.query(Conversation).filter(
        Conversation.wish_id == wish_id,
        Conversation.participant1_id == p1,
        Conversation.participant2_id == p2,
    ).first()


def get_or_create_conversation(db: Session, wish_id: str, user_a: str, user_b: str) -> str:
    """
    Return the id of the conversation between two users on a wish.

    Argument order does not matter and repeated calls return the same id.
    """
    p1, p2 = canonical_pair(user_a, user_b)

    existing = _find_conversation(db, wish_id, p1, p2)
    if existing:
        return existing.id

    try:
        with db.begin_nested():
            conversation = Conversation(wish_id=wish_id, participant1_id=p1, participant2_id=p2)
            db.add(conversation)
        return conversation.id
    except IntegrityError:
        # Someone else created it between our lookup and insert
        logger.info("Conversation on wish %s created concurrently, re-reading", wish_id)
        existing = _find_conversation(db, wish_id, p1, p2)
        if existing is None:
            raise
        return existing.id


def is_messaging_paused(db: Session, wish_id: str) -> bool:
    return db.query(MessagePause.id).filter(MessagePause.wish_id == wish_id).first() is not None


def serialize_message(message: WishMessage) -> dict:
    return {
        "id": message.id,
        "wish_id": message.wish_id,
        "conversation_id": message.conversation_id,
        "sender_id": message.sender_id,
        "recipient_id": message.recipient_id,
        "message": message.message,
        "created_at": message.created_at.isoformat(),
    }


class CreateMessageUseCase:
    """Use case: send a message about a wish"""

    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        wish_id: str,
        sender_id: str,
        recipient_id: str,
        body: str,
        subscription: UserSubscription,
    ) -> WishMessage:
        """
        Raises:
            ValidationError: empty body or sender == recipient
            NotFound: wish does not exist
            MessagingPaused: the owner paused messaging on the wish
            QuotaExceeded: sender used up the per-wish message quota
        """
        body = normalize_text(body, "Message", MAX_MESSAGE_LENGTH)
        get_wish(self.db, wish_id)

        if is_messaging_paused(self.db, wish_id):
            raise MessagingPaused()

        used = self.db.query(WishMessage).filter(
            WishMessage.wish_id == wish_id,
            WishMessage.sender_id == sender_id,
        ).count()
        if not allows(used, subscription.messages_per_wish):
            raise QuotaExceeded("Message limit reached for this wish")

        conversation_id = get_or_create_conversation(self.db, wish_id, sender_id, recipient_id)
        last_seq = self.db.query(func.max(WishMessage.seq)).filter(
            WishMessage.conversation_id == conversation_id
        ).scalar()

        message = WishMessage(
            wish_id=wish_id,
            conversation_id=conversation_id,
            sender_id=sender_id,
            recipient_id=recipient_id,
            message=body,
            seq=(last_seq or 0) + 1,
        )
        self.db.add(message)
        self.db.commit()
        return message


def get_messages(db: Session, conversation_id: str, page: int = 1, page_size: int = 50) -> dict:
    """Messages of a conversation, oldest first."""
    query = (
        db.query(WishMessage)
        .filter(WishMessage.conversation_id == conversation_id)
        .order_by(WishMessage.created_at.asc(), WishMessage.seq.asc())
    )
    return paginate(query, page, page_size, serialize_message)


def get_conversation(db: Session, conversation_id: str, viewer_id: str) -> Conversation:
    conversation = db.query(Conversation).filter(Conversation.id == conversation_id).first()
    if not conversation:
        raise NotFound("Conversation not found")
    permissions.require(viewer_id, permissions.READ_CONVERSATION, conversation)
    return conversation


def get_wish_messages(db: Session, wish_id: str, viewer_id: str, page: int = 1, page_size: int = 20) -> dict:
    """
    Messages on a wish, newest first.

    The wish owner sees every message; anyone else sees the messages they
    sent or received, and must have at least one conversation on the wish.
    """
    wish = get_wish(db, wish_id)
    query = db.query(WishMessage).filter(WishMessage.wish_id == wish_id)

    if wish.user_id != viewer_id:
        participant = db.query(Conversation.id).filter(
            Conversation.wish_id == wish_id,
            or_(Conversation.participant1_id == viewer_id, Conversation.participant2_id == viewer_id),
        ).first()
        if participant is None:
            raise Forbidden("Unauthorized to view these messages")
        query = query.filter(
            or_(WishMessage.sender_id == viewer_id, WishMessage.recipient_id == viewer_id)
        )

    query = query.order_by(WishMessage.created_at.desc(), WishMessage.seq.desc())
    return paginate(query, page, page_size, serialize_message)


class ToggleMessagingPauseUseCase:
    """Use case: owner pauses or resumes messaging on a wish"""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, wish_id: str, user_id: str, paused: bool) -> bool:
        wish = get_wish(self.db, wish_id)
        permissions.require(user_id, permissions.PAUSE_MESSAGING, wish)

        if paused:
            if is_messaging_paused(self.db, wish_id):
                return True
            try:
                with self.db.begin_nested():
                    self.db.add(MessagePause(wish_id=wish_id, user_id=user_id))
            except IntegrityError:
                logger.info("Messaging on wish %s already paused", wish_id)
        else:
            self.db.query(MessagePause).filter(MessagePause.wish_id == wish_id).delete()

        self.db.commit()
        return is_messaging_paused(self.db, wish_id)


def get_conversations(db: Session, wish_id: str, user_id: str) -> list[dict]:
    """Conversations on a wish the user takes part in, with both participants."""
    conversations = (
        db.query(Conversation)
        .filter(
            Conversation.wish_id == wish_id,
            or_(Conversation.participant1_id == user_id, Conversation.participant2_id == user_id),
        )
        .order_by(Conversation.created_at.desc())
        .all()
    )
    profiles = get_profiles(
        db, [c.participant1_id for c in conversations] + [c.participant2_id for c in conversations]
    )
    return [
        {
            "id": c.id,
            "wish_id": c.wish_id,
            "participant1_id": c.participant1_id,
            "participant2_id": c.participant2_id,
            "participant1": profile_snippet(profiles.get(c.participant1_id)),
            "participant2": profile_snippet(profiles.get(c.participant2_id)),
            "created_at": c.created_at.isoformat(),
        }
        for c in conversations
    ]
