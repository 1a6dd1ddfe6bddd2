"""Tests for conversations, message quota, pause toggle and message listing"""
from unittest.mock import patch

import pytest

from app.application import messaging
from app.application.messaging import (
    CreateMessageUseCase, ToggleMessagingPauseUseCase,
    canonical_pair, get_or_create_conversation, get_messages, get_wish_messages,
    get_conversations, get_conversation, is_messaging_paused,
)
from app.domain.quota import Quota, UserSubscription, TIER_FREE, FREE_PLAN_NAME
from app.errors import MessagingPaused, QuotaExceeded, ValidationError, NotFound, Forbidden
from app.infrastructure.db.models import Conversation, MessagePause, WishMessage


def _sub(limit):
    quota = Quota.unlimited() if limit is None else Quota.limited(limit)
    return UserSubscription(TIER_FREE, FREE_PLAN_NAME, Quota.limited(1), quota)


def _send(db, wish, sender, recipient, text="hi", sub=None):
    return CreateMessageUseCase(db).execute(wish.id, sender, recipient, text, sub or _sub(None))


# ======================================================================
# Conversation identity
# ======================================================================

class TestConversationIdentity:
    def test_canonical_pair_sorted(self):
        assert canonical_pair("b", "a") == ("a", "b")
        assert canonical_pair("a", "b") == ("a", "b")

    def test_same_user_rejected(self):
        with pytest.raises(ValidationError):
            canonical_pair("a", "a")

    def test_order_independent_and_idempotent(self, db_session, wish, owner, other):
        first = get_or_create_conversation(db_session, wish.id, owner.id, other.id)
        second = get_or_create_conversation(db_session, wish.id, other.id, owner.id)
        third = get_or_create_conversation(db_session, wish.id, owner.id, other.id)
        assert first == second == third
        assert db_session.query(Conversation).count() == 1

    def test_separate_per_wish_and_pair(self, db_session, wish, owner, other, third):
        a = get_or_create_conversation(db_session, wish.id, owner.id, other.id)
        b = get_or_create_conversation(db_session, wish.id, owner.id, third.id)
        c = get_or_create_conversation(db_session, "another-wish", owner.id, other.id)
        assert len({a, b, c}) == 3

    def test_concurrent_creation_reuses_winner(self, db_session, wish, owner, other):
        winner = get_or_create_conversation(db_session, wish.id, owner.id, other.id)
        db_session.commit()

        real_find = messaging._find_conversation
        calls = []

        def stale_then_real(*args):
            # First lookup misses, as if the other request had not committed yet
            calls.append(args)
            return None if len(calls) == 1 else real_find(*args)

        with patch.object(messaging, "_find_conversation", side_effect=stale_then_real):
            again = get_or_create_conversation(db_session, wish.id, other.id, owner.id)

        assert again == winner
        assert len(calls) == 2
        assert db_session.query(Conversation).count() == 1


# ======================================================================
# Sending messages
# ======================================================================

class TestCreateMessage:
    def test_creates_conversation_and_message(self, db_session, wish, owner, other):
        msg = _send(db_session, wish, other.id, owner.id, "  Can I help?  ")
        assert msg.message == "Can I help?"
        conversation = db_session.query(Conversation).first()
        assert msg.conversation_id == conversation.id
        assert (conversation.participant1_id, conversation.participant2_id) == canonical_pair(owner.id, other.id)

    def test_empty_message(self, db_session, wish, owner, other):
        with pytest.raises(ValidationError):
            _send(db_session, wish, other.id, owner.id, "   ")

    def test_missing_wish(self, db_session, owner, other):
        with pytest.raises(NotFound):
            CreateMessageUseCase(db_session).execute("missing", other.id, owner.id, "hi", _sub(None))

    def test_quota_m_then_refused(self, db_session, wish, owner, other):
        sub = _sub(3)
        for i in range(3):
            _send(db_session, wish, other.id, owner.id, f"msg {i}", sub)
        with pytest.raises(QuotaExceeded, match="Message limit reached for this wish"):
            _send(db_session, wish, other.id, owner.id, "one more", sub)
        assert db_session.query(WishMessage).count() == 3

    def test_quota_counts_per_sender(self, db_session, wish, owner, other):
        sub = _sub(1)
        _send(db_session, wish, other.id, owner.id, "hello", sub)
        _send(db_session, wish, owner.id, other.id, "hello back", sub)
        assert db_session.query(WishMessage).count() == 2

    def test_pause_checked_before_quota(self, db_session, wish, owner, other):
        sub = _sub(1)
        _send(db_session, wish, other.id, owner.id, "hello", sub)
        ToggleMessagingPauseUseCase(db_session).execute(wish.id, owner.id, True)
        with pytest.raises(MessagingPaused):
            _send(db_session, wish, other.id, owner.id, "again", sub)

    def test_unpause_restores(self, db_session, wish, owner, other):
        toggle = ToggleMessagingPauseUseCase(db_session)
        toggle.execute(wish.id, owner.id, True)
        with pytest.raises(MessagingPaused):
            _send(db_session, wish, other.id, owner.id)
        toggle.execute(wish.id, owner.id, False)
        assert _send(db_session, wish, other.id, owner.id).id


# ======================================================================
# Pause toggle
# ======================================================================

class TestMessagingPause:
    def test_pause_twice_keeps_one_marker(self, db_session, wish, owner):
        toggle = ToggleMessagingPauseUseCase(db_session)
        assert toggle.execute(wish.id, owner.id, True) is True
        assert toggle.execute(wish.id, owner.id, True) is True
        assert db_session.query(MessagePause).count() == 1

    def test_resume(self, db_session, wish, owner):
        toggle = ToggleMessagingPauseUseCase(db_session)
        toggle.execute(wish.id, owner.id, True)
        assert toggle.execute(wish.id, owner.id, False) is False
        assert not is_messaging_paused(db_session, wish.id)

    def test_resume_when_not_paused(self, db_session, wish, owner):
        assert ToggleMessagingPauseUseCase(db_session).execute(wish.id, owner.id, False) is False

    def test_only_owner(self, db_session, wish, other):
        with pytest.raises(Forbidden):
            ToggleMessagingPauseUseCase(db_session).execute(wish.id, other.id, True)


# ======================================================================
# Reading
# ======================================================================

class TestReadMessages:
    def test_conversation_ascending(self, db_session, wish, owner, other):
        first = _send(db_session, wish, other.id, owner.id, "first")
        _send(db_session, wish, owner.id, other.id, "second")
        _send(db_session, wish, other.id, owner.id, "third")

        page = get_messages(db_session, first.conversation_id, page=1, page_size=50)
        assert [m["message"] for m in page["items"]] == ["first", "second", "third"]
        assert page["total_count"] == 3

    def test_conversation_paging(self, db_session, wish, owner, other):
        first = _send(db_session, wish, other.id, owner.id, "m0")
        for i in range(1, 5):
            _send(db_session, wish, other.id, owner.id, f"m{i}")
        page = get_messages(db_session, first.conversation_id, page=2, page_size=2)
        assert [m["message"] for m in page["items"]] == ["m2", "m3"]
        assert page["total_pages"] == 3

    def test_owner_sees_all_wish_messages(self, db_session, wish, owner, other, third):
        _send(db_session, wish, other.id, owner.id, "from bob")
        _send(db_session, wish, third.id, owner.id, "from carol")
        result = get_wish_messages(db_session, wish.id, owner.id)
        assert [m["message"] for m in result["items"]] == ["from carol", "from bob"]

    def test_participant_sees_own_only(self, db_session, wish, owner, other, third):
        _send(db_session, wish, other.id, owner.id, "from bob")
        _send(db_session, wish, third.id, owner.id, "from carol")
        result = get_wish_messages(db_session, wish.id, other.id)
        assert [m["message"] for m in result["items"]] == ["from bob"]

    def test_stranger_forbidden(self, db_session, wish, owner, other, third):
        _send(db_session, wish, other.id, owner.id, "from bob")
        with pytest.raises(Forbidden):
            get_wish_messages(db_session, wish.id, third.id)

    def test_conversation_read_requires_participant(self, db_session, wish, owner, other, third):
        msg = _send(db_session, wish, other.id, owner.id)
        assert get_conversation(db_session, msg.conversation_id, owner.id).id == msg.conversation_id
        with pytest.raises(Forbidden):
            get_conversation(db_session, msg.conversation_id, third.id)

    def test_get_conversations_with_snippets(self, db_session, wish, owner, other, third):
        _send(db_session, wish, other.id, owner.id)
        _send(db_session, wish, third.id, owner.id)

        mine = get_conversations(db_session, wish.id, owner.id)
        assert len(mine) == 2

        bobs = get_conversations(db_session, wish.id, other.id)
        assert len(bobs) == 1
        snippets = {bobs[0]["participant1"]["id"]: bobs[0]["participant1"],
                    bobs[0]["participant2"]["id"]: bobs[0]["participant2"]}
        # bob's profile is not public
        assert snippets[other.id]["username"] == "Anonymous"
        assert snippets[owner.id]["username"] == "alice"
