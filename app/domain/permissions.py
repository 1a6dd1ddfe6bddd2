"""
Capability checks.

Every mutating operation asks ``require(user_id, action, resource)`` instead
of comparing owner ids inline.
"""
from typing import Any

from app.errors import Forbidden


UPDATE_WISH = "update_wish"
DELETE_WISH = "delete_wish"
AMPLIFY_WISH = "amplify_wish"
PAUSE_MESSAGING = "pause_messaging"
REMOVE_AMPLIFICATION = "remove_amplification"
READ_CONVERSATION = "read_conversation"

# Actions reserved to the owner (resource.user_id) of the resource
_OWNER_ACTIONS = {
    UPDATE_WISH,
    DELETE_WISH,
    AMPLIFY_WISH,
    PAUSE_MESSAGING,
    REMOVE_AMPLIFICATION,
}

_DENIED_MESSAGES = {
    UPDATE_WISH: "Wish not found or you do not have permission to update it.",
    DELETE_WISH: "You can only delete your own wishes",
    AMPLIFY_WISH: "Unauthorized",
    PAUSE_MESSAGING: "Only the wish owner can pause messaging",
    REMOVE_AMPLIFICATION: "You can only remove your own amplifications",
    READ_CONVERSATION: "Unauthorized to view this conversation",
}


def can(user_id: str | None, action: str, resource: Any) -> bool:
    if not user_id or resource is None:
        return False
    if action in _OWNER_ACTIONS:
        return getattr(resource, "user_id", None) == user_id
    if action == READ_CONVERSATION:
        return user_id in (resource.participant1_id, resource.participant2_id)
    raise ValueError(f"Unknown action: {action}")


def require(user_id: str | None, action: str, resource: Any) -> None:
    """Raise Forbidden unless ``can`` allows the action."""
    if not can(user_id, action, resource):
        raise Forbidden(_DENIED_MESSAGES.get(action))
