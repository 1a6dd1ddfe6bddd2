"""
Wish domain rules

Constants and pure validation for wishes, amplification objectives,
milestones and reports. Nothing here touches the database.
"""
import uuid
from typing import Any, Dict, List

from app.errors import ValidationError, NotFound


# Categories (garden palette)
WISH_CATEGORIES = [
    "personal", "career", "health", "relationships", "financial", "travel",
    "creativity", "spiritual", "community", "environmental", "learning",
    "lifestyle", "other",
]

# Amplification objectives
OBJECTIVE_SUPPORT = "support"
OBJECTIVE_HELP = "help"
OBJECTIVE_MENTORSHIP = "mentorship"
AMPLIFICATION_OBJECTIVES = [OBJECTIVE_SUPPORT, OBJECTIVE_HELP, OBJECTIVE_MENTORSHIP]

# Report reasons
REPORT_REASONS = ["inappropriate", "spam", "offensive", "other"]
REPORT_STATUS_PENDING = "pending"

# Garden sort orders
SORT_NEWEST = "newest"
SORT_MOST_WATERED = "mostWatered"
SORT_ORDERS = [SORT_NEWEST, SORT_MOST_WATERED]

PROGRESS_MIN = 0
PROGRESS_MAX = 100

MAX_WISH_TEXT_LENGTH = 500
MAX_MILESTONE_TITLE_LENGTH = 200


def validate_wish_text(text: str | None) -> str:
    text = (text or "").strip()
    if not text:
        raise ValidationError("Wish text cannot be empty")
    if len(text) > MAX_WISH_TEXT_LENGTH:
        raise ValidationError(f"Wish text is limited to {MAX_WISH_TEXT_LENGTH} characters")
    return text


def validate_category(category: str | None) -> str:
    if category not in WISH_CATEGORIES:
        raise ValidationError(f"Unknown category: {category}")
    return category


def validate_objective(objective: str | None) -> str:
    if objective not in AMPLIFICATION_OBJECTIVES:
        raise ValidationError(
            f"Objective must be one of {', '.join(AMPLIFICATION_OBJECTIVES)}, got: {objective}"
        )
    return objective


def validate_progress(progress: Any) -> int:
    """
    Validate a progress percentage and round it to an int.

    Out-of-range values are rejected rather than clamped.

    Raises:
        ValidationError: non-numeric, NaN, or outside [0, 100]
    """
    if isinstance(progress, bool):
        raise ValidationError("Progress must be a number")
    try:
        value = float(progress)
    except (TypeError, ValueError):
        raise ValidationError("Progress must be a number")
    if value != value:  # NaN
        raise ValidationError("Progress must be a number")
    if value < PROGRESS_MIN or value > PROGRESS_MAX:
        raise ValidationError(f"Progress must be between {PROGRESS_MIN} and {PROGRESS_MAX}")
    return int(round(value))


# ---------------------------------------------------------------------------
# Milestones
# ---------------------------------------------------------------------------

def new_milestone(title: str | None, completed: bool = False) -> Dict[str, Any]:
    """Create a milestone dict with a fresh id."""
    title = (title or "").strip()
    if not title:
        raise ValidationError("Milestone title cannot be empty")
    if len(title) > MAX_MILESTONE_TITLE_LENGTH:
        raise ValidationError(f"Milestone title is limited to {MAX_MILESTONE_TITLE_LENGTH} characters")
    return {"id": str(uuid.uuid4()), "title": title, "completed": bool(completed)}


def normalize_milestones(raw: Any) -> List[Dict[str, Any]]:
    """
    Validate a full milestone list as sent by clients.

    Items without an id get one; titles are validated.
    """
    if not isinstance(raw, list):
        raise ValidationError("Invalid milestones format. Must be an array.")
    result = []
    for item in raw:
        if not isinstance(item, dict):
            raise ValidationError("Each milestone must be an object")
        milestone = new_milestone(item.get("title"), item.get("completed", False))
        if item.get("id"):
            milestone["id"] = str(item["id"])
        result.append(milestone)
    return result


def apply_milestone_update(
    milestones: List[Dict[str, Any]], milestone_id: str, updates: Dict[str, Any],
) -> List[Dict[str, Any]]:
    """
    Return a new milestone list with one milestone changed.

    Only ``title`` and ``completed`` can be updated.
    """
    unknown = set(updates) - {"title", "completed"}
    if unknown:
        raise ValidationError(f"Cannot update milestone fields: {', '.join(sorted(unknown))}")

    result = []
    found = False
    for milestone in milestones or []:
        milestone = dict(milestone)
        if milestone.get("id") == milestone_id:
            found = True
            if "title" in updates:
                milestone["title"] = new_milestone(updates["title"])["title"]
            if "completed" in updates:
                milestone["completed"] = bool(updates["completed"])
        result.append(milestone)

    if not found:
        raise NotFound(f"Milestone {milestone_id} not found")
    return result
