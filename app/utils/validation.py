"""
Validation utilities
"""
from app.errors import ValidationError


MAX_PAGE_SIZE = 100


def validate_page(page: int, page_size: int, max_page_size: int = MAX_PAGE_SIZE) -> tuple[bool, str | None]:
    """
    Check 1-based pagination parameters.

    Returns:
        (is_valid, error_message)

    Example:
        >>> validate_page(1, 20)
        (True, None)
        >>> validate_page(0, 20)
        (False, "page must be >= 1")
    """
    if page < 1:
        return False, "page must be >= 1"
    if page_size < 1:
        return False, "limit must be >= 1"
    if page_size > max_page_size:
        return False, f"limit must be <= {max_page_size}"
    return True, None


def validate_and_normalize_page(page: int | None, page_size: int | None, default_page_size: int = 20) -> tuple[int, int]:
    """
    Fill defaults and validate pagination (raise on error)

    Raises:
        ValidationError: if the values are out of range
    """
    page = 1 if page is None else page
    page_size = default_page_size if page_size is None else page_size
    is_valid, error = validate_page(page, page_size)
    if not is_valid:
        raise ValidationError(error)
    return page, page_size


def normalize_text(value: str | None, field: str, max_length: int) -> str:
    """Strip whitespace; reject empty or oversized text."""
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"{field} cannot be empty")
    if len(value) > max_length:
        raise ValidationError(f"{field} is limited to {max_length} characters")
    return value
