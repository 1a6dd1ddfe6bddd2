"""
Error taxonomy shared by use cases and the HTTP layer.

Every error carries the HTTP status it maps to and a stable machine code;
the message is user-readable.
"""


class DandyError(Exception):
    status_code = 400
    code = "error"
    default_message = "Request failed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code}


class Unauthorized(DandyError):
    status_code = 401
    code = "unauthorized"
    default_message = "Unauthorized"


class Forbidden(DandyError):
    status_code = 403
    code = "forbidden"
    default_message = "Forbidden"


class PremiumRequired(Forbidden):
    code = "premium_required"
    default_message = "This feature is only available for premium users."


class QuotaExceeded(DandyError):
    """Usage ceiling of the user's plan reached; the UI answers with an upgrade prompt."""
    status_code = 403
    code = "quota_exceeded"
    default_message = "Quota exceeded"
    upgrade_required = True

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["upgrade_required"] = self.upgrade_required
        return data


class MessagingPaused(DandyError):
    status_code = 403
    code = "messaging_paused"
    default_message = "Messaging is paused for this wish"


class NotFound(DandyError):
    status_code = 404
    code = "not_found"
    default_message = "Not found"


class Conflict(DandyError):
    status_code = 409
    code = "conflict"
    default_message = "Conflict"


class ValidationError(DandyError, ValueError):
    status_code = 400
    code = "validation_error"
    default_message = "Invalid input"


class UpstreamError(DandyError):
    """Database or payment provider failure; the original message is only logged."""
    status_code = 502
    code = "upstream_error"
    default_message = "Upstream service failure"
