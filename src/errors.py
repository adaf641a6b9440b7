"""Domain exceptions rendered as JSON error bodies by the API layer."""

from typing import Any


class EcoWearError(Exception):
    """Base application exception.

    Attributes:
        message: Human-readable message shown to the client verbatim
        error_type: Machine-readable error category
        status_code: HTTP status used when rendered by the API
        extra: Additional top-level fields merged into the response body
    """

    status_code: int = 500
    error_type: str = "internal_error"

    def __init__(self, message: str, error_type: str | None = None, **extra: Any):
        self.message = message
        if error_type is not None:
            self.error_type = error_type
        self.extra = extra
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        body: dict[str, Any] = {"error": self.message, "type": self.error_type}
        body.update(self.extra)
        return body


class ValidationError(EcoWearError):
    status_code = 400
    error_type = "validation"


class UnauthorizedError(EcoWearError):
    status_code = 401
    error_type = "unauthorized"


class ForbiddenError(EcoWearError):
    status_code = 403
    error_type = "forbidden"


class NotFoundError(EcoWearError):
    status_code = 404
    error_type = "not_found"


class ConflictError(EcoWearError):
    status_code = 409
    error_type = "conflict"


class InsufficientPointsError(EcoWearError):
    """Raised when a redemption costs more than the user's balance."""

    status_code = 400
    error_type = "insufficient_points"

    def __init__(self, required: int, current: int):
        self.required = required
        self.current = current
        super().__init__("Insufficient points", required=required, current=current)
