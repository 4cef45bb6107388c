from typing import Any, Mapping, Optional


class AppError(Exception):
    """Base class for errors that handlers translate into HTTP responses.

    Attributes:
        message: human-readable message
        details: optional mapping with extra context (field errors, validation info)
        code: optional machine-readable error code
        http_status: suggested HTTP status code for handlers
    """

    http_status = 500
    default_message = "Application error"
    default_code = "APPLICATION_ERROR"

    def __init__(self, message: Optional[str] = None, details: Optional[Mapping[str, Any]] = None, code: Optional[str] = None):
        message = message or self.default_message
        super().__init__(message)
        self.message = message
        self.details = details
        self.code = code or self.default_code

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = dict(self.details)
        return payload

    def __str__(self) -> str:
        return self.message


class ServiceValidationError(AppError):
    """Raised when input data is invalid or a precondition for a service call is not met.

    When the failure is tied to one field, ``details`` carries ``field`` and ``reason``.
    """

    http_status = 400
    default_message = "Invalid input"
    default_code = "SERVICE_VALIDATION_ERROR"

    @classmethod
    def for_field(cls, field: str, reason: str) -> "ServiceValidationError":
        return cls(f"{field}: {reason}", details={"field": field, "reason": reason})

    @classmethod
    def from_validation_error(cls, exc) -> "ServiceValidationError":
        """Build from a pydantic ``ValidationError``, keeping the first failing field."""
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or "document"
        reason = first.get("msg", "invalid value")
        if reason.startswith("Value error, "):
            reason = reason[len("Value error, "):]
        return cls.for_field(field, reason)

    @property
    def field(self) -> Optional[str]:
        return (self.details or {}).get("field")


class NotFoundError(AppError):
    """Raised when a requested resource was not found."""

    http_status = 404
    default_message = "Not found"
    default_code = "NOT_FOUND"


class ConflictError(AppError):
    """Raised when a resource conflict occurs (e.g., duplicate entry)."""

    http_status = 409
    default_message = "Conflict"
    default_code = "CONFLICT"


class UnauthorizedError(AppError):
    """Raised when authentication fails."""

    http_status = 401
    default_message = "Not authorized to access this route"
    default_code = "UNAUTHORIZED"


class ForbiddenError(AppError):
    """Raised when an authenticated user lacks the required role."""

    http_status = 403
    default_message = "Forbidden"
    default_code = "FORBIDDEN"


class LegacyDataError(Exception):
    """Raised by the migrator for a legacy record that cannot be reshaped.

    Never leaves a migration run: it is caught per record and reported.
    """
