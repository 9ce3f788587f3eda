"""Application error taxonomy. Each error carries the HTTP status it maps to."""


class ConfigurationError(Exception):
    """Raised at startup when required configuration is missing or unusable."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class AppError(Exception):
    """Base for errors that are translated into the response envelope."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    """Request data failed validation; errors are keyed by field name."""

    status_code = 400
    default_message = "Validation failed"

    def __init__(
        self,
        errors: dict[str, list[str]] | None = None,
        message: str | None = None,
    ) -> None:
        self.errors = errors or {}
        super().__init__(message)


class UnauthorizedError(AppError):
    status_code = 401
    default_message = "Authentication required"


class InvalidTokenError(UnauthorizedError):
    """A session token could not be accepted."""

    default_message = "Invalid token"


class TokenExpiredError(InvalidTokenError):
    default_message = "Token expired"


class TokenTypeMismatchError(InvalidTokenError):
    default_message = "Invalid token type"


class TokenMalformedError(InvalidTokenError):
    default_message = "Invalid token format"


class TokenSignatureError(InvalidTokenError):
    default_message = "Invalid token signature"


class ForbiddenError(AppError):
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Resource not found"


class ConflictError(AppError):
    status_code = 409
    default_message = "Resource already exists"


class InternalError(AppError):
    status_code = 500
    default_message = "Internal server error"
