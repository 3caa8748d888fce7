"""Error taxonomy for account operations. Each maps to one envelope status code."""


class AccountServiceError(Exception):
    """Base class; carries a human-readable message and the envelope status code."""

    status_code = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class AuthenticationError(AccountServiceError):
    """Missing, invalid or expired session token, or bad login credentials."""

    status_code = 401


class AuthorizationError(AccountServiceError):
    """Authenticated caller whose role does not allow the operation."""

    status_code = 403


class ValidationError(AccountServiceError):
    """Bad arguments: missing field, bad paging window, unknown sort key."""

    status_code = 400


class DuplicateKeyError(ValidationError):
    """A write collided with a unique index (email)."""

    def __init__(self, field: str, message: str | None = None) -> None:
        self.field = field
        super().__init__(message or f"{field.capitalize()} already exists")


class NotFoundError(AccountServiceError):
    """No account at the given id."""

    status_code = 404


class InternalError(AccountServiceError):
    """Store unavailable, hashing failure or signing failure."""

    status_code = 500
