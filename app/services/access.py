"""Role gate shared by every account operation."""

import enum

from app.core.errors import AuthenticationError, AuthorizationError
from app.models.user import Role
from app.schemas.auth import SessionClaims


class Access(enum.Enum):
    """Privilege an operation requires."""

    PUBLIC = "public"
    AUTHENTICATED = "authenticated"
    ADMIN = "admin"


def require_access(caller: SessionClaims | None, required: Access) -> SessionClaims | None:
    """
    Check the resolved caller against an operation's required access.

    Raises AuthenticationError when there is no caller and the operation is not
    public, and AuthorizationError when the caller's role is insufficient.
    """
    if required is Access.PUBLIC:
        return caller
    if caller is None:
        raise AuthenticationError("Not authenticated")
    if required is Access.ADMIN and caller.role != Role.ADMIN:
        raise AuthorizationError("Forbidden")
    return caller
