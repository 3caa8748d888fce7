"""Bearer-token resolution for the operations endpoint (get_current_caller)."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.errors import AuthenticationError, InternalError
from app.schemas.auth import SessionClaims
from app.services.user_store import UserStore

security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_caller(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> SessionClaims | None:
    """
    Dependency: resolve the caller from an optional Bearer JWT.

    No token yields None (anonymous; the operation's role gate decides). A
    token that fails verification, or whose account no longer exists, is
    rejected with 401 before any operation runs.
    """
    if credentials is None:
        return None
    try:
        claims = request.app.state.token_authority.verify(credentials.credentials)
    except AuthenticationError as e:
        raise _unauthorized(e.message)

    try:
        user = UserStore(db).get(claims.id)
    except InternalError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database unavailable",
        )
    if user is None:
        raise _unauthorized("User not found")
    try:
        return SessionClaims.model_validate(user)
    except PydanticValidationError:
        raise _unauthorized("Invalid account")
