"""Pydantic request/response schemas."""

from app.schemas.auth import LoginInput, SessionClaims
from app.schemas.health import HealthResponse
from app.schemas.users import (
    OperationRequest,
    OperationResult,
    PageInfo,
    PaginationInput,
    SortInput,
    UpdateUserInput,
    UserInput,
    UserOut,
)

__all__ = [
    "HealthResponse",
    "LoginInput",
    "OperationRequest",
    "OperationResult",
    "PageInfo",
    "PaginationInput",
    "SessionClaims",
    "SortInput",
    "UpdateUserInput",
    "UserInput",
    "UserOut",
]
