"""Pydantic schemas for account operations and the uniform result envelope."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.models.user import (
    ADDRESS_MAX_LEN,
    EMAIL_MAX_LEN,
    EMAIL_MIN_LEN,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
    Role,
)


class UserInput(BaseModel):
    """Fields for createUser. Password is plaintext here and hashed before persistence."""

    username: str = Field(..., min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN)
    email: str = Field(..., min_length=EMAIL_MIN_LEN, max_length=EMAIL_MAX_LEN)
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    address: str = Field(..., min_length=1, max_length=ADDRESS_MAX_LEN)


class UpdateUserInput(BaseModel):
    """Fields for updateUser. Role and password are not updatable here; omitted fields are kept."""

    model_config = ConfigDict(extra="forbid")

    username: str | None = Field(
        default=None, min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN
    )
    email: str | None = Field(default=None, min_length=EMAIL_MIN_LEN, max_length=EMAIL_MAX_LEN)
    address: str | None = Field(default=None, min_length=1, max_length=ADDRESS_MAX_LEN)


class PaginationInput(BaseModel):
    limit: int | None = None
    page: int | None = None


class SortInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sort_by: str | None = Field(default=None, alias="sortBy")


class UserOut(BaseModel):
    """Account as returned to callers (never includes the password hash)."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    username: str
    email: str
    address: str
    role: Role
    created_at: datetime | None = Field(default=None, alias="createdAt")


class PageInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_users: int = Field(alias="totalUsers")
    total_pages: int = Field(alias="totalPages")
    current_page: int = Field(alias="currentPage")


class OperationRequest(BaseModel):
    """Body of POST /operations: one named operation and its arguments."""

    operation: str = Field(..., min_length=1, max_length=64)
    arguments: dict[str, Any] = Field(default_factory=dict)


class OperationResult(BaseModel):
    """
    Uniform result envelope returned by every operation, success or failure.

    data holds one account or a list of accounts; token is set by loginUser only;
    page_info by getUsers only.
    """

    model_config = ConfigDict(populate_by_name=True)

    status: int
    success: bool
    message: str | None = None
    data: UserOut | list[UserOut] | None = None
    token: str | None = None
    page_info: PageInfo | None = Field(default=None, alias="pageInfo")
