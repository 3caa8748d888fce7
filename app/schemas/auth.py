"""Request/response schemas for authentication."""

from pydantic import BaseModel, ConfigDict, Field

from app.models.user import EMAIL_MAX_LEN, EMAIL_MIN_LEN, PASSWORD_MAX_LEN, Role


class LoginInput(BaseModel):
    """Arguments of loginUser."""

    email: str = Field(
        ..., min_length=EMAIL_MIN_LEN, max_length=EMAIL_MAX_LEN, description="Account email"
    )
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN, description="Password")


class SessionClaims(BaseModel):
    """Verified caller identity decoded from a session token."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., min_length=1)
    username: str
    email: str
    role: Role
