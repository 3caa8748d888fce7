"""ORM model for user accounts (credentials and RBAC)."""

import enum
import uuid
from datetime import UTC, datetime

from sqlalchemy import CheckConstraint, Column, DateTime, String

from app.models.base import Base

# Field bounds shared by the column types, the request schemas and the CLI.
USERNAME_MIN_LEN = 1
USERNAME_MAX_LEN = 255
EMAIL_MIN_LEN = 3
EMAIL_MAX_LEN = 320
ADDRESS_MAX_LEN = 1024
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128


class Role(str, enum.Enum):
    """Account roles. Absence defaults to USER."""

    USER = "User"
    ADMIN = "Admin"


def _new_account_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(UTC)


class User(Base):
    """
    User account for JWT authentication and role-based access control.

    password_hash only ever holds a bcrypt hash; the plaintext never reaches
    this table. id is assigned on insert and never changes.
    """

    __tablename__ = "users"
    __table_args__ = (CheckConstraint("role IN ('User', 'Admin')", name="role"),)

    id = Column(String(36), primary_key=True, default=_new_account_id)
    username = Column(String(USERNAME_MAX_LEN), nullable=False)
    email = Column(String(EMAIL_MAX_LEN), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    address = Column(String(ADDRESS_MAX_LEN), nullable=False)
    role = Column(String(32), nullable=False, default=Role.USER.value)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        index=True,
    )
