"""Shared builders for tests: settings, in-memory database and seeded accounts."""

from datetime import UTC, datetime, timedelta

from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.database import build_engine, build_session_factory
from app.core.security import PasswordHasher, TokenAuthority
from app.models import Base, Role, User
from app.services.accounts import AccountService
from app.services.user_store import UserStore

TEST_SECRET = "test-secret-key-with-at-least-32-bytes!!"
OTHER_SECRET = "another-secret-key-with-at-least-32-bytes"


def make_settings(**overrides: object) -> Settings:
    values = {
        "DATABASE_URL": "sqlite://",
        "JWT_SECRET": TEST_SECRET,
        "BCRYPT_ROUNDS": 4,
        "APP_ENV": "dev",
    }
    values.update(overrides)
    return Settings(**values)


def make_session(settings: Settings | None = None) -> Session:
    """Fresh in-memory SQLite database with the users table created."""
    engine = build_engine(settings or make_settings())
    Base.metadata.create_all(engine)
    return build_session_factory(engine)()


def make_service(session: Session, hasher: PasswordHasher | None = None) -> AccountService:
    return AccountService(
        store=UserStore(session),
        hasher=hasher or PasswordHasher(rounds=4),
        tokens=TokenAuthority(TEST_SECRET),
    )


def seed_user(
    session: Session,
    username: str,
    email: str | None = None,
    password: str = "password123",
    role: Role = Role.USER,
    created_offset_sec: int = 0,
) -> User:
    """Insert one account with a deterministic creation time."""
    user = User(
        username=username,
        email=email or f"{username}@example.com",
        address=f"{username} street 1",
        role=role.value,
        created_at=datetime(2026, 1, 1, tzinfo=UTC) + timedelta(seconds=created_offset_sec),
    )
    PasswordHasher(rounds=4).prepare_for_write(user, password)
    return UserStore(session).insert(user)
