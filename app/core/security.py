"""Password hashing and JWT issuance/verification for authentication."""

import logging
from datetime import UTC, datetime, timedelta
from functools import cached_property
from typing import TYPE_CHECKING, Any

import bcrypt
import jwt
from pydantic import ValidationError as PydanticValidationError

from app.core.errors import AuthenticationError, InternalError
from app.schemas.auth import SessionClaims

if TYPE_CHECKING:
    from app.core.config import Settings
    from app.models.user import User

logger = logging.getLogger(__name__)

# bcrypt only reads the first 72 bytes of input.
BCRYPT_MAX_BYTES = 72


class PasswordHasher:
    """One-way, salted bcrypt transformation between a plaintext and its stored hash."""

    def __init__(self, rounds: int = 10) -> None:
        self.rounds = rounds

    def hash_password(self, plain_password: str) -> str:
        """Hash a plain-text password for storage. Each call uses a fresh salt."""
        pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
        try:
            hashed = bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=self.rounds))
        except (ValueError, TypeError, MemoryError) as e:
            logger.error("Password hashing failed: %s", type(e).__name__)
            raise InternalError("Password hashing failed") from e
        return hashed.decode("utf-8")

    @cached_property
    def dummy_hash(self) -> str:
        """Hash at the configured cost, checked against when no account matches a login."""
        return self.hash_password("placeholder-password-never-stored")

    def verify_password(self, plain_password: str, hashed: str) -> bool:
        """Verify a plain password against a stored hash. False on any mismatch."""
        pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
        try:
            return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
        except (ValueError, TypeError):
            return False

    def prepare_for_write(self, user: "User", plain_password: str | None = None) -> "User":
        """
        Set user.password_hash from a newly supplied plaintext.

        With no plaintext the stored hash is left untouched, so writes that do
        not change the password never re-hash an existing hash.
        """
        if plain_password is not None:
            user.password_hash = self.hash_password(plain_password)
        if not user.password_hash:
            raise InternalError("Refusing to persist an account without a credential")
        return user


class TokenAuthority:
    """
    Issues and validates signed, time-limited session tokens.

    The secret is fixed at construction; a new secret invalidates every
    outstanding token. There is no server-side session table and no revocation.
    """

    def __init__(self, secret: str, algorithm: str = "HS256", expire_minutes: int = 60) -> None:
        self._secret = secret
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    @classmethod
    def from_settings(cls, settings: "Settings") -> "TokenAuthority":
        return cls(
            secret=settings.JWT_SECRET.get_secret_value(),
            algorithm=settings.JWT_ALGORITHM,
            expire_minutes=settings.JWT_EXPIRE_MINUTES,
        )

    def issue(self, user: "User", now: datetime | None = None) -> str:
        """Create a JWT with sub (account id), username, email, role, iat and exp."""
        issued_at = now or datetime.now(UTC)
        payload: dict[str, Any] = {
            "sub": str(user.id),
            "username": user.username,
            "email": user.email,
            "role": user.role,
            "iat": issued_at,
            "exp": issued_at + timedelta(minutes=self.expire_minutes),
        }
        try:
            return jwt.encode(payload, self._secret, algorithm=self.algorithm)
        except (jwt.PyJWTError, TypeError, ValueError) as e:
            logger.error("Token signing failed: %s", type(e).__name__)
            raise InternalError("Token signing failed") from e

    def verify(self, token: str) -> SessionClaims:
        """
        Decode and validate a JWT; return its claims.

        Raises AuthenticationError for malformed tokens, a foreign signature,
        an expired token, or a payload without a usable account id or role.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp", "iat"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise AuthenticationError("Token expired") from e
        except jwt.PyJWTError as e:
            raise AuthenticationError("Invalid token") from e

        if not payload.get("sub"):
            raise AuthenticationError("Invalid token payload")
        try:
            return SessionClaims(
                id=payload["sub"],
                username=payload.get("username", ""),
                email=payload.get("email", ""),
                role=payload.get("role"),
            )
        except PydanticValidationError as e:
            raise AuthenticationError("Invalid token payload") from e
