"""
Account persistence: the only code that issues queries against the users table.

Driver errors are translated here: a unique-index violation becomes
DuplicateKeyError, anything else from SQLAlchemy becomes InternalError. Every
failed write is rolled back so no partial record stays visible.
"""

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import DuplicateKeyError, InternalError, ValidationError
from app.models.user import User

logger = logging.getLogger(__name__)

# Public sort keys -> mapped columns.
SORTABLE_COLUMNS = {
    "username": User.username,
    "email": User.email,
    "address": User.address,
    "role": User.role,
    "createdAt": User.created_at,
}

# SQLSTATE for unique_violation (PostgreSQL).
PG_UNIQUE_VIOLATION = "23505"


def _is_unique_violation(exc: IntegrityError) -> bool:
    if getattr(exc.orig, "pgcode", None) == PG_UNIQUE_VIOLATION:
        return True
    return "UNIQUE constraint failed" in str(exc.orig)


class UserStore:
    """Repository for User rows bound to one SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: str) -> User | None:
        try:
            return self.session.get(User, user_id)
        except SQLAlchemyError as e:
            raise InternalError("Database error") from e

    def find_by_email(self, email: str) -> User | None:
        try:
            return self.session.query(User).filter(User.email == email).first()
        except SQLAlchemyError as e:
            raise InternalError("Database error") from e

    def find_page(
        self,
        sort_key: str | None = None,
        descending: bool = False,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[User]:
        """Return one window of accounts. Without sort_key, creation order is used."""
        order = []
        if sort_key is not None:
            column = SORTABLE_COLUMNS[sort_key]
            order.append(column.desc() if descending else column.asc())
        order.extend([User.created_at.asc(), User.id.asc()])

        query = self.session.query(User).order_by(*order)
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        try:
            return query.all()
        except SQLAlchemyError as e:
            raise InternalError("Database error") from e

    def count(self) -> int:
        try:
            return self.session.query(User).count()
        except SQLAlchemyError as e:
            raise InternalError("Database error") from e

    def insert(self, user: User) -> User:
        self.session.add(user)
        self._commit(refresh=user)
        return user

    def save(self, user: User) -> User:
        """Persist changes to an already-loaded account."""
        self._commit(refresh=user)
        return user

    def delete(self, user: User) -> None:
        self._commit(delete=user)

    def _commit(self, refresh: User | None = None, delete: User | None = None) -> None:
        try:
            if delete is not None:
                self.session.delete(delete)
            self.session.commit()
            if refresh is not None:
                self.session.refresh(refresh)
        except IntegrityError as e:
            self.session.rollback()
            if _is_unique_violation(e):
                logger.info("Rejected write: unique index violation on users")
                raise DuplicateKeyError("email") from e
            raise ValidationError("Missing or invalid account field") from e
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.exception("Database write failed")
            raise InternalError("Database error") from e
