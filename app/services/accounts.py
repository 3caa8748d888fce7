"""
Account operations: role-gated create/read/update/delete and login.

Every operation goes through AccountService.execute, which applies the role
gate, parses arguments and turns any error from the taxonomy into the uniform
result envelope. The typed methods below raise; only execute returns failures.
"""

import logging
import math
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from app.core.errors import (
    AccountServiceError,
    AuthenticationError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from app.core.security import PasswordHasher, TokenAuthority
from app.models.user import Role, User
from app.schemas.auth import LoginInput, SessionClaims
from app.schemas.users import (
    OperationResult,
    PageInfo,
    PaginationInput,
    SortInput,
    UpdateUserInput,
    UserInput,
    UserOut,
)
from app.services.access import Access, require_access
from app.services.user_store import SORTABLE_COLUMNS, UserStore

logger = logging.getLogger(__name__)

# operation name -> (required access, handler method name)
OPERATIONS: dict[str, tuple[Access, str]] = {
    "getUser": (Access.ADMIN, "_handle_get_user"),
    "getUsers": (Access.ADMIN, "_handle_get_users"),
    "createUser": (Access.ADMIN, "_handle_create_user"),
    "loginUser": (Access.PUBLIC, "_handle_login_user"),
    "updateUser": (Access.ADMIN, "_handle_update_user"),
    "deleteUser": (Access.ADMIN, "_handle_delete_user"),
}

INVALID_CREDENTIALS = "Invalid email or password"

# Largest OFFSET a signed 64-bit database integer can hold.
MAX_OFFSET = 2**63 - 1


def resolve_page_window(
    limit: int | None,
    page: int | None,
    default_page_size: int,
    max_page_size: int,
) -> tuple[int, int, int]:
    """
    Return (limit, page, offset) for a getUsers request.

    An absent limit means the default page size, for the window and for the
    offset alike; an absent page means page 1.
    """
    if limit is None:
        limit = default_page_size
    if page is None:
        page = 1
    if limit < 1:
        raise ValidationError("limit must be at least 1")
    if limit > max_page_size:
        raise ValidationError(f"limit must be at most {max_page_size}")
    if page < 1:
        raise ValidationError("page must be at least 1")
    offset = (page - 1) * limit
    if offset > MAX_OFFSET:
        raise ValidationError("page is too large")
    return limit, page, offset


def parse_sort(sort_by: str | None) -> tuple[str | None, bool]:
    """Split a sortBy value like "-email" into ("email", True)."""
    if not sort_by:
        return None, False
    descending = sort_by.startswith("-")
    key = sort_by[1:] if descending else sort_by
    if key not in SORTABLE_COLUMNS:
        raise ValidationError(
            f"Cannot sort by '{key}'; expected one of {', '.join(SORTABLE_COLUMNS)}"
        )
    return key, descending


def _describe_validation_error(exc: PydanticValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ())) or "arguments"
    return f"Invalid {location}: {first.get('msg', 'invalid value')}"


def _parse(model: type[BaseModel], value: Any) -> BaseModel:
    if value is None:
        value = {}
    return model.model_validate(value)


def _to_out(user: User) -> UserOut:
    try:
        return UserOut.model_validate(user)
    except PydanticValidationError as e:
        logger.error("Stored account %s failed output validation", user.id)
        raise InternalError("Stored account is invalid") from e


def _require_id(arguments: dict[str, Any]) -> str:
    user_id = arguments.get("id")
    if not isinstance(user_id, str) or not user_id.strip():
        raise ValidationError("id is required")
    return user_id.strip()


class AccountService:
    """Account operations over one store, hasher and token authority."""

    def __init__(
        self,
        store: UserStore,
        hasher: PasswordHasher,
        tokens: TokenAuthority,
        default_page_size: int = 10,
        max_page_size: int = 100,
    ) -> None:
        self.store = store
        self.hasher = hasher
        self.tokens = tokens
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    def execute(
        self,
        operation: str,
        arguments: dict[str, Any] | None,
        caller: SessionClaims | None,
    ) -> OperationResult:
        """Run one named operation for a (possibly anonymous) caller; never raises taxonomy errors."""
        if operation not in OPERATIONS:
            result = OperationResult(
                status=400, success=False, message=f"Unknown operation '{operation}'"
            )
        else:
            access, handler_name = OPERATIONS[operation]
            try:
                require_access(caller, access)
                result = getattr(self, handler_name)(arguments or {})
            except PydanticValidationError as e:
                result = self._failure(ValidationError(_describe_validation_error(e)))
            except AccountServiceError as e:
                result = self._failure(e)

        log_extra = {
            "operation": operation,
            "status": result.status,
            "caller_id": caller.id if caller else None,
        }
        if result.success:
            logger.info("Account operation completed", extra=log_extra)
        else:
            logger.info("Account operation failed: %s", result.message, extra=log_extra)
        return result

    @staticmethod
    def _failure(error: AccountServiceError) -> OperationResult:
        return OperationResult(status=error.status_code, success=False, message=error.message)

    # -- argument parsing -------------------------------------------------

    def _handle_get_user(self, arguments: dict[str, Any]) -> OperationResult:
        return self.get_user(_require_id(arguments))

    def _handle_get_users(self, arguments: dict[str, Any]) -> OperationResult:
        pagination = _parse(PaginationInput, arguments.get("pagination"))
        sort = _parse(SortInput, arguments.get("sort"))
        return self.get_users(pagination, sort)

    def _handle_create_user(self, arguments: dict[str, Any]) -> OperationResult:
        if arguments.get("userInput") is None:
            raise ValidationError("userInput is required")
        return self.create_user(_parse(UserInput, arguments["userInput"]))

    def _handle_login_user(self, arguments: dict[str, Any]) -> OperationResult:
        return self.login_user(_parse(LoginInput, arguments))

    def _handle_update_user(self, arguments: dict[str, Any]) -> OperationResult:
        user_id = _require_id(arguments)
        return self.update_user(user_id, _parse(UpdateUserInput, arguments.get("userInput")))

    def _handle_delete_user(self, arguments: dict[str, Any]) -> OperationResult:
        return self.delete_user(_require_id(arguments))

    # -- operations -------------------------------------------------------

    def _get_or_404(self, user_id: str) -> User:
        user = self.store.get(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def get_user(self, user_id: str) -> OperationResult:
        user = self._get_or_404(user_id)
        return OperationResult(
            status=200,
            success=True,
            message="User fetched successfully",
            data=_to_out(user),
        )

    def get_users(self, pagination: PaginationInput, sort: SortInput) -> OperationResult:
        limit, page, offset = resolve_page_window(
            pagination.limit, pagination.page, self.default_page_size, self.max_page_size
        )
        sort_key, descending = parse_sort(sort.sort_by)

        users = self.store.find_page(
            sort_key=sort_key, descending=descending, limit=limit, offset=offset
        )
        total_users = self.store.count()
        return OperationResult(
            status=200,
            success=True,
            message="Users fetched successfully",
            data=[_to_out(u) for u in users],
            page_info=PageInfo(
                total_users=total_users,
                total_pages=math.ceil(total_users / limit),
                current_page=page,
            ),
        )

    def create_user(self, user_input: UserInput) -> OperationResult:
        """Hash the password, then insert. A hashing failure inserts nothing."""
        user = User(
            username=user_input.username,
            email=user_input.email,
            address=user_input.address,
            role=Role.USER.value,
        )
        self.hasher.prepare_for_write(user, user_input.password)
        self.store.insert(user)
        return OperationResult(
            status=201,
            success=True,
            message="User created successfully",
            data=_to_out(user),
        )

    def login_user(self, credentials: LoginInput) -> OperationResult:
        user = self.store.find_by_email(credentials.email)
        if user is None:
            # Same bcrypt cost as a real check, so timing does not reveal unknown emails.
            self.hasher.verify_password(credentials.password, self.hasher.dummy_hash)
            raise AuthenticationError(INVALID_CREDENTIALS)
        if not self.hasher.verify_password(credentials.password, user.password_hash):
            raise AuthenticationError(INVALID_CREDENTIALS)
        token = self.tokens.issue(user)
        return OperationResult(
            status=200,
            success=True,
            message="Login successful",
            data=_to_out(user),
            token=token,
        )

    def update_user(self, user_id: str, changes: UpdateUserInput) -> OperationResult:
        """Change username/email/address only; the stored password hash is never touched."""
        user = self._get_or_404(user_id)
        for field in ("username", "email", "address"):
            value = getattr(changes, field)
            if value is not None:
                setattr(user, field, value)
        self.hasher.prepare_for_write(user)
        self.store.save(user)
        return OperationResult(
            status=200,
            success=True,
            message="User updated successfully",
            data=_to_out(user),
        )

    def delete_user(self, user_id: str) -> OperationResult:
        user = self._get_or_404(user_id)
        deleted = _to_out(user)
        self.store.delete(user)
        return OperationResult(
            status=200,
            success=True,
            message="User deleted successfully",
            data=deleted,
        )
