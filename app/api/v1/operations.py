"""Single operation endpoint: every account query and mutation is dispatched here."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from app.api.v1.auth import get_current_caller
from app.core.database import get_db
from app.schemas.auth import SessionClaims
from app.schemas.users import OperationRequest, OperationResult
from app.services.accounts import AccountService
from app.services.user_store import UserStore

router = APIRouter()


def get_account_service(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
) -> AccountService:
    """Dependency: AccountService over this request's DB session and the app-wide credentials."""
    state = request.app.state
    return AccountService(
        store=UserStore(db),
        hasher=state.password_hasher,
        tokens=state.token_authority,
        default_page_size=state.settings.DEFAULT_PAGE_SIZE,
        max_page_size=state.settings.MAX_PAGE_SIZE,
    )


@router.post("", response_model=OperationResult)
def post_operation(
    body: OperationRequest,
    response: Response,
    service: Annotated[AccountService, Depends(get_account_service)],
    caller: Annotated[SessionClaims | None, Depends(get_current_caller)],
) -> OperationResult:
    """
    Run one account operation: getUser, getUsers, createUser, loginUser,
    updateUser or deleteUser.

    Send the token from loginUser as: Authorization: Bearer <token>. The
    response is always the result envelope; its status is also the HTTP status.
    """
    result = service.execute(body.operation, body.arguments, caller)
    response.status_code = result.status
    return result
