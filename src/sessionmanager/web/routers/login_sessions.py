"""Login session endpoints of the administration panel."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from sessionmanager.core.modules.login_session.models import LoginSessionView
from sessionmanager.errors import UserError
from sessionmanager.web.deps import AppDep, RequestContextDep
from sessionmanager.web.error_handlers import create_errors_response
from sessionmanager.web.openapi import ErrorResponse, ErrorsResponse

router = APIRouter(prefix="/loginsession", tags=["login sessions"])


@router.get(
    "",
    summary="List my login sessions",
    description="Active login sessions of the current user, most recently used first.",
    operation_id="listLoginSessions",
    responses={
        200: {"description": "Active login sessions"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_login_sessions(app: AppDep, context: RequestContextDep) -> list[LoginSessionView]:
    return await app.get_login_sessions(context)


@router.get(
    "/member/{username}",
    summary="List a member's login sessions",
    description=(
        "Login sessions of a member that the current user may view. "
        "Filtering by ip_address lists every session from that address, not only active ones."
    ),
    operation_id="listMemberLoginSessions",
    responses={
        200: {"description": "Login sessions"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "User not found"},
    },
)
async def list_member_login_sessions(
    username: str, app: AppDep, context: RequestContextDep, ip_address: str | None = None
) -> list[LoginSessionView]:
    return await app.get_member_login_sessions(context, username, ip_address)


@router.delete(
    "/remove/{login_session_id}",
    summary="Remove login session",
    description="Delete a login session, logging out the browser that uses it. Requires the X-SecurityID header.",
    operation_id="removeLoginSession",
    responses={
        200: {"description": "Login session removed"},
        400: {"model": ErrorsResponse, "description": "Stale anti-forgery token, unknown session, or no permission"},
    },
)
async def remove_login_session(login_session_id: str, app: AppDep, context: RequestContextDep) -> JSONResponse:
    try:
        await app.remove_login_session(context, login_session_id)
    except UserError as e:
        return create_errors_response(str(e))
    return JSONResponse({"success": True})
