from fastapi import APIRouter
from pydantic import BaseModel, Field

from sessionmanager.app import LoginResult
from sessionmanager.web.deps import AppDep, RequestContextDep
from sessionmanager.web.openapi import ErrorResponse

router = APIRouter(tags=["auth"])


class LoginRequest(BaseModel):
    """Authentication request."""

    username: str = Field(..., description="Username for authentication")
    password: str = Field(..., description="Password for authentication")
    remember_me: bool = Field(False, description="Keep the login across browser restarts")


class SecurityIdResponse(BaseModel):
    """Anti-forgery token of the transport session."""

    security_id: str = Field(..., description="Value to send as X-SecurityID on mutating requests")


@router.post(
    "/auth/login",
    summary="Authenticate user",
    description="Authenticate with username and password. Starts a login session bound to the session cookie.",
    operation_id="login",
    responses={
        200: {"description": "Successfully authenticated"},
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
    },
)
async def login(login_data: LoginRequest, app: AppDep, context: RequestContextDep) -> LoginResult:
    """Authenticate user and create login session."""
    return await app.login(context, login_data.username, login_data.password, login_data.remember_me)


@router.post(
    "/auth/logout",
    summary="End session",
    description="Delete the login session of this browser and clear the session cookie.",
    operation_id="logout",
    status_code=204,
    responses={
        204: {"description": "Successfully logged out"},
        400: {"model": ErrorResponse, "description": "Missing or stale X-SecurityID"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def logout(app: AppDep, context: RequestContextDep) -> None:
    await app.logout(context)


@router.get(
    "/auth/security-id",
    summary="Get anti-forgery token",
    description="Get the anti-forgery token bound to the session cookie, issuing one if needed.",
    operation_id="getSecurityId",
)
async def get_security_id(app: AppDep, context: RequestContextDep) -> SecurityIdResponse:
    return SecurityIdResponse(security_id=await app.get_security_token(context))
