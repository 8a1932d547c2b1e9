from fastapi import APIRouter
from pydantic import BaseModel, Field

from sessionmanager.core.modules.user.models import UserView
from sessionmanager.web.deps import AppDep, RequestContextDep
from sessionmanager.web.openapi import ErrorResponse

router = APIRouter(tags=["users"])


class CreateUserRequest(BaseModel):
    """Request to create a new user."""

    username: str = Field(..., min_length=1, description="Username for the new user")
    password: str = Field(..., min_length=1, description="Password for the new user")
    permissions: list[str] = Field(default_factory=list, description="Permission codes, e.g. SECURITY_ADMIN")


@router.get(
    "/users",
    summary="List all users",
    description="Get all users in the system.",
    operation_id="listUsers",
    responses={
        200: {"description": "List of all users"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_users(app: AppDep, context: RequestContextDep) -> list[UserView]:
    return await app.get_all_users(context)


@router.post(
    "/users",
    summary="Create new user",
    description="Create a new user account. Only accessible by security administrators.",
    operation_id="createUser",
    responses={
        201: {"description": "User created successfully"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Security administration privileges required"},
        400: {"model": ErrorResponse, "description": "Invalid request or anti-forgery token"},
    },
    status_code=201,
)
async def create_user(create_data: CreateUserRequest, app: AppDep, context: RequestContextDep) -> UserView:
    return await app.create_user(context, create_data.username, create_data.password, create_data.permissions)


@router.delete(
    "/users/{username}",
    summary="Delete user",
    description="Delete a user account and all of its login sessions. Only accessible by security administrators.",
    operation_id="deleteUser",
    responses={
        204: {"description": "User deleted successfully"},
        400: {"model": ErrorResponse, "description": "Self-deletion or invalid anti-forgery token"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Security administration privileges required"},
        404: {"model": ErrorResponse, "description": "User not found"},
    },
    status_code=204,
)
async def delete_user(username: str, app: AppDep, context: RequestContextDep) -> None:
    await app.delete_user(context, username)
