from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from uuid import UUID

from pydantic import BaseModel, Field

from sessionmanager.config import Config
from sessionmanager.core.core import Core
from sessionmanager.core.modules.auth.security_token import get_security_token
from sessionmanager.core.modules.login_session.models import LoginSession, LoginSessionView, RequestContext
from sessionmanager.core.modules.login_session.permissions import PermissionOverride
from sessionmanager.core.modules.user.models import User, UserView
from sessionmanager.errors import AccessDeniedError, NotFoundError, ValidationError

REMOVE_NOT_FOUND_MESSAGE = "Something went wrong."
REMOVE_DENIED_MESSAGE = "You do not have permission to delete this record."


class LoginResult(BaseModel):
    """Outcome of a successful login."""

    user: UserView = Field(..., description="The logged in user")
    security_id: str = Field(..., description="Anti-forgery token to send as X-SecurityID on mutating requests")


class App:
    """Facade for all application operations, validates permissions before delegating to Core."""

    def __init__(self, config: Config, login_session_override: PermissionOverride | None = None) -> None:
        self._core = Core(config)
        self._core.services.login_session.policy.extended_can = login_session_override

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    # === Authentication ===
    async def login(self, context: RequestContext, username: str, password: str, remember_me: bool) -> LoginResult:
        """Authenticate user and start a login session."""
        user = await self._core.services.auth.login(username, password, remember_me, context)
        return LoginResult(user=UserView.from_domain(user), security_id=get_security_token(context.session))

    async def logout(self, context: RequestContext) -> None:
        """End the login session of the requesting browser."""
        await self._core.services.access.ensure_authenticated(context)
        self._core.services.access.ensure_security_token(context)
        await self._core.services.auth.logout(context)

    async def get_security_token(self, context: RequestContext) -> str:
        """Get the anti-forgery token of the transport session."""
        return get_security_token(context.session)

    # === Profile ===
    async def get_current_user(self, context: RequestContext) -> UserView:
        """Get current authenticated user profile."""
        current_user = await self._core.services.access.ensure_authenticated(context)
        return UserView.from_domain(current_user)

    async def change_password(self, context: RequestContext, old_password: str, new_password: str) -> None:
        """Change password for current user."""
        current_user = await self._core.services.access.ensure_authenticated(context)
        self._core.services.access.ensure_security_token(context)
        await self._core.services.user.change_password(current_user.id, old_password, new_password)

    # === Users ===
    async def get_all_users(self, context: RequestContext) -> list[UserView]:
        """Get all users (requires authentication)."""
        await self._core.services.access.ensure_authenticated(context)
        users = self._core.services.user.get_all_users()
        return [UserView.from_domain(user) for user in users]

    async def create_user(self, context: RequestContext, username: str, password: str, permissions: list[str]) -> UserView:
        """Create a new user (security admin only)."""
        await self._core.services.access.ensure_admin(context)
        self._core.services.access.ensure_security_token(context)
        user = await self._core.services.user.create_user(username, password, permissions)
        return UserView.from_domain(user)

    async def delete_user(self, context: RequestContext, username: str) -> None:
        """Delete a user and their login sessions (security admin only, cannot delete self)."""
        current_user = await self._core.services.access.ensure_admin(context)
        self._core.services.access.ensure_security_token(context)
        user = self._resolve_user(username)

        if user.id == current_user.id:
            raise ValidationError("Cannot delete yourself")

        await self._core.services.user.delete_user(user.id)

    # === Login sessions ===
    async def get_login_sessions(self, context: RequestContext) -> list[LoginSessionView]:
        """Active login sessions of the current user, most recently used first."""
        current_user = await self._core.services.access.ensure_authenticated(context)
        login_sessions = await self._core.services.login_session.get_current_sessions(current_user)
        return await self._to_views(login_sessions, current_user, context)

    async def get_member_login_sessions(
        self, context: RequestContext, username: str, ip_address: str | None = None
    ) -> list[LoginSessionView]:
        """Login sessions of a member the current user may view.

        Without ip_address only active sessions are listed; with it, every session
        from that address.
        """
        current_user = await self._core.services.access.ensure_authenticated(context)
        member = self._resolve_user(username)
        service = self._core.services.login_session
        if ip_address:
            login_sessions = await service.search_sessions(member, ip_address)
        else:
            login_sessions = await service.get_current_sessions(member)
        visible = [login_session for login_session in login_sessions if service.policy.can_view(login_session, current_user)]
        return await self._to_views(visible, current_user, context)

    async def remove_login_session(self, context: RequestContext, login_session_id: str) -> None:
        """Delete a login session, logging its browser out.

        Checks run in order: anti-forgery token, existence, permission.
        """
        self._core.services.access.ensure_security_token(context)
        current_user = await self._core.services.auth.get_current_user(context)

        service = self._core.services.login_session
        login_session = await self._resolve_login_session(login_session_id)
        if not service.policy.can_delete(login_session, current_user):
            raise AccessDeniedError(REMOVE_DENIED_MESSAGE)

        await service.delete(login_session)

    # === Private resolver methods ===
    def _resolve_user(self, username: str) -> User:
        """Resolve username to User object. Raises NotFoundError if not found."""
        return self._core.services.user.get_user_by_username(username)

    async def _resolve_login_session(self, raw_id: str) -> LoginSession:
        """Resolve a login session id from a URL. Raises NotFoundError if malformed or unknown."""
        try:
            login_session_id = UUID(raw_id)
        except ValueError:
            raise NotFoundError(REMOVE_NOT_FOUND_MESSAGE) from None
        login_session = await self._core.services.login_session.get_login_session(login_session_id)
        if login_session is None:
            raise NotFoundError(REMOVE_NOT_FOUND_MESSAGE)
        return login_session

    async def _to_views(
        self, login_sessions: list[LoginSession], current_user: User, context: RequestContext
    ) -> list[LoginSessionView]:
        service = self._core.services.login_session
        current = await service.get_current_login_session(current_user, context)
        return [
            LoginSessionView.from_domain(
                login_session,
                friendly_user_agent=service.friendly_user_agent(login_session),
                is_current=current is not None and current.id == login_session.id,
            )
            for login_session in login_sessions
        ]
