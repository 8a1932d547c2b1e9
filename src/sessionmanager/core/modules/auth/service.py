import structlog

from sessionmanager.core.core import Service
from sessionmanager.core.modules.auth.security_token import issue_security_token
from sessionmanager.core.modules.login_session.models import ACTIVE_LOGIN_SESSION_KEY, RequestContext
from sessionmanager.core.modules.user.models import User
from sessionmanager.errors import AuthenticationError

logger = structlog.get_logger(__name__)


class AuthService(Service):
    """Logs users in and out and resolves the user behind a request."""

    async def login(self, username: str, password: str, remember_me: bool, context: RequestContext) -> User:
        """Verify credentials and attach a login session to the transport session."""
        if not self.core.services.user.verify_password(username, password):
            logger.info("login_failed", username=username, ip_address=context.source_ip)
            raise AuthenticationError("Invalid username or password")
        user = self.core.services.user.get_user_by_username(username)

        login_sessions = self.core.services.login_session
        login_session = await login_sessions.find(user, context) if remember_me else None
        if login_session is None:
            login_session = await login_sessions.generate(user, remember_me, context)
        else:
            login_session = await login_sessions.touch(login_session)

        # New identity, new transport session state
        context.session.clear()
        context.session[ACTIVE_LOGIN_SESSION_KEY] = str(login_session.id)
        issue_security_token(context.session)
        logger.info("user_logged_in", user_id=str(user.id), login_session_id=str(login_session.id))
        return user

    async def get_current_user(self, context: RequestContext) -> User | None:
        """Get the logged in user, or None when the login session is gone or idle too long."""
        login_sessions = self.core.services.login_session
        login_session = await login_sessions.get_current_login_session(None, context)
        if login_session is None:
            return None
        if not self.core.services.user.has_user(login_session.user_id):
            return None
        if not login_sessions.is_active(login_session):
            return None

        await login_sessions.touch(login_session)
        return self.core.services.user.get_user(login_session.user_id)

    async def get_authenticated_user(self, context: RequestContext) -> User:
        user = await self.get_current_user(context)
        if user is None:
            raise AuthenticationError("Not authenticated")
        return user

    async def logout(self, context: RequestContext) -> None:
        """End the login session of this browser."""
        login_session = await self.core.services.login_session.get_current_login_session(None, context)
        if login_session is not None:
            await self.core.services.login_session.delete(login_session)
        context.session.clear()
