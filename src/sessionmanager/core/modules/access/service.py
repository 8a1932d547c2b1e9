from sessionmanager.core.core import Service
from sessionmanager.core.modules.auth.security_token import check_request
from sessionmanager.core.modules.login_session.models import RequestContext
from sessionmanager.core.modules.user.models import SECURITY_ADMIN, User
from sessionmanager.errors import AccessDeniedError, SecurityTokenError


class AccessService(Service):
    async def ensure_authenticated(self, context: RequestContext) -> User:
        """Ensure the user is authenticated."""
        return await self.core.services.auth.get_authenticated_user(context)

    async def ensure_admin(self, context: RequestContext) -> User:
        """Ensure the authenticated user holds SECURITY_ADMIN, raise AccessDeniedError if not."""
        user = await self.core.services.auth.get_authenticated_user(context)
        if not user.has_permission(SECURITY_ADMIN):
            raise AccessDeniedError("Security administration privileges required")
        return user

    def ensure_security_token(self, context: RequestContext) -> None:
        """Ensure the request echoes the anti-forgery token of its transport session."""
        if not check_request(context):
            raise SecurityTokenError
