"""Who may act on login sessions."""

from collections.abc import Callable
from enum import StrEnum

from sessionmanager.core.modules.login_session.models import LoginSession
from sessionmanager.core.modules.user.models import SECURITY_ADMIN, User


class LoginSessionAction(StrEnum):
    CREATE = "create"
    VIEW = "view"
    EDIT = "edit"
    DELETE = "delete"


# Returns True/False to decide, or None to fall through to the default rule
PermissionOverride = Callable[[LoginSessionAction, LoginSession | None, User | None], bool | None]


class LoginSessionPolicy:
    """Permission rule for login sessions.

    Users manage their own sessions; holders of SECURITY_ADMIN manage everyone's.
    Creating a session through the administration panel requires SECURITY_ADMIN.
    Nobody acts without being logged in.
    """

    def __init__(self, extended_can: PermissionOverride | None = None) -> None:
        self.extended_can = extended_can

    def can_create(self, user: User | None) -> bool:
        extended = self._extended(LoginSessionAction.CREATE, None, user)
        if extended is not None:
            return extended

        if user is None:
            return False
        return user.has_permission(SECURITY_ADMIN)

    def can_view(self, login_session: LoginSession, user: User | None) -> bool:
        return self.handle_permission(LoginSessionAction.VIEW, login_session, user)

    def can_edit(self, login_session: LoginSession, user: User | None) -> bool:
        return self.handle_permission(LoginSessionAction.EDIT, login_session, user)

    def can_delete(self, login_session: LoginSession, user: User | None) -> bool:
        return self.handle_permission(LoginSessionAction.DELETE, login_session, user)

    def handle_permission(self, action: LoginSessionAction, login_session: LoginSession, user: User | None) -> bool:
        """Shared rule for view, edit and delete."""
        extended = self._extended(action, login_session, user)
        if extended is not None:
            return extended

        if user is None:
            return False
        if login_session.user_id == user.id:
            return True
        return user.has_permission(SECURITY_ADMIN)

    def _extended(self, action: LoginSessionAction, login_session: LoginSession | None, user: User | None) -> bool | None:
        if self.extended_can is None:
            return None
        return self.extended_can(action, login_session, user)
