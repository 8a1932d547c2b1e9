from datetime import timedelta
from uuid import UUID

import structlog

from sessionmanager.core.core import Service
from sessionmanager.core.modules.login_session.models import ACTIVE_LOGIN_SESSION_KEY, LoginSession, RequestContext
from sessionmanager.core.modules.login_session.permissions import LoginSessionPolicy
from sessionmanager.core.modules.login_session.user_agent import describe_user_agent
from sessionmanager.core.modules.user.models import User
from sessionmanager.core.query import Condition, Operator, Query, SortKey
from sessionmanager.core.storage import Storage
from sessionmanager.errors import InvalidOwnerError, MissingRequestContextError
from sessionmanager.utils import now

logger = structlog.get_logger(__name__)

# Canonical order of every login session listing
DEFAULT_SORT = [SortKey(field="last_accessed", descending=True)]


class LoginSessionService(Service):
    """Registry of login sessions: the only place that creates, queries and deletes them."""

    def __init__(self, storage: Storage) -> None:
        super().__init__(storage)
        self._repository = storage.get_repository("login_sessions", LoginSession)
        self.policy = LoginSessionPolicy()

    async def on_start(self) -> None:
        """Create indexes on startup."""
        await self._repository.create_index("last_accessed")
        await self._repository.create_index("ip_address")
        await self._repository.create_index("user_id")

    async def generate(self, user: User, persistent: bool, context: RequestContext) -> LoginSession:
        """Record a new login for the user, right after authentication succeeded."""
        if not self.core.services.user.has_user(user.id):
            raise InvalidOwnerError(f"Cannot create a login session for unknown user '{user.id}'")

        timestamp = now()
        login_session = LoginSession(
            user_id=user.id,
            created_at=timestamp,
            last_accessed=timestamp,
            ip_address=context.source_ip,
            user_agent=context.user_agent,
            persistent=persistent,
        )
        await self._repository.insert(login_session)
        logger.info("login_session_generated", login_session_id=str(login_session.id), user_id=str(user.id), persistent=persistent)
        return login_session

    async def find(self, user: User, context: RequestContext) -> LoginSession | None:
        """Find a persistent login of the user from the same IP address and user agent.

        Several sessions can match when the same browser logged in more than once;
        any one of them is returned.
        """
        query = Query.where(ip_address=context.source_ip, user_agent=context.user_agent, user_id=user.id, persistent=True)
        return await self._repository.find_one(query)

    async def get_login_session(self, login_session_id: UUID) -> LoginSession | None:
        return await self._repository.get(login_session_id)

    async def get_current_login_session(
        self, user: User | None = None, context: RequestContext | None = None
    ) -> LoginSession | None:
        """Resolve the login session backing the request from the transport session.

        When a user is given, a session belonging to somebody else is not returned.
        """
        if context is None:
            raise MissingRequestContextError("A request context is required to resolve the current login session")

        raw_id = context.session.get(ACTIVE_LOGIN_SESSION_KEY)
        if raw_id is None:
            return None
        try:
            login_session_id = UUID(str(raw_id))
        except ValueError:
            return None

        login_session = await self._repository.get(login_session_id)
        if login_session is None or (user is not None and login_session.user_id != user.id):
            return None
        return login_session

    async def is_current(self, login_session: LoginSession, user: User | None, context: RequestContext | None) -> bool:
        current = await self.get_current_login_session(user, context)
        if current is None:
            return False
        return current.id == login_session.id

    def get_session_lifetime(self) -> int:
        """Seconds of inactivity after which a non-persistent session stops counting as active."""
        config = self.core.config
        if config.session_timeout:
            return config.session_timeout
        return config.default_session_lifetime

    def is_active(self, login_session: LoginSession) -> bool:
        if login_session.persistent:
            return True
        return login_session.last_accessed >= now() - timedelta(seconds=self.get_session_lifetime())

    async def get_current_sessions(self, user: User) -> list[LoginSession]:
        """Active sessions of the user, most recently used first."""
        max_age = now() - timedelta(seconds=self.get_session_lifetime())
        query = Query(
            all_of=[Condition(field="user_id", value=user.id)],
            any_of=[
                Condition(field="persistent", value=True),
                Condition(field="last_accessed", operator=Operator.GTE, value=max_age),
            ],
        )
        return await self._repository.find(query, DEFAULT_SORT)

    async def search_sessions(self, user: User, ip_address: str) -> list[LoginSession]:
        """All sessions of the user from an IP address, active or not."""
        return await self._repository.find(Query.where(user_id=user.id, ip_address=ip_address), DEFAULT_SORT)

    async def touch(self, login_session: LoginSession) -> LoginSession:
        """Record activity on a session."""
        updated = await self._repository.update(login_session.id, {"last_accessed": now()})
        return updated if updated is not None else login_session

    async def delete(self, login_session: LoginSession) -> None:
        """Delete a session, logging its browser out. Deleting twice is a no-op."""
        if await self._repository.delete(login_session.id):
            logger.info("login_session_deleted", login_session_id=str(login_session.id), user_id=str(login_session.user_id))

    async def delete_user_sessions(self, user_id: UUID) -> int:
        """Delete every session of a user."""
        return await self._repository.delete_many(Query.where(user_id=user_id))

    def friendly_user_agent(self, login_session: LoginSession) -> str:
        return describe_user_agent(login_session.user_agent)
