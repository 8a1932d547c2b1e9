from uuid import UUID

import bcrypt
import structlog

from sessionmanager.core.core import Service
from sessionmanager.core.modules.user.models import SECURITY_ADMIN, User
from sessionmanager.core.modules.user.validators import MAX_PASSWORD_BYTES, validate_password, validate_permissions
from sessionmanager.core.storage import Storage
from sessionmanager.errors import NotFoundError, ValidationError

logger = structlog.get_logger(__name__)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def check_password(password: str, password_hash: str) -> bool:
    """Check a password against a bcrypt hash; passwords bcrypt cannot hash never match."""
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        return False
    return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))


class UserService(Service):
    """Manages users with in-memory cache."""

    def __init__(self, storage: Storage) -> None:
        super().__init__(storage)
        self._repository = storage.get_repository("users", User)
        self._users: dict[UUID, User] = {}

    def get_user(self, user_id: UUID) -> User:
        """Get user by ID from cache."""
        if user_id not in self._users:
            raise NotFoundError(f"User '{user_id}' not found")
        return self._users[user_id]

    def get_user_by_username(self, username: str) -> User:
        """Get user by username from cache."""
        user = next((u for u in self._users.values() if u.username == username), None)
        if user is None:
            raise NotFoundError(f"User '{username}' not found")
        return user

    def has_user(self, user_id: UUID) -> bool:
        """Check if user exists by ID."""
        return user_id in self._users

    def has_username(self, username: str) -> bool:
        """Check if username exists."""
        return any(user.username == username for user in self._users.values())

    def get_all_users(self) -> list[User]:
        """Get all users from cache."""
        return list(self._users.values())

    async def create_user(self, username: str, password: str, permissions: list[str] | None = None) -> User:
        """Create user with hashed password."""
        if self.has_username(username):
            raise ValidationError(f"User '{username}' already exists")

        validate_password(password)
        permissions = permissions or []
        validate_permissions(permissions)
        user = User(username=username, password_hash=hash_password(password), permissions=permissions)
        await self._repository.insert(user)
        logger.info("user_created", username=username, permissions=permissions)
        return await self.update_user_cache(user.id)

    def verify_password(self, username: str, password: str) -> bool:
        """Verify password against stored hash."""
        user = next((u for u in self._users.values() if u.username == username), None)
        if user is None:
            return False
        return check_password(password, user.password_hash)

    async def change_password(self, user_id: UUID, old_password: str, new_password: str) -> None:
        """Change user password after verifying current password."""
        user = self.get_user(user_id)
        if not check_password(old_password, user.password_hash):
            raise ValidationError("Invalid current password")

        validate_password(new_password)
        await self._repository.update(user_id, {"password_hash": hash_password(new_password)})
        await self.update_user_cache(user_id)

    async def delete_user(self, user_id: UUID) -> None:
        """Delete a user together with all of their login sessions."""
        if not self.has_user(user_id):
            raise NotFoundError(f"User '{user_id}' not found")

        removed = await self.core.services.login_session.delete_user_sessions(user_id)
        await self._repository.delete(user_id)
        del self._users[user_id]
        logger.info("user_deleted", user_id=str(user_id), login_sessions_removed=removed)

    async def ensure_admin_user_exists(self) -> None:
        """Create default admin user if not exists."""
        if not self.has_username("admin"):
            await self.create_user("admin", self.core.config.admin_password, [SECURITY_ADMIN])

    async def update_all_users_cache(self) -> None:
        """Reload all users cache from storage."""
        users = await self._repository.find()
        self._users = {user.id: user for user in users}

    async def update_user_cache(self, user_id: UUID) -> User:
        """Reload a specific user cache from storage."""
        user = await self._repository.get(user_id)
        if user is None:
            raise NotFoundError(f"User '{user_id}' not found")
        self._users[user_id] = user
        return user

    async def on_start(self) -> None:
        """Initialize indexes, cache, and admin user."""
        await self._repository.create_index("username", unique=True)
        await self.update_all_users_cache()
        await self.ensure_admin_user_exists()
        logger.debug("user_service_started", user_count=len(self._users))

