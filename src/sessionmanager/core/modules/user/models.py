from uuid import UUID

from pydantic import BaseModel, Field

from sessionmanager.core.db import MongoModel

# Grants management of every user's login sessions
SECURITY_ADMIN = "SECURITY_ADMIN"


class User(MongoModel):
    """User domain model with credentials."""

    username: str
    password_hash: str  # bcrypt hash
    permissions: list[str] = Field(default_factory=list)

    def has_permission(self, code: str) -> bool:
        return code in self.permissions


class UserView(BaseModel):
    """User account information (API representation)."""

    id: UUID = Field(..., description="User ID")
    username: str = Field(..., description="Username")
    permissions: list[str] = Field(default_factory=list, description="Permission codes granted to the user")

    @classmethod
    def from_domain(cls, user: User) -> "UserView":
        """Create view model from domain model."""
        return cls(id=user.id, username=user.username, permissions=list(user.permissions))
