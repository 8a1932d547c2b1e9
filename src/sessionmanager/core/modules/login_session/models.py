"""Login session models."""

from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from sessionmanager.core.db import MongoModel
from sessionmanager.utils import now

# Transport session key holding the id of the login session behind the browser
ACTIVE_LOGIN_SESSION_KEY = "activeLoginSession"

# Long enough for any textual IPv6 address
MAX_IP_ADDRESS_LENGTH = 45


class LoginSession(MongoModel):
    """One authenticated login of a user.

    Indexed on last_accessed (default listing order), ip_address (admin search)
    and user_id.
    """

    user_id: UUID
    created_at: datetime = Field(default_factory=now)  # "Signed in"
    last_accessed: datetime = Field(default_factory=now)
    ip_address: str = Field("", max_length=MAX_IP_ADDRESS_LENGTH)
    user_agent: str = ""
    persistent: bool = False  # "Remember me" login


class LoginSessionView(BaseModel):
    """Login session as listed in the administration panel."""

    id: UUID = Field(..., description="Login session ID")
    ip_address: str = Field(..., description="IP address the login came from")
    user_agent: str = Field(..., description="Raw user agent string")
    friendly_user_agent: str = Field(..., description="Browser and operating system, e.g. 'Firefox on Ubuntu'")
    created_at: datetime = Field(..., description="When the user signed in")
    last_accessed: datetime = Field(..., description="Last authenticated request made with this session")
    persistent: bool = Field(..., description="Whether the login was remembered across browser restarts")
    is_current: bool = Field(..., description="Whether this is the session of the requesting browser")

    @classmethod
    def from_domain(cls, login_session: LoginSession, friendly_user_agent: str, is_current: bool) -> "LoginSessionView":
        return cls(
            id=login_session.id,
            ip_address=login_session.ip_address,
            user_agent=login_session.user_agent,
            friendly_user_agent=friendly_user_agent,
            created_at=login_session.created_at,
            last_accessed=login_session.last_accessed,
            persistent=login_session.persistent,
            is_current=is_current,
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class RequestContext:
    """What the login session registry needs to know about the current HTTP request.

    `session` is the cookie-backed transport session; it is mutated in place.
    """

    source_ip: str
    user_agent: str
    headers: Mapping[str, str] = field(default_factory=dict)
    params: Mapping[str, str] = field(default_factory=dict)
    session: MutableMapping[str, Any] = field(default_factory=dict)

    def header_value(self, name: str) -> str | None:
        """Get a request header, ignoring case."""
        name = name.lower()
        return next((value for key, value in self.headers.items() if key.lower() == name), None)
