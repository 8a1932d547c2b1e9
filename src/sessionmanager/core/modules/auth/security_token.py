"""Anti-forgery token bound to the transport session."""

import secrets
from collections.abc import MutableMapping
from typing import Any

from sessionmanager.core.modules.login_session.models import RequestContext

SECURITY_TOKEN_KEY = "SecurityID"
SECURITY_TOKEN_HEADER = "X-SecurityID"


def issue_security_token(session: MutableMapping[str, Any]) -> str:
    """Replace the token of the transport session with a fresh one."""
    token = secrets.token_urlsafe(32)
    session[SECURITY_TOKEN_KEY] = token
    return token


def get_security_token(session: MutableMapping[str, Any]) -> str:
    """Get the token of the transport session, issuing one if needed."""
    token = session.get(SECURITY_TOKEN_KEY)
    if not token:
        return issue_security_token(session)
    return str(token)


def check_request(context: RequestContext) -> bool:
    """Check the token sent in the X-SecurityID header or SecurityID query parameter."""
    expected = context.session.get(SECURITY_TOKEN_KEY)
    if not expected:
        return False

    submitted = context.header_value(SECURITY_TOKEN_HEADER) or context.params.get(SECURITY_TOKEN_KEY)
    if not submitted:
        return False
    return secrets.compare_digest(str(expected).encode("utf-8"), submitted.encode("utf-8"))
