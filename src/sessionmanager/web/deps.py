from typing import Annotated, cast

from fastapi import Depends, Request

from sessionmanager.app import App
from sessionmanager.config import Config
from sessionmanager.core.modules.login_session.models import MAX_IP_ADDRESS_LENGTH, RequestContext


async def get_app(request: Request) -> App:
    return cast(App, request.app.state.app)


def get_source_ip(request: Request, trust_forwarded_for: bool) -> str:
    """Client address, or the first X-Forwarded-For entry when the proxy is trusted."""
    forwarded_for = request.headers.get("x-forwarded-for")
    if trust_forwarded_for and forwarded_for:
        return forwarded_for.split(",")[0].strip()[:MAX_IP_ADDRESS_LENGTH]
    return request.client.host if request.client else ""


async def get_request_context(request: Request) -> RequestContext:
    """Build the request context from the incoming request and its transport session."""
    config = cast(Config, request.app.state.config)
    return RequestContext(
        source_ip=get_source_ip(request, config.trust_forwarded_for),
        user_agent=request.headers.get("user-agent", ""),
        headers=request.headers,
        params=request.query_params,
        session=request.session,
    )


# Type aliases for dependencies
AppDep = Annotated[App, Depends(get_app)]
RequestContextDep = Annotated[RequestContext, Depends(get_request_context)]
