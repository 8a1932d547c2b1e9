from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from sessionmanager.app import App
from sessionmanager.config import Config
from sessionmanager.errors import UserError
from sessionmanager.web.error_handlers import general_exception_handler, user_error_handler
from sessionmanager.web.openapi import SESSION_COOKIE, set_custom_openapi
from sessionmanager.web.routers import auth_router, login_sessions_router, profile_router, users_router

# Starlette default: two weeks
DEFAULT_COOKIE_MAX_AGE = 14 * 24 * 60 * 60


def create_fastapi_app(app_instance: App, config: Config) -> FastAPI:
    """Create and configure FastAPI application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        """FastAPI application lifespan management."""
        async with app_instance.lifespan():
            yield

    app = FastAPI(
        title="Session Manager API",
        lifespan=lifespan,
    )
    # Stored before startup so request dependencies work even without lifespan events
    app.state.app = app_instance
    app.state.config = config

    # Transport session: carries the login session id and the anti-forgery token.
    # session_timeout bounds both the cookie and the active login session window.
    app.add_middleware(
        SessionMiddleware,
        secret_key=config.session_secret_key,
        session_cookie=SESSION_COOKIE,
        max_age=config.session_timeout or DEFAULT_COOKIE_MAX_AGE,
        same_site="lax",
    )

    if config.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Health check endpoint (at root level, not versioned)
    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    # API v1 routes
    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(profile_router, prefix="/api/v1")
    app.include_router(users_router, prefix="/api/v1")
    # Administration panel routes
    app.include_router(login_sessions_router, prefix="/admin")

    # Register error handlers
    app.add_exception_handler(UserError, user_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    set_custom_openapi(app)

    return app
