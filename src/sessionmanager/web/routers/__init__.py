from sessionmanager.web.routers.auth import router as auth_router
from sessionmanager.web.routers.login_sessions import router as login_sessions_router
from sessionmanager.web.routers.profile import router as profile_router
from sessionmanager.web.routers.users import router as users_router

__all__ = [
    "auth_router",
    "login_sessions_router",
    "profile_router",
    "users_router",
]
