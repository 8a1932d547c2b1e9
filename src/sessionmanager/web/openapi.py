from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from pydantic import BaseModel, Field

from sessionmanager.core.modules.auth.security_token import SECURITY_TOKEN_HEADER

# Name of the signed transport session cookie
SESSION_COOKIE = "session"


def set_custom_openapi(app: FastAPI) -> None:
    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title="Session Manager API",
            version="0.1.0",
            summary="Login session tracking and revocation for the administration panel",
            routes=app.routes,
        )

        openapi_schema.setdefault("components", {})["securitySchemes"] = {
            "SessionCookie": {
                "type": "apiKey",
                "in": "cookie",
                "name": SESSION_COOKIE,
                "description": "Signed transport session cookie set by login",
            },
            "SecurityID": {
                "type": "apiKey",
                "in": "header",
                "name": SECURITY_TOKEN_HEADER,
                "description": "Anti-forgery token returned by login, required on mutating requests",
            },
        }

        openapi_schema["security"] = [{"SessionCookie": []}]

        # Remove security from public endpoints
        public_endpoints = {
            ("POST", "/api/v1/auth/login"),
            ("GET", "/api/v1/auth/security-id"),
            ("GET", "/health"),
        }

        for path, path_item in openapi_schema["paths"].items():
            for method, operation in path_item.items():
                if (method.upper(), path) in public_endpoints:
                    operation["security"] = []

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[method-assign]


class ErrorResponse(BaseModel):
    """Standard error response format."""

    message: str = Field(..., description="Human-readable error message")
    type: str = Field(..., description="Machine-readable error type")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"message": "Invalid username or password", "type": "authentication_error"},
                {"message": "User 'bob' not found", "type": "not_found"},
                {"message": "Security administration privileges required", "type": "access_denied"},
            ]
        }
    }


class ErrorsResponse(BaseModel):
    """Error format of the administration panel endpoints."""

    errors: str = Field(..., description="Human-readable error message")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"errors": "Request timed out, please try again"},
                {"errors": "Something went wrong."},
                {"errors": "You do not have permission to delete this record."},
            ]
        }
    }
