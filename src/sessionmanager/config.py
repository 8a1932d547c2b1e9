from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str  # mongodb://host/dbname, or memory:// for a process-local store
    host: str
    port: int
    debug: bool
    session_secret_key: str  # Signs the transport session cookie
    cors_origins: list[str] = []
    admin_password: str = "admin"  # Password for the bootstrap admin user
    # Seconds a login session may be inactive before it no longer counts as active
    default_session_lifetime: int = 3600
    session_timeout: int | None = None  # Transport session timeout, overrides default_session_lifetime when set
    trust_forwarded_for: bool = False  # Take the source IP from X-Forwarded-For (only behind a trusted proxy)

    model_config = {
        "env_file": [".env"],
        "env_prefix": "SESSIONMANAGER_",
        "extra": "ignore",
    }
