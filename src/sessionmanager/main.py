"""Application entry point for the session manager server."""

from urllib.parse import urlparse

import structlog

from sessionmanager.app import App
from sessionmanager.config import Config
from sessionmanager.logging import setup_logging
from sessionmanager.web.runner import run_server

logger = structlog.get_logger(__name__)


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    logger.info(
        "starting_session_manager",
        storage=urlparse(config.database_url).scheme,
        session_timeout=config.session_timeout,
        default_session_lifetime=config.default_session_lifetime,
        trust_forwarded_for=config.trust_forwarded_for,
    )
    app = App(config)
    run_server(app, config)


if __name__ == "__main__":
    main()
