"""Uvicorn server runner with custom configuration."""

import copy

import uvicorn
from uvicorn.config import LOGGING_CONFIG

from sessionmanager.app import App
from sessionmanager.config import Config
from sessionmanager.web.server import create_fastapi_app

ACCESS_LOG_FORMAT = '%(asctime)s - %(client_addr)s - "%(request_line)s" %(status_code)s'
DEFAULT_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def build_log_config() -> dict:
    """Uvicorn logging config with the client address in access lines."""
    log_config = copy.deepcopy(LOGGING_CONFIG)
    log_config["formatters"]["access"]["fmt"] = ACCESS_LOG_FORMAT
    log_config["formatters"]["default"]["fmt"] = DEFAULT_LOG_FORMAT
    return log_config


def run_server(app: App, config: Config) -> None:
    """Run the Uvicorn server.

    Proxy headers are left to the application: login sessions record the source IP
    chosen by `trust_forwarded_for`, so uvicorn must not rewrite the client address.
    """
    fastapi_app = create_fastapi_app(app, config)
    uvicorn.run(
        fastapi_app,
        host=config.host,
        port=config.port,
        log_config=build_log_config(),
        access_log=True,
        proxy_headers=False,
    )
