"""Human readable user agent descriptions."""

from dataclasses import dataclass

import structlog
from ua_parser import OS, parse

logger = structlog.get_logger(__name__)

UNKNOWN = "Other"


@dataclass(frozen=True, slots=True)
class UserAgentInfo:
    browser_family: str
    os_description: str


def describe_os(os: OS | None) -> str:
    """Operating system family followed by its dotted version, e.g. 'Mac OS X 10.15.7'."""
    if os is None:
        return UNKNOWN
    version = ".".join(part for part in (os.major, os.minor, os.patch, os.patch_minor) if part)
    return f"{os.family} {version}" if version else os.family


def parse_user_agent(raw: str) -> UserAgentInfo:
    """Parse a raw user agent string. Unknown or malformed input yields 'Other'."""
    try:
        result = parse(raw)
    except Exception:
        logger.warning("user_agent_parse_failed", user_agent=raw[:200], exc_info=True)
        return UserAgentInfo(browser_family=UNKNOWN, os_description=UNKNOWN)

    browser_family = result.user_agent.family if result.user_agent else UNKNOWN
    return UserAgentInfo(browser_family=browser_family, os_description=describe_os(result.os))


def describe_user_agent(raw: str) -> str:
    """Format a user agent as '<browser family> on <OS>'; empty for an empty string."""
    if not raw:
        return ""
    info = parse_user_agent(raw)
    return f"{info.browser_family} on {info.os_description}"
