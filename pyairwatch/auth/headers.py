import base64
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Optional

from pyairwatch.config.loader import ServiceConfig


def basic_auth_value(username: str, password: str) -> str:
    """
    Returns the value of a Basic Authorization header for the given account.
    """
    token = base64.b64encode(f"{username}:{password}".encode("utf-8"))
    return "Basic " + token.decode("ascii")


def http_date(now: Optional[datetime] = None) -> str:
    """
    Formats a timestamp as an RFC 7231 HTTP date (always GMT).
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return format_datetime(now.astimezone(timezone.utc), usegmt=True)


def build_auth_headers(
    config: ServiceConfig,
    *,
    user_agent: Optional[str] = None,
    now: Optional[datetime] = None,
) -> dict[str, str]:
    """
    Builds the headers sent with every AirWatch API request.

    :param config: Tenant settings holding host and credentials.
    :param user_agent: Overrides the default pyairwatch User-Agent.
    :param now: Timestamp for the Date header; defaults to the current time.
    """
    if user_agent is None:
        from pyairwatch import __version__

        user_agent = f"pyairwatch/{__version__}"

    return {
        "Host": config.host,
        "Accept": "application/json",
        "User-Agent": user_agent,
        "aw-tenant-code": config.api_code,
        "Date": http_date(now),
        "Authorization": basic_auth_value(config.username, config.password),
    }
