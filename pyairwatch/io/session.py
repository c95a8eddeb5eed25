"""
HTTP transport for the AirWatch REST API.

This module owns every byte that crosses the network. Higher layers (device
queries, app install, chunked upload) hand it an endpoint path relative to
``https://<host>/api/<version>/`` and get back an ApiResponse; they never
touch requests directly.

Key Features:

- **Authenticated requests** - Every call carries basic auth, the
  aw-tenant-code header and a fresh Date header (see pyairwatch.auth).
- **Retries for reads only** - GET/HEAD retry on transient failures (429,
  500, 502, 503, 504) with exponential backoff via urllib3.util.Retry.
  POSTs are sent exactly once: a chunk POST that is retried behind the
  caller's back could be applied twice by the server.
- **Typed failures** - Anything requests raises becomes a TransportError,
  chained to the original exception.
- **Lenient bodies** - Response bodies are parsed as JSON when possible;
  empty or non-JSON bodies come back as None and the caller decides whether
  that is a protocol violation.

Example:
Basic usage:

    >>> from pyairwatch.config import load_service_config
    >>> from pyairwatch.io import ApiTransport
    >>> config = load_service_config()
    >>> with ApiTransport(config) as transport:
    ...     response = transport.get("mdm/devices/UDID/abc123")
    >>> response.status_code
    200

Notes:
- Timeouts are per-request, taken from ServiceConfig.timeout
- The transport does not interpret status codes; see ApiResponse.ok
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import IO, Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from pyairwatch.auth import build_auth_headers
from pyairwatch.config.loader import ServiceConfig
from pyairwatch.exceptions import (
    ProtocolViolationError,
    ServerRejectedError,
    TransportError,
)
from pyairwatch.logging import Logger, get_global_logger


@dataclass(frozen=True)
class ApiResponse:
    """Status and parsed body of one API call.

    Attributes:
        status_code: HTTP status code.
        body: Parsed JSON body, or None if the body was empty or not JSON.
        reason: HTTP reason phrase.
    """

    status_code: int
    body: Any
    reason: str = ""

    @property
    def ok(self) -> bool:
        """True for 2xx status codes."""
        return 200 <= self.status_code < 300


def make_session(retry_reads: bool = True) -> requests.Session:
    """
    Create a requests.Session with retry/backoff for idempotent reads.

    - Retries GET and HEAD on common transient status codes.
    - Applies exponential backoff.
    - Never retries POST.
    """
    s = requests.Session()
    retries = Retry(
        total=3 if retry_reads else 0,
        backoff_factor=0.5,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=("GET", "HEAD"),
        raise_on_status=False,
    )
    s.mount("http://", HTTPAdapter(max_retries=retries))
    s.mount("https://", HTTPAdapter(max_retries=retries))
    return s


def _parse_body(resp: requests.Response) -> Any:
    """Return the JSON body of a response, or None if there is none."""
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError:
        return None


class ApiTransport:
    """Authenticated HTTP access to one AirWatch tenant.

    Implements the transport contract the upload sequencer depends on:
    ``post(endpoint, body) -> ApiResponse``, raising TransportError when no
    response could be obtained.
    """

    def __init__(
        self,
        config: ServiceConfig,
        *,
        session: requests.Session | None = None,
        logger: Logger | None = None,
    ) -> None:
        self.config = config
        self._owns_session = session is None
        self.session = session if session is not None else make_session()
        self._logger = logger
        if not config.verify_ssl:
            self.logger.warning(
                "HTTP", f"TLS certificate verification is disabled for {config.host}"
            )

    @property
    def logger(self) -> Logger:
        return self._logger if self._logger is not None else get_global_logger()

    @property
    def base_url(self) -> str:
        return self.config.base_url

    def url_for(self, endpoint: str) -> str:
        """Join an endpoint path (e.g. "mdm/devices/UDID/x") to the base URL."""
        return self.base_url + endpoint.lstrip("/")

    def _send(
        self,
        method: str,
        endpoint: str,
        *,
        json_body: Any = None,
        data: IO[bytes] | None = None,
        params: dict[str, Any] | None = None,
        content_type: str | None = None,
    ) -> ApiResponse:
        url = self.url_for(endpoint)
        headers = build_auth_headers(self.config)
        if content_type:
            headers["Content-Type"] = content_type

        self.logger.debug("HTTP", f"{method} {url}")
        try:
            resp = self.session.request(
                method,
                url,
                headers=headers,
                json=json_body,
                data=data,
                params=params,
                timeout=self.config.timeout,
                verify=self.config.verify_ssl,
                allow_redirects=True,
            )
        except requests.RequestException as err:
            self.logger.verbose("HTTP", f"{method} {endpoint} failed: {err}")
            raise TransportError(f"{method} {url} failed: {err}") from err

        self.logger.debug("HTTP", f"Response: {resp.status_code} {resp.reason}")
        return ApiResponse(
            status_code=resp.status_code,
            body=_parse_body(resp),
            reason=resp.reason or "",
        )

    def request(
        self,
        endpoint: str,
        body: Any = None,
        *,
        params: dict[str, Any] | None = None,
    ) -> ApiResponse:
        """Send a GET, or a JSON POST when a body is given.

        Args:
            endpoint: Path relative to the API base URL.
            body: JSON-serializable request body. None sends a GET.
            params: Optional query string parameters.

        Returns:
            Status code and parsed body of the response.

        Raises:
            TransportError: If no response was received.
        """
        if body is None:
            return self._send("GET", endpoint, params=params)
        return self._send(
            "POST",
            endpoint,
            json_body=body,
            params=params,
            content_type="application/json",
        )

    def get(self, endpoint: str, params: dict[str, Any] | None = None) -> ApiResponse:
        return self.request(endpoint, params=params)

    def post(self, endpoint: str, body: Any) -> ApiResponse:
        return self.request(endpoint, body if body is not None else {})

    def post_stream(
        self,
        endpoint: str,
        stream: IO[bytes],
        *,
        params: dict[str, Any] | None = None,
    ) -> ApiResponse:
        """POST a binary stream as the raw request body (application/octet-stream)."""
        return self._send(
            "POST",
            endpoint,
            data=stream,
            params=params,
            content_type="application/octet-stream",
        )

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> ApiTransport:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def require_ok_body(response: ApiResponse, action: str) -> Any:
    """Return the body of a successful response or raise.

    Args:
        response: Response to check.
        action: Short description used in error messages (e.g. "Install App").

    Raises:
        ServerRejectedError: For non-2xx status codes.
        ProtocolViolationError: If the body is empty or not JSON.
    """
    if not response.ok:
        raise ServerRejectedError(
            f"{action} failed: HTTP {response.status_code} {response.reason}".rstrip(),
            status_code=response.status_code,
        )
    if not response.body:
        raise ProtocolViolationError(f"{action} failed: Invalid Response")
    return response.body
