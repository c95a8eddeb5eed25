# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Exception hierarchy for pyairwatch.

This module defines a custom exception hierarchy that allows library users
to distinguish between the ways an AirWatch API call can fail:

- ConfigError: Configuration errors (YAML parse, missing credentials, bad
  device identifier types, invalid chunk sizes)
- UploadSourceError: The local file to upload is missing, unreadable, empty,
  or changed size while it was being uploaded
- NetworkError: HTTP-level failures, split into:
    - TransportError: the request never produced a response
    - ServerRejectedError: a response arrived but signalled failure
- ProtocolViolationError: the server answered with something the client
  cannot make sense of (missing body, transaction id mismatch)

All exceptions inherit from AirWatchError, allowing users to catch every
library error with a single except clause if needed.

Example:
    Catching specific error types:
        ```python
        from pyairwatch.exceptions import ServerRejectedError, TransportError

        try:
            result = client.upload_app_chunks(Path("MyApp.ipa"))
        except TransportError as e:
            print(f"Network failure: {e}")
        except ServerRejectedError as e:
            print(f"Rejected with HTTP {e.status_code}: {e}")
        ```

    Catching all errors:
        ```python
        from pyairwatch.exceptions import AirWatchError

        try:
            info = client.get_device_info("UDID", "abc123")
        except AirWatchError as e:
            print(f"AirWatch error: {e}")
        ```
"""

from __future__ import annotations

__all__ = [
    "AirWatchError",
    "ConfigError",
    "UploadSourceError",
    "NetworkError",
    "TransportError",
    "ServerRejectedError",
    "ProtocolViolationError",
]


class AirWatchError(Exception):
    """Base exception for all pyairwatch errors.

    All library-specific exceptions inherit from this class, allowing users
    to catch all errors with a single except clause if needed.
    """

    pass


class ConfigError(AirWatchError):
    """Raised for configuration-related errors.

    This exception is raised when there are problems with:

    - YAML parsing (syntax errors, invalid structure)
    - Missing host or credential fields
    - Unknown device identifier types
    - Non-positive chunk sizes or unknown release types

    Example:
        Catching configuration errors:
            ```python
            from pyairwatch.exceptions import ConfigError

            try:
                config = load_service_config(Path("airwatch.yaml"))
            except ConfigError as e:
                print(f"Config error: {e}")
            ```
    """

    pass


class UploadSourceError(AirWatchError):
    """Raised when the file being uploaded cannot be used.

    The file is missing, is not a regular file, cannot be read, is empty,
    or ended before the size recorded at the start of the upload. No chunk
    is sent when this is raised before the upload starts.
    """

    pass


class NetworkError(AirWatchError):
    """Raised for HTTP-level failures talking to the AirWatch API.

    Catch this to handle both transport failures and server rejections.
    """

    pass


class TransportError(NetworkError):
    """Raised when a request fails before any response is received.

    Connection errors, timeouts and TLS failures end up here. The original
    requests exception is available as ``__cause__``.
    """

    pass


class ServerRejectedError(NetworkError):
    """Raised when the server responds but signals failure.

    Either the HTTP status is not 2xx, or the body reports
    ``UploadSuccess: false``.

    Attributes:
        status_code: HTTP status code of the rejecting response, if any.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProtocolViolationError(AirWatchError):
    """Raised when a response does not follow the API contract.

    This exception is raised when:

    - A response body is missing or is not a JSON object
    - The first successful chunk response carries no transaction id
    - A later chunk response returns a different transaction id
    """

    pass
