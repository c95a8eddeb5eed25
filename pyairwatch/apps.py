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

"""Application management for pyairwatch.

This module covers the app-level calls that sit around an upload:

- Installing an uploaded binary as an internal application
  (``mam/apps/internal/begininstall``)
- Looking up a published application by bundle id
  (``mam/apps/search``)
- Computing the next semantic version of a published application

Example:
    Upload then install:
        ```python
        from pyairwatch.apps import InstallOptions, install_app
        from pyairwatch.io import upload_app_chunks

        upload = upload_app_chunks(transport, Path("MyApp.ipa"))
        install_app(
            transport,
            InstallOptions(
                transaction_id=upload.transaction_id,
                application_name="MyApp",
            ),
        )
        ```

    Work out the next patch version:
        ```python
        from pyairwatch.apps import update_version

        result = update_version(transport, "com.example.myapp", release="PATCH")
        print(f"{result.current_version} -> {result.new_version}")
        ```
"""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Any

from pyairwatch.exceptions import ConfigError, ProtocolViolationError, ServerRejectedError
from pyairwatch.io.session import ApiTransport, require_ok_body
from pyairwatch.logging import Logger, get_global_logger
from pyairwatch.results import VersionBumpResult

INSTALL_ENDPOINT = "mam/apps/internal/begininstall"
SEARCH_ENDPOINT = "mam/apps/search"

RELEASE_TYPES = ("MAJOR", "MINOR", "PATCH")

_NUM_SEP = re.compile(r"[.]")


@dataclass(frozen=True)
class InstallOptions:
    """Parameters of a begininstall request.

    Attributes:
        transaction_id: Transaction id returned by the chunked upload.
        application_name: Display name of the application in AirWatch.
        device_type: AirWatch device type code ("2" is Apple iOS).
        push_mode: "OnDemand" or "Auto".
        auto_update_version: Whether devices update to this version
            automatically.
        extra: Additional begininstall fields passed through unchanged.
    """

    transaction_id: str
    application_name: str
    device_type: str = "2"
    push_mode: str = "OnDemand"
    auto_update_version: bool = False
    extra: dict[str, Any] | None = None

    def to_payload(self) -> dict[str, Any]:
        """Render the options with the field names the API expects."""
        payload: dict[str, Any] = {
            "TransactionId": self.transaction_id,
            "DeviceType": self.device_type,
            "ApplicationName": self.application_name,
            "PushMode": self.push_mode,
            "AutoUpdateVersion": self.auto_update_version,
        }
        if self.extra:
            payload.update(self.extra)
        return payload


def install_app(
    transport: ApiTransport,
    options: InstallOptions | dict[str, Any],
    *,
    logger: Logger | None = None,
) -> Any:
    """Install an uploaded binary as an internal application.

    Args:
        transport: Transport for the tenant.
        options: InstallOptions, or a raw begininstall payload.
        logger: Logger for progress output (defaults to the global logger).

    Returns:
        The parsed begininstall response.

    Raises:
        ConfigError: If the payload carries no TransactionId.
        TransportError: If no response was received.
        ServerRejectedError: For non-2xx responses.
        ProtocolViolationError: If the response has no body.
    """
    if logger is None:
        logger = get_global_logger()

    payload = options.to_payload() if isinstance(options, InstallOptions) else dict(options)
    if not payload.get("TransactionId"):
        raise ConfigError("Install App requires a TransactionId from a completed upload")

    logger.verbose(
        "APP",
        f"Installing {payload.get('ApplicationName', '(unnamed)')} "
        f"from transaction {payload['TransactionId']}",
    )
    response = transport.post(INSTALL_ENDPOINT, payload)
    return require_ok_body(response, "Install App")


def search_app(
    transport: ApiTransport,
    bundle_id: str,
    status: str = "active",
    *,
    logger: Logger | None = None,
) -> dict[str, Any]:
    """Return the first application matching a bundle id.

    Raises:
        ServerRejectedError: For non-2xx responses or when no application
            matches.
        ProtocolViolationError: If the response is missing the Application
            list.
    """
    if logger is None:
        logger = get_global_logger()
    if not bundle_id:
        raise ConfigError("bundle_id cannot be empty")

    logger.verbose("APP", f"Searching for {bundle_id} (status: {status})")
    response = transport.get(
        SEARCH_ENDPOINT, params={"bundleid": bundle_id, "status": status}
    )
    body = require_ok_body(response, "App search")

    applications = body.get("Application") if isinstance(body, dict) else None
    if not isinstance(applications, list):
        raise ProtocolViolationError("App search failed: response has no Application list")
    if not applications:
        raise ServerRejectedError(
            f"No {status} application found for bundle id {bundle_id!r}",
            status_code=response.status_code,
        )
    return applications[0]


def bump_version(version: str, release: str = "PATCH") -> str:
    """Increment one component of a MAJOR.MINOR.PATCH version.

    Lower components are reset to zero, so MINOR on 1.4.2 gives 1.5.0.
    Missing components count as zero (2.1 -> PATCH -> 2.1.1).

    Args:
        version: Current version string.
        release: "MAJOR", "MINOR" or "PATCH" (case-insensitive).

    Returns:
        The bumped version string.

    Raises:
        ConfigError: For unknown release types or non-numeric versions.
    """
    kind = release.upper() if isinstance(release, str) else release
    if kind not in RELEASE_TYPES:
        raise ConfigError(
            f"Unknown release type {release!r}. Expected one of: "
            f"{', '.join(RELEASE_TYPES)}"
        )

    parts = [p for p in _NUM_SEP.split(version.strip()) if p]
    if not parts or not all(p.isdigit() for p in parts):
        raise ConfigError(f"Cannot bump non-numeric version {version!r}")

    nums = [int(p) for p in parts]
    while len(nums) < 3:
        nums.append(0)

    position = RELEASE_TYPES.index(kind)
    nums[position] += 1
    for i in range(position + 1, len(nums)):
        nums[i] = 0
    return ".".join(str(n) for n in nums)


def update_version(
    transport: ApiTransport,
    bundle_id: str,
    *,
    status: str = "active",
    release: str = "PATCH",
    logger: Logger | None = None,
) -> VersionBumpResult:
    """Look up an app's published version and compute the next one.

    Only computes the version. Writing it into the app's build settings is
    left to the caller's build tooling.
    """
    if logger is None:
        logger = get_global_logger()

    application = search_app(transport, bundle_id, status, logger=logger)
    current = application.get("ActualFileVersion")
    if not current:
        raise ProtocolViolationError(
            f"Application {bundle_id!r} has no ActualFileVersion"
        )

    new_version = bump_version(str(current), release)
    logger.verbose("APP", f"Updating version {current} -> {new_version}")
    return VersionBumpResult(
        bundle_id=bundle_id,
        current_version=str(current),
        new_version=new_version,
        release=release.upper(),
    )
