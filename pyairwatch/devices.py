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

"""Device queries against the AirWatch MDM API.

Every query is a GET on ``mdm/devices/<id_type>/<uid>`` optionally followed
by an action segment. The identifier type is one of ``macaddress``,
``serialnumber`` or ``UDID``.

Supported actions:

- (none): device details
- apps: applications installed on the device
- certificates: certificates present on the device
- compliance: compliance policies and their status
- content: managed content present on the device
- profiles: installed profiles
- eventlog: device event log

Example:
    Query a device by serial number:
        ```python
        from pyairwatch.devices import get_device_apps

        apps = get_device_apps(transport, "serialnumber", "C02XK0AAJG5H")
        ```
"""

from __future__ import annotations

from typing import Any

from pyairwatch.exceptions import ConfigError
from pyairwatch.io.session import ApiTransport, require_ok_body
from pyairwatch.logging import Logger, get_global_logger
from pyairwatch.validation import validate_device_identifier

DEVICE_ACTIONS = (
    "apps",
    "certificates",
    "compliance",
    "content",
    "profiles",
    "eventlog",
)


def get_device(
    transport: ApiTransport,
    id_type: str,
    uid: str,
    action: str | None = None,
    *,
    logger: Logger | None = None,
) -> Any:
    """Run a device query and return the parsed response body.

    Args:
        transport: Transport for the tenant.
        id_type: "macaddress", "serialnumber" or "UDID".
        uid: Identifier value of the device.
        action: One of DEVICE_ACTIONS, or None for device details.
        logger: Logger for progress output (defaults to the global logger).

    Returns:
        The parsed JSON body.

    Raises:
        ConfigError: For an unknown identifier type or action.
        TransportError: If no response was received.
        ServerRejectedError: For non-2xx responses.
        ProtocolViolationError: If the response has no body.
    """
    if logger is None:
        logger = get_global_logger()

    validate_device_identifier(id_type, uid)
    if action is not None and action not in DEVICE_ACTIONS:
        raise ConfigError(
            f"Unknown device action {action!r}. "
            f"Expected one of: {', '.join(DEVICE_ACTIONS)}"
        )

    suffix = f"/{action}" if action else ""
    endpoint = f"mdm/devices/{id_type}/{uid}{suffix}"
    logger.verbose("DEVICE", f"Querying {endpoint}")

    response = transport.get(endpoint)
    what = f"Device {action or 'info'} request"
    return require_ok_body(response, what)


def get_device_info(transport: ApiTransport, id_type: str, uid: str) -> Any:
    return get_device(transport, id_type, uid)


def get_device_apps(transport: ApiTransport, id_type: str, uid: str) -> Any:
    return get_device(transport, id_type, uid, "apps")


def get_device_certificates(transport: ApiTransport, id_type: str, uid: str) -> Any:
    return get_device(transport, id_type, uid, "certificates")


def get_device_compliance(transport: ApiTransport, id_type: str, uid: str) -> Any:
    return get_device(transport, id_type, uid, "compliance")


def get_device_content(transport: ApiTransport, id_type: str, uid: str) -> Any:
    return get_device(transport, id_type, uid, "content")


def get_device_profiles(transport: ApiTransport, id_type: str, uid: str) -> Any:
    return get_device(transport, id_type, uid, "profiles")


def get_device_event_log(transport: ApiTransport, id_type: str, uid: str) -> Any:
    return get_device(transport, id_type, uid, "eventlog")
