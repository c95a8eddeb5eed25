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

"""Device identifier validation.

AirWatch device endpoints address a device by an identifier type and a
value, e.g. ``mdm/devices/serialnumber/C02XK0AAJG5H``. This module checks
both parts before a request is built, so a typo fails locally instead of
turning into a confusing 404 from the server.

Validation Checks:

- Identifier type is one of macaddress, serialnumber, UDID (exact case,
  as the API expects it)
- Identifier value is not blank and contains no path separators

Example:
    Validate before querying:
        ```python
        from pyairwatch.validation import validate_device_identifier

        validate_device_identifier("UDID", "a1b2c3d4e5")
        ```

"""

from __future__ import annotations

from pyairwatch.exceptions import ConfigError

__all__ = ["DEVICE_ID_TYPES", "validate_device_identifier"]

DEVICE_ID_TYPES = ("macaddress", "serialnumber", "UDID")


def validate_device_identifier(id_type: str, uid: str) -> None:
    """Check a device identifier type and value.

    Args:
        id_type: Identifier type. Must be one of DEVICE_ID_TYPES.
        uid: Identifier value (a MAC address, serial number or UDID).

    Raises:
        ConfigError: If the type is unknown or the value is blank or would
            escape the device path.

    Example:
        Rejecting an unknown type:
            ```python
            validate_device_identifier("imei", "123")
            # ConfigError: Unknown device identifier type 'imei' ...
            ```

    """
    if id_type not in DEVICE_ID_TYPES:
        raise ConfigError(
            f"Unknown device identifier type {id_type!r}. "
            f"Expected one of: {', '.join(DEVICE_ID_TYPES)}"
        )
    if not isinstance(uid, str) or not uid.strip():
        raise ConfigError(f"Device {id_type} value cannot be empty")
    if "/" in uid or "?" in uid:
        raise ConfigError(f"Invalid device {id_type} value: {uid!r}")
