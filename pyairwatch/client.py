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

"""High-level client for one AirWatch tenant.

AirWatchClient bundles a ServiceConfig and an ApiTransport and exposes the
library's operations as methods, so callers do not have to thread the
transport through every call.

Design Principles:

- Methods are thin: each delegates to the module that implements it
  (devices, apps, io.upload)
- Errors propagate unchanged; see pyairwatch.exceptions
- The client owns its transport and closes it on exit

Example:
    Programmatic usage:
        ```python
        from pathlib import Path
        from pyairwatch.client import AirWatchClient

        with AirWatchClient.from_config_file(Path("airwatch.yaml")) as client:
            upload = client.upload_app_chunks(Path("MyApp.ipa"))
            client.install_app(
                {
                    "TransactionId": upload.transaction_id,
                    "DeviceType": "2",
                    "ApplicationName": "MyApp",
                    "PushMode": "OnDemand",
                    "AutoUpdateVersion": False,
                }
            )
        ```

"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import requests

from pyairwatch import apps, devices
from pyairwatch.config.loader import ServiceConfig, load_service_config
from pyairwatch.io.session import ApiTransport
from pyairwatch.io.upload import EventCallback, upload_app_blob, upload_app_chunks
from pyairwatch.logging import Logger, get_global_logger
from pyairwatch.results import BlobUploadResult, UploadResult, VersionBumpResult


class AirWatchClient:
    """Client for the AirWatch REST API of one tenant.

    Args:
        config: Tenant settings.
        session: Optional requests.Session to send requests with.
        logger: Logger for progress output (defaults to the global logger).
    """

    def __init__(
        self,
        config: ServiceConfig,
        *,
        session: requests.Session | None = None,
        logger: Logger | None = None,
    ) -> None:
        self.config = config
        self.logger = logger if logger is not None else get_global_logger()
        self.transport = ApiTransport(config, session=session, logger=self.logger)
        self.logger.verbose("CONFIG", f"AirWatch client for {config.base_url}")

    @classmethod
    def from_config_file(
        cls, config_path: Path | None = None, **kwargs: Any
    ) -> AirWatchClient:
        """Create a client from a YAML file and AIRWATCH_* environment variables."""
        return cls(load_service_config(config_path), **kwargs)

    # Uploads

    def upload_app_chunks(
        self,
        file_path: Path,
        *,
        chunk_size: int | None = None,
        on_event: EventCallback | None = None,
    ) -> UploadResult:
        """Upload a package in chunks; chunk size defaults to the config value."""
        return upload_app_chunks(
            self.transport,
            file_path,
            chunk_size=chunk_size if chunk_size is not None else self.config.chunk_size,
            on_event=on_event,
            logger=self.logger,
        )

    def upload_app_blob(self, file_path: Path) -> BlobUploadResult:
        return upload_app_blob(
            self.transport, file_path, self.config.group_id, logger=self.logger
        )

    # Apps

    def install_app(self, options: apps.InstallOptions | dict[str, Any]) -> Any:
        return apps.install_app(self.transport, options, logger=self.logger)

    def search_app(self, bundle_id: str, status: str = "active") -> dict[str, Any]:
        return apps.search_app(self.transport, bundle_id, status, logger=self.logger)

    def update_version(
        self, bundle_id: str, *, status: str = "active", release: str = "PATCH"
    ) -> VersionBumpResult:
        return apps.update_version(
            self.transport,
            bundle_id,
            status=status,
            release=release,
            logger=self.logger,
        )

    # Devices

    def get_device(self, id_type: str, uid: str, action: str | None = None) -> Any:
        return devices.get_device(
            self.transport, id_type, uid, action, logger=self.logger
        )

    def get_device_info(self, id_type: str, uid: str) -> Any:
        return self.get_device(id_type, uid)

    def get_device_apps(self, id_type: str, uid: str) -> Any:
        return self.get_device(id_type, uid, "apps")

    def get_device_certificates(self, id_type: str, uid: str) -> Any:
        return self.get_device(id_type, uid, "certificates")

    def get_device_compliance(self, id_type: str, uid: str) -> Any:
        return self.get_device(id_type, uid, "compliance")

    def get_device_content(self, id_type: str, uid: str) -> Any:
        return self.get_device(id_type, uid, "content")

    def get_device_profiles(self, id_type: str, uid: str) -> Any:
        return self.get_device(id_type, uid, "profiles")

    def get_device_event_log(self, id_type: str, uid: str) -> Any:
        return self.get_device(id_type, uid, "eventlog")

    def close(self) -> None:
        self.transport.close()

    def __enter__(self) -> AirWatchClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
