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

"""Public API return types for pyairwatch.

This module defines dataclasses for return values from public API functions
that do more than hand back a response body: uploads and version bumps.

All dataclasses are frozen (immutable) to prevent accidental mutation of
return values.

Example:
    Using result types:
        ```python
        from pathlib import Path
        from pyairwatch.client import AirWatchClient

        with AirWatchClient.from_config_file(Path("airwatch.yaml")) as client:
            result = client.upload_app_chunks(Path("MyApp.ipa"))
        print(result.transaction_id)
        ```

Note:
    Only public API return types belong in this module. Session state
    (like UploadSession) stays co-located with the upload logic.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class UploadResult:
    """Result from a completed chunked upload.

    Attributes:
        transaction_id: Server-issued id correlating every chunk of the
            upload. Pass it to install_app to create the application.
        file_path: Path to the uploaded file.
        total_size: Size of the file in bytes.
        chunk_count: Number of chunks sent.
        status: Always "success" for a completed upload.
    """

    transaction_id: str
    file_path: Path
    total_size: int
    chunk_count: int
    status: str


@dataclass(frozen=True)
class BlobUploadResult:
    """Result from uploading a file as a single blob.

    Attributes:
        file_path: Path to the uploaded file.
        total_size: Size of the file in bytes.
        body: Parsed JSON body returned by the blob endpoint.
        status: Always "success" for a completed upload.
    """

    file_path: Path
    total_size: int
    body: dict[str, Any]
    status: str


@dataclass(frozen=True)
class VersionBumpResult:
    """Result from computing the next version of a published app.

    Attributes:
        bundle_id: Bundle id the version was looked up for.
        current_version: ActualFileVersion reported by AirWatch.
        new_version: Version after applying the release bump.
        release: Release type applied ("MAJOR", "MINOR" or "PATCH").
    """

    bundle_id: str
    current_version: str
    new_version: str
    release: str
