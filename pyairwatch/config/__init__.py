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

"""Configuration loading for pyairwatch.

Settings for an AirWatch tenant come from an optional YAML file, overlaid
by ``AIRWATCH_*`` environment variables (a .env file is honoured).

Public API:

- load_service_config: Resolve the effective configuration
- ServiceConfig: Frozen settings object consumed by the transport

Example:
    Basic usage:

        from pathlib import Path
        from pyairwatch.config import load_service_config

        config = load_service_config(Path("airwatch.yaml"))
        print(config.base_url)

"""

from .loader import DEFAULT_CHUNK_SIZE, ServiceConfig, load_service_config

__all__ = ["DEFAULT_CHUNK_SIZE", "ServiceConfig", "load_service_config"]
