"""
pyairwatch - AirWatch MDM API client

A Python client library and CLI for the AirWatch (Workspace ONE UEM) REST
API, focused on getting internal applications onto managed devices.

pyairwatch provides:
  - Authenticated requests (basic auth + aw-tenant-code) to a tenant
  - Chunked upload of .ipa/.apk packages with transaction id tracking
  - Single-blob upload of packages
  - Internal application install from an uploaded transaction
  - Device queries (details, apps, certificates, compliance, content,
    profiles, event log)
  - Semantic version bump of published applications

Quick Start
-----------
Upload a package and install it:

    $ awr upload MyApp.ipa --install --name "My App"

Query a device:

    $ awr device serialnumber C02XK0AAJG5H --action apps

For full CLI documentation:

    $ awr --help

Package Structure
-----------------
cli : module
    Command-line interface with argparse.
client : module
    AirWatchClient facade over the operations below.
config : package
    YAML + environment configuration loading.
auth : package
    Authentication header construction.
io : package
    HTTP transport, chunking and uploads.
devices : module
    Device queries.
apps : module
    App install, search and version bump.

Public API
----------
    from pyairwatch.client import AirWatchClient
    from pyairwatch.config import load_service_config
    from pyairwatch.io import ApiTransport, upload_app_chunks

For more details, see the individual module docstrings.
"""

__version__ = "0.1.0"
__author__ = "Roger Cibrian"
__license__ = "Apache-2.0"
__description__ = "AirWatch MDM API client with chunked application upload"

# Re-export commonly used functions for convenience
from pyairwatch.client import AirWatchClient
from pyairwatch.config import ServiceConfig, load_service_config
from pyairwatch.io import ApiTransport, upload_app_blob, upload_app_chunks

__all__ = [
    "__version__",
    "__author__",
    "__license__",
    "__description__",
    "AirWatchClient",
    "ApiTransport",
    "ServiceConfig",
    "load_service_config",
    "upload_app_blob",
    "upload_app_chunks",
]
