"""
Service configuration loading for pyairwatch.

This module resolves the settings needed to talk to an AirWatch tenant from
two layers, with the later layer winning:

Configuration Layers
--------------------
1. **YAML file** (e.g. airwatch.yaml)
   - Optional; may hold every field, or only the non-secret ones
   - Fields may live at the top level or under an ``airwatch:`` key

2. **Environment variables** (``AIRWATCH_*``, optionally from a .env file)
   - Override file values field by field
   - Keep passwords out of version-controlled YAML

Recognised Fields
-----------------
  - host (required): API server host name, without scheme
  - username, password (required): API account for basic auth
  - api_code (required): value of the aw-tenant-code header
  - group_id: organization group id (required for blob uploads)
  - api_version: path segment after /api/ (default: v1)
  - verify_ssl: verify TLS certificates (default: true)
  - timeout: per-request timeout in seconds (default: 60)
  - chunk_size: bytes per upload chunk (default: 35840)

String values of the form ``${NAME}`` are replaced with the environment
variable NAME.

Error Handling
--------------
- ConfigError: Missing file, YAML parse errors, non-mapping YAML, missing
  required fields, invalid numbers
- All errors are chained with "from err" for better debugging

Examples
--------
Load from a file, secrets from the environment:

    >>> from pathlib import Path
    >>> from pyairwatch.config import load_service_config
    >>> cfg = load_service_config(Path("airwatch.yaml"))
    >>> cfg.base_url
    'https://cn135.awmdm.com/api/v1/'

Load purely from the environment:

    >>> cfg = load_service_config()
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Any

from dotenv import find_dotenv, load_dotenv
import yaml

from pyairwatch.exceptions import ConfigError

DEFAULT_API_VERSION = "v1"
DEFAULT_TIMEOUT = 60
# AirWatch accepts chunks of at most 35 KiB.
DEFAULT_CHUNK_SIZE = 1024 * 35

_REQUIRED_FIELDS = ("host", "username", "password", "api_code")

# field name -> environment variable suffix
_ENV_FIELDS = {
    "host": "HOST",
    "username": "USERNAME",
    "password": "PASSWORD",
    "group_id": "GROUP_ID",
    "api_code": "API_CODE",
    "api_version": "API_VERSION",
    "verify_ssl": "VERIFY_SSL",
    "timeout": "TIMEOUT",
    "chunk_size": "CHUNK_SIZE",
}

# -------------------------------
# Data types
# -------------------------------


@dataclass(frozen=True)
class ServiceConfig:
    """Connection settings for one AirWatch tenant.

    Attributes:
        host: API server host name (e.g. "cn135.awmdm.com").
        username: API account user name.
        password: API account password.
        api_code: Tenant code sent as the aw-tenant-code header.
        group_id: Organization group id, used by blob uploads.
        api_version: API version path segment.
        verify_ssl: Whether TLS certificates are verified.
        timeout: Per-request timeout in seconds.
        chunk_size: Bytes per chunk for chunked uploads.
    """

    host: str
    username: str
    password: str
    api_code: str
    group_id: str | None = None
    api_version: str = DEFAULT_API_VERSION
    verify_ssl: bool = True
    timeout: int = DEFAULT_TIMEOUT
    chunk_size: int = DEFAULT_CHUNK_SIZE

    @property
    def base_url(self) -> str:
        """Root URL every endpoint path is appended to."""
        return f"https://{self.host}/api/{self.api_version}/"


# -------------------------------
# YAML helpers
# -------------------------------


def _load_yaml_file(p: Path) -> dict[str, Any]:
    """
    Load a YAML config file and return the airwatch settings mapping.

    Raises:
      ConfigError - missing file, invalid YAML, or non-mapping content
    """
    if not p.exists():
        raise ConfigError(f"Config file not found: {p}")
    try:
        with p.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as err:
        raise ConfigError(f"Error parsing YAML: {p}: {err}") from err
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Top-level YAML must be a mapping (dict): {p}")

    section = data.get("airwatch", data)
    if not isinstance(section, dict):
        raise ConfigError(f"'airwatch' section must be a mapping (dict): {p}")
    return dict(section)


# -------------------------------
# Environment handling
# -------------------------------


def _expand_env(value: Any) -> Any:
    """Replace a "${NAME}" string with the value of environment variable NAME."""
    if isinstance(value, str) and value.startswith("${") and value.endswith("}"):
        env_var = value[2:-1]
        expanded = os.environ.get(env_var)
        if expanded is None:
            raise ConfigError(f"Environment variable {env_var} is not set")
        return expanded
    return value


def _env_overrides(env_prefix: str) -> dict[str, str]:
    """Collect field values set through prefixed environment variables."""
    overrides: dict[str, str] = {}
    for field, suffix in _ENV_FIELDS.items():
        value = os.environ.get(f"{env_prefix}{suffix}")
        if value is not None and value != "":
            overrides[field] = value
    return overrides


# -------------------------------
# Coercion
# -------------------------------


def _as_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("1", "true", "yes", "on"):
        return True
    if text in ("0", "false", "no", "off"):
        return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}")


def _as_positive_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be a positive integer, got {value!r}")
    try:
        number = int(value)
    except (TypeError, ValueError) as err:
        raise ConfigError(f"{name} must be a positive integer, got {value!r}") from err
    if number <= 0:
        raise ConfigError(f"{name} must be a positive integer, got {number}")
    return number


# -------------------------------
# Public API
# -------------------------------


def load_service_config(
    config_path: Path | None = None,
    *,
    env_prefix: str = "AIRWATCH_",
    load_env_file: bool = True,
) -> ServiceConfig:
    """
    Resolve the effective service configuration.

    Steps
      1) Load .env into the process environment (existing variables win).
      2) Read the YAML file if one was given.
      3) Overlay prefixed environment variables.
      4) Expand "${NAME}" references.
      5) Check required fields and coerce types.

    Returns
      A frozen ServiceConfig.

    Raises
      ConfigError for unreadable/invalid files, missing required fields,
      or values of the wrong type.
    """
    from pyairwatch.logging import get_global_logger

    logger = get_global_logger()

    if load_env_file:
        load_dotenv(find_dotenv(usecwd=True))

    values: dict[str, Any] = {}
    if config_path is not None:
        config_path = Path(config_path)
        logger.verbose("CONFIG", f"Loading: {config_path}")
        values.update(_load_yaml_file(config_path))

    overrides = _env_overrides(env_prefix)
    if overrides:
        logger.verbose(
            "CONFIG",
            f"Environment overrides: {', '.join(sorted(overrides))}",
        )
    values.update(overrides)

    values = {k: _expand_env(v) for k, v in values.items()}

    missing = [f for f in _REQUIRED_FIELDS if not values.get(f)]
    if missing:
        hints = ", ".join(f"{f} ({env_prefix}{_ENV_FIELDS[f]})" for f in missing)
        raise ConfigError(f"Missing required configuration: {hints}")

    unknown = sorted(set(values) - set(_ENV_FIELDS))
    if unknown:
        logger.warning("CONFIG", f"Ignoring unknown keys: {', '.join(unknown)}")

    group_id = values.get("group_id")
    config = ServiceConfig(
        host=str(values["host"]).strip().rstrip("/"),
        username=str(values["username"]),
        password=str(values["password"]),
        api_code=str(values["api_code"]),
        group_id=str(group_id) if group_id not in (None, "") else None,
        api_version=str(values.get("api_version", DEFAULT_API_VERSION)),
        verify_ssl=_as_bool("verify_ssl", values.get("verify_ssl", True)),
        timeout=_as_positive_int("timeout", values.get("timeout", DEFAULT_TIMEOUT)),
        chunk_size=_as_positive_int(
            "chunk_size", values.get("chunk_size", DEFAULT_CHUNK_SIZE)
        ),
    )

    logger.debug("CONFIG", f"Base URL: {config.base_url}")
    logger.debug("CONFIG", f"Chunk size: {config.chunk_size} bytes")
    return config
