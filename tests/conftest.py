"""
Pytest configuration and shared fixtures for pyairwatch tests.

This module provides reusable fixtures and test utilities used across
the test suite.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import yaml

from pyairwatch.config.loader import ServiceConfig
from pyairwatch.io.session import ApiResponse, ApiTransport
from pyairwatch.logging import get_global_logger, set_global_logger

BASE_URL = "https://aw.example.com/api/v1/"
UPLOAD_URL = BASE_URL + "mam/apps/internal/uploadchunk"


class FakeTransport:
    """
    Transport double that replays scripted responses.

    Each entry is either an ApiResponse or an exception instance to raise.
    Every posted body is recorded in ``calls``.
    """

    def __init__(self, responses: list[Any]) -> None:
        self.responses = list(responses)
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def post(self, endpoint: str, body: Any) -> ApiResponse:
        self.calls.append((endpoint, body))
        if not self.responses:
            raise AssertionError("unexpected extra request")
        outcome = self.responses.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def ok_chunk(transaction_id: str = "tx-1") -> ApiResponse:
    """Successful uploadchunk response (with the API's field spelling)."""
    return ApiResponse(
        status_code=200,
        body={"UploadSuccess": True, "TranscationId": transaction_id},
        reason="OK",
    )


@pytest.fixture
def tmp_test_dir(tmp_path: Path) -> Path:
    """
    Provide a temporary directory for test artifacts.

    Automatically cleaned up after test completion.
    """
    return tmp_path


@pytest.fixture
def service_config() -> ServiceConfig:
    """Provide a complete tenant configuration pointing at a fake host."""
    return ServiceConfig(
        host="aw.example.com",
        username="apiuser",
        password="secret",
        api_code="TENANTCODE",
        group_id="570",
    )


@pytest.fixture
def transport(service_config: ServiceConfig):
    """Provide a real ApiTransport (use with requests_mock)."""
    with ApiTransport(service_config) as t:
        yield t


@pytest.fixture
def make_file(tmp_test_dir: Path):
    """
    Factory fixture for creating binary files of a given size.

    Usage:
        path = make_file("app.ipa", 35840 * 3)
    """

    def _create(filename: str, size: int) -> Path:
        path = tmp_test_dir / filename
        path.write_bytes(bytes(i % 251 for i in range(size)))
        return path

    return _create


@pytest.fixture
def create_yaml_file(tmp_test_dir: Path):
    """
    Factory fixture for creating temporary YAML files.

    Usage:
        yaml_path = create_yaml_file("airwatch.yaml", {"host": "x"})
    """

    def _create(filename: str, data: dict[str, Any]) -> Path:
        path = tmp_test_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            yaml.dump(data, f)
        return path

    return _create


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove AIRWATCH_* variables so tests see only what they set."""
    import os

    for key in list(os.environ):
        if key.startswith("AIRWATCH_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def restore_global_logger():
    """Undo set_global_logger calls made by the CLI under test."""
    previous = get_global_logger()
    yield
    set_global_logger(previous)
