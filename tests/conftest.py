from __future__ import annotations

import pytest

from objupload.common.config import get_settings
from tests.services.mock_storage import MockStorageClient


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Keep a developer's .env and S3_* variables out of the tests."""
    monkeypatch.chdir(tmp_path)
    for name in (
        "S3_REGION",
        "S3_ENDPOINT_URL",
        "S3_ENABLE_PROFILE",
        "S3_PROFILE",
        "S3_ADDRESSING_STYLE",
        "S3_MAX_ATTEMPTS",
        "UPLOAD_MAX_CONCURRENT_REQUESTS",
        "UPLOAD_MULTIPART_CHUNKSIZE",
        "UPLOAD_MULTIPART_THRESHOLD",
        "LOG_LEVEL",
        "LOG_FORMAT",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()  # type: ignore[attr-defined]
    yield
    get_settings.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture()
def mock_storage():
    return MockStorageClient()
