"""Tests for objupload.common.config."""

from __future__ import annotations

import pytest

from objupload.app.services.upload_service import UploadConfig
from objupload.common.config import Settings, get_settings


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings()
        assert settings.S3_REGION == "us-east-1"
        assert settings.UPLOAD_MAX_CONCURRENT_REQUESTS == 10
        assert settings.UPLOAD_MULTIPART_CHUNKSIZE == "8MB"
        assert settings.profile_name is None

    def test_from_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("S3_REGION", "ap-northeast-1")
        monkeypatch.setenv("S3_PROFILE", "batch")
        monkeypatch.setenv("S3_ADDRESSING_STYLE", "PATH")
        monkeypatch.setenv("UPLOAD_MAX_CONCURRENT_REQUESTS", "4")
        monkeypatch.setenv("UPLOAD_MULTIPART_CHUNKSIZE", "32MB")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        settings = Settings.from_environment()

        assert settings.S3_REGION == "ap-northeast-1"
        assert settings.profile_name == "batch"
        assert settings.S3_ADDRESSING_STYLE == "path"
        assert settings.UPLOAD_MAX_CONCURRENT_REQUESTS == 4
        assert settings.UPLOAD_MULTIPART_CHUNKSIZE == "32MB"
        assert settings.LOG_LEVEL == "DEBUG"

    def test_reads_env_file_without_overriding_environment(self, monkeypatch, tmp_path) -> None:
        (tmp_path / ".env").write_text(
            "# local overrides\nS3_REGION='eu-central-1'\nUPLOAD_MAX_CONCURRENT_REQUESTS=2\n",
            encoding="utf-8",
        )
        monkeypatch.setenv("UPLOAD_MAX_CONCURRENT_REQUESTS", "6")
        # registered with monkeypatch so the value loaded from .env is undone
        monkeypatch.setenv("S3_REGION", "placeholder")
        monkeypatch.delenv("S3_REGION")

        settings = Settings.from_environment()

        assert settings.S3_REGION == "eu-central-1"
        assert settings.UPLOAD_MAX_CONCURRENT_REQUESTS == 6

    def test_enable_profile_uses_default_profile(self) -> None:
        assert Settings(S3_ENABLE_PROFILE=True).profile_name == "default"
        assert Settings(S3_ENABLE_PROFILE=True, S3_PROFILE="ci").profile_name == "ci"

    @pytest.mark.parametrize("value", [0, -3])
    def test_rejects_non_positive_concurrency(self, value) -> None:
        with pytest.raises(ValueError, match="UPLOAD_MAX_CONCURRENT_REQUESTS"):
            Settings(UPLOAD_MAX_CONCURRENT_REQUESTS=value)

    def test_rejects_unknown_addressing_style(self) -> None:
        with pytest.raises(ValueError, match="S3_ADDRESSING_STYLE"):
            Settings(S3_ADDRESSING_STYLE="sideways")

    def test_rejects_unknown_log_format(self) -> None:
        with pytest.raises(ValueError, match="LOG_FORMAT"):
            Settings(LOG_FORMAT="xml")

    def test_upload_config(self) -> None:
        config = Settings(
            UPLOAD_MAX_CONCURRENT_REQUESTS=3, UPLOAD_MULTIPART_CHUNKSIZE="16MB"
        ).upload_config()

        assert config == UploadConfig(max_concurrent_requests=3, multipart_chunksize="16MB")

    def test_upload_config_content_type(self) -> None:
        config = Settings().upload_config(content_type="text/csv")

        assert config.content_type == "text/csv"
        assert config.multipart_chunksize == Settings.UPLOAD_MULTIPART_CHUNKSIZE

    def test_get_settings_is_cached(self) -> None:
        assert get_settings() is get_settings()
