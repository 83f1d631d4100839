from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from objupload.app.services.upload_service import UploadConfig

ENV_FILE = Path(".env")

ADDRESSING_STYLES: tuple[str, ...] = ("auto", "path", "virtual")
LOG_FORMATS: tuple[str, ...] = ("json", "plain")


def _load_env_file() -> None:
    if not ENV_FILE.exists():
        return
    for raw_line in ENV_FILE.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "y", "on"}


def _as_optional(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass
class Settings:
    S3_REGION: str = "us-east-1"
    S3_ENDPOINT_URL: str | None = None
    S3_ENABLE_PROFILE: bool = False
    S3_PROFILE: str | None = None
    S3_ADDRESSING_STYLE: str = "auto"
    S3_MAX_ATTEMPTS: int = 3
    UPLOAD_MAX_CONCURRENT_REQUESTS: int = 10
    UPLOAD_MULTIPART_CHUNKSIZE: str = "8MB"
    UPLOAD_MULTIPART_THRESHOLD: str = "8MB"
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"

    def __post_init__(self) -> None:
        if self.UPLOAD_MAX_CONCURRENT_REQUESTS <= 0:
            raise ValueError("UPLOAD_MAX_CONCURRENT_REQUESTS must be a positive integer.")
        style = (self.S3_ADDRESSING_STYLE or "auto").strip().lower()
        if style not in ADDRESSING_STYLES:
            raise ValueError(
                f"S3_ADDRESSING_STYLE must be one of {', '.join(ADDRESSING_STYLES)}."
            )
        self.S3_ADDRESSING_STYLE = style
        log_format = (self.LOG_FORMAT or "json").strip().lower()
        if log_format not in LOG_FORMATS:
            raise ValueError(f"LOG_FORMAT must be one of {', '.join(LOG_FORMATS)}.")
        self.LOG_FORMAT = log_format

    @property
    def profile_name(self) -> str | None:
        """Credential profile to use, or None for the default provider chain."""
        if self.S3_PROFILE:
            return self.S3_PROFILE
        if self.S3_ENABLE_PROFILE:
            return "default"
        return None

    def upload_config(self, *, content_type: str | None = None) -> "UploadConfig":
        from objupload.app.services.upload_service import UploadConfig

        return UploadConfig(
            max_concurrent_requests=self.UPLOAD_MAX_CONCURRENT_REQUESTS,
            multipart_chunksize=self.UPLOAD_MULTIPART_CHUNKSIZE,
            content_type=content_type,
        )

    @classmethod
    def from_environment(cls) -> "Settings":
        _load_env_file()
        return cls(
            S3_REGION=os.environ.get("S3_REGION", cls.S3_REGION),
            S3_ENDPOINT_URL=_as_optional(os.environ.get("S3_ENDPOINT_URL")),
            S3_ENABLE_PROFILE=_as_bool(
                os.environ.get("S3_ENABLE_PROFILE"), cls.S3_ENABLE_PROFILE
            ),
            S3_PROFILE=_as_optional(os.environ.get("S3_PROFILE")),
            S3_ADDRESSING_STYLE=os.environ.get(
                "S3_ADDRESSING_STYLE", cls.S3_ADDRESSING_STYLE
            ),
            S3_MAX_ATTEMPTS=int(os.environ.get("S3_MAX_ATTEMPTS", cls.S3_MAX_ATTEMPTS)),
            UPLOAD_MAX_CONCURRENT_REQUESTS=int(
                os.environ.get(
                    "UPLOAD_MAX_CONCURRENT_REQUESTS", cls.UPLOAD_MAX_CONCURRENT_REQUESTS
                )
            ),
            UPLOAD_MULTIPART_CHUNKSIZE=os.environ.get(
                "UPLOAD_MULTIPART_CHUNKSIZE", cls.UPLOAD_MULTIPART_CHUNKSIZE
            ),
            UPLOAD_MULTIPART_THRESHOLD=os.environ.get(
                "UPLOAD_MULTIPART_THRESHOLD", cls.UPLOAD_MULTIPART_THRESHOLD
            ),
            LOG_LEVEL=os.environ.get("LOG_LEVEL", cls.LOG_LEVEL).upper(),
            LOG_FORMAT=os.environ.get("LOG_FORMAT", cls.LOG_FORMAT),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_environment()
