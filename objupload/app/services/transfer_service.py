"""Object transfer service.

Routes uploads between a single ``put_object`` request and the multipart
uploader, and exposes the existence check and delete used around uploads.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from objupload.app.services.base import InvalidSizeError, ObjectExistsError
from objupload.app.services.chunk_size import parse_size, resolve_chunk_size
from objupload.app.services.part_reader import Source, source_size
from objupload.app.services.upload_service import MultipartUploader, UploadConfig
from objupload.common.config import Settings, get_settings
from objupload.infra.storage.client import StorageClient
from objupload.infra.storage.s3_client import S3StorageClient

logger = logging.getLogger("objupload.transfer")


@dataclass(frozen=True, slots=True)
class TransferResult:
    """Outcome of an upload."""

    bucket: str
    object_key: str
    size_bytes: int | None
    multipart: bool
    upload_id: str | None = None


class ObjectTransferService:
    """Application service for putting and removing objects.

    A fixed ``multipart_chunksize`` is validated on construction, so a bad
    value fails before any request whichever upload path is taken.
    """

    def __init__(
        self,
        *,
        storage_client: StorageClient | None = None,
        settings: Settings | None = None,
        upload_config: UploadConfig | None = None,
        multipart_threshold: str | int | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._storage = storage_client or S3StorageClient(settings=self._settings)
        self._config = upload_config or self._settings.upload_config()
        if self._config.multipart_chunksize is not None:
            resolve_chunk_size(
                self._config.multipart_chunksize,
                min_part_size=self._config.min_part_size_bytes,
            )
        threshold = parse_size(
            multipart_threshold
            if multipart_threshold is not None
            else self._settings.UPLOAD_MULTIPART_THRESHOLD
        )
        if threshold < 0:
            raise InvalidSizeError("multipart threshold must not be negative")
        self._threshold = threshold
        self._uploader = MultipartUploader(self._storage)

    @property
    def multipart_threshold(self) -> int:
        return self._threshold

    def upload(
        self,
        bucket: str,
        object_key: str,
        source: Source,
        *,
        overwrite: bool = True,
    ) -> TransferResult:
        """Upload ``source`` with a single put or as a multipart object.

        Sources whose size is known and below the multipart threshold,
        including empty ones, go through ``put_object``. Everything else,
        including streams of unknown length, goes through the multipart
        uploader.

        Raises:
            ObjectExistsError: If ``overwrite`` is False and the key exists.
        """
        if not overwrite and self._storage.object_exists(
            bucket=bucket, object_key=object_key
        ):
            raise ObjectExistsError(f"Object already exists: s3://{bucket}/{object_key}")

        size = source_size(source)
        if size is not None and size < self._threshold:
            body = Path(source) if isinstance(source, (str, os.PathLike)) else source
            self._storage.put_object(
                bucket=bucket,
                object_key=object_key,
                body=body,
                content_type=self._config.content_type,
            )
            logger.info(
                "object_put bucket=%s key=%s bytes=%s",
                bucket,
                object_key,
                size,
                extra={"extra": {"bucket": bucket, "key": object_key, "bytes": size}},
            )
            return TransferResult(
                bucket=bucket, object_key=object_key, size_bytes=size, multipart=False
            )

        session = self._uploader.upload(bucket, object_key, source, self._config)
        return TransferResult(
            bucket=bucket,
            object_key=object_key,
            size_bytes=size,
            multipart=True,
            upload_id=session.session_id,
        )

    def exists(self, bucket: str, object_key: str) -> bool:
        return self._storage.object_exists(bucket=bucket, object_key=object_key)

    def delete(self, bucket: str, object_key: str) -> None:
        self._storage.delete_object(bucket=bucket, object_key=object_key)
        logger.info(
            "object_deleted bucket=%s key=%s",
            bucket,
            object_key,
            extra={"extra": {"bucket": bucket, "key": object_key}},
        )
