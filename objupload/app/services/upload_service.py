"""Concurrent multipart upload coordinator.

This module splits a local byte source into parts, uploads the parts through
a bounded thread pool and finalizes or aborts the remote multipart session.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ALL_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Iterable

from objupload.app.services.base import (
    InvalidSizeError,
    MultipartUploadFailed,
    PartUploadError,
    SessionCompleteError,
    SessionCreateError,
    SourceReadError,
)
from objupload.app.services.chunk_size import (
    MIN_PART_SIZE_BYTES,
    resolve_chunk_size,
    suggest_chunk_size,
)
from objupload.app.services.finalizer import SessionFinalizer
from objupload.app.services.part_reader import (
    Part,
    Source,
    iter_parts,
    open_source,
    source_size,
)
from objupload.app.services.session import PartResult, SessionState, UploadSession
from objupload.infra.observability.metrics import PART_BYTES, PART_LATENCY, PARTS
from objupload.infra.storage.client import MAX_PART_NUMBER, StorageClient

logger = logging.getLogger("objupload.upload")


@dataclass(frozen=True, slots=True)
class UploadConfig:
    """Tuning for one multipart upload.

    ``multipart_chunksize`` set to None picks the smallest chunk size that
    fits the source in 10,000 parts.
    """

    max_concurrent_requests: int
    multipart_chunksize: str | int | None = "8MB"
    min_part_size_bytes: int = MIN_PART_SIZE_BYTES
    expected_size_bytes: int | None = None
    content_type: str | None = None

    def __post_init__(self) -> None:
        value = self.max_concurrent_requests
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ValueError("max_concurrent_requests must be a positive integer")


class MultipartUploader:
    """Uploads one object as a multipart session.

    Parts are read sequentially in the calling thread and uploaded by at most
    ``max_concurrent_requests`` workers. Every dispatched part is waited for
    before the session is completed or aborted.
    """

    def __init__(
        self,
        storage: StorageClient,
        *,
        finalizer: SessionFinalizer | None = None,
    ) -> None:
        self._storage = storage
        self._finalizer = finalizer or SessionFinalizer(storage)

    @staticmethod
    def resolve_chunk_size(config: UploadConfig, size: int | None) -> int:
        if config.multipart_chunksize is None:
            return suggest_chunk_size(size or 0, min_part_size=config.min_part_size_bytes)
        return resolve_chunk_size(
            config.multipart_chunksize,
            source_size=size,
            min_part_size=config.min_part_size_bytes,
        )

    def upload(
        self,
        bucket: str,
        object_key: str,
        source: Source,
        config: UploadConfig,
    ) -> UploadSession:
        """Upload ``source`` to ``bucket``/``object_key`` as a multipart object.

        Args:
            bucket: Target bucket name.
            object_key: Object key (path) in the bucket.
            source: Path to a local file, an open binary stream, or bytes.
            config: Concurrency and chunk size settings.

        Returns:
            The session in its COMPLETED state.

        Raises:
            InvalidSizeError: If the chunk size is not acceptable. Raised
                before any network call.
            SourceReadError: If a path source cannot be opened.
            SessionCreateError: If the session cannot be opened.
            MultipartUploadFailed: If reading or any part upload fails.
            SessionCompleteError: If the store rejects the completion call.
        """
        size = config.expected_size_bytes
        if size is None:
            size = source_size(source)
        chunk_size = self.resolve_chunk_size(config, size)

        with open_source(source) as stream:
            session = self.begin(bucket, object_key, content_type=config.content_type)
            try:
                results = self.dispatch_all(
                    session,
                    iter_parts(stream, chunk_size),
                    config.max_concurrent_requests,
                )
                self._finalizer.complete(session, results)
            except (MultipartUploadFailed, SessionCompleteError):
                raise
            except BaseException:
                if not session.is_terminal:
                    self._finalizer.abort(session)
                raise
        return session

    def begin(
        self, bucket: str, object_key: str, *, content_type: str | None = None
    ) -> UploadSession:
        """Open a multipart session on the store."""
        try:
            upload = self._storage.init_multipart_upload(
                bucket=bucket, object_key=object_key, content_type=content_type
            )
        except Exception as exc:
            raise SessionCreateError(
                f"Failed to create multipart upload for s3://{bucket}/{object_key}: {exc}"
            ) from exc

        session = UploadSession(
            session_id=upload.upload_id, bucket=bucket, object_key=object_key
        )
        logger.info(
            "multipart_session_created bucket=%s key=%s upload_id=%s",
            bucket,
            object_key,
            session.session_id,
            extra={
                "extra": {
                    "bucket": bucket,
                    "key": object_key,
                    "upload_id": session.session_id,
                }
            },
        )
        return session

    def dispatch_all(
        self,
        session: UploadSession,
        parts: Iterable[Part],
        max_concurrent_requests: int,
    ) -> list[PartResult]:
        """Upload every part and return the results in part-number order.

        Submission follows the order of ``parts``; completion order is not
        assumed. Once a failure is seen no further parts are read, in-flight
        uploads are drained, the session is aborted and MultipartUploadFailed
        is raised.
        """
        if max_concurrent_requests <= 0:
            raise ValueError("max_concurrent_requests must be positive")
        session.transition_to(SessionState.PARTS_IN_FLIGHT)

        slots = threading.BoundedSemaphore(max_concurrent_requests)
        failed = threading.Event()
        lock = threading.Lock()
        observed: list[BaseException] = []
        futures: dict[Future[PartResult], int] = {}
        read_error: BaseException | None = None

        def on_done(future: Future[PartResult]) -> None:
            exc = future.exception()
            if exc is not None:
                with lock:
                    observed.append(exc)
                failed.set()
            slots.release()

        with ThreadPoolExecutor(
            max_workers=max_concurrent_requests, thread_name_prefix="objupload-part"
        ) as executor:

            def submit(part: Part) -> None:
                future = executor.submit(self._upload_part, session, part)
                futures[future] = part.number
                future.add_done_callback(on_done)

            iterator = iter(parts)
            while True:
                slots.acquire()
                if failed.is_set():
                    slots.release()
                    break
                try:
                    part = next(iterator, None)
                    if part is not None and part.number > MAX_PART_NUMBER:
                        raise InvalidSizeError(
                            f"Source needs more than {MAX_PART_NUMBER} parts"
                        )
                except (SourceReadError, InvalidSizeError) as exc:
                    slots.release()
                    read_error = exc
                    with lock:
                        observed.append(exc)
                    break
                if part is None:
                    if futures:
                        slots.release()
                        break
                    # S3 needs at least one part; an empty one is allowed as the last.
                    part = Part(number=1, payload=b"")
                    submit(part)
                    break
                submit(part)

            wait(futures, return_when=ALL_COMPLETED)

        results: dict[int, PartResult] = {}
        errors: list[BaseException] = []
        for future, number in futures.items():
            exc = future.exception()
            if exc is not None:
                errors.append(exc)
            else:
                results[number] = future.result()
        errors.sort(key=lambda e: getattr(e, "part_number", MAX_PART_NUMBER + 1))
        if read_error is not None:
            errors.append(read_error)

        if errors:
            cause = observed[0] if observed else errors[0]
            failed_parts = [e.part_number for e in errors if isinstance(e, PartUploadError)]
            logger.error(
                "multipart_parts_failed bucket=%s key=%s upload_id=%s failed_parts=%s cause=%s",
                session.bucket,
                session.object_key,
                session.session_id,
                failed_parts,
                cause,
                extra={
                    "extra": {
                        "upload_id": session.session_id,
                        "failed_parts": failed_parts,
                        "succeeded_parts": len(results),
                        "cause": repr(cause),
                    }
                },
            )
            abort_error = self._finalizer.abort(session)
            if failed_parts:
                detail = f"parts {failed_parts} failed"
            elif isinstance(read_error, InvalidSizeError):
                detail = f"source needs more than {MAX_PART_NUMBER} parts"
            else:
                detail = "source read failed"
            raise MultipartUploadFailed(
                f"Multipart upload to s3://{session.bucket}/{session.object_key} "
                f"aborted: {detail}: {cause}",
                cause=cause,
                errors=errors,
                session=session,
                abort_error=abort_error,
            ) from cause

        return [results[number] for number in sorted(results)]

    def _upload_part(self, session: UploadSession, part: Part) -> PartResult:
        start = time.perf_counter()
        try:
            token = self._storage.upload_part(
                bucket=session.bucket,
                object_key=session.object_key,
                upload_id=session.session_id,
                part_number=part.number,
                body=part.payload,
            )
        except Exception as exc:
            PARTS.labels(status="failed").inc()
            raise PartUploadError(
                part.number, f"Failed to upload part {part.number}: {exc}"
            ) from exc

        PARTS.labels(status="succeeded").inc()
        PART_BYTES.inc(part.size)
        PART_LATENCY.observe(time.perf_counter() - start)
        logger.debug(
            "multipart_part_uploaded upload_id=%s part=%s bytes=%s",
            session.session_id,
            part.number,
            part.size,
        )
        return PartResult(number=part.number, token=token)
