"""Completion and abort of multipart sessions."""

from __future__ import annotations

import logging
from typing import Iterable

from objupload.app.services.base import SessionCompleteError
from objupload.app.services.session import PartResult, SessionState, UploadSession
from objupload.infra.observability.metrics import SESSIONS
from objupload.infra.storage.client import CompletedPart, StorageClient

logger = logging.getLogger("objupload.upload")


def order_part_results(results: Iterable[PartResult]) -> list[PartResult]:
    """Sort results by part number and check they cover 1..N exactly once.

    Raises:
        SessionCompleteError: If a part number is missing or duplicated.
    """
    ordered = sorted(results, key=lambda r: r.number)
    numbers = [r.number for r in ordered]
    expected = list(range(1, len(ordered) + 1))
    if numbers != expected:
        seen = set(numbers)
        missing = [n for n in range(1, max(numbers, default=0) + 1) if n not in seen]
        duplicated = sorted({n for n in numbers if numbers.count(n) > 1})
        raise SessionCompleteError(
            f"Part results are not contiguous (missing={missing}, duplicated={duplicated})"
        )
    return ordered


class SessionFinalizer:
    """Drives a session into its terminal state."""

    def __init__(self, storage: StorageClient) -> None:
        self._storage = storage

    def complete(self, session: UploadSession, results: Iterable[PartResult]) -> None:
        """Finalize ``session`` with its part tokens in ascending number order.

        On failure the session is aborted and SessionCompleteError is raised;
        a failing abort is attached as ``abort_error``.
        """
        session.transition_to(SessionState.COMPLETING)
        try:
            ordered = order_part_results(results)
            self._storage.complete_multipart_upload(
                bucket=session.bucket,
                object_key=session.object_key,
                upload_id=session.session_id,
                parts=[CompletedPart(part_number=r.number, etag=r.token) for r in ordered],
            )
        except Exception as exc:
            logger.error(
                "multipart_complete_failed bucket=%s key=%s upload_id=%s error=%s",
                session.bucket,
                session.object_key,
                session.session_id,
                exc,
                extra={"extra": {"upload_id": session.session_id, "error": repr(exc)}},
            )
            abort_error = self.abort(session)
            raise SessionCompleteError(
                f"Failed to complete multipart upload {session.session_id}: {exc}",
                abort_error=abort_error,
            ) from exc

        session.transition_to(SessionState.COMPLETED)
        SESSIONS.labels(outcome="completed").inc()
        logger.info(
            "multipart_completed bucket=%s key=%s upload_id=%s parts=%s",
            session.bucket,
            session.object_key,
            session.session_id,
            len(ordered),
            extra={
                "extra": {
                    "bucket": session.bucket,
                    "key": session.object_key,
                    "upload_id": session.session_id,
                    "parts": len(ordered),
                }
            },
        )

    def abort(self, session: UploadSession) -> Exception | None:
        """Abort ``session`` on a best-effort basis.

        Returns the abort call's own failure instead of raising it, so the
        error that triggered the abort stays the one surfaced to the caller.
        """
        session.transition_to(SessionState.ABORTED)
        SESSIONS.labels(outcome="aborted").inc()
        try:
            self._storage.abort_multipart_upload(
                bucket=session.bucket,
                object_key=session.object_key,
                upload_id=session.session_id,
            )
        except Exception as exc:
            logger.exception(
                "multipart_abort_failed bucket=%s key=%s upload_id=%s",
                session.bucket,
                session.object_key,
                session.session_id,
                extra={"extra": {"upload_id": session.session_id}},
            )
            return exc
        logger.warning(
            "multipart_aborted bucket=%s key=%s upload_id=%s",
            session.bucket,
            session.object_key,
            session.session_id,
            extra={"extra": {"upload_id": session.session_id}},
        )
        return None
