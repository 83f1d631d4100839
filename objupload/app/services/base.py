from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from objupload.app.services.session import UploadSession


class ServiceError(Exception):
    """Base class for application service level exceptions."""


class InvalidSizeError(ServiceError, ValueError):
    """Raised when a chunk size or threshold is not acceptable to the store."""


class SourceReadError(ServiceError):
    """Raised when the local byte source cannot be opened or read."""


class ObjectExistsError(ServiceError):
    """Raised when the target key is taken and overwriting is disabled."""


class InvalidSessionTransitionError(ServiceError):
    """Raised when an upload session is moved to a state it cannot reach."""


class SessionCreateError(ServiceError):
    """Raised when the store refuses to open a multipart session."""


class PartUploadError(ServiceError):
    """Raised when the store rejects or fails a single part upload."""

    def __init__(self, part_number: int, message: str) -> None:
        super().__init__(message)
        self.part_number = part_number


class SessionCompleteError(ServiceError):
    """Raised when the store rejects the finalize call of a session."""

    def __init__(self, message: str, *, abort_error: BaseException | None = None) -> None:
        super().__init__(message)
        self.abort_error = abort_error


class MultipartUploadFailed(ServiceError):
    """Aggregate failure of the part upload phase.

    ``cause`` is the first failure observed; ``errors`` holds every failure,
    including ``cause``. ``abort_error`` is set when the best-effort abort
    itself failed.
    """

    def __init__(
        self,
        message: str,
        *,
        cause: BaseException,
        errors: Sequence[BaseException],
        session: "UploadSession | None" = None,
        abort_error: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.cause = cause
        self.errors = list(errors)
        self.session = session
        self.abort_error = abort_error

    @property
    def failed_parts(self) -> list[int]:
        return sorted(
            error.part_number for error in self.errors if isinstance(error, PartUploadError)
        )
