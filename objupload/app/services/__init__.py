from .base import (
    InvalidSessionTransitionError,
    InvalidSizeError,
    MultipartUploadFailed,
    ObjectExistsError,
    PartUploadError,
    ServiceError,
    SessionCompleteError,
    SessionCreateError,
    SourceReadError,
)
from .chunk_size import parse_size, resolve_chunk_size, suggest_chunk_size
from .finalizer import SessionFinalizer
from .part_reader import Part, iter_parts, open_source, source_size
from .session import PartResult, SessionState, UploadSession
from .transfer_service import ObjectTransferService, TransferResult
from .upload_service import MultipartUploader, UploadConfig

__all__ = [
    "ServiceError",
    "InvalidSizeError",
    "InvalidSessionTransitionError",
    "SessionCreateError",
    "SourceReadError",
    "PartUploadError",
    "MultipartUploadFailed",
    "SessionCompleteError",
    "ObjectExistsError",
    "parse_size",
    "resolve_chunk_size",
    "suggest_chunk_size",
    "Part",
    "iter_parts",
    "open_source",
    "source_size",
    "PartResult",
    "SessionState",
    "UploadSession",
    "SessionFinalizer",
    "MultipartUploader",
    "UploadConfig",
    "ObjectTransferService",
    "TransferResult",
]
