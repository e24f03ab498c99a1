"""Services package."""

from finance_tracker.services.image import (
    DocumentDecodeError,
    DocumentPreprocessor,
    PreprocessingError,
    UnsupportedFormatError,
    UploadTooLargeError,
)
from finance_tracker.services.storage import (
    BackendUnavailableError,
    CorruptSnapshotError,
    EntityRepository,
    KeyValueBackend,
    LocalStorage,
    StorageError,
)

__all__ = [
    # Document preprocessing
    "DocumentDecodeError",
    "DocumentPreprocessor",
    "PreprocessingError",
    "UnsupportedFormatError",
    "UploadTooLargeError",
    # Storage services
    "BackendUnavailableError",
    "CorruptSnapshotError",
    "EntityRepository",
    "KeyValueBackend",
    "LocalStorage",
    "StorageError",
]
