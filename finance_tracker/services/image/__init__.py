"""Document preprocessing services package."""

from finance_tracker.services.image.preprocessor import (
    DocumentDecodeError,
    DocumentPreprocessor,
    PreprocessingError,
    UnsupportedFormatError,
    UploadTooLargeError,
    decode_data_url,
    scaled_dimensions,
)

__all__ = [
    "DocumentDecodeError",
    "DocumentPreprocessor",
    "PreprocessingError",
    "UnsupportedFormatError",
    "UploadTooLargeError",
    "decode_data_url",
    "scaled_dimensions",
]
