"""
Document Preprocessing using Pillow

Receipts are usually phone photos of several megabytes. Before they are
sent to the extraction service we:
1. Cap the larger side at a fixed size (1024 px by default), keeping the
   aspect ratio
2. Re-encode as JPEG at a fixed quality (70 by default)

That is plenty for the model to read the text and makes the upload an
order of magnitude smaller. PDFs are passed through untouched.

Anything that is neither an image nor a PDF is refused here, before any
network call is made.
"""

import base64
import binascii
from io import BytesIO
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError

from finance_tracker.config import get_settings
from finance_tracker.models.finance import PreparedDocument


PDF_MIME_TYPE = "application/pdf"
JPEG_MIME_TYPE = "image/jpeg"


class PreprocessingError(Exception):
    """Base exception for document preprocessing errors."""
    pass


class UnsupportedFormatError(PreprocessingError):
    """The file is neither an image nor a PDF."""

    def __init__(self, mime_type: str):
        self.mime_type = mime_type
        super().__init__(f"Unsupported document type: {mime_type or 'unknown'}")


class DocumentDecodeError(PreprocessingError):
    """The image bytes could not be decoded (corrupt or truncated file)."""
    pass


class UploadTooLargeError(PreprocessingError):
    """The file exceeds the configured upload limit."""
    pass


def scaled_dimensions(width: int, height: int, max_dimension: int) -> tuple[int, int]:
    """
    Dimensions after capping the larger side at `max_dimension`.

    Images already within the limit keep their size. The larger side of a
    scaled image is exactly `max_dimension`; the other side is rounded and
    never drops below 1 px.
    """
    larger = max(width, height)
    if larger <= max_dimension:
        return width, height

    scale = max_dimension / larger
    if width >= height:
        return max_dimension, max(1, round(height * scale))
    return max(1, round(width * scale)), max_dimension


def decode_data_url(data_url: str) -> tuple[str, bytes]:
    """
    Split a `data:<type>;base64,<payload>` string.

    Returns:
        (mime_type, raw_bytes)

    Raises:
        ValueError: If the string is not a base64 data URL
    """
    header, sep, payload = data_url.partition(",")
    if not sep or not header.startswith("data:") or not header.endswith(";base64"):
        raise ValueError("Not a base64 data URL")
    mime_type = header[len("data:"):-len(";base64")]
    try:
        return mime_type, base64.b64decode(payload, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 payload: {e}")


class DocumentPreprocessor:
    """
    Prepares uploaded documents for the extraction service.

    Flow:
    1. Check size and declared media type
    2. Images: decode, downscale, re-encode as JPEG
    3. PDFs: pass through
    """

    def __init__(
        self,
        max_dimension: Optional[int] = None,
        jpeg_quality: Optional[int] = None,
        max_upload_bytes: Optional[int] = None,
    ):
        app_settings = get_settings().app
        self._max_dimension = max_dimension or app_settings.max_image_dimension
        self._jpeg_quality = jpeg_quality or app_settings.jpeg_quality
        self._max_upload_bytes = max_upload_bytes or app_settings.max_upload_size_bytes

    @property
    def max_dimension(self) -> int:
        return self._max_dimension

    def prepare(self, raw: bytes, mime_type: str) -> PreparedDocument:
        """
        Prepare a raw upload.

        Args:
            raw: File contents
            mime_type: Declared media type of the file

        Returns:
            PreparedDocument ready to be encoded and sent

        Raises:
            UnsupportedFormatError: Not an image and not a PDF
            DocumentDecodeError: Image could not be decoded
            UploadTooLargeError: File exceeds the upload limit
        """
        mime_type = (mime_type or "").strip().lower()

        if mime_type != PDF_MIME_TYPE and not mime_type.startswith("image/"):
            raise UnsupportedFormatError(mime_type)

        if len(raw) > self._max_upload_bytes:
            raise UploadTooLargeError(
                f"File is {len(raw) / (1024 * 1024):.1f} MB, "
                f"the limit is {self._max_upload_bytes // (1024 * 1024)} MB"
            )

        if mime_type == PDF_MIME_TYPE:
            return PreparedDocument(
                mime_type=PDF_MIME_TYPE,
                data=raw,
                original_size_bytes=len(raw),
            )

        return self._prepare_image(raw)

    def _prepare_image(self, raw: bytes) -> PreparedDocument:
        try:
            img = Image.open(BytesIO(raw))
            img.load()
            # Phones store rotation in EXIF; apply it so text is upright
            img = ImageOps.exif_transpose(img)
        except (
            UnidentifiedImageError,
            Image.DecompressionBombError,
            OSError,
            ValueError,
        ) as e:
            raise DocumentDecodeError(f"Could not decode image: {e}")

        new_size = scaled_dimensions(img.width, img.height, self._max_dimension)
        if new_size != img.size:
            img = img.resize(new_size, Image.Resampling.LANCZOS)

        img = self._to_rgb(img)

        buffer = BytesIO()
        img.save(buffer, format="JPEG", quality=self._jpeg_quality)

        return PreparedDocument(
            mime_type=JPEG_MIME_TYPE,
            data=buffer.getvalue(),
            width=img.width,
            height=img.height,
            original_size_bytes=len(raw),
        )

    @staticmethod
    def _to_rgb(img: Image.Image) -> Image.Image:
        """JPEG has no alpha: flatten transparent images onto white."""
        if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
            rgba = img.convert("RGBA")
            background = Image.new("RGB", rgba.size, (255, 255, 255))
            background.paste(rgba, mask=rgba.getchannel("A"))
            return background
        if img.mode != "RGB":
            return img.convert("RGB")
        return img
