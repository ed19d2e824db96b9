"""Image payloads passed between the API, AI providers and Storage."""

from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Optional

import requests
from PIL import Image, UnidentifiedImageError

from config.constants import PIL_FORMAT_TO_MIME
from core.errors import InvalidRequestError, NetworkError
from core.logging import get_logger
from core.utils import mime_type_from_filename

logger = get_logger(__name__)


@dataclass(frozen=True)
class ImagePayload:
    """Raw image bytes plus their MIME type."""

    data: bytes
    mime_type: str = "image/jpeg"
    filename: Optional[str] = None

    @property
    def size_kb(self) -> int:
        return round(len(self.data) / 1024)


def detect_mime_type(data: bytes, filename: Optional[str] = None) -> str:
    """
    Detect an image's MIME type from its bytes.

    Pillow can't always open HEIC without a plugin, so unknown formats fall
    back to the file name extension.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = (img.format or "").upper()
    except (UnidentifiedImageError, OSError):
        fmt = ""
    return PIL_FORMAT_TO_MIME.get(fmt) or mime_type_from_filename(filename)


def load_upload(data: bytes, filename: Optional[str] = None, max_bytes: Optional[int] = None) -> ImagePayload:
    """
    Build an ImagePayload from an uploaded file.

    Raises:
        InvalidRequestError: if the file is empty or too large
    """
    if not data:
        raise InvalidRequestError("Image file is empty")
    if max_bytes is not None and len(data) > max_bytes:
        raise InvalidRequestError(
            f"Image is too large ({len(data) // 1024} KB). Please use a smaller photo."
        )
    return ImagePayload(data=data, mime_type=detect_mime_type(data, filename), filename=filename)


def fetch_image(url: str, timeout: int = 20) -> ImagePayload:
    """
    Download an image (typically a Storage public URL).

    Raises:
        NetworkError: if the request fails or returns an error status
    """
    try:
        resp = requests.get(url, timeout=timeout)
    except requests.RequestException as exc:
        logger.error("Image fetch failed", url=url, error=str(exc))
        raise NetworkError() from exc

    if resp.status_code >= 400:
        logger.error("Image fetch returned error status", url=url, status_code=resp.status_code)
        raise NetworkError(f"Network error. Could not fetch image ({resp.status_code}).")

    content_type = resp.headers.get("Content-Type", "").split(";")[0].strip()
    if not content_type.startswith("image/"):
        content_type = detect_mime_type(resp.content, url)
    return ImagePayload(data=resp.content, mime_type=content_type, filename=url)
