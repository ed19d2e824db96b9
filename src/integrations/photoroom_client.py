"""Photoroom background removal client."""

from __future__ import annotations

from typing import Optional

import requests

from config.settings import Settings, get_settings
from core.logging import LoggerMixin
from core.utils import original_extension
from wardrobe.images import ImagePayload


class PhotoroomApiError(RuntimeError):
    """Raised for Photoroom API failures."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class PhotoroomClient(LoggerMixin):
    """Cuts garments out of photos with Photoroom's segmentation endpoint."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()

    def is_configured(self) -> bool:
        return bool(self._settings.photoroom_api_key)

    def segment(self, image: ImagePayload) -> ImagePayload:
        """
        Call the segmentation endpoint and return the transparent PNG.

        Raises:
            PhotoroomApiError: on a missing key, transport failure or error status
        """
        if not self.is_configured():
            raise PhotoroomApiError("Photoroom API key not set")

        filename = f"image.{original_extension(image.mime_type)}"
        try:
            resp = requests.post(
                self._settings.photoroom_api_url,
                headers={"x-api-key": self._settings.photoroom_api_key},
                files={"image_file": (filename, image.data, image.mime_type)},
                timeout=self._settings.photoroom_timeout_seconds,
            )
        except requests.RequestException as e:
            raise PhotoroomApiError(f"Photoroom request failed: {e}") from e

        if resp.status_code >= 400:
            raise PhotoroomApiError(
                f"Photoroom API failed ({resp.status_code}): {resp.text}",
                status_code=resp.status_code,
            )
        return ImagePayload(data=resp.content, mime_type="image/png")

    def remove_background(self, image: ImagePayload) -> ImagePayload:
        """Transparent PNG of the garment, or the original image on any failure."""
        if not self.is_configured():
            self.logger.warning("Photoroom API key not set, returning original image")
            return image
        try:
            return self.segment(image)
        except PhotoroomApiError as e:
            self.logger.error("Background removal failed", error=str(e), status_code=e.status_code)
            return image


def get_photoroom_client() -> PhotoroomClient:
    return PhotoroomClient()
