"""
Tests for image payload helpers and storage URL utilities.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from core.errors import InvalidRequestError, NetworkError
from core.utils import (
    dedupe_preserving_order,
    extract_storage_path,
    generated_extension,
    mime_type_from_filename,
    normalize_string_list,
    original_extension,
)
from wardrobe.images import ImagePayload, detect_mime_type, fetch_image, load_upload


PUBLIC = "https://abc.supabase.co/storage/v1/object/public"


class TestExtractStoragePath:

    def test_extracts_path(self):
        url = f"{PUBLIC}/wardrobe-images/u1/i1/original.jpg"
        assert extract_storage_path(url, "wardrobe-images") == "u1/i1/original.jpg"

    def test_other_bucket(self):
        url = f"{PUBLIC}/isolated-images/u1/i1/isolated.png"
        assert extract_storage_path(url, "wardrobe-images") is None

    def test_query_string_ignored_and_unquoted(self):
        url = f"{PUBLIC}/wardrobe-images/u1/my%20item/original.jpg?t=123"
        assert extract_storage_path(url, "wardrobe-images") == "u1/my item/original.jpg"

    @pytest.mark.parametrize("url", [None, "", f"{PUBLIC}/wardrobe-images/"])
    def test_empty(self, url):
        assert extract_storage_path(url, "wardrobe-images") is None


class TestExtensions:

    @pytest.mark.parametrize("name,expected", [
        ("photo.PNG", "image/png"),
        ("file:///tmp/IMG_1.heic", "image/heic"),
        ("pic.webp", "image/webp"),
        ("pic.jpeg", "image/jpeg"),
        ("noext", "image/jpeg"),
        (None, "image/jpeg"),
    ])
    def test_mime_from_filename(self, name, expected):
        assert mime_type_from_filename(name) == expected

    def test_original_extension(self):
        assert original_extension("image/png") == "png"
        assert original_extension("image/heic") == "jpg"

    def test_generated_extension(self):
        assert generated_extension("image/png") == "png"
        assert generated_extension("image/jpeg") == "jpeg"


class TestStringHelpers:

    def test_normalize_string_list(self):
        assert normalize_string_list([" A", "a", None, "", "B "]) == ["a", "b"]
        assert normalize_string_list(None) == []

    def test_dedupe_preserving_order(self):
        assert dedupe_preserving_order(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]


class TestImagePayload:

    def test_size_kb(self):
        assert ImagePayload(data=b"x" * 2048).size_kb == 2


class TestLoadUpload:

    def test_detects_png_from_bytes(self, png_bytes):
        payload = load_upload(png_bytes, filename="upload.jpg")
        assert payload.mime_type == "image/png"
        assert payload.filename == "upload.jpg"

    def test_unknown_bytes_fall_back_to_filename(self):
        assert detect_mime_type(b"not an image", "x.heic") == "image/heic"

    def test_empty_rejected(self):
        with pytest.raises(InvalidRequestError):
            load_upload(b"")

    def test_too_large_rejected(self, png_bytes):
        with pytest.raises(InvalidRequestError, match="too large"):
            load_upload(png_bytes, max_bytes=10)


class TestFetchImage:

    @patch("wardrobe.images.requests.get")
    def test_uses_content_type_header(self, mock_get):
        mock_get.return_value = MagicMock(
            status_code=200, content=b"img", headers={"Content-Type": "image/png; charset=binary"}
        )

        payload = fetch_image("https://x/y.png", timeout=5)

        assert payload.mime_type == "image/png"
        assert payload.data == b"img"
        mock_get.assert_called_once_with("https://x/y.png", timeout=5)

    @patch("wardrobe.images.requests.get")
    def test_error_status(self, mock_get):
        mock_get.return_value = MagicMock(status_code=404, content=b"", headers={})
        with pytest.raises(NetworkError):
            fetch_image("https://x/missing.png")

    @patch("wardrobe.images.requests.get")
    def test_request_exception(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("down")
        with pytest.raises(NetworkError):
            fetch_image("https://x/y.png")
