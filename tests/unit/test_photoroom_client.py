"""
Tests for the Photoroom background removal client.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from config.settings import get_settings_for_testing
from integrations.photoroom_client import PhotoroomApiError, PhotoroomClient
from wardrobe.images import ImagePayload


@pytest.fixture
def photoroom():
    return PhotoroomClient(settings=get_settings_for_testing(photoroom_api_key="pr-key"))


@pytest.fixture
def unconfigured():
    return PhotoroomClient(settings=get_settings_for_testing(photoroom_api_key=""))


class TestSegment:

    @patch("integrations.photoroom_client.requests.post")
    def test_posts_image_file(self, mock_post, photoroom, sample_image):
        mock_post.return_value = MagicMock(status_code=200, content=b"cutout")

        result = photoroom.segment(sample_image)

        assert result.data == b"cutout"
        assert result.mime_type == "image/png"
        args, kwargs = mock_post.call_args
        assert args[0] == "https://sdk.photoroom.com/v1/segment"
        assert kwargs["headers"] == {"x-api-key": "pr-key"}
        assert kwargs["files"]["image_file"] == ("image.jpg", sample_image.data, "image/jpeg")
        assert kwargs["timeout"] == 30

    @patch("integrations.photoroom_client.requests.post")
    def test_png_filename(self, mock_post, photoroom):
        mock_post.return_value = MagicMock(status_code=200, content=b"cutout")

        photoroom.segment(ImagePayload(b"png", "image/png"))

        assert mock_post.call_args.kwargs["files"]["image_file"][0] == "image.png"

    @patch("integrations.photoroom_client.requests.post")
    def test_error_status(self, mock_post, photoroom, sample_image):
        mock_post.return_value = MagicMock(status_code=402, text="Payment required")

        with pytest.raises(PhotoroomApiError) as exc_info:
            photoroom.segment(sample_image)
        assert exc_info.value.status_code == 402
        assert "Payment required" in str(exc_info.value)

    @patch("integrations.photoroom_client.requests.post")
    def test_transport_error(self, mock_post, photoroom, sample_image):
        mock_post.side_effect = requests.Timeout("slow")

        with pytest.raises(PhotoroomApiError):
            photoroom.segment(sample_image)

    def test_missing_key(self, unconfigured, sample_image):
        with pytest.raises(PhotoroomApiError):
            unconfigured.segment(sample_image)


class TestRemoveBackground:

    @patch("integrations.photoroom_client.requests.post")
    def test_returns_cutout(self, mock_post, photoroom, sample_image):
        mock_post.return_value = MagicMock(status_code=200, content=b"cutout")
        assert photoroom.remove_background(sample_image).data == b"cutout"

    @patch("integrations.photoroom_client.requests.post")
    def test_falls_back_on_error(self, mock_post, photoroom, sample_image):
        mock_post.return_value = MagicMock(status_code=500, text="oops")
        assert photoroom.remove_background(sample_image) is sample_image

    @patch("integrations.photoroom_client.requests.post")
    def test_no_key_skips_request(self, mock_post, unconfigured, sample_image):
        assert unconfigured.remove_background(sample_image) is sample_image
        mock_post.assert_not_called()
