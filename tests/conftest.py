"""
Pytest configuration and shared fixtures for the wardrobe API tests.
"""
import io
import os
import sys
from typing import Callable, Optional
from unittest.mock import MagicMock

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(__file__)), "src"))

# Test environment; must be set before settings are first loaded
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-with-enough-length-for-hs256")
os.environ.setdefault("ENVIRONMENT", "testing")

TEST_USER_ID = "11111111-2222-3333-4444-555555555555"


# ============================================================================
# Fixtures: Test Data Factories
# ============================================================================

def make_item_row(item_id: str = "item-1", **overrides) -> dict:
    """An ``items`` row as Supabase returns it."""
    row = {
        "id": item_id,
        "user_id": TEST_USER_ID,
        "image_url": f"https://test.supabase.co/storage/v1/object/public/wardrobe-images/{TEST_USER_ID}/{item_id}/original.jpg",
        "isolated_image_url": f"https://test.supabase.co/storage/v1/object/public/isolated-images/{TEST_USER_ID}/{item_id}/isolated.png",
        "category": "Top",
        "subcategory": "T-Shirt",
        "color": "Blue",
        "material": "Cotton",
        "attributes": ["casual", "summer"],
        "gender": "unisex",
        "created_at": "2026-01-12T10:00:00+00:00",
        "updated_at": "2026-01-12T10:00:00+00:00",
    }
    row.update(overrides)
    return row


def make_item(item_id: str = "item-1", **overrides):
    from wardrobe.models import WardrobeItem
    return WardrobeItem.from_row(make_item_row(item_id, **overrides))


def make_png_bytes(size=(4, 4), color=(255, 255, 255)) -> bytes:
    from PIL import Image
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def user_id() -> str:
    return TEST_USER_ID


@pytest.fixture
def item_factory() -> Callable:
    return make_item


@pytest.fixture
def item_row_factory() -> Callable:
    return make_item_row


@pytest.fixture
def wardrobe_items():
    """A small wardrobe: top, bottom, shoes."""
    return [
        make_item("item-top", category="Top", subcategory="T-Shirt", color="White"),
        make_item("item-bottom", category="Bottom", subcategory="Jeans", color="Blue", material="Denim"),
        make_item("item-shoes", category="Shoes", subcategory="Sneakers", color="Black", material="Leather"),
    ]


@pytest.fixture
def sample_image():
    from wardrobe.images import ImagePayload
    return ImagePayload(data=b"\xff\xd8\xff\xe0fake-jpeg", mime_type="image/jpeg", filename="photo.jpg")


@pytest.fixture
def png_bytes() -> bytes:
    return make_png_bytes()


@pytest.fixture
def test_settings():
    from config.settings import get_settings_for_testing
    return get_settings_for_testing()


# ============================================================================
# Fixtures: Mock Services
# ============================================================================

@pytest.fixture
def mock_supabase_client():
    """Mock Supabase client; query builders chain back to the same mock."""
    mock_client = MagicMock()
    query = mock_client.table.return_value
    for method in ("select", "insert", "update", "upsert", "delete", "eq", "order", "limit"):
        getattr(query, method).return_value = query
    query.execute.return_value.data = []

    bucket = mock_client.storage.from_.return_value
    bucket.get_public_url.side_effect = (
        lambda path: f"https://test.supabase.co/storage/v1/object/public/bucket/{path}"
    )
    return mock_client


@pytest.fixture
def mock_repository():
    from wardrobe.repository import WardrobeRepository
    return MagicMock(spec=WardrobeRepository)


@pytest.fixture
def mock_gemini():
    from integrations.gemini_client import GeminiClient
    return MagicMock(spec=GeminiClient)


@pytest.fixture
def mock_photoroom():
    from integrations.photoroom_client import PhotoroomClient
    return MagicMock(spec=PhotoroomClient)


# ============================================================================
# Fixtures: FastAPI Test Client
# ============================================================================

@pytest.fixture
def app():
    """A fresh FastAPI application; dependency overrides are per test."""
    from api.app import create_app
    return create_app()


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ============================================================================
# Markers
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "supabase: marks tests that require Supabase")


# ============================================================================
# JWT Token Generation
# ============================================================================

def generate_test_jwt(
    user_id: str = TEST_USER_ID,
    exp_hours: int = 24,
    audience: str = "authenticated",
    secret: Optional[str] = None,
) -> str:
    """Sign a Supabase-style access token with the test secret."""
    import time

    import jwt

    now = int(time.time())
    payload = {
        "sub": user_id,
        "aud": audience,
        "role": "authenticated",
        "email": f"{user_id}@test.com",
        "exp": now + (exp_hours * 3600),
        "iat": now,
        "is_anonymous": False,
    }
    return jwt.encode(payload, secret or os.environ["SUPABASE_JWT_SECRET"], algorithm="HS256")


@pytest.fixture
def test_jwt_token() -> str:
    return generate_test_jwt()


@pytest.fixture
def auth_headers(test_jwt_token: str) -> dict:
    return {"Authorization": f"Bearer {test_jwt_token}"}


# ============================================================================
# Skip conditions
# ============================================================================

def pytest_collection_modifyitems(config, items):
    """Skip tests marked ``supabase`` unless a real project is configured."""
    skip_supabase = pytest.mark.skip(reason="Supabase tests require credentials")
    real_project = not os.environ["SUPABASE_URL"].startswith("https://test.")
    for item in items:
        if "supabase" in item.keywords and not real_project:
            item.add_marker(skip_supabase)
