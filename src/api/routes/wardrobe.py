"""
Wardrobe Routes.

Browse, inspect and delete stored clothing items, correct an item's
gender, and analyze a single photo without saving it.

All endpoints require JWT authentication.
"""

from typing import List

from fastapi import APIRouter, Depends, File, UploadFile
from pydantic import BaseModel, Field

from config.settings import get_settings
from core.auth import AuthenticatedUser, require_auth
from services.wardrobe_service import WardrobeService, get_wardrobe_service
from wardrobe.images import load_upload
from wardrobe.models import Gender, WardrobeItem, WardrobeItemMetadata


router = APIRouter(prefix="/api/wardrobe", tags=["Wardrobe"])


# =============================================================================
# Request/Response Models
# =============================================================================

class WardrobeListResponse(BaseModel):
    items: List[WardrobeItem]
    count: int


class GenderUpdateRequest(BaseModel):
    gender: Gender = Field(..., description="male, female or unisex")


class DeleteResponse(BaseModel):
    deleted: bool
    id: str


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/items", summary="List wardrobe items")
def list_items(
    user: AuthenticatedUser = Depends(require_auth),
    service: WardrobeService = Depends(get_wardrobe_service),
) -> WardrobeListResponse:
    """All of the user's items, newest first."""
    items = service.list_items(user.id)
    return WardrobeListResponse(items=items, count=len(items))


@router.get("/items/{item_id}", summary="Get a wardrobe item")
def get_item(
    item_id: str,
    user: AuthenticatedUser = Depends(require_auth),
    service: WardrobeService = Depends(get_wardrobe_service),
) -> WardrobeItem:
    return service.get_item(user.id, item_id)


@router.patch("/items/{item_id}/gender", summary="Change an item's gender")
def update_item_gender(
    item_id: str,
    request: GenderUpdateRequest,
    user: AuthenticatedUser = Depends(require_auth),
    service: WardrobeService = Depends(get_wardrobe_service),
) -> WardrobeItem:
    return service.update_item_gender(user.id, item_id, request.gender)


@router.delete("/items/{item_id}", summary="Delete a wardrobe item")
def delete_item(
    item_id: str,
    user: AuthenticatedUser = Depends(require_auth),
    service: WardrobeService = Depends(get_wardrobe_service),
) -> DeleteResponse:
    """
    Delete an item and its images.

    Image cleanup is best-effort; the item row is always removed.
    """
    return DeleteResponse(deleted=service.delete_item(user.id, item_id), id=item_id)


@router.post("/analyze", summary="Analyze a single clothing photo")
def analyze_photo(
    file: UploadFile = File(..., description="Photo of one clothing item"),
    user: AuthenticatedUser = Depends(require_auth),
    service: WardrobeService = Depends(get_wardrobe_service),
) -> WardrobeItemMetadata:
    """Describe the garment in a photo. Nothing is stored."""
    image = load_upload(file.file.read(), file.filename, get_settings().upload_max_bytes)
    return service.analyze_photo(image)
