"""
Virtual Try-On Routes.

Renders outfits on the user's personal model. Renders are cached per set
of items; the same outfit is only generated once unless regeneration is
forced.

All endpoints require JWT authentication.
"""

from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from core.auth import AuthenticatedUser, require_auth
from services.tryon_service import TryOnService, get_tryon_service
from wardrobe.models import OutfitVisualization, WardrobeItem


router = APIRouter(prefix="/api/tryon", tags=["Try-On"])


class TryOnRequest(BaseModel):
    item_ids: List[str] = Field(..., min_length=1)
    force_regenerate: bool = Field(False, description="Skip the cache and render a new image")
    allow_gender_mismatch: bool = Field(
        False,
        description="Render even if some items don't match the profile gender",
    )


class CompatibilityRequest(BaseModel):
    item_ids: List[str] = Field(..., min_length=1)


class CompatibilityResponse(BaseModel):
    is_compatible: bool
    incompatible_items: List[WardrobeItem]


@router.post("/compatibility", summary="Check items against the profile gender")
def check_compatibility(
    request: CompatibilityRequest,
    user: AuthenticatedUser = Depends(require_auth),
    service: TryOnService = Depends(get_tryon_service),
) -> CompatibilityResponse:
    result = service.check_compatibility(user.id, request.item_ids)
    return CompatibilityResponse(
        is_compatible=result.is_compatible,
        incompatible_items=result.incompatible_items,
    )


@router.post("", summary="Get or generate a try-on image")
def try_on(
    request: TryOnRequest,
    user: AuthenticatedUser = Depends(require_auth),
    service: TryOnService = Depends(get_tryon_service),
) -> OutfitVisualization:
    """
    Return the cached render for these items, or generate one.

    ``cached`` in the response tells whether the image came from the cache.
    """
    return service.get_visualization(
        user.id,
        request.item_ids,
        force_regenerate=request.force_regenerate,
        allow_gender_mismatch=request.allow_gender_mismatch,
    )
