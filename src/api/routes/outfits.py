"""
Outfit Routes.

AI outfit suggestions from the user's wardrobe, and the saved outfit
history.

All endpoints require JWT authentication.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from config.constants import OUTFIT_LIMITS
from core.auth import AuthenticatedUser, require_auth
from services.outfit_service import OutfitService, get_outfit_service
from wardrobe.models import Outfit, OutfitContext, OutfitSuggestion


router = APIRouter(prefix="/api/outfits", tags=["Outfits"])


# =============================================================================
# Request/Response Models
# =============================================================================

class SuggestRequest(BaseModel):
    occasion: Optional[str] = Field(None, description=f"Defaults to {OUTFIT_LIMITS.DEFAULT_OCCASION}")
    weather: Optional[str] = Field(None, description=f"Defaults to {OUTFIT_LIMITS.DEFAULT_WEATHER}")


class SuggestResponse(BaseModel):
    item_ids: List[str]
    suggestion: str
    stylist_note: Optional[str] = None
    occasion: str
    weather: str


class SaveOutfitRequest(BaseModel):
    item_ids: List[str] = Field(
        ...,
        min_length=OUTFIT_LIMITS.MIN_ITEMS,
        max_length=OUTFIT_LIMITS.MAX_ITEMS,
    )
    occasion: Optional[str] = None
    weather: Optional[str] = None
    suggestion: Optional[str] = None


class OutfitHistoryResponse(BaseModel):
    outfits: List[Outfit]
    count: int


class DeleteResponse(BaseModel):
    deleted: bool
    id: str


# =============================================================================
# Endpoints
# =============================================================================

@router.post("/suggest", summary="Suggest an outfit")
def suggest_outfit(
    request: SuggestRequest,
    user: AuthenticatedUser = Depends(require_auth),
    service: OutfitService = Depends(get_outfit_service),
) -> SuggestResponse:
    """
    Ask the AI stylist for an outfit for an occasion and the weather.

    Needs at least 3 items in the wardrobe.
    """
    context = OutfitContext(occasion=request.occasion, weather=request.weather)
    suggestion: OutfitSuggestion = service.suggest(user.id, context)
    return SuggestResponse(
        item_ids=suggestion.item_ids,
        suggestion=suggestion.suggestion,
        stylist_note=suggestion.stylist_note,
        occasion=context.occasion,
        weather=context.weather,
    )


@router.post("", summary="Save an outfit", status_code=201)
def save_outfit(
    request: SaveOutfitRequest,
    user: AuthenticatedUser = Depends(require_auth),
    service: OutfitService = Depends(get_outfit_service),
) -> Outfit:
    return service.save(
        user.id,
        request.item_ids,
        occasion=request.occasion,
        weather=request.weather,
        suggestion=request.suggestion,
    )


@router.get("", summary="Outfit history")
def list_outfits(
    populate: bool = Query(True, description="Attach the wardrobe items to each outfit"),
    user: AuthenticatedUser = Depends(require_auth),
    service: OutfitService = Depends(get_outfit_service),
) -> OutfitHistoryResponse:
    """Saved outfits, newest first."""
    outfits = service.history(user.id, populate=populate)
    return OutfitHistoryResponse(outfits=outfits, count=len(outfits))


@router.delete("/{outfit_id}", summary="Delete a saved outfit")
def delete_outfit(
    outfit_id: str,
    user: AuthenticatedUser = Depends(require_auth),
    service: OutfitService = Depends(get_outfit_service),
) -> DeleteResponse:
    return DeleteResponse(deleted=service.delete(user.id, outfit_id), id=outfit_id)
