"""
Wardrobe domain: models, image payloads and Supabase persistence.
"""

from wardrobe.images import ImagePayload, fetch_image, load_upload
from wardrobe.models import (
    DetectedItem,
    Gender,
    Outfit,
    OutfitContext,
    OutfitSuggestion,
    OutfitVisualization,
    ProfileGender,
    UserProfile,
    WardrobeItem,
    WardrobeItemMetadata,
)

__all__ = [
    "ImagePayload",
    "fetch_image",
    "load_upload",
    "DetectedItem",
    "Gender",
    "Outfit",
    "OutfitContext",
    "OutfitSuggestion",
    "OutfitVisualization",
    "ProfileGender",
    "UserProfile",
    "WardrobeItem",
    "WardrobeItemMetadata",
]
