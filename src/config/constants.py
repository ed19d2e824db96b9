"""
Application constants.

These are values that don't change based on environment but are
referenced across the codebase.
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet


# =============================================================================
# Clothing Taxonomy
# =============================================================================

CATEGORIES: FrozenSet[str] = frozenset({
    "Top",
    "Bottom",
    "Shoes",
    "Accessories",
    "Outerwear",
})

ITEM_GENDERS: FrozenSet[str] = frozenset({"male", "female", "unisex"})

DEFAULT_ITEM_GENDER = "unisex"


# =============================================================================
# Outfit Configuration
# =============================================================================

@dataclass(frozen=True)
class OutfitLimits:
    """Bounds on outfit composition."""

    MIN_ITEMS: int = 2
    MAX_ITEMS: int = 7

    DEFAULT_OCCASION: str = "casual"
    DEFAULT_WEATHER: str = "moderate"


OUTFIT_LIMITS = OutfitLimits()


# =============================================================================
# Storage Layout
# =============================================================================

ORIGINAL_IMAGE_NAME = "original"
ISOLATED_IMAGE_NAME = "isolated.png"
PERSONAL_MODEL_NAME = "personal_model"

# Table names
ITEMS_TABLE = "items"
OUTFITS_TABLE = "outfits"
PROFILES_TABLE = "profiles"
VISUALIZATIONS_TABLE = "outfit_visualizations"


# =============================================================================
# Image Formats
# =============================================================================

DEFAULT_MIME_TYPE = "image/jpeg"

PIL_FORMAT_TO_MIME: Dict[str, str] = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "WEBP": "image/webp",
    "HEIF": "image/heic",
    "HEIC": "image/heic",
}

EXTENSION_TO_MIME: Dict[str, str] = {
    ".png": "image/png",
    ".heic": "image/heic",
    ".heif": "image/heic",
    ".webp": "image/webp",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
}
