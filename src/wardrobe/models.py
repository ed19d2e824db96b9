"""
Pydantic models for wardrobe items, outfits, profiles and try-on images.

Two families live here:

- AI payloads (WardrobeItemMetadata, DetectedClothingItems, OutfitSuggestion)
  validate what Gemini returns. Gemini answers in camelCase, so detail
  fields accept both spellings.
- Records (WardrobeItem, Outfit, UserProfile, OutfitVisualization) mirror
  the Supabase tables and are built with ``from_row``.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from config.constants import DEFAULT_ITEM_GENDER, ITEM_GENDERS, OUTFIT_LIMITS
from core.utils import dedupe_preserving_order, normalize_string_list


# ============================================================================
# Enums
# ============================================================================

class Gender(str, Enum):
    """Who a clothing item is cut for."""
    MALE = "male"
    FEMALE = "female"
    UNISEX = "unisex"


class ProfileGender(str, Enum):
    """Gender a user chose for their profile."""
    MALE = "male"
    FEMALE = "female"
    NON_BINARY = "non-binary"


# ============================================================================
# AI Payloads
# ============================================================================

class WardrobeItemMetadata(BaseModel):
    """Structured description of one garment, as extracted from a photo."""

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    category: str = Field(..., min_length=1, description="Top, Bottom, Shoes, Accessories or Outerwear")
    subcategory: str = Field(..., min_length=1, description="Specific type, e.g. T-Shirt")
    color: str = Field(..., min_length=1)
    material: str = Field(..., min_length=1)
    attributes: List[str] = Field(default_factory=list, description="Style tags such as casual or summer")
    gender: Gender = Gender.UNISEX

    sleeve_length: Optional[str] = Field(None, validation_alias=AliasChoices("sleeve_length", "sleeveLength"))
    fit: Optional[str] = None
    neckline: Optional[str] = None
    pattern: Optional[str] = None
    length: Optional[str] = None

    @field_validator("attributes", mode="before")
    @classmethod
    def _normalize_attributes(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            v = [part for part in v.split(",")]
        return normalize_string_list(v)

    @field_validator("gender", mode="before")
    @classmethod
    def _default_gender(cls, v):
        if v is None:
            return DEFAULT_ITEM_GENDER
        if isinstance(v, Gender):
            return v
        value = str(v).strip().lower()
        return value if value in ITEM_GENDERS else DEFAULT_ITEM_GENDER

    @field_validator("sleeve_length", "fit", "neckline", "pattern", "length", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        if v is None:
            return None
        value = str(v).strip()
        return value or None

    def describe(self) -> str:
        """Short human description, e.g. 'Blue T-Shirt'."""
        return f"{self.color} {self.subcategory}"

    def details(self) -> Dict[str, str]:
        """The optional garment details that were filled in."""
        return {
            name: value
            for name, value in (
                ("Sleeve length", self.sleeve_length),
                ("Fit", self.fit),
                ("Neckline", self.neckline),
                ("Pattern", self.pattern),
                ("Length", self.length),
            )
            if value
        }


class DetectedClothingItems(BaseModel):
    """Multi-item detection response."""
    items: List[WardrobeItemMetadata] = Field(..., min_length=1)


class OutfitSuggestion(BaseModel):
    """A styled outfit proposed by the AI stylist."""

    model_config = ConfigDict(populate_by_name=True)

    item_ids: List[str] = Field(..., validation_alias=AliasChoices("item_ids", "itemIds"))
    suggestion: str = Field(..., min_length=1)
    stylist_note: Optional[str] = Field(None, validation_alias=AliasChoices("stylist_note", "stylistNote"))

    @field_validator("item_ids")
    @classmethod
    def _check_item_count(cls, v: List[str]) -> List[str]:
        ids = dedupe_preserving_order(str(i).strip() for i in v if str(i).strip())
        if not OUTFIT_LIMITS.MIN_ITEMS <= len(ids) <= OUTFIT_LIMITS.MAX_ITEMS:
            raise ValueError(
                f"Outfit must have {OUTFIT_LIMITS.MIN_ITEMS}-{OUTFIT_LIMITS.MAX_ITEMS} items, got {len(ids)}"
            )
        return ids


class OutfitContext(BaseModel):
    """Occasion and weather an outfit is styled for."""
    occasion: str = OUTFIT_LIMITS.DEFAULT_OCCASION
    weather: str = OUTFIT_LIMITS.DEFAULT_WEATHER

    @field_validator("occasion", mode="before")
    @classmethod
    def _default_occasion(cls, v):
        if v is None or not str(v).strip():
            return OUTFIT_LIMITS.DEFAULT_OCCASION
        return str(v).strip()

    @field_validator("weather", mode="before")
    @classmethod
    def _default_weather(cls, v):
        if v is None or not str(v).strip():
            return OUTFIT_LIMITS.DEFAULT_WEATHER
        return str(v).strip()


# ============================================================================
# Records
# ============================================================================

class WardrobeItem(BaseModel):
    """A stored wardrobe item (row of ``items``)."""
    id: str
    user_id: str
    image_url: str
    isolated_image_url: str
    category: str
    subcategory: str
    color: str
    material: str
    attributes: List[str] = Field(default_factory=list)
    gender: Optional[Gender] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "WardrobeItem":
        data = dict(row)
        data["id"] = str(data["id"])
        data["user_id"] = str(data["user_id"])
        data["attributes"] = data.get("attributes") or []
        return cls.model_validate(data)

    @property
    def display_image_url(self) -> str:
        """Isolated image when available, otherwise the original photo."""
        return self.isolated_image_url or self.image_url

    def describe(self) -> str:
        return f"{self.color} {self.subcategory} ({self.category})"


class Outfit(BaseModel):
    """A saved outfit (row of ``outfits``)."""
    id: str
    user_id: str
    item_ids: List[str]
    occasion: Optional[str] = None
    weather: Optional[str] = None
    suggestion: Optional[str] = None
    created_at: Optional[str] = None
    items: Optional[List[WardrobeItem]] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Outfit":
        return cls(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            item_ids=[str(i) for i in row.get("item_ids") or []],
            occasion=row.get("occasion"),
            weather=row.get("weather"),
            suggestion=row.get("gemini_suggestion"),
            created_at=row.get("created_at"),
        )


class UserProfile(BaseModel):
    """Profile settings used for try-on (row of ``profiles``)."""
    id: str
    personal_model_url: Optional[str] = None
    gender: Optional[ProfileGender] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "UserProfile":
        data = dict(row)
        data["id"] = str(data["id"])
        return cls.model_validate(data)


class OutfitVisualization(BaseModel):
    """A cached try-on image (row of ``outfit_visualizations``)."""
    id: str
    user_id: str
    combination_hash: str
    item_ids: List[str]
    visualization_url: str
    created_at: Optional[str] = None
    cached: bool = Field(False, description="True when served from the cache without generating")

    @classmethod
    def from_row(cls, row: Dict[str, Any], cached: bool = False) -> "OutfitVisualization":
        return cls(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            combination_hash=row["combination_hash"],
            item_ids=[str(i) for i in row.get("item_ids") or []],
            visualization_url=row["visualization_url"],
            created_at=row.get("created_at"),
            cached=cached,
        )


# ============================================================================
# Upload Session Models
# ============================================================================

class DetectedItem(WardrobeItemMetadata):
    """A detected garment awaiting the user's selection."""
    id: str = Field(..., description="Temporary id, only valid within the upload session")
    selected: bool = True

    def metadata(self) -> WardrobeItemMetadata:
        return WardrobeItemMetadata.model_validate(
            self.model_dump(exclude={"id", "selected"})
        )
