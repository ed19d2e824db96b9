"""
Outfit suggestions and saved outfit history.
"""

from typing import Dict, Iterable, List, Optional, Sequence

from config.constants import OUTFIT_LIMITS
from config.settings import Settings, get_settings
from core.errors import (
    AIServiceError,
    InsufficientWardrobeError,
    InvalidRequestError,
    NotFoundError,
)
from core.logging import LoggerMixin
from core.utils import dedupe_preserving_order
from integrations.gemini_client import GeminiClient, get_gemini_client
from wardrobe.models import Outfit, OutfitContext, OutfitSuggestion, WardrobeItem
from wardrobe.repository import WardrobeRepository, get_repository

SUGGESTION_FAILED_MESSAGE = "Failed to generate outfit suggestion"


def populate_outfit_items(outfit: Outfit, wardrobe: Iterable[WardrobeItem]) -> Outfit:
    """
    Attach wardrobe items to an outfit, in the outfit's order.

    Items deleted from the wardrobe since the outfit was saved are skipped.
    """
    by_id: Dict[str, WardrobeItem] = {item.id: item for item in wardrobe}
    items = [by_id[item_id] for item_id in outfit.item_ids if item_id in by_id]
    return outfit.model_copy(update={"items": items})


class OutfitService(LoggerMixin):
    """Suggests outfits from a user's wardrobe and manages saved ones."""

    def __init__(
        self,
        repository: Optional[WardrobeRepository] = None,
        gemini: Optional[GeminiClient] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or get_repository()
        self._gemini = gemini or get_gemini_client()

    def suggest(self, user_id: str, context: Optional[OutfitContext] = None) -> OutfitSuggestion:
        """
        Ask the stylist model for an outfit from the user's wardrobe.

        Raises:
            InsufficientWardrobeError: if the wardrobe is too small
            AIServiceError: if no usable suggestion came back
        """
        context = context or OutfitContext()
        wardrobe = self._repository.get_user_items(user_id)

        minimum = self._settings.min_wardrobe_items_for_outfit
        if len(wardrobe) < minimum:
            raise InsufficientWardrobeError(
                f"You need at least {minimum} items in your wardrobe to generate an outfit"
            )

        suggestion = self._gemini.suggest_outfit(wardrobe, context)
        if suggestion is None:
            raise AIServiceError(SUGGESTION_FAILED_MESSAGE)

        known = {item.id for item in wardrobe}
        unknown = [item_id for item_id in suggestion.item_ids if item_id not in known]
        if unknown:
            self.logger.warning(
                "Suggestion referenced unknown items",
                user_id=user_id,
                unknown=unknown,
            )
            raise AIServiceError(SUGGESTION_FAILED_MESSAGE)

        self.logger.info(
            "Outfit suggested",
            user_id=user_id,
            occasion=context.occasion,
            weather=context.weather,
            item_count=len(suggestion.item_ids),
        )
        return suggestion

    def save(
        self,
        user_id: str,
        item_ids: Sequence[str],
        occasion: Optional[str] = None,
        weather: Optional[str] = None,
        suggestion: Optional[str] = None,
    ) -> Outfit:
        """
        Save an outfit to the user's history.

        Raises:
            InvalidRequestError: if the outfit doesn't have 2-7 distinct items
        """
        ids = dedupe_preserving_order(item_ids)
        if not OUTFIT_LIMITS.MIN_ITEMS <= len(ids) <= OUTFIT_LIMITS.MAX_ITEMS:
            raise InvalidRequestError(
                f"An outfit needs between {OUTFIT_LIMITS.MIN_ITEMS} and {OUTFIT_LIMITS.MAX_ITEMS} items"
            )
        outfit = self._repository.save_outfit(user_id, ids, occasion, weather, suggestion)
        self.logger.info("Outfit saved", user_id=user_id, outfit_id=outfit.id)
        return outfit

    def history(self, user_id: str, populate: bool = True) -> List[Outfit]:
        """Saved outfits, newest first, optionally with their items attached."""
        outfits = self._repository.get_user_outfits(user_id)
        if not populate or not outfits:
            return outfits
        wardrobe = self._repository.get_user_items(user_id)
        return [populate_outfit_items(outfit, wardrobe) for outfit in outfits]

    def delete(self, user_id: str, outfit_id: str) -> bool:
        if not self._repository.delete_outfit(user_id, outfit_id):
            raise NotFoundError("Outfit not found")
        self.logger.info("Outfit deleted", user_id=user_id, outfit_id=outfit_id)
        return True


def get_outfit_service() -> OutfitService:
    return OutfitService()
