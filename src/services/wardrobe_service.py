"""Wardrobe item operations: listing, lookup, gender edits, deletion and single-photo analysis."""

from typing import List, Optional

from core.errors import InvalidRequestError, NotFoundError
from core.logging import LoggerMixin
from integrations.gemini_client import GeminiClient, get_gemini_client
from wardrobe.images import ImagePayload
from wardrobe.models import Gender, WardrobeItem, WardrobeItemMetadata
from wardrobe.repository import WardrobeRepository, get_repository


class WardrobeService(LoggerMixin):

    def __init__(
        self,
        repository: Optional[WardrobeRepository] = None,
        gemini: Optional[GeminiClient] = None,
    ) -> None:
        self._repository = repository or get_repository()
        self._gemini = gemini or get_gemini_client()

    def list_items(self, user_id: str) -> List[WardrobeItem]:
        """All of the user's items, newest first."""
        return self._repository.get_user_items(user_id)

    def get_item(self, user_id: str, item_id: str) -> WardrobeItem:
        item = self._repository.get_item(user_id, item_id)
        if item is None:
            raise NotFoundError()
        return item

    def update_item_gender(self, user_id: str, item_id: str, gender: Gender) -> WardrobeItem:
        item = self._repository.update_item_gender(user_id, item_id, Gender(gender).value)
        self.logger.info("Updated item gender", user_id=user_id, item_id=item_id, gender=item.gender)
        return item

    def delete_item(self, user_id: str, item_id: str) -> bool:
        return self._repository.delete_item(user_id, item_id)

    def analyze_photo(self, image: ImagePayload) -> WardrobeItemMetadata:
        """
        Describe the single garment in a photo without storing anything.

        Raises:
            InvalidRequestError: if the response couldn't be understood
        """
        metadata = self._gemini.analyze_item(image)
        if metadata is None:
            raise InvalidRequestError("Couldn't read the clothing details. Please try a clearer photo.")
        return metadata


def get_wardrobe_service() -> WardrobeService:
    return WardrobeService()
