"""
Virtual try-on with a content-addressed cache.

A visualization is identified by the user's id plus the set of item ids,
so the same outfit in any order maps to the same cache row. Cache rows
live in ``outfit_visualizations`` and are upserted on combination_hash.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

from config.settings import Settings, get_settings
from core.errors import (
    GenderMismatchError,
    InvalidRequestError,
    MissingPersonalModelError,
    NotFoundError,
)
from core.logging import LoggerMixin
from integrations.gemini_client import GeminiClient, get_gemini_client
from wardrobe.images import ImagePayload, fetch_image
from wardrobe.models import Gender, OutfitVisualization, ProfileGender, WardrobeItem
from wardrobe.repository import WardrobeRepository, get_repository


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def generate_combination_hash(profile_id: str, item_ids: Iterable[str]) -> str:
    """
    Cache key for a user and a set of items.

    Item order doesn't matter. The key is the first 8 characters of the
    profile id followed by a 32-bit rolling hash (h * 31 + c over UTF-16
    code units) of the combined ids, in hex.

    Examples:
        >>> generate_combination_hash("a", ["b"])
        'a_17804'
    """
    # UTF-16 code unit order, so surrogate pairs sort below U+E000..U+FFFF
    ordered = sorted(item_ids, key=lambda s: s.encode("utf-16-be"))
    combined = f"{profile_id}_{'_'.join(ordered)}"
    encoded = combined.encode("utf-16-le")

    h = 0
    for i in range(0, len(encoded), 2):
        code_unit = encoded[i] | (encoded[i + 1] << 8)
        h = _to_int32(h * 31 + code_unit)

    return f"{profile_id[:8]}_{abs(h):x}"


@dataclass
class GenderCompatibility:
    is_compatible: bool
    incompatible_items: List[WardrobeItem] = field(default_factory=list)


def check_gender_compatibility(
    user_gender: Optional[ProfileGender],
    items: Iterable[WardrobeItem],
) -> GenderCompatibility:
    """
    Find items cut for the other gender.

    Users with no gender set, or non-binary users, can wear anything.
    Unisex and ungendered items suit everyone.
    """
    items = list(items)
    if user_gender is None or user_gender == ProfileGender.NON_BINARY:
        return GenderCompatibility(is_compatible=True)

    opposite = {
        ProfileGender.MALE: Gender.FEMALE,
        ProfileGender.FEMALE: Gender.MALE,
    }[ProfileGender(user_gender)]

    incompatible = [item for item in items if item.gender == opposite]
    return GenderCompatibility(is_compatible=not incompatible, incompatible_items=incompatible)


class TryOnService(LoggerMixin):
    """Renders outfits on the user's personal model, reusing cached renders."""

    def __init__(
        self,
        repository: Optional[WardrobeRepository] = None,
        gemini: Optional[GeminiClient] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or get_repository()
        self._gemini = gemini or get_gemini_client()

    def resolve_items(self, user_id: str, item_ids: Sequence[str]) -> List[WardrobeItem]:
        """
        Load the user's items in the requested order.

        Raises:
            InvalidRequestError: if no ids were given
            NotFoundError: if any id isn't in the user's wardrobe
        """
        if not item_ids:
            raise InvalidRequestError("Select at least one item to try on")
        wardrobe = {item.id: item for item in self._repository.get_user_items(user_id)}
        missing = [item_id for item_id in item_ids if item_id not in wardrobe]
        if missing:
            raise NotFoundError(details={"missing_item_ids": missing})
        return [wardrobe[item_id] for item_id in dict.fromkeys(item_ids)]

    def check_compatibility(self, user_id: str, item_ids: Sequence[str]) -> GenderCompatibility:
        items = self.resolve_items(user_id, item_ids)
        profile = self._repository.get_profile(user_id)
        return check_gender_compatibility(profile.gender if profile else None, items)

    def get_visualization(
        self,
        user_id: str,
        item_ids: Sequence[str],
        force_regenerate: bool = False,
        allow_gender_mismatch: bool = False,
    ) -> OutfitVisualization:
        """
        Return the try-on image for these items, generating it on a cache miss.

        Args:
            user_id: Owner of the items and the personal model
            item_ids: Items to dress the model in
            force_regenerate: Skip the cache and render a new image
            allow_gender_mismatch: Render even if items don't suit the profile gender

        Raises:
            MissingPersonalModelError: if the user has no personal model
            GenderMismatchError: if items don't suit the profile gender
        """
        items = self.resolve_items(user_id, item_ids)

        profile = self._repository.get_profile(user_id)
        if profile is None or not profile.personal_model_url:
            raise MissingPersonalModelError()

        if not allow_gender_mismatch:
            compatibility = check_gender_compatibility(profile.gender, items)
            if not compatibility.is_compatible:
                raise GenderMismatchError(
                    details={"incompatible_item_ids": [i.id for i in compatibility.incompatible_items]}
                )

        ids = [item.id for item in items]
        combination_hash = generate_combination_hash(user_id, ids)

        if not force_regenerate:
            cached = self._repository.get_cached_visualization(user_id, combination_hash)
            if cached is not None:
                self.logger.info("Try-on cache hit", user_id=user_id, combination_hash=combination_hash)
                return cached
        else:
            self.logger.info("Force regenerate requested, skipping cache", combination_hash=combination_hash)

        self.logger.info(
            "Try-on cache miss, generating",
            user_id=user_id,
            combination_hash=combination_hash,
            item_count=len(items),
        )
        model_image, garments = self._fetch_images(profile.personal_model_url, items)
        rendered = self._gemini.generate_try_on(model_image, garments, items)

        name = f"{combination_hash}_{int(time.time() * 1000)}" if force_regenerate else combination_hash
        url = self._repository.upload_visualization_image(user_id, name, rendered)

        return self._repository.save_visualization(user_id, combination_hash, ids, url)

    def _fetch_images(
        self,
        personal_model_url: str,
        items: Sequence[WardrobeItem],
    ) -> Tuple[ImagePayload, List[ImagePayload]]:
        timeout = self._settings.image_fetch_timeout_seconds
        urls = [personal_model_url] + [item.display_image_url for item in items]
        with ThreadPoolExecutor(max_workers=min(len(urls), 8)) as executor:
            images = list(executor.map(lambda url: fetch_image(url, timeout=timeout), urls))
        return images[0], images[1:]


def get_tryon_service() -> TryOnService:
    return TryOnService()
