"""
Supabase-backed persistence for wardrobe data and images.

Rows live in Postgres tables (items, outfits, profiles,
outfit_visualizations); images live in Storage buckets under
``{user_id}/...`` folders. The service role client bypasses row level
security, so every query here filters on the owning user id.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from supabase import Client

from config.constants import (
    ISOLATED_IMAGE_NAME,
    ITEMS_TABLE,
    ORIGINAL_IMAGE_NAME,
    OUTFITS_TABLE,
    PERSONAL_MODEL_NAME,
    PROFILES_TABLE,
    VISUALIZATIONS_TABLE,
)
from config.database import get_supabase_client
from config.settings import Settings, get_settings
from core.errors import DatabaseError, NotFoundError, StorageError, WardrobeError
from core.logging import LoggerMixin
from core.utils import extract_storage_path, generated_extension, original_extension
from wardrobe.images import ImagePayload
from wardrobe.models import (
    Outfit,
    OutfitVisualization,
    UserProfile,
    WardrobeItem,
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class WardrobeRepository(LoggerMixin):
    """Data and Storage access for one Supabase project."""

    def __init__(self, client: Optional[Client] = None, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._supabase = client if client is not None else get_supabase_client()

    # ---------------------------------------------------------------------
    # Internals
    # ---------------------------------------------------------------------

    def _execute(self, query, action: str) -> List[Dict[str, Any]]:
        try:
            result = query.execute()
        except WardrobeError:
            raise
        except Exception as e:
            self.logger.error("Database request failed", action=action, error=str(e))
            raise DatabaseError(details={"action": action}) from e
        return result.data or []

    # ---------------------------------------------------------------------
    # Storage
    # ---------------------------------------------------------------------

    def upload_image(
        self,
        bucket: str,
        path: str,
        image: ImagePayload,
        upsert: bool = False,
        content_type: Optional[str] = None,
    ) -> str:
        """Upload bytes to a bucket and return the object's public URL."""
        storage = self._supabase.storage.from_(bucket)
        try:
            storage.upload(
                path=path,
                file=image.data,
                file_options={
                    "content-type": content_type or image.mime_type,
                    "upsert": "true" if upsert else "false",
                },
            )
        except Exception as e:
            self.logger.error("Storage upload failed", bucket=bucket, path=path, error=str(e))
            raise StorageError(details={"bucket": bucket, "path": path}) from e

        public_url = storage.get_public_url(path)
        if not public_url:
            raise StorageError("Failed to get public URL for uploaded image")

        self.logger.debug("Uploaded image", bucket=bucket, path=path, size_kb=image.size_kb)
        return public_url

    def upload_original_image(self, user_id: str, item_id: str, image: ImagePayload) -> str:
        ext = original_extension(image.mime_type)
        path = f"{user_id}/{item_id}/{ORIGINAL_IMAGE_NAME}.{ext}"
        return self.upload_image(self._settings.wardrobe_bucket, path, image)

    def upload_isolated_image(self, user_id: str, item_id: str, image: ImagePayload) -> str:
        path = f"{user_id}/{item_id}/{ISOLATED_IMAGE_NAME}"
        return self.upload_image(self._settings.isolated_bucket, path, image, content_type="image/png")

    def upload_visualization_image(self, user_id: str, name: str, image: ImagePayload) -> str:
        ext = generated_extension(image.mime_type)
        path = f"{user_id}/{name}.{ext}"
        return self.upload_image(self._settings.visualizations_bucket, path, image, upsert=True)

    def upload_personal_model_image(self, user_id: str, image: ImagePayload) -> str:
        ext = generated_extension(image.mime_type)
        stamp = int(datetime.now(timezone.utc).timestamp() * 1000)
        path = f"{user_id}/{PERSONAL_MODEL_NAME}_{stamp}.{ext}"
        return self.upload_image(self._settings.personal_models_bucket, path, image)

    def remove_personal_model_image(self, url: Optional[str]) -> bool:
        bucket = self._settings.personal_models_bucket
        return self.remove_objects(bucket, [extract_storage_path(url, bucket)])

    def remove_objects(self, bucket: str, paths: Sequence[str]) -> bool:
        """Best-effort delete of Storage objects. Failures are logged, not raised."""
        paths = [p for p in paths if p]
        if not paths:
            return True
        try:
            self._supabase.storage.from_(bucket).remove(list(paths))
            return True
        except Exception as e:
            self.logger.warning("Storage delete failed", bucket=bucket, paths=paths, error=str(e))
            return False

    # ---------------------------------------------------------------------
    # Items
    # ---------------------------------------------------------------------

    def create_item(self, item_data: Dict[str, Any]) -> WardrobeItem:
        rows = self._execute(
            self._supabase.table(ITEMS_TABLE).insert(item_data),
            "create_item",
        )
        if not rows:
            raise DatabaseError("Failed to create item: no data returned")
        return WardrobeItem.from_row(rows[0])

    def get_user_items(self, user_id: str) -> List[WardrobeItem]:
        rows = self._execute(
            self._supabase.table(ITEMS_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True),
            "get_user_items",
        )
        return [WardrobeItem.from_row(row) for row in rows]

    def get_item(self, user_id: str, item_id: str) -> Optional[WardrobeItem]:
        rows = self._execute(
            self._supabase.table(ITEMS_TABLE)
            .select("*")
            .eq("id", item_id)
            .eq("user_id", user_id)
            .limit(1),
            "get_item",
        )
        return WardrobeItem.from_row(rows[0]) if rows else None

    def update_item_gender(self, user_id: str, item_id: str, gender: str) -> WardrobeItem:
        rows = self._execute(
            self._supabase.table(ITEMS_TABLE)
            .update({"gender": gender, "updated_at": _now_iso()})
            .eq("id", item_id)
            .eq("user_id", user_id),
            "update_item_gender",
        )
        if not rows:
            raise NotFoundError()
        return WardrobeItem.from_row(rows[0])

    def delete_item(self, user_id: str, item_id: str) -> bool:
        """
        Delete an item row and its images.

        Image removal never blocks the row delete: both the URL-derived
        paths and the conventional folder paths are tried, and failures are
        only logged.

        Raises:
            NotFoundError: if the item doesn't exist for this user
        """
        item = self.get_item(user_id, item_id)
        if item is None:
            raise NotFoundError()

        wardrobe_bucket = self._settings.wardrobe_bucket
        isolated_bucket = self._settings.isolated_bucket

        self.remove_objects(wardrobe_bucket, [extract_storage_path(item.image_url, wardrobe_bucket)])
        self.remove_objects(isolated_bucket, [extract_storage_path(item.isolated_image_url, isolated_bucket)])

        folder = f"{user_id}/{item_id}"
        self.remove_objects(
            wardrobe_bucket,
            [f"{folder}/{ORIGINAL_IMAGE_NAME}.jpg", f"{folder}/{ORIGINAL_IMAGE_NAME}.png"],
        )
        self.remove_objects(isolated_bucket, [f"{folder}/{ISOLATED_IMAGE_NAME}"])

        self._execute(
            self._supabase.table(ITEMS_TABLE)
            .delete()
            .eq("id", item_id)
            .eq("user_id", user_id),
            "delete_item",
        )
        self.logger.info("Deleted item", user_id=user_id, item_id=item_id)
        return True

    # ---------------------------------------------------------------------
    # Outfits
    # ---------------------------------------------------------------------

    def save_outfit(
        self,
        user_id: str,
        item_ids: Sequence[str],
        occasion: Optional[str] = None,
        weather: Optional[str] = None,
        suggestion: Optional[str] = None,
    ) -> Outfit:
        rows = self._execute(
            self._supabase.table(OUTFITS_TABLE).insert({
                "user_id": user_id,
                "item_ids": list(item_ids),
                "occasion": occasion,
                "weather": weather,
                "gemini_suggestion": suggestion,
            }),
            "save_outfit",
        )
        if not rows:
            raise DatabaseError("Failed to save outfit: no data returned")
        return Outfit.from_row(rows[0])

    def get_user_outfits(self, user_id: str) -> List[Outfit]:
        rows = self._execute(
            self._supabase.table(OUTFITS_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True),
            "get_user_outfits",
        )
        return [Outfit.from_row(row) for row in rows]

    def get_outfit(self, user_id: str, outfit_id: str) -> Optional[Outfit]:
        rows = self._execute(
            self._supabase.table(OUTFITS_TABLE)
            .select("*")
            .eq("id", outfit_id)
            .eq("user_id", user_id)
            .limit(1),
            "get_outfit",
        )
        return Outfit.from_row(rows[0]) if rows else None

    def delete_outfit(self, user_id: str, outfit_id: str) -> bool:
        rows = self._execute(
            self._supabase.table(OUTFITS_TABLE)
            .delete()
            .eq("id", outfit_id)
            .eq("user_id", user_id),
            "delete_outfit",
        )
        return bool(rows)

    # ---------------------------------------------------------------------
    # Profiles
    # ---------------------------------------------------------------------

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        rows = self._execute(
            self._supabase.table(PROFILES_TABLE)
            .select("*")
            .eq("id", user_id)
            .limit(1),
            "get_profile",
        )
        return UserProfile.from_row(rows[0]) if rows else None

    def update_profile(self, user_id: str, updates: Dict[str, Any]) -> UserProfile:
        payload = {"id": user_id, **updates, "updated_at": _now_iso()}
        rows = self._execute(
            self._supabase.table(PROFILES_TABLE).upsert(payload, on_conflict="id"),
            "update_profile",
        )
        if not rows:
            raise DatabaseError("Failed to save profile: no data returned")
        return UserProfile.from_row(rows[0])

    # ---------------------------------------------------------------------
    # Try-on visualizations
    # ---------------------------------------------------------------------

    def get_cached_visualization(self, user_id: str, combination_hash: str) -> Optional[OutfitVisualization]:
        rows = self._execute(
            self._supabase.table(VISUALIZATIONS_TABLE)
            .select("*")
            .eq("combination_hash", combination_hash)
            .eq("user_id", user_id)
            .limit(1),
            "get_cached_visualization",
        )
        return OutfitVisualization.from_row(rows[0], cached=True) if rows else None

    def save_visualization(
        self,
        user_id: str,
        combination_hash: str,
        item_ids: Sequence[str],
        visualization_url: str,
    ) -> OutfitVisualization:
        """Insert or replace the user's cache row for a combination hash."""
        rows = self._execute(
            self._supabase.table(VISUALIZATIONS_TABLE).upsert(
                {
                    "user_id": user_id,
                    "combination_hash": combination_hash,
                    "item_ids": list(item_ids),
                    "visualization_url": visualization_url,
                    "created_at": _now_iso(),
                },
                on_conflict="user_id,combination_hash",
            ),
            "save_visualization",
        )
        if not rows:
            raise DatabaseError("Failed to save visualization: no data returned")
        return OutfitVisualization.from_row(rows[0])


def get_repository() -> WardrobeRepository:
    """FastAPI dependency returning a repository bound to the shared client."""
    return WardrobeRepository()
