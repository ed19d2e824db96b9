"""
Multi-item upload pipeline.

Two phases, with the user's selection in between:

1. analyze: detect every garment in a photo and open an upload session
   with all detected items selected.
2. process: for each selected item, in order, produce a clean image,
   upload the original and clean images in parallel, then insert the
   database row.

Processing stops at the first error. Items stored before the error are
still returned, together with a message the app can show.
"""

from __future__ import annotations

import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from config.constants import DEFAULT_ITEM_GENDER
from config.settings import Settings, get_settings
from core.auth import AuthenticatedUser
from core.errors import (
    AuthenticationRequiredError,
    InvalidRequestError,
    NoItemsDetectedError,
    NotFoundError,
    user_message_for,
)
from core.logging import LoggerMixin
from integrations.gemini_client import GeminiClient, get_gemini_client
from integrations.photoroom_client import PhotoroomClient, get_photoroom_client
from services.session_manager import (
    BUSY_MESSAGE,
    UploadSession,
    UploadSessionStore,
    UploadStep,
    get_upload_session_store,
)
from wardrobe.images import ImagePayload
from wardrobe.models import DetectedItem, WardrobeItem, WardrobeItemMetadata
from wardrobe.repository import WardrobeRepository, get_repository

NO_SESSION_MESSAGE = "No upload in progress. Please take a new photo."
NO_SELECTION_MESSAGE = "Please select at least one item to add."


@dataclass
class UploadResult:
    """Items stored by a process run, and the error that stopped it, if any."""
    items: List[WardrobeItem] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None


def _temporary_id(index: int) -> str:
    return f"detected-{index}-{int(time.time() * 1000)}"


class UploadPipeline(LoggerMixin):
    """Runs the detect, select, generate, upload and save flow for one user at a time."""

    def __init__(
        self,
        repository: Optional[WardrobeRepository] = None,
        gemini: Optional[GeminiClient] = None,
        photoroom: Optional[PhotoroomClient] = None,
        store: Optional[UploadSessionStore] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or get_repository()
        self._gemini = gemini or get_gemini_client()
        self._photoroom = photoroom or get_photoroom_client()
        self._store = store or get_upload_session_store()

    # =========================================================================
    # Phase 1: Detection
    # =========================================================================

    def analyze(self, user: Optional[AuthenticatedUser], image: ImagePayload) -> UploadSession:
        """
        Detect the garments in a photo and open a new upload session.

        Any previous session for the user is replaced.

        Raises:
            AuthenticationRequiredError: without a user
            NoItemsDetectedError: if nothing wearable was found
        """
        if user is None:
            raise AuthenticationRequiredError()

        session = UploadSession(user_id=user.id, image=image, step=UploadStep.ANALYZING)
        self._store.replace_if_idle(user.id, session)

        try:
            detected = self._gemini.detect_items(image)
        except Exception:
            self._store.delete(user.id)
            raise

        if not detected:
            self._store.delete(user.id)
            raise NoItemsDetectedError()

        session.items = [
            DetectedItem(id=_temporary_id(index), selected=True, **metadata.model_dump())
            for index, metadata in enumerate(detected)
        ]
        self._store.update_step(user.id, UploadStep.IDLE)
        self.logger.info("Upload analyzed", user_id=user.id, detected=len(session.items))
        return session

    # =========================================================================
    # Selection
    # =========================================================================

    def get_session(self, user_id: str) -> UploadSession:
        session = self._store.get(user_id)
        if session is None:
            raise NotFoundError(NO_SESSION_MESSAGE)
        return session

    def _get_item(self, session: UploadSession, item_id: str) -> DetectedItem:
        item = session.find_item(item_id)
        if item is None:
            raise NotFoundError("Detected item not found")
        return item

    def _editable_session(self, user_id: str) -> UploadSession:
        session = self.get_session(user_id)
        if session.is_busy:
            raise InvalidRequestError(BUSY_MESSAGE)
        return session

    def toggle_item(self, user_id: str, item_id: str) -> UploadSession:
        session = self._editable_session(user_id)
        item = self._get_item(session, item_id)
        session.replace_item(item.model_copy(update={"selected": not item.selected}))
        return session

    def select_all(self, user_id: str) -> UploadSession:
        session = self._editable_session(user_id)
        session.set_all_selected(True)
        return session

    def deselect_all(self, user_id: str) -> UploadSession:
        session = self._editable_session(user_id)
        session.set_all_selected(False)
        return session

    def update_detected_item(self, user_id: str, item_id: str, updates: Dict[str, Any]) -> UploadSession:
        """
        Correct a detected item's metadata before it is stored.

        The merged values are re-validated, so blanks and unknown genders are
        normalised the same way as detector output.
        """
        session = self._editable_session(user_id)
        item = self._get_item(session, item_id)
        merged = {**item.model_dump(), **updates, "id": item.id}
        try:
            updated = DetectedItem.model_validate(merged)
        except ValidationError as e:
            raise InvalidRequestError(
                "Invalid item details",
                details={"errors": [err["msg"] for err in e.errors()]},
            ) from e
        session.replace_item(updated)
        return session

    def reset(self, user_id: str) -> bool:
        """Discard the user's session. Returns whether one existed."""
        return self._store.delete(user_id)

    # =========================================================================
    # Phase 2: Processing
    # =========================================================================

    def process(self, user: Optional[AuthenticatedUser]) -> UploadResult:
        """
        Store every selected item.

        Raises:
            AuthenticationRequiredError: without a user
            NotFoundError: if there is no upload session
            InvalidRequestError: if nothing is selected or a run is in progress
        """
        if user is None:
            raise AuthenticationRequiredError()

        session = self._store.begin(user.id, UploadStep.GENERATING_IMAGES)
        if session is None:
            raise NotFoundError(NO_SESSION_MESSAGE)

        selected = session.selected_items()
        if not selected:
            session.error = NO_SELECTION_MESSAGE
            self._store.update_step(user.id, UploadStep.IDLE)
            raise InvalidRequestError(NO_SELECTION_MESSAGE)

        session.error = None
        total = len(selected)
        created: List[WardrobeItem] = []
        self._store.update_step(user.id, UploadStep.GENERATING_IMAGES, current_item=0, total_items=total)

        try:
            for index, detected in enumerate(selected, start=1):
                self.logger.info(
                    "Processing upload item",
                    user_id=user.id,
                    index=index,
                    total=total,
                    item=detected.describe(),
                )
                created.append(self._process_item(user.id, session.image, detected, index, total))
        except Exception as e:
            message = user_message_for(e)
            self.logger.error(
                "Upload processing failed",
                user_id=user.id,
                created=len(created),
                total=total,
                error=str(e),
                error_type=type(e).__name__,
            )
            stored_ids = {d.id for d in selected[:len(created)]}
            session.items = [item for item in session.items if item.id not in stored_ids]
            session.error = message
            self._store.update_step(user.id, UploadStep.IDLE, current_item=0, total_items=0)
            return UploadResult(items=created, error=message)

        self._store.update_step(user.id, UploadStep.COMPLETE, current_item=total, total_items=total)
        self.logger.info("Upload complete", user_id=user.id, created=len(created))
        self._store.delete(user.id)
        return UploadResult(items=created)

    def _process_item(
        self,
        user_id: str,
        original: ImagePayload,
        detected: DetectedItem,
        index: int,
        total: int,
    ) -> WardrobeItem:
        metadata = detected.metadata()

        self._store.update_step(user_id, UploadStep.GENERATING_IMAGES, current_item=index, total_items=total)
        clean = self._clean_image(original, metadata)

        item_id = str(uuid.uuid4())

        self._store.update_step(user_id, UploadStep.UPLOADING_IMAGES)
        image_url, isolated_url = self._upload_images(user_id, item_id, original, clean)

        self._store.update_step(user_id, UploadStep.SAVING)
        return self._repository.create_item({
            "id": item_id,
            "user_id": user_id,
            "image_url": image_url,
            "isolated_image_url": isolated_url,
            "category": metadata.category,
            "subcategory": metadata.subcategory,
            "color": metadata.color,
            "material": metadata.material,
            "attributes": metadata.attributes,
            "gender": metadata.gender.value if metadata.gender else DEFAULT_ITEM_GENDER,
        })

    def _clean_image(self, original: ImagePayload, metadata: WardrobeItemMetadata) -> ImagePayload:
        if self._settings.clean_image_strategy == "remove_background":
            return self._photoroom.remove_background(original)
        return self._gemini.generate_clean_product_image(original, metadata)

    def _upload_images(
        self,
        user_id: str,
        item_id: str,
        original: ImagePayload,
        clean: ImagePayload,
    ) -> Tuple[str, str]:
        with ThreadPoolExecutor(max_workers=2) as executor:
            future_original = executor.submit(
                self._repository.upload_original_image, user_id, item_id, original
            )
            future_isolated = executor.submit(
                self._repository.upload_isolated_image, user_id, item_id, clean
            )
            return future_original.result(), future_isolated.result()


def get_upload_pipeline() -> UploadPipeline:
    return UploadPipeline()
