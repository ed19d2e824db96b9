"""
Upload Routes.

Two-phase item upload:

1. ``POST /api/uploads/analyze`` with a photo detects every garment and
   opens an upload session with all of them selected.
2. The client adjusts the selection (toggle, select-all, deselect-all) or
   corrects details, then calls ``POST /api/uploads/process``.

``GET /api/uploads/current`` returns the session, including the current
step and progress, and can be polled while processing runs.

All endpoints require JWT authentication.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, UploadFile
from pydantic import BaseModel, Field

from config.settings import get_settings
from core.auth import AuthenticatedUser, require_auth
from services.session_manager import UploadSession, UploadStep
from services.upload_pipeline import UploadPipeline, get_upload_pipeline
from wardrobe.images import load_upload
from wardrobe.models import DetectedItem, Gender, WardrobeItem


router = APIRouter(prefix="/api/uploads", tags=["Uploads"])


# =============================================================================
# Request/Response Models
# =============================================================================

class ProgressResponse(BaseModel):
    current_item: int = 0
    total_items: int = 0


class UploadSessionResponse(BaseModel):
    """Detected items awaiting selection, plus pipeline status."""
    step: UploadStep
    progress: ProgressResponse
    items: List[DetectedItem]
    selected_count: int
    error: Optional[str] = None

    @classmethod
    def from_session(cls, session: UploadSession) -> "UploadSessionResponse":
        return cls(
            step=session.step,
            progress=ProgressResponse(
                current_item=session.progress.current_item,
                total_items=session.progress.total_items,
            ),
            items=session.items,
            selected_count=len(session.selected_items()),
            error=session.error,
        )


class DetectedItemUpdate(BaseModel):
    """Corrections to a detected item. Omitted fields are left unchanged."""
    category: Optional[str] = None
    subcategory: Optional[str] = None
    color: Optional[str] = None
    material: Optional[str] = None
    attributes: Optional[List[str]] = None
    gender: Optional[Gender] = None
    sleeve_length: Optional[str] = None
    fit: Optional[str] = None
    neckline: Optional[str] = None
    pattern: Optional[str] = None
    length: Optional[str] = None


class ProcessResponse(BaseModel):
    """
    Outcome of processing.

    ``items`` holds everything stored, even when ``error`` is set.
    """
    success: bool
    items: List[WardrobeItem] = Field(default_factory=list)
    created_count: int = 0
    error: Optional[str] = None


class ResetResponse(BaseModel):
    cleared: bool


# =============================================================================
# Endpoints
# =============================================================================

@router.post("/analyze", summary="Detect clothing items in a photo")
def analyze_upload(
    file: UploadFile = File(..., description="Photo containing one or more clothing items"),
    user: AuthenticatedUser = Depends(require_auth),
    pipeline: UploadPipeline = Depends(get_upload_pipeline),
) -> UploadSessionResponse:
    image = load_upload(file.file.read(), file.filename, get_settings().upload_max_bytes)
    session = pipeline.analyze(user, image)
    return UploadSessionResponse.from_session(session)


@router.get("/current", summary="Get the current upload session")
def get_current_upload(
    user: AuthenticatedUser = Depends(require_auth),
    pipeline: UploadPipeline = Depends(get_upload_pipeline),
) -> UploadSessionResponse:
    return UploadSessionResponse.from_session(pipeline.get_session(user.id))


@router.delete("/current", summary="Discard the current upload session")
def reset_upload(
    user: AuthenticatedUser = Depends(require_auth),
    pipeline: UploadPipeline = Depends(get_upload_pipeline),
) -> ResetResponse:
    return ResetResponse(cleared=pipeline.reset(user.id))


@router.post("/items/{item_id}/toggle", summary="Toggle a detected item's selection")
def toggle_item(
    item_id: str,
    user: AuthenticatedUser = Depends(require_auth),
    pipeline: UploadPipeline = Depends(get_upload_pipeline),
) -> UploadSessionResponse:
    return UploadSessionResponse.from_session(pipeline.toggle_item(user.id, item_id))


@router.put("/items/{item_id}", summary="Correct a detected item's details")
def update_item(
    item_id: str,
    request: DetectedItemUpdate,
    user: AuthenticatedUser = Depends(require_auth),
    pipeline: UploadPipeline = Depends(get_upload_pipeline),
) -> UploadSessionResponse:
    updates = request.model_dump(exclude_unset=True)
    return UploadSessionResponse.from_session(pipeline.update_detected_item(user.id, item_id, updates))


@router.post("/select-all", summary="Select every detected item")
def select_all(
    user: AuthenticatedUser = Depends(require_auth),
    pipeline: UploadPipeline = Depends(get_upload_pipeline),
) -> UploadSessionResponse:
    return UploadSessionResponse.from_session(pipeline.select_all(user.id))


@router.post("/deselect-all", summary="Deselect every detected item")
def deselect_all(
    user: AuthenticatedUser = Depends(require_auth),
    pipeline: UploadPipeline = Depends(get_upload_pipeline),
) -> UploadSessionResponse:
    return UploadSessionResponse.from_session(pipeline.deselect_all(user.id))


@router.post("/process", summary="Store the selected items")
def process_upload(
    user: AuthenticatedUser = Depends(require_auth),
    pipeline: UploadPipeline = Depends(get_upload_pipeline),
) -> ProcessResponse:
    """
    Generate clean images, upload, and save each selected item in turn.

    Stops at the first failure; items saved before it are returned along
    with the error message, and the remaining items stay in the session.
    """
    result = pipeline.process(user)
    return ProcessResponse(
        success=result.success,
        items=result.items,
        created_count=len(result.items),
        error=result.error,
    )
