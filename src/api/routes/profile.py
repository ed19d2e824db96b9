"""
Profile Routes.

The user's gender setting and the personal model image used for try-on.

All endpoints require JWT authentication.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from pydantic import BaseModel, Field

from config.settings import get_settings
from core.auth import AuthenticatedUser, require_auth
from services.profile_service import ProfileService, get_profile_service
from wardrobe.images import load_upload
from wardrobe.models import ProfileGender, UserProfile


router = APIRouter(prefix="/api/profile", tags=["Profile"])


class ProfileUpdateRequest(BaseModel):
    gender: Optional[ProfileGender] = Field(None, description="male, female, non-binary, or null to clear")


@router.get("", summary="Get the user's profile")
def get_profile(
    user: AuthenticatedUser = Depends(require_auth),
    service: ProfileService = Depends(get_profile_service),
) -> UserProfile:
    return service.get_profile(user.id)


@router.patch("", summary="Update the user's profile")
def update_profile(
    request: ProfileUpdateRequest,
    user: AuthenticatedUser = Depends(require_auth),
    service: ProfileService = Depends(get_profile_service),
) -> UserProfile:
    return service.set_gender(user.id, request.gender)


@router.post("/personal-model", summary="Create the personal model")
def create_personal_model(
    file: UploadFile = File(..., description="Full-body photo of the user"),
    user: AuthenticatedUser = Depends(require_auth),
    service: ProfileService = Depends(get_profile_service),
) -> UserProfile:
    """
    Turn a photo of the user into a studio reference image for try-on.

    If generation fails the photo itself becomes the personal model.
    """
    photo = load_upload(file.file.read(), file.filename, get_settings().upload_max_bytes)
    return service.create_personal_model(user.id, photo)
