"""
Services module for business logic.

Provides the upload pipeline and its session store, wardrobe and profile
operations, outfit suggestions and the try-on cache.
"""

from services.session_manager import (
    UploadSession,
    UploadSessionStore,
    UploadStep,
    get_upload_session_store,
)
from services.tryon_service import check_gender_compatibility, generate_combination_hash

__all__ = [
    "UploadSession",
    "UploadSessionStore",
    "UploadStep",
    "get_upload_session_store",
    "check_gender_compatibility",
    "generate_combination_hash",
]
