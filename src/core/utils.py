"""
Core Utility Functions.

Common helpers for storage URLs, file names and string normalization.
"""

import os
from typing import Any, Iterable, List, Optional
from urllib.parse import unquote, urlparse

from config.constants import DEFAULT_MIME_TYPE, EXTENSION_TO_MIME


# =============================================================================
# Storage URLs
# =============================================================================

def extract_storage_path(url: Optional[str], bucket: str) -> Optional[str]:
    """
    Extract the object path from a Supabase Storage public URL.

    Public URLs look like
    ``https://<project>.supabase.co/storage/v1/object/public/<bucket>/<path>``.

    Args:
        url: Public URL of the object (may be None).
        bucket: Bucket the object lives in.

    Returns:
        The path inside the bucket, or None if the URL isn't for that bucket.

    Examples:
        >>> extract_storage_path(
        ...     "https://x.supabase.co/storage/v1/object/public/wardrobe-images/u/i/original.jpg",
        ...     "wardrobe-images",
        ... )
        'u/i/original.jpg'
    """
    if not url:
        return None
    path = urlparse(url).path
    marker = f"/{bucket}/"
    index = path.find(marker)
    if index == -1:
        return None
    object_path = unquote(path[index + len(marker):])
    return object_path or None


# =============================================================================
# File Names / MIME Types
# =============================================================================

def mime_type_from_filename(filename: Optional[str]) -> str:
    """
    Guess an image MIME type from a file name or URI.

    Falls back to JPEG, which is what phone cameras produce.
    """
    if not filename:
        return DEFAULT_MIME_TYPE
    _, ext = os.path.splitext(urlparse(filename).path.lower())
    return EXTENSION_TO_MIME.get(ext, DEFAULT_MIME_TYPE)


def original_extension(mime_type: str) -> str:
    """Extension used when storing an original photo: png or jpg."""
    return "png" if mime_type == "image/png" else "jpg"


def generated_extension(mime_type: str) -> str:
    """Extension used for generated images: png or jpeg."""
    return "png" if "png" in mime_type else "jpeg"


# =============================================================================
# Strings
# =============================================================================

def normalize_string_list(items: Optional[Iterable[Any]]) -> List[str]:
    """
    Normalize a list of tags: strip, lowercase, drop empties and duplicates.

    Order of first occurrence is preserved.
    """
    seen = set()
    result: List[str] = []
    for item in items or []:
        if item is None:
            continue
        value = str(item).strip().lower()
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result


def dedupe_preserving_order(values: Iterable[str]) -> List[str]:
    """Remove duplicates while keeping the first occurrence of each value."""
    seen = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result
