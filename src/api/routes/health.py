"""
Health and probe endpoints. None of these require authentication.
"""

from typing import Any, Dict

from fastapi import APIRouter

from config.constants import ITEMS_TABLE
from config.database import get_supabase_client_optional
from config.settings import Settings, get_settings
from services.session_manager import get_upload_session_store


router = APIRouter(tags=["Health"])

SERVICE_NAME = "wardrobe-api"


def _check_supabase() -> Dict[str, Any]:
    client = get_supabase_client_optional()
    if client is None:
        return {"status": "not_configured", "error": None}
    try:
        client.table(ITEMS_TABLE).select("id").limit(1).execute()
    except Exception as e:
        return {"status": "error", "error": str(e)}
    return {"status": "connected", "error": None}


def _configured(value: str) -> str:
    return "configured" if value else "not_configured"


def _ai_checks(settings: Settings) -> Dict[str, str]:
    return {
        "gemini": _configured(settings.gemini_api_key),
        "photoroom": _configured(settings.photoroom_api_key),
        "clean_image_strategy": settings.clean_image_strategy,
    }


@router.get("/health")
def health_check() -> Dict[str, Any]:
    return {"status": "healthy", "service": SERVICE_NAME}


@router.get("/health/detailed")
def detailed_health_check() -> Dict[str, Any]:
    """
    Service status with dependencies.

    "degraded" when Supabase can't be read; missing AI keys are reported
    but don't change the status, since browsing the wardrobe still works.
    """
    settings = get_settings()
    supabase = _check_supabase()
    return {
        "status": "healthy" if supabase["status"] == "connected" else "degraded",
        "service": SERVICE_NAME,
        "environment": settings.environment,
        "checks": {"supabase": supabase, **_ai_checks(settings)},
        "upload_sessions": get_upload_session_store().get_stats(),
    }


@router.get("/ready")
def readiness_check() -> Dict[str, str]:
    """Readiness probe: ready once a Supabase client can be built."""
    if get_supabase_client_optional() is None:
        return {"status": "not_ready", "reason": "database_not_configured"}
    return {"status": "ready"}


@router.get("/live")
def liveness_check() -> Dict[str, str]:
    return {"status": "alive"}
