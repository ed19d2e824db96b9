"""
Cross-cutting pieces shared by the API and services: structured logging,
request tracing, Supabase JWT auth, domain errors and small helpers.
"""

from core.auth import AuthenticatedUser, require_auth
from core.errors import WardrobeError, user_message_for
from core.logging import LoggerMixin, configure_logging, get_logger

__all__ = [
    "AuthenticatedUser",
    "require_auth",
    "WardrobeError",
    "user_message_for",
    "LoggerMixin",
    "configure_logging",
    "get_logger",
]
