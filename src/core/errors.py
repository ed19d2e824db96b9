"""
Domain exceptions and user-facing error messages.

Every error the service surfaces to a client derives from WardrobeError.
Each carries an HTTP status code and a short message suitable for showing
directly in the app; the API layer turns them into JSON responses.

Errors raised by third-party SDKs are not WardrobeErrors. Use
user_message_for() to classify those into the same set of messages.
"""

from typing import Any, Dict, Optional


class WardrobeError(Exception):
    """Base class for errors that map to a client-facing message."""

    status_code: int = 500
    code: str = "internal_error"
    default_message: str = "Something went wrong. Please try again."

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"detail": self.message, "error": self.code}
        if self.details:
            payload["details"] = self.details
        return payload


class AuthenticationRequiredError(WardrobeError):
    status_code = 401
    code = "auth_required"
    default_message = "Please sign in to upload items."


class NotFoundError(WardrobeError):
    status_code = 404
    code = "not_found"
    default_message = "Item not found"


class InvalidRequestError(WardrobeError):
    status_code = 400
    code = "invalid_request"
    default_message = "Invalid request"


class NoItemsDetectedError(WardrobeError):
    status_code = 422
    code = "no_items_detected"
    default_message = "Couldn't identify any clothing items. Please try a clearer photo."


class InsufficientWardrobeError(WardrobeError):
    status_code = 422
    code = "insufficient_wardrobe"
    default_message = "You need at least 3 items in your wardrobe to generate an outfit"


class GenderMismatchError(WardrobeError):
    status_code = 409
    code = "gender_mismatch"
    default_message = "Some items don't match your profile gender"


class MissingPersonalModelError(WardrobeError):
    status_code = 409
    code = "missing_personal_model"
    default_message = "Create your personal model in settings before trying on outfits."


class AIServiceBusyError(WardrobeError):
    status_code = 503
    code = "ai_busy"
    default_message = "AI service is busy. Please wait a moment and try again."


class AIConfigurationError(WardrobeError):
    status_code = 500
    code = "ai_configuration"
    default_message = "API configuration error. Please check your API key."


class AIServiceError(WardrobeError):
    status_code = 502
    code = "ai_failed"
    default_message = "AI image generation failed. Please try again."


class NetworkError(WardrobeError):
    status_code = 503
    code = "network"
    default_message = "Network error. Please check your connection and try again."


class StorageError(WardrobeError):
    status_code = 502
    code = "storage"
    default_message = "Failed to upload images. Please check your connection."


class DatabaseError(WardrobeError):
    status_code = 502
    code = "database"
    default_message = "Failed to save items. Please try again."


GENERIC_MESSAGE = WardrobeError.default_message

# Ordered: the first matching keyword group wins.
_KEYWORD_MESSAGES = (
    (("network", "fetch"), NetworkError.default_message),
    (("auth", "sign in"), AuthenticationRequiredError.default_message),
    (("api", "gemini"), AIServiceError.default_message),
    (("quota", "busy"), AIServiceBusyError.default_message),
    (("storage", "upload"), StorageError.default_message),
    (("database", "save"), DatabaseError.default_message),
)


def user_message_for(exc: BaseException) -> str:
    """
    Turn any exception into a message the app can show.

    WardrobeErrors already carry one. Anything else is matched on its text;
    unknown errors with a message fall through unchanged.
    """
    if isinstance(exc, WardrobeError):
        return exc.message

    text = str(exc)
    if not text:
        return GENERIC_MESSAGE

    lowered = text.lower()
    for keywords, message in _KEYWORD_MESSAGES:
        if any(keyword in lowered for keyword in keywords):
            return message
    return text


def classify_ai_exception(exc: BaseException) -> Optional[WardrobeError]:
    """
    Map an AI provider exception to a WardrobeError, or None if unrecognised.

    Recognises missing/invalid keys, quota exhaustion (HTTP 429) and
    connection failures.
    """
    if isinstance(exc, WardrobeError):
        return exc

    text = str(exc)
    lowered = text.lower()
    status = getattr(exc, "code", None) or getattr(exc, "status_code", None)

    if "api_key" in lowered or "api key" in lowered:
        return AIConfigurationError()
    if status == 429 or "429" in text or "quota" in lowered or "resource_exhausted" in lowered:
        return AIServiceBusyError()
    if "network" in lowered or "connection" in lowered or "timed out" in lowered:
        return NetworkError()
    return None
