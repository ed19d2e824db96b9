"""
Tests for domain errors and user-facing messages.
"""

import pytest

from core.errors import (
    GENERIC_MESSAGE,
    AIConfigurationError,
    AIServiceBusyError,
    AIServiceError,
    AuthenticationRequiredError,
    DatabaseError,
    GenderMismatchError,
    NetworkError,
    NotFoundError,
    StorageError,
    WardrobeError,
    classify_ai_exception,
    user_message_for,
)


class TestWardrobeError:

    def test_default_message_used(self):
        err = NotFoundError()
        assert err.message == "Item not found"
        assert str(err) == "Item not found"
        assert err.status_code == 404

    def test_custom_message(self):
        assert NotFoundError("Outfit not found").message == "Outfit not found"

    def test_to_dict_without_details(self):
        assert StorageError().to_dict() == {
            "detail": "Failed to upload images. Please check your connection.",
            "error": "storage",
        }

    def test_to_dict_with_details(self):
        err = GenderMismatchError(details={"incompatible_item_ids": ["a"]})
        payload = err.to_dict()
        assert payload["error"] == "gender_mismatch"
        assert payload["details"] == {"incompatible_item_ids": ["a"]}


class TestUserMessageFor:

    def test_wardrobe_error_keeps_its_message(self):
        assert user_message_for(DatabaseError("custom")) == "custom"

    @pytest.mark.parametrize("text,expected", [
        ("Network request failed", NetworkError.default_message),
        ("Failed to fetch", NetworkError.default_message),
        ("auth session missing", AuthenticationRequiredError.default_message),
        ("Please sign in", AuthenticationRequiredError.default_message),
        ("Gemini returned nothing", AIServiceError.default_message),
        ("quota exceeded", AIServiceBusyError.default_message),
        ("storage bucket error", StorageError.default_message),
        ("could not save row", DatabaseError.default_message),
    ])
    def test_keyword_mapping(self, text, expected):
        assert user_message_for(RuntimeError(text)) == expected

    def test_first_matching_group_wins(self):
        # "network" outranks "upload"
        assert user_message_for(RuntimeError("network upload failed")) == NetworkError.default_message
        # "api" outranks "quota"
        assert user_message_for(RuntimeError("API quota reached")) == AIServiceError.default_message

    def test_unknown_message_passes_through(self):
        assert user_message_for(ValueError("Something odd")) == "Something odd"

    def test_empty_message_is_generic(self):
        assert user_message_for(RuntimeError()) == GENERIC_MESSAGE


class TestClassifyAIException:

    def test_api_key_problems(self):
        assert isinstance(classify_ai_exception(ValueError("API key not valid")), AIConfigurationError)
        assert isinstance(classify_ai_exception(ValueError("missing api_key")), AIConfigurationError)

    def test_quota_by_status_code(self):
        exc = RuntimeError("too many requests")
        exc.code = 429
        assert isinstance(classify_ai_exception(exc), AIServiceBusyError)

    def test_quota_by_text(self):
        assert isinstance(classify_ai_exception(RuntimeError("RESOURCE_EXHAUSTED")), AIServiceBusyError)

    def test_connection_errors(self):
        assert isinstance(classify_ai_exception(OSError("Connection reset")), NetworkError)

    def test_wardrobe_error_returned_as_is(self):
        err = AIServiceError()
        assert classify_ai_exception(err) is err

    def test_unrecognised(self):
        assert classify_ai_exception(RuntimeError("boom")) is None

    def test_all_errors_share_base(self):
        assert issubclass(AIServiceBusyError, WardrobeError)
