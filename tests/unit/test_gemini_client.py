"""
Tests for the Gemini client with a mocked google-genai SDK.
"""

import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from core.errors import (
    AIConfigurationError,
    AIServiceBusyError,
    AIServiceError,
    NetworkError,
)
from integrations.gemini_client import GeminiClient, extract_json
from integrations.gemini_prompts import build_clean_image_prompt, build_outfit_prompt, build_tryon_prompt
from wardrobe.images import ImagePayload
from wardrobe.models import OutfitContext, WardrobeItemMetadata


def text_response(text):
    return SimpleNamespace(text=text, candidates=[])


def image_response(data=b"generated", mime_type="image/png"):
    part = SimpleNamespace(inline_data=SimpleNamespace(data=data, mime_type=mime_type), text=None)
    return SimpleNamespace(text=None, candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))])


def text_only_image_response():
    part = SimpleNamespace(inline_data=None, text="Sorry, I can't do that")
    return SimpleNamespace(text=None, candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))])


@pytest.fixture
def sdk():
    return MagicMock()


@pytest.fixture
def gemini(sdk, test_settings):
    return GeminiClient(settings=test_settings, client=sdk)


@pytest.fixture
def metadata():
    return WardrobeItemMetadata(
        category="Top", subcategory="Shirt", color="White", material="Linen",
        attributes=["summer"], sleeve_length="long", length="cropped",
    )


class TestExtractJson:

    def test_fenced_block(self):
        text = 'Here you go:\n```json\n{"a": 1}\n```\nthanks'
        assert extract_json(text) == '{"a": 1}'

    def test_fence_without_language(self):
        assert extract_json('```\n[1, 2]\n```') == "[1, 2]"

    def test_bare_object_in_prose(self):
        assert extract_json('Result: {"a": {"b": 2}} done') == '{"a": {"b": 2}}'

    def test_bare_array(self):
        assert extract_json("items: [1, 2, 3]") == "[1, 2, 3]"

    def test_plain_text(self):
        assert extract_json("  nothing here  ") == "nothing here"

    def test_empty(self):
        assert extract_json(None) == ""


class TestClientSetup:

    def test_missing_key_raises_configuration_error(self):
        from config.settings import get_settings_for_testing

        client = GeminiClient(settings=get_settings_for_testing(gemini_api_key=""))
        assert client.enabled is False
        with pytest.raises(AIConfigurationError):
            client.client

    def test_enabled_with_key(self):
        from config.settings import get_settings_for_testing

        assert GeminiClient(settings=get_settings_for_testing(gemini_api_key="k")).enabled is True


class TestAnalysis:

    def test_analyze_item(self, gemini, sdk, sample_image, test_settings):
        sdk.models.generate_content.return_value = text_response(
            '```json\n{"category": "Bottom", "subcategory": "Jeans", "color": "Blue",'
            ' "material": "Denim", "attributes": ["casual", "everyday"]}\n```'
        )

        meta = gemini.analyze_item(sample_image)

        assert meta.subcategory == "Jeans"
        assert meta.gender.value == "unisex"
        kwargs = sdk.models.generate_content.call_args.kwargs
        assert kwargs["model"] == test_settings.gemini_text_model
        assert len(kwargs["contents"]) == 2

    def test_analyze_item_unparseable(self, gemini, sdk, sample_image):
        sdk.models.generate_content.return_value = text_response("I see a shirt")
        assert gemini.analyze_item(sample_image) is None

    def test_analyze_item_invalid_schema(self, gemini, sdk, sample_image):
        sdk.models.generate_content.return_value = text_response('{"category": "Top"}')
        assert gemini.analyze_item(sample_image) is None

    def test_detect_items(self, gemini, sdk, sample_image):
        sdk.models.generate_content.return_value = text_response(json.dumps({"items": [
            {"category": "Top", "subcategory": "Blouse", "color": "Red", "material": "Silk",
             "attributes": ["formal", "evening"], "gender": "female", "sleeveLength": "short"},
            {"category": "Shoes", "subcategory": "Heels", "color": "Black", "material": "Leather",
             "attributes": ["formal", "party"]},
        ]}))

        items = gemini.detect_items(sample_image)

        assert [i.subcategory for i in items] == ["Blouse", "Heels"]
        assert items[0].sleeve_length == "short"

    def test_detect_items_empty_list(self, gemini, sdk, sample_image):
        sdk.models.generate_content.return_value = text_response('{"items": []}')
        assert gemini.detect_items(sample_image) is None

    def test_suggest_outfit(self, gemini, sdk, wardrobe_items):
        sdk.models.generate_content.return_value = text_response(
            '{"itemIds": ["item-top", "item-bottom"], "suggestion": "Clean and simple",'
            ' "stylistNote": "Tuck the tee"}'
        )

        suggestion = gemini.suggest_outfit(wardrobe_items, OutfitContext(occasion="work"))

        assert suggestion.item_ids == ["item-top", "item-bottom"]
        prompt = sdk.models.generate_content.call_args.kwargs["contents"][0]
        assert "Occasion: work" in prompt
        assert "item-shoes" in prompt


class TestErrorMapping:

    def test_quota_error_becomes_busy(self, gemini, sdk, sample_image):
        exc = RuntimeError("429 RESOURCE_EXHAUSTED")
        sdk.models.generate_content.side_effect = exc

        with pytest.raises(AIServiceBusyError):
            gemini.analyze_item(sample_image)

    def test_connection_error(self, gemini, sdk, sample_image):
        sdk.models.generate_content.side_effect = ConnectionError("connection reset by peer")

        with pytest.raises(NetworkError):
            gemini.detect_items(sample_image)

    def test_unknown_error_reads_as_no_garment(self, gemini, sdk, sample_image):
        sdk.models.generate_content.side_effect = RuntimeError("boom")

        assert gemini.analyze_item(sample_image) is None
        assert gemini.detect_items(sample_image) is None

    def test_unknown_error_in_styling_becomes_ai_service_error(self, gemini, sdk, wardrobe_items):
        sdk.models.generate_content.side_effect = RuntimeError("boom")

        with pytest.raises(AIServiceError):
            gemini.suggest_outfit(wardrobe_items)

    def test_test_connection(self, gemini, sdk):
        sdk.models.generate_content.return_value = text_response("Hello")
        assert gemini.test_connection() is True

        sdk.models.generate_content.side_effect = RuntimeError("boom")
        assert gemini.test_connection() is False


class TestImageGeneration:

    def test_clean_image_returned(self, gemini, sdk, sample_image, metadata, test_settings):
        sdk.models.generate_content.return_value = image_response(b"clean")

        result = gemini.generate_clean_product_image(sample_image, metadata)

        assert result.data == b"clean"
        assert result.mime_type == "image/png"
        kwargs = sdk.models.generate_content.call_args.kwargs
        assert kwargs["model"] == test_settings.gemini_image_model
        assert kwargs["config"].response_modalities == ["TEXT", "IMAGE"]

    def test_clean_image_falls_back_without_image(self, gemini, sdk, sample_image, metadata):
        sdk.models.generate_content.return_value = text_only_image_response()
        assert gemini.generate_clean_product_image(sample_image, metadata) is sample_image

    def test_clean_image_falls_back_on_error(self, gemini, sdk, sample_image, metadata):
        sdk.models.generate_content.side_effect = RuntimeError("quota exceeded")
        assert gemini.generate_clean_product_image(sample_image, metadata) is sample_image

    def test_personal_model_falls_back(self, gemini, sdk, sample_image):
        sdk.models.generate_content.return_value = SimpleNamespace(text=None, candidates=None)
        assert gemini.generate_personal_model(sample_image) is sample_image

    def test_try_on_sends_model_first(self, gemini, sdk, wardrobe_items):
        sdk.models.generate_content.return_value = image_response(b"tryon", "image/jpeg")
        model = ImagePayload(b"model", "image/png")
        garments = [ImagePayload(b"g1"), ImagePayload(b"g2")]

        result = gemini.generate_try_on(model, garments, wardrobe_items[:2])

        assert result.data == b"tryon"
        contents = sdk.models.generate_content.call_args.kwargs["contents"]
        assert len(contents) == 4
        assert "Image 2" in contents[0]

    def test_try_on_without_image_raises(self, gemini, sdk, wardrobe_items):
        sdk.models.generate_content.return_value = text_only_image_response()

        with pytest.raises(AIServiceError, match="No image generated"):
            gemini.generate_try_on(ImagePayload(b"m"), [ImagePayload(b"g")], wardrobe_items[:1])


class TestPrompts:

    def test_clean_prompt_locks_details(self, metadata):
        prompt = build_clean_image_prompt(metadata)

        assert "White Shirt" in prompt
        assert "- Sleeve length: long" in prompt
        assert "must stay LONG" in prompt
        # length is described but not locked
        assert "- Length: cropped" in prompt
        assert "must stay CROPPED" not in prompt

    def test_clean_prompt_without_details(self):
        meta = WardrobeItemMetadata(category="Shoes", subcategory="Boots", color="Brown", material="Suede")
        prompt = build_clean_image_prompt(meta)
        assert "as shown in the reference photo" in prompt
        assert "Do not alter" not in prompt

    def test_outfit_prompt_counts_categories(self, wardrobe_items, item_factory):
        items = wardrobe_items + [item_factory("item-top-2", category="Top")]
        prompt = build_outfit_prompt(items, OutfitContext())

        assert "Top: 2 items" in prompt
        assert "between 2 and 7" in prompt
        assert "Weather: moderate" in prompt

    def test_tryon_prompt_numbers_garments_from_two(self, wardrobe_items):
        prompt = build_tryon_prompt(wardrobe_items)
        assert "2. Garment (Image 2): White T-Shirt (Top)" in prompt
        assert "4. Garment (Image 4): Black Sneakers (Shoes)" in prompt
