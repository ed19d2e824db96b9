"""
Gemini client for clothing analysis, outfit styling and image generation.

Text calls (analysis, detection, styling) use the text model and return
JSON that is validated with the wardrobe models. Image calls (product
shots, personal models, try-on) use the image model with IMAGE output
enabled.

Failure policy:
- Invalid or unparseable JSON yields None; the caller decides the message.
- Analysis and detection also yield None on unrecognised SDK errors.
- Product shots and personal models fall back to the input image.
- Try-on has no sensible fallback and raises.
"""

from __future__ import annotations

import json
import re
import threading
from typing import Iterable, List, Optional, Sequence, Type, TypeVar

from google import genai
from google.genai import types
from pydantic import BaseModel, ValidationError

from config.settings import Settings, get_settings
from core.errors import (
    AIConfigurationError,
    AIServiceError,
    WardrobeError,
    classify_ai_exception,
)
from core.logging import LoggerMixin
from integrations.gemini_prompts import (
    ANALYZE_ITEM_PROMPT,
    DETECT_ITEMS_PROMPT,
    PERSONAL_MODEL_PROMPT,
    build_clean_image_prompt,
    build_outfit_prompt,
    build_tryon_prompt,
)
from wardrobe.images import ImagePayload
from wardrobe.models import (
    DetectedClothingItems,
    OutfitContext,
    OutfitSuggestion,
    WardrobeItem,
    WardrobeItemMetadata,
)

M = TypeVar("M", bound=BaseModel)

_FENCED_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")
_OBJECT_RE = re.compile(r"\{[\s\S]*\}")
_ARRAY_RE = re.compile(r"\[[\s\S]*\]")


def extract_json(text: Optional[str]) -> str:
    """
    Pull the JSON document out of a model response.

    Tries, in order: a fenced code block, the outermost {...} object, the
    outermost [...] array. Otherwise returns the trimmed text.
    """
    if not text:
        return ""
    for pattern in (_FENCED_RE, _OBJECT_RE, _ARRAY_RE):
        match = pattern.search(text)
        if match:
            return (match.group(1) if match.groups() else match.group(0)).strip()
    return text.strip()


class GeminiClient(LoggerMixin):
    """Wrapper around google-genai for every Gemini call the service makes."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[genai.Client] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._client = client
        self._client_lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self._client is not None or bool(self._settings.gemini_api_key)

    @property
    def client(self) -> genai.Client:
        """Lazy-load the SDK client."""
        if self._client is None:
            with self._client_lock:
                if self._client is None:
                    if not self._settings.gemini_api_key:
                        raise AIConfigurationError(
                            "Gemini API key not found. Please set GEMINI_API_KEY."
                        )
                    self._client = genai.Client(api_key=self._settings.gemini_api_key)
                    self.logger.info("Gemini client initialized")
        return self._client

    # ---------------------------------------------------------------------
    # Low-level calls
    # ---------------------------------------------------------------------

    def _generate(
        self,
        model: str,
        prompt: str,
        images: Sequence[ImagePayload] = (),
        config: Optional[types.GenerateContentConfig] = None,
    ):
        contents: list = [prompt]
        for image in images:
            contents.append(types.Part.from_bytes(data=image.data, mime_type=image.mime_type))

        try:
            return self.client.models.generate_content(
                model=model,
                contents=contents,
                config=config,
            )
        except WardrobeError:
            raise
        except Exception as e:
            classified = classify_ai_exception(e)
            self.logger.error(
                "Gemini request failed",
                model=model,
                error=str(e),
                error_type=type(e).__name__,
            )
            if classified is not None:
                raise classified from e
            raise AIServiceError(details={"model": model}) from e

    def _generate_text(self, prompt: str, images: Sequence[ImagePayload] = ()) -> str:
        response = self._generate(self._settings.gemini_text_model, prompt, images)
        return response.text or ""

    def _generate_image(self, prompt: str, images: Sequence[ImagePayload]) -> Optional[ImagePayload]:
        response = self._generate(
            self._settings.gemini_image_model,
            prompt,
            images,
            config=types.GenerateContentConfig(response_modalities=["TEXT", "IMAGE"]),
        )
        for candidate in response.candidates or []:
            content = getattr(candidate, "content", None)
            for part in getattr(content, "parts", None) or []:
                inline = getattr(part, "inline_data", None)
                if inline is not None and inline.data:
                    return ImagePayload(data=inline.data, mime_type=inline.mime_type or "image/png")
        self.logger.warning("Gemini returned no image", model=self._settings.gemini_image_model)
        return None

    def _parse(self, text: str, model_cls: Type[M]) -> Optional[M]:
        payload = extract_json(text)
        try:
            return model_cls.model_validate(json.loads(payload))
        except (json.JSONDecodeError, ValidationError) as e:
            self.logger.warning(
                "Could not parse Gemini response",
                schema=model_cls.__name__,
                error=str(e),
                response=text[:500],
            )
            return None

    # ---------------------------------------------------------------------
    # Analysis
    # ---------------------------------------------------------------------

    def test_connection(self) -> bool:
        """Send a trivial prompt to check the key and model work."""
        try:
            text = self._generate_text("Say hello in one word")
        except WardrobeError as e:
            self.logger.warning("Gemini connection test failed", error=e.message)
            return False
        return bool(text.strip())

    def _read_photo(self, prompt: str, image: ImagePayload) -> Optional[str]:
        """
        Run a vision prompt over a photo.

        Unrecognised SDK failures count as an unreadable photo (None); key,
        quota and network errors still raise.
        """
        try:
            return self._generate_text(prompt, [image])
        except AIServiceError as e:
            self.logger.warning("Photo could not be read", error=e.message)
            return None

    def analyze_item(self, image: ImagePayload) -> Optional[WardrobeItemMetadata]:
        """Describe the single garment in a photo, or None if unreadable."""
        self.logger.info("Analyzing item", size_kb=image.size_kb, mime_type=image.mime_type)
        text = self._read_photo(ANALYZE_ITEM_PROMPT, image)
        return None if text is None else self._parse(text, WardrobeItemMetadata)

    def detect_items(self, image: ImagePayload) -> Optional[List[WardrobeItemMetadata]]:
        """Describe every garment visible in a photo, or None if unreadable."""
        self.logger.info("Detecting items", size_kb=image.size_kb, mime_type=image.mime_type)
        text = self._read_photo(DETECT_ITEMS_PROMPT, image)
        detected = None if text is None else self._parse(text, DetectedClothingItems)
        if detected is None:
            return None
        self.logger.info("Detected items", count=len(detected.items))
        return detected.items

    def suggest_outfit(
        self,
        items: Iterable[WardrobeItem],
        context: Optional[OutfitContext] = None,
    ) -> Optional[OutfitSuggestion]:
        context = context or OutfitContext()
        prompt = build_outfit_prompt(items, context)
        text = self._generate_text(prompt)
        return self._parse(text, OutfitSuggestion)

    # ---------------------------------------------------------------------
    # Image generation
    # ---------------------------------------------------------------------

    def generate_clean_product_image(
        self,
        image: ImagePayload,
        metadata: WardrobeItemMetadata,
    ) -> ImagePayload:
        """
        Render a white-background product shot of one garment.

        Returns the original image if generation fails or yields no image.
        """
        self.logger.info("Generating clean image", item=metadata.describe())
        try:
            generated = self._generate_image(build_clean_image_prompt(metadata), [image])
        except WardrobeError as e:
            self.logger.warning("Clean image generation failed, using original", error=e.message)
            return image
        return generated or image

    def generate_personal_model(self, photo: ImagePayload) -> ImagePayload:
        """Render a studio reference image of the user. Falls back to the photo."""
        self.logger.info("Generating personal model")
        try:
            generated = self._generate_image(PERSONAL_MODEL_PROMPT, [photo])
        except WardrobeError as e:
            self.logger.warning("Personal model generation failed, using original", error=e.message)
            return photo
        return generated or photo

    def generate_try_on(
        self,
        model_image: ImagePayload,
        garments: Sequence[ImagePayload],
        items: Sequence[WardrobeItem],
    ) -> ImagePayload:
        """
        Dress the personal model in the garments.

        Raises:
            AIServiceError: if Gemini returns no image
        """
        self.logger.info("Generating try-on", item_count=len(items))
        generated = self._generate_image(build_tryon_prompt(items), [model_image, *garments])
        if generated is None:
            raise AIServiceError("No image generated in response")
        return generated


# Singleton
_gemini_client: Optional[GeminiClient] = None
_gemini_lock = threading.Lock()


def get_gemini_client() -> GeminiClient:
    """Get or create the GeminiClient singleton (thread-safe)."""
    global _gemini_client
    if _gemini_client is None:
        with _gemini_lock:
            if _gemini_client is None:
                _gemini_client = GeminiClient()
    return _gemini_client
