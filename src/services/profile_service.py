"""User profile settings: gender and the personal model used for try-on."""

from typing import Optional

from core.logging import LoggerMixin
from integrations.gemini_client import GeminiClient, get_gemini_client
from wardrobe.images import ImagePayload
from wardrobe.models import ProfileGender, UserProfile
from wardrobe.repository import WardrobeRepository, get_repository


class ProfileService(LoggerMixin):

    def __init__(
        self,
        repository: Optional[WardrobeRepository] = None,
        gemini: Optional[GeminiClient] = None,
    ) -> None:
        self._repository = repository or get_repository()
        self._gemini = gemini or get_gemini_client()

    def get_profile(self, user_id: str) -> UserProfile:
        """The user's profile; an empty one if no row exists yet."""
        profile = self._repository.get_profile(user_id)
        return profile if profile is not None else UserProfile(id=user_id)

    def set_gender(self, user_id: str, gender: Optional[ProfileGender]) -> UserProfile:
        value = ProfileGender(gender).value if gender is not None else None
        profile = self._repository.update_profile(user_id, {"gender": value})
        self.logger.info("Profile gender updated", user_id=user_id, gender=value)
        return profile

    def create_personal_model(self, user_id: str, photo: ImagePayload) -> UserProfile:
        """
        Generate the user's try-on reference image from a photo and store it.

        If generation fails the photo itself is stored, so try-on still works.
        The previous model image is removed once the profile points at the new one.
        """
        previous = self._repository.get_profile(user_id)
        previous_url = previous.personal_model_url if previous is not None else None

        model_image = self._gemini.generate_personal_model(photo)
        url = self._repository.upload_personal_model_image(user_id, model_image)
        profile = self._repository.update_profile(user_id, {"personal_model_url": url})
        if previous_url and previous_url != url:
            self._repository.remove_personal_model_image(previous_url)
        self.logger.info(
            "Personal model saved",
            user_id=user_id,
            generated=model_image is not photo,
        )
        return profile


def get_profile_service() -> ProfileService:
    return ProfileService()
