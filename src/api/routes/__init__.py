"""
One APIRouter per feature, mounted by api.app:

- health: probes, no auth
- wardrobe: stored items and single-photo analysis
- uploads: the detect, select and process flow
- outfits: AI suggestions and saved history
- profile: gender and personal model
- tryon: virtual try-on
"""

from api.routes import health, outfits, profile, tryon, uploads, wardrobe

__all__ = ["health", "outfits", "profile", "tryon", "uploads", "wardrobe"]
