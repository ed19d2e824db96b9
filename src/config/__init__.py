"""
Settings, constants and the Supabase client for the wardrobe service.

Usage:
    from config import get_settings

    bucket = get_settings().wardrobe_bucket
"""

from config.settings import Settings, get_settings, get_settings_for_testing

__all__ = ["Settings", "get_settings", "get_settings_for_testing"]
