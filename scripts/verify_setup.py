#!/usr/bin/env python3
"""
Check that a Supabase project and API keys are ready for the wardrobe API.

Checks:
- every table in sql/schema.sql can be read
- every Storage bucket exists
- the Gemini key answers a trivial prompt (skip with --skip-gemini)

Usage:
    python scripts/verify_setup.py
    python scripts/verify_setup.py --skip-gemini
"""

import argparse
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src"))

from dotenv import load_dotenv

load_dotenv(os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), ".env"))

from config.constants import ITEMS_TABLE, OUTFITS_TABLE, PROFILES_TABLE, VISUALIZATIONS_TABLE
from config.database import get_supabase_client
from config.settings import get_settings


def check_tables(supabase) -> bool:
    print("\n--- Tables ---")
    ok = True
    for table in (ITEMS_TABLE, OUTFITS_TABLE, PROFILES_TABLE, VISUALIZATIONS_TABLE):
        try:
            result = supabase.table(table).select("*", count="exact").limit(1).execute()
            print(f"  [ok]   {table} ({result.count} rows)")
        except Exception as e:
            print(f"  [FAIL] {table}: {e}")
            ok = False
    return ok


def check_buckets(supabase, settings) -> bool:
    print("\n--- Storage buckets ---")
    ok = True
    try:
        existing = {bucket.name for bucket in supabase.storage.list_buckets()}
    except Exception as e:
        print(f"  [FAIL] could not list buckets: {e}")
        return False

    for bucket in (
        settings.wardrobe_bucket,
        settings.isolated_bucket,
        settings.visualizations_bucket,
        settings.personal_models_bucket,
    ):
        if bucket in existing:
            print(f"  [ok]   {bucket}")
        else:
            print(f"  [FAIL] {bucket} missing")
            ok = False
    return ok


def check_gemini() -> bool:
    from integrations.gemini_client import GeminiClient

    print("\n--- Gemini ---")
    client = GeminiClient()
    if not client.enabled:
        print("  [FAIL] GEMINI_API_KEY not set")
        return False
    if client.test_connection():
        print("  [ok]   Gemini responded")
        return True
    print("  [FAIL] Gemini did not respond")
    return False


def main() -> int:
    parser = argparse.ArgumentParser(description="Verify wardrobe API setup")
    parser.add_argument("--skip-gemini", action="store_true", help="Don't call the Gemini API")
    args = parser.parse_args()

    settings = get_settings()
    supabase = get_supabase_client()

    print("=" * 60)
    print(f"Verifying setup for {settings.supabase_url}")
    print("=" * 60)

    results = [check_tables(supabase), check_buckets(supabase, settings)]
    if not args.skip_gemini:
        results.append(check_gemini())

    print("\n--- Photoroom ---")
    print("  [ok]   key configured" if settings.photoroom_api_key else "  [--]   key not set (background removal disabled)")

    print()
    if all(results):
        print("All checks passed.")
        return 0
    print("Some checks failed. Run sql/schema.sql and create the missing buckets.")
    return 1


if __name__ == "__main__":
    sys.exit(main())
