"""Clients for the external AI services (Gemini, Photoroom)."""
