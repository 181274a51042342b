"""
Configuration module for the search engine.

This module provides centralized configuration management using pydantic-settings.
All environment variables and configuration values should be accessed through this module.

Usage:
    from config import get_settings, settings

    # Get settings instance (cached)
    settings = get_settings()

    # Access values
    base_url = settings.search_api_base_url
    is_dev = settings.is_development
"""

from config.settings import Settings, get_settings

# Convenience: create a default settings instance
try:
    settings = get_settings()
except Exception:
    settings = None  # Invalid env must not block import; callers can inject Settings

__all__ = ["Settings", "get_settings", "settings"]
