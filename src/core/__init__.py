"""
Core module for cross-cutting concerns.

This module provides:
- Structured logging configuration
- Common value-coercion utilities
"""

from core.logging import configure_logging, configure_logging_from_settings, get_logger
from core.utils import coerce_text, is_empty_value, safe_get

__all__ = [
    "configure_logging",
    "configure_logging_from_settings",
    "get_logger",
    "coerce_text",
    "is_empty_value",
    "safe_get",
]
