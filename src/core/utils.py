"""
Core Utility Functions.

Common value-coercion helpers used across the engine.
"""

from typing import Any, Optional


# =============================================================================
# Text Coercion
# =============================================================================

def coerce_text(value: Any) -> Optional[str]:
    """
    Coerce a catalog value to a stripped string.

    Catalog data arrives from heterogeneous sources: numbers, booleans and
    strings all show up as specification values.

    Args:
        value: Any scalar value (may be None).

    Returns:
        Stripped string, or None if the value is None, a container,
        or blank after stripping.

    Examples:
        >>> coerce_text("  8GB ")
        '8GB'
        >>> coerce_text(16)
        '16'
        >>> coerce_text("   ") is None
        True
    """
    if value is None or isinstance(value, (dict, list, tuple, set)):
        return None
    text = str(value).strip()
    return text or None


def is_empty_value(value: Any) -> bool:
    """
    Check whether a filter value counts as "not set".

    None, blank strings, False and empty containers are all empty.
    Zero is NOT empty (a 0 rating floor is handled by the model).
    """
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (dict, list, tuple, set)):
        return len(value) == 0
    return False


# =============================================================================
# Mapping Access
# =============================================================================

def safe_get(obj: Any, *keys: str, default: Any = None) -> Any:
    """
    Safely get nested dictionary values.

    Args:
        obj: Dictionary or object
        *keys: Keys to traverse
        default: Default value if key not found

    Returns:
        Value at the nested key path, or default

    Example:
        >>> safe_get({'data': {'suggestions': [1]}}, 'data', 'suggestions')
        [1]
        >>> safe_get({'data': {}}, 'data', 'history', default=[])
        []
    """
    current = obj
    for key in keys:
        if isinstance(current, dict):
            current = current.get(key)
        elif hasattr(current, key):
            current = getattr(current, key)
        else:
            return default
        if current is None:
            return default
    return current
