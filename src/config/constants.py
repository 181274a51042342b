"""
Engine constants and algorithm configuration.

These are values that don't change based on environment but may need
to be tuned or referenced across the codebase.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple


# =============================================================================
# Facet Configuration
# =============================================================================

# Sentinel category for specifications that arrive without one
DEFAULT_SPEC_CATEGORY = "Other"

# Spec names shown per category in the filter panel. Categories not listed
# here fall back to the first FacetConfig.SPEC_CAP names.
IMPORTANT_SPECS: Dict[str, List[str]] = {
    "Performance": ["Processor", "RAM", "Storage", "GPU"],
    "Display & Interface": ["Screen Size", "Resolution", "Display Technology", "Refresh Rate"],
    "Camera & Imaging": ["Main Camera", "Video Recording", "Optical Zoom"],
    "Battery & Power": ["Battery Capacity", "Battery Life", "Wired Charging"],
    "Connectivity": ["Wi-Fi", "Bluetooth", "Cellular"],
}


@dataclass(frozen=True)
class FacetConfig:
    """Configuration for facet extraction."""

    # Fallback cap on spec names per category (no allow-list)
    SPEC_CAP: int = 5

    IMPORTANT_SPECS: Dict[str, List[str]] = field(
        default_factory=lambda: {k: list(v) for k, v in IMPORTANT_SPECS.items()}
    )


DEFAULT_FACET_CONFIG = FacetConfig()


# =============================================================================
# Pagination Configuration
# =============================================================================

@dataclass(frozen=True)
class PaginationConfig:
    """Configuration for the result paginator."""

    MAX_VISIBLE_PAGES: int = 5
    DEFAULT_LIMIT: int = 20
    MAX_LIMIT: int = 50


DEFAULT_PAGINATION_CONFIG = PaginationConfig()


# =============================================================================
# Dispatcher Configuration
# =============================================================================

@dataclass(frozen=True)
class DispatcherConfig:
    """Timing contract for the query dispatcher."""

    # Autocomplete quiet period (seconds)
    DEBOUNCE_SECONDS: float = 0.3

    # Minimum trimmed text length for autocomplete
    MIN_AUTOCOMPLETE_CHARS: int = 2

    AUTOCOMPLETE_LIMIT: int = 10


DEFAULT_DISPATCHER_CONFIG = DispatcherConfig()


# =============================================================================
# History Configuration
# =============================================================================

@dataclass(frozen=True)
class HistoryConfig:
    """Configuration for recent-search history."""

    MAX_ENTRIES: int = 10
    POPULAR_LIMIT: int = 5

    # Shortest query worth remembering
    MIN_QUERY_CHARS: int = 2


DEFAULT_HISTORY_CONFIG = HistoryConfig()


# =============================================================================
# Filter Options
# =============================================================================

# Default price range when the Search Service has no aggregate
DEFAULT_PRICE_RANGE: Tuple[float, float] = (0.0, 1000.0)

# Specification values rendered without a unit suffix
UNITLESS_SPEC_VALUES = frozenset({"Yes", "No"})
