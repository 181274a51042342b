"""
Search Analytics Tracking.

Reports successful free-text searches to the Search Service's analytics
endpoint for later analysis and search quality improvement.
"""

from typing import Any, Dict, Optional

from core.logging import get_logger

logger = get_logger(__name__)


class SearchAnalytics:
    """
    Track search events through the Search Service collaborator.

    Analytics is non-critical: every failure is logged and swallowed so it
    can never break a search.
    """

    def __init__(self, service: Optional[Any] = None, enabled: bool = True):
        self._service = service
        self.enabled = enabled and service is not None

    async def log_search(
        self,
        query: str,
        result_count: int,
        filters: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Log a search event.

        Returns:
            True if the event was delivered.
        """
        if not self.enabled:
            return False
        try:
            await self._service.track_search(query.strip(), result_count, filters or {})
            return True
        except Exception as e:
            # Don't let analytics failures break search
            logger.warning("Failed to log search analytics", error=str(e), query=query)
            return False
