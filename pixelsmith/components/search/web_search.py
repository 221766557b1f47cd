"""
Web search client (Google Custom Search JSON API) for search-capable swarm agents.
"""

from typing import List, Optional

import httpx

from pixelsmith.config import config
from pixelsmith.exceptions import SearchError
from pixelsmith.swarm.schemas import SearchResult
from pixelsmith.utils.logger import get_logger

logger = get_logger(__name__, "WebSearch")


class WebSearch:
    """Documentation lookups for agents; disabled (empty results) without credentials."""

    def __init__(
        self,
        api_key: str = None,
        engine_id: str = None,
        url: str = None,
        max_results: int = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        cfg = config.get_search_config()
        self.api_key = api_key or cfg["api_key"]
        self.engine_id = engine_id or cfg["engine_id"]
        self.url = url or cfg["url"]
        self.max_results = max_results or cfg["max_results"]
        self.transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.api_key and self.engine_id)

    async def search(self, query: str, correlation_id: Optional[str] = None) -> List[SearchResult]:
        """
        Raises:
            SearchError: When the search API call fails
        """
        if not self.enabled:
            logger.warning(f"Search disabled (no credentials), skipping query: {query}", correlation_id=correlation_id)
            return []

        params = {"key": self.api_key, "cx": self.engine_id, "q": query, "num": self.max_results}
        try:
            async with httpx.AsyncClient(timeout=httpx.Timeout(15.0), transport=self.transport) as client:
                resp = await client.get(self.url, params=params)
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise SearchError(f"search failed for '{query}': {e}") from e

        items = (data.get("items") or []) if isinstance(data, dict) else []
        results = [
            SearchResult(title=item.get("title", ""), link=item.get("link", ""), snippet=item.get("snippet", ""))
            for item in items if isinstance(item, dict)
        ]
        logger.debug(f"Search '{query}' -> {len(results)} results", correlation_id=correlation_id)
        return results


def format_results(results: List[SearchResult]) -> str:
    return "\n".join(f"- [{r.title}]({r.link}): {r.snippet}" for r in results)
