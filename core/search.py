import logging
from typing import Any, Dict, Optional

from .types import SearchResult, WebContext

logger = logging.getLogger(__name__)


class WebSearch:
    """
    Web augmentation via the Tavily search API.

    ``search`` never raises: a missing key, a transport error or a malformed
    response all come back as ``None`` and the run continues without
    enrichment.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        max_results: int = 5,
        search_depth: str = "advanced",
        client: Optional[Any] = None,
    ):
        self.api_key = api_key
        self.max_results = max_results
        self.search_depth = search_depth
        self._client = client

    @property
    def available(self) -> bool:
        return self._client is not None or bool(self.api_key)

    def _get_client(self) -> Any:
        if self._client is None:
            from tavily import AsyncTavilyClient
            self._client = AsyncTavilyClient(api_key=self.api_key)
        return self._client

    async def search(self, query: str) -> Optional[WebContext]:
        if not self.available:
            logger.info("Web search skipped: TAVILY_API_KEY not set")
            return None

        try:
            response = await self._get_client().search(
                query=query,
                search_depth=self.search_depth,
                max_results=self.max_results,
                include_answer=True,
                include_raw_content=False,
            )
        except Exception as e:
            logger.warning("Web search failed: %s", e)
            return None

        try:
            return self._parse_response(query, response)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning("Web search returned a malformed response: %s", e)
            return None

    def _parse_response(self, query: str, response: Dict[str, Any]) -> WebContext:
        results = []
        for item in response.get("results") or []:
            results.append(SearchResult(
                title=item.get("title", ""),
                url=item.get("url", ""),
                content=item.get("content", ""),
                score=float(item.get("score") or 0.0),
            ))
        return WebContext(
            query=query,
            results=results,
            answer=response.get("answer") or None,
        )
