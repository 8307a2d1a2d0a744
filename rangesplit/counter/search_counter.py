"""
Counter backed by an Azure AI Search index, over its REST API.

Each count is a search request with an empty query, the partition filter,
``count: true`` and ``top: 0``; the service reports the total in
``@odata.count``. The service only pages through the first 100,000 results
of a query, which is why partitions are capped at that size by default.
"""
import asyncio
from typing import Any, Dict, Optional, Tuple

import aiohttp

from ..core.decorators import async_retry
from ..core.enums import FieldType
from ..core.models import CounterConfig, CountResult, RangeFilter
from ..utils.filter_builder import FilterBuilder
from ..utils.value_parser import cast_value
from .base_counter import BaseCounter


class SearchIndexCounter(BaseCounter):
    """Count documents in a search index with OData boundary filters"""

    def __init__(self, config: CounterConfig, name: Optional[str] = None):
        super().__init__(name or config.index)
        if not config.endpoint or not config.index:
            raise ValueError("Search counter requires an endpoint and an index")
        self.config = config
        self.endpoint = config.endpoint.rstrip('/')
        self.index = config.index
        self._session: Optional[aiohttp.ClientSession] = None
        # Transport retries belong to the counter, never to the partition engine
        self._post = async_retry(
            max_retries=config.max_retries,
            delay=config.retry_delay,
            retry_on=(aiohttp.ClientError, asyncio.TimeoutError),
            retry_if=is_transient_error,
        )(self._post_once)

    @property
    def search_url(self) -> str:
        return f"{self.endpoint}/indexes/{self.index}/docs/search?api-version={self.config.api_version}"

    async def _create_connection(self) -> None:
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["api-key"] = self.config.api_key
        timeout = aiohttp.ClientTimeout(total=self.config.timeout)
        self._session = aiohttp.ClientSession(timeout=timeout, headers=headers)

    async def _cleanup_connections(self) -> None:
        if self._session:
            await self._session.close()
            self._session = None

    async def _post_once(self, body: Dict[str, Any]) -> Dict[str, Any]:
        if self._session is None:
            raise RuntimeError(f"Search counter {self.name} is not connected. Call connect() first.")
        async with self._session.post(self.search_url, json=body) as response:
            response.raise_for_status()
            return await response.json()

    async def count(self, range_filter: RangeFilter) -> CountResult:
        expression = FilterBuilder.to_odata(range_filter)
        body = {"search": "*", "filter": expression, "count": True, "top": 0}
        self._logger.debug(f"Counting documents in {self.index} with filter: {expression}")
        payload = await self._post(body)
        return parse_count_response(payload)

    async def get_field_bounds(self, field_name: str, field_type: FieldType) -> Tuple[Any, Any]:
        lower = await self._edge_value(field_name, field_type, "asc")
        upper = await self._edge_value(field_name, field_type, "desc")
        return lower, upper

    async def _edge_value(self, field_name: str, field_type: FieldType, direction: str) -> Any:
        body = {
            "search": "*",
            "filter": f"{field_name} ne null",
            "orderby": f"{field_name} {direction}",
            "select": field_name,
            "top": 1,
        }
        payload = await self._post(body)
        documents = payload.get("value") or []
        if not documents:
            return None
        return cast_value(documents[0].get(field_name), field_type)


def is_transient_error(error: BaseException) -> bool:
    """Connection failures, timeouts, throttling and server errors are worth retrying"""
    if isinstance(error, aiohttp.ClientResponseError):
        return error.status == 429 or error.status >= 500
    return True

def parse_count_response(payload: Dict[str, Any]) -> CountResult:
    """Read the total from a search response; a missing total is not exact"""
    total = payload.get("@odata.count")
    if total is None:
        return CountResult(total=None, exact=False)
    return CountResult(total=int(total), exact=True)
