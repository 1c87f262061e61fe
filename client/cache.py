"""
In-memory result cache for browsing views.

Entries live for the lifetime of the process. There is no eviction, size
bound or invalidation: revisiting a filter combination shows the response
that was fetched the first time.
"""

import json
import logging
from typing import Any, Callable, Optional, TypeVar

from client.api_client import OpenRankClient
from models.data_models import NewlyAddedResponse, ProjectFilters, ProjectsResponse

logger = logging.getLogger(__name__)

T = TypeVar("T")


def cache_key(prefix: str, filters: Optional[dict] = None) -> str:
    """`prefix` followed by the filters serialized as JSON (sorted keys)."""
    if filters is None:
        return prefix
    return prefix + json.dumps(filters, sort_keys=True)


class ResultCache:
    """Key -> previously fetched response."""

    def __init__(self):
        self._entries: dict[str, Any] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Optional[Any]:
        return self._entries.get(key)

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = value

    def get_or_fetch(self, key: str, fetch: Callable[[], T]) -> T:
        """Return the cached value for `key`, calling `fetch` only on a miss."""
        if key in self._entries:
            logger.debug(f"Cache hit: {key}")
            return self._entries[key]
        logger.debug(f"Cache miss: {key}")
        value = fetch()
        self._entries[key] = value
        return value


class ProjectBrowser:
    """Project list and Newly Added views, each backed by the result cache."""

    def __init__(self, client: OpenRankClient, cache: Optional[ResultCache] = None):
        self.client = client
        self.cache = cache if cache is not None else ResultCache()

    def projects(self, filters: Optional[ProjectFilters] = None) -> ProjectsResponse:
        filters = filters or ProjectFilters()
        key = cache_key("home_", filters.model_dump(exclude_none=True))
        return self.cache.get_or_fetch(key, lambda: self.client.get_projects(filters))

    def newly_added(self, page: int = 1, limit: int = 10) -> NewlyAddedResponse:
        key = f"newlyAdded_page_{page}"
        return self.cache.get_or_fetch(key, lambda: self.client.get_newly_added(page=page, limit=limit))
