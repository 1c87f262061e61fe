"""
HTTP client for the OpenRank API.

One method per endpoint. Responses are parsed into the same pydantic models
the API serves, so callers get attribute access instead of raw dicts.
"""

import logging
import os
from typing import Any, Optional

import requests

from models.data_models import (
    AutoDiscoverResponse,
    CalculateResponse,
    Developer,
    DeveloperFilters,
    DeveloperSearchResponse,
    DevelopersRankingResponse,
    KeywordExtractionResponse,
    NewlyAddedResponse,
    ProjectFilters,
    ProjectsResponse,
    RankCheckResponse,
    RepositoryDetails,
    StatsResponse,
    VisitCount,
)

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:3001"


class OpenRankAPIError(Exception):
    """Non-success response from the OpenRank API."""

    def __init__(self, message: str, status_code: Optional[int] = None, detail: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail

    @property
    def is_rate_limited(self) -> bool:
        return self.status_code == 429


def project_query_params(filters: ProjectFilters) -> dict[str, Any]:
    """Query string for GET /api/projects; "All" and empty filters are omitted."""
    params: dict[str, Any] = {}
    if filters.category and filters.category != "All":
        params["category"] = filters.category
    if filters.language and filters.language != "All":
        params["language"] = filters.language
    if filters.sort_by:
        params["sortBy"] = filters.sort_by
    if filters.min_stars:
        params["minStars"] = filters.min_stars
    if filters.search:
        params["search"] = filters.search
    return params


def developer_query_params(filters: Optional[DeveloperFilters]) -> dict[str, Any]:
    if filters is None:
        return {}
    return {key: value for key, value in filters.to_api().items() if value}


class OpenRankClient:
    """Client for the OpenRank REST API."""

    def __init__(self, base_url: Optional[str] = None, timeout: float = 30.0,
                 session: Optional[requests.Session] = None):
        """
        Args:
            base_url: API root (default: $OPENRANK_API_URL or http://localhost:3001)
            timeout: Per-request timeout in seconds
            session: Optional pre-configured requests session
        """
        self.base_url = (base_url or os.getenv("OPENRANK_API_URL") or DEFAULT_API_URL).rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    def _request(self, method: str, path: str, action: str,
                 params: Optional[dict] = None, json: Optional[dict] = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, params=params, json=json, timeout=self.timeout)
        except requests.RequestException as e:
            raise OpenRankAPIError(f"Failed to {action}: network error ({e})") from e

        if not response.ok:
            try:
                detail = response.json().get("detail")
            except ValueError:
                detail = response.text[:200] or None
            raise OpenRankAPIError(
                f"Failed to {action}: {detail or response.status_code}",
                status_code=response.status_code,
                detail=detail
            )
        return response.json()

    # Projects

    def get_projects(self, filters: Optional[ProjectFilters] = None) -> ProjectsResponse:
        params = project_query_params(filters or ProjectFilters())
        data = self._request("GET", "/api/projects", "fetch projects", params=params)
        return ProjectsResponse.model_validate(data)

    def extract_keywords(self, query: str) -> KeywordExtractionResponse:
        data = self._request("POST", "/api/projects/extract-keywords", "extract keywords", json={"query": query})
        return KeywordExtractionResponse.model_validate(data)

    def get_newly_added(self, page: int = 1, limit: int = 10) -> NewlyAddedResponse:
        data = self._request("GET", "/api/projects/newly-added", "fetch newly added projects",
                             params={"page": page, "limit": limit})
        return NewlyAddedResponse.model_validate(data)

    def get_repository_details(self, full_name: str) -> RepositoryDetails:
        owner, repo = full_name.split("/", 1)
        data = self._request("GET", f"/api/projects/details/{owner}/{repo}", "fetch repository details")
        return RepositoryDetails.model_validate(data)

    def get_categories(self) -> list[str]:
        return self._request("GET", "/api/categories", "fetch categories")

    def get_languages(self) -> list[str]:
        return self._request("GET", "/api/languages", "fetch languages")

    # Stats

    def get_stats(self) -> StatsResponse:
        return StatsResponse.model_validate(self._request("GET", "/api/stats", "fetch stats"))

    def track_visit(self) -> Optional[VisitCount]:
        """Record a visit. Never raises; tracking must not block the caller."""
        try:
            return VisitCount.model_validate(self._request("POST", "/api/stats/visit", "track visit"))
        except OpenRankAPIError as e:
            logger.warning(f"Failed to track visit: {e}")
            return None

    def get_users_visited(self) -> VisitCount:
        data = self._request("GET", "/api/stats/users-visited", "fetch users visited count")
        return VisitCount.model_validate(data)

    # Developers

    def get_developers_ranking(self, page: int = 1, limit: int = 25,
                               filters: Optional[DeveloperFilters] = None,
                               auto_discover: bool = True) -> DevelopersRankingResponse:
        params = {"page": page, "limit": limit, **developer_query_params(filters),
                  "autoDiscover": str(auto_discover).lower()}
        data = self._request("GET", "/api/developers/rankings", "fetch developers ranking", params=params)
        return DevelopersRankingResponse.model_validate(data)

    def trigger_auto_discover(self, limit: int = 100) -> AutoDiscoverResponse:
        data = self._request("POST", "/api/developers/auto-discover", "trigger auto-discovery",
                             params={"limit": limit})
        return AutoDiscoverResponse.model_validate(data)

    def search_developers(self, query: str, limit: int = 20) -> DeveloperSearchResponse:
        data = self._request("GET", "/api/developers/search", "search developers",
                             params={"q": query, "limit": limit})
        return DeveloperSearchResponse.model_validate(data)

    def get_developer(self, username: str) -> Developer:
        return Developer.model_validate(self._request("GET", f"/api/developers/{username}", "fetch developer"))

    def get_countries(self) -> list[str]:
        return self._request("GET", "/api/developers/countries", "fetch countries").get("countries", [])

    def get_cities(self, country: str) -> list[str]:
        data = self._request("GET", "/api/developers/cities", "fetch cities", params={"country": country})
        return data.get("cities", [])

    def get_companies(self) -> list[str]:
        return self._request("GET", "/api/developers/companies", "fetch companies").get("companies", [])

    def get_profile_types(self) -> list[str]:
        data = self._request("GET", "/api/developers/profile-types", "fetch profile types")
        return data.get("profileTypes", [])

    def check_developer_rank(self, username: str,
                             filters: Optional[DeveloperFilters] = None) -> RankCheckResponse:
        data = self._request("GET", f"/api/developers/check-rank/{username}", "check developer rank",
                             params=developer_query_params(filters))
        return RankCheckResponse.model_validate(data)

    def calculate_developer(self, username: str) -> CalculateResponse:
        data = self._request("POST", f"/api/developers/{username}/calculate", "calculate developer")
        return CalculateResponse.model_validate(data)
