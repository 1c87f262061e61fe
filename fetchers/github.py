"""GitHub API client for repository search, repository details, and users.

OpenRank is a consumer of the GitHub REST/Search API: this module builds
search queries, forwards them, and hands back the raw JSON (or a reshaped
details payload for the repository modal). Rate limiting is surfaced as
GitHubRateLimitError so the API can answer with HTTP 429.
"""

import logging
import re
import time
from typing import Any, Optional

import requests

from models.data_models import (
    Contributor,
    GitHubPerson,
    LanguageShare,
    RepositoryDetails,
    RepositoryInfo,
    RepositoryOwner,
)

logger = logging.getLogger(__name__)

SORT_FIELDS = {"Stars": "stars", "Forks": "forks"}
LAST_PAGE_PATTERN = re.compile(r'[?&]page=(\d+)>; rel="last"')
MAX_RATE_LIMIT_WAITS = 10


class GitHubAPIError(Exception):
    """Non-success response (or transport failure) from the GitHub API."""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.status_code = status_code


class GitHubRateLimitError(GitHubAPIError):
    """GitHub refused the request because the rate limit is exhausted."""

    def __init__(self, message: str = "GitHub API rate limit exceeded. Please try again later.",
                 reset_at: Optional[int] = None):
        super().__init__(message, status_code=429)
        self.reset_at = reset_at


class GitHubFetcher:
    """Fetch repository and user data from the GitHub API."""

    def __init__(
        self,
        token: Optional[str] = None,
        timeout: float = 15.0,
        wait_on_rate_limit: bool = False,
        max_rate_limit_waits: int = MAX_RATE_LIMIT_WAITS
    ):
        """Initialize GitHub API client.

        Args:
            token: Optional GitHub personal access token (higher rate limits)
            timeout: Per-request timeout in seconds
            wait_on_rate_limit: Sleep until the limit resets instead of raising.
                Meant for batch CLI jobs, never for request handlers.
            max_rate_limit_waits: Give up with GitHubRateLimitError after this many sleeps
        """
        self.token = token
        self.timeout = timeout
        self.wait_on_rate_limit = wait_on_rate_limit
        self.max_rate_limit_waits = max_rate_limit_waits
        self.base_url = "https://api.github.com"
        self.headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "OpenRank",
            "X-GitHub-Api-Version": "2022-11-28"
        }
        if token:
            self.headers["Authorization"] = f"Bearer {token}"

    def _make_github_request(self, url: str, params: Optional[dict] = None) -> requests.Response:
        """Make GitHub API request with rate limit handling.

        Args:
            url: GitHub API URL to request
            params: Optional query parameters

        Returns:
            Response object from requests (any status that is not a rate limit)

        Raises:
            GitHubRateLimitError: On a rate-limited response unless wait_on_rate_limit
                is set, or once max_rate_limit_waits sleeps did not help
            GitHubAPIError: On network failures
        """
        waits = 0
        while True:
            try:
                response = requests.get(url, headers=self.headers, params=params, timeout=self.timeout)
            except requests.RequestException as e:
                logger.error(f"GitHub request to {url} failed: {e}")
                raise GitHubAPIError(f"Failed to reach GitHub: {e}") from e

            # Log rate limit info
            remaining = response.headers.get("X-RateLimit-Remaining")
            limit = response.headers.get("X-RateLimit-Limit")
            if remaining and limit:
                logger.debug(f"Rate limit: {remaining}/{limit} remaining")

            if not self.is_rate_limited(response):
                return response

            reset_time = int(response.headers.get("X-RateLimit-Reset", 0))
            if not self.wait_on_rate_limit or waits >= self.max_rate_limit_waits:
                logger.warning(f"GitHub rate limit hit ({response.status_code}) for {url}")
                raise GitHubRateLimitError(reset_at=reset_time or None)

            retry_after = response.headers.get("Retry-After")
            if retry_after and retry_after.isdigit():
                wait_seconds = int(retry_after)
            else:
                current_time = int(time.time())
                wait_seconds = max(reset_time - current_time + 5, 60)  # +5 second buffer, minimum 60s
            waits += 1

            logger.warning(
                f"⏳ Rate limited! Waiting {wait_seconds/60:.1f} minutes "
                f"(wait {waits}/{self.max_rate_limit_waits})..."
            )
            time.sleep(wait_seconds)
            logger.info("Rate limit wait over - resuming...")

    @staticmethod
    def is_rate_limited(response: requests.Response) -> bool:
        """True for 429, or a 403 that carries a rate-limit signal.

        GitHub also answers 403 for permission refusals and for contributor
        lists too large to compute; those are ordinary API errors.
        """
        if response.status_code == 429:
            return True
        if response.status_code != 403:
            return False
        if response.headers.get("X-RateLimit-Remaining") == "0" or response.headers.get("Retry-After"):
            return True
        return "rate limit" in (response.text or "").lower()

    def _get_json(self, url: str, params: Optional[dict] = None) -> Any:
        response = self._make_github_request(url, params=params)
        if not response.ok:
            raise GitHubAPIError(
                f"GitHub API error: {response.reason or response.status_code}",
                status_code=response.status_code
            )
        return response.json()

    @staticmethod
    def build_search_query(
        query: str,
        language: Optional[str] = None,
        min_stars: Optional[int] = None
    ) -> str:
        """Build the `q` parameter for repository search.

        Only public repositories are searched. A blank query searches all
        public repositories, narrowed by the language and star qualifiers.
        """
        query = (query or "").strip()
        search_query = f"{query} is:public" if query else "is:public"

        if language and language != "All":
            search_query += f" language:{language}"

        if min_stars and min_stars > 0:
            search_query += f" stars:>={min_stars}"

        return search_query

    def search_repositories(
        self,
        query: str,
        language: Optional[str] = None,
        sort: str = "Stars",
        order: str = "desc",
        per_page: int = 30,
        min_stars: Optional[int] = None
    ) -> dict[str, Any]:
        """Search public repositories.

        Args:
            query: Free-text search (may be empty)
            language: Language qualifier ("All" or None to skip)
            sort: Display sort name - "Stars", "Forks", anything else sorts by update time
            order: "asc" or "desc" (case-insensitive)
            per_page: Number of results (GitHub caps this at 100)
            min_stars: Minimum star count qualifier

        Returns:
            Raw GitHub payload: {"total_count": int, "items": [...]}
        """
        params = {
            "q": self.build_search_query(query, language, min_stars),
            "sort": SORT_FIELDS.get(sort, "updated"),
            "order": order.lower(),
            "per_page": per_page,
        }
        logger.info(f"Searching GitHub repositories: q='{params['q']}' sort={params['sort']}")

        data = self._get_json(f"{self.base_url}/search/repositories", params=params)
        logger.debug(f"GitHub search returned {len(data.get('items', []))} of {data.get('total_count', 0)} repositories")
        return data

    def get_repository(self, owner: str, repo: str) -> dict[str, Any]:
        """Fetch a single repository."""
        return self._get_json(f"{self.base_url}/repos/{owner}/{repo}")

    def get_contributors_count(self, owner: str, repo: str) -> int:
        """Count contributors (including anonymous ones).

        Requests one contributor per page so the page number of the
        rel="last" link equals the contributor count. Returns 0 when the
        count cannot be determined.
        """
        url = f"{self.base_url}/repos/{owner}/{repo}/contributors"
        try:
            response = self._make_github_request(url, params={"per_page": 1, "anon": "true"})
        except GitHubAPIError as e:
            logger.warning(f"Could not count contributors for {owner}/{repo}: {e}")
            return 0

        if not response.ok:
            logger.debug(f"Contributor count unavailable for {owner}/{repo} ({response.status_code})")
            return 0

        link_header = response.headers.get("Link") or response.headers.get("link")
        if link_header:
            match = LAST_PAGE_PATTERN.search(link_header)
            if match:
                return int(match.group(1))

        # Fallback: count contributors from first page (empty repos return 204)
        if response.status_code == 204 or not response.content:
            return 0
        try:
            contributors = response.json()
        except ValueError:
            logger.warning(f"Unreadable contributors response for {owner}/{repo}")
            return 0
        return len(contributors) if isinstance(contributors, list) else 0

    def get_contributors(self, owner: str, repo: str, limit: int = 10) -> list[dict[str, Any]]:
        """Top contributors by contribution count."""
        response = self._make_github_request(
            f"{self.base_url}/repos/{owner}/{repo}/contributors",
            params={"per_page": limit}
        )
        if response.status_code == 204 or not response.ok:
            logger.debug(f"No contributors available for {owner}/{repo} ({response.status_code})")
            return []
        contributors = response.json()
        return contributors if isinstance(contributors, list) else []

    def get_languages(self, owner: str, repo: str) -> dict[str, int]:
        """Language name → bytes of code."""
        response = self._make_github_request(f"{self.base_url}/repos/{owner}/{repo}/languages")
        if not response.ok:
            logger.debug(f"No language data for {owner}/{repo} ({response.status_code})")
            return {}
        return response.json()

    def get_repository_details(self, owner: str, repo: str) -> RepositoryDetails:
        """Fetch everything the repository modal shows.

        Combines the repository, its top contributors and its language
        breakdown. Maintainers are the top five human contributors.

        Raises:
            GitHubAPIError: If the repository itself cannot be fetched
                (status_code carries GitHub's status, e.g. 404)
        """
        data = self.get_repository(owner, repo)

        try:
            contributors = self.get_contributors(owner, repo)
        except GitHubRateLimitError:
            raise
        except GitHubAPIError as e:
            logger.warning(f"Showing {owner}/{repo} without contributors: {e}")
            contributors = []

        try:
            languages = self.get_languages(owner, repo)
        except GitHubRateLimitError:
            raise
        except GitHubAPIError as e:
            logger.warning(f"Showing {owner}/{repo} without languages: {e}")
            languages = {}

        license_info = data.get("license") or {}
        owner_info = data.get("owner") or {}

        details = RepositoryDetails(
            repository=RepositoryInfo(
                id=data["id"],
                name=data["name"],
                full_name=data["full_name"],
                description=data.get("description") or "",
                url=data["html_url"],
                homepage=data.get("homepage") or None,
                stars=data.get("stargazers_count", 0),
                forks=data.get("forks_count", 0),
                watchers=data.get("subscribers_count", data.get("watchers_count", 0)),
                open_issues=data.get("open_issues_count", 0),
                default_branch=data.get("default_branch") or "main",
                created_at=data.get("created_at"),
                updated_at=data.get("updated_at"),
                pushed_at=data.get("pushed_at"),
                license=license_info.get("name") or "No license",
                topics=data.get("topics") or [],
                archived=data.get("archived", False),
                disabled=data.get("disabled", False),
            ),
            owner=RepositoryOwner(
                login=owner_info.get("login", owner),
                avatar=owner_info.get("avatar_url"),
                url=owner_info.get("html_url"),
                type=owner_info.get("type", "User"),
            ),
            maintainers=[
                GitHubPerson(login=c["login"], avatar=c.get("avatar_url"), url=c.get("html_url"))
                for c in contributors
                if c.get("type", "User") == "User"
            ][:5],
            contributors=[
                Contributor(
                    login=c["login"],
                    avatar=c.get("avatar_url"),
                    url=c.get("html_url"),
                    contributions=c.get("contributions", 0),
                )
                for c in contributors
            ],
            languages=self.language_shares(languages),
        )

        logger.info(
            f"Fetched details for {owner}/{repo}: "
            f"{len(details.contributors)} contributors, {len(details.languages)} languages"
        )
        return details

    @staticmethod
    def language_shares(languages: dict[str, int]) -> list[LanguageShare]:
        """Convert byte counts to shares, largest first, percentages with one decimal."""
        total = sum(languages.values())
        if total <= 0:
            return []
        ordered = sorted(languages.items(), key=lambda item: item[1], reverse=True)
        return [
            LanguageShare(name=name, bytes=count, percentage=f"{count / total * 100:.1f}")
            for name, count in ordered
        ]

    def get_user(self, username: str) -> Optional[dict[str, Any]]:
        """Fetch a user profile.

        Returns:
            User dictionary, or None if the user does not exist (404)
        """
        response = self._make_github_request(f"{self.base_url}/users/{username}")

        if response.status_code == 404:
            logger.debug(f"GitHub user {username} not found (404)")
            return None

        if not response.ok:
            raise GitHubAPIError(
                f"GitHub API error: {response.reason or response.status_code}",
                status_code=response.status_code
            )
        return response.json()

    def search_users(
        self,
        location: Optional[str] = None,
        company: Optional[str] = None,
        min_followers: int = 50,
        per_page: int = 30
    ) -> list[dict[str, Any]]:
        """Search user accounts for developer discovery.

        Results are sorted by follower count, most followed first.
        """
        qualifiers = ["type:user", f"followers:>={min_followers}"]
        if location:
            qualifiers.append(f'location:"{location}"')
        if company:
            # No company qualifier exists for users; search it as free text
            qualifiers.insert(0, f'"{company}"')

        params = {
            "q": " ".join(qualifiers),
            "sort": "followers",
            "order": "desc",
            "per_page": min(per_page, 100),
        }
        logger.info(f"Searching GitHub users: q='{params['q']}'")

        data = self._get_json(f"{self.base_url}/search/users", params=params)
        return data.get("items", [])
