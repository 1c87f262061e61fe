"""
Project catalogue: GitHub search proxy plus the locally stored project list.

Search results are reshaped into Project cards with a derived category
(substring matching on language and topics) and a human-readable
"last updated" label.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from fetchers.github import GitHubAPIError, GitHubFetcher, GitHubRateLimitError
from models.data_models import (
    NewlyAddedResponse,
    Project,
    ProjectFilters,
    ProjectsResponse,
    RepositoryDetails,
)
from storage.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

SEARCH_RESULTS_PER_QUERY = 100

# Matched against the lower-cased language, in order
LANGUAGE_CATEGORIES = [
    ("Frontend", ["javascript", "typescript", "react", "vue", "angular"]),
    ("Backend", ["python", "java", "go", "rust", "c++", "c#", "php", "ruby"]),
    ("Mobile", ["swift", "kotlin", "dart", "objective-c"]),
    ("DevOps", ["docker", "kubernetes", "terraform", "ansible"]),
]
AI_ML_TERMS = ["python", "tensorflow", "pytorch", "machine-learning", "ai", "ml"]
# Matched against topics only
TOPIC_CATEGORIES = [
    ("GameDev", ["game", "unity", "unreal", "gamedev"]),
    ("Systems", ["os", "kernel", "system", "operating-system"]),
]


def categorize_repository(language: Optional[str], topics: Optional[Sequence[str]] = None) -> str:
    """
    Bucket a repository into a display category.

    First match wins. Repositories without a language are always "Other".

    Examples:
        categorize_repository("TypeScript") -> "Frontend"
        categorize_repository("Go") -> "Backend"
        categorize_repository("C", ["game-engine"]) -> "GameDev"
    """
    if not language:
        return "Other"

    lang = language.lower()
    topic_names = [t.lower() for t in topics or []]

    for category, terms in LANGUAGE_CATEGORIES:
        if any(term in lang for term in terms):
            return category

    if any(term in lang or any(term in t for t in topic_names) for term in AI_ML_TERMS):
        return "AI/ML"

    for category, terms in TOPIC_CATEGORIES:
        if any(term in t for term in terms for t in topic_names):
            return category

    return "Other"


def build_tags(language: Optional[str], topics: Optional[Sequence[str]] = None) -> list[str]:
    """First five topics, or the language when there are no topics."""
    if topics:
        return list(topics[:5])
    return [language] if language else []


def format_last_updated(timestamp: Optional[Any], now: Optional[datetime] = None) -> str:
    """
    Render an update time relative to now.

    Args:
        timestamp: ISO 8601 string or datetime
        now: Reference time (defaults to current UTC time)

    Returns:
        "Today", "1 day ago", "N days ago", "N weeks ago", "N months ago"
        or "N years ago"; empty string if the timestamp is missing
    """
    if not timestamp:
        return ""
    if isinstance(timestamp, str):
        moment = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    else:
        moment = timestamp
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)

    now = now or datetime.now(timezone.utc)
    diff_days = (now - moment).days

    if diff_days <= 0:
        return "Today"
    if diff_days == 1:
        return "1 day ago"
    if diff_days < 7:
        return f"{diff_days} days ago"
    if diff_days < 30:
        return f"{diff_days // 7} weeks ago"
    if diff_days < 365:
        return f"{diff_days // 30} months ago"
    return f"{diff_days // 365} years ago"


def repository_to_project(repo: dict[str, Any], rank: int, now: Optional[datetime] = None) -> Project:
    """Map a GitHub search item to a Project card."""
    topics = repo.get("topics") or []
    language = repo.get("language")
    return Project(
        id=repo["id"],
        name=repo["name"],
        description=repo.get("description") or "No description available",
        rank=rank,
        tags=build_tags(language, topics),
        stars=repo.get("stargazers_count", 0),
        forks=repo.get("forks_count", 0),
        status="Active",
        language=language or "Unknown",
        category=categorize_repository(language, topics),
        last_updated=format_last_updated(repo.get("updated_at"), now),
        # Counting contributors costs one request per repository; search results skip it
        contributors=0,
        github_url=repo.get("html_url"),
        full_name=repo.get("full_name"),
    )


def row_to_project(row: dict[str, Any]) -> Project:
    """Map a stored projects row to a Project card."""
    return Project(
        id=row["id"],
        name=row["name"],
        description=row.get("description") or "No description available",
        rank=row.get("rank") or 0,
        tags=row.get("tags") or [],
        stars=row.get("stars") or 0,
        forks=row.get("forks") or 0,
        status=row.get("status") or "Active",
        language=row.get("language") or "Unknown",
        category=row.get("category") or "Other",
        last_updated=format_last_updated(row.get("updated_at")),
        contributors=row.get("contributors") or 0,
        github_url=row.get("github_url"),
        full_name=row.get("full_name"),
    )


class ProjectService:
    """Project list, search, details, and catalogue indexing."""

    def __init__(self, store: SupabaseClient, github: GitHubFetcher):
        self.store = store
        self.github = github

    def find_all(self, filters: ProjectFilters) -> ProjectsResponse:
        """
        List projects.

        Any search text or filter goes to GitHub search (more comprehensive
        than the local catalogue); with neither, the stored catalogue is
        returned in rank order.
        """
        if filters.has_search() or filters.has_filters():
            search = filters.search if filters.has_search() else ""
            return self.search_github(filters.model_copy(update={"search": search}))

        projects = [row_to_project(row) for row in self.store.list_projects()]
        logger.info(f"Listed {len(projects)} stored projects")
        return ProjectsResponse(projects=projects, total=len(projects))

    def search_github(self, filters: ProjectFilters) -> ProjectsResponse:
        """
        Search GitHub and reshape results into Project cards.

        Category has no GitHub qualifier, so it is applied to the (up to 100)
        results after categorization. The star filter is sent to GitHub and
        re-applied here.

        Raises:
            GitHubRateLimitError: GitHub rate limit exhausted
        """
        sort_by = filters.sort_by or "Stars"
        language = filters.language if filters.language != "All" else None

        try:
            payload = self.github.search_repositories(
                filters.search or "",
                language=language,
                sort=sort_by,
                order="desc",
                per_page=SEARCH_RESULTS_PER_QUERY,
                min_stars=filters.min_stars,
            )
        except GitHubRateLimitError:
            raise
        except GitHubAPIError as e:
            logger.error(f"GitHub search error: {e}")
            return ProjectsResponse(projects=[], total=0)

        now = datetime.now(timezone.utc)
        projects = [
            repository_to_project(repo, rank=index + 1, now=now)
            for index, repo in enumerate(payload.get("items", []))
        ]

        if filters.category and filters.category != "All":
            projects = [p for p in projects if p.category == filters.category]

        if filters.min_stars and filters.min_stars > 0:
            projects = [p for p in projects if p.stars >= filters.min_stars]

        logger.info(
            f"GitHub search '{filters.search}' returned {len(projects)} projects "
            f"(category={filters.category}, language={filters.language}, sort={sort_by})"
        )
        return ProjectsResponse(projects=projects, total=len(projects))

    def newly_added(self, page: int = 1, limit: int = 10) -> NewlyAddedResponse:
        """Page through stored projects, most recently added first."""
        offset = (page - 1) * limit
        rows, total = self.store.get_newly_added(offset, limit)
        return NewlyAddedResponse(
            projects=[row_to_project(row) for row in rows],
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit) if total else 0,
        )

    def get_categories(self) -> list[str]:
        return self.store.get_distinct_project_values("category")

    def get_languages(self) -> list[str]:
        return self.store.get_distinct_project_values("language")

    def get_repository_details(self, owner: str, repo: str) -> RepositoryDetails:
        return self.github.get_repository_details(owner, repo)

    def index_projects(
        self,
        query: str,
        limit: int = 100,
        language: Optional[str] = None,
        with_contributors: bool = True
    ) -> int:
        """
        Populate the local catalogue from a GitHub search.

        Stored rank follows star order across the whole catalogue after the
        upsert, so it stays comparable between indexing runs.

        Returns:
            Number of projects upserted
        """
        payload = self.github.search_repositories(
            query,
            language=language,
            sort="Stars",
            per_page=min(limit, SEARCH_RESULTS_PER_QUERY),
        )
        items = payload.get("items", [])[:limit]
        logger.info(f"Indexing {len(items)} repositories for query '{query}'")

        records = []
        for repo in items:
            owner, name = repo["full_name"].split("/", 1)
            contributors = self.github.get_contributors_count(owner, name) if with_contributors else 0
            topics = repo.get("topics") or []
            language_name = repo.get("language")
            records.append({
                "id": repo["id"],
                "name": repo["name"],
                "full_name": repo["full_name"],
                "description": repo.get("description"),
                "tags": build_tags(language_name, topics),
                "stars": repo.get("stargazers_count", 0),
                "forks": repo.get("forks_count", 0),
                "status": "Archived" if repo.get("archived") else "Active",
                "language": language_name or "Unknown",
                "category": categorize_repository(language_name, topics),
                "contributors": contributors,
                "github_url": repo.get("html_url"),
                "updated_at": repo.get("updated_at"),
            })

        self.store.upsert_projects(records)
        self._rerank()
        return len(records)

    def _rerank(self) -> None:
        rows = self.store.list_projects(sort_by="Stars")
        changed = {
            row["id"]: position
            for position, row in enumerate(rows, start=1)
            if row.get("rank") != position
        }
        if changed:
            self.store.update_project_ranks(changed)
            logger.info(f"Re-ranked {len(changed)} stored projects")
