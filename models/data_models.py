"""Data models for projects, developers, and site statistics.

JSON payloads use camelCase keys (the shape the web frontend consumes),
while Supabase rows use snake_case columns. Every model accepts both.
"""

from datetime import datetime
from typing import Any, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base model serialized with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_api(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


# ============================================================================
# Projects
# ============================================================================

class Project(ApiModel):
    """A project card, derived from a GitHub search result or a stored row."""

    id: int
    name: str
    description: str = "No description available"
    rank: int
    tags: list[str] = Field(default_factory=list)
    stars: int = 0
    forks: int = 0
    status: str = "Active"
    language: str = "Unknown"
    category: str = "Other"
    last_updated: str = ""
    contributors: int = 0
    github_url: Optional[str] = None
    full_name: Optional[str] = None


class ProjectFilters(ApiModel):
    """Query filters for the project list."""

    category: Optional[str] = None
    language: Optional[str] = None
    sort_by: Optional[str] = None
    min_stars: Optional[int] = None
    search: Optional[str] = None

    def has_search(self) -> bool:
        return bool(self.search and self.search.strip())

    def has_filters(self) -> bool:
        return bool(self.category or self.language or self.min_stars or self.sort_by)


class ProjectsResponse(ApiModel):
    projects: list[Project]
    total: int


class NewlyAddedResponse(ApiModel):
    projects: list[Project]
    total: int
    page: int
    limit: int
    total_pages: int


class KeywordExtractionRequest(ApiModel):
    query: str = Field(..., min_length=1, max_length=500)


class KeywordExtractionResponse(ApiModel):
    keywords: list[str]
    search_query: str


# ============================================================================
# Repository details (modal view)
# ============================================================================

class RepositoryInfo(ApiModel):
    id: int
    name: str
    full_name: str
    description: str = ""
    url: str
    homepage: Optional[str] = None
    stars: int = 0
    forks: int = 0
    watchers: int = 0
    open_issues: int = 0
    default_branch: str = "main"
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    pushed_at: Optional[str] = None
    license: str = "No license"
    topics: list[str] = Field(default_factory=list)
    archived: bool = False
    disabled: bool = False


class RepositoryOwner(ApiModel):
    login: str
    avatar: Optional[str] = None
    url: Optional[str] = None
    type: str = "User"


class GitHubPerson(ApiModel):
    login: str
    avatar: Optional[str] = None
    url: Optional[str] = None


class Contributor(GitHubPerson):
    contributions: int = 0


class LanguageShare(ApiModel):
    name: str
    bytes: int
    percentage: str


class RepositoryDetails(ApiModel):
    repository: RepositoryInfo
    owner: RepositoryOwner
    maintainers: list[GitHubPerson] = Field(default_factory=list)
    contributors: list[Contributor] = Field(default_factory=list)
    languages: list[LanguageShare] = Field(default_factory=list)


# ============================================================================
# Stats
# ============================================================================

class StatsResponse(ApiModel):
    total_projects: int
    total_commits: int
    total_contributors: int


class VisitCount(ApiModel):
    count: int


class Visit(ApiModel):
    """The single persisted page-load counter row."""

    id: Optional[int] = None
    count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ============================================================================
# Developers
# ============================================================================

class Developer(ApiModel):
    """A ranked developer profile.

    Score components are produced by the external scoring service and are
    only stored and displayed here.
    """

    id: Optional[int] = None
    github_username: str
    name: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    profile_url: Optional[str] = None

    # Score components
    pr_impact: float = 0.0
    issue_impact: float = 0.0
    dependency_influence: float = 0.0
    project_longevity: float = 0.0
    community_impact: float = 0.0
    docs_impact: float = 0.0
    consistency: float = 0.0
    quality_multiplier: float = 1.0
    final_impact_score: float = 0.0

    # Profile counters
    followers: int = 0
    following: int = 0
    public_repos: int = 0
    total_prs: int = Field(default=0, alias="totalPRs")
    total_commits: int = 0
    total_issues: int = 0
    total_lines_added: int = 0
    total_lines_deleted: int = 0
    total_contributions: int = 0
    total_stars_received: int = 0
    total_forks_received: int = 0

    # Location / affiliation
    country: Optional[str] = None
    city: Optional[str] = None
    location: Optional[str] = None
    company: Optional[str] = None
    profile_type: Optional[str] = None

    top_languages: list[str] = Field(default_factory=list)
    top_repositories: list[str] = Field(default_factory=list)
    active_projects: int = 0
    years_active: float = 0
    github_created_at: Optional[str] = None
    last_active_at: Optional[str] = None
    rank: Optional[int] = None

    def to_row(self) -> dict[str, Any]:
        """Snake_case record for the developers table."""
        row = self.model_dump(mode="json", exclude={"id", "rank"})
        row["github_username"] = self.github_username.lower()
        return row


class DeveloperFilters(ApiModel):
    country: Optional[str] = None
    city: Optional[str] = None
    company: Optional[str] = None
    profile_type: Optional[str] = None

    def as_dict(self) -> dict[str, str]:
        """Non-empty filters keyed by table column."""
        return {
            column: value
            for column, value in self.model_dump().items()
            if value
        }

    def matches(self, developer: Developer) -> bool:
        """Case-insensitive equality on every set filter."""
        for column, value in self.as_dict().items():
            actual = getattr(developer, column)
            if not actual or actual.lower() != value.lower():
                return False
        return True


class DevelopersRankingResponse(ApiModel):
    developers: list[Developer]
    total: int
    page: int
    limit: int
    total_pages: int
    max_score: Optional[float] = None
    auto_discovered: bool = False


class DeveloperSearchResponse(ApiModel):
    developers: list[Developer]
    total: int


class CalculateResponse(ApiModel):
    message: str
    developer: Developer


class AutoDiscoverResponse(ApiModel):
    message: str
    discovered: int
    processed: int


class RankCheckFilters(ApiModel):
    country: str = ""
    city: str = ""
    company: str = ""
    profile_type: str = ""


class RankCheckResponse(ApiModel):
    username: str
    eligible: bool
    processing: bool = False
    message: Optional[str] = None
    rank: int = 0
    total: int = 0
    score: float = 0.0
    developer: Optional[Developer] = None
    filters: RankCheckFilters = Field(default_factory=RankCheckFilters)


ScoringJobStatus = Literal["processing", "completed", "failed", "ineligible", "unknown"]


class ScoringStatus(BaseModel):
    """Job status reported by the external scoring service."""

    status: ScoringJobStatus = "unknown"
    message: Optional[str] = None
