"""
Tests for the OpenRank API endpoints.

These tests use FastAPI's TestClient with dependency overrides, so no
running server, Supabase project, GitHub token or scoring service is needed.
"""

import pytest
from fastapi.testclient import TestClient

from backend.app import app
from backend.dependencies import get_github, get_keyword_extractor, get_scoring, get_store
from conftest import make_developer_row, make_repo
from fetchers.github import GitHubAPIError, GitHubRateLimitError
from keywords.extractor import KeywordExtractor
from models.data_models import Developer, ScoringStatus
from scoring.client import DeveloperIneligibleError, DeveloperNotFoundError, ScoringServiceError


@pytest.fixture
def scoring_enabled():
    """Whether get_scoring returns the mock scoring client (per test)."""
    return True


@pytest.fixture
def client(mock_store, mock_github, mock_scoring, scoring_enabled):
    """Create FastAPI test client with mocked collaborators."""
    app.dependency_overrides[get_store] = lambda: mock_store
    app.dependency_overrides[get_github] = lambda: mock_github
    app.dependency_overrides[get_scoring] = lambda: mock_scoring if scoring_enabled else None
    app.dependency_overrides[get_keyword_extractor] = lambda: KeywordExtractor()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


class TestProjects:
    """Tests for /api/projects endpoints."""

    def test_list_stored_projects(self, client, mock_store, mock_github):
        mock_store.list_projects.return_value = [
            {"id": 1, "name": "react", "full_name": "facebook/react", "rank": 1, "stars": 200000,
             "github_url": "https://github.com/facebook/react", "updated_at": None},
        ]

        response = client.get("/api/projects")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        project = data["projects"][0]
        assert project["fullName"] == "facebook/react"
        assert project["githubUrl"] == "https://github.com/facebook/react"
        assert project["lastUpdated"] == ""
        mock_github.search_repositories.assert_not_called()

    def test_search_forwards_to_github(self, client, mock_github):
        mock_github.search_repositories.return_value = {"items": [make_repo(7, "fastapi", owner="tiangolo")]}

        response = client.get("/api/projects", params={
            "search": "web framework", "language": "Python", "sortBy": "Forks", "minStars": 10,
        })

        assert response.status_code == 200
        assert response.json()["projects"][0]["name"] == "fastapi"
        args, kwargs = mock_github.search_repositories.call_args
        assert args[0] == "web framework"
        assert kwargs["sort"] == "Forks"
        assert kwargs["min_stars"] == 10

    def test_rate_limit_is_429(self, client, mock_github):
        mock_github.search_repositories.side_effect = GitHubRateLimitError()

        response = client.get("/api/projects", params={"search": "x"})

        assert response.status_code == 429
        assert "rate limit" in response.json()["detail"]

    def test_storage_failure_is_500(self, client, mock_store):
        mock_store.list_projects.side_effect = RuntimeError("db down")

        response = client.get("/api/projects")

        assert response.status_code == 500
        assert "db down" in response.json()["detail"]

    def test_negative_min_stars_rejected(self, client):
        assert client.get("/api/projects", params={"minStars": -1}).status_code == 422

    def test_extract_keywords(self, client):
        response = client.post("/api/projects/extract-keywords", json={"query": "a fast Rust web server"})

        assert response.status_code == 200
        assert response.json() == {
            "keywords": ["fast", "rust", "web", "server"],
            "searchQuery": "fast rust web server",
        }

    def test_extract_keywords_requires_query(self, client):
        assert client.post("/api/projects/extract-keywords", json={"query": ""}).status_code == 422

    def test_newly_added(self, client, mock_store):
        mock_store.get_newly_added.return_value = ([{"id": 1, "name": "new", "rank": 4}], 11)

        response = client.get("/api/projects/newly-added", params={"page": 2, "limit": 5})

        assert response.status_code == 200
        data = response.json()
        assert data["totalPages"] == 3
        assert data["page"] == 2
        mock_store.get_newly_added.assert_called_once_with(5, 5)

    def test_newly_added_limit_capped(self, client):
        assert client.get("/api/projects/newly-added", params={"limit": 101}).status_code == 422

    def test_details_not_found(self, client, mock_github):
        mock_github.get_repository_details.side_effect = GitHubAPIError("Not Found", status_code=404)

        response = client.get("/api/projects/details/nobody/nothing")

        assert response.status_code == 404

    def test_categories_and_languages(self, client, mock_store):
        mock_store.get_distinct_project_values.side_effect = lambda column: {
            "category": ["Backend", "Frontend"],
            "language": ["Go"],
        }[column]

        assert client.get("/api/categories").json() == ["Backend", "Frontend"]
        assert client.get("/api/languages").json() == ["Go"]


class TestStats:

    def test_stats(self, client, mock_store):
        mock_store.count_projects.return_value = 3
        mock_store.get_project_totals.return_value = {"forks": 30, "contributors": 12}

        response = client.get("/api/stats")

        assert response.status_code == 200
        assert response.json() == {"totalProjects": 3, "totalCommits": 30, "totalContributors": 12}

    def test_track_visit(self, client, mock_store):
        mock_store.get_visit.return_value = {"id": 1, "count": 41}
        mock_store.update_visit_count.return_value = {"id": 1, "count": 42}

        response = client.post("/api/stats/visit")

        assert response.status_code == 200
        assert response.json() == {"count": 42}

    def test_users_visited_without_row(self, client, mock_store):
        mock_store.get_visit.return_value = None
        assert client.get("/api/stats/users-visited").json() == {"count": 0}


class TestDeveloperRankings:

    def test_rankings(self, client, mock_store):
        mock_store.list_developers.return_value = ([make_developer_row("octocat", 88.0)], 1)
        mock_store.get_max_score.return_value = 88.0

        response = client.get("/api/developers/rankings", params={"country": "Germany", "profileType": "Individual"})

        assert response.status_code == 200
        data = response.json()
        assert data["developers"][0]["githubUsername"] == "octocat"
        assert data["developers"][0]["totalPRs"] == 12
        assert data["developers"][0]["rank"] == 1
        assert data["maxScore"] == 88.0
        assert data["autoDiscovered"] is False
        filters = mock_store.list_developers.call_args[0][0]
        assert filters == {"country": "Germany", "profile_type": "Individual"}

    def test_empty_first_page_schedules_discovery(self, client, mock_store, mock_github):
        mock_store.list_developers.return_value = ([], 0)
        mock_github.search_users.return_value = []
        mock_store.get_known_usernames.return_value = set()

        response = client.get("/api/developers/rankings", params={"city": "Lagos"})

        assert response.status_code == 200
        assert response.json()["autoDiscovered"] is True
        # Background task runs before TestClient returns
        assert mock_github.search_users.call_args[1]["location"] == "Lagos"

    def test_auto_discover_disabled(self, client, mock_store, mock_github):
        mock_store.list_developers.return_value = ([], 0)

        response = client.get("/api/developers/rankings", params={"autoDiscover": "false"})

        assert response.json()["autoDiscovered"] is False
        mock_github.search_users.assert_not_called()

    @pytest.mark.parametrize("scoring_enabled", [False])
    def test_no_discovery_without_scoring(self, client, mock_store):
        mock_store.list_developers.return_value = ([], 0)

        response = client.get("/api/developers/rankings")

        assert response.json()["autoDiscovered"] is False


class TestDeveloperEndpoints:

    def test_auto_discover(self, client, mock_store, mock_github, mock_scoring):
        mock_github.search_users.return_value = [{"login": "a"}, {"login": "b"}]
        mock_store.get_known_usernames.return_value = {"a"}
        mock_scoring.submit.return_value = ScoringStatus(status="processing")

        response = client.post("/api/developers/auto-discover", params={"limit": 5})

        assert response.status_code == 200
        assert response.json() == {"message": "Queued 1 developers for ranking", "discovered": 1, "processed": 1}

    @pytest.mark.parametrize("scoring_enabled", [False])
    def test_auto_discover_without_scoring(self, client):
        assert client.post("/api/developers/auto-discover").status_code == 503

    def test_search(self, client, mock_store):
        mock_store.search_developers.return_value = [make_developer_row("octocat")]

        response = client.get("/api/developers/search", params={"q": "octo"})

        assert response.json()["total"] == 1

    def test_search_requires_query(self, client):
        assert client.get("/api/developers/search").status_code == 422

    def test_filter_options(self, client, mock_store):
        mock_store.get_distinct_developer_values.return_value = ["X"]

        assert client.get("/api/developers/countries").json() == {"countries": ["X"]}
        assert client.get("/api/developers/cities", params={"country": "Germany"}).json() == {"cities": ["X"]}
        assert client.get("/api/developers/companies").json() == {"companies": ["X"]}
        assert client.get("/api/developers/profile-types").json() == {"profileTypes": ["X"]}

    def test_get_developer(self, client, mock_store):
        mock_store.get_developer.return_value = make_developer_row("octocat")

        response = client.get("/api/developers/octocat")

        assert response.status_code == 200
        assert response.json()["githubUsername"] == "octocat"

    def test_get_developer_not_found(self, client, mock_store):
        mock_store.get_developer.return_value = None

        response = client.get("/api/developers/ghost")

        assert response.status_code == 404
        assert response.json()["detail"] == "Developer not found: ghost"


class TestCheckRank:

    def test_ranked_developer(self, client, mock_store):
        mock_store.get_developer.return_value = make_developer_row("octocat", 70.0)
        mock_store.count_developers.side_effect = [200, 2]

        response = client.get("/api/developers/check-rank/octocat", params={"city": "berlin"})

        assert response.status_code == 200
        data = response.json()
        assert data["eligible"] is True
        assert data["processing"] is False
        assert data["rank"] == 3
        assert data["total"] == 200
        assert data["filters"] == {"country": "", "city": "berlin", "company": "", "profileType": ""}

    def test_processing(self, client, mock_store, mock_scoring):
        mock_store.get_developer.return_value = None
        mock_scoring.get_status.return_value = ScoringStatus(status="processing")

        data = client.get("/api/developers/check-rank/newdev").json()

        assert data["processing"] is True
        assert data["rank"] == 0

    def test_scoring_outage_is_503(self, client, mock_store, mock_scoring):
        mock_store.get_developer.return_value = None
        mock_scoring.get_status.side_effect = ScoringServiceError("down")

        assert client.get("/api/developers/check-rank/newdev").status_code == 503

    def test_completed_but_ineligible_is_200(self, client, mock_store, mock_scoring):
        mock_store.get_developer.return_value = None
        mock_scoring.get_status.return_value = ScoringStatus(status="completed")
        mock_scoring.calculate.side_effect = DeveloperIneligibleError("bob")

        response = client.get("/api/developers/check-rank/bob")

        assert response.status_code == 200
        assert response.json()["eligible"] is False
        assert response.json()["message"] == "bob does not meet the eligibility criteria for ranking."

    def test_github_rate_limit_is_429(self, client, mock_store, mock_scoring, mock_github):
        mock_store.get_developer.return_value = None
        mock_scoring.get_status.return_value = ScoringStatus(status="unknown")
        mock_github.get_user.side_effect = GitHubRateLimitError()

        assert client.get("/api/developers/check-rank/newdev").status_code == 429


class TestCalculate:

    def test_calculate(self, client, mock_store, mock_scoring):
        mock_scoring.calculate.return_value = Developer(github_username="octocat", final_impact_score=64.2)
        mock_store.upsert_developer.side_effect = lambda row: {**row, "id": 3}

        response = client.post("/api/developers/octocat/calculate")

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Developer octocat calculated successfully"
        assert data["developer"]["finalImpactScore"] == 64.2

    @pytest.mark.parametrize("error,status", [
        (DeveloperNotFoundError("ghost"), 404),
        (DeveloperIneligibleError("newbie", "Account too new"), 422),
        (ScoringServiceError("bad gateway"), 502),
    ])
    def test_errors(self, client, mock_scoring, error, status):
        mock_scoring.calculate.side_effect = error

        response = client.post("/api/developers/someone/calculate")

        assert response.status_code == status

    def test_ineligible_detail(self, client, mock_scoring):
        mock_scoring.calculate.side_effect = DeveloperIneligibleError("newbie", "Account too new")
        assert client.post("/api/developers/newbie/calculate").json()["detail"] == "Account too new"

    @pytest.mark.parametrize("scoring_enabled", [False])
    def test_without_scoring(self, client):
        assert client.post("/api/developers/octocat/calculate").status_code == 503
