"""Shared pytest fixtures and configuration."""

import os
import pytest
from unittest.mock import Mock

# backend.app loads config at import time; give it valid values
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test_supabase_key_1234567890")
os.environ.setdefault("LOG_LEVEL", "INFO")


@pytest.fixture
def test_env(monkeypatch, tmp_path):
    """
    Set valid test credentials in the environment.

    This fixture sets up valid test environment variables so config
    can be loaded during tests without requiring real credentials.
    """
    monkeypatch.setenv("GITHUB_TOKEN", "ghp_test_token_1234567890")
    monkeypatch.setenv("SUPABASE_URL", "https://test-project.supabase.co")
    monkeypatch.setenv("SUPABASE_KEY", "test_supabase_key_1234567890")
    monkeypatch.setenv("SCORING_SERVICE_URL", "https://scoring.example.com/")
    monkeypatch.setenv("CORS_ORIGINS", "http://localhost:3000, https://openrank.example.com")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")

    return {
        "github_token": "ghp_test_token_1234567890",
        "supabase_url": "https://test-project.supabase.co",
        "supabase_key": "test_supabase_key_1234567890",
        "scoring_service_url": "https://scoring.example.com",
        "log_level": "DEBUG",
    }


@pytest.fixture
def invalid_env(monkeypatch):
    """
    Set up invalid/missing environment variables for testing validation.
    """
    monkeypatch.setenv("GITHUB_TOKEN", "")
    monkeypatch.setenv("SUPABASE_URL", "")
    monkeypatch.setenv("SUPABASE_KEY", "")


@pytest.fixture
def mock_store():
    """Mock SupabaseClient (method-level)."""
    return Mock()


@pytest.fixture
def mock_github():
    """Mock GitHubFetcher."""
    return Mock()


@pytest.fixture
def mock_scoring():
    """Mock ScoringServiceClient."""
    return Mock()


def make_repo(repo_id=1, name="repo", owner="owner", **overrides):
    """GitHub search item with sensible defaults."""
    repo = {
        "id": repo_id,
        "name": name,
        "full_name": f"{owner}/{name}",
        "description": f"The {name} project",
        "html_url": f"https://github.com/{owner}/{name}",
        "stargazers_count": 100,
        "forks_count": 10,
        "language": "Python",
        "topics": [],
        "archived": False,
        "updated_at": "2024-01-01T00:00:00Z",
    }
    repo.update(overrides)
    return repo


def make_developer_row(username="octocat", score=50.0, **overrides):
    """Stored developers row with sensible defaults."""
    row = {
        "id": 1,
        "github_username": username,
        "name": username.title(),
        "final_impact_score": score,
        "followers": 100,
        "total_prs": 12,
        "country": "Germany",
        "city": "Berlin",
        "company": "GitHub",
        "profile_type": "Individual",
        "top_languages": ["Python"],
    }
    row.update(overrides)
    return row
