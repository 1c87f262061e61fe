"""Tests for data models."""

import pytest
from pydantic import ValidationError

from models.data_models import (
    Developer,
    DeveloperFilters,
    KeywordExtractionRequest,
    Project,
    ProjectFilters,
    RankCheckFilters,
    ScoringStatus,
)


class TestProject:

    def test_defaults(self):
        project = Project(id=1, name="x", rank=1)
        assert project.description == "No description available"
        assert project.status == "Active"
        assert project.language == "Unknown"
        assert project.category == "Other"
        assert project.tags == []

    def test_accepts_camel_and_snake_case(self):
        camel = Project.model_validate({"id": 1, "name": "x", "rank": 1, "lastUpdated": "Today"})
        snake = Project(id=1, name="x", rank=1, last_updated="Today")
        assert camel == snake
        assert "lastUpdated" in snake.to_api()


class TestProjectFilters:

    def test_blank_search_is_not_a_search(self):
        assert not ProjectFilters(search="   ").has_search()
        assert ProjectFilters(search="cli").has_search()

    def test_has_filters(self):
        assert not ProjectFilters().has_filters()
        assert ProjectFilters(min_stars=10).has_filters()
        assert not ProjectFilters(min_stars=0).has_filters()


class TestKeywordExtractionRequest:

    def test_length_bounds(self):
        with pytest.raises(ValidationError):
            KeywordExtractionRequest(query="")
        with pytest.raises(ValidationError):
            KeywordExtractionRequest(query="x" * 501)
        assert KeywordExtractionRequest(query="x" * 500).query


class TestDeveloper:

    def test_total_prs_alias(self):
        developer = Developer.model_validate({"githubUsername": "a", "totalPRs": 3})
        assert developer.total_prs == 3
        assert developer.to_api()["totalPRs"] == 3
        assert Developer(github_username="a", total_prs=5).total_prs == 5

    def test_to_row(self):
        developer = Developer(id=4, github_username="OctoCat", rank=2, top_languages=["Go"])
        row = developer.to_row()
        assert row["github_username"] == "octocat"
        assert "id" not in row and "rank" not in row
        assert row["total_prs"] == 0
        assert row["top_languages"] == ["Go"]


class TestDeveloperFilters:

    def test_as_dict_drops_empty(self):
        filters = DeveloperFilters(country="Germany", city="", profile_type="Individual")
        assert filters.as_dict() == {"country": "Germany", "profile_type": "Individual"}

    def test_matches_case_insensitive(self):
        developer = Developer(github_username="a", country="Germany", city="Berlin")
        assert DeveloperFilters(country="germany").matches(developer)
        assert DeveloperFilters(country="GERMANY", city="berlin").matches(developer)
        assert not DeveloperFilters(city="Munich").matches(developer)
        assert not DeveloperFilters(company="SAP").matches(developer)
        assert DeveloperFilters().matches(developer)


def test_rank_check_filters_serialize_empty_strings():
    assert RankCheckFilters(city="Berlin").to_api() == {
        "country": "", "city": "Berlin", "company": "", "profileType": ""
    }


def test_scoring_status_rejects_unknown_values():
    with pytest.raises(ValidationError):
        ScoringStatus(status="queued")
    assert ScoringStatus().status == "unknown"
