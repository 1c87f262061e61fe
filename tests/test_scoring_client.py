"""Tests for the scoring service client."""

from unittest.mock import Mock, patch
import pytest
import requests

from scoring.client import (
    DeveloperIneligibleError,
    DeveloperNotFoundError,
    ScoringServiceClient,
    ScoringServiceError,
)


def make_response(status_code=200, json_data=None, text=""):
    response = Mock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.text = text
    if json_data is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = json_data
    return response


@pytest.fixture
def client():
    return ScoringServiceClient("https://scoring.example.com/", api_key="secret")


def test_init_headers(client):
    assert client.base_url == "https://scoring.example.com"
    assert client.session.headers["Authorization"] == "Bearer secret"


class TestCalculate:

    def test_success_parses_camel_case(self, client):
        payload = {"developer": {
            "githubUsername": "Octocat",
            "finalImpactScore": 87.5,
            "totalPRs": 40,
            "topLanguages": ["Go"],
        }}
        with patch.object(client.session, "request", return_value=make_response(json_data=payload)) as mock_req:
            developer = client.calculate("Octocat")

        assert developer.github_username == "Octocat"
        assert developer.final_impact_score == 87.5
        assert developer.total_prs == 40
        method, url = mock_req.call_args[0]
        assert method == "POST"
        assert url == "https://scoring.example.com/developers/Octocat/calculate"

    def test_not_found(self, client):
        with patch.object(client.session, "request", return_value=make_response(404, {"message": "nope"})):
            with pytest.raises(DeveloperNotFoundError):
                client.calculate("ghost")

    def test_ineligible_carries_message(self, client):
        response = make_response(422, {"message": "Account is younger than 6 months"})
        with patch.object(client.session, "request", return_value=response):
            with pytest.raises(DeveloperIneligibleError) as exc_info:
                client.calculate("newbie")
        assert exc_info.value.message == "Account is younger than 6 months"

    def test_ineligible_default_message(self, client):
        with patch.object(client.session, "request", return_value=make_response(422)):
            with pytest.raises(DeveloperIneligibleError) as exc_info:
                client.calculate("newbie")
        assert "eligibility criteria" in exc_info.value.message

    def test_server_error(self, client):
        with patch.object(client.session, "request", return_value=make_response(500, text="boom")):
            with pytest.raises(ScoringServiceError):
                client.calculate("octocat")

    def test_network_error(self, client):
        with patch.object(client.session, "request", side_effect=requests.ConnectionError("down")):
            with pytest.raises(ScoringServiceError):
                client.calculate("octocat")


class TestStatus:

    def test_submit_defaults_to_processing(self, client):
        with patch.object(client.session, "request", return_value=make_response(202, {})):
            assert client.submit("octocat").status == "processing"

    def test_submit_ineligible(self, client):
        with patch.object(client.session, "request", return_value=make_response(422, {"message": "Too few repos"})):
            status = client.submit("octocat")
        assert status.status == "ineligible"
        assert status.message == "Too few repos"

    def test_get_status_unknown_on_404(self, client):
        with patch.object(client.session, "request", return_value=make_response(404, {})):
            assert client.get_status("octocat").status == "unknown"

    def test_get_status_completed(self, client):
        with patch.object(client.session, "request",
                          return_value=make_response(200, {"status": "completed", "message": "done"})):
            status = client.get_status("octocat")
        assert status.status == "completed"
        assert status.message == "done"

    def test_unrecognized_status_is_unknown(self, client):
        with patch.object(client.session, "request", return_value=make_response(200, {"status": "queued"})):
            assert client.get_status("octocat").status == "unknown"

    def test_get_status_error(self, client):
        with patch.object(client.session, "request", return_value=make_response(503, {"detail": "maintenance"})):
            with pytest.raises(ScoringServiceError) as exc_info:
                client.get_status("octocat")
        assert "maintenance" in str(exc_info.value)
