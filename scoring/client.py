"""Client for the external developer scoring service.

Impact scores are computed outside this repository. This client only asks
the service to score a profile, queues profiles for background processing,
and reads back the processing status.
"""

import logging
from typing import Any, Optional

import requests

from models.data_models import Developer, ScoringStatus

logger = logging.getLogger(__name__)

KNOWN_STATUSES = {"processing", "completed", "failed", "ineligible", "unknown"}


class ScoringServiceError(Exception):
    """The scoring service is unreachable or answered unexpectedly."""


class DeveloperIneligibleError(Exception):
    """The scoring service refused to rank this developer."""

    def __init__(self, username: str, message: Optional[str] = None):
        super().__init__(message or f"{username} does not meet the eligibility criteria for ranking.")
        self.username = username
        self.message = str(self)


class DeveloperNotFoundError(Exception):
    """The GitHub account does not exist."""

    def __init__(self, username: str):
        super().__init__(f"GitHub user not found: {username}")
        self.username = username


class ScoringServiceClient:
    """Thin HTTP wrapper around the scoring service API."""

    def __init__(self, base_url: str, api_key: Optional[str] = None, timeout: float = 60.0):
        """
        Args:
            base_url: Service root, e.g. "https://scoring.example.com"
            api_key: Optional bearer token
            timeout: Seconds to wait; synchronous scoring can be slow
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            "Accept": "application/json",
            "User-Agent": "OpenRank",
        })
        if api_key:
            self.session.headers["Authorization"] = f"Bearer {api_key}"
        logger.info(f"Initialized ScoringServiceClient for {self.base_url}")

    def _request(self, method: str, path: str) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            return self.session.request(method, url, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Scoring service request {method} {url} failed: {e}")
            raise ScoringServiceError(f"Scoring service unavailable: {e}") from e

    @staticmethod
    def _message(response: requests.Response) -> Optional[str]:
        try:
            payload = response.json()
        except ValueError:
            return response.text[:200] or None
        if isinstance(payload, dict):
            return payload.get("message") or payload.get("detail")
        return None

    def calculate(self, username: str) -> Developer:
        """Score a developer synchronously.

        Returns:
            The scored Developer

        Raises:
            DeveloperNotFoundError: Unknown GitHub account (404)
            DeveloperIneligibleError: Profile does not qualify (422)
            ScoringServiceError: Any other failure
        """
        logger.info(f"Requesting score calculation for {username}")
        response = self._request("POST", f"/developers/{username}/calculate")

        if response.status_code == 404:
            raise DeveloperNotFoundError(username)
        if response.status_code == 422:
            raise DeveloperIneligibleError(username, self._message(response))
        if not response.ok:
            raise ScoringServiceError(
                f"Scoring service error {response.status_code}: {self._message(response)}"
            )

        payload: dict[str, Any] = response.json()
        developer = Developer.model_validate(payload.get("developer", payload))
        logger.info(f"Scored {username}: final impact {developer.final_impact_score:.1f}")
        return developer

    def submit(self, username: str) -> ScoringStatus:
        """Queue a developer for background scoring."""
        response = self._request("POST", f"/developers/{username}/submit")

        if response.status_code == 422:
            return ScoringStatus(status="ineligible", message=self._message(response))
        if not response.ok:
            raise ScoringServiceError(
                f"Scoring service error {response.status_code}: {self._message(response)}"
            )

        logger.debug(f"Queued {username} for scoring")
        return self._parse_status(response, default="processing")

    def get_status(self, username: str) -> ScoringStatus:
        """Processing state of a developer's scoring job."""
        response = self._request("GET", f"/developers/{username}/status")

        if response.status_code == 404:
            return ScoringStatus(status="unknown")
        if not response.ok:
            raise ScoringServiceError(
                f"Scoring service error {response.status_code}: {self._message(response)}"
            )
        return self._parse_status(response)

    @staticmethod
    def _parse_status(response: requests.Response, default: str = "unknown") -> ScoringStatus:
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}
        status = payload.get("status") or default
        if status not in KNOWN_STATUSES:
            logger.warning(f"Unrecognized scoring status '{status}', treating as unknown")
            status = "unknown"
        return ScoringStatus(status=status, message=payload.get("message"))
