"""
Poll the rank-check endpoint until a developer's profile is processed.
"""

import logging
import threading
from typing import Callable, Optional

from pydantic import BaseModel

from client.api_client import OpenRankAPIError, OpenRankClient
from models.data_models import DeveloperFilters, RankCheckResponse

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 1.0
MAX_POLL_ATTEMPTS = 30

FOUND = "found"
NOT_FOUND = "not_found"
NOT_ELIGIBLE = "not_eligible"
TIMEOUT = "timeout"
CANCELLED = "cancelled"


class RankPollResult(BaseModel):
    outcome: str
    attempts: int
    response: Optional[RankCheckResponse] = None
    message: Optional[str] = None


class RankPoller:
    """
    Initial rank check followed by polling while the profile is processing.

    `stop` can be set from another thread to end polling early (outcome
    "cancelled"). `wait` defaults to `stop.wait`, so a cancelled poller
    wakes up immediately instead of sleeping out the interval.
    """

    def __init__(
        self,
        client: OpenRankClient,
        interval: float = POLL_INTERVAL_SECONDS,
        max_attempts: int = MAX_POLL_ATTEMPTS,
        stop: Optional[threading.Event] = None,
        wait: Optional[Callable[[float], object]] = None,
        on_update: Optional[Callable[[RankCheckResponse], None]] = None
    ):
        self.client = client
        self.interval = interval
        self.max_attempts = max_attempts
        self.stop = stop or threading.Event()
        self.wait = wait or self.stop.wait
        self.on_update = on_update

    def cancel(self) -> None:
        self.stop.set()

    @staticmethod
    def _settled(response: RankCheckResponse, attempts: int) -> Optional[RankPollResult]:
        if not response.eligible:
            return RankPollResult(outcome=NOT_ELIGIBLE, attempts=attempts, response=response, message=response.message)
        if response.processing:
            return None
        if response.rank > 0:
            return RankPollResult(outcome=FOUND, attempts=attempts, response=response, message=response.message)
        return RankPollResult(outcome=NOT_FOUND, attempts=attempts, response=response, message=response.message)

    def check(self, username: str, filters: Optional[DeveloperFilters] = None) -> RankPollResult:
        """
        Resolve the rank of `username`.

        The initial check propagates OpenRankAPIError. Errors while polling
        are logged and count as an attempt.
        """
        response = self.client.check_developer_rank(username, filters)
        if self.on_update:
            self.on_update(response)
        settled = self._settled(response, 0)
        if settled:
            return settled

        logger.info(f"Profile {username} is processing; polling every {self.interval}s")
        last = response
        for attempt in range(1, self.max_attempts + 1):
            self.wait(self.interval)
            if self.stop.is_set():
                return RankPollResult(outcome=CANCELLED, attempts=attempt - 1, response=last, message="Rank check cancelled.")

            try:
                response = self.client.check_developer_rank(username, filters)
            except OpenRankAPIError as e:
                logger.warning(f"Rank poll {attempt}/{self.max_attempts} for {username} failed: {e}")
                continue

            last = response
            if self.on_update:
                self.on_update(response)
            settled = self._settled(response, attempt)
            if settled:
                return settled

        logger.warning(f"Gave up polling rank for {username} after {self.max_attempts} attempts")
        return RankPollResult(
            outcome=TIMEOUT,
            attempts=self.max_attempts,
            response=last,
            message="Processing is taking longer than expected. Please check back later."
        )
