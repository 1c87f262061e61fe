"""
Developer leaderboard.

Profiles and their impact scores come from the external scoring service and
are cached in the developers table. This module lists and ranks stored
profiles, and drives the eligibility / processing flow for profiles that are
not ranked yet.
"""

import logging
import math
from typing import Optional

from fetchers.github import GitHubFetcher
from models.data_models import (
    AutoDiscoverResponse,
    CalculateResponse,
    Developer,
    DeveloperFilters,
    DeveloperSearchResponse,
    DevelopersRankingResponse,
    RankCheckFilters,
    RankCheckResponse,
)
from scoring.client import (
    DeveloperIneligibleError,
    DeveloperNotFoundError,
    ScoringServiceClient,
    ScoringServiceError,
)
from storage.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

DISCOVERY_MIN_FOLLOWERS = 50


class ScoringUnavailableError(Exception):
    """No scoring service is configured."""


class DeveloperService:
    """Rankings, lookups, and score requests for developers."""

    def __init__(
        self,
        store: SupabaseClient,
        github: GitHubFetcher,
        scoring: Optional[ScoringServiceClient] = None
    ):
        self.store = store
        self.github = github
        self.scoring = scoring

    def _require_scoring(self) -> ScoringServiceClient:
        if self.scoring is None:
            raise ScoringUnavailableError("Developer scoring service is not configured")
        return self.scoring

    # ========================================================================
    # Listing
    # ========================================================================

    def get_rankings(
        self,
        filters: DeveloperFilters,
        page: int = 1,
        limit: int = 25
    ) -> DevelopersRankingResponse:
        """
        Page of the leaderboard, highest final impact score first.

        Each developer carries its position within the filtered leaderboard
        as `rank`.
        """
        offset = (page - 1) * limit
        rows, total = self.store.list_developers(filters.as_dict(), offset, limit)

        developers = []
        for position, row in enumerate(rows):
            developer = Developer.model_validate(row)
            developer.rank = offset + position + 1
            developers.append(developer)

        max_score = self.store.get_max_score(filters.as_dict()) if total else None

        logger.info(
            f"Listed {len(developers)} developers (page {page}, limit {limit}, total {total}, "
            f"filters {filters.as_dict() or 'none'})"
        )
        return DevelopersRankingResponse(
            developers=developers,
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit) if total else 0,
            max_score=max_score,
        )

    def search(self, text: str, limit: int = 20) -> DeveloperSearchResponse:
        developers = [Developer.model_validate(row) for row in self.store.search_developers(text, limit)]
        return DeveloperSearchResponse(developers=developers, total=len(developers))

    def get_developer(self, username: str) -> Optional[Developer]:
        row = self.store.get_developer(username)
        return Developer.model_validate(row) if row else None

    def get_countries(self) -> list[str]:
        return self.store.get_distinct_developer_values("country")

    def get_cities(self, country: str) -> list[str]:
        return self.store.get_distinct_developer_values("city", {"country": country})

    def get_companies(self) -> list[str]:
        return self.store.get_distinct_developer_values("company")

    def get_profile_types(self) -> list[str]:
        return self.store.get_distinct_developer_values("profile_type")

    # ========================================================================
    # Scoring
    # ========================================================================

    def calculate(self, username: str) -> CalculateResponse:
        """
        Score a developer now and store the result.

        Raises:
            ScoringUnavailableError: No scoring service configured
            DeveloperNotFoundError: Unknown GitHub account
            DeveloperIneligibleError: Profile does not qualify for ranking
            ScoringServiceError: Scoring service failure
        """
        developer = self._require_scoring().calculate(username)
        stored = self.store.upsert_developer(developer.to_row())
        return CalculateResponse(
            message=f"Developer {username} calculated successfully",
            developer=Developer.model_validate(stored),
        )

    def _rank_of(self, developer: Developer, filters: DeveloperFilters) -> RankCheckResponse:
        response_filters = RankCheckFilters(**filters.model_dump(exclude_none=True))
        total = self.store.count_developers(filters.as_dict())

        if not filters.matches(developer):
            return RankCheckResponse(
                username=developer.github_username,
                eligible=True,
                message="Developer not found with current filters.",
                total=total,
                score=developer.final_impact_score,
                developer=developer,
                filters=response_filters,
            )

        above = self.store.count_developers(filters.as_dict(), score_above=developer.final_impact_score)
        developer.rank = above + 1
        return RankCheckResponse(
            username=developer.github_username,
            eligible=True,
            rank=above + 1,
            total=total,
            score=developer.final_impact_score,
            developer=developer,
            filters=response_filters,
        )

    def check_rank(self, username: str, filters: DeveloperFilters) -> RankCheckResponse:
        """
        Where does this developer stand under the given filters?

        Stored profiles are ranked immediately. Unknown profiles are checked
        against the scoring service: a running job reports processing=True
        (callers poll), an ineligible profile reports eligible=False, and a
        profile never seen before is submitted for processing.
        """
        developer = self.get_developer(username)
        if developer is not None:
            return self._rank_of(developer, filters)

        response_filters = RankCheckFilters(**filters.model_dump(exclude_none=True))

        if self.scoring is None:
            return RankCheckResponse(
                username=username,
                eligible=True,
                message="Developer not found in rankings.",
                filters=response_filters,
            )

        status = self.scoring.get_status(username)
        logger.info(f"Rank check for unranked {username}: scoring status {status.status}")

        if status.status == "processing":
            return RankCheckResponse(
                username=username,
                eligible=True,
                processing=True,
                message=status.message or "Profile is being processed.",
                filters=response_filters,
            )
        if status.status == "ineligible":
            return RankCheckResponse(
                username=username,
                eligible=False,
                message=status.message or "You do not meet the eligibility criteria.",
                filters=response_filters,
            )
        if status.status == "failed":
            return RankCheckResponse(
                username=username,
                eligible=True,
                message=status.message or "Profile processing failed. Please try again later.",
                filters=response_filters,
            )
        if status.status == "completed":
            # Finished but not stored yet: fetch the result synchronously
            try:
                calculated = self.calculate(username)
            except DeveloperNotFoundError:
                return RankCheckResponse(
                    username=username,
                    eligible=False,
                    message=f"GitHub user '{username}' not found.",
                    filters=response_filters,
                )
            except DeveloperIneligibleError as e:
                return RankCheckResponse(
                    username=username,
                    eligible=False,
                    message=e.message,
                    filters=response_filters,
                )
            return self._rank_of(calculated.developer, filters)

        if self.github.get_user(username) is None:
            return RankCheckResponse(
                username=username,
                eligible=False,
                message=f"GitHub user '{username}' not found.",
                filters=response_filters,
            )

        submitted = self.scoring.submit(username)
        if submitted.status == "ineligible":
            return RankCheckResponse(
                username=username,
                eligible=False,
                message=submitted.message or "You do not meet the eligibility criteria.",
                filters=response_filters,
            )

        logger.info(f"Submitted {username} for scoring")
        return RankCheckResponse(
            username=username,
            eligible=True,
            processing=True,
            message="We are processing your profile. This may take a few moments.",
            filters=response_filters,
        )

    def auto_discover(
        self,
        limit: int = 100,
        location: Optional[str] = None,
        company: Optional[str] = None
    ) -> AutoDiscoverResponse:
        """
        Find well-followed GitHub users that are not ranked yet and queue them.

        Returns:
            discovered: candidates not already stored
            processed: candidates the scoring service accepted
        """
        scoring = self._require_scoring()
        candidates = self.github.search_users(
            location=location,
            company=company,
            min_followers=DISCOVERY_MIN_FOLLOWERS,
            per_page=limit,
        )
        usernames = [user["login"] for user in candidates][:limit]
        known = self.store.get_known_usernames(usernames)
        new_usernames = [u for u in usernames if u.lower() not in known]

        processed = 0
        for username in new_usernames:
            try:
                status = scoring.submit(username)
            except ScoringServiceError as e:
                logger.warning(f"Could not queue {username} for scoring: {e}")
                continue
            if status.status != "ineligible":
                processed += 1

        logger.info(
            f"Auto-discovery: {len(usernames)} candidates, {len(new_usernames)} new, {processed} queued"
        )
        return AutoDiscoverResponse(
            message=f"Queued {processed} developers for ranking",
            discovered=len(new_usernames),
            processed=processed,
        )

    def discover_for_filters(self, filters: DeveloperFilters, limit: int = 30) -> None:
        """Background discovery for an empty leaderboard view."""
        location = filters.city or filters.country
        try:
            self.auto_discover(limit=limit, location=location, company=filters.company)
        except Exception as e:
            # Runs after the response is sent
            logger.error(f"Background discovery failed for {filters.as_dict()}: {e}")
