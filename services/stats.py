"""Site statistics and the page-visit counter."""

import logging
from typing import Optional

from models.data_models import StatsResponse, Visit, VisitCount
from storage.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)


class StatsService:
    """Catalogue totals and visit tracking."""

    def __init__(self, store: SupabaseClient):
        self.store = store

    def get_stats(self) -> StatsResponse:
        """
        Totals over the stored catalogue.

        totalCommits is approximated by the sum of forks; commit counts are
        not stored.
        """
        total_projects = self.store.count_projects()
        totals = self.store.get_project_totals()

        stats = StatsResponse(
            total_projects=total_projects,
            total_commits=totals["forks"],
            total_contributors=totals["contributors"],
        )
        logger.debug(f"Stats: {stats.model_dump()}")
        return stats

    def _current_visit(self) -> Optional[Visit]:
        row = self.store.get_visit()
        return Visit.model_validate(row) if row else None

    def track_visit(self) -> VisitCount:
        """
        Record one page load.

        Reads the counter row, writes count + 1 and returns the stored value.
        The first visit creates the row.
        """
        visit = self._current_visit()
        if visit is None:
            created = Visit.model_validate(self.store.create_visit(count=1))
            logger.info("Created visit counter")
            return VisitCount(count=created.count)

        updated = Visit.model_validate(self.store.update_visit_count(visit.id, visit.count + 1))
        return VisitCount(count=updated.count)

    def get_users_visited(self) -> VisitCount:
        visit = self._current_visit()
        return VisitCount(count=visit.count if visit else 0)
