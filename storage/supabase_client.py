"""
Supabase storage client for OpenRank.

Three tables back the API:
- projects: the local project catalogue (rank order, stats, "Newly Added")
- developers: profiles scored by the external scoring service
- visits: a single page-load counter row

Write methods are idempotent upserts where a natural key exists.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple
from supabase import Client, create_client

logger = logging.getLogger(__name__)

PAGE_SIZE = 1000  # PostgREST default max rows per request

ILIKE_SPECIAL_CHARACTERS = ("\\", "%", "_")


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so ilike matches the value literally."""
    for character in ILIKE_SPECIAL_CHARACTERS:
        value = value.replace(character, "\\" + character)
    return value


PROJECT_SORT_COLUMNS = {
    "Stars": ("stars", True),
    "Forks": ("forks", True),
    "Recently Updated": ("updated_at", True),
    "Most Active": ("contributors", True),
}


class SupabaseClient:
    """Client for interacting with Supabase storage."""

    def __init__(self, supabase_url: str, supabase_key: str):
        """
        Initialize Supabase client.

        Args:
            supabase_url: Supabase project URL
            supabase_key: Supabase API key (anon/public key)
        """
        self.client: Client = create_client(supabase_url, supabase_key)
        self.projects_table = "projects"
        self.developers_table = "developers"
        self.visits_table = "visits"
        logger.info(f"Initialized SupabaseClient for {supabase_url}")

    def _fetch_all(self, build_query: Callable[[], Any]) -> List[Dict[str, Any]]:
        """Page through a query until a short page comes back."""
        rows: List[Dict[str, Any]] = []
        offset = 0
        while True:
            result = build_query().range(offset, offset + PAGE_SIZE - 1).execute()
            batch = result.data or []
            rows.extend(batch)
            if len(batch) < PAGE_SIZE:
                return rows
            offset += PAGE_SIZE

    @staticmethod
    def _distinct(rows: List[Dict[str, Any]], column: str) -> List[str]:
        return sorted({row[column] for row in rows if row.get(column)})

    # ========================================================================
    # Projects
    # ========================================================================

    def list_projects(
        self,
        category: Optional[str] = None,
        language: Optional[str] = None,
        min_stars: Optional[int] = None,
        sort_by: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """
        List stored projects.

        Args:
            category: Exact category filter
            language: Exact language filter
            min_stars: Minimum star count
            sort_by: "Stars", "Forks", "Recently Updated", "Most Active";
                     anything else orders by rank ascending

        Returns:
            List of project rows
        """
        column, descending = PROJECT_SORT_COLUMNS.get(sort_by, ("rank", False))

        def build_query():
            query = self.client.table(self.projects_table).select("*")
            if category:
                query = query.eq("category", category)
            if language:
                query = query.eq("language", language)
            if min_stars:
                query = query.gte("stars", min_stars)
            return query.order(column, desc=descending)

        try:
            rows = self._fetch_all(build_query)
            logger.debug(f"Listed {len(rows)} stored projects (sort={column})")
            return rows
        except Exception as e:
            logger.error(f"Failed to list projects: {e}")
            raise

    def get_newly_added(self, offset: int, limit: int) -> Tuple[List[Dict[str, Any]], int]:
        """
        Get a page of projects ordered by when they were added, newest first.

        Returns:
            Tuple of (rows, total project count)
        """
        try:
            result = (
                self.client.table(self.projects_table)
                .select("*", count="exact")
                .order("added_at", desc=True)
                .range(offset, offset + limit - 1)
                .execute()
            )
            return result.data or [], result.count or 0
        except Exception as e:
            logger.error(f"Failed to get newly added projects: {e}")
            raise

    def count_projects(self) -> int:
        """Total number of stored projects."""
        result = self.client.table(self.projects_table).select("*", count="exact", head=True).execute()
        return result.count or 0

    def get_project_totals(self) -> Dict[str, int]:
        """
        Sum forks and contributors across all stored projects.

        Returns:
            Dict with keys 'forks' and 'contributors'
        """
        rows = self._fetch_all(
            lambda: self.client.table(self.projects_table).select("forks, contributors").order("id")
        )
        return {
            "forks": sum(row.get("forks") or 0 for row in rows),
            "contributors": sum(row.get("contributors") or 0 for row in rows),
        }

    def get_distinct_project_values(self, column: str) -> List[str]:
        """Sorted distinct non-empty values of a project column (category, language)."""
        rows = self._fetch_all(
            lambda: self.client.table(self.projects_table).select(column).order(column)
        )
        return self._distinct(rows, column)

    def upsert_projects(self, records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Insert or update projects keyed by GitHub repository id.

        added_at is left to the column default so re-indexing a project
        does not move it in the "Newly Added" view.
        """
        if not records:
            return []
        try:
            result = self.client.table(self.projects_table).upsert(
                records,
                on_conflict="id"
            ).execute()
            logger.info(f"Upserted {len(records)} projects")
            return result.data or []
        except Exception as e:
            logger.error(f"Failed to upsert {len(records)} projects: {e}")
            raise

    def update_project_ranks(self, ranks: Dict[int, int]) -> None:
        """Set the rank column for the given project ids."""
        for project_id, rank in ranks.items():
            self.client.table(self.projects_table).update({"rank": rank}).eq("id", project_id).execute()

    # ========================================================================
    # Visits
    # ========================================================================

    def get_visit(self) -> Optional[Dict[str, Any]]:
        """The visit counter row, or None if no visit was ever recorded."""
        result = self.client.table(self.visits_table).select("*").order("id").limit(1).execute()
        return result.data[0] if result.data else None

    def create_visit(self, count: int = 1) -> Dict[str, Any]:
        record = {"count": count}
        result = self.client.table(self.visits_table).insert(record).execute()
        return result.data[0] if result.data else record

    def update_visit_count(self, visit_id: int, count: int) -> Dict[str, Any]:
        result = self.client.table(self.visits_table).update({
            "count": count,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }).eq("id", visit_id).execute()
        if not result.data:
            raise RuntimeError(f"Visit row {visit_id} disappeared during update")
        return result.data[0]

    # ========================================================================
    # Developers
    # ========================================================================

    @staticmethod
    def _apply_developer_filters(query, filters: Optional[Dict[str, str]]):
        # ilike on an escaped value is a case-insensitive equality test
        for column, value in (filters or {}).items():
            query = query.ilike(column, escape_like(value))
        return query

    def get_developer(self, username: str) -> Optional[Dict[str, Any]]:
        """
        Get a developer by GitHub username (case-insensitive).

        Returns:
            Developer row or None if not found
        """
        try:
            result = self.client.table(self.developers_table).select("*").eq(
                "github_username", username.lower()
            ).limit(1).execute()
            return result.data[0] if result.data else None
        except Exception as e:
            logger.error(f"Failed to get developer {username}: {e}")
            raise

    def list_developers(
        self,
        filters: Optional[Dict[str, str]],
        offset: int,
        limit: int
    ) -> Tuple[List[Dict[str, Any]], int]:
        """
        Page of developers ordered by final impact score, highest first.

        Returns:
            Tuple of (rows, total matching count)
        """
        query = self.client.table(self.developers_table).select("*", count="exact")
        query = self._apply_developer_filters(query, filters)
        result = (
            query.order("final_impact_score", desc=True)
            .order("github_username")
            .range(offset, offset + limit - 1)
            .execute()
        )
        return result.data or [], result.count or 0

    def count_developers(
        self,
        filters: Optional[Dict[str, str]] = None,
        score_above: Optional[float] = None
    ) -> int:
        """
        Count developers matching filters.

        Args:
            filters: Column → value (case-insensitive equality)
            score_above: Only count developers with a strictly higher final score
        """
        query = self.client.table(self.developers_table).select("*", count="exact", head=True)
        query = self._apply_developer_filters(query, filters)
        if score_above is not None:
            query = query.gt("final_impact_score", score_above)
        result = query.execute()
        return result.count or 0

    def get_max_score(self, filters: Optional[Dict[str, str]] = None) -> Optional[float]:
        query = self.client.table(self.developers_table).select("final_impact_score")
        query = self._apply_developer_filters(query, filters)
        result = query.order("final_impact_score", desc=True).limit(1).execute()
        if not result.data:
            return None
        return result.data[0]["final_impact_score"]

    def search_developers(self, text: str, limit: int = 20) -> List[Dict[str, Any]]:
        """Developers whose username or display name contains the text."""
        # PostgREST or-filter syntax uses commas and parentheses as separators
        term = "".join(ch for ch in text if ch not in ",()").strip()
        if not term:
            return []
        pattern = f"%{term}%"
        result = (
            self.client.table(self.developers_table)
            .select("*")
            .or_(f"github_username.ilike.{pattern},name.ilike.{pattern}")
            .order("final_impact_score", desc=True)
            .limit(limit)
            .execute()
        )
        return result.data or []

    def get_distinct_developer_values(
        self,
        column: str,
        filters: Optional[Dict[str, str]] = None
    ) -> List[str]:
        """Sorted distinct non-empty values of a developer column (country, city, ...)."""
        def build_query():
            query = self.client.table(self.developers_table).select(column)
            return self._apply_developer_filters(query, filters).order(column)

        return self._distinct(self._fetch_all(build_query), column)

    def get_known_usernames(self, usernames: List[str]) -> set:
        """Subset of usernames that already have a developer row."""
        if not usernames:
            return set()
        lowered = [u.lower() for u in usernames]
        result = self.client.table(self.developers_table).select("github_username").in_(
            "github_username", lowered
        ).execute()
        return {row["github_username"] for row in result.data or []}

    def upsert_developer(self, record: Dict[str, Any]) -> Dict[str, Any]:
        """Insert or update a developer keyed by GitHub username."""
        try:
            result = self.client.table(self.developers_table).upsert(
                record,
                on_conflict="github_username"
            ).execute()
            logger.debug(f"Upserted developer {record['github_username']}")
            return result.data[0] if result.data else record
        except Exception as e:
            logger.error(f"Failed to upsert developer {record.get('github_username')}: {e}")
            raise
