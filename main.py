#!/usr/bin/env python3
"""
OpenRank - Main CLI entrypoint

Runs the API server, populates the project catalogue from GitHub, queues
developers for scoring, and queries a running API from the terminal.

Usage:
    python main.py serve                                   # API server on :3001
    python main.py index "machine learning" --limit 50     # Populate projects
    python main.py discover --location Germany             # Queue developers for scoring
    python main.py projects --language Python --min-stars 1000
    python main.py projects --newly-added --page 2
    python main.py stats
    python main.py visit
    python main.py leaderboard --country India --limit 10
    python main.py rank torvalds
"""

import argparse
import sys
from typing import Optional

from client.api_client import OpenRankAPIError, OpenRankClient
from client.cache import ProjectBrowser
from client.formatting import display_score, format_number, rank_badge
from client.rank_poller import CANCELLED, FOUND, NOT_ELIGIBLE, NOT_FOUND, RankPoller
from models.data_models import DeveloperFilters, ProjectFilters
from utils.config_loader import load_config
from utils.logger import setup_logger
from storage.supabase_client import SupabaseClient

logger = setup_logger(name=__name__)


# ============================================================================
# Catalogue and discovery (talk to GitHub, Supabase and the scoring service)
# ============================================================================

def index_projects(
    query: str,
    limit: int = 100,
    language: Optional[str] = None,
    with_contributors: bool = True,
    supabase: SupabaseClient = None
) -> bool:
    """
    Populate the projects table from a GitHub repository search.

    Idempotent: projects are upserted by GitHub id, and stored ranks are
    recomputed across the whole catalogue afterwards.

    Returns:
        bool: True if successful, False otherwise
    """
    from fetchers.github import GitHubAPIError, GitHubFetcher
    from services.projects import ProjectService

    config = load_config()
    if supabase is None:
        supabase = SupabaseClient(
            config.credentials.supabase_url,
            config.credentials.supabase_key
        )
    if not config.credentials.github_token:
        logger.warning("GITHUB_TOKEN not set - indexing with unauthenticated requests (60 requests/hour)")

    fetcher = GitHubFetcher(config.credentials.github_token, wait_on_rate_limit=True)
    service = ProjectService(supabase, fetcher)

    logger.info("=" * 80)
    logger.info(f"INDEXING PROJECTS: '{query}'")
    logger.info("=" * 80)

    try:
        indexed = service.index_projects(
            query,
            limit=limit,
            language=language,
            with_contributors=with_contributors
        )
    except GitHubAPIError as e:
        logger.error(f"✗ GitHub request failed: {e}")
        return False
    except Exception as e:
        logger.error(f"✗ Failed to index projects: {e}")
        return False

    logger.info(f"✓ Indexed {indexed} projects")
    try:
        logger.info(f"  Catalogue size: {supabase.count_projects()} projects")
    except Exception as e:
        logger.warning(f"Could not count stored projects: {e}")
    return True


def discover_developers(
    limit: int = 100,
    location: Optional[str] = None,
    company: Optional[str] = None,
    supabase: SupabaseClient = None
) -> bool:
    """
    Queue well-followed GitHub users that are not ranked yet for scoring.

    Returns:
        bool: True if successful, False otherwise
    """
    from fetchers.github import GitHubAPIError, GitHubFetcher
    from scoring.client import ScoringServiceClient, ScoringServiceError
    from services.developers import DeveloperService

    config = load_config()
    if not config.credentials.scoring_service_url:
        logger.error("SCORING_SERVICE_URL not set in .env file")
        return False
    if supabase is None:
        supabase = SupabaseClient(
            config.credentials.supabase_url,
            config.credentials.supabase_key
        )

    service = DeveloperService(
        supabase,
        GitHubFetcher(config.credentials.github_token, wait_on_rate_limit=True),
        ScoringServiceClient(
            config.credentials.scoring_service_url,
            api_key=config.credentials.scoring_service_key
        )
    )

    logger.info("=" * 80)
    logger.info(f"DISCOVERING DEVELOPERS: {location or 'anywhere'}{f' @ {company}' if company else ''}")
    logger.info("=" * 80)

    try:
        result = service.auto_discover(limit=limit, location=location, company=company)
    except (GitHubAPIError, ScoringServiceError) as e:
        logger.error(f"✗ Discovery failed: {e}")
        return False

    logger.info(f"✓ {result.message}")
    logger.info(f"  New candidates: {result.discovered}")
    logger.info(f"  Accepted for scoring: {result.processed}")
    return True


# ============================================================================
# API queries (talk to a running OpenRank API)
# ============================================================================

def _log_projects(projects) -> None:
    logger.info("-" * 80)
    for project in projects:
        logger.info(
            f"#{project.rank:<4} {project.full_name or project.name}  "
            f"★ {format_number(project.stars)}  ⑂ {format_number(project.forks)}  "
            f"[{project.language} / {project.category}]  {project.last_updated}"
        )


def show_projects(browser: ProjectBrowser, filters: ProjectFilters) -> bool:
    try:
        response = browser.projects(filters)
    except OpenRankAPIError as e:
        logger.error(f"✗ {e}")
        return False

    logger.info(f"{response.total} projects")
    _log_projects(response.projects)
    return True


def show_newly_added(browser: ProjectBrowser, page: int = 1, limit: int = 10) -> bool:
    try:
        response = browser.newly_added(page=page, limit=limit)
    except OpenRankAPIError as e:
        logger.error(f"✗ {e}")
        return False

    logger.info(f"Newly added - page {response.page} of {response.total_pages} ({response.total} projects)")
    _log_projects(response.projects)
    return True


def show_stats(client: OpenRankClient) -> bool:
    try:
        stats = client.get_stats()
        visits = client.get_users_visited()
    except OpenRankAPIError as e:
        logger.error(f"✗ {e}")
        return False

    logger.info(f"Projects:     {format_number(stats.total_projects)}")
    logger.info(f"Commits:      {format_number(stats.total_commits)}")
    logger.info(f"Contributors: {format_number(stats.total_contributors)}")
    logger.info(f"Visits:       {format_number(visits.count)}")
    return True


def record_visit(client: OpenRankClient) -> bool:
    visit = client.track_visit()
    if visit is None:
        return False
    logger.info(f"✓ Visit recorded (total {visit.count})")
    return True


def show_leaderboard(
    client: OpenRankClient,
    filters: DeveloperFilters,
    page: int = 1,
    limit: int = 25
) -> bool:
    try:
        response = client.get_developers_ranking(page=page, limit=limit, filters=filters)
    except OpenRankAPIError as e:
        logger.error(f"✗ {e}")
        return False

    if not response.developers:
        logger.info("No developers ranked for these filters yet.")
        if response.auto_discovered:
            logger.info("Discovery has been started - check back in a few minutes.")
        return True

    logger.info(f"Page {response.page}/{response.total_pages} ({response.total} developers)")
    logger.info("-" * 80)
    for developer in response.developers:
        place = ", ".join(p for p in (developer.city, developer.country) if p)
        logger.info(
            f"#{developer.rank:<4} {developer.github_username:<24} "
            f"{display_score(developer.final_impact_score):>6}  "
            f"[{rank_badge(developer.rank)}]  {place}"
        )
    return True


def check_rank(client: OpenRankClient, username: str, filters: DeveloperFilters) -> bool:
    """Check a developer's rank, waiting while their profile is processed."""
    def report(response):
        if response.processing and response.message:
            logger.info(f"… {response.message}")

    poller = RankPoller(client, on_update=report)
    try:
        result = poller.check(username, filters)
    except OpenRankAPIError as e:
        logger.error(f"✗ {e}")
        return False
    except KeyboardInterrupt:
        poller.cancel()
        logger.info("Rank check cancelled.")
        return False

    if result.outcome == FOUND:
        response = result.response
        logger.info(
            f"✓ {username} is ranked #{response.rank} of {response.total} "
            f"(score {display_score(response.score)}, {rank_badge(response.rank)})"
        )
        return True
    if result.outcome == NOT_FOUND:
        logger.info(result.message or f"{username} is not in the leaderboard for these filters.")
        return True
    if result.outcome == NOT_ELIGIBLE:
        logger.warning(f"✗ {result.message or 'Not eligible for ranking.'}")
        return True
    if result.outcome == CANCELLED:
        logger.info("Rank check cancelled.")
        return False

    logger.warning(f"⚠ {result.message}")
    return False


def main():
    """Main CLI entrypoint."""
    parser = argparse.ArgumentParser(
        description="OpenRank - Discover open-source projects and rank developers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Start the API server
  python main.py serve --port 3001

  # Populate the catalogue with the 100 most-starred Rust projects
  python main.py index "is:public" --language Rust --limit 100

  # Check where a developer stands in Germany
  python main.py rank octocat --country Germany
        """
    )
    parser.add_argument(
        "--api-url",
        default=None,
        help="OpenRank API root for query commands (default: $OPENRANK_API_URL or http://localhost:3001)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Start the OpenRank API server")
    serve_parser.add_argument("--host", type=str, default="127.0.0.1",
                              help="Host to bind the server to (default: 127.0.0.1)")
    serve_parser.add_argument("--port", type=int, default=3001,
                              help="Port to run the API server on (default: 3001)")
    serve_parser.add_argument("--no-reload", action="store_true",
                              help="Disable auto-reload (use for production)")

    # Index command
    index_parser = subparsers.add_parser("index", help="Populate the project catalogue from a GitHub search")
    index_parser.add_argument("query", help="GitHub search text (e.g. 'web framework')")
    index_parser.add_argument("--limit", type=int, default=100,
                              help="Maximum number of projects to index (default: 100)")
    index_parser.add_argument("--language", default=None, help="Restrict to one language")
    index_parser.add_argument("--no-contributors", action="store_true",
                              help="Skip contributor counts (one extra API call per project)")

    # Discover command
    discover_parser = subparsers.add_parser("discover", help="Queue unranked GitHub users for scoring")
    discover_parser.add_argument("--limit", type=int, default=100,
                                 help="Maximum GitHub users to consider (default: 100)")
    discover_parser.add_argument("--location", default=None, help="GitHub profile location")
    discover_parser.add_argument("--company", default=None, help="GitHub profile company")

    # Projects command
    projects_parser = subparsers.add_parser("projects", help="List or search projects")
    projects_parser.add_argument("--search", default=None, help="Free-text search")
    projects_parser.add_argument("--category", default=None, help="Category (e.g. Frontend, AI/ML)")
    projects_parser.add_argument("--language", default=None, help="Primary language")
    projects_parser.add_argument("--sort-by", default=None,
                                 choices=["Stars", "Forks", "Recently Updated", "Most Active"])
    projects_parser.add_argument("--min-stars", type=int, default=None, help="Minimum stars")
    projects_parser.add_argument("--newly-added", action="store_true",
                                 help="Show the most recently indexed projects instead")
    projects_parser.add_argument("--page", type=int, default=1, help="Newly added page (default: 1)")
    projects_parser.add_argument("--limit", type=int, default=10, help="Newly added page size (default: 10)")

    subparsers.add_parser("stats", help="Show catalogue totals and visit count")
    subparsers.add_parser("visit", help="Record a visit")

    # Developer commands share the leaderboard filters
    filter_parser = argparse.ArgumentParser(add_help=False)
    filter_parser.add_argument("--country", default=None)
    filter_parser.add_argument("--city", default=None)
    filter_parser.add_argument("--company", default=None)
    filter_parser.add_argument("--profile-type", default=None)

    leaderboard_parser = subparsers.add_parser("leaderboard", parents=[filter_parser],
                                               help="Show the developer leaderboard")
    leaderboard_parser.add_argument("--page", type=int, default=1)
    leaderboard_parser.add_argument("--limit", type=int, default=25)

    rank_parser = subparsers.add_parser("rank", parents=[filter_parser],
                                        help="Check a developer's rank (waits while the profile is processed)")
    rank_parser.add_argument("username", help="GitHub username")

    args = parser.parse_args()

    # Show help if no command provided
    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command == "serve":
        from backend.server import run_server
        run_server(args.host, args.port, reload=not args.no_reload)
        sys.exit(0)

    if args.command in ("index", "discover"):
        try:
            config = load_config()
            supabase = SupabaseClient(
                config.credentials.supabase_url,
                config.credentials.supabase_key
            )
        except Exception as e:
            logger.error(f"Failed to initialize Supabase client: {e}")
            sys.exit(1)

        if args.command == "index":
            success = index_projects(
                args.query,
                limit=args.limit,
                language=args.language,
                with_contributors=not args.no_contributors,
                supabase=supabase
            )
        else:
            success = discover_developers(
                limit=args.limit,
                location=args.location,
                company=args.company,
                supabase=supabase
            )
        sys.exit(0 if success else 1)

    client = OpenRankClient(args.api_url)

    if args.command == "projects" and args.newly_added:
        success = show_newly_added(ProjectBrowser(client), page=args.page, limit=args.limit)
    elif args.command == "projects":
        success = show_projects(ProjectBrowser(client), ProjectFilters(
            search=args.search,
            category=args.category,
            language=args.language,
            sort_by=args.sort_by,
            min_stars=args.min_stars
        ))
    elif args.command == "stats":
        success = show_stats(client)
    elif args.command == "visit":
        success = record_visit(client)
    else:
        filters = DeveloperFilters(
            country=args.country,
            city=args.city,
            company=args.company,
            profile_type=args.profile_type
        )
        if args.command == "leaderboard":
            success = show_leaderboard(client, filters, page=args.page, limit=args.limit)
        else:
            success = check_rank(client, args.username, filters)

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
