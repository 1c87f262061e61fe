"""
Shared collaborators for the API routes.

Each client is built once per process on first use. Routes receive them
through FastAPI dependencies, so tests can swap them with
``app.dependency_overrides``.
"""

import logging
from functools import lru_cache
from typing import Optional

from fastapi import Depends

from fetchers.github import GitHubFetcher
from keywords.extractor import KeywordExtractor
from keywords.llm_client import LLMClient
from models.config_models import Config
from scoring.client import ScoringServiceClient
from services.developers import DeveloperService
from services.projects import ProjectService
from services.stats import StatsService
from storage.supabase_client import SupabaseClient
from utils.config_loader import load_config

logger = logging.getLogger(__name__)


@lru_cache
def get_config() -> Config:
    return load_config()


@lru_cache
def get_store() -> SupabaseClient:
    config = get_config()
    return SupabaseClient(
        config.credentials.supabase_url,
        config.credentials.supabase_key
    )


@lru_cache
def get_github() -> GitHubFetcher:
    token = get_config().credentials.github_token
    if not token:
        logger.warning("GITHUB_TOKEN not set - using unauthenticated GitHub requests (lower rate limits)")
    return GitHubFetcher(token)


@lru_cache
def get_scoring() -> Optional[ScoringServiceClient]:
    credentials = get_config().credentials
    if not credentials.scoring_service_url:
        logger.warning("SCORING_SERVICE_URL not set - developer scoring is disabled")
        return None
    return ScoringServiceClient(
        credentials.scoring_service_url,
        api_key=credentials.scoring_service_key
    )


@lru_cache
def get_keyword_extractor() -> KeywordExtractor:
    credentials = get_config().credentials
    api_key = credentials.llm_api_key
    if not api_key:
        logger.info("No LLM API key configured - keyword extraction uses the heuristic only")
        return KeywordExtractor()
    return KeywordExtractor(LLMClient(
        provider=credentials.llm_provider,
        model=credentials.llm_model,
        api_key=api_key
    ))


def get_project_service(
    store: SupabaseClient = Depends(get_store),
    github: GitHubFetcher = Depends(get_github),
) -> ProjectService:
    return ProjectService(store, github)


def get_stats_service(store: SupabaseClient = Depends(get_store)) -> StatsService:
    return StatsService(store)


def get_developer_service(
    store: SupabaseClient = Depends(get_store),
    github: GitHubFetcher = Depends(get_github),
    scoring: Optional[ScoringServiceClient] = Depends(get_scoring),
) -> DeveloperService:
    return DeveloperService(store, github, scoring)
