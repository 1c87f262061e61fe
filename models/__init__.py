"""Data models for OpenRank."""

from models.config_models import Config, CredentialsConfig
from models.data_models import (
    Developer,
    DeveloperFilters,
    Project,
    ProjectFilters,
    RankCheckResponse,
    RepositoryDetails,
    StatsResponse,
    Visit,
)

__all__ = [
    "Config",
    "CredentialsConfig",
    "Developer",
    "DeveloperFilters",
    "Project",
    "ProjectFilters",
    "RankCheckResponse",
    "RepositoryDetails",
    "StatsResponse",
    "Visit",
]
