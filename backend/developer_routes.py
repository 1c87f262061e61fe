"""
API routes for the developer leaderboard.

NOTE: Fixed paths (/rankings, /search, /countries, ...) are declared before
the /developers/{username} catch-all.
"""

import logging
from typing import Optional
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query

from backend.dependencies import get_developer_service
from fetchers.github import GitHubRateLimitError
from models.data_models import (
    AutoDiscoverResponse,
    CalculateResponse,
    Developer,
    DeveloperFilters,
    DeveloperSearchResponse,
    DevelopersRankingResponse,
    RankCheckResponse,
)
from scoring.client import DeveloperIneligibleError, DeveloperNotFoundError, ScoringServiceError
from services.developers import DeveloperService, ScoringUnavailableError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/developers", tags=["developers"])


def _filters(
    country: Optional[str] = Query(None, description="Country (case-insensitive)"),
    city: Optional[str] = Query(None, description="City (case-insensitive)"),
    company: Optional[str] = Query(None, description="Company (case-insensitive)"),
    profile_type: Optional[str] = Query(None, alias="profileType", description="Profile type"),
) -> DeveloperFilters:
    return DeveloperFilters(country=country, city=city, company=company, profile_type=profile_type)


@router.get("/rankings", response_model=DevelopersRankingResponse)
def get_rankings(
    background_tasks: BackgroundTasks,
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    limit: int = Query(25, ge=1, le=100, description="Developers per page (max 100)"),
    auto_discover: bool = Query(True, alias="autoDiscover", description="Discover developers in the background when the view is empty"),
    filters: DeveloperFilters = Depends(_filters),
    service: DeveloperService = Depends(get_developer_service),
):
    """
    Leaderboard page, highest impact score first.

    When auto-discovery is on and the first page is empty, a background job
    queues matching GitHub users for scoring and `autoDiscovered` is true.
    """
    try:
        response = service.get_rankings(filters, page=page, limit=limit)
    except Exception as e:
        logger.error(f"Failed to list developer rankings: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to list developer rankings: {str(e)}")

    if auto_discover and page == 1 and response.total == 0 and service.scoring is not None:
        background_tasks.add_task(service.discover_for_filters, filters)
        response.auto_discovered = True
        logger.info(f"Scheduled background discovery for {filters.as_dict() or 'all developers'}")

    return response


@router.post("/auto-discover", response_model=AutoDiscoverResponse)
def trigger_auto_discover(
    limit: int = Query(100, ge=1, le=100, description="Maximum GitHub users to consider"),
    service: DeveloperService = Depends(get_developer_service),
):
    """
    Queue well-followed GitHub users that are not ranked yet.

    Raises:
    - 429: GitHub rate limit exceeded
    - 503: Scoring service not configured or unreachable
    """
    try:
        return service.auto_discover(limit=limit)
    except GitHubRateLimitError as e:
        raise HTTPException(status_code=429, detail=str(e))
    except (ScoringUnavailableError, ScoringServiceError) as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.error(f"Auto-discovery failed: {e}")
        raise HTTPException(status_code=500, detail=f"Auto-discovery failed: {str(e)}")


@router.get("/search", response_model=DeveloperSearchResponse)
def search_developers(
    q: str = Query(..., min_length=1, description="Username or name fragment"),
    limit: int = Query(20, ge=1, le=100),
    service: DeveloperService = Depends(get_developer_service),
):
    try:
        return service.search(q, limit)
    except Exception as e:
        logger.error(f"Failed to search developers for '{q}': {e}")
        raise HTTPException(status_code=500, detail=f"Failed to search developers: {str(e)}")


@router.get("/countries")
def get_countries(service: DeveloperService = Depends(get_developer_service)):
    try:
        return {"countries": service.get_countries()}
    except Exception as e:
        logger.error(f"Failed to list countries: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to list countries: {str(e)}")


@router.get("/cities")
def get_cities(
    country: str = Query(..., min_length=1),
    service: DeveloperService = Depends(get_developer_service),
):
    try:
        return {"cities": service.get_cities(country)}
    except Exception as e:
        logger.error(f"Failed to list cities for {country}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to list cities: {str(e)}")


@router.get("/companies")
def get_companies(service: DeveloperService = Depends(get_developer_service)):
    try:
        return {"companies": service.get_companies()}
    except Exception as e:
        logger.error(f"Failed to list companies: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to list companies: {str(e)}")


@router.get("/profile-types")
def get_profile_types(service: DeveloperService = Depends(get_developer_service)):
    try:
        return {"profileTypes": service.get_profile_types()}
    except Exception as e:
        logger.error(f"Failed to list profile types: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to list profile types: {str(e)}")


@router.get("/check-rank/{username}", response_model=RankCheckResponse)
def check_rank(
    username: str,
    filters: DeveloperFilters = Depends(_filters),
    service: DeveloperService = Depends(get_developer_service),
):
    """
    Rank of one developer under the given filters.

    Response states:
    - eligible=false: profile does not qualify (message says why)
    - processing=true: scoring in progress, poll again
    - rank=0: processed but not in the filtered leaderboard
    - rank>0: position out of `total`

    Raises:
    - 429: GitHub rate limit exceeded
    - 503: Scoring service unreachable
    """
    try:
        return service.check_rank(username, filters)
    except GitHubRateLimitError as e:
        raise HTTPException(status_code=429, detail=str(e))
    except ScoringServiceError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to check rank for {username}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to check rank: {str(e)}")


@router.post("/{username}/calculate", response_model=CalculateResponse)
def calculate_developer(
    username: str,
    service: DeveloperService = Depends(get_developer_service),
):
    """
    Score a developer now and store the result.

    Raises:
    - 404: GitHub user not found
    - 422: Developer not eligible for ranking
    - 502: Scoring service error
    - 503: Scoring service not configured or unreachable
    """
    try:
        response = service.calculate(username)
        logger.info(f"Calculated {username}: {response.developer.final_impact_score:.1f}")
        return response
    except DeveloperNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DeveloperIneligibleError as e:
        raise HTTPException(status_code=422, detail=e.message)
    except ScoringUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except ScoringServiceError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to calculate {username}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to calculate developer: {str(e)}")


@router.get("/{username}", response_model=Developer)
def get_developer(
    username: str,
    service: DeveloperService = Depends(get_developer_service),
):
    """
    Raises:
    - 404: Developer not ranked
    """
    try:
        developer = service.get_developer(username)
    except Exception as e:
        logger.error(f"Failed to get developer {username}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to get developer: {str(e)}")

    if developer is None:
        logger.warning(f"Developer not found: {username}")
        raise HTTPException(status_code=404, detail=f"Developer not found: {username}")
    return developer
