"""API routes for site statistics and visit tracking."""

import logging
from fastapi import APIRouter, Depends, HTTPException

from backend.dependencies import get_stats_service
from models.data_models import StatsResponse, VisitCount
from services.stats import StatsService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/stats", tags=["stats"])


@router.get("", response_model=StatsResponse)
def get_stats(service: StatsService = Depends(get_stats_service)):
    """
    Catalogue totals for the stats banner.

    Returns:
    - totalProjects: Stored projects
    - totalCommits: Sum of forks (approximation)
    - totalContributors: Sum of contributor counts
    """
    try:
        return service.get_stats()
    except Exception as e:
        logger.error(f"Failed to get stats: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to get stats: {str(e)}")


@router.post("/visit", response_model=VisitCount)
def track_visit(service: StatsService = Depends(get_stats_service)):
    """Record a page load; returns the new visit count."""
    try:
        visit = service.track_visit()
        logger.debug(f"Visit tracked (count {visit.count})")
        return visit
    except Exception as e:
        logger.error(f"Failed to track visit: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to track visit: {str(e)}")


@router.get("/users-visited", response_model=VisitCount)
def get_users_visited(service: StatsService = Depends(get_stats_service)):
    try:
        return service.get_users_visited()
    except Exception as e:
        logger.error(f"Failed to get visit count: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to get visit count: {str(e)}")
