"""
API routes for project discovery.

Provides the project list (GitHub search proxy or stored catalogue), keyword
extraction for natural-language searches, the "Newly Added" view,
repository details, and the category/language filter options.
"""

import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query

from backend.dependencies import get_keyword_extractor, get_project_service
from fetchers.github import GitHubAPIError, GitHubRateLimitError
from keywords.extractor import KeywordExtractor
from models.data_models import (
    KeywordExtractionRequest,
    KeywordExtractionResponse,
    NewlyAddedResponse,
    ProjectFilters,
    ProjectsResponse,
    RepositoryDetails,
)
from services.projects import ProjectService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["projects"])


@router.get("/projects", response_model=ProjectsResponse)
def get_projects(
    category: Optional[str] = Query(None, description="Category bucket (e.g., 'Frontend', 'AI/ML')"),
    language: Optional[str] = Query(None, description="Primary language (e.g., 'Python')"),
    sort_by: Optional[str] = Query(None, alias="sortBy", description="'Stars', 'Forks', 'Recently Updated' or 'Most Active'"),
    min_stars: Optional[int] = Query(None, alias="minStars", ge=0, description="Minimum star count"),
    search: Optional[str] = Query(None, description="Free-text search"),
    service: ProjectService = Depends(get_project_service),
):
    """
    List projects.

    With search text or any filter the request is forwarded to GitHub search;
    otherwise the stored catalogue is returned in rank order.

    Raises:
    - 429: GitHub rate limit exceeded
    """
    filters = ProjectFilters(
        category=category,
        language=language,
        sort_by=sort_by,
        min_stars=min_stars,
        search=search,
    )
    try:
        return service.find_all(filters)
    except GitHubRateLimitError as e:
        raise HTTPException(status_code=429, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to list projects: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to list projects: {str(e)}")


@router.post("/projects/extract-keywords", response_model=KeywordExtractionResponse)
def extract_keywords(
    request: KeywordExtractionRequest,
    extractor: KeywordExtractor = Depends(get_keyword_extractor),
):
    """
    Turn a natural-language request into search keywords.

    Returns:
    - keywords: Extracted keywords (at most 5)
    - searchQuery: Query to send to GET /api/projects?search=
    """
    try:
        return extractor.extract(request.query)
    except Exception as e:
        logger.error(f"Failed to extract keywords: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to extract keywords: {str(e)}")


@router.get("/projects/newly-added", response_model=NewlyAddedResponse)
def get_newly_added(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    limit: int = Query(10, ge=1, le=100, description="Projects per page (max 100)"),
    service: ProjectService = Depends(get_project_service),
):
    """Stored projects, most recently added first."""
    try:
        response = service.newly_added(page, limit)
        logger.info(f"Listed {len(response.projects)} newly added projects (page {page}, total {response.total})")
        return response
    except Exception as e:
        logger.error(f"Failed to list newly added projects: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to list newly added projects: {str(e)}")


@router.get("/projects/details/{owner}/{repo}", response_model=RepositoryDetails)
def get_repository_details(
    owner: str,
    repo: str,
    service: ProjectService = Depends(get_project_service),
):
    """
    Repository details for the project modal.

    Raises:
    - 404: Repository not found on GitHub
    - 429: GitHub rate limit exceeded
    """
    try:
        return service.get_repository_details(owner, repo)
    except GitHubAPIError as e:
        logger.warning(f"GitHub error for {owner}/{repo} details: {e} ({e.status_code})")
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to fetch details for {owner}/{repo}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to fetch repository: {str(e)}")


@router.get("/categories", response_model=List[str])
def get_categories(service: ProjectService = Depends(get_project_service)):
    """Distinct categories in the stored catalogue."""
    try:
        return service.get_categories()
    except Exception as e:
        logger.error(f"Failed to list categories: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to list categories: {str(e)}")


@router.get("/languages", response_model=List[str])
def get_languages(service: ProjectService = Depends(get_project_service)):
    """Distinct languages in the stored catalogue."""
    try:
        return service.get_languages()
    except Exception as e:
        logger.error(f"Failed to list languages: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to list languages: {str(e)}")
