"""
FastAPI application for the OpenRank API.

Serves project discovery, site stats, and the developer leaderboard
to the web frontend.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.dependencies import get_config
from utils.logger import setup_logger

config = get_config()
logger = setup_logger(config.log_level, name=__name__)

# Create FastAPI app
app = FastAPI(
    title="OpenRank API",
    description="Open-source project discovery and developer rankings backed by the GitHub API",
    version="1.0.0"
)

# Allow the web frontend to call the API
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Import and include routes
from backend.routes import router as projects_router
from backend.stats_routes import router as stats_router
from backend.developer_routes import router as developers_router

app.include_router(projects_router)
app.include_router(stats_router)
app.include_router(developers_router)

logger.info(f"FastAPI app initialized (CORS origins: {', '.join(config.cors_origins)})")
