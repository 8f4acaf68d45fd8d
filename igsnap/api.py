"""FastAPI web server for igsnap."""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from igsnap import ProfileScraper, ScraperConfig, __version__
from igsnap.core.exporter import to_dict
from igsnap.exceptions import (
    IgsnapError,
    InvalidInputError,
    NotConfiguredError,
    PersistenceError,
)
from igsnap.logging import get_logger
from igsnap.models.snapshot import ProfileSnapshot


# Request/Response models
class ScrapeRequest(BaseModel):
    """Request body for a scrape."""

    username: Optional[str] = Field(None, description="Instagram username to scrape")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: str


class ConfigResponse(BaseModel):
    """Non-secret view of the active configuration."""

    apify_configured: bool = Field(..., description="Whether an Apify token is set.")
    apify_actor_id: str = Field(..., description="Actor started for each scrape.")
    results_limit: int = Field(..., description="Maximum records the actor returns per run.")
    fetch_attempts: int = Field(..., description="Dataset fetch attempts before degrading to an empty result.")
    fetch_retry_delay_seconds: float = Field(..., description="Fixed delay between fetch attempts.")
    profile_matcher: str = Field(..., description="Strategy used to pick the profile record.")
    storage_targets: list[str] = Field(..., description="Where snapshots are persisted.")
    document_backend: str = Field(..., description="Document store implementation.")
    object_store_configured: bool = Field(..., description="Whether an S3 bucket is set for media relocation.")
    relocate_media: bool = Field(..., description="Copy images into the object store when possible.")
    scrape_on_miss: bool = Field(..., description="Read endpoint scrapes when nothing is stored.")


log = get_logger("api")

# Global scraper instance
_scraper: Optional[ProfileScraper] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage scraper lifecycle."""
    global _scraper
    _scraper = ProfileScraper(ScraperConfig())
    await _scraper.__aenter__()
    yield
    await _scraper.__aexit__(None, None, None)
    _scraper = None


def get_scraper() -> ProfileScraper:
    """Dependency returning the process-wide scraper."""
    if _scraper is None:
        raise NotConfiguredError("Scraper is not initialized")
    return _scraper


# Create FastAPI app
app = FastAPI(
    title="igsnap API",
    description="Instagram profile snapshots via Apify",
    version=__version__,
    lifespan=lifespan,
)


def _error_response(status_code: int, message: str, error: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message, "error": error})


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError):
    return _error_response(400, "Invalid request", str(exc.errors()))


@app.exception_handler(InvalidInputError)
async def handle_invalid_input(request: Request, exc: InvalidInputError):
    return _error_response(400, str(exc), "invalid_input")


@app.exception_handler(NotConfiguredError)
async def handle_not_configured(request: Request, exc: NotConfiguredError):
    log.error("not_configured", path=request.url.path, error=str(exc))
    return _error_response(500, "Server is not configured", str(exc))


@app.exception_handler(PersistenceError)
async def handle_persistence_error(request: Request, exc: PersistenceError):
    return _error_response(500, "Failed to store profile data", str(exc))


@app.exception_handler(IgsnapError)
async def handle_igsnap_error(request: Request, exc: IgsnapError):
    return _error_response(500, "Scraping failed", str(exc))


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    log.exception("unexpected_error", path=request.url.path)
    return _error_response(500, "Unexpected error", str(exc))


@app.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check():
    """Check API health status."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


@app.post("/api/scrape", tags=["Scraping"])
async def scrape_post(request: ScrapeRequest, scraper: ProfileScraper = Depends(get_scraper)):
    """
    Scrape a profile, store the snapshot and return it.

    Unlike the read endpoint, a failed write is reported as a 500.
    """
    snapshot = await scraper.scrape(request.username)
    await scraper.store(snapshot)
    return to_dict(snapshot)


@app.get("/api/profile/{username}", tags=["Profiles"])
async def get_profile(username: str, scraper: ProfileScraper = Depends(get_scraper)):
    """
    Return the stored snapshot for a profile, scraping it on a miss.

    Responds 404 with a not_found snapshot when nothing can be produced.
    """
    snapshot = await scraper.lookup(username)
    if snapshot is None:
        not_found = ProfileSnapshot.not_found(username.strip().lstrip("@").lower())
        return JSONResponse(status_code=404, content=to_dict(not_found))
    return to_dict(snapshot)


@app.get(
    "/api/config",
    response_model=ConfigResponse,
    tags=["System"],
    summary="Get active configuration",
)
async def get_config(scraper: ProfileScraper = Depends(get_scraper)):
    """
    Non-secret view of the configuration the server runs with.

    **Configuration is set via environment variables** with the `IGSNAP_`
    prefix, or the conventional names for credentials:
    - `APIFY_API_TOKEN`
    - `MONGODB_URI`, `MONGODB_DB_NAME`
    - `AWS_REGION`, `AWS_ACCESS_KEY_ID`, `AWS_SECRET_ACCESS_KEY`, `S3_BUCKET_NAME`
    """
    config = scraper.config
    return ConfigResponse(
        apify_configured=bool(config.apify_token),
        apify_actor_id=config.apify_actor_id,
        results_limit=config.results_limit,
        fetch_attempts=config.fetch_attempts,
        fetch_retry_delay_seconds=config.fetch_retry_delay_seconds,
        profile_matcher=config.profile_matcher.value,
        storage_targets=sorted(t.value for t in config.storage_targets),
        document_backend=config.document_backend.value,
        object_store_configured=config.object_store_configured,
        relocate_media=config.relocate_media,
        scrape_on_miss=config.scrape_on_miss,
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
