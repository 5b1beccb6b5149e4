"""
Internship Placement Portal - API Gateway

FastAPI service in front of the recruiting backend:
- Position browsing: filter, sort, facets, CSV export
- Map view: geocoding with cache, city table fallback and throttled batches
- Pass-through for applications, companies, users and news
- JWT issued by the backend, forwarded as-is

Run: uvicorn app.main:app --reload
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import api_router
from app.core.config import get_settings
from app.core.exceptions import BackendError, GeocodingError
from app.core.logging_config import configure_logging
from app.services.backend_client import test_backend_connection

settings = get_settings()
configure_logging(settings)

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Internship Placement Portal",
    description="""
    Gateway for the university internship and dual-training portal.

    ## Features
    - **Positions**: Search, filter by city / company / tags / deadline, sort, export
    - **Map**: Positions with coordinates, distance from the student
    - **Applications**: Apply, retract, evaluate
    - **Companies, Users, News**: Administration

    ## Storage
    - Recruiting backend: all portal data
    - Geocoding cache: JSON file, memory or MongoDB
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router, prefix="/api")


# ============================================================
# ERROR HANDLERS
# ============================================================

@app.exception_handler(BackendError)
async def backend_error_handler(request: Request, exc: BackendError):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(GeocodingError)
async def geocoding_error_handler(request: Request, exc: GeocodingError):
    logger.warning("Geocoding failed for %s: %s", request.url.path, exc)
    return JSONResponse(status_code=502, content={"message": f"Geocoding failed: {exc}"})


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return JSONResponse(status_code=400, content={"message": str(exc)})


# Startup event
@app.on_event("startup")
async def startup_event():
    """Initialize MongoDB indexes when the geocoding cache lives there."""
    if settings.geocode_cache_backend != "mongo":
        return
    from app.db.mongodb import init_mongo_indexes
    try:
        init_mongo_indexes()
    except Exception as e:
        logger.warning("MongoDB index initialization failed: %s", e)


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check."""
    status = {
        "status": "healthy",
        "backend": "connected" if test_backend_connection(settings.backend_api_url) else "disconnected",
        "geocodeCache": settings.geocode_cache_backend,
    }
    if settings.geocode_cache_backend == "mongo":
        from app.db.mongodb import test_mongo_connection
        status["mongodb"] = "connected" if test_mongo_connection() else "disconnected"
    return status
