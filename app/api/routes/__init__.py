"""
API Routes - Combines all route modules into single router.
"""

from fastapi import APIRouter

from app.api.routes.auth_routes import router as auth_router
from app.api.routes.position_routes import router as position_router
from app.api.routes.application_routes import router as application_router
from app.api.routes.company_routes import router as company_router
from app.api.routes.user_routes import router as user_router
from app.api.routes.news_routes import router as news_router
from app.api.routes.geo_routes import router as geo_router
from app.api.routes.search_routes import router as search_router

# Main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(auth_router)
api_router.include_router(position_router)
api_router.include_router(application_router)
api_router.include_router(company_router)
api_router.include_router(user_router)
api_router.include_router(news_router)
api_router.include_router(geo_router)
api_router.include_router(search_router)
