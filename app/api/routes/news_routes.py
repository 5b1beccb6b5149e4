"""
News Routes

GET /news - Published news for the caller's audience
GET /news/admin - All news (admin)
GET /news/admin/archived - Archived news (admin)
POST /news/admin - Publish news
PATCH /news/admin/{news_id} - Edit news
PATCH /news/admin/{news_id}/archive - Archive
PATCH /news/admin/{news_id}/unarchive - Restore from archive
DELETE /news/admin/{news_id} - Delete
GET /news/{news_id} - One news item
"""

from typing import List

from fastapi import APIRouter, Depends

from app.core.auth import get_backend_client, require_token
from app.services.backend_client import BackendClient
from app.schemas.schemas import MessageResponse, NewsCreate, NewsItem, NewsUpdate

router = APIRouter(prefix="/news", tags=["News"])

admin = [Depends(require_token)]


@router.get("", response_model=List[NewsItem])
def list_news(backend: BackendClient = Depends(get_backend_client)):
    return backend.news.list()


# ============================================================
# ADMIN
# ============================================================

@router.get("/admin", response_model=List[NewsItem], dependencies=admin)
def admin_list_news(backend: BackendClient = Depends(get_backend_client)):
    return backend.news.admin_list()


@router.get("/admin/archived", response_model=List[NewsItem], dependencies=admin)
def admin_list_archived(backend: BackendClient = Depends(get_backend_client)):
    return backend.news.admin_list_archived()


@router.post("/admin", response_model=NewsItem, status_code=201, dependencies=admin)
def create_news(data: NewsCreate, backend: BackendClient = Depends(get_backend_client)):
    return backend.news.admin_create(data)


@router.patch("/admin/{news_id}", response_model=NewsItem, dependencies=admin)
def update_news(news_id: str, data: NewsUpdate, backend: BackendClient = Depends(get_backend_client)):
    return backend.news.admin_update(news_id, data)


@router.patch("/admin/{news_id}/archive", response_model=MessageResponse, dependencies=admin)
def archive_news(news_id: str, backend: BackendClient = Depends(get_backend_client)):
    return backend.news.archive(news_id)


@router.patch("/admin/{news_id}/unarchive", response_model=MessageResponse, dependencies=admin)
def unarchive_news(news_id: str, backend: BackendClient = Depends(get_backend_client)):
    return backend.news.unarchive(news_id)


@router.delete("/admin/{news_id}", response_model=MessageResponse, dependencies=admin)
def delete_news(news_id: str, backend: BackendClient = Depends(get_backend_client)):
    return backend.news.remove(news_id)


@router.get("/{news_id}", response_model=NewsItem)
def get_news(news_id: str, backend: BackendClient = Depends(get_backend_client)):
    return backend.news.get(news_id)
