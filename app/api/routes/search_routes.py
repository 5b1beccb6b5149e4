"""
Search Routes

GET /search - Search positions, companies and news at once
"""

from fastapi import APIRouter, Depends, Query

from app.core.auth import get_backend_client
from app.services.backend_client import BackendClient
from app.services.search_service import global_search
from app.schemas.schemas import SearchResponse

router = APIRouter(prefix="/search", tags=["Search"])


@router.get("", response_model=SearchResponse)
def search(
    q: str = Query("", max_length=200, description="Text to look for"),
    backend: BackendClient = Depends(get_backend_client),
):
    """
    Global search.

    Matches are case-insensitive substrings. If the backend cannot serve
    one of the sources, results from the others are still returned.
    """
    return global_search(backend, q)
