"""
Global Search Service

One free-text query over positions, companies and news.

HOW IT WORKS:
1. Fetch a bounded slice of each source from the backend
2. Case-insensitive substring match per source:
   - positions: title, company name, description
   - companies: name, description
   - news: title, content
3. A source the backend fails to serve contributes no results; the
   others are still returned
"""

import logging
from typing import Callable, List

from app.core.exceptions import BackendError
from app.services.backend_client import BackendClient
from app.schemas.schemas import SearchResponse, SearchResult, SearchResultType
from app.utils.positions import lower

logger = logging.getLogger(__name__)

POSITION_LIMIT = 50
COMPANY_LIMIT = 50
NEWS_LIMIT = 20


def _contains(needle: str, *fields) -> bool:
    return any(needle in lower(f) for f in fields)


def _fetch(source: str, fetch: Callable[[], list]) -> list:
    try:
        return fetch()
    except BackendError as exc:
        logger.warning("Search source %s unavailable: %s", source, exc)
        return []


def search_positions(backend: BackendClient, needle: str) -> List[SearchResult]:
    positions = _fetch("positions", lambda: backend.positions.list_public({"limit": POSITION_LIMIT}))
    return [
        SearchResult(
            type=SearchResultType.position,
            id=p.id,
            title=p.title,
            subtitle=(p.company.name if p.company else "") or "Unknown company",
        )
        for p in positions
        if _contains(needle, p.title, p.company.name if p.company else None, p.description)
    ]


def search_companies(backend: BackendClient, needle: str) -> List[SearchResult]:
    companies = _fetch("companies", lambda: backend.companies.list({"limit": COMPANY_LIMIT}))
    return [
        SearchResult(
            type=SearchResultType.company,
            id=c.id,
            title=c.name,
            subtitle=c.website or "Company profile",
        )
        for c in companies
        if _contains(needle, c.name, c.description)
    ]


def search_news(backend: BackendClient, needle: str) -> List[SearchResult]:
    news = _fetch("news", lambda: backend.news.list({"limit": NEWS_LIMIT}))
    return [
        SearchResult(type=SearchResultType.news, id=n.id, title=n.title, subtitle="News")
        for n in news
        if _contains(needle, n.title, n.content)
    ]


def global_search(backend: BackendClient, query: str) -> SearchResponse:
    """Positions first, then companies, then news. Blank queries match nothing."""
    needle = lower(query)
    if not needle:
        return SearchResponse(query=query, results=[])

    results = (
        search_positions(backend, needle)
        + search_companies(backend, needle)
        + search_news(backend, needle)
    )
    return SearchResponse(query=query, results=results)
