"""
Position Filter Service

Client-facing browse pipeline over the public position list:

    positions -> includes() per FilterState -> sort_positions() -> page

HOW IT WORKS:
1. Every predicate is evaluated against one position; any miss excludes it
2. Malformed deadlines never raise, they mean "no deadline"
3. Sorting is stable, so equal keys keep the backend order and paging
   stays reproducible
4. Facets (cities, companies, tag categories, tag names) are computed from
   the unfiltered list so the filter options do not collapse as you narrow
"""

from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from app.schemas.schemas import (
    DeadlineFilter, Facets, FilterState, FILTER_ALL, Position, PositionPage, SortKey
)
from app.utils.collation import hungarian_sort_key
from app.utils.dates import is_expired, parse_date, timestamp, utc_now
from app.utils.positions import lower, norm, tag_category, tag_name

DEADLINE_WINDOW_DAYS = {
    DeadlineFilter.within_7_days: 7,
    DeadlineFilter.within_30_days: 30,
    DeadlineFilter.within_90_days: 90,
}


def _is_all(value: Optional[str]) -> bool:
    return not norm(value) or norm(value) == FILTER_ALL


def _company_name(position: Position) -> str:
    return position.company.name if position.company else ""


def _city(position: Position) -> str:
    return (position.location.city or "") if position.location else ""


# ============================================================
# PREDICATES
# ============================================================

def matches_search(position: Position, search: str) -> bool:
    """Case-insensitive substring over title, company name and city."""
    needle = lower(search)
    if not needle:
        return True
    return any(
        needle in lower(field)
        for field in (position.title, _company_name(position), _city(position))
    )


def matches_deadline(position: Position, deadline_filter: DeadlineFilter, now: datetime) -> bool:
    if deadline_filter == DeadlineFilter.all:
        return True

    deadline = parse_date(position.deadline)
    if deadline is None:
        return deadline_filter == DeadlineFilter.no_deadline
    if deadline_filter == DeadlineFilter.no_deadline:
        return False

    days = DEADLINE_WINDOW_DAYS[deadline_filter]
    return now <= deadline <= now + timedelta(days=days)


def includes(position: Position, filters: FilterState, now: Optional[datetime] = None) -> bool:
    """Return True if `position` passes every predicate of `filters`."""
    now = now or utc_now()

    if filters.active_only and is_expired(position.deadline, now):
        return False

    if not matches_search(position, filters.search):
        return False

    if not _is_all(filters.city) and lower(_city(position)) != lower(filters.city):
        return False

    if not _is_all(filters.company) and lower(_company_name(position)) != lower(filters.company):
        return False

    if not _is_all(filters.tag_category):
        wanted = lower(filters.tag_category)
        if not any(lower(tag_category(t)) == wanted for t in position.tags):
            return False

    if filters.selected_tags:
        names = {lower(tag_name(t)) for t in position.tags}
        if not all(lower(tag) in names for tag in filters.selected_tags):
            return False

    return matches_deadline(position, filters.deadline_filter, now)


def filter_positions(
    positions: Iterable[Position], filters: FilterState, now: Optional[datetime] = None
) -> List[Position]:
    now = now or utc_now()
    return [p for p in positions if includes(p, filters, now)]


# ============================================================
# SORTING
# ============================================================

def _newest_key(position: Position) -> float:
    # Missing timestamps count as 0 and land at the end
    return timestamp(position.created_at) or timestamp(position.updated_at)


def _deadline_key(descending: bool):
    def key(position: Position):
        deadline = parse_date(position.deadline)
        if deadline is None:
            return (1, 0.0)
        ts = deadline.timestamp()
        return (0, -ts if descending else ts)
    return key


def sort_positions(positions: Iterable[Position], sort_key: SortKey) -> List[Position]:
    """Stable sort for the given key; returns a new list."""
    items = list(positions)

    if sort_key == SortKey.newest:
        # reverse=True keeps equal elements in input order
        return sorted(items, key=_newest_key, reverse=True)
    if sort_key == SortKey.deadline_asc:
        return sorted(items, key=_deadline_key(descending=False))
    if sort_key == SortKey.deadline_desc:
        return sorted(items, key=_deadline_key(descending=True))
    if sort_key == SortKey.title_asc:
        return sorted(items, key=lambda p: hungarian_sort_key(p.title))
    raise ValueError(f"Unknown sort key: {sort_key}")


# ============================================================
# FACETS + PAGING
# ============================================================

def collect_facets(positions: Iterable[Position]) -> Facets:
    """Distinct filter options present in the list, alphabetically."""
    cities, companies, categories, tags = set(), set(), set(), set()
    for p in positions:
        if _city(p):
            cities.add(_city(p))
        if _company_name(p):
            companies.add(_company_name(p))
        for t in p.tags:
            if tag_category(t):
                categories.add(tag_category(t))
            if tag_name(t):
                tags.add(tag_name(t))

    def ordered(values):
        return sorted(values, key=hungarian_sort_key)

    return Facets(
        cities=ordered(cities),
        companies=ordered(companies),
        tag_categories=ordered(categories),
        tags=ordered(tags),
    )


def browse_positions(
    positions: List[Position],
    filters: FilterState,
    page: int = 1,
    page_size: int = 20,
    now: Optional[datetime] = None,
) -> PositionPage:
    """Filter, sort and paginate; facets come from the unfiltered list."""
    ordered = sort_positions(filter_positions(positions, filters, now), filters.sort_key)
    offset = (page - 1) * page_size
    return PositionPage(
        items=ordered[offset:offset + page_size],
        total=len(ordered),
        page=page,
        page_size=page_size,
        facets=collect_facets(positions),
    )
