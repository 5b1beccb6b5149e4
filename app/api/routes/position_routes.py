"""
Position Routes

GET /positions - Browse public positions (filter, sort, paginate, facets)
GET /positions/export - Filtered list as CSV
GET /positions/map - Filtered list with map coordinates
GET /positions/company/{company_id} - Positions of one company
GET /positions/{position_id} - Position details
GET /positions/{position_id}/distance - Distance from caller to the workplace
POST /positions - Create position (company admin)
PATCH /positions/{position_id} - Update position
DELETE /positions/{position_id} - Delete position
PATCH /positions/{position_id}/deactivate - Close position
"""

import asyncio
import contextlib
import csv
import io
import logging
import threading
from datetime import date
from typing import List
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response

from app.core.auth import get_backend_client, require_token
from app.core.config import get_settings
from app.services.backend_client import BackendClient
from app.services.geocoding_service import (
    GeocodingQueue, GeocodingService, get_geocoding_queue, get_geocoding_service
)
from app.services.position_filter_service import (
    browse_positions, filter_positions, sort_positions
)
from app.schemas.schemas import (
    Coordinates, DeadlineFilter, FilterState, FILTER_ALL, MapPositionsResponse,
    MessageResponse, Position, PositionCreate, PositionDeactivateResponse,
    PositionDistanceResponse, PositionPage, PositionUpdate, SortKey
)
from app.utils.dates import format_hu_date
from app.utils.geo import distance_km

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/positions", tags=["Positions"])

EXPORT_COLUMNS = ["Title", "Company", "City", "Status", "Deadline", "Created"]
DISCONNECT_POLL_SECONDS = 0.5


def get_filter_state(
    search: str = Query("", description="Matches title, company or city"),
    city: str = Query(FILTER_ALL),
    company: str = Query(FILTER_ALL),
    tag_category: str = Query(FILTER_ALL, alias="tagCategory"),
    deadline_filter: DeadlineFilter = Query(DeadlineFilter.all, alias="deadlineFilter"),
    active_only: bool = Query(True, alias="activeOnly"),
    tags: List[str] = Query([], description="All listed tags must be present"),
    sort: SortKey = Query(SortKey.newest),
) -> FilterState:
    """Dependency - FilterState from query parameters."""
    return FilterState(
        search=search,
        city=city,
        company=company,
        tag_category=tag_category,
        deadline_filter=deadline_filter,
        active_only=active_only,
        selected_tags=tags,
        sort_key=sort,
    )


def load_public_positions(backend: BackendClient) -> List[Position]:
    return backend.positions.list_public({"limit": get_settings().positions_fetch_limit})


@router.get("", response_model=PositionPage)
def browse(
    filters: FilterState = Depends(get_filter_state),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100, alias="pageSize"),
    backend: BackendClient = Depends(get_backend_client),
):
    """
    Browse public positions.

    Filters are combined with AND. Facets list every city, company, tag
    category and tag of the unfiltered list, for building filter menus.
    """
    return browse_positions(load_public_positions(backend), filters, page=page, page_size=page_size)


@router.get("/export")
def export_csv(
    filters: FilterState = Depends(get_filter_state),
    backend: BackendClient = Depends(get_backend_client),
):
    """Download the filtered, sorted list as CSV."""
    tz = ZoneInfo(get_settings().display_timezone)
    positions = sort_positions(filter_positions(load_public_positions(backend), filters), filters.sort_key)

    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(EXPORT_COLUMNS)
    for p in positions:
        writer.writerow([
            p.title,
            p.company.name if p.company else "-",
            (p.location.city if p.location else None) or "-",
            "Active" if p.is_active else "Inactive",
            format_hu_date(p.deadline, tz),
            format_hu_date(p.created_at, tz),
        ])

    filename = f"positions_{date.today().isoformat()}.csv"
    return Response(
        content=buffer.getvalue(),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


async def cancel_on_disconnect(
    request: Request, cancel: threading.Event, interval: float = DISCONNECT_POLL_SECONDS
):
    """Set `cancel` once the client has gone away."""
    while not cancel.is_set():
        if await request.is_disconnected():
            logger.info("Client left %s, cancelling geocoding batch", request.url.path)
            cancel.set()
            return
        await asyncio.sleep(interval)


@router.get("/map", response_model=MapPositionsResponse)
async def positions_map(
    request: Request,
    filters: FilterState = Depends(get_filter_state),
    backend: BackendClient = Depends(get_backend_client),
    queue: GeocodingQueue = Depends(get_geocoding_queue),
):
    """
    Filtered positions with coordinates, in list order.

    Positions whose place cannot be resolved are left out (see `skipped`).
    Geocoding is throttled, so uncached batches take a while; if the
    client disconnects meanwhile the batch stops and `cancelled` is set.
    """
    loaded = await run_in_threadpool(load_public_positions, backend)
    positions = sort_positions(filter_positions(loaded, filters), filters.sort_key)

    cancel = threading.Event()
    watcher = asyncio.create_task(cancel_on_disconnect(request, cancel))
    try:
        result = await run_in_threadpool(queue.run, positions, cancel)
    finally:
        cancel.set()
        watcher.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await watcher

    return MapPositionsResponse(
        items=result.items, total=len(positions), skipped=result.skipped, cancelled=result.cancelled
    )


@router.get("/company/{company_id}", response_model=List[Position])
def list_company_positions(company_id: str, backend: BackendClient = Depends(get_backend_client)):
    return backend.positions.list_by_company(company_id)


@router.get("/{position_id}", response_model=Position)
def get_position(position_id: str, backend: BackendClient = Depends(get_backend_client)):
    return backend.positions.get(position_id)


@router.get("/{position_id}/distance", response_model=PositionDistanceResponse)
def position_distance(
    position_id: str,
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    backend: BackendClient = Depends(get_backend_client),
    geocoder: GeocodingService = Depends(get_geocoding_service),
):
    """Kilometres between the caller (lat/lng) and the position's workplace."""
    position = backend.positions.get(position_id)
    city = position.location.city if position.location else None
    address = position.location.address if position.location else None
    if not city or not address:
        return PositionDistanceResponse(position_id=position.id, message="Incomplete address data")

    coords = geocoder.resolve(city, address)
    if coords is None:
        return PositionDistanceResponse(position_id=position.id, message="Company address not found on the map")

    return PositionDistanceResponse(
        position_id=position.id,
        company_coordinates=coords,
        distance_km=round(distance_km(Coordinates(lat=lat, lng=lng), coords), 2),
    )


@router.post("", response_model=Position, status_code=201, dependencies=[Depends(require_token)])
def create_position(payload: PositionCreate, backend: BackendClient = Depends(get_backend_client)):
    return backend.positions.create(payload)


@router.patch("/{position_id}", response_model=Position, dependencies=[Depends(require_token)])
def update_position(position_id: str, payload: PositionUpdate, backend: BackendClient = Depends(get_backend_client)):
    return backend.positions.update(position_id, payload)


@router.delete("/{position_id}", response_model=MessageResponse, dependencies=[Depends(require_token)])
def delete_position(position_id: str, backend: BackendClient = Depends(get_backend_client)):
    return backend.positions.remove(position_id)


@router.patch(
    "/{position_id}/deactivate",
    response_model=PositionDeactivateResponse,
    dependencies=[Depends(require_token)],
)
def deactivate_position(position_id: str, backend: BackendClient = Depends(get_backend_client)):
    """Close a position to new applications."""
    return backend.positions.deactivate(position_id)
