"""
Geo Routes

GET /geocode - Coordinates for a city / street address
POST /distance - Great-circle distance between two points
"""

from fastapi import APIRouter, Depends, Query

from app.services.geocoding_service import GeocodingService, get_geocoding_service
from app.schemas.schemas import DistanceRequest, DistanceResponse, GeocodeResponse
from app.utils.geo import distance_km

router = APIRouter(tags=["Geo"])


@router.get("/geocode", response_model=GeocodeResponse)
def geocode(
    city: str = Query(..., min_length=1),
    address: str = Query(""),
    geocoder: GeocodingService = Depends(get_geocoding_service),
):
    """
    Resolve a place to coordinates.

    Order: cache, built-in city table, geocoder with full address,
    geocoder with city only. `coordinates` is null when nothing matched.
    """
    found = geocoder.lookup(city, address)
    return GeocodeResponse(city=city, address=address, coordinates=found.coordinates, source=found.source)


@router.post("/distance", response_model=DistanceResponse)
async def distance(request: DistanceRequest):
    """Haversine distance in kilometres."""
    return DistanceResponse(distance_km=distance_km(request.origin, request.destination))
