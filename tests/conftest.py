import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from app.schemas.schemas import Position
from app.services.geocoding_service import (
    GeocodingQueue, GeocodingService, MemoryGeocodeCache, PhotonGeocoder
)

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def iso(dt: datetime) -> str:
    return dt.isoformat().replace("+00:00", "Z")


def make_position(pid=1, title="Backend Developer", company="Acme Kft.", city="Budapest",
                  address="Váci út 1.", deadline=None, created_at=None, tags=(), **extra) -> Position:
    data = {
        "id": pid,
        "title": title,
        "location": {"city": city, "address": address} if city is not None else None,
        "deadline": deadline,
        "createdAt": created_at,
        "tags": list(tags),
        "company": {"name": company} if company is not None else None,
    }
    data.update(extra)
    return Position.model_validate(data)


@pytest.fixture
def position():
    return make_position


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def days_from_now():
    def build(days: float) -> str:
        return iso(NOW + timedelta(days=days))
    return build


class FakePhoton:
    """Photon stand-in served through httpx.MockTransport; records every query."""

    def __init__(self):
        self.queries = []
        self.answers = {}
        self.failing = set()

    def handler(self, request: httpx.Request) -> httpx.Response:
        query = request.url.params["q"]
        self.queries.append(query)
        if query in self.failing:
            return httpx.Response(503, text="busy")
        coords = self.answers.get(query)
        features = [{"geometry": {"type": "Point", "coordinates": [coords[1], coords[0]]}}] if coords else []
        return httpx.Response(200, content=json.dumps({"features": features}),
                              headers={"content-type": "application/json"})


@pytest.fixture
def photon():
    return FakePhoton()


@pytest.fixture
def geocoder(photon):
    client = httpx.Client(transport=httpx.MockTransport(photon.handler))
    return PhotonGeocoder("https://photon.test/api/", client=client)


@pytest.fixture
def geocoding_service(geocoder):
    return GeocodingService(cache=MemoryGeocodeCache(), geocoder=geocoder)


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def geocoding_queue(geocoding_service, sleeps):
    return GeocodingQueue(geocoding_service, delay=0.2, sleep=sleeps.append)
