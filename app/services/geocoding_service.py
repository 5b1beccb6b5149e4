"""
Geocoding Service

PURPOSE:
Turn a position's free-text city/address into map coordinates.

HOW IT WORKS (first hit wins):
1. Persisted cache, keyed "{city}|{address}"
2. Static table of Hungarian city centroids
3. Remote geocoder (Photon) with the full address
4. Remote geocoder with the city only
5. Nothing found -> None, the position is left off the map

Every successful tier below the cache writes back into the cache.

BATCHES:
GeocodingQueue resolves positions one after another and waits a fixed
delay between remote lookups to stay inside the public geocoder's usage
limits. Cache and table hits never wait. Failures are logged and the
batch moves on. No retries.
"""

import json
import logging
import os
import threading
import time
from abc import ABC, abstractmethod
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

import httpx
from pydantic import ValidationError
from pymongo.errors import PyMongoError

from app.core.config import Settings, get_settings
from app.core.exceptions import GeocodingError
from app.schemas.schemas import Coordinates, Position, PositionWithCoords
from app.utils.city_coordinates import get_city_coordinates
from app.utils.positions import norm

logger = logging.getLogger(__name__)


# ============================================================
# CACHE
# ============================================================

@dataclass(frozen=True)
class CachePolicy:
    """None means unlimited: never expire / never evict."""
    ttl_seconds: Optional[float] = None
    max_entries: Optional[int] = None


class GeocodeCache(ABC):
    """
    Key-value store for resolved coordinates.

    Subclasses only move raw entries ({"lat", "lng", "cached_at"}) in and
    out; expiry is handled here so every backend behaves the same.
    """

    def __init__(self, policy: Optional[CachePolicy] = None, clock: Callable[[], float] = time.time):
        self.policy = policy or CachePolicy()
        self._clock = clock

    def get(self, key: str) -> Optional[Coordinates]:
        entry = self._load(key)
        if entry is None:
            return None
        try:
            coords = Coordinates(lat=entry["lat"], lng=entry["lng"])
        except (KeyError, TypeError, ValidationError) as exc:
            logger.warning("Dropping unreadable geocode cache entry %s: %s", key, exc)
            self._delete(key)
            return None
        if self._is_stale(entry):
            self._delete(key)
            return None
        return coords

    def set(self, key: str, coords: Coordinates) -> None:
        self._store(key, {"lat": coords.lat, "lng": coords.lng, "cached_at": self._clock()})

    def _is_stale(self, entry: dict) -> bool:
        if self.policy.ttl_seconds is None:
            return False
        # Entries without a timestamp predate expiry support
        cached_at = entry.get("cached_at") or 0
        if not isinstance(cached_at, (int, float)):
            return True
        return self._clock() - cached_at > self.policy.ttl_seconds

    @abstractmethod
    def _load(self, key: str) -> Optional[dict]:
        ...

    @abstractmethod
    def _store(self, key: str, entry: dict) -> None:
        ...

    @abstractmethod
    def _delete(self, key: str) -> None:
        ...


class MemoryGeocodeCache(GeocodeCache):
    """Process-local cache; oldest insert is evicted first."""

    def __init__(self, policy: Optional[CachePolicy] = None, clock: Callable[[], float] = time.time):
        super().__init__(policy, clock)
        self._entries: "OrderedDict[str, dict]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def _load(self, key):
        with self._lock:
            return self._entries.get(key)

    def _store(self, key, entry):
        with self._lock:
            self._entries[key] = entry
            self._entries.move_to_end(key)
            limit = self.policy.max_entries
            while limit is not None and len(self._entries) > limit:
                self._entries.popitem(last=False)

    def _delete(self, key):
        with self._lock:
            self._entries.pop(key, None)


class JsonFileGeocodeCache(GeocodeCache):
    """
    Whole cache kept as one JSON object on disk: {"city|address": {...}}.

    Loaded once, rewritten on every change. An unreadable file starts an
    empty cache; a failed write is logged and the in-memory copy is kept.
    """

    def __init__(self, path: str, policy: Optional[CachePolicy] = None, clock: Callable[[], float] = time.time):
        super().__init__(policy, clock)
        self.path = path
        self._lock = threading.Lock()
        self._entries: Optional[Dict[str, dict]] = None

    def _read_file(self) -> Dict[str, dict]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            logger.warning("Failed to load geocoding cache %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring geocoding cache %s: not a JSON object", self.path)
            return {}
        logger.info("Loaded geocoding cache with %d entries", len(data))
        return data

    def _entries_locked(self) -> Dict[str, dict]:
        if self._entries is None:
            self._entries = self._read_file()
        return self._entries

    def _flush_locked(self) -> None:
        tmp_path = f"{self.path}.tmp"
        try:
            with open(tmp_path, "w", encoding="utf-8") as fh:
                json.dump(self._entries, fh, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError as exc:
            logger.warning("Failed to save geocoding cache %s: %s", self.path, exc)

    def _load(self, key):
        with self._lock:
            return self._entries_locked().get(key)

    def _store(self, key, entry):
        with self._lock:
            entries = self._entries_locked()
            entries[key] = entry
            limit = self.policy.max_entries
            if limit is not None and len(entries) > limit:
                by_age = sorted(entries, key=lambda k: entries[k].get("cached_at") or 0)
                for old_key in by_age[:len(entries) - limit]:
                    del entries[old_key]
            self._flush_locked()

    def _delete(self, key):
        with self._lock:
            if self._entries_locked().pop(key, None) is not None:
                self._flush_locked()


class MongoGeocodeCache(GeocodeCache):
    """Cache in a MongoDB collection, one document per key (_id = key)."""

    def __init__(self, collection, policy: Optional[CachePolicy] = None, clock: Callable[[], float] = time.time):
        super().__init__(policy, clock)
        self.collection = collection

    def _load(self, key):
        return self.collection.find_one({"_id": key})

    def _store(self, key, entry):
        self.collection.update_one({"_id": key}, {"$set": entry}, upsert=True)
        limit = self.policy.max_entries
        if limit is None:
            return
        excess = self.collection.count_documents({}) - limit
        if excess > 0:
            oldest = self.collection.find({}, {"_id": 1}).sort("cached_at", 1).limit(excess)
            self.collection.delete_many({"_id": {"$in": [doc["_id"] for doc in oldest]}})

    def _delete(self, key):
        self.collection.delete_one({"_id": key})


# ============================================================
# LOOKUP TIERS
# ============================================================

class CityCoordinateTable:
    """Static city centroid lookup."""

    def lookup(self, city: str) -> Optional[Coordinates]:
        coords = get_city_coordinates(city)
        if coords is None:
            return None
        lat, lng = coords
        return Coordinates(lat=lat, lng=lng)


class PhotonGeocoder:
    """
    Photon (komoot) search client.

    Responses are GeoJSON; the first feature's coordinates are [lng, lat].
    """

    def __init__(self, base_url: str, timeout: float = 10.0, client: Optional[httpx.Client] = None):
        self.base_url = base_url
        self.client = client or httpx.Client(timeout=timeout)

    def search(self, query: str) -> Optional[Coordinates]:
        """Return the best match, None when nothing matches; GeocodingError on failure."""
        try:
            resp = self.client.get(self.base_url, params={"q": query, "limit": 1})
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as exc:
            raise GeocodingError(f"Geocoder request failed for {query!r}: {exc}") from exc
        except ValueError as exc:
            raise GeocodingError(f"Geocoder returned invalid JSON for {query!r}") from exc

        if not isinstance(data, dict):
            raise GeocodingError(f"Unexpected geocoder payload for {query!r}")
        features = data.get("features") or []
        if not features:
            return None
        try:
            lng, lat = features[0]["geometry"]["coordinates"][:2]
            return Coordinates(lat=float(lat), lng=float(lng))
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            raise GeocodingError(f"Malformed geocoder feature for {query!r}") from exc

    def close(self) -> None:
        self.client.close()


@dataclass
class GeocodeResult:
    coordinates: Optional[Coordinates]
    source: Optional[str] = None  # cache | city_table | remote_address | remote_city
    remote_calls: int = 0


class GeocodingService:
    """Cache -> city table -> remote (address) -> remote (city)."""

    def __init__(
        self,
        cache: GeocodeCache,
        geocoder: PhotonGeocoder,
        table: Optional[CityCoordinateTable] = None,
        country: str = "Hungary",
    ):
        self.cache = cache
        self.geocoder = geocoder
        self.table = table or CityCoordinateTable()
        self.country = country

    @staticmethod
    def cache_key(city: str, address: str) -> str:
        return f"{city}|{address}"

    def resolve_local(self, city: str, address: str) -> Optional[GeocodeResult]:
        """Cache and city table only; None means a remote lookup is needed."""
        key = self.cache_key(city, address)

        coords = self.cache.get(key)
        if coords is not None:
            logger.debug("Geocode cache hit: %s", key)
            return GeocodeResult(coords, "cache")

        coords = self.table.lookup(city)
        if coords is not None:
            logger.debug("Using pre-geocoded coordinates for city: %s", city)
            self.cache.set(key, coords)
            return GeocodeResult(coords, "city_table")

        return None

    def resolve_remote(self, city: str, address: str) -> GeocodeResult:
        """
        Ask the remote geocoder: full address first, then city only.

        A failed full-address lookup falls through to the city lookup;
        a failed city lookup raises GeocodingError.
        """
        key = self.cache_key(city, address)
        calls = 0

        if norm(address):
            calls += 1
            try:
                coords = self.geocoder.search(f"{address}, {city}, {self.country}")
            except GeocodingError as exc:
                logger.warning("Full address lookup failed, trying city only: %s", exc)
                coords = None
            if coords is not None:
                self.cache.set(key, coords)
                return GeocodeResult(coords, "remote_address", calls)

        calls += 1
        coords = self.geocoder.search(f"{city}, {self.country}")
        if coords is not None:
            self.cache.set(key, coords)
            return GeocodeResult(coords, "remote_city", calls)

        logger.warning("City geocoding also failed for: %s", city)
        return GeocodeResult(None, None, calls)

    def lookup(self, city: str, address: str) -> GeocodeResult:
        if not norm(city):
            return GeocodeResult(None)
        return self.resolve_local(city, address) or self.resolve_remote(city, address)

    def resolve(self, city: str, address: str) -> Optional[Coordinates]:
        return self.lookup(city, address).coordinates


# ============================================================
# BATCH
# ============================================================

@dataclass
class BatchResult:
    items: List[PositionWithCoords] = field(default_factory=list)
    skipped: int = 0
    cancelled: bool = False


class GeocodingQueue:
    """
    Sequential, throttled geocoding of many positions.

    `delay` seconds separate consecutive remote lookups. Pass a
    threading.Event as `cancel` to stop between positions or while waiting;
    whatever was resolved so far is returned.
    """

    def __init__(
        self,
        service: GeocodingService,
        delay: float = 0.2,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        self.service = service
        self.delay = delay
        self._sleep = sleep

    def _pause(self, cancel: Optional[threading.Event]) -> bool:
        """Wait out the throttle; True if cancelled meanwhile."""
        if self.delay > 0:
            if cancel is not None and self._sleep is None:
                return cancel.wait(self.delay)
            (self._sleep or time.sleep)(self.delay)
        return cancel is not None and cancel.is_set()

    def run(
        self,
        positions: Iterable[Position],
        cancel: Optional[threading.Event] = None,
        on_progress: Optional[Callable[[int, int], None]] = None,
    ) -> BatchResult:
        positions = list(positions)
        total = len(positions)
        result = BatchResult()
        remote_used = False

        logger.info("Starting geocoding for %d positions", total)

        for index, position in enumerate(positions, start=1):
            if cancel is not None and cancel.is_set():
                result.cancelled = True
                break
            if on_progress:
                on_progress(index, total)

            city = norm(position.location.city if position.location else None)
            address = norm(position.location.address if position.location else None)
            if not city or not address:
                logger.warning("Skipping position %s - missing city or address", position.id)
                result.skipped += 1
                continue

            try:
                found = self.service.resolve_local(city, address)
                if found is None:
                    if remote_used and self._pause(cancel):
                        result.cancelled = True
                        break
                    remote_used = True
                    found = self.service.resolve_remote(city, address)
            except (GeocodingError, PyMongoError) as exc:
                logger.warning("Failed to geocode position %s: %s", position.id, exc)
                result.skipped += 1
                continue

            if found.coordinates is None:
                result.skipped += 1
                continue

            result.items.append(PositionWithCoords.model_validate({
                **position.model_dump(),
                "latitude": found.coordinates.lat,
                "longitude": found.coordinates.lng,
            }))

        logger.info(
            "Geocoding complete: %d located, %d skipped%s",
            len(result.items), result.skipped, " (cancelled)" if result.cancelled else "",
        )
        return result


# ============================================================
# FACTORIES
# ============================================================

def build_geocode_cache(settings: Settings) -> GeocodeCache:
    policy = CachePolicy(
        ttl_seconds=settings.geocode_cache_ttl_seconds,
        max_entries=settings.geocode_cache_max_entries,
    )
    if settings.geocode_cache_backend == "mongo":
        from app.db.mongodb import get_collection, COLLECTIONS
        return MongoGeocodeCache(get_collection(COLLECTIONS["geocoding_cache"]), policy)
    if settings.geocode_cache_backend == "file":
        return JsonFileGeocodeCache(settings.geocode_cache_path, policy)
    return MemoryGeocodeCache(policy)


# Singleton instance
_geocoding_service: GeocodingService = None


def get_geocoding_service() -> GeocodingService:
    """Get or create the geocoding service (singleton pattern)"""
    global _geocoding_service
    if _geocoding_service is None:
        settings = get_settings()
        _geocoding_service = GeocodingService(
            cache=build_geocode_cache(settings),
            geocoder=PhotonGeocoder(settings.geocoder_url, settings.geocoder_timeout_seconds),
            country=settings.geocoder_country,
        )
    return _geocoding_service


def get_geocoding_queue() -> GeocodingQueue:
    return GeocodingQueue(get_geocoding_service(), delay=get_settings().geocode_delay_seconds)
