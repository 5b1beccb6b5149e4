import json
import threading
from unittest.mock import MagicMock

import httpx
import pytest
from pymongo.errors import PyMongoError

from app.core.exceptions import GeocodingError
from app.schemas.schemas import Coordinates
from app.services.geocoding_service import (
    CachePolicy, GeocodingQueue, GeocodingService, JsonFileGeocodeCache,
    MemoryGeocodeCache, MongoGeocodeCache, PhotonGeocoder
)
from app.utils.city_coordinates import HUNGARIAN_CITIES, get_city_coordinates

KISBUCSA_ADDRESS = "Fő utca 1., Kisbucsa, Hungary"
KISBUCSA_CITY = "Kisbucsa, Hungary"


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now


# ============================================================
# RESOLVER
# ============================================================

def test_known_city_resolves_without_remote_calls(geocoding_service, photon):
    first = geocoding_service.resolve("Debrecen", "Kassai út 26.")
    second = geocoding_service.resolve("Debrecen", "Kassai út 26.")

    assert first == second == Coordinates(lat=47.5316, lng=21.6273)
    assert photon.queries == []
    assert geocoding_service.lookup("Debrecen", "Kassai út 26.").source == "cache"


def test_full_address_hit_is_cached(geocoding_service, photon):
    photon.answers[KISBUCSA_ADDRESS] = (46.95, 16.95)

    result = geocoding_service.lookup("Kisbucsa", "Fő utca 1.")
    again = geocoding_service.lookup("Kisbucsa", "Fő utca 1.")

    assert result.coordinates == Coordinates(lat=46.95, lng=16.95)
    assert result.source == "remote_address"
    assert result.remote_calls == 1
    assert again.coordinates == result.coordinates
    assert again.source == "cache"
    assert photon.queries == [KISBUCSA_ADDRESS]


def test_falls_back_to_city_when_address_not_found(geocoding_service, photon):
    photon.answers[KISBUCSA_CITY] = (46.9, 16.9)

    result = geocoding_service.lookup("Kisbucsa", "Fő utca 1.")

    assert result.coordinates == Coordinates(lat=46.9, lng=16.9)
    assert result.source == "remote_city"
    assert photon.queries == [KISBUCSA_ADDRESS, KISBUCSA_CITY]
    assert geocoding_service.cache.get("Kisbucsa|Fő utca 1.") == result.coordinates


def test_falls_back_to_city_when_address_lookup_errors(geocoding_service, photon):
    photon.failing.add(KISBUCSA_ADDRESS)
    photon.answers[KISBUCSA_CITY] = (46.9, 16.9)

    assert geocoding_service.resolve("Kisbucsa", "Fő utca 1.") == Coordinates(lat=46.9, lng=16.9)


def test_city_lookup_error_propagates(geocoding_service, photon):
    photon.failing.add(KISBUCSA_CITY)

    with pytest.raises(GeocodingError):
        geocoding_service.resolve("Kisbucsa", "Fő utca 1.")


def test_nothing_found_is_not_cached(geocoding_service, photon):
    assert geocoding_service.resolve("Kisbucsa", "Fő utca 1.") is None
    assert geocoding_service.resolve("Kisbucsa", "Fő utca 1.") is None
    assert len(photon.queries) == 4


def test_empty_city_resolves_to_none(geocoding_service, photon):
    assert geocoding_service.resolve("  ", "Fő utca 1.") is None
    assert photon.queries == []


def test_empty_address_goes_straight_to_city_query(geocoding_service, photon):
    photon.answers[KISBUCSA_CITY] = (46.9, 16.9)
    assert geocoding_service.resolve("Kisbucsa", "") is not None
    assert photon.queries == [KISBUCSA_CITY]


def test_photon_coordinates_are_lng_lat(geocoder, photon):
    photon.answers["Tihany, Hungary"] = (46.91, 17.89)
    coords = geocoder.search("Tihany, Hungary")
    assert (coords.lat, coords.lng) == (46.91, 17.89)


@pytest.mark.parametrize("body", [
    {"features": [{"geometry": {}}]},
    {"features": [{"geometry": {"coordinates": ["x", "y"]}}]},
    ["not", "an", "object"],
])
def test_malformed_geocoder_payload_raises(body):
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json=body))
    geocoder = PhotonGeocoder("https://photon.test/api/", client=httpx.Client(transport=transport))
    with pytest.raises(GeocodingError):
        geocoder.search("Tihany, Hungary")


def test_geocoder_network_error_raises():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    geocoder = PhotonGeocoder("https://photon.test/api/", client=httpx.Client(transport=httpx.MockTransport(handler)))
    with pytest.raises(GeocodingError):
        geocoder.search("Tihany, Hungary")


def test_geocoder_sends_query_and_limit():
    seen = {}

    def handler(request):
        seen.update(request.url.params)
        return httpx.Response(200, json={"features": []})

    geocoder = PhotonGeocoder("https://photon.test/api/", client=httpx.Client(transport=httpx.MockTransport(handler)))
    assert geocoder.search("Eger, Hungary") is None
    assert seen == {"q": "Eger, Hungary", "limit": "1"}


def test_city_table_lookup_is_case_insensitive():
    assert get_city_coordinates("budapest") == HUNGARIAN_CITIES["Budapest"]
    assert get_city_coordinates(" Győr ") == HUNGARIAN_CITIES["Győr"]
    assert get_city_coordinates("Atlantis") is None
    assert get_city_coordinates("") is None


# ============================================================
# CACHES
# ============================================================

def test_memory_cache_never_expires_by_default():
    clock = FakeClock()
    cache = MemoryGeocodeCache(clock=clock)
    cache.set("a|b", Coordinates(lat=1, lng=2))
    clock.now += 10 ** 9
    assert cache.get("a|b") == Coordinates(lat=1, lng=2)


def test_memory_cache_ttl_drops_stale_entries():
    clock = FakeClock()
    cache = MemoryGeocodeCache(CachePolicy(ttl_seconds=60), clock=clock)
    cache.set("a|b", Coordinates(lat=1, lng=2))

    clock.now += 60
    assert cache.get("a|b") is not None
    clock.now += 1
    assert cache.get("a|b") is None
    assert len(cache) == 0


def test_memory_cache_evicts_oldest_insert():
    cache = MemoryGeocodeCache(CachePolicy(max_entries=2))
    for i in range(3):
        cache.set(f"city{i}|", Coordinates(lat=i, lng=i))
    assert cache.get("city0|") is None
    assert cache.get("city1|") is not None
    assert cache.get("city2|") is not None
    assert len(cache) == 2


def test_file_cache_persists_as_one_json_object(tmp_path):
    path = tmp_path / "geocoding_cache.json"
    JsonFileGeocodeCache(str(path)).set("Eger|Dobó tér 1.", Coordinates(lat=47.9, lng=20.37))

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["Eger|Dobó tér 1."]["lat"] == 47.9
    assert data["Eger|Dobó tér 1."]["lng"] == 20.37

    reloaded = JsonFileGeocodeCache(str(path))
    assert reloaded.get("Eger|Dobó tér 1.") == Coordinates(lat=47.9, lng=20.37)


def test_file_cache_ignores_corrupt_file(tmp_path):
    path = tmp_path / "geocoding_cache.json"
    path.write_text("{not json", encoding="utf-8")

    cache = JsonFileGeocodeCache(str(path))
    assert cache.get("Eger|") is None
    cache.set("Eger|", Coordinates(lat=1, lng=2))
    assert json.loads(path.read_text(encoding="utf-8"))["Eger|"]["lat"] == 1


def test_file_cache_entries_without_timestamp_expire_under_ttl(tmp_path):
    path = tmp_path / "geocoding_cache.json"
    path.write_text(json.dumps({"Eger|": {"lat": 1, "lng": 2}}), encoding="utf-8")

    assert JsonFileGeocodeCache(str(path)).get("Eger|") == Coordinates(lat=1, lng=2)
    assert JsonFileGeocodeCache(str(path), CachePolicy(ttl_seconds=3600)).get("Eger|") is None


def test_file_cache_evicts_oldest_by_cached_at(tmp_path):
    clock = FakeClock()
    cache = JsonFileGeocodeCache(str(tmp_path / "c.json"), CachePolicy(max_entries=2), clock=clock)
    for key in ("a|", "b|", "c|"):
        cache.set(key, Coordinates(lat=1, lng=1))
        clock.now += 1
    assert cache.get("a|") is None
    assert cache.get("c|") is not None


def test_mongo_cache_upserts_by_key():
    collection = MagicMock()
    collection.find_one.return_value = {"_id": "Eger|", "lat": 47.9, "lng": 20.37, "cached_at": 5}
    cache = MongoGeocodeCache(collection, clock=lambda: 5)

    cache.set("Eger|", Coordinates(lat=47.9, lng=20.37))
    collection.update_one.assert_called_once_with(
        {"_id": "Eger|"}, {"$set": {"lat": 47.9, "lng": 20.37, "cached_at": 5}}, upsert=True
    )
    assert cache.get("Eger|") == Coordinates(lat=47.9, lng=20.37)
    collection.find_one.assert_called_with({"_id": "Eger|"})


def test_mongo_cache_deletes_stale_entry():
    collection = MagicMock()
    collection.find_one.return_value = {"_id": "Eger|", "lat": 1, "lng": 2, "cached_at": 0}
    cache = MongoGeocodeCache(collection, CachePolicy(ttl_seconds=10), clock=lambda: 100)

    assert cache.get("Eger|") is None
    collection.delete_one.assert_called_once_with({"_id": "Eger|"})


# ============================================================
# BATCH QUEUE
# ============================================================

def test_queue_throttles_only_between_remote_calls(position, geocoding_queue, photon, sleeps):
    photon.answers["Fő utca 1., Kisbucsa, Hungary"] = (46.95, 16.95)
    photon.answers["Kossuth tér 2., Tihany, Hungary"] = (46.91, 17.89)
    positions = [
        position(pid=1, city="Kisbucsa", address="Fő utca 1."),
        position(pid=2, city="Debrecen", address="Kassai út 26."),
        position(pid=3, city="Tihany", address="Kossuth tér 2."),
        position(pid=4, city="Szeged", address="Dóm tér 1."),
    ]

    result = geocoding_queue.run(positions)

    assert [p.id for p in result.items] == [1, 2, 3, 4]
    assert result.items[0].latitude == 46.95
    assert result.items[1].longitude == 21.6273
    assert sleeps == [0.2]
    assert result.skipped == 0
    assert not result.cancelled


def test_queue_skips_incomplete_and_failed_positions(position, geocoding_queue, photon):
    photon.failing.add("Hollókő, Hungary")
    positions = [
        position(pid=1, city="Hollókő", address="Kossuth út 80."),
        position(pid=2, city="Eger", address=None),
        position(pid=3, city=None),
        position(pid=4, city="Eger", address="Dobó tér 1."),
    ]

    result = geocoding_queue.run(positions)

    assert [p.id for p in result.items] == [4]
    assert result.skipped == 3


def test_queue_reports_progress(position, geocoding_queue):
    seen = []
    geocoding_queue.run([position(pid=1), position(pid=2)], on_progress=lambda i, n: seen.append((i, n)))
    assert seen == [(1, 2), (2, 2)]


def test_queue_stops_when_cancelled(position, geocoding_queue):
    cancel = threading.Event()

    def progress(index, total):
        if index == 2:
            cancel.set()

    positions = [position(pid=i, city="Eger", address=f"Tér {i}.") for i in range(1, 5)]
    result = geocoding_queue.run(positions, cancel=cancel, on_progress=progress)

    assert [p.id for p in result.items] == [1, 2]
    assert result.cancelled


def test_cancel_interrupts_pending_delay(position, geocoding_service, photon):
    queue = GeocodingQueue(geocoding_service, delay=30)
    cancel = threading.Event()
    photon.answers["Kisbucsa, Hungary"] = (46.9, 16.9)

    def progress(index, total):
        if index == 2:
            cancel.set()

    positions = [
        position(pid=1, city="Kisbucsa", address="Fő utca 1."),
        position(pid=2, city="Tihany", address="Kossuth tér 2."),
    ]
    result = queue.run(positions, cancel=cancel, on_progress=progress)

    assert [p.id for p in result.items] == [1]
    assert result.cancelled
    assert "Tihany, Hungary" not in photon.queries


def test_service_without_table_goes_remote(geocoder, photon):
    class EmptyTable:
        def lookup(self, city):
            return None

    service = GeocodingService(MemoryGeocodeCache(), geocoder, table=EmptyTable())
    photon.answers["Budapest, Hungary"] = (47.5, 19.04)
    assert service.resolve("Budapest", "") == Coordinates(lat=47.5, lng=19.04)


# ============================================================
# DAMAGED CACHE / STORAGE ERRORS
# ============================================================

@pytest.mark.parametrize("entry", [
    {"lng": 19.0},
    {"lat": 123.0, "lng": 19.0},
    {"lat": "north", "lng": 19.0},
    [47.5, 19.0],
    "47.5,19.0",
])
def test_unreadable_cache_entry_is_a_miss_and_removed(entry):
    cache = MemoryGeocodeCache()
    cache._store("Eger|", entry)
    assert cache.get("Eger|") is None
    assert len(cache) == 0


def test_non_numeric_timestamp_is_stale_under_ttl():
    cache = MemoryGeocodeCache(CachePolicy(ttl_seconds=60))
    cache._store("Eger|", {"lat": 1, "lng": 2, "cached_at": "yesterday"})
    assert cache.get("Eger|") is None


def test_damaged_file_entry_does_not_abort_batch(tmp_path, position, geocoder, photon):
    path = tmp_path / "geocoding_cache.json"
    path.write_text(json.dumps({
        "Kisbucsa|Bad": {"lng": 16.9},
        "Kisbucsa|Good": {"lat": 46.9, "lng": 16.9},
    }), encoding="utf-8")
    service = GeocodingService(JsonFileGeocodeCache(str(path)), geocoder)
    queue = GeocodingQueue(service, delay=0, sleep=lambda seconds: None)

    result = queue.run([
        position(pid=1, city="Kisbucsa", address="Bad"),
        position(pid=2, city="Kisbucsa", address="Good"),
    ])

    assert [p.id for p in result.items] == [2]
    assert result.skipped == 1
    assert "Kisbucsa|Bad" not in json.loads(path.read_text(encoding="utf-8"))


def test_storage_error_skips_only_that_position(position, geocoder):
    def find_one(query):
        if query["_id"] == "Kisbucsa|Fő utca 1.":
            raise PyMongoError("connection reset")
        return None

    collection = MagicMock()
    collection.find_one.side_effect = find_one
    service = GeocodingService(MongoGeocodeCache(collection), geocoder)
    queue = GeocodingQueue(service, delay=0, sleep=lambda seconds: None)

    result = queue.run([
        position(pid=1, city="Kisbucsa", address="Fő utca 1."),
        position(pid=2, city="Szeged", address="Dóm tér 1."),
    ])

    assert [p.id for p in result.items] == [2]
    assert result.skipped == 1
