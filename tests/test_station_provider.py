from unittest.mock import MagicMock, patch

import pytest
import requests

from ev_route_planner.models import GeoPoint
from ev_route_planner.station_provider import (
    FALLBACK_STATIONS,
    StationCache,
    StationDirectory,
    fallback_stations,
)

from .conftest import raw_station

FRESNO = GeoPoint(36.75, -119.77)
GET = "ev_route_planner.station_provider.requests.get"


def _response(payload):
    resp = MagicMock()
    resp.raise_for_status.return_value = None
    resp.json.return_value = payload
    return resp


def test_query_near_returns_provider_records():
    records = [raw_station("a", distance=2.0), raw_station("b", distance=5.0)]
    with patch(GET, return_value=_response({"fuel_stations": records})) as get:
        out = StationDirectory(api_key="k", timeout_s=3).query_near(FRESNO, 30, {"fuel_type": "ELEC"})

    assert [r["id"] for r in out] == ["a", "b"]
    args, kwargs = get.call_args
    assert args[0].endswith("/nearest.json")
    assert kwargs["timeout"] == 3
    params = kwargs["params"]
    assert params["api_key"] == "k"
    assert params["status"] == "E"
    assert params["access"] == "public"
    assert params["radius"] == "30"
    assert params["fuel_type"] == "ELEC"
    assert params["limit"] == "20"


def test_caller_timeout_overrides_default():
    with patch(GET, return_value=_response({"fuel_stations": []})) as get:
        StationDirectory(timeout_s=10).query_near(FRESNO, 30, timeout_s=1.5)
    assert get.call_args.kwargs["timeout"] == 1.5


def test_zero_results_is_not_a_failure():
    with patch(GET, return_value=_response({"fuel_stations": []})):
        assert StationDirectory().query_near(FRESNO, 30) == []


@pytest.mark.parametrize(
    "error",
    [requests.ConnectionError("down"), requests.Timeout("slow"), requests.HTTPError("503")],
)
def test_transport_failures_fall_back(error):
    with patch(GET, side_effect=error) as get:
        out = StationDirectory().query_near(FRESNO, 30)
    assert get.call_count == 1  # no retry
    assert len(out) == len(FALLBACK_STATIONS)


def test_http_error_status_falls_back():
    resp = _response({})
    resp.raise_for_status.side_effect = requests.HTTPError("429 Too Many Requests")
    with patch(GET, return_value=resp):
        out = StationDirectory().query_near(FRESNO, 30)
    assert len(out) == len(FALLBACK_STATIONS)


@pytest.mark.parametrize("payload", [{"errors": ["bad key"]}, ["not", "a", "dict"], {"fuel_stations": None}])
def test_malformed_payload_falls_back(payload):
    with patch(GET, return_value=_response(payload)):
        out = StationDirectory().query_near(FRESNO, 30)
    assert len(out) == len(FALLBACK_STATIONS)


def test_invalid_json_falls_back():
    resp = _response(None)
    resp.json.side_effect = ValueError("Expecting value")
    with patch(GET, return_value=resp):
        assert len(StationDirectory().query_near(FRESNO, 30)) == len(FALLBACK_STATIONS)


def test_records_without_coordinates_are_dropped():
    records = [raw_station("ok", distance=1.0), {"id": "broken", "station_name": "No coords"}]
    with patch(GET, return_value=_response({"fuel_stations": records})):
        out = StationDirectory().query_near(FRESNO, 30)
    assert [r["id"] for r in out] == ["ok"]


def test_fallback_sorted_by_distance_and_available():
    out = fallback_stations(FRESNO)
    distances = [r["distance"] for r in out]
    assert distances == sorted(distances)
    assert out[0]["id"] == "sc-fresno"
    assert all(r["status_code"] == "E" for r in out)


def test_fallback_does_not_mutate_static_set():
    fallback_stations(FRESNO)
    assert all("distance" not in r for r in FALLBACK_STATIONS)


def test_cache_skips_second_lookup():
    cache = StationCache(ttl_s=60)
    directory = StationDirectory(cache=cache)
    with patch(GET, return_value=_response({"fuel_stations": [raw_station("a", distance=1.0)]})) as get:
        first = directory.query_near(FRESNO, 30)
        second = directory.query_near(FRESNO, 30)
    assert get.call_count == 1
    assert first == second
    assert len(cache) == 1


def test_fallback_results_are_not_cached():
    cache = StationCache(ttl_s=60)
    with patch(GET, side_effect=requests.ConnectionError("down")):
        StationDirectory(cache=cache).query_near(FRESNO, 30)
    assert len(cache) == 0


def test_expired_entry_is_dropped():
    cache = StationCache(ttl_s=0)
    key = StationCache.key(FRESNO, 30, {})
    cache.put(key, [raw_station("a")])
    assert cache.get(key) is None
    assert len(cache) == 0


def test_cache_returns_copies():
    cache = StationCache(ttl_s=60)
    key = StationCache.key(FRESNO, 30, {})
    cache.put(key, [raw_station("a")])
    cache.get(key)[0]["id"] = "mutated"
    assert cache.get(key)[0]["id"] == "a"


@pytest.mark.parametrize(
    "bad",
    [
        raw_station("lat-out-of-range", distance=2.0, latitude=95.0),
        raw_station("lng-not-a-number", distance=2.0, longitude="west"),
        raw_station("distance-not-a-number", distance="n/a"),
        raw_station("km-not-a-number", distance=1.0, distance_km=[1]),
    ],
)
def test_malformed_records_are_dropped(bad):
    records = [bad, raw_station("ok", distance=3.0)]
    with patch(GET, return_value=_response({"fuel_stations": records})):
        out = StationDirectory().query_near(FRESNO, 30)
    assert [r["id"] for r in out] == ["ok"]


def test_numeric_strings_are_coerced():
    records = [raw_station("s", distance="4.5", latitude="36.7", longitude="-119.8")]
    with patch(GET, return_value=_response({"fuel_stations": records})):
        (rec,) = StationDirectory().query_near(FRESNO, 30)
    assert rec["distance"] == 4.5
    assert rec["latitude"] == 36.7


def test_expired_entries_pruned_on_put():
    cache = StationCache(ttl_s=0)
    for i in range(500):
        cache.put(StationCache.key(GeoPoint(30 + i / 100, -120.0), 30, {}), [])
    assert len(cache) == 1


def test_cache_size_is_bounded_oldest_first():
    cache = StationCache(ttl_s=60, max_entries=3)
    keys = [StationCache.key(GeoPoint(30 + i, -120.0), 30, {}) for i in range(5)]
    for k in keys:
        cache.put(k, [raw_station(str(k[0]))])
    assert len(cache) == 3
    assert cache.get(keys[0]) is None
    assert cache.get(keys[1]) is None
    assert cache.get(keys[4]) is not None


def test_reput_refreshes_entry_position():
    cache = StationCache(ttl_s=60, max_entries=2)
    a, b, c = (StationCache.key(GeoPoint(lat, 0.0), 30, {}) for lat in (1.0, 2.0, 3.0))
    cache.put(a, [])
    cache.put(b, [])
    cache.put(a, [])
    cache.put(c, [])
    assert cache.get(b) is None
    assert cache.get(a) == []
