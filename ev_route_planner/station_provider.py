from __future__ import annotations

import copy
import logging
import threading
import time
from typing import Any, Dict, List, Optional, Tuple

import requests

from .config import (
    DEFAULT_STATION_FILTER,
    NREL_API_BASE,
    NREL_API_KEY,
    STATION_CACHE_MAX_ENTRIES,
    STATION_CACHE_TTL_S,
    STATION_LOOKUP_TIMEOUT_S,
    STATION_RESULT_LIMIT,
)
from .errors import ExternalLookupFailure
from .geo import distance, miles_to_km
from .models import GeoPoint

logger = logging.getLogger(__name__)

RawStation = Dict[str, Any]


# ---------------- NREL nearest.json ----------------
def _query_params(
    api_key: str,
    point: GeoPoint,
    radius_miles: float,
    station_filter: Dict[str, str],
    limit: int,
) -> Dict[str, str]:
    params = {
        "api_key": api_key,
        "latitude": str(point.latitude),
        "longitude": str(point.longitude),
        "radius": str(radius_miles),
        "status": "E",  # E = open/available
        "access": "public",
        "limit": str(limit),
    }
    params.update(station_filter)
    return params


def _get_nrel(base_url: str, params: Dict[str, str], timeout_s: float) -> Dict[str, Any]:
    r = requests.get(f"{base_url}/nearest.json", params=params, timeout=timeout_s)
    r.raise_for_status()
    return r.json()


def _clean_record(st: RawStation) -> RawStation:
    """Coordinates must form a valid GeoPoint, distances must be numeric."""
    rec = dict(st)
    point = GeoPoint(float(rec["latitude"]), float(rec["longitude"]))
    rec["latitude"], rec["longitude"] = point.latitude, point.longitude
    for k in ("distance", "distance_km"):
        if rec.get(k) is not None:
            rec[k] = float(rec[k])
    return rec


def _extract_stations(payload: Any) -> List[RawStation]:
    if not isinstance(payload, dict):
        raise ExternalLookupFailure("NREL payload is not an object")
    stations = payload.get("fuel_stations")
    if not isinstance(stations, list):
        raise ExternalLookupFailure("NREL payload has no fuel_stations list")

    out: List[RawStation] = []
    for st in stations:
        if not isinstance(st, dict):
            continue
        try:
            out.append(_clean_record(st))
        except (KeyError, TypeError, ValueError) as e:
            logger.debug("Dropping station %s: %s", st.get("id"), e)
    return out


# ---------------- Fallback (known California Superchargers) ----------------
def _sc(id_, name, address, city, zip_, lat, lng, dc, l2, pricing, facility) -> RawStation:
    return {
        "id": id_,
        "station_name": name,
        "street_address": address,
        "city": city,
        "state": "CA",
        "zip": zip_,
        "latitude": lat,
        "longitude": lng,
        "ev_network": "Tesla",
        "ev_connector_types": ["TESLA", "J1772COMBO"] if dc >= 20 else ["TESLA"],
        "ev_dc_fast_num": dc,
        "ev_level2_evse_num": l2,
        "ev_pricing": pricing,
        "access_code": "public",
        "access_days_time": "24 hours daily",
        "facility_type": facility,
        "status_code": "E",
    }


FALLBACK_STATIONS: List[RawStation] = [
    _sc("tesla_gilroy", "Tesla Supercharger - Gilroy Premium Outlets", "681 Leavesley Rd", "Gilroy",
        "95020", 37.0058, -121.5683, 20, 0, "$0.28/kWh", "SHOPPING_CENTER"),
    _sc("tesla_kettleman", "Tesla Supercharger - Kettleman City", "33394 Bernard Dr", "Kettleman City",
        "93239", 36.0078, -119.9625, 40, 0, "$0.26/kWh", "TRAVEL_CENTER"),
    _sc("tesla_harris", "Tesla Supercharger - Harris Ranch", "24505 W Dorris Ave", "Coalinga",
        "93210", 36.2534, -120.2384, 18, 4, "$0.28/kWh", "RESTAURANT"),
    _sc("sc-tracy", "Tesla Supercharger - Tracy", "2551 Naglee Rd", "Tracy",
        "95304", 37.7396, -121.4252, 20, 0, "$0.28/kWh", "RETAIL"),
    _sc("sc-manteca", "Tesla Supercharger - Manteca", "1100 N Main St", "Manteca",
        "95336", 37.7974, -121.2161, 16, 0, "$0.31/kWh", "GROCERY"),
    _sc("sc-modesto", "Tesla Supercharger - Modesto", "3401 Dale Rd", "Modesto",
        "95356", 37.6607, -120.9988, 12, 0, "$0.29/kWh", "SHOPPING_CENTER"),
    _sc("sc-merced", "Tesla Supercharger - Merced", "3260 R St", "Merced",
        "95340", 37.3022, -120.4829, 8, 0, "$0.28/kWh", "GAS_STATION"),
    _sc("sc-fresno", "Tesla Supercharger - Fresno", "7735 N Blackstone Ave", "Fresno",
        "93720", 36.8081, -119.7908, 24, 0, "$0.27/kWh", "RETAIL"),
    _sc("sc-mariposa", "Tesla Supercharger - Mariposa", "5089 Hwy 140", "Mariposa",
        "95338", 37.4849, -119.9663, 8, 4, "$0.32/kWh", "HOTEL"),
    _sc("sc-oakhurst", "Tesla Supercharger - Oakhurst", "40530 Hwy 41", "Oakhurst",
        "93644", 37.3281, -119.6495, 12, 0, "$0.30/kWh", "RESTAURANT"),
]


def fallback_stations(point: GeoPoint) -> List[RawStation]:
    """Static set, each record stamped with its distance from `point`, nearest first."""
    out: List[RawStation] = []
    for st in FALLBACK_STATIONS:
        rec = dict(st)
        miles = distance(point, GeoPoint(st["latitude"], st["longitude"]))
        rec["distance"] = round(miles, 2)
        rec["distance_km"] = round(miles_to_km(miles), 2)
        out.append(rec)
    out.sort(key=lambda r: r["distance"])
    return out


# ---------------- Cache ----------------
CacheKey = Tuple[float, float, float, Tuple[Tuple[str, str], ...]]


class StationCache:
    """
    TTL cache of successful lookups, safe to share between threads.
    Entries are advisory: a miss or an expired entry just means a live lookup.
    """

    def __init__(self, ttl_s: float = STATION_CACHE_TTL_S, max_entries: int = STATION_CACHE_MAX_ENTRIES):
        self.ttl_s = ttl_s
        self.max_entries = max(1, int(max_entries))
        self._entries: Dict[CacheKey, Tuple[float, List[RawStation]]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def key(point: GeoPoint, radius_miles: float, station_filter: Dict[str, str]) -> CacheKey:
        return (
            round(point.latitude, 3),
            round(point.longitude, 3),
            float(radius_miles),
            tuple(sorted(station_filter.items())),
        )

    def get(self, key: CacheKey) -> Optional[List[RawStation]]:
        with self._lock:
            hit = self._entries.get(key)
            if hit is None:
                return None
            stored_at, data = hit
            if time.monotonic() - stored_at >= self.ttl_s:
                del self._entries[key]
                return None
        return copy.deepcopy(data)

    def put(self, key: CacheKey, data: List[RawStation]) -> None:
        snapshot = copy.deepcopy(data)
        now = time.monotonic()
        with self._lock:
            expired = [k for k, (stored_at, _) in self._entries.items() if now - stored_at >= self.ttl_s]
            for k in expired:
                del self._entries[k]
            # re-insert so dict order stays oldest-first
            self._entries.pop(key, None)
            while len(self._entries) >= self.max_entries:
                del self._entries[next(iter(self._entries))]
            self._entries[key] = (now, snapshot)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


# ---------------- Public API ----------------
class StationDirectory:
    """
    Candidate charging stations near a point, from the NREL Alternative Fuel
    Stations API. Any failure (HTTP error, transport error, timeout, bad
    payload) degrades to the static fallback set; nothing is raised and
    nothing is retried here.
    """

    def __init__(
        self,
        api_key: str = NREL_API_KEY,
        base_url: str = NREL_API_BASE,
        timeout_s: float = STATION_LOOKUP_TIMEOUT_S,
        cache: Optional[StationCache] = None,
        limit: int = STATION_RESULT_LIMIT,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self.cache = cache
        self.limit = limit

    def query_near(
        self,
        point: GeoPoint,
        radius_miles: float,
        station_filter: Optional[Dict[str, str]] = None,
        timeout_s: Optional[float] = None,
    ) -> List[RawStation]:
        station_filter = dict(DEFAULT_STATION_FILTER if station_filter is None else station_filter)
        timeout_s = self.timeout_s if timeout_s is None else timeout_s

        key = StationCache.key(point, radius_miles, station_filter)
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug("Station cache hit for %s", key)
                return cached

        try:
            params = _query_params(self.api_key, point, radius_miles, station_filter, self.limit)
            stations = _extract_stations(_get_nrel(self.base_url, params, timeout_s))
        except (requests.RequestException, ValueError, ExternalLookupFailure) as e:
            logger.warning(
                "Station lookup near (%.4f, %.4f) failed, using fallback set: %s",
                point.latitude, point.longitude, e,
            )
            return fallback_stations(point)

        logger.info(
            "NREL returned %d stations within %s mi of (%.4f, %.4f)",
            len(stations), radius_miles, point.latitude, point.longitude,
        )
        if self.cache is not None:
            self.cache.put(key, stations)
        return stations
