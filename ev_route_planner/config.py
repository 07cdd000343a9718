import os

from dotenv import load_dotenv

load_dotenv()


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return float(raw)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


# ---------- Provider (NREL Alternative Fuel Stations) ----------
NREL_API_KEY = os.getenv("NREL_API_KEY", "DEMO_KEY")
NREL_API_BASE = os.getenv("NREL_API_BASE", "https://developer.nrel.gov/api/alt-fuel-stations/v1")
STATION_LOOKUP_TIMEOUT_S = _env_float("STATION_LOOKUP_TIMEOUT_S", 10.0)
STATION_CACHE_TTL_S = _env_float("STATION_CACHE_TTL_S", 600.0)
STATION_CACHE_MAX_ENTRIES = _env_int("STATION_CACHE_MAX_ENTRIES", 256)
STATION_RESULT_LIMIT = 20

# ---------- Planner ----------
PLANNER_MAX_WORKERS = _env_int("PLANNER_MAX_WORKERS", 1)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

EARTH_RADIUS_MILES = 3959.0
MILES_TO_KM = 1.609

LOW_BATTERY_PERCENT = 20.0
CRITICAL_BATTERY_PERCENT = 10.0
# assumed SoC after stopping at a suggested charger
POST_CHARGE_PERCENT = 80.0
MIDPOINT_SEARCH_RADIUS_MILES = 30.0

# Tesla + CCS connectors, DC networks
DEFAULT_STATION_FILTER = {
    "fuel_type": "ELEC",
    "ev_connector_type": "TESLA,J1772COMBO",
}

# ---------- Charging curve (average kW per bucket) ----------
CURVE_FAST_KW = 200.0  # target <= 50%
CURVE_MEDIUM_FROM_LOW_KW = 150.0  # 50% < target <= 80%, starting below 50%
CURVE_MEDIUM_FROM_HIGH_KW = 100.0  # 50% < target <= 80%, starting at/above 50%
CURVE_TAPER_KW = 60.0  # target > 80%

# catalog-level estimate shown on every station
REFERENCE_CHARGE_FROM_PERCENT = 20.0
REFERENCE_CHARGE_TO_PERCENT = 80.0
