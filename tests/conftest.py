"""Fixtures for testing."""
from unittest.mock import MagicMock

import pytest

from ev_route_planner.models import GeoPoint, VehicleProfile

MILES_PER_DEGREE_LAT = 3959.0 * 3.141592653589793 / 180.0


def point_north_of(origin: GeoPoint, miles: float) -> GeoPoint:
    """Point due north of `origin`; haversine along a meridian is exact."""
    return GeoPoint(origin.latitude + miles / MILES_PER_DEGREE_LAT, origin.longitude)


def raw_station(id_, distance=None, **overrides):
    rec = {
        "id": id_,
        "station_name": f"Station {id_}",
        "street_address": "1 Main St",
        "city": "Somewhere",
        "state": "CA",
        "latitude": 37.0,
        "longitude": -120.5,
        "ev_network": "Tesla",
        "ev_connector_types": ["TESLA"],
        "ev_dc_fast_num": 12,
        "ev_level2_evse_num": 0,
        "ev_pricing": "$0.30/kWh",
        "access_code": "public",
        "access_days_time": "24 hours daily",
        "facility_type": "RETAIL",
        "status_code": "E",
    }
    if distance is not None:
        rec["distance"] = distance
    rec.update(overrides)
    return rec


@pytest.fixture
def model_y():
    return VehicleProfile(
        battery_capacity_kwh=75.0,
        usable_capacity_kwh=72.5,
        range_miles=280.0,
        max_charge_rate_kw=250.0,
    )


@pytest.fixture
def three_stop_route():
    """Three points ~55 mi apart along the 37th parallel."""
    return [GeoPoint(37.0, -121.0), GeoPoint(37.0, -120.0), GeoPoint(37.0, -119.0)]


@pytest.fixture
def fake_directory():
    directory = MagicMock()
    directory.query_near.return_value = [
        raw_station("far", distance=12.5),
        raw_station("nearest", distance=3.2),
        raw_station("mid", distance=8.0),
    ]
    return directory
