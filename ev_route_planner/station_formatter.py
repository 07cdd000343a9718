from __future__ import annotations

from typing import Any, Dict, List, Optional

from .charge_curve import estimate_charge_time_minutes
from .config import REFERENCE_CHARGE_FROM_PERCENT, REFERENCE_CHARGE_TO_PERCENT
from .geo import distance, miles_to_km
from .models import DEFAULT_VEHICLE, ChargingStation, GeoPoint, StationStatus, VehicleProfile

# (facility_type keywords, amenities added)
FACILITY_AMENITIES = [
    (("grocery", "retail"), ("Shopping", "Food")),
    (("hotel", "lodging"), ("Hotel", "Dining")),
    (("restaurant", "dining"), ("Restaurant", "Coffee")),
    (("gas", "travel"), ("Convenience Store", "Food")),
]
BASE_AMENITIES = ("Restrooms", "WiFi")
NETWORK_AMENITIES = {"Tesla": ("Tesla Lounge",)}


def speed_class(network: str, dc_fast_count: int) -> str:
    if network == "Tesla" and dc_fast_count > 0:
        return "250kW Supercharger V3"
    return "150kW DC Fast"


def map_status(status_code: Optional[str]) -> StationStatus:
    """NREL status codes: T = temporarily unavailable, P = planned."""
    if status_code == "T":
        return "offline"
    if status_code == "P":
        return "busy"
    return "available"


def amenities_for(facility_type: Optional[str], network: Optional[str]) -> List[str]:
    out: List[str] = list(BASE_AMENITIES)
    ft = (facility_type or "").lower()
    for keywords, extras in FACILITY_AMENITIES:
        if any(k in ft for k in keywords):
            out.extend(extras)
    out.extend(NETWORK_AMENITIES.get(network or "", ()))
    # dedupe, keep first-seen order
    return list(dict.fromkeys(out))


def _count(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def normalize(
    raw: Dict[str, Any],
    origin: Optional[GeoPoint] = None,
    profile: Optional[VehicleProfile] = None,
) -> ChargingStation:
    """
    Raw provider record -> ChargingStation.

    `origin` is the query point; it is only used when the record carries no
    `distance` of its own. The charge time is a catalog 20->80% figure for
    `profile` (default vehicle if omitted), not a trip-specific estimate.
    """
    profile = profile or DEFAULT_VEHICLE
    location = GeoPoint(latitude=float(raw["latitude"]), longitude=float(raw["longitude"]))

    network = raw.get("ev_network") or "Unknown"
    dc_fast = _count(raw.get("ev_dc_fast_num"))
    level2 = _count(raw.get("ev_level2_evse_num"))

    dist_mi = raw.get("distance")
    if dist_mi is None:
        dist_mi = distance(origin, location) if origin is not None else 0.0
    dist_mi = float(dist_mi)
    dist_km = raw.get("distance_km")
    dist_km = float(dist_km) if dist_km is not None else miles_to_km(dist_mi)

    return ChargingStation(
        id=str(raw.get("id", "")),
        name=raw.get("station_name") or "Unnamed station",
        location=location,
        address=raw.get("street_address") or "",
        city=raw.get("city") or "",
        state=raw.get("state") or "",
        network=network,
        connector_types=list(raw.get("ev_connector_types") or []),
        dc_fast_count=dc_fast,
        level2_count=level2,
        pricing=raw.get("ev_pricing") or "Contact station for pricing",
        access_code=raw.get("access_code") or "public",
        hours=raw.get("access_days_time") or "24/7",
        facility_type=raw.get("facility_type") or "Public",
        status=map_status(raw.get("status_code")),
        distance_from_query_miles=round(dist_mi, 2),
        distance_from_query_km=round(dist_km, 2),
        charging_speed_class=speed_class(network, dc_fast),
        estimated_charge_time_minutes=estimate_charge_time_minutes(
            REFERENCE_CHARGE_FROM_PERCENT, REFERENCE_CHARGE_TO_PERCENT, profile
        ),
        amenities=amenities_for(raw.get("facility_type"), raw.get("ev_network")),
    )
