from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

from .errors import ConfigurationError

StationStatus = Literal["available", "busy", "offline"]
WarningLevel = Literal["ok", "low", "critical"]


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float

    def __post_init__(self):
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"latitude {self.latitude} outside [-90, 90]")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"longitude {self.longitude} outside [-180, 180]")

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.latitude, "lng": self.longitude}


@dataclass(frozen=True)
class VehicleProfile:
    battery_capacity_kwh: float
    usable_capacity_kwh: float
    range_miles: float
    max_charge_rate_kw: float

    def validate(self) -> None:
        if self.range_miles <= 0:
            raise ConfigurationError(f"range_miles must be > 0 (got {self.range_miles})")
        if self.usable_capacity_kwh <= 0:
            raise ConfigurationError(f"usable_capacity_kwh must be > 0 (got {self.usable_capacity_kwh})")
        if self.usable_capacity_kwh > self.battery_capacity_kwh:
            raise ConfigurationError(
                f"usable_capacity_kwh ({self.usable_capacity_kwh}) exceeds "
                f"battery_capacity_kwh ({self.battery_capacity_kwh})"
            )


# Tesla Model Y (EPA)
DEFAULT_VEHICLE = VehicleProfile(
    battery_capacity_kwh=75.0,
    usable_capacity_kwh=72.5,
    range_miles=280.0,
    max_charge_rate_kw=250.0,
)


@dataclass
class RouteSegment:
    start: GeoPoint
    end: GeoPoint
    distance_miles: int
    battery_used_percent: int
    battery_remaining_percent: int
    needs_intervention: bool = False
    warning_level: WarningLevel = "ok"

    def midpoint(self) -> GeoPoint:
        # arithmetic mean, fine at road-trip scale
        return GeoPoint(
            latitude=(self.start.latitude + self.end.latitude) / 2.0,
            longitude=(self.start.longitude + self.end.longitude) / 2.0,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from": self.start.to_dict(),
            "to": self.end.to_dict(),
            "distanceMiles": self.distance_miles,
            "batteryUsedPercent": self.battery_used_percent,
            "batteryRemainingPercent": self.battery_remaining_percent,
            "needsIntervention": self.needs_intervention,
            "warningLevel": self.warning_level,
        }


@dataclass
class ChargingStation:
    id: str
    name: str
    location: GeoPoint
    network: str
    connector_types: List[str]
    dc_fast_count: int
    level2_count: int
    pricing: str
    access_code: str
    hours: str
    facility_type: str
    status: StationStatus
    distance_from_query_miles: float
    charging_speed_class: str
    estimated_charge_time_minutes: int
    amenities: List[str]
    address: str = ""
    city: str = ""
    state: str = ""
    distance_from_query_km: float = 0.0
    # set on suggested stops only
    arrival_percent: Optional[int] = None
    trip_charge_time_minutes: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "id": self.id,
            "name": self.name,
            "location": self.location.to_dict(),
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "network": self.network,
            "connectorTypes": list(self.connector_types),
            "dcFastCount": self.dc_fast_count,
            "level2Count": self.level2_count,
            "pricing": self.pricing,
            "accessCode": self.access_code,
            "hours": self.hours,
            "facilityType": self.facility_type,
            "status": self.status,
            "distanceFromQueryMiles": self.distance_from_query_miles,
            "distanceFromQueryKm": self.distance_from_query_km,
            "chargingSpeedClass": self.charging_speed_class,
            "estimatedChargeTimeMinutes": self.estimated_charge_time_minutes,
            "amenities": list(self.amenities),
        }
        if self.arrival_percent is not None:
            out["arrivalPercent"] = self.arrival_percent
        if self.trip_charge_time_minutes is not None:
            out["tripChargeTimeMinutes"] = self.trip_charge_time_minutes
        return out


@dataclass
class BatteryAnalysis:
    segments: List[RouteSegment]
    needs_charging: bool
    range_anxiety: bool
    estimated_remaining_percent: float
    total_distance_miles: float = 0.0

    @property
    def flagged_indices(self) -> List[int]:
        return [i for i, s in enumerate(self.segments) if s.needs_intervention]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "segments": [s.to_dict() for s in self.segments],
            "needsCharging": self.needs_charging,
            "rangeAnxiety": self.range_anxiety,
            "estimatedRemainingPercent": self.estimated_remaining_percent,
            "totalDistanceMiles": self.total_distance_miles,
        }


@dataclass
class ChargingPlan:
    stations: List[ChargingStation]
    suggested_stops: List[ChargingStation]
    battery_analysis: BatteryAnalysis
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stations": [s.to_dict() for s in self.stations],
            "suggestedStops": [s.to_dict() for s in self.suggested_stops],
            "batteryAnalysis": self.battery_analysis.to_dict(),
            "warnings": list(self.warnings),
        }
