from .models import (
    GeoPoint,
    VehicleProfile,
    RouteSegment,
    ChargingStation,
    BatteryAnalysis,
    ChargingPlan,
)
from .errors import ConfigurationError, ExternalLookupFailure
from .battery import analyze
from .station_provider import StationDirectory, StationCache
from .planner import ChargingStopPlanner

__all__ = [
    "GeoPoint",
    "VehicleProfile",
    "RouteSegment",
    "ChargingStation",
    "BatteryAnalysis",
    "ChargingPlan",
    "ConfigurationError",
    "ExternalLookupFailure",
    "analyze",
    "StationDirectory",
    "StationCache",
    "ChargingStopPlanner",
]
