from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence

from .battery import analyze
from .charge_curve import estimate_charge_time_minutes
from .config import (
    DEFAULT_STATION_FILTER,
    LOW_BATTERY_PERCENT,
    MIDPOINT_SEARCH_RADIUS_MILES,
    PLANNER_MAX_WORKERS,
    POST_CHARGE_PERCENT,
)
from .models import BatteryAnalysis, ChargingPlan, ChargingStation, GeoPoint, RouteSegment, VehicleProfile
from .station_formatter import normalize
from .station_provider import StationDirectory

logger = logging.getLogger(__name__)


def nearest_station(stations: Sequence[ChargingStation]) -> Optional[ChargingStation]:
    if not stations:
        return None
    return min(stations, key=lambda s: s.distance_from_query_miles)


def segment_warnings(analysis: BatteryAnalysis) -> List[str]:
    out: List[str] = []
    last = len(analysis.segments) - 1
    for i, seg in enumerate(analysis.segments):
        where = "the destination" if i == last else f"waypoint {i + 2}"
        if seg.warning_level == "critical":
            out.append(
                f"Critical: battery will drop to {seg.battery_remaining_percent}% before {where}. "
                "Add a charging stop."
            )
        elif seg.warning_level == "low":
            out.append(
                f"Warning: battery will be low ({seg.battery_remaining_percent}%) on reaching {where}. "
                "Consider charging."
            )
    return out


class ChargingStopPlanner:
    """
    Route + vehicle + starting SoC -> ChargingPlan.

    Each flagged leg gets one lookup around its midpoint; the nearest
    candidate becomes the suggested stop for that leg. With max_workers > 1
    the lookups run on a thread pool, results are still assembled in route
    order.
    """

    def __init__(
        self,
        directory: StationDirectory,
        max_workers: int = PLANNER_MAX_WORKERS,
        search_radius_miles: float = MIDPOINT_SEARCH_RADIUS_MILES,
        station_filter: Optional[Dict[str, str]] = None,
        lookup_timeout_s: Optional[float] = None,
    ):
        self.directory = directory
        self.max_workers = max(1, int(max_workers))
        self.search_radius_miles = search_radius_miles
        self.station_filter = dict(DEFAULT_STATION_FILTER if station_filter is None else station_filter)
        self.lookup_timeout_s = lookup_timeout_s

    def _candidates(self, seg: RouteSegment, profile: VehicleProfile) -> List[ChargingStation]:
        mid = seg.midpoint()
        raw = self.directory.query_near(
            mid,
            self.search_radius_miles,
            self.station_filter,
            timeout_s=self.lookup_timeout_s,
        )
        return [normalize(r, origin=mid, profile=profile) for r in raw]

    def _lookup_all(
        self, analysis: BatteryAnalysis, profile: VehicleProfile
    ) -> Dict[int, List[ChargingStation]]:
        flagged = analysis.flagged_indices
        results: Dict[int, List[ChargingStation]] = {}
        if not flagged:
            return results

        if self.max_workers == 1 or len(flagged) == 1:
            for idx in flagged:
                results[idx] = self._candidates(analysis.segments[idx], profile)
            return results

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(flagged))) as executor:
            futures = {
                executor.submit(self._candidates, analysis.segments[idx], profile): idx
                for idx in flagged
            }
            for future in as_completed(futures):
                results[futures[future]] = future.result()
        return results

    def plan(
        self,
        waypoints: Sequence[GeoPoint],
        start_percent: float,
        profile: VehicleProfile,
        low_threshold_percent: float = LOW_BATTERY_PERCENT,
    ) -> ChargingPlan:
        analysis = analyze(waypoints, start_percent, profile, low_threshold_percent)

        stations: List[ChargingStation] = []
        suggested: List[ChargingStation] = []
        warnings = segment_warnings(analysis)

        by_segment = self._lookup_all(analysis, profile)

        # --- assemble in route order ---
        for idx in analysis.flagged_indices:
            candidates = by_segment.get(idx, [])
            stations.extend(candidates)

            best = nearest_station(candidates)
            if best is None:
                warnings.append(f"No charging stations found near leg {idx + 1}.")
                continue

            arrival = analysis.segments[idx].battery_remaining_percent
            suggested.append(
                replace(
                    best,
                    arrival_percent=arrival,
                    trip_charge_time_minutes=estimate_charge_time_minutes(arrival, POST_CHARGE_PERCENT, profile),
                )
            )

        logger.info(
            "Planned %d legs (%.1f mi): %d flagged, %d stops, ends at %s%%",
            len(analysis.segments),
            analysis.total_distance_miles,
            len(analysis.flagged_indices),
            len(suggested),
            analysis.estimated_remaining_percent,
        )

        return ChargingPlan(
            stations=stations,
            suggested_stops=suggested,
            battery_analysis=analysis,
            warnings=warnings,
        )


def plan_summary(plan: ChargingPlan) -> Dict[str, Any]:
    ba = plan.battery_analysis
    return {
        "legs": len(ba.segments),
        "total_distance_miles": ba.total_distance_miles,
        "stops": [s.name for s in plan.suggested_stops],
        "remaining_percent": ba.estimated_remaining_percent,
    }
