from __future__ import annotations

from typing import Sequence

from .config import CRITICAL_BATTERY_PERCENT, LOW_BATTERY_PERCENT, POST_CHARGE_PERCENT
from .geo import distance, round_half_up
from .models import BatteryAnalysis, GeoPoint, RouteSegment, VehicleProfile, WarningLevel


def warning_level(remaining_percent: float, low_threshold_percent: float = LOW_BATTERY_PERCENT) -> WarningLevel:
    if remaining_percent < CRITICAL_BATTERY_PERCENT:
        return "critical"
    if remaining_percent < low_threshold_percent:
        return "low"
    return "ok"


def analyze(
    waypoints: Sequence[GeoPoint],
    start_percent: float,
    profile: VehicleProfile,
    low_threshold_percent: float = LOW_BATTERY_PERCENT,
) -> BatteryAnalysis:
    """
    Simulate battery depletion leg by leg along `waypoints` (in travel order).

    A leg that would end below `low_threshold_percent` and is not the last leg
    is flagged `needs_intervention`, and the next leg starts from
    POST_CHARGE_PERCENT (80%). That reset is a planning assumption that the
    driver charges there, not a guarantee. A single leg longer than the range
    itself is not split into several stops; it simply ends at 0%.

    Raises ConfigurationError for an invalid profile.
    """
    if len(waypoints) < 2:
        return BatteryAnalysis(
            segments=[],
            needs_charging=False,
            range_anxiety=False,
            estimated_remaining_percent=start_percent,
        )

    profile.validate()

    segments = []
    total_miles = 0.0
    current = float(start_percent)
    last_leg = len(waypoints) - 2

    for i in range(len(waypoints) - 1):
        start, end = waypoints[i], waypoints[i + 1]
        miles = distance(start, end)
        used = miles / profile.range_miles * 100.0
        remaining = max(0.0, current - used)
        total_miles += miles

        flagged = remaining < low_threshold_percent and i < last_leg
        segments.append(
            RouteSegment(
                start=start,
                end=end,
                distance_miles=round_half_up(miles),
                battery_used_percent=round_half_up(used),
                battery_remaining_percent=round_half_up(remaining),
                needs_intervention=flagged,
                warning_level=warning_level(remaining, low_threshold_percent),
            )
        )

        current = POST_CHARGE_PERCENT if flagged else remaining

    return BatteryAnalysis(
        segments=segments,
        needs_charging=current < CRITICAL_BATTERY_PERCENT,
        range_anxiety=current < LOW_BATTERY_PERCENT,
        estimated_remaining_percent=round_half_up(current),
        total_distance_miles=round(total_miles, 1),
    )
