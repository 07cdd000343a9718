from __future__ import annotations

from dataclasses import dataclass

from .config import (
    CURVE_FAST_KW,
    CURVE_MEDIUM_FROM_HIGH_KW,
    CURVE_MEDIUM_FROM_LOW_KW,
    CURVE_TAPER_KW,
)
from .geo import round_half_up
from .models import VehicleProfile


@dataclass(frozen=True)
class ChargeCurve:
    """
    Average DC charging power in three buckets, keyed on the target SoC:
      - target <= 50%          -> fast
      - 50% < target <= 80%    -> medium (depends on starting below/above 50%)
      - target > 80%           -> taper
    """
    fast_kw: float = CURVE_FAST_KW
    medium_from_low_kw: float = CURVE_MEDIUM_FROM_LOW_KW
    medium_from_high_kw: float = CURVE_MEDIUM_FROM_HIGH_KW
    taper_kw: float = CURVE_TAPER_KW

    def average_kw(self, current_percent: float, target_percent: float) -> float:
        if target_percent <= 50:
            return self.fast_kw
        if target_percent <= 80:
            return self.medium_from_low_kw if current_percent < 50 else self.medium_from_high_kw
        return self.taper_kw


DEFAULT_CURVE = ChargeCurve()


def estimate_charge_time_minutes(
    current_percent: float,
    target_percent: float,
    profile: VehicleProfile,
    curve: ChargeCurve = DEFAULT_CURVE,
) -> int:
    target_percent = min(target_percent, 100.0)
    if target_percent <= current_percent:
        return 0

    energy_kwh = (target_percent - current_percent) / 100.0 * profile.usable_capacity_kwh
    avg_kw = curve.average_kw(current_percent, target_percent)
    # the car can't pull more than its own limit
    if profile.max_charge_rate_kw > 0:
        avg_kw = min(avg_kw, profile.max_charge_rate_kw)

    return round_half_up(energy_kwh / avg_kw * 60.0)


def format_charge_time(minutes: int) -> str:
    if minutes < 60:
        return f"{minutes}min"
    return f"{minutes // 60}h {minutes % 60}min"
