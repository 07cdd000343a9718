import logging
from typing import List, Optional

from fastapi import FastAPI, Query, WebSocket, WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .charge_curve import estimate_charge_time_minutes, format_charge_time
from .config import LOG_LEVEL, LOW_BATTERY_PERCENT, MIDPOINT_SEARCH_RADIUS_MILES
from .errors import ConfigurationError
from .models import DEFAULT_VEHICLE, GeoPoint, VehicleProfile
from .notifications import WarningNotifier
from .planner import ChargingStopPlanner
from .station_formatter import normalize
from .station_provider import StationCache, StationDirectory

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="EV Route Planner")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

notifier = WarningNotifier()
directory = StationDirectory(cache=StationCache())
planner = ChargingStopPlanner(directory)


@app.get("/health")
def health():
    return {"status": "ok"}


# ---------- DTOs ----------
class WaypointDTO(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class VehicleDTO(BaseModel):
    battery_capacity_kwh: float = DEFAULT_VEHICLE.battery_capacity_kwh
    usable_capacity_kwh: float = DEFAULT_VEHICLE.usable_capacity_kwh
    range_miles: float = DEFAULT_VEHICLE.range_miles
    max_charge_rate_kw: float = DEFAULT_VEHICLE.max_charge_rate_kw


class PlanRequest(BaseModel):
    waypoints: List[WaypointDTO]
    start_percent: float = Field(default=80.0, ge=0, le=100)
    vehicle: Optional[VehicleDTO] = None
    low_threshold_percent: float = Field(default=LOW_BATTERY_PERCENT, ge=0, le=100)


def _profile(dto: Optional[VehicleDTO]) -> VehicleProfile:
    if dto is None:
        return DEFAULT_VEHICLE
    return VehicleProfile(**dto.model_dump())


# ---------- API ----------
@app.post("/plan")
async def plan(req: PlanRequest):
    waypoints = [GeoPoint(w.lat, w.lng) for w in req.waypoints]
    try:
        result = await run_in_threadpool(
            planner.plan, waypoints, req.start_percent, _profile(req.vehicle), req.low_threshold_percent
        )
    except ConfigurationError as e:
        logger.warning("Rejected plan request: %s", e)
        return JSONResponse(status_code=400, content={"ok": False, "error": str(e)})

    await notifier.publish_plan_warnings(result)
    return result.to_dict()


@app.get("/stations/near")
def stations_near(
    lat: float = Query(ge=-90, le=90),
    lng: float = Query(ge=-180, le=180),
    radius_miles: float = Query(default=MIDPOINT_SEARCH_RADIUS_MILES, gt=0),
):
    point = GeoPoint(lat, lng)
    raw = directory.query_near(point, radius_miles)
    return {"stations": [normalize(r, origin=point).to_dict() for r in raw]}


@app.get("/charge-time")
def charge_time(
    current_percent: float = Query(ge=0, le=100),
    target_percent: float = Query(default=80.0, ge=0),
):
    minutes = estimate_charge_time_minutes(current_percent, target_percent, DEFAULT_VEHICLE)
    return {"minutes": minutes, "display": format_charge_time(minutes)}


@app.websocket("/ws")
async def ws_endpoint(ws: WebSocket):
    await notifier.subscribe(ws)
    try:
        while True:
            await ws.receive_text()
    except WebSocketDisconnect:
        notifier.unsubscribe(ws)
