"""
Hauling Cost Calculator
Converts a haul route into a per-cubic-metre surcharge.

The route is walked from the source in segment order. Distance inside the
free-haul allowance is not billed; a segment straddling the allowance is
split in proportion to its distance. Each billable kilometre is travelled
loaded one way and empty on the way back:

    time (h)    = Σ billable_km / loaded_kmh + billable_km / unloaded_kmh
    cost per m³ = time × equipment rate / equipment capacity
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..config import HaulingSettings

logger = logging.getLogger(__name__)


class Terrain(str, Enum):
    LEVEL = "Level"
    ROLLING = "Rolling"
    MOUNTAINOUS = "Mountainous"


# (loaded km/h, unloaded km/h)
TERRAIN_SPEEDS = {
    Terrain.LEVEL: (30.0, 40.0),
    Terrain.ROLLING: (20.0, 30.0),
    Terrain.MOUNTAINOUS: (15.0, 20.0),
}


class RouteSegment(BaseModel):
    distance_km: float = Field(ge=0)
    terrain: Terrain = Terrain.LEVEL
    speed_loaded_kmh: Optional[float] = Field(default=None, gt=0)
    speed_unloaded_kmh: Optional[float] = Field(default=None, gt=0)

    @property
    def loaded_speed(self) -> float:
        return self.speed_loaded_kmh or TERRAIN_SPEEDS[self.terrain][0]

    @property
    def unloaded_speed(self) -> float:
        return self.speed_unloaded_kmh or TERRAIN_SPEEDS[self.terrain][1]


class HaulingTemplate(BaseModel):
    total_distance_km: float = Field(ge=0)
    free_hauling_distance_km: Optional[float] = Field(default=None, ge=0)
    route_segments: List[RouteSegment] = Field(default_factory=list)
    equipment_hourly_rate: Optional[float] = Field(default=None, ge=0)
    equipment_capacity_m3: Optional[float] = Field(default=None, gt=0)


@dataclass
class SegmentCost:
    index: int
    distance_km: float
    billable_km: float
    travel_time_hours: float


@dataclass
class HaulingResult:
    chargeable_distance_km: float
    travel_time_hours: float
    cost_per_trip: float
    cost_per_m3: float
    segments: List[SegmentCost] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'chargeable_distance_km': round(self.chargeable_distance_km, 3),
            'travel_time_hours': round(self.travel_time_hours, 4),
            'cost_per_trip': round(self.cost_per_trip, 2),
            'cost_per_m3': round(self.cost_per_m3, 2),
            'segments': [s.__dict__ for s in self.segments],
            'warnings': list(self.warnings),
        }


def _round_trip_hours(distance_km: float, loaded: float, unloaded: float) -> float:
    return distance_km / loaded + distance_km / unloaded


def compute_hauling_cost(
    template: HaulingTemplate,
    settings: Optional[HaulingSettings] = None,
) -> HaulingResult:
    """Surcharge per m³ for hauling over the billable part of the route."""
    settings = settings or HaulingSettings()
    free = template.free_hauling_distance_km
    if free is None:
        free = settings.free_distance_km
    rate = template.equipment_hourly_rate
    if rate is None:
        rate = settings.equipment_rate_per_hour
    capacity = template.equipment_capacity_m3 or settings.equipment_capacity_m3
    total = template.total_distance_km

    warnings: List[str] = []
    segments: List[SegmentCost] = []
    travel_hours = 0.0
    start = 0.0

    for index, segment in enumerate(template.route_segments):
        end = start + segment.distance_km
        # Billable window is [free, total]
        billable = max(0.0, min(end, total) - max(start, free))
        hours = _round_trip_hours(billable, segment.loaded_speed, segment.unloaded_speed)
        segments.append(SegmentCost(index, segment.distance_km, billable, hours))
        travel_hours += hours
        start = end

    if start < total and total > free:
        remainder = total - max(start, free)
        if template.route_segments:
            last = template.route_segments[-1]
            loaded, unloaded = last.loaded_speed, last.unloaded_speed
        else:
            loaded, unloaded = TERRAIN_SPEEDS[Terrain.LEVEL]
        hours = _round_trip_hours(remainder, loaded, unloaded)
        segments.append(SegmentCost(len(segments), total - start, remainder, hours))
        travel_hours += hours
        warnings.append(
            f"Route segments cover {start:g} km of {total:g} km; "
            f"remaining {remainder:g} km billed at {loaded:g}/{unloaded:g} km/h"
        )

    cost_per_trip = travel_hours * rate
    result = HaulingResult(
        chargeable_distance_km=max(total - free, 0.0),
        travel_time_hours=travel_hours,
        cost_per_trip=cost_per_trip,
        cost_per_m3=cost_per_trip / capacity,
        segments=segments,
        warnings=warnings,
    )
    for warning in warnings:
        logger.warning(warning)
    return result
