"""
Roof Plane Geometry
Plan area, slope factor and slope area for roof planes.

Boundaries are either a rectangle between four grid lines or a simple
polygon in plan (metres). Slopes are a rise/run ratio or an angle in degrees.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

import numpy as np
from pydantic import BaseModel, Field, model_validator

from ..errors import GridSystemRequiredError
from ..grid import GridResolver


class SlopeMode(str, Enum):
    RATIO = "ratio"
    DEGREES = "degrees"


class AreaBasis(str, Enum):
    SLOPE_AREA = "slopeArea"
    PLAN_AREA = "planArea"


class RoofSlope(BaseModel):
    mode: SlopeMode = SlopeMode.RATIO
    value: float = Field(default=0.0, ge=0)

    @model_validator(mode='after')
    def validate_angle(self):
        if self.mode == SlopeMode.DEGREES and self.value >= 90:
            raise ValueError(f"slope angle must be below 90 degrees, got {self.value}")
        return self

    def describe(self) -> str:
        if self.mode == SlopeMode.RATIO:
            return f"{self.value:g} rise/run"
        return f"{self.value:g}°"


class GridRectBoundary(BaseModel):
    kind: Literal['grid_rect'] = 'grid_rect'
    x: Tuple[str, str]
    y: Tuple[str, str]


class PolygonBoundary(BaseModel):
    kind: Literal['polygon'] = 'polygon'
    points: List[Tuple[float, float]] = Field(default_factory=list)


RoofBoundary = Union[GridRectBoundary, PolygonBoundary]


class RoofPlane(BaseModel):
    id: str
    name: str = ""
    level_id: str = ""
    boundary: RoofBoundary = Field(discriminator='kind')
    slope: RoofSlope = Field(default_factory=RoofSlope)
    roof_type_id: str
    tags: Dict[str, str] = Field(default_factory=dict)


class RoofType(BaseModel):
    """How a plane's area becomes a covering quantity. Lap and waste are fractions."""
    id: str
    name: str = ""
    area_basis: AreaBasis = AreaBasis.SLOPE_AREA
    lap_allowance: float = Field(default=0.0, ge=0, le=1)
    waste: float = Field(default=0.0, ge=0, le=1)
    unit: str = "m²"
    pay_item: Optional[str] = None
    notes: List[str] = Field(default_factory=list)


@dataclass(frozen=True)
class RoofPlaneGeometry:
    plan_area_m2: float
    slope_factor: float
    slope_area_m2: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'plan_area_m2': self.plan_area_m2,
            'slope_factor': self.slope_factor,
            'slope_area_m2': self.slope_area_m2,
        }


def polygon_area(points) -> float:
    """Shoelace area of a simple polygon. Fewer than three points gives 0."""
    if len(points) < 3:
        return 0.0
    xy = np.asarray(points, dtype=float)
    x, y = xy[:, 0], xy[:, 1]
    return float(abs(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1))) / 2.0)


def compute_plan_area(boundary: RoofBoundary, grid: Optional[GridResolver]) -> float:
    """Plan area (m²) of a roof boundary."""
    if isinstance(boundary, PolygonBoundary):
        return polygon_area(boundary.points)

    if grid is None or not grid.has_grid:
        raise GridSystemRequiredError()
    x1, x2 = (grid.x_offset(label) for label in boundary.x)
    y1, y2 = (grid.y_offset(label) for label in boundary.y)
    return abs(x2 - x1) * abs(y2 - y1)


def compute_slope_factor(slope: RoofSlope) -> float:
    """Sloped length per unit plan length."""
    if slope.value == 0:
        return 1.0
    if slope.mode == SlopeMode.RATIO:
        return math.sqrt(1 + slope.value ** 2)
    return 1 / math.cos(math.radians(slope.value))


def compute_roof_plane_geometry(plane: RoofPlane, grid: Optional[GridResolver]) -> RoofPlaneGeometry:
    plan_area = compute_plan_area(plane.boundary, grid)
    factor = compute_slope_factor(plane.slope)
    return RoofPlaneGeometry(
        plan_area_m2=plan_area,
        slope_factor=factor,
        slope_area_m2=plan_area * factor,
    )
