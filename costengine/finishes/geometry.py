"""
Finishing Works Geometry
Plan area and perimeter of spaces, opening areas, and wall surfaces laid
out along grid lines between two levels.

Space boundaries share the roof plane boundary records: a rectangle between
four grid lines or a simple polygon in plan (metres).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

import numpy as np
from pydantic import BaseModel, Field

from ..errors import ConfigurationError, GridSystemRequiredError
from ..grid import GridResolver
from ..roofing.geometry import GridRectBoundary, PolygonBoundary, compute_plan_area

SpaceBoundary = Union[GridRectBoundary, PolygonBoundary]


class SurfaceType(str, Enum):
    EXTERIOR = "exterior"
    INTERIOR = "interior"
    BOTH = "both"


# Faces finished per surface type
SIDES_BY_SURFACE = {
    SurfaceType.EXTERIOR: 1,
    SurfaceType.INTERIOR: 2,
    SurfaceType.BOTH: 2,
}


class Space(BaseModel):
    """A room or area on one level."""
    id: str
    name: str = ""
    level_id: str
    boundary: SpaceBoundary = Field(discriminator='kind')
    open_to_below: bool = False
    tags: Dict[str, str] = Field(default_factory=dict)


class Opening(BaseModel):
    """Door, window or other opening. Belongs to a space, a wall surface, or neither."""
    id: str
    type: str
    width_m: float = Field(gt=0)
    height_m: float = Field(gt=0)
    qty: int = Field(default=1, ge=1)
    level_id: str
    space_id: Optional[str] = None
    wall_surface_id: Optional[str] = None

    @property
    def area_m2(self) -> float:
        return self.width_m * self.height_m * self.qty


class WallGridLine(BaseModel):
    """
    Grid line a wall runs along.

    axis 'X' means the wall sits on an X grid line and its span labels are Y
    grid lines; axis 'Y' is the reverse.
    """
    axis: Literal['X', 'Y']
    label: str
    span: Tuple[str, str]


class WallSurface(BaseModel):
    id: str
    name: str = ""
    grid_line: WallGridLine
    level_start: str
    level_end: str
    surface_type: SurfaceType = SurfaceType.INTERIOR
    tags: Dict[str, str] = Field(default_factory=dict)


@dataclass(frozen=True)
class SpaceGeometry:
    area_m2: float
    perimeter_m: float

    def to_dict(self) -> Dict[str, Any]:
        return {'area_m2': self.area_m2, 'perimeter_m': self.perimeter_m}


@dataclass(frozen=True)
class WallSurfaceGeometry:
    length_m: float
    height_m: float
    sides_count: int

    @property
    def gross_area_m2(self) -> float:
        return self.length_m * self.height_m

    @property
    def total_area_m2(self) -> float:
        return self.gross_area_m2 * self.sides_count

    def to_dict(self) -> Dict[str, Any]:
        return {
            'length_m': self.length_m,
            'height_m': self.height_m,
            'gross_area_m2': self.gross_area_m2,
            'sides_count': self.sides_count,
            'total_area_m2': self.total_area_m2,
        }


def polygon_perimeter(points: List[Tuple[float, float]]) -> float:
    """Closed-ring perimeter of a polygon in plan."""
    xy = np.asarray(points, dtype=float)
    edges = np.roll(xy, -1, axis=0) - xy
    return float(np.hypot(edges[:, 0], edges[:, 1]).sum())


def compute_space_geometry(space: Space, grid: Optional[GridResolver]) -> SpaceGeometry:
    """Area and perimeter of a space boundary."""
    boundary = space.boundary
    if isinstance(boundary, PolygonBoundary):
        if len(boundary.points) < 3:
            raise ConfigurationError(f"Space {space.id}: polygon needs at least 3 points")
        return SpaceGeometry(
            area_m2=compute_plan_area(boundary, grid),
            perimeter_m=polygon_perimeter(boundary.points),
        )

    if grid is None or not grid.has_grid:
        raise GridSystemRequiredError()
    width = abs(grid.x_offset(boundary.x[1]) - grid.x_offset(boundary.x[0]))
    length = abs(grid.y_offset(boundary.y[1]) - grid.y_offset(boundary.y[0]))
    return SpaceGeometry(area_m2=width * length, perimeter_m=2 * (width + length))


def compute_wall_surface_geometry(wall: WallSurface, grid: GridResolver) -> WallSurfaceGeometry:
    line = wall.grid_line
    start, end = line.span
    if line.axis == 'X':
        grid.x_offset(line.label)
        length = abs(grid.y_offset(end) - grid.y_offset(start))
    else:
        grid.y_offset(line.label)
        length = abs(grid.x_offset(end) - grid.x_offset(start))

    height = abs(grid.elevation(wall.level_end) - grid.elevation(wall.level_start))
    return WallSurfaceGeometry(
        length_m=length,
        height_m=height,
        sides_count=SIDES_BY_SURFACE[wall.surface_type],
    )
