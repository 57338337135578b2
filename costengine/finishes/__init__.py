"""
Finishing works: floor, ceiling and wall finishes for spaces and wall surfaces.
"""

from .calculator import FinishesCalculator, FinishesResult, FinishesSummary, compute_finishes_takeoff
from .geometry import (
    Opening,
    Space,
    SpaceGeometry,
    SurfaceType,
    WallGridLine,
    WallSurface,
    WallSurfaceGeometry,
    compute_space_geometry,
    compute_wall_surface_geometry,
    polygon_perimeter,
)
from .takeoff import (
    DeductionRule,
    FinishCategory,
    FinishType,
    SpaceFinishAssignment,
    WallHeightRule,
    WallSurfaceFinishAssignment,
    compute_ceiling_finish_takeoff,
    compute_floor_finish_takeoff,
    compute_wall_finish_takeoff,
    compute_wall_surface_finish_takeoff,
    deductible_openings,
)
