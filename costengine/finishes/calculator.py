"""
Finishing Works Takeoff Run
One line per space finish assignment and per wall surface finish assignment.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..config import EngineSettings
from ..errors import (
    ConfigurationError,
    FinishTypeNotFoundError,
    SpaceNotFoundError,
    WallSurfaceNotFoundError,
)
from ..grid import GridResolver
from ..models import TakeoffLine
from .geometry import Opening, Space, WallSurface, compute_space_geometry, compute_wall_surface_geometry
from .takeoff import (
    FinishCategory,
    FinishType,
    SpaceFinishAssignment,
    WallSurfaceFinishAssignment,
    compute_ceiling_finish_takeoff,
    compute_floor_finish_takeoff,
    compute_wall_finish_takeoff,
    compute_wall_surface_finish_takeoff,
)

logger = logging.getLogger(__name__)


@dataclass
class FinishesSummary:
    total_floor_area_m2: float = 0.0
    total_wall_area_m2: float = 0.0
    total_ceiling_area_m2: float = 0.0
    line_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_floor_area_m2': round(self.total_floor_area_m2, 3),
            'total_wall_area_m2': round(self.total_wall_area_m2, 3),
            'total_ceiling_area_m2': round(self.total_ceiling_area_m2, 3),
            'line_count': self.line_count,
        }


@dataclass
class FinishesResult:
    takeoff_lines: List[TakeoffLine] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    summary: FinishesSummary = field(default_factory=FinishesSummary)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'takeoff_lines': [line.to_dict() for line in self.takeoff_lines],
            'errors': list(self.errors),
            'warnings': list(self.warnings),
            'summary': self.summary.to_dict(),
        }


class FinishesCalculator:
    def __init__(self, grid: GridResolver, settings: Optional[EngineSettings] = None):
        self.grid = grid
        self.settings = settings or EngineSettings()

    def storey_height(self, level_id: str) -> Tuple[float, Optional[str]]:
        """Height to the next level up; the default storey height, with a warning, on the top level."""
        above = self.grid.next_level_above(level_id)
        if above is None:
            default = self.settings.finishes.default_storey_height
            return default, f"Level {level_id} has no level above; storey height {default:g} m assumed"
        return above.elevation - self.grid.elevation(level_id), None

    def calculate(
        self,
        spaces: Iterable[Space],
        openings: Iterable[Opening],
        finish_types: Iterable[FinishType],
        assignments: Iterable[SpaceFinishAssignment],
        wall_surfaces: Iterable[WallSurface] = (),
        wall_assignments: Iterable[WallSurfaceFinishAssignment] = (),
    ) -> FinishesResult:
        result = FinishesResult()
        spaces_by_id = {s.id: s for s in spaces}
        walls_by_id = {w.id: w for w in wall_surfaces}
        types_by_id = {ft.id: ft for ft in finish_types}
        openings = list(openings)

        for assignment in assignments:
            try:
                line = self._space_line(assignment, spaces_by_id, types_by_id, openings, result)
            except ConfigurationError as e:
                logger.warning(f"Skipping finish assignment {assignment.id}: {e}")
                result.errors.append(str(e))
                continue
            result.takeoff_lines.append(line)

        for assignment in wall_assignments:
            try:
                wall = walls_by_id.get(assignment.wall_surface_id)
                if wall is None:
                    raise WallSurfaceNotFoundError(assignment.id, assignment.wall_surface_id)
                finish_type = types_by_id.get(assignment.finish_type_id)
                if finish_type is None:
                    raise FinishTypeNotFoundError(assignment.id, assignment.finish_type_id)
                geometry = compute_wall_surface_geometry(wall, self.grid)
                line = compute_wall_surface_finish_takeoff(
                    wall, geometry, finish_type, assignment, openings,
                    decimals=self.settings.rounding.finishes,
                )
            except ConfigurationError as e:
                logger.warning(f"Skipping wall finish assignment {assignment.id}: {e}")
                result.errors.append(str(e))
                continue
            result.takeoff_lines.append(line)
            result.summary.total_wall_area_m2 += line.quantity

        result.summary.line_count = len(result.takeoff_lines)
        logger.info(
            f"Finishes takeoff: {result.summary.line_count} lines, "
            f"{len(result.errors)} errors, {len(result.warnings)} warnings"
        )
        return result

    def _space_line(self, assignment, spaces_by_id, types_by_id, openings, result) -> TakeoffLine:
        space = spaces_by_id.get(assignment.space_id)
        if space is None:
            raise SpaceNotFoundError(assignment.id, assignment.space_id)
        finish_type = types_by_id.get(assignment.finish_type_id)
        if finish_type is None:
            raise FinishTypeNotFoundError(assignment.id, assignment.finish_type_id)

        geometry = compute_space_geometry(space, self.grid)
        decimals = self.settings.rounding.finishes

        if finish_type.category == FinishCategory.FLOOR:
            line = compute_floor_finish_takeoff(space, geometry, finish_type, assignment, decimals)
            result.summary.total_floor_area_m2 += line.quantity
            return line

        if finish_type.category == FinishCategory.CEILING:
            line = compute_ceiling_finish_takeoff(space, geometry, finish_type, assignment, decimals)
            result.summary.total_ceiling_area_m2 += line.quantity
            return line

        # wall, plaster and paint
        height, warning = self.storey_height(space.level_id)
        if warning and finish_type.wall_height_rule.mode != 'fixed' and assignment.height_m is None:
            result.warnings.append(f"Space {space.id}: {warning}")
        level_openings = [o for o in openings if o.level_id == space.level_id]
        line = compute_wall_finish_takeoff(
            space, geometry, finish_type, assignment, level_openings, height, decimals,
        )
        result.summary.total_wall_area_m2 += line.quantity
        return line


def compute_finishes_takeoff(
    grid: GridResolver,
    spaces: Iterable[Space],
    openings: Iterable[Opening],
    finish_types: Iterable[FinishType],
    assignments: Iterable[SpaceFinishAssignment],
    wall_surfaces: Iterable[WallSurface] = (),
    wall_assignments: Iterable[WallSurfaceFinishAssignment] = (),
    settings: Optional[EngineSettings] = None,
) -> FinishesResult:
    """Convenience wrapper around FinishesCalculator."""
    return FinishesCalculator(grid, settings).calculate(
        spaces, openings, finish_types, assignments, wall_surfaces, wall_assignments,
    )
