"""
Finish Takeoff
Floor, ceiling and wall finish quantities for spaces, and finish quantities
for wall surfaces:

    floor     = area × (1 + waste)
    ceiling   = area × (1 + waste), or 0 when the space is open to below
    wall      = max(perimeter × height - openings, 0) × (1 + waste)
    surface   = max(gross - openings, 0) × sides × (1 + waste)
"""

from enum import Enum
from typing import Dict, Iterable, List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from ..models import TakeoffLine, Trade
from ..units import round_half_up
from .geometry import Opening, Space, SpaceGeometry, WallSurface, WallSurfaceGeometry


class FinishCategory(str, Enum):
    FLOOR = "floor"
    CEILING = "ceiling"
    WALL = "wall"
    PLASTER = "plaster"
    PAINT = "paint"


class WallHeightRule(BaseModel):
    mode: Literal['full_height', 'fixed'] = 'full_height'
    value_m: Optional[float] = Field(default=None, gt=0)

    @model_validator(mode='after')
    def validate_fixed_value(self):
        if self.mode == 'fixed' and self.value_m is None:
            raise ValueError("fixed wall height rule needs value_m")
        return self


class DeductionRule(BaseModel):
    """Which openings come off a wall finish. An empty include_types means every type."""
    enabled: bool = True
    min_opening_area_m2: float = Field(default=0.0, ge=0)
    include_types: List[str] = Field(default_factory=list)

    def describe(self) -> str:
        types = ', '.join(self.include_types) or 'all'
        return f"Deduction: min {self.min_opening_area_m2:g} m², types: {types}"


class FinishType(BaseModel):
    id: str
    name: str = ""
    category: FinishCategory
    unit: str = "m²"
    pay_item: str
    waste: float = Field(default=0.0, ge=0, le=1)
    wall_height_rule: WallHeightRule = Field(default_factory=WallHeightRule)
    deduction_rule: DeductionRule = Field(default_factory=lambda: DeductionRule(enabled=False))


class SpaceFinishAssignment(BaseModel):
    """A finish applied to a space. waste and height_m override the finish type."""
    id: str
    space_id: str
    finish_type_id: str
    waste: Optional[float] = Field(default=None, ge=0, le=1)
    height_m: Optional[float] = Field(default=None, gt=0)


class WallSurfaceFinishAssignment(BaseModel):
    id: str
    wall_surface_id: str
    finish_type_id: str
    side: Optional[Literal['single', 'both']] = None
    waste: Optional[float] = Field(default=None, ge=0, le=1)


def deductible_openings(rule: DeductionRule, openings: Iterable[Opening]) -> List[Opening]:
    """Openings the rule deducts; the caller filters by space or wall surface first."""
    if not rule.enabled:
        return []
    return [
        o for o in openings
        if (not rule.include_types or o.type in rule.include_types)
        and o.area_m2 >= rule.min_opening_area_m2
    ]


def _waste(finish_type: FinishType, override: Optional[float]) -> float:
    return finish_type.waste if override is None else override


def _space_tags(space: Space, finish_type: FinishType) -> Dict[str, str]:
    tags = {
        'level': space.level_id,
        'space': space.id,
        'space_name': space.name or space.id,
        'category': finish_type.category.value,
        'finish': finish_type.name or finish_type.id,
    }
    tags.update(space.tags)
    return tags


def _space_line(
    space: Space,
    finish_type: FinishType,
    quantity: float,
    formula: str,
    snapshot: Dict[str, float],
    assumptions: List[str],
    decimals: int,
) -> TakeoffLine:
    category = finish_type.category.value
    return TakeoffLine(
        id=f"{space.id}_{category}_{finish_type.id}",
        source_element_id=space.id,
        trade=Trade.FINISHES.value,
        resource_key=f"{category}-{finish_type.id}",
        quantity=round_half_up(quantity, decimals),
        unit=finish_type.unit,
        formula_text=formula,
        inputs_snapshot=snapshot,
        assumptions=assumptions,
        tags=_space_tags(space, finish_type),
        pay_item=finish_type.pay_item,
    )


def compute_floor_finish_takeoff(
    space: Space,
    geometry: SpaceGeometry,
    finish_type: FinishType,
    assignment: SpaceFinishAssignment,
    decimals: int = 3,
) -> TakeoffLine:
    waste = _waste(finish_type, assignment.waste)
    quantity = geometry.area_m2 * (1 + waste)
    return _space_line(
        space, finish_type, quantity,
        f"Floor finish = area × (1 + waste) = {geometry.area_m2:.3f} × {1 + waste:.3f}",
        {'area_m2': geometry.area_m2, 'waste': waste},
        [f"Waste: {waste * 100:.1f}%"],
        decimals,
    )


def compute_ceiling_finish_takeoff(
    space: Space,
    geometry: SpaceGeometry,
    finish_type: FinishType,
    assignment: SpaceFinishAssignment,
    decimals: int = 3,
) -> TakeoffLine:
    waste = _waste(finish_type, assignment.waste)
    if space.open_to_below:
        quantity = 0.0
        formula = "Ceiling finish = 0 (open to below)"
        assumptions = ["Open to below: no ceiling"]
    else:
        quantity = geometry.area_m2 * (1 + waste)
        formula = f"Ceiling finish = area × (1 + waste) = {geometry.area_m2:.3f} × {1 + waste:.3f}"
        assumptions = [f"Waste: {waste * 100:.1f}%"]
    return _space_line(
        space, finish_type, quantity, formula,
        {'area_m2': geometry.area_m2, 'waste': waste, 'open_to_below': float(space.open_to_below)},
        assumptions,
        decimals,
    )


def compute_wall_finish_takeoff(
    space: Space,
    geometry: SpaceGeometry,
    finish_type: FinishType,
    assignment: SpaceFinishAssignment,
    openings: Iterable[Opening],
    storey_height: float,
    decimals: int = 3,
) -> TakeoffLine:
    """
    Wall finish around a space's perimeter.

    Height, first match wins: the finish type's fixed height, the
    assignment's height override, then the storey height. Openings on
    another space are ignored; openings with no space apply to every space.
    """
    rule = finish_type.wall_height_rule
    if rule.mode == 'fixed':
        height = rule.value_m
        height_note = f"Fixed height: {height:g} m"
    elif assignment.height_m is not None:
        height = assignment.height_m
        height_note = f"Assigned height: {height:g} m"
    else:
        height = storey_height
        height_note = f"Storey height: {height:g} m"

    own = [o for o in openings if o.space_id is None or o.space_id == space.id]
    deducted = deductible_openings(finish_type.deduction_rule, own)
    deduction = sum(o.area_m2 for o in deducted)

    gross = geometry.perimeter_m * height
    net = max(gross - deduction, 0.0)
    waste = _waste(finish_type, assignment.waste)
    quantity = net * (1 + waste)

    assumptions = [height_note]
    if finish_type.deduction_rule.enabled:
        assumptions.append(finish_type.deduction_rule.describe())
        assumptions.append(f"Openings deducted: {len(deducted)} ({deduction:.3f} m²)")
    assumptions.append(f"Waste: {waste * 100:.1f}%")

    return _space_line(
        space, finish_type, quantity,
        f"Wall finish = (perimeter × height - openings) × (1 + waste) = "
        f"({geometry.perimeter_m:.3f} × {height:.3f} - {deduction:.3f}) × {1 + waste:.3f}",
        {
            'perimeter_m': geometry.perimeter_m,
            'height_m': height,
            'gross_area_m2': gross,
            'opening_area_m2': deduction,
            'waste': waste,
        },
        assumptions,
        decimals,
    )


def compute_wall_surface_finish_takeoff(
    wall: WallSurface,
    geometry: WallSurfaceGeometry,
    finish_type: FinishType,
    assignment: WallSurfaceFinishAssignment,
    openings: Iterable[Opening],
    decimals: int = 3,
) -> TakeoffLine:
    """Finish on a wall surface. Openings are deducted once per side."""
    if assignment.side == 'single':
        sides = 1
    elif assignment.side == 'both':
        sides = 2
    else:
        sides = geometry.sides_count

    own = [o for o in openings if o.wall_surface_id == wall.id]
    deducted = deductible_openings(finish_type.deduction_rule, own)
    deduction = sum(o.area_m2 for o in deducted)

    gross = geometry.gross_area_m2
    net_per_side = max(gross - deduction, 0.0)
    waste = _waste(finish_type, assignment.waste)
    quantity = net_per_side * sides * (1 + waste)

    line = wall.grid_line
    assumptions = [
        f"Wall: {line.axis} = {line.label}, span {line.span[0]}-{line.span[1]}, "
        f"levels {wall.level_start}-{wall.level_end}",
        f"Dimensions: {geometry.length_m:.2f} m × {geometry.height_m:.2f} m",
        f"Surface type: {wall.surface_type.value} ({sides} side{'s' if sides > 1 else ''})",
    ]
    if finish_type.deduction_rule.enabled:
        assumptions.append(finish_type.deduction_rule.describe())
        assumptions.append(f"Openings deducted: {len(deducted)} ({deduction:.3f} m²)")
    assumptions.append(f"Waste: {waste * 100:.1f}%")

    tags = {
        'wall_surface': wall.id,
        'wall_surface_name': wall.name or wall.id,
        'surface_type': wall.surface_type.value,
        'level_range': f"{wall.level_start}-{wall.level_end}",
        'category': finish_type.category.value,
        'finish': finish_type.name or finish_type.id,
    }
    tags.update(wall.tags)

    return TakeoffLine(
        id=f"{wall.id}_{finish_type.category.value}_{finish_type.id}",
        source_element_id=wall.id,
        trade=Trade.FINISHES.value,
        resource_key=f"wallsurface-{finish_type.id}",
        quantity=round_half_up(quantity, decimals),
        unit=finish_type.unit,
        formula_text=(
            f"Wall finish = (gross - openings) × sides × (1 + waste) = "
            f"({gross:.3f} - {deduction:.3f}) × {sides} × {1 + waste:.3f}"
        ),
        inputs_snapshot={
            'gross_area_m2': gross,
            'opening_area_m2': deduction,
            'sides_count': sides,
            'waste': waste,
        },
        assumptions=assumptions,
        tags=tags,
        pay_item=finish_type.pay_item,
    )
