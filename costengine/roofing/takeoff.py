"""
Roof Covering Takeoff
Turns a roof plane's geometry into a covering quantity:

    quantity = base area × (1 + lap allowance + waste)

where the base area is the slope or plan area according to the roof type.
"""

from typing import Optional

from ..boq.classification import TRADE_DEFAULT_PAY_ITEMS
from ..grid import GridResolver
from ..models import TakeoffLine, Trade
from ..units import round_half_up
from .geometry import AreaBasis, RoofPlane, RoofType, compute_roof_plane_geometry


def compute_roof_cover_takeoff(
    plane: RoofPlane,
    roof_type: RoofType,
    grid: Optional[GridResolver],
    decimals: int = 2,
) -> TakeoffLine:
    geometry = compute_roof_plane_geometry(plane, grid)

    if roof_type.area_basis == AreaBasis.SLOPE_AREA:
        base_area = geometry.slope_area_m2
    else:
        base_area = geometry.plan_area_m2

    adjustment = 1 + roof_type.lap_allowance + roof_type.waste
    quantity = base_area * adjustment

    formula = (
        f"{roof_type.name or roof_type.id}: {roof_type.area_basis.value} × (1 + lap + waste) = "
        f"{base_area:.2f} × {adjustment:.3f} = {quantity:.2f} {roof_type.unit}"
    )

    assumptions = [
        f"Area basis: {roof_type.area_basis.value}",
        f"Slope: {plane.slope.describe()}",
        f"Lap allowance: {roof_type.lap_allowance * 100:.1f}%",
        f"Waste: {roof_type.waste * 100:.1f}%",
    ]
    assumptions.extend(roof_type.notes)

    tags = {
        'roof_plane': plane.name or plane.id,
        'roof_type': roof_type.name or roof_type.id,
        'level': plane.level_id,
    }
    tags.update(plane.tags)

    return TakeoffLine(
        id=f"{plane.id}_roofing",
        source_element_id=plane.id,
        trade=Trade.ROOFING.value,
        resource_key=f"roof-{roof_type.id}",
        quantity=round_half_up(quantity, decimals),
        unit=roof_type.unit,
        formula_text=formula,
        inputs_snapshot={
            'plan_area_m2': geometry.plan_area_m2,
            'slope_factor': geometry.slope_factor,
            'slope_area_m2': geometry.slope_area_m2,
            'lap_allowance': roof_type.lap_allowance,
            'waste': roof_type.waste,
        },
        assumptions=assumptions,
        tags=tags,
        pay_item=roof_type.pay_item or TRADE_DEFAULT_PAY_ITEMS[Trade.ROOFING.value],
    )
