"""
Reinforcing Steel Takeoff
Bar counts, lap splices and weights per bar group.

Weight per group:
    W = N × (Lbar + 2 × Llap) × unit weight × (1 + waste)

N is the explicit bar count, or ceil(span / spacing) + 1 from the spacing.
"""

import logging
import math
from typing import Dict, List, Optional, Tuple

from ..config import LapSettings
from ..models import REBAR_UNIT_WEIGHTS, RebarConfig, RebarGroup, TakeoffLine, Trade
from ..units import round_half_up
from .geometry import fmt

logger = logging.getLogger(__name__)


def unit_weight(diameter_mm: int) -> float:
    """kg per metre for a nominal bar diameter."""
    if diameter_mm not in REBAR_UNIT_WEIGHTS:
        raise ValueError(f"Unknown bar diameter: {diameter_mm}mm")
    return REBAR_UNIT_WEIGHTS[diameter_mm]


def rebar_grade(diameter_mm: int) -> int:
    """Steel grade normally supplied for a bar size."""
    if diameter_mm <= 12:
        return 40
    if diameter_mm <= 36:
        return 60
    return 80


def rebar_pay_item(diameter_mm: int, epoxy_coated: bool = False) -> str:
    if epoxy_coated:
        return "902 (2)"
    suffix = {40: 'a1', 60: 'a2', 80: 'a3'}[rebar_grade(diameter_mm)]
    return f"902 (1) {suffix}"


def bar_count(group: RebarGroup, span: float) -> Tuple[int, str]:
    """Bar count and how it was derived."""
    if group.count is not None:
        return group.count, f"{group.count} bars (specified)"
    # Clean float noise so 8.0 / 0.2 gives 40, not 40.000000000000004
    count = math.ceil(round(span / group.spacing, 9)) + 1
    return count, f"ceil({fmt(span)} / {fmt(group.spacing)}) + 1 = {count} bars"


def lap_length(group: RebarGroup, lap: LapSettings, closed_hoop: bool = False) -> float:
    """Lap splice length for the group, clamped to the project bounds."""
    if group.lap_length is not None:
        return lap.clamp(group.lap_length)
    if closed_hoop:
        return 0.0
    return lap.default_for(group.diameter_mm)


def compute_rebar_lines(
    instance_id: str,
    geometry,
    rebar_config: Optional[RebarConfig],
    waste: float,
    lap: LapSettings,
    hook_allowance: float = 0.15,
    decimals: int = 2,
    tags: Optional[Dict[str, str]] = None,
) -> Tuple[List[TakeoffLine], List[str]]:
    """One takeoff line per configured bar group, plus warnings."""
    lines: List[TakeoffLine] = []
    warnings: List[str] = []

    if rebar_config is None:
        return lines, warnings

    for group_name, group in rebar_config.groups().items():
        run = geometry.bar_run(group_name, hook_allowance)
        if run is None:
            warnings.append(
                f"Element {instance_id}: {group_name} bars not applicable to this element type; skipped"
            )
            continue

        count, count_note = bar_count(group, run.spacing_span)
        lap_m = lap_length(group, lap, closed_hoop=run.closed_hoop)
        kg_per_m = unit_weight(group.diameter_mm)
        weight = count * (run.bar_length + 2 * lap_m) * kg_per_m * (1 + waste)
        grade = rebar_grade(group.diameter_mm)

        formula = (
            f"W = N × (Lbar + 2 × Llap) × w × (1 + waste) = "
            f"{count} × ({fmt(run.bar_length)} + 2 × {lap_m:.3f}) × {kg_per_m} × {1 + waste:g}"
            f" = {weight:.2f} kg"
        )

        line_tags = dict(tags or {})
        line_tags.update({
            'rebar_group': group_name,
            'diameter': f"{group.diameter_mm}mm",
            'grade': str(grade),
        })

        lines.append(TakeoffLine(
            id=f"{instance_id}_rebar_{group_name}",
            source_element_id=instance_id,
            trade=Trade.REBAR.value,
            resource_key=f"rebar-{group.diameter_mm}mm-grade{grade}-{group_name}",
            quantity=round_half_up(weight, decimals),
            unit="kg",
            formula_text=formula,
            inputs_snapshot={
                'bar_count': count,
                'bar_length_m': run.bar_length,
                'lap_length_m': lap_m,
                'unit_weight_kg_per_m': kg_per_m,
                'waste_rebar': waste,
            },
            assumptions=[
                count_note,
                f"Lap length {lap_m:.3f} m (bounds {lap.min_length}-{lap.max_length} m)"
                if lap_m else "Closed hoops, no lap splice",
                f"Bar {group.diameter_mm}mm Grade {grade} at {kg_per_m} kg/m",
                f"Rebar waste: {waste * 100:.0f}%",
            ],
            tags=line_tags,
            pay_item=rebar_pay_item(group.diameter_mm, rebar_config.epoxy_coated),
        ))

    return lines, warnings
