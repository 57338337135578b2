"""
Roofing Takeoff Run
Roof covering lines for every roof plane, plus truss, purlin, bracing and
accessory lines when the project carries a truss design.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, Field

from ..config import EngineSettings
from ..errors import ConfigurationError, RoofTypeNotFoundError
from ..grid import GridResolver
from ..models import TakeoffLine, Trade
from ..units import round_half_up
from .framing import (
    DEFAULT_DPWH_MAPPINGS,
    ROOFING_MATERIALS,
    BracingConfiguration,
    FramingParameters,
    PayItemMapping,
    calculate_roof_framing,
)
from .geometry import RoofPlane, RoofType
from .takeoff import compute_roof_cover_takeoff
from .truss import MaterialSpecification, TrussParameters, design_trusses

logger = logging.getLogger(__name__)


class FramingSpec(BaseModel):
    roofing_material: str = 'GI_Sheet_26'
    purlin_spacing_mm: float = Field(gt=0)
    purlin_spec: MaterialSpecification
    bracing: BracingConfiguration
    include_ridge_cap: bool = True
    include_eave_girt: bool = True


class TrussDesign(BaseModel):
    """Project roof structure: one truss type repeated along the building."""
    truss: TrussParameters
    building_length_mm: float = Field(gt=0)
    framing: Optional[FramingSpec] = None
    pay_items: Dict[str, PayItemMapping] = Field(default_factory=dict)

    def pay_item(self, key: str) -> PayItemMapping:
        return self.pay_items.get(key) or DEFAULT_DPWH_MAPPINGS[key]


@dataclass
class RoofingSummary:
    total_roof_area_m2: float = 0.0
    roof_plane_count: int = 0
    total_truss_weight_kg: float = 0.0
    total_purlin_weight_kg: float = 0.0
    total_bracing_weight_kg: float = 0.0


@dataclass
class RoofingResult:
    takeoff_lines: List[TakeoffLine] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    summary: RoofingSummary = field(default_factory=RoofingSummary)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'takeoff_lines': [line.to_dict() for line in self.takeoff_lines],
            'errors': list(self.errors),
            'warnings': list(self.warnings),
            'summary': dict(self.summary.__dict__),
        }


def _steel_line(
    line_id: str,
    resource_key: str,
    quantity: float,
    unit: str,
    formula: str,
    snapshot: Dict[str, float],
    assumptions: List[str],
    tags: Dict[str, str],
    mapping: PayItemMapping,
) -> TakeoffLine:
    return TakeoffLine(
        id=line_id,
        source_element_id=line_id,
        trade=Trade.ROOFING.value,
        resource_key=resource_key,
        quantity=quantity,
        unit=unit,
        formula_text=formula,
        inputs_snapshot=snapshot,
        assumptions=assumptions,
        tags=tags,
        pay_item=mapping.item_number,
    )


class RoofingCalculator:
    def __init__(self, grid: Optional[GridResolver], settings: Optional[EngineSettings] = None):
        self.grid = grid
        self.settings = settings or EngineSettings()

    def calculate(
        self,
        roof_planes: Iterable[RoofPlane],
        roof_types: Iterable[RoofType],
        truss_design: Optional[TrussDesign] = None,
    ) -> RoofingResult:
        result = RoofingResult()
        types_by_id = {rt.id: rt for rt in roof_types}
        decimals = self.settings.rounding.roofing

        for plane in roof_planes:
            try:
                roof_type = types_by_id.get(plane.roof_type_id)
                if roof_type is None:
                    raise RoofTypeNotFoundError(plane.name or plane.id, plane.roof_type_id)
                line = compute_roof_cover_takeoff(plane, roof_type, self.grid, decimals)
            except ConfigurationError as e:
                message = str(e)
                if not message.startswith("Roof plane"):
                    message = f"Roof plane '{plane.name or plane.id}': {message}"
                logger.warning(message)
                result.errors.append(message)
                continue

            result.takeoff_lines.append(line)
            result.summary.total_roof_area_m2 += line.inputs_snapshot['slope_area_m2']
            result.summary.roof_plane_count += 1

        if truss_design is not None:
            self._structure_lines(truss_design, result)

        logger.info(
            f"Roofing takeoff: {result.summary.roof_plane_count} planes, "
            f"{len(result.takeoff_lines)} lines, {len(result.errors)} errors"
        )
        return result

    def _structure_lines(self, design: TrussDesign, result: RoofingResult) -> None:
        """Truss, purlin, bracing and accessory lines."""
        params = design.truss
        trusses = design_trusses(params, design.building_length_mm, self.settings.truss)
        truss = trusses.truss
        per_truss = truss.summary.total_weight_kg
        result.warnings.extend(f"Truss: {w}" for w in truss.validation.warnings)
        result.summary.total_truss_weight_kg = trusses.total_weight_kg

        result.takeoff_lines.append(_steel_line(
            'truss_system',
            f"truss-{truss.type.value}",
            round_half_up(trusses.total_weight_kg, 2),
            'kg',
            f"{trusses.truss_count} trusses × {per_truss:.2f} kg = {trusses.total_weight_kg:.2f} kg",
            {
                'truss_count': trusses.truss_count,
                'weight_per_truss_kg': per_truss,
                'span_mm': params.span_mm,
                'spacing_mm': params.spacing_mm,
            },
            [
                f"Truss type: {truss.type.value}",
                f"Span: {params.span_mm:g} mm, rise {params.rise_mm:g} mm",
                f"Spacing: {params.spacing_mm:g} mm",
                f"Quantity: {trusses.truss_count} trusses",
                f"Top chord: {params.top_chord_material.section}",
                f"Bottom chord: {params.bottom_chord_material.section}",
                f"Web: {params.web_material.section}",
            ],
            {'component': 'truss', 'truss_type': truss.type.value},
            design.pay_item('truss_steel'),
        ))

        if design.framing is None:
            return

        spec = design.framing
        material = ROOFING_MATERIALS.get(spec.roofing_material)
        if material is None:
            result.errors.append(f"Unknown roofing material '{spec.roofing_material}'; framing skipped")
            return

        framing_params = FramingParameters(
            truss_span_mm=params.span_mm,
            truss_spacing_mm=params.spacing_mm,
            building_length_mm=design.building_length_mm,
            truss_quantity=trusses.truss_count,
            truss_rise_mm=params.rise_mm,
            roofing_material=material,
            purlin_spacing_mm=spec.purlin_spacing_mm,
            purlin_spec=spec.purlin_spec,
            bracing=spec.bracing,
            include_ridge_cap=spec.include_ridge_cap,
            include_eave_girt=spec.include_eave_girt,
        )
        framing = calculate_roof_framing(framing_params, self.settings.framing)
        result.warnings.extend(framing.warnings)
        purlins, bracing, accessories = framing.purlins, framing.bracing, framing.accessories
        result.summary.total_purlin_weight_kg = purlins.total_weight_kg
        result.summary.total_bracing_weight_kg = bracing.total_weight_kg

        result.takeoff_lines.append(_steel_line(
            'purlin_system',
            f"purlin-{spec.purlin_spec.section}",
            round_half_up(purlins.total_weight_kg, 2),
            'kg',
            f"{purlins.total_length_m:.1f} m × {spec.purlin_spec.weight_kg_per_m} kg/m = "
            f"{purlins.total_weight_kg:.2f} kg",
            {
                'total_length_m': purlins.total_length_m,
                'weight_kg_per_m': spec.purlin_spec.weight_kg_per_m,
                'lines_per_side': purlins.lines_per_side,
                'spacing_mm': spec.purlin_spacing_mm,
            },
            [
                f"Purlin section: {spec.purlin_spec.section}",
                f"Purlin spacing: {spec.purlin_spacing_mm:g} mm",
                f"Lines per side: {purlins.lines_per_side} plus ridge",
            ],
            {'component': 'purlin', 'section': spec.purlin_spec.section},
            design.pay_item('purlin_steel'),
        ))

        result.takeoff_lines.append(_steel_line(
            'bracing_system',
            f"bracing-{spec.bracing.type.value}",
            round_half_up(bracing.total_weight_kg, 2),
            'kg',
            f"{bracing.total_length_m:.1f} m × {spec.bracing.material.weight_kg_per_m} kg/m = "
            f"{bracing.total_weight_kg:.2f} kg",
            {
                'total_length_m': bracing.total_length_m,
                'weight_kg_per_m': spec.bracing.material.weight_kg_per_m,
                'bay_count': bracing.bay_count,
            },
            [
                f"Bracing type: {spec.bracing.type.value}",
                f"Bracing interval: {spec.bracing.interval_mm:g} mm",
                f"Bay count: {bracing.bay_count}",
                f"Section: {spec.bracing.material.section}",
            ],
            {'component': 'bracing', 'bracing_type': spec.bracing.type.value},
            design.pay_item('bolts_and_rods'),
        ))

        if bracing.turnbuckle_count > 0:
            multiplier = bracing.turnbuckle_count // max(bracing.bay_count, 1)
            result.takeoff_lines.append(_steel_line(
                'turnbuckle_system',
                'turnbuckles',
                bracing.turnbuckle_count,
                'pcs',
                f"{bracing.bay_count} bays × {multiplier} = {bracing.turnbuckle_count} pcs",
                {'bay_count': bracing.bay_count, 'multiplier': multiplier},
                [f"For {spec.bracing.type.value} bracing"],
                {'component': 'turnbuckle'},
                design.pay_item('turnbuckles'),
            ))

        if accessories.ridge_cap_m > 0:
            result.takeoff_lines.append(_steel_line(
                'ridge_cap',
                'ridge-cap',
                round_half_up(accessories.ridge_cap_m, 2),
                'lm',
                f"Building length = {accessories.ridge_cap_m:.2f} m",
                {'building_length_mm': design.building_length_mm},
                [f"Length: {accessories.ridge_cap_m:.2f} m"],
                {'component': 'ridge_cap'},
                design.pay_item('ridge_cap'),
            ))

        if accessories.bolts_and_nuts > 0:
            bolt_kg = self.settings.framing.bolt_weight_kg
            weight = accessories.bolts_and_nuts * bolt_kg
            result.takeoff_lines.append(_steel_line(
                'purlin_bolts',
                'purlin-bolts',
                round_half_up(weight, 2),
                'kg',
                f"{accessories.bolts_and_nuts} bolts × {bolt_kg} kg = {weight:.2f} kg",
                {'bolt_count': accessories.bolts_and_nuts, 'weight_per_bolt_kg': bolt_kg},
                [f"{self.settings.framing.bolts_per_connection} bolts per purlin-truss connection"],
                {'component': 'bolts'},
                design.pay_item('bolts_and_rods'),
            ))
