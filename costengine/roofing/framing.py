"""
Roof Framing
Purlin layout, bracing, accessories and roofing-sheet counts derived from the
truss span and spacing and the building length. Dimensions in millimetres.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..config import FramingSettings
from ..units import mm_to_m
from .truss import MaterialSpecification

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PayItemMapping:
    item_number: str
    description: str
    unit: str


DEFAULT_DPWH_MAPPINGS = {
    'truss_steel': PayItemMapping('1047 (8) a', 'Structural Steel Trusses', 'Kilogram'),
    'purlin_steel': PayItemMapping('1047 (8) b', 'Structural Steel Purlins', 'Kilogram'),
    'turnbuckles': PayItemMapping('1047 (4) b', 'Metal Structure Accessories Turnbuckle', 'Each'),
    'sag_rods': PayItemMapping('1047 (5) b', 'Metal Structure Accessories Sagrods', 'Kilogram'),
    'bolts_and_rods': PayItemMapping('1047 (5) a', 'Metal Structure Accessories Bolts and Rods', 'Kilogram'),
    'steel_plates': PayItemMapping('1047 (5) d', 'Metal Structure Accessories Steel Plates', 'Kilogram'),
    'roofing_sheets': PayItemMapping('1013 (1)', 'Corrugated Metal Roofing Gauge 26 (0.551 mm)', 'Square Meter'),
    'ridge_cap': PayItemMapping(
        '1013 (2) a', 'Fabricated Metal Roofing Accessory Gauge 26 (0.551 mm) Ridge/Hip Rolls', 'Linear Meter'
    ),
}


class RoofingMaterial(BaseModel):
    type: str
    name: str
    pay_item: str
    max_purlin_spacing_mm: float = Field(gt=0)
    sheet_area_m2: float = Field(default=2.0, gt=0, description="Effective cover per sheet")


ROOFING_MATERIALS = {
    'GI_Sheet_26': RoofingMaterial(
        type='GI_Sheet_26',
        name='Corrugated Metal Roofing Gauge 26 (0.551 mm)',
        pay_item='1013 (1)',
        max_purlin_spacing_mm=600,
        sheet_area_m2=1.44,
    ),
    'Asphalt_3mm': RoofingMaterial(
        type='Asphalt_3mm',
        name='Corrugated Asphalt Roofing 3 mm',
        pay_item='1013 (5)',
        max_purlin_spacing_mm=600,
        sheet_area_m2=2.0,
    ),
}

PURLIN_SECTIONS = {
    'C50x25x15x1.6': MaterialSpecification(section='C50x25x15x1.6', weight_kg_per_m=1.89),
    'C75x40x15x2.0': MaterialSpecification(section='C75x40x15x2.0', weight_kg_per_m=2.93),
    'C100x50x20x2.0': MaterialSpecification(section='C100x50x20x2.0', weight_kg_per_m=3.91),
    'C125x65x20x2.3': MaterialSpecification(section='C125x65x20x2.3', weight_kg_per_m=5.41),
    '2x3" Coco Lumber': MaterialSpecification(section='2x3" Coco Lumber', weight_kg_per_m=2.8),
    '2x4" Coco Lumber': MaterialSpecification(section='2x4" Coco Lumber', weight_kg_per_m=3.7),
}


class BracingType(str, Enum):
    X_BRACE = "X-Brace"
    DIAGONAL = "Diagonal"


class BracingConfiguration(BaseModel):
    type: BracingType = BracingType.X_BRACE
    interval_mm: float = Field(default=6000, gt=0)
    material: MaterialSpecification


class FramingParameters(BaseModel):
    truss_span_mm: float = Field(gt=0)
    truss_spacing_mm: float = Field(gt=0)
    building_length_mm: float = Field(gt=0)
    truss_quantity: int = Field(ge=1)
    truss_rise_mm: Optional[float] = Field(default=None, ge=0, description="Gives true rafter slope length")
    roofing_material: RoofingMaterial = ROOFING_MATERIALS['GI_Sheet_26']
    purlin_spacing_mm: float = Field(gt=0)
    purlin_spec: MaterialSpecification
    bracing: BracingConfiguration
    include_ridge_cap: bool = True
    include_eave_girt: bool = True

    @property
    def slope_length_mm(self) -> float:
        half_span = self.truss_span_mm / 2
        if self.truss_rise_mm:
            return math.hypot(half_span, self.truss_rise_mm)
        return half_span


@dataclass
class PurlinLine:
    position_mm: float      # distance from eave along the slope
    length_mm: float
    pieces: int             # stock lengths needed
    side: str               # "left", "right", "ridge"


@dataclass
class BracingMember:
    bay_number: int
    length_mm: float
    quantity: int
    has_turnbuckle: bool = True


@dataclass
class PurlinResult:
    lines: List[PurlinLine] = field(default_factory=list)
    lines_per_side: int = 0
    total_length_m: float = 0.0
    total_weight_kg: float = 0.0


@dataclass
class BracingResult:
    members: List[BracingMember] = field(default_factory=list)
    bay_count: int = 0
    total_length_m: float = 0.0
    total_weight_kg: float = 0.0
    turnbuckle_count: int = 0


@dataclass
class AccessoryResult:
    ridge_cap_m: float = 0.0
    eave_girt_m: float = 0.0
    bolts_and_nuts: int = 0
    purlin_clips: int = 0


@dataclass
class RoofSheetResult:
    area_m2: float = 0.0
    sheets: int = 0
    screws: int = 0


@dataclass
class FramingResult:
    purlins: PurlinResult
    bracing: BracingResult
    accessories: AccessoryResult
    roofing: RoofSheetResult
    warnings: List[str] = field(default_factory=list)

    @property
    def total_steel_weight_kg(self) -> float:
        return self.purlins.total_weight_kg + self.bracing.total_weight_kg

    def to_dict(self) -> Dict[str, Any]:
        return {
            'purlins': {
                'lines': [line.__dict__ for line in self.purlins.lines],
                'lines_per_side': self.purlins.lines_per_side,
                'total_length_m': round(self.purlins.total_length_m, 2),
                'total_weight_kg': round(self.purlins.total_weight_kg, 2),
            },
            'bracing': {
                'members': [m.__dict__ for m in self.bracing.members],
                'bay_count': self.bracing.bay_count,
                'total_length_m': round(self.bracing.total_length_m, 2),
                'total_weight_kg': round(self.bracing.total_weight_kg, 2),
                'turnbuckle_count': self.bracing.turnbuckle_count,
            },
            'accessories': dict(self.accessories.__dict__),
            'roofing': dict(self.roofing.__dict__),
            'total_steel_weight_kg': round(self.total_steel_weight_kg, 2),
            'warnings': list(self.warnings),
        }


def _ceil(value: float) -> int:
    return math.ceil(round(value, 9))


def calculate_purlins(params: FramingParameters, settings: FramingSettings) -> PurlinResult:
    slope = params.slope_length_mm
    lines_per_side = _ceil(slope / params.purlin_spacing_mm)
    pieces = _ceil(params.building_length_mm / settings.purlin_stock_length_mm)

    lines: List[PurlinLine] = []
    for side in ('left', 'right'):
        for i in range(lines_per_side):
            lines.append(PurlinLine(i * params.purlin_spacing_mm, params.building_length_mm, pieces, side))
    lines.append(PurlinLine(slope, params.building_length_mm, pieces, 'ridge'))

    total_length_m = mm_to_m(sum(line.length_mm for line in lines))
    return PurlinResult(
        lines=lines,
        lines_per_side=lines_per_side,
        total_length_m=total_length_m,
        total_weight_kg=total_length_m * params.purlin_spec.weight_kg_per_m,
    )


def calculate_bracing(params: FramingParameters) -> BracingResult:
    bracing = params.bracing
    bay_count = _ceil(params.building_length_mm / bracing.interval_mm)
    per_bay = 2 if bracing.type == BracingType.X_BRACE else 1

    members = []
    for i in range(bay_count):
        bay_width = min(bracing.interval_mm, params.building_length_mm - i * bracing.interval_mm)
        members.append(BracingMember(
            bay_number=i + 1,
            length_mm=math.hypot(bay_width, params.truss_spacing_mm),
            quantity=per_bay,
        ))

    total_length_m = mm_to_m(sum(m.length_mm * m.quantity for m in members))
    return BracingResult(
        members=members,
        bay_count=bay_count,
        total_length_m=total_length_m,
        total_weight_kg=total_length_m * bracing.material.weight_kg_per_m,
        turnbuckle_count=sum(m.quantity for m in members if m.has_turnbuckle),
    )


def calculate_accessories(
    params: FramingParameters,
    purlins: PurlinResult,
    settings: FramingSettings,
) -> AccessoryResult:
    length_m = mm_to_m(params.building_length_mm)
    return AccessoryResult(
        ridge_cap_m=length_m if params.include_ridge_cap else 0.0,
        eave_girt_m=2 * length_m if params.include_eave_girt else 0.0,
        # Bolts at every purlin-truss connection on both slopes
        bolts_and_nuts=params.truss_quantity * purlins.lines_per_side * settings.bolts_per_connection,
        purlin_clips=params.truss_quantity * len(purlins.lines),
    )


def calculate_roof_sheets(params: FramingParameters, settings: FramingSettings) -> RoofSheetResult:
    area_m2 = mm_to_m(params.slope_length_mm) * mm_to_m(params.building_length_mm) * 2
    sheets = _ceil(area_m2 / params.roofing_material.sheet_area_m2 * (1 + settings.sheet_waste))
    return RoofSheetResult(area_m2=area_m2, sheets=sheets, screws=sheets * settings.screws_per_sheet)


def calculate_roof_framing(
    params: FramingParameters,
    settings: Optional[FramingSettings] = None,
) -> FramingResult:
    """Purlins, bracing, accessories and sheets for one roof."""
    settings = settings or FramingSettings()
    warnings = []

    if params.purlin_spacing_mm > params.roofing_material.max_purlin_spacing_mm:
        warnings.append(
            f"Purlin spacing {params.purlin_spacing_mm:.0f} mm exceeds "
            f"{params.roofing_material.max_purlin_spacing_mm:.0f} mm maximum for {params.roofing_material.name}"
        )

    purlins = calculate_purlins(params, settings)
    result = FramingResult(
        purlins=purlins,
        bracing=calculate_bracing(params),
        accessories=calculate_accessories(params, purlins, settings),
        roofing=calculate_roof_sheets(params, settings),
        warnings=warnings,
    )
    for warning in warnings:
        logger.warning(warning)
    return result
