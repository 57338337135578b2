"""
Steel Truss Generator
Member lengths, connector plates and weights for Howe, Fink and King-Post
trusses. All dimensions are in millimetres.

Member weight = (length_mm / 1000) × section kg/m × quantity
Plate weight  = plate count × configured kg per plate
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..config import TrussSettings
from ..units import mm_to_m

logger = logging.getLogger(__name__)


class TrussType(str, Enum):
    HOWE = "howe"
    FINK = "fink"
    KING_POST = "kingpost"


class MaterialSpecification(BaseModel):
    section: str
    weight_kg_per_m: float = Field(gt=0)


class TrussParameters(BaseModel):
    type: TrussType
    span_mm: float = Field(gt=0)
    rise_mm: float = Field(gt=0, description="Height at mid-span")
    overhang_mm: Optional[float] = Field(default=None, ge=0)
    spacing_mm: float = Field(gt=0)
    vertical_web_count: Optional[int] = Field(default=None, ge=1, description="Howe only")
    plate_thickness: str = "1.5mm (16 gauge)"
    top_chord_material: MaterialSpecification
    bottom_chord_material: MaterialSpecification
    web_material: MaterialSpecification


@dataclass
class TrussMember:
    name: str
    member_type: str        # "chord" or "web"
    subtype: str            # "top", "bottom", "vertical", "diagonal"
    length_mm: float
    quantity: int
    section: str
    force_type: str         # "compression", "tension", "both"
    weight_kg: float = 0.0

    @property
    def total_length_mm(self) -> float:
        return self.length_mm * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'type': self.member_type,
            'subtype': self.subtype,
            'length_mm': round(self.length_mm, 1),
            'quantity': self.quantity,
            'section': self.section,
            'force_type': self.force_type,
            'weight_kg': round(self.weight_kg, 3),
        }


@dataclass
class ConnectorPlate:
    name: str
    size_mm: str
    gauge: str
    quantity: int

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name, 'size_mm': self.size_mm, 'gauge': self.gauge, 'quantity': self.quantity}


@dataclass
class TrussGeometry:
    span_mm: float
    rise_mm: float
    pitch_deg: float
    overhang_mm: float
    total_length_mm: float


@dataclass
class TrussSummary:
    total_weight_kg: float = 0.0
    top_chord_weight_kg: float = 0.0
    bottom_chord_weight_kg: float = 0.0
    web_weight_kg: float = 0.0
    plate_weight_kg: float = 0.0
    top_chord_length_mm: float = 0.0
    bottom_chord_length_mm: float = 0.0
    web_members_total_mm: float = 0.0
    plate_count: int = 0
    member_count: int = 0


@dataclass
class TrussValidation:
    warnings: List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.warnings


@dataclass
class TrussResult:
    type: TrussType
    geometry: TrussGeometry
    members: List[TrussMember] = field(default_factory=list)
    connector_plates: List[ConnectorPlate] = field(default_factory=list)
    summary: TrussSummary = field(default_factory=TrussSummary)
    validation: TrussValidation = field(default_factory=TrussValidation)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type.value,
            'geometry': dict(self.geometry.__dict__),
            'members': [m.to_dict() for m in self.members],
            'connector_plates': [p.to_dict() for p in self.connector_plates],
            'summary': dict(self.summary.__dict__),
            'validation': {'valid': self.validation.valid, 'warnings': list(self.validation.warnings)},
        }


def _end_verticals(params: TrussParameters, overhang: float) -> List[TrussMember]:
    """Short verticals at the overhang ends, height at the overhang position."""
    if overhang <= 0:
        return []
    height = overhang * params.rise_mm / (params.span_mm / 2)
    return [TrussMember('End Vertical Web', 'web', 'vertical', height, 2,
                        params.web_material.section, 'compression')]


def _top_and_bottom_chords(params: TrussParameters, top_length: float) -> List[TrussMember]:
    return [
        TrussMember('Top Chord', 'chord', 'top', top_length, 2,
                    params.top_chord_material.section, 'compression'),
        TrussMember('Bottom Chord', 'chord', 'bottom', params.span_mm, 1,
                    params.bottom_chord_material.section, 'tension'),
    ]


def _plates(params: TrussParameters, node_count: int, node_name: str) -> List[ConnectorPlate]:
    plates = [
        ConnectorPlate('Heel Plate', '80x100mm', params.plate_thickness, 2),
        ConnectorPlate('Apex Plate', '100x150mm', params.plate_thickness, 1),
    ]
    if node_count:
        plates.append(ConnectorPlate(node_name, '60x80mm', params.plate_thickness, node_count))
    return plates


def _howe(params: TrussParameters, overhang: float):
    span, rise = params.span_mm, params.rise_mm
    verticals = params.vertical_web_count or max(3, min(5, math.floor(span / 2000)))
    panels = verticals + 1
    panel_width = span / panels
    # Rise gained per panel along the top chord
    panel_rise = rise / (panels / 2)
    segment = math.hypot(panel_width, panel_rise)

    members = _top_and_bottom_chords(params, segment * panels / 2 + overhang)
    members.append(TrussMember('Vertical Web', 'web', 'vertical', panel_rise, verticals,
                               params.web_material.section, 'compression'))
    members += _end_verticals(params, overhang)
    diagonals = panels + (2 if overhang > 0 else 0)
    members.append(TrussMember('Diagonal Web', 'web', 'diagonal', segment, diagonals,
                               params.web_material.section, 'tension'))

    plates = _plates(params, (panels - 1) * 2, 'Node Plate')
    return members, plates


def _fink(params: TrussParameters, overhang: float):
    span, rise = params.span_mm, params.rise_mm
    members = _top_and_bottom_chords(params, math.hypot(span / 2, rise) + overhang)
    members.append(TrussMember('Center Post', 'web', 'vertical', rise, 1,
                               params.web_material.section, 'compression'))
    members += _end_verticals(params, overhang)
    members.append(TrussMember('Web Diagonal', 'web', 'diagonal', math.hypot(span / 4, rise / 2), 4,
                               params.web_material.section, 'both'))

    plates = _plates(params, 6, 'Web Connection Plate')
    return members, plates


def _king_post(params: TrussParameters, overhang: float):
    span, rise = params.span_mm, params.rise_mm
    members = _top_and_bottom_chords(params, math.hypot(span / 2, rise) + overhang)
    members.append(TrussMember('King Post', 'web', 'vertical', rise, 1,
                               params.web_material.section, 'tension'))
    members += _end_verticals(params, overhang)
    members.append(TrussMember('Strut', 'web', 'diagonal', math.hypot(span / 2, rise), 2,
                               params.web_material.section, 'compression'))

    plates = _plates(params, 0, '')
    return members, plates


_GENERATORS = {
    TrussType.HOWE: _howe,
    TrussType.FINK: _fink,
    TrussType.KING_POST: _king_post,
}


def _validate(params: TrussParameters, truss_type: TrussType, members: List[TrussMember],
              settings: TrussSettings) -> TrussValidation:
    validation = TrussValidation()
    pitch_ratio = params.rise_mm / params.span_mm

    if pitch_ratio < settings.min_pitch_ratio:
        validation.warnings.append(
            f"Low pitch (rise/span {pitch_ratio:.2f}): consider increasing pitch for better structural efficiency"
        )
    if pitch_ratio > settings.max_pitch_ratio:
        validation.warnings.append(
            f"High pitch (rise/span {pitch_ratio:.2f}): excessive rise may require additional bracing"
        )

    span_limit = settings.span_limits_mm.get(truss_type.value)
    if span_limit and params.span_mm > span_limit:
        validation.warnings.append(
            f"Large span ({params.span_mm:.0f} mm > {span_limit:.0f} mm for {truss_type.value}): "
            f"consider professional structural review"
        )

    diagonals = [m.length_mm for m in members if m.subtype == 'diagonal']
    if diagonals:
        slenderness = max(diagonals) / settings.slenderness_divisor
        if slenderness > settings.slenderness_limit:
            validation.warnings.append(
                f"Diagonal member slenderness {slenderness:.0f} exceeds {settings.slenderness_limit:.0f}: "
                f"consider a heavier section or bracing"
            )
    return validation


def generate_truss(params: TrussParameters, settings: Optional[TrussSettings] = None) -> TrussResult:
    """Generate one truss. Unknown truss types raise ValueError."""
    settings = settings or TrussSettings()
    truss_type = TrussType(params.type)
    overhang = settings.default_overhang_mm if params.overhang_mm is None else params.overhang_mm

    members, plates = _GENERATORS[truss_type](params, overhang)

    summary = TrussSummary()
    section_weights = {
        'top': params.top_chord_material.weight_kg_per_m,
        'bottom': params.bottom_chord_material.weight_kg_per_m,
    }
    for member in members:
        kg_per_m = section_weights.get(member.subtype, params.web_material.weight_kg_per_m)
        member.weight_kg = mm_to_m(member.length_mm) * kg_per_m * member.quantity
        if member.subtype == 'top':
            summary.top_chord_weight_kg += member.weight_kg
            summary.top_chord_length_mm += member.total_length_mm
        elif member.subtype == 'bottom':
            summary.bottom_chord_weight_kg += member.weight_kg
            summary.bottom_chord_length_mm += member.total_length_mm
        else:
            summary.web_weight_kg += member.weight_kg
            summary.web_members_total_mm += member.total_length_mm

    summary.plate_count = sum(p.quantity for p in plates)
    summary.plate_weight_kg = summary.plate_count * settings.plate_weight_kg
    summary.member_count = sum(m.quantity for m in members)
    summary.total_weight_kg = (
        summary.top_chord_weight_kg + summary.bottom_chord_weight_kg
        + summary.web_weight_kg + summary.plate_weight_kg
    )

    validation = _validate(params, truss_type, members, settings)
    for warning in validation.warnings:
        logger.warning(f"{truss_type.value} truss: {warning}")

    geometry = TrussGeometry(
        span_mm=params.span_mm,
        rise_mm=params.rise_mm,
        pitch_deg=math.degrees(math.atan(params.rise_mm / (params.span_mm / 2))),
        overhang_mm=overhang,
        total_length_mm=params.span_mm + 2 * overhang,
    )

    return TrussResult(
        type=truss_type,
        geometry=geometry,
        members=members,
        connector_plates=plates,
        summary=summary,
        validation=validation,
    )


def truss_count(building_length_mm: float, spacing_mm: float) -> int:
    """Trusses along a building: one per spacing plus the end truss."""
    return math.ceil(round(building_length_mm / spacing_mm, 9)) + 1


@dataclass
class TrussDesignResult:
    """One truss design repeated along the building."""
    truss: TrussResult
    truss_count: int
    total_weight_kg: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'truss': self.truss.to_dict(),
            'truss_count': self.truss_count,
            'total_weight_kg': round(self.total_weight_kg, 2),
        }


def design_trusses(
    params: TrussParameters,
    building_length_mm: float,
    settings: Optional[TrussSettings] = None,
) -> TrussDesignResult:
    truss = generate_truss(params, settings)
    count = truss_count(building_length_mm, params.spacing_mm)
    return TrussDesignResult(
        truss=truss,
        truss_count=count,
        total_weight_kg=truss.summary.total_weight_kg * count,
    )
