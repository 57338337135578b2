"""
Parametric Roof Generator
Builds the roof planes of a rectangular building for gable, hip, flat and
gambrel roofs from building length, width, pitch and eave overhang.

All planes include the overhang on every eave side. Hip roofs run the ridge
along the longer building side.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from ..config import RoofSettings

logger = logging.getLogger(__name__)


class RoofStyle(str, Enum):
    GABLE = "gable"
    HIP = "hip"
    FLAT = "flat"
    GAMBREL = "gambrel"


class PitchFormat(str, Enum):
    RATIO = "ratio"
    DEGREES = "degrees"
    RISE_RUN = "rise-run"


class RoofParameters(BaseModel):
    style: RoofStyle
    length_m: float = Field(gt=0)
    width_m: float = Field(gt=0)
    pitch_format: PitchFormat = PitchFormat.RATIO
    pitch_ratio: Optional[float] = Field(default=None, ge=0)
    pitch_degrees: Optional[float] = Field(default=None, ge=0, lt=90)
    pitch_rise: Optional[float] = Field(default=None, ge=0)
    pitch_run: Optional[float] = Field(default=None, gt=0)
    overhang_m: float = Field(default=0.0, ge=0)

    def pitch_angle(self) -> float:
        """Roof pitch in radians."""
        if self.pitch_format == PitchFormat.DEGREES and self.pitch_degrees is not None:
            return math.radians(self.pitch_degrees)
        if self.pitch_format == PitchFormat.RISE_RUN and self.pitch_rise is not None and self.pitch_run:
            return math.atan(self.pitch_rise / self.pitch_run)
        if self.pitch_format == PitchFormat.RATIO and self.pitch_ratio is not None:
            return math.atan(self.pitch_ratio)
        raise ValueError(f"Invalid pitch parameters for format '{self.pitch_format.value}'")

    def pitch_string(self) -> str:
        if self.pitch_format == PitchFormat.DEGREES and self.pitch_degrees is not None:
            return f"{self.pitch_degrees:.1f}°"
        if self.pitch_format == PitchFormat.RISE_RUN and self.pitch_rise is not None and self.pitch_run:
            return f"{self.pitch_rise:g}:{self.pitch_run:g}"
        if self.pitch_format == PitchFormat.RATIO and self.pitch_ratio is not None:
            return f"{self.pitch_ratio * 100:.1f}%"
        return "Unknown"


@dataclass
class GeneratedRoofPlane:
    name: str
    plan_area_m2: float
    slope_area_m2: float
    slope_angle_deg: float
    slope_factor: float
    ridge_length_m: float = 0.0
    eave_length_m: float = 0.0
    hip_length_m: float = 0.0
    valley_length_m: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'plan_area_m2': round(self.plan_area_m2, 3),
            'slope_area_m2': round(self.slope_area_m2, 3),
            'slope_angle_deg': round(self.slope_angle_deg, 2),
            'slope_factor': round(self.slope_factor, 4),
            'ridge_length_m': round(self.ridge_length_m, 3),
            'eave_length_m': round(self.eave_length_m, 3),
            'hip_length_m': round(self.hip_length_m, 3),
            'valley_length_m': round(self.valley_length_m, 3),
        }


@dataclass
class RoofSummary:
    """Whole-roof totals. Shared edges (ridge, hips) are counted once."""
    total_plan_area_m2: float = 0.0
    total_slope_area_m2: float = 0.0
    ridge_length_m: float = 0.0
    hip_length_m: float = 0.0
    valley_length_m: float = 0.0
    eave_length_m: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {k: round(v, 3) for k, v in self.__dict__.items()}


@dataclass
class ParametricRoofResult:
    style: RoofStyle
    planes: List[GeneratedRoofPlane] = field(default_factory=list)
    summary: RoofSummary = field(default_factory=RoofSummary)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'style': self.style.value,
            'planes': [p.to_dict() for p in self.planes],
            'summary': self.summary.to_dict(),
            'metadata': dict(self.metadata),
        }


def _plane(name: str, plan_area: float, angle: float, **edges) -> GeneratedRoofPlane:
    factor = 1 / math.cos(angle)
    return GeneratedRoofPlane(
        name=name,
        plan_area_m2=plan_area,
        slope_area_m2=plan_area * factor,
        slope_angle_deg=math.degrees(angle),
        slope_factor=factor,
        **edges,
    )


def _gable(length: float, width: float, angle: float) -> Tuple[List[GeneratedRoofPlane], Dict[str, float]]:
    plan = length * width / 2
    planes = [
        _plane(side, plan, angle, ridge_length_m=length, eave_length_m=length)
        for side in ('North Slope', 'South Slope')
    ]
    return planes, {'ridge': length, 'hip': 0.0, 'eave': 2 * length}


def _hip(length: float, width: float, angle: float) -> Tuple[List[GeneratedRoofPlane], Dict[str, float]]:
    if width > length:
        length, width = width, length
    half = width / 2
    ridge = length - width
    rise = half * math.tan(angle)
    # Corner to ridge end: plan diagonal of the half-width square, plus rise
    hip = math.sqrt(2 * half ** 2 + rise ** 2)

    trapezoid_plan = (length + ridge) / 2 * half
    triangle_plan = width * half / 2

    planes = [
        _plane(side, trapezoid_plan, angle, ridge_length_m=ridge, eave_length_m=length, hip_length_m=2 * hip)
        for side in ('North Slope', 'South Slope')
    ]
    planes += [
        _plane(side, triangle_plan, angle, eave_length_m=width, hip_length_m=2 * hip)
        for side in ('East Hip', 'West Hip')
    ]
    return planes, {'ridge': ridge, 'hip': 4 * hip, 'eave': 2 * (length + width)}


def _flat(
    length: float,
    width: float,
    drainage_factor: float,
    nominal_pitch_deg: float,
) -> Tuple[List[GeneratedRoofPlane], Dict[str, float]]:
    # Area uses the drainage factor; the reported angle is the nominal fall
    plan = length * width
    plane = GeneratedRoofPlane(
        name='Flat Roof',
        plan_area_m2=plan,
        slope_area_m2=plan * drainage_factor,
        slope_angle_deg=nominal_pitch_deg,
        slope_factor=drainage_factor,
        eave_length_m=2 * (length + width),
    )
    return [plane], {'ridge': 0.0, 'hip': 0.0, 'eave': 2 * (length + width)}


def _gambrel(
    length: float,
    width: float,
    upper_angle: float,
    lower_ratio: float,
) -> Tuple[List[GeneratedRoofPlane], Dict[str, float]]:
    lower_angle = upper_angle * lower_ratio
    # Each side splits its half-width evenly between upper and lower sections
    section_plan = length * width / 4
    planes = []
    for side in ('North', 'South'):
        planes.append(_plane(f"{side} Upper", section_plan, upper_angle, ridge_length_m=length))
        planes.append(_plane(f"{side} Lower", section_plan, lower_angle, eave_length_m=length))
    return planes, {'ridge': length, 'hip': 0.0, 'eave': 2 * length}


def generate_roof(params: RoofParameters, settings: Optional[RoofSettings] = None) -> ParametricRoofResult:
    """Generate roof planes and totals for a rectangular building."""
    settings = settings or RoofSettings()
    style = RoofStyle(params.style)
    overhang = params.overhang_m
    length = params.length_m + 2 * overhang
    width = params.width_m + 2 * overhang

    if style == RoofStyle.GABLE:
        planes, edges = _gable(length, width, params.pitch_angle())
    elif style == RoofStyle.HIP:
        planes, edges = _hip(length, width, params.pitch_angle())
    elif style == RoofStyle.FLAT:
        planes, edges = _flat(length, width, settings.flat_drainage_factor, settings.flat_pitch_deg)
    elif style == RoofStyle.GAMBREL:
        planes, edges = _gambrel(length, width, params.pitch_angle(), settings.gambrel_lower_angle_ratio)
    else:
        raise ValueError(f"Unsupported roof style: {style}")

    summary = RoofSummary(
        total_plan_area_m2=sum(p.plan_area_m2 for p in planes),
        total_slope_area_m2=sum(p.slope_area_m2 for p in planes),
        ridge_length_m=edges['ridge'],
        hip_length_m=edges['hip'],
        valley_length_m=0.0,
        eave_length_m=edges['eave'],
    )

    logger.info(
        f"Generated {style.value} roof: {len(planes)} planes, "
        f"{summary.total_slope_area_m2:.2f} m² slope area"
    )

    return ParametricRoofResult(
        style=style,
        planes=planes,
        summary=summary,
        metadata={
            'length_m': params.length_m,
            'width_m': params.width_m,
            'pitch': params.pitch_string(),
            'overhang_m': overhang,
        },
    )
