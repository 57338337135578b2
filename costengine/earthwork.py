"""
Earthwork Volumes
Excavation, trench and embankment volumes, and the Earthwork takeoff line
built from them.

Station methods work on cross-section areas (m²) at chainages (m):

    average end area   V = Σ (A1 + A2) / 2 × L
    prismoidal         V = Σ L / 6 × (A1 + 4 Am + A2), over station triples

Simple shapes:

    pit                V = L × W × D
    trench             V = L × (Wb + Wt) / 2 × D,  Wt = Wb + 2 × D × S
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from .models import TakeoffLine, Trade
from .units import round_half_up


class EarthworkKind(str, Enum):
    EXCAVATION = "excavation"
    FILL = "fill"
    EMBANKMENT = "embankment"


EARTHWORK_PAY_ITEMS = {
    EarthworkKind.EXCAVATION: '802 (1) a',
    EarthworkKind.FILL: '803 (1) a',
    EarthworkKind.EMBANKMENT: '804 (1)',
}


class Station(BaseModel):
    """Cross section at a chainage along the alignment."""
    station: str
    chainage: float
    area: float = Field(ge=0)
    notes: str = ""


class RectangularExcavation(BaseModel):
    """Pit or basement. Waste is a fraction."""
    length: float = Field(gt=0)
    width: float = Field(gt=0)
    depth: float = Field(gt=0)
    waste: float = Field(default=0.0, ge=0, le=1)


class TrenchExcavation(BaseModel):
    """Trench with a flat bottom; side_slope is horizontal per unit depth, 0 for vertical sides."""
    length: float = Field(gt=0)
    bottom_width: float = Field(gt=0)
    depth: float = Field(gt=0)
    side_slope: float = Field(default=0.0, ge=0)
    waste: float = Field(default=0.0, ge=0, le=1)


@dataclass(frozen=True)
class VolumeSegment:
    start: str
    end: str
    distance: float
    area_start: float
    area_end: float
    volume: float

    @property
    def average_area(self) -> float:
        return self.volume / self.distance if self.distance else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'from': self.start,
            'to': self.end,
            'distance': self.distance,
            'area_start': self.area_start,
            'area_end': self.area_end,
            'average_area': self.average_area,
            'volume': self.volume,
        }


@dataclass(frozen=True)
class EarthworkVolume:
    method: str
    volume_m3: float
    formula_text: str
    inputs: Dict[str, float] = field(default_factory=dict)
    waste: float = 0.0
    segments: List[VolumeSegment] = field(default_factory=list)

    @property
    def volume_with_waste_m3(self) -> float:
        return self.volume_m3 * (1 + self.waste)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'method': self.method,
            'volume_m3': self.volume_m3,
            'volume_with_waste_m3': self.volume_with_waste_m3,
            'formula_text': self.formula_text,
            'inputs': dict(self.inputs),
            'waste': self.waste,
            'segments': [s.to_dict() for s in self.segments],
        }


def _sorted_stations(stations: Sequence[Station], minimum: int, method: str) -> List[Station]:
    if len(stations) < minimum:
        raise ValueError(f"{method} needs at least {minimum} stations, got {len(stations)}")
    return sorted(stations, key=lambda s: s.chainage)


def _end_area_segment(first: Station, second: Station) -> VolumeSegment:
    distance = second.chainage - first.chainage
    return VolumeSegment(
        start=first.station,
        end=second.station,
        distance=distance,
        area_start=first.area,
        area_end=second.area,
        volume=(first.area + second.area) / 2 * distance,
    )


def average_end_area_volume(stations: Sequence[Station]) -> EarthworkVolume:
    ordered = _sorted_stations(stations, 2, "Average end area method")
    segments = [_end_area_segment(a, b) for a, b in zip(ordered, ordered[1:])]
    total = sum(s.volume for s in segments)
    return EarthworkVolume(
        method='average_end_area',
        volume_m3=total,
        formula_text=f"V = Σ[(A1 + A2)/2 × L] = {total:.3f} m³",
        inputs={'station_count': len(ordered), 'length_m': ordered[-1].chainage - ordered[0].chainage},
        segments=segments,
    )


def prismoidal_volume(stations: Sequence[Station]) -> EarthworkVolume:
    """
    Prismoidal formula over consecutive station triples, stepping two stations
    at a time. With an even station count the last pair falls back to the
    average end area.
    """
    ordered = _sorted_stations(stations, 3, "Prismoidal method")
    segments = []
    for i in range(0, len(ordered) - 2, 2):
        first, middle, last = ordered[i], ordered[i + 1], ordered[i + 2]
        distance = last.chainage - first.chainage
        segments.append(VolumeSegment(
            start=first.station,
            end=last.station,
            distance=distance,
            area_start=first.area,
            area_end=last.area,
            volume=distance / 6 * (first.area + 4 * middle.area + last.area),
        ))
    if len(ordered) % 2 == 0:
        segments.append(_end_area_segment(ordered[-2], ordered[-1]))

    total = sum(s.volume for s in segments)
    return EarthworkVolume(
        method='prismoidal',
        volume_m3=total,
        formula_text=f"V = Σ[(L/6) × (A1 + 4Am + A2)] = {total:.3f} m³",
        inputs={'station_count': len(ordered), 'length_m': ordered[-1].chainage - ordered[0].chainage},
        segments=segments,
    )


def embankment_volume(stations: Sequence[Station], compaction_factor: float = 1.0) -> EarthworkVolume:
    """Average end area volume scaled by a compaction factor."""
    if compaction_factor <= 0:
        raise ValueError(f"compaction factor must be positive, got {compaction_factor}")
    base = average_end_area_volume(stations)
    total = base.volume_m3 * compaction_factor
    inputs = dict(base.inputs)
    inputs['compaction_factor'] = compaction_factor
    return EarthworkVolume(
        method='embankment',
        volume_m3=total,
        formula_text=f"{base.formula_text} × {compaction_factor:g} (compaction) = {total:.3f} m³",
        inputs=inputs,
        segments=base.segments,
    )


def rectangular_excavation_volume(pit: RectangularExcavation) -> EarthworkVolume:
    volume = pit.length * pit.width * pit.depth
    text = f"V = L × W × D = {pit.length:g} × {pit.width:g} × {pit.depth:g} = {volume:.3f} m³"
    if pit.waste > 0:
        text += f" (+ {pit.waste * 100:.0f}% waste = {volume * (1 + pit.waste):.3f} m³)"
    return EarthworkVolume(
        method='rectangular',
        volume_m3=volume,
        formula_text=text,
        inputs={'length_m': pit.length, 'width_m': pit.width, 'depth_m': pit.depth},
        waste=pit.waste,
    )


def trench_excavation_volume(trench: TrenchExcavation) -> EarthworkVolume:
    top_width = trench.bottom_width + 2 * trench.depth * trench.side_slope
    average_width = (trench.bottom_width + top_width) / 2
    volume = trench.length * average_width * trench.depth

    if trench.side_slope == 0:
        text = (
            f"V = L × W × D = {trench.length:g} × {trench.bottom_width:g} × {trench.depth:g}"
            f" = {volume:.3f} m³"
        )
    else:
        text = (
            f"V = L × (Wb + Wt)/2 × D, Wt = Wb + 2 × D × S = {top_width:.2f} m; "
            f"V = {trench.length:g} × {average_width:.2f} × {trench.depth:g} = {volume:.3f} m³"
        )
    if trench.waste > 0:
        text += f" (+ {trench.waste * 100:.0f}% waste = {volume * (1 + trench.waste):.3f} m³)"

    return EarthworkVolume(
        method='trench',
        volume_m3=volume,
        formula_text=text,
        inputs={
            'length_m': trench.length,
            'bottom_width_m': trench.bottom_width,
            'top_width_m': top_width,
            'depth_m': trench.depth,
            'side_slope': trench.side_slope,
        },
        waste=trench.waste,
    )


def slope_correction_factor(slope_angle_deg: float) -> float:
    """Length along sloping ground per unit plan length."""
    if not 0 <= slope_angle_deg < 90:
        raise ValueError(f"slope angle must be in [0, 90), got {slope_angle_deg}")
    return 1 / math.cos(math.radians(slope_angle_deg))


def compute_earthwork_line(
    source_id: str,
    volume: EarthworkVolume,
    kind: EarthworkKind = EarthworkKind.EXCAVATION,
    slope_angle_deg: float = 0.0,
    pay_item: Optional[str] = None,
    decimals: int = 3,
    tags: Optional[Dict[str, str]] = None,
) -> TakeoffLine:
    """Earthwork takeoff line for a computed volume, with waste and any slope correction."""
    factor = slope_correction_factor(slope_angle_deg)
    quantity = volume.volume_with_waste_m3 * factor

    formula = volume.formula_text
    assumptions = [f"Method: {volume.method}"]
    if volume.waste > 0:
        assumptions.append(f"Waste: {volume.waste * 100:.1f}%")
    if slope_angle_deg:
        formula += f" × {factor:.4f} (slope {slope_angle_deg:g}°) = {quantity:.3f} m³"
        assumptions.append(f"Slope correction: 1/cos({slope_angle_deg:g}°) = {factor:.4f}")

    snapshot = dict(volume.inputs)
    snapshot.update({'volume_m3': volume.volume_m3, 'waste': volume.waste, 'slope_factor': factor})

    line_tags = {'earthwork': kind.value, 'method': volume.method}
    line_tags.update(tags or {})

    return TakeoffLine(
        id=f"{source_id}_{kind.value}",
        source_element_id=source_id,
        trade=Trade.EARTHWORK.value,
        resource_key=f"earthwork-{kind.value}",
        quantity=round_half_up(quantity, decimals),
        unit="m³",
        formula_text=formula,
        inputs_snapshot=snapshot,
        assumptions=assumptions,
        tags=line_tags,
        pay_item=pay_item or EARTHWORK_PAY_ITEMS[kind],
    )
