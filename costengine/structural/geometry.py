"""
Resolved element geometry.

One record per element type, built by the calculator once grid spans and
level heights are known. Each record owns its concrete volume, formwork
contact area and bar layout formulas.
"""

import math
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from ..models import ColumnShape, FoundationKind


def fmt(value: float) -> str:
    """Compact number for formula text."""
    return f"{value:g}"


@dataclass(frozen=True)
class BarRun:
    """How one bar group lays out: length of each bar and the distance its spacing covers."""
    bar_length: float
    spacing_span: float
    closed_hoop: bool = False


@dataclass(frozen=True)
class BeamGeometry:
    width: float
    height: float
    length: float

    def volume(self) -> Tuple[float, str, Dict[str, float]]:
        value = self.width * self.height * self.length
        text = f"V = W × H × L = {fmt(self.width)} × {fmt(self.height)} × {fmt(self.length)}"
        return value, text, {'width_m': self.width, 'height_m': self.height, 'length_m': self.length}

    def formwork(self) -> Tuple[float, str, Dict[str, float]]:
        # Two sides and the soffit; the top is open
        value = 2 * self.height * self.length + self.width * self.length
        text = (
            f"A = 2 × H × L + W × L = 2 × {fmt(self.height)} × {fmt(self.length)}"
            f" + {fmt(self.width)} × {fmt(self.length)}"
        )
        return value, text, {'width_m': self.width, 'height_m': self.height, 'length_m': self.length}

    def bar_run(self, group: str, hook_allowance: float) -> Optional[BarRun]:
        if group == 'stirrups':
            perimeter = 2 * (self.width + self.height) + hook_allowance
            return BarRun(perimeter, self.length, closed_hoop=True)
        return BarRun(self.length, self.width)


@dataclass(frozen=True)
class ColumnGeometry:
    shape: ColumnShape
    width: float
    depth: float
    diameter: float
    height: float

    @property
    def is_circular(self) -> bool:
        return self.shape == ColumnShape.CIRCULAR

    @property
    def perimeter(self) -> float:
        if self.is_circular:
            return math.pi * self.diameter
        return 2 * (self.width + self.depth)

    def volume(self) -> Tuple[float, str, Dict[str, float]]:
        if self.is_circular:
            value = math.pi * (self.diameter / 2) ** 2 * self.height
            text = f"V = π × (D/2)² × H = π × ({fmt(self.diameter)}/2)² × {fmt(self.height)}"
            return value, text, {'diameter_m': self.diameter, 'height_m': self.height}
        value = self.width * self.depth * self.height
        text = f"V = W × D × H = {fmt(self.width)} × {fmt(self.depth)} × {fmt(self.height)}"
        return value, text, {'width_m': self.width, 'depth_m': self.depth, 'height_m': self.height}

    def formwork(self) -> Tuple[float, str, Dict[str, float]]:
        if self.is_circular:
            value = math.pi * self.diameter * self.height
            text = f"A = π × D × H = π × {fmt(self.diameter)} × {fmt(self.height)}"
            return value, text, {'diameter_m': self.diameter, 'height_m': self.height}
        value = 2 * (self.width + self.depth) * self.height
        text = f"A = 2 × (W + D) × H = 2 × ({fmt(self.width)} + {fmt(self.depth)}) × {fmt(self.height)}"
        return value, text, {'width_m': self.width, 'depth_m': self.depth, 'height_m': self.height}

    def bar_run(self, group: str, hook_allowance: float) -> Optional[BarRun]:
        if group == 'stirrups':
            return BarRun(self.perimeter + hook_allowance, self.height, closed_hoop=True)
        return BarRun(self.height, self.perimeter)


@dataclass(frozen=True)
class SlabGeometry:
    length_x: float
    length_y: float
    thickness: float

    @property
    def area(self) -> float:
        return self.length_x * self.length_y

    def volume(self) -> Tuple[float, str, Dict[str, float]]:
        value = self.area * self.thickness
        text = f"V = A × T = {fmt(self.length_x)} × {fmt(self.length_y)} × {fmt(self.thickness)}"
        return value, text, {
            'length_x_m': self.length_x,
            'length_y_m': self.length_y,
            'thickness_m': self.thickness,
        }

    def formwork(self) -> Tuple[float, str, Dict[str, float]]:
        # Soffit only
        text = f"A = Lx × Ly = {fmt(self.length_x)} × {fmt(self.length_y)}"
        return self.area, text, {'length_x_m': self.length_x, 'length_y_m': self.length_y}

    def bar_run(self, group: str, hook_allowance: float) -> Optional[BarRun]:
        if group == 'main':
            return BarRun(self.length_x, self.length_y)
        if group == 'secondary':
            return BarRun(self.length_y, self.length_x)
        return None


@dataclass(frozen=True)
class FoundationGeometry:
    """Isolated footing or mat. For a mat, depth is the slab thickness."""
    length: float
    width: float
    depth: float
    kind: FoundationKind = FoundationKind.ISOLATED

    def volume(self) -> Tuple[float, str, Dict[str, float]]:
        value = self.length * self.width * self.depth
        text = f"V = L × W × D = {fmt(self.length)} × {fmt(self.width)} × {fmt(self.depth)}"
        return value, text, {'length_m': self.length, 'width_m': self.width, 'depth_m': self.depth}

    def formwork(self) -> Tuple[float, str, Dict[str, float]]:
        value = 2 * (self.length + self.width) * self.depth
        text = f"A = 2 × (L + W) × D = 2 × ({fmt(self.length)} + {fmt(self.width)}) × {fmt(self.depth)}"
        return value, text, {'length_m': self.length, 'width_m': self.width, 'depth_m': self.depth}

    def bar_run(self, group: str, hook_allowance: float) -> Optional[BarRun]:
        # Bottom mat: main bars along the length, secondary across
        if group == 'main':
            return BarRun(self.length, self.width)
        if group == 'secondary':
            return BarRun(self.width, self.length)
        return None


@dataclass(frozen=True)
class PileGeometry:
    """Cast-in-place pile: square (width) or circular (diameter) section over its length."""
    shape: ColumnShape
    width: float
    diameter: float
    length: float

    @property
    def is_circular(self) -> bool:
        return self.shape == ColumnShape.CIRCULAR

    @property
    def perimeter(self) -> float:
        if self.is_circular:
            return math.pi * self.diameter
        return 4 * self.width

    def volume(self) -> Tuple[float, str, Dict[str, float]]:
        if self.is_circular:
            value = math.pi * (self.diameter / 2) ** 2 * self.length
            text = f"V = π × (D/2)² × Lp = π × ({fmt(self.diameter)}/2)² × {fmt(self.length)}"
            return value, text, {'diameter_m': self.diameter, 'length_m': self.length}
        value = self.width ** 2 * self.length
        text = f"V = W² × Lp = {fmt(self.width)}² × {fmt(self.length)}"
        return value, text, {'width_m': self.width, 'length_m': self.length}

    def formwork(self) -> None:
        # Cast against the bored hole
        return None

    def bar_run(self, group: str, hook_allowance: float) -> Optional[BarRun]:
        if group == 'stirrups':
            return BarRun(self.perimeter + hook_allowance, self.length, closed_hoop=True)
        if group == 'main':
            return BarRun(self.length, self.perimeter)
        return None
