"""
Takeoff Data Model
Grid/level definitions, element templates and instances, and the TakeoffLine
record every calculator emits.

Input contracts are strict pydantic models so bad dimensions are rejected at
the boundary. Outputs are plain dataclasses.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# =============================================================================
# CONSTANT TABLES
# =============================================================================

# Unit weight of deformed bars, kg per metre, keyed by nominal diameter (mm)
REBAR_UNIT_WEIGHTS = {
    10: 0.617,
    12: 0.888,
    16: 1.578,
    20: 2.466,
    25: 3.853,
    28: 4.834,
    32: 6.313,
    36: 7.990,
    40: 9.864,
}


class ElementType(str, Enum):
    """Structural element discriminant."""
    BEAM = "beam"
    COLUMN = "column"
    SLAB = "slab"
    FOUNDATION = "foundation"


class ColumnShape(str, Enum):
    RECTANGULAR = "rectangular"
    CIRCULAR = "circular"


class FoundationKind(str, Enum):
    """Isolated footing, mat (raft) or cast-in-place pile."""
    ISOLATED = "isolated"
    MAT = "mat"
    PILE = "pile"


class Trade(str, Enum):
    """Trade a takeoff line belongs to."""
    EARTHWORK = "Earthwork"
    CONCRETE = "Concrete"
    REBAR = "Rebar"
    FORMWORK = "Formwork"
    ROOFING = "Roofing"
    FINISHES = "Finishes"
    PLUMBING = "Plumbing"
    MEPF = "MEPF"


# =============================================================================
# GRID / LEVELS
# =============================================================================

class GridLine(BaseModel):
    """Named grid axis line. Offset in metres from the grid origin."""
    model_config = ConfigDict(frozen=True)

    label: str
    offset: float


class Level(BaseModel):
    """Named floor level. Elevation in metres."""
    model_config = ConfigDict(frozen=True)

    label: str
    elevation: float


# =============================================================================
# ELEMENT TEMPLATES
# =============================================================================

class BeamProperties(BaseModel):
    width: float = Field(default=0.3, gt=0)
    height: float = Field(default=0.5, gt=0)
    length: Optional[float] = Field(default=None, gt=0, description="Overrides grid span")


class ColumnProperties(BaseModel):
    shape: ColumnShape = ColumnShape.RECTANGULAR
    width: float = Field(default=0.3, gt=0)
    depth: float = Field(default=0.3, gt=0)
    diameter: float = Field(default=0.4, gt=0)
    height: Optional[float] = Field(
        default=None, gt=0,
        description="Nominal height; only an instance custom_geometry height overrides the levels",
    )


class SlabProperties(BaseModel):
    thickness: float = Field(default=0.1, gt=0)
    area: Optional[float] = Field(default=None, gt=0, description="Overrides grid area")


class FoundationProperties(BaseModel):
    """
    Footing plan size and depth. A mat uses depth as its thickness; a pile
    uses depth as its length and takes its section from shape, width (square)
    or diameter (circular).
    """
    kind: FoundationKind = FoundationKind.ISOLATED
    length: float = Field(default=1.5, gt=0)
    width: float = Field(default=1.5, gt=0)
    depth: float = Field(default=0.5, gt=0)
    shape: ColumnShape = ColumnShape.RECTANGULAR
    diameter: float = Field(default=0.4, gt=0)


ElementProperties = Union[BeamProperties, ColumnProperties, SlabProperties, FoundationProperties]

PROPERTY_MODELS = {
    ElementType.BEAM: BeamProperties,
    ElementType.COLUMN: ColumnProperties,
    ElementType.SLAB: SlabProperties,
    ElementType.FOUNDATION: FoundationProperties,
}


class RebarGroup(BaseModel):
    """One bar group: either an explicit count or a spacing (m)."""
    diameter_mm: int
    count: Optional[int] = Field(default=None, ge=1)
    spacing: Optional[float] = Field(default=None, gt=0)
    lap_length: Optional[float] = Field(default=None, ge=0)

    @field_validator('diameter_mm')
    @classmethod
    def validate_diameter(cls, v):
        if v not in REBAR_UNIT_WEIGHTS:
            raise ValueError(
                f"unknown bar diameter {v}mm (known: {sorted(REBAR_UNIT_WEIGHTS)})"
            )
        return v

    @model_validator(mode='after')
    def validate_count_or_spacing(self):
        if self.count is None and self.spacing is None:
            raise ValueError("rebar group needs either count or spacing")
        return self


class RebarConfig(BaseModel):
    main: Optional[RebarGroup] = None
    secondary: Optional[RebarGroup] = None
    stirrups: Optional[RebarGroup] = None
    epoxy_coated: bool = False

    def groups(self) -> Dict[str, RebarGroup]:
        """Configured groups in a fixed order."""
        ordered = {}
        for name in ('main', 'secondary', 'stirrups'):
            group = getattr(self, name)
            if group is not None:
                ordered[name] = group
        return ordered


class ElementTemplate(BaseModel):
    """
    Reusable parametric element definition.

    `properties` may be passed as a plain mapping; it is converted to the
    typed record for `type`, with defaults for any missing key.
    """
    id: str
    name: str = ""
    type: ElementType
    properties: ElementProperties
    rebar_config: Optional[RebarConfig] = None
    pay_item: Optional[str] = Field(default=None, description="DPWH item for the concrete line")

    @model_validator(mode='before')
    @classmethod
    def build_properties(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        element_type = ElementType(data.get('type'))
        props = data.get('properties') or {}
        if isinstance(props, dict):
            data = dict(data)
            data['properties'] = PROPERTY_MODELS[element_type](**props)
        return data

    @model_validator(mode='after')
    def validate_properties_variant(self):
        expected = PROPERTY_MODELS[self.type]
        if not isinstance(self.properties, expected):
            raise ValueError(
                f"{self.type.value} template needs {expected.__name__}, "
                f"got {type(self.properties).__name__}"
            )
        return self

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ElementTemplate":
        """Build from a plain mapping; missing property keys take their defaults."""
        return cls.model_validate(data)

    def resolved_properties(self, overrides: Optional[Dict[str, Any]] = None) -> ElementProperties:
        """Template properties with per-instance overrides applied."""
        if not overrides:
            return self.properties
        merged = self.properties.model_dump()
        merged.update(overrides)
        return PROPERTY_MODELS[self.type](**merged)


class Placement(BaseModel):
    grid_ref: List[str] = Field(default_factory=list)
    level_id: str
    end_level_id: Optional[str] = None


class ElementInstance(BaseModel):
    """One placed occurrence of a template. Owns references, not geometry."""
    id: str
    template_id: str
    placement: Placement
    custom_geometry: Dict[str, float] = Field(default_factory=dict)
    tags: Dict[str, str] = Field(default_factory=dict)


# =============================================================================
# OUTPUT
# =============================================================================

@dataclass(frozen=True)
class TakeoffLine:
    """
    Atomic, traceable quantity.

    `quantity` can be reproduced from `inputs_snapshot` using `formula_text`.
    Ids are deterministic (`{source}_{calc_type}`) so re-runs can be diffed.
    """
    id: str
    source_element_id: str
    trade: str
    resource_key: str
    quantity: float
    unit: str
    formula_text: str
    inputs_snapshot: Dict[str, float] = field(default_factory=dict)
    assumptions: List[str] = field(default_factory=list)
    tags: Dict[str, str] = field(default_factory=dict)
    pay_item: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'source_element_id': self.source_element_id,
            'trade': self.trade,
            'resource_key': self.resource_key,
            'quantity': self.quantity,
            'unit': self.unit,
            'formula_text': self.formula_text,
            'inputs_snapshot': dict(self.inputs_snapshot),
            'assumptions': list(self.assumptions),
            'tags': dict(self.tags),
            'pay_item': self.pay_item,
        }
