"""
Formwork Area Takeoff
Contact-surface area per element type.

Formwork is measured net: the waste settings never apply here.
"""

from enum import Enum
from typing import Dict, Optional

from ..models import ElementType, FoundationKind, TakeoffLine, Trade
from ..units import round_half_up

FORMWORK_PAY_ITEM = "903 (1)"


class FormworkType(Enum):
    """Formwork surfaces measured for each element type."""
    BEAM_SIDES_AND_SOFFIT = "beam"
    COLUMN_SIDES = "column"
    SLAB_SOFFIT = "slab"
    FOOTING_SIDES = "foundation"
    MAT_EDGES = "mat"


FORMWORK_BY_ELEMENT = {
    ElementType.BEAM: FormworkType.BEAM_SIDES_AND_SOFFIT,
    ElementType.COLUMN: FormworkType.COLUMN_SIDES,
    ElementType.SLAB: FormworkType.SLAB_SOFFIT,
    ElementType.FOUNDATION: FormworkType.FOOTING_SIDES,
}

# Piles have no entry: they are cast against the ground
FORMWORK_BY_FOUNDATION = {
    FoundationKind.ISOLATED: FormworkType.FOOTING_SIDES,
    FoundationKind.MAT: FormworkType.MAT_EDGES,
}

_SURFACE_NOTES = {
    FormworkType.BEAM_SIDES_AND_SOFFIT: "Beam: two sides + soffit, top open",
    FormworkType.COLUMN_SIDES: "Column: full perimeter x height",
    FormworkType.SLAB_SOFFIT: "Slab: soffit only, edges excluded",
    FormworkType.FOOTING_SIDES: "Footing: perimeter x depth, base on ground",
    FormworkType.MAT_EDGES: "Mat: edge forms, perimeter x thickness",
}


def compute_formwork_line(
    instance_id: str,
    element_type: ElementType,
    geometry,
    decimals: int = 2,
    tags: Optional[Dict[str, str]] = None,
) -> TakeoffLine:
    """Formwork line for one element. No waste factor."""
    formwork_type = FORMWORK_BY_ELEMENT[element_type]
    if element_type == ElementType.FOUNDATION:
        formwork_type = FORMWORK_BY_FOUNDATION[geometry.kind]
    area, expression, inputs = geometry.formwork()
    quantity = round_half_up(area, decimals)

    snapshot = dict(inputs)
    snapshot['area_m2'] = area

    return TakeoffLine(
        id=f"{instance_id}_formwork",
        source_element_id=instance_id,
        trade=Trade.FORMWORK.value,
        resource_key=f"formwork-{formwork_type.value}",
        quantity=quantity,
        unit="m²",
        formula_text=f"{expression} = {area:.2f} m²",
        inputs_snapshot=snapshot,
        assumptions=[
            _SURFACE_NOTES[formwork_type],
            "Formwork measured as net contact area (no waste)",
        ],
        tags=dict(tags or {}),
        pay_item=FORMWORK_PAY_ITEM,
    )
