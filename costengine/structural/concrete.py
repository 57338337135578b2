"""
Concrete Volume Takeoff
Net volume from element geometry, plus the configured concrete waste.
"""

from typing import Dict, Optional

from ..models import TakeoffLine, Trade
from ..units import round_half_up

DEFAULT_CONCRETE_RESOURCE = "concrete-class-a"


def compute_concrete_line(
    instance_id: str,
    geometry,
    waste: float,
    decimals: int = 2,
    pay_item: Optional[str] = None,
    tags: Optional[Dict[str, str]] = None,
) -> TakeoffLine:
    """Concrete line for one element: volume x (1 + waste)."""
    volume, expression, inputs = geometry.volume()
    with_waste = volume * (1 + waste)
    quantity = round_half_up(with_waste, decimals)

    formula = (
        f"{expression} = {volume:.3f} m³ "
        f"(+ {waste * 100:.0f}% waste = {with_waste:.3f} m³)"
    )

    snapshot = dict(inputs)
    snapshot['volume_m3'] = volume
    snapshot['waste_concrete'] = waste

    return TakeoffLine(
        id=f"{instance_id}_concrete",
        source_element_id=instance_id,
        trade=Trade.CONCRETE.value,
        resource_key=DEFAULT_CONCRETE_RESOURCE,
        quantity=quantity,
        unit="m³",
        formula_text=formula,
        inputs_snapshot=snapshot,
        assumptions=[
            f"Concrete waste: {waste * 100:.0f}%",
            f"Rounded to {decimals} decimals",
        ],
        tags=dict(tags or {}),
        pay_item=pay_item,
    )
