"""
Structural takeoff: concrete, reinforcing steel and formwork.
"""

from .calculator import (
    StructuralCalculator,
    StructuralResult,
    StructuralSummary,
    compute_structural_takeoff,
)
from .rebar import bar_count, rebar_grade, rebar_pay_item, unit_weight

__all__ = [
    'StructuralCalculator',
    'StructuralResult',
    'StructuralSummary',
    'compute_structural_takeoff',
    'bar_count',
    'rebar_grade',
    'rebar_pay_item',
    'unit_weight',
]
