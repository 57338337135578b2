"""
Markup Tables
DUPA default percentages and the DPWH OCM/CP brackets by project size.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from ..config import DupaSettings

DUPA_DEFAULTS = {
    'ocm_percentage': 15.0,
    'cp_percentage': 10.0,
    'vat_percentage': 12.0,
    'minor_tools_percentage': 10.0,
}

# (upper bound of total direct cost in PHP, OCM %, CP %); VAT stays 12%
MARKUP_BRACKETS: Tuple[Tuple[float, float, float], ...] = (
    (1_000_000, 15.0, 10.0),
    (5_000_000, 12.0, 8.0),
    (15_000_000, 10.0, 7.0),
    (50_000_000, 8.0, 6.0),
    (float('inf'), 5.0, 5.0),
)

BRACKET_VAT_PERCENTAGE = 12.0


@dataclass(frozen=True)
class MarkupPercentages:
    ocm: float = DUPA_DEFAULTS['ocm_percentage']
    cp: float = DUPA_DEFAULTS['cp_percentage']
    vat: float = DUPA_DEFAULTS['vat_percentage']

    def __post_init__(self):
        for name in ('ocm', 'cp', 'vat'):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} percentage cannot be negative")

    @classmethod
    def from_settings(cls, settings: Optional[DupaSettings] = None) -> "MarkupPercentages":
        settings = settings or DupaSettings()
        return cls(ocm=settings.ocm_percentage, cp=settings.cp_percentage, vat=settings.vat_percentage)


@dataclass(frozen=True)
class MinorTools:
    """Minor tools allowance, a percentage of labor cost carried under equipment."""
    enabled: bool = True
    percentage: float = DUPA_DEFAULTS['minor_tools_percentage']


def markup_rates_for_cost(total_direct_cost: float) -> MarkupPercentages:
    """DPWH OCM/CP bracket for a project's total direct cost."""
    for upper, ocm, cp in MARKUP_BRACKETS:
        if total_direct_cost <= upper:
            return MarkupPercentages(ocm=ocm, cp=cp, vat=BRACKET_VAT_PERCENTAGE)
    # Unreachable: the last bracket is unbounded
    raise ValueError(f"No markup bracket for {total_direct_cost}")
