"""
Pricing: hauling surcharges, rate catalogs and DUPA cost rollup.
"""

from .dupa import (
    CostBreakdown,
    DupaTemplate,
    EquipmentEntry,
    EquipmentRequirement,
    LaborEntry,
    LaborRequirement,
    MaterialEntry,
    MaterialRequirement,
    PricedDupa,
    compute_cost_breakdown,
    compute_direct_costs,
    apply_markups,
    price_dupa,
)
from .hauling import HaulingResult, HaulingTemplate, RouteSegment, Terrain, compute_hauling_cost
from .markups import DUPA_DEFAULTS, MARKUP_BRACKETS, MarkupPercentages, MinorTools, markup_rates_for_cost
from .rates import (
    EquipmentRate,
    LaborRateTable,
    MaterialPriceBook,
    PriceSource,
    RateCatalog,
    ResolvedPrice,
)
