"""
Project Estimate
Prices BOQ lines through their DUPA templates and totals the project.

Two passes: direct costs first, so the project's total direct cost is known
when the OCM/CP bracket is chosen, then markups per pay item.

Markup precedence per pay item:
    1. estimate override
    2. DUPA template percentages
    3. DPWH bracket on total direct cost (when auto_markups)
    4. DUPA defaults from settings
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from .boq.aggregate import BOQLine
from .boq.classification import normalize_pay_item_number
from .config import EngineSettings
from .pricing.dupa import CostBreakdown, DupaTemplate, apply_markups, compute_direct_costs, price_dupa
from .pricing.markups import MarkupPercentages, markup_rates_for_cost
from .pricing.rates import RateCatalog
from .units import round_half_up

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EstimateOptions:
    location: str
    cmpd_version: Optional[str] = None
    markup_override: Optional[MarkupPercentages] = None
    auto_markups: bool = False
    hauling_surcharge: float = 0.0


@dataclass
class RateItem:
    """A priced BOQ line."""
    boq_line_id: str
    pay_item: str
    description: str
    unit: str
    quantity: float
    part: str
    breakdown: CostBreakdown
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'boq_line_id': self.boq_line_id,
            'pay_item': self.pay_item,
            'description': self.description,
            'unit': self.unit,
            'quantity': self.quantity,
            'part': self.part,
            'breakdown': self.breakdown.to_dict(),
            'warnings': list(self.warnings),
        }


@dataclass
class CostSummary:
    total_labor_cost: float = 0.0
    total_equipment_cost: float = 0.0
    total_material_cost: float = 0.0
    total_direct_cost: float = 0.0
    total_ocm: float = 0.0
    total_cp: float = 0.0
    subtotal_with_markup: float = 0.0
    total_vat: float = 0.0
    grand_total: float = 0.0
    rate_items_count: int = 0
    requires_canvass_count: int = 0

    def to_dict(self, decimals: int = 2) -> Dict[str, Any]:
        return {
            key: round_half_up(value, decimals) if isinstance(value, float) else value
            for key, value in self.__dict__.items()
        }


@dataclass
class EstimateResult:
    rate_items: List[RateItem] = field(default_factory=list)
    unmapped: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    summary: CostSummary = field(default_factory=CostSummary)
    markup_basis: str = "defaults"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'rate_items': [item.to_dict() for item in self.rate_items],
            'unmapped': list(self.unmapped),
            'warnings': list(self.warnings),
            'summary': self.summary.to_dict(),
            'markup_basis': self.markup_basis,
        }

    def to_dataframe(self) -> pd.DataFrame:
        """One row per rate item with its main cost figures."""
        rows = [{
            'pay_item': item.pay_item,
            'description': item.description,
            'part': item.part,
            'unit': item.unit,
            'quantity': item.quantity,
            'direct_cost': item.breakdown.direct_cost,
            'unit_cost': item.breakdown.total_unit_cost,
            'total_amount': item.breakdown.total_amount,
            'requires_canvass': item.breakdown.requires_canvass,
        } for item in self.rate_items]
        return pd.DataFrame(rows)


class EstimateCalculator:
    def __init__(self, catalog: RateCatalog, settings: Optional[EngineSettings] = None):
        self.catalog = catalog
        self.settings = settings or EngineSettings()

    def calculate(
        self,
        boq_lines: Iterable[BOQLine],
        dupa_templates: Iterable[DupaTemplate],
        options: EstimateOptions,
    ) -> EstimateResult:
        templates = {normalize_pay_item_number(t.pay_item_number): t for t in dupa_templates}
        result = EstimateResult()
        default_minor_tools = self.settings.dupa.minor_tools_percentage

        # Pass 1: direct costs
        priced_lines = []
        project_direct = 0.0
        for boq in boq_lines:
            template = templates.get(normalize_pay_item_number(boq.pay_item))
            if template is None:
                result.unmapped.append(boq.pay_item)
                result.warnings.append(f"No DUPA template for pay item {boq.pay_item} ({boq.id})")
                continue
            priced = price_dupa(
                template, self.catalog, options.location, options.cmpd_version, options.hauling_surcharge,
            )
            direct = compute_direct_costs(
                priced.labor, priced.equipment, priced.materials, template.minor_tools(default_minor_tools),
            )
            project_direct += direct.direct_cost * boq.quantity
            priced_lines.append((boq, template, priced, direct))

        # Pass 2: markups
        if options.markup_override is not None:
            base = options.markup_override
            result.markup_basis = "override"
        elif options.auto_markups:
            base = markup_rates_for_cost(project_direct)
            result.markup_basis = "bracket"
        else:
            base = MarkupPercentages.from_settings(self.settings.dupa)

        summary = result.summary
        for boq, template, priced, direct in priced_lines:
            markups = base if options.markup_override is not None else template.markups(base)
            breakdown = apply_markups(direct, boq.quantity, markups)
            result.rate_items.append(RateItem(
                boq_line_id=boq.id,
                pay_item=boq.pay_item,
                description=template.description or boq.description,
                unit=boq.unit,
                quantity=boq.quantity,
                part=boq.part,
                breakdown=breakdown,
                warnings=list(priced.warnings),
            ))
            result.warnings.extend(priced.warnings)

            qty = boq.quantity
            summary.total_labor_cost += breakdown.labor_cost * qty
            summary.total_equipment_cost += breakdown.equipment_cost * qty
            summary.total_material_cost += breakdown.material_cost * qty
            summary.total_direct_cost += breakdown.direct_cost * qty
            summary.total_ocm += breakdown.ocm_cost * qty
            summary.total_cp += breakdown.cp_cost * qty
            summary.subtotal_with_markup += breakdown.subtotal_with_markup * qty
            summary.total_vat += breakdown.vat_cost * qty
            summary.grand_total += breakdown.total_amount
            if breakdown.requires_canvass:
                summary.requires_canvass_count += 1

        summary.rate_items_count = len(result.rate_items)
        logger.info(
            f"Estimate: {summary.rate_items_count} rate items, {len(result.unmapped)} unmapped, "
            f"grand total {summary.grand_total:,.2f} ({result.markup_basis} markups)"
        )
        return result
