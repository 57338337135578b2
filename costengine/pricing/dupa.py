"""
DUPA Cost Rollup
Detailed Unit Price Analysis: labor, equipment and material entries for one
pay item, rolled up into direct cost, OCM, contractor's profit and VAT.

    labor      = Σ persons × hours × hourly rate
    equipment  = Σ units × hours × hourly rate (+ minor tools = labor × pct)
    material   = Σ quantity × (unit price + hauling surcharge if applicable)
    direct     = labor + equipment + material
    OCM, CP    = direct × pct / 100 each
    subtotal   = direct + OCM + CP
    VAT        = subtotal × pct / 100
    unit cost  = subtotal + VAT
    total      = unit cost × quantity

A material with no canvass or CMPD price contributes zero and flags the
breakdown for canvass; it never aborts the rollup.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, Field, model_validator

from .markups import MarkupPercentages, MinorTools
from .rates import PriceSource, RateCatalog

logger = logging.getLogger(__name__)


# =============================================================================
# PRICED ENTRIES
# =============================================================================

class LaborEntry(BaseModel):
    designation: str
    persons: float = Field(ge=0)
    hours: float = Field(ge=0)
    hourly_rate: float = Field(ge=0)

    @property
    def amount(self) -> float:
        return self.persons * self.hours * self.hourly_rate


class EquipmentEntry(BaseModel):
    equipment_id: str = ""
    description: str = ""
    units: float = Field(ge=0)
    hours: float = Field(ge=0)
    hourly_rate: float = Field(ge=0)

    @property
    def amount(self) -> float:
        return self.units * self.hours * self.hourly_rate


class MaterialEntry(BaseModel):
    material_code: str
    description: str = ""
    unit: str = ""
    quantity: float = Field(ge=0)
    unit_price: Optional[float] = Field(default=None, ge=0)
    price_source: PriceSource = PriceSource.CMPD
    include_hauling: bool = False
    hauling_surcharge: float = Field(default=0.0, ge=0)

    @model_validator(mode='after')
    def mark_unpriced_missing(self):
        if self.unit_price is None:
            self.price_source = PriceSource.MISSING
        return self

    @property
    def requires_canvass(self) -> bool:
        return self.price_source == PriceSource.MISSING or self.unit_price is None

    @property
    def effective_unit_price(self) -> float:
        if self.requires_canvass:
            return 0.0
        price = self.unit_price
        if self.include_hauling and self.hauling_surcharge > 0:
            price += self.hauling_surcharge
        return price

    @property
    def amount(self) -> float:
        return self.quantity * self.effective_unit_price


@dataclass(frozen=True)
class CostBreakdown:
    """Derived cost snapshot for one pay item. Recomputed, never edited."""
    labor_cost: float
    equipment_cost: float
    minor_tools_cost: float
    material_cost: float
    direct_cost: float
    ocm_percentage: float
    ocm_cost: float
    cp_percentage: float
    cp_cost: float
    subtotal_with_markup: float
    vat_percentage: float
    vat_cost: float
    total_unit_cost: float
    quantity: float
    total_amount: float
    requires_canvass: bool = False
    missing_materials: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'labor_cost': self.labor_cost,
            'equipment_cost': self.equipment_cost,
            'minor_tools_cost': self.minor_tools_cost,
            'material_cost': self.material_cost,
            'direct_cost': self.direct_cost,
            'ocm_percentage': self.ocm_percentage,
            'ocm_cost': self.ocm_cost,
            'cp_percentage': self.cp_percentage,
            'cp_cost': self.cp_cost,
            'subtotal_with_markup': self.subtotal_with_markup,
            'vat_percentage': self.vat_percentage,
            'vat_cost': self.vat_cost,
            'total_unit_cost': self.total_unit_cost,
            'quantity': self.quantity,
            'total_amount': self.total_amount,
            'requires_canvass': self.requires_canvass,
            'missing_materials': list(self.missing_materials),
        }


@dataclass(frozen=True)
class DirectCosts:
    labor_cost: float
    equipment_cost: float
    minor_tools_cost: float
    material_cost: float
    missing_materials: List[str] = field(default_factory=list)

    @property
    def direct_cost(self) -> float:
        return self.labor_cost + self.equipment_cost + self.material_cost


def compute_direct_costs(
    labor: Iterable[LaborEntry],
    equipment: Iterable[EquipmentEntry],
    materials: Iterable[MaterialEntry],
    minor_tools: Optional[MinorTools] = None,
) -> DirectCosts:
    """Steps 1-3 of the rollup: labor, equipment (with minor tools) and material."""
    minor_tools = minor_tools or MinorTools(enabled=False)
    materials = list(materials)

    labor_cost = sum(entry.amount for entry in labor)
    equipment_cost = sum(entry.amount for entry in equipment)
    minor_tools_cost = labor_cost * minor_tools.percentage / 100 if minor_tools.enabled else 0.0
    material_cost = sum(entry.amount for entry in materials)
    missing = [m.material_code for m in materials if m.requires_canvass]

    return DirectCosts(
        labor_cost=labor_cost,
        equipment_cost=equipment_cost + minor_tools_cost,
        minor_tools_cost=minor_tools_cost,
        material_cost=material_cost,
        missing_materials=missing,
    )


def apply_markups(direct: DirectCosts, quantity: float, markups: MarkupPercentages) -> CostBreakdown:
    """Steps 4-5: OCM and CP on direct cost, VAT on the marked-up subtotal."""
    direct_cost = direct.direct_cost
    ocm_cost = direct_cost * markups.ocm / 100
    cp_cost = direct_cost * markups.cp / 100
    subtotal = direct_cost + ocm_cost + cp_cost
    vat_cost = subtotal * markups.vat / 100
    unit_cost = subtotal + vat_cost

    return CostBreakdown(
        labor_cost=direct.labor_cost,
        equipment_cost=direct.equipment_cost,
        minor_tools_cost=direct.minor_tools_cost,
        material_cost=direct.material_cost,
        direct_cost=direct_cost,
        ocm_percentage=markups.ocm,
        ocm_cost=ocm_cost,
        cp_percentage=markups.cp,
        cp_cost=cp_cost,
        subtotal_with_markup=subtotal,
        vat_percentage=markups.vat,
        vat_cost=vat_cost,
        total_unit_cost=unit_cost,
        quantity=quantity,
        total_amount=unit_cost * quantity,
        requires_canvass=bool(direct.missing_materials),
        missing_materials=list(direct.missing_materials),
    )


def compute_cost_breakdown(
    labor: Iterable[LaborEntry],
    equipment: Iterable[EquipmentEntry],
    materials: Iterable[MaterialEntry],
    quantity: float = 1.0,
    markups: Optional[MarkupPercentages] = None,
    minor_tools: Optional[MinorTools] = None,
) -> CostBreakdown:
    """Full rollup for one pay item."""
    if quantity < 0:
        raise ValueError(f"quantity cannot be negative, got {quantity}")
    direct = compute_direct_costs(labor, equipment, materials, minor_tools)
    return apply_markups(direct, quantity, markups or MarkupPercentages())


# =============================================================================
# DUPA TEMPLATES (unpriced)
# =============================================================================

class LaborRequirement(BaseModel):
    designation: str
    persons: float = Field(ge=0)
    hours: float = Field(ge=0)


class EquipmentRequirement(BaseModel):
    equipment_id: str
    description: str = ""
    units: float = Field(ge=0)
    hours: float = Field(ge=0)


class MaterialRequirement(BaseModel):
    material_code: str
    description: str = ""
    unit: str = ""
    quantity: float = Field(ge=0)
    include_hauling: bool = False


class DupaTemplate(BaseModel):
    """Resource requirements per unit of a pay item, before pricing."""
    pay_item_number: str
    description: str = ""
    unit: str = ""
    labor: List[LaborRequirement] = Field(default_factory=list)
    equipment: List[EquipmentRequirement] = Field(default_factory=list)
    materials: List[MaterialRequirement] = Field(default_factory=list)
    ocm_percentage: Optional[float] = Field(default=None, ge=0)
    cp_percentage: Optional[float] = Field(default=None, ge=0)
    vat_percentage: Optional[float] = Field(default=None, ge=0)
    minor_tools_enabled: bool = True
    minor_tools_percentage: Optional[float] = Field(default=None, ge=0)

    def markups(self, fallback: MarkupPercentages) -> MarkupPercentages:
        """Template percentages where set, fallback elsewhere."""
        return MarkupPercentages(
            ocm=fallback.ocm if self.ocm_percentage is None else self.ocm_percentage,
            cp=fallback.cp if self.cp_percentage is None else self.cp_percentage,
            vat=fallback.vat if self.vat_percentage is None else self.vat_percentage,
        )

    def minor_tools(self, default_percentage: float) -> MinorTools:
        pct = default_percentage if self.minor_tools_percentage is None else self.minor_tools_percentage
        return MinorTools(enabled=self.minor_tools_enabled, percentage=pct)


@dataclass
class PricedDupa:
    template: DupaTemplate
    labor: List[LaborEntry] = field(default_factory=list)
    equipment: List[EquipmentEntry] = field(default_factory=list)
    materials: List[MaterialEntry] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def price_dupa(
    template: DupaTemplate,
    catalog: RateCatalog,
    location: str,
    cmpd_version: Optional[str] = None,
    hauling_surcharge: float = 0.0,
) -> PricedDupa:
    """Attach unit rates from the catalog. Missing rates price at zero with a warning."""
    priced = PricedDupa(template=template)
    item = template.pay_item_number

    for req in template.labor:
        rate = catalog.labor_rate(location, req.designation)
        if rate is None:
            priced.warnings.append(f"{item}: no labor rate for '{req.designation}' in {location}")
            rate = 0.0
        priced.labor.append(LaborEntry(
            designation=req.designation, persons=req.persons, hours=req.hours, hourly_rate=rate,
        ))

    for req in template.equipment:
        rate = catalog.equipment_rate(req.equipment_id)
        if rate is None:
            priced.warnings.append(f"{item}: no equipment rate for '{req.equipment_id}'")
            rate = 0.0
        priced.equipment.append(EquipmentEntry(
            equipment_id=req.equipment_id, description=req.description,
            units=req.units, hours=req.hours, hourly_rate=rate,
        ))

    for req in template.materials:
        price = catalog.material_price(req.material_code, location, cmpd_version)
        if price.requires_canvass:
            priced.warnings.append(
                f"{item}: no canvass or CMPD price for material '{req.material_code}' in {location}; requires canvass"
            )
        priced.materials.append(MaterialEntry(
            material_code=req.material_code,
            description=req.description,
            unit=req.unit,
            quantity=req.quantity,
            unit_price=price.unit_price,
            price_source=price.source,
            include_hauling=req.include_hauling,
            hauling_surcharge=hauling_surcharge,
        ))

    for warning in priced.warnings:
        logger.warning(warning)
    return priced
