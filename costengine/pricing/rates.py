"""
Rate Catalogs
Labor rates by location, equipment hourly rates and material prices by
CMPD version and location, with canvass prices taking precedence.

Catalogs are built once from resolved records (or DataFrames) and only read
during a pricing run.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

import pandas as pd
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class PriceSource(str, Enum):
    CANVASS = "canvass"
    CMPD = "cmpd"
    MISSING = "missing"


def _key(text: str) -> str:
    return ' '.join((text or '').strip().lower().split())


class LaborRateTable(BaseModel):
    """Hourly labor rates for one location, keyed by designation."""
    location: str
    effective_date: Optional[str] = None
    rates: Dict[str, float] = Field(default_factory=dict)

    def hourly_rate(self, designation: str) -> Optional[float]:
        lookup = {_key(k): v for k, v in self.rates.items()}
        return lookup.get(_key(designation))


class EquipmentRate(BaseModel):
    equipment_id: str
    description: str = ""
    hourly_rate: float = Field(ge=0)


@dataclass(frozen=True)
class ResolvedPrice:
    unit_price: Optional[float]
    source: PriceSource

    @property
    def requires_canvass(self) -> bool:
        return self.source == PriceSource.MISSING


class MaterialPriceBook:
    """
    Material unit prices.

    CMPD prices are keyed by (code, location, CMPD version); canvass prices
    by (code, location).
    """

    def __init__(self):
        self._cmpd: Dict[Tuple[str, str, str], float] = {}
        self._canvass: Dict[Tuple[str, str], float] = {}

    def add_cmpd_price(self, code: str, location: str, cmpd_version: str, unit_price: float) -> None:
        self._cmpd[(_key(code), _key(location), _key(cmpd_version))] = unit_price

    def add_canvass_price(self, code: str, location: str, unit_price: float) -> None:
        self._canvass[(_key(code), _key(location))] = unit_price

    @classmethod
    def from_dataframe(cls, cmpd: pd.DataFrame, canvass: Optional[pd.DataFrame] = None) -> "MaterialPriceBook":
        """
        Build from CMPD rows (material_code, location, cmpd_version, unit_price)
        and optional canvass rows (material_code, location, unit_price).
        """
        book = cls()
        for row in cmpd.itertuples(index=False):
            book.add_cmpd_price(row.material_code, row.location, str(row.cmpd_version), float(row.unit_price))
        if canvass is not None:
            for row in canvass.itertuples(index=False):
                book.add_canvass_price(row.material_code, row.location, float(row.unit_price))
        logger.info(f"Loaded {len(book._cmpd)} CMPD prices and {len(book._canvass)} canvass prices")
        return book

    def resolve(self, code: str, location: str, cmpd_version: Optional[str] = None) -> ResolvedPrice:
        """Canvass price first, then CMPD for the version and location, else missing."""
        canvass = self._canvass.get((_key(code), _key(location)))
        if canvass is not None:
            return ResolvedPrice(canvass, PriceSource.CANVASS)
        if cmpd_version is not None:
            cmpd = self._cmpd.get((_key(code), _key(location), _key(cmpd_version)))
            if cmpd is not None:
                return ResolvedPrice(cmpd, PriceSource.CMPD)
        return ResolvedPrice(None, PriceSource.MISSING)


class RateCatalog:
    """Resolved rate tables for a pricing run."""

    def __init__(
        self,
        labor_tables: Iterable[LaborRateTable] = (),
        equipment_rates: Iterable[EquipmentRate] = (),
        material_prices: Optional[MaterialPriceBook] = None,
    ):
        self.labor_tables = {_key(t.location): t for t in labor_tables}
        self.equipment_rates = {_key(e.equipment_id): e for e in equipment_rates}
        self.material_prices = material_prices or MaterialPriceBook()

    def labor_rate(self, location: str, designation: str) -> Optional[float]:
        table = self.labor_tables.get(_key(location))
        if table is None:
            return None
        return table.hourly_rate(designation)

    def equipment_rate(self, equipment_id: str) -> Optional[float]:
        rate = self.equipment_rates.get(_key(equipment_id))
        return rate.hourly_rate if rate else None

    def material_price(self, code: str, location: str, cmpd_version: Optional[str]) -> ResolvedPrice:
        return self.material_prices.resolve(code, location, cmpd_version)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'labor_locations': sorted(t.location for t in self.labor_tables.values()),
            'equipment_count': len(self.equipment_rates),
        }
