"""
BOQ Aggregation
Groups takeoff lines into bill-of-quantities lines by DPWH pay item and unit.

Each BOQ line keeps the ids of the takeoff lines it was built from, so every
BOQ quantity traces back to element formulas.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from ..models import TakeoffLine
from ..units import round_half_up
from .classification import (
    TRADE_DEFAULT_PAY_ITEMS,
    classify_dpwh_part,
    normalize_pay_item_number,
    part_sort_key,
)

logger = logging.getLogger(__name__)

# m² and m³ keep their exponent in ids
_SUPERSCRIPTS = str.maketrans({'²': '2', '³': '3'})

TAKEOFF_COLUMNS = [
    'id', 'source_element_id', 'trade', 'resource_key', 'quantity', 'unit', 'pay_item', 'pay_item_key',
]


@dataclass
class BOQLine:
    id: str
    pay_item: str
    description: str
    unit: str
    quantity: float
    trade: str
    part: str
    part_name: str
    subcategory: str
    source_takeoff_line_ids: List[str] = field(default_factory=list)
    resource_keys: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'pay_item': self.pay_item,
            'description': self.description,
            'unit': self.unit,
            'quantity': self.quantity,
            'trade': self.trade,
            'part': self.part,
            'part_name': self.part_name,
            'subcategory': self.subcategory,
            'source_takeoff_line_ids': list(self.source_takeoff_line_ids),
            'resource_keys': list(self.resource_keys),
        }


def _slug(text: str) -> str:
    text = text.lower().translate(_SUPERSCRIPTS)
    return re.sub(r'[^0-9a-z]+', '-', text).strip('-')


def boq_line_id(pay_item: str, unit: str) -> str:
    return f"boq_{_slug(pay_item)}_{_slug(unit) or 'unit'}"


def resolve_pay_item(line: TakeoffLine) -> str:
    """The line's own pay item, else the default for its trade."""
    return line.pay_item or TRADE_DEFAULT_PAY_ITEMS.get(line.trade, '-')


def takeoff_frame(lines: Iterable[TakeoffLine]) -> pd.DataFrame:
    """Tabular view of takeoff lines, one row per line."""
    rows = []
    for line in lines:
        pay_item = resolve_pay_item(line)
        rows.append({
            'id': line.id,
            'source_element_id': line.source_element_id,
            'trade': line.trade,
            'resource_key': line.resource_key,
            'quantity': line.quantity,
            'unit': line.unit,
            'pay_item': pay_item,
            'pay_item_key': normalize_pay_item_number(pay_item),
        })
    if not rows:
        return pd.DataFrame(columns=TAKEOFF_COLUMNS)
    return pd.DataFrame(rows, columns=TAKEOFF_COLUMNS)


def aggregate_takeoff(
    lines: Iterable[TakeoffLine],
    descriptions: Optional[Dict[str, str]] = None,
    decimals: int = 2,
) -> List[BOQLine]:
    """
    Sum takeoff quantities per (pay item, unit).

    `descriptions` maps pay-item numbers to BOQ descriptions; lines without
    one are described by trade and resource keys.
    """
    frame = takeoff_frame(lines)
    if frame.empty:
        return []

    described = {normalize_pay_item_number(k): v for k, v in (descriptions or {}).items()}
    boq_lines: List[BOQLine] = []

    for (pay_item_key, unit), group in frame.groupby(['pay_item_key', 'unit'], sort=True):
        group = group.sort_values('id')
        pay_item = group['pay_item'].iloc[0]
        trade = sorted(group['trade'].unique())[0]
        resource_keys = sorted(group['resource_key'].unique())
        classification = classify_dpwh_part(pay_item, trade)
        description = described.get(pay_item_key) or f"{trade}: {', '.join(resource_keys)}"

        boq_lines.append(BOQLine(
            id=boq_line_id(pay_item_key, unit),
            pay_item=pay_item,
            description=description,
            unit=unit,
            quantity=round_half_up(float(group['quantity'].sum()), decimals),
            trade=trade,
            part=classification.code,
            part_name=classification.name,
            subcategory=classification.subcategory,
            source_takeoff_line_ids=list(group['id']),
            resource_keys=resource_keys,
        ))

    boq_lines.sort(key=lambda b: (part_sort_key(b.part), normalize_pay_item_number(b.pay_item), b.unit))
    logger.info(f"Aggregated {len(frame)} takeoff lines into {len(boq_lines)} BOQ lines")
    return boq_lines


def boq_frame(boq_lines: Iterable[BOQLine]) -> pd.DataFrame:
    """BOQ lines as a DataFrame, with the source ids joined for display."""
    data = []
    for line in boq_lines:
        row = line.to_dict()
        row['source_takeoff_line_ids'] = ', '.join(line.source_takeoff_line_ids)
        row['resource_keys'] = ', '.join(line.resource_keys)
        data.append(row)
    return pd.DataFrame(data)


def quantities_by_part(boq_lines: Iterable[BOQLine]) -> pd.DataFrame:
    """Line counts and summed quantity per DPWH part and unit."""
    frame = boq_frame(boq_lines)
    if frame.empty:
        return pd.DataFrame(columns=['part', 'unit', 'line_count', 'quantity'])
    summary = (
        frame.groupby(['part', 'unit'], sort=True)
        .agg(line_count=('id', 'count'), quantity=('quantity', 'sum'))
        .reset_index()
    )
    return summary
