"""
DPWH Part Classification
Maps pay-item numbers to DPWH parts and subcategories for grouping.

All tables are module constants.
"""

import re
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from ..models import Trade

PART_NAMES = {
    'A': 'GENERAL',
    'B': 'OTHER GENERAL REQUIREMENTS',
    'C': 'EARTHWORK',
    'D': 'REINFORCED CONCRETE / BUILDINGS',
    'E': 'FINISHINGS AND OTHER CIVIL WORKS',
    'F': 'ELECTRICAL',
    'G': 'MECHANICAL',
}

# (lower bound inclusive, upper bound exclusive, part)
PART_RANGES: Tuple[Tuple[int, float, str], ...] = (
    (800, 900, 'C'),
    (900, 1000, 'D'),
    (1000, 1100, 'E'),
    (1100, 1500, 'F'),
    (1500, float('inf'), 'G'),
)

PART_ORDER = ('A', 'B', 'C', 'D', 'E', 'F', 'G')

TRADE_PARTS = {
    Trade.EARTHWORK.value: 'C',
    Trade.CONCRETE.value: 'D',
    Trade.REBAR.value: 'D',
    Trade.FORMWORK.value: 'D',
    Trade.FINISHES.value: 'E',
    Trade.ROOFING.value: 'E',
    Trade.PLUMBING.value: 'F',
    Trade.MEPF.value: 'G',
}

# Pay item used when a takeoff line does not name one
TRADE_DEFAULT_PAY_ITEMS = {
    Trade.EARTHWORK.value: '802 (1) a',
    Trade.CONCRETE.value: '900 (1) a',
    Trade.REBAR.value: '902 (1) a2',
    Trade.FORMWORK.value: '903 (1)',
    Trade.ROOFING.value: '1013 (1)',
}

PART_DEFAULT_SUBCATEGORIES = {
    'C': 'Earthwork',
    'D': 'Concrete Works',
    'E': 'Other Finishes',
    'F': 'Metal & Electrical Works',
    'G': 'Marine & Other Works',
}

# First keyword hit wins, checked in order
SUBCATEGORY_KEYWORDS = {
    'C': (
        (('clearing', 'grubbing'), 'Clearing and Grubbing'),
        (('excavat',), 'Excavation'),
        (('embankment', 'fill'), 'Embankment'),
        (('site development',), 'Site Development'),
    ),
    'D': (
        (('formwork',), 'Formwork'),
        (('reinforc', 'rebar'), 'Reinforcing Steel'),
        (('precast',), 'Precast Concrete'),
    ),
    'E': (
        (('termite',), 'Termite Control'),
        (('plumbing', 'drainage', 'sewer', 'water', 'pipe'), 'Plumbing Works'),
        (('door', 'window'), 'Doors and Windows'),
        (('tile', 'tiling'), 'Tiling Works'),
        (('floor',), 'Flooring'),
        (('plaster',), 'Plastering Works'),
        (('ceiling',), 'Ceiling Works'),
        (('paint', 'coating', 'varnish'), 'Painting Works'),
        (('masonry', 'chb', 'block'), 'Masonry Works'),
        (('roofing', 'truss', 'purlin'), 'Roofing Works'),
        (('waterproof',), 'Waterproofing'),
    ),
    'F': (
        (('electric', 'wiring', 'conduit'), 'Electrical Works'),
        (('steel', 'metal'), 'Metal Works'),
    ),
}

_PREFIX_RE = re.compile(r'^(\d+)')


@dataclass(frozen=True)
class DPWHPart:
    code: str
    name: str
    subcategory: str

    @property
    def label(self) -> str:
        return f"PART {self.code}"

    @property
    def sort_key(self) -> int:
        return part_sort_key(self.code)


def normalize_pay_item_number(item_number: str) -> str:
    """
    Canonical pay-item form used as a lookup key.

    "  900 ( 1 )  a " -> "900 (1) A"
    """
    if not item_number:
        return ''
    text = re.sub(r'\s+', ' ', item_number.strip().upper())
    text = re.sub(r'\(\s+', '(', text)
    return re.sub(r'\s+\)', ')', text)


def item_number_prefix(item_number: str) -> int:
    match = _PREFIX_RE.match((item_number or '').strip())
    return int(match.group(1)) if match else 0


def part_for_prefix(prefix: int) -> str:
    for low, high, part in PART_RANGES:
        if low <= prefix < high:
            return part
    return 'A'


def _subcategory(part: str, category: Optional[str]) -> str:
    if not category:
        return PART_DEFAULT_SUBCATEGORIES.get(part, 'Other Works')
    lowered = category.lower()
    for keywords, name in SUBCATEGORY_KEYWORDS.get(part, ()):
        if any(k in lowered for k in keywords):
            return name
    return category


def classify_dpwh_part(item_number: str, category: Optional[str] = None) -> DPWHPart:
    """Classify a pay item by the leading numeric prefix of its number."""
    if not item_number or item_number.strip() in ('', '-'):
        return DPWHPart('A', PART_NAMES['A'], category or 'Other Works')
    part = part_for_prefix(item_number_prefix(item_number))
    return DPWHPart(part, PART_NAMES[part], _subcategory(part, category))


def part_for_trade(trade: str) -> str:
    """Fallback part for lines that carry no pay item."""
    return TRADE_PARTS.get(trade, 'A')


def part_sort_key(part: str) -> int:
    code = part.replace('PART', '').strip().upper()
    return PART_ORDER.index(code) if code in PART_ORDER else len(PART_ORDER)


def group_pay_items_by_part(item_numbers) -> Dict[str, list]:
    """Group pay-item numbers under their part code, in DPWH part order."""
    grouped: Dict[str, list] = {}
    for number in item_numbers:
        grouped.setdefault(classify_dpwh_part(number).code, []).append(number)
    return {part: grouped[part] for part in sorted(grouped, key=part_sort_key)}
