"""
Bill of quantities: takeoff aggregation and DPWH part classification.
"""

from .aggregate import BOQLine, aggregate_takeoff, boq_frame, boq_line_id, quantities_by_part, takeoff_frame
from .classification import (
    DPWHPart,
    PART_NAMES,
    TRADE_DEFAULT_PAY_ITEMS,
    classify_dpwh_part,
    group_pay_items_by_part,
    normalize_pay_item_number,
    part_for_trade,
)
