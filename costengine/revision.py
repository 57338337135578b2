"""
Takeoff Run Comparison - Diff two takeoff runs of the same project.

Provides:
- Added / removed / modified element detection
- Per-line quantity deltas

Line ids are deterministic ({element}_{calc}), so lines from two runs are
matched by id.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List

from .models import TakeoffLine

QUANTITY_TOLERANCE = 1e-9


class ChangeType(Enum):
    """Type of change detected."""
    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"


@dataclass
class QuantityChange:
    line_id: str
    source_element_id: str
    resource_key: str
    unit: str
    previous_quantity: float
    current_quantity: float
    change_type: ChangeType

    @property
    def delta(self) -> float:
        return self.current_quantity - self.previous_quantity

    def to_dict(self) -> dict:
        return {
            "line_id": self.line_id,
            "source_element_id": self.source_element_id,
            "resource_key": self.resource_key,
            "unit": self.unit,
            "previous_quantity": self.previous_quantity,
            "current_quantity": self.current_quantity,
            "delta": self.delta,
            "change_type": self.change_type.value,
        }


@dataclass
class TakeoffDelta:
    """Differences between two takeoff runs."""
    added_elements: List[str] = field(default_factory=list)
    removed_elements: List[str] = field(default_factory=list)
    modified_elements: List[str] = field(default_factory=list)
    unchanged_elements: List[str] = field(default_factory=list)
    quantity_changes: List[QuantityChange] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.added_elements or self.removed_elements or self.modified_elements)

    def net_change_by_unit(self) -> Dict[str, float]:
        totals: Dict[str, float] = {}
        for change in self.quantity_changes:
            totals[change.unit] = totals.get(change.unit, 0.0) + change.delta
        return totals

    def to_dict(self) -> dict:
        return {
            "added_elements": self.added_elements,
            "removed_elements": self.removed_elements,
            "modified_elements": self.modified_elements,
            "unchanged_elements": self.unchanged_elements,
            "quantity_changes": [c.to_dict() for c in self.quantity_changes],
        }


def _index(lines: Iterable[TakeoffLine]) -> Dict[str, TakeoffLine]:
    return {line.id: line for line in lines}


def _elements(lines: Dict[str, TakeoffLine]) -> Dict[str, List[str]]:
    by_element: Dict[str, List[str]] = {}
    for line in lines.values():
        by_element.setdefault(line.source_element_id, []).append(line.id)
    return by_element


def compare_takeoff_runs(previous: Iterable[TakeoffLine], current: Iterable[TakeoffLine]) -> TakeoffDelta:
    """
    Compare two takeoff runs.

    An element is modified when any of its lines appears, disappears or
    changes quantity between runs.
    """
    prev_lines = _index(previous)
    curr_lines = _index(current)
    prev_elements = _elements(prev_lines)
    curr_elements = _elements(curr_lines)

    delta = TakeoffDelta()
    delta.added_elements = sorted(set(curr_elements) - set(prev_elements))
    delta.removed_elements = sorted(set(prev_elements) - set(curr_elements))

    changed_elements = set()
    for line_id in sorted(set(prev_lines) | set(curr_lines)):
        old = prev_lines.get(line_id)
        new = curr_lines.get(line_id)
        if old is not None and new is not None:
            if abs(new.quantity - old.quantity) <= QUANTITY_TOLERANCE and new.unit == old.unit:
                continue
            change_type = ChangeType.MODIFIED
        elif new is not None:
            change_type = ChangeType.ADDED
        else:
            change_type = ChangeType.REMOVED

        ref = new or old
        delta.quantity_changes.append(QuantityChange(
            line_id=line_id,
            source_element_id=ref.source_element_id,
            resource_key=ref.resource_key,
            unit=ref.unit,
            previous_quantity=old.quantity if old is not None else 0.0,
            current_quantity=new.quantity if new is not None else 0.0,
            change_type=change_type,
        ))
        changed_elements.add(ref.source_element_id)

    common = set(prev_elements) & set(curr_elements)
    delta.modified_elements = sorted(common & changed_elements)
    delta.unchanged_elements = sorted(common - changed_elements)
    return delta
