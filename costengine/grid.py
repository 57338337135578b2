"""
Grid/Level Resolver
Maps grid-line and level labels to offsets and elevations.

Labels are the only lookup key. Ranges such as "A-C" or "1-3" resolve to the
absolute distance between their end lines.
"""

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from .errors import GridLabelNotFoundError, LevelNotFoundError
from .models import GridLine, Level

logger = logging.getLogger(__name__)


def parse_range(ref: str) -> Tuple[str, str]:
    """Split "A-C" into ("A", "C"). A single label "B" gives ("B", "B")."""
    parts = [p.strip() for p in ref.split('-')]
    if len(parts) == 1:
        return parts[0], parts[0]
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise ValueError(f"Malformed grid reference: '{ref}'")
    return parts[0], parts[1]


def is_range(ref: str) -> bool:
    return '-' in ref


class GridResolver:
    """Resolve grid and level labels for one calculation run."""

    def __init__(
        self,
        grid_x: Optional[Iterable[GridLine]] = None,
        grid_y: Optional[Iterable[GridLine]] = None,
        levels: Optional[Iterable[Level]] = None,
    ):
        self._x: Dict[str, float] = {g.label: g.offset for g in (grid_x or [])}
        self._y: Dict[str, float] = {g.label: g.offset for g in (grid_y or [])}
        self._levels: List[Level] = sorted(levels or [], key=lambda lv: lv.elevation)
        self._elevations: Dict[str, float] = {lv.label: lv.elevation for lv in self._levels}

    @classmethod
    def from_dict(cls, data: Dict) -> "GridResolver":
        """Build from {'grid_x': [...], 'grid_y': [...], 'levels': [...]} mappings."""
        return cls(
            grid_x=[GridLine(**g) for g in data.get('grid_x', [])],
            grid_y=[GridLine(**g) for g in data.get('grid_y', [])],
            levels=[Level(**lv) for lv in data.get('levels', [])],
        )

    @property
    def has_grid(self) -> bool:
        return bool(self._x) and bool(self._y)

    @property
    def levels(self) -> List[Level]:
        return list(self._levels)

    def x_offset(self, label: str) -> float:
        if label not in self._x:
            raise GridLabelNotFoundError(label, "X")
        return self._x[label]

    def y_offset(self, label: str) -> float:
        if label not in self._y:
            raise GridLabelNotFoundError(label, "Y")
        return self._y[label]

    def span_x(self, ref: str) -> float:
        start, end = parse_range(ref)
        return abs(self.x_offset(end) - self.x_offset(start))

    def span_y(self, ref: str) -> float:
        start, end = parse_range(ref)
        return abs(self.y_offset(end) - self.y_offset(start))

    def elevation(self, label: str) -> float:
        if label not in self._elevations:
            raise LevelNotFoundError(label)
        return self._elevations[label]

    def next_level_above(self, label: str) -> Optional[Level]:
        """Next level strictly above `label`, or None for the top level."""
        current = self.elevation(label)
        for level in self._levels:
            if level.elevation > current:
                return level
        return None
