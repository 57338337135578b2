"""
Structural Element Calculator
Concrete, rebar and formwork takeoff for beam, column, slab and foundation
instances placed on the project grid.

Grid references follow [X ref, Y ref]:
    beam   ["A-C", "1"]   spans grid X from A to C along line 1
    beam   ["B", "1-3"]   spans grid Y from 1 to 3 along line B
    slab   ["A-C", "1-3"] bay bounded by A-C and 1-3
    column ["B", "2"]     position only; height from levels
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..boq.classification import TRADE_DEFAULT_PAY_ITEMS
from ..config import EngineSettings
from ..errors import ConfigurationError, TemplateNotFoundError
from ..grid import GridResolver, is_range
from ..models import (
    ElementInstance,
    ElementTemplate,
    ElementType,
    FoundationKind,
    TakeoffLine,
    Trade,
)
from .concrete import compute_concrete_line
from .formwork import compute_formwork_line
from .geometry import BeamGeometry, ColumnGeometry, FoundationGeometry, PileGeometry, SlabGeometry
from .rebar import compute_rebar_lines

logger = logging.getLogger(__name__)


@dataclass
class StructuralSummary:
    """Run totals."""
    element_count: int = 0
    skipped_count: int = 0
    concrete_m3: float = 0.0
    rebar_kg: float = 0.0
    formwork_m2: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'element_count': self.element_count,
            'skipped_count': self.skipped_count,
            'concrete_m3': round(self.concrete_m3, 3),
            'rebar_kg': round(self.rebar_kg, 2),
            'formwork_m2': round(self.formwork_m2, 2),
        }


@dataclass
class StructuralResult:
    """Takeoff lines plus collected errors and warnings for a batch."""
    takeoff_lines: List[TakeoffLine] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    summary: StructuralSummary = field(default_factory=StructuralSummary)

    def lines_for(self, instance_id: str) -> List[TakeoffLine]:
        return [line for line in self.takeoff_lines if line.source_element_id == instance_id]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'takeoff_lines': [line.to_dict() for line in self.takeoff_lines],
            'errors': list(self.errors),
            'warnings': list(self.warnings),
            'summary': self.summary.to_dict(),
        }


class StructuralCalculator:
    """
    Per-element takeoff.

    Each element type has its own geometry resolver; `calculate_instance`
    dispatches on the template's ElementType.
    """

    def __init__(self, grid: GridResolver, settings: Optional[EngineSettings] = None):
        self.grid = grid
        self.settings = settings or EngineSettings()
        self._resolvers = {
            ElementType.BEAM: self._resolve_beam,
            ElementType.COLUMN: self._resolve_column,
            ElementType.SLAB: self._resolve_slab,
            ElementType.FOUNDATION: self._resolve_foundation,
        }

    def calculate(
        self,
        templates: Iterable[ElementTemplate],
        instances: Iterable[ElementInstance],
    ) -> StructuralResult:
        """Run every instance; configuration errors reject only that instance."""
        by_id = {t.id: t for t in templates}
        result = StructuralResult()

        for instance in instances:
            template = by_id.get(instance.template_id)
            try:
                if template is None:
                    raise TemplateNotFoundError(instance.id, instance.template_id)
                lines, warnings = self.calculate_instance(instance, template)
            except ConfigurationError as e:
                logger.warning(f"Skipping {instance.id}: {e}")
                result.errors.append(str(e))
                continue

            if not lines:
                # Skipped elements report into the run error list
                result.errors.extend(warnings)
                result.summary.skipped_count += 1
                continue
            result.warnings.extend(warnings)

            result.summary.element_count += 1
            result.takeoff_lines.extend(lines)
            for line in lines:
                if line.trade == Trade.CONCRETE.value:
                    result.summary.concrete_m3 += line.quantity
                elif line.trade == Trade.REBAR.value:
                    result.summary.rebar_kg += line.quantity
                elif line.trade == Trade.FORMWORK.value:
                    result.summary.formwork_m2 += line.quantity

        logger.info(
            f"Structural takeoff: {result.summary.element_count} elements, "
            f"{len(result.takeoff_lines)} lines, {len(result.errors)} errors, "
            f"{len(result.warnings)} warnings"
        )
        return result

    def calculate_instance(
        self,
        instance: ElementInstance,
        template: ElementTemplate,
    ) -> Tuple[List[TakeoffLine], List[str]]:
        """
        Takeoff lines for a single instance.

        Raises ConfigurationError for unresolved grid or level labels. Returns
        no lines and a skip message for a column with no level above it.
        """
        props = template.resolved_properties(instance.custom_geometry)
        geometry, warnings = self._resolvers[template.type](instance, props)
        if geometry is None:
            return [], warnings

        tags = {
            'element_type': template.type.value,
            'template': template.id,
            'level': instance.placement.level_id,
        }
        if template.type == ElementType.FOUNDATION:
            tags['foundation_kind'] = props.kind.value
        tags.update(instance.tags)

        waste = self.settings.waste
        rounding = self.settings.rounding

        lines = [compute_concrete_line(
            instance.id,
            geometry,
            waste=waste.concrete,
            decimals=rounding.concrete,
            pay_item=template.pay_item or TRADE_DEFAULT_PAY_ITEMS[Trade.CONCRETE.value],
            tags=tags,
        )]

        rebar_lines, rebar_warnings = compute_rebar_lines(
            instance.id,
            geometry,
            template.rebar_config,
            waste=waste.rebar,
            lap=self.settings.lap,
            hook_allowance=self.settings.hook_allowance,
            decimals=rounding.rebar,
            tags=tags,
        )
        lines.extend(rebar_lines)
        warnings.extend(rebar_warnings)

        if not isinstance(geometry, PileGeometry):
            lines.append(compute_formwork_line(
                instance.id,
                template.type,
                geometry,
                decimals=rounding.formwork,
                tags=tags,
            ))
        return lines, warnings

    # -------------------------------------------------------------------------
    # Geometry resolution
    # -------------------------------------------------------------------------

    def _grid_refs(self, instance: ElementInstance) -> Tuple[Optional[str], Optional[str]]:
        """Resolve every label in the grid reference; returns (x_ref, y_ref)."""
        refs = instance.placement.grid_ref
        x_ref = refs[0] if len(refs) > 0 else None
        y_ref = refs[1] if len(refs) > 1 else None
        if x_ref:
            self.grid.span_x(x_ref)
        if y_ref:
            self.grid.span_y(y_ref)
        return x_ref, y_ref

    def _resolve_beam(self, instance, props) -> Tuple[Optional[BeamGeometry], List[str]]:
        x_ref, y_ref = self._grid_refs(instance)
        self.grid.elevation(instance.placement.level_id)

        if props.length is not None:
            length = props.length
        elif x_ref and is_range(x_ref):
            length = self.grid.span_x(x_ref)
        elif y_ref and is_range(y_ref):
            length = self.grid.span_y(y_ref)
        else:
            raise ConfigurationError(
                f"Beam {instance.id}: grid reference {instance.placement.grid_ref} "
                f"has no span and no length is given"
            )

        if length <= 0:
            raise ConfigurationError(f"Beam {instance.id}: span resolves to zero length")
        return BeamGeometry(width=props.width, height=props.height, length=length), []

    def _resolve_column(self, instance, props) -> Tuple[Optional[ColumnGeometry], List[str]]:
        """
        Column height, first match wins:
            1. end_level_id: elevation(end) - elevation(level)
            2. instance custom_geometry height
            3. next level above; none means a top-floor column, skipped

        A template height never overrides the levels.
        """
        self._grid_refs(instance)
        placement = instance.placement
        base = self.grid.elevation(placement.level_id)
        custom_height = instance.custom_geometry.get('height')

        if placement.end_level_id:
            height = self.grid.elevation(placement.end_level_id) - base
            if height <= 0:
                raise ConfigurationError(
                    f"Column {instance.id}: end level {placement.end_level_id} "
                    f"is not above {placement.level_id}"
                )
        elif custom_height is not None:
            height = props.height
        else:
            above = self.grid.next_level_above(placement.level_id)
            if above is None:
                message = (
                    f"Column {instance.id} at level {placement.level_id} has no level above "
                    f"(top-floor column); skipped"
                )
                logger.warning(message)
                return None, [message]
            height = above.elevation - base

        return ColumnGeometry(
            shape=props.shape,
            width=props.width,
            depth=props.depth,
            diameter=props.diameter,
            height=height,
        ), []

    def _resolve_slab(self, instance, props) -> Tuple[Optional[SlabGeometry], List[str]]:
        x_ref, y_ref = self._grid_refs(instance)
        self.grid.elevation(instance.placement.level_id)

        if props.area is not None:
            side = props.area ** 0.5
            geometry = SlabGeometry(length_x=side, length_y=side, thickness=props.thickness)
            return geometry, []

        if not (x_ref and y_ref and is_range(x_ref) and is_range(y_ref)):
            raise ConfigurationError(
                f"Slab {instance.id}: grid reference {instance.placement.grid_ref} "
                f"must give both X and Y ranges when no area is given"
            )
        geometry = SlabGeometry(
            length_x=self.grid.span_x(x_ref),
            length_y=self.grid.span_y(y_ref),
            thickness=props.thickness,
        )
        if geometry.area <= 0:
            raise ConfigurationError(f"Slab {instance.id}: grid bay has zero area")
        return geometry, []

    def _resolve_foundation(self, instance, props):
        self._grid_refs(instance)
        self.grid.elevation(instance.placement.level_id)
        if props.kind == FoundationKind.PILE:
            geometry = PileGeometry(
                shape=props.shape, width=props.width, diameter=props.diameter, length=props.depth,
            )
            return geometry, []
        geometry = FoundationGeometry(
            length=props.length, width=props.width, depth=props.depth, kind=props.kind,
        )
        return geometry, []


def compute_structural_takeoff(
    grid: GridResolver,
    templates: Iterable[ElementTemplate],
    instances: Iterable[ElementInstance],
    settings: Optional[EngineSettings] = None,
) -> StructuralResult:
    """Convenience wrapper around StructuralCalculator."""
    return StructuralCalculator(grid, settings).calculate(templates, instances)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)

    grid = GridResolver.from_dict({
        'grid_x': [{'label': 'A', 'offset': 0}, {'label': 'B', 'offset': 3}, {'label': 'C', 'offset': 6}],
        'grid_y': [{'label': '1', 'offset': 0}, {'label': '2', 'offset': 4}],
        'levels': [{'label': 'GF', 'elevation': 0}, {'label': '2F', 'elevation': 3.5}],
    })
    beam = ElementTemplate(
        id='B1', name='Beam 300x500', type='beam',
        properties={'width': 0.3, 'height': 0.5},
        rebar_config={
            'main': {'diameter_mm': 16, 'count': 4},
            'stirrups': {'diameter_mm': 10, 'spacing': 0.15},
        },
    )
    instance = ElementInstance(
        id='B1-1', template_id='B1',
        placement={'grid_ref': ['A-C', '1'], 'level_id': 'GF'},
    )
    result = compute_structural_takeoff(grid, [beam], [instance])

    print("\n=== STRUCTURAL TAKEOFF ===")
    for line in result.takeoff_lines:
        print(f"{line.id:<28} {line.quantity:>10.2f} {line.unit:<4} {line.formula_text}")
    print(f"\nSummary: {result.summary.to_dict()}")
