import math

import pytest
from pydantic import ValidationError

from costengine.config import EngineSettings, WasteSettings
from costengine.models import ElementInstance, ElementTemplate
from costengine.structural import StructuralCalculator, compute_structural_takeoff


def _line(result, line_id):
    matches = [line for line in result.takeoff_lines if line.id == line_id]
    assert matches, f"no line {line_id}"
    return matches[0]


def test_fixture_quantities(grid, templates, instances, settings):
    result = compute_structural_takeoff(grid, templates, instances, settings)

    assert result.errors == []
    assert _line(result, 'B1-1_concrete').quantity == 0.95
    assert _line(result, 'B1-1_formwork').quantity == 7.8
    assert _line(result, 'C1-1_concrete').quantity == 0.59
    assert _line(result, 'C1-1_formwork').quantity == 5.6
    assert _line(result, 'S1-1_concrete').quantity == 6.05
    assert _line(result, 'S1-1_formwork').quantity == 48.0
    assert _line(result, 'F1-1_concrete').quantity == 1.42
    assert _line(result, 'F1-1_formwork').quantity == 3.6
    assert len(result.takeoff_lines) == 14
    assert result.summary.element_count == 4


def test_rebar_weights(grid, templates, instances, settings):
    result = compute_structural_takeoff(grid, templates, instances, settings)

    assert _line(result, 'B1-1_rebar_main').quantity == 47.33
    assert _line(result, 'B1-1_rebar_stirrups').quantity == 45.6
    assert _line(result, 'C1-1_rebar_main').quantity == 103.63
    assert _line(result, 'C1-1_rebar_stirrups').quantity == 40.04
    assert _line(result, 'S1-1_rebar_main').quantity == 261.0
    assert _line(result, 'S1-1_rebar_secondary').quantity == 139.81


def test_units_and_trades(grid, templates, instances, settings):
    result = compute_structural_takeoff(grid, templates, instances, settings)
    units = {line.trade: line.unit for line in result.takeoff_lines}
    assert units == {'Concrete': 'm³', 'Rebar': 'kg', 'Formwork': 'm²'}


def test_beam_along_y_axis(grid, templates, settings):
    instance = ElementInstance(id='B1-2', template_id='B1', placement={'grid_ref': ['B', '1-3'], 'level_id': 'GF'})
    result = compute_structural_takeoff(grid, templates, [instance], settings)
    concrete = _line(result, 'B1-2_concrete')
    assert concrete.inputs_snapshot['length_m'] == 8


def test_beam_without_span_is_rejected(grid, templates, settings):
    instance = ElementInstance(id='B1-3', template_id='B1', placement={'grid_ref': ['B', '2'], 'level_id': 'GF'})
    result = compute_structural_takeoff(grid, templates, [instance], settings)
    assert result.takeoff_lines == []
    assert len(result.errors) == 1
    assert 'B1-3' in result.errors[0]


def test_top_floor_column_is_skipped_into_errors(grid, templates, settings):
    instance = ElementInstance(id='C1-9', template_id='C1', placement={'grid_ref': ['B', '2'], 'level_id': 'RF'})
    result = compute_structural_takeoff(grid, templates, [instance], settings)

    assert result.takeoff_lines == []
    assert result.warnings == []
    assert len(result.errors) == 1
    assert 'top-floor column' in result.errors[0]
    assert 'C1-9' in result.errors[0]
    assert result.summary.skipped_count == 1


def test_column_end_level_and_height_override(grid, templates, settings):
    spans_two = ElementInstance(
        id='C1-2', template_id='C1',
        placement={'grid_ref': ['A', '1'], 'level_id': 'GF', 'end_level_id': 'RF'},
    )
    overridden = ElementInstance(
        id='C1-3', template_id='C1',
        placement={'grid_ref': ['A', '1'], 'level_id': 'RF'},
        custom_geometry={'height': 1.2},
    )
    result = compute_structural_takeoff(grid, templates, [spans_two, overridden], settings)

    assert _line(result, 'C1-2_concrete').inputs_snapshot['height_m'] == 7.0
    assert _line(result, 'C1-3_concrete').inputs_snapshot['height_m'] == 1.2


def test_circular_column():
    from costengine.grid import GridResolver

    grid = GridResolver.from_dict({
        'grid_x': [{'label': 'A', 'offset': 0}],
        'grid_y': [{'label': '1', 'offset': 0}],
        'levels': [{'label': 'GF', 'elevation': 0}, {'label': '2F', 'elevation': 3}],
    })
    template = ElementTemplate(id='CC', type='column', properties={'shape': 'circular', 'diameter': 0.5})
    instance = ElementInstance(id='CC-1', template_id='CC', placement={'grid_ref': ['A', '1'], 'level_id': 'GF'})
    settings = EngineSettings(waste=WasteSettings(concrete=0.0, rebar=0.0))
    result = compute_structural_takeoff(grid, [template], [instance], settings)

    volume = math.pi * 0.25 ** 2 * 3
    assert _line(result, 'CC-1_concrete').quantity == round(volume, 2)
    assert _line(result, 'CC-1_formwork').quantity == round(math.pi * 0.5 * 3, 2)


def test_missing_template(grid, templates, settings):
    instance = ElementInstance(id='X-1', template_id='NOPE', placement={'grid_ref': ['A', '1'], 'level_id': 'GF'})
    result = compute_structural_takeoff(grid, templates, [instance], settings)
    assert result.takeoff_lines == []
    assert result.errors == ["Template not found for instance X-1: NOPE"]


def test_unknown_grid_label_rejects_only_that_instance(grid, templates, instances, settings):
    bad = ElementInstance(id='B1-9', template_id='B1', placement={'grid_ref': ['A-Z', '1'], 'level_id': 'GF'})
    result = compute_structural_takeoff(grid, templates, instances + [bad], settings)

    assert result.errors == ["Grid line 'Z' not found on X axis"]
    assert result.summary.element_count == 4


def test_formwork_ignores_concrete_waste(grid, templates, instances):
    low = compute_structural_takeoff(grid, templates, instances, EngineSettings(waste=WasteSettings(concrete=0.0)))
    high = compute_structural_takeoff(grid, templates, instances, EngineSettings(waste=WasteSettings(concrete=0.2)))

    low_fw = {line.id: line.quantity for line in low.takeoff_lines if line.trade == 'Formwork'}
    high_fw = {line.id: line.quantity for line in high.takeoff_lines if line.trade == 'Formwork'}
    assert low_fw == high_fw
    assert _line(high, 'S1-1_concrete').quantity > _line(low, 'S1-1_concrete').quantity


def test_deterministic(grid, templates, instances, settings):
    first = compute_structural_takeoff(grid, templates, instances, settings)
    second = compute_structural_takeoff(grid, templates, instances, settings)
    assert [line.to_dict() for line in first.takeoff_lines] == [line.to_dict() for line in second.takeoff_lines]


def test_concrete_reproducible_from_snapshot(grid, templates, instances, settings):
    result = compute_structural_takeoff(grid, templates, instances, settings)
    for line in result.takeoff_lines:
        if line.trade != 'Concrete':
            continue
        snap = line.inputs_snapshot
        expected = snap['volume_m3'] * (1 + snap['waste_concrete'])
        assert line.quantity == pytest.approx(expected, abs=0.005)


def test_rebar_reproducible_from_snapshot(grid, templates, instances, settings):
    result = compute_structural_takeoff(grid, templates, instances, settings)
    for line in result.takeoff_lines:
        if line.trade != 'Rebar':
            continue
        snap = line.inputs_snapshot
        expected = (
            snap['bar_count'] * (snap['bar_length_m'] + 2 * snap['lap_length_m'])
            * snap['unit_weight_kg_per_m'] * (1 + snap['waste_rebar'])
        )
        assert line.quantity == pytest.approx(expected, abs=0.005)


def test_line_metadata(grid, templates, instances, settings):
    result = StructuralCalculator(grid, settings).calculate(templates, instances)
    beam = result.lines_for('B1-1')
    assert {line.id for line in beam} == {
        'B1-1_concrete', 'B1-1_rebar_main', 'B1-1_rebar_stirrups', 'B1-1_formwork',
    }
    concrete = _line(result, 'B1-1_concrete')
    assert concrete.pay_item == '900 (1) a'
    assert concrete.tags['element_type'] == 'beam'
    assert concrete.tags['level'] == 'GF'
    assert _line(result, 'B1-1_formwork').pay_item == '903 (1)'


def test_template_rejects_bad_dimensions():
    with pytest.raises(ValidationError):
        ElementTemplate(id='B', type='beam', properties={'width': 0})
    with pytest.raises(ValidationError):
        ElementTemplate(id='B', type='girder', properties={})


def test_template_properties_default():
    template = ElementTemplate(id='S', type='slab', properties={})
    assert template.properties.thickness == 0.1


def test_template_from_dict_fills_defaults():
    template = ElementTemplate.from_dict({'id': 'F', 'type': 'foundation', 'properties': {'depth': 0.8}})
    assert (template.properties.length, template.properties.width, template.properties.depth) == (1.5, 1.5, 0.8)
