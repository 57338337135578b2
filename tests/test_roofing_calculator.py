import pytest

from costengine.roofing import (
    PURLIN_SECTIONS,
    MaterialSpecification,
    RoofingCalculator,
    RoofPlane,
    RoofType,
    TrussDesign,
)

ANGLE = MaterialSpecification(section='L50x50x5', weight_kg_per_m=3.77)
ROD = MaterialSpecification(section='16mm rod', weight_kg_per_m=1.578)


def _planes():
    return [
        RoofPlane(
            id='RP1', name='North', level_id='RF',
            boundary={'kind': 'grid_rect', 'x': ['A', 'D'], 'y': ['1', '2']},
            slope={'mode': 'ratio', 'value': 0.25}, roof_type_id='GI',
        ),
        RoofPlane(
            id='RP2', name='South', level_id='RF',
            boundary={'kind': 'grid_rect', 'x': ['A', 'D'], 'y': ['2', '3']},
            slope={'mode': 'ratio', 'value': 0.25}, roof_type_id='GI',
        ),
    ]


def _design(with_framing=True):
    data = {
        'truss': {
            'type': 'fink',
            'span_mm': 8000,
            'rise_mm': 2000,
            'overhang_mm': 0,
            'spacing_mm': 1000,
            'top_chord_material': ANGLE,
            'bottom_chord_material': ANGLE,
            'web_material': ANGLE,
        },
        'building_length_mm': 9000,
    }
    if with_framing:
        data['framing'] = {
            'purlin_spacing_mm': 600,
            'purlin_spec': PURLIN_SECTIONS['C75x40x15x2.0'],
            'bracing': {'type': 'X-Brace', 'interval_mm': 4500, 'material': ROD},
        }
    return TrussDesign(**data)


def test_roof_cover_lines(grid):
    result = RoofingCalculator(grid).calculate(_planes(), [RoofType(id='GI', lap_allowance=0.1)])

    assert result.errors == []
    assert [line.id for line in result.takeoff_lines] == ['RP1_roofing', 'RP2_roofing']
    assert result.summary.roof_plane_count == 2
    assert result.summary.total_roof_area_m2 == pytest.approx(2 * 36 * (1 + 0.25 ** 2) ** 0.5)


def test_missing_roof_type_is_collected(grid):
    result = RoofingCalculator(grid).calculate(_planes(), [])
    assert result.takeoff_lines == []
    assert result.errors[0] == "Roof plane 'North': roof type not found (GI)"


def test_grid_rect_without_grid_is_collected():
    result = RoofingCalculator(None).calculate(_planes()[:1], [RoofType(id='GI')])
    assert len(result.errors) == 1
    assert result.errors[0].startswith("Roof plane 'North':")
    assert 'Grid system required' in result.errors[0]


def test_truss_and_framing_lines(grid):
    result = RoofingCalculator(grid).calculate(_planes(), [RoofType(id='GI')], _design())
    by_id = {line.id: line for line in result.takeoff_lines}

    for line_id in ('truss_system', 'purlin_system', 'bracing_system', 'turnbuckle_system',
                    'ridge_cap', 'purlin_bolts'):
        assert line_id in by_id

    truss = by_id['truss_system']
    assert truss.inputs_snapshot['truss_count'] == 10
    assert truss.pay_item == '1047 (8) a'
    assert truss.quantity == pytest.approx(result.summary.total_truss_weight_kg, abs=0.005)
    assert by_id['purlin_system'].pay_item == '1047 (8) b'
    assert by_id['ridge_cap'].quantity == 9.0
    assert by_id['ridge_cap'].unit == 'lm'
    assert by_id['turnbuckle_system'].quantity == 4


def test_truss_without_framing(grid):
    result = RoofingCalculator(grid).calculate([], [], _design(with_framing=False))
    assert [line.id for line in result.takeoff_lines] == ['truss_system']


def test_unknown_roofing_material(grid):
    design = _design()
    design.framing.roofing_material = 'Clay_Tile'
    result = RoofingCalculator(grid).calculate([], [], design)
    assert any('Clay_Tile' in e for e in result.errors)


def test_pay_item_override(grid):
    from costengine.roofing.framing import PayItemMapping

    design = _design(with_framing=False)
    design.pay_items['truss_steel'] = PayItemMapping('1047 (9)', 'Custom trusses', 'Kilogram')
    result = RoofingCalculator(grid).calculate([], [], design)
    assert result.takeoff_lines[0].pay_item == '1047 (9)'
