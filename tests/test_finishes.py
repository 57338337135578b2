import pytest
from pydantic import ValidationError

from costengine.errors import ConfigurationError
from costengine.finishes import (
    FinishesCalculator,
    FinishType,
    Opening,
    Space,
    SpaceFinishAssignment,
    WallSurface,
    WallSurfaceFinishAssignment,
    compute_space_geometry,
    compute_wall_surface_geometry,
    polygon_perimeter,
)


@pytest.fixture
def room():
    return Space(
        id='R1', name='Living', level_id='GF',
        boundary={'kind': 'grid_rect', 'x': ('A', 'C'), 'y': ('1', '2')},
    )


@pytest.fixture
def finish_types():
    return [
        FinishType(id='TILE', name='Floor tile', category='floor', pay_item='1018 (1)', waste=0.05),
        FinishType(id='BOARD', name='Ceiling board', category='ceiling', pay_item='1015 (1)'),
        FinishType(
            id='PAINT', name='Wall paint', category='paint', pay_item='1032 (1)',
            deduction_rule={'enabled': True, 'min_opening_area_m2': 0.5},
        ),
        FinishType(
            id='DADO', name='Wall tile dado', category='wall', pay_item='1018 (2)',
            wall_height_rule={'mode': 'fixed', 'value_m': 1.2},
            deduction_rule={'enabled': True, 'include_types': ['window']},
        ),
        FinishType(id='PLASTER', name='Plaster', category='plaster', pay_item='1027 (1)'),
    ]


@pytest.fixture
def openings():
    return [
        Opening(id='D1', type='door', width_m=0.9, height_m=2.1, level_id='GF', space_id='R1'),
        Opening(id='WN1', type='window', width_m=1.2, height_m=1.2, qty=2, level_id='GF'),
        Opening(id='WN2', type='window', width_m=1.2, height_m=1.2, level_id='GF', space_id='R2'),
        Opening(id='V1', type='vent', width_m=0.3, height_m=0.3, level_id='GF', space_id='R1'),
        Opening(id='WN3', type='window', width_m=1.2, height_m=1.2, level_id='2F', space_id='R1'),
    ]


def _run(grid, spaces, openings, finish_types, assignments, **kwargs):
    return FinishesCalculator(grid).calculate(spaces, openings, finish_types, assignments, **kwargs)


def _line(result, line_id):
    return next(line for line in result.takeoff_lines if line.id == line_id)


def test_grid_rect_space_geometry(grid, room):
    geometry = compute_space_geometry(room, grid)
    assert geometry.area_m2 == pytest.approx(24.0)
    assert geometry.perimeter_m == pytest.approx(20.0)


def test_polygon_space_geometry(grid):
    space = Space(
        id='L1', level_id='GF',
        boundary={'kind': 'polygon', 'points': [(0, 0), (6, 0), (6, 3), (3, 3), (3, 6), (0, 6)]},
    )
    geometry = compute_space_geometry(space, grid)
    assert geometry.area_m2 == pytest.approx(27.0)
    assert geometry.perimeter_m == pytest.approx(24.0)
    assert polygon_perimeter([(0, 0), (3, 0), (3, 4)]) == pytest.approx(12.0)


def test_degenerate_polygon_is_rejected(grid):
    space = Space(id='L2', level_id='GF', boundary={'kind': 'polygon', 'points': [(0, 0), (1, 0)]})
    with pytest.raises(ConfigurationError):
        compute_space_geometry(space, grid)


def test_floor_finish_with_waste(grid, room, finish_types):
    result = _run(grid, [room], [], finish_types, [
        SpaceFinishAssignment(id='A1', space_id='R1', finish_type_id='TILE'),
    ])
    line = _line(result, 'R1_floor_TILE')
    assert line.quantity == 25.2
    assert line.trade == 'Finishes'
    assert line.pay_item == '1018 (1)'
    assert line.resource_key == 'floor-TILE'
    assert result.summary.total_floor_area_m2 == pytest.approx(25.2)


def test_assignment_waste_overrides_finish_type(grid, room, finish_types):
    result = _run(grid, [room], [], finish_types, [
        SpaceFinishAssignment(id='A1', space_id='R1', finish_type_id='TILE', waste=0.1),
    ])
    assert _line(result, 'R1_floor_TILE').quantity == 26.4


def test_ceiling_open_to_below_is_zero(grid, finish_types):
    void = Space(
        id='R2', level_id='2F', open_to_below=True,
        boundary={'kind': 'grid_rect', 'x': ('A', 'B'), 'y': ('1', '2')},
    )
    result = _run(grid, [void], [], finish_types, [
        SpaceFinishAssignment(id='A1', space_id='R2', finish_type_id='BOARD'),
    ])
    line = _line(result, 'R2_ceiling_BOARD')
    assert line.quantity == 0
    assert "open to below" in line.formula_text


def test_wall_finish_deducts_matching_openings(grid, room, finish_types, openings):
    result = _run(grid, [room], openings, finish_types, [
        SpaceFinishAssignment(id='A1', space_id='R1', finish_type_id='PAINT'),
    ])
    line = _line(result, 'R1_paint_PAINT')

    # D1 and both WN1 panes; WN2 is another room's, V1 is under the minimum, WN3 is upstairs
    assert line.inputs_snapshot['height_m'] == 3.5
    assert line.inputs_snapshot['gross_area_m2'] == pytest.approx(70.0)
    assert line.inputs_snapshot['opening_area_m2'] == pytest.approx(4.77)
    assert line.quantity == 65.23
    assert result.warnings == []


def test_fixed_height_rule_and_type_filter(grid, room, finish_types, openings):
    result = _run(grid, [room], openings, finish_types, [
        SpaceFinishAssignment(id='A1', space_id='R1', finish_type_id='DADO', height_m=2.0),
    ])
    line = _line(result, 'R1_wall_DADO')
    assert line.inputs_snapshot['height_m'] == 1.2
    assert line.quantity == 21.12
    assert "Fixed height: 1.2 m" in line.assumptions


def test_assignment_height_override(grid, room, finish_types, openings):
    result = _run(grid, [room], openings, finish_types, [
        SpaceFinishAssignment(id='A1', space_id='R1', finish_type_id='PLASTER', height_m=3.0),
    ])
    # No deduction rule on plaster
    assert _line(result, 'R1_plaster_PLASTER').quantity == 60.0


def test_wall_finish_never_negative(grid, finish_types):
    closet = Space(id='R3', level_id='GF', boundary={'kind': 'polygon', 'points': [(0, 0), (1, 0), (1, 1)]})
    big = Opening(id='G1', type='door', width_m=5, height_m=3, level_id='GF', space_id='R3')
    result = _run(grid, [closet], [big], finish_types, [
        SpaceFinishAssignment(id='A1', space_id='R3', finish_type_id='PAINT'),
    ])
    assert _line(result, 'R3_paint_PAINT').quantity == 0


def test_top_floor_space_uses_default_storey_height(grid, finish_types):
    roof_room = Space(id='R4', level_id='RF', boundary={'kind': 'grid_rect', 'x': ('A', 'C'), 'y': ('1', '2')})
    result = _run(grid, [roof_room], [], finish_types, [
        SpaceFinishAssignment(id='A1', space_id='R4', finish_type_id='PLASTER'),
    ])
    assert _line(result, 'R4_plaster_PLASTER').quantity == 60.0
    assert len(result.warnings) == 1
    assert 'R4' in result.warnings[0]


def test_missing_references_are_collected(grid, room, finish_types):
    result = _run(grid, [room], [], finish_types, [
        SpaceFinishAssignment(id='A1', space_id='NOPE', finish_type_id='TILE'),
        SpaceFinishAssignment(id='A2', space_id='R1', finish_type_id='NOPE'),
        SpaceFinishAssignment(id='A3', space_id='R1', finish_type_id='TILE'),
    ])
    assert result.errors == [
        "Space NOPE not found for assignment A1",
        "Finish type NOPE not found for assignment A2",
    ]
    assert [line.id for line in result.takeoff_lines] == ['R1_floor_TILE']
    assert result.summary.line_count == 1


def test_unknown_category_is_rejected():
    with pytest.raises(ValidationError):
        FinishType(id='X', category='roof', pay_item='1000')


def test_fixed_height_rule_needs_value():
    with pytest.raises(ValidationError):
        FinishType(id='X', category='wall', pay_item='1000', wall_height_rule={'mode': 'fixed'})


def test_wall_surface_geometry(grid):
    along_x_line = WallSurface(
        id='W1', grid_line={'axis': 'X', 'label': 'B', 'span': ('1', '3')},
        level_start='GF', level_end='2F',
    )
    along_y_line = WallSurface(
        id='W2', grid_line={'axis': 'Y', 'label': '2', 'span': ('D', 'A')},
        level_start='2F', level_end='GF', surface_type='exterior',
    )
    first = compute_wall_surface_geometry(along_x_line, grid)
    assert (first.length_m, first.height_m, first.sides_count) == (8.0, 3.5, 2)
    assert first.total_area_m2 == pytest.approx(56.0)

    second = compute_wall_surface_geometry(along_y_line, grid)
    assert (second.length_m, second.height_m, second.sides_count) == (9.0, 3.5, 1)


def test_wall_surface_finish_sides_and_openings(grid, finish_types):
    wall = WallSurface(
        id='W1', name='Partition B', grid_line={'axis': 'X', 'label': 'B', 'span': ('1', '3')},
        level_start='GF', level_end='2F',
    )
    door = Opening(id='D9', type='door', width_m=0.9, height_m=2.1, level_id='GF', wall_surface_id='W1')
    result = _run(
        grid, [], [door], finish_types, [],
        wall_surfaces=[wall],
        wall_assignments=[
            WallSurfaceFinishAssignment(id='WA1', wall_surface_id='W1', finish_type_id='PAINT'),
            WallSurfaceFinishAssignment(id='WA2', wall_surface_id='W1', finish_type_id='PLASTER', side='single'),
        ],
    )
    paint = _line(result, 'W1_paint_PAINT')
    assert paint.quantity == 52.22
    assert paint.inputs_snapshot['sides_count'] == 2
    assert paint.resource_key == 'wallsurface-PAINT'
    assert paint.tags['surface_type'] == 'interior'

    plaster = _line(result, 'W1_plaster_PLASTER')
    assert plaster.quantity == 28.0
    assert result.summary.total_wall_area_m2 == pytest.approx(80.22)


def test_wall_surface_unknown_grid_label(grid, finish_types):
    wall = WallSurface(
        id='W5', grid_line={'axis': 'X', 'label': 'Z', 'span': ('1', '3')},
        level_start='GF', level_end='2F',
    )
    result = _run(
        grid, [], [], finish_types, [],
        wall_surfaces=[wall],
        wall_assignments=[
            WallSurfaceFinishAssignment(id='WA1', wall_surface_id='W5', finish_type_id='PAINT'),
            WallSurfaceFinishAssignment(id='WA2', wall_surface_id='W9', finish_type_id='PAINT'),
        ],
    )
    assert result.takeoff_lines == []
    assert result.errors == [
        "Grid line 'Z' not found on X axis",
        "Wall surface W9 not found for assignment WA2",
    ]
