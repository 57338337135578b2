import pytest

from costengine.boq import (
    boq_line_id,
    aggregate_takeoff,
    boq_frame,
    classify_dpwh_part,
    group_pay_items_by_part,
    normalize_pay_item_number,
    part_for_trade,
    quantities_by_part,
    takeoff_frame,
)
from costengine.models import TakeoffLine
from costengine.structural import compute_structural_takeoff


@pytest.fixture
def takeoff(grid, templates, instances, settings):
    return compute_structural_takeoff(grid, templates, instances, settings).takeoff_lines


def test_normalize_pay_item_number():
    assert normalize_pay_item_number("  900 ( 1 )  a ") == "900 (1) A"
    assert normalize_pay_item_number("902 (1) a2") == "902 (1) A2"
    assert normalize_pay_item_number("") == ""


@pytest.mark.parametrize('item, part', [
    ('800 (1)', 'C'),
    ('900 (1) a', 'D'),
    ('1013 (1)', 'E'),
    ('1047 (8) a', 'E'),
    ('1100 (2)', 'F'),
    ('1600', 'G'),
    ('100', 'A'),
    ('-', 'A'),
    ('', 'A'),
])
def test_classify_dpwh_part(item, part):
    assert classify_dpwh_part(item).code == part


def test_subcategories():
    assert classify_dpwh_part('902 (1) a1', 'Rebar').subcategory == 'Reinforcing Steel'
    assert classify_dpwh_part('903 (1)', 'Formwork').subcategory == 'Formwork'
    assert classify_dpwh_part('900 (1) a').subcategory == 'Concrete Works'
    assert classify_dpwh_part('1047 (8) a', 'Roofing').subcategory == 'Roofing Works'
    assert classify_dpwh_part('-').subcategory == 'Other Works'


def test_part_for_trade():
    assert part_for_trade('Concrete') == 'D'
    assert part_for_trade('Roofing') == 'E'
    assert part_for_trade('Unknown') == 'A'


def test_group_pay_items_by_part():
    grouped = group_pay_items_by_part(['1013 (1)', '900 (1) a', '800 (1)', '902 (1) a1'])
    assert list(grouped) == ['C', 'D', 'E']
    assert grouped['D'] == ['900 (1) a', '902 (1) a1']


def test_aggregate_structural_takeoff(takeoff):
    boq = aggregate_takeoff(takeoff)

    assert [line.pay_item for line in boq] == ['900 (1) a', '902 (1) a1', '902 (1) a2', '903 (1)']
    by_item = {line.pay_item: line for line in boq}
    assert by_item['900 (1) a'].quantity == 9.01
    assert by_item['900 (1) a'].unit == 'm³'
    assert by_item['902 (1) a1'].quantity == 486.45
    assert by_item['902 (1) a2'].quantity == 150.96
    assert by_item['903 (1)'].quantity == 65.0
    assert all(line.part == 'D' for line in boq)


def test_boq_lines_keep_source_ids(takeoff):
    boq = aggregate_takeoff(takeoff)
    sources = [source for line in boq for source in line.source_takeoff_line_ids]
    assert sorted(sources) == sorted(line.id for line in takeoff)

    concrete = boq[0]
    assert concrete.source_takeoff_line_ids == sorted(concrete.source_takeoff_line_ids)
    assert 'B1-1_concrete' in concrete.source_takeoff_line_ids


def test_same_pay_item_different_units_stay_separate():
    lines = [
        TakeoffLine('a', 'e1', 'Roofing', 'roof-gi', 10.0, 'm²', '', pay_item='1013 (1)'),
        TakeoffLine('b', 'e2', 'Roofing', 'roof-gi', 4.0, 'lm', '', pay_item='1013 (1)'),
        TakeoffLine('c', 'e3', 'Roofing', 'roof-gi', 5.0, 'm²', '', pay_item='1013 ( 1 )'),
    ]
    boq = aggregate_takeoff(lines, descriptions={'1013 (1)': 'Corrugated roofing'})
    assert len(boq) == 2
    sheet = [line for line in boq if line.unit == 'm²'][0]
    assert sheet.quantity == 15.0
    assert sheet.description == 'Corrugated roofing'
    assert sheet.part == 'E'


def test_lines_without_pay_item_use_trade_default():
    lines = [TakeoffLine('x', 'e1', 'Concrete', 'concrete-class-a', 1.5, 'm³', '')]
    boq = aggregate_takeoff(lines)
    assert boq[0].pay_item == '900 (1) a'
    assert boq[0].description == 'Concrete: concrete-class-a'


def test_empty_takeoff():
    assert aggregate_takeoff([]) == []
    assert list(takeoff_frame([]).columns)[0] == 'id'


def test_frames(takeoff):
    boq = aggregate_takeoff(takeoff)
    frame = boq_frame(boq)
    assert len(frame) == 4
    assert 'B1-1_concrete' in frame.loc[0, 'source_takeoff_line_ids']

    summary = quantities_by_part(boq)
    kg = summary[(summary['part'] == 'D') & (summary['unit'] == 'kg')]
    assert int(kg['line_count'].iloc[0]) == 2


def test_boq_ids_keep_unit_exponent():
    assert boq_line_id('900 (1) a', 'm³') == 'boq_900-1-a_m3'
    assert boq_line_id('900 (1) a', 'm²') == 'boq_900-1-a_m2'

    lines = [
        TakeoffLine('a', 'e1', 'Concrete', 'concrete-class-a', 2.0, 'm³', '', pay_item='900 (1) a'),
        TakeoffLine('b', 'e2', 'Concrete', 'concrete-class-a', 3.0, 'm²', '', pay_item='900 (1) a'),
    ]
    ids = [line.id for line in aggregate_takeoff(lines)]
    assert len(set(ids)) == 2
