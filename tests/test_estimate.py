import pandas as pd
import pytest

from costengine.boq import aggregate_takeoff
from costengine.estimate import EstimateCalculator, EstimateOptions
from costengine.pricing import (
    DupaTemplate,
    EquipmentRate,
    LaborRateTable,
    MarkupPercentages,
    MaterialPriceBook,
    RateCatalog,
)
from costengine.structural import compute_structural_takeoff


@pytest.fixture
def catalog():
    cmpd = pd.DataFrame([
        {'material_code': 'CEMENT', 'location': 'Tacloban', 'cmpd_version': '2024-Q2', 'unit_price': 260.0},
        {'material_code': 'PLYWOOD', 'location': 'Tacloban', 'cmpd_version': '2024-Q2', 'unit_price': 850.0},
    ])
    return RateCatalog(
        labor_tables=[LaborRateTable(location='Tacloban', rates={'Skilled': 90.0, 'Unskilled': 65.0})],
        equipment_rates=[EquipmentRate(equipment_id='MIX-1', hourly_rate=300.0)],
        material_prices=MaterialPriceBook.from_dataframe(cmpd),
    )


@pytest.fixture
def dupa_templates():
    return [
        DupaTemplate(
            pay_item_number='900 (1) A',
            description='Structural Concrete Class A',
            unit='m³',
            labor=[{'designation': 'Skilled', 'persons': 2, 'hours': 1}, {'designation': 'Unskilled', 'persons': 4, 'hours': 1}],
            equipment=[{'equipment_id': 'MIX-1', 'units': 1, 'hours': 0.5}],
            materials=[{'material_code': 'CEMENT', 'quantity': 9}],
        ),
        DupaTemplate(
            pay_item_number='903 (1)',
            description='Formworks and Falseworks',
            unit='m²',
            labor=[{'designation': 'Skilled', 'persons': 1, 'hours': 0.5}],
            materials=[{'material_code': 'PLYWOOD', 'quantity': 0.1}, {'material_code': 'NAILS', 'quantity': 0.2}],
            ocm_percentage=10,
            minor_tools_enabled=False,
        ),
    ]


@pytest.fixture
def boq(grid, templates, instances, settings):
    return aggregate_takeoff(compute_structural_takeoff(grid, templates, instances, settings).takeoff_lines)


def test_estimate_prices_mapped_items(boq, dupa_templates, catalog, settings):
    result = EstimateCalculator(catalog, settings).calculate(
        boq, dupa_templates, EstimateOptions(location='Tacloban', cmpd_version='2024-Q2'),
    )

    assert [item.pay_item for item in result.rate_items] == ['900 (1) a', '903 (1)']
    assert sorted(result.unmapped) == ['902 (1) a1', '902 (1) a2']
    assert result.markup_basis == 'defaults'

    concrete = result.rate_items[0].breakdown
    labor = 2 * 90 + 4 * 65
    assert concrete.labor_cost == pytest.approx(labor)
    assert concrete.equipment_cost == pytest.approx(150 + labor * 0.10)
    assert concrete.material_cost == pytest.approx(9 * 260)
    assert concrete.quantity == 9.01
    assert concrete.ocm_percentage == 15


def test_template_markups_and_missing_prices(boq, dupa_templates, catalog, settings):
    result = EstimateCalculator(catalog, settings).calculate(
        boq, dupa_templates, EstimateOptions(location='Tacloban', cmpd_version='2024-Q2'),
    )
    formwork = result.rate_items[1]

    assert formwork.breakdown.ocm_percentage == 10
    assert formwork.breakdown.cp_percentage == 10
    assert formwork.breakdown.minor_tools_cost == 0
    assert formwork.breakdown.requires_canvass
    assert any('NAILS' in w for w in formwork.warnings)
    assert result.summary.requires_canvass_count == 1


def test_summary_totals(boq, dupa_templates, catalog, settings):
    result = EstimateCalculator(catalog, settings).calculate(
        boq, dupa_templates, EstimateOptions(location='Tacloban', cmpd_version='2024-Q2'),
    )
    summary = result.summary

    assert summary.rate_items_count == 2
    assert summary.grand_total == pytest.approx(sum(i.breakdown.total_amount for i in result.rate_items))
    assert summary.grand_total == pytest.approx(summary.subtotal_with_markup + summary.total_vat)
    assert summary.total_direct_cost == pytest.approx(
        summary.total_labor_cost + summary.total_equipment_cost + summary.total_material_cost
    )
    assert summary.to_dict()['rate_items_count'] == 2


def test_override_beats_template(boq, dupa_templates, catalog, settings):
    options = EstimateOptions(
        location='Tacloban', cmpd_version='2024-Q2',
        markup_override=MarkupPercentages(ocm=5, cp=5, vat=12),
    )
    result = EstimateCalculator(catalog, settings).calculate(boq, dupa_templates, options)
    assert result.markup_basis == 'override'
    assert [i.breakdown.ocm_percentage for i in result.rate_items] == [5, 5]


def test_auto_markups_use_project_bracket(boq, dupa_templates, catalog, settings):
    options = EstimateOptions(location='Tacloban', cmpd_version='2024-Q2', auto_markups=True)
    result = EstimateCalculator(catalog, settings).calculate(boq, dupa_templates, options)

    assert result.markup_basis == 'bracket'
    # Small project: first bracket for the concrete item, template OCM kept for formwork
    assert result.rate_items[0].breakdown.ocm_percentage == 15
    assert result.rate_items[1].breakdown.ocm_percentage == 10


def test_no_cmpd_version_means_canvass_required(boq, dupa_templates, catalog, settings):
    result = EstimateCalculator(catalog, settings).calculate(
        boq, dupa_templates, EstimateOptions(location='Tacloban'),
    )
    assert all(item.breakdown.requires_canvass for item in result.rate_items)
    assert result.rate_items[0].breakdown.material_cost == 0


def test_dataframe(boq, dupa_templates, catalog, settings):
    result = EstimateCalculator(catalog, settings).calculate(
        boq, dupa_templates, EstimateOptions(location='Tacloban', cmpd_version='2024-Q2'),
    )
    frame = result.to_dataframe()
    assert list(frame['pay_item']) == ['900 (1) a', '903 (1)']
    assert frame['total_amount'].sum() == pytest.approx(result.summary.grand_total)
