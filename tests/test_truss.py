import math

import pytest

from costengine.config import TrussSettings
from costengine.roofing import MaterialSpecification, TrussParameters, design_trusses, generate_truss, truss_count

ANGLE = MaterialSpecification(section='L50x50x5', weight_kg_per_m=3.77)
WEB = MaterialSpecification(section='L40x40x4', weight_kg_per_m=2.42)


def _params(truss_type, span=6000, rise=1500, overhang=0, **kwargs):
    return TrussParameters(
        type=truss_type,
        span_mm=span,
        rise_mm=rise,
        overhang_mm=overhang,
        spacing_mm=kwargs.pop('spacing_mm', 1200),
        top_chord_material=ANGLE,
        bottom_chord_material=ANGLE,
        web_material=WEB,
        **kwargs,
    )


def test_king_post_members():
    result = generate_truss(_params('kingpost'))
    members = {m.name: m for m in result.members}

    assert members['Top Chord'].length_mm == pytest.approx(math.hypot(3000, 1500))
    assert members['Top Chord'].quantity == 2
    assert members['Bottom Chord'].length_mm == 6000
    assert members['King Post'].length_mm == 1500
    assert result.summary.plate_count == 3
    assert result.validation.valid


def test_weights_add_up():
    result = generate_truss(_params('fink'))
    summary = result.summary
    member_weight = sum(m.weight_kg for m in result.members)

    assert summary.plate_weight_kg == pytest.approx(summary.plate_count * 0.15)
    assert summary.total_weight_kg == pytest.approx(member_weight + summary.plate_weight_kg)
    bottom = [m for m in result.members if m.subtype == 'bottom'][0]
    assert bottom.weight_kg == pytest.approx(6.0 * 3.77)


def test_howe_verticals_and_overhang_diagonals():
    plain = generate_truss(_params('howe', span=8000, rise=2000, vertical_web_count=3))
    with_overhang = generate_truss(_params('howe', span=8000, rise=2000, vertical_web_count=3, overhang=450))

    def diagonals(result):
        return [m for m in result.members if m.subtype == 'diagonal'][0].quantity

    verticals = [m for m in plain.members if m.name == 'Vertical Web'][0]
    assert verticals.quantity == 3
    assert diagonals(plain) == 4
    assert diagonals(with_overhang) == 6
    assert with_overhang.geometry.total_length_mm == 8900


def test_default_overhang_from_settings():
    params = _params('fink').model_copy(update={'overhang_mm': None})
    result = generate_truss(params, TrussSettings(default_overhang_mm=300))
    assert result.geometry.overhang_mm == 300


def test_low_pitch_warning():
    result = generate_truss(_params('fink', rise=600))
    assert not result.validation.valid
    assert any('Low pitch' in w for w in result.validation.warnings)


def test_span_limit_per_type():
    fink = generate_truss(_params('fink', span=11000, rise=3000))
    howe = generate_truss(_params('howe', span=11000, rise=3000))
    assert any('Large span' in w for w in fink.validation.warnings)
    assert not any('Large span' in w for w in howe.validation.warnings)


def test_unknown_truss_type():
    with pytest.raises(ValueError):
        _params('pratt')


def test_truss_count():
    assert truss_count(12000, 1200) == 11
    assert truss_count(12500, 1200) == 12
    assert truss_count(3600, 1200) == 4


def test_design_trusses_totals():
    design = design_trusses(_params('kingpost'), 12000)
    assert design.truss_count == 11
    assert design.total_weight_kg == pytest.approx(design.truss.summary.total_weight_kg * 11)
