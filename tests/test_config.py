import dataclasses

import pytest

from costengine.config import DEFAULT_SETTINGS_PATH, EngineSettings, LapSettings, WasteSettings, load_settings


def test_bundled_defaults_load():
    assert DEFAULT_SETTINGS_PATH.exists()
    settings = load_settings()
    assert settings.waste.concrete == 0.05
    assert settings.waste.rebar == 0.03
    assert settings.lap.multiplier == 40
    assert settings.hook_allowance == 0.15
    assert settings.truss.span_limits_mm['kingpost'] == 6000


def test_partial_file_merges_over_defaults(tmp_path):
    path = tmp_path / "project.yaml"
    path.write_text("waste:\n  concrete: 0.08\ndupa:\n  ocm_percentage: 12\n")
    settings = load_settings(path)

    assert settings.waste.concrete == 0.08
    assert settings.waste.rebar == 0.03
    assert settings.dupa.ocm_percentage == 12
    assert settings.dupa.vat_percentage == 12


def test_missing_file_falls_back_to_defaults(tmp_path, caplog):
    settings = load_settings(tmp_path / "nope.yaml")
    assert settings == EngineSettings()
    assert any('using defaults' in r.message for r in caplog.records)


def test_unparseable_file_falls_back_to_defaults(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text("waste: [unclosed\n")
    assert load_settings(path) == EngineSettings()


def test_waste_bounds():
    with pytest.raises(ValueError):
        WasteSettings(concrete=1.5)
    with pytest.raises(ValueError):
        EngineSettings.from_dict({'waste': {'rebar': -0.1}})


def test_lap_bounds():
    with pytest.raises(ValueError):
        LapSettings(min_length=3.0, max_length=2.0)


def test_settings_are_frozen():
    settings = EngineSettings()
    with pytest.raises(dataclasses.FrozenInstanceError):
        settings.hook_allowance = 0.2


def test_to_dict_round_trips():
    settings = EngineSettings.from_dict({'rounding': {'cost': 4}})
    assert EngineSettings.from_dict(settings.to_dict()) == settings


def test_bundled_defaults_ship_inside_package():
    import costengine

    assert DEFAULT_SETTINGS_PATH.parent == costengine.RULES_DIR
    assert costengine.PACKAGE_ROOT in DEFAULT_SETTINGS_PATH.parents
    assert load_settings().roof.flat_pitch_deg == 0.5
