"""
Engine Settings
Loads waste, rounding, lap and catalog defaults from costengine/rules/engine_defaults.yaml.

The YAML file is optional. Missing keys fall back to the built-in defaults
below, and an unreadable file falls back to the defaults entirely.
"""

import copy
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = Path(__file__).parent / "rules" / "engine_defaults.yaml"


def _default_config() -> Dict[str, Any]:
    """Return default configuration."""
    return {
        'waste': {
            'concrete': 0.05,
            'rebar': 0.03,
        },
        'rounding': {
            'concrete': 2,
            'rebar': 2,
            'formwork': 2,
            'roofing': 2,
            'finishes': 3,
            'earthwork': 3,
            'cost': 2,
        },
        'lap': {
            'multiplier': 40,
            'min_length': 0.30,
            'max_length': 2.00,
        },
        'rebar': {
            'hook_allowance': 0.15,
        },
        'dupa': {
            'ocm_percentage': 15.0,
            'cp_percentage': 10.0,
            'vat_percentage': 12.0,
            'minor_tools_percentage': 10.0,
        },
        'finishes': {
            'default_storey_height': 3.0,
        },
        'roof': {
            'gambrel_lower_angle_ratio': 0.5,
            'flat_drainage_factor': 1.01,
            'flat_pitch_deg': 0.5,
        },
        'truss': {
            'plate_weight_kg': 0.15,
            'min_pitch_ratio': 0.15,
            'max_pitch_ratio': 0.5,
            'slenderness_divisor': 70.0,
            'slenderness_limit': 150.0,
            'default_overhang_mm': 450.0,
            'span_limits_mm': {
                'howe': 12000.0,
                'fink': 10000.0,
                'kingpost': 6000.0,
            },
        },
        'framing': {
            'sheet_waste': 0.10,
            'screws_per_sheet': 8,
            'purlin_stock_length_mm': 6000.0,
            'bolts_per_connection': 4,
            'bolt_weight_kg': 0.05,
        },
        'hauling': {
            'free_distance_km': 3.0,
            'equipment_rate_per_hour': 1420.0,
            'equipment_capacity_m3': 10.0,
        },
    }


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _load_config(path: Optional[Path]) -> Dict[str, Any]:
    """Load configuration, merged over the defaults."""
    config_path = Path(path) if path else DEFAULT_SETTINGS_PATH
    try:
        with open(config_path) as f:
            loaded = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Could not read settings from {config_path} ({e}); using defaults")
        return _default_config()

    if not isinstance(loaded, dict):
        logger.warning(f"Settings file {config_path} is not a mapping; using defaults")
        return _default_config()

    return _deep_merge(_default_config(), loaded)


@dataclass(frozen=True)
class WasteSettings:
    """Waste fractions. Formwork has none: it is measured as net contact area."""
    concrete: float = 0.05
    rebar: float = 0.03

    def __post_init__(self):
        for name in ('concrete', 'rebar'):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"waste.{name} must be between 0 and 1, got {value}")


@dataclass(frozen=True)
class RoundingSettings:
    concrete: int = 2
    rebar: int = 2
    formwork: int = 2
    roofing: int = 2
    finishes: int = 3
    earthwork: int = 3
    cost: int = 2


@dataclass(frozen=True)
class LapSettings:
    """Lap splice length = multiplier x bar diameter, clamped to [min, max] metres."""
    multiplier: float = 40
    min_length: float = 0.30
    max_length: float = 2.00

    def __post_init__(self):
        if self.min_length > self.max_length:
            raise ValueError(
                f"lap.min_length ({self.min_length}) exceeds lap.max_length ({self.max_length})"
            )

    def clamp(self, length: float) -> float:
        return min(max(length, self.min_length), self.max_length)

    def default_for(self, diameter_mm: float) -> float:
        return self.clamp(self.multiplier * diameter_mm / 1000)


@dataclass(frozen=True)
class DupaSettings:
    ocm_percentage: float = 15.0
    cp_percentage: float = 10.0
    vat_percentage: float = 12.0
    minor_tools_percentage: float = 10.0


@dataclass(frozen=True)
class FinishesSettings:
    # Wall height used when a space's level has no level above it
    default_storey_height: float = 3.0


@dataclass(frozen=True)
class RoofSettings:
    # Gambrel lower slope angle as a fraction of the upper slope angle
    gambrel_lower_angle_ratio: float = 0.5
    flat_drainage_factor: float = 1.01
    # Reported slope angle of a flat roof
    flat_pitch_deg: float = 0.5


@dataclass(frozen=True)
class TrussSettings:
    plate_weight_kg: float = 0.15
    min_pitch_ratio: float = 0.15
    max_pitch_ratio: float = 0.5
    slenderness_divisor: float = 70.0
    slenderness_limit: float = 150.0
    default_overhang_mm: float = 450.0
    span_limits_mm: Dict[str, float] = field(default_factory=lambda: {
        'howe': 12000.0,
        'fink': 10000.0,
        'kingpost': 6000.0,
    })


@dataclass(frozen=True)
class FramingSettings:
    sheet_waste: float = 0.10
    screws_per_sheet: int = 8
    purlin_stock_length_mm: float = 6000.0
    bolts_per_connection: int = 4
    bolt_weight_kg: float = 0.05


@dataclass(frozen=True)
class HaulingSettings:
    free_distance_km: float = 3.0
    equipment_rate_per_hour: float = 1420.0
    equipment_capacity_m3: float = 10.0


@dataclass(frozen=True)
class EngineSettings:
    """All engine settings. Immutable once a calculation run starts."""
    waste: WasteSettings = field(default_factory=WasteSettings)
    rounding: RoundingSettings = field(default_factory=RoundingSettings)
    lap: LapSettings = field(default_factory=LapSettings)
    hook_allowance: float = 0.15
    dupa: DupaSettings = field(default_factory=DupaSettings)
    finishes: FinishesSettings = field(default_factory=FinishesSettings)
    roof: RoofSettings = field(default_factory=RoofSettings)
    truss: TrussSettings = field(default_factory=TrussSettings)
    framing: FramingSettings = field(default_factory=FramingSettings)
    hauling: HaulingSettings = field(default_factory=HaulingSettings)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EngineSettings":
        """Build settings from a (possibly partial) config mapping."""
        config = _deep_merge(_default_config(), data or {})
        return cls(
            waste=WasteSettings(**config['waste']),
            rounding=RoundingSettings(**config['rounding']),
            lap=LapSettings(**config['lap']),
            hook_allowance=config['rebar']['hook_allowance'],
            dupa=DupaSettings(**config['dupa']),
            finishes=FinishesSettings(**config['finishes']),
            roof=RoofSettings(**config['roof']),
            truss=TrussSettings(**config['truss']),
            framing=FramingSettings(**config['framing']),
            hauling=HaulingSettings(**config['hauling']),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'waste': {'concrete': self.waste.concrete, 'rebar': self.waste.rebar},
            'rounding': {
                'concrete': self.rounding.concrete,
                'rebar': self.rounding.rebar,
                'formwork': self.rounding.formwork,
                'roofing': self.rounding.roofing,
                'finishes': self.rounding.finishes,
                'earthwork': self.rounding.earthwork,
                'cost': self.rounding.cost,
            },
            'lap': {
                'multiplier': self.lap.multiplier,
                'min_length': self.lap.min_length,
                'max_length': self.lap.max_length,
            },
            'rebar': {'hook_allowance': self.hook_allowance},
            'dupa': {
                'ocm_percentage': self.dupa.ocm_percentage,
                'cp_percentage': self.dupa.cp_percentage,
                'vat_percentage': self.dupa.vat_percentage,
                'minor_tools_percentage': self.dupa.minor_tools_percentage,
            },
            'finishes': {'default_storey_height': self.finishes.default_storey_height},
            'roof': {
                'gambrel_lower_angle_ratio': self.roof.gambrel_lower_angle_ratio,
                'flat_drainage_factor': self.roof.flat_drainage_factor,
                'flat_pitch_deg': self.roof.flat_pitch_deg,
            },
            'truss': {
                'plate_weight_kg': self.truss.plate_weight_kg,
                'min_pitch_ratio': self.truss.min_pitch_ratio,
                'max_pitch_ratio': self.truss.max_pitch_ratio,
                'slenderness_divisor': self.truss.slenderness_divisor,
                'slenderness_limit': self.truss.slenderness_limit,
                'default_overhang_mm': self.truss.default_overhang_mm,
                'span_limits_mm': dict(self.truss.span_limits_mm),
            },
            'framing': {
                'sheet_waste': self.framing.sheet_waste,
                'screws_per_sheet': self.framing.screws_per_sheet,
                'purlin_stock_length_mm': self.framing.purlin_stock_length_mm,
                'bolts_per_connection': self.framing.bolts_per_connection,
                'bolt_weight_kg': self.framing.bolt_weight_kg,
            },
            'hauling': {
                'free_distance_km': self.hauling.free_distance_km,
                'equipment_rate_per_hour': self.hauling.equipment_rate_per_hour,
                'equipment_capacity_m3': self.hauling.equipment_capacity_m3,
            },
        }


def load_settings(path: Optional[Path] = None) -> EngineSettings:
    """Load engine settings from YAML (defaults to costengine/rules/engine_defaults.yaml)."""
    return EngineSettings.from_dict(_load_config(path))
