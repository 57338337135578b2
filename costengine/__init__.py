"""
DPWH Quantity Takeoff & Cost Rollup Engine
Grid-based structural, roofing, finishes and earthwork takeoff, BOQ
aggregation and DUPA pricing.
"""

__version__ = "0.3.0"

from pathlib import Path

PACKAGE_ROOT = Path(__file__).parent
RULES_DIR = PACKAGE_ROOT / "rules"

from .boq import BOQLine, aggregate_takeoff
from .config import EngineSettings, load_settings
from .earthwork import EarthworkKind, compute_earthwork_line
from .estimate import EstimateCalculator, EstimateOptions, EstimateResult
from .finishes import FinishesCalculator, compute_finishes_takeoff
from .grid import GridResolver
from .models import ElementInstance, ElementTemplate, TakeoffLine
from .revision import TakeoffDelta, compare_takeoff_runs
from .roofing import RoofingCalculator
from .structural import StructuralCalculator, compute_structural_takeoff
