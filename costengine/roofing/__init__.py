"""
Roofing: roof plane geometry, parametric roofs, trusses and framing.
"""

from .calculator import FramingSpec, RoofingCalculator, RoofingResult, TrussDesign
from .framing import (
    BracingConfiguration,
    BracingType,
    FramingParameters,
    FramingResult,
    PURLIN_SECTIONS,
    ROOFING_MATERIALS,
    calculate_roof_framing,
)
from .geometry import (
    AreaBasis,
    GridRectBoundary,
    PolygonBoundary,
    RoofPlane,
    RoofPlaneGeometry,
    RoofSlope,
    RoofType,
    SlopeMode,
    compute_plan_area,
    compute_roof_plane_geometry,
    compute_slope_factor,
    polygon_area,
)
from .parametric import PitchFormat, RoofParameters, RoofStyle, generate_roof
from .takeoff import compute_roof_cover_takeoff
from .truss import (
    MaterialSpecification,
    TrussParameters,
    TrussResult,
    TrussType,
    design_trusses,
    generate_truss,
    truss_count,
)
