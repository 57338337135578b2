import pytest

from costengine.config import EngineSettings
from costengine.grid import GridResolver
from costengine.models import ElementInstance, ElementTemplate


@pytest.fixture
def grid():
    return GridResolver.from_dict({
        'grid_x': [
            {'label': 'A', 'offset': 0},
            {'label': 'B', 'offset': 3},
            {'label': 'C', 'offset': 6},
            {'label': 'D', 'offset': 9},
        ],
        'grid_y': [
            {'label': '1', 'offset': 0},
            {'label': '2', 'offset': 4},
            {'label': '3', 'offset': 8},
        ],
        'levels': [
            {'label': 'GF', 'elevation': 0.0},
            {'label': '2F', 'elevation': 3.5},
            {'label': 'RF', 'elevation': 7.0},
        ],
    })


@pytest.fixture
def settings():
    return EngineSettings()


@pytest.fixture
def templates():
    return [
        ElementTemplate(
            id='B1', name='Beam 300x500', type='beam',
            properties={'width': 0.3, 'height': 0.5},
            rebar_config={
                'main': {'diameter_mm': 16, 'count': 4},
                'stirrups': {'diameter_mm': 10, 'spacing': 0.15},
            },
        ),
        ElementTemplate(
            id='C1', name='Column 400x400', type='column',
            properties={'width': 0.4, 'depth': 0.4},
            rebar_config={
                'main': {'diameter_mm': 20, 'count': 8},
                'stirrups': {'diameter_mm': 10, 'spacing': 0.1},
            },
        ),
        ElementTemplate(
            id='S1', name='Slab 120', type='slab',
            properties={'thickness': 0.12},
            rebar_config={
                'main': {'diameter_mm': 12, 'spacing': 0.2},
                'secondary': {'diameter_mm': 10, 'spacing': 0.25},
            },
        ),
        ElementTemplate(
            id='F1', name='Footing 1.5x1.5', type='foundation',
            properties={'length': 1.5, 'width': 1.5, 'depth': 0.6},
        ),
    ]


@pytest.fixture
def instances():
    return [
        ElementInstance(id='B1-1', template_id='B1', placement={'grid_ref': ['A-C', '1'], 'level_id': 'GF'}),
        ElementInstance(id='C1-1', template_id='C1', placement={'grid_ref': ['B', '2'], 'level_id': 'GF'}),
        ElementInstance(id='S1-1', template_id='S1', placement={'grid_ref': ['A-C', '1-3'], 'level_id': '2F'}),
        ElementInstance(id='F1-1', template_id='F1', placement={'grid_ref': ['B', '2'], 'level_id': 'GF'}),
    ]
