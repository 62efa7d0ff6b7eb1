"""
Shared fixtures — a small area snapshot shaped like the area API response.

    Wessex (EA 1)
    ├── PSO West of England (3)
    │   ├── Bristol City Council (6)
    │   └── Bath and North East Somerset (7)
    └── PSO Wiltshire (4)
        └── Wiltshire Council (8)
    Thames (EA 2)
    └── PSO Thames Valley (5)
        └── Reading Borough Council (9)

Ids are ints on purpose: the index must treat ``6`` and ``"6"`` alike.
"""

from __future__ import annotations

import copy

import pytest

from area_access.hierarchy.index import AreaIndex

SAMPLE_AREAS = {
    "Country": [{"id": 99, "name": "England", "parent_id": None}],
    "Authority": [{"id": 50, "name": "Environment Agency", "parent_id": None}],
    "EA Area": [
        {"id": 1, "name": "Wessex", "parent_id": None},
        {"id": 2, "name": "Thames", "parent_id": None},
    ],
    "PSO Area": [
        {"id": 3, "name": "PSO West of England", "parent_id": 1},
        {"id": 4, "name": "PSO Wiltshire", "parent_id": 1},
        {"id": 5, "name": "PSO Thames Valley", "parent_id": 2},
    ],
    "RMA": [
        {"id": 6, "name": "Bristol City Council", "parent_id": 3},
        {"id": 7, "name": "Bath and North East Somerset", "parent_id": 3},
        {"id": 8, "name": "Wiltshire Council", "parent_id": 4},
        {"id": 9, "name": "Reading Borough Council", "parent_id": 5},
    ],
}


@pytest.fixture
def areas_by_type():
    return copy.deepcopy(SAMPLE_AREAS)


@pytest.fixture
def index(areas_by_type):
    return AreaIndex.build(areas_by_type)
