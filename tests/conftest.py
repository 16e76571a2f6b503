import json
from pathlib import Path

import pytest

from inkmix.core.ink_catalog import InkCatalog
from inkmix.core.recipe_finder import EngineConfig, RecipeFinder

# ================================================================
# Ink records (process set, 100/70/40)
# ================================================================

PROCESS_INK_RECORDS = [
    {
        "id": "cyan",
        "name": "Process Cyan",
        "type": "process",
        "concentrations": {
            "100": {"L": 55, "a": -37, "b": -50},
            "70": {"L": 68, "a": -26, "b": -35},
            "40": {"L": 78, "a": -15, "b": -20},
        },
    },
    {
        "id": "magenta",
        "name": "Process Magenta",
        "type": "process",
        "concentrations": {
            "100": {"L": 48, "a": 74, "b": -3},
            "70": {"L": 62, "a": 52, "b": -2},
            "40": {"L": 74, "a": 30, "b": -1},
        },
    },
    {
        "id": "yellow",
        "name": "Process Yellow",
        "type": "process",
        "concentrations": {
            "100": {"L": 89, "a": -5, "b": 93},
            "70": {"L": 91, "a": -3.5, "b": 65},
            "40": {"L": 93, "a": -2, "b": 37},
        },
    },
    {
        "id": "black",
        "name": "Process Black",
        "type": "process",
        "concentrations": {
            "100": {"L": 16, "a": 0, "b": 0},
            "70": {"L": 35, "a": 0, "b": 0},
            "40": {"L": 55, "a": 0, "b": 0},
        },
    },
    {
        "id": "white",
        "name": "Opaque White",
        "type": "process",
        "concentrations": {
            "100": {"L": 95, "a": 0, "b": 0},
            "70": {"L": 95, "a": 0, "b": 0},
            "40": {"L": 95, "a": 0, "b": 0},
        },
    },
]

MEDIUM_RECORD = {
    "id": "medium",
    "name": "Transparent Medium",
    "type": "medium",
    "concentrations": {"100": {"L": 96, "a": 0, "b": 0}},
    "properties": {"opacity": 0.05},
}

GREEN_RECORD = {
    "id": "green",
    "name": "Spot Green",
    "type": "spot",
    "concentrations": {"100": {"L": 50, "a": -40, "b": 30}},
}


@pytest.fixture
def ink_records():
    return [dict(r) for r in PROCESS_INK_RECORDS]


@pytest.fixture
def process_catalog():
    """C/M/Y/K + white"""
    return InkCatalog.from_records(PROCESS_INK_RECORDS)


@pytest.fixture
def full_catalog():
    """Process set + medium + spot green"""
    return InkCatalog.from_records(PROCESS_INK_RECORDS + [MEDIUM_RECORD, GREEN_RECORD])


@pytest.fixture
def finder():
    """Fresh finder with its own cache"""
    return RecipeFinder(EngineConfig())


@pytest.fixture
def tmp_json(tmp_path: Path):
    def _make(data, name="sample.json"):
        path = tmp_path / name
        path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
        return path

    return _make
