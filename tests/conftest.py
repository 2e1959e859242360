"""Shared fixtures: a small Lagos dataset on disk and in memory."""

import json
from pathlib import Path

import pytest

from lagos_transit.data.catalog import TransitCatalog
from lagos_transit.data.config import DuplicateNamePolicy
from lagos_transit.data.dataset_loader import DatasetLoader
from lagos_transit.models.transit import Leg, Stop
from lagos_transit.services import traffic_service

SAMPLE_STOPS = [
    {
        "id": 1,
        "name": "Ikeja",
        "lat": 6.6018,
        "lng": 3.3515,
        "aliases": ["Ikeja Along", "Computer Village"],
    },
    {"id": 2, "name": "Oshodi", "lat": 6.5550, "lng": 3.3430, "aliases": ["Oshodi Interchange"]},
    {"id": 3, "name": "Yaba", "lat": 6.5095, "lng": 3.3711},
    {"id": 4, "name": "CMS", "lat": 6.4520, "lng": 3.3893, "aliases": ["Marina"]},
    {"id": 5, "name": "Obalende", "lat": 6.4478, "lng": 3.4054},
    {"id": 6, "name": "Lekki Phase 1", "lat": 6.4474, "lng": 3.4737, "aliases": ["Lekki"]},
    {"id": 7, "name": "Ajah", "lat": 6.4698, "lng": 3.5852},
]

SAMPLE_LEGS = [
    {"from": "Ikeja", "to": "Oshodi", "fare": 200, "time": 15, "busNumber": "D1",
     "busType": "Danfo", "distance": 6.5},
    {"from": "Oshodi", "to": "Yaba", "fare": 300, "time": 20, "busNumber": "BRT2",
     "busType": "BRT", "distance": 9.0},
    {"from": "Yaba", "to": "CMS", "fare": 200, "time": 15, "busNumber": "D3",
     "busType": "Danfo", "distance": 7.0},
    {"from": "Oshodi", "to": "CMS", "fare": 500, "time": 30, "busNumber": "BRT1",
     "busType": "BRT", "distance": 14.0},
    {"from": "CMS", "to": "Obalende", "fare": 100, "time": 5, "busNumber": "K1",
     "busType": "Keke"},
    {"from": "Obalende", "to": "Lekki Phase 1", "fare": 300, "time": 20, "busNumber": "M5",
     "busType": "Molue", "distance": 8.0},
    {"from": "Ajah", "to": "Lekki Phase 1", "fare": 250, "time": 25, "busNumber": "BRT4",
     "busType": "BRT", "distance": 12.0},
]


def write_dataset(directory: Path, stops: list[dict], legs: list[dict]) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "bus-stops.json").write_text(json.dumps(stops))
    (directory / "routes.json").write_text(json.dumps(legs))
    return directory


@pytest.fixture
def sample_dataset_dir(tmp_path: Path) -> Path:
    """Create a dataset directory with bus-stops.json and routes.json."""
    return write_dataset(tmp_path / "dataset", SAMPLE_STOPS, SAMPLE_LEGS)


@pytest.fixture
async def db_path(sample_dataset_dir: Path, tmp_path: Path) -> Path:
    """Create a test database from the sample dataset."""
    db_file = tmp_path / "transit.db"
    loader = DatasetLoader(db_file)
    await loader.ingest(sample_dataset_dir)
    return db_file


@pytest.fixture
def sample_catalog() -> TransitCatalog:
    """The sample dataset as an in-memory catalog."""
    return TransitCatalog.from_records(
        [Stop.model_validate(s) for s in SAMPLE_STOPS],
        [Leg.model_validate(leg) for leg in SAMPLE_LEGS],
        duplicate_policy=DuplicateNamePolicy.WARN,
    )


@pytest.fixture(autouse=True)
def reset_singletons():
    """Make every test start without a cached catalog or traffic provider."""
    TransitCatalog._instance = None
    TransitCatalog._stamp = None
    traffic_service.reset_service()
    yield
    TransitCatalog._instance = None
    TransitCatalog._stamp = None
    traffic_service.reset_service()
