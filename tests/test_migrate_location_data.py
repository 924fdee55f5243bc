import json

import pytest

import migrate_location_data as migration
from places import repository as place_repository


def test_has_map_location():
    assert migration.has_map_location({"map_location": {"lat": 1, "lng": 2}})
    assert migration.has_map_location({"map_location": '{"lat": 1, "lng": 2}'})
    assert not migration.has_map_location({"map_location": None})
    assert not migration.has_map_location({"map_location": "not json"})


def test_build_map_location():
    place = {"latitude": "33.5", "longitude": 133.57, "address": "Urado"}
    assert migration.build_map_location(place) == {"lat": 33.5, "lng": 133.57, "address": "Urado"}


@pytest.fixture
def places(monkeypatch):
    state = {
        "rows": [
            {"id": "p1", "name": "Beach", "latitude": 33.5, "longitude": 133.5, "address": "A", "map_location": None},
            {"id": "p2", "name": "Castle", "latitude": 33.6, "longitude": 133.6, "address": "B",
             "map_location": {"lat": 33.6, "lng": 133.6}},
            {"id": "p3", "name": "Broken", "latitude": None, "longitude": None, "address": "C", "map_location": None},
        ],
        "written": {},
    }

    async def list_places_for_location_migration():
        return state["rows"]

    async def set_map_location(place_id, map_location_json):
        state["written"][place_id] = json.loads(map_location_json)

    monkeypatch.setattr(place_repository, "list_places_for_location_migration", list_places_for_location_migration)
    monkeypatch.setattr(place_repository, "set_map_location", set_map_location)
    return state


@pytest.mark.asyncio
async def test_migrate_skips_existing_and_counts_failures(places):
    total, updated, failed = await migration.migrate()

    assert (total, updated, failed) == (3, 1, 1)
    assert places["written"] == {"p1": {"lat": 33.5, "lng": 133.5, "address": "A"}}


@pytest.mark.asyncio
async def test_migrate_dry_run_writes_nothing(places):
    total, updated, failed = await migration.migrate(dry_run=True)

    assert (total, updated, failed) == (3, 1, 1)
    assert places["written"] == {}
