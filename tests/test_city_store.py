import json

import pytest

from citylist_api.app.core.exceptions import LoadError, NotFound
from citylist_api.app.schemas.city import City

from .conftest import DATASET, LONDON, LONDONDERRY, SCENARIO


def test_load_returns_inserted_count(store):
    assert store.load(SCENARIO) == 2
    assert store.count() == 2


def test_load_is_noop_when_populated(store):
    store.load(SCENARIO)
    assert store.load(DATASET) == 0
    assert store.count() == 2


def test_load_skips_invalid_records(store):
    records = [
        LONDON,
        {"id": "7", "name": "String id", "country": "GB", "coord": {"lon": 0, "lat": 0}},
        {"id": 8, "name": "", "country": "GB", "coord": {"lon": 0, "lat": 0}},
        {"id": 9, "name": "No country", "country": "", "coord": {"lon": 0, "lat": 0}},
        {"id": 10, "name": "Lowercase", "country": "gb", "coord": {"lon": 0, "lat": 0}},
        {"id": 11, "name": "Out of range", "country": "GB", "coord": {"lon": 181, "lat": 0}},
        {"id": 12, "name": "Missing coord", "country": "GB"},
        {"id": 1, "name": "Duplicate", "country": "GB", "coord": {"lon": 0, "lat": 0}},
        "not a record",
        LONDONDERRY,
    ]
    assert store.load(records) == 2
    assert [city.id for city in store.all()] == [1, 2]
    assert store.find_by_id(1).name == "London"


def test_load_accepts_integer_coordinates(store):
    store.load([{"id": 5, "name": "Null Island", "country": "XX", "coord": {"lon": 0, "lat": 0}}])
    city = store.find_by_id(5)
    assert city.lon == 0.0
    assert city.lat == 0.0


@pytest.mark.parametrize("records", [{"id": 1}, "cities", None, 42])
def test_load_rejects_non_sequence(store, records):
    with pytest.raises(LoadError):
        store.load(records)


def test_load_empty_list(store):
    assert store.load([]) == 0
    assert store.count() == 0


def test_load_file(store, tmp_path):
    path = tmp_path / "cities.json"
    path.write_text(json.dumps(SCENARIO), encoding="utf-8")
    assert store.load_file(str(path)) == 2


def test_load_file_missing(store, tmp_path):
    with pytest.raises(LoadError):
        store.load_file(str(tmp_path / "missing.json"))


def test_load_file_malformed(store, tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("[{\"id\": 1,", encoding="utf-8")
    with pytest.raises(LoadError):
        store.load_file(str(path))


def test_load_file_object_instead_of_list(store, tmp_path):
    path = tmp_path / "object.json"
    path.write_text(json.dumps({"cities": SCENARIO}), encoding="utf-8")
    with pytest.raises(LoadError):
        store.load_file(str(path))


def test_page(store):
    store.load(DATASET)
    assert [city.id for city in store.page(0, 2)] == [1, 2]
    assert [city.id for city in store.page(1, 2)] == [2, 3]
    assert [city.id for city in store.page(3, 10)] == [4]
    assert store.page(4, 10) == []
    assert store.page(100, 10) == []


def test_page_length_matches_remaining(store):
    store.load(DATASET)
    total = store.count()
    for offset in range(total + 2):
        for limit in (1, 2, 3, 10):
            assert len(store.page(offset, limit)) == max(0, min(limit, total - offset))


def test_page_clamps_arguments(store):
    store.load(DATASET)
    assert [city.id for city in store.page(-5, 1)] == [1]
    assert len(store.page(0, 0)) == len(DATASET)


def test_find_by_id(scenario_store):
    assert scenario_store.find_by_id(2) == City(id=2, name="Londonderry", country="GB", lon=-7.3, lat=55.0)


def test_find_by_id_round_trips_every_city(scenario_store):
    for city in scenario_store.all():
        assert scenario_store.find_by_id(city.id) == city


def test_find_by_id_missing(scenario_store):
    with pytest.raises(NotFound):
        scenario_store.find_by_id(999)


def test_filter_by_name_ignores_case(store):
    store.load(DATASET)
    assert [c.id for c in store.filter_by_name("london", 50)] == [1, 2]
    assert [c.id for c in store.filter_by_name("LONDON", 50)] == [1, 2]
    assert [c.id for c in store.filter_by_name("derry", 50)] == [2]
    assert [c.id for c in store.filter_by_name("MÜNCHEN", 50)] == [4]
    assert store.filter_by_name("london", 1)[0].id == 1


def test_filter_by_country_is_exact(store):
    store.load(DATASET)
    assert [c.id for c in store.filter_by_country("GB", 100)] == [1, 2]
    assert store.filter_by_country("gb", 100) == []
    assert store.filter_by_country("ZZ", 100) == []


def test_all_can_be_restarted(scenario_store):
    assert [c.id for c in scenario_store.all()] == [1, 2]
    assert [c.id for c in scenario_store.all()] == [1, 2]


def test_city_is_immutable(scenario_store):
    city = scenario_store.find_by_id(1)
    with pytest.raises(Exception):
        city.name = "Elsewhere"


def test_page_offset_beyond_integer_range(store):
    store.load(DATASET)
    assert store.page(2 ** 63, 10) == []
    assert store.page(10 ** 20, 10) == []


def test_find_by_id_beyond_integer_range(scenario_store):
    for city_id in (2 ** 63, -(2 ** 63) - 1, 10 ** 20):
        with pytest.raises(NotFound):
            scenario_store.find_by_id(city_id)
