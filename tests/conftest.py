import json

import pytest
from fastapi.testclient import TestClient

from citylist_api.app.core.config import Settings
from citylist_api.app.core.db import init_db
from citylist_api.app.main import create_app
from citylist_api.app.services.audit_service import AuditService
from citylist_api.app.services.city_store import CityStore
from citylist_api.app.services.query_engine import QueryEngine
from citylist_api.app.services.settings_service import SettingsService


LONDON = {"id": 1, "name": "London", "country": "GB", "coord": {"lon": -0.1278, "lat": 51.5074}}
LONDONDERRY = {"id": 2, "name": "Londonderry", "country": "GB", "coord": {"lon": -7.3, "lat": 55.0}}
PARIS = {"id": 3, "name": "Paris", "country": "FR", "coord": {"lon": 2.3488, "lat": 48.85341}}
MUNCHEN = {"id": 4, "name": "München", "country": "DE", "coord": {"lon": 11.57549, "lat": 48.13743}}

SCENARIO = [LONDON, LONDONDERRY]
DATASET = [LONDON, LONDONDERRY, PARIS, MUNCHEN]


@pytest.fixture
def db_path(tmp_path):
    path = str(tmp_path / "citylist.db")
    init_db(path)
    return path


@pytest.fixture
def store(db_path):
    return CityStore(db_path)


@pytest.fixture
def scenario_store(store):
    store.load(SCENARIO)
    return store


@pytest.fixture
def engine(store):
    store.load(DATASET)
    return QueryEngine(store)


@pytest.fixture
def settings_service(db_path):
    return SettingsService(db_path, AuditService(db_path))


@pytest.fixture
def app_settings(tmp_path):
    dataset = tmp_path / "citylist.json"
    dataset.write_text(json.dumps(DATASET), encoding="utf-8")
    return Settings(
        project_name="CityList API",
        api_version="0.0.1",
        dev_mode=False,
        log_level="WARNING",
        config_dir=str(tmp_path / "config"),
        data_dir=str(tmp_path / "data"),
        logs_dir="",
        database_url="citylist.db",
        dataset_path=str(dataset),
        address="192.0.2.10",
        port="64123",
        rate_limit_per_minute=100,
    )


@pytest.fixture
def app(app_settings):
    return create_app(app_settings)


@pytest.fixture
def client(app):
    # The context manager runs the lifespan: migrations, dataset load and
    # admin credential generation.
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_credentials(app, client):
    return app.state.admin_credentials


@pytest.fixture
def admin_headers(admin_credentials):
    return {"Authorization": f"Bearer {admin_credentials.token}"}
