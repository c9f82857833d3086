"""
Pytest configuration for the comments service tests.

Every test gets its own application and SQLite file under tmp_path, so no
state leaks between tests and no global engine is shared.
"""

import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.core.database import Store
from app.core.errors.registry import error_registry

ADMIN_KEY = "test-admin-key"
FEEDBACK_ADMIN_KEY = "test-feedback-admin-key"
SERVICE_KEY = "test-service-key"


@pytest.fixture(scope="session", autouse=True)
def _load_error_registry():
    """Load error registry so ServiceError maps to the right HTTP status codes."""
    error_registry.load()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        database_url=f"sqlite:///{tmp_path}/comments.db",
        admin_key=ADMIN_KEY,
        feedback_admin_key=FEEDBACK_ADMIN_KEY,
        service_key=SERVICE_KEY,
        auto_visible=False,
        log_dir=str(tmp_path / "logs"),
    )


@pytest.fixture
def store(tmp_path):
    store = Store(f"sqlite:///{tmp_path}/store.db")
    store.init()
    yield store
    store.close()


@pytest.fixture
def app(settings):
    from app.main import create_app

    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers():
    return {"X-Admin-Key": ADMIN_KEY}


@pytest.fixture
def feedback_admin_headers():
    return {"X-Admin-Key": FEEDBACK_ADMIN_KEY}


@pytest.fixture
def service_headers():
    return {"X-Service-Key": SERVICE_KEY}
