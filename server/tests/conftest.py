"""Shared fixtures: an app wired to in-memory tables and a scratch upload dir."""

import pytest
from fastapi.testclient import TestClient

from shopadmin.main import create_app
from shopadmin.settings import Settings


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        upload_dir=str(tmp_path / "uploads"),
        bcrypt_rounds=4,
        limits_enabled=False,
        environment="test",
    )


@pytest.fixture
def client(test_settings):
    app = create_app(test_settings, database_url="")
    with TestClient(app) as test_client:
        yield test_client
