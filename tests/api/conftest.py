"""API tests用の共通フィクスチャ"""

import pytest
from fastapi.testclient import TestClient

from matome.api.main import app
from matome.api.routers.threads import get_transport
from matome.core.errors.error_metrics import error_metrics


@pytest.fixture
def routes():
    """テストごとに書き換えるURL→応答の表"""
    return {}


@pytest.fixture
def transport(fake_transport, routes):
    return fake_transport(routes)


@pytest.fixture
def client(transport):
    """FakeTransport を注入した FastAPI TestClient"""
    app.dependency_overrides[get_transport] = lambda: transport
    error_metrics.reset()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    error_metrics.reset()
