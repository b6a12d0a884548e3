"""Shared pytest fixtures for all tests."""

import threading

import pytest
from fastapi.testclient import TestClient

from dropserver.main import create_app


ADMIN_HEADERS = {"host": "localhost"}


@pytest.fixture
def storage_root(tmp_path):
    """
    Storage root that does not exist yet.

    Returns:
        Path to a fresh directory under tmp_path
    """
    return tmp_path / 'store'


@pytest.fixture
def terminated():
    """Event set when the app asks the process to exit."""
    return threading.Event()


@pytest.fixture
def app(terminated):
    """Application with the tunnel disabled and a short shutdown grace."""
    return create_app(
        tunnel_enabled=False,
        shutdown_grace=0.05,
        terminate=terminated.set
    )


@pytest.fixture
def client(app):
    """
    Test client sharing one event loop for the whole test.

    Requests come from a non-loopback peer; pass ADMIN_HEADERS to act as
    the local operator.
    """
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def configured_client(client, storage_root):
    """Test client whose storage has been set to storage_root."""
    response = client.post('/api/set-storage', json={'path': str(storage_root)}, headers=ADMIN_HEADERS)
    assert response.status_code == 200
    return client
