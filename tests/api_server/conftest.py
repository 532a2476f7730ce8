# tests/api_server/conftest.py
"""
Pytest configuration and fixtures for API server tests.

This module provides a test client backed by real cache, file and SQLite
tiers in a temporary directory, and a mocked TierStore for failure paths.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from tierstore.api_server.main import create_app


@pytest.fixture
def api_client(tier_config_overrides):
    """
    Create a FastAPI test client with the lifespan running.

    The TierStore instance is created on startup and closed on shutdown.
    """
    app = create_app(config_overrides=tier_config_overrides, env_prefix=None)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def mock_tierstore():
    """
    Create a mock TierStore instance for testing error translation.
    """
    mock = MagicMock()
    mock.get = AsyncMock()
    mock.save = AsyncMock()
    mock.update = AsyncMock()
    mock.delete = AsyncMock()
    mock.get_tiers.return_value = ["cache", "file", "database"]
    return mock


@pytest.fixture
def api_client_with_mock(api_client, mock_tierstore):
    """Test client whose app state holds the mocked TierStore."""
    real_store = api_client.app.state.tierstore
    api_client.app.state.tierstore = mock_tierstore
    yield api_client
    api_client.app.state.tierstore = real_store
