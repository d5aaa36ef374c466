"""
Pytest configuration and shared fixtures.
"""

import os
import pytest


@pytest.fixture(autouse=True, scope="function")
def reset_auth_module():
    """
    Reset auth module state before each test.

    This ensures tests run with API_AUTH_ENABLED=false by default,
    unless the test explicitly sets it otherwise.
    """
    # Store original values
    original_auth_enabled = os.environ.get("API_AUTH_ENABLED")
    original_api_key = os.environ.get("API_KEY")

    # Set defaults for tests (auth disabled)
    os.environ["API_AUTH_ENABLED"] = "false"

    yield

    # Restore original values
    if original_auth_enabled is not None:
        os.environ["API_AUTH_ENABLED"] = original_auth_enabled
    elif "API_AUTH_ENABLED" in os.environ:
        del os.environ["API_AUTH_ENABLED"]

    if original_api_key is not None:
        os.environ["API_KEY"] = original_api_key
    elif "API_KEY" in os.environ:
        del os.environ["API_KEY"]

    # Reload auth module to reset state
    import importlib
    import message_scheduler.api.dependencies.auth as auth_module
    importlib.reload(auth_module)


@pytest.fixture
def api_env(tmp_path, monkeypatch):
    """
    Point the API at a fresh database with dry-run delivery.

    Returns the database path so tests can seed it before startup.
    """
    db_path = tmp_path / "scheduler.db"
    monkeypatch.setenv("SCHEDULER_DB_PATH", str(db_path))
    monkeypatch.setenv("SCHEDULER_TIMEZONE", "UTC")
    monkeypatch.setenv("WHATSAPP_ENABLED", "false")
    return db_path


@pytest.fixture
def api_client(api_env):
    """TestClient with the lifespan running (recovery done, timers live)."""
    from fastapi.testclient import TestClient
    import message_scheduler.api.main as main_module

    with TestClient(main_module.app) as client:
        yield client
