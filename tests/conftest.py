"""
Shared pytest fixtures for all tests.

Provides isolated registries, an instrumented implementation loader,
a temporary SQLite page database and an API client.
"""

import pytest

from pagebuilder.pages import db
from pagebuilder.sections import registry as registry_module
from pagebuilder.sections.registry import SectionRegistry
from tests.helpers.recording_loader import RecordingLoader


# =============================================================================
# REGISTRY FIXTURES
# =============================================================================

@pytest.fixture
def registry() -> SectionRegistry:
    """A fresh registry over the packaged definitions."""
    reg = SectionRegistry()
    reg.load()
    return reg


@pytest.fixture
def empty_registry(tmp_path) -> SectionRegistry:
    """A registry whose definitions directory has no files."""
    reg = SectionRegistry(tmp_path / "definitions")
    reg.load()
    return reg


# =============================================================================
# LOADER FIXTURES
# =============================================================================

@pytest.fixture
def recording_loader() -> RecordingLoader:
    return RecordingLoader()


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture
def page_db(tmp_path, monkeypatch):
    """Point the page store at a fresh SQLite file."""
    monkeypatch.setattr(db, "DATABASE_URL", "")
    monkeypatch.setattr(db, "SQLITE_PATH", tmp_path / "pages.db")
    monkeypatch.setattr(db, "_initialized", False)
    db.init_db()
    yield db.SQLITE_PATH


# =============================================================================
# API FIXTURES
# =============================================================================

@pytest.fixture
def client(page_db, monkeypatch):
    """API client with a fresh global registry and page database."""
    from fastapi.testclient import TestClient

    from pagebuilder.api.main import app

    monkeypatch.setattr(registry_module, "_registry", None)
    with TestClient(app) as test_client:
        yield test_client
