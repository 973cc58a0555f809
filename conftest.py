import pytest
from fastapi.testclient import TestClient

from storysmith.app import create_app
from storysmith.storage import MemoryStore, ProjectStore


@pytest.fixture
def kv():
    """Fresh in-memory key-value store."""
    return MemoryStore()


@pytest.fixture
def projects(tmp_path, kv):
    """Project store rooted in a per-test temp dir."""
    return ProjectStore(tmp_path, kv)


@pytest.fixture
def app(tmp_path):
    return create_app(tmp_path / "data")


@pytest.fixture
def client(app):
    return TestClient(app)
