"""Fixtures for API tests."""

import pytest
from fastapi.testclient import TestClient

from skillsync.api import create_app
from skillsync.core.context import SharedContext


@pytest.fixture
def client(test_context: SharedContext):
    """Test client bound to a context inside tmp_path."""
    app = create_app(test_context)
    with TestClient(app) as client:
        yield client
