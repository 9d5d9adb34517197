# web_api/tests/conftest.py
"""Pytest fixtures for web API tests.

Route tests patch the core operations the routes call, so no database,
Teams or notification provider is needed.
"""

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure we import from root main.py
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from main import app


@pytest.fixture
def client():
    """Test client without the lifespan (no env checks, no engine)."""
    return TestClient(app)
