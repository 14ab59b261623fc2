"""Pytest global fixtures shared by unit and integration tests."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from storenav.api import create_app
from storenav.layout import LayoutStore, load_layout
from storenav.routing import Router
from storenav.sample_layout import build_demo_layout


@pytest.fixture()
def demo_layout() -> LayoutStore:
    """Fresh copy of the bundled demo mall."""
    return build_demo_layout()


@pytest.fixture()
def escalator_layout() -> LayoutStore:
    """Three floors with a single escalator from floor 0 to floor 1."""
    return load_layout(
        {
            "floors": [
                {"id": 0, "rows": 8, "cols": 12, "name": "Ground"},
                {"id": 1, "rows": 8, "cols": 12, "name": "First"},
                {"id": 2, "rows": 8, "cols": 12, "name": "Second"},
            ],
            "portals": [{"origin": [0, 2, 2], "destination": [1, 2, 2], "kind": "escalator"}],
        }
    )


@pytest.fixture()
def demo_router(demo_layout: LayoutStore) -> Router:
    return Router(demo_layout)


@pytest.fixture()
def client(demo_layout: LayoutStore) -> TestClient:
    """HTTP client bound to an app serving its own demo layout copy."""
    return TestClient(create_app(layout=demo_layout, max_visited=0))
