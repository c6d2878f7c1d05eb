from __future__ import annotations

import sys
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture(autouse=True)
def _clear_app_state():
    from api.main import app

    previous = getattr(app.state, "catalog_client", None)
    yield
    app.dependency_overrides.clear()
    app.state.catalog_client = previous
