import os
import sys

import pytest

# Ensure repository root importable early
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from descent import create_app  # noqa: E402
from descent.dungeon.config import DesignerConfig  # noqa: E402
from descent.routes.level_api import clear_level_cache  # noqa: E402


@pytest.fixture(scope="session")
def test_app():
    app = create_app(
        {
            "TESTING": True,
            # Keep API tests quick: fewer candidates per level.
            "DESCENT_DESIGNERS_PER_LEVEL": 3,
            "DESCENT_LEVEL_SEED": 0x123,
        }
    )
    return app


@pytest.fixture()
def client(test_app):
    clear_level_cache()
    return test_app.test_client()


@pytest.fixture
def small_config():
    """Default-sized level with a handful of candidates."""
    return DesignerConfig(designers_per_level=3)
