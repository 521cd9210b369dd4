"""Shared fixtures for the Spain R&D dashboard tests."""

import sys
from pathlib import Path

import pytest

# Add package to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from spain_rd_dashboard.config.settings import Settings  # noqa: E402
from spain_rd_dashboard.resolvers import EntityResolver, load_lookup_tables  # noqa: E402

CONFIG_PATH = PROJECT_ROOT / "config" / "config.yaml"
LOOKUPS_PATH = PROJECT_ROOT / "config" / "lookups.yaml"


@pytest.fixture(scope="session")
def tables():
    return load_lookup_tables(LOOKUPS_PATH)


@pytest.fixture
def resolver(tables):
    return EntityResolver(tables)


@pytest.fixture
def settings(tmp_path):
    """Project settings with the data root redirected to a temporary folder."""
    loaded = Settings.from_yaml(str(CONFIG_PATH))
    loaded.paths.data_root = tmp_path
    loaded.features.show_progress = False
    return loaded
