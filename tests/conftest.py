"""Shared fixtures for stylesweep tests."""
import shutil
from pathlib import Path

import pytest

from stylesweep.config import reset_config

FIXTURES_DIR = Path(__file__).parent / 'fixtures'

ENV_KEYS = (
    'STYLESWEEP_STYLES_DIR',
    'STYLESWEEP_COMPONENTS_DIR',
    'STYLESWEEP_EXCLUDE',
    'STYLESWEEP_CONFIDENCE',
    'STYLESWEEP_FORMAT',
    'STYLESWEEP_BACKUP',
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Start every test from default configuration."""
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def project(tmp_path):
    """Writable copy of the fixture stylesheet and component trees."""
    shutil.copytree(FIXTURES_DIR / 'styles', tmp_path / 'styles')
    shutil.copytree(FIXTURES_DIR / 'components', tmp_path / 'components')
    return tmp_path
