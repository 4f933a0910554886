from pathlib import Path

import pytest

from percolator.config import PercolatorConfig, unregister_config


@pytest.fixture(autouse=True)
def clear_config_cache():
    unregister_config()
    yield
    unregister_config()


@pytest.fixture
def app_root(tmp_path: Path) -> Path:
    (tmp_path / "public" / "javascripts").mkdir(parents=True)
    return tmp_path


@pytest.fixture
def asset_root(app_root: Path) -> Path:
    return app_root / "public" / "javascripts"


@pytest.fixture
def development_config(app_root: Path) -> PercolatorConfig:
    return PercolatorConfig(APPLICATION_ROOT=app_root, ENVIRONMENT="development")
