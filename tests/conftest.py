"""
Pytest configuration for ccmanager tests.

Every test gets its own config location so nothing reads or writes the
user's ~/.ccmanager.
"""

import shutil

import pytest


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "requires_tmux: mark test as requiring a tmux binary"
    )


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point CONFIG_PATH at a temp file for the duration of a test."""
    from ccmanager import config

    config_path = tmp_path / "ccmanager" / "config.yaml"
    monkeypatch.setattr(config, "CONFIG_PATH", config_path)
    monkeypatch.setenv("CCMANAGER_CONFIG_DIR", str(config_path.parent))
    yield config_path


@pytest.fixture
def tmux_available():
    if shutil.which("tmux") is None:
        pytest.skip("tmux not installed or not in PATH")
