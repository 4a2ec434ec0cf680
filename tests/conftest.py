import builtins
import importlib.util
import sys
from pathlib import Path

import pytest

SCRIPT = Path(__file__).resolve().parents[1] / "esp-monitor.py"


def load_module():
    """Import the esp-monitor.py launcher (its name is not importable directly)."""
    spec = importlib.util.spec_from_file_location("esp_monitor", SCRIPT)
    mod = importlib.util.module_from_spec(spec)
    sys.modules["esp_monitor"] = mod
    assert spec.loader is not None
    spec.loader.exec_module(mod)
    return mod

# Expose helper for tests without explicit imports.
builtins.load_module = load_module


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    """Keep a developer's ESPMON_* settings out of the tests."""
    monkeypatch.delenv("ESPMON_PORT", raising=False)
    monkeypatch.delenv("ESPMON_JSON", raising=False)
