"""
Shared test configuration.
Puts src/ on the import path the same way the service runs from src/.
"""

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from config_loader import _apply_defaults  # noqa: E402


@pytest.fixture
def config():
    """Defaults with all transports and classes so tests only set what they exercise"""
    cfg = _apply_defaults({"hub": {"base_url": "http://hub.test"}})
    cfg["filters"]["include_transports"] = []
    cfg["filters"]["exclude_classes"] = []
    cfg["filters"]["exclude_name_patterns"] = []
    cfg["monitor"]["timezone"] = "UTC"
    cfg["monitor"]["threshold"] = "60m"
    cfg["monitor"]["validation_delay"] = "0"
    return cfg
