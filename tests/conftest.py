import sys
from pathlib import Path

import pytest

# Ensure the project root is on sys.path so `mathexpr`, `backend` and `main` are importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import matplotlib

matplotlib.use("Agg")


@pytest.fixture(autouse=True)
def _no_settings_file(monkeypatch):
    monkeypatch.delenv("MATHEXPR_CONFIG", raising=False)
