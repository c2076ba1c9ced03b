import sys
from pathlib import Path

import pytest

# Ensure src package is importable without installation
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if SRC.exists():
    sys.path.insert(0, str(SRC))

from thirdparty_notices.license_text import LICENSE_DATA_ENV  # noqa: E402


@pytest.fixture(autouse=True)
def _no_license_data_env(monkeypatch):
    monkeypatch.delenv(LICENSE_DATA_ENV, raising=False)
