"""Root conftest — keeps CRATEKEEPER_* settings and .env files out of tests.

load_settings() reads ``.env`` from the current directory and lets
CRATEKEEPER_* variables override everything, so each test starts with those
variables cleared and runs inside its own temporary directory.
"""

import os
from pathlib import Path

import pytest

_ENV_PREFIX = "CRATEKEEPER_"


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    for key in list(os.environ):
        if key.startswith(_ENV_PREFIX):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    yield
    # load_dotenv() writes straight into os.environ
    for key in list(os.environ):
        if key.startswith(_ENV_PREFIX):
            del os.environ[key]
