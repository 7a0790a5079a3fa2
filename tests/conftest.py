from __future__ import annotations

import sys
from pathlib import Path

import pytest


ROOT_DIR = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT_DIR / "src"
TESTS_DIR = Path(__file__).resolve().parent

for path in (ROOT_DIR, SRC_DIR, TESTS_DIR):
    value = str(path)
    if path.exists() and value not in sys.path:
        sys.path.insert(0, value)

from fakes import FakeSession, build_response  # noqa: E402


@pytest.fixture
def make_response():
    return build_response


@pytest.fixture
def fake_session_factory():
    return FakeSession


@pytest.fixture
def app_env(tmp_path, monkeypatch):
    monkeypatch.setenv("RUNTIME_DIR", str(tmp_path))
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{(tmp_path / 'lookup.db').as_posix()}")
    for name in ("GOOGLE_SCRIPT_URL", "PROXY_TARGET_URL", "GEMINI_API_KEY", "API_KEY"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
