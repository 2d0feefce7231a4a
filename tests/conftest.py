"""Shared fixtures for reqcli tests."""

import pytest


class FakeClock:
    """Manually advanced clock for deterministic token bucket tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def _clear_reqcli_env(monkeypatch):
    """Keep REQCLI_* variables from the developer's shell out of tests."""
    import os

    for key in list(os.environ):
        if key.startswith("REQCLI_"):
            monkeypatch.delenv(key, raising=False)
