"""Shared test fixtures."""

from __future__ import annotations

import datetime
import threading
import time
from pathlib import Path
from typing import Callable, Iterable, Iterator

import pytest

from tickwatch.config.loader import get_settings
from tickwatch.quotes.base import FetchError, NetworkFailure, Sample

FIXED_NOW = datetime.datetime(2024, 1, 2, 15, 30, tzinfo=datetime.timezone.utc)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Run every test in an empty directory with no tickwatch env vars set."""
    for var in (
        "ALPHA_VANTAGE_API_KEY",
        "AV_API_KEY",
        "POLL_SYMBOL",
        "POLL_INTERVAL_SECONDS",
        "POLL_MAX_SAMPLES",
        "LOG_LEVEL",
        "LOG_FORMAT",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield tmp_path
    get_settings.cache_clear()


def make_sample(price: float) -> Sample:
    return Sample(price=price, observed_at=FIXED_NOW)


def wait_for(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    """Poll ``predicate`` until it is true or ``timeout`` elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


class ScriptedSource:
    """QuoteSource that plays back a fixed list of outcomes.

    Each outcome is a price (returned as a Sample) or an exception (raised).
    Once the script runs out, ``fetch`` blocks until ``release`` is set, so
    tests see exactly the scripted ticks.
    """

    source_name = "scripted"

    def __init__(self, outcomes: Iterable[float | Exception]) -> None:
        self._outcomes = list(outcomes)
        self.calls: list[float] = []
        self.release = threading.Event()
        self.exhausted = threading.Event()

    def fetch(self, symbol: str) -> Sample:
        self.calls.append(time.monotonic())
        if not self._outcomes:
            self.exhausted.set()
            self.release.wait(5.0)
            raise NetworkFailure("script exhausted")
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return make_sample(outcome)


class Recorder:
    """Collects poller callbacks in arrival order."""

    def __init__(self) -> None:
        self.events: list[tuple[str, object]] = []
        self.threads: list[threading.Thread] = []

    def on_sample(self, sample: Sample) -> None:
        self.threads.append(threading.current_thread())
        self.events.append(("sample", sample))

    def on_error(self, error: FetchError) -> None:
        self.threads.append(threading.current_thread())
        self.events.append(("error", error))


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()
