"""Fixed-rate polling of a quote source into a SampleBuffer."""

from __future__ import annotations

import math
import threading
import time
from enum import Enum
from functools import partial
from typing import Callable

from tickwatch.config.loader import ConfigurationError
from tickwatch.polling.dispatch import Dispatcher, inline_dispatch
from tickwatch.quotes.base import FetchError, QuoteSource, RateLimited, Sample, UpstreamError
from tickwatch.storage.sample_buffer import SampleBuffer
from tickwatch.utils.logging import bind_symbol, get_logger

logger = get_logger(__name__)

# Upstream services cap request rates; anything faster than this is a mistake.
MIN_INTERVAL_SECONDS = 1.0

SampleCallback = Callable[[Sample], None]
ErrorCallback = Callable[[FetchError], None]


class PollerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class Poller:
    """Fetches ``symbol`` from ``source`` every ``interval`` seconds.

    Ticks run on one daemon thread at ``start + k * interval``; a tick that
    overruns its slot pushes the next tick to the following free slot, and
    missed slots are skipped rather than replayed. Successful samples are
    appended to ``buffer`` before the consumer is notified. Every tick ends in
    exactly one ``on_sample`` or ``on_error`` call, delivered through
    ``dispatcher``.

    The lifecycle is IDLE -> RUNNING -> STOPPED; a stopped poller cannot be
    restarted.
    """

    def __init__(
        self,
        source: QuoteSource,
        buffer: SampleBuffer,
        symbol: str,
        dispatcher: Dispatcher = inline_dispatch,
        stop_timeout: float = 5.0,
    ) -> None:
        if not symbol or not symbol.strip():
            raise ValueError("symbol must be a non-empty string")
        self._source = source
        self._buffer = buffer
        self._symbol = symbol
        self._dispatch = dispatcher
        self._stop_timeout = stop_timeout

        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._state = PollerState.IDLE
        self._tick_count = 0
        self._last_error: FetchError | None = None
        self._on_sample: SampleCallback | None = None
        self._on_error: ErrorCallback | None = None

    @property
    def state(self) -> PollerState:
        with self._lock:
            return self._state

    @property
    def running(self) -> bool:
        return self.state is PollerState.RUNNING

    @property
    def tick_count(self) -> int:
        with self._lock:
            return self._tick_count

    @property
    def last_error(self) -> FetchError | None:
        with self._lock:
            return self._last_error

    @property
    def buffer(self) -> SampleBuffer:
        return self._buffer

    def start(
        self,
        interval: float,
        on_sample: SampleCallback,
        on_error: ErrorCallback,
    ) -> None:
        """Begin polling; the first tick fires immediately."""
        if not math.isfinite(interval) or interval < MIN_INTERVAL_SECONDS:
            raise ConfigurationError(
                f"Poll interval must be >= {MIN_INTERVAL_SECONDS}s, got {interval}"
            )

        with self._lock:
            if self._state is not PollerState.IDLE:
                raise RuntimeError(f"Cannot start a poller in state '{self._state.value}'")
            self._state = PollerState.RUNNING
            self._on_sample = on_sample
            self._on_error = on_error
            self._thread = threading.Thread(
                target=self._run,
                args=(float(interval),),
                name=f"quote-poller-{self._symbol}",
                daemon=True,
            )
            self._thread.start()

        logger.info("poller_started", symbol=self._symbol, interval=interval)

    def stop(self, timeout: float | None = None) -> None:
        """Stop polling. Safe to call repeatedly and from several threads.

        No tick starts after this returns. A fetch already in flight is given
        up to ``timeout`` seconds and is abandoned after that; its callback
        may still fire once.
        """
        with self._lock:
            if self._state is PollerState.STOPPED:
                return
            was_running = self._state is PollerState.RUNNING
            self._state = PollerState.STOPPED
            self._stop_event.set()
            thread = self._thread

        if not was_running or thread is None:
            logger.info("poller_stopped", symbol=self._symbol, ticks=self.tick_count)
            return

        if thread is not threading.current_thread():
            thread.join(self._stop_timeout if timeout is None else timeout)
            if thread.is_alive():
                logger.warning(
                    "poller_thread_abandoned",
                    symbol=self._symbol,
                    reason="fetch still in flight",
                )

        logger.info("poller_stopped", symbol=self._symbol, ticks=self.tick_count)

    def __enter__(self) -> Poller:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def _run(self, interval: float) -> None:
        bind_symbol(self._symbol)
        started = time.monotonic()
        slot = 0
        while not self._stop_event.is_set():
            self._tick()

            slot += 1
            now = time.monotonic()
            next_at = started + slot * interval
            if now > next_at:
                skipped = int((now - next_at) // interval) + 1
                slot += skipped
                next_at = started + slot * interval
                logger.debug("ticks_skipped", skipped=skipped)

            if self._stop_event.wait(max(0.0, next_at - time.monotonic())):
                break

    def _tick(self) -> None:
        try:
            sample = self._source.fetch(self._symbol)
        except FetchError as e:
            if isinstance(e, RateLimited):
                logger.info("rate_limited", detail=e.detail)
            else:
                logger.warning("fetch_failed", kind=e.kind.value, detail=e.detail)
            self._dispatch(partial(self._notify, self._on_error, e))
            self._record(error=e)
            return
        except Exception as e:
            logger.exception("tick_failed")
            error = UpstreamError(f"Unexpected error fetching {self._symbol}: {e!r}")
            error.__cause__ = e
            self._dispatch(partial(self._notify, self._on_error, error))
            self._record(error=error)
            return

        self._buffer.append(sample)
        logger.info("sample_received", price=sample.price)
        self._dispatch(partial(self._notify, self._on_sample, sample))
        self._record()

    def _record(self, error: FetchError | None = None) -> None:
        with self._lock:
            self._tick_count += 1
            if error is not None:
                self._last_error = error

    def _notify(self, callback: Callable[[object], None] | None, value: object) -> None:
        if callback is None:
            return
        try:
            callback(value)
        except Exception:
            logger.exception("callback_failed", symbol=self._symbol)
