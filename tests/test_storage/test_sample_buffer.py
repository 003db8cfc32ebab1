"""Tests for the bounded sample buffer."""

from __future__ import annotations

import threading

import pytest
from conftest import make_sample

from tickwatch.quotes.base import Sample
from tickwatch.storage.sample_buffer import DEFAULT_CAPACITY, SampleBuffer


def prices(buffer: SampleBuffer) -> list[float]:
    return [s.price for s in buffer.snapshot()]


def test_default_capacity():
    assert SampleBuffer().capacity == DEFAULT_CAPACITY == 100


@pytest.mark.parametrize("capacity", [0, -1])
def test_capacity_must_be_positive(capacity: int):
    with pytest.raises(ValueError):
        SampleBuffer(capacity)


def test_append_keeps_arrival_order():
    buffer = SampleBuffer(5)
    for p in (3.0, 1.0, 2.0):
        buffer.append(make_sample(p))
    assert prices(buffer) == [3.0, 1.0, 2.0]
    assert len(buffer) == 3


def test_overflow_keeps_most_recent_capacity_samples():
    buffer = SampleBuffer(3)
    for p in range(1, 11):
        buffer.append(make_sample(float(p)))
    assert prices(buffer) == [8.0, 9.0, 10.0]


def test_each_append_at_capacity_evicts_exactly_the_oldest():
    buffer = SampleBuffer(4)
    for p in range(1, 5):
        buffer.append(make_sample(float(p)))

    for p in range(5, 9):
        before = prices(buffer)
        buffer.append(make_sample(float(p)))
        after = prices(buffer)
        assert len(after) == 4
        assert after == before[1:] + [float(p)]


def test_snapshot_is_an_immutable_copy():
    buffer = SampleBuffer(3)
    buffer.append(make_sample(1.0))
    snap = buffer.snapshot()

    buffer.append(make_sample(2.0))

    assert isinstance(snap, tuple)
    assert [s.price for s in snap] == [1.0]
    assert prices(buffer) == [1.0, 2.0]


def test_latest():
    buffer = SampleBuffer(2)
    assert buffer.latest() is None
    buffer.append(make_sample(1.0))
    buffer.append(make_sample(2.0))
    buffer.append(make_sample(3.0))
    assert buffer.latest().price == 3.0


def test_samples_cannot_be_mutated():
    sample = make_sample(1.0)
    with pytest.raises(AttributeError):
        sample.price = 2.0  # type: ignore[misc]


@pytest.mark.parametrize("price", [0.0, -1.0, float("nan"), float("inf")])
def test_sample_rejects_invalid_price(price: float):
    with pytest.raises(ValueError):
        Sample(price=price, observed_at=make_sample(1.0).observed_at)


def test_concurrent_append_and_snapshot():
    """Readers on other threads only ever see complete, ordered windows."""
    capacity = 50
    buffer = SampleBuffer(capacity)
    done = threading.Event()
    problems: list[str] = []

    def writer() -> None:
        for p in range(1, 5001):
            buffer.append(make_sample(float(p)))
        done.set()

    def reader() -> None:
        while not done.is_set():
            snap = [s.price for s in buffer.snapshot()]
            if len(snap) > capacity:
                problems.append(f"length {len(snap)}")
            if any(b - a != 1.0 for a, b in zip(snap, snap[1:])):
                problems.append("gap or reorder")

    readers = [threading.Thread(target=reader) for _ in range(3)]
    for t in readers:
        t.start()
    writer()
    for t in readers:
        t.join(5.0)

    assert problems == []
    assert prices(buffer) == [float(p) for p in range(4951, 5001)]
