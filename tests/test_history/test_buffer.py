"""Tests for the sample history ring buffer."""

from __future__ import annotations

from datetime import datetime, timedelta

from tariff_meter.history.buffer import DEFAULT_CAPACITY, HistoryBuffer, HistorySample


def _sample(i: int) -> HistorySample:
    return HistorySample(
        timestamp=datetime(2025, 1, 15) + timedelta(minutes=i),
        power=float(i),
        cost_per_hour=0.0,
        cost_today=0.0,
    )


class TestHistoryBuffer:
    def test_default_capacity_is_one_day_of_minutes(self) -> None:
        assert HistoryBuffer().capacity == DEFAULT_CAPACITY == 1440

    def test_snapshot_oldest_first(self) -> None:
        buf = HistoryBuffer()
        for i in range(3):
            buf.append(_sample(i))
        assert [s.power for s in buf.snapshot()] == [0.0, 1.0, 2.0]

    def test_evicts_oldest_beyond_capacity(self) -> None:
        buf = HistoryBuffer()
        for i in range(1, 1442):
            buf.append(_sample(i))
        samples = buf.snapshot()
        assert len(buf) == 1440
        assert samples[0].power == 2.0
        assert samples[-1].power == 1441.0
        assert [s.power for s in samples] == [float(i) for i in range(2, 1442)]

    def test_snapshot_is_a_copy(self) -> None:
        buf = HistoryBuffer(capacity=2)
        buf.append(_sample(0))
        snap = buf.snapshot()
        buf.append(_sample(1))
        assert len(snap) == 1

    def test_to_dict_chart_format(self) -> None:
        sample = _sample(0)
        data = sample.to_dict()
        assert data["t"] == int(sample.timestamp.timestamp() * 1000)
        assert set(data) == {"t", "power", "costH", "costDay"}
