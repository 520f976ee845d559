import logging

import pytest

from hypermine.metrics import Histogram, Recorder


def _filled(values):
    hist = Histogram()
    for value in values:
        hist.record(value)
    return hist


def test_empty_histogram_quantile():
    assert Histogram().value_at_quantile(0.5) == 0


def test_quantiles_pick_recorded_values():
    hist = _filled([40, 10, 30, 20])
    assert hist.value_at_quantile(0.25) == 10
    assert hist.value_at_quantile(0.5) == 20
    assert hist.value_at_quantile(0.75) == 30
    assert hist.value_at_quantile(1.0) == 40


def test_quantile_is_clamped():
    hist = _filled([5, 7])
    assert hist.value_at_quantile(2.0) == hist.value_at_quantile(1.0)
    assert hist.value_at_quantile(-1.0) == hist.value_at_quantile(0.0)


def test_quantiles_are_monotonic():
    hist = _filled([3, 1, 4, 1, 5, 9, 2, 6])
    values = [hist.value_at_quantile(q / 10) for q in range(11)]
    assert values == sorted(values)
    assert len(hist) == 8


def test_negative_sample_rejected():
    with pytest.raises(ValueError):
        Histogram().record(-1)


def test_recorder_converts_seconds_to_nanoseconds():
    rec = Recorder()
    rec.record("frame", 1.5)
    assert rec.histogram("frame").value_at_quantile(1.0) == 1_500_000_000


def test_recorder_clamps_negative_and_nan_to_zero():
    rec = Recorder()
    rec.record("x", -2.0)
    rec.record("x", float("nan"))
    hist = rec.histogram("x")
    assert len(hist) == 2
    assert hist.value_at_quantile(1.0) == 0


def test_unknown_key_has_no_histogram():
    assert Recorder().histogram("missing") is None


def test_report_covers_every_key(caplog):
    rec = Recorder()
    rec.record("b", 0.5)
    rec.record("a", 1.5)
    rec.record("a", 0.5)
    with caplog.at_level(logging.INFO, logger="hypermine.metrics"):
        rows = rec.report()
    assert [row.key for row in rows] == ["a", "b"]
    a_row = rows[0]
    assert a_row.percentile_25 <= a_row.percentile_50 <= a_row.percentile_75 <= a_row.max
    assert a_row.max == rec.histogram("a").value_at_quantile(1.0)
    assert sum("metric" in r.getMessage() for r in caplog.records) == 2