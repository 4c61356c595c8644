from unittest.mock import MagicMock

import pytest

from tests.helpers.snapshots import entity, sample, snapshot
from traffic_monitor.domain.taxonomy import EntityKind
from traffic_monitor.infrastructure.stream.client import StreamClosedError
from traffic_monitor.metrics.pipeline import PipelineMetrics
from traffic_monitor.metrics.registry import MetricFamily
from traffic_monitor.services.monitor import run_monitor
from traffic_monitor.services.reducer import SnapshotReducer


def _stream(*snaps, error=None):
    yield from snaps
    if error is not None:
        raise error


def test_processes_every_snapshot_in_order(registry):
    presenter = MagicMock()
    s1 = snapshot(1, users=[entity(EntityKind.USER, "1", sample(read=1))])
    s2 = snapshot(2, users=[entity(EntityKind.USER, "2", sample(read=2))])

    processed = run_monitor(_stream(s1, s2), SnapshotReducer(registry), presenter)

    assert processed == 2
    assert [c.args[0] for c in presenter.present.call_args_list] == [s1, s2]
    assert set(registry.samples(MetricFamily.READ_BYTES)) == {("user", "2", "SMA_5S")}


def test_presenter_failure_does_not_stop_reduction(registry, caplog):
    caplog.set_level("ERROR")
    presenter = MagicMock()
    presenter.present.side_effect = BrokenPipeError("stdout closed")
    metrics = PipelineMetrics(registry.collector_registry)
    snaps = [snapshot(i, users=[entity(EntityKind.USER, str(i), sample())]) for i in (1, 2, 3)]

    processed = run_monitor(_stream(*snaps), SnapshotReducer(registry), presenter, metrics)

    assert processed == 3
    assert set(registry.samples(MetricFamily.READ_BYTES)) == {("user", "3", "SMA_5S")}
    reg = registry.collector_registry
    assert reg.get_sample_value("traffic_monitor_presenter_errors_total") == 3
    assert any("presenter_failed" in r.message for r in caplog.records)


def test_pipeline_metrics_updated(registry):
    metrics = PipelineMetrics(registry.collector_registry)
    run_monitor(
        _stream(snapshot(10), snapshot(20)), SnapshotReducer(registry), None, metrics
    )
    reg = registry.collector_registry
    assert reg.get_sample_value("traffic_monitor_snapshots_total") == 2
    assert reg.get_sample_value("traffic_monitor_last_snapshot_timestamp_ms") == 20
    assert reg.get_sample_value("traffic_monitor_reduction_seconds_count") == 2


def test_stream_error_propagates_after_processing_earlier_snapshots(registry):
    s1 = snapshot(1, apps=[entity(EntityKind.APP, "a", sample(read=9))])
    with pytest.raises(StreamClosedError):
        run_monitor(
            _stream(s1, error=StreamClosedError("gone")), SnapshotReducer(registry)
        )
    assert registry.samples(MetricFamily.READ_BYTES) == {("app", "a", "SMA_5S"): 9}


def test_duplicate_keys_logged(registry, caplog):
    caplog.set_level("WARNING")
    dup = snapshot(
        users=[
            entity(EntityKind.USER, "1", sample(read=1)),
            entity(EntityKind.USER, "1", sample(read=2)),
        ]
    )
    run_monitor(_stream(dup), SnapshotReducer(registry))
    assert any("duplicate_metric_keys" in r.message for r in caplog.records)
