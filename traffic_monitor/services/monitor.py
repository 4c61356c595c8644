"""Receive → reduce → present loop.

Strictly in-order: one snapshot is fully reduced and presented before the
next one is read. Presenter failures are local; source failures propagate.
"""

from __future__ import annotations

from typing import Iterable, Optional, Protocol

from traffic_monitor.core.logger import get_logger
from traffic_monitor.domain.models import Snapshot
from traffic_monitor.metrics.pipeline import PipelineMetrics
from traffic_monitor.services.reducer import SnapshotReducer

logger = get_logger("traffic_monitor.monitor")


class Presenter(Protocol):
    def present(self, snapshot: Snapshot) -> None: ...


def run_monitor(
    snapshots: Iterable[Snapshot],
    reducer: SnapshotReducer,
    presenter: Optional[Presenter] = None,
    metrics: Optional[PipelineMetrics] = None,
) -> int:
    """Drain ``snapshots`` until exhausted; return how many were processed.

    Exceptions raised by the snapshot iterable (stream loss) propagate to the
    caller.
    """
    processed = 0
    for snapshot in snapshots:
        if metrics is not None:
            with metrics.reduction_seconds.time():
                result = reducer.reduce(snapshot)
            metrics.snapshots_total.inc()
            metrics.last_snapshot_timestamp_ms.set(snapshot.timestamp_ms)
        else:
            result = reducer.reduce(snapshot)
        processed += 1
        if result.duplicate_keys:
            logger.warning(
                "duplicate_metric_keys",
                extra={
                    "timestamp_ms": snapshot.timestamp_ms,
                    "count": len(result.duplicate_keys),
                },
            )
        if presenter is not None:
            _present_safe(presenter, snapshot, metrics)
    logger.info("monitor_loop_finished", extra={"processed": processed})
    return processed


def _present_safe(
    presenter: Presenter, snapshot: Snapshot, metrics: Optional[PipelineMetrics]
) -> None:
    try:
        presenter.present(snapshot)
    except Exception as e:  # noqa: BLE001
        if metrics is not None:
            metrics.presenter_errors_total.inc()
        logger.error(
            "presenter_failed",
            extra={"error": str(e), "timestamp_ms": snapshot.timestamp_ms},
        )
