from __future__ import annotations

from typing import Any, Iterable, Optional

from pydantic import ValidationError

from traffic_monitor.core.logger import get_logger
from traffic_monitor.domain.models import (
    LoopTimingStats,
    RankedEntity,
    RateSample,
    Snapshot,
)
from traffic_monitor.domain.taxonomy import EntityKind, EstimatorWindow, LoopName
from traffic_monitor.schemas.rate_report import (
    RateStats,
    ThreadLoopStats,
    TrafficShapingRateReport,
)

logger = get_logger("traffic_monitor.message_parser")


class UpstreamError(Exception):
    """The stream delivered an error envelope instead of a report."""

    def __init__(self, detail: Any):
        super().__init__(f"upstream stream error: {detail}")
        self.detail = detail


def unwrap_envelope(message: Any) -> dict:
    """Return the report carried by one gateway stream line.

    Raises UpstreamError for ``{"error": ...}`` lines and TypeError for lines
    that are not JSON objects.
    """
    if not isinstance(message, dict):
        raise TypeError(f"stream line must be an object, got {type(message).__name__}")
    if "error" in message and "result" not in message:
        raise UpstreamError(message["error"])
    result = message.get("result", message)
    if not isinstance(result, dict):
        raise TypeError(f"report must be an object, got {type(result).__name__}")
    return result


def parse_report(payload: dict) -> Optional[Snapshot]:
    """Translate one raw report payload into a Snapshot or None.

    Returns None (with a warning) when the payload does not validate.
    Unknown estimator windows drop only the affected sample.
    """
    try:
        report = TrafficShapingRateReport.model_validate(payload)
    except ValidationError as e:
        logger.warning(
            "invalid_report", extra={"errors": e.error_count(), "error": str(e)}
        )
        return None

    entities = {
        EntityKind.APP: tuple(
            _entity(EntityKind.APP, entry.app_name, entry.stats)
            for entry in report.app_stats
        ),
        EntityKind.USER: tuple(
            _entity(EntityKind.USER, str(entry.uid), entry.stats)
            for entry in report.user_stats
        ),
        EntityKind.GROUP: tuple(
            _entity(EntityKind.GROUP, str(entry.gid), entry.stats)
            for entry in report.group_stats
        ),
    }
    loop_stats = {}
    for name, raw in (
        (LoopName.FST_LIMITS, report.fst_limits_update_thread_loop_stats),
        (LoopName.ESTIMATORS, report.estimators_update_thread_loop_stats),
    ):
        if raw is not None:
            loop_stats[name] = _loop_stats(raw)
    return Snapshot(
        timestamp_ms=report.timestamp_ms, entities=entities, loop_stats=loop_stats
    )


def _entity(kind: EntityKind, identifier: str, stats: Iterable[RateStats]):
    samples = []
    for s in stats:
        try:
            window = EstimatorWindow.parse(s.window)
        except ValueError:
            logger.warning(
                "unknown_estimator_window",
                extra={"window": s.window, "entity_type": kind.value, "id": identifier},
            )
            continue
        samples.append(
            RateSample(
                window=window,
                bytes_read_per_sec=s.bytes_read_per_sec,
                bytes_written_per_sec=s.bytes_written_per_sec,
                ops_read_per_sec=s.ops_read_per_sec,
                ops_write_per_sec=s.ops_write_per_sec,
            )
        )
    return RankedEntity(kind=kind, identifier=identifier, samples=tuple(samples))


def _loop_stats(raw: ThreadLoopStats) -> LoopTimingStats:
    return LoopTimingStats(
        mean_micros=raw.mean_elapsed_time_micro_sec,
        min_micros=raw.min_elapsed_time_micro_sec,
        max_micros=raw.max_elapsed_time_micro_sec,
    )
