"""Applies one Snapshot to the MetricRegistry.

Every enabled family is cleared before any value of the new snapshot is
written, so after a pass the registry holds exactly the series present in
that snapshot. A scrape landing mid-pass can see a partially repopulated
state but never a series older than the previous snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from traffic_monitor.core.logger import get_logger
from traffic_monitor.domain.models import LoopKey, MetricKey, RateSample, Snapshot
from traffic_monitor.domain.taxonomy import EntityKind, LoopStat
from traffic_monitor.metrics.registry import MetricFamily, MetricRegistry

logger = get_logger("traffic_monitor.reducer")

# Quantity written to each entity family; None means "not measured".
_QUANTITIES: Tuple[Tuple[MetricFamily, str], ...] = (
    (MetricFamily.READ_BYTES, "bytes_read_per_sec"),
    (MetricFamily.WRITE_BYTES, "bytes_written_per_sec"),
    (MetricFamily.READ_OPS, "ops_read_per_sec"),
    (MetricFamily.WRITE_OPS, "ops_write_per_sec"),
)


@dataclass
class ReductionResult:
    timestamp_ms: int
    series_by_kind: Dict[EntityKind, int] = field(default_factory=dict)
    loop_points: int = 0
    duplicate_keys: List[MetricKey] = field(default_factory=list)

    @property
    def series_total(self) -> int:
        return sum(self.series_by_kind.values())


class SnapshotReducer:
    def __init__(
        self,
        registry: MetricRegistry,
        kinds: Optional[Iterable[EntityKind]] = None,
    ):
        self.registry = registry
        self.kinds = tuple(kinds) if kinds is not None else tuple(EntityKind)
        self._quantities = tuple(
            (family, attr) for family, attr in _QUANTITIES if registry.enabled(family)
        )

    def reduce(self, snapshot: Snapshot) -> ReductionResult:
        result = ReductionResult(timestamp_ms=snapshot.timestamp_ms)
        self._reduce_entities(snapshot, result)
        self._reduce_loop_stats(snapshot, result)
        logger.debug(
            "snapshot_reduced",
            extra={
                "timestamp_ms": snapshot.timestamp_ms,
                "series": result.series_total,
                "loop_points": result.loop_points,
                "duplicates": len(result.duplicate_keys),
            },
        )
        return result

    def _reduce_entities(self, snapshot: Snapshot, result: ReductionResult) -> None:
        for family in self.registry.entity_families():
            self.registry.clear_family(family)

        seen: set[MetricKey] = set()
        for kind in self.kinds:
            written = 0
            for entity in snapshot.ranked(kind):
                for sample in entity.samples:
                    key = MetricKey.of(entity, sample)
                    if key in seen:
                        # Last processed sample wins, as a whole.
                        for family in self.registry.entity_families():
                            self.registry.remove_series(family, key)
                        result.duplicate_keys.append(key)
                        logger.debug(
                            "duplicate_metric_key", extra={"labels": key.labels()}
                        )
                    else:
                        seen.add(key)
                        written += 1
                    self._write_sample(key, sample)
            result.series_by_kind[kind] = written

    def _write_sample(self, key: MetricKey, sample: RateSample) -> None:
        for family, attr in self._quantities:
            value = getattr(sample, attr)
            if value is None:
                continue
            self.registry.set_value(family, key, value)

    def _reduce_loop_stats(self, snapshot: Snapshot, result: ReductionResult) -> None:
        self.registry.clear_family(MetricFamily.THREAD_LOOP)
        for loop, stats in snapshot.loop_stats.items():
            for stat in LoopStat:
                self.registry.set_value(
                    MetricFamily.THREAD_LOOP, LoopKey(loop, stat), stats.value(stat)
                )
                result.loop_points += 1
