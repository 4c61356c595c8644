from __future__ import annotations

from typing import Dict, NamedTuple, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .taxonomy import EntityKind, EstimatorWindow, LoopName, LoopStat


class RateSample(BaseModel):
    """Rates for one entity over one estimator window."""

    model_config = ConfigDict(frozen=True)

    window: EstimatorWindow
    bytes_read_per_sec: float = 0.0
    bytes_written_per_sec: float = 0.0
    ops_read_per_sec: Optional[float] = None
    ops_write_per_sec: Optional[float] = None


class RankedEntity(BaseModel):
    """One row of a kind's top-N ranking."""

    model_config = ConfigDict(frozen=True)

    kind: EntityKind
    identifier: str
    samples: Tuple[RateSample, ...] = ()


class LoopTimingStats(BaseModel):
    """Elapsed-time statistics of one upstream thread loop, in microseconds."""

    model_config = ConfigDict(frozen=True)

    mean_micros: int
    min_micros: int
    max_micros: int

    def value(self, stat: LoopStat) -> int:
        return {
            LoopStat.MEAN: self.mean_micros,
            LoopStat.MIN: self.min_micros,
            LoopStat.MAX: self.max_micros,
        }[stat]


class Snapshot(BaseModel):
    """One complete, timestamped report received from the stream."""

    model_config = ConfigDict(frozen=True)

    timestamp_ms: int
    entities: Dict[EntityKind, Tuple[RankedEntity, ...]] = Field(default_factory=dict)
    loop_stats: Dict[LoopName, LoopTimingStats] = Field(default_factory=dict)

    def ranked(self, kind: EntityKind) -> Tuple[RankedEntity, ...]:
        return self.entities.get(kind, ())


class MetricKey(NamedTuple):
    """Export identity of one entity time series."""

    kind: EntityKind
    identifier: str
    window: EstimatorWindow

    @classmethod
    def of(cls, entity: RankedEntity, sample: RateSample) -> "MetricKey":
        return cls(entity.kind, entity.identifier, sample.window)

    def labels(self) -> Dict[str, str]:
        return {
            "entity_type": self.kind.value,
            "id": self.identifier,
            "estimator": self.window.label,
        }


class SnapshotRequest(BaseModel):
    """What the client asks the upstream stream to send."""

    model_config = ConfigDict(frozen=True)

    estimators: Tuple[EstimatorWindow, ...] = tuple(EstimatorWindow)
    include_kinds: Tuple[EntityKind, ...] = tuple(EntityKind)
    top_n: int = Field(default=1000, ge=1)
    sort_by: EstimatorWindow = EstimatorWindow.SMA_1M

    def to_wire(self) -> dict:
        return {
            "estimators": [w.wire_name for w in self.estimators],
            "includeTypes": [k.wire_name for k in self.include_kinds],
            "topN": self.top_n,
            "sortByEstimator": self.sort_by.wire_name,
        }


class LoopKey(NamedTuple):
    """Export identity of one upstream loop timing statistic."""

    loop: LoopName
    stat: LoopStat

    def labels(self) -> Dict[str, str]:
        return {"loop_name": self.loop.value, "stat_type": self.stat.value}
