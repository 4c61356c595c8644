"""Process-wide store of the exported throughput gauges.

Each MetricFamily is one labeled Gauge on a CollectorRegistry owned by the
MetricRegistry instance. prometheus_client serialises child creation, removal
and collection per metric, so the reduction loop can write while the
exposition thread scrapes. A scrape is consistent per series, not per
reduction pass.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Tuple, Union

from prometheus_client import CollectorRegistry, Gauge, generate_latest

from shared.constants import MetricNames
from shared.metrics import get_gauge
from traffic_monitor.domain.models import LoopKey, MetricKey

SeriesKey = Union[MetricKey, LoopKey]


class MetricFamily(str, Enum):
    READ_BYTES = MetricNames.READ_BYTES
    WRITE_BYTES = MetricNames.WRITE_BYTES
    READ_OPS = MetricNames.READ_OPS
    WRITE_OPS = MetricNames.WRITE_OPS
    THREAD_LOOP = MetricNames.THREAD_LOOP

    @property
    def optional(self) -> bool:
        return self in (MetricFamily.READ_OPS, MetricFamily.WRITE_OPS)

    @property
    def per_entity(self) -> bool:
        return self.value in MetricNames.entity_families()

    @property
    def labelnames(self) -> Tuple[str, ...]:
        if self.per_entity:
            return MetricNames.ENTITY_LABELS
        return MetricNames.LOOP_LABELS

    @property
    def documentation(self) -> str:
        return _DOCS[self]


_DOCS = {
    MetricFamily.READ_BYTES: "Current read throughput in bytes/sec",
    MetricFamily.WRITE_BYTES: "Current write throughput in bytes/sec",
    MetricFamily.READ_OPS: "Current read operations per second",
    MetricFamily.WRITE_OPS: "Current write operations per second",
    MetricFamily.THREAD_LOOP: (
        "Time taken to execute internal thread loops in microseconds"
    ),
}


class MetricRegistry:
    def __init__(
        self, enable_iops: bool = False, registry: CollectorRegistry | None = None
    ):
        self.collector_registry = registry or CollectorRegistry()
        self._gauges: Dict[MetricFamily, Gauge] = {}
        for family in MetricFamily:
            if family.optional and not enable_iops:
                continue
            self._gauges[family] = get_gauge(
                family.value,
                family.documentation,
                labelnames=family.labelnames,
                registry=self.collector_registry,
            )

    def families(self) -> Tuple[MetricFamily, ...]:
        return tuple(self._gauges)

    def entity_families(self) -> Tuple[MetricFamily, ...]:
        return tuple(f for f in self._gauges if f.per_entity)

    def enabled(self, family: MetricFamily) -> bool:
        return family in self._gauges

    def set_value(self, family: MetricFamily, key: SeriesKey, value: float) -> None:
        """Upsert the value of one series; last write wins."""
        self._gauge(family).labels(**key.labels()).set(value)

    def remove_series(self, family: MetricFamily, key: SeriesKey) -> None:
        """Drop one series of ``family``; absent series are ignored."""
        labels = key.labels()
        try:
            self._gauge(family).remove(*(labels[n] for n in family.labelnames))
        except KeyError:
            # prometheus_client < 0.20 raises for unknown label values
            pass

    def clear_family(self, family: MetricFamily) -> None:
        """Drop every series of ``family`` so absent entities stop reporting."""
        self._gauge(family).clear()

    def snapshot_for_scrape(self) -> bytes:
        """Current contents in the Prometheus text exposition format."""
        return generate_latest(self.collector_registry)

    def samples(self, family: MetricFamily) -> Dict[Tuple[str, ...], float]:
        """Current series of ``family`` keyed by label values in label order."""
        out = {}
        for metric in self._gauge(family).collect():
            for sample in metric.samples:
                out[tuple(sample.labels[n] for n in family.labelnames)] = sample.value
        return out

    def _gauge(self, family: MetricFamily) -> Gauge:
        try:
            return self._gauges[family]
        except KeyError:
            raise KeyError(f"metric family {family.value} is not enabled") from None
