"""Self-observability of the receive/reduce/present loop."""

from prometheus_client import CollectorRegistry

from shared.metrics import get_counter, get_gauge, get_histogram

SERVICE_PREFIX = "traffic_monitor"


class PipelineMetrics:
    def __init__(self, registry: CollectorRegistry):
        self.snapshots_total = get_counter(
            "snapshots_total",
            "Snapshots received and reduced.",
            service=SERVICE_PREFIX,
            registry=registry,
        )
        self.parse_errors_total = get_counter(
            "parse_errors_total",
            "Stream messages skipped because they could not be parsed.",
            service=SERVICE_PREFIX,
            registry=registry,
        )
        self.presenter_errors_total = get_counter(
            "presenter_errors_total",
            "Console renders that failed.",
            service=SERVICE_PREFIX,
            registry=registry,
        )
        self.reduction_seconds = get_histogram(
            "reduction_seconds",
            "Time spent applying one snapshot to the metric registry.",
            service=SERVICE_PREFIX,
            buckets=[0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0],
            registry=registry,
        )
        self.last_snapshot_timestamp_ms = get_gauge(
            "last_snapshot_timestamp_ms",
            "Upstream timestamp (ms) of the last reduced snapshot.",
            service=SERVICE_PREFIX,
            registry=registry,
        )
