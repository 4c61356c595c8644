import requests

from traffic_monitor.api.exposition import start_exposition_server
from traffic_monitor.domain.models import MetricKey
from traffic_monitor.domain.taxonomy import EntityKind, EstimatorWindow
from traffic_monitor.metrics.registry import MetricFamily


def test_metrics_endpoint_serves_registry(registry):
    registry.set_value(
        MetricFamily.READ_BYTES,
        MetricKey(EntityKind.APP, "jobA", EstimatorWindow.SMA_1M),
        1000,
    )
    server = start_exposition_server(registry, port=0, addr="127.0.0.1")
    try:
        resp = requests.get(f"http://127.0.0.1:{server.port}/metrics", timeout=5)
        assert resp.status_code == 200
        assert "eos_io_read_bytes_per_second" in resp.text
        assert 'id="jobA"' in resp.text
        # Only this registry is exposed, not the global default one.
        assert "python_gc_objects_collected_total" not in resp.text
    finally:
        server.shutdown()
