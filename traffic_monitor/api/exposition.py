"""Prometheus scrape endpoint for the metric registry.

Runs prometheus_client's threaded HTTP server; each scrape is served on its
own thread, so a client dropping mid-response only affects that request.
"""

from __future__ import annotations

from dataclasses import dataclass
from threading import Thread
from wsgiref.simple_server import WSGIServer

from prometheus_client import start_http_server

from traffic_monitor.core.logger import get_logger
from traffic_monitor.metrics.registry import MetricRegistry

logger = get_logger("traffic_monitor.exposition")


@dataclass
class ExpositionServer:
    server: WSGIServer
    thread: Thread
    port: int

    def shutdown(self) -> None:
        self.server.shutdown()
        self.server.server_close()
        self.thread.join(timeout=5)
        logger.info("metrics_server_stopped", extra={"port": self.port})


def start_exposition_server(
    registry: MetricRegistry, port: int, addr: str = "0.0.0.0"
) -> ExpositionServer:
    server, thread = start_http_server(
        port, addr=addr, registry=registry.collector_registry
    )
    bound_port = server.server_address[1]
    logger.info(
        "metrics_listening",
        extra={"port": bound_port, "path": "/metrics", "addr": addr},
    )
    return ExpositionServer(server=server, thread=thread, port=bound_port)
