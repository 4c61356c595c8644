from __future__ import annotations

import signal
import sys
from typing import Optional

from traffic_monitor.api.exposition import ExpositionServer, start_exposition_server
from traffic_monitor.core.config import Settings
from traffic_monitor.core.logger import configure_logging, get_logger
from traffic_monitor.infrastructure.stream.client import (
    SnapshotStreamClient,
    SourceConnectionError,
    StreamClosedError,
)
from traffic_monitor.metrics.pipeline import PipelineMetrics
from traffic_monitor.metrics.registry import MetricRegistry
from traffic_monitor.presentation.console import ConsolePresenter
from traffic_monitor.services.monitor import run_monitor
from traffic_monitor.services.reducer import SnapshotReducer

logger = get_logger("traffic_monitor.app")

EXIT_OK = 0
EXIT_FAILURE = 1


def _install_signal_handlers(client: SnapshotStreamClient) -> dict:
    # First signal closes the stream (drain), second one aborts.
    state = {"signalled": False}

    def _on_signal(signum, frame):  # noqa: D401
        if not state["signalled"]:
            state["signalled"] = True
            logger.info("signal_received", extra={"signal": signum, "action": "close"})
            client.close()
        else:
            logger.warning(
                "second_signal_exit", extra={"signal": signum, "action": "abort"}
            )
            raise KeyboardInterrupt

    previous = {}
    for sig in (signal.SIGINT, signal.SIGTERM):
        previous[sig] = signal.signal(sig, _on_signal)
    return previous


def run(config: Settings, client: Optional[SnapshotStreamClient] = None) -> int:
    logger.info(
        "traffic_monitor_starting",
        extra={"source": config.source_url, "top_n": config.top_n},
    )
    registry = MetricRegistry(enable_iops=config.enable_iops)
    pipeline_metrics = PipelineMetrics(registry.collector_registry)

    if client is None:
        client = SnapshotStreamClient(
            config.source_url,
            config.snapshot_request(),
            connect_timeout=config.source_connect_timeout_seconds,
            read_timeout=config.source_read_timeout_seconds,
            connect_retries=config.source_connect_retries,
            on_parse_error=pipeline_metrics.parse_errors_total.inc,
        )
    reducer = SnapshotReducer(registry, kinds=config.include_kinds)
    presenter = None
    if config.console_enabled:
        presenter = ConsolePresenter(
            clear_screen=config.console_clear_screen,
            show_iops=config.enable_iops,
            kinds=config.include_kinds,
        )

    exposition: Optional[ExpositionServer] = None
    previous_handlers: dict = {}
    try:
        try:
            client.connect()
        except SourceConnectionError as e:
            logger.error("source_connect_failed", extra={"error": str(e)})
            return EXIT_FAILURE
        # Metrics are served only once the upstream stream is open.
        if config.metrics_enabled:
            logger.info("metrics_endpoint_enabled")
            exposition = start_exposition_server(
                registry, config.metrics_port, config.metrics_addr
            )
        else:
            logger.info("metrics_endpoint_disabled")
        previous_handlers = _install_signal_handlers(client)
        try:
            run_monitor(client.snapshots(), reducer, presenter, pipeline_metrics)
        except StreamClosedError as e:
            logger.error("stream_closed", extra={"error": str(e)})
            return EXIT_FAILURE
        logger.info("traffic_monitor_stopped")
        return EXIT_OK
    finally:
        for sig, handler in previous_handlers.items():
            signal.signal(sig, handler)
        client.close()
        if exposition is not None:
            exposition.shutdown()


def main() -> None:  # pragma: no cover - small wrapper
    config = Settings(_cli_parse_args=True)
    configure_logging(config, force=True)
    try:
        code = run(config)
    except KeyboardInterrupt:
        logger.info("keyboard_interrupt_shutdown")
        code = EXIT_FAILURE
    except Exception:  # noqa: BLE001
        logger.exception("fatal_error_main")
        code = EXIT_FAILURE
    sys.exit(code)


if __name__ == "__main__":  # pragma: no cover
    main()
