"""Streaming client for the upstream TrafficShapingRate feed.

The feed is consumed through its JSON gateway: one POST carrying the
request, answered by a never-ending newline-delimited JSON body with one
report per line. ``snapshots()`` blocks between reports; ``close()`` may be
called from another thread (e.g. a signal handler) to unblock it.
"""

from __future__ import annotations

import json
import threading
from typing import Callable, Iterator, Optional

import requests

from shared.utils.retry import retry
from traffic_monitor.core.logger import get_logger
from traffic_monitor.domain.models import Snapshot, SnapshotRequest

from .message_parser import UpstreamError, parse_report, unwrap_envelope

logger = get_logger("traffic_monitor.stream")


class SnapshotSourceError(RuntimeError):
    """Base class for fatal snapshot source conditions."""


class SourceConnectionError(SnapshotSourceError):
    """The stream could not be opened."""


class StreamClosedError(SnapshotSourceError):
    """The stream ended or failed while running."""


class SnapshotStreamClient:
    def __init__(
        self,
        url: str,
        request: SnapshotRequest,
        connect_timeout: float = 5.0,
        read_timeout: Optional[float] = None,
        connect_retries: int = 5,
        session: Optional[requests.Session] = None,
        on_parse_error: Optional[Callable[[], None]] = None,
    ):
        self.url = url
        self.request = request
        self.timeout = (connect_timeout, read_timeout)
        self.connect_retries = connect_retries
        self.session = session or requests.Session()
        self.on_parse_error = on_parse_error
        self._response: Optional[requests.Response] = None
        self._closing = threading.Event()
        self._lock = threading.Lock()

    @property
    def closing(self) -> bool:
        return self._closing.is_set()

    def connect(self) -> None:
        """Open the stream, retrying with backoff; raise SourceConnectionError."""

        def _open() -> requests.Response:
            resp = self.session.post(
                self.url,
                json=self.request.to_wire(),
                stream=True,
                timeout=self.timeout,
                headers={"Accept": "application/x-ndjson, application/json"},
            )
            try:
                resp.raise_for_status()
            except requests.HTTPError:
                resp.close()
                raise
            return resp

        def _on_retry(attempt: int, exc: BaseException, sleep_for: float) -> None:
            logger.warning(
                "source_connect_retry",
                extra={
                    "attempt": attempt,
                    "error": str(exc),
                    "sleep_for": round(sleep_for, 2),
                },
            )

        try:
            response = retry(
                _open,
                retries=self.connect_retries,
                base_delay=0.5,
                max_delay=8.0,
                jitter=0.2,
                retry_on=(requests.RequestException,),
                on_retry=_on_retry,
            )
        except requests.RequestException as e:
            raise SourceConnectionError(f"cannot open stream at {self.url}: {e}") from e
        with self._lock:
            self._response = response
        logger.info(
            "stream_connected",
            extra={
                "url": self.url,
                "top_n": self.request.top_n,
                "sort_by": self.request.sort_by.label,
            },
        )

    def snapshots(self) -> Iterator[Snapshot]:
        """Yield snapshots in arrival order until the stream ends.

        Returns quietly after ``close()``; raises StreamClosedError when the
        stream ends or fails on its own.
        """
        if self._response is None:
            raise SourceConnectionError("stream not connected")
        try:
            for line in self._response.iter_lines(decode_unicode=True):
                if not line:
                    continue
                snapshot = self._decode(line)
                if snapshot is not None:
                    yield snapshot
        except UpstreamError as e:
            raise StreamClosedError(str(e)) from e
        except (requests.RequestException, OSError, AttributeError, ValueError) as e:
            # AttributeError/ValueError: urllib3 reading from a response closed
            # under it by close().
            if self.closing:
                logger.info("stream_closed_by_client")
                return
            raise StreamClosedError(f"stream failed: {e}") from e
        if self.closing:
            logger.info("stream_closed_by_client")
            return
        raise StreamClosedError("stream ended by upstream")

    def _decode(self, line: str) -> Optional[Snapshot]:
        try:
            payload = unwrap_envelope(json.loads(line))
        except (ValueError, TypeError) as e:
            # ValueError covers JSONDecodeError and UnicodeDecodeError.
            logger.warning("invalid_stream_message", extra={"error": str(e)})
            self._parse_failed()
            return None
        snapshot = parse_report(payload)
        if snapshot is None:
            self._parse_failed()
        return snapshot

    def _parse_failed(self) -> None:
        if self.on_parse_error is not None:
            self.on_parse_error()

    def close(self) -> None:
        """Idempotent; safe to call from another thread."""
        self._closing.set()
        with self._lock:
            response, self._response = self._response, None
        if response is not None:
            response.close()
        self.session.close()
