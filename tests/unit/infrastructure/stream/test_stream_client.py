import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from traffic_monitor.domain.models import SnapshotRequest
from traffic_monitor.infrastructure.stream.client import (
    SnapshotStreamClient,
    SourceConnectionError,
    StreamClosedError,
)

URL = "http://mgm:50051/v1/traffic-shaping/rate"


def _response(lines):
    resp = MagicMock()
    resp.iter_lines.return_value = iter(lines)
    resp.raise_for_status.return_value = None
    return resp


def _client(session, **kwargs):
    return SnapshotStreamClient(
        URL, SnapshotRequest(top_n=10), connect_retries=3, session=session, **kwargs
    )


@pytest.fixture(autouse=True)
def no_sleep():
    with patch("time.sleep", return_value=None):
        yield


def test_connect_posts_request_body():
    session = MagicMock()
    session.post.return_value = _response([])
    client = _client(session)
    client.connect()

    args, kwargs = session.post.call_args
    assert args == (URL,)
    assert kwargs["stream"] is True
    assert kwargs["json"]["topN"] == 10
    assert kwargs["json"]["sortByEstimator"] == "SMA_1_MINUTES"
    assert kwargs["timeout"] == (5.0, None)


def test_connect_retries_then_succeeds():
    session = MagicMock()
    session.post.side_effect = [
        requests.ConnectionError("refused"),
        requests.ConnectionError("refused"),
        _response([]),
    ]
    _client(session).connect()
    assert session.post.call_count == 3


def test_connect_fails_after_retries():
    session = MagicMock()
    session.post.side_effect = requests.ConnectionError("refused")
    with pytest.raises(SourceConnectionError, match="cannot open stream"):
        _client(session).connect()
    assert session.post.call_count == 3


def test_connect_http_error_is_retried_and_fatal():
    bad = MagicMock()
    bad.raise_for_status.side_effect = requests.HTTPError("503")
    session = MagicMock()
    session.post.return_value = bad
    with pytest.raises(SourceConnectionError):
        _client(session).connect()
    assert bad.close.call_count == 3


def test_snapshots_before_connect_raises():
    with pytest.raises(SourceConnectionError):
        next(_client(MagicMock()).snapshots())


def test_snapshots_yields_in_order_and_skips_garbage(sample_report):
    parse_errors = MagicMock()
    second = dict(sample_report, timestampMs="1700000001000")
    session = MagicMock()
    session.post.return_value = _response(
        [
            json.dumps({"result": sample_report}),
            "",
            "{not json",
            json.dumps({"result": {"appStats": []}}),
            json.dumps(second),
        ]
    )
    client = _client(session, on_parse_error=parse_errors)
    client.connect()
    stream = client.snapshots()
    assert next(stream).timestamp_ms == 1700000000000
    assert next(stream).timestamp_ms == 1700000001000
    assert parse_errors.call_count == 2
    with pytest.raises(StreamClosedError, match="ended by upstream"):
        next(stream)


def test_upstream_error_line_is_fatal():
    session = MagicMock()
    session.post.return_value = _response(
        [json.dumps({"error": {"code": 14, "message": "shutting down"}})]
    )
    client = _client(session)
    client.connect()
    with pytest.raises(StreamClosedError, match="shutting down"):
        list(client.snapshots())


def test_transport_error_mid_stream_is_fatal():
    def lines():
        yield json.dumps({"timestampMs": 1})
        raise requests.exceptions.ChunkedEncodingError("connection reset")

    session = MagicMock()
    resp = _response([])
    resp.iter_lines.return_value = lines()
    session.post.return_value = resp
    client = _client(session)
    client.connect()
    stream = client.snapshots()
    assert next(stream).timestamp_ms == 1
    with pytest.raises(StreamClosedError, match="connection reset"):
        next(stream)


def test_close_ends_stream_quietly():
    session = MagicMock()
    resp = _response([])
    session.post.return_value = resp
    client = _client(session)
    client.connect()

    def lines():
        yield json.dumps({"timestampMs": 1})
        client.close()
        raise AttributeError("'NoneType' object has no attribute 'read'")

    resp.iter_lines.return_value = lines()
    assert [s.timestamp_ms for s in client.snapshots()] == [1]
    resp.close.assert_called_once()
    session.close.assert_called()


def test_close_is_idempotent():
    session = MagicMock()
    resp = _response([])
    session.post.return_value = resp
    client = _client(session)
    client.connect()
    client.close()
    client.close()
    resp.close.assert_called_once()
    assert client.closing


@pytest.mark.parametrize("line", ['"abc"', "[1, 2]", "42", "null", b"\xff\xfe{"])
def test_non_object_lines_are_skipped(line, sample_report):
    parse_errors = MagicMock()
    session = MagicMock()
    session.post.return_value = _response([line, json.dumps(sample_report)])
    client = _client(session, on_parse_error=parse_errors)
    client.connect()
    assert next(client.snapshots()).timestamp_ms == 1700000000000
    assert parse_errors.call_count == 1
