import pytest

from traffic_monitor.domain.models import LoopTimingStats
from traffic_monitor.domain.taxonomy import LoopName
from traffic_monitor.metrics.registry import MetricRegistry


@pytest.fixture
def registry() -> MetricRegistry:
    """Registry on its own CollectorRegistry, no IOPS families."""
    return MetricRegistry()


@pytest.fixture
def iops_registry() -> MetricRegistry:
    return MetricRegistry(enable_iops=True)


@pytest.fixture
def loop_stats() -> dict:
    return {
        LoopName.FST_LIMITS: LoopTimingStats(
            mean_micros=1500, min_micros=200, max_micros=3000
        ),
        LoopName.ESTIMATORS: LoopTimingStats(
            mean_micros=40, min_micros=10, max_micros=2_500_000
        ),
    }


@pytest.fixture
def sample_report() -> dict:
    """Gateway-encoded report line payload (protobuf JSON mapping)."""
    return {
        "timestampMs": "1700000000000",
        "appStats": [
            {
                "appName": "jobA",
                "stats": [
                    {
                        "window": "SMA_1_MINUTES",
                        "bytesReadPerSec": 1000,
                        "bytesWrittenPerSec": 10,
                    }
                ],
            }
        ],
        "userStats": [
            {
                "uid": 1001,
                "stats": [
                    {
                        "window": "SMA_5_SECONDS",
                        "bytesReadPerSec": 2048,
                        "bytesWrittenPerSec": 0,
                    }
                ],
            }
        ],
        "groupStats": [],
        "fstLimitsUpdateThreadLoopStats": {
            "meanElapsedTimeMicroSec": "1500",
            "minElapsedTimeMicroSec": "200",
            "maxElapsedTimeMicroSec": "3000",
        },
    }
