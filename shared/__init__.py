"""Shared utilities and components for the monitor services."""

from .config import BaseLoggingConfig, BaseMetricsConfig, BaseServiceConfig
from .constants import Environment, MetricNames

__all__ = [
    "Environment",
    "MetricNames",
    "BaseServiceConfig",
    "BaseLoggingConfig",
    "BaseMetricsConfig",
]
