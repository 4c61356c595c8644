from .environments import Environment
from .metric_names import MetricNames

__all__ = ["Environment", "MetricNames"]
