"""Real-time EOS traffic-shaping monitor and Prometheus re-exporter."""

__version__ = "0.1.0"
