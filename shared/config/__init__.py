"""Shared configuration base classes.

Provides the configuration patterns every monitor service needs (logging and
metrics exposition) so service settings only declare what is specific to them.
"""

from pydantic_settings import BaseSettings


class BaseLoggingConfig(BaseSettings):
    """Common logging configuration for all services."""

    app_log_level: str = "INFO"
    app_log_redaction_patterns: list[str] = [
        "password",
        "token",
        "secret",
        "authorization",
        "cookie",
    ]
    app_environment: str = "production"


class BaseMetricsConfig(BaseSettings):
    """Common Prometheus exposition configuration."""

    metrics_enabled: bool = True
    metrics_port: int = 9987
    metrics_addr: str = "0.0.0.0"


class BaseServiceConfig(BaseLoggingConfig, BaseMetricsConfig):
    """Base configuration combining logging and metrics settings.

    Services should inherit from this and add their own specific settings.
    The otel_service_name should be overridden by each service.
    """

    otel_service_name: str = "unknown"  # Should be overridden by service


__all__ = ["BaseLoggingConfig", "BaseMetricsConfig", "BaseServiceConfig"]
