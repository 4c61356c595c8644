from __future__ import annotations

import logging
from typing import Iterable, Optional

from shared.constants import Environment
from shared.logging.json import configure_logging as _shared_configure_logging
from shared.logging.logger import get_logger as _shared_get_logger

from .config import Settings, settings


class RedactingFilter(logging.Filter):
    def __init__(self, patterns: Iterable[str]):
        super().__init__()
        self.patterns = [p.lower() for p in patterns]

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        msg = record.getMessage().lower()
        if any(p in msg for p in self.patterns):
            record.msg = "[REDACTED SENSITIVE LOG CONTENT]"
            record.args = ()
        return True


_configured = False


def configure_logging(config: Optional[Settings] = None, force: bool = False):
    global _configured
    if _configured and not force:
        return
    config = config or settings
    _shared_configure_logging(
        service=config.otel_service_name,
        level=config.app_log_level,
        environment=config.app_environment,
        redaction_patterns=config.app_log_redaction_patterns,
        json_output=Environment.wants_json_logs(config.app_environment),
    )
    # Attach redaction filter at root so it applies to all handlers
    root = logging.getLogger()
    for h in root.handlers:
        h.addFilter(RedactingFilter(config.app_log_redaction_patterns))
    _configured = True


def get_logger(name: str) -> logging.Logger:
    return _shared_get_logger(name)
