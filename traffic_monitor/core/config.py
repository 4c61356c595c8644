import json
from typing import Annotated, Optional

from pydantic import field_validator
from pydantic_settings import NoDecode, SettingsConfigDict

from shared.config import BaseServiceConfig
from traffic_monitor.domain.models import SnapshotRequest
from traffic_monitor.domain.taxonomy import EntityKind, EstimatorWindow


def _split_list(value):
    # Env and CLI values arrive undecoded: a JSON array or "a,b,c".
    if not isinstance(value, str):
        return value
    value = value.strip()
    if value.startswith("["):
        return json.loads(value)
    return [p.strip() for p in value.split(",") if p.strip()]


class Settings(BaseServiceConfig):
    model_config = SettingsConfigDict(cli_kebab_case=True, cli_implicit_flags=True)

    # Upstream stream
    source_host: str = "localhost"
    source_port: int = 50051
    source_scheme: str = "http"
    source_path: str = "/v1/traffic-shaping/rate"
    source_connect_timeout_seconds: float = 5.0
    source_read_timeout_seconds: Optional[float] = None  # block until next report
    source_connect_retries: int = 5

    # Request
    top_n: int = 1000
    estimators: Annotated[list[EstimatorWindow], NoDecode] = list(EstimatorWindow)
    include_kinds: Annotated[list[EntityKind], NoDecode] = list(EntityKind)
    sort_by: EstimatorWindow = EstimatorWindow.SMA_1M

    # Export / display
    enable_iops: bool = False
    console_enabled: bool = True
    console_clear_screen: bool = True

    otel_service_name: str = "traffic-monitor"

    @field_validator("estimators", mode="before")
    @classmethod
    def _parse_windows(cls, v):
        return [EstimatorWindow.parse(w) for w in _split_list(v)]

    @field_validator("sort_by", mode="before")
    @classmethod
    def _parse_sort_by(cls, v):
        return EstimatorWindow.parse(v)

    @field_validator("include_kinds", mode="before")
    @classmethod
    def _parse_kinds(cls, v):
        return [EntityKind.parse(k) for k in _split_list(v)]

    @property
    def source_url(self) -> str:
        return f"{self.source_scheme}://{self.source_host}:{self.source_port}{self.source_path}"

    def snapshot_request(self) -> SnapshotRequest:
        return SnapshotRequest(
            estimators=tuple(self.estimators),
            include_kinds=tuple(self.include_kinds),
            top_n=self.top_n,
            sort_by=self.sort_by,
        )


settings = Settings()
