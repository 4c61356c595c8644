"""Upstream TrafficShapingRate report as delivered by the JSON gateway.

Field names follow the protobuf JSON mapping (lowerCamelCase); snake_case
names are accepted as well. int64 fields may arrive as strings.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )


class RateStats(_WireModel):
    window: str = Field(..., description="Estimator enum name, e.g. SMA_5_SECONDS")
    bytes_read_per_sec: float = 0.0
    bytes_written_per_sec: float = 0.0
    ops_read_per_sec: Optional[float] = None
    ops_write_per_sec: Optional[float] = None


class AppRateEntry(_WireModel):
    app_name: str
    stats: list[RateStats] = Field(default_factory=list)


class UserRateEntry(_WireModel):
    uid: int = Field(..., ge=0)
    stats: list[RateStats] = Field(default_factory=list)


class GroupRateEntry(_WireModel):
    gid: int = Field(..., ge=0)
    stats: list[RateStats] = Field(default_factory=list)


class ThreadLoopStats(_WireModel):
    mean_elapsed_time_micro_sec: int = 0
    min_elapsed_time_micro_sec: int = 0
    max_elapsed_time_micro_sec: int = 0


class TrafficShapingRateReport(_WireModel):
    timestamp_ms: int
    app_stats: list[AppRateEntry] = Field(default_factory=list)
    user_stats: list[UserRateEntry] = Field(default_factory=list)
    group_stats: list[GroupRateEntry] = Field(default_factory=list)
    fst_limits_update_thread_loop_stats: Optional[ThreadLoopStats] = None
    estimators_update_thread_loop_stats: Optional[ThreadLoopStats] = None
