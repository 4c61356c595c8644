"""Closed enumerations shared by the wire schema, the reducer and the console."""

from __future__ import annotations

from enum import Enum


class EstimatorWindow(str, Enum):
    """Rate-smoothing method and period computed upstream.

    The member value is the stable label used in metrics and on the console.
    ``wire_name`` is the upstream enum name.
    """

    EMA_1S = "EMA_1S"
    EMA_5S = "EMA_5S"
    SMA_1S = "SMA_1S"
    SMA_5S = "SMA_5S"
    SMA_1M = "SMA_1M"
    SMA_5M = "SMA_5M"

    @property
    def label(self) -> str:
        return self.value

    @property
    def wire_name(self) -> str:
        return _WINDOW_WIRE_NAMES[self]

    @classmethod
    def parse(cls, value: str | EstimatorWindow) -> EstimatorWindow:
        """Accept a member, its label (``SMA_5S``) or its wire name (``SMA_5_SECONDS``)."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().upper()
        try:
            return cls(key)
        except ValueError:
            pass
        for window, wire in _WINDOW_WIRE_NAMES.items():
            if wire == key:
                return window
        raise ValueError(f"Unknown estimator window: {value!r}")


_WINDOW_WIRE_NAMES = {
    EstimatorWindow.EMA_1S: "EMA_1_SECONDS",
    EstimatorWindow.EMA_5S: "EMA_5_SECONDS",
    EstimatorWindow.SMA_1S: "SMA_1_SECONDS",
    EstimatorWindow.SMA_5S: "SMA_5_SECONDS",
    EstimatorWindow.SMA_1M: "SMA_1_MINUTES",
    EstimatorWindow.SMA_5M: "SMA_5_MINUTES",
}


class EntityKind(str, Enum):
    """Category of ranked entity; value is the ``entity_type`` metric label."""

    APP = "app"
    USER = "user"
    GROUP = "group"

    @property
    def wire_name(self) -> str:
        return _KIND_WIRE_NAMES[self]

    @property
    def heading(self) -> str:
        return _KIND_HEADINGS[self]

    @property
    def id_header(self) -> str:
        return _KIND_ID_HEADERS[self]

    @classmethod
    def parse(cls, value: str | EntityKind) -> EntityKind:
        if isinstance(value, cls):
            return value
        key = str(value).strip()
        try:
            return cls(key.lower())
        except ValueError:
            pass
        for kind, wire in _KIND_WIRE_NAMES.items():
            if wire == key.upper():
                return kind
        raise ValueError(f"Unknown entity kind: {value!r}")


_KIND_WIRE_NAMES = {
    EntityKind.APP: "ENTITY_APP",
    EntityKind.USER: "ENTITY_UID",
    EntityKind.GROUP: "ENTITY_GID",
}
_KIND_HEADINGS = {
    EntityKind.APP: "Top Applications",
    EntityKind.USER: "Top Users",
    EntityKind.GROUP: "Top Groups",
}
_KIND_ID_HEADERS = {
    EntityKind.APP: "App",
    EntityKind.USER: "UID",
    EntityKind.GROUP: "GID",
}


class LoopName(str, Enum):
    """Upstream internal thread loops that report elapsed-time stats."""

    FST_LIMITS = "fst_limits"
    ESTIMATORS = "estimators"

    @property
    def heading(self) -> str:
        return "FST Limits Update" if self is LoopName.FST_LIMITS else "Estimators Update"


class LoopStat(str, Enum):
    MEAN = "mean"
    MIN = "min"
    MAX = "max"
