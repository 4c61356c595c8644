"""Console rendering of a Snapshot.

One titled table per non-empty entity kind, redrawn in full on every
snapshot. Rendering is pure; ``present`` does the I/O.
"""

from __future__ import annotations

import sys
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence, TextIO

from traffic_monitor.domain.models import Snapshot
from traffic_monitor.domain.taxonomy import EntityKind, LoopName

CLEAR_SCREEN = "\033[H\033[2J"
COLUMN_SEPARATOR = " | "
_BYTE_UNITS = ("B", "KB", "MB", "GB", "TB")


def humanize_bytes(value: float) -> str:
    i = 0
    while value >= 1024 and i < len(_BYTE_UNITS) - 1:
        value /= 1024
        i += 1
    return f"{value:.2f} {_BYTE_UNITS[i]}"


def format_iops(value: Optional[float]) -> str:
    if value is None:
        return "-"
    return f"{value:.2f}"


def format_micros(micros: int) -> str:
    """Render a microsecond duration the way Go's time.Duration prints it."""
    if micros < 1000:
        return f"{micros}µs"
    if micros < 1_000_000:
        return f"{_trim(micros / 1000, 3)}ms"
    hours, rest = divmod(micros, 3_600_000_000)
    minutes, rest = divmod(rest, 60_000_000)
    seconds = f"{_trim(rest / 1_000_000, 6)}s"
    if hours:
        return f"{hours}h{minutes}m{seconds}"
    if minutes:
        return f"{minutes}m{seconds}"
    return seconds


def _trim(value: float, places: int) -> str:
    return f"{value:.{places}f}".rstrip("0").rstrip(".") or "0"


def format_timestamp(timestamp_ms: int) -> str:
    dt = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
    return dt.replace(microsecond=0).isoformat().replace("+00:00", "Z")


def align_columns(rows: Sequence[Sequence[str]], sep: str = COLUMN_SEPARATOR) -> List[str]:
    """Pad every column but the last to its widest cell."""
    if not rows:
        return []
    widths = [max(len(r[i]) for r in rows) for i in range(len(rows[0]))]
    lines = []
    for row in rows:
        cells = [cell.ljust(widths[i]) for i, cell in enumerate(row[:-1])]
        cells.append(row[-1])
        lines.append(sep.join(cells))
    return lines


class ConsolePresenter:
    def __init__(
        self,
        stream: Optional[TextIO] = None,
        clear_screen: bool = True,
        show_iops: bool = False,
        kinds: Iterable[EntityKind] = tuple(EntityKind),
    ):
        self.stream = stream
        self.clear_screen = clear_screen
        self.show_iops = show_iops
        self.kinds = tuple(kinds)

    def present(self, snapshot: Snapshot) -> None:
        out = self.stream or sys.stdout
        out.write(self.render(snapshot))
        out.flush()

    def render(self, snapshot: Snapshot) -> str:
        lines = []
        lines.append(
            f"EOS IO Monitor | Last Update: {format_timestamp(snapshot.timestamp_ms)}"
        )
        lines.append("")
        for loop in LoopName:
            stats = snapshot.loop_stats.get(loop)
            if stats is None:
                continue
            lines.append(
                f"{loop.heading} | Mean: {format_micros(stats.mean_micros)}"
                f" | Min: {format_micros(stats.min_micros)}"
                f" | Max: {format_micros(stats.max_micros)}"
            )
        if snapshot.loop_stats:
            lines.append("")
        for kind in self.kinds:
            lines.extend(self.render_table(snapshot, kind))
        text = "\n".join(lines) + "\n"
        return CLEAR_SCREEN + text if self.clear_screen else text

    def render_table(self, snapshot: Snapshot, kind: EntityKind) -> List[str]:
        entities = snapshot.ranked(kind)
        if not entities:
            return []
        header = [kind.id_header, "Window", "Read/s", "Write/s"]
        if self.show_iops:
            header += ["ROps/s", "WOps/s"]
        rows = [header]
        for entity in entities:
            for s in entity.samples:
                row = [
                    entity.identifier,
                    s.window.label,
                    humanize_bytes(s.bytes_read_per_sec),
                    humanize_bytes(s.bytes_written_per_sec),
                ]
                if self.show_iops:
                    row += [format_iops(s.ops_read_per_sec), format_iops(s.ops_write_per_sec)]
                rows.append(row)
        return [f"--- {kind.heading} ---", *align_columns(rows), ""]
