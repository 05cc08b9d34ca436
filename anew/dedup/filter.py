"""Stream processor: pass through lines not seen before."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, TextIO

from ..core import NEWLINE
from ..models import FilterOptions
from .normalize import normalize_line
from .seen import SeenLines
from .store import AppendSink, TargetFileError

logger = logging.getLogger(__name__)


@dataclass
class FilterStats:
    """Stream processor statistics."""

    read: int = 0
    blank: int = 0
    duplicate: int = 0
    new: int = 0
    limit_reached: bool = False


def filter_stream(
    lines: Iterable[str],
    seen: SeenLines,
    options: FilterOptions,
    out: Optional[TextIO] = None,
    sink: Optional[TextIO | AppendSink] = None,
) -> FilterStats:
    """
    Filter out lines already in `seen`, recording the rest.

    Each accepted line is echoed to `out` (unless quiet) and written to
    `sink` (immediate append mode) as soon as it is accepted; both are
    flushed per line so downstream readers see it without delay.

    Args:
        lines: Raw input lines, terminators included
        seen: Record set shared with the loader; extended in place
        options: Run flags (trim, quiet, max_lines)
        out: Echo stream (usually stdout)
        sink: Append stream for the target file, or None to batch

    Returns:
        FilterStats for the pass
    """
    stats = FilterStats()

    for raw in lines:
        stats.read += 1
        line = normalize_line(raw, options.trim)

        if not line:
            stats.blank += 1
            continue

        if not seen.add_new(line):
            stats.duplicate += 1
            continue

        if out is not None and not options.quiet:
            out.write(line + NEWLINE)
            out.flush()

        if sink is not None:
            try:
                sink.write(line + NEWLINE)
                sink.flush()
            except OSError as e:
                raise TargetFileError("append to", Path(getattr(sink, "name", "")), e) from e

        stats.new += 1
        if options.limit_reached(stats.new):
            stats.limit_reached = True
            logger.info(f"Line limit {options.max_lines} reached, ignoring remaining input")
            break

    logger.info(
        f"Read {stats.read} lines: {stats.new} new, "
        f"{stats.duplicate} duplicate, {stats.blank} blank"
    )
    return stats
