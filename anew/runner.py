"""Run the filter: load, rewrite, filter stdin, finalize."""

from __future__ import annotations

import logging
from contextlib import ExitStack
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional, TextIO

from .dedup import (
    AppendSink,
    FilterStats,
    LoadStats,
    SeenLines,
    TargetFile,
    append_to_target,
    filter_stream,
    load_target,
    restore_mtime,
    rewrite_target,
)
from .models import AppendMode, FilterOptions

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Outcome of one run."""

    seen: SeenLines
    target: Optional[TargetFile] = None
    load_stats: LoadStats = field(default_factory=LoadStats)
    filter_stats: FilterStats = field(default_factory=FilterStats)
    mtime_restored: bool = False

    @property
    def new_lines(self) -> list[str]:
        return self.seen.new


def _wants_mutation(target: Optional[TargetFile], options: FilterOptions) -> bool:
    return target is not None and not options.dry_run


def finalize(target: Optional[TargetFile], seen: SeenLines, options: FilterOptions,
             appended: bool = False) -> bool:
    """
    Persist this run's new lines and restore the target's mtime.

    Args:
        target: Loaded target file, or None without a path
        seen: Records after the stream pass
        options: Run flags
        appended: New lines already reached the file (immediate mode)

    Returns:
        True if the original mtime was restored

    Raises:
        TargetFileError: append or rewrite failed
    """
    if not _wants_mutation(target, options):
        return False

    if seen.new:
        if options.rewrite:
            rewrite_target(target, seen.ordered(options.order))
        elif not appended:
            append_to_target(target, seen.new)

    if options.restore_mtime:
        return restore_mtime(target)
    return False


def run_filter(
    path: Optional[str | Path],
    options: FilterOptions,
    stdin: Iterable[str],
    stdout: Optional[TextIO] = None,
) -> RunResult:
    """
    Deduplicate `stdin` against the target file at `path` and itself.

    Args:
        path: Target file; empty or None for stdout-only dedup
        options: Run flags
        stdin: Raw input lines
        stdout: Echo stream

    Returns:
        RunResult with the records and per-phase statistics

    Raises:
        TargetFileError: a target file step failed; load and load-time
            rewrite failures are raised before `stdin` is read
    """
    seen = SeenLines()
    result = RunResult(seen=seen)

    # 1) Existing state
    if path:
        result.target, result.load_stats = load_target(
            path, seen, trim=options.trim, create=not options.dry_run
        )
    else:
        logger.info("No target file, deduplicating stdin only")

    target = result.target
    mutate = _wants_mutation(target, options)

    # 2) Normalize the file before adding to it
    if mutate and options.rewrite and target.existed:
        rewrite_target(target, seen.ordered(options.order, include_new=False))

    # 3) Stream
    immediate = mutate and options.append_mode == AppendMode.IMMEDIATE
    with ExitStack() as stack:
        sink = stack.enter_context(AppendSink(target)) if immediate else None
        result.filter_stats = filter_stream(stdin, seen, options, out=stdout, sink=sink)

    # 4) Persist
    result.mtime_restored = finalize(target, seen, options, appended=immediate)
    return result
