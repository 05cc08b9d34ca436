"""Target file management: load, rewrite, append, mtime restore."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, TextIO

from ..core import (
    append_lines,
    create_empty,
    get_mtime_ns,
    open_append,
    read_lines,
    set_mtime_ns,
    write_lines_atomic,
)
from .normalize import normalize_line
from .seen import SeenLines

logger = logging.getLogger(__name__)


class TargetFileError(Exception):
    """An I/O step on the target file failed."""

    def __init__(self, step: str, path: Path, cause: OSError):
        self.step = step
        self.path = path
        self.cause = cause
        super().__init__(f"failed to {step} {path}: {cause.strerror or cause}")


@dataclass
class TargetFile:
    """State of the target file across one run."""

    path: Path
    existed: bool = False
    original_mtime_ns: Optional[int] = None  # None when created by this run
    modified: bool = False


@dataclass
class LoadStats:
    """Existing-state loader statistics."""

    total: int = 0
    blank: int = 0
    duplicate: int = 0
    unique: int = 0


def load_target(path: str | Path, seen: SeenLines, trim: bool = False,
                create: bool = True) -> tuple[TargetFile, LoadStats]:
    """
    Load the target file's lines into `seen`, creating the file if missing.

    Args:
        path: Target file path
        seen: Record set to fill (existing lines)
        trim: Strip whitespace before recording
        create: Create a missing file (off for dry runs)

    Returns:
        Tuple of (target, stats)

    Raises:
        TargetFileError: stat, create or read failed
    """
    target = TargetFile(path=Path(path))
    stats = LoadStats()

    try:
        target.original_mtime_ns = get_mtime_ns(target.path)
    except FileNotFoundError:
        if not create:
            return target, stats
        try:
            create_empty(target.path)
        except OSError as e:
            raise TargetFileError("create", target.path, e) from e
        logger.info(f"Created empty target file {target.path}")
        return target, stats
    except OSError as e:
        raise TargetFileError("stat", target.path, e) from e

    target.existed = True
    try:
        for raw in read_lines(target.path):
            stats.total += 1
            line = normalize_line(raw, trim)
            if not line:
                stats.blank += 1
            elif seen.add_existing(line):
                stats.unique += 1
            else:
                stats.duplicate += 1
    except OSError as e:
        raise TargetFileError("read", target.path, e) from e

    logger.info(
        f"Loaded {stats.unique} lines from {target.path} "
        f"({stats.duplicate} duplicate, {stats.blank} blank)"
    )
    return target, stats


def rewrite_target(target: TargetFile, lines: Iterable[str]) -> int:
    """
    Atomically replace the target file with `lines`.

    Raises:
        TargetFileError: the temporary file could not be written or renamed
    """
    try:
        count = write_lines_atomic(target.path, lines)
    except OSError as e:
        raise TargetFileError("rewrite", target.path, e) from e
    target.modified = True
    logger.info(f"Rewrote {target.path} with {count} unique lines")
    return count


def append_to_target(target: TargetFile, lines: list[str]) -> int:
    """
    Append new lines to the target file in arrival order.

    Raises:
        TargetFileError: the file could not be opened or written
    """
    if not lines:
        return 0
    try:
        count = append_lines(target.path, lines)
    except OSError as e:
        raise TargetFileError("append to", target.path, e) from e
    target.modified = True
    logger.info(f"Appended {count} new lines to {target.path}")
    return count


def open_target_for_append(target: TargetFile) -> TextIO:
    """Open the target file for per-line appending."""
    try:
        return open_append(target.path)
    except OSError as e:
        raise TargetFileError("open for appending", target.path, e) from e


def restore_mtime(target: TargetFile) -> bool:
    """
    Reset the target's mtime to the value captured at load.

    Only applies to a file that existed before the run and was modified.
    Failure is logged, not raised.

    Returns:
        True if the timestamp was restored
    """
    if not target.modified or target.original_mtime_ns is None:
        return False
    try:
        set_mtime_ns(target.path, target.original_mtime_ns)
    except OSError as e:
        logger.warning(f"failed to restore file modification time: {e}")
        return False
    logger.debug(f"Restored mtime of {target.path}")
    return True


class AppendSink:
    """
    Per-line append stream for immediate mode.

    The target is opened on the first write, so a run that accepts no new
    lines leaves the file (and a missing final newline) untouched.
    """

    def __init__(self, target: TargetFile):
        self.target = target
        self.name = str(target.path)
        self.written = 0
        self._file: Optional[TextIO] = None

    def write(self, text: str) -> int:
        if self._file is None:
            self._file = open_target_for_append(self.target)
            self.target.modified = True
        try:
            n = self._file.write(text)
        except OSError as e:
            raise TargetFileError("append to", self.target.path, e) from e
        self.written += 1
        return n

    def flush(self) -> None:
        if self._file is None:
            return
        try:
            self._file.flush()
        except OSError as e:
            raise TargetFileError("append to", self.target.path, e) from e

    def close(self) -> None:
        if self._file is None:
            return
        f, self._file = self._file, None
        try:
            f.close()
        except OSError as e:
            raise TargetFileError("append to", self.target.path, e) from e
        logger.info(f"Appended {self.written} new lines to {self.target.path}")

    def __enter__(self) -> "AppendSink":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
