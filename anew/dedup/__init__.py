"""Line deduplication against a persisted target file."""

from .normalize import chomp, normalize_line
from .seen import SeenLines, byte_order
from .store import (
    AppendSink,
    LoadStats,
    TargetFile,
    TargetFileError,
    append_to_target,
    load_target,
    open_target_for_append,
    restore_mtime,
    rewrite_target,
)
from .filter import FilterStats, filter_stream

__all__ = [
    "chomp",
    "normalize_line",
    "SeenLines",
    "byte_order",
    "AppendSink",
    "LoadStats",
    "TargetFile",
    "TargetFileError",
    "load_target",
    "rewrite_target",
    "append_to_target",
    "open_target_for_append",
    "restore_mtime",
    "FilterStats",
    "filter_stream",
]
