"""Core utilities for anew."""

from .io import (
    ENCODING,
    ERRORS,
    NEWLINE,
    append_lines,
    create_empty,
    get_mtime_ns,
    open_append,
    open_lines,
    read_lines,
    reconfigure_stream,
    set_mtime_ns,
    write_lines_atomic,
)

__all__ = [
    # Encoding
    "ENCODING",
    "ERRORS",
    "NEWLINE",
    # Streams
    "reconfigure_stream",
    "open_lines",
    "read_lines",
    # Mutation
    "create_empty",
    "write_lines_atomic",
    "open_append",
    "append_lines",
    # Timestamps
    "get_mtime_ns",
    "set_mtime_ns",
]
