"""Line-file I/O utilities with consistent encoding and newline handling.

All text goes through UTF-8 with the ``surrogateescape`` error handler, so
bytes that are not valid UTF-8 survive a read/write round trip unchanged.
Only ``\\n`` terminates a line; ``\\r`` is left for the caller to deal with.
"""

import io
import os
import stat
import tempfile
import time
from pathlib import Path
from typing import Iterable, Iterator, Optional, TextIO, Union

ENCODING = "utf-8"
ERRORS = "surrogateescape"
NEWLINE = "\n"

PathLike = Union[str, Path]


def reconfigure_stream(stream: TextIO) -> TextIO:
    """Switch a standard stream (stdin/stdout) to line-file encoding, when supported."""
    if isinstance(stream, io.TextIOWrapper):
        stream.reconfigure(encoding=ENCODING, errors=ERRORS, newline=NEWLINE)
    return stream


def open_lines(path: PathLike) -> TextIO:
    """Open a line file for reading."""
    return open(path, "r", encoding=ENCODING, errors=ERRORS, newline=NEWLINE)


def read_lines(path: PathLike) -> Iterator[str]:
    """Yield raw lines of a file, terminators included."""
    with open_lines(path) as f:
        yield from f


def create_empty(path: PathLike) -> None:
    """Create `path` as an empty file if it is missing. Parents are not created."""
    with open(path, "a", encoding=ENCODING):
        pass


def write_lines_atomic(path: PathLike, lines: Iterable[str]) -> int:
    """
    Replace the contents of `path` with `lines`, one per line.

    The data goes to a temporary file in the same directory which is then
    renamed over `path`, so an interrupted write never leaves a truncated
    target behind. Permission bits of an existing target are kept.

    Args:
        path: Target file
        lines: Line records without terminators

    Returns:
        Number of lines written
    """
    path = Path(path)
    fd, tmp_path = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    count = 0
    try:
        with os.fdopen(fd, "w", encoding=ENCODING, errors=ERRORS, newline=NEWLINE) as tmp:
            for line in lines:
                tmp.write(line + NEWLINE)
                count += 1
            tmp.flush()
            os.fsync(tmp.fileno())

        try:
            mode = stat.S_IMODE(os.stat(path).st_mode)
        except FileNotFoundError:
            mode = 0o644
        os.chmod(tmp_path, mode)

        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass
        raise

    return count


def _ends_without_newline(path: Path) -> bool:
    """True if `path` is non-empty and its last byte is not a newline."""
    try:
        size = path.stat().st_size
    except FileNotFoundError:
        return False
    if size == 0:
        return False
    with open(path, "rb") as f:
        f.seek(-1, os.SEEK_END)
        return f.read(1) != b"\n"


def open_append(path: PathLike) -> TextIO:
    """
    Open `path` for appending line records, creating it if absent.

    If the file's last line is unterminated a newline is written first so
    the next record starts on its own line.
    """
    path = Path(path)
    needs_newline = _ends_without_newline(path)
    f = open(path, "a", encoding=ENCODING, errors=ERRORS, newline=NEWLINE)
    if needs_newline:
        f.write(NEWLINE)
    return f


def append_lines(path: PathLike, lines: Iterable[str]) -> int:
    """Append `lines` to `path` in order. Returns the number written."""
    count = 0
    with open_append(path) as f:
        for line in lines:
            f.write(line + NEWLINE)
            count += 1
    return count


def get_mtime_ns(path: PathLike) -> int:
    """Modification time of `path` in nanoseconds."""
    return os.stat(path).st_mtime_ns


def set_mtime_ns(path: PathLike, mtime_ns: int, atime_ns: Optional[int] = None) -> None:
    """Set the modification time of `path`; access time defaults to now."""
    if atime_ns is None:
        atime_ns = time.time_ns()
    os.utime(path, ns=(atime_ns, mtime_ns))
