"""Seen-line records for one run."""

from __future__ import annotations

from ..models import OrderPolicy
from ..core import ENCODING, ERRORS


def byte_order(line: str) -> bytes:
    """Sort key matching the order of the raw bytes on disk."""
    return line.encode(ENCODING, ERRORS)


class SeenLines:
    """
    Membership set plus the two ordered views of it.

    - existing: lines loaded from the target file, first occurrence order
    - new: lines first seen on stdin during this run, arrival order

    Created by the runner and passed to each phase; nothing is shared
    between runs.
    """

    def __init__(self) -> None:
        self._members: set[str] = set()
        self.existing: list[str] = []
        self.new: list[str] = []

    def __contains__(self, line: str) -> bool:
        return line in self._members

    def __len__(self) -> int:
        return len(self._members)

    def add_existing(self, line: str) -> bool:
        """Record a line from the target file. Returns False for a repeat."""
        if line in self._members:
            return False
        self._members.add(line)
        self.existing.append(line)
        return True

    def add_new(self, line: str) -> bool:
        """Record a line from the input stream. Returns False for a repeat."""
        if line in self._members:
            return False
        self._members.add(line)
        self.new.append(line)
        return True

    def ordered(self, order: OrderPolicy, include_new: bool = True) -> list[str]:
        """All recorded lines in the order a rewrite should write them."""
        lines = self.existing + self.new if include_new else list(self.existing)
        if order == OrderPolicy.SORTED:
            lines.sort(key=byte_order)
        return lines
