"""
Logical line scanner with continuation support.

Physical lines ending in a continuation marker are joined with the lines
that follow them. Comment lines are never joined, so a comment may end in
the marker without swallowing the next line.

Example (continuation "\\", joiner " "):
    ServerAlias a.example.org \\
        b.example.org
    -> LogicalLine("ServerAlias a.example.org b.example.org", 2)
"""

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass


@dataclass(frozen=True)
class LogicalLine:
    """One continuation-joined unit of input."""

    text: str
    line: int  # number of the last physical line consumed

    def __repr__(self) -> str:
        return f"LogicalLine({self.text!r}, line {self.line})"


class LineScanner:
    """
    Joins physical lines into logical lines.

    Args:
        comment: Comment marker; lines starting with it are never joined
        continuation: Marker that ends a continued line ("" disables joining)
        joiner: Text appended after each continued fragment. When set, the
            fragment is also right-stripped.
        flush_trailing: Emit a pending continuation at end of input
            instead of dropping it
    """

    def __init__(
        self,
        comment: str = "#",
        continuation: str = "\\",
        joiner: str = "",
        flush_trailing: bool = False,
    ):
        self.comment = comment
        self.continuation = continuation
        self.joiner = joiner
        self.flush_trailing = flush_trailing
        self._comment_re = re.compile(r"^\s*" + re.escape(comment)) if comment else None

    def _is_comment(self, line: str) -> bool:
        return self._comment_re is not None and self._comment_re.match(line) is not None

    def _continued_fragment(self, line: str) -> str | None:
        """Fragment of a continued line, or None if the line is not continued."""
        if not self.continuation or self._is_comment(line):
            return None
        stripped = line.rstrip()
        if not stripped.endswith(self.continuation):
            return None
        fragment = stripped[: -len(self.continuation)].lstrip()
        if self.joiner:
            fragment = fragment.rstrip() + self.joiner
        return fragment

    def scan(self, lines: Iterable[str]) -> Iterator[LogicalLine]:
        """Yield logical lines from physical lines."""
        pending = ""
        number = 0

        for number, raw in enumerate(lines, start=1):
            line = raw.rstrip("\r\n")

            fragment = self._continued_fragment(line)
            if fragment is not None:
                pending += fragment
                continue

            if pending:
                line = pending + line.strip()
                pending = ""

            yield LogicalLine(line, number)

        if pending and self.flush_trailing:
            yield LogicalLine(pending.rstrip(), number)
