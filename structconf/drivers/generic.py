"""
Driver for generic line-oriented "key: value" files.

Comment marker, separator and continuation marker are all options:

    # database settings
    host: localhost
    aliases: one two \\
        three
"""

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from ..const import GENERIC
from ..container import ConfigNode, NodeKind
from ..logging import get_logger
from ..scanning import LineScanner
from .base import Driver, DriverOptions, ParseError

logger = get_logger("drivers.generic")


@dataclass(frozen=True)
class GenericOptions(DriverOptions):
    comment: str = "#"
    equals: str = ":"
    newline: str = "\\"  # continuation marker


class GenericDriver(Driver):
    """Line-oriented key/value files without sections."""

    name = GENERIC
    options_class = GenericOptions

    def __init__(self, options=None, **overrides):
        super().__init__(options, **overrides)
        comment = re.escape(self.options.comment)
        equals = re.escape(self.options.equals)
        self._comment_re = re.compile(rf"^\s*(?:{comment})+\s*(.*?)\s*$")
        self._directive_re = re.compile(rf"^\s*([\w-]+)\s*{equals}\s*(.*?)\s*$")

    def parse_string(self, text: str, root: ConfigNode, source_id: str = "<string>") -> None:
        scanner = LineScanner(self.options.comment, self.options.newline)
        count = 0

        for logical in scanner.scan(text.splitlines()):
            line = logical.text
            count += 1

            if match := self._comment_re.match(line):
                root.create_comment(match.group(1))
            elif not line.strip():
                root.create_blank()
            elif match := self._directive_re.match(line):
                root.create_directive(match.group(1), match.group(2))
            else:
                raise ParseError("Syntax error", source_id, logical.line)

        logger.debug(f"Parsed {count} logical lines from {source_id}")

    def _renderers(self) -> dict[NodeKind, Callable[[ConfigNode, Any], str]]:
        return {
            NodeKind.BLANK: lambda node, state: "\n",
            NodeKind.COMMENT: lambda node, state: f"{self.options.comment}{node.content}\n",
            NodeKind.DIRECTIVE: lambda node, state: f"{node.name}{self.options.equals}{node.content}\n",
            NodeKind.SECTION: self._render_children,
        }
