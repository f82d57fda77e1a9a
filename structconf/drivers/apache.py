"""
Driver for Apache style bracketed block files.

    # Virtual hosts
    <VirtualHost 127.0.0.1:80>
      DocumentRoot /var/www
      ServerAlias www.example.org \\
                  example.org
      <Location /admin>
        Require group admin
      </Location>
    </VirtualHost>

Section arguments become attributes keyed "0", "1", ... in order.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from ..const import APACHE
from ..container import ConfigNode, NodeKind
from ..logging import get_logger
from ..scanning import LineScanner
from .base import Driver, DriverOptions, ParseError

logger = get_logger("drivers.apache")

COMMENT_RE = re.compile(r"^\s*#+\s*(.*?)\s*$")
DIRECTIVE_RE = re.compile(r"^\s*(\w+)(?:\s+(.*?)|)\s*$")
SECTION_OPEN_RE = re.compile(r"^\s*<(\w+)(?:\s+([^>]*)|\s*)>\s*$")
SECTION_CLOSE_RE = re.compile(r"^\s*</(\w+)\s*>\s*$")


@dataclass(frozen=True)
class ApacheOptions(DriverOptions):
    indent: str = "  "
    # Reject sections still open at end of input
    strict: bool = False


class ApacheDriver(Driver):
    """Bracketed block files with space separated directives."""

    name = APACHE
    options_class = ApacheOptions

    def parse_string(self, text: str, root: ConfigNode, source_id: str = "<string>") -> None:
        scanner = LineScanner(comment="#", continuation="\\", joiner=" ")
        sections = [root]
        last_line = 0

        for logical in scanner.scan(text.splitlines()):
            line = logical.text
            last_line = logical.line
            current = sections[-1]

            if match := COMMENT_RE.match(line):
                current.create_comment(match.group(1))
            elif not line.strip():
                current.create_blank()
            elif match := DIRECTIVE_RE.match(line):
                current.create_directive(match.group(1), match.group(2) or "")
            elif match := SECTION_OPEN_RE.match(line):
                arguments = (match.group(2) or "").split()
                attributes = {str(i): value for i, value in enumerate(arguments)}
                sections.append(current.create_section(match.group(1), attributes or None))
            elif match := SECTION_CLOSE_RE.match(line):
                if len(sections) == 1 or current.name != match.group(1):
                    raise ParseError(
                        f"Section not closed: expected </{current.name}>, got </{match.group(1)}>",
                        source_id,
                        logical.line,
                    )
                sections.pop()
            else:
                raise ParseError("Syntax error", source_id, logical.line)

        if len(sections) > 1:
            unclosed = ", ".join(section.name for section in sections[1:])
            if self.options.strict:
                raise ParseError(f"Unclosed section(s) at end of input: {unclosed}", source_id, last_line)
            logger.warning(f"{source_id}: unclosed section(s) at end of input: {unclosed}")

    def _initial_state(self, node: ConfigNode) -> int:
        return 0

    def _renderers(self) -> dict[NodeKind, Callable[[ConfigNode, Any], str]]:
        return {
            NodeKind.BLANK: lambda node, depth: "\n",
            NodeKind.COMMENT: self._render_comment,
            NodeKind.DIRECTIVE: self._render_directive,
            NodeKind.SECTION: self._render_section,
        }

    def _indent(self, depth: int) -> str:
        return self.options.indent * depth

    def _render_comment(self, node: ConfigNode, depth: int) -> str:
        return f"{self._indent(depth)}# {node.content}\n"

    def _render_directive(self, node: ConfigNode, depth: int) -> str:
        if node.content:
            return f"{self._indent(depth)}{node.name} {node.content}\n"
        return f"{self._indent(depth)}{node.name}\n"

    def _render_section(self, node: ConfigNode, depth: int) -> str:
        if node.is_root():
            return self._render_children(node, depth)

        indent = self._indent(depth)
        arguments = "".join(f" {value}" for value in (node.attributes or {}).values())
        body = self._render_children(node, depth + 1)
        return f"{indent}<{node.name}{arguments}>\n{body}{indent}</{node.name}>\n"
