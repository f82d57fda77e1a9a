"""
Driver for PHP files defining constants.

    //
    // Database
    //
    define('DB_HOST', 'localhost');
    define('DB_PORT', 3306);

A three line "//" banner opens a section; the directives and comments that
follow belong to it until the next banner. Blank lines are not kept.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..const import PHP_CONSTANTS
from ..container import ConfigNode, NodeKind
from ..logging import get_logger
from .base import Driver, DriverOptions, write_bytes

logger = get_logger("drivers.php_constants")

BANNER_EDGE_RE = re.compile(r"^\s*//\s*$")
BANNER_NAME_RE = re.compile(r"^\s*//\s*(.+?)\s*$")
COMMENT_RE = re.compile(r"^\s*(?://|#)\s*(.+?)\s*$")
DEFINE_RE = re.compile(r"""^\s*define\s*\(\s*['"](\w+)['"]\s*,\s*(.*?)\s*\)\s*;?\s*(?:(?://|#).*)?$""")
QUOTED_RE = re.compile(r"""^(['"])(.*)\1$""")
CONSTANT_NAME_RE = re.compile(r"^[A-Z_]+$")
NUMBER_RE = re.compile(r"^[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?$")

HEADER = (
    "<?php\n"
    "\n"
    "/**\n"
    " *\n"
    " * AUTOMATICALLY GENERATED CODE - DO NOT EDIT BY HAND\n"
    " *\n"
    "**/\n"
)


@dataclass(frozen=True)
class PhpConstantsOptions(DriverOptions):
    # Lower-case constant names on parse
    lowercase: bool = False


class PhpConstantsDriver(Driver):
    """PHP define() files."""

    name = PHP_CONSTANTS
    options_class = PhpConstantsOptions

    def parse_string(self, text: str, root: ConfigNode, source_id: str = "<string>") -> None:
        rows = text.split("\n")
        current = root
        skip_to = 0

        for i, line in enumerate(rows):
            if i < skip_to:
                continue

            if BANNER_EDGE_RE.match(line) and i + 2 < len(rows):
                name_match = BANNER_NAME_RE.match(rows[i + 1])
                if name_match and BANNER_EDGE_RE.match(rows[i + 2]):
                    current = root.create_section(name_match.group(1))
                    skip_to = i + 3
                    continue

            if match := COMMENT_RE.match(line):
                current.create_comment(match.group(1))
            elif match := DEFINE_RE.match(line):
                name = match.group(1)
                if self.options.lowercase:
                    name = name.lower()
                current.create_directive(name, self._value(match.group(2)))
            # Other lines (php tags, doc blocks, code) carry no configuration

        logger.debug(f"Parsed {root.count_children()} top-level items from {source_id}")

    @staticmethod
    def _value(raw: str) -> str:
        match = QUOTED_RE.match(raw)
        if match is None:
            return raw
        return re.sub(r"\\(.)", r"\1", match.group(2))

    # Rendering

    def _renderers(self) -> dict[NodeKind, Callable[[ConfigNode, Any], str]]:
        return {
            NodeKind.BLANK: lambda node, state: "\n",
            NodeKind.COMMENT: lambda node, state: f"// {node.content}\n",
            NodeKind.DIRECTIVE: self._render_directive,
            NodeKind.SECTION: self._render_section,
        }

    @staticmethod
    def _render_value(content: str) -> str:
        # Numbers, booleans and other constants stay bare
        if NUMBER_RE.match(content) or content in ("true", "false") or CONSTANT_NAME_RE.match(content):
            return content
        escaped = content.replace("\\", "\\\\").replace("'", "\\'")
        return f"'{escaped}'"

    def _render_directive(self, node: ConfigNode, state: Any) -> str:
        return f"define('{node.name.upper()}', {self._render_value(node.content)});\n"

    def _render_section(self, node: ConfigNode, state: Any) -> str:
        banner = "" if node.is_root() else f"\n//\n// {node.name}\n//\n"
        return banner + self._render_children(node, state)

    def write(self, path: str | Path, node: ConfigNode) -> None:
        text = HEADER + self.render(node) + "\n?>"
        write_bytes(path, text.encode(self.options.encoding or "utf-8"))
        logger.debug(f"Wrote constants to {path}")
