"""
Driver for INI files that keeps only sections and directives.

Comments and blank lines are dropped on parse. Values follow the usual INI
conventions:

    [db]
    host = "db.example.org"   ; quotes removed
    debug = on                ; on/true/yes -> "1", off/false/no/none -> ""
    hosts = a, b, c           ; three "hosts" directives

Directives sharing a name are written back as one comma separated line.
"""

import re
from collections import Counter
from collections.abc import Callable, Collection
from dataclasses import dataclass, field
from typing import Any

from ..const import INI
from ..container import ConfigNode, NodeKind
from ..logging import get_logger
from ..scanning import InvalidIniSyntax, SegmentKind, tokenize_value
from .base import Driver, DriverOptions, ParseError

logger = get_logger("drivers.ini")

BLANK_OR_COMMENT_RE = re.compile(r"^\s*(?:[;#].*)?$")
SECTION_RE = re.compile(r"^\s*\[\s*([^\]]*?)\s*\]\s*(?:[;#].*)?$")
DIRECTIVE_RE = re.compile(r"^\s*([^=\[\];#]+?)\s*=\s*(.*?)\s*$")
QUOTED_RE = re.compile(r'^"((?:[^"\\]|\\.)*)"\s*(?:;.*)?$')
LIST_SPLIT_RE = re.compile(r"\s*,\s+")
ESCAPE_RE = re.compile(r"\\(.)")

TRUE_WORDS = {"on", "true", "yes"}
FALSE_WORDS = {"off", "false", "no", "none", "null"}
# Bare words a parser would turn into "1" or ""
FOLDED_WORDS = TRUE_WORDS | FALSE_WORDS

# Characters that force a value to be quoted on render
SPECIAL_CHARS = set(',;="%~!|&()')


def quote_content(content: str, folded: Collection[str] = FOLDED_WORDS) -> str:
    """
    Quote a value if it would not survive an INI round trip bare.

    Args:
        content: Directive value
        folded: Lower-case words the reading parser folds to booleans
    """
    needs_quotes = (
        content.lower() in folded
        or any(char in SPECIAL_CHARS for char in content)
        or content.strip() != content
    )
    if not needs_quotes:
        return content
    escaped = content.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


@dataclass
class _JoinState:
    """Comma join accumulator for the children of one section."""

    counts: Counter
    pending: dict[str, list[str]] = field(default_factory=dict)


@dataclass(frozen=True)
class IniFileOptions(DriverOptions):
    linebreak: str = "\n"


class IniFileDriver(Driver):
    """INI files without comments."""

    name = INI
    options_class = IniFileOptions

    # Text between name and value on render
    separator = "="
    # Bare words parse_string() folds, quoted on render
    folded_words: Collection[str] = FOLDED_WORDS

    def parse_string(self, text: str, root: ConfigNode, source_id: str = "<string>") -> None:
        current = root

        for number, line in enumerate(text.splitlines(), start=1):
            if BLANK_OR_COMMENT_RE.match(line):
                continue

            if match := SECTION_RE.match(line):
                name = match.group(1)
                # Repeated headers continue the same section
                current = root.get_item(NodeKind.SECTION, name) or root.create_section(name)
            elif match := DIRECTIVE_RE.match(line):
                name = match.group(1)
                values = self._parse_value(match.group(2), source_id, number)
                # A repeated key replaces the earlier assignment
                while (previous := current.get_item(NodeKind.DIRECTIVE, name)) is not None:
                    previous.remove_item()
                for value in values:
                    current.create_directive(name, value)
            else:
                raise ParseError("Syntax error", source_id, number)

        logger.debug(f"Parsed {root.count_children()} top-level items from {source_id}")

    def _parse_value(self, raw: str, source_id: str, number: int) -> list[str]:
        if raw.startswith('"'):
            match = QUOTED_RE.match(raw)
            if match is not None:
                return [ESCAPE_RE.sub(r"\1", match.group(1))]
        if '"' in raw.split(";", 1)[0]:
            # Quoted items inside a list
            try:
                segments = tokenize_value(raw)
            except InvalidIniSyntax as e:
                raise ParseError(f"Malformed quoted value: {raw}", source_id, number) from e
            return [s.text for s in segments if s.kind == SegmentKind.VALUE]

        value = raw.split(";", 1)[0].strip()
        if value.lower() in TRUE_WORDS:
            return ["1"]
        if value.lower() in FALSE_WORDS:
            return [""]
        return LIST_SPLIT_RE.split(value)

    # Rendering

    def _renderers(self) -> dict[NodeKind, Callable[[ConfigNode, Any], str]]:
        return {
            NodeKind.BLANK: lambda node, state: self.options.linebreak,
            NodeKind.COMMENT: lambda node, state: f";{node.content}{self.options.linebreak}",
            NodeKind.DIRECTIVE: self._render_directive,
            NodeKind.SECTION: self._render_section,
        }

    def _directive_line(self, name: str, value: str) -> str:
        return f"{name}{self.separator}{value}{self.options.linebreak}"

    def _render_directive(self, node: ConfigNode, state: _JoinState | None) -> str:
        content = quote_content(node.content, self.folded_words)

        if state is None or state.counts[node.name] < 2:
            return self._directive_line(node.name, content)

        values = state.pending.setdefault(node.name, [])
        values.append(content)
        if len(values) < state.counts[node.name]:
            return ""
        # Last occurrence writes the joined line
        del state.pending[node.name]
        return self._directive_line(node.name, ", ".join(values))

    def _render_section(self, node: ConfigNode, state: Any) -> str:
        header = "" if node.is_root() else f"[{node.name}]{self.options.linebreak}"
        counts = Counter(
            child.name for child in node.children if child.kind == NodeKind.DIRECTIVE
        )
        return header + self._render_children(node, _JoinState(counts))
