"""
Driver for XML configuration files.

Parsing is delegated to xml.etree's pull parser. Elements with child
elements become sections, leaf elements become directives holding their
stripped text, element attributes become node attributes and comments are
kept as comment nodes.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any
from xml.etree import ElementTree as et
from xml.sax.saxutils import escape

from ..const import XML
from ..container import ConfigNode, NodeKind
from ..logging import get_logger
from .base import Driver, DriverOptions, ParseError, read_bytes

logger = get_logger("drivers.xml")

ATTRIBUTE_ENTITIES = {'"': "&quot;", "\n": "&#10;", "\t": "&#9;"}


@dataclass(frozen=True)
class XmlOptions(DriverOptions):
    version: str = "1.0"
    encoding: str | None = "UTF-8"
    # Optional wrapper element around the rendered root
    name: str = ""
    indent: str = "  "
    linebreak: str = "\n"
    add_declaration: bool = True
    use_attributes: bool = True
    # Whether parse() receives a path (True) or XML text (False)
    is_file: bool = True
    use_cdata: bool = False


class XmlDriver(Driver):
    """XML documents."""

    name = XML
    options_class = XmlOptions

    def parse(self, source: Any, root: ConfigNode) -> None:
        if not self.options.is_file:
            self.parse_string(source, root)
            return
        self._feed(read_bytes(source), root, str(source))

    def parse_string(self, text: str, root: ConfigNode, source_id: str = "<string>") -> None:
        self._feed(text, root, source_id)

    def _feed(self, data: str | bytes, root: ConfigNode, source_id: str) -> None:
        parser = et.XMLPullParser(events=("start", "end", "comment"))
        stack = [root]

        error: et.ParseError | None = None
        events = []
        try:
            parser.feed(data)
            parser.close()
        except et.ParseError as e:
            error = e
        # Syntax errors raised by feed() are queued behind the events before them
        try:
            for item in parser.read_events():
                events.append(item)
        except et.ParseError as e:
            error = e

        for event, element in events:
            if event == "start":
                stack.append(stack[-1].create_section(element.tag, dict(element.attrib) or None))
            elif event == "comment":
                stack[-1].create_comment((element.text or "").strip())
            elif event == "end":
                node = stack.pop()
                if node.count_children() == 0:
                    node.kind = NodeKind.DIRECTIVE
                    node.content = (element.text or "").strip()

        if error is not None:
            line = error.position[0] if getattr(error, "position", None) else 0
            raise ParseError(f"Invalid XML: {error}", source_id, line) from error

        logger.debug(f"Parsed {len(events)} XML events from {source_id}")

    # Rendering

    def _renderers(self) -> dict[NodeKind, Callable[[ConfigNode, Any], str]]:
        return {
            NodeKind.COMMENT: self._render_comment,
            NodeKind.DIRECTIVE: self._render_directive,
            NodeKind.SECTION: self._render_section,
        }

    def _initial_state(self, node: ConfigNode) -> int:
        return 0

    def _indent(self, depth: int) -> str:
        return self.options.indent * depth

    def _attributes(self, node: ConfigNode) -> str:
        if not (self.options.use_attributes and node.attributes):
            return ""
        return "".join(
            f' {key}="{escape(value, ATTRIBUTE_ENTITIES)}"' for key, value in node.attributes.items()
        )

    def _text(self, content: str) -> str:
        if self.options.use_cdata:
            return "<![CDATA[" + content.replace("]]>", "]]]]><![CDATA[>") + "]]>"
        return escape(content)

    def _render_comment(self, node: ConfigNode, depth: int) -> str:
        return f"{self._indent(depth)}<!-- {node.content} -->{self.options.linebreak}"

    def _render_directive(self, node: ConfigNode, depth: int) -> str:
        start = f"{self._indent(depth)}<{node.name}{self._attributes(node)}"
        if not node.content:
            return f"{start} />{self.options.linebreak}"
        return f"{start}>{self._text(node.content)}</{node.name}>{self.options.linebreak}"

    def _render_section(self, node: ConfigNode, depth: int) -> str:
        linebreak = self.options.linebreak
        if node.is_root():
            out = ""
            if self.options.add_declaration:
                out += f'<?xml version="{self.options.version}" encoding="{self.options.encoding or "UTF-8"}"?>{linebreak}'
            if self.options.name:
                body = self._render_children(node, depth + 1)
                return f"{out}<{self.options.name}>{linebreak}{body}</{self.options.name}>{linebreak}"
            return out + self._render_children(node, depth)

        indent = self._indent(depth)
        start = f"{indent}<{node.name}{self._attributes(node)}"
        if not node.count_children():
            return f"{start}/>{linebreak}"
        body = self._render_children(node, depth + 1)
        return f"{start}>{linebreak}{body}{indent}</{node.name}>{linebreak}"
