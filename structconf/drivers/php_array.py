"""
Driver for PHP configuration arrays, such as the ones used by Horde.

Parses either an in-memory mapping (nested dicts/lists) or a PHP file made
of assignment statements, and renders assignment statements:

    $conf['storage']['driver'] = 'sql';
    $conf['menu']['apps'][0] = 'imp';
    $conf['menu']['apps'][1] = 'turbo';
    $conf['fields']['username']['#'] = 'USERNAME';
    $conf['fields']['username']['@']['type'] = 'varchar';

Keys "#" and "@" hold a directive's content and a node's attributes.
Lists (arrays with only numeric keys) fan out into repeated sections or
directives of the same name.
"""

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..const import PHP_ARRAY
from ..container import ConfigNode, NodeKind
from ..logging import get_logger
from .base import Driver, DriverOptions, ParseError, read_source, write_bytes

logger = get_logger("drivers.php_array")

_KEY = r"""\[\s*(?:'(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*"|-?\d+)\s*\]"""
STATEMENT_RE = re.compile(rf"^\s*\$(\w+)\s*((?:{_KEY}\s*)+)=\s*(.+?)\s*;\s*$")
KEY_RE = re.compile(r"""\[\s*(?:'((?:[^'\\]|\\.)*)'|"((?:[^"\\]|\\.)*)"|(-?\d+))\s*\]""")
INIT_RE = re.compile(r"^\s*\$(\w+)\s*=\s*(?:array\(\s*\)|\[\s*\])\s*;\s*$")
SKIP_RE = re.compile(r"^\s*(?:<\?php|\?>|//.*|#.*|/\*.*|\*.*)?\s*$")
SINGLE_QUOTED_RE = re.compile(r"^'((?:[^'\\]|\\.)*)'$")
DOUBLE_QUOTED_RE = re.compile(r'^"((?:[^"\\]|\\.)*)"$')
NUMBER_RE = re.compile(r"^-?\d+(?:\.\d+)?(?:[eE][-+]?\d+)?$")
DOUBLE_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "\\": "\\", '"': '"', "$": "$"}


@dataclass(frozen=True)
class PhpArrayOptions(DriverOptions):
    # Name of the configuration array variable
    name: str = "conf"
    use_attributes: bool = True
    # Fan out numeric-keyed arrays into repeated nodes
    duplicate_directives: bool = True


def _unescape_single(text: str) -> str:
    return re.sub(r"\\([\\'])", r"\1", text)


def _unescape_double(text: str) -> str:
    return re.sub(r"\\(.)", lambda m: DOUBLE_ESCAPES.get(m.group(1), "\\" + m.group(1)), text)


def _to_content(value: Any) -> str:
    """Convert a scalar the way PHP casts it to a string."""
    if value is True:
        return "1"
    if value is False or value is None:
        return ""
    return str(value)


def _is_numeric_key(key: Any) -> bool:
    return isinstance(key, int) or (isinstance(key, str) and key.lstrip("-").isdigit())


def _quote(text: str) -> str:
    return "'" + text.replace("\\", "\\\\").replace("'", "\\'") + "'"


class PhpArrayDriver(Driver):
    """PHP array assignment files and in-memory mappings."""

    name = PHP_ARRAY
    options_class = PhpArrayOptions

    def parse(self, source: Any, root: ConfigNode) -> None:
        if isinstance(source, Mapping):
            self.parse_array(source, root, "<mapping>")
            return
        if not source:
            raise ParseError("Datasource file path is empty")
        text = read_source(source, self.options.encoding)
        self.parse_string(text, root, str(source))

    def parse_string(self, text: str, root: ConfigNode, source_id: str = "<string>") -> None:
        data: dict[Any, Any] = {}
        found = False

        for number, line in enumerate(text.splitlines(), start=1):
            if SKIP_RE.match(line):
                continue

            if match := INIT_RE.match(line):
                found = found or match.group(1) == self.options.name
                continue

            match = STATEMENT_RE.match(line)
            if match is None:
                raise ParseError("Syntax error", source_id, number)
            if match.group(1) != self.options.name:
                continue

            found = True
            keys = [self._key(key_match) for key_match in KEY_RE.finditer(match.group(2))]
            value = self._literal(match.group(3), source_id, number)

            target = data
            for key in keys[:-1]:
                target = target.setdefault(key, {})
                if not isinstance(target, dict):
                    raise ParseError(f"Cannot use scalar ${self.options.name} entry as an array", source_id, number)
            target[keys[-1]] = value

        if not found:
            raise ParseError(f"Source does not contain a required '{self.options.name}' array", source_id)

        self.parse_array(data, root, source_id)
        logger.debug(f"Parsed ${self.options.name} with {len(data)} top-level keys from {source_id}")

    @staticmethod
    def _key(match: re.Match) -> Any:
        single, double, number = match.groups()
        if number is not None:
            return int(number)
        key = _unescape_single(single) if single is not None else _unescape_double(double)
        return int(key) if key.lstrip("-").isdigit() else key

    @staticmethod
    def _literal(text: str, source_id: str, number: int) -> Any:
        if match := SINGLE_QUOTED_RE.match(text):
            return _unescape_single(match.group(1))
        if match := DOUBLE_QUOTED_RE.match(text):
            return _unescape_double(match.group(1))
        if NUMBER_RE.match(text):
            return text
        lowered = text.lower()
        if lowered == "true":
            return True
        if lowered in ("false", "null"):
            return None if lowered == "null" else False
        raise ParseError(f"Unsupported value: {text}", source_id, number)

    def parse_array(
        self,
        array: Mapping[Any, Any],
        node: ConfigNode,
        source_id: str = "<mapping>",
    ) -> None:
        """
        Populate node from a nested mapping.

        Raises:
            ParseError: If "@" is not a mapping, or "#" is mixed with
                child entries
        """
        for key, value in array.items():
            if key == "@":
                if not isinstance(value, Mapping):
                    raise ParseError(f"Attributes of '{node.name}' must be an array", source_id)
                node.attributes = value
                continue

            if key == "#":
                if node.is_root() or node.count_children():
                    raise ParseError(f"'{node.name}' cannot hold both content and entries", source_id)
                node.kind = NodeKind.DIRECTIVE
                node.content = _to_content(value)
                continue

            if node.kind != NodeKind.SECTION:
                raise ParseError(f"'{node.name}' cannot hold both content and entries", source_id)

            if isinstance(value, (Mapping, list, tuple)):
                items = dict(enumerate(value)) if isinstance(value, (list, tuple)) else value
                if (
                    self.options.duplicate_directives
                    and items
                    and all(_is_numeric_key(k) for k in items)
                ):
                    for nested in items.values():
                        if isinstance(nested, (Mapping, list, tuple)):
                            nested_items = dict(enumerate(nested)) if isinstance(nested, (list, tuple)) else nested
                            self.parse_array(nested_items, node.create_section(str(key)), source_id)
                        else:
                            node.create_directive(str(key), _to_content(nested))
                else:
                    self.parse_array(items, node.create_section(str(key)), source_id)
            else:
                node.create_directive(str(key), _to_content(value))

    # Rendering

    def _renderers(self) -> dict[NodeKind, Callable[[ConfigNode, Any], str]]:
        return {
            NodeKind.BLANK: lambda node, state: "\n",
            NodeKind.COMMENT: lambda node, state: f"// {node.content}\n",
            NodeKind.DIRECTIVE: self._render_directive,
            NodeKind.SECTION: self._render_section,
        }

    def _path(self, node: ConfigNode) -> str:
        """Variable access expression for node, e.g. $conf['db'][1]."""
        parent = node.parent
        if parent is None:
            return "$" + (self.options.name or node.name)
        path = f"{self._path(parent)}[{_quote(node.name)}]"
        if parent.count_children(name=node.name) > 1:
            path += f"[{node.get_item_position(by_kind=False)}]"
        return path

    def _attribute_lines(self, node: ConfigNode, path: str) -> str:
        if not (self.options.use_attributes and node.attributes):
            return ""
        return "".join(
            f"{path}['@'][{_quote(key)}] = {_quote(value)};\n"
            for key, value in node.attributes.items()
        )

    def _render_directive(self, node: ConfigNode, state: Any) -> str:
        path = self._path(node)
        attributes = self._attribute_lines(node, path)
        if attributes:
            return f"{path}['#'] = {_quote(node.content)};\n{attributes}"
        return f"{path} = {_quote(node.content)};\n"

    def _render_section(self, node: ConfigNode, state: Any) -> str:
        return self._attribute_lines(node, self._path(node)) + self._render_children(node, state)

    def write(self, path: str | Path, node: ConfigNode) -> None:
        text = f"<?php\n{self.render(node)}?>"
        write_bytes(path, text.encode(self.options.encoding or "utf-8"))
        logger.debug(f"Wrote ${self.options.name} to {path}")
