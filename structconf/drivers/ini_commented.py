"""
Driver for INI files that preserves comments and blank lines.

Directive values go through the ValueTokenizer, so

    mydirective = "Item, number \\"1\\"", Item 2 ; "This" is really tricky

becomes two "mydirective" directives followed by a comment node.
"""

import re
from dataclasses import dataclass

from ..const import INI_COMMENTED
from ..container import ConfigNode
from ..logging import get_logger
from ..scanning import BOOLEAN_FOLDS, InvalidIniSyntax, SegmentKind, ValueTokenizer
from .base import ParseError
from .ini import IniFileDriver, IniFileOptions

logger = get_logger("drivers.ini_commented")

COMMENT_RE = re.compile(r"^\s*;(.*?)\s*$")
BLANK_RE = re.compile(r"^\s*$")
DIRECTIVE_RE = re.compile(r"^\s*([a-zA-Z0-9_\-.\s:]*)\s*=\s*(.*)\s*$")
SECTION_RE = re.compile(r"^\s*\[\s*(.*?)\s*]\s*$")


@dataclass(frozen=True)
class IniCommentedOptions(IniFileOptions):
    pass


class IniCommentedDriver(IniFileDriver):
    """INI files with comments and blank lines kept in the tree."""

    name = INI_COMMENTED
    options_class = IniCommentedOptions

    separator = " = "
    folded_words = frozenset(BOOLEAN_FOLDS)

    def __init__(self, options=None, **overrides):
        super().__init__(options, **overrides)
        self._tokenizer = ValueTokenizer()

    def parse_string(self, text: str, root: ConfigNode, source_id: str = "<string>") -> None:
        current = root
        count = 0

        for number, line in enumerate(text.splitlines(), start=1):
            count += 1

            if match := COMMENT_RE.match(line):
                current.create_comment(match.group(1))
            elif BLANK_RE.match(line):
                current.create_blank()
            elif match := DIRECTIVE_RE.match(line):
                name = match.group(1).strip()
                try:
                    segments = self._tokenizer.tokenize(match.group(2))
                except InvalidIniSyntax as e:
                    raise ParseError(str(e), source_id, number) from e

                for segment in segments:
                    if segment.kind == SegmentKind.VALUE:
                        current.create_directive(name, segment.text)
                    else:
                        current.create_comment(segment.text[1:])
            elif match := SECTION_RE.match(line):
                current = root.create_section(match.group(1))
            else:
                raise ParseError("Syntax error", source_id, number)

        logger.debug(f"Parsed {count} lines from {source_id}")
