"""
Quote and comma aware tokenizer for INI directive values.

Splits one raw value into segments so that values such as:

    "Item, number \\"1\\"", Item 2 ; "This" is really, really tricky

become two values and a trailing comment. The tokenizer is a small state
machine with four states:

- NORMAL:      unquoted text, separators are  "  ,  ;
- QUOTE:       inside double quotes, separators are  "  \\
- ESCAPE:      the next character is taken verbatim
- AFTER_QUOTE: only  ,  ;  or whitespace may follow a closing quote
"""

from dataclasses import dataclass
from enum import Enum, auto


class SegmentKind(Enum):
    """Segment types produced by the tokenizer."""

    VALUE = "value"
    COMMENT = "comment"


@dataclass(frozen=True)
class Segment:
    """One value or comment segment."""

    kind: SegmentKind
    text: str

    def __repr__(self) -> str:
        return f"Segment({self.kind.name}, {self.text!r})"


class InvalidIniSyntax(Exception):
    """Exception raised for malformed directive values."""

    def __init__(self, message: str, text: str, position: int):
        self.text = text
        self.position = position
        super().__init__(f"Invalid ini syntax at column {position + 1}: {message} in {text!r}")


class _State(Enum):
    NORMAL = auto()
    QUOTE = auto()
    AFTER_QUOTE = auto()
    ESCAPE = auto()


# Boolean words folded in unquoted values
BOOLEAN_FOLDS = {"true": "1", "false": ""}


class ValueTokenizer:
    """
    Tokenizer for a single directive value.

    Instances keep no state between calls; tokenize() may be called
    any number of times.
    """

    def tokenize(self, text: str) -> list[Segment]:
        """
        Split a raw value into segments.

        Args:
            text: Raw value (everything after the separator)

        Returns:
            VALUE segments in order, optionally followed by one COMMENT
            segment that keeps its leading ';'

        Raises:
            InvalidIniSyntax: On text after a closing quote, a quote after
                unquoted text, or an unterminated quote/escape
        """
        text = text.strip()
        if not text:
            return [Segment(SegmentKind.VALUE, "")]

        segments: list[Segment] = []
        state = _State.NORMAL
        buffer: list[str] = []
        started = False  # current segment has begun
        quoted = False

        def finalize() -> None:
            nonlocal buffer, started, quoted
            if started:
                value = "".join(buffer)
                if not quoted:
                    value = value.rstrip()
                    value = BOOLEAN_FOLDS.get(value.lower(), value)
                segments.append(Segment(SegmentKind.VALUE, value))
            buffer = []
            started = False
            quoted = False

        def comment_from(position: int) -> list[Segment]:
            finalize()
            if not segments:
                segments.append(Segment(SegmentKind.VALUE, ""))
            segments.append(Segment(SegmentKind.COMMENT, text[position:]))
            return segments

        for position, char in enumerate(text):
            if state == _State.NORMAL:
                if char == '"':
                    if "".join(buffer).strip():
                        raise InvalidIniSyntax("quotes cannot follow text", text, position)
                    buffer = []
                    started = True
                    quoted = True
                    state = _State.QUOTE
                elif char == ";":
                    return comment_from(position)
                elif char == ",":
                    finalize()
                else:
                    started = True
                    if buffer or not char.isspace():
                        buffer.append(char)

            elif state == _State.QUOTE:
                if char == '"':
                    state = _State.AFTER_QUOTE
                elif char == "\\":
                    state = _State.ESCAPE
                else:
                    buffer.append(char)

            elif state == _State.ESCAPE:
                buffer.append(char)
                state = _State.QUOTE

            elif state == _State.AFTER_QUOTE:
                if char == ",":
                    finalize()
                    state = _State.NORMAL
                elif char == ";":
                    return comment_from(position)
                elif not char.isspace():
                    raise InvalidIniSyntax("text after a quote not allowed", text, position)

        if state in (_State.QUOTE, _State.ESCAPE):
            raise InvalidIniSyntax("unterminated quote", text, len(text) - 1)

        finalize()
        return segments


def tokenize_value(text: str) -> list[Segment]:
    """Convenience function to tokenize one value."""
    return ValueTokenizer().tokenize(text)
