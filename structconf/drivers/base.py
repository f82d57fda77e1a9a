"""
Driver interface and file boundary shared by all format drivers.

A driver translates between one text format and a ConfigNode tree:

    driver = ApacheDriver(indent="    ")
    root = ConfigNode.root()
    driver.parse("/etc/httpd/httpd.conf", root)
    text = driver.render(root)
"""

from __future__ import annotations

import dataclasses
import os
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, ClassVar

import chardet

from ..container import ConfigNode, NodeKind
from ..logging import get_logger

if os.name == "nt":
    fcntl = None
else:
    import fcntl


logger = get_logger("drivers")

# Minimum chardet confidence before trusting a detected encoding
DETECTION_CONFIDENCE = 0.8


class DriverError(Exception):
    """Base exception for driver errors."""

    pass


class ParseError(DriverError):
    """Exception raised when a source cannot be read or parsed."""

    def __init__(self, message: str, source: str = "<string>", line: int = 0):
        self.message = message
        self.source = source
        self.line = line
        if line:
            super().__init__(f"{source}, line {line}: {message}")
        else:
            super().__init__(f"{source}: {message}")


class OptionError(DriverError, ValueError):
    """Exception raised for unknown or invalid driver options."""

    pass


@dataclass(frozen=True)
class DriverOptions:
    """
    Base class for driver options.

    Subclasses add their own fields with defaults. Instances are frozen
    so options never change during a parse or render.
    """

    # Source encoding; None means utf-8 with detection fallback
    encoding: str | None = None

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any] | None = None) -> DriverOptions:
        """Create options from a mapping, rejecting unknown keys."""
        values = dict(values or {})
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise OptionError(f"Unknown option(s) for {cls.__name__}: {', '.join(unknown)}")
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)


def decode_bytes(raw: bytes, encoding: str | None = None) -> str:
    """
    Decode file contents.

    Tries the given encoding (utf-8 by default), then the encoding detected
    by chardet, then latin-1 which never fails.
    """
    try:
        return raw.decode(encoding or "utf-8")
    except UnicodeDecodeError:
        if encoding:
            raise

    detected = chardet.detect(raw)
    if detected and detected.get("encoding") and (detected.get("confidence") or 0) >= DETECTION_CONFIDENCE:
        try:
            return raw.decode(detected["encoding"])
        except (UnicodeDecodeError, LookupError):
            pass
    logger.debug("Falling back to latin-1 decoding")
    return raw.decode("latin-1")


def read_bytes(source: str | Path) -> bytes:
    """Read a whole source file, raising ParseError if it is unreadable."""
    path = Path(source)
    if not path.is_file():
        raise ParseError("Datasource file does not exist", str(source))
    try:
        return path.read_bytes()
    except OSError as e:
        raise ParseError(f"Datasource file cannot be read: {e}", str(source)) from e


def read_source(source: str | Path, encoding: str | None = None) -> str:
    """Read and decode a whole source file."""
    raw = read_bytes(source)
    try:
        return decode_bytes(raw, encoding)
    except (UnicodeDecodeError, LookupError) as e:
        raise ParseError(f"Cannot decode datasource: {e}", str(source)) from e


def write_bytes(path: str | Path, data: bytes) -> None:
    """
    Write data to path in one call under an exclusive lock.

    The file is truncated first; a failure mid-write leaves it truncated.
    """
    with open(path, "wb") as fp:
        if fcntl is not None:
            fcntl.flock(fp, fcntl.LOCK_EX)
        try:
            fp.write(data)
            fp.flush()
        finally:
            if fcntl is not None:
                fcntl.flock(fp, fcntl.LOCK_UN)


class Driver(ABC):
    """
    Abstract base class for format drivers.

    Subclasses set `name` and `options_class`, implement parse_string()
    and provide one render rule per node kind through _renderers().
    """

    name: ClassVar[str] = "abstract"
    options_class: ClassVar[type[DriverOptions]] = DriverOptions

    def __init__(self, options: DriverOptions | Mapping[str, Any] | None = None, **overrides: Any):
        """
        Initialize driver.

        Args:
            options: Options instance or mapping of option values
            **overrides: Individual option values, applied last
        """
        if isinstance(options, DriverOptions):
            if not isinstance(options, self.options_class):
                raise OptionError(
                    f"Driver '{self.name}' expects {self.options_class.__name__}, "
                    f"got {type(options).__name__}"
                )
            base = options.to_dict()
        else:
            base = dict(options or {})
        base.update(overrides)
        self.options = self.options_class.from_mapping(base)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.options!r})"

    def parse(self, source: Any, root: ConfigNode) -> None:
        """
        Parse a source file into root.

        Nodes created before an error stay in the tree.

        Raises:
            ParseError: If the source is unreadable or malformed
        """
        text = read_source(source, self.options.encoding)
        self.parse_string(text, root, str(source))

    @abstractmethod
    def parse_string(self, text: str, root: ConfigNode, source_id: str = "<string>") -> None:
        """Parse source text into root."""
        ...

    def render(self, node: ConfigNode) -> str:
        """Render a node and its descendants as text."""
        return self._render_node(node, self._initial_state(node))

    def _initial_state(self, node: ConfigNode) -> Any:
        """Per-call render state threaded through the recursion."""
        return None

    def _render_node(self, node: ConfigNode, state: Any) -> str:
        renderer = self._renderers().get(node.kind)
        if renderer is None:
            return ""
        return renderer(node, state)

    def _render_children(self, node: ConfigNode, state: Any) -> str:
        return "".join(self._render_node(child, state) for child in node.children)

    @abstractmethod
    def _renderers(self) -> dict[NodeKind, Callable[[ConfigNode, Any], str]]:
        """Render rule per node kind."""
        ...

    def write(self, path: str | Path, node: ConfigNode) -> None:
        """Render node and write it to path."""
        text = self.render(node)
        write_bytes(path, text.encode(self.options.encoding or "utf-8"))
        logger.debug(f"Wrote {len(text)} characters to {path} ({self.name})")
