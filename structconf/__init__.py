"""
structconf - editable trees for structured configuration files.

Parse Apache, INI, PHP and XML configuration files into one tree model,
edit them programmatically and write them back in the same or another format.
"""

from .const import APP_VERSION as __version__
from .container import (
    CannotRemoveRoot,
    ConfigNode,
    ContainerError,
    InvalidPosition,
    NodeKind,
    NotASection,
    Where,
)
from .document import ConfigDocument, ConfigError, DriverRegistry, UnknownFormatError
from .drivers import Driver, DriverOptions, OptionError, ParseError
from .scanning import InvalidIniSyntax, LineScanner, Segment, SegmentKind, ValueTokenizer

__all__ = [
    "__version__",
    "ConfigNode",
    "NodeKind",
    "Where",
    "ContainerError",
    "NotASection",
    "CannotRemoveRoot",
    "InvalidPosition",
    "ConfigDocument",
    "ConfigError",
    "DriverRegistry",
    "UnknownFormatError",
    "Driver",
    "DriverOptions",
    "OptionError",
    "ParseError",
    "LineScanner",
    "ValueTokenizer",
    "Segment",
    "SegmentKind",
    "InvalidIniSyntax",
]
