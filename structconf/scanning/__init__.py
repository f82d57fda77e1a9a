"""
Scanning primitives shared by the line-oriented drivers.
"""

from .lines import LineScanner, LogicalLine
from .values import BOOLEAN_FOLDS, InvalidIniSyntax, Segment, SegmentKind, ValueTokenizer, tokenize_value

__all__ = [
    "BOOLEAN_FOLDS",
    "LineScanner",
    "LogicalLine",
    "ValueTokenizer",
    "Segment",
    "SegmentKind",
    "InvalidIniSyntax",
    "tokenize_value",
]
