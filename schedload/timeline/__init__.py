"""
Schedload Timeline.

Instruction model and the directive parser that builds a timeline from a
directive file.

Usage:
    from schedload.timeline import parse

    result = parse("schedule.txt")
    for warning in result.warnings:
        print(warning)
    for instruction in result.timeline:
        ...
"""

from .instructions import (
    DEFAULT_LOADER_LABEL,
    ContinueAt,
    Delay,
    Instruction,
    LoadRequest,
    Timeline,
)
from .parser import ParseResult, ParseWarning, parse, parse_text

__all__ = [
    # Instructions
    "DEFAULT_LOADER_LABEL",
    "ContinueAt",
    "Delay",
    "Instruction",
    "LoadRequest",
    "Timeline",
    # Parser
    "ParseResult",
    "ParseWarning",
    "parse",
    "parse_text",
]
