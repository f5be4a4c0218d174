"""
Directive Parser.

Turns a directive file into a Timeline.

File Format:
    # lines starting with '#' are comments, except the directives below
    #delay=3000
    com.example.plugins.alpha  PluginFinder
    com.example.plugins.beta   PluginFinder
    #continueAt=10000
    json                       default

Rules (checked in this order):
    1. Blank lines are ignored.
    2. "#delay=<ms>" emits a Delay.
    3. "#continueAt=<ms>" emits a ContinueAt (milliseconds since driver start).
    4. Any other '#' line is a comment.
    5. "<artifact> <loader-label> [ignored...]" emits a LoadRequest.

Malformed lines produce a ParseWarning and are skipped; they never abort
the rest of the file. Only an unreadable file is fatal.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

from schedload.errors import DirectiveFileError

from .instructions import ContinueAt, Delay, Instruction, LoadRequest, Timeline

logger = logging.getLogger(__name__)

COMMENT_PREFIX = "#"
DELAY_PREFIX = "#delay="
CONTINUE_AT_PREFIX = "#continueAt="

_MILLIS_RE = re.compile(r"[0-9]+")


@dataclass(frozen=True, slots=True)
class ParseWarning:
    """A directive or load line that was skipped."""

    line_number: int
    line: str
    reason: str

    def __str__(self) -> str:
        return f"line {self.line_number}: {self.reason}: {self.line!r}"


@dataclass(frozen=True, slots=True)
class ParseResult:
    """Parsed timeline plus the warnings collected along the way."""

    timeline: Timeline = ()
    warnings: tuple[ParseWarning, ...] = ()
    source: str = "<string>"

    @property
    def ok(self) -> bool:
        """True when every non-blank, non-comment line was understood."""
        return not self.warnings

    def __len__(self) -> int:
        return len(self.timeline)


@dataclass
class _ParseState:
    source: str
    instructions: list[Instruction] = field(default_factory=list)
    warnings: list[ParseWarning] = field(default_factory=list)

    def warn(self, line_number: int, line: str, reason: str) -> None:
        warning = ParseWarning(line_number=line_number, line=line, reason=reason)
        self.warnings.append(warning)
        logger.warning(f"[parser] {self.source}: {warning}")

    def result(self) -> ParseResult:
        return ParseResult(
            timeline=tuple(self.instructions),
            warnings=tuple(self.warnings),
            source=self.source,
        )


def _parse_millis(value: str) -> int | None:
    value = value.strip()
    if not _MILLIS_RE.fullmatch(value):
        return None
    return int(value)


def _parse_line(state: _ParseState, line_number: int, line: str) -> None:
    if not line.strip():
        return

    if line.startswith(DELAY_PREFIX):
        millis = _parse_millis(line[len(DELAY_PREFIX):])
        if millis is None:
            state.warn(line_number, line, "invalid delay directive format")
            return
        state.instructions.append(Delay(millis, line_number=line_number))
        return

    if line.startswith(CONTINUE_AT_PREFIX):
        millis = _parse_millis(line[len(CONTINUE_AT_PREFIX):])
        if millis is None:
            state.warn(line_number, line, "invalid continueAt directive format")
            return
        state.instructions.append(ContinueAt(millis, line_number=line_number))
        return

    if line.startswith(COMMENT_PREFIX):
        return

    words = line.split()
    if len(words) < 2:
        state.warn(line_number, line, 'invalid "artifact loaderLabel" line')
        return

    state.instructions.append(
        LoadRequest(artifact_id=words[0], loader_label=words[1], line_number=line_number)
    )


def parse_text(text: str, source: str = "<string>") -> ParseResult:
    """
    Parse directive text into a timeline.

    Args:
        text: Directive file contents
        source: Name used in warnings (usually the file path)

    Returns:
        ParseResult with the timeline and any warnings
    """
    state = _ParseState(source=source)
    for line_number, line in enumerate(text.splitlines(), start=1):
        _parse_line(state, line_number, line)

    logger.debug(
        f"[parser] {source}: {len(state.instructions)} instructions, "
        f"{len(state.warnings)} warnings"
    )
    return state.result()


def parse(path: str | Path) -> ParseResult:
    """
    Read and parse a directive file.

    Raises:
        DirectiveFileError: If the file cannot be opened or decoded
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"[parser] Could not open input file {path}: {e}")
        raise DirectiveFileError(path, str(e)) from e

    return parse_text(text, source=str(path))
