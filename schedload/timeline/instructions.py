"""
Timeline instructions.

A timeline is an ordered, read-only sequence of instructions built once
from a directive file. Instructions are immutable; order matches the
line order of the source file.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TypeAlias

DEFAULT_LOADER_LABEL = "default"


@dataclass(frozen=True, slots=True)
class Delay:
    """Wait ``duration_ms`` milliseconds, then rescan for loaders."""

    duration_ms: int
    line_number: int = field(default=0, compare=False)

    def __post_init__(self) -> None:
        if self.duration_ms < 0:
            raise ValueError(f"Delay must be non-negative, got {self.duration_ms}")

    @property
    def seconds(self) -> float:
        return self.duration_ms / 1000

    def __str__(self) -> str:
        return f"#delay={self.duration_ms}"


@dataclass(frozen=True, slots=True)
class ContinueAt:
    """Wait until ``offset_ms`` after driver start, then rescan for loaders."""

    offset_ms: int
    line_number: int = field(default=0, compare=False)

    def __post_init__(self) -> None:
        if self.offset_ms < 0:
            raise ValueError(f"ContinueAt must be non-negative, got {self.offset_ms}")

    def __str__(self) -> str:
        return f"#continueAt={self.offset_ms}"


@dataclass(frozen=True, slots=True)
class LoadRequest:
    """
    Load ``artifact_id`` through the loader known as ``loader_label``.

    The reserved label ``default`` (any case) selects the driver's own
    bootstrap import machinery instead of a discovered loader.
    """

    artifact_id: str
    loader_label: str
    line_number: int = field(default=0, compare=False)

    @property
    def uses_default_loader(self) -> bool:
        return self.loader_label.lower() == DEFAULT_LOADER_LABEL

    def __str__(self) -> str:
        return f"{self.artifact_id} {self.loader_label}"


Instruction: TypeAlias = Delay | ContinueAt | LoadRequest
Timeline: TypeAlias = tuple[Instruction, ...]
