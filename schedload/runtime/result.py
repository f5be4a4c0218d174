"""
Execution Result.

Result structure returned by TimelineExecutor.run(). Every executed
instruction leaves exactly one InstructionOutcome, in timeline order.

Usage:
    result = await executor.run()

    if result.cancelled:
        print(f"Stopped early after {len(result.outcomes)} instructions")

    for outcome in result.failures:
        print(f"line {outcome.instruction.line_number}: {outcome.message}")
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from schedload.timeline import Instruction


def _utc_now() -> datetime:
    return datetime.now(UTC)


class OutcomeStatus(str, Enum):
    """What happened to one instruction."""

    WAITED = "waited"
    LOADED = "loaded"
    LOAD_FAILED = "load_failed"
    UNRESOLVED = "unresolved"
    AMBIGUOUS = "ambiguous"


@dataclass(frozen=True, slots=True)
class InstructionOutcome:
    """Outcome of a single instruction."""

    instruction: Instruction
    status: OutcomeStatus
    message: str = ""

    @property
    def success(self) -> bool:
        return self.status in (OutcomeStatus.WAITED, OutcomeStatus.LOADED)


@dataclass(frozen=True, slots=True)
class ExecutionResult:
    """
    Result of one walk over a timeline.

    ``outcomes`` holds one entry per executed instruction. When the walk
    was cancelled, instructions after the last outcome were never run.
    """

    outcomes: tuple[InstructionOutcome, ...] = ()
    total_instructions: int = 0
    cancelled: bool = False
    started_at: datetime = field(default_factory=_utc_now)
    completed_at: datetime = field(default_factory=_utc_now)

    @property
    def duration_ms(self) -> float:
        return (self.completed_at - self.started_at).total_seconds() * 1000

    @property
    def completed(self) -> bool:
        return not self.cancelled and len(self.outcomes) == self.total_instructions

    @property
    def loaded_count(self) -> int:
        return sum(1 for o in self.outcomes if o.status is OutcomeStatus.LOADED)

    @property
    def failures(self) -> tuple[InstructionOutcome, ...]:
        return tuple(o for o in self.outcomes if not o.success)

    @property
    def failed_count(self) -> int:
        return len(self.failures)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "cancelled": self.cancelled,
            "completed": self.completed,
            "executed": len(self.outcomes),
            "total_instructions": self.total_instructions,
            "loaded": self.loaded_count,
            "failed": self.failed_count,
            "duration_ms": self.duration_ms,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat(),
            "outcomes": [
                {
                    "line": o.instruction.line_number,
                    "instruction": str(o.instruction),
                    "status": o.status.value,
                    "message": o.message,
                }
                for o in self.outcomes
            ],
        }
