"""
schedload Runtime Layer.

Components:
    - TimelineExecutor: walks the timeline, waits, resolves and loads
    - DiagnosticsReporter: periodic registry report (verbose mode)
    - ScheduledLoadingDriver: runs both on a background thread

Design Principle:
    "Best effort per instruction."

    A failed parse line, an unresolved label or a failed load affects
    that one line or instruction only. Only an unreadable directive file
    is escalated to the caller.
"""

from .driver import ScheduledLoadingDriver, start
from .executor import ExecutorState, TimelineExecutor
from .reporter import DiagnosticsReporter
from .result import ExecutionResult, InstructionOutcome, OutcomeStatus

__all__ = [
    "DiagnosticsReporter",
    "ExecutionResult",
    "ExecutorState",
    "InstructionOutcome",
    "OutcomeStatus",
    "ScheduledLoadingDriver",
    "TimelineExecutor",
    "start",
]
