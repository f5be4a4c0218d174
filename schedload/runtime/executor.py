"""
Timeline Executor.

Walks a timeline once, in order, one instruction at a time.

Execution Model:
    - Rescan the registry once before the first instruction
    - Delay / ContinueAt: wait, then rescan
    - LoadRequest "default": load through the bootstrap loader
    - LoadRequest <label>: resolve the label, load through the loader
    - Failures are per instruction; the walk always moves on
    - Cancellation ends the walk immediately; nothing is resumed
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import UTC, datetime
from enum import Enum
from typing import Callable

from schedload.errors import ArtifactNotFoundError, ExecutorStateError
from schedload.host.base import LoaderHost
from schedload.registry import Ambiguous, LoaderRegistry, Unique
from schedload.timeline import ContinueAt, Delay, Instruction, LoadRequest, Timeline

from .result import ExecutionResult, InstructionOutcome, OutcomeStatus

logger = logging.getLogger(__name__)

SNAPSHOT_SEPARATOR = "======================="


class ExecutorState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class TimelineExecutor:
    """
    Executes a timeline against a loader registry and a host.

    Example:
        executor = TimelineExecutor(
            timeline=parse("schedule.txt").timeline,
            registry=LoaderRegistry(),
            host=ImportSystemHost(),
        )
        result = await executor.run()
    """

    def __init__(
        self,
        timeline: Timeline,
        registry: LoaderRegistry,
        host: LoaderHost,
        *,
        started_at: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize executor.

        Args:
            timeline: Instructions to execute, in order
            registry: Shared loader registry
            host: Host providing discovery and loading
            started_at: Clock reading that ContinueAt offsets count from
                (defaults to construction time)
            clock: Monotonic clock in seconds
        """
        self._timeline = tuple(timeline)
        self._registry = registry
        self._host = host
        self._clock = clock
        self._started_at = clock() if started_at is None else started_at
        self._state = ExecutorState.IDLE

    @property
    def state(self) -> ExecutorState:
        return self._state

    @property
    def timeline(self) -> Timeline:
        return self._timeline

    async def run(self) -> ExecutionResult:
        """
        Walk the timeline.

        Returns:
            ExecutionResult with one outcome per executed instruction

        Raises:
            ExecutorStateError: If the executor has already run
        """
        if self._state is not ExecutorState.IDLE:
            raise ExecutorStateError(f"Executor already {self._state.value}")

        self._state = ExecutorState.RUNNING
        started_at = datetime.now(UTC)
        outcomes: list[InstructionOutcome] = []
        cancelled = False

        logger.info(f"[executor] Starting timeline: {len(self._timeline)} instructions")
        try:
            self._rescan()
            for instruction in self._timeline:
                outcomes.append(await self._execute(instruction))
        except asyncio.CancelledError:
            cancelled = True
            logger.info(
                f"[executor] Cancelled with "
                f"{len(self._timeline) - len(outcomes)} instruction(s) not executed"
            )
        finally:
            self._state = ExecutorState.STOPPED

        result = ExecutionResult(
            outcomes=tuple(outcomes),
            total_instructions=len(self._timeline),
            cancelled=cancelled,
            started_at=started_at,
            completed_at=datetime.now(UTC),
        )
        logger.info(
            f"[executor] Timeline finished: loaded={result.loaded_count}, "
            f"failed={result.failed_count}, cancelled={result.cancelled}"
        )
        return result

    async def _execute(self, instruction: Instruction) -> InstructionOutcome:
        if isinstance(instruction, Delay):
            return await self._delay(instruction)
        if isinstance(instruction, ContinueAt):
            return await self._continue_at(instruction)
        return self._load(instruction)

    # ==================== Waiting ====================

    async def _delay(self, instruction: Delay) -> InstructionOutcome:
        logger.info(f"[executor] Sleeping for {instruction.duration_ms} msec")
        await asyncio.sleep(instruction.seconds)
        self._rescan()
        return InstructionOutcome(instruction, OutcomeStatus.WAITED)

    async def _continue_at(self, instruction: ContinueAt) -> InstructionOutcome:
        remaining = self._started_at + instruction.offset_ms / 1000 - self._clock()
        if remaining > 0:
            logger.info(
                f"[executor] Sleeping for {remaining * 1000:.0f} msec "
                f"(until {instruction.offset_ms} msec after start)"
            )
            await asyncio.sleep(remaining)
        else:
            logger.info(f"[executor] Already past {instruction.offset_ms} msec after start")
        self._rescan()
        return InstructionOutcome(instruction, OutcomeStatus.WAITED)

    def _rescan(self) -> None:
        try:
            self._registry.rescan(self._host.discover())
        except Exception as e:
            logger.error(f"[executor] Loader rescan failed: {e}", exc_info=True)

    # ==================== Loading ====================

    def _load(self, instruction: LoadRequest) -> InstructionOutcome:
        artifact = instruction.artifact_id
        label = instruction.loader_label

        if instruction.uses_default_loader:
            return self._attempt(instruction, lambda: self._host.load_default(artifact))

        resolution = self._registry.resolve(label)
        if isinstance(resolution, Unique):
            loader = resolution.handle.get()
            if loader is None:
                message = f"loader {label} has been reclaimed by the host"
                logger.error(f"[executor] Failed to load {artifact}: {message}")
                return InstructionOutcome(instruction, OutcomeStatus.LOAD_FAILED, message)
            return self._attempt(instruction, lambda: self._host.load(artifact, loader))

        if isinstance(resolution, Ambiguous):
            status = OutcomeStatus.AMBIGUOUS
            message = f"loader label {label} matches more than one loader instance"
        else:
            status = OutcomeStatus.UNRESOLVED
            message = f"no loader with label {label} has been discovered"
        logger.error(
            f"[executor] Could not locate unique loader {label} for {artifact}: {message}"
        )
        self._log_snapshot()
        return InstructionOutcome(instruction, status, message)

    def _attempt(self, instruction: LoadRequest, load: Callable[[], object]) -> InstructionOutcome:
        artifact = instruction.artifact_id
        label = instruction.loader_label
        try:
            load()
        except ArtifactNotFoundError as e:
            logger.error(f"[executor] {e}")
            return InstructionOutcome(instruction, OutcomeStatus.LOAD_FAILED, str(e))
        except Exception as e:
            logger.error(
                f"[executor] Unexpected error loading {artifact} using {label}: {e}",
                exc_info=True,
            )
            return InstructionOutcome(instruction, OutcomeStatus.LOAD_FAILED, str(e))

        logger.info(f"[executor] Loaded {artifact} using {label}")
        return InstructionOutcome(instruction, OutcomeStatus.LOADED)

    def _log_snapshot(self) -> None:
        logger.warning(SNAPSHOT_SEPARATOR)
        for line in self._registry.snapshot().format():
            logger.warning(line)
        logger.warning(SNAPSHOT_SEPARATOR)
