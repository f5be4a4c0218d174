"""
Background Driver.

Parses the directive file up front, then runs the executor (and, in
verbose mode, the diagnostics reporter) on a daemon thread with its own
event loop. start() returns as soon as both tasks are scheduled.

Lifecycle:
    driver = ScheduledLoadingDriver("schedule.txt").start()   # fire-and-forget
    ...
    result = driver.wait(timeout=30)    # optional: block until the walk ends
    driver.stop()                       # optional: cancel both loops

Only an unreadable directive file is reported to the caller, as a
DirectiveFileError raised from start().
"""

from __future__ import annotations

import asyncio
import atexit
import logging
import threading
import time
from pathlib import Path

from schedload.config import DriverSettings, get_settings
from schedload.errors import DriverStateError
from schedload.host.base import LoaderHost
from schedload.host.python import ImportSystemHost
from schedload.registry import LoaderRegistry
from schedload.timeline import ParseResult, parse

from .executor import TimelineExecutor
from .reporter import DiagnosticsReporter
from .result import ExecutionResult

logger = logging.getLogger(__name__)

SHUTDOWN_JOIN_TIMEOUT = 1.0


class ScheduledLoadingDriver:
    """
    Runs one directive file against a host in the background.

    The registry is created empty here and shared by the executor and
    the reporter; nothing else mutates it.
    """

    def __init__(
        self,
        directive_path: str | Path,
        *,
        settings: DriverSettings | None = None,
        host: LoaderHost | None = None,
    ):
        """
        Initialize driver.

        Args:
            directive_path: Directive file to parse on start()
            settings: Driver settings (defaults to the environment)
            host: Loader host (defaults to the running interpreter)
        """
        self._path = Path(directive_path)
        self._settings = settings or get_settings()
        self._host = host or ImportSystemHost()
        self._registry = LoaderRegistry(
            self._settings.resolution_policy,
            identify=self._host.identify,
        )
        self._parse_result: ParseResult | None = None
        self._executor: TimelineExecutor | None = None
        self._reporter: DiagnosticsReporter | None = None
        self._thread: threading.Thread | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._tasks: list[asyncio.Task] = []
        self._result: ExecutionResult | None = None
        self._done = threading.Event()

    @property
    def registry(self) -> LoaderRegistry:
        return self._registry

    @property
    def settings(self) -> DriverSettings:
        return self._settings

    @property
    def parse_result(self) -> ParseResult | None:
        return self._parse_result

    @property
    def executor(self) -> TimelineExecutor | None:
        return self._executor

    @property
    def reporter(self) -> DiagnosticsReporter | None:
        return self._reporter

    @property
    def result(self) -> ExecutionResult | None:
        """Executor result, once the walk has ended."""
        return self._result

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> "ScheduledLoadingDriver":
        """
        Parse the directive file and start the background loops.

        Raises:
            DirectiveFileError: If the directive file cannot be read
            DriverStateError: If the driver was already started
        """
        if self._thread is not None:
            raise DriverStateError("Driver already started")

        self._parse_result = parse(self._path)
        logger.info(
            f"[driver] Starting with {self._path}: "
            f"{len(self._parse_result.timeline)} instructions, "
            f"{len(self._parse_result.warnings)} warnings"
        )

        self._executor = TimelineExecutor(
            self._parse_result.timeline,
            self._registry,
            self._host,
            started_at=time.monotonic(),
        )
        if self._settings.reporter_enabled:
            self._reporter = DiagnosticsReporter(
                self._registry,
                self._host,
                period_ms=self._settings.reporter_period_ms,
                name_filter=self._settings.report_name_filter,
            )

        ready = threading.Event()
        self._thread = threading.Thread(
            target=self._run_loop,
            args=(ready,),
            name="schedload-driver",
            daemon=True,
        )
        self._thread.start()
        ready.wait()
        atexit.register(self.stop, SHUTDOWN_JOIN_TIMEOUT)
        return self

    def _run_loop(self, ready: threading.Event) -> None:
        loop = asyncio.new_event_loop()
        self._loop = loop
        try:
            loop.run_until_complete(self._main(ready))
        finally:
            ready.set()
            self._done.set()
            loop.close()

    async def _main(self, ready: threading.Event) -> None:
        executor_task = asyncio.create_task(self._executor.run(), name="schedload-executor")
        self._tasks.append(executor_task)
        if self._reporter is not None:
            self._tasks.append(
                asyncio.create_task(self._reporter.run_forever(), name="schedload-reporter")
            )
        ready.set()

        try:
            self._result = await executor_task
        except asyncio.CancelledError:
            logger.info("[driver] Executor cancelled before it started")
        finally:
            self._done.set()

        # The reporter has no exit condition of its own
        await asyncio.gather(*self._tasks[1:], return_exceptions=True)

    def wait(self, timeout: float | None = None) -> ExecutionResult | None:
        """
        Block until the executor has finished.

        Returns:
            ExecutionResult, or None on timeout or if nothing ran
        """
        if self._thread is None:
            raise DriverStateError("Driver not started")
        self._done.wait(timeout)
        return self._result

    def stop(self, timeout: float | None = None) -> None:
        """Cancel the executor and the reporter, then join the thread."""
        if self._thread is None:
            return
        loop = self._loop
        if self._thread.is_alive() and loop is not None:
            for task in self._tasks:
                try:
                    loop.call_soon_threadsafe(task.cancel)
                except RuntimeError:
                    # Loop closed between the liveness check and the call
                    break
        self._thread.join(timeout)
        logger.debug("[driver] Stopped")


def start(
    directive_path: str | Path,
    *,
    settings: DriverSettings | None = None,
    host: LoaderHost | None = None,
) -> ScheduledLoadingDriver:
    """
    Start a driver for *directive_path* and return it immediately.

    Raises:
        DirectiveFileError: If the directive file cannot be read
    """
    return ScheduledLoadingDriver(directive_path, settings=settings, host=host).start()
