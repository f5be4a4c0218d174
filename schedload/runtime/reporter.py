"""
Diagnostics Reporter.

Long-lived background task with no result: every period it rescans the
registry and logs every known loader. With a name filter it also lists
the currently known artifacts whose name contains the filter, with their
origin loader. It stops only when cancelled.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from schedload.host.base import LoaderHost, identify_loader
from schedload.registry import LoaderRegistry

logger = logging.getLogger(__name__)

DEFAULT_PERIOD_MS = 1000


class DiagnosticsReporter:
    """
    Periodic, read-mostly consumer of the loader registry.

    Example:
        reporter = DiagnosticsReporter(registry, host, period_ms=500, name_filter="plugins")
        task = asyncio.create_task(reporter.run_forever())
        ...
        task.cancel()
    """

    def __init__(
        self,
        registry: LoaderRegistry,
        host: LoaderHost,
        *,
        period_ms: int = DEFAULT_PERIOD_MS,
        name_filter: str | None = None,
    ):
        if period_ms <= 0:
            raise ValueError(f"period_ms must be positive, got {period_ms}")
        self._registry = registry
        self._host = host
        self._period_ms = period_ms
        self._name_filter = name_filter or None
        self._reports = 0

    @property
    def period_ms(self) -> int:
        return self._period_ms

    @property
    def reports(self) -> int:
        """Number of reports emitted so far."""
        return self._reports

    def report_once(self) -> list[str]:
        """Rescan, log one report and return its lines."""
        try:
            pairs = list(self._host.discover())
        except Exception as e:
            logger.error(f"[reporter] Host discovery failed: {e}", exc_info=True)
            pairs = []

        try:
            self._registry.rescan(pairs)
        except Exception as e:
            logger.error(f"[reporter] Loader rescan failed: {e}", exc_info=True)

        lines = self._registry.snapshot().format()
        if self._name_filter is not None:
            lines.extend(self._interesting_artifacts(pairs))

        for line in lines:
            logger.info(f"[reporter] {line}")
        self._reports += 1
        return lines

    def _interesting_artifacts(self, pairs: list[tuple[str, Any]]) -> list[str]:
        lines = [f'interesting artifacts with "{self._name_filter}" in their names:']
        for artifact_id, loader in sorted(pairs, key=lambda pair: pair[0]):
            if self._name_filter in artifact_id:
                origin = "<bootstrap>" if loader is None else identify_loader(loader).qualified_name
                lines.append(f"\t Artifact: {artifact_id}, Loader: {origin}")
        return lines

    async def run_forever(self) -> None:
        """Report every period until cancelled. A failed report never ends the loop."""
        logger.info(f"[reporter] Started (period={self._period_ms} msec)")
        try:
            while True:
                try:
                    self.report_once()
                except Exception as e:
                    logger.error(f"[reporter] Report failed: {e}", exc_info=True)
                await asyncio.sleep(self._period_ms / 1000)
        except asyncio.CancelledError:
            logger.debug(f"[reporter] Stopped after {self._reports} report(s)")
