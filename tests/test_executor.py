"""
Tests for TimelineExecutor and ExecutionResult.
"""

import asyncio
import gc
import logging

import pytest

from schedload.errors import ArtifactNotFoundError, ExecutorStateError
from schedload.host import MemoryLoaderHost
from schedload.runtime import ExecutorState, OutcomeStatus, TimelineExecutor
from schedload.runtime.executor import SNAPSHOT_SEPARATOR
from schedload.timeline import ContinueAt, Delay, LoadRequest, parse_text

# =============================================================================
# Mock Loaders and Hosts for Testing
# =============================================================================


class PluginFinder:
    """Loader a plugin framework would create."""


class ArchiveImporter:
    """Another loader implementation."""


class LateLoaderHost(MemoryLoaderHost):
    """Host whose loader only appears on a given discovery call."""

    def __init__(self, artifact_id: str, loader, appears_on_scan: int):
        super().__init__()
        self.scans = 0
        self._late = (artifact_id, loader)
        self._appears_on_scan = appears_on_scan

    def discover(self):
        self.scans += 1
        if self.scans == self._appears_on_scan:
            self.add(*self._late)
        return super().discover()


class ExplodingHost(MemoryLoaderHost):
    """Host whose load raises something other than ArtifactNotFoundError."""

    def load(self, artifact_id, loader):
        raise RuntimeError("host exploded")


def _executor(text, registry, host, **kwargs):
    return TimelineExecutor(parse_text(text).timeline, registry, host, **kwargs)


# =============================================================================
# Loading
# =============================================================================


class TestLoadRequests:
    """Tests for LoadRequest execution."""

    @pytest.mark.asyncio
    async def test_loads_through_unique_loader(self, registry, host):
        finder = PluginFinder()
        host.add("plugins", finder)
        host.allow(finder, "plugins.alpha")

        result = await _executor("plugins.alpha PluginFinder\n", registry, host).run()

        assert [o.status for o in result.outcomes] == [OutcomeStatus.LOADED]
        assert host.loads == [("plugins.alpha", finder)]
        assert result.completed
        assert result.loaded_count == 1

    @pytest.mark.asyncio
    async def test_initial_rescan_sees_startup_loaders(self, registry, host):
        finder = PluginFinder()
        host.add("plugins", finder)
        host.allow(finder, "plugins.alpha")

        executor = _executor("plugins.alpha PluginFinder\n", registry, host)
        assert len(registry) == 0

        result = await executor.run()

        assert len(registry) == 1
        assert result.outcomes[0].success

    @pytest.mark.asyncio
    @pytest.mark.parametrize("label", ["default", "DEFAULT", "DeFaUlT"])
    async def test_default_label_never_consults_registry(self, registry, host, monkeypatch, label):
        def fail(_label):
            raise AssertionError("registry consulted")

        monkeypatch.setattr(registry, "resolve", fail)
        host.allow_default("json")

        result = await _executor(f"json {label}\n", registry, host).run()

        assert result.outcomes[0].status is OutcomeStatus.LOADED
        assert host.loads == [("json", None)]

    @pytest.mark.asyncio
    async def test_default_load_failure(self, registry, host):
        result = await _executor("missing.module default\n", registry, host).run()

        assert result.outcomes[0].status is OutcomeStatus.LOAD_FAILED
        assert "missing.module" in result.outcomes[0].message

    @pytest.mark.asyncio
    async def test_unknown_label_is_skipped(self, registry, host, caplog):
        finder = PluginFinder()
        host.add("plugins", finder)
        host.allow(finder, "plugins.beta")
        text = "plugins.alpha NoSuchLoader\nplugins.beta PluginFinder\n"

        with caplog.at_level(logging.WARNING, logger="schedload"):
            result = await _executor(text, registry, host).run()

        assert [o.status for o in result.outcomes] == [
            OutcomeStatus.UNRESOLVED,
            OutcomeStatus.LOADED,
        ]
        assert "NoSuchLoader" in caplog.text
        assert SNAPSHOT_SEPARATOR in caplog.text
        assert "Loaders found:" in caplog.text

    @pytest.mark.asyncio
    async def test_ambiguous_label_is_skipped(self, registry, host, caplog):
        host.add("plugins.one", PluginFinder())
        host.add("plugins.two", PluginFinder())
        host.allow_default("json")
        text = "plugins.three PluginFinder\njson default\n"

        with caplog.at_level(logging.WARNING, logger="schedload"):
            result = await _executor(text, registry, host).run()

        assert [o.status for o in result.outcomes] == [
            OutcomeStatus.AMBIGUOUS,
            OutcomeStatus.LOADED,
        ]
        assert "more than one loader" in result.outcomes[0].message
        assert "Ambiguous labels" in caplog.text

    @pytest.mark.asyncio
    async def test_host_load_failure_does_not_stop_walk(self, registry, host):
        finder = PluginFinder()
        host.add("plugins", finder)
        host.allow(finder, "plugins.beta")
        text = "plugins.alpha PluginFinder\nplugins.beta PluginFinder\n"

        result = await _executor(text, registry, host).run()

        assert [o.status for o in result.outcomes] == [
            OutcomeStatus.LOAD_FAILED,
            OutcomeStatus.LOADED,
        ]
        assert result.failed_count == 1
        assert result.completed

    @pytest.mark.asyncio
    async def test_unexpected_host_error_is_contained(self, registry):
        host = ExplodingHost()
        host.add("plugins", PluginFinder())
        host.allow_default("json")

        result = await _executor("plugins.alpha PluginFinder\njson default\n", registry, host).run()

        assert result.outcomes[0].status is OutcomeStatus.LOAD_FAILED
        assert "host exploded" in result.outcomes[0].message
        assert result.outcomes[1].status is OutcomeStatus.LOADED

    @pytest.mark.asyncio
    async def test_reclaimed_loader_is_a_load_failure(self, registry, host):
        finder = PluginFinder()
        registry.rescan([("plugins", finder)])
        del finder
        gc.collect()

        result = await _executor("plugins.alpha PluginFinder\n", registry, host).run()

        assert result.outcomes[0].status is OutcomeStatus.LOAD_FAILED
        assert "reclaimed" in result.outcomes[0].message

    @pytest.mark.asyncio
    async def test_failing_discovery_is_contained(self, registry, host, monkeypatch):
        def broken():
            raise RuntimeError("scan failed")

        monkeypatch.setattr(host, "discover", broken)
        host.allow_default("json")

        result = await _executor("json default\n", registry, host).run()

        assert result.outcomes[0].status is OutcomeStatus.LOADED


# =============================================================================
# Waiting
# =============================================================================


class TestWaiting:
    """Tests for Delay and ContinueAt."""

    @pytest.mark.asyncio
    async def test_delay_triggers_rescan(self, registry):
        finder = PluginFinder()
        # Scan 1 happens before the walk, scan 2 after the delay
        host = LateLoaderHost("plugins", finder, appears_on_scan=2)
        host.allow(finder, "plugins.alpha")
        text = "plugins.alpha PluginFinder\n#delay=10\nplugins.alpha PluginFinder\n"

        result = await _executor(text, registry, host).run()

        assert [o.status for o in result.outcomes] == [
            OutcomeStatus.UNRESOLVED,
            OutcomeStatus.WAITED,
            OutcomeStatus.LOADED,
        ]
        assert host.scans == 2

    @pytest.mark.asyncio
    async def test_delay_waits(self, registry, host):
        loop = asyncio.get_running_loop()
        started = loop.time()

        await _executor("#delay=50\n", registry, host).run()

        assert loop.time() - started >= 0.045

    @pytest.mark.asyncio
    async def test_continue_at_in_the_past_does_not_wait(self, registry, host, monkeypatch):
        sleeps = []

        async def fake_sleep(seconds):
            sleeps.append(seconds)

        monkeypatch.setattr(asyncio, "sleep", fake_sleep)
        executor = _executor("#continueAt=1000\n", registry, host, started_at=0.0, clock=lambda: 5.0)

        result = await executor.run()

        assert sleeps == []
        assert result.outcomes[0].status is OutcomeStatus.WAITED

    @pytest.mark.asyncio
    async def test_continue_at_waits_for_remaining_time(self, registry, host, monkeypatch):
        sleeps = []

        async def fake_sleep(seconds):
            sleeps.append(seconds)

        monkeypatch.setattr(asyncio, "sleep", fake_sleep)
        executor = _executor("#continueAt=3000\n", registry, host, started_at=10.0, clock=lambda: 11.0)

        await executor.run()

        assert sleeps == [pytest.approx(2.0)]

    @pytest.mark.asyncio
    async def test_continue_at_triggers_rescan(self, registry):
        finder = PluginFinder()
        host = LateLoaderHost("plugins", finder, appears_on_scan=2)
        host.allow(finder, "plugins.alpha")

        result = await _executor(
            "#continueAt=0\nplugins.alpha PluginFinder\n", registry, host
        ).run()

        assert result.outcomes[-1].status is OutcomeStatus.LOADED


# =============================================================================
# Lifecycle and Cancellation
# =============================================================================


class TestLifecycle:
    """Tests for executor state and cancellation."""

    @pytest.mark.asyncio
    async def test_state_transitions(self, registry, host):
        executor = _executor("", registry, host)
        assert executor.state is ExecutorState.IDLE

        result = await executor.run()

        assert executor.state is ExecutorState.STOPPED
        assert result.outcomes == ()
        assert result.completed

    @pytest.mark.asyncio
    async def test_run_twice_raises(self, registry, host):
        executor = _executor("", registry, host)
        await executor.run()

        with pytest.raises(ExecutorStateError):
            await executor.run()

    @pytest.mark.asyncio
    async def test_cancellation_stops_walk(self, registry, host):
        host.allow_default("json")
        executor = _executor("json default\n#delay=60000\njson default\n", registry, host)

        task = asyncio.create_task(executor.run())
        await asyncio.sleep(0.05)
        assert executor.state is ExecutorState.RUNNING
        task.cancel()
        result = await task

        assert result.cancelled
        assert not result.completed
        assert len(result.outcomes) == 1
        assert result.total_instructions == 3
        assert host.loads == [("json", None)]
        assert executor.state is ExecutorState.STOPPED

    @pytest.mark.asyncio
    async def test_result_to_dict(self, registry, host):
        host.allow_default("json")
        result = await _executor("json default\nbroken NoLoader\n", registry, host).run()

        data = result.to_dict()

        assert data["executed"] == 2
        assert data["loaded"] == 1
        assert data["failed"] == 1
        assert data["outcomes"][1] == {
            "line": 2,
            "instruction": "broken NoLoader",
            "status": "unresolved",
            "message": "no loader with label NoLoader has been discovered",
        }


class TestArtifactNotFoundError:
    """Tests for the host failure type."""

    def test_message(self):
        error = ArtifactNotFoundError("plugins.alpha", "PluginFinder", "missing")
        assert str(error) == "Failed to load plugins.alpha using PluginFinder: missing"

    def test_instructions_built_in_code(self, registry, host):
        executor = TimelineExecutor(
            [Delay(0), ContinueAt(0), LoadRequest("json", "default")], registry, host
        )
        assert len(executor.timeline) == 3
