"""
Unit Tests for BackgroundTaskRunner

Tests triggering, retries with backoff, failure signalling and shutdown.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from src.core.config.constants import TaskOutcome
from src.core.exceptions import InvalidCommandError
from src.offline_proxy.services.background_tasks import BackgroundTaskRunner


@pytest.fixture
def runner():
    return BackgroundTaskRunner(max_attempts=3, retry_delay=0)


@pytest.mark.unit
class TestTrigger:
    async def test_trigger_runs_handler(self, runner):
        handler = AsyncMock()
        runner.register("sync", handler)

        runner.trigger("sync")
        record = await runner.wait("sync")

        handler.assert_awaited_once()
        assert record.outcome is TaskOutcome.SUCCEEDED
        assert record.attempts == 1
        assert record.finished_at >= record.started_at

    async def test_trigger_does_not_block(self, runner):
        started = asyncio.Event()
        release = asyncio.Event()

        async def handler():
            started.set()
            await release.wait()

        runner.register("slow", handler)

        task = runner.trigger("slow")
        await started.wait()

        assert not task.done()
        assert runner.outcome("slow").outcome is TaskOutcome.RUNNING
        release.set()
        await runner.wait("slow")

    async def test_trigger_while_running_returns_same_task(self, runner):
        release = asyncio.Event()
        runner.register("slow", release.wait)

        first = runner.trigger("slow")
        second = runner.trigger("slow")

        assert first is second
        release.set()
        await runner.wait("slow")

    async def test_retrigger_after_completion_starts_new_run(self, runner):
        handler = AsyncMock()
        runner.register("sync", handler)

        runner.trigger("sync")
        await runner.wait("sync")
        runner.trigger("sync")
        await runner.wait("sync")

        assert handler.await_count == 2

    def test_unknown_tag_rejected(self, runner):
        with pytest.raises(InvalidCommandError) as exc_info:
            runner.trigger("nope")

        assert exc_info.value.details["registered_tags"] == []

    async def test_wait_for_untriggered_tag_rejected(self, runner):
        runner.register("sync", AsyncMock())

        with pytest.raises(InvalidCommandError):
            await runner.wait("sync")

    def test_tags_sorted(self, runner):
        runner.register("install", AsyncMock())
        runner.register("activate", AsyncMock())

        assert runner.tags == ["activate", "install"]


@pytest.mark.unit
class TestRetries:
    async def test_transient_failure_is_retried(self, runner):
        handler = AsyncMock(side_effect=[RuntimeError("flaky"), None])
        runner.register("sync", handler)

        runner.trigger("sync")
        record = await runner.wait("sync")

        assert record.outcome is TaskOutcome.SUCCEEDED
        assert record.attempts == 2

    async def test_final_failure_is_recorded_not_raised(self, runner):
        handler = AsyncMock(side_effect=RuntimeError("server down"))
        runner.register("sync", handler)

        task = runner.trigger("sync")
        record = await runner.wait("sync")

        assert record.outcome is TaskOutcome.FAILED
        assert record.error == "server down"
        assert record.attempts == 3
        assert task.exception() is None

    async def test_snapshot_reports_latest_runs(self, runner):
        runner.register("sync", AsyncMock(side_effect=ValueError()))

        runner.trigger("sync")
        await runner.wait("sync")

        snapshot = runner.snapshot()
        assert snapshot["sync"]["outcome"] == "failed"
        assert snapshot["sync"]["error"] == "ValueError"


@pytest.mark.unit
class TestShutdown:
    async def test_shutdown_cancels_running_tasks(self, runner):
        runner.register("forever", asyncio.Event().wait)
        task = runner.trigger("forever")
        await asyncio.sleep(0)

        await runner.shutdown()

        assert task.cancelled()
        assert runner.outcome("forever").outcome is TaskOutcome.FAILED
        assert runner.outcome("forever").error == "cancelled"

    async def test_shutdown_without_tasks(self, runner):
        await runner.shutdown()
