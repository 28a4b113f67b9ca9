"""
Background Task Runner

Explicit asyncio tasks keyed by tag, with completion and failure signalling.

FLOW:
-----
    register("install", handler)
    task = runner.trigger("install")   # returns immediately
    record = await runner.wait("install")
    record.outcome                     # succeeded | failed

- A trigger never blocks the caller; the handler runs in its own task.
- Triggering a tag whose task is still running returns the running task.
- A failing handler is retried with exponential backoff (tenacity); the final
  failure is logged and recorded, never raised into the event loop.
- Unknown tags are rejected with InvalidCommandError.

Author: System Architect
Date: 2025-12-13
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from tenacity import AsyncRetrying, RetryError, stop_after_attempt, wait_exponential_jitter

from src.core.config.constants import Stage, TaskOutcome
from src.core.exceptions import InvalidCommandError
from src.core.logging.logger import get_logger, log_stage

logger = get_logger(__name__)

TaskHandler = Callable[[], Awaitable[Any]]


@dataclass
class TaskRecord:
    """Latest run of one tag."""

    tag: str
    outcome: TaskOutcome = TaskOutcome.PENDING
    attempts: int = 0
    error: str | None = None
    started_at: float | None = None
    finished_at: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "tag": self.tag,
            "outcome": self.outcome.value,
            "attempts": self.attempts,
            "error": self.error,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
        }


class BackgroundTaskRunner:
    """
    Runs registered handlers as background tasks.

    Args:
        max_attempts: Attempts per trigger before the run is marked failed
        retry_delay: Initial backoff between attempts (seconds)
    """

    def __init__(self, max_attempts: int = 3, retry_delay: float = 1.0):
        self.max_attempts = max(1, max_attempts)
        self.retry_delay = retry_delay
        self._handlers: dict[str, TaskHandler] = {}
        self._tasks: dict[str, asyncio.Task] = {}
        self._records: dict[str, TaskRecord] = {}

    @property
    def tags(self) -> list[str]:
        return sorted(self._handlers)

    def register(self, tag: str, handler: TaskHandler) -> None:
        """Register (or replace) the handler of a tag."""
        self._handlers[tag] = handler
        logger.debug("Background task registered", tag=tag)

    def trigger(self, tag: str) -> asyncio.Task:
        """
        Start the handler of a tag without waiting for it.

        Must be called from a running event loop.

        Raises:
            InvalidCommandError: No handler registered for the tag
        """
        if tag not in self._handlers:
            raise InvalidCommandError(
                f"Unknown background task '{tag}'",
                details={"tag": tag, "registered_tags": self.tags},
            )

        running = self._tasks.get(tag)
        if running is not None and not running.done():
            return running

        self._records[tag] = TaskRecord(tag=tag)
        task = asyncio.create_task(self._run(tag), name=f"background:{tag}")
        self._tasks[tag] = task
        log_stage(logger, Stage.BACKGROUND_TASK, "Background task triggered", tag=tag)
        return task

    async def wait(self, tag: str) -> TaskRecord:
        """Wait for the current run of a tag and return its record."""
        task = self._tasks.get(tag)
        if task is None:
            raise InvalidCommandError(
                f"Background task '{tag}' was never triggered", details={"tag": tag}
            )
        await asyncio.shield(task)
        return self._records[tag]

    def outcome(self, tag: str) -> TaskRecord | None:
        return self._records.get(tag)

    def snapshot(self) -> dict[str, dict[str, Any]]:
        return {tag: record.to_dict() for tag, record in self._records.items()}

    async def shutdown(self) -> None:
        """Cancel every running task and wait for them to finish."""
        running = [task for task in self._tasks.values() if not task.done()]
        for task in running:
            task.cancel()
        if running:
            await asyncio.gather(*running, return_exceptions=True)
            logger.info("Background tasks cancelled", count=len(running))

    async def _run(self, tag: str) -> None:
        record = self._records[tag]
        record.outcome = TaskOutcome.RUNNING
        record.started_at = time.time()
        handler = self._handlers[tag]

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_attempts),
                wait=wait_exponential_jitter(
                    initial=self.retry_delay, max=self.retry_delay * 10, jitter=self.retry_delay
                ),
                reraise=False,
            ):
                with attempt:
                    record.attempts = attempt.retry_state.attempt_number
                    await handler()
        except RetryError as e:
            cause = e.last_attempt.exception()
            record.outcome = TaskOutcome.FAILED
            record.error = str(cause) or cause.__class__.__name__
            log_stage(
                logger, Stage.BACKGROUND_TASK, "Background task failed", level="error",
                tag=tag, attempts=record.attempts, error=record.error,
                error_type=cause.__class__.__name__,
            )
        except asyncio.CancelledError:
            record.outcome = TaskOutcome.FAILED
            record.error = "cancelled"
            raise
        else:
            record.outcome = TaskOutcome.SUCCEEDED
            log_stage(
                logger, Stage.BACKGROUND_TASK, "Background task completed",
                tag=tag, attempts=record.attempts,
            )
        finally:
            record.finished_at = time.time()
