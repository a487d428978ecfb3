"""Ways to run a briefing continuation after ``generate`` returns."""

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class InProcessDispatcher:
    """Runs continuations as asyncio tasks on the current event loop.

    Work does not survive a process restart; the stale sweep picks it up.
    """

    def __init__(self, runner: Callable[[uuid.UUID], Awaitable[None]], delay_s: float = 1.0):
        self._runner = runner
        self.delay_s = delay_s
        self._tasks: set[asyncio.Task] = set()

    async def dispatch(self, briefing_id: uuid.UUID) -> None:
        task = asyncio.create_task(self._run(briefing_id), name=f"briefing-{briefing_id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, briefing_id: uuid.UUID) -> None:
        if self.delay_s > 0:
            await asyncio.sleep(self.delay_s)
        try:
            await self._runner(briefing_id)
        except Exception:
            logger.exception("Background briefing %s crashed", briefing_id)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every in-flight continuation."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


class TaskiqDispatcher:
    """Enqueues continuations on the taskiq Redis broker."""

    async def dispatch(self, briefing_id: uuid.UUID) -> None:
        from newsbrief.core.tasks.briefing_tasks import run_briefing

        await run_briefing.kiq(str(briefing_id))
