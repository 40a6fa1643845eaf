import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional


class OrderPoller:
    """Re-fetches on a fixed interval; a tick is skipped while the previous fetch is still running."""

    def __init__(
        self,
        fetch: Callable[[], Awaitable[Any]],
        interval: float = 30.0,
        on_update: Optional[Callable[[Any], None]] = None,
    ):
        self.fetch = fetch
        self.interval = interval
        self.on_update = on_update
        self.last_result: Any = None
        self._in_flight = False
        self._task: Optional[asyncio.Task] = None
        self._tick_task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def tick(self) -> bool:
        if self._in_flight:
            logging.debug("POLLING >>> Previous fetch still running, tick skipped")
            return False

        self._in_flight = True
        try:
            self.last_result = await self.fetch()
            if self.on_update:
                self.on_update(self.last_result)
            return True
        except Exception as e:
            logging.warning(f"POLLING >>> Fetch failed -> {e}")
            return False
        finally:
            self._in_flight = False

    async def _run(self):
        loop = asyncio.get_running_loop()
        while True:
            # Scheduled rather than awaited so a slow fetch cannot stretch the interval
            if not self._in_flight:
                self._tick_task = loop.create_task(self.tick())
            await asyncio.sleep(self.interval)

    def start(self) -> asyncio.Task:
        if not self.running:
            self._task = asyncio.get_running_loop().create_task(self._run())
        return self._task

    async def stop(self) -> None:
        tasks = [task for task in (self._task, self._tick_task) if task is not None and not task.done()]
        self._task = None
        self._tick_task = None

        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
