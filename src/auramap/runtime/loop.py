"""Async render loop driving a simulation context at a fixed frame rate."""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable

from auramap.runtime.context import SimulationContext
from auramap.view.frame import DrawList

logger = logging.getLogger(__name__)

FrameSink = Callable[[DrawList], Awaitable[None] | None]


class RenderLoop:
    """
    Cooperative frame loop: step the context, hand the draw list to a sink.

    Use as an async context manager so the loop is always torn down:

        async with RenderLoop(context, sink):
            ...

    Once ``stop`` returns no further frame reaches the sink and the context
    is closed. A failing frame is logged and the loop keeps going.
    """

    def __init__(
        self,
        context: SimulationContext,
        sink: FrameSink,
        frame_rate: float | None = None,
        close_context: bool = True,
    ) -> None:
        self.context = context
        self.sink = sink
        self.frame_rate = frame_rate or context.config.frame_rate
        self.close_context = close_context

        self.frames = 0
        self.errors = 0
        self._task: asyncio.Task | None = None
        self._stopped = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self._stopped:
            raise RuntimeError("Render loop already stopped")
        if self._task is None:
            self._task = asyncio.create_task(self._run())
            logger.debug(f"Render loop started at {self.frame_rate:.0f} fps")

    async def stop(self) -> None:
        """Cancel the loop and wait until it has exited."""
        self._stopped = True
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        if self.close_context:
            self.context.close()
        logger.debug(f"Render loop stopped after {self.frames} frames ({self.errors} errors)")

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        interval = 1.0 / self.frame_rate
        while not self._stopped and not self.context.closed:
            started = loop.time()
            try:
                draw = self.context.step()
                if self._stopped:
                    break
                result = self.sink(draw)
                if inspect.isawaitable(result):
                    await result
                self.frames += 1
            except asyncio.CancelledError:
                raise
            except Exception:
                self.errors += 1
                logger.exception("Render loop frame failed")
            elapsed = loop.time() - started
            await asyncio.sleep(max(0.0, interval - elapsed))

    async def __aenter__(self) -> "RenderLoop":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()
