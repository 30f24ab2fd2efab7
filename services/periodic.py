"""
Periodic Task

Runs an async callback on a fixed interval in a background asyncio task
with explicit start()/stop(). stop() cancels the task and waits for it,
so the callback never runs after stop() returns.
"""

import asyncio
import contextlib
from typing import Awaitable, Callable, Optional

from core.logging import get_logger


class PeriodicTask:
    """
    Background loop calling `callback` every `interval` seconds.

    The first call happens immediately after start(). Errors raised by the
    callback are logged and the loop keeps going.
    """

    def __init__(self, callback: Callable[[], Awaitable[None]], interval: float, name: str = "periodic_task") -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._logger = get_logger(__name__)
        self._callback = callback
        self._interval = interval
        self._name = name
        self._running = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._running.is_set()

    async def start(self) -> None:
        if self._running.is_set():
            return
        self._running.set()
        self._logger.debug(f"Starting {self._name} (every {self._interval}s)")
        self._task = asyncio.create_task(self._run(), name=self._name)

    async def stop(self) -> None:
        if not self._running.is_set():
            return
        self._logger.debug(f"Stopping {self._name}")
        self._running.clear()
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

    # ============================================
    # Core Loop
    # ============================================
    async def _run(self) -> None:
        while self._running.is_set():
            try:
                await self._callback()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self._logger.error(f"{self._name} cycle error: {e}")
            await asyncio.sleep(self._interval)
