"""Path consumption contract and cancellable timed playback.

A route is a read-only replay script. Consumers (map highlighter, animator,
voice narration) receive `PlaybackEvent`s in order; step `i` is delivered only
after the consumer has finished handling step `i - 1`.

Usage example:
    >>> controller = PlaybackController(consumer=print, step_delay_s=0.0)
    >>> await controller.play(route.nodes)
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Iterator, Sequence

from storenav.layout import NodeKey
from storenav.utils import env_float

logger = logging.getLogger(__name__)

DEFAULT_STEP_DELAY_S = 1.2


class EventKind(str, Enum):
    ROUTE_STARTED = "route_started"
    STEP = "step"
    ARRIVED = "arrived"
    NO_PATH = "no_path"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class PlaybackEvent:
    """One presentation step emitted to a path consumer."""

    kind: EventKind
    index: int | None = None
    node: NodeKey | None = None
    goal: NodeKey | None = None


PathConsumer = Callable[[PlaybackEvent], "Awaitable[Any] | Any"]


def replay(path: Sequence[NodeKey]) -> Iterator[PlaybackEvent]:
    """Yield the full event script for `path` without any timing."""
    nodes = tuple(path)
    if not nodes:
        yield PlaybackEvent(kind=EventKind.NO_PATH)
        return

    goal = nodes[-1]
    yield PlaybackEvent(kind=EventKind.ROUTE_STARTED, node=nodes[0], goal=goal)
    for index, node in enumerate(nodes):
        yield PlaybackEvent(kind=EventKind.STEP, index=index, node=node, goal=goal)
    yield PlaybackEvent(kind=EventKind.ARRIVED, index=len(nodes) - 1, node=goal, goal=goal)


async def _deliver(consumer: PathConsumer, event: PlaybackEvent) -> None:
    result = consumer(event)
    if inspect.isawaitable(result):
        await result


class PathPlayback:
    """Timed presentation of one path."""

    def __init__(self, path: Sequence[NodeKey], consumer: PathConsumer, step_delay_s: float = DEFAULT_STEP_DELAY_S) -> None:
        if step_delay_s < 0:
            raise ValueError("step_delay_s must be >= 0")
        self.path: tuple[NodeKey, ...] = tuple(path)
        self.consumer = consumer
        self.step_delay_s = float(step_delay_s)
        self.steps_presented = 0
        self.cancelled = False

    async def run(self) -> None:
        goal = self.path[-1] if self.path else None
        try:
            for event in replay(self.path):
                if event.kind is EventKind.STEP and event.index:
                    await asyncio.sleep(self.step_delay_s)
                await _deliver(self.consumer, event)
                if event.kind is EventKind.STEP:
                    self.steps_presented += 1
        except asyncio.CancelledError:
            self.cancelled = True
            logger.debug("Playback towards %s cancelled after %d steps", goal, self.steps_presented)
            await _deliver(self.consumer, PlaybackEvent(kind=EventKind.CANCELLED, index=self.steps_presented, goal=goal))
            raise


class PlaybackController:
    """Keeps at most one playback active; starting a new one replaces the old."""

    def __init__(self, consumer: PathConsumer, step_delay_s: float | None = None) -> None:
        self.consumer = consumer
        if step_delay_s is None:
            step_delay_s = env_float("STORENAV_STEP_DELAY_S", DEFAULT_STEP_DELAY_S)
        self.step_delay_s = step_delay_s
        self._active: asyncio.Task[None] | None = None
        self._current: PathPlayback | None = None
        self._lock = asyncio.Lock()

    @property
    def is_playing(self) -> bool:
        return self._active is not None and not self._active.done()

    @property
    def current(self) -> PathPlayback | None:
        return self._current

    async def play(self, path: Sequence[NodeKey]) -> asyncio.Task[None]:
        """Cancel any in-flight playback, then start presenting `path`."""
        async with self._lock:
            await self._cancel_active()
            playback = PathPlayback(path, self.consumer, self.step_delay_s)
            self._current = playback
            self._active = asyncio.create_task(playback.run())
            return self._active

    async def cancel(self) -> bool:
        """Stop the active playback. Returns True if one was running."""
        async with self._lock:
            return await self._cancel_active()

    async def _cancel_active(self) -> bool:
        task = self._active
        self._active = None
        if task is None:
            return False
        if task.done():
            _log_failure(task)
            return False
        task.cancel()
        # wait() never re-raises the task's CancelledError; only the caller's own cancellation propagates.
        await asyncio.wait([task])
        _log_failure(task)
        return True


def _log_failure(task: asyncio.Task[None]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Playback ended with a consumer error", exc_info=exc)
