"""
Dashboard context
=================

Owns every piece of mutable dashboard state: view, visual graph, particles,
inspector, tooltip, activity feed and prompt.  It is passed to each component
explicitly and is only ever touched from the event loop thread, so nothing
here takes a lock.
"""

from __future__ import annotations

import asyncio
import random
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable

from .commands import CommandPrompt
from .config import DashboardConfig
from .graph import NodeGraph
from .inspector import Inspector, Tooltip
from .particles import ParticleSystem
from .state import ViewState

LEVEL_STYLE: dict[str, str] = {
    "sys": "bright_cyan",
    "info": "white",
    "success": "bright_green",
    "warning": "yellow",
    "error": "bold red",
}


class ActivityFeed:
    """Bounded, newest-first log stream shown in the Activity panel."""

    def __init__(self, maxlen: int):
        self.entries: deque[tuple[str, str, str, str]] = deque(maxlen=maxlen)
        self._last: tuple[str, str] | None = None
        self._repeat = 1

    def log(self, msg: str, level: str = "info"):
        ts = time.strftime("%H:%M:%S")
        style = LEVEL_STYLE.get(level, "white")
        if level == "error" and self.entries and self._last == (level, msg):
            # a dead gateway fails every tick; keep one line and count
            self._repeat += 1
            self.entries[0] = (ts, level, f"{msg}  (x{self._repeat})", style)
            return
        self._last = (level, msg)
        self._repeat = 1
        self.entries.appendleft((ts, level, msg, style))

    def messages(self) -> list[str]:
        return [m for _, _, m, _ in self.entries]

    def __len__(self) -> int:
        return len(self.entries)


@dataclass
class SessionCounters:
    started: float = field(default_factory=time.time)
    polls_ok: int = 0
    polls_failed: int = 0
    commands: int = 0
    last_poll_ok: float | None = None


class DashboardContext:
    def __init__(self, config: DashboardConfig, rng: random.Random | None = None):
        self.config = config
        self.view = ViewState()
        self.graph = NodeGraph(config.ring_radius)
        self.particles = ParticleSystem(config, rng=rng)
        self.inspector = Inspector()
        self.tooltip = Tooltip()
        self.feed = ActivityFeed(config.max_activity)
        self.prompt = CommandPrompt()
        self.counters = SessionCounters()

    @property
    def hovered(self) -> str | None:
        return self.tooltip.node_id

    def log(self, msg: str, level: str = "info"):
        self.feed.log(msg, level)

    def reaper(self, tasks: set[asyncio.Task], label: str) -> Callable[[asyncio.Task], None]:
        """Done-callback for fire-and-forget tasks: forget the task and put any
        unexpected failure in the feed instead of on stderr."""

        def done(task: asyncio.Task):
            tasks.discard(task)
            if task.cancelled():
                return
            exc = task.exception()
            if exc is not None:
                self.log(f"{label} crashed: {type(exc).__name__}: {exc}", "error")

        return done
