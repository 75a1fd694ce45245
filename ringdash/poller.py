"""
Status poller
=============

Fetches ``/status`` on a fixed timer (first fetch immediately) and folds each
good snapshot into the dashboard context:

    reconcile -> inspector refresh -> node graph diff

A failed or malformed fetch is logged and leaves the context untouched; the
next tick is the only retry.  Each fetch runs as its own task, so a slow one
can overlap the next and whichever completes last wins.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING

from .client import BackendClient
from .graph import GraphDiff
from .model import BackendError, SystemSnapshot
from .state import reconcile

if TYPE_CHECKING:
    from .context import DashboardContext


def apply_snapshot(ctx: DashboardContext, snap: SystemSnapshot) -> GraphDiff:
    ctx.view = reconcile(ctx.view, snap)
    ctx.inspector.refresh(ctx.view)
    diff = ctx.graph.sync(ctx.view)
    # tooltip must not outlive its node
    if ctx.tooltip.node_id and ctx.tooltip.node_id not in ctx.graph:
        ctx.tooltip.hide()
    return diff


class StatusPoller:
    def __init__(self, ctx: DashboardContext, client: BackendClient):
        self.ctx = ctx
        self.client = client
        self._tasks: set[asyncio.Task] = set()

    async def poll(self) -> SystemSnapshot | None:
        try:
            snap = await self.client.fetch_status()
        except BackendError as e:
            self.ctx.counters.polls_failed += 1
            self.ctx.log(f"Poll error: {e}", "error")
            return None

        diff = apply_snapshot(self.ctx, snap)
        self.ctx.counters.polls_ok += 1
        self.ctx.counters.last_poll_ok = time.time()
        for node_id in diff.entered:
            self.ctx.log(f"Node joined {node_id}", "info")
        for node_id in diff.exited:
            self.ctx.log(f"Node left {node_id}", "warning")
        return snap

    def tick(self) -> asyncio.Task:
        task = asyncio.ensure_future(self.poll())
        self._tasks.add(task)
        task.add_done_callback(self.ctx.reaper(self._tasks, "Poll"))
        return task

    async def run(self):
        """Poll forever.  Never waits for the previous fetch to finish."""
        while True:
            self.tick()
            await asyncio.sleep(self.ctx.config.poll_interval)

    async def drain(self):
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
