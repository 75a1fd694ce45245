"""
Command dispatcher
==================

Fire-and-forget operator actions.  Each call schedules exactly one request as
its own task and returns immediately; the outcome lands in the activity feed.
No retries, no de-duplication, no optimistic state changes: a mode switch only
shows up in the HUD once a later poll reports it.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Awaitable

from .client import BackendClient
from .hashring import ConsistentHash
from .model import BackendError

if TYPE_CHECKING:
    from .context import DashboardContext

PUT_FIELDS = ("put_key", "put_val")
GET_FIELDS = ("get_key",)


class CommandPrompt:
    """Input fields for PUT / GET.  ``action`` is the open form, if any."""

    def __init__(self):
        self.fields: dict[str, str] = {"put_key": "", "put_val": "", "get_key": ""}
        self.action: str | None = None
        self.focus: str | None = None

    @property
    def active(self) -> bool:
        return self.action is not None

    def open(self, action: str):
        self.action = action
        self.focus = PUT_FIELDS[0] if action == "put" else GET_FIELDS[0]

    def close(self):
        self.action = None
        self.focus = None

    def type(self, text: str):
        if self.focus:
            self.fields[self.focus] += text

    def backspace(self):
        if self.focus:
            self.fields[self.focus] = self.fields[self.focus][:-1]

    def next_field(self) -> bool:
        """Move focus forward; False when already on the last field."""
        order = PUT_FIELDS if self.action == "put" else GET_FIELDS
        if self.focus not in order:
            return False
        i = order.index(self.focus)
        if i + 1 >= len(order):
            return False
        self.focus = order[i + 1]
        return True

    def clear_put(self):
        self.fields["put_key"] = ""
        self.fields["put_val"] = ""

    def put_values(self) -> tuple[str, str]:
        return self.fields["put_key"].strip(), self.fields["put_val"].strip()

    def get_value(self) -> str:
        return self.fields["get_key"].strip()


class CommandDispatcher:
    def __init__(self, ctx: DashboardContext, client: BackendClient):
        self.ctx = ctx
        self.client = client
        self._tasks: set[asyncio.Task] = set()

    def _launch(self, coro: Awaitable[None], label: str) -> asyncio.Task:
        self.ctx.counters.commands += 1
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self.ctx.reaper(self._tasks, label))
        return task

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    async def drain(self):
        """Wait for every command issued so far (shutdown and tests)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # -- actions -------------------------------------------------------------

    def switch_mode(self, mode: str) -> asyncio.Task:
        return self._launch(self._switch_mode(mode), "Mode switch")

    def put(self, key: str, value: str) -> asyncio.Task:
        return self._launch(self._put(key, value), "PUT")

    def get(self, key: str) -> asyncio.Task:
        return self._launch(self._get(key), "GET")

    def submit_prompt(self) -> asyncio.Task | None:
        """Send whatever the open form holds.  Blank inputs are ignored."""
        prompt = self.ctx.prompt
        if prompt.action == "put":
            key, val = prompt.put_values()
            if not key or not val:
                return None
            prompt.close()
            return self.put(key, val)
        if prompt.action == "get":
            key = prompt.get_value()
            if not key:
                return None
            prompt.close()
            return self.get(key)
        return None

    # -- request bodies ------------------------------------------------------

    async def _switch_mode(self, mode: str):
        try:
            await self.client.set_mode(mode)
        except (BackendError, ValueError) as e:
            self.ctx.log(f"Mode switch to {mode} failed: {e}", "error")
            return
        self.ctx.log(f"Switched replication mode to {mode}", "sys")

    async def _put(self, key: str, value: str):
        try:
            await self.client.put(key, value)
        except BackendError as e:
            self.ctx.log(f"PUT failed: {e}", "error")
            return
        self.ctx.log(f"PUT {key} = {value}", "success")
        self.ctx.prompt.clear_put()
        self.ctx.particles.spawn(self.ctx.graph, self.owner_hint(key))

    async def _get(self, key: str):
        try:
            result = await self.client.get(key)
        except BackendError as e:
            self.ctx.log(f"GET failed: {e}", "error")
            return
        if result.found:
            self.ctx.log(f"GET {key} -> {result.value}", "success")
        else:
            self.ctx.log(f"GET {key} -> NOT FOUND", "warning")

    def owner_hint(self, key: str) -> str:
        """Best guess at the node that took a write.  The dashboard's ring may
        disagree with the gateway's, so this only aims the particle."""
        view = self.ctx.view
        if not view.nodes:
            return ""
        return ConsistentHash(view.replicas, view.nodes).primary(key) or ""
