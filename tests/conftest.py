import json
import random

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from ringdash.config import DashboardConfig
from ringdash.context import DashboardContext
from ringdash.model import parse_snapshot


def status_payload(nodes, mode="sync", replicas=20, stats=None):
    if stats is None:
        stats = [
            {"address": n, "key_count": i, "request_rate": 10 * i, "keys": [f"k{j}" for j in range(i)]}
            for i, n in enumerate(nodes)
        ]
    return {"nodes": list(nodes), "mode": mode, "stats": stats, "config": {"replicas": replicas}}


def snapshot(nodes, **kw):
    return parse_snapshot(status_payload(nodes, **kw))


class FakeGateway:
    """Scriptable stand-in for the gateway.  Records every request."""

    def __init__(self, status=None):
        self.status_body = json.dumps(status if status is not None else status_payload([]))
        self.status_code = 200
        self.put_code = 200
        self.store: dict[str, str] = {}
        self.raw_get: bytes | None = None
        self.raw_put_error: bytes | None = None
        self.requests: list[tuple[str, dict]] = []

    def set_status(self, payload, code=200):
        self.status_body = payload if isinstance(payload, (str, bytes)) else json.dumps(payload)
        self.status_code = code

    async def status(self, request):
        self.requests.append(("status", {}))
        if isinstance(self.status_body, bytes):
            return web.Response(status=self.status_code, body=self.status_body,
                                content_type="application/json")
        return web.Response(status=self.status_code, text=self.status_body,
                            content_type="application/json")

    async def config(self, request):
        body = json.loads(await request.text())
        self.requests.append(("config", body))
        return web.json_response({"ok": True})

    async def put(self, request):
        q = dict(request.query)
        self.requests.append(("put", q))
        if self.put_code != 200:
            if self.raw_put_error is not None:
                return web.Response(status=self.put_code, body=self.raw_put_error,
                                    content_type="text/plain", charset="utf-8")
            return web.Response(status=self.put_code, text="replica write failed")
        self.store[q["key"]] = q["value"]
        return web.Response(text="OK (Mode: sync)\n")

    async def get(self, request):
        q = dict(request.query)
        self.requests.append(("get", q))
        if self.raw_get is not None:
            return web.Response(body=self.raw_get, content_type="text/plain", charset="utf-8")
        if q["key"] not in self.store:
            return web.Response(status=404, text="Not Found\n")
        return web.Response(text=self.store[q["key"]] + "\n")

    def app(self):
        app = web.Application()
        app.router.add_get("/status", self.status)
        app.router.add_post("/config", self.config)
        app.router.add_get("/put", self.put)
        app.router.add_get("/get", self.get)
        return app

    def of_kind(self, kind):
        return [body for k, body in self.requests if k == kind]


async def serve(app, fn):
    """Run ``fn(base_url)`` against ``app`` on a real local socket."""
    async with TestServer(app) as server:
        return await fn(str(server.make_url("/")).rstrip("/"))


@pytest.fixture
def config():
    return DashboardConfig()


@pytest.fixture
def ctx(config):
    return DashboardContext(config, rng=random.Random(7))


@pytest.fixture
def gateway():
    return FakeGateway()
