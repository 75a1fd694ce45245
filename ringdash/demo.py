"""
Demo gateway
============

A simulated cluster behind the same HTTP contract as the real gateway, so the
dashboard can be run and tested without any workers:

    python -m ringdash.demo --port 8080     # standalone
    python dashboard.py --demo              # in-process, random free port

Keys are placed with the gateway's CRC32 ring (20 virtual nodes per worker,
replication factor 2, or 3 once there are at least three workers).  Workers
periodically drop out and rejoin empty, and a trickle of background writes
and reads keeps the request rates moving.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import random

from aiohttp import web

from .hashring import ConsistentHash
from .model import MODES

REPLICAS = 20
DEFAULT_WORKERS = tuple(f"127.0.0.1:{9001 + i}" for i in range(5))
CHURN_INTERVAL = 12.0
TRAFFIC_INTERVAL = 0.4
ASYNC_LAG = 0.5


class DemoCluster:
    def __init__(self, workers=DEFAULT_WORKERS, mode: str = "sync", rng: random.Random | None = None):
        self.workers = list(workers)
        self.mode = mode
        self.rng = rng or random.Random()
        self.online: list[str] = list(self.workers)
        self.ring = ConsistentHash(REPLICAS, self.online)
        self.data: dict[str, dict[str, str]] = {w: {} for w in self.workers}
        self.req_counter: dict[str, int] = {w: 0 for w in self.workers}
        self.rate: dict[str, int] = {w: 0 for w in self.workers}

    def replication_factor(self) -> int:
        return 3 if len(self.online) >= 3 else 2

    def replicas_for(self, key: str) -> list[str]:
        return self.ring.get_n(key, self.replication_factor())

    def _write(self, node: str, key: str, value: str):
        if node in self.online:
            self.req_counter[node] += 1
            self.data[node][key] = value

    def put(self, key: str, value: str) -> str:
        targets = self.replicas_for(key)
        if not targets:
            raise RuntimeError("no workers online")
        if self.mode == "sync":
            for node in targets:
                self._write(node, key, value)
        else:
            # primary now, followers a little later
            self._write(targets[0], key, value)
            loop = asyncio.get_running_loop()
            for node in targets[1:]:
                loop.call_later(ASYNC_LAG, self._write, node, key, value)
        return f"OK (Mode: {self.mode})"

    def get(self, key: str) -> str | None:
        for node in self.replicas_for(key):
            self.req_counter[node] += 1
            if key in self.data[node]:
                return self.data[node][key]
        return None

    def set_mode(self, mode: str):
        if mode not in MODES:
            raise ValueError(f"unknown mode {mode!r}")
        self.mode = mode

    def sample_rates(self):
        for w in self.workers:
            self.rate[w] = self.req_counter[w]
            self.req_counter[w] = 0

    def churn(self) -> str | None:
        """Take one worker down, or bring one back.  Never empties the ring."""
        offline = [w for w in self.workers if w not in self.online]
        if offline and (len(self.online) <= 2 or self.rng.random() < 0.5):
            node = self.rng.choice(offline)
            self.data[node] = {}
            # rejoin at its configured position so the ring order stays stable
            self.online = [w for w in self.workers if w in self.online or w == node]
            self.ring.add(node)
            return f"+{node}"
        if len(self.online) > 2:
            node = self.rng.choice(self.online)
            self.online.remove(node)
            self.ring.remove(node)
            return f"-{node}"
        return None

    def status(self) -> dict:
        return {
            "nodes": list(self.online),
            "mode": self.mode,
            "stats": [
                {
                    "address": w,
                    "key_count": len(self.data[w]),
                    "request_rate": self.rate[w],
                    "keys": sorted(self.data[w]),
                }
                for w in self.online
            ],
            "config": {"replicas": REPLICAS},
        }


# ---------------------------------------------------------------------------
# HTTP handlers
# ---------------------------------------------------------------------------

CLUSTER = web.AppKey("cluster", DemoCluster)


async def handle_status(request: web.Request) -> web.Response:
    return web.json_response(request.app[CLUSTER].status())


async def handle_config(request: web.Request) -> web.Response:
    # browsers post this as text/plain, so decode by hand
    try:
        body = json.loads(await request.text() or "{}")
    except ValueError:
        return web.Response(status=400, text="bad json")
    try:
        request.app[CLUSTER].set_mode(body.get("mode", ""))
    except (ValueError, AttributeError) as e:
        return web.Response(status=400, text=str(e))
    return web.json_response({"ok": True, "mode": request.app[CLUSTER].mode})


async def handle_put(request: web.Request) -> web.Response:
    key = request.query.get("key", "")
    value = request.query.get("value", "")
    if not key or not value:
        return web.Response(status=400, text="missing params")
    try:
        result = request.app[CLUSTER].put(key, value)
    except RuntimeError as e:
        return web.Response(status=500, text=str(e))
    return web.Response(text=result + "\n")


async def handle_get(request: web.Request) -> web.Response:
    value = request.app[CLUSTER].get(request.query.get("key", ""))
    if value is None:
        return web.Response(status=404, text="Not Found\n")
    return web.Response(text=value + "\n")


async def _every(interval: float, fn):
    while True:
        await asyncio.sleep(interval)
        fn()


def _traffic(cluster: DemoCluster):
    n = cluster.rng.randint(1, 40)
    if cluster.rng.random() < 0.6:
        cluster.put(f"user:{n}", f"v{cluster.rng.randint(0, 999)}")
    else:
        cluster.get(f"user:{n}")


def make_app(cluster: DemoCluster | None = None, churn: bool = True, traffic: bool = True) -> web.Application:
    app = web.Application()
    app[CLUSTER] = cluster or DemoCluster()
    app.router.add_get("/status", handle_status)
    app.router.add_post("/config", handle_config)
    app.router.add_get("/put", handle_put)
    app.router.add_get("/get", handle_get)

    async def background(app: web.Application):
        c = app[CLUSTER]
        tasks = [asyncio.ensure_future(_every(1.0, c.sample_rates))]
        if churn:
            tasks.append(asyncio.ensure_future(_every(CHURN_INTERVAL, c.churn)))
        if traffic:
            tasks.append(asyncio.ensure_future(_every(TRAFFIC_INTERVAL, lambda: _traffic(c))))
        yield
        for t in tasks:
            t.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    app.cleanup_ctx.append(background)
    return app


async def start_demo_server(host: str = "127.0.0.1", port: int = 0) -> tuple[web.AppRunner, str]:
    """Serve the demo gateway on the running loop.  Returns (runner, base URL)."""
    runner = web.AppRunner(make_app())
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()
    bound = runner.addresses[0][1]
    return runner, f"http://{host}:{bound}"


def main(argv: list[str] | None = None):
    ap = argparse.ArgumentParser(description="Simulated KV ring gateway")
    ap.add_argument("--host", default="127.0.0.1")
    ap.add_argument("--port", type=int, default=8080)
    ap.add_argument("--mode", choices=MODES, default="sync")
    ap.add_argument("--workers", type=int, default=len(DEFAULT_WORKERS))
    ap.add_argument("--no-churn", action="store_true", help="keep membership fixed")
    args = ap.parse_args(argv)

    workers = [f"127.0.0.1:{9001 + i}" for i in range(max(1, args.workers))]
    cluster = DemoCluster(workers, mode=args.mode)
    web.run_app(make_app(cluster, churn=not args.no_churn), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
