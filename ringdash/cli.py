"""
One-shot gateway client
=======================

Scriptable counterpart to the dashboard's command bar:

    python main.py status
    python main.py put user:1 Alice
    python main.py get user:1
    python main.py mode async
    python main.py seed              # write user:1..user:5, read them back, miss user:99
"""

from __future__ import annotations

import argparse
import asyncio
from datetime import datetime

from .client import BackendClient
from .config import DashboardConfig
from .model import MODES, BackendError, SystemSnapshot

DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"
RED = "\033[31m"
YELLOW = "\033[33m"
GREEN = "\033[32m"
CYAN = "\033[36m"

LEVEL_STYLE: dict[str, str] = {
    "sys": CYAN,
    "info": DIM,
    "success": GREEN,
    "warning": YELLOW,
    "error": RED,
}

SEED = (("user:1", "Alice"), ("user:2", "Bob"), ("user:3", "Charlie"),
        ("user:4", "Dave"), ("user:5", "Eve"))


def format_line(level: str, msg: str) -> str:
    ts = datetime.now().strftime("%H:%M:%S")
    style = LEVEL_STYLE.get(level, "")
    return f"{DIM}{ts}{RESET} {style}{level.upper():7s}{RESET} {BOLD}{msg}{RESET}"


def emit(level: str, msg: str):
    print(format_line(level, msg))


def format_status(snap: SystemSnapshot) -> str:
    stats = {s.address: s for s in snap.stats}
    lines = [
        f"{BOLD}{CYAN}mode={snap.mode}{RESET}  {DIM}nodes={len(snap.nodes)}  vnodes={snap.replicas}{RESET}"
    ]
    for node in snap.nodes:
        s = stats.get(node)
        if s is None:
            lines.append(f"  {node:22s} {DIM}no stats{RESET}")
            continue
        lines.append(
            f"  {node:22s} {GREEN}{s.key_count:5d}{RESET} keys  "
            f"{YELLOW}{s.request_rate:4d}{RESET} req/s"
        )
    return "\n".join(lines)


async def run_command(client: BackendClient, args: argparse.Namespace) -> int:
    if args.cmd == "status":
        print(format_status(await client.fetch_status()))
    elif args.cmd == "put":
        result = await client.put(args.key, args.value)
        emit("success", f"PUT {args.key} = {args.value}  {DIM}{result}{RESET}")
    elif args.cmd == "get":
        res = await client.get(args.key)
        if res.found:
            emit("success", f"GET {args.key} -> {res.value}")
        else:
            emit("warning", f"GET {args.key} -> NOT FOUND")
    elif args.cmd == "mode":
        await client.set_mode(args.mode)
        emit("sys", f"Switched replication mode to {args.mode}")
    elif args.cmd == "seed":
        for key, value in SEED:
            await client.put(key, value)
            emit("success", f"PUT {key} = {value}")
        for key in [k for k, _ in SEED] + ["user:99"]:
            res = await client.get(key)
            if res.found:
                emit("success", f"GET {key} -> {res.value}")
            else:
                emit("warning", f"GET {key} -> NOT FOUND")
    return 0


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="One-shot client for the KV ring gateway")
    ap.add_argument("--api", help="gateway base URL (env RINGDASH_API_URL)")
    sub = ap.add_subparsers(dest="cmd", required=True)
    sub.add_parser("status", help="print membership, mode and per-node load")
    p = sub.add_parser("put", help="write a key")
    p.add_argument("key")
    p.add_argument("value")
    g = sub.add_parser("get", help="read a key")
    g.add_argument("key")
    m = sub.add_parser("mode", help="switch replication mode")
    m.add_argument("mode", choices=MODES)
    sub.add_parser("seed", help="write and read back a handful of sample users")
    return ap.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        config = DashboardConfig.from_env().with_overrides(api_url=args.api)
    except ValueError as e:
        emit("error", f"config error: {e}")
        return 2
    client = BackendClient(config.api_url, timeout=config.request_timeout_s)
    try:
        return asyncio.run(run_command(client, args))
    except BackendError as e:
        emit("error", f"{args.cmd} failed: {e}")
        return 1
