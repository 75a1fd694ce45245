"""
Dashboard entry point
=====================

Wires the context, the gateway client and three long-lived tasks onto one
asyncio event loop:

    poller     StatusPoller.run()          every --poll-ms, first tick at once
    animation  ease nodes, tick particles, repaint      every 1/--fps seconds
    input      drain raw keys and mouse events            every few ms

None of them waits on another, so particles keep moving and keys keep
working while the gateway is slow or down.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import time
from contextlib import AsyncExitStack
from datetime import timedelta

from rich.console import Console
from rich.live import Live

from .client import BackendClient
from .commands import CommandDispatcher
from .config import DashboardConfig
from .context import DashboardContext
from .controls import KeyPoller, handle_key
from .poller import StatusPoller
from .render import make_layout, render_all

INPUT_INTERVAL = 0.01


async def animation_loop(ctx: DashboardContext, live: Live, layout, console: Console,
                         interactive: bool, stop: asyncio.Event):
    while not stop.is_set():
        ctx.graph.ease()
        ctx.particles.tick()
        render_all(ctx, layout, console.size.width, console.size.height, interactive)
        live.refresh()
        await asyncio.sleep(ctx.config.frame_interval)


async def input_loop(ctx: DashboardContext, dispatcher: CommandDispatcher, keys: KeyPoller,
                     console: Console, stop: asyncio.Event):
    while not stop.is_set():
        key = keys.poll()
        while key:
            if not handle_key(ctx, dispatcher, key, console.size.width, console.size.height):
                stop.set()
                return
            key = keys.poll()
        await asyncio.sleep(INPUT_INTERVAL)


async def run_dashboard(ctx: DashboardContext, console: Console, interactive: bool,
                        demo: bool = False):
    config = ctx.config
    stop = asyncio.Event()

    async with AsyncExitStack() as stack:
        if demo:
            from .demo import start_demo_server

            runner, url = await start_demo_server()
            stack.push_async_callback(runner.cleanup)
            config = config.with_overrides(api_url=url)
            ctx.config = config

        client = BackendClient(config.api_url, timeout=config.request_timeout_s)
        poller = StatusPoller(ctx, client)
        dispatcher = CommandDispatcher(ctx, client)
        ctx.log(f"Dashboard initialized. Connecting to {config.api_url}...", "sys")

        layout = make_layout()
        keys = stack.enter_context(KeyPoller(interactive))
        live = stack.enter_context(
            Live(layout, console=console, auto_refresh=False, screen=True)
        )

        loops = {
            asyncio.ensure_future(poller.run()): "Poller",
            asyncio.ensure_future(animation_loop(ctx, live, layout, console, keys.enabled, stop)):
                "Animation",
        }
        if keys.enabled:
            loops[asyncio.ensure_future(input_loop(ctx, dispatcher, keys, console, stop))] = "Input"
        stop_task = asyncio.ensure_future(stop.wait())
        crashed: BaseException | None = None
        try:
            # a quit sets stop; any loop that finishes first ends the session
            done, _ = await asyncio.wait({stop_task, *loops}, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                if task is stop_task or task.cancelled() or task.exception() is None:
                    continue
                crashed = task.exception()
                ctx.log(f"{loops[task]} loop crashed: {type(crashed).__name__}: {crashed}", "error")
        finally:
            for t in (stop_task, *loops):
                t.cancel()
            await asyncio.gather(stop_task, *loops, return_exceptions=True)
            await poller.drain()
            await dispatcher.drain()
        if crashed is not None:
            raise crashed


def print_summary(console: Console, ctx: DashboardContext):
    c = ctx.counters
    console.print()
    console.print("[bold bright_cyan]Ringdash Session Complete[/]")
    console.print(f"  Duration    {timedelta(seconds=int(time.time() - c.started))}")
    console.print(f"  Polls       {c.polls_ok} ok  {c.polls_failed} failed")
    console.print(f"  Commands    {c.commands}")
    console.print(f"  Particles   {ctx.particles.spawned}")
    console.print(f"  Mode        {ctx.view.mode}")
    members = ", ".join(ctx.view.nodes) or "none"
    console.print(f"  Nodes       {members}")
    console.print()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Live terminal dashboard for a consistent-hash KV ring")
    ap.add_argument("--api", help="gateway base URL (env RINGDASH_API_URL)")
    ap.add_argument("--poll-ms", type=int, help="status poll interval in ms (env RINGDASH_POLL_MS)")
    ap.add_argument("--fps", type=int, help="animation frame rate (env RINGDASH_FPS)")
    ap.add_argument("--demo", action="store_true", help="serve a simulated cluster in-process")
    ap.add_argument("--no-input", action="store_true", help="disable keyboard and mouse")
    return ap.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    console = Console()
    try:
        config = DashboardConfig.from_env().with_overrides(
            api_url=args.api, poll_interval_ms=args.poll_ms, fps=args.fps,
        )
        ctx = DashboardContext(config)
    except ValueError as e:
        console.print(f"[bold red]config error:[/] {e}")
        return 2

    interactive = not args.no_input and sys.stdin.isatty()
    status = 0
    loop = asyncio.new_event_loop()
    main_task = loop.create_task(run_dashboard(ctx, console, interactive, demo=args.demo))
    try:
        loop.run_until_complete(main_task)
    except KeyboardInterrupt:
        main_task.cancel()
        loop.run_until_complete(asyncio.gather(main_task, return_exceptions=True))
    except Exception as e:
        console.print(f"[bold red]dashboard stopped:[/] {type(e).__name__}: {e}")
        status = 1
    finally:
        loop.close()
    print_summary(console, ctx)
    return status
