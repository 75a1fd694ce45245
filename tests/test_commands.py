import asyncio
import io

from rich.console import Console

from ringdash.client import BackendClient
from ringdash.commands import CommandDispatcher
from ringdash.poller import StatusPoller, apply_snapshot
from ringdash.render import render_header

from conftest import serve, snapshot, status_payload


def run(gateway, ctx, scenario):
    async def go(url):
        client = BackendClient(url)
        dispatcher = CommandDispatcher(ctx, client)
        poller = StatusPoller(ctx, client)
        await scenario(dispatcher, poller)
        await dispatcher.drain()

    asyncio.run(serve(gateway.app(), go))


def hud_text(ctx) -> str:
    console = Console(file=io.StringIO(), width=200, color_system=None)
    console.print(render_header(ctx))
    return console.file.getvalue()


def test_get_of_missing_key_is_not_found(gateway, ctx):
    async def scenario(dispatcher, poller):
        await dispatcher.get("missing")

    run(gateway, ctx, scenario)
    assert ctx.feed.messages()[0] == "GET missing -> NOT FOUND"
    assert ctx.feed.entries[0][1] == "warning"


def test_get_logs_the_value(gateway, ctx):
    gateway.store["user:1"] = "Alice"

    async def scenario(dispatcher, poller):
        await dispatcher.get("user:1")

    run(gateway, ctx, scenario)
    assert ctx.feed.messages()[0] == "GET user:1 -> Alice"


def test_mode_switch_waits_for_next_poll(gateway, ctx):
    gateway.set_status(status_payload(["a:9001"], mode="sync"))

    async def scenario(dispatcher, poller):
        await poller.poll()
        await dispatcher.switch_mode("async")
        assert ctx.view.mode == "sync"
        assert "CP MODE" in hud_text(ctx)

        gateway.set_status(status_payload(["a:9001"], mode="async"))
        await poller.poll()

    run(gateway, ctx, scenario)
    assert gateway.of_kind("config") == [{"mode": "async"}]
    assert ctx.view.mode == "async"
    assert "AP MODE" in hud_text(ctx)
    assert "Switched replication mode to async" in ctx.feed.messages()


def test_put_clears_fields_and_launches_a_particle(gateway, ctx):
    apply_snapshot(ctx, snapshot(["a:9001", "b:9002"]))
    ctx.prompt.open("put")
    ctx.prompt.type("user:7")
    ctx.prompt.next_field()
    ctx.prompt.type("Grace")

    async def scenario(dispatcher, poller):
        dispatcher.submit_prompt()

    run(gateway, ctx, scenario)
    assert gateway.of_kind("put") == [{"key": "user:7", "value": "Grace"}]
    assert ctx.feed.messages()[0] == "PUT user:7 = Grace"
    assert ctx.prompt.put_values() == ("", "")
    assert not ctx.prompt.active
    assert len(ctx.particles) == 1


def test_failed_put_keeps_fields(gateway, ctx):
    gateway.put_code = 500
    ctx.prompt.fields.update(put_key="k", put_val="v")

    async def scenario(dispatcher, poller):
        await dispatcher.put("k", "v")

    run(gateway, ctx, scenario)
    assert ctx.feed.messages()[0].startswith("PUT failed: 500")
    assert ctx.prompt.put_values() == ("k", "v")
    assert len(ctx.particles) == 0


def test_blank_prompt_is_not_sent(gateway, ctx):
    ctx.prompt.open("put")
    ctx.prompt.type("only-a-key")

    async def scenario(dispatcher, poller):
        assert dispatcher.submit_prompt() is None
        ctx.prompt.open("get")
        assert dispatcher.submit_prompt() is None

    run(gateway, ctx, scenario)
    assert gateway.requests == []


def test_duplicate_submissions_are_all_sent(gateway, ctx):
    async def scenario(dispatcher, poller):
        dispatcher.put("k", "v")
        dispatcher.put("k", "v")
        assert dispatcher.in_flight == 2

    run(gateway, ctx, scenario)
    assert len(gateway.of_kind("put")) == 2
    assert ctx.counters.commands == 2


def test_unreachable_gateway_is_logged_not_raised(ctx):
    async def go():
        dispatcher = CommandDispatcher(ctx, BackendClient("http://127.0.0.1:1", timeout=2))
        dispatcher.get("k")
        dispatcher.switch_mode("async")
        await dispatcher.drain()

    asyncio.run(go())
    levels = [level for _, level, _, _ in ctx.feed.entries]
    assert levels == ["error", "error"]
    assert any(m.startswith("GET failed") for m in ctx.feed.messages())


def test_get_with_undecodable_body_is_still_logged(gateway, ctx):
    gateway.raw_get = b"\xff\xfe"

    async def scenario(dispatcher, poller):
        await dispatcher.get("blob")

    run(gateway, ctx, scenario)
    assert ctx.feed.messages() == ["GET blob -> ��"]
    assert ctx.feed.entries[0][1] == "success"


def test_put_rejection_with_undecodable_body_is_logged(gateway, ctx):
    gateway.put_code = 500
    gateway.raw_put_error = b"\xff write failed"

    async def scenario(dispatcher, poller):
        await dispatcher.put("k", "v")

    run(gateway, ctx, scenario)
    assert ctx.feed.messages()[0].startswith("PUT failed: 500")
    assert ctx.feed.entries[0][1] == "error"


class BrokenClient:
    async def get(self, key):
        raise KeyError(key)


def test_unexpected_command_failure_lands_in_the_feed(ctx):
    async def go():
        dispatcher = CommandDispatcher(ctx, BrokenClient())
        dispatcher.get("k")
        await dispatcher.drain()
        assert dispatcher.in_flight == 0

    asyncio.run(go())
    assert ctx.feed.messages() == ["GET crashed: KeyError: 'k'"]
    assert ctx.feed.entries[0][1] == "error"
