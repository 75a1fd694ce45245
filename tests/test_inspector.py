from ringdash.graph import STYLE_DEFAULT, STYLE_SELECTED
from ringdash.inspector import (
    BLANK, EMPTY, select_index, select_node, select_step,
)
from ringdash.model import parse_snapshot
from ringdash.poller import apply_snapshot

from conftest import snapshot, status_payload


def two_workers():
    return parse_snapshot(status_payload(["a:9001", "b:9002"], stats=[
        {"address": "a:9001", "key_count": 2, "request_rate": 42, "keys": ["user:1", "user:2"]},
        {"address": "b:9002", "key_count": 0, "request_rate": 3, "keys": []},
    ]))


def test_inspector_starts_empty(ctx):
    assert ctx.inspector.content == EMPTY


def test_selecting_a_worker_shows_its_detail(ctx):
    apply_snapshot(ctx, two_workers())
    select_node(ctx, "a:9001")

    content = ctx.inspector.content
    assert content.kind == "detail"
    assert content.title == "Worker 9001"
    assert content.request_rate == 42
    assert content.keys == ("user:1", "user:2")
    assert ctx.graph.styles(None) == {"a:9001": STYLE_SELECTED, "b:9002": STYLE_DEFAULT}


def test_worker_without_keys_is_distinct_from_populated(ctx):
    apply_snapshot(ctx, two_workers())
    select_node(ctx, "b:9002")
    assert ctx.inspector.content.kind == "detail"
    assert ctx.inspector.content.keys == ()


def test_selecting_twice_changes_nothing(ctx):
    apply_snapshot(ctx, two_workers())
    select_node(ctx, "a:9001")
    first = ctx.inspector.content
    select_node(ctx, "a:9001")
    assert ctx.inspector.content == first
    assert ctx.view.selected_node == "a:9001"


def test_selection_clears_when_node_leaves(ctx):
    apply_snapshot(ctx, snapshot(["a:9001"]))
    select_node(ctx, "a:9001")
    assert ctx.inspector.content.kind == "detail"

    apply_snapshot(ctx, snapshot([]))
    assert ctx.view.selected_node is None
    assert ctx.inspector.content == EMPTY
    assert "a:9001" not in ctx.graph
    assert len(ctx.graph) == 0


def test_selection_without_stat_record_renders_nothing(ctx):
    apply_snapshot(ctx, parse_snapshot(status_payload(["a:9001"], stats=[])))
    select_node(ctx, "a:9001")
    assert ctx.view.selected_node == "a:9001"
    assert ctx.inspector.content == BLANK


def test_select_by_index_and_step(ctx):
    apply_snapshot(ctx, snapshot(["a:9001", "b:9002", "c:9003"]))
    assert select_index(ctx, 1)
    assert ctx.view.selected_node == "b:9002"
    assert not select_index(ctx, 5)
    assert ctx.view.selected_node == "b:9002"
    select_step(ctx, 1)
    select_step(ctx, 1)
    assert ctx.view.selected_node == "a:9001"
    select_step(ctx, -1)
    assert ctx.view.selected_node == "c:9003"


def test_clearing_selection(ctx):
    apply_snapshot(ctx, snapshot(["a:9001"]))
    select_node(ctx, "a:9001")
    select_node(ctx, None)
    assert ctx.inspector.content == EMPTY
    assert ctx.graph.styles(None) == {"a:9001": STYLE_DEFAULT}


def test_tooltip_follows_pointer_not_selection(ctx):
    apply_snapshot(ctx, two_workers())
    select_node(ctx, "a:9001")

    ctx.tooltip.track(ctx.graph, "b:9002", (10, 4))
    assert ctx.tooltip.visible
    assert ctx.tooltip.content.lines() == ["b:9002", "Keys: 0", "Load: 3/s"]
    assert ctx.view.selected_node == "a:9001"

    ctx.tooltip.track(ctx.graph, None, (0, 0))
    assert not ctx.tooltip.visible
    assert ctx.view.selected_node == "a:9001"


def test_tooltip_hides_when_its_node_leaves(ctx):
    apply_snapshot(ctx, two_workers())
    ctx.tooltip.track(ctx.graph, "b:9002", (3, 3))
    apply_snapshot(ctx, snapshot(["a:9001"]))
    assert not ctx.tooltip.visible
