import random

import pytest

from ringdash.model import MalformedResponse, parse_snapshot
from ringdash.state import ViewState, reconcile, with_selection

from conftest import snapshot, status_payload


def test_stats_are_keyed_by_address():
    view = reconcile(ViewState(), snapshot(["a:9001", "b:9002"]))
    assert set(view.stats) == {"a:9001", "b:9002"}
    assert view.stats["b:9002"].request_rate == 10
    assert view.total_keys == 1


def test_selection_survives_while_node_is_live():
    old = with_selection(ViewState(), "b:9002")
    view = reconcile(old, snapshot(["a:9001", "b:9002", "c:9003"]))
    assert view.selected_node == "b:9002"


def test_selection_resets_when_node_leaves():
    old = with_selection(reconcile(ViewState(), snapshot(["a:9001"])), "a:9001")
    view = reconcile(old, snapshot([]))
    assert view.selected_node is None
    assert view.nodes == ()


def test_stats_for_non_members_are_dropped():
    payload = status_payload(["a:9001"], stats=[
        {"address": "a:9001", "key_count": 1, "request_rate": 0, "keys": ["x"]},
        {"address": "ghost:9009", "key_count": 4, "request_rate": 3, "keys": []},
    ])
    view = reconcile(ViewState(), parse_snapshot(payload))
    assert set(view.stats) == {"a:9001"}


def test_reconcile_is_deterministic():
    old = with_selection(ViewState(), "a:9001")
    snap = snapshot(["a:9001", "b:9002"], mode="async")
    assert reconcile(old, snap) == reconcile(old, snap)
    assert old.selected_node == "a:9001"


def test_selection_is_always_none_or_a_member():
    rng = random.Random(3)
    pool = [f"n{i}:90{i:02d}" for i in range(8)]
    view = ViewState()
    for _ in range(200):
        nodes = rng.sample(pool, rng.randint(0, len(pool)))
        if rng.random() < 0.5:
            view = with_selection(view, rng.choice(pool))
        view = reconcile(view, snapshot(nodes))
        assert view.selected_node is None or view.selected_node in nodes


def test_parse_snapshot_reads_mode_and_replicas():
    snap = parse_snapshot(status_payload(["a:9001"], mode="async", replicas=7))
    assert snap.mode == "async"
    assert snap.replicas == 7
    assert snap.stats[0].keys == ()


@pytest.mark.parametrize("payload", [
    [],
    {"nodes": "a:9001", "mode": "sync"},
    {"nodes": ["a:9001", "a:9001"], "mode": "sync"},
    {"nodes": [], "mode": "quorum"},
    {"nodes": [], "mode": "sync", "stats": [{"key_count": 1}]},
    {"nodes": [], "mode": "sync", "stats": [{"address": "a:1", "key_count": -1}]},
    {"nodes": [], "mode": "sync", "stats": [{"address": "a:1", "keys": "abc"}]},
    {"nodes": [], "mode": "sync", "config": {"replicas": 0}},
])
def test_malformed_payloads_are_rejected(payload):
    with pytest.raises(MalformedResponse):
        parse_snapshot(payload)
