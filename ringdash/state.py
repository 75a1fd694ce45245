"""
View state and reconciliation
=============================

``reconcile`` folds a fresh SystemSnapshot into the previous ViewState.  It is
pure: no I/O, no clock, same inputs give the same output.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Mapping

from .model import NodeStat, SystemSnapshot


@dataclass(frozen=True)
class ViewState:
    nodes: tuple[str, ...] = ()
    mode: str = "sync"
    stats: Mapping[str, NodeStat] = field(default_factory=dict)
    replicas: int = 20
    selected_node: str | None = None

    @property
    def total_keys(self) -> int:
        return sum(s.key_count for s in self.stats.values())

    def stat_for(self, node_id: str) -> NodeStat | None:
        return self.stats.get(node_id)


def reconcile(old: ViewState, snap: SystemSnapshot) -> ViewState:
    """Merge ``snap`` into ``old``.

    The stat list becomes a mapping keyed by address (entries for nodes not
    in ``snap.nodes`` are dropped).  The selection survives only if its node
    is still a member.
    """
    members = set(snap.nodes)
    stats = {s.address: s for s in snap.stats if s.address in members}

    selected = old.selected_node
    if selected is not None and selected not in members:
        selected = None

    return ViewState(
        nodes=tuple(snap.nodes),
        mode=snap.mode,
        stats=stats,
        replicas=snap.replicas,
        selected_node=selected,
    )


def with_selection(view: ViewState, node_id: str | None) -> ViewState:
    return replace(view, selected_node=node_id)
