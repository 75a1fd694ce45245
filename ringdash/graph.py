"""
Node visual graph
=================

Keyed collection of persistent VisualNode objects, one per live node identity.
Each tick is a diff against the incoming node data rather than a rebuild:

    entering   created at their computed position
    retained   patched in place (position, stat, selection flag)
    exiting    dropped

Because the collection is keyed by identity, selection and hover stay on the
right node while others join, leave or shift around the ring.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import NamedTuple, Sequence

from .model import NodeStat, port_of
from .ring import layout, place
from .state import ViewState

STYLE_DEFAULT = "default"
STYLE_HOVER = "hover"
STYLE_SELECTED = "selected"

EASE = 0.25


class NodeDatum(NamedTuple):
    id: str
    angle: float
    stat: NodeStat


@dataclass
class VisualNode:
    id: str
    angle: float
    x: float
    y: float
    stat: NodeStat
    selected: bool = False
    # where the node is currently drawn; glides toward (x, y)
    draw_x: float = 0.0
    draw_y: float = 0.0

    @property
    def port(self) -> str:
        return port_of(self.id)

    @property
    def label(self) -> str:
        return f"{self.stat.key_count} keys"

    def ease(self, fraction: float = EASE):
        self.draw_x += (self.x - self.draw_x) * fraction
        self.draw_y += (self.y - self.draw_y) * fraction
        if abs(self.x - self.draw_x) < 0.5 and abs(self.y - self.draw_y) < 0.5:
            self.draw_x, self.draw_y = self.x, self.y


@dataclass
class GraphDiff:
    entered: list[str] = field(default_factory=list)
    retained: list[str] = field(default_factory=list)
    exited: list[str] = field(default_factory=list)

    @property
    def changed_membership(self) -> bool:
        return bool(self.entered or self.exited)


def paint_style(node: VisualNode, hovered: str | None) -> str:
    """Selection wins over hover; hover only decorates unselected nodes."""
    if node.selected:
        return STYLE_SELECTED
    if hovered == node.id:
        return STYLE_HOVER
    return STYLE_DEFAULT


def nodes_data(view: ViewState) -> list[NodeDatum]:
    angles = layout(view.nodes)
    return [
        NodeDatum(node_id, angles[node_id], view.stats.get(node_id) or NodeStat(address=node_id))
        for node_id in view.nodes
    ]


class NodeGraph:
    def __init__(self, ring_radius: float):
        self.ring_radius = ring_radius
        self.nodes: dict[str, VisualNode] = {}

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self):
        return iter(self.nodes.values())

    def __contains__(self, node_id: str) -> bool:
        return node_id in self.nodes

    def get(self, node_id: str) -> VisualNode | None:
        return self.nodes.get(node_id)

    def ids(self) -> list[str]:
        return list(self.nodes)

    def update(self, data: Sequence[NodeDatum], selected: str | None) -> GraphDiff:
        incoming = {d.id: d for d in data}
        diff = GraphDiff()

        for node_id in list(self.nodes):
            if node_id not in incoming:
                del self.nodes[node_id]
                diff.exited.append(node_id)

        patched: dict[str, VisualNode] = {}
        for d in data:
            x, y = place(d.angle, self.ring_radius)
            node = self.nodes.get(d.id)
            if node is None:
                node = VisualNode(d.id, d.angle, x, y, d.stat, draw_x=x, draw_y=y)
                diff.entered.append(d.id)
            else:
                node.angle, node.x, node.y, node.stat = d.angle, x, y, d.stat
                diff.retained.append(d.id)
            node.selected = d.id == selected
            patched[d.id] = node

        # keep ring order so index-based keys and drawing follow the gateway's list
        self.nodes = patched
        return diff

    def sync(self, view: ViewState) -> GraphDiff:
        return self.update(nodes_data(view), view.selected_node)

    def ease(self, fraction: float = EASE):
        for node in self.nodes.values():
            node.ease(fraction)

    def find(self, hint: str) -> VisualNode | None:
        """First node whose identity contains ``hint``."""
        if not hint:
            return None
        for node in self.nodes.values():
            if hint in node.id:
                return node
        return None

    def hit_test(self, x: float, y: float, radius: float) -> str | None:
        best: tuple[float, str] | None = None
        for node in self.nodes.values():
            d = math.hypot(node.draw_x - x, node.draw_y - y)
            if d <= radius and (best is None or d < best[0]):
                best = (d, node.id)
        return best[1] if best else None

    def styles(self, hovered: str | None) -> dict[str, str]:
        return {n.id: paint_style(n, hovered) for n in self.nodes.values()}
