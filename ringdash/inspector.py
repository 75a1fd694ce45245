"""
Selection, inspector and tooltip
================================

Selection is persisted in ViewState and survives polls while its node lives.
Hover is not: the tooltip only remembers what the pointer is over right now.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .model import port_of
from .state import ViewState, with_selection

if TYPE_CHECKING:
    from .context import DashboardContext

EMPTY_HINT = "Select a node to view its keys"
NO_KEYS = "No keys stored"


@dataclass(frozen=True)
class InspectorContent:
    kind: str                      # "empty" | "detail" | "blank"
    title: str = ""
    request_rate: int = 0
    keys: tuple[str, ...] = ()


BLANK = InspectorContent("blank")
EMPTY = InspectorContent("empty", title=EMPTY_HINT)


class Inspector:
    def __init__(self):
        self.content: InspectorContent = EMPTY

    def refresh(self, view: ViewState) -> InspectorContent:
        node_id = view.selected_node
        if node_id is None:
            self.content = EMPTY
            return self.content
        stat = view.stat_for(node_id)
        if stat is None:
            # selected but no stat record yet (poll raced the click): draw nothing
            self.content = BLANK
            return self.content
        self.content = InspectorContent(
            "detail",
            title=f"Worker {port_of(node_id)}",
            request_rate=stat.request_rate,
            keys=stat.keys,
        )
        return self.content


def select_node(ctx: DashboardContext, node_id: str | None):
    """Select ``node_id`` and repaint both the inspector and the node graph
    right away instead of waiting for the next poll."""
    ctx.view = with_selection(ctx.view, node_id)
    ctx.inspector.refresh(ctx.view)
    ctx.graph.sync(ctx.view)


def select_index(ctx: DashboardContext, index: int) -> bool:
    nodes = ctx.view.nodes
    if not 0 <= index < len(nodes):
        return False
    select_node(ctx, nodes[index])
    return True


def select_step(ctx: DashboardContext, step: int) -> bool:
    nodes = ctx.view.nodes
    if not nodes:
        return False
    current = ctx.view.selected_node
    if current in nodes:
        index = (nodes.index(current) + step) % len(nodes)
    else:
        index = 0 if step > 0 else len(nodes) - 1
    select_node(ctx, nodes[index])
    return True


@dataclass(frozen=True)
class TooltipContent:
    node_id: str
    key_count: int
    request_rate: int
    pointer: tuple[int, int]

    def lines(self) -> list[str]:
        return [
            self.node_id,
            f"Keys: {self.key_count}",
            f"Load: {self.request_rate}/s",
        ]


class Tooltip:
    def __init__(self):
        self.content: TooltipContent | None = None

    @property
    def visible(self) -> bool:
        return self.content is not None

    @property
    def node_id(self) -> str | None:
        return self.content.node_id if self.content else None

    def show(self, node, pointer: tuple[int, int]):
        self.content = TooltipContent(
            node_id=node.id,
            key_count=node.stat.key_count,
            request_rate=node.stat.request_rate,
            pointer=pointer,
        )

    def hide(self):
        self.content = None

    def track(self, graph, node_id: str | None, pointer: tuple[int, int]):
        """Pointer moved: enter, stay over, or leave a node."""
        node = graph.get(node_id) if node_id else None
        if node is None:
            self.hide()
        else:
            self.show(node, pointer)
