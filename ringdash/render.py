"""
Rich rendering
==============

Everything that turns a DashboardContext into Rich renderables.  Nothing in
here mutates state; the animation loop calls these once per frame.

Screen layout:

    +---------------------------- header (HUD) ----------------------------+
    |                                 |  INSPECTOR                          |
    |          HASH RING              |-------------------------------------|
    |                                 |  ACTIVITY                           |
    +------------- prompt ------------+------------- controls -------------+
"""

from __future__ import annotations

import math
import time
from typing import TYPE_CHECKING

from rich.layout import Layout
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .graph import STYLE_HOVER, STYLE_SELECTED, paint_style
from .inspector import NO_KEYS

if TYPE_CHECKING:
    from .context import DashboardContext

HEADER_SIZE = 3
FOOTER_SIZE = 4
RIGHT_WIDTH = 46

COLOR_PRIMARY = "#00f0ff"
COLOR_SELECTED = "#ff0055"
COLOR_RING = "#3c64ff"

NODE_STYLE = {
    "default": f"bold {COLOR_PRIMARY}",
    STYLE_HOVER: f"bold black on {COLOR_PRIMARY}",
    STYLE_SELECTED: f"bold white on {COLOR_SELECTED}",
}

CAP_INFO = {
    "sync": ("CP MODE", "Strict Consistency. Writes may fail if partitions occur.", "bright_green"),
    "async": ("AP MODE", "High Availability. Consistency eventual.", "yellow"),
}


# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------

def make_layout() -> Layout:
    root = Layout(name="root")
    root.split_column(
        Layout(name="header", size=HEADER_SIZE),
        Layout(name="body", ratio=1),
        Layout(name="footer_row", size=FOOTER_SIZE),
    )
    root["body"].split_row(
        Layout(name="ring", ratio=1, minimum_size=30),
        Layout(name="right", size=RIGHT_WIDTH),
    )
    root["right"].split_column(
        Layout(name="inspector", ratio=1),
        Layout(name="activity", ratio=1),
    )
    root["footer_row"].split_row(
        Layout(name="prompt", ratio=1),
        Layout(name="controls", ratio=1),
    )
    return root


def ring_canvas_size(term_w: int, term_h: int) -> tuple[int, int]:
    """Interior of the ring panel, in cells."""
    return max(1, term_w - RIGHT_WIDTH - 2), max(1, term_h - HEADER_SIZE - FOOTER_SIZE - 2)


def ring_cell_from_mouse(mouse_x: int, mouse_y: int, term_w: int, term_h: int) -> tuple[int, int] | None:
    """Terminal mouse coordinates (1-based) to a ring canvas cell, or None."""
    col = mouse_x - 2
    row = mouse_y - HEADER_SIZE - 2
    w, h = ring_canvas_size(term_w, term_h)
    if 0 <= col < w and 0 <= row < h:
        return col, row
    return None


# ---------------------------------------------------------------------------
# Ring canvas
# ---------------------------------------------------------------------------

class RingProjection:
    """World (gateway at the origin) to ring-canvas cells and back.

    Terminal cells are about twice as tall as wide, so x is scaled by twice
    the y factor to keep the ring round.
    """

    def __init__(self, width: int, height: int, ring_radius: float, node_radius: float):
        self.width = width
        self.height = height
        self.cx = width // 2
        self.cy = height // 2
        extent = ring_radius + node_radius
        sy = max(0.001, (height / 2 - 1) / extent)
        sx = max(0.001, (width / 2 - 4) / extent)
        self.sy = min(sy, sx / 2)
        self.sx = self.sy * 2
        self.ring_radius = ring_radius

    def to_cell(self, x: float, y: float) -> tuple[int, int]:
        return int(round(self.cx + x * self.sx)), int(round(self.cy + y * self.sy))

    def to_world(self, col: int, row: int) -> tuple[float, float]:
        return (col - self.cx) / self.sx, (row - self.cy) / self.sy

    def hit_radius(self) -> float:
        # a node label is " 9001 ": three cells either side of its centre
        return 3.5 / self.sx


class RingCanvas(RingProjection):
    """Character grid the ring panel is painted into."""

    def __init__(self, width: int, height: int, ring_radius: float, node_radius: float):
        super().__init__(width, height, ring_radius, node_radius)
        self.cells: list[list[tuple[str, str]]] = [[(" ", "")] * width for _ in range(height)]

    def put(self, col: int, row: int, ch: str, style: str = ""):
        if 0 <= row < self.height and 0 <= col < self.width:
            self.cells[row][col] = (ch, style)

    def text(self, col: int, row: int, s: str, style: str = ""):
        for i, ch in enumerate(s):
            self.put(col + i, row, ch, style)

    def centred(self, col: int, row: int, s: str, style: str = ""):
        self.text(col - len(s) // 2, row, s, style)

    def ring(self):
        steps = max(24, int(2 * math.pi * self.ring_radius * self.sx))
        for i in range(steps):
            a = 2 * math.pi * i / steps
            c, r = self.to_cell(math.cos(a) * self.ring_radius, math.sin(a) * self.ring_radius)
            self.put(c, r, "·", f"dim {COLOR_RING}")

    def link(self, x: float, y: float):
        c0, r0 = self.cx, self.cy
        c1, r1 = self.to_cell(x, y)
        steps = max(abs(c1 - c0), abs(r1 - r0))
        for i in range(1, steps):
            t = i / steps
            self.put(int(round(c0 + (c1 - c0) * t)), int(round(r0 + (r1 - r0) * t)), ".", "grey23")

    def render(self) -> Text:
        out = Text(no_wrap=True, overflow="crop")
        for r, row in enumerate(self.cells):
            run_style = row[0][1]
            run = ""
            for ch, style in row:
                if style != run_style:
                    out.append(run, style=run_style or None)
                    run, run_style = "", style
                run += ch
            out.append(run, style=run_style or None)
            if r < self.height - 1:
                out.append("\n")
        return out


def draw_ring(ctx: DashboardContext, width: int, height: int) -> RingCanvas:
    cfg = ctx.config
    canvas = RingCanvas(width, height, cfg.ring_radius, cfg.node_radius)
    canvas.ring()
    for node in ctx.graph:
        canvas.link(node.draw_x, node.draw_y)
    for p in ctx.particles.particles:
        c, r = canvas.to_cell(*p.position)
        canvas.put(c, r, "•", p.color)
    canvas.put(canvas.cx, canvas.cy, "✦", f"bold {COLOR_PRIMARY}")

    hovered = ctx.hovered
    for node in ctx.graph:
        c, r = canvas.to_cell(node.draw_x, node.draw_y)
        style = NODE_STYLE.get(paint_style(node, hovered), NODE_STYLE["default"])
        canvas.centred(c, r, f" {node.port} ", style)
        canvas.centred(c, r + 1, node.label, f"dim {COLOR_PRIMARY}")

    tip = ctx.tooltip.content
    if tip is not None:
        lines = tip.lines()
        w = max(len(s) for s in lines) + 2
        col, row = tip.pointer[0] + 2, tip.pointer[1] + 1
        col = max(0, min(col, width - w))
        row = max(0, min(row, height - len(lines)))
        for i, s in enumerate(lines):
            style = "bold white on grey15" if i == 0 else "white on grey15"
            canvas.text(col, row + i, f" {s.ljust(w - 2)} ", style)
    return canvas


def render_ring(ctx: DashboardContext, width: int, height: int) -> Panel:
    canvas = draw_ring(ctx, width, height)
    if not ctx.counters.polls_ok:
        canvas.centred(canvas.cx, canvas.cy + 2, f"connecting to {ctx.config.api_url} ...", "dim")
    body = canvas.render()
    return Panel(body, title="[bold]HASH RING[/]", border_style="bright_blue", padding=0)


# ---------------------------------------------------------------------------
# Panels
# ---------------------------------------------------------------------------

def _elapsed_str(s: float) -> str:
    h = int(s // 3600)
    m = int((s % 3600) // 60)
    sec = int(s % 60)
    return f"{h:02d}:{m:02d}:{sec:02d}"


def render_header(ctx: DashboardContext) -> Panel:
    view = ctx.view
    label, info, color = CAP_INFO.get(view.mode, CAP_INFO["sync"])
    tbl = Table.grid(expand=True)
    tbl.add_column(justify="left", ratio=1)
    tbl.add_column(justify="center", ratio=2)
    tbl.add_column(justify="right", ratio=1)

    elapsed = _elapsed_str(time.time() - ctx.counters.started)
    last = ctx.counters.last_poll_ok
    age = f"{time.time() - last:.0f}s ago" if last else "never"
    tbl.add_row(
        f"[bold bright_cyan]RINGDASH[/]  [dim]{elapsed}  poll {age}[/]",
        f"[{color}]●[/] [bold]{view.mode.upper()}[/]  [{color}]{label}[/][dim]: {info}[/]",
        f"[bold bright_white]{len(view.nodes)}[/][dim] nodes[/]  "
        f"[bold bright_white]{view.total_keys}[/][dim] keys[/]  "
        f"[bold bright_white]{view.replicas}[/][dim] vnodes[/]",
    )
    return Panel(tbl, style=color, height=HEADER_SIZE)


def render_inspector(ctx: DashboardContext) -> Panel:
    content = ctx.inspector.content
    title = "[bold]INSPECTOR[/]"
    if content.kind == "empty":
        return Panel(Text(content.title, style="dim italic"), title=title, border_style="magenta")
    if content.kind == "blank":
        return Panel(Text(""), title=title, border_style="magenta")

    body = Text()
    body.append(content.title, style=f"bold {COLOR_SELECTED}")
    body.append(f"   {content.request_rate} req/s\n\n", style="dim")
    if content.keys:
        for key in content.keys:
            body.append(f" {key} ", style="black on bright_cyan")
            body.append(" ")
    else:
        body.append(NO_KEYS, style="dim")
    return Panel(body, title=title, border_style="magenta")


def render_activity(ctx: DashboardContext) -> Panel:
    tbl = Table(show_header=False, box=None, padding=(0, 1), expand=True)
    tbl.add_column("ts", style="dim", no_wrap=True, width=8)
    tbl.add_column("lvl", no_wrap=True, width=7)
    tbl.add_column("msg", ratio=1, overflow="fold")
    for ts, level, msg, style in ctx.feed.entries:
        tbl.add_row(ts, Text(level.upper(), style=style), msg)
    if not len(ctx.feed):
        tbl.add_row("", "", Text("no activity yet", style="dim"))
    return Panel(tbl, title="[bold]ACTIVITY[/]", border_style="bright_black")


def _field(label: str, value: str, focused: bool) -> Text:
    t = Text()
    t.append(f"{label} ", style="dim")
    t.append(value or " ", style="bold white on grey23" if focused else "white on grey11")
    if focused:
        t.append("▏", style="blink bright_white")
    return t


def render_prompt(ctx: DashboardContext) -> Panel:
    prompt = ctx.prompt
    line = Text()
    if prompt.action == "put":
        line.append_text(_field("key", prompt.fields["put_key"], prompt.focus == "put_key"))
        line.append("   ")
        line.append_text(_field("value", prompt.fields["put_val"], prompt.focus == "put_val"))
        title = "[bold]PUT[/]"
    elif prompt.action == "get":
        line.append_text(_field("key", prompt.fields["get_key"], True))
        title = "[bold]GET[/]"
    else:
        line.append("p", style="bold bright_cyan")
        line.append(" put   ", style="dim")
        line.append("g", style="bold bright_cyan")
        line.append(" get   ", style="dim")
        line.append("s", style="bold bright_cyan")
        line.append("/", style="dim")
        line.append("a", style="bold bright_cyan")
        line.append(" sync/async", style="dim")
        title = "[bold]COMMAND[/]"
    return Panel(line, title=title, border_style="bright_black")


def render_controls(ctx: DashboardContext, interactive: bool) -> Panel:
    if not interactive:
        return Panel(Text("non-interactive: no keyboard input", style="dim"),
                     title="[bold]CONTROLS[/]", border_style="bright_black")
    if ctx.prompt.active:
        hint = "[bold]enter[/] [dim]submit / next[/]  [bold]tab[/] [dim]next field[/]  [bold]esc[/] [dim]cancel[/]"
    else:
        hint = (
            "[bold]1-9[/] [dim]select[/]  [bold]n/N[/] [dim]next/prev[/]  "
            "[bold]x[/] [dim]clear[/]  [bold]mouse[/] [dim]hover/click[/]  [bold]q[/] [dim]quit[/]"
        )
    inflight = len(ctx.particles)
    tail = f"\n[dim]{inflight} in flight[/]" if inflight else ""
    return Panel(Text.from_markup(hint + tail), title="[bold]CONTROLS[/]", border_style="bright_black")


def render_all(ctx: DashboardContext, layout: Layout, term_w: int, term_h: int, interactive: bool):
    w, h = ring_canvas_size(term_w, term_h)
    layout["header"].update(render_header(ctx))
    layout["ring"].update(render_ring(ctx, w, h))
    layout["inspector"].update(render_inspector(ctx))
    layout["activity"].update(render_activity(ctx))
    layout["prompt"].update(render_prompt(ctx))
    layout["controls"].update(render_controls(ctx, interactive))
