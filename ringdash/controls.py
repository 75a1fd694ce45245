"""
Input controls
==============

Raw terminal input for the live screen: keys in cbreak mode plus SGR mouse
reporting (press, release and any-motion), decoded into short tokens:

    "q", "1", ...         printable keys
    "ENTER" "TAB" "ESC" "BACKSPACE" "LEFT" "RIGHT" "UP" "DOWN"
    "MOVE:x:y"            pointer moved (1-based terminal cell)
    "CLICK:x:y"           left button pressed
    "MWHEEL_UP:x:y" / "MWHEEL_DOWN:x:y"

``handle_key`` routes one token to selection, hover, the prompt or the
command dispatcher.
"""

from __future__ import annotations

import os
import select
import sys
import time
from typing import TYPE_CHECKING, Any

from .inspector import select_index, select_node, select_step
from .render import RingProjection, ring_canvas_size, ring_cell_from_mouse

if TYPE_CHECKING:
    from .commands import CommandDispatcher
    from .context import DashboardContext

if os.name == "posix":
    import termios
    import tty

MOUSE_ON = "\x1b[?1000h\x1b[?1003h\x1b[?1006h"
MOUSE_OFF = "\x1b[?1000l\x1b[?1003l\x1b[?1006l"


class KeyPoller:
    def __init__(self, enabled: bool):
        self.enabled = enabled and os.name == "posix" and sys.stdin.isatty()
        self.fd: int | None = None
        self._old: Any = None
        self._pending = b""

    def __enter__(self):
        if self.enabled:
            self.fd = sys.stdin.fileno()
            self._old = termios.tcgetattr(self.fd)
            tty.setcbreak(self.fd)
            sys.stdout.write(MOUSE_ON)
            sys.stdout.flush()
        return self

    def __exit__(self, exc_type, exc, tb):
        if self.enabled and self.fd is not None and self._old is not None:
            sys.stdout.write(MOUSE_OFF)
            sys.stdout.flush()
            termios.tcsetattr(self.fd, termios.TCSADRAIN, self._old)

    def poll(self) -> str:
        if not self.enabled or self.fd is None:
            return ""
        if self._pending:
            raw, self._pending = self._pending[:1], self._pending[1:]
        else:
            ready, _, _ = select.select([self.fd], [], [], 0)
            if not ready:
                return ""
            raw = os.read(self.fd, 1)
        if not raw:
            return ""
        if raw == b"\x1b":
            seq, self._pending = split_escape(self._pending or self._read_sequence())
            return decode_escape(seq)
        if raw in (b"\r", b"\n"):
            return "ENTER"
        if raw == b"\t":
            return "TAB"
        if raw in (b"\x7f", b"\x08"):
            return "BACKSPACE"
        return raw.decode("utf-8", errors="ignore")

    def _read_sequence(self) -> bytes:
        seq = b""
        deadline = time.time() + 0.03
        while time.time() < deadline:
            rdy, _, _ = select.select([self.fd], [], [], 0.002)
            if not rdy:
                break
            chunk = os.read(self.fd, 1)
            if not chunk:
                break
            seq += chunk
            if seq.startswith(b"[<") and seq[-1:] in (b"M", b"m"):
                break
            if seq.startswith(b"[") and len(seq) >= 2 and seq[-1:].isalpha() and not seq.startswith(b"[<"):
                break
        return seq


def split_escape(tail: bytes) -> tuple[bytes, bytes]:
    """Split what followed an ESC into the escape sequence itself and any keys
    typed after it.  A bare ESC followed by "q" gives (b"", b"q")."""
    if not tail.startswith(b"["):
        return b"", tail
    mouse = tail.startswith(b"[<")
    for i in range(1, len(tail)):
        c = tail[i : i + 1]
        if (c in (b"M", b"m")) if mouse else c.isalpha():
            return tail[: i + 1], tail[i + 1 :]
    return tail, b""


def decode_escape(seq: bytes) -> str:
    """Decode the bytes that followed an ESC."""
    if not seq:
        return "ESC"
    if seq.startswith(b"[<") and (seq.endswith(b"M") or seq.endswith(b"m")):
        parts = seq[2:-1].decode("ascii", errors="ignore").split(";")
        if len(parts) != 3:
            return ""
        try:
            button, mx, my = (int(p) for p in parts)
        except ValueError:
            return ""
        pressed = seq.endswith(b"M")
        if button & 64:
            return f"MWHEEL_DOWN:{mx}:{my}" if button & 1 else f"MWHEEL_UP:{mx}:{my}"
        if button & 32:
            return f"MOVE:{mx}:{my}"
        if pressed and (button & 3) == 0:
            return f"CLICK:{mx}:{my}"
        return ""
    arrows = {b"[A": "UP", b"[B": "DOWN", b"[C": "RIGHT", b"[D": "LEFT"}
    return arrows.get(seq[-2:] if len(seq) >= 2 else seq, "ESC")


def _pointer(key: str) -> tuple[int, int] | None:
    parts = key.split(":")
    if len(parts) != 3:
        return None
    try:
        return int(parts[1]), int(parts[2])
    except ValueError:
        return None


def node_under_pointer(ctx: DashboardContext, mx: int, my: int,
                       term_w: int, term_h: int) -> tuple[str | None, tuple[int, int] | None]:
    cell = ring_cell_from_mouse(mx, my, term_w, term_h)
    if cell is None:
        return None, None
    w, h = ring_canvas_size(term_w, term_h)
    proj = RingProjection(w, h, ctx.config.ring_radius, ctx.config.node_radius)
    x, y = proj.to_world(*cell)
    return ctx.graph.hit_test(x, y, proj.hit_radius()), cell


def handle_key(ctx: DashboardContext, dispatcher: CommandDispatcher, key: str,
               term_w: int, term_h: int) -> bool:
    """Apply one input token.  Returns False when the operator asked to quit."""
    if key.startswith(("MOVE:", "CLICK:")):
        pos = _pointer(key)
        if pos is None:
            return True
        node_id, cell = node_under_pointer(ctx, pos[0], pos[1], term_w, term_h)
        if key.startswith("MOVE:"):
            ctx.tooltip.track(ctx.graph, node_id, cell or (0, 0))
        elif node_id is not None:
            select_node(ctx, node_id)
        return True
    if key.startswith("MWHEEL_"):
        return True

    prompt = ctx.prompt
    if prompt.active:
        if key == "ESC":
            prompt.close()
        elif key == "ENTER":
            if not prompt.next_field():
                dispatcher.submit_prompt()
        elif key == "TAB":
            prompt.next_field()
        elif key == "BACKSPACE":
            prompt.backspace()
        elif len(key) == 1 and key.isprintable():
            prompt.type(key)
        return True

    if key in ("q", "Q"):
        return False
    if len(key) == 1 and key in "123456789":
        select_index(ctx, int(key) - 1)
    elif key in ("n", "RIGHT", "DOWN"):
        select_step(ctx, 1)
    elif key in ("N", "LEFT", "UP"):
        select_step(ctx, -1)
    elif key in ("x", "X", "ESC"):
        select_node(ctx, None)
    elif key == "s":
        dispatcher.switch_mode("sync")
    elif key == "a":
        dispatcher.switch_mode("async")
    elif key in ("p", "P"):
        prompt.open("put")
    elif key in ("g", "G"):
        prompt.open("get")
    return True
