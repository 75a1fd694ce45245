"""
Ring layout
===========

Evenly spaced placement of node identities around a circle, first node at
twelve o'clock.  This is a picture of membership, not of the hash ring: real
token positions are never computed here.
"""

from __future__ import annotations

import math
from typing import Sequence


def layout(nodes: Sequence[str]) -> dict[str, float]:
    """Map each identity to its angle in radians, in list order.

    angle_i = i * (2*pi / max(N, 1)) - pi/2

    A reordered list re-angles every node; the gateway is expected to report
    a stable order.
    """
    step = (2 * math.pi) / (len(nodes) or 1)
    return {node: i * step - math.pi / 2 for i, node in enumerate(nodes)}


def place(angle: float, radius: float) -> tuple[float, float]:
    return math.cos(angle) * radius, math.sin(angle) * radius
