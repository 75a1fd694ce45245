"""
Consistent hash ring
====================

CRC32 ring with ``replicas`` virtual points per node, the same placement the
gateway uses (virtual key = str(i) + node).  The dashboard only uses it to
guess where a write landed; the demo backend uses it to place keys.
"""

from __future__ import annotations

import bisect
import zlib
from typing import Iterable


def crc32(s: str) -> int:
    return zlib.crc32(s.encode("utf-8")) & 0xFFFFFFFF


class ConsistentHash:
    def __init__(self, replicas: int = 20, nodes: Iterable[str] = ()):
        if replicas <= 0:
            raise ValueError("replicas must be positive")
        self.replicas = replicas
        self._keys: list[int] = []
        self._owner: dict[int, str] = {}
        self._nodes: list[str] = []
        self.add(*nodes)

    @property
    def nodes(self) -> list[str]:
        return list(self._nodes)

    def add(self, *nodes: str):
        for node in nodes:
            if node in self._nodes:
                continue
            self._nodes.append(node)
            for i in range(self.replicas):
                h = crc32(f"{i}{node}")
                self._owner[h] = node
        self._keys = sorted(self._owner)

    def remove(self, node: str):
        if node not in self._nodes:
            return
        self._nodes.remove(node)
        self._owner = {h: n for h, n in self._owner.items() if n != node}
        self._keys = sorted(self._owner)

    def get_n(self, key: str, n: int) -> list[str]:
        """Up to ``n`` distinct nodes responsible for ``key``, walking clockwise."""
        if not self._keys or n <= 0:
            return []
        idx = bisect.bisect_left(self._keys, crc32(key))
        if idx == len(self._keys):
            idx = 0
        found: list[str] = []
        want = min(n, len(self._nodes))
        while len(found) < want:
            node = self._owner[self._keys[idx]]
            if node not in found:
                found.append(node)
            idx = (idx + 1) % len(self._keys)
        return found

    def primary(self, key: str) -> str | None:
        owners = self.get_n(key, 1)
        return owners[0] if owners else None
