"""Wire-level data model for the gateway's ``/status`` payload."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

MODES = ("sync", "async")


class BackendError(RuntimeError):
    """Gateway unreachable or answered with a non-success status."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class MalformedResponse(BackendError):
    """Gateway answered, but not with something we can read."""


@dataclass(frozen=True)
class NodeStat:
    address: str
    key_count: int = 0
    request_rate: int = 0
    keys: tuple[str, ...] = ()


@dataclass(frozen=True)
class SystemSnapshot:
    nodes: tuple[str, ...] = ()
    mode: str = "sync"
    stats: tuple[NodeStat, ...] = ()
    replicas: int = 20
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


def port_of(address: str) -> str:
    """``"host:9001"`` -> ``"9001"``; identities without a port come back whole."""
    _, sep, port = address.rpartition(":")
    return port if sep else address


def _non_negative_int(value: Any, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedResponse(f"{what} is not a number: {value!r}")
    if value < 0:
        raise MalformedResponse(f"{what} is negative: {value!r}")
    return int(value)


def parse_stat(entry: Any) -> NodeStat:
    if not isinstance(entry, dict):
        raise MalformedResponse(f"stat entry is not an object: {entry!r}")
    address = entry.get("address")
    if not isinstance(address, str) or not address:
        raise MalformedResponse(f"stat entry without address: {entry!r}")
    keys = entry.get("keys") or []
    if not isinstance(keys, list) or not all(isinstance(k, str) for k in keys):
        raise MalformedResponse(f"keys for {address} are not a list of strings")
    return NodeStat(
        address=address,
        key_count=_non_negative_int(entry.get("key_count", 0), f"key_count for {address}"),
        request_rate=_non_negative_int(entry.get("request_rate", 0), f"request_rate for {address}"),
        keys=tuple(keys),
    )


def parse_snapshot(payload: Any) -> SystemSnapshot:
    """Validate a decoded ``/status`` body.  Raises MalformedResponse."""
    if not isinstance(payload, dict):
        raise MalformedResponse("status payload is not an object")

    nodes = payload.get("nodes")
    if nodes is None:
        nodes = []
    if not isinstance(nodes, list) or not all(isinstance(n, str) for n in nodes):
        raise MalformedResponse("nodes is not a list of strings")
    if len(set(nodes)) != len(nodes):
        raise MalformedResponse("nodes contains duplicate identities")

    mode = payload.get("mode")
    if mode not in MODES:
        raise MalformedResponse(f"unknown replication mode: {mode!r}")

    stats = payload.get("stats")
    if stats is None:
        stats = []
    if not isinstance(stats, list):
        raise MalformedResponse("stats is not a list")

    config = payload.get("config") or {}
    if not isinstance(config, dict):
        raise MalformedResponse("config is not an object")
    replicas = config.get("replicas", 20)
    if isinstance(replicas, bool) or not isinstance(replicas, int) or replicas <= 0:
        raise MalformedResponse(f"replicas must be a positive integer: {replicas!r}")

    return SystemSnapshot(
        nodes=tuple(nodes),
        mode=mode,
        stats=tuple(parse_stat(s) for s in stats),
        replicas=replicas,
        raw=payload,
    )
