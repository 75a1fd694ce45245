"""
Dashboard configuration
=======================

Visual constants and timing live here, not in the wire protocol.  Every
tunable can be set from the environment and overridden on the command line:

    RINGDASH_API_URL        gateway base URL      (default http://localhost:8080)
    RINGDASH_POLL_MS        status poll interval  (default 1000)
    RINGDASH_FPS            animation frame rate  (default 30)
    RINGDASH_MAX_ACTIVITY   activity feed length  (default 50)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace

DEFAULT_API_URL = "http://localhost:8080"
DEFAULT_POLL_MS = 1000
DEFAULT_FPS = 30
MAX_ACTIVITY = 50

R_RING = 200.0
R_NODE = 25.0
PARTICLE_SPEED = (0.02, 0.04)


@dataclass(frozen=True)
class DashboardConfig:
    api_url: str = DEFAULT_API_URL
    poll_interval_ms: int = DEFAULT_POLL_MS
    fps: int = DEFAULT_FPS
    ring_radius: float = R_RING
    node_radius: float = R_NODE
    particle_speed_min: float = PARTICLE_SPEED[0]
    particle_speed_max: float = PARTICLE_SPEED[1]
    max_activity: int = MAX_ACTIVITY
    request_timeout_s: float = 5.0

    def __post_init__(self):
        if self.poll_interval_ms <= 0:
            raise ValueError("poll interval must be positive")
        if self.fps <= 0:
            raise ValueError("fps must be positive")
        if self.max_activity < 1:
            raise ValueError("activity feed length must be at least 1")
        if not 0 < self.particle_speed_min <= self.particle_speed_max:
            raise ValueError("particle speed range must be positive and ordered")

    @property
    def poll_interval(self) -> float:
        return self.poll_interval_ms / 1000.0

    @property
    def frame_interval(self) -> float:
        return 1.0 / self.fps

    @classmethod
    def from_env(cls, env: dict[str, str] | None = None) -> "DashboardConfig":
        env = os.environ if env is None else env
        return cls(
            api_url=env.get("RINGDASH_API_URL", DEFAULT_API_URL).rstrip("/"),
            poll_interval_ms=_env_int(env, "RINGDASH_POLL_MS", DEFAULT_POLL_MS),
            fps=_env_int(env, "RINGDASH_FPS", DEFAULT_FPS),
            max_activity=_env_int(env, "RINGDASH_MAX_ACTIVITY", MAX_ACTIVITY),
        )

    def with_overrides(self, **overrides) -> "DashboardConfig":
        """Apply CLI values; ``None`` means "not given" and keeps the current value."""
        given = {k: v for k, v in overrides.items() if v is not None}
        if "api_url" in given:
            given["api_url"] = given["api_url"].rstrip("/")
        return replace(self, **given)


def _env_int(env, name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
