"""
Particle animation
==================

Ephemeral "request in flight" dots.  The animation loop calls ``tick`` once
per frame, independently of polling:

    progress += speed          (never decreases)
    progress >= 1  ->  dropped in that same tick, never drawn again
    otherwise drawn at origin + (target - origin) * progress
"""

from __future__ import annotations

import random
from dataclasses import dataclass

from .config import DashboardConfig
from .graph import NodeGraph

PARTICLE_COLOR = "bright_white"


@dataclass
class Particle:
    origin: tuple[float, float]
    target: tuple[float, float]
    color: str
    speed: float
    progress: float = 0.0

    def advance(self) -> bool:
        """Step once; False once the particle has arrived."""
        self.progress += self.speed
        return self.progress < 1.0

    @property
    def position(self) -> tuple[float, float]:
        ox, oy = self.origin
        tx, ty = self.target
        return ox + (tx - ox) * self.progress, oy + (ty - oy) * self.progress


class ParticleSystem:
    def __init__(self, config: DashboardConfig, rng: random.Random | None = None):
        self.speed_range = (config.particle_speed_min, config.particle_speed_max)
        self.rng = rng or random.Random()
        self.particles: list[Particle] = []
        self.spawned = 0
        self.retired = 0

    def __len__(self) -> int:
        return len(self.particles)

    def tick(self) -> list[Particle]:
        """Advance every live particle and return the survivors to draw."""
        alive = [p for p in self.particles if p.advance()]
        self.retired += len(self.particles) - len(alive)
        self.particles = alive
        return alive

    def spawn(self, graph: NodeGraph, target_hint: str = "",
              color: str = PARTICLE_COLOR) -> Particle | None:
        """Launch one particle from the centre toward the node matching
        ``target_hint`` (any node, chosen at random, if nothing matches)."""
        if not len(graph):
            return None
        node = graph.find(target_hint)
        if node is None:
            node = self.rng.choice(list(graph))
        lo, hi = self.speed_range
        # uniform over [lo, hi); random() never returns 1.0
        speed = lo + self.rng.random() * (hi - lo)
        particle = Particle(origin=(0.0, 0.0), target=(node.x, node.y), color=color, speed=speed)
        self.particles.append(particle)
        self.spawned += 1
        return particle
