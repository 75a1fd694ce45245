import random

import pytest

from ringdash.config import DashboardConfig
from ringdash.graph import NodeGraph
from ringdash.particles import Particle, ParticleSystem
from ringdash.state import ViewState, reconcile

from conftest import snapshot


def graph_of(nodes):
    graph = NodeGraph(200.0)
    graph.sync(reconcile(ViewState(), snapshot(nodes)))
    return graph


@pytest.fixture
def system():
    return ParticleSystem(DashboardConfig(), rng=random.Random(5))


def test_spawn_without_nodes_is_a_no_op(system):
    assert system.spawn(NodeGraph(200.0), "9001") is None
    assert len(system) == 0


def test_spawn_targets_the_matching_node(system):
    graph = graph_of(["a:9001", "b:9002", "c:9003"])
    p = system.spawn(graph, "9002")
    b = graph.get("b:9002")
    assert p.origin == (0.0, 0.0)
    assert p.target == (b.x, b.y)
    assert p.progress == 0.0


def test_spawn_falls_back_to_some_live_node(system):
    graph = graph_of(["a:9001", "b:9002"])
    targets = {(n.x, n.y) for n in graph}
    for _ in range(20):
        assert system.spawn(graph, "???").target in targets


def test_speed_is_drawn_from_the_configured_range(system):
    graph = graph_of(["a:9001"])
    for _ in range(200):
        p = system.spawn(graph)
        assert 0.02 <= p.speed < 0.04


def test_progress_never_decreases_and_particle_retires_on_arrival(system):
    p = Particle(origin=(0.0, 0.0), target=(100.0, 0.0), color="white", speed=0.25)
    system.particles.append(p)
    seen = []
    for _ in range(3):
        alive = system.tick()
        assert alive == [p]
        seen.append(p.progress)
    assert seen == sorted(seen)
    assert system.tick() == []
    assert p.progress >= 1.0
    assert system.particles == []
    assert system.retired == 1
    assert system.tick() == []


def test_position_interpolates_linearly():
    p = Particle(origin=(10.0, 20.0), target=(110.0, -80.0), color="white", speed=0.5)
    p.advance()
    assert p.position == pytest.approx((60.0, -30.0))


def test_many_particles_all_eventually_retire(system):
    graph = graph_of(["a:9001", "b:9002"])
    for _ in range(30):
        system.spawn(graph)
    for _ in range(51):
        system.tick()
    assert len(system) == 0
    assert system.spawned == system.retired == 30
