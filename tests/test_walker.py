from collections import Counter

import numpy as np
import pytest

from pygdt.assembly import (AllEntities, AllIntersections, BoundaryEntities, BoundaryIntersections,
                            DirichletIntersections, FilteredEntities, FilteredIntersections, GridWalker,
                            IndexSetPartitioner, InnerIntersections, PeriodicIntersections, WalkerState)
from pygdt.assembly.wrappers import Codim0Functor, Codim1Lambda
from pygdt.exceptions import PreconditionViolation, WalkerStateError
from pygdt.fem import FunctionBasedBoundaryInfo
from pygdt.utils.meshgen import make_cube_grid


class CountingFunctor(Codim0Functor):
    """Forkable codim-0 functor counting the visited entities."""

    def __init__(self):
        self.visited = []
        self.prepared = self.finalized = 0

    def prepare(self):
        self.prepared += 1

    def apply_local(self, entity):
        self.visited.append(entity.index)

    def finalize(self):
        self.finalized += 1

    def fork(self):
        return CountingFunctor()

    def join(self, other):
        self.visited.extend(other.visited)


def test_state_transitions():
    gv = make_cube_grid([0, 0], [1, 1], [2, 2])
    walker = GridWalker(gv)
    assert walker.state is WalkerState.IDLE
    seen = []
    walker.add(lambda e: seen.append(walker.state))
    assert walker.state is WalkerState.POPULATING
    walker.walk(clear_stack=False)
    assert seen == [WalkerState.WALKING] * 4
    assert walker.state is WalkerState.POPULATING and len(walker) == 1
    walker.walk()
    assert walker.state is WalkerState.IDLE and len(walker) == 0
    assert len(seen) == 8


def test_add_during_walk_fails():
    gv = make_cube_grid([0, 0], [1, 1], [2, 2])
    walker = GridWalker(gv)
    walker.add(lambda e: walker.add(lambda e2: None))
    with pytest.raises(WalkerStateError):
        walker.walk()
    assert walker.state is WalkerState.IDLE


def test_functor_life_cycle():
    gv = make_cube_grid([0, 0], [1, 1], [3, 2])
    walker = GridWalker(gv)
    functor = CountingFunctor()
    walker.add(functor)
    walker.walk()
    assert functor.visited == list(range(6))
    assert functor.prepared == 1 and functor.finalized == 1


@pytest.mark.parametrize("periodic", [False, True])
@pytest.mark.parametrize("et", ['quad', 'tri'])
def test_every_intersection_is_visited_once(et, periodic):
    gv = make_cube_grid([0, 0], [1, 1], [3, 3], et, periodic=periodic)
    visits = Counter()
    walker = GridWalker(gv)
    walker.add(Codim1Lambda(lambda i: visits.update([i.facet_index])))
    walker.walk()
    assert len(visits) == gv.size(1)
    assert set(visits.values()) == {1}


def test_single_periodic_cell_is_visited_once():
    gv = make_cube_grid(0.0, 1.0, 1, periodic=True)
    visits = []
    walker = GridWalker(gv)
    walker.add(Codim1Lambda(visits.append))
    walker.walk()
    assert len(visits) == 1
    assert visits[0].outside is visits[0].inside


def test_intersection_predicates():
    gv = make_cube_grid([0, 0], [1, 1], [3, 3], periodic=[0])
    info = FunctionBasedBoundaryInfo(dirichlet=lambda x, y: np.isclose(y, 0.0), default='neumann')
    counts = {}
    walker = GridWalker(gv)
    for name, where in (("all", AllIntersections()), ("inner", InnerIntersections()),
                        ("boundary", BoundaryIntersections()), ("periodic", PeriodicIntersections()),
                        ("dirichlet", DirichletIntersections(info)),
                        ("not_inner", ~InnerIntersections()),
                        ("coupling", InnerIntersections() | PeriodicIntersections()),
                        ("bottom", BoundaryIntersections() & FilteredIntersections(
                            lambda i: i.geometry.center[1] < 0.5))):
        counts[name] = 0
        walker.add(Codim1Lambda(lambda i, name=name: counts.__setitem__(name, counts[name] + 1)), where)
    walker.walk()
    assert counts["all"] == gv.size(1) == 21
    assert counts["inner"] == 12
    assert counts["periodic"] == 3
    assert counts["boundary"] == 6
    assert counts["dirichlet"] == 3
    assert counts["not_inner"] == 9
    assert counts["coupling"] == 15
    assert counts["bottom"] == 3


def test_entity_predicates():
    gv = make_cube_grid([0, 0], [1, 1], [3, 3])
    seen = {"boundary": [], "inner": [], "left": []}
    walker = GridWalker(gv)
    walker.add(lambda e: seen["boundary"].append(e.index), BoundaryEntities())
    walker.add(lambda e: seen["inner"].append(e.index), ~BoundaryEntities())
    walker.add(lambda e: seen["left"].append(e.index),
               AllEntities() & FilteredEntities(lambda e: e.geometry.center[0] < 1 / 3))
    walker.walk()
    assert len(seen["boundary"]) == 8
    assert seen["inner"] == [4]
    assert seen["left"] == [0, 3, 6]


def test_predicate_kind_is_checked():
    walker = GridWalker(make_cube_grid([0, 0], [1, 1], [2, 2]))
    with pytest.raises(PreconditionViolation):
        walker.add(CountingFunctor(), AllIntersections())
    with pytest.raises(TypeError):
        walker.add(42)


def test_failure_aborts_the_walk_without_rollback():
    gv = make_cube_grid([0, 0], [1, 1], [3, 3])
    written = []

    def fail_on_third(entity):
        written.append(entity.index)
        if entity.index == 2:
            raise RuntimeError("boom")

    walker = GridWalker(gv)
    walker.add(fail_on_third)
    with pytest.raises(RuntimeError, match="boom"):
        walker.walk()
    assert written == [0, 1, 2]
    assert walker.state is WalkerState.IDLE


def test_failed_walk_keeps_registrations_without_clear_stack():
    gv = make_cube_grid([0, 0], [1, 1], [2, 2])
    walker = GridWalker(gv)

    def fail(entity):
        raise ValueError("bad entity")

    walker.add(fail)
    with pytest.raises(ValueError):
        walker.walk(clear_stack=False)
    assert len(walker) == 1 and walker.state is WalkerState.POPULATING


def test_parallel_walk_visits_every_entity_once():
    gv = make_cube_grid([0, 0], [1, 1], [5, 4])
    functor = CountingFunctor()
    walker = GridWalker(gv)
    walker.add(functor)
    walker.walk(parallel=True, num_workers=3, num_partitions=4)
    assert sorted(functor.visited) == list(range(20))
    assert functor.finalized == 1


def test_unforkable_functor_fails_before_traversal():
    gv = make_cube_grid([0, 0], [1, 1], [3, 3])
    calls = []
    walker = GridWalker(gv)
    walker.add(calls.append)
    with pytest.raises(PreconditionViolation):
        walker.walk(parallel=True, num_workers=2)
    assert calls == []


def test_partitioner():
    gv = make_cube_grid([0, 0], [1, 1], [3, 3])
    parts = IndexSetPartitioner(gv).partitions(4)
    assert len(parts) == 4
    assert sorted(np.concatenate(parts).tolist()) == list(range(9))
    assert len(IndexSetPartitioner(gv).partitions(20)) == 9
    with pytest.raises(ValueError):
        IndexSetPartitioner(gv).partitions(0)
