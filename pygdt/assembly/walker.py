"""pygdt.assembly.walker
The grid walker: one traversal of a grid view applying every registered
functor on the entities / intersections selected by its predicate.

Every intersection is visited exactly once: it is owned by the entity with
the smaller index, a boundary intersection by its only entity, and an
intersection of an entity with itself (periodic grid one cell wide) by the
smaller local facet index.
"""
import enum
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import List, NamedTuple

from pygdt.assembly.apply_on import WhichEntity, WhichIntersection
from pygdt.assembly.partitioning import IndexSetPartitioner
from pygdt.assembly.wrappers import Codim0Lambda, Codim1Lambda, FunctorInterface
from pygdt.config import get_config
from pygdt.exceptions import PreconditionViolation, WalkerStateError

logger = logging.getLogger(__name__)


class WalkerState(enum.Enum):
    IDLE = "idle"
    POPULATING = "populating"
    WALKING = "walking"


class Registration(NamedTuple):
    functor: FunctorInterface
    apply_on: object


def owns(entity, intersection) -> bool:
    """Whether ``entity`` is the one visiting ``intersection``."""
    outside = intersection.outside
    if outside is None:
        return True
    if outside.index != entity.index:
        return entity.index < outside.index
    return intersection.index_in_inside < intersection.index_in_outside


class GridWalker:
    def __init__(self, grid_view):
        self.grid_view = grid_view
        self.state = WalkerState.IDLE
        self._registrations: List[Registration] = []

    # ------------------------------------------------------------------
    # registration
    # ------------------------------------------------------------------
    def add(self, functor, apply_on=None) -> Registration:
        """Register a functor, or a plain callable as a codim-0 lambda."""
        if self.state is WalkerState.WALKING:
            raise WalkerStateError("cannot register functors during a walk")
        if not isinstance(functor, FunctorInterface):
            if not callable(functor):
                raise TypeError(f"cannot register {type(functor).__name__} with a grid walker")
            functor = Codim1Lambda(functor) if isinstance(apply_on, WhichIntersection) else Codim0Lambda(functor)
        apply_on = apply_on if apply_on is not None else functor.default_apply_on()
        expected = WhichEntity if functor.codim == 0 else WhichIntersection
        if not isinstance(apply_on, expected):
            raise PreconditionViolation(f"codim {functor.codim} functor needs a {expected.__name__} predicate",
                                        apply_on=apply_on)
        registration = Registration(functor, apply_on)
        self._registrations.append(registration)
        self.state = WalkerState.POPULATING
        return registration

    def clear(self):
        if self.state is WalkerState.WALKING:
            raise WalkerStateError("cannot clear functors during a walk")
        self._registrations = []
        self.state = WalkerState.IDLE

    @property
    def registrations(self):
        return tuple(self._registrations)

    def __len__(self):
        return len(self._registrations)

    # ------------------------------------------------------------------
    # walking
    # ------------------------------------------------------------------
    def walk(self, clear_stack: bool = True, *, parallel: bool = False, num_workers=None,
             partitioner=None, num_partitions=None):
        if self.state is WalkerState.WALKING:
            raise WalkerStateError("walk() called while already walking")
        self.state = WalkerState.WALKING
        start = time.perf_counter()
        try:
            for reg in self._registrations:
                reg.functor.prepare()
            if parallel:
                self._walk_parallel(num_workers, partitioner, num_partitions)
            else:
                self._walk_range(self._registrations, self.grid_view.elements())
            for reg in self._registrations:
                reg.functor.finalize()
        finally:
            if clear_stack:
                self._registrations = []
            self.state = WalkerState.POPULATING if self._registrations else WalkerState.IDLE
        logger.debug(f"walk over {self.grid_view.size(0)} entities took {time.perf_counter() - start:.3f}s")

    def _walk_range(self, registrations, entities):
        codim0 = [r for r in registrations if r.functor.codim == 0]
        codim1 = [r for r in registrations if r.functor.codim == 1]
        gv = self.grid_view
        n_entities = n_intersections = 0
        for entity in entities:
            n_entities += 1
            for functor, apply_on in codim0:
                if apply_on(gv, entity):
                    functor.apply_local(entity)
            if not codim1:
                continue
            for intersection in gv.intersections(entity):
                if not owns(entity, intersection):
                    continue
                n_intersections += 1
                for functor, apply_on in codim1:
                    if apply_on(gv, intersection):
                        functor.apply_local(intersection)
        logger.debug(f"visited {n_entities} entities and {n_intersections} intersections")

    def _walk_parallel(self, num_workers, partitioner, num_partitions):
        config = get_config().walker
        workers = int(num_workers) if num_workers else config.resolved_workers()
        n_parts = int(num_partitions) if num_partitions else config.resolved_partitions(workers)
        partitioner = partitioner or IndexSetPartitioner(self.grid_view)
        parts = partitioner.partitions(n_parts)

        # forks are created up front: a functor that cannot fork fails before any entity is visited
        forks = [[Registration(reg.functor.fork(), reg.apply_on) for reg in self._registrations]
                 for _ in parts]
        for reg_list in forks:
            for reg in reg_list:
                reg.functor.prepare()
        # intersections are cached lazily by the grid view; build them before the threads start
        for entity in self.grid_view.elements():
            self.grid_view.intersections(entity)

        logger.debug(f"parallel walk: {len(parts)} partitions on {workers} workers")
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(self._walk_range, reg_list, (self.grid_view.entity(int(i)) for i in part))
                       for reg_list, part in zip(forks, parts)]
            # result() re-raises the first failure in partition order
            for future in futures:
                future.result()
        for reg_list in forks:
            for reg, forked in zip(self._registrations, reg_list):
                reg.functor.join(forked.functor)

    def __repr__(self):
        return f"GridWalker({self.state.value}, {len(self._registrations)} functors)"
