"""pygdt.assembly.wrappers
Walker functors.  A functor is applied on entities (codim 0) or
intersections (codim 1) and follows the cycle

    prepare() -> apply_local(...) for every matching element -> finalize()

For a parallel walk the walker calls ``fork()`` once per partition; a fork
writes into private ``zeros_like()`` containers and owns fresh scratch pools.
``join(fork)`` merges a fork back.  Functors that cannot be forked raise
``PreconditionViolation`` from ``fork()``, before any element is visited.
"""
import abc
import logging

import numpy as np

from pygdt.assembly.apply_on import (
    AllEntities,
    AllIntersections,
    BoundaryIntersections,
    InnerIntersections,
    PeriodicIntersections,
)
from pygdt.assembly.local_assemblers import Codim1BoundaryMatrix, Codim1CouplingMatrix
from pygdt.assembly.tmp_storage import TmpMatricesPool, TmpVectorsPool
from pygdt.exceptions import PreconditionViolation
from pygdt.local.advection_fv import LocalDofVector

logger = logging.getLogger(__name__)


class FunctorInterface(abc.ABC):
    codim: int

    def prepare(self):
        pass

    @abc.abstractmethod
    def apply_local(self, element): ...

    def finalize(self):
        pass

    def default_apply_on(self):
        return AllEntities() if self.codim == 0 else AllIntersections()

    def fork(self) -> "FunctorInterface":
        raise PreconditionViolation(f"{type(self).__name__} cannot be used in a parallel walk")

    def join(self, other: "FunctorInterface"):
        pass


class Codim0Functor(FunctorInterface):
    codim = 0


class Codim1Functor(FunctorInterface):
    codim = 1


class Codim0Lambda(Codim0Functor):
    """Calls ``fn(entity)``; serial walks only."""

    def __init__(self, fn):
        self.fn = fn

    def apply_local(self, entity):
        self.fn(entity)


class Codim1Lambda(Codim1Functor):
    def __init__(self, fn):
        self.fn = fn

    def apply_local(self, intersection):
        self.fn(intersection)


# -------------------------------------------------------------------------
# local assembler -> global container
# -------------------------------------------------------------------------
class _ContainerWrapper:
    """Shared fork/join logic for wrappers scattering into one container."""
    container = None

    def _forked(self, container):
        raise NotImplementedError

    def fork(self):
        return self._forked(self.container.zeros_like())

    def join(self, other):
        self.container.merge(other.container)


class LocalVolumeMatrixAssemblerWrapper(_ContainerWrapper, Codim0Functor):
    def __init__(self, local_assembler, test_space, ansatz_space, matrix):
        self.local_assembler = local_assembler
        self.test_space = test_space
        self.ansatz_space = ansatz_space
        self.container = matrix
        num_local, num_op = local_assembler.num_tmp_objects_required()
        rows, cols = test_space.mapper.max_local_size, ansatz_space.mapper.max_local_size
        self.tmp_local = TmpMatricesPool(num_local, rows, cols)
        self.tmp_operator = TmpMatricesPool(num_op, rows, cols)

    def _forked(self, container):
        return LocalVolumeMatrixAssemblerWrapper(self.local_assembler, self.test_space, self.ansatz_space, container)

    def apply_local(self, entity):
        self.local_assembler.assemble(self.test_space, self.ansatz_space, entity, self.container,
                                      self.tmp_local, self.tmp_operator)


class LocalVolumeVectorAssemblerWrapper(_ContainerWrapper, Codim0Functor):
    def __init__(self, local_assembler, test_space, vector):
        self.local_assembler = local_assembler
        self.test_space = test_space
        self.container = vector
        num_local, num_op = local_assembler.num_tmp_objects_required()
        size = test_space.mapper.max_local_size
        self.tmp_local = TmpVectorsPool(num_local, size)
        self.tmp_operator = TmpVectorsPool(num_op, size)

    def _forked(self, container):
        return LocalVolumeVectorAssemblerWrapper(self.local_assembler, self.test_space, container)

    def apply_local(self, entity):
        self.local_assembler.assemble(self.test_space, entity, self.container, self.tmp_local, self.tmp_operator)


class LocalFaceMatrixAssemblerWrapper(_ContainerWrapper, Codim1Functor):
    """Coupling or boundary matrix assembler on intersections."""

    def __init__(self, local_assembler, test_space, ansatz_space, matrix):
        self.local_assembler = local_assembler
        self.test_space = test_space
        self.ansatz_space = ansatz_space
        self.container = matrix
        num_local, num_op = local_assembler.num_tmp_objects_required()
        rows, cols = test_space.mapper.max_local_size, ansatz_space.mapper.max_local_size
        self.tmp_local = TmpMatricesPool(num_local, rows, cols)
        self.tmp_operator = TmpMatricesPool(num_op, rows, cols)

    def _forked(self, container):
        return LocalFaceMatrixAssemblerWrapper(self.local_assembler, self.test_space, self.ansatz_space, container)

    def default_apply_on(self):
        if isinstance(self.local_assembler, Codim1CouplingMatrix):
            return InnerIntersections() | PeriodicIntersections()
        if isinstance(self.local_assembler, Codim1BoundaryMatrix):
            return BoundaryIntersections()
        return AllIntersections()

    def apply_local(self, intersection):
        self.local_assembler.assemble(self.test_space, self.ansatz_space, intersection, self.container,
                                      self.tmp_local, self.tmp_operator)


class LocalFaceVectorAssemblerWrapper(_ContainerWrapper, Codim1Functor):
    def __init__(self, local_assembler, test_space, vector):
        self.local_assembler = local_assembler
        self.test_space = test_space
        self.container = vector
        num_local, num_op = local_assembler.num_tmp_objects_required()
        size = test_space.mapper.max_local_size
        self.tmp_local = TmpVectorsPool(num_local, size)
        self.tmp_operator = TmpVectorsPool(num_op, size)

    def _forked(self, container):
        return LocalFaceVectorAssemblerWrapper(self.local_assembler, self.test_space, container)

    def default_apply_on(self):
        return BoundaryIntersections()

    def apply_local(self, intersection):
        self.local_assembler.assemble(self.test_space, intersection, self.container, self.tmp_local,
                                      self.tmp_operator)


# -------------------------------------------------------------------------
# constraints
# -------------------------------------------------------------------------
class _ConstraintsWrapper(Codim0Functor):
    """
    Collects the local constraints of every visited entity and writes them
    in ``finalize()``, after all accumulating functors of the walk have run.
    """

    def __init__(self, constraints, container):
        self.constraints = constraints
        self.container = container
        self._collected = []

    def prepare(self):
        self._collected = []

    def fork(self):
        return type(self)(self.constraints, self.container, **self._fork_kwargs())

    def _fork_kwargs(self):
        return {}

    def join(self, other):
        self._collected.extend(other._collected)

    def _local(self, entity):
        raise NotImplementedError

    def apply_local(self, entity):
        local = self._local(entity)
        if len(local.constrained_rows):
            self._collected.append(local)


class ConstraintsMatrixWrapper(_ConstraintsWrapper):
    def __init__(self, constraints, matrix, ansatz_space=None):
        super().__init__(constraints, matrix)
        self.ansatz_space = ansatz_space

    def _fork_kwargs(self):
        return {"ansatz_space": self.ansatz_space}

    def _local(self, entity):
        return self.constraints.local_constraints(entity, self.ansatz_space)

    def finalize(self):
        if not self._collected:
            return
        rows = np.unique(np.concatenate([c.constrained_rows for c in self._collected]))
        for row in rows:
            self.container.clear_row(int(row))
        for local in self._collected:
            self.container.set_entries(local.rows, local.cols, local.values)
        logger.debug(f"constraints: {len(rows)} matrix rows overwritten")
        self._collected = []


class ConstraintsVectorWrapper(_ConstraintsWrapper):
    def _local(self, entity):
        return self.constraints.local_constraints(entity)

    def finalize(self):
        for local in self._collected:
            for row, value in zip(local.constrained_rows, local.row_values):
                self.container.set_entry(int(row), float(value))
        self._collected = []


# -------------------------------------------------------------------------
# local intersection operators (finite volumes)
# -------------------------------------------------------------------------
class LocalIntersectionOperatorWrapper(Codim1Functor):
    """
    Applies a local intersection operator to ``source`` and accumulates the
    local results of the inside and outside entity into ``range_vector``.
    """

    def __init__(self, local_operator, source, range_space, range_vector, param=None, apply_on=None):
        self.local_operator = local_operator
        self.source = source
        self.range_space = range_space
        self.container = range_vector
        self.param = param
        self._apply_on = apply_on

    def default_apply_on(self):
        return self._apply_on if self._apply_on is not None else AllIntersections()

    def fork(self):
        return LocalIntersectionOperatorWrapper(self.local_operator.copy(), self.source, self.range_space,
                                                self.container.zeros_like(), self.param, self._apply_on)

    def join(self, other):
        self.container.merge(other.container)

    def apply_local(self, intersection):
        mapper = self.range_space.mapper
        inside = intersection.inside
        local_inside = LocalDofVector(inside, self.range_space, np.zeros(mapper.local_size(inside)))
        local_outside = None
        if intersection.neighbor:
            outside = intersection.outside
            local_outside = LocalDofVector(outside, self.range_space, np.zeros(mapper.local_size(outside)))
        self.local_operator.apply(self.source, intersection, local_inside, local_outside, self.param)
        self.container.add_to_block(mapper.global_indices(inside), local_inside.dofs)
        if local_outside is not None:
            self.container.add_to_block(mapper.global_indices(local_outside.entity), local_outside.dofs)
