"""pygdt.assembly.system
SystemAssembler: registers (local assembler, container, predicate) triples
with a grid walker and assembles all of them in a single traversal.
"""
import logging
import time

from pygdt.assembly.local_assemblers import (
    Codim0Matrix,
    Codim0Vector,
    Codim1BoundaryMatrix,
    Codim1CouplingMatrix,
    Codim1Vector,
)
from pygdt.assembly.walker import GridWalker
from pygdt.assembly.wrappers import (
    ConstraintsMatrixWrapper,
    ConstraintsVectorWrapper,
    FunctorInterface,
    LocalFaceMatrixAssemblerWrapper,
    LocalFaceVectorAssemblerWrapper,
    LocalVolumeMatrixAssemblerWrapper,
    LocalVolumeVectorAssemblerWrapper,
)
from pygdt.exceptions import DimensionMismatch
from pygdt.la.containers import MatrixInterface, VectorInterface
from pygdt.local.functionals import Codim0IntegralFunctional, Codim1IntegralFunctional
from pygdt.local.operators import Codim0Integral, Codim1BoundaryIntegral, Codim1CouplingIntegral

logger = logging.getLogger(__name__)

# bare local operators are wrapped into the matching local assembler
_LOCAL_ASSEMBLER_OF = {
    Codim0Integral: Codim0Matrix,
    Codim1CouplingIntegral: Codim1CouplingMatrix,
    Codim1BoundaryIntegral: Codim1BoundaryMatrix,
    Codim0IntegralFunctional: Codim0Vector,
    Codim1IntegralFunctional: Codim1Vector,
}


class SystemAssembler(GridWalker):
    def __init__(self, test_space, ansatz_space=None, grid_view=None):
        self.test_space = test_space
        self.ansatz_space = ansatz_space if ansatz_space is not None else test_space
        super().__init__(grid_view if grid_view is not None else test_space.grid_view)

    # ------------------------------------------------------------------
    def _check_matrix(self, matrix):
        if not isinstance(matrix, MatrixInterface):
            raise TypeError(f"expected a matrix container, got {type(matrix).__name__}")
        expected = (self.test_space.mapper.size, self.ansatz_space.mapper.size)
        if matrix.shape != expected:
            raise DimensionMismatch("matrix does not match the test/ansatz spaces",
                                    matrix=matrix.shape, spaces=expected)

    def _check_vector(self, vector):
        if not isinstance(vector, VectorInterface):
            raise TypeError(f"expected a vector container, got {type(vector).__name__}")
        if vector.size != self.test_space.mapper.size:
            raise DimensionMismatch("vector does not match the test space",
                                    vector=vector.size, space=self.test_space.mapper.size)

    def _wrap(self, local, container):
        for operator_type, assembler_type in _LOCAL_ASSEMBLER_OF.items():
            if isinstance(local, operator_type):
                local = assembler_type(local)
                break

        if hasattr(local, "local_constraints"):
            if isinstance(container, MatrixInterface):
                self._check_matrix(container)
                return ConstraintsMatrixWrapper(local, container, self.ansatz_space)
            self._check_vector(container)
            return ConstraintsVectorWrapper(local, container)
        if isinstance(local, Codim0Matrix):
            self._check_matrix(container)
            return LocalVolumeMatrixAssemblerWrapper(local, self.test_space, self.ansatz_space, container)
        if isinstance(local, (Codim1CouplingMatrix, Codim1BoundaryMatrix)):
            self._check_matrix(container)
            return LocalFaceMatrixAssemblerWrapper(local, self.test_space, self.ansatz_space, container)
        if isinstance(local, Codim0Vector):
            self._check_vector(container)
            return LocalVolumeVectorAssemblerWrapper(local, self.test_space, container)
        if isinstance(local, Codim1Vector):
            self._check_vector(container)
            return LocalFaceVectorAssemblerWrapper(local, self.test_space, container)
        raise TypeError(f"cannot assemble {type(local).__name__}")

    def add(self, local, container=None, apply_on=None):
        """
        Register ``local`` writing into ``container``.

        ``local`` may be a local assembler, a bare local operator or
        functional, a constraints object or a ready walker functor (then
        ``container`` is ignored).  Container sizes are checked here, so an
        incompatible container fails before the walk.
        """
        if isinstance(local, FunctorInterface) or (container is None and callable(local)):
            return super().add(local, apply_on)
        return super().add(self._wrap(local, container), apply_on)

    def assemble(self, clear_stack: bool = True, *, parallel: bool = False, num_workers=None,
                 partitioner=None, num_partitions=None):
        n = len(self)
        logger.info(f"assembling {n} functors on {self.grid_view.size(0)} entities"
                    f"{' (parallel)' if parallel else ''}")
        start = time.perf_counter()
        self.walk(clear_stack, parallel=parallel, num_workers=num_workers, partitioner=partitioner,
                  num_partitions=num_partitions)
        logger.info(f"assembly done in {time.perf_counter() - start:.3f}s")

    def __repr__(self):
        return f"SystemAssembler({self.test_space!r}, {self.ansatz_space!r}, {len(self)} functors)"
