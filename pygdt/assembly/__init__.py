from .apply_on import (
    AllEntities,
    AllIntersections,
    BoundaryEntities,
    BoundaryIntersections,
    DirichletIntersections,
    FilteredEntities,
    FilteredIntersections,
    InnerIntersections,
    NeumannIntersections,
    PeriodicIntersections,
    WhichEntity,
    WhichIntersection,
)
from .local_assemblers import Codim0Matrix, Codim0Vector, Codim1BoundaryMatrix, Codim1CouplingMatrix, Codim1Vector
from .partitioning import IndexSetPartitioner
from .system import SystemAssembler
from .tmp_storage import TmpMatricesPool, TmpVectorsPool
from .walker import GridWalker, WalkerState
from .wrappers import (
    Codim0Functor,
    Codim1Functor,
    ConstraintsMatrixWrapper,
    ConstraintsVectorWrapper,
    LocalIntersectionOperatorWrapper,
)
