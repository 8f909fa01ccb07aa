from .basis import BaseFunctionSet
from .spaces import ContinuousLagrangeSpace, DiscontinuousLagrangeSpace, FiniteVolumeSpace, SpaceInterface
from .boundaryinfo import (AllDirichletBoundaryInfo, AllNeumannBoundaryInfo, FunctionBasedBoundaryInfo,
                           TagBasedBoundaryInfo)
from .constraints import DirichletConstraints
