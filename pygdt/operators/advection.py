"""pygdt.operators.advection
Finite-volume discretization of ∂_t u + ∇·f(u) = 0 by numerical fluxes.
"""
import logging

from pygdt.assembly.apply_on import BoundaryIntersections, InnerIntersections, PeriodicIntersections
from pygdt.assembly.walker import GridWalker
from pygdt.assembly.wrappers import LocalIntersectionOperatorWrapper
from pygdt.discretefunction import DiscreteFunction
from pygdt.exceptions import OperatorError
from pygdt.local.advection_fv import (
    LocalAdvectionFvBoundaryTreatmentByCustomNumericalFluxOperator,
    LocalAdvectionFvCouplingOperator,
)

logger = logging.getLogger(__name__)


class AdvectionFvOperator:
    """
    ``A(u)_E = 1/|E| Σ_F |F| g(u_E, u_N, n_F)``.

    ``boundary_treatment`` is a callable ``(u, n, param) -> flux`` used on
    non-periodic boundary intersections; without one those intersections
    carry no flux.
    """

    def __init__(self, space, numerical_flux, boundary_treatment=None):
        if space.space_type != "fv":
            raise OperatorError("AdvectionFvOperator needs a finite-volume space", space=repr(space))
        self.space = space
        self.numerical_flux = numerical_flux
        self.coupling_operator = LocalAdvectionFvCouplingOperator(numerical_flux)
        self.boundary_operator = (None if boundary_treatment is None
                                  else LocalAdvectionFvBoundaryTreatmentByCustomNumericalFluxOperator(
                                      boundary_treatment))

    @property
    def linear(self) -> bool:
        return self.numerical_flux.linear()

    def apply(self, source: DiscreteFunction, range_: DiscreteFunction, param=None, *, parallel: bool = False,
              **walk_kwargs):
        """range_ = A(source); ``range_`` is overwritten."""
        for name, df in (("source", source), ("range", range_)):
            if df.space.space_type != "fv":
                raise OperatorError(f"{name} must live in a finite-volume space")
        range_.vector.array[:] = 0.0
        walker = GridWalker(self.space.grid_view)
        walker.add(LocalIntersectionOperatorWrapper(self.coupling_operator, source, range_.space, range_.vector,
                                                    param, InnerIntersections() | PeriodicIntersections()))
        if self.boundary_operator is not None:
            walker.add(LocalIntersectionOperatorWrapper(self.boundary_operator, source, range_.space,
                                                        range_.vector, param, BoundaryIntersections()))
        walker.walk(parallel=parallel, **walk_kwargs)
        return range_

    def __call__(self, source: DiscreteFunction, param=None, **kwargs) -> DiscreteFunction:
        return self.apply(source, DiscreteFunction(self.space, name=f"A({source.name})"), param, **kwargs)

    def __repr__(self):
        return f"AdvectionFvOperator({self.space!r}, {type(self.numerical_flux).__name__})"


def explicit_euler_step(operator: AdvectionFvOperator, u: DiscreteFunction, dt: float, param=None,
                        **kwargs) -> DiscreteFunction:
    """u - dt * A(u)."""
    update = operator(u, param, **kwargs)
    result = u.copy()
    result.vector.array[:] -= dt * update.vector.array
    return result
