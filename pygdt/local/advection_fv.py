"""pygdt.local.advection_fv
Finite-volume advection on one intersection: the numerical flux through the
facet, scaled by |F| / |E|, is added to the inside cell and subtracted from
the outside cell.  The constant FV basis is assumed to evaluate to 1.
"""
import abc
import copy
from dataclasses import dataclass
from typing import Callable

import numpy as np

from pygdt.exceptions import OperatorError


@dataclass
class LocalDofVector:
    """Mutable local DOFs of one entity of a range space."""
    entity: object
    space: object
    dofs: np.ndarray


class LocalIntersectionOperatorInterface(abc.ABC):
    @abc.abstractmethod
    def apply(self, source, intersection, local_range_inside, local_range_outside, param=None): ...

    def copy(self) -> "LocalIntersectionOperatorInterface":
        return copy.copy(self)


def _require_fv(**spaces):
    for name, space in spaces.items():
        if getattr(space, "space_type", None) != "fv":
            raise OperatorError("finite-volume advection needs finite-volume spaces", argument=name,
                                space=type(space).__name__)


class LocalAdvectionFvCouplingOperator(LocalIntersectionOperatorInterface):
    def __init__(self, numerical_flux):
        self.numerical_flux = numerical_flux.copy()

    def copy(self):
        return LocalAdvectionFvCouplingOperator(self.numerical_flux)

    def apply(self, source, intersection, local_range_inside, local_range_outside, param=None):
        _require_fv(source=source.space, range_inside=local_range_inside.space,
                    range_outside=local_range_outside.space)
        inside = local_range_inside.entity
        outside = local_range_outside.entity
        u = source.local_dofs(inside)
        v = source.local_dofs(outside)
        g = self.numerical_flux.apply(u, v, intersection.center_unit_outer_normal(), param)
        h_intersection = intersection.geometry.volume
        local_range_inside.dofs += g * h_intersection / inside.geometry.volume
        local_range_outside.dofs -= g * h_intersection / outside.geometry.volume


class LocalAdvectionFvBoundaryTreatmentByCustomNumericalFluxOperator(LocalIntersectionOperatorInterface):
    """Boundary flux given by ``numerical_boundary_flux(u, n, param) -> (m,)``."""

    def __init__(self, numerical_boundary_flux: Callable):
        self.numerical_boundary_flux = numerical_boundary_flux

    def apply(self, source, intersection, local_range_inside, local_range_outside=None, param=None):
        _require_fv(source=source.space, range_inside=local_range_inside.space)
        element = local_range_inside.entity
        u = source.local_dofs(element)
        g = np.asarray(self.numerical_boundary_flux(u, intersection.center_unit_outer_normal(), param),
                       dtype=float).reshape(len(u))
        local_range_inside.dofs += g * intersection.geometry.volume / element.geometry.volume
