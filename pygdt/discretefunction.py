"""pygdt.discretefunction
A DOF vector interpreted as a function of a discrete space.
"""
import logging

import numpy as np

from pygdt.exceptions import DimensionMismatch
from pygdt.fem.reference import reference_nodes
from pygdt.la.containers import Vector

logger = logging.getLogger(__name__)


class DiscreteFunction:
    """
    ``space`` + ``vector``.  Evaluation is local (entity + reference point),
    as the quadrature loops need it; ``evaluate(x)`` searches the grid.
    """

    def __init__(self, space, vector: Vector = None, name: str = "u"):
        self.space = space
        self.vector = vector if vector is not None else Vector(space.mapper.size)
        if self.vector.size != space.mapper.size:
            raise DimensionMismatch("vector does not match the space", vector=self.vector.size,
                                    space=space.mapper.size)
        self.name = name

    @property
    def order(self) -> int:
        return self.space.order

    @property
    def dofs(self) -> np.ndarray:
        return self.vector.array

    def local_dofs(self, entity) -> np.ndarray:
        return self.vector.array[self.space.mapper.global_indices(entity)]

    def local_evaluate(self, entity, x_ref):
        dofs = self.local_dofs(entity)
        if self.space.space_type == "fv":
            return dofs[0] if len(dofs) == 1 else dofs.copy()
        return float(dofs @ self.space.base_function_set(entity).evaluate(x_ref))

    def local_jacobian(self, entity, x_ref) -> np.ndarray:
        if self.space.space_type == "fv":
            return np.zeros(entity.geometry.dimworld)
        return self.local_dofs(entity) @ self.space.base_function_set(entity).jacobian(x_ref)

    def evaluate(self, x):
        x = np.atleast_1d(np.asarray(x, dtype=float))
        for entity in self.space.grid_view.elements():
            if entity.geometry.contains(x):
                return self.local_evaluate(entity, entity.geometry.to_local(x))
        raise ValueError(f"point {x} is not inside the grid")

    def __call__(self, x):
        return self.evaluate(x)

    def copy(self, name=None) -> "DiscreteFunction":
        return DiscreteFunction(self.space, self.vector.copy(), name or self.name)

    def __repr__(self):
        return f"DiscreteFunction({self.name!r}, {self.space!r})"


def interpolate(function, space, name: str = "u") -> DiscreteFunction:
    """
    Lagrange interpolation: FV spaces take the value at the cell centers, CG
    spaces at the vertices and DG spaces at the reference Lagrange nodes.
    ``function`` maps a physical point to a scalar (or a ``dim_range`` array
    for vector-valued FV spaces).
    """
    target = DiscreteFunction(space, name=name)
    values = target.vector.array
    gv = space.grid_view
    if space.space_type == "fv":
        m = space.dim_range
        for entity in gv.elements():
            values[space.mapper.global_indices(entity)] = np.asarray(function(entity.geometry.center),
                                                                     dtype=float).reshape(m)
    elif space.space_type == "cg":
        for vid, x in enumerate(gv.mesh.vertices):
            values[vid] = float(function(x))
    else:
        nodes = reference_nodes(gv.mesh.element_type, space.order)
        for entity in gv.elements():
            indices = space.mapper.global_indices(entity)
            for i, x_ref in enumerate(nodes):
                values[indices[i]] = float(function(entity.geometry.to_global(x_ref)))
    logger.debug(f"interpolated into {space!r}")
    return target
