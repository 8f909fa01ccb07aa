"""pygdt.fem.constraints
Essential (Dirichlet) boundary conditions as per-entity overwrite lists.
"""
import logging
from typing import Callable, Dict, NamedTuple, Optional

import numpy as np

from pygdt.fem.reference import REFERENCE_CORNERS, reference_facets, reference_nodes

logger = logging.getLogger(__name__)


class LocalConstraints(NamedTuple):
    """Global (row, col, value) overwrites produced for one entity."""
    rows: np.ndarray
    cols: np.ndarray
    values: np.ndarray
    constrained_rows: np.ndarray
    row_values: np.ndarray

    def __len__(self):
        return len(self.rows)


def _nodes_on_facet(element_type: str, order: int, facet: int, tol: float = 1e-12):
    """Local indices of the Lagrange nodes lying on a reference facet."""
    nodes = reference_nodes(element_type, order)
    corners = REFERENCE_CORNERS[element_type][list(reference_facets(element_type)[facet])]
    if len(corners) == 1:
        return [i for i, p in enumerate(nodes) if np.linalg.norm(p - corners[0]) < tol]
    a, b = corners
    t = b - a
    out = []
    for i, p in enumerate(nodes):
        d = p - a
        if abs(d[0] * t[1] - d[1] * t[0]) < tol:
            s = d @ t / (t @ t)
            if -tol <= s <= 1.0 + tol:
                out.append(i)
    return out


class DirichletConstraints:
    """
    Collects the DOFs on Dirichlet intersections once, at construction.

    For every entity touching a constrained DOF the row is overwritten by the
    entity's columns set to zero and, if ``set_diagonal``, a one on the
    diagonal.  Vector entries of constrained rows are overwritten with the
    Dirichlet value (``values(x)`` at the DOF's node, zero when not given).
    """

    def __init__(self, space, boundary_info, set_diagonal: bool = True,
                 values: Optional[Callable] = None):
        if space.order == 0:
            raise ValueError("Dirichlet constraints need nodal DOFs on the boundary (order >= 1)")
        self.space = space
        self.boundary_info = boundary_info
        self.set_diagonal = bool(set_diagonal)
        self.values = values
        self._dof_values: Dict[int, float] = {}
        self._collect()

    def _collect(self):
        gv = self.space.grid_view
        nodes = reference_nodes(gv.mesh.element_type, self.space.order)
        for entity in gv.elements():
            indices = self.space.mapper.global_indices(entity)
            for intersection in gv.intersections(entity):
                if not self.boundary_info.dirichlet(intersection):
                    continue
                for i in _nodes_on_facet(entity.element_type, self.space.order, intersection.index_in_inside):
                    g = int(indices[i])
                    if g in self._dof_values:
                        continue
                    if self.values is None:
                        self._dof_values[g] = 0.0
                    else:
                        self._dof_values[g] = float(self.values(entity.geometry.to_global(nodes[i])))
        self.dirichlet_dofs = np.array(sorted(self._dof_values), dtype=np.int64)
        self._mask = np.zeros(self.space.mapper.size, dtype=bool)
        self._mask[self.dirichlet_dofs] = True
        logger.debug(f"DirichletConstraints: {len(self.dirichlet_dofs)} constrained DOFs")

    def is_constrained(self, dof: int) -> bool:
        return bool(self._mask[dof])

    def value(self, dof: int) -> float:
        return self._dof_values[int(dof)]

    def local_constraints(self, entity, ansatz_space=None) -> LocalConstraints:
        ansatz_space = ansatz_space or self.space
        rows_g = self.space.mapper.global_indices(entity)
        cols_g = np.asarray(ansatz_space.mapper.global_indices(entity), dtype=np.int64)
        constrained = np.array([g for g in rows_g if self._mask[g]], dtype=np.int64)
        if len(constrained) == 0:
            empty = np.empty(0, dtype=np.int64)
            return LocalConstraints(empty, empty, np.empty(0), empty, np.empty(0))
        rows = np.repeat(constrained, len(cols_g))
        cols = np.tile(cols_g, len(constrained))
        vals = np.zeros(len(rows))
        if self.set_diagonal:
            vals[rows == cols] = 1.0
        row_values = np.array([self._dof_values[int(g)] for g in constrained])
        return LocalConstraints(rows, cols, vals, constrained, row_values)

    def __len__(self):
        return len(self.dirichlet_dofs)

    def __repr__(self):
        return f"DirichletConstraints({len(self.dirichlet_dofs)} DOFs, set_diagonal={self.set_diagonal})"
