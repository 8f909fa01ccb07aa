"""pygdt.fem.mapper
Local-to-global DOF numbering.
"""
import abc

import numpy as np

from pygdt.exceptions import MapperError
from pygdt.fem.reference import CORNER_DOFS, number_of_basis_functions


class MapperInterface(abc.ABC):
    size: int
    max_local_size: int

    @abc.abstractmethod
    def local_size(self, entity) -> int: ...

    @abc.abstractmethod
    def global_indices(self, entity) -> np.ndarray: ...

    def global_index(self, entity, local_index: int) -> int:
        indices = self.global_indices(entity)
        if not 0 <= local_index < len(indices):
            raise MapperError(f"local index {local_index} out of range for entity {entity.index}",
                              local_index=local_index, local_size=len(indices))
        return int(indices[local_index])


class ContinuousMapper(MapperInterface):
    """Order-1 continuous Lagrange numbering: the global DOF of a corner is its vertex id."""

    def __init__(self, grid_view):
        mesh = grid_view.mesh
        self.size = mesh.n_vertices
        corner_of_dof = np.argsort(CORNER_DOFS[mesh.element_type])
        self._indices = np.ascontiguousarray(mesh.cells[:, corner_of_dof], dtype=np.int64)
        self._indices.flags.writeable = False
        self.max_local_size = self._indices.shape[1]

    def local_size(self, entity) -> int:
        return self.max_local_size

    def global_indices(self, entity) -> np.ndarray:
        return self._indices[entity.index]


class DiscontinuousMapper(MapperInterface):
    """Element-wise numbering ``entity.index * n_local + i``, components innermost."""

    def __init__(self, grid_view, order: int, dim_range: int = 1):
        self.n_local = number_of_basis_functions(grid_view.mesh.element_type, order) * dim_range
        self.size = grid_view.size(0) * self.n_local
        self.max_local_size = self.n_local
        self._offsets = np.arange(self.n_local, dtype=np.int64)

    def local_size(self, entity) -> int:
        return self.n_local

    def global_indices(self, entity) -> np.ndarray:
        return entity.index * self.n_local + self._offsets

    def global_index(self, entity, local_index: int) -> int:
        if not 0 <= local_index < self.n_local:
            raise MapperError(f"local index {local_index} out of range for entity {entity.index}",
                              local_index=local_index, local_size=self.n_local)
        return entity.index * self.n_local + int(local_index)
