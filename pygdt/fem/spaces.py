"""pygdt.fem.spaces
Discrete function spaces on a grid view: continuous and discontinuous
Lagrange, and the piecewise-constant finite-volume space.
"""
import abc
import logging

from pygdt.exceptions import NotAvailableForTheseDimensions
from pygdt.fem.basis import BaseFunctionSet
from pygdt.fem.mapper import ContinuousMapper, DiscontinuousMapper, MapperInterface
from pygdt.la.pattern import SparsityPattern

logger = logging.getLogger(__name__)


class SpaceInterface(abc.ABC):
    grid_view = None
    mapper: MapperInterface
    order: int
    space_type: str

    def base_function_set(self, entity) -> BaseFunctionSet:
        return BaseFunctionSet(entity, self.order)

    @property
    def size(self) -> int:
        return self.mapper.size

    @property
    def continuous(self) -> bool:
        return self.space_type == "cg"

    def compute_volume_pattern(self, ansatz_space: "SpaceInterface" = None) -> SparsityPattern:
        """Couplings of test and ansatz DOFs living on the same entity."""
        ansatz_space = ansatz_space or self
        pattern = SparsityPattern(self.mapper.size, ansatz_space.mapper.size)
        for entity in self.grid_view.elements():
            pattern.insert_block(self.mapper.global_indices(entity), ansatz_space.mapper.global_indices(entity))
        return pattern

    def compute_face_pattern(self, ansatz_space: "SpaceInterface" = None) -> SparsityPattern:
        """Couplings across every intersection with a neighbor (both directions)."""
        ansatz_space = ansatz_space or self
        pattern = SparsityPattern(self.mapper.size, ansatz_space.mapper.size)
        for entity in self.grid_view.elements():
            rows = self.mapper.global_indices(entity)
            for intersection in self.grid_view.intersections(entity):
                if intersection.neighbor:
                    pattern.insert_block(rows, ansatz_space.mapper.global_indices(intersection.outside))
        return pattern

    def compute_face_and_volume_pattern(self, ansatz_space: "SpaceInterface" = None) -> SparsityPattern:
        ansatz_space = ansatz_space or self
        pattern = self.compute_volume_pattern(ansatz_space)
        for entity in self.grid_view.elements():
            rows = self.mapper.global_indices(entity)
            for intersection in self.grid_view.intersections(entity):
                if intersection.neighbor:
                    pattern.insert_block(rows, ansatz_space.mapper.global_indices(intersection.outside))
        logger.debug(f"face+volume pattern of {self!r}: {pattern.nnz} entries")
        return pattern

    def __repr__(self):
        return f"{type(self).__name__}(order={self.order}, size={self.mapper.size})"


class ContinuousLagrangeSpace(SpaceInterface):
    space_type = "cg"

    def __init__(self, grid_view, order: int = 1):
        if order != 1:
            raise NotImplementedError("continuous Lagrange spaces are available for order 1 only")
        if grid_view.mesh.periodic_axes:
            raise ValueError("continuous Lagrange spaces need a grid without periodic identification")
        self.grid_view = grid_view
        self.order = 1
        self.mapper = ContinuousMapper(grid_view)


class DiscontinuousLagrangeSpace(SpaceInterface):
    space_type = "dg"

    def __init__(self, grid_view, order: int = 1):
        if order < 0:
            raise ValueError(f"polynomial order must be non-negative, got {order}")
        self.grid_view = grid_view
        self.order = int(order)
        self.mapper = DiscontinuousMapper(grid_view, self.order)


class FiniteVolumeSpace(DiscontinuousLagrangeSpace):
    """``dim_range`` constant DOFs per entity, numbered like the entities."""
    space_type = "fv"

    def __init__(self, grid_view, dim_range: int = 1):
        self.grid_view = grid_view
        self.order = 0
        self.dim_range = int(dim_range)
        self.mapper = DiscontinuousMapper(grid_view, 0, self.dim_range)

    def base_function_set(self, entity) -> BaseFunctionSet:
        if self.dim_range != 1:
            raise NotAvailableForTheseDimensions("scalar basis requested from a vector-valued FV space",
                                                 dim_range=self.dim_range)
        return super().base_function_set(entity)
