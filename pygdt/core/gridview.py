"""pygdt.core.gridview
Read-only traversal interface over a mesh: entities (cells) and their
intersections (facets seen from one cell).
"""
import abc
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

import numpy as np

from pygdt.core.geometry import ElementGeometry, FacetGeometry
from pygdt.core.mesh import Mesh
from pygdt.fem.reference import facet_to_reference, reference_facets


@dataclass(frozen=True, eq=False)
class Entity:
    index: int
    element_type: str
    vertices: np.ndarray
    geometry: ElementGeometry

    def __repr__(self):
        return f"Entity({self.index}, {self.element_type!r})"


@dataclass(frozen=True, eq=False)
class Intersection:
    """A facet of ``inside``.  ``outside`` is None on the domain boundary."""
    inside: Entity
    outside: Optional[Entity]
    index_in_inside: int
    index_in_outside: Optional[int]
    geometry: FacetGeometry
    normal: np.ndarray
    facet_index: int
    periodic: bool = False
    same_direction: bool = False
    tag: str = ""

    @property
    def neighbor(self) -> bool:
        return self.outside is not None

    @property
    def boundary(self) -> bool:
        # periodic facets lie on the domain boundary but still have a neighbor
        return self.outside is None or self.periodic

    def inside_reference(self, x) -> np.ndarray:
        return facet_to_reference(self.inside.element_type, self.index_in_inside, x)

    def outside_reference(self, x) -> np.ndarray:
        if self.outside is None:
            raise ValueError("boundary intersection has no outside entity")
        x = np.asarray(x, dtype=float).reshape(-1)
        if x.size and not self.same_direction:
            x = -x
        return facet_to_reference(self.outside.element_type, self.index_in_outside, x)

    def unit_outer_normal(self, x=None) -> np.ndarray:
        # straight facets: the normal does not vary along the facet
        return self.normal

    def center_unit_outer_normal(self) -> np.ndarray:
        return self.normal

    def __repr__(self):
        out = None if self.outside is None else self.outside.index
        return f"Intersection(inside={self.inside.index}, outside={out}, facet={self.index_in_inside})"


class GridViewInterface(abc.ABC):
    """What the assembly engine needs from a grid."""

    @property
    @abc.abstractmethod
    def dimension(self) -> int: ...

    @abc.abstractmethod
    def size(self, codim: int) -> int: ...

    @abc.abstractmethod
    def entity(self, index: int) -> Entity: ...

    @abc.abstractmethod
    def elements(self) -> Iterator[Entity]: ...

    @abc.abstractmethod
    def intersections(self, entity: Entity) -> Tuple[Intersection, ...]: ...

    def has_boundary_intersections(self, entity: Entity) -> bool:
        return any(i.boundary and not i.neighbor for i in self.intersections(entity))


class GridView(GridViewInterface):
    """Leaf view of a :class:`Mesh`; entities and intersections are built once and cached."""

    def __init__(self, mesh: Mesh):
        self.mesh = mesh
        self._entities = tuple(self._make_entity(eid) for eid in range(mesh.n_elements))
        self._intersections = [None] * mesh.n_elements

    @property
    def dimension(self) -> int:
        return self.mesh.dim

    @property
    def dimworld(self) -> int:
        return self.mesh.dimworld

    def size(self, codim: int) -> int:
        if codim == 0:
            return self.mesh.n_elements
        if codim == 1:
            return self.mesh.n_facets
        if codim == self.mesh.dim:
            return self.mesh.n_vertices
        raise ValueError(f"codim {codim} not available on a {self.mesh.dim}-d grid")

    def entity(self, index: int) -> Entity:
        return self._entities[index]

    def elements(self) -> Iterator[Entity]:
        return iter(self._entities)

    def __len__(self):
        return len(self._entities)

    def intersections(self, entity: Entity) -> Tuple[Intersection, ...]:
        cached = self._intersections[entity.index]
        if cached is None:
            cached = tuple(self._make_intersection(entity, k)
                           for k in range(len(self.mesh.element(entity.index).facets)))
            self._intersections[entity.index] = cached
        return cached

    def _make_entity(self, eid: int) -> Entity:
        corners = self.mesh.element_corners(eid)
        corners.flags.writeable = False
        return Entity(index=eid, element_type=self.mesh.element_type, vertices=corners,
                      geometry=ElementGeometry(self.mesh.element_type, corners))

    def _make_intersection(self, entity: Entity, k: int) -> Intersection:
        elem = self.mesh.element(entity.index)
        facet = self.mesh.facet(elem.facets[k])
        if facet.right is None:
            outside, k_out = None, None
        elif facet.left == entity.index and facet.left_local == k:
            outside, k_out = self._entities[facet.right], facet.right_local
        else:
            outside, k_out = self._entities[facet.left], facet.left_local

        ids = reference_facets(entity.element_type)[k]
        corners = entity.vertices[list(ids)]
        geometry = FacetGeometry(corners)
        if self.mesh.dim == 1:
            normal = np.array([1.0 if corners[0, 0] > entity.geometry.center[0] else -1.0])
        else:
            d = corners[1] - corners[0]
            normal = np.array([d[1], -d[0]]) / np.linalg.norm(d)
        normal.flags.writeable = False
        return Intersection(inside=entity, outside=outside, index_in_inside=k, index_in_outside=k_out,
                            geometry=geometry, normal=normal, facet_index=facet.gid,
                            periodic=facet.periodic, same_direction=facet.same_direction, tag=facet.tag)

    def __repr__(self):
        return f"GridView({self.mesh!r})"
