import logging
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from pygdt.core.topology import Element, Facet
from pygdt.fem.reference import REFERENCE_DIM, check_element_type, reference_facets

logger = logging.getLogger(__name__)


class Mesh:
    """
    Conforming line, triangle or quadrilateral mesh.

    Builds the facet connectivity from the cell → vertex table: every facet
    knows its "left" element (the first one found), the "right" element on the
    other side and the local facet index inside both.  Cell corners are stored
    counter-clockwise; clockwise input cells are reoriented.  Periodic axes are
    identified by pairing opposite boundary facets, which then carry both
    elements and ``periodic=True``.
    """

    def __init__(self,
                 vertices: np.ndarray,
                 cells: np.ndarray,
                 element_type: str = 'quad',
                 *,
                 periodic_axes: Sequence[int] = ()):
        self.element_type = check_element_type(element_type)
        vertices = np.asarray(vertices, dtype=float)
        if vertices.ndim == 1:
            vertices = vertices[:, None]
        self.vertices = vertices
        self.vertices.flags.writeable = False
        self.dim = REFERENCE_DIM[element_type]
        self.dimworld = vertices.shape[1]
        if self.dimworld != self.dim:
            raise ValueError(f"{element_type} cells need {self.dim}-d vertices, got {self.dimworld}-d")
        self.cells = np.array(cells, dtype=np.int64)
        self.n_vertices = len(self.vertices)
        self.n_elements = len(self.cells)
        self.periodic_axes = tuple(int(a) for a in periodic_axes)
        self.elements_list: List[Element] = []
        self.facets_list: List[Facet] = []
        self._orient_cells()
        self._build_topology()
        for axis in self.periodic_axes:
            self._identify_periodic(axis)
        logger.debug(f"Mesh: {self.n_elements} {element_type} cells, {len(self.facets_list)} facets, "
                     f"periodic axes {self.periodic_axes}")

    # ------------------------------------------------------------------
    # construction
    # ------------------------------------------------------------------
    def _orient_cells(self):
        if self.element_type == 'line':
            x = self.vertices[self.cells, 0]
            flip = x[:, 0] > x[:, 1]
            self.cells[flip] = self.cells[flip][:, ::-1]
            return
        pts = self.vertices[self.cells]                    # (ne, nc, 2)
        nxt = np.roll(pts, -1, axis=1)
        area = 0.5 * np.sum(pts[..., 0] * nxt[..., 1] - nxt[..., 0] * pts[..., 1], axis=1)
        if np.any(np.abs(area) < 1e-14):
            raise ValueError("degenerate cell with zero area in mesh")
        flip = area < 0.0
        if np.any(flip):
            logger.debug(f"reorienting {int(flip.sum())} clockwise cells")
            self.cells[flip] = self.cells[flip][:, ::-1]

    def _build_topology(self):
        local_facets = reference_facets(self.element_type)

        # map from each facet (sorted vertex key) to the (element, local facet) pairs sharing it
        incidences: Dict[Tuple[int, ...], List[Tuple[int, int]]] = {}
        for eid, corners in enumerate(self.cells):
            for k, ids in enumerate(local_facets):
                key = tuple(sorted(int(corners[i]) for i in ids))
                incidences.setdefault(key, []).append((eid, k))

        facet_of: Dict[Tuple[int, int], int] = {}
        for gid, (key, shared) in enumerate(incidences.items()):
            if len(shared) > 2:
                raise ValueError(f"non-manifold facet {key} shared by {len(shared)} cells")
            left, left_local = shared[0]
            oriented = tuple(int(self.cells[left][i]) for i in local_facets[left_local])
            right, right_local = shared[1] if len(shared) == 2 else (None, None)
            self.facets_list.append(Facet(gid=gid, vertices=oriented, left=left, left_local=left_local,
                                          right=right, right_local=right_local))
            facet_of[(left, left_local)] = gid
            if right is not None:
                facet_of[(right, right_local)] = gid

        for eid, corners in enumerate(self.cells):
            facets = tuple(facet_of[(eid, k)] for k in range(len(local_facets)))
            elem = Element(id=eid, vertices=tuple(int(c) for c in corners),
                           element_type=self.element_type, facets=facets)
            self.elements_list.append(elem)
        self._update_neighbors()

    def _update_neighbors(self):
        for elem in self.elements_list:
            elem.neighbors = {}
            for k, gid in enumerate(elem.facets):
                elem.neighbors[k] = self.facets_list[gid].other(elem.id)

    def _facet_coords(self, facet: Facet) -> np.ndarray:
        return self.vertices[list(facet.vertices)]

    def _identify_periodic(self, axis: int):
        """Glue the boundary facets on ``x[axis] == max`` to those on ``x[axis] == min``."""
        if not 0 <= axis < self.dim:
            raise ValueError(f"periodic axis {axis} out of range for a {self.dim}-d mesh")
        lo = self.vertices[:, axis].min()
        hi = self.vertices[:, axis].max()
        length = hi - lo
        tol = 1e-10 * max(length, 1.0)
        lower, upper = [], []
        for f in self.facets_list:
            if f.right is not None:
                continue
            x = self._facet_coords(f)[:, axis]
            if np.all(np.abs(x - lo) < tol):
                lower.append(f)
            elif np.all(np.abs(x - hi) < tol):
                upper.append(f)
        if len(lower) != len(upper):
            raise ValueError(f"periodic axis {axis}: {len(lower)} facets at min but {len(upper)} at max")
        shift = np.zeros(self.dim)
        shift[axis] = length
        lower_centers = np.array([self._facet_coords(f).mean(axis=0) for f in lower]) if lower else None
        dropped = set()
        for f in upper:
            center = self._facet_coords(f).mean(axis=0) - shift
            dist = np.linalg.norm(lower_centers - center, axis=1)
            j = int(np.argmin(dist))
            if dist[j] > tol:
                raise ValueError(f"no periodic partner for facet {f.gid} on axis {axis}")
            g = lower[j]
            keep, drop = (f, g) if f.gid < g.gid else (g, f)
            keep.right, keep.right_local = drop.left, drop.left_local
            keep.periodic = True
            keep.shift = shift.copy() if keep is g else -shift
            if self.dim == 2:
                a = self.vertices[keep.vertices[0]] + keep.shift
                keep.same_direction = bool(np.allclose(a, self.vertices[drop.vertices[0]], atol=tol))
            else:
                keep.same_direction = True
            dropped.add(drop.gid)

        # renumber: facets of the dropped side now point to their partner
        redirect = {}
        for f in self.facets_list:
            if f.periodic and f.gid not in dropped:
                partner = self.elements_list[f.right].facets[f.right_local]
                redirect[partner] = f.gid
        survivors = [f for f in self.facets_list if f.gid not in dropped]
        new_gid = {f.gid: i for i, f in enumerate(survivors)}
        for old, target in redirect.items():
            new_gid[old] = new_gid[target]
        for f in survivors:
            f.gid = new_gid[f.gid]
        self.facets_list = survivors
        for elem in self.elements_list:
            elem.facets = tuple(new_gid[g] for g in elem.facets)
        self._update_neighbors()
        logger.debug(f"periodic axis {axis}: identified {len(dropped)} facet pairs")

    # ------------------------------------------------------------------
    # queries
    # ------------------------------------------------------------------
    def element(self, eid: int) -> Element:
        return self.elements_list[eid]

    def facet(self, gid: int) -> Facet:
        return self.facets_list[gid]

    @property
    def n_facets(self) -> int:
        return len(self.facets_list)

    def element_corners(self, eid: int) -> np.ndarray:
        return self.vertices[self.cells[eid]]

    def boundary_facets(self, include_periodic: bool = False) -> List[Facet]:
        return [f for f in self.facets_list
                if f.right is None or (include_periodic and f.periodic)]

    def tag_boundary_facets(self, tags: Dict[str, Callable[..., bool]]):
        """Tag boundary facets by a locator ``fn(x, y)`` evaluated at the facet midpoint."""
        for f in self.boundary_facets():
            center = self._facet_coords(f).mean(axis=0)
            f.tag = ""
            for name, locator in tags.items():
                if locator(*center):
                    f.tag = name
                    break

    def __repr__(self):
        return (f"Mesh(type={self.element_type!r}, n_elements={self.n_elements}, "
                f"n_facets={self.n_facets}, periodic_axes={self.periodic_axes})")
