"""pygdt.fem.boundaryinfo
Classification of boundary intersections into Dirichlet / Neumann parts.
"""
import abc
from typing import Callable, Dict, Optional

DIRICHLET = "dirichlet"
NEUMANN = "neumann"
NONE = "none"


class BoundaryInfo(abc.ABC):
    """Maps an intersection to ``"dirichlet"``, ``"neumann"`` or ``"none"``."""

    def type(self, intersection) -> str:
        # inner and periodic intersections never carry boundary conditions
        if intersection.neighbor:
            return NONE
        return self._boundary_type(intersection)

    @abc.abstractmethod
    def _boundary_type(self, intersection) -> str: ...

    def dirichlet(self, intersection) -> bool:
        return self.type(intersection) == DIRICHLET

    def neumann(self, intersection) -> bool:
        return self.type(intersection) == NEUMANN


class AllDirichletBoundaryInfo(BoundaryInfo):
    def _boundary_type(self, intersection) -> str:
        return DIRICHLET


class AllNeumannBoundaryInfo(BoundaryInfo):
    def _boundary_type(self, intersection) -> str:
        return NEUMANN


class FunctionBasedBoundaryInfo(BoundaryInfo):
    """
    Locators ``fn(*x) -> bool`` evaluated at the facet center; Dirichlet is
    tested first, anything unmatched gets ``default``.
    """

    def __init__(self, dirichlet: Optional[Callable[..., bool]] = None,
                 neumann: Optional[Callable[..., bool]] = None, default: str = DIRICHLET):
        if default not in (DIRICHLET, NEUMANN, NONE):
            raise ValueError(f"unknown boundary type {default!r}")
        self._dirichlet = dirichlet
        self._neumann = neumann
        self.default = default

    def _boundary_type(self, intersection) -> str:
        center = intersection.geometry.center
        if self._dirichlet is not None and self._dirichlet(*center):
            return DIRICHLET
        if self._neumann is not None and self._neumann(*center):
            return NEUMANN
        return self.default


class TagBasedBoundaryInfo(BoundaryInfo):
    """Uses the facet tags set by :meth:`Mesh.tag_boundary_facets`."""

    def __init__(self, types: Dict[str, str], default: str = DIRICHLET):
        self.types = dict(types)
        self.default = default

    def _boundary_type(self, intersection) -> str:
        return self.types.get(intersection.tag, self.default)
