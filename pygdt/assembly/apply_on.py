"""pygdt.assembly.apply_on
Immutable predicates selecting the entities / intersections a registered
functor is applied on.  Combine with ``&``, ``|`` and ``~``.
"""
from dataclasses import dataclass
from typing import Callable


class WhichEntity:
    def __call__(self, grid_view, entity) -> bool:
        raise NotImplementedError

    def __and__(self, other: "WhichEntity") -> "WhichEntity":
        return EntityAnd(self, other)

    def __or__(self, other: "WhichEntity") -> "WhichEntity":
        return EntityOr(self, other)

    def __invert__(self) -> "WhichEntity":
        return EntityNot(self)


class WhichIntersection:
    def __call__(self, grid_view, intersection) -> bool:
        raise NotImplementedError

    def __and__(self, other: "WhichIntersection") -> "WhichIntersection":
        return IntersectionAnd(self, other)

    def __or__(self, other: "WhichIntersection") -> "WhichIntersection":
        return IntersectionOr(self, other)

    def __invert__(self) -> "WhichIntersection":
        return IntersectionNot(self)


# -------------------------------------------------------------------------
# entities
# -------------------------------------------------------------------------
@dataclass(frozen=True)
class AllEntities(WhichEntity):
    def __call__(self, grid_view, entity) -> bool:
        return True


@dataclass(frozen=True)
class BoundaryEntities(WhichEntity):
    """Entities with at least one intersection on the (non-periodic) domain boundary."""

    def __call__(self, grid_view, entity) -> bool:
        return grid_view.has_boundary_intersections(entity)


@dataclass(frozen=True)
class FilteredEntities(WhichEntity):
    predicate: Callable

    def __call__(self, grid_view, entity) -> bool:
        return bool(self.predicate(entity))


@dataclass(frozen=True)
class EntityAnd(WhichEntity):
    left: WhichEntity
    right: WhichEntity

    def __call__(self, grid_view, entity) -> bool:
        return self.left(grid_view, entity) and self.right(grid_view, entity)


@dataclass(frozen=True)
class EntityOr(WhichEntity):
    left: WhichEntity
    right: WhichEntity

    def __call__(self, grid_view, entity) -> bool:
        return self.left(grid_view, entity) or self.right(grid_view, entity)


@dataclass(frozen=True)
class EntityNot(WhichEntity):
    inner: WhichEntity

    def __call__(self, grid_view, entity) -> bool:
        return not self.inner(grid_view, entity)


# -------------------------------------------------------------------------
# intersections
# -------------------------------------------------------------------------
@dataclass(frozen=True)
class AllIntersections(WhichIntersection):
    def __call__(self, grid_view, intersection) -> bool:
        return True


@dataclass(frozen=True)
class InnerIntersections(WhichIntersection):
    """Intersections with a neighbor inside the domain (periodic ones excluded)."""

    def __call__(self, grid_view, intersection) -> bool:
        return intersection.neighbor and not intersection.boundary


@dataclass(frozen=True)
class BoundaryIntersections(WhichIntersection):
    """Intersections on the domain boundary without a (periodic) neighbor."""

    def __call__(self, grid_view, intersection) -> bool:
        return intersection.boundary and not intersection.neighbor


@dataclass(frozen=True)
class PeriodicIntersections(WhichIntersection):
    def __call__(self, grid_view, intersection) -> bool:
        return intersection.periodic


@dataclass(frozen=True)
class DirichletIntersections(WhichIntersection):
    boundary_info: object

    def __call__(self, grid_view, intersection) -> bool:
        return self.boundary_info.dirichlet(intersection)


@dataclass(frozen=True)
class NeumannIntersections(WhichIntersection):
    boundary_info: object

    def __call__(self, grid_view, intersection) -> bool:
        return self.boundary_info.neumann(intersection)


@dataclass(frozen=True)
class FilteredIntersections(WhichIntersection):
    predicate: Callable

    def __call__(self, grid_view, intersection) -> bool:
        return bool(self.predicate(intersection))


@dataclass(frozen=True)
class IntersectionAnd(WhichIntersection):
    left: WhichIntersection
    right: WhichIntersection

    def __call__(self, grid_view, intersection) -> bool:
        return self.left(grid_view, intersection) and self.right(grid_view, intersection)


@dataclass(frozen=True)
class IntersectionOr(WhichIntersection):
    left: WhichIntersection
    right: WhichIntersection

    def __call__(self, grid_view, intersection) -> bool:
        return self.left(grid_view, intersection) or self.right(grid_view, intersection)


@dataclass(frozen=True)
class IntersectionNot(WhichIntersection):
    inner: WhichIntersection

    def __call__(self, grid_view, intersection) -> bool:
        return not self.inner(grid_view, intersection)
