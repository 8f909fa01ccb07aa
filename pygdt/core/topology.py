import numpy as np
from dataclasses import dataclass, field
from typing import Tuple, Dict, Optional


@dataclass(slots=True)
class Facet:
    gid: int
    vertices: Tuple[int, ...]      # Global vertex ids, oriented as seen from the left element
    left: int                      # Element owning the facet first
    left_local: int                # Local facet index within the left element
    right: Optional[int] = None    # Element on the other side, None on the boundary
    right_local: Optional[int] = None
    same_direction: bool = False   # right element traverses the facet in the left's direction
    periodic: bool = False
    shift: Optional[np.ndarray] = None   # right-side coordinates minus left-side coordinates
    tag: str = ""

    @property
    def boundary(self) -> bool:
        return self.right is None or self.periodic

    def other(self, eid: int) -> Optional[int]:
        if eid == self.left:
            return self.right
        if eid == self.right:
            return self.left
        raise ValueError(f"Element {eid} is not adjacent to facet {self.gid}.")


@dataclass(slots=True)
class Element:
    id: int                        # Element ID
    vertices: Tuple[int, ...]      # Global vertex ids of the corners, counter-clockwise
    element_type: str = "quad"
    facets: Tuple[int, ...] = field(default_factory=tuple)
    neighbors: Dict[int, Optional[int]] = field(default_factory=dict)
    tag: str = ""

    def contains_vertex(self, vid: int) -> bool:
        return vid in self.vertices

    def contains_facet(self, gid: int) -> bool:
        return gid in self.facets
