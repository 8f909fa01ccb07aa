"""pygdt.assembly.partitioning
Split the entity index set of a grid view into disjoint partitions.
"""
from typing import List

import numpy as np


class IndexSetPartitioner:
    """Contiguous chunks of entity indices, as equal in size as possible."""

    def __init__(self, grid_view):
        self.grid_view = grid_view

    def partitions(self, num_partitions: int) -> List[np.ndarray]:
        if num_partitions < 1:
            raise ValueError(f"need at least one partition, got {num_partitions}")
        indices = np.arange(self.grid_view.size(0), dtype=np.int64)
        return [chunk for chunk in np.array_split(indices, num_partitions) if len(chunk)]

    def __repr__(self):
        return f"IndexSetPartitioner({self.grid_view.size(0)} entities)"
