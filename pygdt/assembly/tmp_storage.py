"""pygdt.assembly.tmp_storage
Scratch buffers handed to local operators.  Each walker functor owns its
pools; forks for a parallel walk get fresh ones.
"""
from typing import Sequence

import numpy as np


class TmpMatricesPool(Sequence):
    def __init__(self, num_objects: int, rows: int, cols: int):
        self._blocks = [np.zeros((rows, cols)) for _ in range(num_objects)]
        self.shape = (rows, cols)

    def __getitem__(self, k):
        return self._blocks[k]

    def __len__(self):
        return len(self._blocks)

    def __repr__(self):
        return f"TmpMatricesPool({len(self)} x {self.shape})"


class TmpVectorsPool(Sequence):
    def __init__(self, num_objects: int, size: int):
        self._blocks = [np.zeros(size) for _ in range(num_objects)]
        self.shape = (size,)

    def __getitem__(self, k):
        return self._blocks[k]

    def __len__(self):
        return len(self._blocks)

    def __repr__(self):
        return f"TmpVectorsPool({len(self)} x {self.shape})"
