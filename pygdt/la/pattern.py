"""pygdt.la.pattern"""
from typing import Iterable, List, Set, Tuple

import numpy as np


class SparsityPattern:
    """Row-wise set of admissible column indices of a sparse matrix."""

    def __init__(self, num_rows: int, num_cols: int = None):
        self.num_rows = int(num_rows)
        self.num_cols = int(num_cols if num_cols is not None else num_rows)
        self._rows: List[Set[int]] = [set() for _ in range(self.num_rows)]

    def insert(self, row: int, col: int):
        self._rows[row].add(int(col))

    def insert_block(self, rows: Iterable[int], cols: Iterable[int]):
        cols = [int(c) for c in cols]
        for r in rows:
            self._rows[int(r)].update(cols)

    def row(self, row: int) -> Tuple[int, ...]:
        return tuple(sorted(self._rows[row]))

    def contains(self, row: int, col: int) -> bool:
        return int(col) in self._rows[row]

    @property
    def nnz(self) -> int:
        return sum(len(r) for r in self._rows)

    def to_csr(self):
        """(indptr, indices) with sorted column indices per row."""
        indptr = np.zeros(self.num_rows + 1, dtype=np.int64)
        for i, r in enumerate(self._rows):
            indptr[i + 1] = indptr[i] + len(r)
        indices = np.empty(indptr[-1], dtype=np.int64)
        for i, r in enumerate(self._rows):
            indices[indptr[i]:indptr[i + 1]] = sorted(r)
        return indptr, indices

    def __repr__(self):
        return f"SparsityPattern({self.num_rows}x{self.num_cols}, nnz={self.nnz})"
