"""pygdt.la.containers
Global matrix and vector containers written to by the assemblers.

``SparseMatrix`` keeps a fixed CSR pattern; block scatters run in numba
kernels that locate every entry by binary search in the row's column list.
"""
import abc
import logging
from typing import Sequence

import numba
import numpy as np
import scipy.sparse as sp

from pygdt.exceptions import DimensionMismatch, SparsityPatternError
from pygdt.la.pattern import SparsityPattern

logger = logging.getLogger(__name__)


@numba.njit(cache=True, nogil=True)
def _find(indptr, indices, row, col):
    lo = indptr[row]
    hi = indptr[row + 1]
    while lo < hi:
        mid = (lo + hi) // 2
        c = indices[mid]
        if c == col:
            return mid
        if c < col:
            lo = mid + 1
        else:
            hi = mid
    return -1


@numba.njit(cache=True, nogil=True)
def _csr_add_block(indptr, indices, data, rows, cols, block):
    """data[rows x cols] += block; returns the first row outside the pattern or -1."""
    for a in range(rows.shape[0]):
        r = rows[a]
        for b in range(cols.shape[0]):
            pos = _find(indptr, indices, r, cols[b])
            if pos < 0:
                return r
            data[pos] += block[a, b]
    return -1


@numba.njit(cache=True, nogil=True)
def _csr_set_entries(indptr, indices, data, rows, cols, values):
    for k in range(rows.shape[0]):
        pos = _find(indptr, indices, rows[k], cols[k])
        if pos < 0:
            return rows[k]
        data[pos] = values[k]
    return -1


class MatrixInterface(abc.ABC):
    num_rows: int
    num_cols: int

    @property
    def shape(self):
        return (self.num_rows, self.num_cols)

    @abc.abstractmethod
    def add_to_block(self, rows, cols, block): ...

    @abc.abstractmethod
    def add_to_entry(self, row: int, col: int, value: float): ...

    @abc.abstractmethod
    def set_entry(self, row: int, col: int, value: float): ...

    @abc.abstractmethod
    def get_entry(self, row: int, col: int) -> float: ...

    @abc.abstractmethod
    def clear_row(self, row: int): ...

    @abc.abstractmethod
    def zeros_like(self) -> "MatrixInterface": ...

    @abc.abstractmethod
    def merge(self, other: "MatrixInterface"): ...

    @abc.abstractmethod
    def to_dense(self) -> np.ndarray: ...

    def set_entries(self, rows, cols, values):
        for r, c, v in zip(rows, cols, values):
            self.set_entry(int(r), int(c), float(v))


class VectorInterface(abc.ABC):
    size: int

    @abc.abstractmethod
    def add_to_block(self, indices, values): ...

    @abc.abstractmethod
    def add_to_entry(self, index: int, value: float): ...

    @abc.abstractmethod
    def set_entry(self, index: int, value: float): ...

    @abc.abstractmethod
    def get_entry(self, index: int) -> float: ...

    @abc.abstractmethod
    def zeros_like(self) -> "VectorInterface": ...

    @abc.abstractmethod
    def merge(self, other: "VectorInterface"): ...


def _index_array(idx) -> np.ndarray:
    return np.ascontiguousarray(idx, dtype=np.int64).reshape(-1)


class SparseMatrix(MatrixInterface):
    """CSR matrix with a pattern fixed at construction."""

    def __init__(self, num_rows: int, num_cols: int, indptr, indices, data=None):
        self.num_rows = int(num_rows)
        self.num_cols = int(num_cols)
        self.indptr = np.ascontiguousarray(indptr, dtype=np.int64)
        self.indices = np.ascontiguousarray(indices, dtype=np.int64)
        if len(self.indptr) != self.num_rows + 1:
            raise DimensionMismatch("indptr does not match the number of rows",
                                    num_rows=self.num_rows, indptr=len(self.indptr))
        self.data = (np.zeros(len(self.indices)) if data is None
                     else np.ascontiguousarray(data, dtype=float))

    @classmethod
    def from_pattern(cls, pattern: SparsityPattern) -> "SparseMatrix":
        indptr, indices = pattern.to_csr()
        logger.debug(f"SparseMatrix {pattern.num_rows}x{pattern.num_cols} with {len(indices)} non-zeros")
        return cls(pattern.num_rows, pattern.num_cols, indptr, indices)

    @classmethod
    def from_scipy(cls, matrix) -> "SparseMatrix":
        m = sp.csr_matrix(matrix)
        m.sort_indices()
        return cls(m.shape[0], m.shape[1], m.indptr, m.indices, m.data)

    @property
    def nnz(self) -> int:
        return len(self.indices)

    def _pattern_error(self, row):
        raise SparsityPatternError("write outside of the sparsity pattern", row=int(row))

    def add_to_block(self, rows, cols, block):
        block = np.ascontiguousarray(block, dtype=float)
        bad = _csr_add_block(self.indptr, self.indices, self.data,
                             _index_array(rows), _index_array(cols), block)
        if bad >= 0:
            self._pattern_error(bad)

    def add_to_entry(self, row, col, value):
        pos = _find(self.indptr, self.indices, int(row), int(col))
        if pos < 0:
            self._pattern_error(row)
        self.data[pos] += value

    def set_entry(self, row, col, value):
        pos = _find(self.indptr, self.indices, int(row), int(col))
        if pos < 0:
            self._pattern_error(row)
        self.data[pos] = value

    def set_entries(self, rows, cols, values):
        bad = _csr_set_entries(self.indptr, self.indices, self.data, _index_array(rows),
                               _index_array(cols), np.ascontiguousarray(values, dtype=float).reshape(-1))
        if bad >= 0:
            self._pattern_error(bad)

    def get_entry(self, row, col) -> float:
        pos = _find(self.indptr, self.indices, int(row), int(col))
        return 0.0 if pos < 0 else float(self.data[pos])

    def clear_row(self, row):
        self.data[self.indptr[row]:self.indptr[row + 1]] = 0.0

    def zeros_like(self) -> "SparseMatrix":
        # the pattern arrays are never written, so copies may share them
        return SparseMatrix(self.num_rows, self.num_cols, self.indptr, self.indices)

    def merge(self, other: "SparseMatrix"):
        if other.indices is self.indices or (
                other.indptr.shape == self.indptr.shape and np.array_equal(other.indices, self.indices)):
            self.data += other.data
        else:
            raise SparsityPatternError("cannot merge matrices with different patterns")

    def copy(self) -> "SparseMatrix":
        return SparseMatrix(self.num_rows, self.num_cols, self.indptr, self.indices, self.data.copy())

    def to_scipy(self) -> sp.csr_matrix:
        return sp.csr_matrix((self.data.copy(), self.indices.copy(), self.indptr.copy()),
                             shape=(self.num_rows, self.num_cols))

    def to_dense(self) -> np.ndarray:
        return self.to_scipy().toarray()

    def __repr__(self):
        return f"SparseMatrix({self.num_rows}x{self.num_cols}, nnz={self.nnz})"


class DenseMatrix(MatrixInterface):
    def __init__(self, num_rows: int, num_cols: int = None, data=None):
        self.num_rows = int(num_rows)
        self.num_cols = int(num_cols if num_cols is not None else num_rows)
        self.array = (np.zeros((self.num_rows, self.num_cols)) if data is None
                      else np.array(data, dtype=float).reshape(self.num_rows, self.num_cols))

    def add_to_block(self, rows, cols, block):
        rows, cols = _index_array(rows), _index_array(cols)
        np.add.at(self.array, (rows[:, None], cols[None, :]), np.asarray(block, dtype=float))

    def add_to_entry(self, row, col, value):
        self.array[row, col] += value

    def set_entry(self, row, col, value):
        self.array[row, col] = value

    def get_entry(self, row, col) -> float:
        return float(self.array[row, col])

    def clear_row(self, row):
        self.array[row, :] = 0.0

    def zeros_like(self) -> "DenseMatrix":
        return DenseMatrix(self.num_rows, self.num_cols)

    def merge(self, other: "DenseMatrix"):
        self.array += other.array

    def to_dense(self) -> np.ndarray:
        return self.array.copy()

    def __repr__(self):
        return f"DenseMatrix({self.num_rows}x{self.num_cols})"


class Vector(VectorInterface):
    def __init__(self, size: int = None, data=None):
        if data is not None:
            self.array = np.array(data, dtype=float).reshape(-1)
        elif size is not None:
            self.array = np.zeros(int(size))
        else:
            raise ValueError("Vector needs a size or data")
        self.size = len(self.array)

    def add_to_block(self, indices, values):
        np.add.at(self.array, _index_array(indices), np.asarray(values, dtype=float).reshape(-1))

    def add_to_entry(self, index, value):
        self.array[index] += value

    def set_entry(self, index, value):
        self.array[index] = value

    def get_entry(self, index) -> float:
        return float(self.array[index])

    def zeros_like(self) -> "Vector":
        return Vector(self.size)

    def merge(self, other: "Vector"):
        self.array += other.array

    def copy(self) -> "Vector":
        return Vector(data=self.array)

    def __len__(self):
        return self.size

    def __repr__(self):
        return f"Vector(size={self.size})"


def container_dimensions(container) -> Sequence[int]:
    if isinstance(container, MatrixInterface):
        return (container.num_rows, container.num_cols)
    if isinstance(container, VectorInterface):
        return (container.size,)
    raise TypeError(f"{type(container).__name__} is neither a matrix nor a vector container")
