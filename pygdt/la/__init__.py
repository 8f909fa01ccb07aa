from .pattern import SparsityPattern
from .containers import (MatrixInterface, VectorInterface, SparseMatrix, DenseMatrix, Vector,
                         container_dimensions)
__all__ = ['SparsityPattern', 'MatrixInterface', 'VectorInterface', 'SparseMatrix', 'DenseMatrix',
           'Vector', 'container_dimensions']
