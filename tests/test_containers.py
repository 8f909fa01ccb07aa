import numpy as np
import pytest

from pygdt.exceptions import SparsityPatternError
from pygdt.la import DenseMatrix, SparseMatrix, SparsityPattern, Vector, container_dimensions


def _pattern():
    p = SparsityPattern(3, 4)
    p.insert_block([0, 1], [0, 1])
    p.insert(2, 3)
    p.insert(2, 0)
    return p


def test_pattern_to_csr_is_sorted():
    indptr, indices = _pattern().to_csr()
    assert list(indptr) == [0, 2, 4, 6]
    assert list(indices) == [0, 1, 0, 1, 0, 3]


def test_sparse_block_scatter_and_entries():
    m = SparseMatrix.from_pattern(_pattern())
    m.add_to_block([1, 0], [0, 1], np.array([[1.0, 2.0], [3.0, 4.0]]))
    m.add_to_entry(2, 3, 5.0)
    m.add_to_entry(2, 3, 1.0)
    expected = np.array([[3, 4, 0, 0], [1, 2, 0, 0], [0, 0, 0, 6]], dtype=float)
    assert np.allclose(m.to_dense(), expected)
    assert m.get_entry(0, 3) == 0.0
    m.set_entry(0, 0, 7.0)
    assert m.get_entry(0, 0) == 7.0


def test_sparse_rejects_writes_outside_pattern():
    m = SparseMatrix.from_pattern(_pattern())
    with pytest.raises(SparsityPatternError):
        m.add_to_block([0], [3], np.ones((1, 1)))
    with pytest.raises(SparsityPatternError):
        m.set_entry(1, 2, 1.0)


def test_clear_row_and_set_entries():
    m = SparseMatrix.from_pattern(_pattern())
    m.add_to_block([0, 1], [0, 1], np.ones((2, 2)))
    m.clear_row(1)
    m.set_entries([1, 1], [0, 1], [0.0, 1.0])
    assert np.allclose(m.to_dense()[1], [0, 1, 0, 0])
    assert np.allclose(m.to_dense()[0], [1, 1, 0, 0])


def test_zeros_like_and_merge():
    m = SparseMatrix.from_pattern(_pattern())
    m.add_to_entry(0, 0, 1.0)
    z = m.zeros_like()
    assert z.indices is m.indices and z.nnz == m.nnz
    assert np.all(z.data == 0.0)
    z.add_to_entry(0, 0, 2.0)
    m.merge(z)
    assert m.get_entry(0, 0) == 3.0
    other = SparseMatrix.from_pattern(SparsityPattern(3, 4))
    with pytest.raises(SparsityPatternError):
        m.merge(other)


def test_scipy_round_trip():
    m = SparseMatrix.from_pattern(_pattern())
    m.add_to_block([0, 1], [0, 1], np.arange(4.0).reshape(2, 2))
    again = SparseMatrix.from_scipy(m.to_scipy())
    assert np.allclose(again.to_dense(), m.to_dense())


def test_dense_matrix_accumulates_repeated_indices():
    m = DenseMatrix(2)
    m.add_to_block([0, 0], [1, 1], np.ones((2, 2)))
    assert m.get_entry(0, 1) == 4.0
    m.clear_row(0)
    assert np.all(m.to_dense() == 0.0)


def test_vector():
    v = Vector(3)
    v.add_to_block([0, 2, 2], [1.0, 1.0, 2.0])
    assert np.allclose(v.array, [1, 0, 3])
    w = v.zeros_like()
    w.set_entry(1, 4.0)
    v.merge(w)
    assert v.get_entry(1) == 4.0
    assert len(v.copy()) == 3
    with pytest.raises(ValueError):
        Vector()


def test_container_dimensions():
    assert container_dimensions(DenseMatrix(2, 3)) == (2, 3)
    assert container_dimensions(Vector(5)) == (5,)
    with pytest.raises(TypeError):
        container_dimensions(np.zeros(3))
