import numpy as np
import pytest

from pygdt.fem.basis import BaseFunctionSet
from pygdt.fem.reference import get_reference, number_of_basis_functions, reference_nodes
from pygdt.utils.meshgen import make_cube_grid

SAMPLES = {
    'line': [np.array([-0.3]), np.array([0.77])],
    'tri': [np.array([0.2, 0.3]), np.array([0.05, 0.9])],
    'quad': [np.array([-0.4, 0.6]), np.array([0.9, -0.1])],
}


@pytest.mark.parametrize("et", ['line', 'tri', 'quad'])
@pytest.mark.parametrize("order", [1, 2, 3])
def test_partition_of_unity(et, order):
    ref = get_reference(et, order)
    assert ref.size == number_of_basis_functions(et, order)
    for x in SAMPLES[et]:
        assert np.isclose(ref.shape(x).sum(), 1.0)
        assert np.allclose(ref.grad(x).sum(axis=0), 0.0, atol=1e-12)


@pytest.mark.parametrize("et", ['line', 'tri', 'quad'])
@pytest.mark.parametrize("order", [1, 2])
def test_lagrange_property(et, order):
    ref = get_reference(et, order)
    nodes = reference_nodes(et, order)
    values = np.array([ref.shape(p) for p in nodes])
    assert np.allclose(values, np.eye(ref.size), atol=1e-12)


@pytest.mark.parametrize("et", ['tri', 'quad'])
def test_physical_gradients_reproduce_linear_functions(et):
    gv = make_cube_grid([0, 0], [1, 2], [3, 2], et)
    f = lambda p: 2.0 * p[0] - 3.0 * p[1] + 1.0
    for entity in gv.elements():
        basis = BaseFunctionSet(entity, 1)
        coeffs = np.array([f(entity.geometry.to_global(p)) for p in reference_nodes(et, 1)])
        for x in SAMPLES[et]:
            assert np.isclose(coeffs @ basis.evaluate(x), f(entity.geometry.to_global(x)))
            assert np.allclose(coeffs @ basis.jacobian(x), [2.0, -3.0])


def test_order_zero_basis_is_constant():
    gv = make_cube_grid(0.0, 1.0, 3)
    basis = BaseFunctionSet(gv.entity(1), 0)
    assert basis.size == 1
    assert np.allclose(basis.evaluate(np.array([0.4])), [1.0])
    assert np.allclose(basis.jacobian(np.array([0.4])), 0.0)


def test_point_caches_are_bounded():
    ref = get_reference('tri', 2)
    for k in range(50):
        ref.grad(np.array([0.01 * k, 0.3]))
    info = ref._grad.cache_info()
    assert info.maxsize == 4096
    assert info.currsize <= info.maxsize
    assert ref._shape.cache_info().maxsize == 4096
