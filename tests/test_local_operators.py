import numpy as np
import pytest

from pygdt.assembly.tmp_storage import TmpMatricesPool, TmpVectorsPool
from pygdt.exceptions import InsufficientScratchSpace
from pygdt.fem.basis import BaseFunctionSet
from pygdt.functions import ConstantFunction, ExpressionFunction
from pygdt.local import (BoundaryProduct, Codim0Integral, Codim0IntegralFunctional, Codim1BoundaryIntegral,
                         Codim1CouplingIntegral, Codim1IntegralFunctional, Elliptic, NeumannFunctional,
                         Product, ProductFunctional, SIPGCoupling, SIPGDirichletBoundary)
from pygdt.utils.meshgen import make_cube_grid

zero = ConstantFunction(0.0)


@pytest.fixture
def grid():
    return make_cube_grid([0, 0], [1, 1], [2, 3])


def _boundary_intersection(gv, entity):
    return next(i for i in gv.intersections(entity) if not i.neighbor)


def _inner_intersection(gv, entity):
    return next(i for i in gv.intersections(entity) if i.neighbor)


@pytest.mark.parametrize("evaluation", [Product(zero), Elliptic(zero)])
def test_zero_function_gives_zero_volume_block(grid, evaluation):
    basis = BaseFunctionSet(grid.entity(0), 2)
    ret = np.zeros((basis.size, basis.size))
    Codim0Integral(evaluation).apply(basis, basis, ret, TmpMatricesPool(1, basis.size, basis.size))
    assert np.all(ret == 0.0)


def test_zero_function_gives_zero_facet_blocks(grid):
    entity = grid.entity(0)
    basis = BaseFunctionSet(entity, 1)
    ret = np.zeros((4, 4))
    Codim1BoundaryIntegral(BoundaryProduct(zero)).apply(basis, basis, _boundary_intersection(grid, entity),
                                                        ret, TmpMatricesPool(1, 4, 4))
    assert np.all(ret == 0.0)
    vec = np.zeros(4)
    Codim1IntegralFunctional(NeumannFunctional(zero)).apply(basis, _boundary_intersection(grid, entity), vec,
                                                            TmpVectorsPool(1, 4))
    Codim0IntegralFunctional(ProductFunctional(zero)).apply(basis, vec, TmpVectorsPool(1, 4))
    assert np.all(vec == 0.0)


def test_mass_and_stiffness_blocks(grid):
    entity = grid.entity(0)
    basis = BaseFunctionSet(entity, 1)
    tmp = TmpMatricesPool(1, 4, 4)
    mass = np.zeros((4, 4))
    Codim0Integral(Product()).apply(basis, basis, mass, tmp)
    assert np.isclose(mass.sum(), entity.geometry.volume)
    assert np.allclose(mass, mass.T)
    stiffness = np.zeros((4, 4))
    Codim0Integral(Elliptic()).apply(basis, basis, stiffness, tmp)
    assert np.allclose(stiffness.sum(axis=1), 0.0)
    # a Q1 stiffness matrix has exactly one zero eigenvalue (constants)
    assert np.sum(np.abs(np.linalg.eigvalsh(stiffness)) < 1e-12) == 1


def test_operators_accumulate_into_the_output(grid):
    basis = BaseFunctionSet(grid.entity(1), 1)
    ret = np.ones((4, 4))
    Codim0Integral(Product(zero)).apply(basis, basis, ret, TmpMatricesPool(1, 4, 4))
    assert np.all(ret == 1.0)


def test_source_functional_integrates_the_function(grid):
    entity = grid.entity(3)
    basis = BaseFunctionSet(entity, 1)
    f = ExpressionFunction("x[0] + x[1]", order=1)
    ret = np.zeros(4)
    Codim0IntegralFunctional(ProductFunctional(f)).apply(basis, ret, TmpVectorsPool(1, 4))
    # partition of unity: the entries sum to ∫_E f
    assert np.isclose(ret.sum(), entity.geometry.volume * f.evaluate(entity.geometry.center))


def test_insufficient_scratch_space(grid):
    basis = BaseFunctionSet(grid.entity(0), 1)
    ret = np.zeros((4, 4))
    with pytest.raises(InsufficientScratchSpace):
        Codim0Integral(Product()).apply(basis, basis, ret, TmpMatricesPool(0, 4, 4))
    with pytest.raises(InsufficientScratchSpace):
        Codim0Integral(Product()).apply(basis, basis, ret, TmpMatricesPool(1, 2, 2))
    with pytest.raises(InsufficientScratchSpace):
        Codim0Integral(Product()).apply(basis, basis, np.zeros((3, 3)), TmpMatricesPool(1, 4, 4))


def test_coupling_needs_four_scratch_blocks(grid):
    entity = grid.entity(0)
    isec = _inner_intersection(grid, entity)
    b_en = BaseFunctionSet(entity, 1)
    b_ne = BaseFunctionSet(isec.outside, 1)
    blocks = [np.zeros((4, 4)) for _ in range(4)]
    op = Codim1CouplingIntegral(SIPGCoupling())
    assert op.num_tmp_objects_required() == 4
    with pytest.raises(InsufficientScratchSpace):
        op.apply(b_en, b_en, b_ne, b_ne, isec, *blocks, TmpMatricesPool(3, 4, 4))
    op.apply(b_en, b_en, b_ne, b_ne, isec, *blocks, TmpMatricesPool(4, 4, 4))
    ee, nn, en, ne = blocks
    # symmetric form: the coupling blocks are transposes of each other
    assert np.allclose(en, ne.T)
    assert np.allclose(ee, ee.T) and np.allclose(nn, nn.T)
    # constants have no jump: the rows of [ee en] and [ne nn] sum to zero
    assert np.allclose(ee.sum(axis=1) + en.sum(axis=1), 0.0)
    assert np.allclose(ne.sum(axis=1) + nn.sum(axis=1), 0.0)


def test_sipg_boundary_block_is_symmetric(grid):
    entity = grid.entity(0)
    basis = BaseFunctionSet(entity, 2)
    ret = np.zeros((9, 9))
    Codim1BoundaryIntegral(SIPGDirichletBoundary(alpha=5.0)).apply(
        basis, basis, _boundary_intersection(grid, entity), ret, TmpMatricesPool(1, 9, 9))
    assert np.allclose(ret, ret.T)


def test_over_integrate_comes_from_config(grid):
    from pygdt.config import get_config, set_config
    previous = set_config(get_config().with_over_integrate(3))
    try:
        assert Codim0Integral(Product()).over_integrate == 3
        assert Codim0Integral(Product(), over_integrate=1).over_integrate == 1
    finally:
        set_config(previous)
