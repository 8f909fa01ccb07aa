import numpy as np
import pytest

from pygdt.discretefunction import interpolate
from pygdt.fem import ContinuousLagrangeSpace, DiscontinuousLagrangeSpace, FiniteVolumeSpace
from pygdt.functions import ConstantFunction, ExpressionFunction
from pygdt.operators import (BoundaryL2Assemblable, BoundaryL2Localizable, H1SemiAssemblable, H1SemiLocalizable,
                             L2Assemblable, L2Localizable, eoc, h1_semi_error, l2_error, l2_norm)
from pygdt.utils.meshgen import make_cube_grid

linear = ExpressionFunction("x[0]", order=1)
tilted = ExpressionFunction("x[0] + 2*x[1]", order=1)


@pytest.fixture(params=['quad', 'tri'])
def unit_square(request):
    return make_cube_grid([0, 0], [1, 1], [4, 4], request.param)


def test_l2_of_constant_is_the_area():
    gv = make_cube_grid([0, 0], [2, 1], [3, 2], 'tri')
    assert np.isclose(L2Localizable(gv, ConstantFunction(1.0)).apply2(), 2.0)


def test_localizable_products(unit_square):
    assert np.isclose(L2Localizable(unit_square, linear).apply2(), 1.0 / 3.0)
    assert np.isclose(L2Localizable(unit_square, linear, ConstantFunction(1.0)).apply2(), 0.5)
    assert np.isclose(H1SemiLocalizable(unit_square, tilted).apply2(), 5.0)
    assert np.isclose(BoundaryL2Localizable(unit_square, ConstantFunction(1.0)).apply2(), 4.0)
    # bottom and top 1/3 each, right edge 1, left edge 0
    assert np.isclose(BoundaryL2Localizable(unit_square, linear).apply2(), 5.0 / 3.0)


def test_boundary_product_ignores_periodic_intersections():
    gv = make_cube_grid([0, 0], [1, 1], [3, 3], periodic=[0])
    assert np.isclose(BoundaryL2Localizable(gv, ConstantFunction(1.0)).apply2(), 2.0)


def test_assemblable_matches_localizable(unit_square):
    space = ContinuousLagrangeSpace(unit_square)
    u = interpolate(tilted, space)
    v = interpolate(linear, space)
    assert np.isclose(L2Assemblable(space).apply2(u, v), L2Localizable(unit_square, tilted, linear).apply2())
    assert np.isclose(H1SemiAssemblable(space).apply2(u, u), 5.0)
    assert np.isclose(BoundaryL2Assemblable(space).apply2(v, v), 5.0 / 3.0)


def test_assemblable_product_assembles_once():
    space = DiscontinuousLagrangeSpace(make_cube_grid([0, 0], [1, 1], [2, 2]), 1)
    product = L2Assemblable(space)
    first = product.assemble()
    assert product.assemble() is first
    assert np.isclose(first.to_dense().sum(), 1.0)


def test_parallel_product_matches_serial(unit_square):
    f = ExpressionFunction("sin(x[0])*x[1]", order=3)
    serial = L2Localizable(unit_square, f).apply2()
    parallel = L2Localizable(unit_square, f).apply2(parallel=True, num_workers=2, num_partitions=3)
    assert np.isclose(serial, parallel, rtol=1e-13)


def test_interpolation_reproduces_polynomials(unit_square):
    bilinear = ExpressionFunction("x[0]*x[1] + x[0]", order=2)
    dg2 = interpolate(bilinear, DiscontinuousLagrangeSpace(unit_square, 2))
    assert l2_error(dg2, bilinear) < 1e-12
    cg = interpolate(tilted, ContinuousLagrangeSpace(unit_square))
    assert l2_error(cg, tilted) < 1e-12
    assert h1_semi_error(cg, tilted) < 1e-10
    assert np.isclose(cg([0.3, 0.6]), 1.5)


def test_fv_interpolation_and_relative_error():
    gv = make_cube_grid([0, 0], [1, 1], [8, 8])
    uh = interpolate(linear, FiniteVolumeSpace(gv))
    absolute = l2_error(uh, linear)
    # piecewise constant error of x on cells of width h: h / sqrt(12)
    assert np.isclose(absolute, (1.0 / 8.0) / np.sqrt(12.0))
    assert np.isclose(l2_error(uh, linear, relative=True), absolute / l2_norm(linear, gv))


def test_eoc():
    assert np.allclose(eoc([1.0, 0.25, 0.0625], [1.0, 0.5, 0.25]), [2.0, 2.0])
    with pytest.raises(ValueError):
        eoc([1.0, 0.5], [1.0])
