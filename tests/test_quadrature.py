from math import factorial

import numpy as np
import pytest

from pygdt.integration import quadrature as q


def _tri_monomial(a, b):
    # ∫_T x^a y^b over the reference triangle
    return factorial(a) * factorial(b) / factorial(a + b + 2)


def _interval_monomial(a):
    return 0.0 if a % 2 else 2.0 / (a + 1)


def test_constant_volume():
    for et, exact in (('line', 2.0), ('tri', 0.5), ('quad', 4.0)):
        assert np.isclose(q.rule(et, 3).weights.sum(), exact, rtol=1e-12)


@pytest.mark.parametrize("order", range(0, 9))
def test_triangle_exactness(order):
    rule = q.rule('tri', order)
    for a in range(order + 1):
        for b in range(order + 1 - a):
            val = sum(w * x[0] ** a * x[1] ** b for x, w in rule)
            assert np.isclose(val, _tri_monomial(a, b), rtol=1e-12, atol=1e-14)


@pytest.mark.parametrize("order", range(0, 9))
def test_quad_exactness(order):
    rule = q.rule('quad', order)
    for a in range(order + 1):
        for b in range(order + 1):
            val = sum(w * x[0] ** a * x[1] ** b for x, w in rule)
            assert np.isclose(val, _interval_monomial(a) * _interval_monomial(b), atol=1e-13)


def test_line_and_facet_rules():
    val = sum(w * x[0] ** 6 for x, w in q.rule('line', 6))
    assert np.isclose(val, 2.0 / 7.0)
    point = q.facet_rule('line', 5)
    assert len(point) == 1 and point.points.shape == (1, 0)
    assert np.isclose(q.facet_rule('quad', 3).weights.sum(), 2.0)


def test_segment_rule_is_oriented():
    pts, wts = q.segment_rule(0.0, -2.0, 3)
    assert np.isclose(np.sum(wts * pts ** 2), -8.0 / 3.0)


def test_rules_are_cached_and_read_only():
    r = q.rule('tri', 4)
    assert r is q.rule('tri', 4)
    with pytest.raises(ValueError):
        r.points[0, 0] = 1.0


def test_negative_order_rejected():
    with pytest.raises(ValueError):
        q.rule('quad', -1)


def test_integrate_helper():
    assert np.isclose(q.integrate(lambda x: x[0] * x[1], 'tri', 2), 1.0 / 24.0)
