"""Lagrange bases on [-1, 1] (line) and their tensor products on [-1, 1]^2 (quad)."""
from functools import lru_cache

import numpy as np
import sympy as sp

s = sp.symbols("s")


@lru_cache(maxsize=None)
def _line_tables(n: int, max_deriv_order: int):
    """One lambda per derivative order k returning d^k L_i / ds^k for all equidistant nodes."""
    if n < 0:
        raise ValueError(f"polynomial order must be non-negative, got {n}")
    if n == 0:
        basis = [sp.Integer(1)]
    else:
        nodes = [sp.Integer(-1) + sp.Rational(2 * i, n) for i in range(n + 1)]
        basis = [sp.prod([(s - b) / (a - b) for b in nodes if b != a]) for a in nodes]
    return [sp.lambdify(s, [sp.diff(phi, s, k) for phi in basis], "numpy") for k in range(max_deriv_order + 1)]


def _values(fn, z) -> np.ndarray:
    # constant entries come back as python scalars
    return np.array(fn(z), dtype=float).reshape(-1)


@lru_cache(maxsize=None)
def line_pn(n: int, max_deriv_order: int = 1):
    """P_n on [-1, 1]: ``(shape, {(k,): d^k shape})``."""
    tables = _line_tables(n, max_deriv_order)
    derivatives = {(k,): (lambda x, fn=fn: _values(fn, x)) for k, fn in enumerate(tables)}
    return derivatives[(0,)], derivatives


@lru_cache(maxsize=None)
def quad_qn(n: int, max_deriv_order: int = 1):
    """
    Q_n on [-1, 1]^2; the function of node ``(xi_i, eta_j)`` has index
    ``j*(n+1) + i``.  Derivatives are keyed by ``(a_xi, a_eta)``.
    """
    tables = _line_tables(n, max_deriv_order)

    def tensor(a_xi, a_eta):
        fx, fy = tables[a_xi], tables[a_eta]
        return lambda x, y: np.outer(_values(fy, y), _values(fx, x)).reshape(-1)

    derivatives = {(a, total - a): tensor(a, total - a)
                   for total in range(max_deriv_order + 1) for a in range(total + 1)}
    return derivatives[(0, 0)], derivatives
