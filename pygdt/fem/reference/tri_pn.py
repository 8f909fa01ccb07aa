"""Lagrange P_k on the reference triangle (0,0)-(1,0)-(0,1), built symbolically."""
from functools import lru_cache

import sympy as sp

xi, eta = sp.symbols("xi eta")


def _lattice(n: int):
    # rows in eta, xi inner: the ordering of reference_nodes('tri', n)
    return [(sp.Rational(i, n), sp.Rational(j, n)) for j in range(n + 1) for i in range(n + 1 - j)]


def _monomials(n: int):
    return [xi ** p * eta ** (d - p) for d in range(n + 1) for p in range(d + 1)]


@lru_cache(maxsize=None)
def lagrange_basis(n: int):
    """Symbolic P_n basis with phi_i(node_j) = delta_ij."""
    if n < 0:
        raise ValueError(f"polynomial order must be non-negative, got {n}")
    if n == 0:
        return [sp.Integer(1)]
    monomials = _monomials(n)
    vandermonde = sp.Matrix([[m.subs({xi: a, eta: b}) for m in monomials] for a, b in _lattice(n)])
    # column i of V^-1 holds the monomial coefficients of phi_i
    coeffs = vandermonde.inv()
    return [sp.expand(sum(coeffs[k, i] * m for k, m in enumerate(monomials)))
            for i in range(len(monomials))]


@lru_cache(maxsize=None)
def tri_pn(n: int, max_deriv_order: int = 1):
    """
    ``(shape, derivatives)`` as numpy lambdas in ``(xi, eta)``; ``derivatives``
    is keyed by ``(a_xi, a_eta)`` with ``a_xi + a_eta <= max_deriv_order``.
    """
    basis = lagrange_basis(n)
    shape = sp.lambdify((xi, eta), sp.Matrix(basis), "numpy")
    derivatives = {}
    for total in range(max_deriv_order + 1):
        for a in range(total + 1):
            expr = sp.Matrix([sp.diff(phi, xi, a, eta, total - a) for phi in basis])
            derivatives[(a, total - a)] = sp.lambdify((xi, eta), expr, "numpy")
    return shape, derivatives
