"""pygdt.integration.quadrature
Quadrature provider for lines, triangles and quads. ``order`` is always the
polynomial degree integrated exactly on the reference cell.
"""
import logging
import math
from functools import lru_cache
from typing import NamedTuple

import numpy as np
from numpy.polynomial.legendre import leggauss

from pygdt.fem.reference import REFERENCE_DIM

logger = logging.getLogger(__name__)


class QuadratureRule(NamedTuple):
    points: np.ndarray    # (n_qp, dim)
    weights: np.ndarray   # (n_qp,)
    order: int

    def __len__(self):
        return len(self.weights)

    def __iter__(self):
        return iter(zip(self.points, self.weights))


def _frozen_rule(pts, wts, order):
    pts = np.ascontiguousarray(pts, dtype=float)
    wts = np.ascontiguousarray(wts, dtype=float)
    pts.flags.writeable = False
    wts.flags.writeable = False
    return QuadratureRule(pts, wts, int(order))


def _check_order(order):
    order = int(order)
    if order < 0:
        raise ValueError(f"quadrature order must be non-negative, got {order}")
    return order


# -------------------------------------------------------------------------
# 1‑D Gauss–Legendre
# -------------------------------------------------------------------------
def gauss_legendre(num_points: int):
    if num_points < 1:
        raise ValueError(num_points)
    return leggauss(num_points)  # (points, weights) on [-1,1]


def _points_for(order: int, extra: int = 1) -> int:
    # n Gauss points are exact up to degree 2n-1
    return max(1, math.ceil((order + extra) / 2))


@lru_cache(maxsize=None)
def line_rule(order: int) -> QuadratureRule:
    order = _check_order(order)
    xi, wi = gauss_legendre(_points_for(order))
    return _frozen_rule(xi[:, None], wi, order)


# -------------------------------------------------------------------------
# Tensor‑product construction helpers
# -------------------------------------------------------------------------
@lru_cache(maxsize=None)
def quad_rule(order: int) -> QuadratureRule:
    order = _check_order(order)
    xi, wi = gauss_legendre(_points_for(order))
    pts = np.array([[x, y] for y in xi for x in xi])
    wts = np.array([wx * wy for wy in wi for wx in wi])
    return _frozen_rule(pts, wts, order)


@lru_cache(maxsize=None)
def tri_rule(order: int) -> QuadratureRule:
    """Degree‑exact rule built from square → reference triangle mapping."""
    order = _check_order(order)
    # the collapsed map adds one degree through its jacobian (1-u)
    xi, wi = gauss_legendre(_points_for(order, extra=2))
    u = 0.5 * (xi + 1.0)
    w_u = 0.5 * wi
    pts = []
    wts = []
    for i, ui in enumerate(u):
        for j, vj in enumerate(u):
            pts.append([ui, vj * (1.0 - ui)])
            wts.append(w_u[i] * w_u[j] * (1.0 - ui))
    return _frozen_rule(np.array(pts), np.array(wts), order)


@lru_cache(maxsize=None)
def point_rule() -> QuadratureRule:
    return _frozen_rule(np.zeros((1, 0)), np.ones(1), 0)


# -------------------------------------------------------------------------
# Public API
# -------------------------------------------------------------------------
def rule(element_type: str, order: int) -> QuadratureRule:
    """Volume rule of the given exactness on the reference cell."""
    if element_type == 'line':
        return line_rule(order)
    if element_type == 'tri':
        return tri_rule(order)
    if element_type == 'quad':
        return quad_rule(order)
    raise KeyError(element_type)


def facet_rule(element_type: str, order: int) -> QuadratureRule:
    """Rule on the reference facet of a cell: a point for lines, [-1,1] otherwise."""
    if REFERENCE_DIM[element_type] == 1:
        return point_rule()
    return line_rule(order)


def segment_rule(a: float, b: float, order: int):
    """Gauss rule on the oriented interval [a, b]; weights carry the sign of b - a."""
    ref = line_rule(order)
    half = 0.5 * (b - a)
    pts = 0.5 * (a + b) + half * ref.points[:, 0]
    return pts, half * ref.weights


def integrate(fn, element_type: str, order: int) -> float:
    """Integrate ``fn(x_ref)`` over a reference cell."""
    q = rule(element_type, order)
    logger.debug(f"integrate on {element_type} with {len(q)} points (order {order})")
    return float(sum(w * fn(x) for x, w in q))
