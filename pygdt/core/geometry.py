"""pygdt.core.geometry
Reference → physical mapping of cells (P1/Q1 geometry) and straight facets.
"""
import numpy as np

from pygdt.fem.reference import (get_reference, CORNER_DOFS, REFERENCE_CENTER,
                                 REFERENCE_DIM, REFERENCE_VOLUME)
from pygdt.integration.quadrature import rule


class ElementGeometry:
    """Multilinear map from the reference cell onto a physical cell."""

    def __init__(self, element_type: str, corners):
        self.element_type = element_type
        self.corners = np.array(corners, dtype=float)
        if self.corners.ndim == 1:
            self.corners = self.corners[:, None]
        self.corners.flags.writeable = False
        self.dim = REFERENCE_DIM[element_type]
        self.dimworld = self.corners.shape[1]
        self._ref = get_reference(element_type, 1)
        nodes = np.empty_like(self.corners)
        for k, dof in enumerate(CORNER_DOFS[element_type]):
            nodes[dof] = self.corners[k]
        self._nodes = nodes
        self.affine = element_type != "quad" or np.allclose(
            self.corners[0] + self.corners[2], self.corners[1] + self.corners[3])
        self.center = self.to_global(REFERENCE_CENTER[element_type])
        if self.affine:
            self.volume = self.integration_element(REFERENCE_CENTER[element_type]) \
                * REFERENCE_VOLUME[element_type]
        else:
            q = rule(element_type, 2)
            self.volume = float(sum(w * self.integration_element(x) for x, w in q))
        diffs = self.corners[:, None, :] - self.corners[None, :, :]
        self.diameter = float(np.sqrt((diffs ** 2).sum(axis=-1)).max())

    def to_global(self, x):
        return self._ref.shape(x) @ self._nodes

    def jacobian_transposed(self, x):
        """(dim, dimworld) matrix with entries d x_b / d xi_a."""
        return self._ref.grad(x).T @ self._nodes

    def jacobian_inverse_transposed(self, x):
        jt = self.jacobian_transposed(x)
        if self.dim == self.dimworld:
            return np.linalg.inv(jt)
        return np.linalg.pinv(jt)

    def integration_element(self, x) -> float:
        jt = self.jacobian_transposed(x)
        if self.dim == self.dimworld:
            return float(abs(np.linalg.det(jt)))
        return float(np.sqrt(np.linalg.det(jt @ jt.T)))

    def to_local(self, x, tol=1e-12, maxiter=50):
        x = np.asarray(x, dtype=float).reshape(-1)
        xi = REFERENCE_CENTER[self.element_type].copy()
        for it in range(maxiter):
            X = self.to_global(xi)
            jt = self.jacobian_transposed(xi)
            try:
                delta = np.linalg.solve(jt.T, x - X)
            except np.linalg.LinAlgError:
                raise ValueError(f"Jacobian singular at iteration {it}, x={x}")
            xi = xi + delta
            if np.linalg.norm(delta) < tol:
                return xi
        raise ValueError(f"Inverse mapping did not converge after {maxiter} iterations, x={x}")

    def contains(self, x, tol=1e-10) -> bool:
        xi = self.to_local(x)
        if self.element_type == "tri":
            return xi.min() >= -tol and xi.sum() <= 1.0 + tol
        return bool(np.all(np.abs(xi) <= 1.0 + tol))

    def __repr__(self):
        return f"ElementGeometry({self.element_type!r}, center={self.center})"


class FacetGeometry:
    """A straight facet: a point in 1D, a segment [A, B] in 2D."""

    def __init__(self, corners):
        self.corners = np.array(corners, dtype=float)
        self.corners.flags.writeable = False
        self.dim = len(self.corners) - 1
        if self.dim == 0:
            self.volume = 1.0
            self.center = self.corners[0].copy()
        else:
            a, b = self.corners
            self.volume = float(np.linalg.norm(b - a))
            self.center = 0.5 * (a + b)

    def to_global(self, x):
        if self.dim == 0:
            return self.corners[0].copy()
        t = float(np.asarray(x, dtype=float).reshape(-1)[0])
        a, b = self.corners
        return a + 0.5 * (t + 1.0) * (b - a)

    def integration_element(self, x=None) -> float:
        return 1.0 if self.dim == 0 else 0.5 * self.volume
