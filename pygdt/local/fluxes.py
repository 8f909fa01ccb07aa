"""pygdt.local.fluxes
Numerical fluxes g(u, v, n) ≈ f(u)·n for conservation laws with physical flux
f: R^m → R^{m×d}.  Consistency: g(u, u, n) = f(u)·n.
"""
import abc
import copy
import logging
from typing import Callable, Optional, Sequence

import numpy as np

from pygdt.exceptions import (DegenerateFluxError, EigenDecompositionError, NotAvailableForTheseDimensions,
                              OperatorError)
from pygdt.integration.quadrature import segment_rule

logger = logging.getLogger(__name__)

EIGEN_TOLERANCE = 1e-10


def _infinity_norm(jacobian: np.ndarray) -> float:
    """Largest row-sum norm over the d directional jacobians, shape (d, m, m)."""
    return float(np.abs(jacobian).sum(axis=-1).max())


class NumericalFluxInterface(abc.ABC):
    def __init__(self, flux, parameter_names: Sequence[str] = ()):
        self._flux = flux
        self.parameter_names = tuple(flux.parameter_names) + tuple(parameter_names)

    @property
    def flux(self):
        return self._flux

    @property
    def dim_domain(self) -> int:
        return self._flux.dim_domain

    @property
    def dim_range(self) -> int:
        return self._flux.dim_range

    def copy(self) -> "NumericalFluxInterface":
        # fluxes are immutable after construction, a shallow copy owns everything it needs
        return copy.copy(self)

    def linear(self) -> bool:
        return False

    def _states(self, u, v, n):
        u = np.asarray(u, dtype=float).reshape(-1)
        v = np.asarray(v, dtype=float).reshape(-1)
        n = np.asarray(n, dtype=float).reshape(-1)
        m, d = self.dim_range, self.dim_domain
        if u.size != m or v.size != m:
            raise OperatorError("state size does not match the flux", u=u.size, v=v.size, m=m)
        if n.size != d:
            raise OperatorError("normal size does not match the flux", n=n.size, d=d)
        return u, v, n

    def __call__(self, u, v, n, param=None) -> np.ndarray:
        return self.apply(u, v, n, param)

    @abc.abstractmethod
    def apply(self, u, v, n, param=None) -> np.ndarray:
        """Flux across a facet with unit outer normal ``n`` from state ``u`` (inside) to ``v`` (outside)."""

    def __repr__(self):
        return f"{type(self).__name__}(d={self.dim_domain}, m={self.dim_range})"


class _ScalarNumericalFlux(NumericalFluxInterface):
    def __init__(self, flux, parameter_names: Sequence[str] = ()):
        if flux.dim_range != 1:
            raise NotAvailableForTheseDimensions(f"{type(self).__name__} is only available for scalar states",
                                                 d=flux.dim_domain, m=flux.dim_range)
        super().__init__(flux, parameter_names)


class NumericalLambdaFlux(NumericalFluxInterface):
    """Wraps a callable ``lambda_(u, v, n, param) -> (m,)``."""

    def __init__(self, flux, lambda_: Callable, parameter_names: Sequence[str] = (), linear: bool = False):
        super().__init__(flux, parameter_names)
        self._lambda = lambda_
        self._linear = bool(linear)

    def linear(self) -> bool:
        return self._linear

    def apply(self, u, v, n, param=None) -> np.ndarray:
        u, v, n = self._states(u, v, n)
        return np.asarray(self._lambda(u, v, n, param), dtype=float).reshape(self.dim_range)


class NumericalUpwindFlux(_ScalarNumericalFlux):
    def apply(self, u, v, n, param=None) -> np.ndarray:
        u, v, n = self._states(u, v, n)
        df = self.flux.jacobian(0.5 * (u + v), param)[:, 0, 0]
        # a vanishing projection takes the outside state
        if n @ df > 0:
            return self.flux.evaluate(u, param) @ n
        return self.flux.evaluate(v, param) @ n


class NumericalLaxFriedrichsFlux(_ScalarNumericalFlux):
    def apply(self, u, v, n, param=None) -> np.ndarray:
        u, v, n = self._states(u, v, n)
        speed = max(_infinity_norm(self.flux.jacobian(u, param)), _infinity_norm(self.flux.jacobian(v, param)))
        if speed == 0.0:
            logger.debug(f"Lax-Friedrichs flux degenerate at u={u}, v={v}")
            raise DegenerateFluxError("both flux jacobians vanish, dissipation coefficient undefined",
                                      u=u.tolist(), v=v.tolist())
        lam = 1.0 / speed
        return 0.5 * ((self.flux.evaluate(u, param) + self.flux.evaluate(v, param)) @ n) + 0.5 * ((u - v) / lam)


class NumericalEngquistOsherFlux(_ScalarNumericalFlux):
    """g(u, v, n) = f(0)·n + ∫_0^u max(n·f'(s), 0) ds + ∫_0^v min(n·f'(s), 0) ds."""

    def _integrate(self, s: float, n: np.ndarray, clip, param) -> float:
        if s == 0.0:
            return 0.0
        points, weights = segment_rule(0.0, s, max(self.flux.order, 1))
        total = 0.0
        for p, w in zip(points, weights):
            total += w * clip(n @ self.flux.jacobian([p], param)[:, 0, 0], 0.0)
        return total

    def apply(self, u, v, n, param=None) -> np.ndarray:
        u, v, n = self._states(u, v, n)
        ret = self.flux.evaluate(np.zeros(1), param) @ n
        ret = ret + self._integrate(float(u[0]), n, max, param) + self._integrate(float(v[0]), n, min, param)
        return ret


class NumericalVijayasundaramFlux(NumericalFluxInterface):
    """
    g(u, v, n) = P⁺ u + P⁻ v with P = Σ_s n_s ∂f_s/∂u evaluated at the mean state
    and P± = T Λ± T⁻¹ built from its real eigendecomposition.

    ``eigen_decomposition(w, n) -> (eigenvalues, T, T_inv)`` replaces the
    numerical decomposition, e.g. with a known analytic one.
    """

    def __init__(self, flux, eigen_decomposition: Optional[Callable] = None):
        super().__init__(flux)
        self._eigen_decomposition = eigen_decomposition

    def _decompose(self, w, n, param=None):
        P = np.tensordot(n, self.flux.jacobian(w, param), axes=(0, 0))
        evs, T = np.linalg.eig(P)
        if np.max(np.abs(np.imag(evs)), initial=0.0) > EIGEN_TOLERANCE \
                or np.max(np.abs(np.imag(T)), initial=0.0) > EIGEN_TOLERANCE:
            raise EigenDecompositionError("flux jacobian has no real eigendecomposition",
                                          eigenvalues=evs.tolist())
        evs, T = np.real(evs), np.real(T)
        try:
            T_inv = np.linalg.inv(T)
        except np.linalg.LinAlgError as e:
            raise EigenDecompositionError("eigenvectors of the flux jacobian are not invertible") from e
        if not np.allclose(T @ np.diag(evs) @ T_inv, P, atol=EIGEN_TOLERANCE * max(1.0, np.abs(P).max())):
            raise EigenDecompositionError("flux jacobian is not diagonalizable", eigenvalues=evs.tolist())
        return evs, T, T_inv

    def apply(self, u, v, n, param=None) -> np.ndarray:
        u, v, n = self._states(u, v, n)
        if self._eigen_decomposition is None:
            evs, T, T_inv = self._decompose(0.5 * (u + v), n, param)
        else:
            evs, T, T_inv = self._eigen_decomposition(0.5 * (u + v), n)
        evs = np.asarray(evs, dtype=float)
        P_plus = T @ np.diag(np.maximum(evs, 0.0)) @ T_inv
        P_minus = T @ np.diag(np.minimum(evs, 0.0)) @ T_inv
        return P_plus @ u + P_minus @ v


def make_numerical_flux(name: str, flux, **kwargs) -> NumericalFluxInterface:
    """Build a flux by name: upwind, lax_friedrichs, engquist_osher, vijayasundaram."""
    table = {
        "upwind": NumericalUpwindFlux,
        "lax_friedrichs": NumericalLaxFriedrichsFlux,
        "engquist_osher": NumericalEngquistOsherFlux,
        "vijayasundaram": NumericalVijayasundaramFlux,
    }
    try:
        cls = table[name.lower().replace("-", "_")]
    except KeyError:
        raise ValueError(f"unknown numerical flux {name!r}, choose from {sorted(table)}") from None
    return cls(flux, **kwargs)
