"""pygdt.local.evaluations
Integrands of the local operators and functionals, evaluated at one
quadrature point.  ``evaluate`` overwrites the given output block; the
integral operators take care of weights and integration elements.
"""
import abc

import numpy as np

from pygdt.functions import ConstantFunction


def _gradient_order(base) -> int:
    # tensor-product bases keep degree k in the other variable after differentiation
    if base.entity.element_type == "quad":
        return base.order
    return max(base.order - 1, 0)


def _diffusion_order(diffusion, test, ansatz) -> int:
    return diffusion.order + _gradient_order(test) + _gradient_order(ansatz)


def _local_length(entity) -> float:
    # element characteristic length: volume^(1/dim)
    return entity.geometry.volume ** (1.0 / entity.geometry.dim)


# -------------------------------------------------------------------------
# interfaces
# -------------------------------------------------------------------------
class Codim0Evaluation(abc.ABC):
    """Binary integrand on an entity: ``out[i, j]`` for test i and ansatz j."""

    @abc.abstractmethod
    def order(self, test, ansatz) -> int: ...

    @abc.abstractmethod
    def evaluate(self, entity, test, ansatz, x, out): ...


class Codim0UnaryEvaluation(abc.ABC):
    """Unary integrand on an entity: ``out[i]`` for test function i."""

    @abc.abstractmethod
    def order(self, test) -> int: ...

    @abc.abstractmethod
    def evaluate(self, entity, test, x, out): ...


class Codim1CouplingEvaluation(abc.ABC):
    """Integrand on an inner intersection producing the four coupling blocks."""

    @abc.abstractmethod
    def order(self, test_en, ansatz_en, test_ne, ansatz_ne) -> int: ...

    @abc.abstractmethod
    def evaluate(self, intersection, test_en, ansatz_en, test_ne, ansatz_ne, x,
                 out_ee, out_nn, out_en, out_ne): ...


class Codim1BoundaryEvaluation(abc.ABC):
    @abc.abstractmethod
    def order(self, test, ansatz) -> int: ...

    @abc.abstractmethod
    def evaluate(self, intersection, test, ansatz, x, out): ...


class Codim1UnaryEvaluation(abc.ABC):
    @abc.abstractmethod
    def order(self, test) -> int: ...

    @abc.abstractmethod
    def evaluate(self, intersection, test, x, out): ...


# -------------------------------------------------------------------------
# volume integrands
# -------------------------------------------------------------------------
class Product(Codim0Evaluation):
    """f ψ_i φ_j (mass matrix for f = 1)."""

    def __init__(self, function=None):
        self.function = function if function is not None else ConstantFunction(1.0)

    def order(self, test, ansatz) -> int:
        return self.function.order + test.order + ansatz.order

    def evaluate(self, entity, test, ansatz, x, out):
        f = self.function.local_evaluate(entity, x)
        out[...] = f * np.outer(test.evaluate(x), ansatz.evaluate(x))


class Elliptic(Codim0Evaluation):
    """a ∇ψ_i · ∇φ_j for a scalar diffusion factor a."""

    def __init__(self, diffusion=None):
        self.diffusion = diffusion if diffusion is not None else ConstantFunction(1.0)

    def order(self, test, ansatz) -> int:
        return _diffusion_order(self.diffusion, test, ansatz)

    def evaluate(self, entity, test, ansatz, x, out):
        a = self.diffusion.local_evaluate(entity, x)
        out[...] = a * (test.jacobian(x) @ ansatz.jacobian(x).T)


class ProductFunctional(Codim0UnaryEvaluation):
    """f ψ_i, e.g. a volume source term."""

    def __init__(self, function):
        self.function = function

    def order(self, test) -> int:
        return self.function.order + test.order

    def evaluate(self, entity, test, x, out):
        out[...] = self.function.local_evaluate(entity, x) * test.evaluate(x)


# -------------------------------------------------------------------------
# facet integrands
# -------------------------------------------------------------------------
class BoundaryProduct(Codim1BoundaryEvaluation):
    """f ψ_i φ_j on a boundary intersection."""

    def __init__(self, function=None):
        self.function = function if function is not None else ConstantFunction(1.0)

    def order(self, test, ansatz) -> int:
        return self.function.order + test.order + ansatz.order

    def evaluate(self, intersection, test, ansatz, x, out):
        x_in = intersection.inside_reference(x)
        f = self.function.local_evaluate(intersection.inside, x_in)
        out[...] = f * np.outer(test.evaluate(x_in), ansatz.evaluate(x_in))


class NeumannFunctional(Codim1UnaryEvaluation):
    """g ψ_i on Neumann intersections."""

    def __init__(self, neumann):
        self.neumann = neumann

    def order(self, test) -> int:
        return self.neumann.order + test.order

    def evaluate(self, intersection, test, x, out):
        x_in = intersection.inside_reference(x)
        out[...] = self.neumann.local_evaluate(intersection.inside, x_in) * test.evaluate(x_in)


class _InteriorPenalty:
    """Shared parameters of the symmetric interior penalty terms."""

    def __init__(self, diffusion=None, alpha: float = 10.0, symmetry: int = 1):
        self.diffusion = diffusion if diffusion is not None else ConstantFunction(1.0)
        self.alpha = float(alpha)
        self.symmetry = symmetry

    def penalty(self, order: int, h: float) -> float:
        return self.alpha * (order + 1) ** 2 / h


class SIPGCoupling(_InteriorPenalty, Codim1CouplingEvaluation):
    """
    Consistency, symmetry and penalty terms of
    -∫{a∇u·n}[v] - θ∫{a∇v·n}[u] + σ∫[u][v] on an inner intersection,
    with jump [w] = w_in - w_out and average {w} = (w_in + w_out)/2.
    """

    def order(self, test_en, ansatz_en, test_ne, ansatz_ne) -> int:
        p = max(test_en.order, ansatz_en.order, test_ne.order, ansatz_ne.order)
        return self.diffusion.order + 2 * p

    def evaluate(self, intersection, test_en, ansatz_en, test_ne, ansatz_ne, x,
                 out_ee, out_nn, out_en, out_ne):
        inside, outside = intersection.inside, intersection.outside
        x_in = intersection.inside_reference(x)
        x_out = intersection.outside_reference(x)
        n = intersection.unit_outer_normal(x)
        a_in = self.diffusion.local_evaluate(inside, x_in)
        a_out = self.diffusion.local_evaluate(outside, x_out)
        h = 0.5 * (_local_length(inside) + _local_length(outside))
        p = max(test_en.order, ansatz_en.order)
        sigma = self.penalty(p, h)
        theta = self.symmetry

        v_in, u_in = test_en.evaluate(x_in), ansatz_en.evaluate(x_in)
        v_out, u_out = test_ne.evaluate(x_out), ansatz_ne.evaluate(x_out)
        dv_in = a_in * (test_en.jacobian(x_in) @ n)
        du_in = a_in * (ansatz_en.jacobian(x_in) @ n)
        dv_out = a_out * (test_ne.jacobian(x_out) @ n)
        du_out = a_out * (ansatz_ne.jacobian(x_out) @ n)

        out_ee[...] = (-0.5 * np.outer(v_in, du_in) - theta * 0.5 * np.outer(dv_in, u_in)
                       + sigma * np.outer(v_in, u_in))
        out_en[...] = (-0.5 * np.outer(v_in, du_out) + theta * 0.5 * np.outer(dv_in, u_out)
                       - sigma * np.outer(v_in, u_out))
        out_ne[...] = (0.5 * np.outer(v_out, du_in) - theta * 0.5 * np.outer(dv_out, u_in)
                       - sigma * np.outer(v_out, u_in))
        out_nn[...] = (0.5 * np.outer(v_out, du_out) + theta * 0.5 * np.outer(dv_out, u_out)
                       + sigma * np.outer(v_out, u_out))


class SIPGDirichletBoundary(_InteriorPenalty, Codim1BoundaryEvaluation):
    """-∫ a∇u·n v - θ∫ a∇v·n u + σ∫ u v on Dirichlet intersections."""

    def order(self, test, ansatz) -> int:
        return self.diffusion.order + 2 * max(test.order, ansatz.order)

    def evaluate(self, intersection, test, ansatz, x, out):
        inside = intersection.inside
        x_in = intersection.inside_reference(x)
        n = intersection.unit_outer_normal(x)
        a = self.diffusion.local_evaluate(inside, x_in)
        sigma = self.penalty(max(test.order, ansatz.order), _local_length(inside))
        v, u = test.evaluate(x_in), ansatz.evaluate(x_in)
        dv = a * (test.jacobian(x_in) @ n)
        du = a * (ansatz.jacobian(x_in) @ n)
        out[...] = -np.outer(v, du) - self.symmetry * np.outer(dv, u) + sigma * np.outer(v, u)


class SIPGDirichletFunctional(_InteriorPenalty, Codim1UnaryEvaluation):
    """σ∫ g v - θ∫ a∇v·n g, the right-hand side matching :class:`SIPGDirichletBoundary`."""

    def __init__(self, dirichlet, diffusion=None, alpha: float = 10.0, symmetry: int = 1):
        super().__init__(diffusion, alpha, symmetry)
        self.dirichlet = dirichlet

    def order(self, test) -> int:
        return self.diffusion.order + self.dirichlet.order + 2 * test.order

    def evaluate(self, intersection, test, x, out):
        inside = intersection.inside
        x_in = intersection.inside_reference(x)
        n = intersection.unit_outer_normal(x)
        a = self.diffusion.local_evaluate(inside, x_in)
        g = self.dirichlet.local_evaluate(inside, x_in)
        sigma = self.penalty(test.order, _local_length(inside))
        out[...] = g * (sigma * test.evaluate(x_in) - self.symmetry * a * (test.jacobian(x_in) @ n))
