"""pygdt.functions
Analytic functions that induce local operators, and flux functions for
hyperbolic problems.  Expressions are SymPy objects or strings; in strings the
coordinates are written ``x[0]``, ``x[1]`` and states ``u[0]``, ``u[1]``, ...
"""
import abc
import logging
import re
from typing import Callable, Dict, Mapping, Optional, Sequence

import numpy as np
import sympy as sp

logger = logging.getLogger(__name__)

# coordinate symbols, as in the symbolic analytic helpers
x, y = sp.symbols("x y")
_COORDS = (x, y)


def _parse(expr, local_names: Mapping[str, sp.Symbol]):
    if isinstance(expr, sp.Basic):
        return expr
    if isinstance(expr, (int, float)):
        return sp.Float(expr) if isinstance(expr, float) else sp.Integer(expr)
    text = re.sub(r"x\[(\d+)\]", lambda m: ("x", "y")[int(m.group(1))], str(expr))
    text = re.sub(r"u\[(\d+)\]", r"u_\1", text)
    return sp.sympify(text, locals=dict(local_names))


def _as_float_array(val, shape):
    return np.broadcast_to(np.asarray(val, dtype=float), shape).astype(float)


class FunctionInterface(abc.ABC):
    """Scalar function on the physical domain with a polynomial order hint."""

    dim_domain: int
    order: int

    @abc.abstractmethod
    def evaluate(self, x) -> float: ...

    @abc.abstractmethod
    def jacobian(self, x) -> np.ndarray: ...

    def local_evaluate(self, entity, x_ref) -> float:
        return self.evaluate(entity.geometry.to_global(x_ref))

    def local_jacobian(self, entity, x_ref) -> np.ndarray:
        return self.jacobian(entity.geometry.to_global(x_ref))

    def __call__(self, x):
        return self.evaluate(x)


class ConstantFunction(FunctionInterface):
    def __init__(self, value: float, dim_domain: int = 2):
        self.value = float(value)
        self.dim_domain = dim_domain
        self.order = 0

    def evaluate(self, x) -> float:
        return self.value

    def jacobian(self, x) -> np.ndarray:
        return np.zeros(self.dim_domain)

    def __repr__(self):
        return f"ConstantFunction({self.value})"


class ExpressionFunction(FunctionInterface):
    """
    Function given by a SymPy expression in ``x``/``y`` (or a string in
    ``x[0]``, ``x[1]``).  The gradient is derived symbolically unless given.
    """

    def __init__(self, expression, order: int, dim_domain: int = 2, gradient: Optional[Sequence] = None,
                 name: str = "f"):
        if dim_domain not in (1, 2):
            raise ValueError(f"dim_domain must be 1 or 2, got {dim_domain}")
        self.dim_domain = dim_domain
        self.order = int(order)
        self.name = name
        coords = _COORDS[:dim_domain]
        self.sympy_expr = _parse(expression, {"x": x, "y": y})
        if gradient is None:
            self.sympy_grad = [sp.diff(self.sympy_expr, c) for c in coords]
        else:
            self.sympy_grad = [_parse(g, {"x": x, "y": y}) for g in gradient]
            if len(self.sympy_grad) != dim_domain:
                raise ValueError(f"gradient needs {dim_domain} components, got {len(self.sympy_grad)}")
        self._func = sp.lambdify(coords, self.sympy_expr, "numpy")
        self._grad = [sp.lambdify(coords, g, "numpy") for g in self.sympy_grad]

    def evaluate(self, x) -> float:
        X = np.asarray(x, dtype=float).reshape(-1)
        return float(self._func(*X[:self.dim_domain]))

    def jacobian(self, x) -> np.ndarray:
        X = np.asarray(x, dtype=float).reshape(-1)[:self.dim_domain]
        return np.array([float(g(*X)) for g in self._grad])

    def __repr__(self):
        return f"ExpressionFunction({self.name}={self.sympy_expr}, order={self.order})"


class LambdaFunction(FunctionInterface):
    """Wraps plain callables ``fn(x)`` and optionally ``grad(x)``."""

    def __init__(self, fn: Callable, order: int, dim_domain: int = 2, gradient: Optional[Callable] = None):
        self._fn = fn
        self._gradient = gradient
        self.order = int(order)
        self.dim_domain = dim_domain

    def evaluate(self, x) -> float:
        return float(self._fn(np.asarray(x, dtype=float)))

    def jacobian(self, x) -> np.ndarray:
        if self._gradient is None:
            raise NotImplementedError("LambdaFunction was built without a gradient")
        return np.asarray(self._gradient(np.asarray(x, dtype=float)), dtype=float).reshape(self.dim_domain)


def _polynomial_order(exprs, symbols) -> Optional[int]:
    degree = 0
    for e in exprs:
        if e.free_symbols.isdisjoint(symbols):
            continue
        try:
            degree = max(degree, sp.Poly(e, *symbols).total_degree())
        except sp.PolynomialError:
            return None
    return degree


class FluxFunction:
    """
    Physical flux f: R^m → R^{m×d} of a conservation law ``u_t + div f(u) = 0``.

    ``evaluate(u)`` returns shape (m, d) and ``jacobian(u)`` returns shape
    (d, m, m) with ``jacobian(u)[s] = ∂ f[:, s] / ∂u``.
    """

    def __init__(self, expressions, dim_domain: int = 1, dim_range: int = 1, order: Optional[int] = None,
                 parameters: Sequence[str] = ()):
        self.dim_domain = int(dim_domain)
        self.dim_range = int(dim_range)
        self.parameter_names = tuple(parameters)
        self._states = sp.symbols(f"u_0:{self.dim_range}")
        self._params = sp.symbols(self.parameter_names) if self.parameter_names else ()
        if isinstance(self._params, sp.Symbol):
            self._params = (self._params,)
        names = {f"u_{i}": s for i, s in enumerate(self._states)}
        names.update({n: s for n, s in zip(self.parameter_names, self._params)})

        table = np.array(expressions, dtype=object)
        if table.ndim == 0:
            table = table.reshape(1, 1)
        elif table.ndim == 1:
            # scalar states: one expression per direction; 1-d systems: one per component
            table = table.reshape(1, -1) if self.dim_range == 1 else table.reshape(-1, 1)
        if table.shape != (self.dim_range, self.dim_domain):
            raise ValueError(f"flux expressions must have shape {(self.dim_range, self.dim_domain)}, "
                             f"got {table.shape}")
        self.sympy_flux = sp.Matrix(self.dim_range, self.dim_domain,
                                    lambda i, s: _parse(table[i, s], names))
        self.sympy_jacobian = [self.sympy_flux[:, s].jacobian(sp.Matrix(self._states))
                               for s in range(self.dim_domain)]
        args = tuple(self._states) + tuple(self._params)
        self._f = sp.lambdify(args, self.sympy_flux, "numpy")
        self._df = [sp.lambdify(args, J, "numpy") for J in self.sympy_jacobian]
        if order is None:
            order = _polynomial_order(list(self.sympy_flux), self._states)
            if order is None:
                raise ValueError("non-polynomial flux needs an explicit order")
        self.order = int(order)

    @classmethod
    def from_callables(cls, flux: Callable, jacobian: Callable, dim_domain: int = 1, dim_range: int = 1,
                       order: int = 1) -> "CallableFluxFunction":
        return CallableFluxFunction(flux, jacobian, dim_domain, dim_range, order)

    def _args(self, u, param: Optional[Dict[str, float]]):
        u = np.asarray(u, dtype=float).reshape(-1)
        if u.size != self.dim_range:
            raise ValueError(f"state has {u.size} components, flux expects {self.dim_range}")
        param = param or {}
        missing = [n for n in self.parameter_names if n not in param]
        if missing:
            raise KeyError(f"missing flux parameters {missing}")
        return tuple(u) + tuple(float(param[n]) for n in self.parameter_names)

    def evaluate(self, u, param=None) -> np.ndarray:
        return _as_float_array(self._f(*self._args(u, param)), (self.dim_range, self.dim_domain))

    def jacobian(self, u, param=None) -> np.ndarray:
        args = self._args(u, param)
        out = np.empty((self.dim_domain, self.dim_range, self.dim_range))
        for s, df in enumerate(self._df):
            out[s] = _as_float_array(df(*args), (self.dim_range, self.dim_range))
        return out

    def __repr__(self):
        return f"FluxFunction({self.sympy_flux.tolist()}, order={self.order})"


class CallableFluxFunction(FluxFunction):
    """Flux given by numpy callables ``flux(u, param) -> (m, d)`` and ``jacobian(u, param) -> (d, m, m)``."""

    def __init__(self, flux: Callable, jacobian: Callable, dim_domain: int = 1, dim_range: int = 1,
                 order: int = 1):
        self.dim_domain = int(dim_domain)
        self.dim_range = int(dim_range)
        self.order = int(order)
        self.parameter_names = ()
        self._flux = flux
        self._jac = jacobian

    def evaluate(self, u, param=None) -> np.ndarray:
        u = np.asarray(u, dtype=float).reshape(self.dim_range)
        return _as_float_array(self._flux(u, param), (self.dim_range, self.dim_domain))

    def jacobian(self, u, param=None) -> np.ndarray:
        u = np.asarray(u, dtype=float).reshape(self.dim_range)
        return _as_float_array(self._jac(u, param), (self.dim_domain, self.dim_range, self.dim_range))

    def __repr__(self):
        return f"CallableFluxFunction(d={self.dim_domain}, m={self.dim_range}, order={self.order})"
