# pygdt.fem.reference
"""
Order-agnostic reference-element factory and reference-cell tables.

Reference cells: line [-1,1], triangle (0,0)-(1,0)-(0,1), quad [-1,1]^2.
Corners are stored counter-clockwise; facet k joins corner k and k+1.
"""
from functools import lru_cache
from importlib import import_module
import numpy as np

REFERENCE_DIM = {"line": 1, "tri": 2, "quad": 2}

REFERENCE_CORNERS = {
    "line": np.array([[-1.0], [1.0]]),
    "tri": np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]]),
    "quad": np.array([[-1.0, -1.0], [1.0, -1.0], [1.0, 1.0], [-1.0, 1.0]]),
}

REFERENCE_VOLUME = {"line": 2.0, "tri": 0.5, "quad": 4.0}

REFERENCE_CENTER = {
    "line": np.array([0.0]),
    "tri": np.array([1.0 / 3.0, 1.0 / 3.0]),
    "quad": np.array([0.0, 0.0]),
}

# local basis index of the P1/Q1 Lagrange function sitting on each corner
CORNER_DOFS = {
    "line": (0, 1),
    "tri": (0, 1, 2),
    "quad": (0, 1, 3, 2),
}

for _tbl in (REFERENCE_CORNERS, REFERENCE_CENTER):
    for _arr in _tbl.values():
        _arr.flags.writeable = False


def check_element_type(element_type: str) -> str:
    if element_type not in REFERENCE_DIM:
        raise KeyError(element_type)
    return element_type


def reference_facets(element_type: str):
    """Corner index tuples of the reference facets."""
    n = len(REFERENCE_CORNERS[check_element_type(element_type)])
    if element_type == "line":
        return tuple((k,) for k in range(n))
    return tuple((k, (k + 1) % n) for k in range(n))


def facet_to_reference(element_type: str, facet: int, x_facet) -> np.ndarray:
    """Map a point of the facet reference domain [-1,1] (or R^0) into the cell."""
    corners = REFERENCE_CORNERS[check_element_type(element_type)]
    ids = reference_facets(element_type)[facet]
    if element_type == "line":
        return corners[ids[0]].copy()
    t = float(np.asarray(x_facet, dtype=float).reshape(-1)[0])
    a, b = corners[ids[0]], corners[ids[1]]
    return a + 0.5 * (t + 1.0) * (b - a)


def number_of_basis_functions(element_type: str, order: int) -> int:
    if element_type == "line":
        return order + 1
    if element_type == "quad":
        return (order + 1) ** 2
    if element_type == "tri":
        return (order + 1) * (order + 2) // 2
    raise KeyError(element_type)


@lru_cache(maxsize=None)
def reference_nodes(element_type: str, order: int) -> np.ndarray:
    """Lagrange nodes in basis order; order 0 uses the cell center."""
    if order == 0:
        return REFERENCE_CENTER[check_element_type(element_type)][None, :].copy()
    if element_type == "line":
        return np.linspace(-1.0, 1.0, order + 1)[:, None]
    if element_type == "quad":
        t = np.linspace(-1.0, 1.0, order + 1)
        return np.array([[xi, eta] for eta in t for xi in t])
    if element_type == "tri":
        return np.array([[i / order, j / order]
                         for j in range(order + 1) for i in range(order + 1 - j)])
    raise KeyError(element_type)


def _key(x):
    return tuple(float(v) for v in np.asarray(x, dtype=float).reshape(-1))


def _frozen(a):
    a = np.asarray(a, dtype=float)
    a.flags.writeable = False
    return a


class Ref:
    """Lagrange basis on a reference cell; all results are read-only arrays."""

    def __init__(self, element_type, order, shape_lambda, deriv_lambdas):
        self.element_type = element_type
        self.order = order
        self.dim = REFERENCE_DIM[element_type]
        self.shape_lambda = shape_lambda
        self.deriv_lambdas = deriv_lambdas
        self.size = number_of_basis_functions(element_type, order)

    def shape(self, x):
        return self._shape(_key(x))

    def grad(self, x):
        return self._grad(_key(x))

    def derivative(self, x, alpha):
        return self._derivative(_key(x), tuple(alpha))

    @lru_cache(maxsize=4096)
    def _shape(self, key):
        return _frozen(np.asarray(self.shape_lambda(*key), dtype=float).ravel())

    @lru_cache(maxsize=4096)
    def _derivative(self, key, alpha):
        if alpha not in self.deriv_lambdas:
            raise ValueError(f"Derivative order {alpha} not computed. "
                             f"Adjust max_deriv_order >= {sum(alpha)}.")
        vals = np.asarray(self.deriv_lambdas[alpha](*key), dtype=float).ravel()
        if vals.size == 1 and self.size > 1:  # constant derivative of a P0/Q0 basis
            vals = np.full(self.size, float(vals[0]))
        return _frozen(vals)

    @lru_cache(maxsize=4096)
    def _grad(self, key):
        cols = []
        for d in range(self.dim):
            alpha = tuple(1 if k == d else 0 for k in range(self.dim))
            cols.append(self._derivative(key, alpha))
        return _frozen(np.column_stack(cols))

    def __repr__(self):
        return f"Ref({self.element_type!r}, order={self.order})"


@lru_cache(maxsize=None)
def get_reference(element_type: str, poly_order: int = 1, max_deriv_order: int = 1):
    if element_type == "quad":
        shape_l, deriv_lambdas = import_module("pygdt.fem.reference.quad_qn").quad_qn(poly_order, max_deriv_order)
    elif element_type == "tri":
        shape_l, deriv_lambdas = import_module("pygdt.fem.reference.tri_pn").tri_pn(poly_order, max_deriv_order)
    elif element_type == "line":
        shape_l, deriv_lambdas = import_module("pygdt.fem.reference.quad_qn").line_pn(poly_order, max_deriv_order)
    else:
        raise KeyError(element_type)
    return Ref(element_type, poly_order, shape_l, deriv_lambdas)
