"""pygdt.operators.products
L2, H1-semi and boundary-L2 products.

*Localizable* products integrate ``(range, source)`` for two given
functions in one grid walk and return a number.  *Assemblable* products
assemble the product matrix of a pair of spaces; ``apply2`` then evaluates
``range^T M source`` for DOF vectors.
"""
import logging
import math
from typing import Sequence

import numpy as np

from pygdt.assembly.apply_on import BoundaryIntersections
from pygdt.assembly.local_assemblers import Codim0Matrix, Codim1BoundaryMatrix
from pygdt.assembly.system import SystemAssembler
from pygdt.assembly.tmp_storage import TmpMatricesPool
from pygdt.assembly.walker import GridWalker
from pygdt.assembly.wrappers import Codim0Functor, Codim1Functor
from pygdt.la.containers import SparseMatrix
from pygdt.local.evaluations import BoundaryProduct, Elliptic, Product
from pygdt.local.operators import Codim0Integral, Codim1BoundaryIntegral

logger = logging.getLogger(__name__)


class LocalFunctionBasis:
    """A single function on one entity, seen as a basis of size one."""
    size = 1

    def __init__(self, function, entity):
        self.function = function
        self.entity = entity
        self.order = int(function.order)

    def evaluate(self, x_ref) -> np.ndarray:
        return np.array([float(self.function.local_evaluate(self.entity, x_ref))])

    def jacobian(self, x_ref) -> np.ndarray:
        return np.asarray(self.function.local_jacobian(self.entity, x_ref), dtype=float).reshape(1, -1)


class Difference:
    """``left - right`` for anything with local_evaluate / local_jacobian."""

    def __init__(self, left, right):
        self.left = left
        self.right = right
        self.order = max(int(left.order), int(right.order))

    def local_evaluate(self, entity, x_ref):
        return self.left.local_evaluate(entity, x_ref) - self.right.local_evaluate(entity, x_ref)

    def local_jacobian(self, entity, x_ref):
        return (np.asarray(self.left.local_jacobian(entity, x_ref), dtype=float)
                - np.asarray(self.right.local_jacobian(entity, x_ref), dtype=float))


# -------------------------------------------------------------------------
# localizable
# -------------------------------------------------------------------------
class _ProductSum:
    """Walker functor summing the 1x1 local products."""

    def __init__(self, product):
        self.product = product
        self.result = 0.0
        self.tmp = TmpMatricesPool(product.local_operator.num_tmp_objects_required(), 1, 1)

    def prepare(self):
        self.result = 0.0

    def fork(self):
        return type(self)(self.product)

    def join(self, other):
        self.result += other.result


class _VolumeProductSum(_ProductSum, Codim0Functor):
    def apply_local(self, entity):
        ret = np.zeros((1, 1))
        self.product.local_operator.apply(LocalFunctionBasis(self.product.range, entity),
                                          LocalFunctionBasis(self.product.source, entity), ret, self.tmp)
        self.result += ret[0, 0]


class _BoundaryProductSum(_ProductSum, Codim1Functor):
    def default_apply_on(self):
        return BoundaryIntersections()

    def apply_local(self, intersection):
        entity = intersection.inside
        ret = np.zeros((1, 1))
        self.product.local_operator.apply(LocalFunctionBasis(self.product.range, entity),
                                          LocalFunctionBasis(self.product.source, entity),
                                          intersection, ret, self.tmp)
        self.result += ret[0, 0]


class LocalizableProductBase:
    _functor_type = _VolumeProductSum

    def __init__(self, grid_view, range_, source=None, local_operator=None):
        self.grid_view = grid_view
        self.range = range_
        self.source = source if source is not None else range_
        self.local_operator = local_operator

    def functor(self):
        """A fresh walker functor; its ``result`` holds the product after a walk."""
        return self._functor_type(self)

    def apply2(self, *, parallel: bool = False, **walk_kwargs) -> float:
        walker = GridWalker(self.grid_view)
        functor = self.functor()
        walker.add(functor)
        walker.walk(parallel=parallel, **walk_kwargs)
        return functor.result


class L2Localizable(LocalizableProductBase):
    def __init__(self, grid_view, range_, source=None, over_integrate=None):
        super().__init__(grid_view, range_, source, Codim0Integral(Product(), over_integrate))


class H1SemiLocalizable(LocalizableProductBase):
    def __init__(self, grid_view, range_, source=None, over_integrate=None):
        super().__init__(grid_view, range_, source, Codim0Integral(Elliptic(), over_integrate))


class BoundaryL2Localizable(LocalizableProductBase):
    _functor_type = _BoundaryProductSum

    def __init__(self, grid_view, range_, source=None, over_integrate=None):
        super().__init__(grid_view, range_, source, Codim1BoundaryIntegral(BoundaryProduct(), over_integrate))


# -------------------------------------------------------------------------
# assemblable
# -------------------------------------------------------------------------
class AssemblableProductBase:
    def __init__(self, range_space, source_space=None, grid_view=None, matrix=None):
        self.range_space = range_space
        self.source_space = source_space if source_space is not None else range_space
        self.grid_view = grid_view if grid_view is not None else range_space.grid_view
        self.matrix = matrix if matrix is not None else SparseMatrix.from_pattern(
            range_space.compute_volume_pattern(self.source_space))
        self._assembled = False

    def add_to(self, assembler: SystemAssembler):
        raise NotImplementedError

    def assemble(self, *, parallel: bool = False, **walk_kwargs):
        if self._assembled:
            return self.matrix
        assembler = SystemAssembler(self.range_space, self.source_space, self.grid_view)
        self.add_to(assembler)
        assembler.assemble(parallel=parallel, **walk_kwargs)
        self._assembled = True
        return self.matrix

    def apply2(self, range_dofs, source_dofs) -> float:
        m = self.assemble().to_scipy()
        r = getattr(range_dofs, "dofs", range_dofs)
        s = getattr(source_dofs, "dofs", source_dofs)
        return float(np.asarray(r) @ (m @ np.asarray(s)))


class L2Assemblable(AssemblableProductBase):
    def __init__(self, range_space, source_space=None, grid_view=None, matrix=None, over_integrate=None):
        super().__init__(range_space, source_space, grid_view, matrix)
        self.local_assembler = Codim0Matrix(Codim0Integral(Product(), over_integrate))

    def add_to(self, assembler):
        assembler.add(self.local_assembler, self.matrix)


class H1SemiAssemblable(AssemblableProductBase):
    def __init__(self, range_space, source_space=None, grid_view=None, matrix=None, over_integrate=None):
        super().__init__(range_space, source_space, grid_view, matrix)
        self.local_assembler = Codim0Matrix(Codim0Integral(Elliptic(), over_integrate))

    def add_to(self, assembler):
        assembler.add(self.local_assembler, self.matrix)


class BoundaryL2Assemblable(AssemblableProductBase):
    def __init__(self, range_space, source_space=None, grid_view=None, matrix=None, over_integrate=None):
        super().__init__(range_space, source_space, grid_view, matrix)
        self.local_assembler = Codim1BoundaryMatrix(Codim1BoundaryIntegral(BoundaryProduct(), over_integrate))

    def add_to(self, assembler):
        assembler.add(self.local_assembler, self.matrix, BoundaryIntersections())


# -------------------------------------------------------------------------
# norms and errors
# -------------------------------------------------------------------------
def l2_norm(function, grid_view, over_integrate: int = 2) -> float:
    return math.sqrt(max(L2Localizable(grid_view, function, over_integrate=over_integrate).apply2(), 0.0))


def h1_semi_norm(function, grid_view, over_integrate: int = 2) -> float:
    return math.sqrt(max(H1SemiLocalizable(grid_view, function, over_integrate=over_integrate).apply2(), 0.0))


def l2_error(discrete, exact, over_integrate: int = 2, relative: bool = False) -> float:
    """‖u_h − u‖_L2 (divided by ‖u‖_L2 when ``relative``)."""
    gv = discrete.space.grid_view
    err = l2_norm(Difference(discrete, exact), gv, over_integrate)
    if not relative:
        return err
    ref = l2_norm(exact, gv, over_integrate)
    return err / ref if ref > 1e-14 else err


def h1_semi_error(discrete, exact, over_integrate: int = 2) -> float:
    return h1_semi_norm(Difference(discrete, exact), discrete.space.grid_view, over_integrate)


def eoc(errors: Sequence[float], widths: Sequence[float]) -> np.ndarray:
    """Estimated orders of convergence between consecutive refinements."""
    e = np.asarray(errors, dtype=float)
    h = np.asarray(widths, dtype=float)
    if len(e) != len(h):
        raise ValueError("need one grid width per error")
    return np.log(e[:-1] / e[1:]) / np.log(h[:-1] / h[1:])
