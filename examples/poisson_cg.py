"""Example: Poisson on [-1,1]^2 with P1/Q1 continuous Lagrange elements, EOC table"""
import numpy as np, scipy.sparse.linalg as spla
import sympy as sp

from pygdt.assembly import SystemAssembler
from pygdt.discretefunction import DiscreteFunction
from pygdt.fem import AllDirichletBoundaryInfo, ContinuousLagrangeSpace, DirichletConstraints
from pygdt.functions import ExpressionFunction, x, y
from pygdt.io.visualization import plot_solution
from pygdt.la import SparseMatrix, Vector
from pygdt.local import Codim0Integral, Codim0IntegralFunctional, Elliptic, ProductFunctional
from pygdt.operators import eoc, h1_semi_error, l2_error
from pygdt.utils.meshgen import make_cube_grid

u_sym = sp.cos(sp.pi*x/2)*sp.cos(sp.pi*y/2)
u_exact = ExpressionFunction(u_sym, order=4, name="u")
f_rhs = ExpressionFunction(sp.pi**2/2*u_sym, order=4, name="f")

l2, h1, widths = [], [], []
for n in (4, 8, 16, 32):
    gv = make_cube_grid([-1, -1], [1, 1], [n, n], 'quad')
    space = ContinuousLagrangeSpace(gv)
    K = SparseMatrix.from_pattern(space.compute_volume_pattern())
    F = Vector(space.mapper.size)
    dbc = DirichletConstraints(space, AllDirichletBoundaryInfo())
    assembler = SystemAssembler(space)
    assembler.add(Codim0Integral(Elliptic()), K)
    assembler.add(Codim0IntegralFunctional(ProductFunctional(f_rhs)), F)
    assembler.add(dbc, K)
    assembler.add(dbc, F)
    assembler.assemble(parallel=True)
    uh = DiscreteFunction(space, Vector(data=spla.spsolve(K.to_scipy().tocsc(), F.array)), name="u_h")
    l2.append(l2_error(uh, u_exact)); h1.append(h1_semi_error(uh, u_exact)); widths.append(2.0/n)

print(f"{'h':>8} {'L2':>12} {'EOC':>6} {'H1-semi':>12} {'EOC':>6}")
rates_l2, rates_h1 = np.r_[np.nan, eoc(l2, widths)], np.r_[np.nan, eoc(h1, widths)]
for h, e0, r0, e1, r1 in zip(widths, l2, rates_l2, h1, rates_h1):
    print(f"{h:8.4f} {e0:12.4e} {r0:6.2f} {e1:12.4e} {r1:6.2f}")
plot_solution(uh)
