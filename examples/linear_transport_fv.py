"""Example: 1D periodic linear transport u_t + u_x = 0 with a first-order FV scheme"""
import numpy as np

from pygdt.discretefunction import interpolate
from pygdt.fem import FiniteVolumeSpace
from pygdt.functions import FluxFunction
from pygdt.io.visualization import plot_solution
from pygdt.local import make_numerical_flux
from pygdt.operators import AdvectionFvOperator, explicit_euler_step
from pygdt.utils.meshgen import make_cube_grid

n, t_end, cfl = 128, 0.5, 0.5
gv = make_cube_grid(0.0, 1.0, n, periodic=True)
space = FiniteVolumeSpace(gv)
u0 = interpolate(lambda x: np.exp(-100*(x[0]-0.3)**2), space, name="u_0")

for name in ("upwind", "lax-friedrichs", "engquist-osher"):
    op = AdvectionFvOperator(space, make_numerical_flux(name, FluxFunction("u[0]")))
    dt = cfl/n
    u, t = u0, 0.0
    while t < t_end - 1e-12:
        u = explicit_euler_step(op, u, min(dt, t_end - t))
        t += dt
    u.name = f"u({t_end}) {name}"
    print(f"{name:>15}: mass {u.dofs.sum()/n:.6f} (initial {u0.dofs.sum()/n:.6f}), max {u.dofs.max():.4f}")
    plot_solution(u, show=False)
plot_solution(u0)
