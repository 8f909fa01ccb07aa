"""pygdt.utils.meshgen
Structured grids for quick tests and examples.
"""
import logging
from typing import Optional, Sequence, Tuple, Union

import numba
import numpy as np

from pygdt.core.gridview import GridView
from pygdt.core.mesh import Mesh

__all__ = ["interval", "structured_quad", "structured_triangles", "make_cube_grid"]

logger = logging.getLogger(__name__)


@numba.jit(nopython=True, cache=True)
def _tensor_coords(x_coords: np.ndarray, y_coords: np.ndarray):
    nx1, ny1 = x_coords.shape[0], y_coords.shape[0]
    coords = np.zeros((nx1 * ny1, 2), dtype=np.float64)
    for j in range(ny1):
        for i in range(nx1):
            coords[j * nx1 + i, 0] = x_coords[i]
            coords[j * nx1 + i, 1] = y_coords[j]
    return coords


@numba.jit(nopython=True, cache=True)
def _quad_cells(nx: int, ny: int):
    cells = np.empty((nx * ny, 4), dtype=np.int64)
    for el_idx in range(nx * ny):
        el_j = el_idx // nx
        el_i = el_idx % nx
        bl = el_j * (nx + 1) + el_i
        # corners counter-clockwise: bottom-left, bottom-right, top-right, top-left
        cells[el_idx, 0] = bl
        cells[el_idx, 1] = bl + 1
        cells[el_idx, 2] = bl + nx + 2
        cells[el_idx, 3] = bl + nx + 1
    return cells


@numba.jit(nopython=True, cache=True)
def _triangle_cells(nx: int, ny: int):
    cells = np.empty((2 * nx * ny, 3), dtype=np.int64)
    for q in range(nx * ny):
        qj = q // nx
        qi = q % nx
        bl = qj * (nx + 1) + qi
        br = bl + 1
        tl = bl + nx + 1
        tr = tl + 1
        # split every quad along its bottom-left → top-right diagonal
        cells[2 * q, 0] = bl
        cells[2 * q, 1] = br
        cells[2 * q, 2] = tr
        cells[2 * q + 1, 0] = bl
        cells[2 * q + 1, 1] = tr
        cells[2 * q + 1, 2] = tl
    return cells


def interval(a: float, b: float, n: int):
    """Vertices and cells of ``n`` equal line cells on [a, b]."""
    if n < 1:
        raise ValueError("need at least one cell")
    vertices = np.linspace(a, b, n + 1)[:, None]
    cells = np.column_stack([np.arange(n), np.arange(1, n + 1)]).astype(np.int64)
    return vertices, cells


def structured_quad(Lx: float, Ly: float, *, nx: int, ny: int,
                    offset: Optional[Tuple[float, float]] = None):
    """Vertices and counter-clockwise Q1 cells of an nx × ny grid on [0,Lx]×[0,Ly]."""
    if nx < 1 or ny < 1:
        raise ValueError("need at least one cell per direction")
    coords = _tensor_coords(np.linspace(0.0, Lx, nx + 1), np.linspace(0.0, Ly, ny + 1))
    if offset is not None:
        coords += np.asarray(offset, dtype=float)
    return coords, _quad_cells(nx, ny)


def structured_triangles(Lx: float, Ly: float, *, nx_quads: int, ny_quads: int,
                         offset: Optional[Tuple[float, float]] = None):
    """Like :func:`structured_quad` with every quad split into two triangles."""
    if nx_quads < 1 or ny_quads < 1:
        raise ValueError("need at least one cell per direction")
    coords = _tensor_coords(np.linspace(0.0, Lx, nx_quads + 1), np.linspace(0.0, Ly, ny_quads + 1))
    if offset is not None:
        coords += np.asarray(offset, dtype=float)
    return coords, _triangle_cells(nx_quads, ny_quads)


def make_cube_grid(lower: Union[float, Sequence[float]],
                   upper: Union[float, Sequence[float]],
                   num_elements: Union[int, Sequence[int]],
                   element_type: Optional[str] = None,
                   *,
                   periodic: Union[bool, Sequence[int]] = False) -> GridView:
    """
    Uniform grid view on the box [lower, upper].

    The dimension follows the length of ``lower``; scalars give a 1-d grid.
    ``periodic=True`` identifies opposite faces in every direction, a sequence
    of axes identifies only those.
    """
    lower = np.atleast_1d(np.asarray(lower, dtype=float))
    upper = np.atleast_1d(np.asarray(upper, dtype=float))
    dim = len(lower)
    counts = np.broadcast_to(np.atleast_1d(np.asarray(num_elements, dtype=int)), (dim,))
    if element_type is None:
        element_type = 'line' if dim == 1 else 'quad'
    if dim == 1:
        if element_type != 'line':
            raise ValueError(f"1-d grids are made of 'line' cells, not {element_type!r}")
        vertices, cells = interval(lower[0], upper[0], int(counts[0]))
    elif dim == 2:
        length = upper - lower
        if element_type == 'quad':
            vertices, cells = structured_quad(length[0], length[1], nx=int(counts[0]), ny=int(counts[1]),
                                              offset=tuple(lower))
        elif element_type == 'tri':
            vertices, cells = structured_triangles(length[0], length[1], nx_quads=int(counts[0]),
                                                   ny_quads=int(counts[1]), offset=tuple(lower))
        else:
            raise ValueError(f"unknown 2-d element type {element_type!r}")
    else:
        raise ValueError(f"cube grids are available in 1 and 2 dimensions, not {dim}")

    if periodic is True:
        axes = tuple(range(dim))
    elif periodic is False:
        axes = ()
    else:
        axes = tuple(periodic)
    logger.debug(f"make_cube_grid: {element_type} {tuple(int(c) for c in counts)} on {lower}..{upper}")
    return GridView(Mesh(vertices, cells, element_type, periodic_axes=axes))
