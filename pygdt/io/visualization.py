"""pygdt.io.visualization"""
import numpy as np
from matplotlib.collections import LineCollection, PolyCollection
import matplotlib.pyplot as plt
import matplotlib.tri as mtri


_EDGE_COLOR = {
    "boundary": "dimgray",
    "periodic": "tab:purple",
    "dirichlet": "tab:red",
    "neumann": "tab:blue",
    "default": "black",
}


def _edge_color(facet):
    if facet.tag:
        return _EDGE_COLOR.get(facet.tag, _EDGE_COLOR["default"])
    if facet.periodic:
        return _EDGE_COLOR["periodic"]
    if facet.right is None:
        return _EDGE_COLOR["boundary"]
    return _EDGE_COLOR["default"]


def plot_mesh(grid_view, *, plot_nodes=True, edge_colors=True, element_ids=False, show=True, ax=None):
    """
    Plot a 2D grid: cell outlines, facets (boundary / periodic / tagged
    facets colored) and optionally vertices and element indices.
    """
    mesh = grid_view.mesh
    if mesh.dimworld != 2:
        raise ValueError("plot_mesh draws 2D grids only")
    if ax is None:
        fig, ax = plt.subplots(figsize=(8, 8))

    polys = [mesh.element_corners(eid) for eid in range(mesh.n_elements)]
    ax.add_collection(PolyCollection(polys, facecolors=(0.9, 0.9, 0.9, 0.5), edgecolors="none", zorder=1))

    segments = [mesh.vertices[list(f.vertices)] for f in mesh.facets_list]
    colors = [_edge_color(f) if edge_colors else "black" for f in mesh.facets_list]
    ax.add_collection(LineCollection(segments, colors=colors, linewidths=0.9, zorder=2))

    if plot_nodes:
        ax.plot(mesh.vertices[:, 0], mesh.vertices[:, 1], "ko", markersize=2, zorder=3)
    if element_ids:
        for entity in grid_view.elements():
            cx, cy = entity.geometry.center
            ax.text(cx, cy, str(entity.index), ha="center", va="center", fontsize=7)

    ax.set_aspect("equal", adjustable="box")
    ax.autoscale_view()
    if show:
        plt.show()
    return ax


def plot_solution(discrete_function, *, show=True, ax=None, cmap="viridis", samples_per_cell=5, **kwargs):
    """
    1D: piecewise curve of the discrete function.
    2D: cell colors for FV/DG0, ``tripcolor`` of the vertex values otherwise.
    """
    space = discrete_function.space
    gv = space.grid_view
    mesh = gv.mesh
    if ax is None:
        fig, ax = plt.subplots(figsize=(8, 6) if mesh.dim == 1 else (8, 8))

    if mesh.dim == 1:
        # each cell separately so jumps of discontinuous functions stay visible
        ref = np.linspace(-1.0, 1.0, samples_per_cell if space.order > 0 else 2)
        for entity in gv.elements():
            xs = [entity.geometry.to_global([r])[0] for r in ref]
            ys = [float(np.atleast_1d(discrete_function.local_evaluate(entity, np.array([r])))[0]) for r in ref]
            ax.plot(xs, ys, color=kwargs.get("color", "tab:blue"), linewidth=kwargs.get("linewidth", 1.2))
        ax.set_xlabel("x")
        ax.set_ylabel(discrete_function.name)
    elif space.order == 0:
        polys = [mesh.element_corners(eid) for eid in range(mesh.n_elements)]
        values = np.array([float(np.atleast_1d(discrete_function.local_dofs(e))[0]) for e in gv.elements()])
        coll = PolyCollection(polys, array=values, cmap=cmap, edgecolors="face")
        ax.add_collection(coll)
        plt.colorbar(coll, ax=ax, label=discrete_function.name)
        ax.set_aspect("equal", adjustable="box")
        ax.autoscale_view()
    else:
        if space.continuous:
            values = discrete_function.dofs
        else:
            # average the cell-wise corner values onto the vertices
            from pygdt.fem.reference import REFERENCE_CORNERS
            values = np.zeros(mesh.n_vertices)
            counts = np.zeros(mesh.n_vertices)
            corners = REFERENCE_CORNERS[mesh.element_type]
            for entity in gv.elements():
                for k, vid in enumerate(mesh.cells[entity.index]):
                    values[vid] += discrete_function.local_evaluate(entity, corners[k])
                    counts[vid] += 1
            values /= np.maximum(counts, 1)
        if mesh.element_type == "quad":
            tris = np.vstack([mesh.cells[:, [0, 1, 2]], mesh.cells[:, [0, 2, 3]]])
        else:
            tris = mesh.cells
        triang = mtri.Triangulation(mesh.vertices[:, 0], mesh.vertices[:, 1], tris)
        tpc = ax.tripcolor(triang, values, cmap=cmap, shading="gouraud")
        plt.colorbar(tpc, ax=ax, label=discrete_function.name)
        ax.set_aspect("equal", adjustable="box")

    ax.set_title(kwargs.get("title", discrete_function.name))
    if show:
        plt.show()
    return ax
