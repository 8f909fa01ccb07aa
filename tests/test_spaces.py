import numpy as np
import pytest

from pygdt.exceptions import MapperError, NotAvailableForTheseDimensions
from pygdt.fem import (AllDirichletBoundaryInfo, ContinuousLagrangeSpace, DirichletConstraints,
                       DiscontinuousLagrangeSpace, FiniteVolumeSpace, FunctionBasedBoundaryInfo)
from pygdt.utils.meshgen import make_cube_grid


@pytest.fixture
def grid():
    return make_cube_grid([0, 0], [1, 1], [3, 3])


def test_space_sizes(grid):
    assert ContinuousLagrangeSpace(grid).mapper.size == 16
    assert DiscontinuousLagrangeSpace(grid, 1).mapper.size == 36
    assert DiscontinuousLagrangeSpace(grid, 2).mapper.max_local_size == 9
    assert FiniteVolumeSpace(grid).mapper.size == 9
    assert FiniteVolumeSpace(grid, dim_range=2).mapper.size == 18
    tri = make_cube_grid([0, 0], [1, 1], [2, 2], 'tri')
    assert DiscontinuousLagrangeSpace(tri, 2).mapper.size == 48


def test_unsupported_spaces(grid):
    with pytest.raises(NotImplementedError):
        ContinuousLagrangeSpace(grid, order=2)
    with pytest.raises(ValueError):
        ContinuousLagrangeSpace(make_cube_grid([0, 0], [1, 1], [2, 2], periodic=True))
    with pytest.raises(NotAvailableForTheseDimensions):
        FiniteVolumeSpace(grid, dim_range=2).base_function_set(grid.entity(0))


def test_continuous_mapper_shares_vertex_dofs(grid):
    space = ContinuousLagrangeSpace(grid)
    shared = set(space.mapper.global_indices(grid.entity(0))) & set(space.mapper.global_indices(grid.entity(1)))
    assert len(shared) == 2
    # local DOF i sits on the node the reference basis function i interpolates at
    entity = grid.entity(4)
    basis = space.base_function_set(entity)
    from pygdt.fem.reference import reference_nodes
    for i, p in enumerate(reference_nodes('quad', 1)):
        vid = space.mapper.global_indices(entity)[i]
        assert np.allclose(entity.geometry.to_global(p), grid.mesh.vertices[vid])
        assert np.isclose(basis.evaluate(p)[i], 1.0)


def test_discontinuous_mapper_and_errors(grid):
    mapper = DiscontinuousLagrangeSpace(grid, 1).mapper
    assert list(mapper.global_indices(grid.entity(2))) == [8, 9, 10, 11]
    assert mapper.global_index(grid.entity(2), 3) == 11
    with pytest.raises(MapperError):
        mapper.global_index(grid.entity(2), 4)


def test_patterns(grid):
    fv = FiniteVolumeSpace(grid)
    assert fv.compute_volume_pattern().nnz == 9
    # 12 inner facets, each coupling two cells in both directions
    assert fv.compute_face_pattern().nnz == 24
    assert fv.compute_face_and_volume_pattern().nnz == 33
    cg = ContinuousLagrangeSpace(grid)
    pattern = cg.compute_volume_pattern()
    assert pattern.contains(0, 5) and not pattern.contains(0, 10)


def test_periodic_face_pattern_couples_across_the_boundary():
    gv = make_cube_grid(0.0, 1.0, 4, periodic=True)
    pattern = FiniteVolumeSpace(gv).compute_face_and_volume_pattern()
    assert pattern.contains(0, 3) and pattern.contains(3, 0)


def test_dirichlet_constraints(grid):
    space = ContinuousLagrangeSpace(grid)
    constraints = DirichletConstraints(space, AllDirichletBoundaryInfo(), values=lambda x: x[0] + x[1])
    assert len(constraints) == 12
    for dof in constraints.dirichlet_dofs:
        x = grid.mesh.vertices[dof]
        assert np.isclose(constraints.value(dof), x[0] + x[1])
    assert not constraints.is_constrained(5)
    local = constraints.local_constraints(grid.entity(4))
    assert len(local.constrained_rows) == 0


def test_partial_dirichlet_constraints(grid):
    space = ContinuousLagrangeSpace(grid)
    info = FunctionBasedBoundaryInfo(dirichlet=lambda x, y: np.isclose(x, 0.0), default='neumann')
    constraints = DirichletConstraints(space, info)
    assert sorted(grid.mesh.vertices[constraints.dirichlet_dofs][:, 0]) == [0.0] * 4
    local = constraints.local_constraints(grid.entity(0))
    assert set(local.constrained_rows) == {0, 4}
    diagonal = local.values[local.rows == local.cols]
    assert np.allclose(diagonal, 1.0) and len(diagonal) == 2


def test_dirichlet_constraints_need_nodal_dofs(grid):
    with pytest.raises(ValueError):
        DirichletConstraints(FiniteVolumeSpace(grid), AllDirichletBoundaryInfo())
