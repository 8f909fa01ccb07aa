import numpy as np
import pytest

from pygdt.assembly import (Codim0Matrix, Codim0Vector, Codim1BoundaryMatrix, Codim1CouplingMatrix,
                            Codim1Vector, InnerIntersections, SystemAssembler)
from pygdt.exceptions import DimensionMismatch, PreconditionViolation
from pygdt.fem import (AllDirichletBoundaryInfo, ContinuousLagrangeSpace, DirichletConstraints,
                       DiscontinuousLagrangeSpace)
from pygdt.functions import ExpressionFunction
from pygdt.la import DenseMatrix, SparseMatrix, Vector
from pygdt.local import (Codim0Integral, Codim0IntegralFunctional, Codim1BoundaryIntegral,
                         Codim1CouplingIntegral, Codim1IntegralFunctional, Elliptic, NeumannFunctional, Product,
                         ProductFunctional, SIPGCoupling, SIPGDirichletBoundary, SIPGDirichletFunctional)
from pygdt.utils.meshgen import make_cube_grid

source = ExpressionFunction("x[0]*x[1] + 1", order=2)


def _sipg_system(space, parallel=False, **kw):
    matrix = SparseMatrix.from_pattern(space.compute_face_and_volume_pattern())
    rhs = Vector(space.mapper.size)
    assembler = SystemAssembler(space)
    assembler.add(Codim0Integral(Elliptic()), matrix)
    assembler.add(Codim1CouplingIntegral(SIPGCoupling()), matrix)
    assembler.add(Codim1BoundaryIntegral(SIPGDirichletBoundary()), matrix)
    assembler.add(Codim0IntegralFunctional(ProductFunctional(source)), rhs)
    assembler.add(Codim1IntegralFunctional(SIPGDirichletFunctional(source)), rhs)
    assembler.assemble(parallel=parallel, **kw)
    return matrix, rhs


def test_incompatible_container_fails_at_add():
    gv = make_cube_grid([0, 0], [1, 1], [2, 2])
    space = ContinuousLagrangeSpace(gv)
    assembler = SystemAssembler(space)
    with pytest.raises(DimensionMismatch):
        assembler.add(Codim0Integral(Product()), DenseMatrix(8, 9))
    with pytest.raises(DimensionMismatch):
        assembler.add(Codim0IntegralFunctional(ProductFunctional(source)), Vector(4))
    with pytest.raises(TypeError):
        assembler.add(Codim0Integral(Product()), Vector(9))
    with pytest.raises(TypeError):
        assembler.add(object(), Vector(9))
    assert len(assembler) == 0


def test_mass_matrix_and_additive_registrations():
    gv = make_cube_grid([0, 0], [2, 1], [4, 3], 'tri')
    space = ContinuousLagrangeSpace(gv)
    mass = SparseMatrix.from_pattern(space.compute_volume_pattern())
    assembler = SystemAssembler(space)
    local = Codim0Matrix(Codim0Integral(Product()))
    assembler.add(local, mass)
    assembler.add(local, mass)
    assembler.assemble()
    assert np.isclose(mass.to_dense().sum(), 2 * 2.0)
    assert np.allclose(mass.to_dense(), mass.to_dense().T)


def test_reassemble_without_clear_stack():
    gv = make_cube_grid([0, 0], [1, 1], [2, 2])
    space = ContinuousLagrangeSpace(gv)
    rhs = Vector(space.mapper.size)
    assembler = SystemAssembler(space)
    assembler.add(Codim0Vector(Codim0IntegralFunctional(ProductFunctional(source))), rhs)
    assembler.assemble(clear_stack=False)
    once = rhs.array.copy()
    assembler.assemble()
    assert np.allclose(rhs.array, 2 * once)
    assert len(assembler) == 0


def test_constraints_produce_unit_rows():
    gv = make_cube_grid([0, 0], [1, 1], [3, 3])
    space = ContinuousLagrangeSpace(gv)
    constraints = DirichletConstraints(space, AllDirichletBoundaryInfo(), values=lambda x: 2.0 + x[0])
    matrix = SparseMatrix.from_pattern(space.compute_volume_pattern())
    rhs = Vector(space.mapper.size)
    assembler = SystemAssembler(space)
    assembler.add(constraints, matrix)
    assembler.add(constraints, rhs)
    # registered after the constraints, still overwritten by them
    assembler.add(Codim0Integral(Elliptic()), matrix)
    assembler.add(Codim0IntegralFunctional(ProductFunctional(source)), rhs)
    assembler.assemble()
    dense = matrix.to_dense()
    for dof in constraints.dirichlet_dofs:
        expected = np.zeros(space.mapper.size)
        expected[dof] = 1.0
        assert np.allclose(dense[dof], expected)
        assert np.isclose(rhs.array[dof], 2.0 + gv.mesh.vertices[dof][0])
    free = [i for i in range(space.mapper.size) if not constraints.is_constrained(i)]
    assert all(dense[i, i] > 0 for i in free)


def test_explicit_local_assemblers_match_operators():
    gv = make_cube_grid([0, 0], [1, 1], [3, 2])
    space = DiscontinuousLagrangeSpace(gv, 1)
    pattern = space.compute_face_and_volume_pattern()
    a = SparseMatrix.from_pattern(pattern)
    b = SparseMatrix.from_pattern(pattern)
    va, vb = Vector(space.mapper.size), Vector(space.mapper.size)
    assembler = SystemAssembler(space)
    assembler.add(Codim1CouplingIntegral(SIPGCoupling()), a)
    assembler.add(Codim1BoundaryIntegral(SIPGDirichletBoundary()), a)
    assembler.add(Codim1IntegralFunctional(SIPGDirichletFunctional(source)), va)
    assembler.add(Codim1CouplingMatrix(Codim1CouplingIntegral(SIPGCoupling())), b)
    assembler.add(Codim1BoundaryMatrix(Codim1BoundaryIntegral(SIPGDirichletBoundary())), b)
    assembler.add(Codim1Vector(Codim1IntegralFunctional(SIPGDirichletFunctional(source))), vb)
    assembler.assemble()
    assert np.allclose(a.to_dense(), b.to_dense())
    assert np.allclose(va.array, vb.array)
    assert np.abs(va.array).max() > 0


@pytest.mark.parametrize("et", ['quad', 'tri'])
def test_parallel_assembly_matches_serial(et):
    gv = make_cube_grid([0, 0], [1, 1], [4, 4], et)
    space = DiscontinuousLagrangeSpace(gv, 1)
    serial_m, serial_v = _sipg_system(space)
    parallel_m, parallel_v = _sipg_system(space, parallel=True, num_workers=3, num_partitions=5)
    assert np.allclose(serial_m.to_dense(), parallel_m.to_dense(), rtol=1e-13, atol=1e-12)
    assert np.allclose(serial_v.array, parallel_v.array, rtol=1e-13, atol=1e-12)


def test_parallel_constraints_match_serial():
    gv = make_cube_grid([0, 0], [1, 1], [4, 4])
    space = ContinuousLagrangeSpace(gv)
    constraints = DirichletConstraints(space, AllDirichletBoundaryInfo())
    results = []
    for parallel in (False, True):
        matrix = SparseMatrix.from_pattern(space.compute_volume_pattern())
        assembler = SystemAssembler(space)
        assembler.add(Codim0Integral(Elliptic()), matrix)
        assembler.add(constraints, matrix)
        assembler.assemble(parallel=parallel, num_workers=2)
        results.append(matrix.to_dense())
    assert np.allclose(results[0], results[1])


def test_assembly_logs(debug_log):
    gv = make_cube_grid([0, 0], [1, 1], [2, 2])
    space = ContinuousLagrangeSpace(gv)
    assembler = SystemAssembler(space)
    assembler.add(Codim0Integral(Product()), DenseMatrix(9))
    assembler.assemble()
    assert any("assembling 1 functors" in r.getMessage() for r in debug_log.records)


def test_face_functional_rejects_inner_intersections():
    gv = make_cube_grid([0, 0], [1, 1], [2, 2])
    space = DiscontinuousLagrangeSpace(gv, 1)
    rhs = Vector(space.mapper.size)
    assembler = SystemAssembler(space)
    assembler.add(Codim1IntegralFunctional(NeumannFunctional(source)), rhs, InnerIntersections())
    with pytest.raises(PreconditionViolation):
        assembler.assemble()
