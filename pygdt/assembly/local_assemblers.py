"""pygdt.assembly.local_assemblers
Glue between a local operator and a global container: build the local bases,
zero the local blocks, apply the operator and scatter with the mappers.

``num_tmp_objects_required()`` returns ``(local blocks, operator scratch)``.
"""
from pygdt.exceptions import PreconditionViolation


class Codim0Matrix:
    def __init__(self, local_operator):
        self.local_operator = local_operator

    def num_tmp_objects_required(self):
        return (1, self.local_operator.num_tmp_objects_required())

    def assemble(self, test_space, ansatz_space, entity, matrix, tmp_local, tmp_operator):
        test = test_space.base_function_set(entity)
        ansatz = ansatz_space.base_function_set(entity)
        local = tmp_local[0]
        local.fill(0.0)
        self.local_operator.apply(test, ansatz, local, tmp_operator)
        rows = test_space.mapper.global_indices(entity)
        cols = ansatz_space.mapper.global_indices(entity)
        matrix.add_to_block(rows, cols, local[:test.size, :ansatz.size])


class Codim0Vector:
    def __init__(self, local_functional):
        self.local_functional = local_functional

    def num_tmp_objects_required(self):
        return (1, self.local_functional.num_tmp_objects_required())

    def assemble(self, test_space, entity, vector, tmp_local, tmp_operator):
        test = test_space.base_function_set(entity)
        local = tmp_local[0]
        local.fill(0.0)
        self.local_functional.apply(test, local, tmp_operator)
        vector.add_to_block(test_space.mapper.global_indices(entity), local[:test.size])


class Codim1CouplingMatrix:
    def __init__(self, local_operator):
        self.local_operator = local_operator

    def num_tmp_objects_required(self):
        return (4, self.local_operator.num_tmp_objects_required())

    def assemble(self, test_space, ansatz_space, intersection, matrix, tmp_local, tmp_operator):
        inside, outside = intersection.inside, intersection.outside
        test_en = test_space.base_function_set(inside)
        ansatz_en = ansatz_space.base_function_set(inside)
        test_ne = test_space.base_function_set(outside)
        ansatz_ne = ansatz_space.base_function_set(outside)
        ee, nn, en, ne = tmp_local[0], tmp_local[1], tmp_local[2], tmp_local[3]
        for block in (ee, nn, en, ne):
            block.fill(0.0)
        self.local_operator.apply(test_en, ansatz_en, test_ne, ansatz_ne, intersection, ee, nn, en, ne,
                                  tmp_operator)
        rows_en = test_space.mapper.global_indices(inside)
        rows_ne = test_space.mapper.global_indices(outside)
        cols_en = ansatz_space.mapper.global_indices(inside)
        cols_ne = ansatz_space.mapper.global_indices(outside)
        matrix.add_to_block(rows_en, cols_en, ee[:test_en.size, :ansatz_en.size])
        matrix.add_to_block(rows_ne, cols_ne, nn[:test_ne.size, :ansatz_ne.size])
        matrix.add_to_block(rows_en, cols_ne, en[:test_en.size, :ansatz_ne.size])
        matrix.add_to_block(rows_ne, cols_en, ne[:test_ne.size, :ansatz_en.size])


class Codim1BoundaryMatrix:
    def __init__(self, local_operator):
        self.local_operator = local_operator

    def num_tmp_objects_required(self):
        return (1, self.local_operator.num_tmp_objects_required())

    def assemble(self, test_space, ansatz_space, intersection, matrix, tmp_local, tmp_operator):
        entity = intersection.inside
        test = test_space.base_function_set(entity)
        ansatz = ansatz_space.base_function_set(entity)
        local = tmp_local[0]
        local.fill(0.0)
        self.local_operator.apply(test, ansatz, intersection, local, tmp_operator)
        matrix.add_to_block(test_space.mapper.global_indices(entity), ansatz_space.mapper.global_indices(entity),
                            local[:test.size, :ansatz.size])


class Codim1Vector:
    """
    Face functional scattered into the inside entity only, so it is meant for
    boundary intersections.  An intersection with a neighbor raises
    ``PreconditionViolation`` instead of dropping the outside share.
    """

    def __init__(self, local_functional):
        self.local_functional = local_functional

    def num_tmp_objects_required(self):
        return (1, self.local_functional.num_tmp_objects_required())

    def assemble(self, test_space, intersection, vector, tmp_local, tmp_operator):
        if intersection.neighbor:
            raise PreconditionViolation("Codim1Vector assembles on boundary intersections only",
                                        inside=intersection.inside.index, outside=intersection.outside.index)
        entity = intersection.inside
        test = test_space.base_function_set(entity)
        local = tmp_local[0]
        local.fill(0.0)
        self.local_functional.apply(test, intersection, local, tmp_operator)
        vector.add_to_block(test_space.mapper.global_indices(entity), local[:test.size])

