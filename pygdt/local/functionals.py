"""pygdt.local.functionals
Vector counterparts of the local integral operators.
"""
from pygdt.integration.quadrature import facet_rule, rule
from pygdt.local.operators import LocalOperatorInterface, check_output, check_scratch


class Codim0IntegralFunctional(LocalOperatorInterface):
    """∫_E integrand(ψ_i) dx."""

    def apply(self, test_base, ret, tmp_vectors):
        entity = test_base.entity
        size = test_base.size
        check_output(ret, (size,))
        check_scratch(tmp_vectors, self.num_tmp_objects, [(size,)])
        local = tmp_vectors[0][:size]
        order = self.evaluation.order(test_base) + self.over_integrate
        for x, w in rule(entity.element_type, order):
            self.evaluation.evaluate(entity, test_base, x, local)
            ret[:size] += (w * entity.geometry.integration_element(x)) * local


class Codim1IntegralFunctional(LocalOperatorInterface):
    """∫_F integrand(ψ_i) ds over an intersection of the test entity."""

    def apply(self, test_base, intersection, ret, tmp_vectors):
        size = test_base.size
        check_output(ret, (size,))
        check_scratch(tmp_vectors, self.num_tmp_objects, [(size,)])
        local = tmp_vectors[0][:size]
        order = self.evaluation.order(test_base) + self.over_integrate
        for x, w in facet_rule(intersection.inside.element_type, order):
            self.evaluation.evaluate(intersection, test_base, x, local)
            ret[:size] += (w * intersection.geometry.integration_element(x)) * local
