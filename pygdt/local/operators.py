"""pygdt.local.operators
Quadrature-based local operators producing dense local matrices.

Output blocks are zeroed by the caller; operators only add to them.  The
scratch blocks come from the caller's pool and must cover the local sizes.
"""
import abc
import logging

from pygdt.config import get_config
from pygdt.exceptions import InsufficientScratchSpace
from pygdt.integration.quadrature import facet_rule, rule

logger = logging.getLogger(__name__)


def check_scratch(tmp, required: int, shapes):
    """Verify a scratch pool holds ``required`` buffers, each covering every shape in ``shapes``."""
    if len(tmp) < required:
        raise InsufficientScratchSpace("too few temporary buffers", required=required, given=len(tmp))
    for k in range(required):
        for shape in shapes:
            if any(have < need for have, need in zip(tmp[k].shape, shape)):
                raise InsufficientScratchSpace("temporary buffer too small", buffer=k,
                                               shape=tmp[k].shape, needed=shape)


def check_output(ret, shape, name="ret"):
    if any(have < need for have, need in zip(ret.shape, shape)):
        raise InsufficientScratchSpace(f"output block {name} too small", shape=ret.shape, needed=shape)


class LocalOperatorInterface(abc.ABC):
    num_tmp_objects: int = 1

    def __init__(self, evaluation, over_integrate=None):
        self.evaluation = evaluation
        self.over_integrate = int(get_config().quadrature.over_integrate
                                  if over_integrate is None else over_integrate)

    def num_tmp_objects_required(self) -> int:
        return self.num_tmp_objects

    def __repr__(self):
        return f"{type(self).__name__}({type(self.evaluation).__name__}, over_integrate={self.over_integrate})"


class Codim0Integral(LocalOperatorInterface):
    """∫_E integrand(ψ_i, φ_j) dx over one entity."""

    def apply(self, test_base, ansatz_base, ret, tmp_matrices):
        entity = test_base.entity
        rows, cols = test_base.size, ansatz_base.size
        check_output(ret, (rows, cols))
        check_scratch(tmp_matrices, self.num_tmp_objects, [(rows, cols)])
        local = tmp_matrices[0][:rows, :cols]
        order = self.evaluation.order(test_base, ansatz_base) + self.over_integrate
        geometry = entity.geometry
        for x, w in rule(entity.element_type, order):
            self.evaluation.evaluate(entity, test_base, ansatz_base, x, local)
            ret[:rows, :cols] += (w * geometry.integration_element(x)) * local


class Codim1CouplingIntegral(LocalOperatorInterface):
    """∫_F over an inner intersection; fills the four coupling blocks."""
    num_tmp_objects = 4

    def apply(self, test_base_en, ansatz_base_en, test_base_ne, ansatz_base_ne, intersection,
              ret_ee, ret_nn, ret_en, ret_ne, tmp_matrices):
        r_en, c_en = test_base_en.size, ansatz_base_en.size
        r_ne, c_ne = test_base_ne.size, ansatz_base_ne.size
        check_output(ret_ee, (r_en, c_en), "ret_ee")
        check_output(ret_nn, (r_ne, c_ne), "ret_nn")
        check_output(ret_en, (r_en, c_ne), "ret_en")
        check_output(ret_ne, (r_ne, c_en), "ret_ne")
        check_scratch(tmp_matrices, self.num_tmp_objects,
                      [(r_en, c_en), (r_ne, c_ne), (r_en, c_ne), (r_ne, c_en)])
        ee = tmp_matrices[0][:r_en, :c_en]
        nn = tmp_matrices[1][:r_ne, :c_ne]
        en = tmp_matrices[2][:r_en, :c_ne]
        ne = tmp_matrices[3][:r_ne, :c_en]
        order = self.evaluation.order(test_base_en, ansatz_base_en, test_base_ne, ansatz_base_ne) \
            + self.over_integrate
        geometry = intersection.geometry
        for x, w in facet_rule(intersection.inside.element_type, order):
            self.evaluation.evaluate(intersection, test_base_en, ansatz_base_en, test_base_ne, ansatz_base_ne,
                                     x, ee, nn, en, ne)
            factor = w * geometry.integration_element(x)
            ret_ee[:r_en, :c_en] += factor * ee
            ret_nn[:r_ne, :c_ne] += factor * nn
            ret_en[:r_en, :c_ne] += factor * en
            ret_ne[:r_ne, :c_en] += factor * ne


class Codim1BoundaryIntegral(LocalOperatorInterface):
    """∫_F over a boundary intersection of the inside entity."""

    def apply(self, test_base, ansatz_base, intersection, ret, tmp_matrices):
        rows, cols = test_base.size, ansatz_base.size
        check_output(ret, (rows, cols))
        check_scratch(tmp_matrices, self.num_tmp_objects, [(rows, cols)])
        local = tmp_matrices[0][:rows, :cols]
        order = self.evaluation.order(test_base, ansatz_base) + self.over_integrate
        geometry = intersection.geometry
        for x, w in facet_rule(intersection.inside.element_type, order):
            self.evaluation.evaluate(intersection, test_base, ansatz_base, x, local)
            ret[:rows, :cols] += (w * geometry.integration_element(x)) * local
