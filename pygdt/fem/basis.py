"""pygdt.fem.basis
Local Lagrange basis bound to one entity.
"""
import numpy as np

from pygdt.fem.reference import get_reference


class BaseFunctionSet:
    """
    Values and physical gradients of all local basis functions of one entity.

    Stateless apart from the entity: every call allocates its result, so one
    instance may be evaluated from several threads.
    """

    def __init__(self, entity, order: int):
        self.entity = entity
        self.order = int(order)
        self._ref = get_reference(entity.element_type, self.order)
        self.size = self._ref.size

    def evaluate(self, x_ref) -> np.ndarray:
        """(size,) basis values at a reference point."""
        return np.array(self._ref.shape(x_ref))

    def jacobian(self, x_ref) -> np.ndarray:
        """(size, dim) physical gradients at a reference point."""
        jit = self.entity.geometry.jacobian_inverse_transposed(x_ref)
        return self._ref.grad(x_ref) @ jit.T

    def __len__(self):
        return self.size

    def __repr__(self):
        return f"BaseFunctionSet(entity={self.entity.index}, order={self.order}, size={self.size})"
