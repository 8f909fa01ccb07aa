"""pygdt.exceptions
Error taxonomy shared by the assembly engine.

Precondition violations (wrong sizes, too few scratch buffers, misuse of an
operator) are programming errors and derive from ``AssertionError``.
Numerical degeneracies are properties of the input data and derive from
``ArithmeticError``. Missing specialisations derive from
``NotImplementedError``.
"""
from __future__ import annotations

from typing import Any


class GdtError(Exception):
    """Base class for all errors raised by pygdt."""

    def __init__(self, message: str, **context: Any):
        self.context = context
        if context:
            details = ", ".join(f"{k}={v!r}" for k, v in context.items())
            message = f"{message} ({details})"
        super().__init__(message)


class PreconditionViolation(GdtError, AssertionError):
    """A documented precondition of an operation does not hold."""


class DimensionMismatch(PreconditionViolation):
    """Container dimensions do not match the mapper sizes of the spaces."""


class InsufficientScratchSpace(PreconditionViolation):
    """A temporary storage pool has too few or too small buffers."""


class MapperError(PreconditionViolation):
    """Invalid local or global index requested from a mapper."""


class OperatorError(PreconditionViolation):
    """A local operator was applied to arguments it does not support."""


class SparsityPatternError(PreconditionViolation):
    """A write was attempted outside of the sparsity pattern of a matrix."""


class WalkerStateError(GdtError, RuntimeError):
    """Registration or walk requested in the wrong walker phase."""


class NumericalDegeneracy(GdtError, ArithmeticError):
    """The numerical input does not admit the requested computation."""


class DegenerateFluxError(NumericalDegeneracy):
    """The dissipation coefficient of a numerical flux vanishes."""


class EigenDecompositionError(NumericalDegeneracy):
    """The flux jacobian has no real eigendecomposition."""


class NotAvailableForTheseDimensions(GdtError, NotImplementedError):
    """The requested flux or operator is not implemented for these dimensions."""
