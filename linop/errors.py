"""Exception types raised while applying linear operators."""


class LinearOperatorError(Exception):
    """Base class for linop errors."""


class MissingCapabilityError(LinearOperatorError, NotImplementedError):
    """Requested an apply direction the operator cannot compute."""


class DomainNarrowingError(LinearOperatorError, TypeError):
    """
    A value from a wider scalar domain was stored into a narrower buffer.

    Typically complex results written into a real destination.
    """


class DimensionMismatchError(LinearOperatorError, ValueError):
    """Operand shapes do not match the operator (debug checks only)."""
