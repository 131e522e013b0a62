"""
Exception types raised by the simulators, optimizer and schedule builder.

Every error derives from :class:`QAOAError` and from the builtin that best
matches it, so ``except ValueError`` keeps working for callers that do not
know about this package.
"""


class QAOAError(Exception):
    """Base class for all errors raised by qaoa_meanfield."""
    pass


class DimensionMismatchError(QAOAError, ValueError):
    """Array or vector lengths disagree with the declared N or p."""
    pass


class InvalidArgumentError(QAOAError, ValueError):
    """An argument is outside its allowed range (p < 1, tau <= 0, ...)."""
    pass


class InvalidEdgeError(InvalidArgumentError):
    """An edge endpoint is outside [0, N) or the edge is a self loop."""
    pass


class ResourceExhaustedError(QAOAError, MemoryError):
    """The dense state vector would exceed the configured qubit ceiling."""
    pass


class NumericalInstabilityError(QAOAError, ArithmeticError):
    """NaN or Inf appeared in amplitudes or spin vectors."""
    pass
