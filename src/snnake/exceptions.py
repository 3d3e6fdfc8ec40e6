"""
Exception Taxonomy Module

All errors raised by snnake are local contract violations, raised synchronously
by the call that violates them. Each one also derives from ValueError, so callers
that only care about "bad input" can catch that.

Classes:
    SnnakeError:        Base class of every snnake error
    DimensionError:     Matrix shape mismatch, or a malformed matrix
    WeightSizeMismatch: Flat weight vector of the wrong length
    BreedingError:      Crossover / breeding precondition violated
    ConfigurationError: Invalid genetic optimizer parameters
    StorageError:       Persisted population or generation data is malformed
    DuplicateIndividualWarning: Two individuals with identical weights collapsed into one
"""


class SnnakeError(ValueError):
    """Base class of all snnake errors."""


class DimensionError(SnnakeError):
    """
    Raised when a matrix operation is given operands of incompatible shapes,
    or when a matrix cannot be built from the supplied values.

    Public Attributes:
        op:          Name of the operation that failed (None for construction errors)
        left_shape:  (rows, cols) of the left operand, if any
        right_shape: (rows, cols) of the right operand, if any
    """

    def __init__(self,
                 message    : str,
                 op         : str | None             = None,
                 left_shape : tuple[int, int] | None = None,
                 right_shape: tuple[int, int] | None = None):
        super().__init__(message)
        self.op          = op
        self.left_shape  = left_shape
        self.right_shape = right_shape


class WeightSizeMismatch(SnnakeError):
    """Raised when a weight vector does not match the network's weight count."""


class BreedingError(SnnakeError):
    """Raised when crossover parents or crosspoints are inconsistent."""


class ConfigurationError(SnnakeError):
    """Raised when the genetic optimizer is constructed with invalid parameters."""


class StorageError(SnnakeError):
    """Raised when a persisted population or generation record cannot be parsed."""


class DuplicateIndividualWarning(UserWarning):
    """
    Issued when an individual's weight vector is already present in the population.
    The population is keyed by weight values, so the two collapse into one entry
    (holding the most recent fitness) and the effective population shrinks.
    """
