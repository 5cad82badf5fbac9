"""Exceptions and warnings raised by pymem."""


class MEMError(Exception):
    """Base class for all pymem errors."""


class InvalidGraphError(MEMError, ValueError):
    """Malformed neighbor/weight input."""


class InvalidWeightError(MEMError, ValueError):
    """Inadmissible row weights."""


class DegenerateGraphError(MEMError, ValueError):
    """The weighted graph carries no variance to decompose."""


class DegenerateRowError(DegenerateGraphError):
    """A node with neighbors has a zero weight sum."""

    def __init__(self, node, message=None):
        self.node = node
        if message is None:
            message = (f"node {node} has neighbors but a zero weight sum; "
                       f"it cannot be row-standardized")
        super().__init__(message)


class NotOrthonormalError(MEMError, ValueError):
    """Predictors are not orthonormal under the row weights."""


class IndexOutOfRangeError(MEMError, IndexError):
    """Subsetting index outside 0..size-1."""

    def __init__(self, index, size, axis="column"):
        self.index = index
        self.size = size
        self.axis = axis
        super().__init__(f"{axis} index {index} is out of range for size {size}")


class EmptyBasisError(MEMError, ValueError):
    """Model selection was asked to run on a basis with no columns."""


class UncenteredResponseWarning(UserWarning):
    """Response columns do not have a zero weighted mean."""


class IncompleteBasisWarning(UserWarning):
    """The basis holds fewer than n - 1 vectors."""
