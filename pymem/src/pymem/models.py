"""Weighting styles, autocorrelation policies and numeric tolerances."""

from enum import Enum

EPSILON = 1e-20

# Relative threshold |E(i) / E(1)| below which an eigenvalue is null.
NULL_TOL = 1e-10
# Absolute tolerance on the weighted Gram matrix.
ORTHO_TOL = 1e-8
# Tolerance on weighted column means of a response, relative to its scale.
CENTER_TOL = 1e-8


class Style(Enum):
    B = "B"            # binary
    W = "W"            # row-standardized
    C = "C"            # globally-standardized
    S = "S"            # variance-stabilizing
    MINMAX = "minmax"  # min-max standardized


class Autocor(Enum):
    ALL = "all"
    NON_NULL = "non-null"
    POSITIVE = "positive"
    NEGATIVE = "negative"
