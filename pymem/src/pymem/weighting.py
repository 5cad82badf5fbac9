"""Distance-to-weight functions for parameterized graph scans.

Each function maps an array of edge lengths to non-negative weights of the
same shape. ``dmax`` defaults to the largest length passed in, so call them
on all edges of a graph at once (as :func:`pymem.selection.scan_weights`
does), not row by row.
"""

import numpy as np


def _dmax(d, dmax):
    if dmax is None:
        dmax = float(np.max(d)) if d.size else 1.0
    if dmax <= 0:
        raise ValueError(f"dmax must be positive, got {dmax}")
    return dmax


def flin(d, dmax=None):
    """Linear decay: 1 - d / dmax."""
    d = np.asarray(d, dtype=float)
    return np.clip(1.0 - d / _dmax(d, dmax), 0.0, None)


def fdown(d, y=1, dmax=None):
    """Concave-down decay: 1 - (d / dmax) ** y."""
    d = np.asarray(d, dtype=float)
    return np.clip(1.0 - (d / _dmax(d, dmax)) ** y, 0.0, None)


def fup(d, y=1):
    """Inverse power: 1 / d ** y. Zero lengths are not allowed."""
    d = np.asarray(d, dtype=float)
    if np.any(d <= 0):
        raise ValueError("fup requires strictly positive distances")
    return 1.0 / d ** y
