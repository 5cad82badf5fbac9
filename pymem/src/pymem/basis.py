"""Orthonormal eigenvector bases and their subsetting rules."""

from dataclasses import dataclass, replace
from typing import Optional, Tuple

import numpy as np
import pandas as pd

from .exceptions import IndexOutOfRangeError
from .models import ORTHO_TOL, Autocor
from .spatial import WeightedGraph


def _frozen(a, dtype=float):
    a = np.array(a, dtype=dtype)
    a.setflags(write=False)
    return a


@dataclass(frozen=True, eq=False)
class EigenBasis:
    """Set of eigenvectors orthonormal under a weighted inner product.

    ``sum_i row_weights[i] * u[i] * v[i]`` is 1 for u == v and 0 otherwise,
    as long as ``orthonormal`` is True. Columns are sorted by decreasing
    eigenvalue; node order is never permuted.

    Attributes
    ----------
    vectors : (N, P) read-only array
    eigenvalues : (P,) read-only array
    row_weights : (N,) read-only array, sums to 1
    names : tuple of str
    autocor : Autocor
        Selection policy the basis was built with.
    moran_scale : float
        Constant c such that ``c * eigenvalues`` is Moran's I of each column.
    source_graph : WeightedGraph or None
        Kept only when requested; needed by :func:`pymem.mem.resample`.
    orthonormal : bool
        False for row-subsetted (or column-repeating) views.
    """

    vectors: np.ndarray
    eigenvalues: np.ndarray
    row_weights: np.ndarray
    names: Tuple[str, ...]
    autocor: Autocor = Autocor.NON_NULL
    moran_scale: float = 1.0
    source_graph: Optional[WeightedGraph] = None
    orthonormal: bool = True

    def __post_init__(self):
        vectors = _frozen(self.vectors)
        if vectors.ndim != 2:
            raise ValueError(f"vectors must be 2-D, got shape {vectors.shape}")
        object.__setattr__(self, "vectors", vectors)
        object.__setattr__(self, "eigenvalues", _frozen(self.eigenvalues))
        object.__setattr__(self, "row_weights", _frozen(self.row_weights))
        object.__setattr__(self, "names", tuple(self.names))
        if self.eigenvalues.shape != (vectors.shape[1],):
            raise ValueError(
                f"{vectors.shape[1]} vectors but {self.eigenvalues.size} eigenvalues")
        if self.row_weights.shape != (vectors.shape[0],):
            raise ValueError(
                f"{vectors.shape[0]} rows but {self.row_weights.size} row weights")
        if len(self.names) != vectors.shape[1]:
            raise ValueError(
                f"{vectors.shape[1]} vectors but {len(self.names)} names")

    @property
    def n_nodes(self):
        return self.vectors.shape[0]

    @property
    def n_vectors(self):
        return self.vectors.shape[1]

    @property
    def shape(self):
        return self.vectors.shape

    @property
    def moran_i(self):
        """Moran's I of every column under the source graph."""
        return self.eigenvalues * self.moran_scale

    def __len__(self):
        return self.n_vectors

    def __array__(self, dtype=None, copy=None):
        return np.array(self.vectors, dtype=dtype)

    def __getitem__(self, columns):
        return subset(self, columns=columns)

    def __repr__(self):
        return (f"EigenBasis(n_nodes={self.n_nodes}, n_vectors={self.n_vectors}, "
                f"autocor={self.autocor.value!r}, orthonormal={self.orthonormal})")

    def subset(self, columns=None, rows=None, drop=False):
        return subset(self, columns=columns, rows=rows, drop=drop)

    def gram(self):
        """Weighted Gram matrix ``U^T diag(row_weights) U``."""
        U = self.vectors
        return U.T @ (self.row_weights[:, None] * U)

    def check_orthonormal(self, atol=ORTHO_TOL):
        """True if the weighted Gram matrix is the identity within ``atol``."""
        G = self.gram()
        return bool(np.allclose(G, np.eye(G.shape[0]), rtol=0.0, atol=atol))

    def to_frame(self):
        """Vectors as a DataFrame, one column per eigenvector."""
        return pd.DataFrame(np.array(self.vectors), columns=list(self.names))


def _resolve(index, size, axis):
    """Turn int / slice / sequence into a list of positions, no dedup."""
    if index is None:
        return list(range(size))
    if isinstance(index, slice):
        return list(range(size)[index])
    if isinstance(index, (int, np.integer)) and not isinstance(index, bool):
        positions = [index]
    else:
        positions = list(np.asarray(index).ravel())
    out = []
    for p in positions:
        if isinstance(p, (bool, np.bool_)) or not isinstance(p, (int, np.integer)):
            raise TypeError(f"{axis} indices must be integers, got {p!r}")
        if p < 0 or p >= size:
            raise IndexOutOfRangeError(int(p), size, axis=axis)
        out.append(int(p))
    return out


def subset(basis, columns=None, rows=None, drop=False):
    """Select columns and/or rows of a basis.

    Parameters
    ----------
    basis : EigenBasis
    columns, rows : int, slice, sequence of int or None
        Positions to keep, in the given order. Repeats are kept.
        Negative positions are out of range.
    drop : bool
        When exactly one column is selected, return it as a 1-D array.

    Returns
    -------
    EigenBasis or np.ndarray
        Row subsetting, or repeated columns, yield a view tagged
        ``orthonormal=False``.
    """
    cols = _resolve(columns, basis.n_vectors, "column")
    rws = _resolve(rows, basis.n_nodes, "row")

    vectors = basis.vectors[np.ix_(rws, cols)]
    if drop and len(cols) == 1:
        return np.array(vectors[:, 0])

    orthonormal = basis.orthonormal
    row_weights = basis.row_weights
    if rows is not None:
        orthonormal = False
        row_weights = row_weights[rws]
    if len(set(cols)) != len(cols):
        orthonormal = False

    return replace(
        basis,
        vectors=vectors,
        eigenvalues=basis.eigenvalues[cols],
        row_weights=row_weights,
        names=tuple(basis.names[c] for c in cols),
        orthonormal=orthonormal,
    )
