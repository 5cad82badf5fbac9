"""Moran's Eigenvector Maps: eigendecomposition of a doubly-centered graph."""

import logging
import warnings

import numpy as np
from scipy import linalg

from .basis import EigenBasis
from .exceptions import (
    DegenerateGraphError, IncompleteBasisWarning, IndexOutOfRangeError,
    InvalidWeightError,
)
from .models import EPSILON, NULL_TOL, Autocor

logger = logging.getLogger(__name__)


def _row_weights(wt, n):
    """Validate row weights and normalize them to sum 1."""
    if wt is None:
        return np.full(n, 1.0 / n)
    wt = np.asarray(wt, dtype=float).ravel()
    if wt.shape != (n,):
        raise InvalidWeightError(f"wt has {wt.size} entries, graph has {n} nodes")
    if not np.all(np.isfinite(wt)):
        raise InvalidWeightError("wt contains NaN/inf")
    bad = np.flatnonzero(wt <= 0)
    if bad.size:
        raise InvalidWeightError(
            f"wt must be strictly positive; node {bad[0]} has weight {wt[bad[0]]}")
    return wt / wt.sum()


def _symmetric_matrix(graph):
    """Normalized weight matrix, averaged with its transpose if needed."""
    W = graph.matrix()
    if not np.any(W):
        raise DegenerateGraphError("all weights are zero; nothing to decompose")
    if not np.array_equal(W, W.T):
        logger.debug("asymmetric weights: using (W + W.T) / 2")
        W = (W + W.T) / 2.0
    return W


def moran_constant(graph, wt=None):
    """Constant c such that ``c * eigenvalue`` is Moran's I of an eigenvector.

    ``c = 1 / sum_ij wt_i wt_j W_ij`` for the symmetrized normalized matrix
    and row weights summing to 1; with uniform weights it is ``n**2 / S0``.
    """
    wt = _row_weights(wt, graph.n_nodes)
    W = _symmetric_matrix(graph)
    s = float(wt @ W @ wt)
    if abs(s) < EPSILON:
        raise DegenerateGraphError("weighted sum of weights is zero")
    return 1.0 / s


def moran_i(x, graph, wt=None):
    """Weighted Moran's I of a vector under ``graph``.

    Reduces to the classical ``(n / S0) * z'Wz / z'z`` for uniform weights.
    """
    wt = _row_weights(wt, graph.n_nodes)
    x = np.asarray(x, dtype=float).ravel()
    if x.shape != wt.shape:
        raise ValueError(f"x has {x.size} values, graph has {wt.size} nodes")
    W = _symmetric_matrix(graph)
    z = x - wt @ x
    den = float(z @ (wt * z))
    if den <= 0:
        raise ValueError("Variance of x is zero; Moran's I undefined.")
    num = float((wt * z) @ W @ (wt * z))
    return num / den / float(wt @ W @ wt)


def _fix_signs(vectors):
    """Make the first non-negligible entry of each column positive."""
    for k in range(vectors.shape[1]):
        col = vectors[:, k]
        idx = np.flatnonzero(np.abs(col) > 1e-10 * np.abs(col).max())
        if idx.size and col[idx[0]] < 0:
            vectors[:, k] = -col
    return vectors


def _null_representative(null_vecs, sqrt_wt):
    """One null-space direction orthogonal to the constant vector, or None."""
    if null_vecs.shape[1] < 2:
        return None
    # remove the trivial direction, keep the dominant remaining one
    proj = null_vecs - np.outer(sqrt_wt, sqrt_wt @ null_vecs)
    u, s, _ = linalg.svd(proj, full_matrices=False)
    if s[0] < 1e-8:
        return None
    return u[:, :1]


def mem(graph, wt=None, autocor="non-null", store_graph=False, tol=NULL_TOL):
    """Build Moran's Eigenvector Maps from a weighted graph.

    Parameters
    ----------
    graph : WeightedGraph
        Normalized with its own style. Asymmetric graphs are symmetrized
        with ``(W + W.T) / 2``.
    wt : array-like of shape (N,) or None
        Strictly positive row weights, default uniform. Normalized to sum 1.
    autocor : str or Autocor
        'non-null', 'all', 'positive' or 'negative'.
    store_graph : bool
        Keep ``graph`` in the result (required by :func:`resample`).
    tol : float
        Relative null-eigenvalue threshold on ``|E(i) / E(1)|``.

    Returns
    -------
    EigenBasis
        Its ``row_weights`` are ``wt / wt.sum()``, and the vectors are
        orthonormal under those normalized weights, not under ``wt`` as
        passed.
    """
    autocor = Autocor(autocor)
    n = graph.n_nodes
    wt = _row_weights(wt, n)
    W = _symmetric_matrix(graph)

    # Double-center with respect to wt, then weight: M = D^1/2 Q W Q' D^1/2
    Q = np.eye(n) - np.outer(np.ones(n), wt)
    Wc = Q @ W @ Q.T
    sqrt_wt = np.sqrt(wt)
    M = sqrt_wt[:, None] * Wc * sqrt_wt[None, :]
    M = (M + M.T) / 2.0

    values, vectors = linalg.eigh(M)
    order = np.argsort(-values, kind="stable")
    values = values[order]
    vectors = vectors[:, order]

    largest = np.max(np.abs(values))
    if largest < EPSILON:
        raise DegenerateGraphError("doubly-centered weight matrix is zero")
    null = np.abs(values / largest) < tol

    if autocor == Autocor.POSITIVE:
        keep = (~null) & (values > 0)
    elif autocor == Autocor.NEGATIVE:
        keep = (~null) & (values < 0)
    else:
        keep = ~null

    kept_values = values[keep]
    kept_vectors = vectors[:, keep]

    if autocor == Autocor.ALL:
        rep = _null_representative(vectors[:, null], sqrt_wt)
        if rep is not None:
            # null eigenvalue sits between the positive and negative ones
            pos = int(np.sum(kept_values > 0))
            kept_values = np.insert(kept_values, pos, 0.0)
            kept_vectors = np.insert(kept_vectors, pos, rep[:, 0], axis=1)
        if kept_values.size < n - 1:
            warnings.warn(
                f"Only {kept_values.size} of {n - 1} eigenvectors could be "
                f"retained ({int(null.sum())} null eigenvalues).",
                IncompleteBasisWarning, stacklevel=2,
            )

    basis_vectors = _fix_signs(kept_vectors / sqrt_wt[:, None])
    logger.debug("mem: %d nodes, %d %s eigenvectors", n, kept_values.size,
                 autocor.value)

    return EigenBasis(
        vectors=basis_vectors,
        eigenvalues=kept_values,
        row_weights=wt,
        names=tuple(f"MEM{k + 1}" for k in range(kept_values.size)),
        autocor=autocor,
        moran_scale=1.0 / float(wt @ W @ wt),
        source_graph=graph if store_graph else None,
    )


def resample(basis, permutation):
    """Rebuild a basis for permuted nodes, keeping it orthonormal.

    The basis is recomputed from its source graph with row weights permuted
    by the inverse permutation, and its rows are then taken in
    ``permutation`` order. The result is orthonormal under the original
    ``basis.row_weights``.

    Parameters
    ----------
    basis : EigenBasis
        Must carry ``source_graph`` (built with ``store_graph=True``).
    permutation : array-like of int
        A permutation of 0..N-1.

    Returns
    -------
    EigenBasis
    """
    if basis.source_graph is None:
        raise ValueError("basis has no source_graph; build it with store_graph=True")
    n = basis.n_nodes
    idx = np.asarray(permutation).ravel()
    if idx.size != n:
        raise ValueError(f"permutation has {idx.size} entries, basis has {n} rows")
    for p in idx:
        if p < 0 or p >= n:
            raise IndexOutOfRangeError(int(p), n, axis="row")
    idx = idx.astype(int)
    if np.unique(idx).size != n:
        raise ValueError("permutation contains duplicated entries")

    inverse = np.argsort(idx)
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", IncompleteBasisWarning)
        rebuilt = mem(basis.source_graph, wt=basis.row_weights[inverse],
                      autocor=basis.autocor, store_graph=True)
    vectors = rebuilt.vectors[idx]
    return EigenBasis(
        vectors=vectors,
        eigenvalues=rebuilt.eigenvalues,
        row_weights=basis.row_weights,
        names=rebuilt.names,
        autocor=rebuilt.autocor,
        moran_scale=rebuilt.moran_scale,
        source_graph=basis.source_graph,
    )
