"""AICc-driven forward selection of eigenvectors and graph-family scans.

All models here exploit orthonormality of the basis: the variance a column
explains does not depend on the other columns already in the model, so the
forward order is a single sort of the per-column contributions and every
nested model's residual sum of squares is a cumulative sum.

Multivariate responses are pooled: one AICc per nested model, computed from
the residual sum of squares summed over all response columns.
"""

import itertools
import logging
import warnings
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
import pandas as pd

from .basis import EigenBasis, subset
from .exceptions import (
    DegenerateGraphError, EmptyBasisError, IncompleteBasisWarning,
    InvalidGraphError, NotOrthonormalError, UncenteredResponseWarning,
)
from .mem import _row_weights, mem
from .metrics import aicc as _aicc
from .models import CENTER_TOL, EPSILON, ORTHO_TOL, Autocor, Style
from .spatial import WeightedGraph

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result containers
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class SelectionResult:
    """Forward-ordered AICc curve over nested eigenvector models.

    Attributes
    ----------
    ordering : (P,) int array
        Basis column indices by decreasing explained variance.
    contribution : (P,) array
        Sum of squares explained by each column, in ``ordering`` order.
    r2 : (P,) array
        R-squared of each column, in basis order.
    rss : (P + 1,) array
        Pooled residual sum of squares with the first k ordered columns.
    aicc : (P + 1,) array
        AICc for k = 0..P; NaN where not applicable.
    names : tuple of str
        Column names, in ``ordering`` order.
    n, n_vars : int
        Rows and columns of the response.
    """

    ordering: np.ndarray
    contribution: np.ndarray
    r2: np.ndarray
    rss: np.ndarray
    aicc: np.ndarray
    names: Tuple[str, ...]
    n: int
    n_vars: int

    @property
    def aicc_curve(self):
        """AICc for k = 1..P."""
        return self.aicc[1:]

    @property
    def best_k(self):
        """Number of columns of the AICc-optimal model (0 = null model)."""
        if np.all(np.isnan(self.aicc)):
            return 0
        return int(np.nanargmin(self.aicc))

    @property
    def best_aicc(self):
        return float(self.aicc[self.best_k])

    @property
    def selected(self):
        """Basis column indices of the AICc-optimal model."""
        return self.ordering[:self.best_k]

    @property
    def r2_cumulative(self):
        tss = self.rss[0]
        return np.cumsum(self.contribution) / tss

    def best_basis(self, basis):
        """Sub-basis of the selected columns, in selection order."""
        return subset(basis, columns=self.selected)

    def to_frame(self):
        """One row per nested model, k = 0..P."""
        return pd.DataFrame({
            "k": np.arange(self.ordering.size + 1),
            "variable": ["None"] + list(self.names),
            "index": np.concatenate([[-1], self.ordering]),
            "r2_cum": np.concatenate([[0.0], self.r2_cumulative]),
            "rss": self.rss,
            "aicc": self.aicc,
        })


@dataclass(frozen=True, eq=False)
class CandidateResult:
    """Selection outcome for one candidate graph.

    ``basis`` is None when the candidate graph cannot be normalized, and
    ``selection`` is None when there is no basis to select from.
    """

    name: str
    params: dict
    graph: WeightedGraph
    basis: Optional[EigenBasis]
    selection: Optional[SelectionResult]

    @property
    def best_aicc(self):
        if self.selection is None:
            return np.nan
        return self.selection.best_aicc


@dataclass(frozen=True, eq=False)
class ScanResult:
    """All candidates of a graph-family scan and the global winner."""

    candidates: Tuple[CandidateResult, ...]
    best_index: int

    @property
    def best(self):
        return self.candidates[self.best_index]

    def __len__(self):
        return len(self.candidates)

    def to_frame(self):
        rows = []
        for c in self.candidates:
            row = {"name": c.name, **c.params,
                   "n_vectors": 0 if c.basis is None else c.basis.n_vectors}
            if c.selection is None:
                row.update(best_k=0, best_aicc=np.nan, r2=np.nan)
            else:
                k = c.selection.best_k
                r2 = c.selection.r2_cumulative[k - 1] if k > 0 else 0.0
                row.update(best_k=k, best_aicc=c.selection.best_aicc, r2=r2)
            rows.append(row)
        return pd.DataFrame(rows)


@dataclass(frozen=True, eq=False)
class ScalogramResult:
    """Variance of a response decomposed on basis columns."""

    r2: np.ndarray
    r2_blocks: np.ndarray
    labels: Tuple[str, ...]


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def _as_basis(basis, wt):
    if isinstance(basis, EigenBasis):
        if wt is not None:
            raise ValueError("wt is taken from the EigenBasis; do not pass it")
        return basis
    X = np.asarray(basis, dtype=float)
    if X.ndim == 1:
        X = X[:, None]
    if X.ndim != 2:
        raise ValueError(f"predictors must be 2-D, got shape {X.shape}")
    p = X.shape[1]
    return EigenBasis(
        vectors=X,
        eigenvalues=np.full(p, np.nan),
        row_weights=_row_weights(wt, X.shape[0]),
        names=tuple(f"X{k + 1}" for k in range(p)),
    )


def _check_basis(basis, atol=ORTHO_TOL):
    if basis.n_vectors == 0:
        raise EmptyBasisError("the basis has no columns to select from")
    if not basis.orthonormal:
        raise NotOrthonormalError(
            "basis is a row-subsetted or column-repeating view; "
            "forward selection requires an orthonormal basis")
    if not basis.check_orthonormal(atol=atol):
        G = basis.gram()
        err = float(np.max(np.abs(G - np.eye(G.shape[0]))))
        raise NotOrthonormalError(
            f"predictors are not orthonormal under the row weights "
            f"(max Gram deviation {err:.3g})")


def _as_response(Y, n):
    Y = np.asarray(Y, dtype=float)
    if Y.ndim == 1:
        Y = Y[:, None]
    if Y.ndim != 2:
        raise ValueError(f"Y must be 1-D or 2-D, got shape {Y.shape}")
    if Y.shape[0] != n:
        raise ValueError(f"Y has {Y.shape[0]} rows, basis has {n} nodes")
    if not np.all(np.isfinite(Y)):
        raise ValueError("Y contains NaN/inf")
    return Y


def _warn_uncentered(Y, wt):
    means = wt @ Y
    scale = np.sqrt(wt @ Y ** 2)
    off = np.abs(means) > CENTER_TOL * np.maximum(scale, EPSILON)
    if np.any(off):
        warnings.warn(
            f"Response columns {np.flatnonzero(off).tolist()} are not centred; "
            f"results may be uninterpretable.",
            UncenteredResponseWarning, stacklevel=3,
        )


# ---------------------------------------------------------------------------
# Forward selection
# ---------------------------------------------------------------------------

def _explained(Y, basis, cw=None):
    """Per-column explained sum of squares and total sum of squares.

    Response columns are weighted by ``cw`` (default 1 each).
    """
    wt = basis.row_weights
    n = basis.n_nodes
    cw = np.ones(Y.shape[1]) if cw is None else cw
    B = basis.vectors.T @ (wt[:, None] * Y)
    ss = n * (B ** 2) @ cw
    tss = n * float(np.sum(wt[:, None] * Y ** 2 * cw[None, :]))
    if tss <= 0:
        raise ValueError("Y has zero total sum of squares")
    return ss, tss


def _forward(Y, basis):
    ss, tss = _explained(Y, basis)
    n = basis.n_nodes
    ordering = np.argsort(-ss, kind="stable")
    contribution = ss[ordering]

    rss = tss - np.concatenate([[0.0], np.cumsum(contribution)])
    rss[rss < 1e-12 * tss] = 0.0
    aicc = _aicc(rss, n, np.arange(ordering.size + 1))

    return SelectionResult(
        ordering=ordering,
        contribution=contribution,
        r2=ss / tss,
        rss=rss,
        aicc=aicc,
        names=tuple(basis.names[k] for k in ordering),
        n=n,
        n_vars=Y.shape[1],
    )


def ortho_aic(Y, basis, wt=None):
    """Rank orthonormal predictors and compute AICc of every nested model.

    Parameters
    ----------
    Y : (N,) or (N, M) array
        Response, assumed centred (weighted by the row weights). Not
        re-centred; a warning is issued if it is not.
    basis : EigenBasis or (N, P) array
        Orthonormal predictors. An array is checked against ``wt``.
    wt : array-like of shape (N,) or None
        Row weights for an array basis (default uniform).

    Returns
    -------
    SelectionResult
    """
    basis = _as_basis(basis, wt)
    _check_basis(basis)
    Y = _as_response(Y, basis.n_nodes)
    _warn_uncentered(Y, basis.row_weights)
    return _forward(Y, basis)


def scalogram(Y, basis, nblocks=None, col_weights=None, row_weights=None):
    """Decompose the variance of ``Y`` on the columns of ``basis``.

    A 1-D ``Y`` is centred with the row weights first; a 2-D ``Y`` must
    already be centred. R-squared values are summed into ``nblocks``
    consecutive groups of columns.

    Parameters
    ----------
    Y : (N,) or (N, M) array
    basis : EigenBasis or (N, P) array
    nblocks : int or None
        Number of blocks, default one per column.
    col_weights : array-like of shape (M,) or None
        Non-negative weights of the response columns in the total inertia
        (default 1 each).
    row_weights : array-like of shape (N,) or None
        Row weights the response was centred with. Checked against the
        basis row weights (both normalized to sum 1).

    Returns
    -------
    ScalogramResult
    """
    basis = _as_basis(basis, None)
    _check_basis(basis)
    wt = basis.row_weights
    p = basis.n_vectors
    if row_weights is not None:
        lw = _row_weights(row_weights, basis.n_nodes)
        if not np.allclose(lw, wt, rtol=1e-7, atol=0.0):
            raise ValueError("row weights differ from the basis row weights")
    if p < basis.n_nodes - 1:
        warnings.warn(
            f"The basis contains only {p} vectors. The decomposition of "
            f"variance is thus incomplete.", IncompleteBasisWarning, stacklevel=2)

    y = np.asarray(Y, dtype=float)
    if y.ndim == 1:
        y = y - wt @ y
    Y = _as_response(y, basis.n_nodes)
    cw = None
    if col_weights is not None:
        cw = np.asarray(col_weights, dtype=float).ravel()
        if cw.shape != (Y.shape[1],):
            raise ValueError(
                f"col_weights has {cw.size} entries, Y has {Y.shape[1]} columns")
        if not np.all(np.isfinite(cw)) or np.any(cw < 0):
            raise ValueError("col_weights must be finite and non-negative")
    _warn_uncentered(Y, wt)
    ss, tss = _explained(Y, basis, cw)
    r2 = ss / tss

    nblocks = p if nblocks is None else int(nblocks)
    if not 1 <= nblocks <= p:
        raise ValueError(f"nblocks must be in 1..{p}, got {nblocks}")
    blocks = np.array_split(np.arange(p), nblocks)
    r2_blocks = np.array([r2[b].sum() for b in blocks])
    if nblocks < p:
        labels = tuple(f"[{b[0] + 1}-{b[-1] + 1}]" for b in blocks)
    else:
        labels = tuple(str(k + 1) for k in range(p))
    return ScalogramResult(r2=r2, r2_blocks=r2_blocks, labels=labels)


# ---------------------------------------------------------------------------
# Graph-family scans
# ---------------------------------------------------------------------------

def _named_graphs(graphs):
    if isinstance(graphs, WeightedGraph):
        return [("W1", graphs)]
    if isinstance(graphs, Mapping):
        return list(graphs.items())
    return [(f"W{i + 1}", g) for i, g in enumerate(graphs)]


def _scan(Y, named, wt, autocor):
    """Run mem + forward selection on (name, graph, params) candidates."""
    if not named:
        raise ValueError("no candidate graphs to scan")
    autocor = Autocor(autocor)
    n = named[0][1].n_nodes
    Y = _as_response(Y, n)
    _warn_uncentered(Y, _row_weights(wt, n))

    results = []
    for name, graph, params in named:
        if graph.n_nodes != n:
            raise InvalidGraphError(
                f"candidate {name!r} has {graph.n_nodes} nodes, expected {n}")
        try:
            basis = mem(graph, wt=wt, autocor=autocor)
        except DegenerateGraphError as exc:
            logger.debug("%s: degenerate graph, skipped (%s)", name, exc)
            results.append(CandidateResult(name, params, graph, None, None))
            continue
        if basis.n_vectors == 0:
            logger.debug("%s: no %s eigenvectors, skipped", name, autocor.value)
            results.append(CandidateResult(name, params, graph, basis, None))
            continue
        _check_basis(basis)
        sel = _forward(Y, basis)
        logger.debug("%s: %d vectors, best k=%d, AICc=%.4f",
                     name, basis.n_vectors, sel.best_k, sel.best_aicc)
        results.append(CandidateResult(name, params, graph, basis, sel))

    scores = np.array([c.best_aicc for c in results])
    scored = np.array([c.selection is not None for c in results])
    if not scored.any():
        raise EmptyBasisError(
            f"no candidate graph yields {autocor.value} eigenvectors")
    # NaN (not applicable) never wins over a defined AICc
    scores = np.where(scored & ~np.isnan(scores), scores, np.inf)
    best_index = int(np.argmin(scores))
    if not np.isfinite(scores[best_index]) and scores[best_index] > 0:
        best_index = int(np.flatnonzero(scored)[0])
    logger.info("best candidate: %s (AICc=%.4f)",
                results[best_index].name, results[best_index].best_aicc)
    return ScanResult(candidates=tuple(results), best_index=best_index)


def test_w(Y, graphs, wt=None, autocor="positive"):
    """Select the candidate graph whose eigenvectors best explain ``Y``.

    Parameters
    ----------
    Y : (N,) or (N, M) array
        Centred response.
    graphs : WeightedGraph, sequence or mapping of WeightedGraph
        Candidates; a sequence is named 'W1', 'W2', ...
    wt : array-like of shape (N,) or None
        Row weights shared by all candidates.
    autocor : str or Autocor
        Eigenvector policy used to build each basis.

    Returns
    -------
    ScanResult
    """
    named = [(name, g, {}) for name, g in _named_graphs(graphs)]
    return _scan(Y, named, wt, autocor)


# keep pytest from collecting test_w as a test when imported into test modules
test_w.__test__ = False


def _edge_values(graph, xy, distances):
    if xy is not None:
        return graph.edge_distances(xy)
    if distances is None:
        return graph.weight_lists
    distances = [list(row) for row in distances]
    if len(distances) != graph.n_nodes or any(
            len(d) != len(nb) for d, nb in zip(distances, graph.neighbor_lists)):
        raise InvalidGraphError("distances must be parallel to the neighbor lists")
    return distances


def scan_weights(Y, graph, f, xy=None, distances=None, wt=None,
                 autocor="positive", **grid):
    """Scan a distance-to-weight function over a parameter grid.

    The neighbor structure and style of ``graph`` are kept; for every
    combination of the keyword grids, edge weights become ``f(d, **params)``.
    The style must use the weights, so binary graphs are rejected. A
    weighting that leaves a node with neighbors but zero total weight is
    reported with ``basis=None`` instead of stopping the scan.

    Parameters
    ----------
    Y : (N,) or (N, M) array
    graph : WeightedGraph
    f : callable
        ``f(d, **params)`` mapping an array of edge distances to weights.
    xy : (N, d) array or None
        Coordinates used to measure edge lengths.
    distances : per-node sequences or None
        Edge lengths parallel to the neighbor lists, when ``xy`` is None.
        The graph's raw weights are used if both are None.
    **grid : sequences
        Parameter values, e.g. ``y=[1, 2, 3]``.

    Returns
    -------
    ScanResult
    """
    if graph.style == Style.B:
        raise InvalidGraphError(
            "binary style ignores edge weights; restyle the graph "
            "(e.g. graph.with_style(\"W\")) before scanning weightings")
    rows = _edge_values(graph, xy, distances)
    lengths = [len(r) for r in rows]
    flat = np.concatenate([np.asarray(r, dtype=float) for r in rows]) \
        if rows else np.zeros(0)
    split_at = np.cumsum(lengths)[:-1]

    keys = list(grid)
    values = [list(grid[k]) if np.iterable(grid[k]) else [grid[k]]
              for k in keys]
    fname = getattr(f, "__name__", "f")

    named = []
    for combo in itertools.product(*values):
        params = {k: (v.item() if hasattr(v, "item") else v)
                  for k, v in zip(keys, combo)}
        w = np.asarray(f(flat, **params), dtype=float)
        weights = [part.tolist() for part in np.split(w, split_at)]
        label = ", ".join(f"{k}={v}" for k, v in params.items())
        named.append((f"{fname}({label})", graph.with_weights(weights), params))
    return _scan(Y, named, wt, autocor)
