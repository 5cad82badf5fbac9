"""ModelSelector: pick the graph and eigenvectors that best explain a response."""

from collections.abc import Mapping

import numpy as np

from .basis import EigenBasis
from .models import Autocor
from .selection import ortho_aic, scan_weights, test_w
from .spatial import WeightedGraph


class ModelSelector:
    """AICc forward selection of Moran's eigenvectors.

    Parameters
    ----------
    autocor : str
        'positive', 'negative', 'non-null' or 'all'. Policy used to build a
        basis from each candidate graph.
    style : str or None
        If given, every candidate graph is restyled before decomposition:
        'B', 'W', 'C', 'S' or 'minmax'.
    wt : array-like or None
        Row weights shared by all candidates (default uniform).
    verbose : int
        Verbosity level.
    """

    def __init__(self, autocor="positive", style=None, wt=None, verbose=0):
        self.autocor = Autocor(autocor)
        self.style = style
        self.wt = wt
        self.verbose = verbose

    def fit(self, Y, graphs, f=None, xy=None, distances=None, **grid):
        """Fit the selector.

        Parameters
        ----------
        Y : (N,) or (N, M) array
            Centred response.
        graphs : EigenBasis, WeightedGraph, sequence or mapping of graphs
            A ready basis is used as is; graphs are decomposed and scanned.
        f : callable or None
            Distance-to-weight function. When given, ``graphs`` must be a
            single WeightedGraph whose weights are scanned over ``**grid``
            (see :func:`pymem.selection.scan_weights`).
        xy, distances :
            Edge lengths for ``f``; the graph's raw weights if both are None.

        Returns
        -------
        self
        """
        if isinstance(graphs, EigenBasis):
            if f is not None:
                raise ValueError("a weighting function needs a WeightedGraph")
            selection = ortho_aic(Y, graphs)
            self._store_result(None, graphs, selection, name=None)
            return self

        if f is not None:
            if not isinstance(graphs, WeightedGraph):
                raise ValueError("a weighting function needs a single WeightedGraph")
            graph = graphs if self.style is None else graphs.with_style(self.style)
            scan = scan_weights(Y, graph, f, xy=xy, distances=distances,
                                wt=self.wt, autocor=self.autocor, **grid)
        else:
            if isinstance(graphs, WeightedGraph):
                graphs = {"W1": graphs}
            elif not isinstance(graphs, Mapping):
                graphs = {f"W{i + 1}": g for i, g in enumerate(graphs)}
            if self.style is not None:
                graphs = {name: g.with_style(self.style)
                          for name, g in graphs.items()}
            scan = test_w(Y, graphs, wt=self.wt, autocor=self.autocor)

        if self.verbose:
            for c in scan.candidates:
                if c.basis is None:
                    print(f"  {c.name}: degenerate weights, skipped")
                    continue
                k = c.selection.best_k if c.selection is not None else 0
                print(f"  {c.name}: n_vectors={c.basis.n_vectors} "
                      f"best_k={k} AICc={c.best_aicc:.4f}")
        best = scan.best
        self._store_result(scan, best.basis, best.selection, name=best.name)
        return self

    def transform(self):
        """Return the selected eigenvectors as an (N, k) array."""
        return np.array(self.basis_.vectors[:, self.selected_])

    def _store_result(self, scan, basis, selection, name):
        """Store selection results as attributes."""
        self.scan_ = scan
        self.basis_ = basis
        self.selection_ = selection
        self.best_name_ = name
        self.ordering_ = selection.ordering
        self.aicc_ = selection.aicc
        self.best_k_ = selection.best_k
        self.best_aicc_ = selection.best_aicc
        self.selected_ = selection.selected
