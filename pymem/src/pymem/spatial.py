"""Weighted neighbor graphs and their normalization styles."""

import numpy as np
import networkx as nx
import scipy.sparse as sp

from .exceptions import DegenerateGraphError, DegenerateRowError, InvalidGraphError
from .models import Style


def _is_index(j):
    return isinstance(j, (int, np.integer)) and not isinstance(j, (bool, np.bool_))


class WeightedGraph:
    """Per-node neighbor lists with parallel edge weights.

    The graph is immutable. Normalized weights are computed on demand, so one
    graph can back several differently-styled matrices.

    Parameters
    ----------
    neighbors : sequence of sequences of int
        ``neighbors[i]`` lists the neighbors of node i, in order.
    weights : sequence of sequences of float or None
        Parallel to ``neighbors``. Default 1.0 for every edge.
    style : str or Style
        'B' (binary), 'W' (row-standardized), 'C' (globally-standardized),
        'S' (variance-stabilizing) or 'minmax'.
    self_loops : bool
        Allow ``i`` to appear in its own neighbor list.
    """

    def __init__(self, neighbors, weights=None, style="B", self_loops=False):
        self._style = Style(style)
        self._self_loops = bool(self_loops)
        neighbors = list(neighbors)
        n = len(neighbors)
        if weights is None:
            weights = [[1.0] * len(row) for row in neighbors]
        else:
            weights = list(weights)
            if len(weights) != n:
                raise InvalidGraphError(
                    f"weights has {len(weights)} rows, neighbors has {n}")

        nb_rows = []
        w_rows = []
        for i in range(n):
            row = list(neighbors[i])
            w = list(weights[i])
            if len(row) != len(w):
                raise InvalidGraphError(
                    f"node {i}: {len(row)} neighbors but {len(w)} weights")
            for j in row:
                if not _is_index(j):
                    raise InvalidGraphError(
                        f"node {i}: neighbor {j!r} is not an integer index")
                if j < 0 or j >= n:
                    raise InvalidGraphError(
                        f"node {i}: neighbor {j} out of range 0..{n - 1}")
                if j == i and not self_loops:
                    raise InvalidGraphError(f"node {i}: self-loop not allowed")
            if len(set(row)) != len(row):
                raise InvalidGraphError(f"node {i}: duplicated neighbor")
            try:
                w = [float(v) for v in w]
            except (TypeError, ValueError) as exc:
                raise InvalidGraphError(f"node {i}: non-numeric weight") from exc
            if not all(np.isfinite(v) for v in w):
                raise InvalidGraphError(f"node {i}: non-finite weight")
            if any(v < 0 for v in w):
                raise InvalidGraphError(f"node {i}: negative weight")
            nb_rows.append(tuple(int(j) for j in row))
            w_rows.append(tuple(w))

        self._n = n
        self._neighbors = tuple(nb_rows)
        self._weights = tuple(w_rows)

    # ── Construction ────────────────────────────────────────────────────

    @classmethod
    def from_networkx(cls, G, style="B", weight="weight"):
        """Build from a networkx graph.

        Parameters
        ----------
        G : nx.Graph or nx.DiGraph
            Edges may carry a ``weight`` attribute (default 1.0). Nodes other
            than 0..N-1 are relabelled in sorted order.
        """
        if set(G.nodes) != set(range(G.number_of_nodes())):
            G = nx.convert_node_labels_to_integers(G, ordering="sorted")
        n = G.number_of_nodes()
        neighbors = []
        weights = []
        for i in range(n):
            row = sorted(G.neighbors(i))
            neighbors.append(row)
            weights.append([G.edges[i, j].get(weight, 1.0) for j in row])
        self_loops = nx.number_of_selfloops(G) > 0
        return cls(neighbors, weights, style=style, self_loops=self_loops)

    @classmethod
    def from_matrix(cls, W, style="B"):
        """Build from a dense (n, n) weight matrix; non-zero entries are edges."""
        W = np.asarray(W, dtype=float)
        if W.ndim != 2 or W.shape[0] != W.shape[1]:
            raise InvalidGraphError(f"weight matrix must be square, got {W.shape}")
        self_loops = bool(np.any(np.diag(W) != 0))
        neighbors = []
        weights = []
        for i in range(W.shape[0]):
            row = np.flatnonzero(W[i])
            neighbors.append([int(j) for j in row])
            weights.append(W[i, row].tolist())
        return cls(neighbors, weights, style=style, self_loops=self_loops)

    def with_style(self, style):
        """Same edges and weights, another normalization style."""
        return WeightedGraph(self._neighbors, self._weights, style=style,
                             self_loops=self._self_loops)

    def with_weights(self, weights):
        """Same neighbor structure and style, new raw weights."""
        return WeightedGraph(self._neighbors, weights, style=self._style,
                             self_loops=self._self_loops)

    def symmetrized(self):
        """Graph whose raw weight matrix is ``(A + A.T) / 2``."""
        A = self._raw_matrix().toarray()
        return WeightedGraph.from_matrix((A + A.T) / 2.0, style=self._style)

    def to_networkx(self):
        """Export raw weights; a DiGraph unless the graph is symmetric."""
        G = nx.Graph() if self.is_symmetric else nx.DiGraph()
        G.add_nodes_from(range(self._n))
        for i in range(self._n):
            for j, w in zip(self._neighbors[i], self._weights[i]):
                G.add_edge(i, j, weight=w)
        return G

    # ── Accessors ───────────────────────────────────────────────────────

    @property
    def n_nodes(self):
        return self._n

    @property
    def n_edges(self):
        """Number of neighbor entries (a symmetric edge counts twice)."""
        return sum(len(row) for row in self._neighbors)

    @property
    def style(self):
        return self._style

    @property
    def neighbor_lists(self):
        return self._neighbors

    @property
    def weight_lists(self):
        return self._weights

    @property
    def is_symmetric(self):
        A = self._raw_matrix()
        return (abs(A - A.T) > 0).nnz == 0

    def neighbors(self, i):
        """Return list of (index, raw weight) for neighbors of node i."""
        return list(zip(self._neighbors[i], self._weights[i]))

    def __len__(self):
        return self._n

    def __repr__(self):
        return (f"WeightedGraph(n_nodes={self._n}, n_edges={self.n_edges}, "
                f"style={self._style.value!r})")

    # ── Normalization ───────────────────────────────────────────────────

    def normalized_weights(self, style=None):
        """Per-node normalized weights, parallel to the neighbor lists.

        Parameters
        ----------
        style : str, Style or None
            Overrides the graph's own style.

        Returns
        -------
        weights : tuple of tuples of float
        """
        style = self._style if style is None else Style(style)
        rows = self._weights

        if style == Style.B:
            return tuple(tuple(1.0 for _ in row) for row in rows)

        if style == Style.W:
            out = []
            for i, row in enumerate(rows):
                s = sum(row)
                if row and s <= 0:
                    raise DegenerateRowError(i)
                out.append(tuple(w / s for w in row))
            return tuple(out)

        if style == Style.C:
            total = sum(sum(row) for row in rows)
            if total <= 0:
                raise DegenerateGraphError("sum of all weights is zero")
            return tuple(tuple(w / total for w in row) for row in rows)

        if style == Style.S:
            out = []
            for i, row in enumerate(rows):
                s = sum(row)
                if row and s <= 0:
                    raise DegenerateRowError(i)
                q = np.sqrt(s)
                out.append([w / q for w in row])
            total = sum(sum(row) for row in out)
            if total <= 0:
                raise DegenerateGraphError("sum of all weights is zero")
            scale = self._n / total
            return tuple(tuple(w * scale for w in row) for row in out)

        if style == Style.MINMAX:
            A = self._raw_matrix()
            row_max = float(np.asarray(A.sum(axis=1)).max()) if self._n else 0.0
            col_max = float(np.asarray(A.sum(axis=0)).max()) if self._n else 0.0
            scale = min(row_max, col_max)
            if scale <= 0:
                raise DegenerateGraphError("sum of all weights is zero")
            return tuple(tuple(w / scale for w in row) for row in rows)

        raise ValueError(f"Unknown style: {style}")

    def matrix(self, style=None, sparse=False):
        """Materialize the normalized (n, n) weight matrix.

        Returns
        -------
        W : np.ndarray or scipy.sparse.csr_matrix
        """
        W = self._build(self.normalized_weights(style))
        return W if sparse else W.toarray()

    def total_weight(self, style=None):
        """S0, the sum of all normalized weights."""
        return float(sum(sum(row) for row in self.normalized_weights(style)))

    def edge_distances(self, xy):
        """Euclidean length of every edge, parallel to the neighbor lists.

        Parameters
        ----------
        xy : (N, d) array of node coordinates.
        """
        xy = np.asarray(xy, dtype=float)
        if xy.ndim == 1:
            xy = xy[:, None]
        if xy.shape[0] != self._n:
            raise InvalidGraphError(
                f"xy has {xy.shape[0]} rows, graph has {self._n} nodes")
        return tuple(
            tuple(float(np.linalg.norm(xy[i] - xy[j])) for j in row)
            for i, row in enumerate(self._neighbors)
        )

    def _raw_matrix(self):
        return self._build(self._weights)

    def _build(self, weight_rows):
        rows, cols, data = [], [], []
        for i, (row, w) in enumerate(zip(self._neighbors, weight_rows)):
            rows.extend([i] * len(row))
            cols.extend(row)
            data.extend(w)
        return sp.csr_matrix(
            (np.asarray(data, dtype=float), (np.asarray(rows, dtype=int),
                                             np.asarray(cols, dtype=int))),
            shape=(self._n, self._n),
        )
