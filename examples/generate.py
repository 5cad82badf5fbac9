"""Synthetic data generators for MEM model selection.

Provides two data classes:
- LatticeData: rook or queen lattice with a smooth response built from its
  own leading eigenvectors plus Gaussian noise
- CycleData: ring of sites with a sinusoidal response

Each class exposes a networkx graph, node coordinates and a centred response,
and can export them as tab-separated text.

Usage:
    python generate.py          # generates example datasets in examples/
"""

import sys
from pathlib import Path

import numpy as np
import networkx as nx

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "pymem" / "src"))

import pymem


# ---------------------------------------------------------------------------
# Export functions
# ---------------------------------------------------------------------------

def write_xy(path, xy):
    """Write node coordinates (N x 2) as tab-separated text."""
    np.savetxt(path, xy, fmt="%.6f", delimiter="\t")


def write_response(path, Y):
    """Write a response (N, or N x M) as tab-separated text."""
    np.savetxt(path, np.atleast_2d(Y.T).T, fmt="%.6f", delimiter="\t")


def write_edges(path, G):
    """Write a weighted edge list, 0-based node indices."""
    nx.write_weighted_edgelist(G, path, delimiter="\t")


# ---------------------------------------------------------------------------
# LatticeData
# ---------------------------------------------------------------------------

class LatticeData:
    """Regular lattice with a spatially structured response.

    The response is a combination of the lattice's own leading positive
    eigenvectors, so the "true" model is known.

    Parameters
    ----------
    nl, nc : int
        Number of rows (lines) and columns.
    queen : bool
        Add diagonal neighbors (8-connectivity instead of 4).
    coefs : array-like
        Coefficients of the leading eigenvectors used in the signal.
    sigma : float
        Standard deviation of the Gaussian noise.
    seed : int or None
        Random seed.
    """

    def __init__(self, nl, nc, queen=False, coefs=(2.0, -1.0), sigma=0.5,
                 seed=None):
        self.rng = np.random.default_rng(seed)
        self.nl = nl
        self.nc = nc
        self.n = nl * nc

        G = nx.grid_2d_graph(nl, nc)
        if queen:
            for r in range(nl - 1):
                for c in range(nc - 1):
                    G.add_edge((r, c), (r + 1, c + 1))
                    G.add_edge((r + 1, c), (r, c + 1))
        # Relabel to integer nodes 0..N-1 (row-major order)
        mapping = {(r, c): r * nc + c for r in range(nl) for c in range(nc)}
        self.graph = nx.relabel_nodes(G, mapping)
        self.xy = np.array([(r, c) for r in range(nl) for c in range(nc)],
                           dtype=float)

        basis = pymem.mem(pymem.WeightedGraph.from_networkx(self.graph),
                          autocor="positive")
        coefs = np.asarray(coefs, dtype=float)
        self.true_columns = np.arange(coefs.size)
        signal = basis.vectors[:, :coefs.size] @ coefs
        y = signal + self.rng.normal(0.0, sigma, size=self.n)
        self.response = y - y.mean()

    def export(self, basename):
        """Write basename.{xy,y,edges} files."""
        write_xy(f"{basename}.xy", self.xy)
        write_response(f"{basename}.y", self.response)
        write_edges(f"{basename}.edges", self.graph)
        print(f"Exported: {basename}.{{xy,y,edges}}")


# ---------------------------------------------------------------------------
# CycleData
# ---------------------------------------------------------------------------

class CycleData:
    """Sites on a ring with a sinusoidal response.

    Parameters
    ----------
    n : int
        Number of sites.
    period : float
        Period of the sinusoid, in sites.
    sigma : float
        Standard deviation of the Gaussian noise.
    seed : int or None
        Random seed.
    """

    def __init__(self, n, period, sigma=0.2, seed=None):
        self.rng = np.random.default_rng(seed)
        self.n = n
        self.graph = nx.cycle_graph(n)
        theta = 2 * np.pi * np.arange(n) / n
        self.xy = np.column_stack([np.cos(theta), np.sin(theta)])
        y = np.sin(2 * np.pi * np.arange(n) / period) \
            + self.rng.normal(0.0, sigma, size=n)
        self.response = y - y.mean()

    def export(self, basename):
        """Write basename.{xy,y,edges} files."""
        write_xy(f"{basename}.xy", self.xy)
        write_response(f"{basename}.y", self.response)
        write_edges(f"{basename}.edges", self.graph)
        print(f"Exported: {basename}.{{xy,y,edges}}")


# ---------------------------------------------------------------------------
# Main: generate example datasets
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    script_dir = Path(__file__).parent

    print("Generating lattice dataset (10x12, rook)...")
    lattice = LatticeData(nl=10, nc=12, coefs=[2.0, -1.0, 0.5], sigma=0.5,
                          seed=42)
    lattice.export(str(script_dir / "lattice_10x12"))

    print("Generating cycle dataset (60 sites, period 20)...")
    ring = CycleData(n=60, period=20, sigma=0.2, seed=42)
    ring.export(str(script_dir / "cycle_60"))

    print("Done.")
