"""pymem: Moran's Eigenvector Maps and AICc selection on weighted graphs."""

from .core import ModelSelector
from .basis import EigenBasis, subset
from .mem import mem, moran_constant, moran_i, resample
from .selection import ortho_aic, scalogram, scan_weights, test_w
from .spatial import WeightedGraph
from . import basis, exceptions, metrics, models, selection, spatial, weighting

__version__ = "0.1.0"
__all__ = [
    "ModelSelector", "EigenBasis", "WeightedGraph",
    "mem", "moran_constant", "moran_i", "resample", "subset",
    "ortho_aic", "scalogram", "scan_weights", "test_w",
    "basis", "exceptions", "metrics", "models", "selection", "spatial",
    "weighting",
]
