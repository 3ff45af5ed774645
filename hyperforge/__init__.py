"""Hyperforge — directed, weighted hypergraphs in sparse, bit-packed and matrix form."""

__version__ = "0.1.0"

from hyperforge.engine import (
    BitHypergraph,
    Direction,
    EdgeKind,
    MatrixHypergraph,
    SparseHypergraph,
    SubsetVector,
    apply,
    basis_vector,
    propagate,
)
from hyperforge.engine.factory import create_hypergraph
from hyperforge.engine.persistence import load_graph, save_graph
from hyperforge.errors import (
    ExhaustedError,
    HypergraphError,
    IndexCorruptionError,
    InvalidNodeError,
    NotFoundError,
    OutOfRangeError,
    WeightNormalizationError,
    ZeroWeightError,
)
from hyperforge.models import HypergraphConfig

__all__ = [
    "BitHypergraph",
    "Direction",
    "EdgeKind",
    "ExhaustedError",
    "HypergraphConfig",
    "HypergraphError",
    "IndexCorruptionError",
    "InvalidNodeError",
    "MatrixHypergraph",
    "NotFoundError",
    "OutOfRangeError",
    "SparseHypergraph",
    "SubsetVector",
    "WeightNormalizationError",
    "ZeroWeightError",
    "__version__",
    "apply",
    "basis_vector",
    "create_hypergraph",
    "load_graph",
    "propagate",
    "save_graph",
]
