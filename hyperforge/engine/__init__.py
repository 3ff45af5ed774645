from hyperforge.engine.bits import BitEdge, BitHypergraph, cardinality, mask_of, positions
from hyperforge.engine.convert import bits_to_matrix, bits_to_sparse, matrix_to_bits, sparse_to_bits
from hyperforge.engine.edges import Direction, EdgeKind, EdgeView
from hyperforge.engine.matrix import MAX_MATRIX_CAPACITY, MatrixHypergraph
from hyperforge.engine.sparse import SparseEdge, SparseHypergraph
from hyperforge.engine.vector import SubsetVector, apply, basis_vector, propagate

# persistence and factory depend on hyperforge.models, which imports this
# package; they are exported from hyperforge instead.

__all__ = [
    "Direction",
    "EdgeKind",
    "EdgeView",
    "SparseEdge",
    "SparseHypergraph",
    "BitEdge",
    "BitHypergraph",
    "MatrixHypergraph",
    "MAX_MATRIX_CAPACITY",
    "SubsetVector",
    "basis_vector",
    "apply",
    "propagate",
    "cardinality",
    "mask_of",
    "positions",
    "sparse_to_bits",
    "bits_to_sparse",
    "bits_to_matrix",
    "matrix_to_bits",
]
