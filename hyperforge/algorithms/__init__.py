from hyperforge.algorithms.generation import (
    erdos_renyi,
    erdos_renyi_bits,
    erdos_renyi_by_dimension,
)
from hyperforge.algorithms.traversal import Walk, cut_weight, diffuse, extend, random_walk

__all__ = [
    "erdos_renyi",
    "erdos_renyi_by_dimension",
    "erdos_renyi_bits",
    "Walk",
    "random_walk",
    "extend",
    "diffuse",
    "cut_weight",
]
