"""Config-driven construction of hypergraph containers."""

from __future__ import annotations

from typing import Any

from hyperforge.engine.bits import BitHypergraph
from hyperforge.engine.matrix import MatrixHypergraph
from hyperforge.engine.persistence import AnyHypergraph
from hyperforge.engine.sparse import SparseHypergraph
from hyperforge.models import HypergraphConfig


def create_hypergraph(config: HypergraphConfig | None = None, **options: Any) -> AnyHypergraph:
    """Build the container selected by ``config.id_scheme``.

    Options may be passed as a HypergraphConfig or as keyword arguments
    (``id_scheme``, ``node_capacity``), which are validated into one.

    Example:
        create_hypergraph(id_scheme="bit_position", node_capacity=8)
    """
    if config is None:
        config = HypergraphConfig(**options)
    elif options:
        config = HypergraphConfig(**{**config.model_dump(), **options})

    if config.id_scheme == "sparse_token":
        return SparseHypergraph()
    assert config.node_capacity is not None  # enforced by HypergraphConfig
    if config.id_scheme == "bit_position":
        return BitHypergraph(config.node_capacity)
    return MatrixHypergraph(config.node_capacity)
