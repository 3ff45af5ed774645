"""Persistence utilities for hypergraph save/load.

Graphs are written as UTF-8 JSON documents tagged with their representation:

    {"representation": "sparse" | "bit" | "matrix", "format_version": "1", ...}

Documents are validated with the pydantic models in hyperforge.models before
a container is rebuilt. Round trips keep node ids, edge ids, parallel edges,
edge kinds and exact float weights. The layout may change between versions.

Security:
    Paths are resolved to absolute paths and rejected if they contain null
    bytes or, when a base directory is given, escape it.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Union

from pydantic import ValidationError

from hyperforge.engine.bits import BitHypergraph
from hyperforge.engine.matrix import MatrixHypergraph
from hyperforge.engine.sparse import SparseHypergraph
from hyperforge.models import FORMAT_VERSION, graph_document_adapter

logger = logging.getLogger("hyperforge.persistence")

AnyHypergraph = Union[SparseHypergraph, BitHypergraph, MatrixHypergraph]

_LOADERS: dict[str, Any] = {
    "sparse": SparseHypergraph.from_dict,
    "bit": BitHypergraph.from_dict,
    "matrix": MatrixHypergraph.from_dict,
}


def _validate_path(path: str | Path, base_dir: Path | None = None) -> Path:
    """Validate and resolve a file path.

    Raises:
        ValueError: If path contains null bytes or escapes base_dir
    """
    # Null bytes are rejected before any path operation
    if "\x00" in str(path):
        raise ValueError(f"Invalid path (contains null bytes): {str(path)!r}")

    resolved = Path(path).resolve()

    if base_dir is not None:
        try:
            resolved.relative_to(base_dir.resolve())
        except ValueError:
            raise ValueError(
                f"Path traversal detected: {path} is outside base directory {base_dir}"
            ) from None

    return resolved


def to_document(graph: AnyHypergraph) -> dict[str, Any]:
    """Serialize any container to a JSON-compatible document."""
    if not isinstance(graph, (SparseHypergraph, BitHypergraph, MatrixHypergraph)):
        raise TypeError(f"Cannot serialize object of type {type(graph).__name__}")
    document = graph.to_dict()
    document["format_version"] = FORMAT_VERSION
    return document


def from_document(data: dict[str, Any]) -> AnyHypergraph:
    """Rebuild a container from a document produced by to_document().

    Raises:
        ValueError: If the document does not match any known schema
    """
    try:
        document = graph_document_adapter.validate_python(data)
    except ValidationError as exc:
        raise ValueError(f"Invalid hypergraph document: {exc}") from exc
    return _LOADERS[document.representation](document.model_dump(mode="json"))


def save_graph(
    graph: AnyHypergraph,
    path: str | Path,
    base_dir: Path | None = None,
) -> Path:
    """Write a container to a JSON file, creating parent directories.

    Returns:
        The resolved path written to
    """
    validated_path = _validate_path(path, base_dir)
    data = to_document(graph)

    # Ensure parent directory exists
    validated_path.parent.mkdir(parents=True, exist_ok=True)

    with open(validated_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    logger.info("Saved %s hypergraph to %s", data["representation"], validated_path)
    return validated_path


def load_graph(path: str | Path, base_dir: Path | None = None) -> AnyHypergraph:
    """Load a container from a JSON file written by save_graph().

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the path is invalid or the document is malformed
    """
    validated_path = _validate_path(path, base_dir)

    with open(validated_path, encoding="utf-8") as f:
        data = json.load(f)

    graph = from_document(data)
    logger.info("Loaded %s hypergraph from %s", data.get("representation"), validated_path)
    return graph
