"""Pydantic models for hyperforge configuration and persisted documents.

The engine containers (hyperforge.engine) work with plain dataclasses and
dicts; these models validate what crosses the package boundary: the
construction-time configuration and serialized graph documents.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator

from hyperforge.engine.edges import EdgeKind
from hyperforge.engine.matrix import MAX_MATRIX_CAPACITY

IdScheme = Literal["sparse_token", "bit_position", "matrix_index"]

FORMAT_VERSION = "1"


class HypergraphConfig(BaseModel):
    """Construction-time options for a hypergraph container.

    ``node_capacity`` is required for the bit and matrix schemes and is
    ignored by the sparse scheme, whose universe grows with add_node().
    """

    model_config = ConfigDict(extra="forbid")

    id_scheme: IdScheme = "sparse_token"
    node_capacity: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _check_capacity(self) -> HypergraphConfig:
        if self.id_scheme != "sparse_token" and self.node_capacity is None:
            raise ValueError(f"node_capacity is required for id_scheme {self.id_scheme!r}")
        if (
            self.id_scheme == "matrix_index"
            and self.node_capacity is not None
            and self.node_capacity > MAX_MATRIX_CAPACITY
        ):
            raise ValueError(
                f"node_capacity for matrix_index must be <= {MAX_MATRIX_CAPACITY}, "
                f"got: {self.node_capacity}"
            )
        return self


class SparseEdgeRecord(BaseModel):
    id: int = Field(ge=0)
    input: list[UUID] = Field(default_factory=list)
    output: list[UUID] = Field(default_factory=list)
    weight: float
    kind: EdgeKind = EdgeKind.DIRECTED


class BitEdgeRecord(BaseModel):
    id: int = Field(ge=0)
    input: int = Field(default=0, ge=0)
    output: int = Field(default=0, ge=0)
    weight: float
    kind: EdgeKind = EdgeKind.DIRECTED


class SparseDocument(BaseModel):
    """Serialized SparseHypergraph."""

    representation: Literal["sparse"] = "sparse"
    format_version: str = FORMAT_VERSION
    id: UUID | None = None
    nodes: list[UUID] = Field(default_factory=list)
    retired: list[UUID] = Field(default_factory=list)
    edges: list[SparseEdgeRecord] = Field(default_factory=list)
    next_edge_id: int = Field(default=0, ge=0)


class BitDocument(BaseModel):
    """Serialized BitHypergraph."""

    representation: Literal["bit"] = "bit"
    format_version: str = FORMAT_VERSION
    node_capacity: int = Field(ge=0)
    edges: list[BitEdgeRecord] = Field(default_factory=list)
    next_edge_id: int = Field(default=0, ge=0)


class MatrixDocument(BaseModel):
    """Serialized MatrixHypergraph; entries are ``[row, col, weight]``."""

    representation: Literal["matrix"] = "matrix"
    format_version: str = FORMAT_VERSION
    node_capacity: int = Field(ge=0, le=MAX_MATRIX_CAPACITY)
    nodes: list[int] | None = None
    next_position: int = Field(default=0, ge=0)
    entries: list[tuple[int, int, float]] = Field(default_factory=list)


GraphDocument = Annotated[
    Union[SparseDocument, BitDocument, MatrixDocument],
    Field(discriminator="representation"),
]

graph_document_adapter: TypeAdapter[GraphDocument] = TypeAdapter(GraphDocument)
