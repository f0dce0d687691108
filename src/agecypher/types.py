"""Graph values returned by, and sent to, the AGE extension.

Scalars, lists and maps are plain Python values (``None``, ``bool``,
``int``, ``float``, ``Decimal``, ``str``, ``list`` and ``dict``). The three
graph-specific variants are the frozen models defined here.

Vertices and edges compare by identifier only, so two decodes of the same
vertex taken before and after a property update are still equal:

    >>> Vertex(id=1, label="Person", properties={"age": 30}) == Vertex(
    ...     id=1, label="Person", properties={"age": 31}
    ... )
    True
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Iterator, List, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, model_validator

from agecypher.util.config import COLUMN_TYPE

VERTEX_FOOTER: str = "::vertex"
EDGE_FOOTER: str = "::edge"
PATH_FOOTER: str = "::path"
NUMERIC_FOOTER: str = "::numeric"


class Vertex(BaseModel):
    """A graph vertex.

    Attributes:
        id: Graph-assigned 64-bit identifier.
        label: Vertex label.
        properties: Property map of the vertex.
    """

    model_config = ConfigDict(frozen=True)

    id: StrictInt
    label: StrictStr
    properties: Dict[str, Any] = Field(default_factory=dict)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vertex):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash((Vertex, self.id))


class Edge(BaseModel):
    """A directed graph edge.

    Attributes:
        id: Graph-assigned 64-bit identifier.
        label: Edge label.
        start_id: Identifier of the source vertex.
        end_id: Identifier of the target vertex.
        properties: Property map of the edge.
    """

    model_config = ConfigDict(frozen=True)

    id: StrictInt
    label: StrictStr
    start_id: StrictInt
    end_id: StrictInt
    properties: Dict[str, Any] = Field(default_factory=dict)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Edge):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash((Edge, self.id))


class Path(BaseModel):
    """An alternating sequence ``vertex, edge, vertex, ..., vertex``."""

    model_config = ConfigDict(frozen=True)

    elements: Tuple[Union[Vertex, Edge], ...]

    @model_validator(mode="after")
    def check_alternation(self) -> "Path":
        """Paths start and end on a vertex and alternate in between."""
        if len(self.elements) % 2 == 0:
            raise ValueError(
                f"A path needs an odd number of elements, got {len(self.elements)}"
            )
        for position, element in enumerate(self.elements):
            expected = Vertex if position % 2 == 0 else Edge
            if not isinstance(element, expected):
                raise ValueError(
                    f"Path element {position} should be a {expected.__name__}, "
                    f"not {type(element).__name__}"
                )
        return self

    @property
    def vertices(self) -> List[Vertex]:
        return list(self.elements[0::2])

    @property
    def edges(self) -> List[Edge]:
        return list(self.elements[1::2])

    @property
    def start(self) -> Vertex:
        return self.elements[0]

    @property
    def end(self) -> Vertex:
        return self.elements[-1]

    def __iter__(self) -> Iterator[Union[Vertex, Edge]]:  # type: ignore[override]
        return iter(self.elements)

    def __len__(self) -> int:
        return len(self.elements)


GraphValue = Union[
    None,
    bool,
    int,
    float,
    Decimal,
    str,
    List["GraphValue"],
    Dict[str, "GraphValue"],
    Vertex,
    Edge,
    Path,
]


class ProjectionColumn(BaseModel):
    """One column of the ``as (...)`` declaration of a cypher() call.

    Attributes:
        name: Column name, already sanitized unless it came from a bracket
            accessor.
        needs_quoting: Whether the name must be double-quoted in SQL.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    needs_quoting: bool = False

    @property
    def sql_name(self) -> str:
        if self.needs_quoting:
            return f'"{self.name}"'
        return self.name

    def declaration(self, column_type: str = COLUMN_TYPE) -> str:
        """Render the ``<name> <type>`` fragment of the declaration."""
        return f"{self.sql_name} {column_type}"
