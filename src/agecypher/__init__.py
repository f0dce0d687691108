"""Cypher queries and agtype values for PostgreSQL with Apache AGE."""

from agecypher.agtype import (
    AgtypeEnvelope,
    AgtypeParser,
    decode,
    encode,
    encode_text,
    encoded_size,
)
from agecypher.command import (
    CypherCommand,
    create_cypher_command,
    create_graph_command,
    drop_graph_command,
    escape_cypher,
    graph_exists_command,
)
from agecypher.projection import generate_as_part, projection_columns
from agecypher.session import GraphSession
from agecypher.types import Edge, GraphValue, Path, ProjectionColumn, Vertex
from agecypher.util.exceptions import (
    AgeError,
    MalformedValue,
    UnencodableValue,
    UnsupportedEnvelope,
)

__all__ = [
    "AgeError",
    "AgtypeEnvelope",
    "AgtypeParser",
    "CypherCommand",
    "Edge",
    "GraphSession",
    "GraphValue",
    "MalformedValue",
    "Path",
    "ProjectionColumn",
    "UnencodableValue",
    "UnsupportedEnvelope",
    "Vertex",
    "create_cypher_command",
    "create_graph_command",
    "decode",
    "drop_graph_command",
    "encode",
    "encode_text",
    "encoded_size",
    "escape_cypher",
    "generate_as_part",
    "graph_exists_command",
    "projection_columns",
]
