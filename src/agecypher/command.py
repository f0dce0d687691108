"""SQL commands that run Cypher through the AGE extension.

A Cypher query is executed by wrapping it in a call to
``ag_catalog.cypher(graph, $$ query $$[, params])`` and declaring the result
columns with :func:`agecypher.projection.generate_as_part`. Query parameters
travel as one agtype map bound to a single placeholder, because Cypher can
only refer to them as ``$name`` keys of that one structured value.

The commands built here are plain text plus a parameter list. Running
them is left to whatever DB-API connection the caller owns.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from agecypher.agtype import encode_text
from agecypher.projection import generate_as_part
from agecypher.util.config import PARAMETER_PLACEHOLDER
from agecypher.util.logger import LOGGER

UNESCAPED_BACKSLASH_PATTERN = re.compile(r"\\(?!')")


class CypherCommand(BaseModel):
    """A SQL statement ready to hand to a database cursor.

    Attributes:
        text: The SQL text.
        parameters: Values bound to the placeholders of ``text``, in order.
    """

    model_config = ConfigDict(frozen=True)

    text: str
    parameters: List[Any] = Field(default_factory=list)


def escape_cypher(cypher: str) -> str:
    """Double every backslash that is not escaping a single quote."""
    return UNESCAPED_BACKSLASH_PATTERN.sub(r"\\\\", cypher)


def _quote_literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def _escape_percent(text: str) -> str:
    return text.replace("%", "%%")


def create_cypher_command(
    graph_name: str,
    cypher: str,
    parameters: Optional[Dict[str, Any] | str] = None,
    placeholder: Optional[str] = None,
) -> CypherCommand:
    """Wrap a Cypher query in an ``ag_catalog.cypher`` call.

    Args:
        graph_name: Name of the graph to query.
        cypher: The Cypher query. Parameters are referenced as ``$name``.
        parameters: Either a map of parameter values, which is encoded as a
            single agtype map, or an already serialized agtype/JSON string.
        placeholder: Bound-parameter token of the target driver. Defaults to
            ``PARAMETER_PLACEHOLDER`` from the configuration. With a
            pyformat token such as ``%s``, every literal ``%`` of the
            parameterized statement is doubled.

    Returns:
        CypherCommand: The SQL text and, when parameters were given, the
        serialized parameter map as its only bound value.

    Raises:
        UnencodableValue: If a parameter value has no agtype representation.
    """
    placeholder = placeholder or PARAMETER_PLACEHOLDER
    graph = _quote_literal(graph_name)
    body = escape_cypher(cypher)
    as_part = generate_as_part(cypher)

    if parameters is None:
        text = f"SELECT * FROM ag_catalog.cypher({graph}, $$ {body} $$) as {as_part};"
        bound: List[Any] = []
    else:
        if isinstance(parameters, str):
            payload = parameters
        else:
            payload = encode_text(dict(parameters))
        if placeholder.startswith("%"):
            # pyformat drivers read every % in the statement as a directive
            graph, body, as_part = (_escape_percent(part) for part in (graph, body, as_part))
        text = (
            f"SELECT * FROM ag_catalog.cypher({graph}, $$ {body} $$, {placeholder}) "
            f"as {as_part};"
        )
        bound = [payload]

    LOGGER.debug("Assembled cypher command: %s", text)
    return CypherCommand(text=text, parameters=bound)


def create_graph_command(graph_name: str, placeholder: Optional[str] = None) -> CypherCommand:
    placeholder = placeholder or PARAMETER_PLACEHOLDER
    return CypherCommand(
        text=f"SELECT * FROM ag_catalog.create_graph({placeholder});",
        parameters=[graph_name],
    )


def drop_graph_command(
    graph_name: str, cascade: bool = True, placeholder: Optional[str] = None
) -> CypherCommand:
    """Drop a graph, by default together with all of its labels and data."""
    placeholder = placeholder or PARAMETER_PLACEHOLDER
    return CypherCommand(
        text=(
            f"SELECT * FROM ag_catalog.drop_graph({placeholder}, "
            f"{'true' if cascade else 'false'});"
        ),
        parameters=[graph_name],
    )


def graph_exists_command(graph_name: str, placeholder: Optional[str] = None) -> CypherCommand:
    placeholder = placeholder or PARAMETER_PLACEHOLDER
    return CypherCommand(
        text=(
            "SELECT EXISTS (SELECT 1 FROM ag_catalog.ag_graph "
            f"WHERE name = {placeholder});"
        ),
        parameters=[graph_name],
    )
