"""Run assembled commands on a DB-API connection and decode the results.

The connection is owned by the caller. It must already have the AGE
extension loaded and ``ag_catalog`` reachable. Nothing here opens, commits,
retries or closes connections, and database errors propagate unchanged.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from agecypher.agtype import DEFAULT_ENVELOPE, AgtypeEnvelope, decode
from agecypher.command import (
    CypherCommand,
    create_cypher_command,
    create_graph_command,
    drop_graph_command,
    graph_exists_command,
)
from agecypher.types import GraphValue
from agecypher.util.logger import LOGGER


class GraphSession:
    """Issue Cypher queries through any DB-API 2.0 connection.

    Attributes:
        connection: The DB-API connection commands are executed on.
        placeholder: Bound-parameter token of the connection's driver.
        envelope: Framing of binary agtype column values.

    Example:
        >>> session = GraphSession(psycopg.connect(dsn))
        >>> session.cypher("social", "MATCH (n:Person) RETURN n.name")
        [{'name': 'Alice'}, {'name': 'Bob'}]
    """

    def __init__(
        self,
        connection: Any,
        placeholder: Optional[str] = None,
        envelope: AgtypeEnvelope = DEFAULT_ENVELOPE,
    ) -> None:
        self.connection = connection
        self.placeholder = placeholder
        self.envelope = envelope

    def _run(self, command: CypherCommand, fetch_one: bool = False) -> Any:
        LOGGER.debug("Executing %s with %d parameter(s)", command.text, len(command.parameters))
        cursor = self.connection.cursor()
        try:
            if command.parameters:
                cursor.execute(command.text, command.parameters)
            else:
                cursor.execute(command.text)
            if fetch_one:
                return cursor.fetchone()
            names = [column[0] for column in cursor.description or []]
            return names, cursor.fetchall()
        finally:
            cursor.close()

    def _decode_column(self, value: Any) -> GraphValue:
        if value is None:
            return None
        return decode(value, self.envelope)

    def cypher(
        self,
        graph_name: str,
        query: str,
        parameters: Optional[Dict[str, Any] | str] = None,
    ) -> List[Dict[str, GraphValue]]:
        """Run ``query`` against ``graph_name`` and decode every column.

        Returns:
            One dict per result row, keyed by the declared column names.
            SQL NULL columns come back as ``None``.

        Raises:
            MalformedValue: If the server returns a value that is not agtype.
        """
        command = create_cypher_command(
            graph_name, query, parameters, placeholder=self.placeholder
        )
        names, rows = self._run(command)
        return [
            {name: self._decode_column(value) for name, value in zip(names, row)}
            for row in rows
        ]

    def create_graph(self, graph_name: str) -> None:
        self._run(create_graph_command(graph_name, self.placeholder), fetch_one=True)

    def drop_graph(self, graph_name: str, cascade: bool = True) -> None:
        self._run(
            drop_graph_command(graph_name, cascade, self.placeholder), fetch_one=True
        )

    def graph_exists(self, graph_name: str) -> bool:
        row = self._run(graph_exists_command(graph_name, self.placeholder), fetch_one=True)
        return bool(row and row[0])
