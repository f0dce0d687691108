"""agtype literal codec.

The AGE extension hands every graph result back as ``agtype``, whose text
form is a JSON superset: numbers may be ``NaN``/``Infinity``, numerics carry
a ``::numeric`` annotation, and objects/arrays may be promoted to graph
entities with a trailing ``::vertex``, ``::edge`` or ``::path``::

    {"id": 844424930131969, "label": "Person", "properties": {"name": "Alice"}}::vertex

This module parses that text with a Lark LALR grammar and turns the parse
tree into Python values with :class:`AgtypeTransformer`. :func:`encode`
goes the other way, and :func:`encoded_size` reports the payload length
without building the payload.

Example:
    >>> from agecypher.agtype import decode, encode
    >>> decode(b'[1, 2.5, "three", null]')
    [1, 2.5, 'three', None]
    >>> encode({"name": "Alice"})
    b'{"name": "Alice"}'
"""

from __future__ import annotations

import json
import math
from decimal import Decimal
from typing import Any, Iterator, List, Optional, Tuple

from lark import Lark, Token, Transformer, Tree, v_args
from lark.exceptions import UnexpectedCharacters, UnexpectedInput, UnexpectedToken, VisitError
from pydantic import ValidationError

from agecypher.types import (
    EDGE_FOOTER,
    NUMERIC_FOOTER,
    PATH_FOOTER,
    VERTEX_FOOTER,
    Edge,
    GraphValue,
    Path,
    Vertex,
)
from agecypher.util.config import AGTYPE_VERSIONED_ENVELOPE
from agecypher.util.exceptions import MalformedValue, UnencodableValue, UnsupportedEnvelope
from agecypher.util.helpers import ensure_bytes, ensure_text
from agecypher.util.logger import LOGGER

INT64_MIN: int = -(2**63)
INT64_MAX: int = 2**63 - 1

AGTYPE_GRAMMAR = r"""
?start: value

?value: mapping
      | array
      | vertex
      | edge
      | path
      | numeric
      | string
      | NUMBER -> number
      | SPECIAL_FLOAT -> special_float
      | "true" -> true
      | "false" -> false
      | "null" -> null

mapping: "{" (pair ("," pair)*)? "}"
pair: string ":" value
array: "[" (value ("," value)*)? "]"

vertex: mapping "::vertex"
edge: mapping "::edge"
path: array "::path"
numeric: (NUMBER | SPECIAL_FLOAT) "::numeric"

string: STRING

STRING: /"(?:[^"\\]|\\.)*"/
NUMBER: /-?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?/
SPECIAL_FLOAT: /-?Infinity|NaN/

%import common.WS
%ignore WS
"""

VERTEX_FIELDS: Tuple[str, ...] = ("id", "label", "properties")
EDGE_FIELDS: Tuple[str, ...] = ("id", "label", "start_id", "end_id", "properties")


def _span(meta: Any) -> Tuple[Optional[int], Optional[int]]:
    return getattr(meta, "start_pos", None), getattr(meta, "end_pos", None)


class AgtypeTransformer(Transformer):
    """Turn an agtype parse tree into Python values.

    Each method corresponds to a grammar rule and receives its already
    transformed children. A transformer is built per decoded text so that
    errors can point back into it.
    """

    def __init__(self, text: str) -> None:
        super().__init__()
        self.text = text

    def _malformed(self, message: str, meta: Any) -> MalformedValue:
        start, end = _span(meta)
        return MalformedValue(message, self.text, start, end)

    def string(self, args: List[Token]) -> str:
        token = args[0]
        try:
            return json.loads(token, strict=False)
        except json.JSONDecodeError as e:
            raise MalformedValue(
                f"Invalid string literal: {e.msg}",
                self.text,
                token.start_pos,
                token.end_pos,
            ) from e

    def number(self, args: List[Token]) -> int | float:
        token = args[0]
        if any(marker in token for marker in ".eE"):
            return float(token)
        value = int(token)
        if not INT64_MIN <= value <= INT64_MAX:
            raise MalformedValue(
                f"Integer {token} does not fit in 64 bits",
                self.text,
                token.start_pos,
                token.end_pos,
            )
        return value

    def special_float(self, args: List[Token]) -> float:
        return float(args[0])

    def numeric(self, args: List[Token]) -> Decimal:
        return Decimal(str(args[0]))

    def true(self, _) -> bool:
        return True

    def false(self, _) -> bool:
        return False

    def null(self, _) -> None:
        return None

    def pair(self, args: List[Any]) -> Tuple[str, Any]:
        return args[0], args[1]

    @v_args(meta=True)
    def mapping(self, meta: Any, args: List[Tuple[str, Any]]) -> dict:
        out: dict = {}
        for key, value in args:
            if key in out:
                raise self._malformed(f"Duplicate key {key!r} in map", meta)
            out[key] = value
        return out

    def array(self, args: List[Any]) -> list:
        return list(args)

    def _entity_fields(self, obj: dict, fields: Tuple[str, ...], kind: str, meta: Any) -> dict:
        missing = [field for field in fields if field not in obj]
        if missing:
            raise self._malformed(
                f"{kind} literal is missing {', '.join(missing)}", meta
            )
        return {field: obj[field] for field in fields}

    @v_args(meta=True)
    def vertex(self, meta: Any, args: List[dict]) -> Vertex:
        fields = self._entity_fields(args[0], VERTEX_FIELDS, "Vertex", meta)
        try:
            return Vertex.model_validate(fields)
        except ValidationError as e:
            raise self._malformed(f"Invalid vertex literal: {e}", meta) from e

    @v_args(meta=True)
    def edge(self, meta: Any, args: List[dict]) -> Edge:
        fields = self._entity_fields(args[0], EDGE_FIELDS, "Edge", meta)
        try:
            return Edge.model_validate(fields)
        except ValidationError as e:
            raise self._malformed(f"Invalid edge literal: {e}", meta) from e

    @v_args(meta=True)
    def path(self, meta: Any, args: List[list]) -> Path:
        for element in args[0]:
            if not isinstance(element, (Vertex, Edge)):
                raise self._malformed(
                    "Path elements must be vertex or edge literals", meta
                )
        try:
            return Path(elements=args[0])
        except ValidationError as e:
            raise self._malformed(f"Invalid path literal: {e}", meta) from e


class AgtypeEnvelope:
    """Binary framing of one agtype value on the wire.

    Newer servers send the bare UTF-8 text. Older ones prefix it with a
    single version byte, which must be ``1``.

    Attributes:
        versioned: Whether payloads carry the version byte.
    """

    VERSION: int = 1

    def __init__(self, versioned: bool = AGTYPE_VERSIONED_ENVELOPE) -> None:
        self.versioned = versioned

    @property
    def overhead(self) -> int:
        """Number of bytes the envelope adds to the text."""
        return 1 if self.versioned else 0

    def wrap(self, payload: bytes) -> bytes:
        if self.versioned:
            return bytes((self.VERSION,)) + payload
        return payload

    def unwrap(self, payload: bytes) -> bytes:
        if not self.versioned:
            return payload
        if not payload:
            raise UnsupportedEnvelope(None)
        if payload[0] != self.VERSION:
            raise UnsupportedEnvelope(payload[0])
        return payload[1:]

    def __repr__(self) -> str:
        return f"AgtypeEnvelope(versioned={self.versioned})"


DEFAULT_ENVELOPE = AgtypeEnvelope()


class AgtypeParser:
    """Parser for agtype literals.

    Attributes:
        parser: The Lark parser instance.

    Example:
        >>> parser = AgtypeParser()
        >>> parser.decode('{"id": 1, "label": "A", "properties": {}}::vertex')
        Vertex(id=1, label='A', properties={})
    """

    parser: Lark

    def __init__(self, debug: bool = False) -> None:
        self.parser = Lark(
            AGTYPE_GRAMMAR,
            parser="lalr",
            propagate_positions=True,
            maybe_placeholders=False,
            debug=debug,
        )

    def parse(self, text: str) -> Tree:
        """Parse agtype text into a parse tree.

        Raises:
            MalformedValue: If the text does not match the literal grammar.
        """
        try:
            return self.parser.parse(text)
        except UnexpectedInput as e:
            message, start, end = _describe_parse_error(e, text)
            LOGGER.debug("Malformed agtype literal %r: %s", text, message)
            raise MalformedValue(message, text, start, end) from e

    def decode_text(self, text: str) -> GraphValue:
        tree = self.parse(text)
        try:
            return AgtypeTransformer(text).transform(tree)
        except VisitError as e:
            if isinstance(e.orig_exc, MalformedValue):
                LOGGER.debug("Malformed agtype literal %r: %s", text, e.orig_exc)
                raise e.orig_exc from None
            raise

    def decode(
        self,
        payload: str | bytes | bytearray | memoryview,
        envelope: AgtypeEnvelope = DEFAULT_ENVELOPE,
    ) -> GraphValue:
        """Decode one column value or parameter payload.

        ``str`` payloads come from the text protocol and never carry an
        envelope; byte payloads are unwrapped with ``envelope`` first.

        Raises:
            MalformedValue: If the payload is not a valid agtype literal.
            UnsupportedEnvelope: If a versioned payload has a bad version byte.
        """
        if isinstance(payload, str):
            text = payload
        else:
            text = ensure_text(envelope.unwrap(ensure_bytes(payload)))
        return self.decode_text(text)


def _describe_parse_error(e: UnexpectedInput, text: str) -> Tuple[str, int, int]:
    if isinstance(e, UnexpectedCharacters):
        start = e.pos_in_stream
        return f"Unexpected character {e.char!r} in agtype literal", start, start + 1
    if isinstance(e, UnexpectedToken) and e.token.type != "$END":
        token = e.token
        return (
            f"Unexpected token {str(token)!r} in agtype literal",
            token.start_pos,
            token.end_pos,
        )
    return "Unexpected end of agtype literal", len(text), len(text)


_PARSER = AgtypeParser()


def decode(
    payload: str | bytes | bytearray | memoryview,
    envelope: AgtypeEnvelope = DEFAULT_ENVELOPE,
) -> GraphValue:
    """Decode an agtype payload into a Python value."""
    return _PARSER.decode(payload, envelope)


def _format_float(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    return repr(float(value))


def _format_decimal(value: Decimal) -> str:
    if value.is_nan():
        return "NaN"
    if value.is_infinite():
        return "-Infinity" if value.is_signed() else "Infinity"
    return str(value)


def _iter_mapping(value: dict) -> Iterator[str]:
    yield "{"
    for position, (key, item) in enumerate(value.items()):
        if not isinstance(key, str):
            raise UnencodableValue(
                key, f"Map keys must be strings, not {type(key).__name__}"
            )
        if position:
            yield ", "
        yield json.dumps(key, ensure_ascii=False)
        yield ": "
        yield from iter_encoded(item)
    yield "}"


def _iter_sequence(value: Any) -> Iterator[str]:
    yield "["
    for position, item in enumerate(value):
        if position:
            yield ", "
        yield from iter_encoded(item)
    yield "]"


def iter_encoded(value: GraphValue) -> Iterator[str]:
    """Yield the agtype text of ``value`` piece by piece.

    Raises:
        UnencodableValue: If ``value`` (or anything nested in it) has no
            agtype representation.
    """
    match value:
        case None:
            yield "null"
        case bool():
            yield "true" if value else "false"
        case int():
            if not INT64_MIN <= value <= INT64_MAX:
                raise UnencodableValue(value, f"Integer {value} does not fit in 64 bits")
            yield str(int(value))
        case float():
            yield _format_float(value)
        case Decimal():
            yield _format_decimal(value)
            yield NUMERIC_FOOTER
        case str():
            yield json.dumps(value, ensure_ascii=False)
        case Vertex():
            yield from _iter_mapping(
                {"id": value.id, "label": value.label, "properties": value.properties}
            )
            yield VERTEX_FOOTER
        case Edge():
            yield from _iter_mapping(
                {
                    "id": value.id,
                    "label": value.label,
                    "end_id": value.end_id,
                    "start_id": value.start_id,
                    "properties": value.properties,
                }
            )
            yield EDGE_FOOTER
        case Path():
            yield from _iter_sequence(value.elements)
            yield PATH_FOOTER
        case dict():
            yield from _iter_mapping(value)
        case list() | tuple():
            yield from _iter_sequence(value)
        case _:
            raise UnencodableValue(value)


def encode_text(value: GraphValue) -> str:
    """Render ``value`` as agtype text."""
    return "".join(iter_encoded(value))


def encode(value: GraphValue, envelope: AgtypeEnvelope = DEFAULT_ENVELOPE) -> bytes:
    """Render ``value`` as a wire payload."""
    return envelope.wrap(encode_text(value).encode("utf-8"))


def encoded_size(value: GraphValue, envelope: AgtypeEnvelope = DEFAULT_ENVELOPE) -> int:
    """Exact byte length of ``encode(value, envelope)``."""
    return envelope.overhead + sum(
        len(piece.encode("utf-8")) for piece in iter_encoded(value)
    )
