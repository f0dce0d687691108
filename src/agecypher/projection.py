"""Column declarations for cypher() calls.

PostgreSQL needs the output columns of ``ag_catalog.cypher(...)`` spelled
out before the statement runs::

    SELECT * FROM cypher('g', $$ MATCH (n) RETURN n.name, count(n) $$)
        as (name agtype, count agtype);

Cypher does not expose that shape anywhere, so it is read off the query text
itself. This is not a Cypher parser: it locates the last top-level RETURN
clause with a regular expression, splits it on commas that are not nested
inside brackets, and names each projected expression with a fixed set of
rules (alias, function name, property name, ...). String literals are
masked out first so that keywords and punctuation inside quoted data are
never mistaken for query structure.

Example:
    >>> generate_as_part("MATCH (n) RETURN n.name, n.name")
    '(name agtype, name1 agtype)'
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional

from agecypher.types import ProjectionColumn
from agecypher.util.config import COLUMN_TYPE, FALLBACK_COLUMN
from agecypher.util.logger import LOGGER

RETURN_CLAUSE_PATTERN = re.compile(
    r"RETURN\s+(.+?)(?=\s*(?:RETURN|LIMIT|SKIP|ORDER|$))", re.IGNORECASE
)
WRITE_KEYWORD_PATTERN = re.compile(
    r"\b(CREATE|MATCH|SET|WITH|REMOVE|DELETE)\b", re.IGNORECASE
)
ALIAS_SEPARATOR_PATTERN = re.compile(r"\s+AS\s+", re.IGNORECASE)
LITERAL_ALIAS_PATTERN = re.compile(r"AS\s+(\w+)", re.IGNORECASE)
FUNCTION_CALL_PATTERN = re.compile(r"\w+\(.*\)")
WORD_PATTERN = re.compile(r"\w+")
QUOTED_KEY_ACCESSOR_PATTERN = re.compile(r"\['(.*?)'\]")
NUMBER_PATTERN = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
NON_WORD_PATTERN = re.compile(r"[^\w]")

MASK_CHARACTER: str = "_"
OPENERS: Dict[str, str] = {"{": "}", "[": "]", "(": ")"}


def mask_string_literals(text: str, placeholder: str = MASK_CHARACTER) -> str:
    """Blank out the contents of every quoted string in ``text``.

    Single- and double-quoted strings are handled, backslash escapes
    included. Quote characters stay where they are and every character
    between them becomes ``placeholder``, so the result has the same length
    as ``text`` and offsets carry over between the two. An unterminated
    string is masked through the end of the text.
    """
    chars = list(text)
    quote: Optional[str] = None
    escaped = False
    for position, char in enumerate(text):
        if quote is None:
            if char in "'\"":
                quote = char
            continue
        if escaped:
            escaped = False
        elif char == "\\":
            escaped = True
        elif char == quote:
            quote = None
            continue
        chars[position] = placeholder
    return "".join(chars)


def _top_level_flags(text: str) -> List[bool]:
    """Whether each character of ``text`` sits outside every bracket pair."""
    flags = []
    counts = {opener: 0 for opener in OPENERS}
    closers = {closer: opener for opener, closer in OPENERS.items()}
    for char in text:
        flags.append(not any(counts.values()))
        if char in counts:
            counts[char] += 1
        elif char in closers:
            counts[closers[char]] -= 1
    return flags


def find_return_clause(query: str) -> Optional[str]:
    """Return the projection list of the final RETURN clause of ``query``.

    Returns ``None`` when there is no RETURN, or when the last match is not
    a real projection (its text contains a write or pattern keyword, which
    happens when "return" shows up somewhere else in the query).
    """
    normalized = query.replace("\n", " ").replace("\r", " ")
    masked = mask_string_literals(normalized)
    matches = list(RETURN_CLAUSE_PATTERN.finditer(masked))
    if not matches:
        LOGGER.debug("No RETURN clause found in %r", query)
        return None

    match = matches[-1]
    if WRITE_KEYWORD_PATTERN.search(match.group(1)):
        LOGGER.debug("Discarding RETURN match %r: not a projection", match.group(1))
        return None

    start, end = match.span(1)
    return normalized[start:end]


def split_return_values(return_part: str) -> List[str]:
    """Split a projection list on commas outside of ``{}``, ``[]`` and ``()``.

    Commas inside string literals never split. Every piece is stripped; an
    empty piece between two commas is kept, a trailing one is dropped.
    """
    masked = mask_string_literals(return_part)
    result: List[str] = []
    start = 0
    for position, (char, top_level) in enumerate(zip(masked, _top_level_flags(masked))):
        if char == "," and top_level:
            result.append(return_part[start:position].strip())
            start = position + 1
    if start < len(return_part):
        result.append(return_part[start:].strip())
    return result


def sanitize_column_name(name: str) -> str:
    """Replace every character that is not a letter, digit or ``_``."""
    return NON_WORD_PATTERN.sub("_", name)


def _top_level_alias(expression: str) -> Optional[str]:
    masked = mask_string_literals(expression)
    top_level = _top_level_flags(masked)
    last = None
    for match in ALIAS_SEPARATOR_PATTERN.finditer(masked):
        if top_level[match.start()]:
            last = match
    if last is None:
        return None
    return expression[last.end() :]


def _literal_name(expression: str) -> str:
    alias = LITERAL_ALIAS_PATTERN.search(mask_string_literals(expression))
    if alias is None:
        return FALLBACK_COLUMN
    return expression[alias.start(1) : alias.end(1)]


def _expression_name(expression: str) -> str:
    if NUMBER_PATTERN.fullmatch(expression):
        return "num"

    alias = _top_level_alias(expression)
    if alias is not None:
        return alias

    if FUNCTION_CALL_PATTERN.search(expression):
        # first word of the expression, which is not always the function
        name = WORD_PATTERN.search(expression).group(0)
    elif "." in expression:
        name = expression.split(".")[-1]
    elif "[" in expression:
        key = QUOTED_KEY_ACCESSOR_PATTERN.search(expression)
        name = key.group(1) if key is not None else expression
    else:
        name = expression
    return name.strip("`")


def _needs_quoting(name: str) -> bool:
    return any(char.isupper() for char in name) or name.startswith("$")


def projection_columns(query: str) -> List[ProjectionColumn]:
    """Name the result columns of ``query``, in projection order.

    Duplicate names get a counter suffix (``name``, ``name1``, ``name2``).
    Names with uppercase letters are quoted. Names derived from a bracket
    accessor such as ``n['key']`` are always quoted and keep their
    unsanitized form.
    """
    return_part = find_return_clause(query)
    values = split_return_values(return_part) if return_part is not None else []
    if not values:
        return [ProjectionColumn(name=FALLBACK_COLUMN)]

    occurrences: Dict[str, int] = {}
    columns: List[ProjectionColumn] = []
    for value in values:
        trimmed = value.strip()
        is_literal = trimmed.startswith(("{", "["))
        name = _literal_name(trimmed) if is_literal else _expression_name(trimmed)

        sanitized = sanitize_column_name(name)
        if sanitized in occurrences:
            occurrences[sanitized] += 1
            sanitized += str(occurrences[sanitized])
        else:
            occurrences[sanitized] = 0

        if not is_literal and "[" in value:
            columns.append(ProjectionColumn(name=name, needs_quoting=True))
        else:
            columns.append(
                ProjectionColumn(name=sanitized, needs_quoting=_needs_quoting(sanitized))
            )

    LOGGER.debug("Projection columns for %r: %s", query, columns)
    return columns


def generate_as_part(query: str, column_type: str = COLUMN_TYPE) -> str:
    """Build the ``(<name> agtype, ...)`` declaration for ``query``."""
    columns = projection_columns(query)
    return f"({', '.join(column.declaration(column_type) for column in columns)})"

