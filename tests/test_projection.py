"""Tests for the column declaration generator."""

import pytest

from agecypher.projection import (
    find_return_clause,
    generate_as_part,
    mask_string_literals,
    projection_columns,
    sanitize_column_name,
    split_return_values,
)
from agecypher.types import ProjectionColumn


class TestGenerateAsPart:
    """Basic naming rules."""

    def test_returns_result_when_no_return_part(self):
        assert generate_as_part("MATCH (n) WHERE n.name = 'Alice'") == "(result agtype)"

    def test_single_return_value(self):
        assert generate_as_part("MATCH (n) RETURN n.name") == "(name agtype)"

    def test_multiple_return_values(self):
        assert generate_as_part("MATCH (n) RETURN n.name, n.age") == "(name agtype, age agtype)"

    def test_plain_variable(self):
        assert generate_as_part("MATCH (n) RETURN n") == "(n agtype)"

    def test_function_call(self):
        assert generate_as_part("MATCH (n) RETURN count(n)") == "(count agtype)"

    def test_function_with_star(self):
        assert generate_as_part("MATCH (n) RETURN count(*)") == "(count agtype)"

    def test_function_name_keeps_case(self):
        assert generate_as_part("MATCH (n) RETURN toUpper(n.name)") == '("toUpper" agtype)'

    def test_function_call_takes_first_word(self):
        """The leading word names the column, even when it is not the function."""
        assert generate_as_part("MATCH (n) RETURN n.x + size(n.l)") == "(n agtype)"

    def test_function_arguments_with_commas(self):
        assert (
            generate_as_part("MATCH (n) RETURN coalesce(n.a, n.b), n.c")
            == "(coalesce agtype, c agtype)"
        )

    def test_alias(self):
        assert generate_as_part("MATCH (n) RETURN n.name AS Name") == '("Name" agtype)'

    def test_lowercase_alias(self):
        assert generate_as_part("MATCH (n) RETURN count(n) as total") == "(total agtype)"

    def test_alias_beats_function_name(self):
        assert (
            generate_as_part("MATCH (n) RETURN size(keys(n)) AS degree")
            == "(degree agtype)"
        )

    def test_numbers(self):
        assert generate_as_part("MATCH (n) RETURN 123, 45.67") == "(num agtype, num1 agtype)"

    def test_special_characters(self):
        assert (
            generate_as_part("MATCH (n) RETURN n.`first-name`, n.`last-name`")
            == "(first_name agtype, last_name agtype)"
        )

    def test_backticked_variable(self):
        assert generate_as_part("MATCH (`my node`) RETURN `my node`") == "(my_node agtype)"

    def test_duplicate_column_names(self):
        assert generate_as_part("MATCH (n) RETURN n.name, n.name") == "(name agtype, name1 agtype)"

    def test_triplicate_column_names(self):
        assert (
            generate_as_part("MATCH (a), (b), (c) RETURN a.name, b.name, c.name")
            == "(name agtype, name1 agtype, name2 agtype)"
        )

    def test_uppercase_column_names(self):
        assert generate_as_part("MATCH (n) RETURN n.Name, n.Age") == '("Name" agtype, "Age" agtype)'

    def test_distinct(self):
        assert generate_as_part("MATCH (n) RETURN DISTINCT n.name") == "(name agtype)"

    def test_lowercase_keyword(self):
        assert generate_as_part("match (n) return n.name") == "(name agtype)"

    def test_custom_column_type(self):
        assert generate_as_part("MATCH (n) RETURN n", column_type="text") == "(n text)"


class TestClauseBoundaries:
    """Locating the projection list inside the query."""

    @pytest.mark.parametrize(
        "query",
        [
            "MATCH (n) RETURN n.name LIMIT 10",
            "MATCH (n) RETURN n.name SKIP 5 LIMIT 10",
            "MATCH (n) RETURN n.name ORDER BY n.name DESC",
        ],
    )
    def test_stops_at_trailing_clauses(self, query):
        assert generate_as_part(query) == "(name agtype)"

    def test_multiline_query(self):
        query = "MATCH (n)\nRETURN n.name,\r\n       n.age"
        assert generate_as_part(query) == "(name agtype, age agtype)"

    def test_last_return_wins(self):
        query = "CALL { MATCH (m) RETURN m } MATCH (n) RETURN n.name"
        assert generate_as_part(query) == "(name agtype)"

    def test_with_before_return(self):
        assert (
            generate_as_part("MATCH (n) WITH n, count(*) AS c RETURN n.name, c")
            == "(name agtype, c agtype)"
        )

    def test_create_without_return(self):
        assert generate_as_part("CREATE (n:Person {name: 'Alice'})") == "(result agtype)"

    def test_return_word_followed_by_write_clause(self):
        """'return' used as a key is not a projection."""
        assert generate_as_part("CREATE (n {return :1}) SET n.a = 1") == "(result agtype)"

    def test_return_inside_string_with_merge_set(self):
        """Quoted data never counts as a RETURN clause."""
        query = 'MERGE (n:Config {data: {"name":"return"}}) SET n.updated = true'
        assert generate_as_part(query) == "(result agtype)"

    def test_keywords_inside_strings_do_not_cut_the_clause(self):
        query = "MATCH (n) RETURN n.name, 'see ORDER page' AS hint"
        assert generate_as_part(query) == "(name agtype, hint agtype)"

    def test_find_return_clause(self):
        assert find_return_clause("MATCH (n) RETURN n.a, n.b LIMIT 1") == "n.a, n.b"
        assert find_return_clause("MATCH (n) DELETE n") is None

    def test_find_return_clause_keeps_string_contents(self):
        assert find_return_clause("RETURN 'a, b' AS x") == "'a, b' AS x"


class TestLiterals:
    """Object and array literals in the projection."""

    def test_object_without_alias(self):
        assert generate_as_part("MATCH (n) RETURN {name: n.name, age: n.age}") == "(result agtype)"

    def test_object_with_alias(self):
        assert generate_as_part("MATCH (n) RETURN {name: n.name} AS props") == "(props agtype)"

    def test_array_without_alias(self):
        assert generate_as_part("RETURN [1, 2, 3]") == "(result agtype)"

    def test_array_with_alias(self):
        assert generate_as_part("RETURN [1, 2, 3] AS numbers, 4") == "(numbers agtype, num agtype)"

    def test_several_literals_are_deduplicated(self):
        assert generate_as_part("RETURN [1], {a: 2}") == "(result agtype, result1 agtype)"

    def test_string_literal_with_comma(self):
        assert generate_as_part("RETURN 'a,b' AS pair, 1") == "(pair agtype, num agtype)"


class TestBracketAccessors:
    """Bracket accessors are always quoted, with the unsanitized name."""

    def test_alias_wins_over_bracket_accessor(self):
        assert generate_as_part("MATCH (n) RETURN n['test'] AS Name") == '("Name" agtype)'

    def test_quoted_key(self):
        assert generate_as_part("MATCH (n) RETURN n['name']") == '("name" agtype)'

    def test_key_is_not_sanitized(self):
        assert generate_as_part("MATCH (n) RETURN n['first name']") == '("first name" agtype)'

    def test_index_accessor(self):
        assert generate_as_part("MATCH (n) RETURN n.tags[0]") == '("tags[0]" agtype)'

    def test_duplicates_are_not_suffixed(self):
        """Quoting uses the pre-deduplication name for bracket accessors."""
        assert generate_as_part("MATCH (n) RETURN n['x'], n['x']") == '("x" agtype, "x" agtype)'

    def test_any_bracket_quotes(self):
        """A relationship pattern's brackets trigger quoting as well."""
        assert (
            generate_as_part("MATCH (n) RETURN size((n)-[]->()) AS degree")
            == '("degree" agtype)'
        )

    def test_bracket_accessor_still_counts_towards_duplicates(self):
        assert generate_as_part("MATCH (n) RETURN n['x'], n.x") == '("x" agtype, x1 agtype)'


class TestDegenerateProjections:
    """Odd projection lists still produce a declaration."""

    def test_empty_entry_between_commas(self):
        assert generate_as_part("MATCH (n) RETURN n.a,,n.b") == "(a agtype,  agtype, b agtype)"

    def test_whitespace_entry(self):
        assert generate_as_part("MATCH (n) RETURN n.a,   , n.b") == "(a agtype,  agtype, b agtype)"

    def test_trailing_comma(self):
        assert generate_as_part("MATCH (n) RETURN n.a,") == "(a agtype)"

    def test_uppercase_null(self):
        assert generate_as_part("RETURN NULL") == '("NULL" agtype)'

    def test_lowercase_null(self):
        assert generate_as_part("RETURN null") == "(null agtype)"

    def test_parameter_reference(self):
        assert generate_as_part("RETURN $value") == "(_value agtype)"


class TestProjectionColumns:
    """The structured form of the declaration."""

    def test_columns(self):
        assert projection_columns("MATCH (n) RETURN n.name, n.Age") == [
            ProjectionColumn(name="name", needs_quoting=False),
            ProjectionColumn(name="Age", needs_quoting=True),
        ]

    def test_fallback(self):
        assert projection_columns("MATCH (n) DELETE n") == [ProjectionColumn(name="result")]

    def test_calls_are_independent(self):
        """Duplicate counters do not leak from one call into the next."""
        assert generate_as_part("RETURN n.name") == "(name agtype)"
        assert generate_as_part("RETURN n.name") == "(name agtype)"


class TestHelpers:
    """Masking, splitting and sanitizing."""

    def test_mask_keeps_length_and_quotes(self):
        text = "RETURN 'a,b' + \"c(d\" AS x"
        masked = mask_string_literals(text)
        assert len(masked) == len(text)
        assert masked == "RETURN '___' + \"___\" AS x"

    def test_mask_handles_escaped_quotes(self):
        assert mask_string_literals(r"'it\'s', x") == "'_____', x"

    def test_mask_unterminated_string(self):
        assert mask_string_literals("a 'bc") == "a '__"

    def test_split_respects_nesting(self):
        assert split_return_values("a, {b: 1, c: 2}, [d, e], f(g, h)") == [
            "a",
            "{b: 1, c: 2}",
            "[d, e]",
            "f(g, h)",
        ]

    def test_split_ignores_brackets_in_strings(self):
        assert split_return_values("'(', n.a") == ["'('", "n.a"]

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("first-name", "first_name"),
            ("a b.c", "a_b_c"),
            ("$param", "_param"),
            ("already_fine_1", "already_fine_1"),
            ("Zoë", "Zoë"),
        ],
    )
    def test_sanitize(self, name, expected):
        assert sanitize_column_name(name) == expected

    @pytest.mark.parametrize("name", ["first-name", "n['x']", "$p", "ok", "", "a  b"])
    def test_sanitize_is_idempotent(self, name):
        once = sanitize_column_name(name)
        assert sanitize_column_name(once) == once
