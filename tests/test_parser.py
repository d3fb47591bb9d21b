import logging
from typing import Any

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st
from hypothesis.strategies import composite

from wu.wu_ast import Expression, Statement
from wu.wu_errors import (
    CursorBoundsError,
    MalformedNumeralError,
    ParseError,
    UnknownOperatorError,
    UnsupportedTokenError,
)
from wu.wu_lexer import Token, tokenize
from wu.wu_operators import OperatorTable
from wu.wu_parser import Cursor, Parser


def parse(source: str, operators: OperatorTable | None = None) -> list[Statement]:
    tokens = tokenize(source, operators)
    return Parser(tokens, source.splitlines(), "test.wu", operators).parse()


def make_tokens(*types_vals: tuple[str, str]) -> list[Token]:
    return [Token(t, v, 1, i + 1) for i, (t, v) in enumerate(types_vals)]


def shape(expr: Expression | None) -> Any:
    """Binary trees as nested (op, left, right) tuples, leaves as their value."""
    assert expr is not None
    if expr.kind == "binary":
        return (expr.value, shape(expr.left), shape(expr.right))
    return expr.value


def expr_shape(source: str, operators: OperatorTable | None = None) -> Any:
    statements = parse(source, operators)
    assert len(statements) == 1
    return shape(statements[0].expression)


# Expressions


def test_multiplication_binds_tighter() -> None:
    assert expr_shape("1 + 2 * 3") == ("ADD", 1, ("MUL", 2, 3))


def test_equal_precedence_groups_left() -> None:
    assert expr_shape("1 + 2 + 3") == ("ADD", ("ADD", 1, 2), 3)


@pytest.mark.parametrize(  # type: ignore[misc]
    "source,expected",
    [
        ("1 * 2 + 3", ("ADD", ("MUL", 1, 2), 3)),
        ("1 - 2 - 3", ("SUB", ("SUB", 1, 2), 3)),
        ("8 / 4 / 2", ("DIV", ("DIV", 8, 4), 2)),
        ("1 + 2 * 3 - 4", ("SUB", ("ADD", 1, ("MUL", 2, 3)), 4)),
        ("1 + 2 * 3 ^ 4", ("ADD", 1, ("MUL", 2, ("POW", 3, 4)))),
        ("1 + 2 * 3 + 4", ("ADD", ("ADD", 1, ("MUL", 2, 3)), 4)),
        ("1 + 2 * 3 ^ 4 - 5", ("SUB", ("ADD", 1, ("MUL", 2, ("POW", 3, 4))), 5)),
        ("2 ^ 3 * 4 + 5", ("ADD", ("MUL", ("POW", 2, 3), 4), 5)),
        ("1 * 2 + 3 * 4", ("ADD", ("MUL", 1, 2), ("MUL", 3, 4))),
        ("a or b and c == d", ("OR", "a", ("AND", "b", ("EQ", "c", "d")))),
        ('"a" ++ "b" == s', ("EQ", ("CONCAT", "a", "b"), "s")),
        ("x % 2 != 0", ("NE", ("MOD", "x", 2), 0)),
        ("1+2*3", ("ADD", 1, ("MUL", 2, 3))),
    ],
)
def test_precedence_table(source: str, expected: Any) -> None:
    assert expr_shape(source) == expected


def test_operand_may_follow_operator_on_next_line() -> None:
    assert expr_shape("1 +\n  2") == ("ADD", 1, 2)


def test_operator_on_next_line_does_not_continue() -> None:
    with pytest.raises(UnsupportedTokenError) as e:
        parse("1\n+ 2")
    assert e.value.token_type == "OPERATOR"
    assert e.value.position == (2, 1)


def test_binary_node_positioned_at_operator() -> None:
    expr = parse("1 + 2")[0].expression
    assert expr.kind == "binary"
    assert expr.position == (1, 3)


def test_configured_operator_precedence() -> None:
    table = OperatorTable.from_defaults()
    table.configure({"**": ["POW", 0]})
    assert expr_shape("2 * 3 ** 2", table) == ("MUL", 2, ("POW", 3, 2))


def test_overridden_precedence_changes_grouping() -> None:
    table = OperatorTable.from_defaults()
    table.configure({"+": ["ADD", 0]})
    assert expr_shape("1 * 2 + 3", table) == ("MUL", 1, ("ADD", 2, 3))


def test_unknown_operator_token_is_lookup_failure() -> None:
    tokens = make_tokens(("INT", "1"), ("OPERATOR", "<>"), ("INT", "2"))
    with pytest.raises(UnknownOperatorError):
        Parser(tokens).parse()


def test_long_chain_parses_without_recursion() -> None:
    source = "1" + " + 1" * 5000
    expr = parse(source)[0].expression
    depth = 0
    while expr.kind == "binary":
        assert expr.right is not None and expr.right.value == 1
        expr = expr.left  # type: ignore[assignment]
        depth += 1
    assert depth == 5000


def test_arena_holds_every_node() -> None:
    parser = Parser(tokenize("1 + 2 * 3"))
    parser.parse()
    assert len(parser.arena) == 5


# Literals


@pytest.mark.parametrize(  # type: ignore[misc]
    "source,kind,value",
    [
        ("42", "int", 42),
        ("3.5", "float", 3.5),
        ('"hi there"', "string", "hi there"),
        ("true", "bool", True),
        ("false", "bool", False),
        ("name", "identifier", "name"),
    ],
)
def test_atoms(source: str, kind: str, value: Any) -> None:
    expr = parse(source)[0].expression
    assert expr.kind == kind
    assert expr.value == value
    assert type(expr.value) is type(value)


def test_bool_other_than_true_is_false() -> None:
    statements = Parser(make_tokens(("BOOL", "yes"))).parse()
    assert statements[0].expression.value is False


@pytest.mark.parametrize(  # type: ignore[misc]
    "tokens,literal,kind",
    [
        (tokenize("1.2.3"), "1.2.3", "FLOAT"),
        (tokenize("²"), "²", "INT"),
        (make_tokens(("INT", "12ab")), "12ab", "INT"),
    ],
)
def test_malformed_numeral_is_positioned_error(
    tokens: list[Token], literal: str, kind: str
) -> None:
    with pytest.raises(MalformedNumeralError) as e:
        Parser(tokens).parse()
    assert e.value.literal == literal
    assert e.value.kind == kind
    assert e.value.position == (1, 1)
    assert isinstance(e.value.__cause__, ValueError)
    assert isinstance(e.value, ParseError)


def test_unimplemented_token_kind() -> None:
    with pytest.raises(UnsupportedTokenError, match="token type 'KEYWORD' currently unimplemented") as e:
        parse("fun")
    assert e.value.token_type == "KEYWORD"
    assert isinstance(e.value, ParseError)


def test_error_token_is_unimplemented() -> None:
    with pytest.raises(UnsupportedTokenError, match="'ERROR'"):
        parse("`")


# Statements


def test_assignment() -> None:
    (stmt,) = parse("x = 5")
    assert stmt.kind == "assign"
    assert stmt.target == Expression("identifier", "x", 1, 1)
    assert stmt.expression.kind == "int"
    assert stmt.expression.value == 5
    assert stmt.position == (1, 1)


def test_assignment_from_bare_tokens() -> None:
    tokens = make_tokens(("IDENT", "x"), ("SYMBOL", "="), ("INT", "5"))
    (stmt,) = Parser(tokens).parse()
    assert stmt.kind == "assign"
    assert stmt.target is not None and stmt.target.value == "x"
    assert stmt.expression.value == 5


def test_assignment_with_binary_right_hand_side() -> None:
    (stmt,) = parse("total = a + b * 2")
    assert stmt.kind == "assign"
    assert shape(stmt.expression) == ("ADD", "a", ("MUL", "b", 2))


def test_quoted_equals_is_a_string_not_assignment() -> None:
    statements = parse('x "=" 5')
    assert [s.kind for s in statements] == ["expression", "expression", "expression"]
    assert [s.expression.kind for s in statements] == ["identifier", "string", "int"]
    assert statements[1].expression.value == "="
    assert statements[1].position == (1, 3)


def test_bare_identifier_consumes_only_identifier() -> None:
    parser = Parser(tokenize("x "))
    stmt = parser.statement()
    assert stmt.kind == "expression"
    assert stmt.target is None
    assert stmt.expression.value == "x"
    assert parser.cursor.position == 1


def test_identifier_followed_by_operator_is_expression() -> None:
    (stmt,) = parse("x + 1")
    assert stmt.kind == "expression"
    assert shape(stmt.expression) == ("ADD", "x", 1)


def test_equality_is_not_assignment() -> None:
    (stmt,) = parse("x == 1")
    assert stmt.kind == "expression"
    assert shape(stmt.expression) == ("EQ", "x", 1)


def test_assignment_symbol_on_next_line_is_not_assignment() -> None:
    with pytest.raises(UnsupportedTokenError) as e:
        parse("x\n= 5")
    assert e.value.token_type == "SYMBOL"
    assert e.value.position == (2, 1)


def test_program_with_blank_lines_and_comments() -> None:
    source = "x = 1\n\n# comment\ny = x + 2\n   \n"
    statements = parse(source)
    assert [s.kind for s in statements] == ["assign", "assign"]
    assert [s.position for s in statements] == [(1, 1), (4, 1)]


def test_statement_position_is_first_token() -> None:
    (stmt,) = parse("   x = 1")
    assert stmt.position == (1, 4)


def test_trailing_whitespace_after_assignment() -> None:
    assert len(parse("x = 1   \ny = 2  ")) == 2


@pytest.mark.parametrize("source", ["", "\n", "  \n\t\n", "# nothing\n"])  # type: ignore[misc]
def test_empty_programs(source: str) -> None:
    assert parse(source) == []


def test_missing_eof_sentinel_is_appended() -> None:
    statements = Parser([Token("INT", "7", 1, 1)]).parse()
    assert statements[0].expression.value == 7
    assert Parser([]).parse() == []


# Errors


def test_dangling_operator() -> None:
    with pytest.raises(ParseError, match="missing right hand expression") as e:
        parse("1 +")
    assert e.value.position == (1, 3)


def test_dangling_operator_inside_chain() -> None:
    with pytest.raises(ParseError, match="missing right hand expression") as e:
        parse("1 + 2 *\n\n")
    assert e.value.position == (1, 7)


def test_assignment_without_value() -> None:
    with pytest.raises(ParseError, match="missing right hand expression") as e:
        parse("x =")
    assert e.value.position == (1, 3)


def test_assignment_requires_end_of_line() -> None:
    with pytest.raises(ParseError, match="expecting type 'EOL', found '6'") as e:
        parse("x = 5 6")
    assert e.value.position == (1, 7)


def test_error_carries_path_and_source_line() -> None:
    with pytest.raises(ParseError) as e:
        parse("a = 1\nx = 1 +")
    err = e.value
    assert err.filename == "test.wu"
    assert err.lineno == 2
    assert err.offset == 7
    assert err.text == "x = 1 +"
    assert err.render() == (
        "test.wu:2:7: error: missing right hand expression\n"
        "    x = 1 +\n"
        "          ^"
    )


def test_error_without_source_lines() -> None:
    with pytest.raises(ParseError) as e:
        Parser(make_tokens(("INT", "1"), ("OPERATOR", "+"))).parse()
    assert e.value.text is None
    assert e.value.render() == "<input>:1:2: error: missing right hand expression"


def test_statement_at_end_of_input() -> None:
    parser = Parser(tokenize("\n"))
    with pytest.raises(ParseError, match="found end of input"):
        parser.statement()


# Determinism


def test_parsing_twice_gives_equal_trees() -> None:
    tokens = tokenize("x = 1 + 2 * 3\ny = x ^ 2 - 1\nx")
    assert Parser(tokens).parse() == Parser(tokens).parse()


def test_parsing_twice_gives_identical_errors() -> None:
    tokens = tokenize("x = 1 *")
    messages = []
    for _ in range(2):
        with pytest.raises(ParseError) as e:
            Parser(tokens).parse()
        messages.append((e.value.msg, e.value.position))
    assert messages[0] == messages[1]


def test_long_chain_compares_and_renders_equal() -> None:
    tokens = tokenize("1" + " + 1" * 5000)
    first, second = Parser(tokens).parse(), Parser(tokens).parse()
    assert first == second
    assert repr(first) == repr(second)


@composite  # type: ignore[misc]
def arithmetic(draw: Any) -> str:
    numbers = draw(st.lists(st.integers(min_value=0, max_value=9), min_size=1, max_size=12))
    ops = draw(
        st.lists(st.sampled_from(["+", "-", "*"]), min_size=len(numbers) - 1, max_size=len(numbers) - 1)
    )
    parts = [str(numbers[0])]
    for op, num in zip(ops, numbers[1:]):
        parts.extend([op, str(num)])
    return " ".join(parts)


def evaluate(expr: Expression | None) -> int:
    assert expr is not None
    if expr.kind == "int":
        return int(expr.value)
    left, right = evaluate(expr.left), evaluate(expr.right)
    if expr.value == "ADD":
        return left + right
    if expr.value == "SUB":
        return left - right
    assert expr.value == "MUL"
    return left * right


@settings(deadline=None)  # type: ignore[misc]
@given(source=arithmetic())  # type: ignore[misc]
def test_tree_matches_conventional_arithmetic(source: str) -> None:
    expr = parse(source)[0].expression
    assert evaluate(expr) == eval(source)  # nosec B307


@given(source=arithmetic())  # type: ignore[misc]
def test_parse_is_deterministic(source: str) -> None:
    assert parse(source) == parse(source)


# Cursor


def cursor_for(source: str) -> Cursor:
    return Cursor(tokenize(source), source.splitlines(), "cursor.wu")


def test_cursor_requires_tokens() -> None:
    with pytest.raises(ValueError):
        Cursor([])


def test_cursor_advance_and_retreat() -> None:
    cursor = cursor_for("a b")
    assert cursor.remaining() == 4
    cursor.advance()
    assert cursor.peek_type() == "WHITESPACE"
    cursor.retreat()
    assert cursor.peek_content() == "a"
    with pytest.raises(CursorBoundsError):
        cursor.retreat()


def test_cursor_bounds_past_sentinel() -> None:
    cursor = cursor_for("a")
    cursor.advance()
    cursor.advance()
    assert cursor.remaining() == 0
    assert cursor.peek_type() == "EOF"
    assert cursor.at_end()
    with pytest.raises(CursorBoundsError):
        cursor.advance()


def test_cursor_peek_offset_clamps() -> None:
    cursor = cursor_for("a b")
    assert cursor.peek(2).value == "b"
    assert cursor.peek(50).type == "EOF"


def test_skip_while_never_consumes_sentinel() -> None:
    cursor = cursor_for("  \n ")
    cursor.skip_while({"WHITESPACE", "EOL", "EOF"})
    assert cursor.peek_type() == "EOF"
    assert cursor.remaining() == 1


def test_skip_while_stops_at_other_type() -> None:
    cursor = cursor_for("  x")
    cursor.skip_while({"WHITESPACE"})
    assert cursor.peek_content() == "x"


def test_checkpoint_and_restore() -> None:
    cursor = cursor_for("a   b")
    mark = cursor.checkpoint()
    cursor.advance()
    cursor.skip_while({"WHITESPACE"})
    assert cursor.peek_content() == "b"
    cursor.restore(mark)
    assert cursor.position == 0


def test_expect_and_consume() -> None:
    cursor = cursor_for("x = 1")
    cursor.expect_type("IDENT")
    cursor.expect_content("x")
    assert cursor.consume_type("IDENT") == "x"
    assert cursor.consume_type("WHITESPACE") == " "
    assert cursor.consume_content("=") == "="
    assert cursor.position == 3


def test_expect_mismatch_is_positioned() -> None:
    cursor = cursor_for("x = 1")
    with pytest.raises(ParseError, match="expecting type 'INT', found 'x'") as e:
        cursor.expect_type("INT")
    assert e.value.position == (1, 1)
    assert e.value.filename == "cursor.wu"
    assert e.value.text == "x = 1"

    with pytest.raises(ParseError, match="expecting '=', found 'x'"):
        cursor.consume_content("=")
    assert cursor.position == 0


def test_debug_position_logs_only_when_called(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="wu.wu_parser")
    parser = Parser(tokenize("x = 1"), path="dbg.wu")
    parser.parse()
    assert not any("cursor at" in r.getMessage() for r in caplog.records)
    assert any("parsed 1 statement(s)" in r.getMessage() for r in caplog.records)

    assert parser.debug_position() == (1, 6)
    assert "dbg.wu: cursor at 1:6" in caplog.records[-1].getMessage()
