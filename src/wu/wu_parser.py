"""
wu Language Parser

Turns a wu token list into a list of `Statement` nodes.

Grammar
-------
    program    := statement*
    statement  := IDENT "=" expression (EOL | <end>)
                | expression
    expression := atom (OPERATOR atom)*
    atom       := INT | FLOAT | STRING | BOOL | IDENT

Whitespace may separate any two tokens. EOL tokens separate statements and may
also follow an operator, so `1 +\\n 2` is one expression.

Binary expressions are built iteratively by precedence climbing over an operand
stack and an operator stack. A lower precedence number binds tighter, and
operators of equal precedence group to the left:

    1 + 2 * 3  ->  (1 + (2 * 3))
    1 + 2 + 3  ->  ((1 + 2) + 3)

Classes
-------
Cursor
    Positional reader over the token list with checkpoint/restore.
Parser
    Recursive-descent statement grammar over a Cursor.

Raises
------
ParseError
    On the first malformed construct. No recovery is attempted; a failed parse
    produces no statements.
CursorBoundsError
    If the cursor is moved out of range, which indicates a parser defect.
"""

from __future__ import annotations

import logging

from wu.wu_ast import Expression, ExpressionArena, Statement
from wu.wu_constants import (
    ASSIGN_SYMBOL,
    BOOL,
    EOF,
    EOL,
    FLOAT,
    IDENT,
    INT,
    OPERATOR,
    STRING,
    SYMBOL,
    WHITESPACE,
)
from wu.wu_errors import (
    CursorBoundsError,
    MalformedNumeralError,
    ParseError,
    UnsupportedTokenError,
)
from wu.wu_lexer import Token
from wu.wu_operators import OperatorTable

logger = logging.getLogger(__name__)

TRIVIA = frozenset({WHITESPACE, EOL})
SPACING = frozenset({WHITESPACE})


class Cursor:
    """
    Read position over a token list ending in an EOF sentinel.

    Peeking never fails: past the end it returns the final token. Moving the
    position out of range raises `CursorBoundsError`.

    Attributes
    ----------
    tokens : list[Token]
        The tokens being read; the last one is the sentinel.
    position : int
        Index of the current token.
    lines : list[str]
        Source lines, used to quote the offending line in errors.
    path : str
        Source path, used only in errors.
    """

    def __init__(
        self, tokens: list[Token], lines: list[str] | None = None, path: str = "<input>"
    ) -> None:
        if not tokens:
            raise ValueError("token list must contain at least the EOF sentinel")
        self.tokens: list[Token] = tokens
        self.position: int = 0
        self.lines: list[str] = lines or []
        self.path: str = path

    def advance(self) -> None:
        if self.position >= len(self.tokens):
            raise CursorBoundsError(
                f"advancing outside token stack (position {self.position})"
            )
        self.position += 1

    def retreat(self) -> None:
        if self.position <= 0:
            raise CursorBoundsError("retreating outside token stack")
        self.position -= 1

    def remaining(self) -> int:
        return max(len(self.tokens) - self.position, 0)

    def at_end(self) -> bool:
        return self.remaining() <= 1 or self.peek_type() == EOF

    def skip_while(self, types: frozenset[str] | set[str]) -> None:
        """Consumes tokens whose type is in `types`; never consumes the sentinel."""
        while self.remaining() > 1 and self.peek_type() in types:
            self.advance()

    def checkpoint(self) -> int:
        return self.position

    def restore(self, checkpoint: int) -> None:
        self.position = checkpoint

    def peek(self, offset: int = 0) -> Token:
        index = min(self.position + offset, len(self.tokens) - 1)
        return self.tokens[max(index, 0)]

    def peek_content(self) -> str:
        return self.peek().value

    def peek_type(self) -> str:
        return self.peek().type

    def location(
        self, token: Token | None = None
    ) -> tuple[int, int, str, str | None]:
        """(line, col, path, source line) of `token`, defaulting to the current token."""
        tok = token or self.peek()
        source_line = None
        if 0 < tok.line <= len(self.lines):
            source_line = self.lines[tok.line - 1]
        return tok.line, tok.col, self.path, source_line

    def error(self, message: str, token: Token | None = None) -> ParseError:
        return ParseError(message, *self.location(token))

    def expect_type(self, type_: str) -> None:
        if self.peek_type() != type_:
            raise self.error(
                f"expecting type '{type_}', found '{self.peek_content()}'"
            )

    def expect_content(self, content: str) -> None:
        if self.peek_content() != content:
            raise self.error(f"expecting '{content}', found '{self.peek_content()}'")

    def consume_type(self, type_: str) -> str:
        self.expect_type(type_)
        content = self.peek_content()
        self.advance()
        return content

    def consume_content(self, content: str) -> str:
        self.expect_content(content)
        self.advance()
        return content


class Parser:
    """
    wu Parser Class

    Parameters
    ----------
    tokens : list[Token]
        Tokens to parse. An EOF sentinel is appended when missing.
    lines : list[str] | None
        Source lines, quoted in error messages.
    path : str
        Source path, used only in error messages.
    operators : OperatorTable | None
        Operator kinds and precedences; defaults to the built-in table.

    Attributes
    ----------
    cursor : Cursor
        Read position over `tokens`.
    arena : ExpressionArena
        Store for every expression node built by this parser.
    """

    def __init__(
        self,
        tokens: list[Token],
        lines: list[str] | None = None,
        path: str = "<input>",
        operators: OperatorTable | None = None,
    ) -> None:
        tokens = list(tokens)
        if not tokens or tokens[-1].type != EOF:
            last = tokens[-1] if tokens else None
            line = last.line if last else 1
            col = last.col + len(last.value) if last else 1
            tokens.append(Token(EOF, "EOF", line, col))

        self.cursor = Cursor(tokens, lines, path)
        self.operators = operators or OperatorTable.from_defaults()
        self.arena = ExpressionArena()

    def debug_position(self) -> tuple[int, int]:
        """Logs and returns the current token position."""
        position = self.cursor.peek().position
        logger.debug("%s: cursor at %d:%d", self.cursor.path, *position)
        return position

    def parse(self) -> list[Statement]:
        """Parse every statement up to the EOF sentinel."""
        statements: list[Statement] = []
        while self.cursor.remaining() > 1:
            self.cursor.skip_while(TRIVIA)
            if self.cursor.at_end():
                break
            statements.append(self.statement())

        logger.debug(
            "%s: parsed %d statement(s) into %d node(s)",
            self.cursor.path,
            len(statements),
            len(self.arena),
        )
        return statements

    def statement(self) -> Statement:
        cursor = self.cursor
        cursor.skip_while(TRIVIA)
        start = cursor.peek()

        if cursor.at_end():
            raise cursor.error("expecting a statement, found end of input")

        if start.type != IDENT:
            return Statement("expression", self.expression(), line=start.line, col=start.col)

        identifier = self.atom()
        backup = cursor.checkpoint()
        cursor.skip_while(SPACING)

        if cursor.peek_type() != SYMBOL or cursor.peek_content() != ASSIGN_SYMBOL:
            cursor.restore(backup)
            return Statement(
                "expression",
                self.continue_expression(identifier),
                line=start.line,
                col=start.col,
            )

        assign_tok = cursor.peek()
        cursor.advance()

        right = self.expression()
        if right.is_end_of_input:
            raise cursor.error("missing right hand expression", assign_tok)

        cursor.skip_while(SPACING)
        if not cursor.at_end():
            cursor.expect_type(EOL)

        return Statement(
            "assign", right, target=identifier, line=start.line, col=start.col
        )

    def expression(self) -> Expression:
        """Parse an atom and any operator chain following it on the same line."""
        atom = self.atom()
        if atom.is_end_of_input:
            return atom
        return self.continue_expression(atom)

    def continue_expression(self, atom: Expression) -> Expression:
        backup = self.cursor.checkpoint()
        self.cursor.skip_while(SPACING)

        if self.cursor.peek_type() == OPERATOR:
            return self.binary(atom)

        self.cursor.restore(backup)
        return atom

    def atom(self) -> Expression:
        cursor = self.cursor
        cursor.skip_while(TRIVIA)

        tok = cursor.peek()
        if cursor.at_end():
            return Expression.end_of_input(tok.line, tok.col)

        if tok.type == INT:
            value: int | float | str | bool = self._numeral(tok, int)
        elif tok.type == FLOAT:
            value = self._numeral(tok, float)
        elif tok.type == STRING:
            value = tok.value
        elif tok.type == BOOL:
            value = tok.value == "true"
        elif tok.type == IDENT:
            value = tok.value
        else:
            raise UnsupportedTokenError(tok.type, *cursor.location(tok))

        cursor.advance()
        kind = "identifier" if tok.type == IDENT else tok.type.lower()
        return self.arena.new(kind, value, line=tok.line, col=tok.col)

    def _numeral(self, tok: Token, convert: type[int] | type[float]) -> int | float:
        try:
            return convert(tok.value)
        except ValueError as e:
            raise MalformedNumeralError(
                tok.value, tok.type, *self.cursor.location(tok)
            ) from e

    def binary(self, first: Expression) -> Expression:
        """
        Precedence climbing over an operand stack and an operator stack.

        The cursor must be on the operator following `first`. An incoming
        operator first reduces every stacked operator that binds at least as
        tightly, then is pushed with its right operand. Whatever is left on the
        stacks is reduced once the chain ends.
        """
        operands: list[Expression] = [first]
        pending: list[tuple[str, int, Token]] = [self._operator()]
        operands.append(self._right_operand(pending[-1][2]))

        while True:
            backup = self.cursor.checkpoint()
            self.cursor.skip_while(SPACING)
            if self.cursor.peek_type() != OPERATOR:
                self.cursor.restore(backup)
                break

            entry = self._operator()
            while pending and entry[1] >= pending[-1][1]:
                self._reduce(operands, pending)
            pending.append(entry)
            operands.append(self._right_operand(entry[2]))

        while pending:
            self._reduce(operands, pending)

        return operands.pop()

    def _operator(self) -> tuple[str, int, Token]:
        tok = self.cursor.peek()
        self.cursor.consume_type(OPERATOR)
        kind, precedence = self.operators.lookup(tok.value)
        return kind, precedence, tok

    def _right_operand(self, op_tok: Token) -> Expression:
        term = self.atom()
        if term.is_end_of_input:
            raise self.cursor.error("missing right hand expression", op_tok)
        return term

    def _reduce(
        self, operands: list[Expression], pending: list[tuple[str, int, Token]]
    ) -> None:
        right = operands.pop()
        left = operands.pop()
        kind, _, tok = pending.pop()
        operands.append(self.arena.binary(left, kind, right, line=tok.line, col=tok.col))


__all__ = ["Cursor", "Parser"]
