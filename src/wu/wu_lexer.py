"""
Reference tokenizer for the wu language.

The parser only depends on the shape of the tokens it receives. This module
produces that shape from source text so the CLI and the test-suite can drive the
parser end to end.

Classes:
    CharacterStream: Stream abstraction for reading characters with line/column tracking.
    Token: A single token with type tag, text and source position.
    Lexer: Converts a CharacterStream into a sequence of tokens.

Functions:
    tokenize(source, operators=None) -> list[Token]:
        Lex a whole source string into a token list terminated by an EOF sentinel.

Token layout:
    - Runs of spaces, tabs and carriage returns become one WHITESPACE token
    - Each newline is an EOL token
    - `#` comments run to the end of the line and produce no token
    - `true` / `false` are BOOL, reserved words are KEYWORD
    - Operators come from the OperatorTable (longest match for symbolic ones)
    - A numeral is a run of digits and dots; FLOAT if it contains a dot
    - Unknown characters become one-character ERROR tokens

Raises:
    ParseError: If a string literal is not terminated.

Example:
    >>> [t.type for t in tokenize("x = 1")]
    ['IDENT', 'WHITESPACE', 'SYMBOL', 'WHITESPACE', 'INT', 'EOF']
"""

from typing import Any

from wu.wu_constants import (
    BOOL,
    BOOL_LITERALS,
    EOF,
    EOL,
    ERROR,
    FLOAT,
    IDENT,
    INT,
    KEYWORD,
    KEYWORDS,
    OPERATOR,
    STRING,
    SYMBOL,
    SYMBOLS,
    WHITESPACE,
)
from wu.wu_errors import ParseError
from wu.wu_operators import OperatorTable

INLINE_WHITESPACE = " \t\r"


class CharacterStream:
    """
    Reads characters from a source string while tracking line and column.

    Attributes:
        source (str): The input source string.
        position (int): Current index in the source.
        line (int): Current line number (1-indexed).
        column (int): Current column number (1-indexed).
    """

    def __init__(self, source: str, position: int = 0, line: int = 1, column: int = 1):
        self.source = source
        self.position = position
        self.line = line
        self.column = column

    def next(self) -> str:
        """
        Consumes and returns the next character in the stream.

        Raises:
            EOFError: If reading past the end of the source.
        """
        if self.position >= len(self.source):
            raise EOFError(
                f"Attempted to read past end of source at position=<{self.position}>, line=<{self.line}>"
            )
        char = self.source[self.position]
        if char == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        self.position += 1
        return char

    def peek(self, offset: int = 0) -> str:
        """Returns the character `offset` places ahead, or "" when out of bounds."""
        index = self.position + offset
        if index < 0 or index >= len(self.source):
            return ""
        return self.source[index]

    def end_of_file(self) -> bool:
        return self.position >= len(self.source)


class Token:
    """A single lexical token.

    Attributes:
        type (str): The token type tag (e.g. 'IDENT', 'INT', 'EOF').
        value (str): The raw text of the token.
        line (int): The 1-based line number where the token starts.
        col (int): The 1-based column number where the token starts.
    """

    def __init__(self, type_: str, value: str, line: int = 0, col: int = 0):
        self.type = type_
        self.value = value
        self.line = line
        self.col = col

    @property
    def position(self) -> tuple[int, int]:
        return (self.line, self.col)

    def __repr__(self) -> str:
        return f"Token({self.type}, {self.value!r})"

    def __eq__(self, other: Any) -> bool:
        return (
            isinstance(other, Token)
            and self.type == other.type
            and self.value == other.value
            and self.line == other.line
            and self.col == other.col
        )

    def __hash__(self) -> int:
        return hash((self.type, self.value, self.line, self.col))


class Lexer:
    """Lexical analyzer for wu source text.

    Attributes:
        stream (CharacterStream): The source stream to tokenize.
        operators (OperatorTable): Operators recognised as OPERATOR tokens.
    """

    def __init__(
        self, stream: CharacterStream, operators: OperatorTable | None = None
    ) -> None:
        self.stream = stream
        self.operators = operators or OperatorTable.from_defaults()
        self._longest_operator = max((len(op) for op in self.operators.symbolic()), default=0)
        self._word_operators = self.operators.words()

    def peek(self) -> str:
        return self.stream.peek()

    def advance(self) -> str:
        return self.stream.next()

    def skip_comment(self) -> None:
        """Advances to the newline ending a comment, leaving the newline unread."""
        while not self.stream.end_of_file() and self.peek() != "\n":
            self.advance()

    def match_operator(self) -> Token | None:
        """Attempts to match the longest symbolic operator from the current position."""
        line, col = self.stream.line, self.stream.column
        max_token = None
        candidate = ""

        for i in range(self._longest_operator):
            ch = self.stream.peek(i)
            if ch == "":
                break
            candidate += ch
            if candidate in self.operators and not candidate[0].isalpha():
                max_token = candidate

        if max_token:
            for _ in range(len(max_token)):
                self.advance()
            return Token(OPERATOR, max_token, line, col)

        return None

    def next_token(self) -> Token:
        """Consumes and returns the next Token; EOF once the source is exhausted.

        Raises:
            ParseError: If a string literal is not terminated.
        """
        while self.peek() == "#":
            self.skip_comment()

        line, col = self.stream.line, self.stream.column
        if self.stream.end_of_file():
            return Token(EOF, "EOF", line, col)

        ch = self.peek()

        # 1. Layout
        if ch == "\n":
            return Token(EOL, self.advance(), line, col)

        if ch in INLINE_WHITESPACE:
            run = ""
            while not self.stream.end_of_file() and self.peek() in INLINE_WHITESPACE:
                run += self.advance()
            return Token(WHITESPACE, run, line, col)

        # 2. Identifier, keyword, bool or word operator
        if ch.isalpha() or ch == "_":
            ident = ""
            while not self.stream.end_of_file() and (
                self.peek().isalnum() or self.peek() == "_"
            ):
                ident += self.advance()
            if ident in BOOL_LITERALS:
                return Token(BOOL, ident, line, col)
            if ident in self._word_operators:
                return Token(OPERATOR, ident, line, col)
            if ident in KEYWORDS:
                return Token(KEYWORD, ident, line, col)
            return Token(IDENT, ident, line, col)

        # 3. Numeral; a run like `1.2.3` is left for the parser to reject
        if ch.isdigit():
            num = ""
            while not self.stream.end_of_file() and (
                self.peek().isdigit() or self.peek() == "."
            ):
                num += self.advance()
            return Token(FLOAT if "." in num else INT, num, line, col)

        # 4. String
        if ch in ('"', "'"):
            quote = self.advance()
            val = ""
            while not self.stream.end_of_file() and self.peek() not in (quote, "\n"):
                if self.peek() == "\\":
                    val += self.advance()
                    if self.stream.end_of_file():
                        break
                val += self.advance()
            if self.peek() == quote:
                self.advance()
                return Token(STRING, val, line, col)
            raise ParseError("unterminated string literal", line, col)

        # 5. Operator, then punctuation
        token = self.match_operator()
        if token:
            return token

        if ch in SYMBOLS:
            return Token(SYMBOL, self.advance(), line, col)

        # 6. Unknown character
        return Token(ERROR, self.advance(), line, col)


def tokenize(source: str, operators: OperatorTable | None = None) -> list[Token]:
    """Lexes `source` into a token list that always ends with an EOF token.

    Raises:
        ParseError: If the source contains an unterminated string literal.
    """
    lexer = Lexer(CharacterStream(source), operators)
    tokens: list[Token] = []
    while True:
        tok = lexer.next_token()
        tokens.append(tok)
        if tok.type == EOF:
            break
    return tokens


__all__ = ["CharacterStream", "Lexer", "Token", "tokenize"]
