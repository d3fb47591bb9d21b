"""
Shared constants for the wu front end.

Token type tags, the default operator table, reserved words and punctuation
symbols used by the lexer and the parser.

Exports:
    - Token type tags (INT, FLOAT, STRING, BOOL, IDENT, OPERATOR, SYMBOL,
      KEYWORD, WHITESPACE, EOL, EOF, ERROR)
    - OPERATOR_KINDS: every operator kind the parser can build a Binary node for
    - DEFAULT_OPERATORS: operator text -> (kind, precedence)
    - KEYWORDS, BOOL_LITERALS, SYMBOLS
    - ASSIGN_SYMBOL
"""

INT = "INT"
FLOAT = "FLOAT"
STRING = "STRING"
BOOL = "BOOL"
IDENT = "IDENT"
OPERATOR = "OPERATOR"
SYMBOL = "SYMBOL"
KEYWORD = "KEYWORD"
WHITESPACE = "WHITESPACE"
EOL = "EOL"
EOF = "EOF"
ERROR = "ERROR"

OPERATOR_KINDS: tuple[str, ...] = (
    "POW",
    "MUL",
    "DIV",
    "MOD",
    "ADD",
    "SUB",
    "CONCAT",
    "EQ",
    "NE",
    "LT",
    "GT",
    "LTE",
    "GTE",
    "AND",
    "OR",
)

# Lower precedence numbers bind tighter.
DEFAULT_OPERATORS: dict[str, tuple[str, int]] = {
    "^": ("POW", 0),
    "*": ("MUL", 1),
    "/": ("DIV", 1),
    "%": ("MOD", 1),
    "+": ("ADD", 2),
    "-": ("SUB", 2),
    "++": ("CONCAT", 3),
    "==": ("EQ", 4),
    "!=": ("NE", 4),
    "<": ("LT", 4),
    ">": ("GT", 4),
    "<=": ("LTE", 4),
    ">=": ("GTE", 4),
    "and": ("AND", 5),
    "or": ("OR", 6),
}

KEYWORDS: frozenset[str] = frozenset(
    {
        "fun",
        "return",
        "if",
        "elif",
        "else",
        "while",
        "break",
        "skip",
        "struct",
        "implement",
        "import",
        "extern",
    }
)

BOOL_LITERALS: frozenset[str] = frozenset({"true", "false"})

ASSIGN_SYMBOL = "="

SYMBOLS: frozenset[str] = frozenset({"=", "(", ")", "{", "}", "[", "]", ",", ":", "."})

__all__ = [
    "ASSIGN_SYMBOL",
    "BOOL",
    "BOOL_LITERALS",
    "DEFAULT_OPERATORS",
    "EOF",
    "EOL",
    "ERROR",
    "FLOAT",
    "IDENT",
    "INT",
    "KEYWORD",
    "KEYWORDS",
    "OPERATOR",
    "OPERATOR_KINDS",
    "STRING",
    "SYMBOL",
    "SYMBOLS",
    "WHITESPACE",
]
