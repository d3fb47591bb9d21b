"""
Exception types raised by the wu front end.

Classes:
    ParseError: Positioned syntax error. Subclasses the builtin `SyntaxError`
        so the usual `filename`, `lineno`, `offset` and `text` fields are filled.
    UnsupportedTokenError: A token kind the grammar has no rule for.
    MalformedNumeralError: Numeric literal text that cannot be converted.
    CursorBoundsError: The token cursor was moved outside the token list.
    OperatorConfigError: An operator table configuration was rejected.
    UnknownOperatorError: Operator text missing from the operator table.

Syntax errors (and the two ParseError subclasses) are user-facing and abort the
parse. CursorBoundsError signals a defect in the parser's control flow, never
bad input.
"""


class ParseError(SyntaxError):
    """Syntax error carrying an optional source position.

    Args:
        message (str): Human readable description.
        line (int | None): 1-based source line, if known.
        col (int | None): 1-based source column, if known.
        path (str | None): Source path, used only for diagnostics.
        source_line (str | None): Text of the offending source line.

    Attributes:
        line (int | None): Source line of the error.
        col (int | None): Source column of the error.
    """

    def __init__(
        self,
        message: str,
        line: int | None = None,
        col: int | None = None,
        path: str | None = None,
        source_line: str | None = None,
    ) -> None:
        if line is None:
            super().__init__(message)
        else:
            super().__init__(message, (path, line, col, source_line))
        self.line = line
        self.col = col

    @property
    def position(self) -> tuple[int, int] | None:
        if self.line is None:
            return None
        return (self.line, self.col or 0)

    def render(self) -> str:
        """Formats the error as `path:line:col: error: message` plus a caret line."""
        path = self.filename or "<input>"
        if self.line is None:
            return f"{path}: error: {self.msg}"

        header = f"{path}:{self.line}:{self.col or 0}: error: {self.msg}"
        if not self.text:
            return header

        source = self.text.rstrip("\n")
        caret = " " * max((self.col or 1) - 1, 0) + "^"
        return f"{header}\n    {source}\n    {caret}"


class UnsupportedTokenError(ParseError):
    """Raised for a token kind the parser has no rule for yet."""

    def __init__(
        self,
        token_type: str,
        line: int | None = None,
        col: int | None = None,
        path: str | None = None,
        source_line: str | None = None,
    ) -> None:
        super().__init__(
            f"token type '{token_type}' currently unimplemented",
            line,
            col,
            path,
            source_line,
        )
        self.token_type = token_type


class MalformedNumeralError(ParseError):
    """Raised when an INT or FLOAT token's text is not a valid number.

    The raw token text is kept on `literal`, since `text` is the SyntaxError
    field holding the source line.
    """

    def __init__(
        self,
        literal: str,
        kind: str,
        line: int | None = None,
        col: int | None = None,
        path: str | None = None,
        source_line: str | None = None,
    ) -> None:
        super().__init__(
            f"malformed {kind.lower()} literal '{literal}'",
            line,
            col,
            path,
            source_line,
        )
        self.literal = literal
        self.kind = kind


class CursorBoundsError(IndexError):
    """Raised when the token cursor is advanced or retreated out of range."""


class OperatorConfigError(Exception):
    """Raised when an operator table configuration is invalid.

    Attributes:
        conflicts (list[str]): Descriptions of conflicting operator definitions.

    Example:
        raise OperatorConfigError("Operator collision", ["'&&' → AND vs OR"])
    """

    def __init__(self, message: str, conflicts: list[str] | None = None):
        super().__init__(message)
        self.conflicts = conflicts or []


class UnknownOperatorError(LookupError):
    """Raised when operator text has no entry in the operator table."""

    def __init__(self, text: str) -> None:
        super().__init__(f"unknown operator '{text}'")
        self.text = text


__all__ = [
    "CursorBoundsError",
    "MalformedNumeralError",
    "OperatorConfigError",
    "ParseError",
    "UnknownOperatorError",
    "UnsupportedTokenError",
]
