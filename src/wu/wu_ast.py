"""
Defines the abstract syntax tree (AST) produced by the wu parser.

Classes:
    Expression:
        One expression node: a literal, an identifier, a binary operation, or the
        end-of-input sentinel used internally while parsing.

    ExpressionArena:
        Owns every expression node built during a parse. Nodes are addressed by
        stable integer indices; a binary node stores the indices of its operands,
        so a subtree can be referenced from several owners without copying.

    Statement:
        An assignment (`x = expr`) or a bare expression statement.

    ExpressionDict, StatementDict:
        TypedDict shapes returned by `to_dict()`, suitable for JSON output.

Expression kinds:
    "int", "float", "string", "bool", "identifier", "binary", "eof"

Statement kinds:
    "assign", "expression"

Nodes are never mutated after construction. Equality is structural: kind,
value, position and operands are compared, regardless of which arena owns them.

Example:
    arena = ExpressionArena()
    one = arena.new("int", 1, line=1, col=1)
    two = arena.new("int", 2, line=1, col=5)
    node = arena.binary(one, "ADD", two, line=1, col=3)
"""

from typing import Any, TypedDict


class ExpressionDict(TypedDict, total=False):
    kind: str
    value: Any
    line: int
    col: int
    left: "ExpressionDict"
    right: "ExpressionDict"


class StatementDict(TypedDict, total=False):
    kind: str
    line: int
    col: int
    target: ExpressionDict | None
    expression: ExpressionDict


class Expression:
    """
    A single expression node.

    Args:
        kind (str): One of the expression kinds listed above.
        value (Any): Literal value, identifier name, or operator kind for "binary".
        line (int): Source line number.
        col (int): Source column number.
        arena (ExpressionArena | None): Arena holding this node and its operands.
        index (int | None): This node's index in `arena`.
        left_id (int | None): Arena index of the left operand ("binary" only).
        right_id (int | None): Arena index of the right operand ("binary" only).
    """

    def __init__(
        self,
        kind: str,
        value: Any = None,
        line: int = 0,
        col: int = 0,
        arena: "ExpressionArena | None" = None,
        index: int | None = None,
        left_id: int | None = None,
        right_id: int | None = None,
    ):
        self.kind = kind
        self.value = value
        self.line = line
        self.col = col
        self.arena = arena
        self.index = index
        self.left_id = left_id
        self.right_id = right_id

    @classmethod
    def end_of_input(cls, line: int = 0, col: int = 0) -> "Expression":
        return cls("eof", line=line, col=col)

    @property
    def is_end_of_input(self) -> bool:
        return self.kind == "eof"

    @property
    def op(self) -> str | None:
        return self.value if self.kind == "binary" else None

    @property
    def left(self) -> "Expression | None":
        if self.arena is None or self.left_id is None:
            return None
        return self.arena[self.left_id]

    @property
    def right(self) -> "Expression | None":
        if self.arena is None or self.right_id is None:
            return None
        return self.arena[self.right_id]

    @property
    def position(self) -> tuple[int, int]:
        return (self.line, self.col)

    def _leaf_repr(self) -> str:
        if self.kind == "eof":
            return "Expression(eof)"
        return f"Expression({self.kind}, {self.value!r})"

    def _same_fields(self, other: "Expression") -> bool:
        return (
            self.kind == other.kind
            and self.value == other.value
            and type(self.value) is type(other.value)
            and self.line == other.line
            and self.col == other.col
        )

    def _fields(self) -> ExpressionDict:
        return {"kind": self.kind, "value": self.value, "line": self.line, "col": self.col}

    def __repr__(self) -> str:
        # Operand walks use an explicit stack; chains run thousands of nodes deep.
        parts: list[str] = []
        stack: list["Expression | str | None"] = [self]
        while stack:
            item = stack.pop()
            if item is None or isinstance(item, str):
                parts.append(repr(item) if item is None else item)
            elif item.kind == "binary":
                prefix = f"Expression(binary, {item.value}, "
                stack.extend([")", item.right, ", ", item.left, prefix])
            else:
                parts.append(item._leaf_repr())
        return "".join(parts)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Expression):
            return False
        pairs: list[tuple[Expression, Expression]] = [(self, other)]
        while pairs:
            a, b = pairs.pop()
            if not a._same_fields(b):
                return False
            for x, y in ((a.left, b.left), (a.right, b.right)):
                if x is None or y is None:
                    if x is not y:
                        return False
                else:
                    pairs.append((x, y))
        return True

    __hash__ = None  # type: ignore[assignment]

    def to_dict(self) -> ExpressionDict:
        root = self._fields()
        stack: list[tuple[Expression, ExpressionDict]] = [(self, root)]
        while stack:
            node, data = stack.pop()
            left, right = node.left, node.right
            if left is not None and right is not None:
                data["left"] = left._fields()
                data["right"] = right._fields()
                stack.append((left, data["left"]))
                stack.append((right, data["right"]))
        return root


class ExpressionArena:
    """Index-addressed store of expression nodes.

    Attributes:
        nodes (list[Expression]): Every node added so far, by index.
    """

    def __init__(self) -> None:
        self.nodes: list[Expression] = []

    def __len__(self) -> int:
        return len(self.nodes)

    def __getitem__(self, index: int) -> Expression:
        return self.nodes[index]

    def new(self, kind: str, value: Any = None, line: int = 0, col: int = 0) -> Expression:
        """Creates a leaf node and stores it."""
        node = Expression(kind, value, line, col, arena=self, index=len(self.nodes))
        self.nodes.append(node)
        return node

    def binary(
        self, left: Expression, op: str, right: Expression, line: int = 0, col: int = 0
    ) -> Expression:
        """Creates a binary node over two nodes already held by this arena.

        Raises:
            ValueError: If an operand belongs to another arena.
        """
        if left.arena is not self or right.arena is not self:
            raise ValueError("binary operands must belong to the same arena")
        node = Expression(
            "binary",
            op,
            line,
            col,
            arena=self,
            index=len(self.nodes),
            left_id=left.index,
            right_id=right.index,
        )
        self.nodes.append(node)
        return node


class Statement:
    """
    One parsed statement.

    Args:
        kind (str): "assign" or "expression".
        expression (Expression): Right-hand side of an assignment, or the bare expression.
        target (Expression | None): Identifier assigned to ("assign" only).
        line (int): Line of the statement's first token.
        col (int): Column of the statement's first token.
    """

    def __init__(
        self,
        kind: str,
        expression: Expression,
        target: Expression | None = None,
        line: int = 0,
        col: int = 0,
    ):
        self.kind = kind
        self.expression = expression
        self.target = target
        self.line = line
        self.col = col

    @property
    def position(self) -> tuple[int, int]:
        return (self.line, self.col)

    def __repr__(self) -> str:
        if self.kind == "assign":
            return f"Statement(assign, {self.target!r}, {self.expression!r})"
        return f"Statement(expression, {self.expression!r})"

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Statement):
            return False
        return (
            self.kind == other.kind
            and self.expression == other.expression
            and self.target == other.target
            and self.line == other.line
            and self.col == other.col
        )

    __hash__ = None  # type: ignore[assignment]

    def to_dict(self) -> StatementDict:
        return {
            "kind": self.kind,
            "line": self.line,
            "col": self.col,
            "target": self.target.to_dict() if self.target is not None else None,
            "expression": self.expression.to_dict(),
        }


__all__ = [
    "Expression",
    "ExpressionArena",
    "ExpressionDict",
    "Statement",
    "StatementDict",
]
