"""
Provides the `OperatorTable` class mapping operator text to its kind and precedence.

The lexer uses the table to recognise operator tokens (longest match for symbolic
operators, whole words for `and` / `or`), and the parser uses it to look up the
kind and precedence of every operator it reduces.

Classes:
    - OperatorTable: Operator text → (kind, precedence) mapping.

Features:
    - Preloaded from `DEFAULT_OPERATORS` via `from_defaults()`
    - Dict-mode configuration where a key may name several aliases
      (comma-separated string, list, tuple or set)
    - Definitions given as `[kind, precedence]` or `{"kind": ..., "precedence": ...}`
    - Conflict detection within a single configuration
    - JSON loading and a printable report

Usage:
    >>> table = OperatorTable.from_defaults()
    >>> table.configure({"**": ["POW", 0]})
    >>> table.lookup("**")
    ('POW', 0)

Note:
    Lower precedence numbers bind tighter. Unknown operator text raises
    `UnknownOperatorError`.
"""

import json
from typing import Any

from wu.wu_constants import ASSIGN_SYMBOL, DEFAULT_OPERATORS, OPERATOR_KINDS
from wu.wu_errors import OperatorConfigError, UnknownOperatorError


class OperatorTable:
    """Holds the operator set used by the lexer and parser.

    Attributes:
        operators (dict[str, tuple[str, int]]): Operator text → (kind, precedence).
    """

    def __init__(self) -> None:
        self.operators: dict[str, tuple[str, int]] = {}

    def __contains__(self, text: object) -> bool:
        return text in self.operators

    def __len__(self) -> int:
        return len(self.operators)

    def lookup(self, text: str) -> tuple[str, int]:
        """Resolves operator text to its (kind, precedence) pair.

        Raises:
            UnknownOperatorError: If `text` is not a configured operator.
        """
        try:
            return self.operators[text]
        except KeyError:
            raise UnknownOperatorError(text) from None

    def precedence(self, text: str) -> int:
        return self.lookup(text)[1]

    def symbolic(self) -> list[str]:
        """Operators made of punctuation, longest first."""
        return sorted(
            (op for op in self.operators if not op[0].isalpha()),
            key=lambda op: (-len(op), op),
        )

    def words(self) -> set[str]:
        """Operators spelled as identifiers, such as `and`."""
        return {op for op in self.operators if op[0].isalpha()}

    def summary(self) -> dict[str, tuple[str, int]]:
        return dict(self.operators)

    def report(self) -> str:
        """Generates a newline-separated `text → KIND (precedence)` listing,
        tightest-binding operators first."""
        lines: list[str] = []
        for text, (kind, prec) in sorted(
            self.operators.items(), key=lambda item: (item[1][1], item[0])
        ):
            lines.append(f"{text:>6} → {kind:<8} ({prec})")
        return "\n".join(lines)

    def _extract_aliases(self, entry: Any) -> list[str]:
        """Flattens an alias group into a list of operator texts."""
        if isinstance(entry, str):
            return [alias.strip() for alias in entry.split(",") if alias.strip()]
        if isinstance(entry, (list, tuple, set, frozenset)):
            aliases: list[str] = []
            for item in entry:
                aliases.extend(self._extract_aliases(item))
            return aliases
        raise OperatorConfigError(f"Invalid operator alias group: {entry!r}")

    def _parse_definition(self, definition: Any) -> tuple[str, int]:
        if isinstance(definition, dict):
            kind = definition.get("kind")
            prec = definition.get("precedence")
        elif isinstance(definition, (list, tuple)) and len(definition) == 2:
            kind, prec = definition
        else:
            raise OperatorConfigError(
                f"Operator definition must be [kind, precedence]: {definition!r}"
            )

        if kind not in OPERATOR_KINDS:
            raise OperatorConfigError(f"Unknown operator kind: {kind}")
        # bool is an int subclass
        if isinstance(prec, bool) or not isinstance(prec, int) or prec < 0:
            raise OperatorConfigError(
                f"Precedence for {kind} must be a non-negative integer, got {prec!r}"
            )
        return kind, prec

    @classmethod
    def from_defaults(cls) -> "OperatorTable":
        """Constructs a table preloaded with `DEFAULT_OPERATORS`."""
        instance = cls()
        instance.configure({text: list(spec) for text, spec in DEFAULT_OPERATORS.items()})
        return instance

    def load_from_json(self, path: str) -> None:
        """
        Loads operator definitions from a JSON file and applies them via `configure`.

        Example JSON structure:
            {
                "**": ["POW", 0],
                "&&,and": {"kind": "AND", "precedence": 5}
            }

        Raises:
            OperatorConfigError: If the file cannot be read or the configuration is invalid.
        """
        try:
            with open(path, encoding="utf-8") as f:
                raw_cfg = json.load(f)
        except (OSError, ValueError) as e:
            raise OperatorConfigError(f"Failed to load operator file: {e}") from e

        if not isinstance(raw_cfg, dict):
            raise OperatorConfigError("Operator configuration must be a JSON object")
        self.configure(raw_cfg)

    def configure(self, cfg: dict[Any, Any]) -> None:
        """
        Adds or overrides operator definitions.

        Each key is an alias group (a comma-separated string or an iterable of
        strings) and each value a definition. Existing operators may be redefined;
        an alias defined twice with different values inside `cfg` is a conflict.
        Nothing is applied if any entry is rejected.

        Raises:
            OperatorConfigError: On a malformed definition, an unknown kind, a
                reserved or blank operator text, or conflicting aliases.
        """
        if not isinstance(cfg, dict):
            raise OperatorConfigError("Configuration must be a dict")

        new_operators: dict[str, tuple[str, int]] = {}
        conflicts: list[str] = []

        for alias_group, definition in cfg.items():
            spec = self._parse_definition(definition)
            for alias in self._extract_aliases(alias_group):
                if alias == ASSIGN_SYMBOL:
                    raise OperatorConfigError(
                        f"'{ASSIGN_SYMBOL}' is reserved for assignment"
                    )
                if any(ch.isspace() for ch in alias):
                    raise OperatorConfigError(f"Operator '{alias}' contains whitespace")
                if alias[0].isalpha() and not alias.isidentifier():
                    raise OperatorConfigError(f"Word operator '{alias}' is not a name")
                if alias in new_operators and new_operators[alias] != spec:
                    conflicts.append(
                        f"'{alias}' → conflict between {new_operators[alias][0]} and {spec[0]}"
                    )
                else:
                    new_operators[alias] = spec

        if conflicts:
            raise OperatorConfigError("Operator collision(s) detected", conflicts)

        self.operators.update(new_operators)


__all__ = ["OperatorTable"]
