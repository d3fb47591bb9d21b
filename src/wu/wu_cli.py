"""
wu CLI Entrypoint.

Reads wu source from a `.wu` file or an inline string, tokenizes and parses it,
and prints the resulting statements, their JSON form, or the token list.

Example usage:
    wu program.wu
    wu -s "x = 1 + 2 * 3" --json
    wu program.wu --tokens
    wu program.wu --operators ops.json -o ast.json --json
    wu program.wu --verbose

Functions:
    dump_json(value: Any, indent: int = 2) -> str:
        Renders nested JSON iteratively, for arbitrarily deep expression trees.

    run_wu(source: str, is_string: bool = False, out: Optional[str] = None,
           as_json: bool = False, tokens_only: bool = False,
           operators_path: Optional[str] = None) -> str:
        Executes the pipeline (lex → parse → format → output) and returns the output text.

    main() -> None:
        Parses CLI arguments, runs the pipeline and reports diagnostics.
"""

import argparse
import json
import logging
import sys
from typing import Any

from wu.wu_errors import OperatorConfigError, ParseError
from wu.wu_lexer import Token, tokenize
from wu.wu_operators import OperatorTable
from wu.wu_parser import Parser

logger = logging.getLogger(__name__)


def format_tokens(tokens: list[Token]) -> str:
    return "\n".join(f"{tok.line}:{tok.col}\t{tok.type}\t{tok.value!r}" for tok in tokens)


def dump_json(value: Any, indent: int = 2) -> str:
    """
    Render `value` like `json.dumps(value, indent=indent)` without recursing.

    Deep expression trees exceed the recursion limit of the `json` encoder, so
    containers are laid out from an explicit stack and only scalars and keys
    go through `json.dumps`.
    """
    parts: list[str] = []
    stack: list[tuple[Any, int] | str] = [(value, 0)]
    while stack:
        item = stack.pop()
        if isinstance(item, str):
            parts.append(item)
            continue
        obj, level = item
        if not isinstance(obj, (dict, list)) or not obj:
            parts.append(json.dumps(obj))
            continue
        is_dict = isinstance(obj, dict)
        entries = list(obj.items()) if is_dict else [(None, v) for v in obj]
        pad = "\n" + " " * (indent * (level + 1))
        parts.append("{" if is_dict else "[")
        stack.append("\n" + " " * (indent * level) + ("}" if is_dict else "]"))
        for i in reversed(range(len(entries))):
            key, entry = entries[i]
            stack.append((entry, level + 1))
            head = ("," if i else "") + pad
            stack.append(head + (json.dumps(key) + ": " if is_dict else ""))
    return "".join(parts)


def run_wu(
    source: str,
    is_string: bool = False,
    out: str | None = None,
    as_json: bool = False,
    tokens_only: bool = False,
    operators_path: str | None = None,
) -> str:
    """
    Run the wu front end over one source and print or write the result.

    Args:
        source (str): wu source code, or a path to a `.wu` file.
        is_string (bool): If True, treats `source` as code instead of a path.
        out (str | None): Optional path to write the output to instead of stdout.
        as_json (bool): Emit statements as JSON instead of one repr per line.
        tokens_only (bool): Stop after lexing and emit the token list.
        operators_path (str | None): JSON file with extra operator definitions.

    Returns:
        str: The text that was printed or written.

    Raises:
        ValueError: If `is_string` is False and the source does not end with '.wu'.
        ParseError: If the source fails to lex or parse.
        OperatorConfigError: If the operator file is invalid.
    """
    if not is_string and not source.endswith(".wu"):
        raise ValueError("Only .wu files are supported.")

    path = "<string>"
    if not is_string:
        path = source
        with open(source, encoding="utf-8") as f:
            source = f.read()

    operators = OperatorTable.from_defaults()
    if operators_path:
        operators.load_from_json(operators_path)
        logger.debug("loaded operator table from %s", operators_path)

    lines = source.splitlines()

    # 1. Lexing
    try:
        tokens = tokenize(source, operators)
    except ParseError as e:
        e.filename = path
        if e.line and e.line <= len(lines):
            e.text = lines[e.line - 1]
        raise

    # 2. Parsing
    if tokens_only:
        text = format_tokens(tokens)
    else:
        parser = Parser(tokens, lines, path, operators)
        statements = parser.parse()
        if as_json:
            text = dump_json([s.to_dict() for s in statements])
        else:
            text = "\n".join(repr(s) for s in statements)

    # 3. Output
    if out:
        with open(out, "w", encoding="utf-8") as f:
            f.write(text + "\n")
        logger.debug("wrote %d byte(s) to %s", len(text) + 1, out)
    else:
        print(text)
    return text


def main() -> None:
    """
    Entry point for the wu CLI.

    Supported flags:
        - `-s`, `--string`: Interpret source as code instead of a file path.
        - `--json`: Print statements as JSON.
        - `--tokens`: Print the token list instead of parsing.
        - `-o`, `--out`: Write output to a file.
        - `--operators`: Load extra operator definitions from a JSON file.
        - `--verbose`: Log debug output to stderr.

    Exits with status 1 after printing a diagnostic when the source or the
    operator configuration is rejected.
    """
    parser = argparse.ArgumentParser(prog="wu")
    parser.add_argument("source", help="Filename or raw source (with -s)")
    parser.add_argument(
        "-s", "--string", action="store_true", help="Interpret source as literal string"
    )
    parser.add_argument(
        "--json", dest="as_json", action="store_true", help="Print the AST as JSON"
    )
    parser.add_argument(
        "--tokens", dest="tokens_only", action="store_true", help="Print tokens only"
    )
    parser.add_argument("-o", "--out", metavar="OUTFILE", help="Output to file")
    parser.add_argument(
        "--operators", metavar="CONFIG", help="JSON file with operator definitions"
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        run_wu(
            source=args.source,
            is_string=args.string,
            out=args.out,
            as_json=args.as_json,
            tokens_only=args.tokens_only,
            operators_path=args.operators,
        )
    except ParseError as e:
        print(e.render(), file=sys.stderr)
        sys.exit(1)
    except OperatorConfigError as e:
        print(f"error: {e}", file=sys.stderr)
        for conflict in e.conflicts:
            print(f"  {conflict}", file=sys.stderr)
        sys.exit(1)
    except (OSError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__" and not any("pytest" in arg for arg in sys.argv):
    main()
