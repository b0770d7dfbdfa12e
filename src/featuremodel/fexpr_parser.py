"""
FExpr Parser (raw text → Expression AST).

Parses the textual feature-expression format used by --featureModelFExpr.

Syntax Notes:
    - Features: bare identifiers, defined(X) or definedEx(X)
    - Constants: 1 / 0, True / False
    - Operators, loosest first: <=>, =>, || (or |), && (or &), !
    - => is right-associative, the others associate left

File Format:
    - One expression per logical line, all of them conjoined
    - '#' starts a comment running to the end of the line
    - A line continues while parentheses are open, while it ends with a
      binary operator, or when it ends with a backslash
"""

import re
from typing import List, Tuple

from .errors import ModelParseError
from .expressions import (
    Expression,
    BinaryExpression,
    BinaryOperator,
    FeatureReference,
    UnaryExpression,
    UnaryOperator,
    TRUE,
    FALSE,
    conjoin,
)


class FExprParseError(ModelParseError):
    """Raised when FExpr parsing fails."""
    pass


_TOKEN_RE = re.compile(
    r"\s*(?:(?P<tok><=>|=>|&&|\|\||[&|!()]|[A-Za-z_][A-Za-z0-9_]*|\d+)|(?P<bad>\S))"
)

_DEFINED_FUNCTIONS = {"defined", "definedEx"}
_BINARY_TOKENS = ("<=>", "=>", "&&", "||", "&", "|")


def _tokenize(text: str) -> List[str]:
    """Tokenize expression text."""
    tokens = []
    pos = 0
    text = text.rstrip()
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if match.group("bad") is not None:
            raise FExprParseError(f"Unexpected character '{match.group('bad')}' at column {match.start('bad') + 1}")
        tokens.append(match.group("tok"))
        pos = match.end()
    return tokens


def _parse_equiv_expression(tokens: List[str], pos: int) -> Tuple[Expression, int]:
    """Parse <=> (lowest precedence)."""
    left, pos = _parse_implies_expression(tokens, pos)

    while pos < len(tokens) and tokens[pos] == "<=>":
        pos += 1
        right, pos = _parse_implies_expression(tokens, pos)
        left = BinaryExpression(BinaryOperator.EQUIV, left, right)

    return left, pos


def _parse_implies_expression(tokens: List[str], pos: int) -> Tuple[Expression, int]:
    """Parse => (right-associative)."""
    left, pos = _parse_or_expression(tokens, pos)

    if pos < len(tokens) and tokens[pos] == "=>":
        right, pos = _parse_implies_expression(tokens, pos + 1)
        left = BinaryExpression(BinaryOperator.IMPLIES, left, right)

    return left, pos


def _parse_or_expression(tokens: List[str], pos: int) -> Tuple[Expression, int]:
    """Parse OR expression."""
    left, pos = _parse_and_expression(tokens, pos)

    while pos < len(tokens) and tokens[pos] in ("||", "|"):
        pos += 1
        right, pos = _parse_and_expression(tokens, pos)
        left = BinaryExpression(BinaryOperator.OR, left, right)

    return left, pos


def _parse_and_expression(tokens: List[str], pos: int) -> Tuple[Expression, int]:
    """Parse AND expression."""
    left, pos = _parse_unary_expression(tokens, pos)

    while pos < len(tokens) and tokens[pos] in ("&&", "&"):
        pos += 1
        right, pos = _parse_unary_expression(tokens, pos)
        left = BinaryExpression(BinaryOperator.AND, left, right)

    return left, pos


def _parse_unary_expression(tokens: List[str], pos: int) -> Tuple[Expression, int]:
    """Parse unary expression (NOT)."""
    if pos < len(tokens) and tokens[pos] == "!":
        operand, pos = _parse_unary_expression(tokens, pos + 1)
        return UnaryExpression(UnaryOperator.NOT, operand), pos

    return _parse_primary_expression(tokens, pos)


def _parse_primary_expression(tokens: List[str], pos: int) -> Tuple[Expression, int]:
    """Parse primary expression (constant, feature, defined(...) or parenthesized)."""
    if pos >= len(tokens):
        raise FExprParseError("Unexpected end of expression")

    token = tokens[pos]

    if token == "(":
        expr, pos = _parse_equiv_expression(tokens, pos + 1)
        if pos >= len(tokens) or tokens[pos] != ")":
            raise FExprParseError("Missing closing parenthesis")
        return expr, pos + 1

    if token.isdigit():
        if token == "1":
            return TRUE, pos + 1
        if token == "0":
            return FALSE, pos + 1
        raise FExprParseError(f"Unexpected number: {token}")

    if token in ("True", "true"):
        return TRUE, pos + 1
    if token in ("False", "false"):
        return FALSE, pos + 1

    if re.match(r"^[A-Za-z_]", token):
        next_pos = pos + 1
        if next_pos < len(tokens) and tokens[next_pos] == "(":
            if token not in _DEFINED_FUNCTIONS:
                raise FExprParseError(f"Unknown function: {token}")
            if next_pos + 2 >= len(tokens) or not re.match(r"^[A-Za-z_]", tokens[next_pos + 1]):
                raise FExprParseError(f"Expected feature name in {token}(...)")
            if tokens[next_pos + 2] != ")":
                raise FExprParseError(f"Missing closing parenthesis in {token}(...)")
            return FeatureReference(tokens[next_pos + 1]), next_pos + 3
        return FeatureReference(token), next_pos

    raise FExprParseError(f"Unexpected token: {token}")


def parse_expression(text: str) -> Expression:
    """
    Parse a single expression.

    Raises:
        FExprParseError: If the text is empty or malformed
    """
    tokens = _tokenize(text)
    if not tokens:
        raise FExprParseError("Empty expression")

    expr, pos = _parse_equiv_expression(tokens, 0)
    if pos < len(tokens):
        raise FExprParseError(f"Unexpected tokens after parsing: {tokens[pos:]}")
    return expr


def _logical_lines(content: str) -> List[Tuple[int, str]]:
    """Join physical lines into (first line number, text) logical lines."""
    lines = []
    buffer: List[str] = []
    start = 0
    depth = 0

    for line_no, raw in enumerate(content.splitlines(), start=1):
        line = raw.split("#", 1)[0].rstrip()
        if not line.strip() and not buffer:
            continue
        if not buffer:
            start = line_no

        continued = line.endswith("\\")
        if continued:
            line = line[:-1]
        buffer.append(line)
        depth += line.count("(") - line.count(")")

        stripped = line.rstrip()
        if continued or depth > 0 or stripped.endswith(_BINARY_TOKENS) or stripped.endswith("!"):
            continue

        lines.append((start, " ".join(buffer)))
        buffer = []
        depth = 0

    if buffer:
        lines.append((start, " ".join(buffer)))
    return lines


def parse_expression_string(content: str) -> Expression:
    """
    Parse FExpr file content: every logical line is conjoined.

    An empty document (only blanks and comments) is TRUE.
    """
    exprs = []
    for line_no, text in _logical_lines(content):
        try:
            exprs.append(parse_expression(text))
        except FExprParseError as e:
            raise FExprParseError(f"line {line_no}: {e}") from e
    return conjoin(*exprs)


def parse_expression_file(filepath: str) -> Expression:
    """
    Parse an FExpr file into one Expression.

    Raises:
        FExprParseError: If the file cannot be read or decoded, or parsing
            fails (message names the file)
    """
    try:
        with open(filepath, "r", encoding="utf-8") as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise FExprParseError(f"{filepath}: cannot read file: {e}", locator=filepath) from e

    try:
        return parse_expression_string(content)
    except FExprParseError as e:
        raise FExprParseError(f"{filepath}: {e}", locator=filepath) from e


__all__ = [
    "parse_expression",
    "parse_expression_string",
    "parse_expression_file",
    "FExprParseError",
]
