"""
DIMACS Parser (raw text → FeatureModel).

Reads the two-variable-per-clause DIMACS dialect produced by feature-model
extraction tools.

Format:
    c <id> <name>       names variable <id>
    c <id>$ <name>      names an auxiliary (internal) variable
    c <anything else>   plain comment
    p cnf <vars> <clauses>
    <lit> [<lit>] 0     a clause; literals are signed variable ids

Clauses may span lines and several may share a line. Each clause holds at
most two literals. Variables without a name comment are called __var<id>.
"""

import re
from typing import Dict, List, Optional, Set

from .errors import ModelParseError
from .expressions import Expression, FeatureReference, disjoin, negate
from .model import FeatureModel


class DimacsParseError(ModelParseError):
    """Raised when DIMACS parsing fails."""
    pass


MAX_LITERALS_PER_CLAUSE = 2

_NAME_COMMENT_RE = re.compile(r"^c\s+(\d+)(\$?)\s+(\S+)\s*$")
_HEADER_RE = re.compile(r"^p\s+cnf\s+(\d+)\s+(\d+)\s*$")


def _literal_expression(literal: int, names: Dict[int, str]) -> Expression:
    var = abs(literal)
    ref = FeatureReference(names.get(var, f"__var{var}"))
    return ref if literal > 0 else negate(ref)


def parse_dimacs(content: str, feature_prefix: str = "", source: Optional[str] = None) -> FeatureModel:
    """
    Parse DIMACS content into a FeatureModel.

    Args:
        content: DIMACS text
        feature_prefix: Prepended to every named variable (e.g. "CONFIG_")
        source: Optional origin recorded on the model

    Returns:
        FeatureModel with one constraint per clause

    Raises:
        DimacsParseError: On a missing header, malformed token, out-of-range
            literal, over-wide or unterminated clause, or a clause count
            that differs from the header
    """
    names: Dict[int, str] = {}
    internal: Set[str] = set()
    clauses: List[List[int]] = []
    current: List[int] = []
    num_vars: Optional[int] = None
    declared_clauses = 0
    current_start = 0

    for line_no, raw in enumerate(content.splitlines(), start=1):
        line = raw.strip()
        if not line:
            continue

        if line.startswith("c"):
            match = _NAME_COMMENT_RE.match(line)
            if match:
                name = feature_prefix + match.group(3)
                names[int(match.group(1))] = name
                if match.group(2):
                    internal.add(name)
            continue

        if line.startswith("p"):
            match = _HEADER_RE.match(line)
            if not match:
                raise DimacsParseError(f"line {line_no}: malformed problem line: {line}")
            if num_vars is not None:
                raise DimacsParseError(f"line {line_no}: duplicate problem line")
            num_vars = int(match.group(1))
            declared_clauses = int(match.group(2))
            continue

        if line.startswith("%"):
            # Some generators terminate the clause section with '%'
            break

        if num_vars is None:
            raise DimacsParseError(f"line {line_no}: clause before 'p cnf' header")

        for token in line.split():
            try:
                literal = int(token)
            except ValueError:
                raise DimacsParseError(f"line {line_no}: invalid literal '{token}'")

            if literal == 0:
                if not current:
                    raise DimacsParseError(f"line {line_no}: empty clause")
                clauses.append(current)
                current = []
                continue

            if abs(literal) > num_vars:
                raise DimacsParseError(
                    f"line {line_no}: literal {literal} out of range (declared {num_vars} variables)"
                )
            if not current:
                current_start = line_no
            current.append(literal)
            if len(current) > MAX_LITERALS_PER_CLAUSE:
                raise DimacsParseError(
                    f"line {current_start}: clause has more than {MAX_LITERALS_PER_CLAUSE} literals"
                )

    if num_vars is None:
        raise DimacsParseError("missing 'p cnf' header")
    if current:
        raise DimacsParseError(f"line {current_start}: clause not terminated by 0")
    if len(clauses) != declared_clauses:
        raise DimacsParseError(
            f"header declares {declared_clauses} clauses but {len(clauses)} were found"
        )

    constraints = tuple(
        disjoin(*(_literal_expression(lit, names) for lit in clause)) for clause in clauses
    )
    return FeatureModel(constraints=constraints, internal_features=frozenset(internal), source=source)


def parse_dimacs_file(filepath: str, feature_prefix: str = "") -> FeatureModel:
    """
    Parse a DIMACS file into a FeatureModel.

    Raises:
        DimacsParseError: If the file cannot be read or decoded, or parsing
            fails (message names the file)
    """
    try:
        with open(filepath, "r", encoding="utf-8") as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise DimacsParseError(f"{filepath}: cannot read file: {e}", locator=filepath) from e

    try:
        return parse_dimacs(content, feature_prefix=feature_prefix, source=filepath)
    except DimacsParseError as e:
        raise DimacsParseError(f"{filepath}: {e}", locator=filepath) from e


__all__ = [
    "parse_dimacs",
    "parse_dimacs_file",
    "DimacsParseError",
    "MAX_LITERALS_PER_CLAUSE",
]
