"""
Expression System for feature models

Every constraint over features (a line of an FExpr file, a DIMACS clause,
the body of a factory-built model) is represented as an Abstract Syntax
Tree, never as a string.

This ensures:
    - Immutability (all nodes are frozen dataclasses)
    - Structural equality and hashing
    - Serialization capability
    - Composability (conjunction builds a new tree, never edits one)

ARCHITECTURAL RULE:
    Parsing lives in fexpr_parser / dimacs.
    Querying lives in analysis.
    This module only defines structure plus tiny structural helpers.
"""

from abc import ABC
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Set


class Expression(ABC):
    """
    Base class for all constraint expressions.

    Intentionally minimal. It exists to give the node hierarchy one type.
    """
    pass


class BinaryOperator(Enum):
    """
    Binary boolean connectives.

    Only pure boolean operators appear here: features are booleans,
    there is nothing to compare.
    """

    AND = "&&"
    OR = "||"
    IMPLIES = "=>"
    EQUIV = "<=>"


class UnaryOperator(Enum):
    NOT = "!"


@dataclass(frozen=True)
class FeatureReference(Expression):
    """
    References a feature by name.

    Examples:
        - CONFIG_X86
        - USE_SSL

    The reference does NOT imply the feature is declared anywhere.
    """

    name: str


@dataclass(frozen=True)
class Constant(Expression):
    """A boolean constant (`1`/`0` or `True`/`False` in source form)."""

    value: bool


@dataclass(frozen=True)
class UnaryExpression(Expression):
    """
    Represents a negation.

    Example:
        !defined(DEBUG)

    Becomes:
        UnaryExpression(
            operator=UnaryOperator.NOT,
            operand=FeatureReference("DEBUG")
        )
    """

    operator: UnaryOperator
    operand: Expression


@dataclass(frozen=True)
class BinaryExpression(Expression):
    """
    Represents a binary boolean expression.

    Example:
        defined(A) && (defined(B) || defined(C))

    Becomes:
        BinaryExpression(
            operator=BinaryOperator.AND,
            left=FeatureReference("A"),
            right=BinaryExpression(
                operator=BinaryOperator.OR,
                left=FeatureReference("B"),
                right=FeatureReference("C")
            )
        )
    """

    operator: BinaryOperator
    left: Expression
    right: Expression


TRUE = Constant(True)
FALSE = Constant(False)


def negate(expr: Expression) -> Expression:
    return UnaryExpression(UnaryOperator.NOT, expr)


def conjoin(*exprs: Expression) -> Expression:
    """
    Build a left-nested AND chain over the given expressions.

    `TRUE` operands are dropped; an empty chain is `TRUE`.
    """
    result = None
    for expr in exprs:
        if expr == TRUE:
            continue
        result = expr if result is None else BinaryExpression(BinaryOperator.AND, result, expr)
    return TRUE if result is None else result


def disjoin(*exprs: Expression) -> Expression:
    """Left-nested OR chain; an empty chain is `FALSE`."""
    result = None
    for expr in exprs:
        result = expr if result is None else BinaryExpression(BinaryOperator.OR, result, expr)
    return FALSE if result is None else result


def chain_operands(expr: Expression, operator: BinaryOperator) -> List[Expression]:
    """
    Flatten nested `operator` nodes into their operands, left to right.

    Walks with an explicit stack, so chains of any length are safe.
    """
    operands: List[Expression] = []
    stack = [expr]
    while stack:
        node = stack.pop()
        if isinstance(node, BinaryExpression) and node.operator == operator:
            stack.append(node.right)
            stack.append(node.left)
        else:
            operands.append(node)
    return operands


def conjuncts(expr: Expression) -> List[Expression]:
    """Top-level AND operands of `expr`, with `TRUE` operands dropped."""
    return [e for e in chain_operands(expr, BinaryOperator.AND) if e != TRUE]


def features_of(expr: Expression) -> Set[str]:
    """Return every feature name referenced by an expression."""
    names: Set[str] = set()
    stack = [expr]
    while stack:
        node = stack.pop()
        if isinstance(node, FeatureReference):
            names.add(node.name)
        elif isinstance(node, UnaryExpression):
            stack.append(node.operand)
        elif isinstance(node, BinaryExpression):
            stack.append(node.left)
            stack.append(node.right)
    return names


def features_of_all(exprs: Iterable[Expression]) -> Set[str]:
    names: Set[str] = set()
    for expr in exprs:
        names |= features_of(expr)
    return names


def evaluate(expr: Expression, assignment: Dict[str, bool]) -> bool:
    """
    Evaluate an expression under a feature assignment.

    Features absent from `assignment` are treated as deselected (False).
    AND/OR chains are flattened first, so recursion depth follows the
    operator nesting, not the chain length.
    """
    if isinstance(expr, Constant):
        return expr.value
    if isinstance(expr, FeatureReference):
        return bool(assignment.get(expr.name, False))
    if isinstance(expr, UnaryExpression):
        return not evaluate(expr.operand, assignment)
    if isinstance(expr, BinaryExpression):
        if expr.operator == BinaryOperator.AND:
            return all(evaluate(e, assignment) for e in chain_operands(expr, BinaryOperator.AND))
        if expr.operator == BinaryOperator.OR:
            return any(evaluate(e, assignment) for e in chain_operands(expr, BinaryOperator.OR))
        left = evaluate(expr.left, assignment)
        if expr.operator == BinaryOperator.IMPLIES:
            return (not left) or evaluate(expr.right, assignment)
        if expr.operator == BinaryOperator.EQUIV:
            return left == evaluate(expr.right, assignment)
    raise TypeError(f"Unsupported Expression type: {type(expr)}")


def to_fexpr(expr: Expression) -> str:
    """Render an expression back into FExpr source text (fully parenthesised)."""
    if isinstance(expr, Constant):
        return "1" if expr.value else "0"
    if isinstance(expr, FeatureReference):
        return f"defined({expr.name})"
    if isinstance(expr, UnaryExpression):
        return f"!{to_fexpr(expr.operand)}"
    if isinstance(expr, BinaryExpression):
        return f"({to_fexpr(expr.left)} {expr.operator.value} {to_fexpr(expr.right)})"
    raise TypeError(f"Unsupported Expression type: {type(expr)}")
