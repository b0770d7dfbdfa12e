"""
Core Feature Model Object

A FeatureModel describes which combinations of selected/deselected features
are valid. It is the conjunction of an ordered tuple of constraint
expressions.

ARCHITECTURAL RULE:
    FeatureModel objects:
        - Are immutable (frozen dataclass, tuple of constraints)
        - Never answer satisfiability queries themselves (see analysis)
        - Compose only through `and_`, which returns a NEW model
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Set, Tuple

from .expressions import Expression, TRUE, conjoin, conjuncts, features_of_all


@dataclass(frozen=True)
class FeatureModel:
    """
    Represents a set of allowed feature assignments.

    Properties:
        constraints:
            Expressions that must all hold. An empty tuple (or one holding
            only TRUE) allows every assignment.

        internal_features:
            Auxiliary variables introduced by the source format (for example
            `$`-marked DIMACS variables). They take part in queries but are
            not user-visible features.

        source:
            Human-readable origin (a path or class name). Diagnostic only,
            ignored by equality.
    """

    constraints: Tuple[Expression, ...] = ()
    internal_features: FrozenSet[str] = frozenset()
    source: Optional[str] = field(default=None, compare=False)

    @classmethod
    def create(cls, expr: Expression, source: Optional[str] = None) -> "FeatureModel":
        """
        Build a model from one expression.

        Top-level AND operands become separate constraints, so a file of
        many conjoined lines yields one constraint per line.
        """
        return cls(constraints=tuple(conjuncts(expr)), source=source)

    def and_(self, expr: Expression) -> "FeatureModel":
        """
        Return the conjunction of this model and `expr`.

        The receiver is left untouched.
        """
        return FeatureModel(
            constraints=self.constraints + tuple(conjuncts(expr)),
            internal_features=self.internal_features,
            source=self.source,
        )

    def as_expression(self) -> Expression:
        return conjoin(*self.constraints)

    @property
    def features(self) -> Set[str]:
        """Every feature referenced by the model, internal ones included."""
        return features_of_all(self.constraints) | set(self.internal_features)

    @property
    def visible_features(self) -> Set[str]:
        return self.features - set(self.internal_features)

    @property
    def is_universal(self) -> bool:
        return all(c == TRUE for c in self.constraints)


# The no-constraint model: every feature assignment is allowed.
UNIVERSAL_MODEL = FeatureModel(source="<universal>")
