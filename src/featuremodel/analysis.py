"""
Feature Model Analyzer — satisfiability queries and model inventory.

This module answers the questions downstream analyses ask of a resolved
feature model:
    - Is the model (optionally together with a condition) satisfiable?
    - Does one condition imply another under the model?
    - Are two models equivalent?
    - Which features can never be selected (dead features)?

Queries enumerate every assignment of the referenced features, so they are
meant for small models, diagnostics and tests. Large models belong to a
dedicated SAT backend.

IMPORTANT: This layer does NOT modify models. It only produces answers and
read-only reports.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Set

from featuremodel.expressions import (
    Expression,
    BinaryExpression,
    BinaryOperator,
    TRUE,
    evaluate,
    features_of,
    negate,
)
from featuremodel.model import FeatureModel


MAX_ENUMERATION_FEATURES = 20


class AnalysisLimitError(Exception):
    """Raised when a query would enumerate too many assignments."""
    pass


def _assignments(features: Set[str]) -> Iterator[Dict[str, bool]]:
    names = sorted(features)
    if len(names) > MAX_ENUMERATION_FEATURES:
        raise AnalysisLimitError(
            f"{len(names)} features exceed the enumeration limit of {MAX_ENUMERATION_FEATURES}"
        )
    for values in itertools.product((False, True), repeat=len(names)):
        yield dict(zip(names, values))


def _holds(model: FeatureModel, assignment: Dict[str, bool]) -> bool:
    return all(evaluate(c, assignment) for c in model.constraints)


def _solutions(model: FeatureModel, condition: Expression = TRUE) -> Iterator[Dict[str, bool]]:
    for assignment in _assignments(model.features | features_of(condition)):
        if _holds(model, assignment) and evaluate(condition, assignment):
            yield assignment


def is_satisfiable(model: FeatureModel, condition: Optional[Expression] = None) -> bool:
    """Return True if some assignment satisfies the model (and `condition`)."""
    return next(_solutions(model, condition or TRUE), None) is not None


def is_tautology(model: FeatureModel, condition: Expression) -> bool:
    """Return True if `condition` holds in every valid assignment of the model."""
    return not is_satisfiable(model, negate(condition))


def implies(model: FeatureModel, premise: Expression, conclusion: Expression) -> bool:
    """Return True if `premise => conclusion` is valid under the model."""
    return is_tautology(model, BinaryExpression(BinaryOperator.IMPLIES, premise, conclusion))


def count_solutions(model: FeatureModel) -> int:
    return sum(1 for _ in _solutions(model))


def equivalent(first: FeatureModel, second: FeatureModel) -> bool:
    """
    Return True if two models allow exactly the same assignments.

    Both models are evaluated over the union of their features.
    """
    for assignment in _assignments(first.features | second.features):
        if _holds(first, assignment) != _holds(second, assignment):
            return False
    return True


def dead_features(model: FeatureModel) -> Set[str]:
    """Visible features that are deselected in every valid assignment."""
    alive: Set[str] = set()
    for assignment in _solutions(model):
        alive.update(name for name, value in assignment.items() if value)
    return model.visible_features - alive


@dataclass
class ModelReport:
    """Analysis report for one feature model."""

    label: str
    source: Optional[str] = None
    total_features: int = 0
    internal_features: int = 0
    total_constraints: int = 0
    is_universal: bool = False

    # Only filled when the model is small enough to enumerate
    enumerated: bool = False
    satisfiable: Optional[bool] = None
    solution_count: Optional[int] = None
    dead_features: Set[str] = field(default_factory=set)

    warnings: List[str] = field(default_factory=list)

    def add_warning(self, msg: str) -> None:
        """Add a warning to the report."""
        if msg not in self.warnings:
            self.warnings.append(msg)


def analyze_model(model: FeatureModel, label: str = "feature model") -> ModelReport:
    """
    Inventory a feature model.

    Counts are always reported; satisfiability, solution count and dead
    features only when the model has at most MAX_ENUMERATION_FEATURES
    features. A skipped enumeration is recorded as a warning.
    """
    report = ModelReport(label=label, source=model.source)
    report.total_features = len(model.visible_features)
    report.internal_features = len(model.internal_features)
    report.total_constraints = len(model.constraints)
    report.is_universal = model.is_universal

    if len(model.features) > MAX_ENUMERATION_FEATURES:
        report.add_warning(
            f"Model too large to enumerate ({len(model.features)} features); "
            f"satisfiability not checked"
        )
        return report

    report.enumerated = True
    report.solution_count = count_solutions(model)
    report.satisfiable = report.solution_count > 0
    report.dead_features = dead_features(model)

    if not report.satisfiable:
        report.add_warning("Model is unsatisfiable: no feature assignment is valid")
    elif report.dead_features:
        report.add_warning(f"Dead features: {', '.join(sorted(report.dead_features))}")

    return report
