"""
Serialization helpers for feature models and expressions.

Provides lossless JSON/YAML round-trip via an intermediate dict representation.
This module intentionally keeps serialization structure stable and explicit.
"""
from __future__ import annotations

import json
from typing import Any, Dict

import yaml

from featuremodel.expressions import (
    Expression,
    BinaryExpression,
    BinaryOperator,
    Constant,
    FeatureReference,
    UnaryExpression,
    UnaryOperator,
)
from featuremodel.model import FeatureModel


def expr_to_dict(expr: Expression) -> Any:
    if isinstance(expr, BinaryExpression):
        return {
            "type": "binary",
            "operator": expr.operator.value,
            "left": expr_to_dict(expr.left),
            "right": expr_to_dict(expr.right),
        }
    if isinstance(expr, FeatureReference):
        return {"type": "feature", "name": expr.name}
    if isinstance(expr, Constant):
        return {"type": "const", "value": expr.value}
    if isinstance(expr, UnaryExpression):
        return {
            "type": "unary",
            "operator": expr.operator.value,
            "operand": expr_to_dict(expr.operand),
        }
    raise TypeError(f"Unsupported Expression type: {type(expr)}")


def expr_from_dict(d: Dict[str, Any]) -> Expression:
    t = d.get("type")
    if t == "binary":
        op = BinaryOperator(d["operator"])
        left = expr_from_dict(d["left"])
        right = expr_from_dict(d["right"])
        return BinaryExpression(operator=op, left=left, right=right)
    if t == "feature":
        return FeatureReference(d["name"])
    if t == "const":
        return Constant(bool(d["value"]))
    if t == "unary":
        op = UnaryOperator(d["operator"])
        operand = expr_from_dict(d["operand"])
        return UnaryExpression(operator=op, operand=operand)
    raise TypeError(f"Unsupported expression dict type: {t}")


def model_to_dict(m: FeatureModel) -> Dict[str, Any]:
    return {
        "source": m.source,
        "internal_features": sorted(m.internal_features),
        "constraints": [expr_to_dict(c) for c in m.constraints],
    }


def model_from_dict(d: Dict[str, Any]) -> FeatureModel:
    return FeatureModel(
        constraints=tuple(expr_from_dict(c) for c in d.get("constraints", [])),
        internal_features=frozenset(d.get("internal_features", [])),
        source=d.get("source"),
    )


def models_to_dict(general: FeatureModel, type_system: FeatureModel) -> Dict[str, Any]:
    return {
        "feature_model": model_to_dict(general),
        "type_system_feature_model": model_to_dict(type_system),
    }


def models_to_json(general: FeatureModel, type_system: FeatureModel) -> str:
    return json.dumps(models_to_dict(general, type_system), sort_keys=True)


def models_to_yaml(general: FeatureModel, type_system: FeatureModel) -> str:
    return yaml.safe_dump(models_to_dict(general, type_system))


def model_to_yaml(m: FeatureModel) -> str:
    return yaml.safe_dump(model_to_dict(m))


def model_from_yaml(s: str) -> FeatureModel:
    d = yaml.safe_load(s)
    return model_from_dict(d)
